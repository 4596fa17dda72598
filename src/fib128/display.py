# src/fib128/display.py
from __future__ import annotations

from typing import TYPE_CHECKING

from colorama import Fore, Style

from fib128 import __version__
from fib128.bign import BIGN_MAX, BigN, leading_zeros
from fib128.config import list_profiles_with_descriptions, read_current_profile
from fib128.engine import MAX_INDEX_DEFAULT, max_computable_index
from fib128.fmt import STRING_LEN, abbr_digits, bign_to_string, format_duration, format_words
from fib128.runtime import CFG

if TYPE_CHECKING:
    from fib128.output_manager import OutputManager
    from fib128.verify import VerifyResult

ALIGN_WIDTH = 16  # label column


def _row(label: str, value: str) -> str:
    return f"  {label + ':':<{ALIGN_WIDTH}}{value}"


def print_result(
    k: int,
    value: BigN,
    *,
    om: OutputManager,
    show_details: bool = True,
    elapsed: float | None = None,
    check: VerifyResult | None = None,
) -> None:
    """Pretty print F(k) and, with details, its word layout, size and timing."""
    digits = bign_to_string(value)

    om.write(f"{Fore.CYAN + Style.BRIGHT}F({k}){Style.RESET_ALL} = {digits}")
    if not show_details:
        return

    threshold = int(CFG("DISPLAY.ABBREVIATE_OVER", 30))
    if len(digits) > threshold:
        om.write(_row("Abbreviated", abbr_digits(digits, threshold=threshold)))
    om.write(_row("Digits", f"{len(digits)} {Style.DIM}(buffer {STRING_LEN} bytes){Style.RESET_ALL}"))

    bits = 128 - leading_zeros(value)
    om.write(_row("Bits", f"{bits} {Style.DIM}of 128{Style.RESET_ALL}"))

    if CFG("DISPLAY.SHOW_HEX", True):
        om.write(_row("Words", format_words(value)))

    if elapsed is not None and CFG("DISPLAY.SHOW_TIMING", True):
        steps = k.bit_length()
        om.write(_row("Time", f"{format_duration(elapsed)} {Style.DIM}({steps} doubling steps){Style.RESET_ALL}"))

    if check is not None:
        if check.ok:
            om.write(_row("Verified", f"{Fore.GREEN}matches gmpy2.fib({k}){Style.RESET_ALL}"))
        else:
            om.write(_row("Verified", f"{Fore.RED}MISMATCH: gmpy2.fib({k}) = {check.reference}{Style.RESET_ALL}"))


def print_range(rows: list[tuple[int, BigN]], *, om: OutputManager) -> None:
    """One line per index, right-aligned so the digits line up."""
    if not rows:
        om.write("(empty range)")
        return
    width = max(len(str(k)) for k, _ in rows)
    for k, value in rows:
        om.write(f"  F({k:>{width}}) = {bign_to_string(value)}")


def print_limits(*, om: OutputManager, max_index: int) -> None:
    top = max_computable_index()
    om.write(f"\n{Fore.CYAN + Style.BRIGHT}128-bit limits:{Style.RESET_ALL}")
    om.write(_row("2^128 - 1", str(BIGN_MAX)))
    om.write(_row("Largest index", f"{top} {Style.DIM}(F({top + 1}) needs more than 128 bits){Style.RESET_ALL}"))
    om.write(_row("Active ceiling", f"{max_index} {Style.DIM}(profile LIMITS.MAX_INDEX, default {MAX_INDEX_DEFAULT}){Style.RESET_ALL}"))


def print_profiles_with_descriptions() -> None:
    pairs = list_profiles_with_descriptions()
    if not pairs:
        print("\nAvailable profiles: (none)")
        return

    current = read_current_profile()
    lines = []
    for name, desc in pairs:
        mark = "*" if current and name == current else " "
        lines.append(f"{mark} {name:13} — {desc}")
    print("\nAvailable profiles:\n  " + "\n  ".join(lines))


def show_intro_help(om: OutputManager) -> None:
    om.write(f"{Fore.YELLOW}{Style.BRIGHT}fib128 v{__version__}{Style.RESET_ALL} — Fibonacci numbers in 128-bit fixed width")
    om.write("""
  <index>        compute F(index); literals and expressions work: 93, 0x5d, 2**7+1, 1e2
  n, next        move to the next index
  p, prev        move to the previous index
  end            jump to the active ceiling
  range A B      list F(A) .. F(B-1)
  limits         show the 128-bit limits and the active ceiling
  profiles       list profiles; type a profile name to switch
  hist           show this session's history
  debug on|off   toggle diagnostics
  verify on|off  cross-check results against gmpy2
  h, help        this text
  q, quit        leave""")
