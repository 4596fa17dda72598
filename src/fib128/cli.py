# src/fib128/cli.py

"""
fib128 - Fibonacci numbers in 128-bit fixed width

Description:
    Computes F(k) with the fast-doubling recurrence on two-word unsigned
    integers and prints its decimal value. Indices whose value (or whose
    successor) needs more than 128 bits are rejected, never wrapped.

usage: see fib128 -h
"""

from __future__ import annotations

import argparse
import faulthandler
import os
import sys
import textwrap
import threading
import time
import traceback
from collections.abc import Callable
from importlib.resources import files as pkg_files
from time import perf_counter
from typing import NamedTuple

from colorama import Fore, Style
from colorama import init as colorama_init

import fib128.config as CONFIG
from fib128 import __version__ as _ver
from fib128.display import (
    print_limits,
    print_profiles_with_descriptions,
    print_range,
    print_result,
    show_intro_help,
)
from fib128.engine import ArithmeticOverflow, InvalidIndex, check_index, fib_range
from fib128.expreval import parse_int_or_expr
from fib128.output_manager import OutputManager
from fib128.runtime import APPLY, CFG, ensure_runtime_deps
from fib128.runtime import current as _rt_current
from fib128.session import SEEK_CUR, SEEK_END, SEEK_SET, FibSession, effective_max_index
from fib128.utility import UserInputError, clear_screen, flatten_dotted, typename, validate_output_setting
from fib128.verify import verify_index, verify_range
from fib128.workspace import ensure_workspace_seeded, seed_workspace, workspace_dir

# errors shown as one friendly line, exit status 2
_USER_ERRORS = (UserInputError, InvalidIndex, ArithmeticOverflow)

_COMMANDS = {"init", "where", "profiles", "active", "limits", "range"}
_RANGE_ARGS = 3  # "range START STOP"


# In memory session history
class HistoryItem(NamedTuple):
    index: int
    profile: str | None
    timestamp: float


_HISTORY: list[HistoryItem] = []


def add_to_history(index: int, profile: str | None = None) -> None:
    _HISTORY.append(HistoryItem(index=index, profile=profile, timestamp=time.time()))


def get_history() -> list[HistoryItem]:
    return list(_HISTORY)


def _install_loud_error_handlers(debug: bool) -> None:
    if not debug:
        return
    faulthandler.enable()

    def _excepthook(exc_type, exc, tb):
        sys.stderr.write("\n[UNCAUGHT EXCEPTION]\n")
        traceback.print_exception(exc_type, exc, tb, file=sys.stderr)
        sys.stderr.flush()
    sys.excepthook = _excepthook

    def _thread_excepthook(args):
        sys.stderr.write("\n[UNCAUGHT THREAD EXCEPTION]\n")
        traceback.print_exception(args.exc_type, args.exc_value, args.exc_traceback, file=sys.stderr)
        sys.stderr.flush()
    threading.excepthook = _thread_excepthook


def _print_user_error(msg: str) -> None:
    """Uniform, one-line friendly error."""
    prefix = f"{Fore.RED}Error:{Style.RESET_ALL}"
    if not (msg.startswith("Invalid input:") or msg.startswith("Error:")):
        msg = f"{prefix} {msg}"
    print(msg, file=sys.stderr)


def _resolve_inputs(items: list[str]) -> tuple[str | None, int | None]:
    """Return (profile, index) based on the first two positionals.

    Rules:
      - one item: an integer/expression is the index, anything else a profile
      - two items: a numeric first item wins as index; otherwise the first is
        the profile and the second the index
    """
    if not items:
        return None, None

    first = parse_int_or_expr(items[0])
    if len(items) == 1:
        return (None, first) if first is not None else (items[0], None)
    if first is not None:
        return None, first
    return items[0], _parse_index_arg(items[1])


def _parse_index_arg(text: str) -> int:
    n = parse_int_or_expr(text)
    if n is None:
        raise UserInputError(f"Invalid input: '{text}' is not an integer.")
    return n


def _select_profile_name(explicit: str | None) -> str:
    """
    Precedence:
      1) explicit profile argument
      2) last used (from workspace)
      3) 'default'
    """
    if explicit:
        return explicit
    last = CONFIG.read_current_profile()
    if last and CONFIG.has_profile(last):
        return last
    return "default"


# ---- argparse ----
def _build_parser() -> argparse.ArgumentParser:

    epilog = textwrap.dedent("""\
    commands:
      init
          Create the workspace folder and copy the packaged profiles if missing.

      init overwrite
          Meant for developers. Requires environment variable FIB128_DEV=1.
          Replaces the workspace profiles with the packaged ones.

      range START STOP
          List F(START) .. F(STOP-1).

      limits
          Show the 128-bit limits and the active index ceiling.

      profiles
          List the available profiles.

      where
          Show the workspace and package paths.
    """)

    p = argparse.ArgumentParser(
        description="fib128 — Fibonacci numbers in 128-bit fixed width",
        usage=(
            "fib128 [[profile] index] [--output OUTPUT] [--quiet] [--no-details] [--verify] [--debug]\n"
            "       fib128 range START STOP\n"
            "       fib128 init | where | limits | profiles\n"
            "       fib128 -h | --help\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=epilog,
    )
    p.add_argument("items", nargs="*", metavar="[[profile] index]",
                   help="optional profile name followed by the index to compute")
    p.add_argument("--output", default=None, help="Write results to a file (also prints unless --quiet)")
    p.add_argument("--quiet", action="store_true", help="Suppress screen output")
    p.add_argument("--no-details", action="store_true", help="Print only the value")
    p.add_argument("--verify", action="store_true", help="Cross-check results against gmpy2")
    p.add_argument("--debug", action="store_true", help="Show profile settings, timings and tracebacks")
    p.add_argument("--version", action="version", version=f"fib128 {_ver}")

    return p


def main(argv=None) -> int:
    """Thin wrapper: catch friendly errors, hide tracebacks unless debug."""
    try:
        return _main_impl(argv)
    except _USER_ERRORS as e:
        _print_user_error(str(e))
        return 2
    except KeyboardInterrupt:
        print("Aborted by user.", file=sys.stderr)
        return 130
    except Exception as e:
        debug = "--debug" in (argv if argv is not None else sys.argv)
        if debug:
            raise
        print(f"Unexpected error: {e.__class__.__name__}: {e}", file=sys.stderr)
        print("Run with --debug for a full traceback.", file=sys.stderr)
        return 1


# ---- computing & printing ----
def _print_current(session: FibSession, *, om: OutputManager, show_details: bool) -> bool:
    """Print F(position); returns False only when verification found a mismatch."""
    rt = _rt_current()
    k = session.tell()

    t0 = perf_counter()
    value = session.read_bign()
    elapsed = perf_counter() - t0

    check = verify_index(k) if rt.verify else None
    if rt.debug:
        print(f"[debug] F({k}): {k.bit_length()} doubling steps, {elapsed * 1e6:.1f} µs", file=sys.stderr)

    print_result(k, value, om=om, show_details=show_details, elapsed=elapsed, check=check)
    return check is None or check.ok


def _compute_and_print(session: FibSession, k: int, *, om: OutputManager, show_details: bool) -> bool:
    check_index(k, session.max_index)
    session.seek(k, SEEK_SET)
    return _print_current(session, om=om, show_details=show_details)


def _run_range(
    session: FibSession,
    start: int,
    stop: int,
    make_output_manager: Callable[..., OutputManager],
) -> int:
    if stop <= start:
        raise UserInputError(f"range STOP ({stop}) must be greater than START ({start}).")
    check_index(start, session.max_index)
    check_index(stop - 1, session.max_index)

    rows = list(fib_range(start, stop))
    om = make_output_manager(f"{start}-{stop}")
    try:
        print_range(rows, om=om)
        if _rt_current().verify:
            bad = verify_range(start, stop)
            if bad:
                for r in bad:
                    om.write(f"  {Fore.RED}MISMATCH F({r.index}): gmpy2 gives {r.reference}{Style.RESET_ALL}")
                return 1
            om.write(f"  {Fore.GREEN}{stop - start} values match gmpy2{Style.RESET_ALL}")
    finally:
        om.close()
    return 0


def _debug_profile(selected) -> None:
    print(f"[debug] active profile: {selected.name}", file=sys.stderr)
    src_path = getattr(selected, "_source", None)
    if src_path:
        print(f"[debug] profile file: {src_path}", file=sys.stderr)
    flat = flatten_dotted(selected.as_dict())
    print("[debug] profile keys (runtime value/type):", file=sys.stderr)
    for k in sorted(flat.keys(), key=str.lower):
        runtime_val = CFG(k, None)
        print(f"        {k:.<40} {runtime_val!r} ({typename(runtime_val)})", file=sys.stderr)
    print(file=sys.stderr)


# ---- main ----
def _main_impl(argv=None) -> int:

    colorama_init(autoreset=True)

    parser = _build_parser()
    args = parser.parse_args(argv)
    rt = _rt_current()
    rt.debug = bool(args.debug)

    _install_loud_error_handlers(args.debug)

    if not ensure_runtime_deps(strict=True):
        return 1

    # Ensure a first-run workspace seed silently
    ws, seeded, copied = ensure_workspace_seeded()
    if args.debug and seeded:
        print(f"[debug] seeded workspace {ws}: {copied.get('profiles', 0)} profile(s)", file=sys.stderr)

    items = list(args.items)
    command = items[0].lower() if items and items[0].lower() in _COMMANDS else None

    _TWO_ARGS = 2
    if command == "init":
        if len(items) == _TWO_ARGS and items[1] == "overwrite":
            if os.environ.get("FIB128_DEV") != "1":
                print("Refusing to overwrite: set FIB128_DEV=1 to enable developer overwrite.")
                return 2
            ws, copied = seed_workspace(overwrite=True)
            print(f"Workspace ready at: {ws} (overwrote existing files)")
        else:
            print(f"Workspace ready at: {ws}")
        print(f"Copied -> profiles: {copied.get('profiles', 0)}")
        return 0

    if command == "where":
        print(f"Workspace: {workspace_dir()}")
        print(f"Package:   {pkg_files('fib128')}")
        return 0

    if command == "profiles":
        print_profiles_with_descriptions()
        return 0

    if command == "active":
        print(f"Active profile: {_select_profile_name(None)}")
        return 0

    profile, index = (None, None) if command else _resolve_inputs(items)

    if profile and not CONFIG.has_profile(profile):
        print(f"Unknown profile: '{profile}'")
        print("Available profiles:", ", ".join(CONFIG.list_all_profiles()))
        return 2

    profile_name = _select_profile_name(profile)
    if CONFIG.has_profile(profile_name):
        selected = CONFIG.load_settings(profile_name)
        APPLY(selected)
        if args.debug:
            _debug_profile(selected)

    # CLI flags win over the profile
    if args.debug:
        rt.debug = True
    if args.verify:
        rt.verify = True

    # --- output routing (CLI --output overrides profile OUTPUT_FILE) ---
    try:
        cli_output_target = validate_output_setting(args.output)
        profile_target = validate_output_setting(CFG("OUTPUT.OUTPUT_FILE", None))
    except ValueError as e:
        print(f"Fatal error in output setting: {e}", file=sys.stderr)
        return 1

    def make_output_manager(idx=None) -> OutputManager:
        target = cli_output_target if cli_output_target is not None else profile_target
        return OutputManager(output_file=target, quiet=args.quiet, index=idx)

    show_details = not args.no_details

    with FibSession() as session:
        if command == "limits":
            om = make_output_manager("limits")
            try:
                print_limits(om=om, max_index=session.max_index)
            finally:
                om.close()
            return 0

        if command == "range":
            if len(items) != _RANGE_ARGS:
                raise UserInputError("usage: fib128 range START STOP")
            return _run_range(session, _parse_index_arg(items[1]), _parse_index_arg(items[2]), make_output_manager)

        # --- one-shot index path ---
        if index is not None:
            om = make_output_manager(index)
            try:
                ok = _compute_and_print(session, index, om=om, show_details=show_details)
            finally:
                om.close()
            return 0 if ok else 1

        return _repl(session, profile_name, make_output_manager, show_details=show_details)


# ---- REPL ----
def _repl(
    session: FibSession,
    profile_name: str,
    make_output_manager: Callable[..., OutputManager],
    *,
    show_details: bool,
) -> int:
    if not _rt_current().debug:
        clear_screen()
    print(f"{Fore.YELLOW}{Style.BRIGHT}fib128 v{_ver} — Fibonacci numbers in 128-bit fixed width{Style.RESET_ALL}")

    def show_here() -> None:
        om = make_output_manager(session.tell())
        try:
            _print_current(session, om=om, show_details=show_details)
        finally:
            om.close()

    current_profile = profile_name
    while True:
        try:
            prompt = (
                f"\nProfile: {current_profile}, index {session.tell()}/{session.max_index}"
                " — Enter an index, command or profile (h=Help, q=Quit): "
            )
            user_input = input(prompt).strip()

            low = user_input.lower()
            if low in {"", "q", "quit"}:
                break

            if low in {"h", "help"}:
                show_intro_help(OutputManager())
                continue

            if low in {"profiles", "list profiles"}:
                print_profiles_with_descriptions()
                continue

            if low in {"hist", "history"}:
                hist = get_history()
                if not hist:
                    print("History is empty.")
                for item in hist:
                    ts = time.strftime("%H:%M:%S", time.localtime(item.timestamp))
                    print(f"{ts}  k={item.index:<5}  profile={item.profile or '-'}")
                continue

            if low in {"n", "next", "p", "prev", "end"}:
                if low == "end":
                    session.seek(0, SEEK_END)
                else:
                    session.seek(1 if low in {"n", "next"} else -1, SEEK_CUR)
                show_here()
                add_to_history(session.tell(), current_profile)
                continue

            if low == "limits":
                print_limits(om=OutputManager(), max_index=session.max_index)
                continue

            if low.split()[:1] == ["range"]:
                parts = user_input.split()
                if len(parts) != _RANGE_ARGS:
                    print("Usage: RANGE start stop")
                    continue
                _run_range(session, _parse_index_arg(parts[1]), _parse_index_arg(parts[2]), make_output_manager)
                continue

            parts = low.split()
            if parts and parts[0] in {"debug", "verify"}:
                rt = _rt_current()
                flag = parts[0]
                if len(parts) == 1 or parts[1] == "status":
                    state = "ON" if getattr(rt, flag) else "OFF"
                    print(f"{flag.capitalize()} is currently {state}.")
                elif parts[1] in {"on", "off"}:
                    setattr(rt, flag, parts[1] == "on")
                    print(f"{flag.capitalize()} {'enabled' if parts[1] == 'on' else 'disabled'} for this session.")
                else:
                    print(f"Usage: {flag.upper()} [on|off|status]")
                continue

            # index?
            n = parse_int_or_expr(user_input)
            if n is not None:
                om = make_output_manager(n)
                try:
                    _compute_and_print(session, n, om=om, show_details=show_details)
                    add_to_history(n, current_profile)
                finally:
                    om.close()
                continue

            # treat as profile switch
            if CONFIG.has_profile(user_input):
                APPLY(CONFIG.load_settings(user_input))
                CONFIG.write_current_profile(user_input)
                session.max_index = effective_max_index()
                session.seek(session.tell(), SEEK_SET)
                current_profile = user_input
                print(f"Applied profile: {current_profile} (max index {session.max_index})")
                continue

            print(f"{Fore.RED}Invalid input: {Style.RESET_ALL}'{user_input}'. Type H for help.")
        except (EOFError, KeyboardInterrupt):
            print()
            break
        except _USER_ERRORS as e:
            _print_user_error(str(e))
        except Exception as e:
            if _rt_current().debug:
                traceback.print_exc()
            else:
                _print_user_error(f"{e.__class__.__name__}: {e}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
