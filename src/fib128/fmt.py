# src/fib128/fmt.py
from __future__ import annotations

import re

from fib128.bign import ZERO, BigN, add, divide_small, multiply

# 39 decimal digits cover 2**128 - 1, plus one byte for the terminator
STRING_LEN = 40
_MAX_DIGITS = STRING_LEN - 1

_TEN = BigN(0, 10)
_DIGITS_RE = re.compile(r"[0-9][0-9_]*")

# Single source of truth for ANSI stripping
ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")


# --- decimal conversion -------------------------------------------------------

def bign_to_string(a: BigN) -> str:
    """Decimal digits of a, most significant first; "0" for zero."""
    if a.is_zero():
        return "0"

    digits: list[str] = []
    value = a
    while value:
        value, remainder = divide_small(value, 10)
        digits.append(chr(ord("0") + remainder))
        if len(digits) > _MAX_DIGITS:
            raise OverflowError(f"decimal form exceeds {_MAX_DIGITS} digits")

    digits.reverse()
    return "".join(digits)


def bign_to_buffer(a: BigN) -> bytes:
    """The decimal string as a NUL-padded buffer of exactly STRING_LEN bytes."""
    return bign_to_string(a).encode("ascii").ljust(STRING_LEN, b"\0")


def parse_bign(text: str) -> BigN:
    """
    Parse a non-negative decimal string (underscores allowed) into a BigN.
    Values above 2**128 - 1 raise OverflowError.
    """
    s = (text or "").strip()
    if not _DIGITS_RE.fullmatch(s):
        raise ValueError(f"not a decimal integer: {text!r}")

    value = ZERO
    for ch in s.replace("_", ""):
        value, overflow = multiply(value, _TEN)
        if not overflow:
            value, overflow = add(value, BigN(0, ord(ch) - ord("0")))
        if overflow:
            raise OverflowError(f"{s} does not fit in 128 bits")
    return value


# --- display helpers ----------------------------------------------------------

def format_words(a: BigN) -> str:
    """Both 64-bit words in hex: 0x<upper>_<lower>."""
    return f"0x{a.upper:016x}_{a.lower:016x}"


def abbr_digits(s: str, head: int = 10, tail: int = 10, threshold: int = 30, ellipsis: str = "…") -> str:
    """Abbreviate a long digit string as first<head>…last<tail>."""
    if len(s) <= threshold or head + tail >= len(s):
        return s
    return f"{s[:head]}{ellipsis}{s[-tail:]}"


def format_duration(seconds: float) -> str:
    """µs below 1 ms, ms below 1 s, else seconds with millis."""
    if seconds < 0.001:
        return f"{seconds * 1_000_000:.0f} µs"
    if seconds < 1:
        return f"{seconds * 1000:.2f} ms"
    return f"{seconds:.3f} s"


def strip_ansi(s: str | None) -> str:
    """Return s with ANSI escape sequences removed."""
    return "" if s is None else ANSI_RE.sub("", s)

