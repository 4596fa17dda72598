from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _pkg_version

# Version
try:
    __version__ = _pkg_version("fib128")
except PackageNotFoundError:
    __version__ = "0+unknown"

# Public API re-exports
from .bign import BigN, DivisionByZero, add, divide_small, left_shift, multiply, multiply64, subtract
from .engine import ArithmeticOverflow, InvalidIndex, fib_doubling, fib_string, max_computable_index
from .fmt import STRING_LEN, bign_to_string, parse_bign
from .runtime import APPLY, CFG
from .session import DeviceBusy, FibSession

__all__ = [
    "APPLY",
    "CFG",
    "STRING_LEN",
    "ArithmeticOverflow",
    "BigN",
    "DeviceBusy",
    "DivisionByZero",
    "FibSession",
    "InvalidIndex",
    "__version__",
    "add",
    "bign_to_string",
    "divide_small",
    "fib_doubling",
    "fib_string",
    "left_shift",
    "max_computable_index",
    "multiply",
    "multiply64",
    "parse_bign",
    "subtract",
]
