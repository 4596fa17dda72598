# src/fib128/engine.py
"""
Fast-doubling Fibonacci on 128-bit BigN values.

    F(2j)   = F(j) * (2*F(j+1) - F(j))
    F(2j+1) = F(j)**2 + F(j+1)**2

The bits of k are consumed from the most significant set bit down to bit 0
while a rolling pair (F(j), F(j+1)) tracks the prefix j of k read so far.
After the last bit j == k. Every carry, borrow and overflow flag raised by
the BigN primitives is checked; the first one aborts the computation.

Because the pair always carries F(j+1), computing F(k) needs F(k+1) to fit
in 128 bits as well.
"""

from __future__ import annotations

from collections.abc import Iterator
from functools import lru_cache

from fib128.bign import ONE, ZERO, BigN, add, left_shift, multiply, subtract
from fib128.fmt import bign_to_string

# Nominal ceiling for positioned reads when no profile sets LIMITS.MAX_INDEX
MAX_INDEX_DEFAULT = 100


class InvalidIndex(ValueError):
    pass


class ArithmeticOverflow(OverflowError):
    def __init__(self, k: int, step: str, j: int):
        super().__init__(f"F({k}) is out of 128-bit range: {step} overflowed at j={j}")
        self.k = k
        self.step = step
        self.j = j


def check_index(k: int, max_index: int | None = None) -> int:
    """Validate an index before any arithmetic runs; returns k unchanged."""
    if not isinstance(k, int) or isinstance(k, bool):
        raise TypeError(f"index must be an int, got {type(k).__name__}")
    if k < 0:
        raise InvalidIndex(f"index must be non-negative, got {k}")
    if max_index is not None and k > max_index:
        raise InvalidIndex(f"index {k} is above the ceiling {max_index}")
    return k


def fib_doubling(k: int) -> BigN:
    """Return F(k) as a BigN. Raises InvalidIndex or ArithmeticOverflow."""
    check_index(k)
    if k == 0:
        return ZERO

    def _ok(result_flag: tuple[BigN | None, bool], step: str) -> BigN:
        # every step of one iteration reports the j it started from
        value, flag = result_flag
        if flag or value is None:
            raise ArithmeticOverflow(k, step, j)
        return value

    f_j, f_j1 = ZERO, ONE  # (F(j), F(j+1))
    j = 0
    for bit in range(k.bit_length() - 1, -1, -1):
        # F(2j)
        twice = _ok(left_shift(f_j1, 1), "2*F(j+1)")
        diff = _ok(subtract(twice, f_j), "2*F(j+1) - F(j)")
        f_2j = _ok(multiply(diff, f_j), "F(2j)")

        # F(2j+1)
        sq_lo = _ok(multiply(f_j, f_j), "F(j)^2")
        sq_hi = _ok(multiply(f_j1, f_j1), "F(j+1)^2")
        f_2j1 = _ok(add(sq_lo, sq_hi), "F(2j+1)")

        if (k >> bit) & 1:
            f_2j2 = _ok(add(f_2j, f_2j1), "F(2j+2)")
            f_j, f_j1 = f_2j1, f_2j2
            j = 2 * j + 1
        else:
            f_j, f_j1 = f_2j, f_2j1
            j = 2 * j

    return f_j


def fib_string(k: int, max_index: int | None = None) -> str:
    """Decimal F(k), rejecting k above max_index when one is given."""
    check_index(k, max_index)
    return bign_to_string(fib_doubling(k))


def fib_range(start: int, stop: int) -> Iterator[tuple[int, BigN]]:
    """Yield (k, F(k)) for start <= k < stop."""
    check_index(start)
    for k in range(start, stop):
        yield k, fib_doubling(k)


@lru_cache(maxsize=1)
def max_computable_index() -> int:
    """Largest k for which fib_doubling(k) succeeds."""
    k = 0
    while True:
        try:
            fib_doubling(k + 1)
        except ArithmeticOverflow:
            return k
        k += 1
