# src/fib128/verify.py
from __future__ import annotations

from dataclasses import dataclass

import gmpy2

from fib128.engine import check_index, fib_doubling


@dataclass(frozen=True)
class VerifyResult:
    index: int
    value: int
    reference: int

    @property
    def ok(self) -> bool:
        return self.value == self.reference


def reference_fib(k: int) -> int:
    """F(k) from GMP, independent of the BigN arithmetic."""
    check_index(k)
    return int(gmpy2.fib(k))


def verify_index(k: int) -> VerifyResult:
    return VerifyResult(index=k, value=fib_doubling(k).to_int(), reference=reference_fib(k))


def verify_range(start: int, stop: int) -> list[VerifyResult]:
    """Check every index in [start, stop); returns only the mismatches."""
    return [r for r in (verify_index(k) for k in range(start, stop)) if not r.ok]
