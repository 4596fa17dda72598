# src/fib128/bign.py
"""
Fixed-width 128-bit unsigned integers built from two 64-bit words.

Every primitive works word by word and reports carry, borrow or overflow
as an explicit part of its return value instead of raising. Values are
immutable; each operation returns a fresh BigN.

    add(a, b)             -> (BigN, overflow)
    subtract(a, b)        -> (BigN, borrow)
    left_shift(a, n)      -> (BigN, overflow)     0 <= n < 64
    multiply64(x, y)      -> BigN                 exact
    multiply(a, b)        -> (BigN | None, overflow)
    divide_small(a, d)    -> (BigN, remainder)    1 <= d < 2**64
"""

from __future__ import annotations

from dataclasses import dataclass

WORD_BITS = 64
MASK64 = 0xFFFFFFFFFFFFFFFF
MASK32 = 0x00000000FFFFFFFF
BIGN_BITS = 2 * WORD_BITS
BIGN_MAX = (1 << BIGN_BITS) - 1

# Largest divisor for which the split-word identity keeps every partial
# product inside a single word.
_IDENTITY_DIVISOR_LIMIT = 1 << 32


class DivisionByZero(ZeroDivisionError):
    pass


def _check_word(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if value < 0 or value > MASK64:
        raise ValueError(f"{name} out of 64-bit range: {value}")


@dataclass(frozen=True, order=True)
class BigN:
    """Unsigned value ``upper * 2**64 + lower``. Field order gives numeric ordering."""

    upper: int = 0
    lower: int = 0

    def __post_init__(self) -> None:
        _check_word("upper", self.upper)
        _check_word("lower", self.lower)

    @classmethod
    def zero(cls) -> BigN:
        return cls(0, 0)

    @classmethod
    def from_int(cls, n: int) -> BigN:
        if not isinstance(n, int) or isinstance(n, bool):
            raise TypeError(f"expected int, got {type(n).__name__}")
        if n < 0 or n > BIGN_MAX:
            raise OverflowError(f"{n} does not fit in {BIGN_BITS} unsigned bits")
        return cls(n >> WORD_BITS, n & MASK64)

    def to_int(self) -> int:
        return (self.upper << WORD_BITS) | self.lower

    def is_zero(self) -> bool:
        return not self.upper and not self.lower

    def __bool__(self) -> bool:
        return not self.is_zero()


ZERO = BigN(0, 0)
ONE = BigN(0, 1)


# --- bit helpers --------------------------------------------------------------

def clz64(x: int) -> int:
    """Count leading zero bits of a 64-bit word (64 for zero)."""
    return WORD_BITS - (x & MASK64).bit_length()


def leading_zeros(a: BigN) -> int:
    """Count leading zero bits of the full 128-bit value (128 for zero)."""
    if a.upper:
        return clz64(a.upper)
    return WORD_BITS + clz64(a.lower)


# --- add / subtract -----------------------------------------------------------

def add(a: BigN, b: BigN) -> tuple[BigN, bool]:
    lower = (a.lower + b.lower) & MASK64
    carry = 1 if lower < a.lower else 0

    upper = (a.upper + b.upper) & MASK64
    overflow = upper < a.upper
    with_carry = (upper + carry) & MASK64
    overflow = overflow or with_carry < upper

    return BigN(with_carry, lower), overflow


def subtract(a: BigN, b: BigN) -> tuple[BigN, bool]:
    """
    a - b, wrapping modulo 2**128. The flag is True when a < b, i.e. the
    result is not a valid unsigned difference.
    """
    lower = (a.lower - b.lower) & MASK64
    borrow = 1 if lower > a.lower else 0

    upper = (a.upper - b.upper) & MASK64
    underflow = upper > a.upper
    with_borrow = (upper - borrow) & MASK64
    underflow = underflow or with_borrow > upper

    return BigN(with_borrow, lower), underflow


# --- shift --------------------------------------------------------------------

def left_shift(a: BigN, n: int) -> tuple[BigN, bool]:
    """
    Shift left by 0 <= n < 64 bits. Bits leaving ``lower`` enter the bottom
    of ``upper``; the flag reports any set bit pushed past bit 127.
    """
    if not isinstance(n, int) or not 0 <= n < WORD_BITS:
        raise ValueError(f"shift must be in [0, {WORD_BITS}), got {n!r}")

    carried = a.lower >> (WORD_BITS - n) if n else 0
    upper = ((a.upper << n) & MASK64) | carried
    lower = (a.lower << n) & MASK64

    return BigN(upper, lower), n > leading_zeros(a)


# --- multiplication -----------------------------------------------------------

def multiply64(x: int, y: int) -> BigN:
    """
    Exact 64x64 -> 128 product from four 32x32 partial products.

        x = u1*2**32 + l1,  y = u2*2**32 + l2
        x*y = u1*u2*2**64 + (u1*l2 + u2*l1)*2**32 + l1*l2
    """
    _check_word("x", x)
    _check_word("y", y)

    u1, l1 = x >> 32, x & MASK32
    u2, l2 = y >> 32, y & MASK32

    z2 = u1 * u2
    z0 = l1 * l2
    tmp = u1 * l2
    z1 = (u2 * l1 + tmp) & MASK64
    carry = 1 if z1 < tmp else 0

    # middle term sits at bit 32; its own carry lands at bit 96
    middle = BigN((z1 >> 32) + (carry << 32), (z1 & MASK32) << 32)
    product, _ = add(BigN(z2, z0), middle)  # an exact 128-bit product always fits
    return product


def multiply(a: BigN, b: BigN) -> tuple[BigN | None, bool]:
    """
    a * b restricted to 128 bits.

    Returns (product, overflow). With both upper words set the product is at
    least 2**128 and nothing is computed (product is None). Otherwise the
    returned product is a*b modulo 2**128 and overflow is True exactly when
    the mathematical product exceeds BIGN_MAX.
    """
    if a.upper and b.upper:
        return None, True

    base = multiply64(a.lower, b.lower)

    if a.upper:
        cross = multiply64(a.upper, b.lower)
    elif b.upper:
        cross = multiply64(b.upper, a.lower)
    else:
        return base, False

    # cross term is scaled by 2**64: its lower word lands in base.upper,
    # its upper word has no room at all
    upper = (base.upper + cross.lower) & MASK64
    overflow = bool(cross.upper) or upper < cross.lower
    return BigN(upper, base.lower), overflow


# --- division -----------------------------------------------------------------

def _split_word_quotient(borrow: int, lower: int, divisor: int) -> tuple[int, int]:
    """
    Divide borrow*2**64 + lower (borrow < divisor <= 2**32) using
    2**64 = divisor*span + spill.
    """
    span, spill = divmod(MASK64, divisor)
    spill += 1
    if spill == divisor:
        span += 1
        spill = 0

    q_low, r_low = divmod(lower, divisor)
    rest = borrow * spill + r_low          # <= divisor*(divisor-1) < 2**64
    quotient = borrow * span + q_low + rest // divisor
    return quotient, rest % divisor


def _long_division_quotient(borrow: int, lower: int, divisor: int) -> tuple[int, int]:
    """Restoring shift-subtract division of borrow*2**64 + lower (borrow < divisor)."""
    rem = borrow
    quotient = 0
    for i in range(WORD_BITS - 1, -1, -1):
        top = rem >> (WORD_BITS - 1)
        rem = ((rem << 1) & MASK64) | ((lower >> i) & 1)
        quotient <<= 1
        if top or rem >= divisor:
            rem = (rem - divisor) & MASK64
            quotient |= 1
    return quotient, rem


def divide_small(a: BigN, divisor: int) -> tuple[BigN, int]:
    """
    Divide a 128-bit value by a 64-bit divisor.

    Returns (quotient, remainder) with quotient*divisor + remainder == a and
    0 <= remainder < divisor. Raises DivisionByZero for divisor == 0.
    """
    if isinstance(divisor, int) and not isinstance(divisor, bool) and divisor == 0:
        raise DivisionByZero("divide_small: division by zero")
    _check_word("divisor", divisor)

    if not a.upper:
        q, r = divmod(a.lower, divisor)
        return BigN(0, q), r

    q_high, borrow = divmod(a.upper, divisor)
    if divisor <= _IDENTITY_DIVISOR_LIMIT:
        q_low, r = _split_word_quotient(borrow, a.lower, divisor)
    else:
        q_low, r = _long_division_quotient(borrow, a.lower, divisor)
    return BigN(q_high, q_low), r
