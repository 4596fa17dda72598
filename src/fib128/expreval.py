# src/fib128/expreval.py
"""
Reading an index typed by the user.

Accepted forms, tried in this order:

    literal      93   -7   1_000   0x5d   0b1011101   1 000   1.000
    expression   2**7+1   (185-1)//2   1 << 7   1e2   3e1

Expressions are parsed with ast and walked over a whitelist of integer
operators; names, calls, attributes and floats are refused. Indices are
small, so anything over 40 decimal digits is treated as a typo and
reported instead of evaluated.
"""

import ast
import operator as op
import re

from fib128.utility import UserInputError, dec_digits

_MAX_NODES = 64
_MAX_DIGITS = 40
_MAX_SHIFT = 256

# no-break, thin and narrow no-break spaces all count as group separators
_NBSP_CHARS = "\u00a0\u2009\u202f"
_GROUP_SEP = rf"[ ,._{_NBSP_CHARS}]"
_GROUPED_RE = re.compile(rf"[+-]?\d{{1,3}}(?:{_GROUP_SEP}\d{{3}})+")
_PLAIN_RE = re.compile(r"[+-]?\d[\d_]*")
_SCI_RE = re.compile(r"(?<![\w.])([+-]?)(\d+)[eE]([+-]?\d+)(?![\w.])")

_BINOPS = {
    ast.Add: op.add,
    ast.Sub: op.sub,
    ast.Mult: op.mul,
    ast.FloorDiv: op.floordiv,
    ast.Mod: op.mod,
    ast.LShift: op.lshift,
    ast.RShift: op.rshift,
    ast.BitAnd: op.and_,
    ast.BitXor: op.xor,
    ast.BitOr: op.or_,
}
_UNARYOPS = {
    ast.UAdd: op.pos,
    ast.USub: op.neg,
}


class _NotAnInteger(Exception):
    """The text is not an integer expression at all (it may be a profile name)."""


def _too_many_digits() -> UserInputError:
    return UserInputError(f"number has more than {_MAX_DIGITS} decimal digits.")


def _bounded(value: int) -> int:
    if dec_digits(value) > _MAX_DIGITS:
        raise _too_many_digits()
    return value


def _expand_scientific(expr: str) -> str:
    """1e3 -> 10**(3), 2e5 -> (2)*10**(5); a negative exponent is not an integer."""

    def repl(m: re.Match) -> str:
        sign, mantissa, exponent = m.group(1), m.group(2), int(m.group(3))
        if exponent < 0:
            raise _NotAnInteger("negative exponent in scientific notation")
        if exponent > _MAX_DIGITS:
            raise _too_many_digits()
        if int(mantissa) == 0:
            return "0"
        if sign + mantissa == "1":
            return f"10**({exponent})"
        return f"({sign}{mantissa})*10**({exponent})"

    return _SCI_RE.sub(repl, expr)


def _power(base: int, exponent: int) -> int:
    if exponent < 0:
        raise UserInputError("negative exponents are not allowed in integer expressions")
    # |base| >= 2 gives at least exponent*log10(2) digits; refuse before computing
    if abs(base) > 1 and 1 + (exponent * 30103) // 100000 > _MAX_DIGITS:
        raise _too_many_digits()
    return base ** exponent


def _evaluate(node: ast.AST) -> int:
    if isinstance(node, ast.Constant):
        if isinstance(node.value, int) and not isinstance(node.value, bool):
            return _bounded(node.value)
        raise _NotAnInteger(f"{type(node.value).__name__} literal")

    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARYOPS:
        return _UNARYOPS[type(node.op)](_evaluate(node.operand))

    if isinstance(node, ast.BinOp):
        kind = type(node.op)
        if kind is not ast.Pow and kind not in _BINOPS:
            raise _NotAnInteger(f"operator {kind.__name__}")
        left, right = _evaluate(node.left), _evaluate(node.right)
        if kind is ast.Pow:
            return _bounded(_power(left, right))
        if kind in (ast.FloorDiv, ast.Mod) and right == 0:
            raise UserInputError("division by zero in expression")
        if kind in (ast.LShift, ast.RShift) and not 0 <= right <= _MAX_SHIFT:
            raise UserInputError(f"shift count must be in [0, {_MAX_SHIFT}]")
        return _bounded(_BINOPS[kind](left, right))

    raise _NotAnInteger(type(node).__name__)


def _eval_int_expr(expr: str) -> int:
    try:
        tree = ast.parse(_expand_scientific(expr), mode="eval")
    except SyntaxError as e:
        raise _NotAnInteger("syntax") from e
    if sum(1 for _ in ast.walk(tree)) > _MAX_NODES:
        raise _NotAnInteger("expression too large")
    return _evaluate(tree.body)


def _parse_int_literal(text: str) -> int | None:
    """Plain, prefixed (0x/0b/0o) or digit-grouped integers; None for anything else."""
    s = (text or "").strip()
    for ch in _NBSP_CHARS:
        s = s.replace(ch, " ")
    if not s:
        return None

    if s.lower().startswith(("0x", "0b", "0o")):
        try:
            return int(s.replace("_", ""), 0)
        except ValueError:
            return None
    if _PLAIN_RE.fullmatch(s):
        return int(s.replace("_", ""))
    if _GROUPED_RE.fullmatch(s):
        return int(re.sub(_GROUP_SEP, "", s))
    return None


def parse_int_or_expr(s: str) -> int | None:
    """
    The integer value of s, or None when s is not an integer at all.
    Integers that are too large, and expressions that divide by zero or
    shift too far, raise UserInputError.
    """
    n = _parse_int_literal(s)
    if n is not None:
        return _bounded(n)
    try:
        return _eval_int_expr(s)
    except _NotAnInteger:
        return None
