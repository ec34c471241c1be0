"""Expression helpers shared by comparison and range-style gates."""

from typing import Sequence

from .expressions import Constant, Expression, ExpressionLike, as_expression


def range_check(word: ExpressionLike, n: int) -> Expression:
    """Polynomial vanishing iff 0 <= word < n: word * (1 - word) * ... * (n-1 - word)."""
    word = as_expression(word)
    acc = word
    for i in range(1, n):
        acc = acc * (Constant(i) - word)
    return acc


def bool_check(value: ExpressionLike) -> Expression:
    """Polynomial vanishing iff value is 0 or 1."""
    return range_check(value, 2)


def expr_from_bytes(byte_exprs: Sequence[ExpressionLike]) -> Expression:
    """Recompose little-endian byte expressions: sum(b_i * 256^i)."""
    value = Constant(0)
    multiplier = 1
    for byte in byte_exprs:
        value = value + as_expression(byte) * multiplier
        multiplier *= 256
    return value
