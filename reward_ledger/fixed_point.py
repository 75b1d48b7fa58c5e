"""
Bounded integer arithmetic for the reward accumulator.

Amounts are unsigned 128-bit quantities. Every helper raises
ArithmeticOverflowError instead of producing a value outside
[0, MAX_AMOUNT], so callers never observe a wrapped or negative result.
"""

from .errors import ArithmeticOverflowError

SCALE = 10**18
MAX_AMOUNT = 2**128 - 1


def _bounded(value: int, op: str) -> int:
    if value < 0 or value > MAX_AMOUNT:
        raise ArithmeticOverflowError(f"{op} result {value} outside amount range")
    return value


def checked_add(a: int, b: int) -> int:
    return _bounded(a + b, "add")


def checked_sub(a: int, b: int) -> int:
    return _bounded(a - b, "sub")


def checked_mul(a: int, b: int) -> int:
    return _bounded(a * b, "mul")


def mul_div(a: int, b: int, denominator: int) -> int:
    """Floor of a * b / denominator, with the product range-checked."""
    if denominator == 0:
        raise ZeroDivisionError("mul_div by zero")
    return checked_mul(a, b) // denominator
