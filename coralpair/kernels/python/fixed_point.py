"""
Fixed-point integer kernel.

Every pricing and accounting formula in the pair engine routes through these
primitives so rounding is uniform across quoting and settlement:
- results paid *out of* the reserves round down (`mul_div`),
- amounts owed *to* the reserves round up (`mul_div_up`).

Width model (mirrors a ledger contract with u128 amounts):
- operands and results must fit in an unsigned 128-bit word,
- the intermediate product `a * b` is widened to 256 bits.
"""

from __future__ import annotations

import math

from ...errors import ArithmeticOverflow, DivisionByZero


U128_MAX = (1 << 128) - 1
U256_MAX = (1 << 256) - 1


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def _require_u128(name: str, value: int) -> None:
    _require_int(name, value)
    if value < 0 or value > U128_MAX:
        raise ArithmeticOverflow(f"{name} outside u128 range: {value}")


def _widened_product(a: int, b: int, denominator: int) -> int:
    _require_u128("a", a)
    _require_u128("b", b)
    _require_u128("denominator", denominator)
    if denominator == 0:
        raise DivisionByZero("denominator must be non-zero")
    product = a * b
    if product > U256_MAX:
        raise ArithmeticOverflow("intermediate product exceeds 256 bits")
    return product


def mul_div(a: int, b: int, denominator: int) -> int:
    """
    Compute `floor(a * b / denominator)`.

    Raises DivisionByZero for a zero denominator and ArithmeticOverflow when an
    operand, the widened product, or the result leaves its word size.
    """
    product = _widened_product(a, b, denominator)
    result = product // denominator
    if result > U128_MAX:
        raise ArithmeticOverflow(f"mul_div result exceeds u128: {result}")
    return result


def mul_div_up(a: int, b: int, denominator: int) -> int:
    """Compute `ceil(a * b / denominator)` under the same width rules as `mul_div`."""
    product = _widened_product(a, b, denominator)
    result = (product + denominator - 1) // denominator
    if result > U128_MAX:
        raise ArithmeticOverflow(f"mul_div_up result exceeds u128: {result}")
    return result


def ceil_div(numerator: int, denominator: int) -> int:
    _require_u128("numerator", numerator)
    _require_u128("denominator", denominator)
    if denominator == 0:
        raise DivisionByZero("denominator must be non-zero")
    return (numerator + denominator - 1) // denominator


def checked_add(a: int, b: int) -> int:
    _require_u128("a", a)
    _require_u128("b", b)
    total = a + b
    if total > U128_MAX:
        raise ArithmeticOverflow(f"sum exceeds u128: {total}")
    return total


def checked_mul(a: int, b: int) -> int:
    _require_u128("a", a)
    _require_u128("b", b)
    product = a * b
    if product > U128_MAX:
        raise ArithmeticOverflow(f"product exceeds u128: {product}")
    return product


def isqrt(value: int) -> int:
    """Integer square root (floor). Exact for arbitrarily large ints; no float sqrt."""
    _require_int("value", value)
    if value < 0:
        raise ValueError(f"isqrt of negative value: {value}")
    return math.isqrt(value)
