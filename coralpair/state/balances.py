"""
Scalar type aliases and the presentation boundary for atomic amounts.

The core only ever sees `Amount` integers. Conversion from/to human decimal
strings happens here and nowhere in a decision path; it uses `Decimal` text
parsing, never binary floats.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Union


# Type aliases
TokenId = str  # opaque asset identifier (e.g. a contract address)
PairId = str  # 0x-prefixed sha256 hex
Holder = str  # LP share holder identifier
Amount = int  # Non-negative integer in atomic units (arbitrary precision)

DEFAULT_DECIMALS = 7


def to_atomic(value: Union[str, int, Decimal], decimals: int = DEFAULT_DECIMALS) -> Amount:
    """
    Convert a human amount ("10", "0.5", Decimal("1.25")) to atomic units.

    Rejects floats and values with more fractional digits than `decimals`.
    """
    if isinstance(value, float):
        raise TypeError("floats are not accepted; pass a str or Decimal")
    if isinstance(value, bool):
        raise TypeError("value must be a str, int or Decimal")
    if not isinstance(decimals, int) or isinstance(decimals, bool) or decimals < 0:
        raise ValueError(f"decimals must be a non-negative int: {decimals}")
    try:
        d = Decimal(value) if not isinstance(value, Decimal) else value
    except InvalidOperation as exc:
        raise ValueError(f"invalid amount: {value!r}") from exc
    if not d.is_finite():
        raise ValueError(f"amount must be finite: {value!r}")
    if d < 0:
        raise ValueError(f"amount must be non-negative: {value!r}")
    scaled = d.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise ValueError(f"amount {value!r} has more than {decimals} fractional digits")
    return int(scaled)


def from_atomic(amount: Amount, decimals: int = DEFAULT_DECIMALS) -> str:
    """Render atomic units as a plain decimal string, e.g. 100000000 -> "10.0000000"."""
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise TypeError("amount must be an int")
    if amount < 0:
        raise ValueError(f"amount must be non-negative: {amount}")
    if not isinstance(decimals, int) or isinstance(decimals, bool) or decimals < 0:
        raise ValueError(f"decimals must be a non-negative int: {decimals}")
    if decimals == 0:
        return str(amount)
    whole, frac = divmod(amount, 10**decimals)
    return f"{whole}.{frac:0{decimals}d}"
