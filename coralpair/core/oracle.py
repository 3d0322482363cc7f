"""
TWAP price oracle kernel.

The pair keeps two cumulative price accumulators. On every reserve-mutating
call, *before* the new reserves are written, each accumulator grows by
`spot_price * elapsed_seconds` where the spot price is the pre-mutation
reserve ratio in UQ112.112 fixed point. A second mutation within the same
timestamp adds nothing.

Consumption pattern: a single cumulative read is not a price. Take two
samples `a` and `b` (e.g. via `observe`) and compute

    twap = (b.price_cumulative - a.price_cumulative) / (b.timestamp - a.timestamp)

with modular subtraction, which is what `twap0` / `twap1` do. The accumulators
wrap modulo 2**256, so differencing stays correct across an overflow.

This module is pure: the shell decides when to sample and how long to wait.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import InvalidTimestamp
from ..state.pairs import CUMULATIVE_MODULUS, PairState


Q112 = 1 << 112


@dataclass(frozen=True)
class OracleSample:
    """Cumulative prices observed at `timestamp`."""

    price0_cumulative: int
    price1_cumulative: int
    timestamp: int

    def __post_init__(self) -> None:
        for name, val in (
            ("price0_cumulative", self.price0_cumulative),
            ("price1_cumulative", self.price1_cumulative),
            ("timestamp", self.timestamp),
        ):
            if not isinstance(val, int) or isinstance(val, bool):
                raise TypeError(f"{name} must be an int")
            if val < 0:
                raise ValueError(f"{name} must be non-negative: {val}")


@dataclass(frozen=True)
class Accumulators:
    price0_cumulative_last: int
    price1_cumulative_last: int
    block_timestamp_last: int


def spot_prices_q112(reserve0: int, reserve1: int) -> tuple[int, int]:
    """(price of token0 in token1, price of token1 in token0), both UQ112.112, floor."""
    if reserve0 <= 0 or reserve1 <= 0:
        raise ValueError(f"spot price requires positive reserves: ({reserve0}, {reserve1})")
    return (reserve1 * Q112) // reserve0, (reserve0 * Q112) // reserve1


def accumulate(
    *,
    price0_cumulative_last: int,
    price1_cumulative_last: int,
    block_timestamp_last: int,
    reserve0: int,
    reserve1: int,
    timestamp: int,
) -> Accumulators:
    """
    Advance the accumulators to `timestamp` using the (pre-mutation) reserves.

    Raises InvalidTimestamp if `timestamp` is older than `block_timestamp_last`.
    """
    if not isinstance(timestamp, int) or isinstance(timestamp, bool):
        raise TypeError("timestamp must be an int")
    if timestamp < block_timestamp_last:
        raise InvalidTimestamp(f"timestamp {timestamp} < block_timestamp_last {block_timestamp_last}")

    elapsed = timestamp - block_timestamp_last
    if elapsed > 0 and reserve0 > 0 and reserve1 > 0:
        price0, price1 = spot_prices_q112(reserve0, reserve1)
        price0_cumulative_last = (price0_cumulative_last + price0 * elapsed) % CUMULATIVE_MODULUS
        price1_cumulative_last = (price1_cumulative_last + price1 * elapsed) % CUMULATIVE_MODULUS

    return Accumulators(
        price0_cumulative_last=price0_cumulative_last,
        price1_cumulative_last=price1_cumulative_last,
        block_timestamp_last=timestamp,
    )


def observe(pair: PairState, now: int) -> OracleSample:
    """
    Cumulative prices as of `now`, without mutating the pair.

    Equivalent to what the accumulators would read if a mutation happened at
    `now`, so samples can be taken between trades.
    """
    acc = accumulate(
        price0_cumulative_last=pair.price0_cumulative_last,
        price1_cumulative_last=pair.price1_cumulative_last,
        block_timestamp_last=pair.block_timestamp_last,
        reserve0=pair.reserve0,
        reserve1=pair.reserve1,
        timestamp=now,
    )
    return OracleSample(
        price0_cumulative=acc.price0_cumulative_last,
        price1_cumulative=acc.price1_cumulative_last,
        timestamp=now,
    )


def _elapsed(earlier: OracleSample, later: OracleSample) -> int:
    elapsed = later.timestamp - earlier.timestamp
    if elapsed <= 0:
        raise InvalidTimestamp(
            f"TWAP needs later.timestamp > earlier.timestamp: {later.timestamp} <= {earlier.timestamp}"
        )
    return elapsed


def twap0(earlier: OracleSample, later: OracleSample) -> int:
    """Average price of token0 (in token1), UQ112.112, over [earlier, later]."""
    elapsed = _elapsed(earlier, later)
    return ((later.price0_cumulative - earlier.price0_cumulative) % CUMULATIVE_MODULUS) // elapsed


def twap1(earlier: OracleSample, later: OracleSample) -> int:
    """Average price of token1 (in token0), UQ112.112, over [earlier, later]."""
    elapsed = _elapsed(earlier, later)
    return ((later.price1_cumulative - earlier.price1_cumulative) % CUMULATIVE_MODULUS) // elapsed


def consult(price_q112: int, amount_in: int) -> int:
    """Convert an amount through a UQ112.112 price (floor)."""
    if amount_in < 0:
        raise ValueError(f"amount_in must be non-negative: {amount_in}")
    return (price_q112 * amount_in) >> 112


def is_fresh(sample: OracleSample, current_timestamp: int, max_staleness_seconds: int) -> bool:
    """Return True if the sample timestamp is within the max staleness window."""
    if current_timestamp < 0:
        raise ValueError(f"current_timestamp must be non-negative: {current_timestamp}")
    if max_staleness_seconds <= 0:
        raise ValueError(f"max_staleness_seconds must be positive: {max_staleness_seconds}")
    if sample.timestamp > current_timestamp:
        return False
    return (current_timestamp - sample.timestamp) <= max_staleness_seconds
