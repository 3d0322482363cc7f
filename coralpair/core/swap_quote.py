"""
Swap quoting.

Quotes are computed from an immutable pair snapshot and are advisory: a
concurrent mutation may move the reserves before settlement, which is why a
quote carries a slippage guard (`amount_out_min` / `amount_in_max`) and a
deadline rather than a promise of exact amounts.

Quote amounts are the same integers the ledger would realize against the
same snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ..errors import DeadlineExceeded, PairNotFound
from ..kernels.python.cpmm_swap import BPS_DENOM, get_amount_in, get_amount_out, input_fee
from ..kernels.python.fixed_point import mul_div, mul_div_up
from ..state.pairs import PairState, Side


class TradeType(Enum):
    EXACT_IN = "exact_in"
    EXACT_OUT = "exact_out"


@dataclass(frozen=True)
class SwapQuote:
    """
    Attributes:
        side_in: Leg the trader pays in
        trade_type: Which amount the trader fixed
        amount_in: Input (exact for EXACT_IN, required for EXACT_OUT)
        amount_out: Output (expected for EXACT_IN, exact for EXACT_OUT)
        amount_out_min: Settlement floor on the output (EXACT_IN)
        amount_in_max: Settlement ceiling on the input (EXACT_OUT)
        fee_bps: Fee the quote was priced with
        fee_paid: LP fee taken from `amount_in`, in input-token units
        price_impact_bps: Curve slippage in bps: shortfall of `amount_out` against
            the spot-price output after the fee. The LP fee itself is not
            included; it is reported separately in `fee_bps` / `fee_paid`.
        deadline: Last timestamp at which settlement may accept the quote
    """

    side_in: Side
    trade_type: TradeType
    amount_in: int
    amount_out: int
    amount_out_min: int
    amount_in_max: int
    fee_bps: int
    fee_paid: int
    price_impact_bps: int
    deadline: int


def _require_slippage_bps(slippage_bps: int) -> None:
    if not isinstance(slippage_bps, int) or isinstance(slippage_bps, bool):
        raise TypeError("slippage_bps must be an int")
    if not (0 <= slippage_bps <= BPS_DENOM):
        raise ValueError(f"slippage_bps must be in [0, {BPS_DENOM}]: {slippage_bps}")


def _require_live(pair: PairState) -> None:
    if pair.reserve0 == 0 or pair.reserve1 == 0:
        raise PairNotFound(f"pair {pair.pair_id} has no reserves")


def _deadline(now: int, ttl: int) -> int:
    if ttl < 0:
        raise ValueError(f"ttl must be non-negative: {ttl}")
    return now + ttl


def check_deadline(deadline: int, now: int) -> None:
    """Reject settlement of a quote after its deadline."""
    if now > deadline:
        raise DeadlineExceeded(f"deadline {deadline} passed (now={now})")


def ideal_amount_out(*, amount_in: int, reserve_in: int, reserve_out: int, fee_bps: int) -> int:
    """
    Output at the pre-trade spot price, after the fee.

    This is the zero-size-trade limit of the swap formula, so the difference
    to the realized output is pure curve slippage.
    """
    return mul_div(amount_in * (BPS_DENOM - fee_bps), reserve_out, reserve_in * BPS_DENOM)


def price_impact_bps(*, amount_in: int, amount_out: int, reserve_in: int, reserve_out: int, fee_bps: int) -> int:
    if reserve_in == 0 or reserve_out == 0:
        return 0
    ideal = ideal_amount_out(amount_in=amount_in, reserve_in=reserve_in, reserve_out=reserve_out, fee_bps=fee_bps)
    if ideal == 0:
        return 0
    return mul_div(ideal - amount_out, BPS_DENOM, ideal)


def quote_exact_in(
    pair: PairState,
    side_in: Side,
    amount_in: int,
    slippage_bps: int,
    *,
    now: int,
    ttl: int,
    fee_bps: int | None = None,
) -> SwapQuote:
    """
    Quote selling exactly `amount_in` of the `side_in` token.

        amount_out_min = floor(amount_out * (10_000 - slippage_bps) / 10_000)
    """
    _require_slippage_bps(slippage_bps)
    _require_live(pair)
    fee = pair.fee_state.current_fee_bps if fee_bps is None else fee_bps
    reserve_in, reserve_out = pair.reserves_for(side_in)

    amount_out = get_amount_out(amount_in=amount_in, reserve_in=reserve_in, reserve_out=reserve_out, fee_bps=fee)
    return SwapQuote(
        side_in=side_in,
        trade_type=TradeType.EXACT_IN,
        amount_in=amount_in,
        amount_out=amount_out,
        amount_out_min=mul_div(amount_out, BPS_DENOM - slippage_bps, BPS_DENOM),
        amount_in_max=amount_in,
        fee_bps=fee,
        fee_paid=input_fee(amount_in=amount_in, fee_bps=fee),
        price_impact_bps=price_impact_bps(
            amount_in=amount_in,
            amount_out=amount_out,
            reserve_in=reserve_in,
            reserve_out=reserve_out,
            fee_bps=fee,
        ),
        deadline=_deadline(now, ttl),
    )


def quote_exact_out(
    pair: PairState,
    side_in: Side,
    amount_out: int,
    slippage_bps: int,
    *,
    now: int,
    ttl: int,
    fee_bps: int | None = None,
) -> SwapQuote:
    """
    Quote buying exactly `amount_out` of the other token, paying in `side_in`.

        amount_in_max = ceil(amount_in * (10_000 + slippage_bps) / 10_000)
    """
    _require_slippage_bps(slippage_bps)
    _require_live(pair)
    fee = pair.fee_state.current_fee_bps if fee_bps is None else fee_bps
    reserve_in, reserve_out = pair.reserves_for(side_in)

    amount_in = get_amount_in(amount_out=amount_out, reserve_in=reserve_in, reserve_out=reserve_out, fee_bps=fee)
    return SwapQuote(
        side_in=side_in,
        trade_type=TradeType.EXACT_OUT,
        amount_in=amount_in,
        amount_out=amount_out,
        amount_out_min=amount_out,
        amount_in_max=mul_div_up(amount_in, BPS_DENOM + slippage_bps, BPS_DENOM),
        fee_bps=fee,
        fee_paid=input_fee(amount_in=amount_in, fee_bps=fee),
        price_impact_bps=price_impact_bps(
            amount_in=amount_in,
            amount_out=amount_out,
            reserve_in=reserve_in,
            reserve_out=reserve_out,
            fee_bps=fee,
        ),
        deadline=_deadline(now, ttl),
    )
