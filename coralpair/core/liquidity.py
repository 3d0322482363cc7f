"""
Liquidity operations (add/remove) and LP position views.

Deposits are matched to the pool ratio before minting; withdrawals pay out
the floor pro-rata claim. The share balance of a holder is external
bookkeeping: it is passed in, never stored here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from ..errors import InsufficientBalance, InsufficientLiquidity, SlippageExceeded
from ..kernels.python.fixed_point import mul_div
from ..kernels.python.lp_math import (
    DEFAULT_MINIMUM_LIQUIDITY,
    initial_liquidity,
    optimal_liquidity,
    proportional_liquidity,
    quote_counterpart,
)
from ..state.balances import Amount
from ..state.pairs import PairState, Side
from .ledger import WithdrawResult, apply_deposit, apply_withdraw


BPS_DENOM = 10_000


@dataclass(frozen=True)
class LiquidityQuote:
    side_a: Side
    amount_a: Amount
    amount_b: Amount
    estimated_lp_tokens: Amount
    share_of_pool_bps: int


@dataclass(frozen=True)
class LiquidityResult:
    amount0: Amount
    amount1: Amount
    lp_minted: Amount
    lp_locked: Amount
    lp_to_provider: Amount
    state: PairState


@dataclass(frozen=True)
class LiquidityPosition:
    balance: Amount
    total_supply: Amount
    share_of_pool_bps: int
    token0_amount: Amount
    token1_amount: Amount


def _oriented(side_a: Side, amount_a: Amount, amount_b: Amount) -> Tuple[Amount, Amount]:
    return (amount_a, amount_b) if side_a is Side.ZERO else (amount_b, amount_a)


def quote_add_liquidity(
    pair: PairState,
    amount_a_desired: Amount,
    side_a: Side = Side.ZERO,
    amount_b_desired: Optional[Amount] = None,
    *,
    minimum_liquidity: int = DEFAULT_MINIMUM_LIQUIDITY,
) -> LiquidityQuote:
    """
    Quote a deposit led by `amount_a_desired` of the `side_a` token.

    Uninitialized pair: the caller sets the price, so `amount_b_desired` is
    required and the estimate is floor(sqrt(a * b)) (InsufficientInitialLiquidity
    at or below `minimum_liquidity`).

    Live pair: amount_b = floor(a * reserve_b / reserve_a) and the estimate is
    the smaller floor-proportional claim. A deposit that would settle to zero on
    either count raises InsufficientLiquidity, as `add_liquidity` does.
    """
    if amount_a_desired <= 0:
        raise ValueError(f"amount_a_desired must be positive: {amount_a_desired}")

    if not pair.initialized:
        if amount_b_desired is None:
            raise ValueError("amount_b_desired is required for the first deposit")
        if amount_b_desired <= 0:
            raise ValueError(f"amount_b_desired must be positive: {amount_b_desired}")
        amount0, amount1 = _oriented(side_a, amount_a_desired, amount_b_desired)
        estimated = initial_liquidity(amount0=amount0, amount1=amount1, minimum_liquidity=minimum_liquidity)
        return LiquidityQuote(
            side_a=side_a,
            amount_a=amount_a_desired,
            amount_b=amount_b_desired,
            estimated_lp_tokens=estimated,
            share_of_pool_bps=BPS_DENOM,
        )

    reserve_a, reserve_b = pair.reserves_for(side_a)
    amount_b = quote_counterpart(amount_a=amount_a_desired, reserve_a=reserve_a, reserve_b=reserve_b)
    if amount_b == 0:
        raise InsufficientLiquidity(f"amount_a_desired ({amount_a_desired}) too small: counterpart rounds to zero")
    amount0, amount1 = _oriented(side_a, amount_a_desired, amount_b)
    estimated = proportional_liquidity(
        amount0=amount0,
        amount1=amount1,
        reserve0=pair.reserve0,
        reserve1=pair.reserve1,
        total_supply=pair.total_supply,
    )
    if estimated == 0:
        raise InsufficientLiquidity("deposit too small: mints zero shares")
    return LiquidityQuote(
        side_a=side_a,
        amount_a=amount_a_desired,
        amount_b=amount_b,
        estimated_lp_tokens=estimated,
        share_of_pool_bps=mul_div(estimated, BPS_DENOM, pair.total_supply + estimated),
    )


def add_liquidity(
    pair: PairState,
    amount0_desired: Amount,
    amount1_desired: Amount,
    amount0_min: Amount = 0,
    amount1_min: Amount = 0,
    *,
    timestamp: int,
    minimum_liquidity: int = DEFAULT_MINIMUM_LIQUIDITY,
    fee_signal_bps: int = 0,
) -> LiquidityResult:
    """
    Add liquidity at the pool ratio.

    The binding side is the one whose desired amount, scaled to the pool ratio,
    does not exceed the other's desired amount. Raises SlippageExceeded when a
    used amount falls below its minimum.
    """
    opt = optimal_liquidity(
        reserve0=pair.reserve0,
        reserve1=pair.reserve1,
        amount0_desired=amount0_desired,
        amount1_desired=amount1_desired,
    )
    if opt.amount0_used < amount0_min:
        raise SlippageExceeded(f"amount0_used ({opt.amount0_used}) < amount0_min ({amount0_min})")
    if opt.amount1_used < amount1_min:
        raise SlippageExceeded(f"amount1_used ({opt.amount1_used}) < amount1_min ({amount1_min})")

    res = apply_deposit(
        pair,
        opt.amount0_used,
        opt.amount1_used,
        timestamp=timestamp,
        minimum_liquidity=minimum_liquidity,
        fee_signal_bps=fee_signal_bps,
    )
    return LiquidityResult(
        amount0=opt.amount0_used,
        amount1=opt.amount1_used,
        lp_minted=res.mint.liquidity_minted,
        lp_locked=res.mint.liquidity_locked,
        lp_to_provider=res.mint.liquidity_to_provider,
        state=res.state,
    )


def remove_liquidity(
    pair: PairState,
    lp_amount: Amount,
    amount0_min: Amount = 0,
    amount1_min: Amount = 0,
    *,
    holder_balance: Amount,
    timestamp: int,
    fee_signal_bps: int = 0,
) -> WithdrawResult:
    """
    Burn `lp_amount` shares held by a holder whose recorded balance is `holder_balance`.

        amount_x = floor(lp_amount * reserve_x / total_supply)
    """
    if lp_amount > holder_balance:
        raise InsufficientBalance(f"lp_amount ({lp_amount}) > balance ({holder_balance})")

    res = apply_withdraw(pair, lp_amount, timestamp=timestamp, fee_signal_bps=fee_signal_bps)
    if res.amount0 < amount0_min:
        raise SlippageExceeded(f"amount0_out ({res.amount0}) < amount0_min ({amount0_min})")
    if res.amount1 < amount1_min:
        raise SlippageExceeded(f"amount1_out ({res.amount1}) < amount1_min ({amount1_min})")
    return res


def position(pair: PairState, balance: Amount) -> LiquidityPosition:
    """Holder's claim on the reserves for an LP `balance` (floor on every field)."""
    if balance < 0:
        raise ValueError(f"balance must be non-negative: {balance}")
    if balance > pair.total_supply:
        raise InsufficientBalance(f"balance ({balance}) > total_supply ({pair.total_supply})")
    if pair.total_supply == 0:
        return LiquidityPosition(
            balance=0,
            total_supply=0,
            share_of_pool_bps=0,
            token0_amount=0,
            token1_amount=0,
        )
    return LiquidityPosition(
        balance=balance,
        total_supply=pair.total_supply,
        share_of_pool_bps=mul_div(balance, BPS_DENOM, pair.total_supply),
        token0_amount=mul_div(balance, pair.reserve0, pair.total_supply),
        token1_amount=mul_div(balance, pair.reserve1, pair.total_supply),
    )
