"""
Reserve ledger: the atomic state transitions of one pair.

Every mutation (swap, deposit, withdraw, flash loan) goes through
`_transition`, which in a single step
  1. advances the TWAP accumulators using the *pre-mutation* reserves,
  2. writes the new reserves / total supply,
  3. advances the dynamic fee with the externally supplied signal.
The result is a new immutable `PairState`. Any failure raises before a new
state exists, so a rejected mutation is never partially observable; the
caller simply keeps the old state.

Invariant: outside withdrawals, reserve0 * reserve1 never decreases across a
transition (swap and flash fees grow it).
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from ..errors import (
    InsufficientInputAmount,
    InsufficientLiquidity,
    SlippageExceeded,
)
from ..kernels.python.cpmm_swap import input_fee, swap_exact_in, swap_exact_out
from ..kernels.python.lp_math import (
    DEFAULT_MINIMUM_LIQUIDITY,
    BurnLiquidityResult,
    MintLiquidityResult,
    burn_liquidity,
    mint_liquidity,
)
from ..state.pairs import PairState, Side
from .dynamic_fee import update_fee
from .flash_loan import flash_fee, require_unlocked
from .oracle import accumulate


@dataclass(frozen=True)
class SwapResult:
    side_in: Side
    amount_in: int
    amount_out: int
    fee_bps: int
    fee_paid: int
    state: PairState


@dataclass(frozen=True)
class DepositResult:
    mint: MintLiquidityResult
    state: PairState


@dataclass(frozen=True)
class WithdrawResult:
    amount0: int
    amount1: int
    lp_burned: int
    state: PairState


@dataclass(frozen=True)
class FlashLoanResult:
    amount0_borrowed: int
    amount1_borrowed: int
    fee0: int
    fee1: int
    state: PairState


def _transition(
    pair: PairState,
    *,
    timestamp: int,
    reserve0: int,
    reserve1: int,
    total_supply: int,
    fee_signal_bps: int,
) -> PairState:
    acc = accumulate(
        price0_cumulative_last=pair.price0_cumulative_last,
        price1_cumulative_last=pair.price1_cumulative_last,
        block_timestamp_last=pair.block_timestamp_last,
        reserve0=pair.reserve0,
        reserve1=pair.reserve1,
        timestamp=timestamp,
    )
    fee_state = update_fee(pair.fee_state, fee_signal_bps)
    return replace(
        pair,
        reserve0=reserve0,
        reserve1=reserve1,
        total_supply=total_supply,
        price0_cumulative_last=acc.price0_cumulative_last,
        price1_cumulative_last=acc.price1_cumulative_last,
        block_timestamp_last=acc.block_timestamp_last,
        fee_state=fee_state,
    )


def _oriented(side_in: Side, new_reserve_in: int, new_reserve_out: int) -> tuple[int, int]:
    if side_in is Side.ZERO:
        return new_reserve_in, new_reserve_out
    return new_reserve_out, new_reserve_in


def apply_swap(
    pair: PairState,
    amount_in: int,
    side_in: Side,
    *,
    timestamp: int,
    fee_bps: int | None = None,
    amount_out_min: int = 0,
    fee_signal_bps: int = 0,
) -> SwapResult:
    """
    Exact-in swap of `amount_in` of the `side_in` token.

    Uses the pair's current dynamic fee unless `fee_bps` is given. Raises
    InsufficientInputAmount, InsufficientLiquidity, or SlippageExceeded when
    the output is below `amount_out_min`.
    """
    if amount_in == 0:
        raise InsufficientInputAmount("amount_in must be positive")
    fee = pair.fee_state.current_fee_bps if fee_bps is None else fee_bps
    reserve_in, reserve_out = pair.reserves_for(side_in)
    if reserve_out == 0:
        raise InsufficientLiquidity("pair has no output reserve")

    res = swap_exact_in(reserve_in=reserve_in, reserve_out=reserve_out, amount_in=amount_in, fee_bps=fee)
    if res.amount_out < amount_out_min:
        raise SlippageExceeded(f"amount_out ({res.amount_out}) < amount_out_min ({amount_out_min})")

    reserve0, reserve1 = _oriented(side_in, res.new_reserve_in, res.new_reserve_out)
    state = _transition(
        pair,
        timestamp=timestamp,
        reserve0=reserve0,
        reserve1=reserve1,
        total_supply=pair.total_supply,
        fee_signal_bps=fee_signal_bps,
    )
    return SwapResult(
        side_in=side_in,
        amount_in=amount_in,
        amount_out=res.amount_out,
        fee_bps=fee,
        fee_paid=input_fee(amount_in=amount_in, fee_bps=fee),
        state=state,
    )


def apply_swap_exact_out(
    pair: PairState,
    amount_out: int,
    side_in: Side,
    *,
    timestamp: int,
    fee_bps: int | None = None,
    amount_in_max: int | None = None,
    fee_signal_bps: int = 0,
) -> SwapResult:
    """
    Exact-out swap: receive exactly `amount_out` of the other token, paying in `side_in`.

    Raises SlippageExceeded when the required input exceeds `amount_in_max`.
    """
    fee = pair.fee_state.current_fee_bps if fee_bps is None else fee_bps
    reserve_in, reserve_out = pair.reserves_for(side_in)
    if reserve_out == 0:
        raise InsufficientLiquidity("pair has no output reserve")

    res = swap_exact_out(reserve_in=reserve_in, reserve_out=reserve_out, amount_out=amount_out, fee_bps=fee)
    if amount_in_max is not None and res.amount_in > amount_in_max:
        raise SlippageExceeded(f"amount_in ({res.amount_in}) > amount_in_max ({amount_in_max})")

    reserve0, reserve1 = _oriented(side_in, res.new_reserve_in, res.new_reserve_out)
    state = _transition(
        pair,
        timestamp=timestamp,
        reserve0=reserve0,
        reserve1=reserve1,
        total_supply=pair.total_supply,
        fee_signal_bps=fee_signal_bps,
    )
    return SwapResult(
        side_in=side_in,
        amount_in=res.amount_in,
        amount_out=amount_out,
        fee_bps=fee,
        fee_paid=input_fee(amount_in=res.amount_in, fee_bps=fee),
        state=state,
    )


def apply_deposit(
    pair: PairState,
    amount0: int,
    amount1: int,
    *,
    timestamp: int,
    minimum_liquidity: int = DEFAULT_MINIMUM_LIQUIDITY,
    fee_signal_bps: int = 0,
) -> DepositResult:
    """
    Deposit already ratio-matched amounts and mint LP supply.

    The first deposit bootstraps both reserves; `minimum_liquidity` shares of
    its mint stay locked in the supply forever.
    """
    mint = mint_liquidity(
        reserve0=pair.reserve0,
        reserve1=pair.reserve1,
        total_supply=pair.total_supply,
        amount0=amount0,
        amount1=amount1,
        minimum_liquidity=minimum_liquidity,
    )
    state = _transition(
        pair,
        timestamp=timestamp,
        reserve0=mint.new_reserve0,
        reserve1=mint.new_reserve1,
        total_supply=mint.new_total_supply,
        fee_signal_bps=fee_signal_bps,
    )
    return DepositResult(mint=mint, state=state)


def apply_withdraw(
    pair: PairState,
    lp_amount: int,
    *,
    timestamp: int,
    fee_signal_bps: int = 0,
) -> WithdrawResult:
    """Burn `lp_amount` shares for their floor pro-rata claim on both reserves."""
    burn: BurnLiquidityResult = burn_liquidity(
        lp_amount=lp_amount,
        reserve0=pair.reserve0,
        reserve1=pair.reserve1,
        total_supply=pair.total_supply,
    )
    state = _transition(
        pair,
        timestamp=timestamp,
        reserve0=pair.reserve0 - burn.amount0_out,
        reserve1=pair.reserve1 - burn.amount1_out,
        total_supply=pair.total_supply - lp_amount,
        fee_signal_bps=fee_signal_bps,
    )
    return WithdrawResult(amount0=burn.amount0_out, amount1=burn.amount1_out, lp_burned=lp_amount, state=state)


def check_flash_borrow(pair: PairState, *, amount0_out: int, amount1_out: int) -> tuple[int, int]:
    """
    Validate a borrow against the pair before any funds move.

    Returns the flash fees owed on each side. Raises FlashLoansDisabled for a
    locked pair and InsufficientLiquidity when a side would borrow its whole
    reserve.
    """
    config = pair.flash_loan_config
    require_unlocked(config)
    for name, v in (("amount0_out", amount0_out), ("amount1_out", amount1_out)):
        if not isinstance(v, int) or isinstance(v, bool):
            raise TypeError(f"{name} must be an int")
        if v < 0:
            raise ValueError(f"{name} must be non-negative: {v}")
    if amount0_out == 0 and amount1_out == 0:
        raise InsufficientInputAmount("flash loan must borrow a positive amount")
    if amount0_out > 0 and amount0_out >= pair.reserve0:
        raise InsufficientLiquidity(f"amount0_out ({amount0_out}) >= reserve0 ({pair.reserve0})")
    if amount1_out > 0 and amount1_out >= pair.reserve1:
        raise InsufficientLiquidity(f"amount1_out ({amount1_out}) >= reserve1 ({pair.reserve1})")
    return flash_fee(config, amount0_out), flash_fee(config, amount1_out)


def apply_flash_loan(
    pair: PairState,
    *,
    amount0_out: int,
    amount1_out: int,
    amount0_repaid: int,
    amount1_repaid: int,
    timestamp: int,
    fee_signal_bps: int = 0,
) -> FlashLoanResult:
    """
    Settle a flash borrow and its repayment as one transition.

    Each borrowed side must come back with at least `borrowed + flash_fee`.
    Raises FlashLoansDisabled when the pair's flash config is locked.
    """
    fee0, fee1 = check_flash_borrow(pair, amount0_out=amount0_out, amount1_out=amount1_out)
    for name, v in (("amount0_repaid", amount0_repaid), ("amount1_repaid", amount1_repaid)):
        if not isinstance(v, int) or isinstance(v, bool):
            raise TypeError(f"{name} must be an int")
        if v < 0:
            raise ValueError(f"{name} must be non-negative: {v}")
    if amount0_repaid < amount0_out + fee0:
        raise InsufficientInputAmount(f"token0 repayment {amount0_repaid} < required {amount0_out + fee0}")
    if amount1_repaid < amount1_out + fee1:
        raise InsufficientInputAmount(f"token1 repayment {amount1_repaid} < required {amount1_out + fee1}")

    new_reserve0 = pair.reserve0 - amount0_out + amount0_repaid
    new_reserve1 = pair.reserve1 - amount1_out + amount1_repaid
    if new_reserve0 * new_reserve1 < pair.get_constant_product():
        raise AssertionError("flash loan settlement decreased k")

    state = _transition(
        pair,
        timestamp=timestamp,
        reserve0=new_reserve0,
        reserve1=new_reserve1,
        total_supply=pair.total_supply,
        fee_signal_bps=fee_signal_bps,
    )
    return FlashLoanResult(
        amount0_borrowed=amount0_out,
        amount1_borrowed=amount1_out,
        fee0=fee0,
        fee1=fee1,
        state=state,
    )
