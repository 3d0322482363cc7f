"""
Liquidity math kernel.

Pure functions with explicit rounding rules for LP share accounting:
- ratio-preserving deposit amounts (router-style binding side selection),
- share minting (geometric mean on bootstrap, proportional afterwards),
- share burning (floor, pro-rata).
All divisions floor, so depositors and withdrawers never receive more than
their proportional claim.
"""

from __future__ import annotations

from dataclasses import dataclass

from ...errors import InsufficientInitialLiquidity, InsufficientLiquidity
from .fixed_point import isqrt, mul_div


DEFAULT_MINIMUM_LIQUIDITY = 1000


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


@dataclass(frozen=True)
class OptimalLiquidityResult:
    amount0_used: int
    amount1_used: int
    amount0_refund: int
    amount1_refund: int


@dataclass(frozen=True)
class MintLiquidityResult:
    liquidity_minted: int
    liquidity_locked: int
    amount0_used: int
    amount1_used: int
    new_reserve0: int
    new_reserve1: int
    new_total_supply: int

    @property
    def liquidity_to_provider(self) -> int:
        return self.liquidity_minted - self.liquidity_locked


@dataclass(frozen=True)
class BurnLiquidityResult:
    amount0_out: int
    amount1_out: int


def quote_counterpart(*, amount_a: int, reserve_a: int, reserve_b: int) -> int:
    """Counterpart amount at the current pool ratio: floor(amount_a * reserve_b / reserve_a)."""
    for name, v in (("amount_a", amount_a), ("reserve_a", reserve_a), ("reserve_b", reserve_b)):
        _require_int(name, v)
    if amount_a <= 0:
        raise ValueError(f"amount_a must be positive: {amount_a}")
    if reserve_a <= 0 or reserve_b <= 0:
        raise InsufficientLiquidity("cannot quote a ratio against empty reserves")
    return mul_div(amount_a, reserve_b, reserve_a)


def optimal_liquidity(
    *,
    reserve0: int,
    reserve1: int,
    amount0_desired: int,
    amount1_desired: int,
) -> OptimalLiquidityResult:
    """
    Compute ratio-preserving used amounts and refunds.

    For an empty pool (reserve0 == 0 and reserve1 == 0), uses everything and refunds nothing.
    """
    for name, v in (
        ("reserve0", reserve0),
        ("reserve1", reserve1),
        ("amount0_desired", amount0_desired),
        ("amount1_desired", amount1_desired),
    ):
        _require_int(name, v)

    if reserve0 < 0 or reserve1 < 0:
        raise ValueError("reserves must be non-negative")
    if amount0_desired <= 0 or amount1_desired <= 0:
        raise ValueError("desired amounts must be positive")

    if reserve0 == 0 and reserve1 == 0:
        return OptimalLiquidityResult(
            amount0_used=amount0_desired,
            amount1_used=amount1_desired,
            amount0_refund=0,
            amount1_refund=0,
        )

    amount1_optimal = quote_counterpart(amount_a=amount0_desired, reserve_a=reserve0, reserve_b=reserve1)
    if amount1_optimal <= amount1_desired:
        amount0_used = amount0_desired
        amount1_used = amount1_optimal
    else:
        amount0_used = quote_counterpart(amount_a=amount1_desired, reserve_a=reserve1, reserve_b=reserve0)
        amount1_used = amount1_desired

    if amount0_used <= 0 or amount1_used <= 0:
        raise InsufficientLiquidity("computed deposit amounts must be positive")
    if amount0_used > amount0_desired or amount1_used > amount1_desired:
        raise AssertionError("used amounts exceed desired amounts")

    return OptimalLiquidityResult(
        amount0_used=amount0_used,
        amount1_used=amount1_used,
        amount0_refund=amount0_desired - amount0_used,
        amount1_refund=amount1_desired - amount1_used,
    )


def initial_liquidity(*, amount0: int, amount1: int, minimum_liquidity: int = DEFAULT_MINIMUM_LIQUIDITY) -> int:
    """
    Shares minted by the bootstrap deposit: floor(sqrt(amount0 * amount1)).

    Fails when the result does not exceed `minimum_liquidity` (the permanently
    locked share floor that deters share-dilution griefing).
    """
    _require_int("amount0", amount0)
    _require_int("amount1", amount1)
    _require_int("minimum_liquidity", minimum_liquidity)
    if amount0 <= 0 or amount1 <= 0:
        raise ValueError("initial amounts must be positive")
    if minimum_liquidity < 0:
        raise ValueError("minimum_liquidity must be non-negative")

    liquidity = isqrt(amount0 * amount1)
    if liquidity <= minimum_liquidity:
        raise InsufficientInitialLiquidity(
            f"sqrt(amount0*amount1) = {liquidity} <= minimum liquidity {minimum_liquidity}"
        )
    return liquidity


def proportional_liquidity(*, amount0: int, amount1: int, reserve0: int, reserve1: int, total_supply: int) -> int:
    """Shares for a deposit into a live pool: min of the two floor-proportional claims."""
    if reserve0 <= 0 or reserve1 <= 0:
        raise InsufficientLiquidity("cannot mint into an empty pool when total_supply > 0")
    liquidity0 = mul_div(amount0, total_supply, reserve0)
    liquidity1 = mul_div(amount1, total_supply, reserve1)
    return min(liquidity0, liquidity1)


def mint_liquidity(
    *,
    reserve0: int,
    reserve1: int,
    total_supply: int,
    amount0: int,
    amount1: int,
    minimum_liquidity: int = DEFAULT_MINIMUM_LIQUIDITY,
) -> MintLiquidityResult:
    """
    Mint LP shares for already ratio-matched amounts.

    `total_supply` includes any locked minimum liquidity.
    """
    for name, v in (
        ("reserve0", reserve0),
        ("reserve1", reserve1),
        ("total_supply", total_supply),
        ("amount0", amount0),
        ("amount1", amount1),
    ):
        _require_int(name, v)

    if reserve0 < 0 or reserve1 < 0:
        raise ValueError("reserves must be non-negative")
    if total_supply < 0:
        raise ValueError("total_supply must be non-negative")
    if amount0 <= 0 or amount1 <= 0:
        raise ValueError("deposit amounts must be positive")

    if total_supply == 0:
        if reserve0 != 0 or reserve1 != 0:
            raise ValueError("cannot mint initial liquidity when reserves are non-zero")
        minted = initial_liquidity(amount0=amount0, amount1=amount1, minimum_liquidity=minimum_liquidity)
        return MintLiquidityResult(
            liquidity_minted=minted,
            liquidity_locked=minimum_liquidity,
            amount0_used=amount0,
            amount1_used=amount1,
            new_reserve0=amount0,
            new_reserve1=amount1,
            new_total_supply=minted,
        )

    minted = proportional_liquidity(
        amount0=amount0,
        amount1=amount1,
        reserve0=reserve0,
        reserve1=reserve1,
        total_supply=total_supply,
    )
    if minted <= 0:
        raise InsufficientLiquidity("liquidity_minted is zero (deposit too small)")

    return MintLiquidityResult(
        liquidity_minted=minted,
        liquidity_locked=0,
        amount0_used=amount0,
        amount1_used=amount1,
        new_reserve0=reserve0 + amount0,
        new_reserve1=reserve1 + amount1,
        new_total_supply=total_supply + minted,
    )


def burn_liquidity(*, lp_amount: int, reserve0: int, reserve1: int, total_supply: int) -> BurnLiquidityResult:
    """
    Burn LP tokens for underlying assets (floor rounding).
    """
    for name, v in (
        ("lp_amount", lp_amount),
        ("reserve0", reserve0),
        ("reserve1", reserve1),
        ("total_supply", total_supply),
    ):
        _require_int(name, v)

    if lp_amount <= 0:
        raise ValueError("lp_amount must be positive")
    if reserve0 < 0 or reserve1 < 0:
        raise ValueError("reserves must be non-negative")
    if total_supply <= 0:
        raise InsufficientLiquidity("total_supply must be positive")
    if lp_amount > total_supply:
        raise InsufficientLiquidity("cannot burn more than total_supply")

    amount0_out = mul_div(lp_amount, reserve0, total_supply)
    amount1_out = mul_div(lp_amount, reserve1, total_supply)
    if lp_amount < total_supply and (amount0_out == 0 or amount1_out == 0):
        raise InsufficientLiquidity("burn too small: zero output on one side")
    return BurnLiquidityResult(amount0_out=amount0_out, amount1_out=amount1_out)
