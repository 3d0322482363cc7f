"""
CPMM swap kernel.

Constant-product pricing with the fee deducted from the input leg
(Uniswap-v2 style, fee expressed in basis points):

    amount_in_with_fee = amount_in * (10_000 - fee_bps)
    amount_out = floor(amount_in_with_fee * reserve_out
                       / (reserve_in * 10_000 + amount_in_with_fee))

The whole gross input stays in the pair, so `k` strictly grows with fee revenue.
Exact-out rounds the required input up; both directions keep truncation dust
in the reserves.
"""

from __future__ import annotations

from dataclasses import dataclass

from ...errors import InsufficientInputAmount, InsufficientLiquidity
from .fixed_point import checked_add, checked_mul, mul_div, mul_div_up


BPS_DENOM = 10_000


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def _require_fee_bps(fee_bps: int) -> None:
    _require_int("fee_bps", fee_bps)
    # 100% fee would make every output zero.
    if not (0 <= fee_bps < BPS_DENOM):
        raise ValueError(f"fee_bps must be in [0, {BPS_DENOM}): {fee_bps}")


def input_fee(*, amount_in: int, fee_bps: int) -> int:
    """
    Fee taken from a gross input, as a token amount.

        fee = amount_in - floor(amount_in * (10_000 - fee_bps) / 10_000)

    The truncation goes to the fee, so the fee is never under-reported.
    """
    _require_int("amount_in", amount_in)
    _require_fee_bps(fee_bps)
    if amount_in < 0:
        raise ValueError(f"amount_in must be non-negative: {amount_in}")
    return amount_in - mul_div(amount_in, BPS_DENOM - fee_bps, BPS_DENOM)


@dataclass(frozen=True)
class SwapExactInResult:
    amount_in: int
    amount_out: int
    fee_bps: int
    new_reserve_in: int
    new_reserve_out: int
    k_before: int
    k_after: int


@dataclass(frozen=True)
class SwapExactOutResult:
    amount_in: int
    amount_out: int
    fee_bps: int
    new_reserve_in: int
    new_reserve_out: int
    k_before: int
    k_after: int


def get_amount_out(*, amount_in: int, reserve_in: int, reserve_out: int, fee_bps: int) -> int:
    """Output for an exact input (floor). Pure quote, no post-state."""
    for name, v in (("amount_in", amount_in), ("reserve_in", reserve_in), ("reserve_out", reserve_out)):
        _require_int(name, v)
    _require_fee_bps(fee_bps)
    if amount_in <= 0:
        raise InsufficientInputAmount(f"amount_in must be positive: {amount_in}")
    if reserve_in < 0 or reserve_out < 0:
        raise ValueError(f"reserves must be non-negative: ({reserve_in}, {reserve_out})")
    if reserve_in == 0 or reserve_out == 0:
        raise InsufficientLiquidity("cannot swap against an empty reserve")

    amount_in_with_fee = checked_mul(amount_in, BPS_DENOM - fee_bps)
    denominator = checked_add(checked_mul(reserve_in, BPS_DENOM), amount_in_with_fee)
    amount_out = mul_div(amount_in_with_fee, reserve_out, denominator)
    if amount_out == 0:
        raise InsufficientLiquidity("amount_out is zero (trade too small)")
    return amount_out


def get_amount_in(*, amount_out: int, reserve_in: int, reserve_out: int, fee_bps: int) -> int:
    """Minimal input that yields at least `amount_out` (ceil)."""
    for name, v in (("amount_out", amount_out), ("reserve_in", reserve_in), ("reserve_out", reserve_out)):
        _require_int(name, v)
    _require_fee_bps(fee_bps)
    if amount_out <= 0:
        raise ValueError(f"amount_out must be positive: {amount_out}")
    if reserve_in < 0 or reserve_out < 0:
        raise ValueError(f"reserves must be non-negative: ({reserve_in}, {reserve_out})")
    if reserve_in == 0 or reserve_out == 0:
        raise InsufficientLiquidity("cannot swap against an empty reserve")
    if amount_out >= reserve_out:
        raise InsufficientLiquidity(
            f"cannot drain full reserve: amount_out ({amount_out}) >= reserve_out ({reserve_out})"
        )

    numerator = checked_mul(reserve_in, amount_out)
    denominator = checked_mul(reserve_out - amount_out, BPS_DENOM - fee_bps)
    return mul_div_up(numerator, BPS_DENOM, denominator)


def swap_exact_in(*, reserve_in: int, reserve_out: int, amount_in: int, fee_bps: int) -> SwapExactInResult:
    """
    Exact-in swap quote + post-state.

    Raises InsufficientInputAmount / InsufficientLiquidity per the pair error
    taxonomy; asserts the constant product does not decrease.
    """
    amount_out = get_amount_out(
        amount_in=amount_in,
        reserve_in=reserve_in,
        reserve_out=reserve_out,
        fee_bps=fee_bps,
    )

    k_before = reserve_in * reserve_out
    new_reserve_in = checked_add(reserve_in, amount_in)
    new_reserve_out = reserve_out - amount_out
    k_after = new_reserve_in * new_reserve_out
    if k_after < k_before:
        raise AssertionError(f"invariant violation: k_after ({k_after}) < k_before ({k_before})")

    return SwapExactInResult(
        amount_in=amount_in,
        amount_out=amount_out,
        fee_bps=fee_bps,
        new_reserve_in=new_reserve_in,
        new_reserve_out=new_reserve_out,
        k_before=k_before,
        k_after=k_after,
    )


def swap_exact_out(*, reserve_in: int, reserve_out: int, amount_out: int, fee_bps: int) -> SwapExactOutResult:
    """Exact-out swap quote + post-state. Reserves move by the *requested* amount_out."""
    amount_in = get_amount_in(
        amount_out=amount_out,
        reserve_in=reserve_in,
        reserve_out=reserve_out,
        fee_bps=fee_bps,
    )

    # The rounded-up input must clear the exact-in formula for the requested output.
    quoted = get_amount_out(amount_in=amount_in, reserve_in=reserve_in, reserve_out=reserve_out, fee_bps=fee_bps)
    if quoted < amount_out:
        raise AssertionError("computed amount_in insufficient for desired amount_out")

    k_before = reserve_in * reserve_out
    new_reserve_in = checked_add(reserve_in, amount_in)
    new_reserve_out = reserve_out - amount_out
    k_after = new_reserve_in * new_reserve_out
    if k_after < k_before:
        raise AssertionError(f"invariant violation: k_after ({k_after}) < k_before ({k_before})")

    return SwapExactOutResult(
        amount_in=amount_in,
        amount_out=amount_out,
        fee_bps=fee_bps,
        new_reserve_in=new_reserve_in,
        new_reserve_out=new_reserve_out,
        k_before=k_before,
        k_after=k_after,
    )
