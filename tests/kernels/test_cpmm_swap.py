# [TESTER] v1

from __future__ import annotations

import pytest

from coralpair.errors import InsufficientInputAmount, InsufficientLiquidity
from coralpair.kernels.python.cpmm_swap import (
    get_amount_in,
    get_amount_out,
    input_fee,
    swap_exact_in,
    swap_exact_out,
)


RESERVE = 10_000_000_000


def test_get_amount_out_regression_value() -> None:
    # amountInWithFee = 1_000_000 * 9970; out = floor(9.97e9 * 1e10 / (1e14 + 9.97e9))
    assert get_amount_out(amount_in=1_000_000, reserve_in=RESERVE, reserve_out=RESERVE, fee_bps=30) == 996_900


def test_swap_exact_in_keeps_whole_input_in_reserves() -> None:
    res = swap_exact_in(reserve_in=RESERVE, reserve_out=RESERVE, amount_in=1_000_000, fee_bps=30)
    assert res.amount_out == 996_900
    assert res.new_reserve_in == RESERVE + 1_000_000
    assert res.new_reserve_out == RESERVE - 996_900
    assert res.k_after > res.k_before


def test_zero_fee_still_never_decreases_k() -> None:
    res = swap_exact_in(reserve_in=1_000, reserve_out=1_000, amount_in=1_000, fee_bps=0)
    # floor(1000 * 1000 / 2000)
    assert res.amount_out == 500
    assert res.k_after >= res.k_before


def test_swap_exact_in_rejects_zero_input() -> None:
    with pytest.raises(InsufficientInputAmount):
        swap_exact_in(reserve_in=RESERVE, reserve_out=RESERVE, amount_in=0, fee_bps=30)


def test_swap_exact_in_rejects_empty_reserve() -> None:
    with pytest.raises(InsufficientLiquidity):
        swap_exact_in(reserve_in=RESERVE, reserve_out=0, amount_in=1_000, fee_bps=30)


def test_dust_trade_with_zero_output_is_rejected() -> None:
    # 1 * 9970 * 1e10 / (1e14 + 9970) < 1
    with pytest.raises(InsufficientLiquidity, match="zero"):
        swap_exact_in(reserve_in=RESERVE, reserve_out=RESERVE, amount_in=1, fee_bps=30)


def test_fee_bps_must_be_below_one_hundred_percent() -> None:
    with pytest.raises(ValueError):
        get_amount_out(amount_in=10, reserve_in=100, reserve_out=100, fee_bps=10_000)
    with pytest.raises(TypeError):
        get_amount_out(amount_in=10, reserve_in=100, reserve_out=100, fee_bps=True)  # type: ignore[arg-type]


def test_get_amount_in_inverts_regression_value() -> None:
    assert get_amount_in(amount_out=996_900, reserve_in=RESERVE, reserve_out=RESERVE, fee_bps=30) == 1_000_000


def test_swap_exact_out_updates_reserves_for_requested_amount_out() -> None:
    # The minimal amount_in here would yield *more* than amount_out under exact-in
    # rounding; reserves must still move by the requested amount_out.
    res = swap_exact_out(reserve_in=1, reserve_out=4, amount_out=1, fee_bps=0)
    assert res.amount_in == 1
    assert res.new_reserve_in == 2
    assert res.new_reserve_out == 3
    assert get_amount_out(amount_in=res.amount_in, reserve_in=1, reserve_out=4, fee_bps=0) >= 1


def test_swap_exact_out_cannot_drain_reserve() -> None:
    with pytest.raises(InsufficientLiquidity):
        swap_exact_out(reserve_in=1_000, reserve_out=1_000, amount_out=1_000, fee_bps=30)


def test_input_fee_rounds_toward_the_reserves() -> None:
    assert input_fee(amount_in=1_000_000, fee_bps=30) == 3_000
    # floor(100 * 9970 / 10_000) = 99, so the fee is 1 rather than 0.3
    assert input_fee(amount_in=100, fee_bps=30) == 1
    assert input_fee(amount_in=1, fee_bps=30) == 1
    assert input_fee(amount_in=1_000_000, fee_bps=0) == 0
