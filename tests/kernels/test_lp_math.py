# [TESTER] v1

from __future__ import annotations

import pytest

from coralpair.errors import InsufficientInitialLiquidity, InsufficientLiquidity
from coralpair.kernels.python.lp_math import (
    DEFAULT_MINIMUM_LIQUIDITY,
    burn_liquidity,
    initial_liquidity,
    mint_liquidity,
    optimal_liquidity,
    proportional_liquidity,
)


def test_mint_liquidity_rejects_inconsistent_initial_state() -> None:
    with pytest.raises(ValueError, match="initial liquidity"):
        mint_liquidity(
            reserve0=1,
            reserve1=1,
            total_supply=0,
            amount0=10,
            amount1=10,
        )


def test_bootstrap_mints_geometric_mean_and_locks_minimum() -> None:
    res = mint_liquidity(reserve0=0, reserve1=0, total_supply=0, amount0=10_000_000, amount1=40_000_000)
    assert res.liquidity_minted == 20_000_000
    assert res.liquidity_locked == DEFAULT_MINIMUM_LIQUIDITY
    assert res.liquidity_to_provider == 20_000_000 - DEFAULT_MINIMUM_LIQUIDITY
    assert res.new_total_supply == 20_000_000
    assert (res.new_reserve0, res.new_reserve1) == (10_000_000, 40_000_000)


def test_initial_liquidity_floor() -> None:
    with pytest.raises(InsufficientInitialLiquidity):
        initial_liquidity(amount0=1_000, amount1=1_000)
    assert initial_liquidity(amount0=1_000, amount1=1_000, minimum_liquidity=0) == 1_000


def test_optimal_liquidity_binds_on_amount0() -> None:
    opt = optimal_liquidity(reserve0=1_000, reserve1=2_000, amount0_desired=100, amount1_desired=300)
    assert (opt.amount0_used, opt.amount1_used) == (100, 200)
    assert (opt.amount0_refund, opt.amount1_refund) == (0, 100)


def test_optimal_liquidity_binds_on_amount1() -> None:
    opt = optimal_liquidity(reserve0=1_000, reserve1=2_000, amount0_desired=100, amount1_desired=150)
    assert (opt.amount0_used, opt.amount1_used) == (75, 150)
    assert opt.amount0_refund == 25


def test_optimal_liquidity_empty_pool_uses_everything() -> None:
    opt = optimal_liquidity(reserve0=0, reserve1=0, amount0_desired=7, amount1_desired=9)
    assert (opt.amount0_used, opt.amount1_used) == (7, 9)


def test_proportional_liquidity_takes_min_claim() -> None:
    # floor(100 * 1414 / 1000) = 141, floor(200 * 1414 / 2000) = 141
    assert proportional_liquidity(amount0=100, amount1=200, reserve0=1_000, reserve1=2_000, total_supply=1_414) == 141
    # Over-supplying one side does not earn more shares.
    assert proportional_liquidity(amount0=100, amount1=900, reserve0=1_000, reserve1=2_000, total_supply=1_414) == 141


def test_burn_liquidity_floors_both_sides() -> None:
    res = burn_liquidity(lp_amount=500, reserve0=1_001, reserve1=2_003, total_supply=1_000)
    assert (res.amount0_out, res.amount1_out) == (500, 1_001)


def test_burn_entire_supply_returns_full_reserves() -> None:
    res = burn_liquidity(lp_amount=1_000, reserve0=1_001, reserve1=2_003, total_supply=1_000)
    assert (res.amount0_out, res.amount1_out) == (1_001, 2_003)


def test_burn_rejects_more_than_supply() -> None:
    with pytest.raises(InsufficientLiquidity):
        burn_liquidity(lp_amount=1_001, reserve0=1_000, reserve1=1_000, total_supply=1_000)


def test_burn_rejects_zero_output_partial_burn() -> None:
    with pytest.raises(InsufficientLiquidity):
        burn_liquidity(lp_amount=1, reserve0=10, reserve1=10_000, total_supply=1_000)
