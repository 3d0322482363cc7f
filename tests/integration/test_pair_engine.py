# [TESTER] v1

from __future__ import annotations

import logging
import threading

import pytest

from coralpair.core.oracle import Q112
from coralpair.errors import (
    DeadlineExceeded,
    FlashLoansDisabled,
    InsufficientBalance,
    InsufficientInputAmount,
    PairLocked,
    PairNotFound,
    SlippageExceeded,
)
from coralpair.integration import InMemoryPairDirectory, PairConfig, PairEngine
from coralpair.state import FlashLoanConfig, ShareLedger


TOKEN_A = "0x" + "01" * 32
TOKEN_B = "0x" + "02" * 32
TOKEN_C = "0x" + "03" * 32
RESERVE = 10_000_000_000


def _engine_with_deep_pair() -> tuple[PairEngine, str]:
    engine = PairEngine()
    pair = engine.create_pair(TOKEN_B, TOKEN_A)
    engine.add_liquidity(pair.pair_id, "alice", RESERVE, RESERVE, timestamp=1, deadline=1)
    return engine, pair.pair_id


# ---------------------------------------------------------------------------
# Lifecycle and reads
# ---------------------------------------------------------------------------

def test_create_pair_is_idempotent_and_resolvable() -> None:
    directory = InMemoryPairDirectory()
    engine = PairEngine(directory=directory)
    a = engine.create_pair(TOKEN_A, TOKEN_B)
    b = engine.create_pair(TOKEN_B, TOKEN_A)
    assert a is b
    assert len(directory) == 1
    assert engine.pair_id_for(TOKEN_B, TOKEN_A) == a.pair_id
    assert engine.get_reserves(a.pair_id) == (0, 0)


def test_unknown_pair() -> None:
    engine = PairEngine()
    with pytest.raises(PairNotFound):
        engine.get_reserves("0xdead")
    with pytest.raises(PairNotFound):
        engine.pair_id_for(TOKEN_A, TOKEN_B)
    with pytest.raises(PairNotFound):
        engine.execute_swap("0xdead", TOKEN_A, 1, 0, timestamp=0, deadline=0)


def test_add_liquidity_credits_provider_not_lock() -> None:
    engine, pid = _engine_with_deep_pair()
    assert engine.shares.get("alice", pid) == RESERVE - 1_000
    assert engine.get_pair(pid).total_supply == RESERVE
    pos = engine.get_position(pid, "alice")
    assert pos.balance == RESERVE - 1_000
    assert pos.share_of_pool_bps == 9_999


def test_engine_uses_injected_share_ledger_and_config() -> None:
    shares = ShareLedger()
    engine = PairEngine(shares=shares, config=PairConfig(minimum_liquidity=0))
    pid = engine.create_pair(TOKEN_A, TOKEN_B).pair_id
    res = engine.add_liquidity(pid, "alice", 10_000_000, 40_000_000, timestamp=1, deadline=1)
    assert res.lp_locked == 0
    assert shares.get("alice", pid) == 20_000_000


# ---------------------------------------------------------------------------
# Quote -> settle
# ---------------------------------------------------------------------------

def test_quote_then_execute_swap() -> None:
    engine, pid = _engine_with_deep_pair()
    q = engine.quote_swap(pid, TOKEN_A, 1_000_000, 50, 30, now=5)
    assert (q.amount_out, q.amount_out_min, q.deadline) == (996_900, 991_915, 35)

    res = engine.execute_swap(pid, TOKEN_A, 1_000_000, q.amount_out_min, timestamp=5, deadline=q.deadline)
    assert res.amount_out == 996_900
    assert engine.get_reserves(pid) == (RESERVE + 1_000_000, RESERVE - 996_900)
    # Four seconds at 1:1 since the deposit at t=1.
    assert engine.get_cumulative_prices(pid) == (4 * Q112, 4 * Q112, 5)


def test_quote_and_execute_exact_out() -> None:
    engine, pid = _engine_with_deep_pair()
    q = engine.quote_swap_exact_out(pid, TOKEN_B, 996_900, 50, 30, now=2)
    assert q.amount_in == 1_000_000
    res = engine.execute_swap_exact_out(pid, TOKEN_B, 996_900, q.amount_in_max, timestamp=2, deadline=q.deadline)
    assert res.amount_in == 1_000_000
    assert engine.get_reserves(pid) == (RESERVE - 996_900, RESERVE + 1_000_000)


def test_late_settlement_is_rejected_without_mutation() -> None:
    engine, pid = _engine_with_deep_pair()
    q = engine.quote_swap(pid, TOKEN_A, 1_000_000, 50, 30, now=5)
    root = engine.state_root(pid)
    with pytest.raises(DeadlineExceeded):
        engine.execute_swap(pid, TOKEN_A, 1_000_000, q.amount_out_min, timestamp=q.deadline + 1, deadline=q.deadline)
    assert engine.state_root(pid) == root


def test_stale_quote_hits_slippage_guard(caplog: pytest.LogCaptureFixture) -> None:
    engine, pid = _engine_with_deep_pair()
    q = engine.quote_swap(pid, TOKEN_A, 1_000_000_000, 0, 30, now=2)
    # Someone else trades first.
    engine.execute_swap(pid, TOKEN_A, 1_000_000_000, 0, timestamp=2, deadline=2)
    root = engine.state_root(pid)
    with caplog.at_level(logging.INFO, logger="coralpair.integration.pair_engine"):
        with pytest.raises(SlippageExceeded):
            engine.execute_swap(pid, TOKEN_A, 1_000_000_000, q.amount_out_min, timestamp=3, deadline=q.deadline)
    assert engine.state_root(pid) == root
    assert "slippage_exceeded" in caplog.text


def test_quote_add_liquidity_by_token() -> None:
    engine, pid = _engine_with_deep_pair()
    q = engine.quote_add_liquidity(pid, TOKEN_B, 1_000_000)
    assert q.amount_b == 1_000_000
    assert q.estimated_lp_tokens == 1_000_000


# ---------------------------------------------------------------------------
# Liquidity
# ---------------------------------------------------------------------------

def test_remove_liquidity_debits_holder() -> None:
    engine, pid = _engine_with_deep_pair()
    res = engine.remove_liquidity(pid, "alice", 1_000_000, timestamp=2, deadline=2)
    assert (res.amount0, res.amount1) == (1_000_000, 1_000_000)
    assert engine.shares.get("alice", pid) == RESERVE - 1_000 - 1_000_000


def test_remove_liquidity_rejects_over_withdrawal() -> None:
    engine, pid = _engine_with_deep_pair()
    with pytest.raises(InsufficientBalance):
        engine.remove_liquidity(pid, "bob", 1, timestamp=2, deadline=2)


# ---------------------------------------------------------------------------
# Flash loans
# ---------------------------------------------------------------------------

def test_flash_loan_callback_repays_with_fee() -> None:
    engine, pid = _engine_with_deep_pair()
    seen = []

    def _callback(amount0: int, amount1: int, fee0: int, fee1: int) -> tuple[int, int]:
        seen.append((amount0, amount1, fee0, fee1))
        return amount0 + fee0, amount1 + fee1

    res = engine.flash_loan(pid, 1_000_000, 0, _callback, timestamp=2)
    assert seen == [(1_000_000, 0, 900, 0)]
    assert res.fee0 == 900
    assert engine.get_reserves(pid) == (RESERVE + 900, RESERVE)


def test_flash_loan_failure_rolls_back() -> None:
    engine, pid = _engine_with_deep_pair()
    root = engine.state_root(pid)

    with pytest.raises(InsufficientInputAmount):
        engine.flash_loan(pid, 1_000_000, 0, lambda a0, a1, f0, f1: (a0, a1), timestamp=2)

    def _boom(*_args: int) -> tuple[int, int]:
        raise RuntimeError("callback failed")

    with pytest.raises(RuntimeError):
        engine.flash_loan(pid, 1_000_000, 0, _boom, timestamp=2)
    assert engine.state_root(pid) == root


def test_locked_flash_loans_never_call_back() -> None:
    engine, pid = _engine_with_deep_pair()
    engine.set_flash_loan_config(pid, FlashLoanConfig(locked=True))
    assert engine.get_flash_loan_config(pid).locked

    def _callback(*_args: int) -> tuple[int, int]:
        raise AssertionError("callback must not run")

    with pytest.raises(FlashLoansDisabled):
        engine.flash_loan(pid, 1_000, 0, _callback, timestamp=2)


def test_flash_callback_cannot_mutate_the_same_pair() -> None:
    engine, pid = _engine_with_deep_pair()
    outcome: dict = {}

    def _callback(amount0: int, amount1: int, fee0: int, fee1: int) -> tuple[int, int]:
        try:
            engine.execute_swap(pid, TOKEN_A, 1_000, 0, timestamp=2, deadline=2)
        except PairLocked as exc:
            outcome["error"] = exc
        return amount0 + fee0, amount1 + fee1

    def _run() -> None:
        outcome["result"] = engine.flash_loan(pid, 1_000_000, 0, _callback, timestamp=2)

    worker = threading.Thread(target=_run)
    worker.start()
    worker.join(timeout=5)
    assert not worker.is_alive()

    assert outcome["error"].code == "pair_locked"
    assert outcome["result"].fee0 == 900
    assert engine.get_reserves(pid) == (RESERVE + 900, RESERVE)
    # The pair is released once the loan settles.
    engine.execute_swap(pid, TOKEN_A, 1_000, 0, timestamp=3, deadline=3)


def test_uncaught_reentry_aborts_flash_loan() -> None:
    engine, pid = _engine_with_deep_pair()
    root = engine.state_root(pid)

    def _callback(amount0: int, amount1: int, fee0: int, fee1: int) -> tuple[int, int]:
        engine.add_liquidity(pid, "bob", 1_000, 1_000, timestamp=2, deadline=2)
        return amount0 + fee0, amount1 + fee1

    with pytest.raises(PairLocked):
        engine.flash_loan(pid, 1_000_000, 0, _callback, timestamp=2)
    assert engine.state_root(pid) == root
    assert engine.shares.get("bob", pid) == 0


def test_flash_callback_may_trade_on_another_pair() -> None:
    engine, pid = _engine_with_deep_pair()
    other = engine.create_pair(TOKEN_A, TOKEN_C).pair_id
    engine.add_liquidity(other, "alice", RESERVE, RESERVE, timestamp=1, deadline=1)

    def _callback(amount0: int, amount1: int, fee0: int, fee1: int) -> tuple[int, int]:
        engine.execute_swap(other, TOKEN_A, 1_000_000, 0, timestamp=2, deadline=2)
        return amount0 + fee0, amount1 + fee1

    engine.flash_loan(pid, 1_000_000, 0, _callback, timestamp=2)
    assert engine.get_reserves(pid) == (RESERVE + 900, RESERVE)
    assert engine.get_reserves(other) != (RESERVE, RESERVE)


# ---------------------------------------------------------------------------
# Fees
# ---------------------------------------------------------------------------

def test_fee_signal_moves_fee_and_configure_resets_bounds() -> None:
    engine, pid = _engine_with_deep_pair()
    engine.execute_swap(pid, TOKEN_A, 1_000_000, 0, timestamp=2, deadline=2, fee_signal_bps=70)
    assert engine.get_fee_state(pid).current_fee_bps == 44

    fee_state = engine.configure_fee(pid, fee_min_bps=50, fee_max_bps=60, baseline_fee_bps=55, ema_alpha_bps=10_000)
    assert fee_state.current_fee_bps == 50
    assert engine.get_fee_state(pid) == fee_state


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------

def test_concurrent_swaps_are_serialized() -> None:
    engine, pid = _engine_with_deep_pair()
    start0, _ = engine.get_reserves(pid)
    n_threads, n_swaps, amount = 8, 25, 1_000_000
    errors: list[BaseException] = []

    def _worker() -> None:
        try:
            for _ in range(n_swaps):
                engine.execute_swap(pid, TOKEN_A, amount, 0, timestamp=2, deadline=2)
        except BaseException as exc:  # pragma: no cover - surfaced below
            errors.append(exc)

    threads = [threading.Thread(target=_worker) for _ in range(n_threads)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert not errors
    reserve0, _ = engine.get_reserves(pid)
    # Every input landed exactly once.
    assert reserve0 == start0 + n_threads * n_swaps * amount
