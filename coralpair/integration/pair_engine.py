"""
Pair engine: the imperative shell around the functional core.

- Holds the committed `PairState` of every pair it manages.
- Serializes mutations per pair with a `threading.Lock`; the whole
  read-compute-write sequence runs under the lock, so two mutations can never
  both act on the same pre-state. Different pairs have different locks.
- A mutation issued from inside the same pair's critical section (a flash
  loan callback trading on the pair it borrowed from) raises PairLocked.
- Quotes read the committed snapshot without locking. They are advisory: a
  later mutation may invalidate them, which settlement catches through the
  quote's slippage guard and deadline.
- Timestamps and deadlines are supplied by the caller (the transaction
  submission layer); the engine never reads a clock.

A mutation either commits a complete new state (reserves, oracle and fee
together) or raises and leaves the committed state untouched.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Callable, Dict, Optional, Tuple, TypeVar

from ..core.dynamic_fee import configure_fee
from ..core.ledger import (
    FlashLoanResult,
    SwapResult,
    WithdrawResult,
    apply_flash_loan,
    apply_swap,
    apply_swap_exact_out,
    check_flash_borrow,
)
from ..core.liquidity import (
    LiquidityPosition,
    LiquidityQuote,
    LiquidityResult,
    add_liquidity,
    position,
    quote_add_liquidity,
    remove_liquidity,
)
from ..core.swap_quote import SwapQuote, check_deadline, quote_exact_in, quote_exact_out
from ..errors import PairError, PairLocked, PairNotFound
from ..state.balances import Amount, Holder, PairId, TokenId
from ..state.fees import FeeState
from ..state.flash import FlashLoanConfig
from ..state.lp import ShareLedger
from ..state.pairs import PairState, empty_pair
from ..state.state_root import pair_state_root
from .config import PairConfig
from .directory import InMemoryPairDirectory, PairDirectory, resolve


logger = logging.getLogger(__name__)

T = TypeVar("T")

# Called with (amount0_borrowed, amount1_borrowed, fee0, fee1); returns the
# amounts (amount0_repaid, amount1_repaid) sent back to the pair.
FlashCallback = Callable[[int, int, int, int], Tuple[int, int]]


class PairEngine:
    """
    Synchronous facade over a set of pairs.

    Args:
        directory: Token pair -> pair id resolution (injected, not owned)
        shares: LP balance ledger credited/debited on deposits and withdrawals
        config: Initial fee / flash-loan policy and minimum liquidity for new pairs

    The shares locked by a first deposit are part of `total_supply` but are
    never credited to any holder.
    """

    def __init__(
        self,
        directory: Optional[PairDirectory] = None,
        shares: Optional[ShareLedger] = None,
        config: Optional[PairConfig] = None,
    ) -> None:
        self.directory = directory if directory is not None else InMemoryPairDirectory()
        self.shares = shares if shares is not None else ShareLedger()
        self.config = config if config is not None else PairConfig()
        self._pairs: Dict[PairId, PairState] = {}
        self._locks: Dict[PairId, threading.Lock] = {}
        # pair_id -> (thread id, op) of the caller inside that pair's lock
        self._owners: Dict[PairId, Tuple[int, str]] = {}
        self._registry_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Pair lifecycle
    # ------------------------------------------------------------------

    def create_pair(self, token_a: TokenId, token_b: TokenId) -> PairState:
        """Register the pair (idempotent) and start tracking it uninitialized."""
        pair_id = self.directory.register(token_a, token_b)
        with self._registry_lock:
            existing = self._pairs.get(pair_id)
            if existing is not None:
                return existing
            pair = empty_pair(
                token_a,
                token_b,
                fee_state=self.config.fee_state,
                flash_loan_config=self.config.flash_loan_config,
            )
            if pair.pair_id != pair_id:
                raise ValueError(f"directory returned pair id {pair_id}, expected {pair.pair_id}")
            self._pairs[pair_id] = pair
            self._locks[pair_id] = threading.Lock()
        logger.info("created pair %s (%s, %s)", pair_id, pair.token0, pair.token1)
        return pair

    def pair_id_for(self, token_a: TokenId, token_b: TokenId) -> PairId:
        return resolve(self.directory, token_a, token_b)

    def get_pair(self, pair_id: PairId) -> PairState:
        pair = self._pairs.get(pair_id)
        if pair is None:
            raise PairNotFound(f"unknown pair {pair_id}")
        return pair

    def _lock_for(self, pair_id: PairId) -> threading.Lock:
        lock = self._locks.get(pair_id)
        if lock is None:
            raise PairNotFound(f"unknown pair {pair_id}")
        return lock

    def _mutate(self, pair_id: PairId, op: str, fn: Callable[[PairState], Tuple[T, PairState]]) -> T:
        lock = self._lock_for(pair_id)
        me = threading.get_ident()
        owner = self._owners.get(pair_id)
        if owner is not None and owner[0] == me:
            logger.info("%s rejected on pair %s: %s (inside %s)", op, pair_id, PairLocked.code, owner[1])
            raise PairLocked(f"{op} re-entered pair {pair_id} during {owner[1]}")
        with lock:
            self._owners[pair_id] = (me, op)
            try:
                pair = self.get_pair(pair_id)
                try:
                    result, new_state = fn(pair)
                except PairError as exc:
                    logger.info("%s rejected on pair %s: %s (%s)", op, pair_id, exc.code, exc)
                    raise
                self._pairs[pair_id] = new_state
            finally:
                del self._owners[pair_id]
        logger.debug(
            "%s committed on pair %s: reserves=(%d, %d) supply=%d fee_bps=%d",
            op,
            pair_id,
            new_state.reserve0,
            new_state.reserve1,
            new_state.total_supply,
            new_state.fee_state.current_fee_bps,
        )
        return result

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_reserves(self, pair_id: PairId) -> Tuple[Amount, Amount]:
        pair = self.get_pair(pair_id)
        return pair.reserve0, pair.reserve1

    def get_fee_state(self, pair_id: PairId) -> FeeState:
        return self.get_pair(pair_id).fee_state

    def get_flash_loan_config(self, pair_id: PairId) -> FlashLoanConfig:
        return self.get_pair(pair_id).flash_loan_config

    def get_cumulative_prices(self, pair_id: PairId) -> Tuple[int, int, int]:
        """(price0_cumulative_last, price1_cumulative_last, block_timestamp_last)."""
        pair = self.get_pair(pair_id)
        return pair.price0_cumulative_last, pair.price1_cumulative_last, pair.block_timestamp_last

    def get_position(self, pair_id: PairId, holder: Holder) -> LiquidityPosition:
        pair = self.get_pair(pair_id)
        return position(pair, self.shares.get(holder, pair_id))

    def state_root(self, pair_id: PairId) -> str:
        return pair_state_root(self.get_pair(pair_id))

    # ------------------------------------------------------------------
    # Quotes (advisory, lock-free snapshot reads)
    # ------------------------------------------------------------------

    def quote_swap(
        self,
        pair_id: PairId,
        token_in: TokenId,
        amount_in: Amount,
        slippage_bps: int,
        ttl: int,
        *,
        now: int,
    ) -> SwapQuote:
        pair = self.get_pair(pair_id)
        return quote_exact_in(pair, pair.side_of(token_in), amount_in, slippage_bps, now=now, ttl=ttl)

    def quote_swap_exact_out(
        self,
        pair_id: PairId,
        token_in: TokenId,
        amount_out: Amount,
        slippage_bps: int,
        ttl: int,
        *,
        now: int,
    ) -> SwapQuote:
        pair = self.get_pair(pair_id)
        return quote_exact_out(pair, pair.side_of(token_in), amount_out, slippage_bps, now=now, ttl=ttl)

    def quote_add_liquidity(
        self,
        pair_id: PairId,
        token_a: TokenId,
        amount_a_desired: Amount,
        amount_b_desired: Optional[Amount] = None,
    ) -> LiquidityQuote:
        pair = self.get_pair(pair_id)
        return quote_add_liquidity(
            pair,
            amount_a_desired,
            pair.side_of(token_a),
            amount_b_desired,
            minimum_liquidity=self.config.minimum_liquidity,
        )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def execute_swap(
        self,
        pair_id: PairId,
        token_in: TokenId,
        amount_in: Amount,
        amount_out_min: Amount,
        *,
        timestamp: int,
        deadline: int,
        fee_signal_bps: int = 0,
    ) -> SwapResult:
        def _apply(pair: PairState) -> Tuple[SwapResult, PairState]:
            check_deadline(deadline, timestamp)
            res = apply_swap(
                pair,
                amount_in,
                pair.side_of(token_in),
                timestamp=timestamp,
                amount_out_min=amount_out_min,
                fee_signal_bps=fee_signal_bps,
            )
            return res, res.state

        return self._mutate(pair_id, "swap", _apply)

    def execute_swap_exact_out(
        self,
        pair_id: PairId,
        token_in: TokenId,
        amount_out: Amount,
        amount_in_max: Amount,
        *,
        timestamp: int,
        deadline: int,
        fee_signal_bps: int = 0,
    ) -> SwapResult:
        def _apply(pair: PairState) -> Tuple[SwapResult, PairState]:
            check_deadline(deadline, timestamp)
            res = apply_swap_exact_out(
                pair,
                amount_out,
                pair.side_of(token_in),
                timestamp=timestamp,
                amount_in_max=amount_in_max,
                fee_signal_bps=fee_signal_bps,
            )
            return res, res.state

        return self._mutate(pair_id, "swap_exact_out", _apply)

    def add_liquidity(
        self,
        pair_id: PairId,
        holder: Holder,
        amount0_desired: Amount,
        amount1_desired: Amount,
        amount0_min: Amount = 0,
        amount1_min: Amount = 0,
        *,
        timestamp: int,
        deadline: int,
        fee_signal_bps: int = 0,
    ) -> LiquidityResult:
        def _apply(pair: PairState) -> Tuple[LiquidityResult, PairState]:
            check_deadline(deadline, timestamp)
            res = add_liquidity(
                pair,
                amount0_desired,
                amount1_desired,
                amount0_min,
                amount1_min,
                timestamp=timestamp,
                minimum_liquidity=self.config.minimum_liquidity,
                fee_signal_bps=fee_signal_bps,
            )
            self.shares.add(holder, pair_id, res.lp_to_provider)
            return res, res.state

        return self._mutate(pair_id, "add_liquidity", _apply)

    def remove_liquidity(
        self,
        pair_id: PairId,
        holder: Holder,
        lp_amount: Amount,
        amount0_min: Amount = 0,
        amount1_min: Amount = 0,
        *,
        timestamp: int,
        deadline: int,
        fee_signal_bps: int = 0,
    ) -> WithdrawResult:
        def _apply(pair: PairState) -> Tuple[WithdrawResult, PairState]:
            check_deadline(deadline, timestamp)
            res = remove_liquidity(
                pair,
                lp_amount,
                amount0_min,
                amount1_min,
                holder_balance=self.shares.get(holder, pair_id),
                timestamp=timestamp,
                fee_signal_bps=fee_signal_bps,
            )
            self.shares.subtract(holder, pair_id, lp_amount)
            return res, res.state

        return self._mutate(pair_id, "remove_liquidity", _apply)

    def flash_loan(
        self,
        pair_id: PairId,
        amount0_out: Amount,
        amount1_out: Amount,
        callback: FlashCallback,
        *,
        timestamp: int,
        fee_signal_bps: int = 0,
    ) -> FlashLoanResult:
        """
        Lend from the reserves and settle the repayment in one critical section.

        `callback` runs while the pair lock is held and returns what it repays.
        If it raises, or repays too little, nothing is committed. Mutating this
        same pair from the callback raises PairLocked; other pairs are free.
        """

        def _apply(pair: PairState) -> Tuple[FlashLoanResult, PairState]:
            fee0, fee1 = check_flash_borrow(pair, amount0_out=amount0_out, amount1_out=amount1_out)
            repaid0, repaid1 = callback(amount0_out, amount1_out, fee0, fee1)
            res = apply_flash_loan(
                pair,
                amount0_out=amount0_out,
                amount1_out=amount1_out,
                amount0_repaid=repaid0,
                amount1_repaid=repaid1,
                timestamp=timestamp,
                fee_signal_bps=fee_signal_bps,
            )
            return res, res.state

        return self._mutate(pair_id, "flash_loan", _apply)

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def configure_fee(
        self,
        pair_id: PairId,
        *,
        fee_min_bps: int,
        fee_max_bps: int,
        baseline_fee_bps: int,
        ema_alpha_bps: int,
    ) -> FeeState:
        def _apply(pair: PairState) -> Tuple[FeeState, PairState]:
            fee_state = configure_fee(
                pair.fee_state,
                fee_min_bps=fee_min_bps,
                fee_max_bps=fee_max_bps,
                baseline_fee_bps=baseline_fee_bps,
                ema_alpha_bps=ema_alpha_bps,
            )
            return fee_state, replace(pair, fee_state=fee_state)

        return self._mutate(pair_id, "configure_fee", _apply)

    def set_flash_loan_config(self, pair_id: PairId, config: FlashLoanConfig) -> FlashLoanConfig:
        def _apply(pair: PairState) -> Tuple[FlashLoanConfig, PairState]:
            return config, replace(pair, flash_loan_config=config)

        return self._mutate(pair_id, "set_flash_loan_config", _apply)


