"""
Pair state for a constant-product trading pair.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple

from ..errors import PairNotFound
from .balances import Amount, PairId, TokenId
from .canonical import domain_sep_bytes, encode_str, sha256_hex
from .fees import FeeState
from .flash import FlashLoanConfig


# Price accumulators wrap modulo 2**256.
CUMULATIVE_MODULUS = 1 << 256


class Side(Enum):
    """Which leg of the pair: token0 or token1 under canonical ordering."""

    ZERO = 0
    ONE = 1

    @property
    def other(self) -> "Side":
        return Side.ONE if self is Side.ZERO else Side.ZERO


def canonical_pair(token_a: TokenId, token_b: TokenId) -> Tuple[TokenId, TokenId]:
    """Order two token ids canonically (lexicographic); reject identical tokens."""
    if not isinstance(token_a, str) or not token_a:
        raise ValueError("token_a must be a non-empty string")
    if not isinstance(token_b, str) or not token_b:
        raise ValueError("token_b must be a non-empty string")
    if token_a == token_b:
        raise ValueError(f"identical tokens: {token_a}")
    return (token_a, token_b) if token_a < token_b else (token_b, token_a)


def compute_pair_id(token0: TokenId, token1: TokenId) -> PairId:
    """
    Deterministically compute a pair_id for a canonically ordered token pair.

        pair_id = H(domain("pair_id") || len(token0) || token0 || len(token1) || token1)
    """
    if token0 >= token1:
        raise ValueError(f"Tokens must be in canonical order: {token0} < {token1}")
    return sha256_hex(domain_sep_bytes("pair_id", version=1) + encode_str(token0) + encode_str(token1))


@dataclass(frozen=True)
class PairState:
    """
    Immutable state of one trading pair.

    Attributes:
        pair_id: Pair identifier (hex string)
        token0: First token (must be < token1 lexicographically)
        token1: Second token
        reserve0: Reserve of token0 in atomic units
        reserve1: Reserve of token1 in atomic units
        total_supply: Total minted LP shares (including locked minimum liquidity)
        price0_cumulative_last: Sum of UQ112.112 price0 * seconds, mod 2**256
        price1_cumulative_last: Sum of UQ112.112 price1 * seconds, mod 2**256
        block_timestamp_last: Timestamp (seconds) of the last mutation
        fee_state: Dynamic fee state
        flash_loan_config: Flash-loan policy
    """

    pair_id: PairId
    token0: TokenId
    token1: TokenId
    reserve0: Amount = 0
    reserve1: Amount = 0
    total_supply: Amount = 0
    price0_cumulative_last: int = 0
    price1_cumulative_last: int = 0
    block_timestamp_last: int = 0
    fee_state: FeeState = field(default_factory=FeeState)
    flash_loan_config: FlashLoanConfig = field(default_factory=FlashLoanConfig)

    def __post_init__(self) -> None:
        """Validate pair state invariants."""
        if self.token0 >= self.token1:
            raise ValueError(f"Tokens must be in canonical order: {self.token0} < {self.token1}")

        for name, val in (
            ("reserve0", self.reserve0),
            ("reserve1", self.reserve1),
            ("total_supply", self.total_supply),
            ("price0_cumulative_last", self.price0_cumulative_last),
            ("price1_cumulative_last", self.price1_cumulative_last),
            ("block_timestamp_last", self.block_timestamp_last),
        ):
            if not isinstance(val, int) or isinstance(val, bool):
                raise TypeError(f"{name} must be an int")
            if val < 0:
                raise ValueError(f"{name} must be non-negative: {val}")

        # Both reserves are zero only for an uninitialized pair.
        if (self.reserve0 == 0) != (self.reserve1 == 0):
            raise ValueError(f"Reserves must be both zero or both positive: ({self.reserve0}, {self.reserve1})")
        if (self.total_supply == 0) != (self.reserve0 == 0):
            raise ValueError(
                f"total_supply ({self.total_supply}) inconsistent with reserves ({self.reserve0}, {self.reserve1})"
            )

        if self.price0_cumulative_last >= CUMULATIVE_MODULUS or self.price1_cumulative_last >= CUMULATIVE_MODULUS:
            raise ValueError("cumulative prices must be < 2**256")

    @property
    def initialized(self) -> bool:
        return self.total_supply > 0

    def side_of(self, token: TokenId) -> Side:
        if token == self.token0:
            return Side.ZERO
        if token == self.token1:
            return Side.ONE
        raise PairNotFound(f"Token {token} not in pair {self.pair_id}")

    def token(self, side: Side) -> TokenId:
        return self.token0 if side is Side.ZERO else self.token1

    def reserve(self, side: Side) -> Amount:
        return self.reserve0 if side is Side.ZERO else self.reserve1

    def reserves_for(self, side_in: Side) -> Tuple[Amount, Amount]:
        """(reserve_in, reserve_out) for a trade entering on `side_in`."""
        return self.reserve(side_in), self.reserve(side_in.other)

    def get_constant_product(self) -> int:
        return self.reserve0 * self.reserve1

    def __repr__(self) -> str:
        return (
            f"PairState(pair_id={self.pair_id[:16]}..., "
            f"tokens=({self.token0[:8]}..., {self.token1[:8]}...), "
            f"reserves=({self.reserve0}, {self.reserve1}), "
            f"total_supply={self.total_supply}, fee_bps={self.fee_state.current_fee_bps})"
        )


def empty_pair(
    token_a: TokenId,
    token_b: TokenId,
    *,
    fee_state: FeeState | None = None,
    flash_loan_config: FlashLoanConfig | None = None,
) -> PairState:
    """Uninitialized pair for a token pair in any order."""
    token0, token1 = canonical_pair(token_a, token_b)
    return PairState(
        pair_id=compute_pair_id(token0, token1),
        token0=token0,
        token1=token1,
        fee_state=fee_state if fee_state is not None else FeeState(),
        flash_loan_config=flash_loan_config if flash_loan_config is not None else FlashLoanConfig(),
    )
