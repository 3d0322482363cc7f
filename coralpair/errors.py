"""
Error taxonomy for the pair engine.

Every failure is terminal for the operation that raised it; the core never
retries. `requote` marks the kinds where a caller may re-quote against fresh
state and try again (a new economic decision, not a recovered fault).
"""

from __future__ import annotations


class PairError(ValueError):
    """Base class for all pair-engine failures."""

    code = "pair_error"
    requote = False


class ArithmeticOverflow(PairError):
    code = "arithmetic_overflow"


class DivisionByZero(PairError):
    code = "division_by_zero"


class PairNotFound(PairError):
    code = "pair_not_found"


class InsufficientLiquidity(PairError):
    code = "insufficient_liquidity"


class InsufficientInputAmount(PairError):
    code = "insufficient_input_amount"


class InsufficientInitialLiquidity(PairError):
    code = "insufficient_initial_liquidity"


class SlippageExceeded(PairError):
    code = "slippage_exceeded"
    requote = True


class InvalidFeeConfig(PairError):
    code = "invalid_fee_config"


class FlashLoansDisabled(PairError):
    code = "flash_loans_disabled"


class InsufficientBalance(PairError):
    code = "insufficient_balance"


class DeadlineExceeded(PairError):
    code = "deadline_exceeded"
    requote = True


class InvalidTimestamp(PairError):
    """Raised when a mutation carries a timestamp older than the pair's last update."""

    code = "invalid_timestamp"


class PairLocked(PairError):
    """A mutation re-entered a pair from inside that pair's own critical section."""

    code = "pair_locked"


__all__ = [
    "PairError",
    "ArithmeticOverflow",
    "DivisionByZero",
    "PairNotFound",
    "InsufficientLiquidity",
    "InsufficientInputAmount",
    "InsufficientInitialLiquidity",
    "SlippageExceeded",
    "InvalidFeeConfig",
    "FlashLoansDisabled",
    "InsufficientBalance",
    "DeadlineExceeded",
    "InvalidTimestamp",
    "PairLocked",
]
