"""
Flash-loan fee policy.

A flash borrow and its repayment settle inside one atomic pair transition
(see `ledger.apply_flash_loan`); this module only prices the borrow and
enforces the lock.
"""

from __future__ import annotations

from ..errors import FlashLoansDisabled
from ..kernels.python.fixed_point import mul_div_up
from ..state.flash import BPS_DENOM, FlashLoanConfig


def require_unlocked(config: FlashLoanConfig) -> None:
    if config.locked:
        raise FlashLoansDisabled("flash loans are disabled for this pair")


def effective_flash_fee_bps(config: FlashLoanConfig) -> int:
    """Charged rate: the configured rate, never below the floor."""
    return max(config.flash_fee_bps, config.flash_fee_floor_bps)


def flash_fee(config: FlashLoanConfig, amount: int) -> int:
    """
    Fee owed on a borrowed `amount`: ceil(amount * rate / 10_000).

    Rounds up: the fee is owed to the reserves.
    """
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise TypeError("amount must be an int")
    if amount < 0:
        raise ValueError(f"amount must be non-negative: {amount}")
    if amount == 0:
        return 0
    return mul_div_up(amount, effective_flash_fee_bps(config), BPS_DENOM)


def required_repayment(config: FlashLoanConfig, amount: int) -> int:
    return amount + flash_fee(config, amount)
