"""
Core pair algorithms (pure functions over PairState)
"""

from .dynamic_fee import configure_fee, next_fee_bps, update_fee
from .flash_loan import effective_flash_fee_bps, flash_fee, required_repayment
from .ledger import (
    DepositResult,
    FlashLoanResult,
    SwapResult,
    WithdrawResult,
    apply_deposit,
    apply_flash_loan,
    apply_swap,
    apply_swap_exact_out,
    apply_withdraw,
)
from .liquidity import (
    LiquidityPosition,
    LiquidityQuote,
    LiquidityResult,
    add_liquidity,
    position,
    quote_add_liquidity,
    remove_liquidity,
)
from .oracle import OracleSample, consult, is_fresh, observe, twap0, twap1
from .swap_quote import SwapQuote, TradeType, check_deadline, quote_exact_in, quote_exact_out

__all__ = [
    # Ledger
    "DepositResult",
    "FlashLoanResult",
    "SwapResult",
    "WithdrawResult",
    "apply_deposit",
    "apply_flash_loan",
    "apply_swap",
    "apply_swap_exact_out",
    "apply_withdraw",
    # Quoting
    "SwapQuote",
    "TradeType",
    "check_deadline",
    "quote_exact_in",
    "quote_exact_out",
    # Liquidity
    "LiquidityPosition",
    "LiquidityQuote",
    "LiquidityResult",
    "add_liquidity",
    "position",
    "quote_add_liquidity",
    "remove_liquidity",
    # Oracle
    "OracleSample",
    "consult",
    "is_fresh",
    "observe",
    "twap0",
    "twap1",
    # Fees
    "configure_fee",
    "next_fee_bps",
    "update_fee",
    "effective_flash_fee_bps",
    "flash_fee",
    "required_repayment",
]
