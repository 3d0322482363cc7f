"""
State records for coralpair pairs
"""

from .balances import from_atomic, to_atomic
from .fees import FeeState
from .flash import FlashLoanConfig
from .lp import ShareLedger
from .pairs import PairState, Side, canonical_pair, compute_pair_id, empty_pair
from .state_root import pair_state_root

__all__ = [
    "FeeState",
    "FlashLoanConfig",
    "PairState",
    "ShareLedger",
    "Side",
    "canonical_pair",
    "compute_pair_id",
    "empty_pair",
    "from_atomic",
    "pair_state_root",
    "to_atomic",
]
