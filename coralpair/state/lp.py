"""
LP share balances.

Share balances are external bookkeeping: the pair core reads a holder's
balance (to reject over-withdrawal) but never owns the table. The engine
credits minted shares and debits burned shares here, inside the pair's
critical section.
"""

from __future__ import annotations

import threading
from typing import Dict, Tuple

from .balances import Amount, Holder, PairId


class ShareLedger:
    """
    (holder, pair_id) -> shares.

    Balances never go negative, and a balance that reaches zero is dropped
    from the table.
    """

    def __init__(self) -> None:
        self._balances: Dict[Tuple[Holder, PairId], Amount] = {}
        self._lock = threading.Lock()

    def get(self, holder: Holder, pair_id: PairId) -> Amount:
        return self._balances.get((holder, pair_id), 0)

    def add(self, holder: Holder, pair_id: PairId, shares: Amount) -> None:
        """Credit minted shares."""
        if shares < 0:
            raise ValueError(f"shares must be non-negative: {shares}")
        if shares == 0:
            return
        key = (holder, pair_id)
        with self._lock:
            self._balances[key] = self._balances.get(key, 0) + shares

    def subtract(self, holder: Holder, pair_id: PairId, shares: Amount) -> None:
        """Debit burned shares; the holder must own at least `shares`."""
        if shares < 0:
            raise ValueError(f"shares must be non-negative: {shares}")
        key = (holder, pair_id)
        with self._lock:
            current = self._balances.get(key, 0)
            if shares > current:
                raise ValueError(f"Insufficient LP balance: {current} < {shares}")
            if current == shares:
                self._balances.pop(key, None)
            else:
                self._balances[key] = current - shares

    def __len__(self) -> int:
        return len(self._balances)

    def __repr__(self) -> str:
        return f"ShareLedger({len(self._balances)} entries)"
