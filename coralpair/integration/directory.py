"""
Pair directory seam.

Maps an unordered token pair to its pair id. Registration (the factory) is an
external collaborator; the engine only resolves through this interface and
never caches the answer.
"""

from __future__ import annotations

import threading
from typing import Dict, Optional, Protocol, Tuple

from ..errors import PairNotFound
from ..state.balances import PairId, TokenId
from ..state.pairs import canonical_pair, compute_pair_id


class PairDirectory(Protocol):
    def lookup(self, token_a: TokenId, token_b: TokenId) -> Optional[PairId]:
        ...

    def register(self, token_a: TokenId, token_b: TokenId) -> PairId:
        ...


class InMemoryPairDirectory:
    """Directory backed by a dict; ids are the deterministic `compute_pair_id`."""

    def __init__(self) -> None:
        self._pairs: Dict[Tuple[TokenId, TokenId], PairId] = {}
        self._lock = threading.Lock()

    def lookup(self, token_a: TokenId, token_b: TokenId) -> Optional[PairId]:
        return self._pairs.get(canonical_pair(token_a, token_b))

    def register(self, token_a: TokenId, token_b: TokenId) -> PairId:
        key = canonical_pair(token_a, token_b)
        with self._lock:
            pair_id = self._pairs.get(key)
            if pair_id is None:
                pair_id = compute_pair_id(*key)
                self._pairs[key] = pair_id
            return pair_id

    def __len__(self) -> int:
        return len(self._pairs)


def resolve(directory: PairDirectory, token_a: TokenId, token_b: TokenId) -> PairId:
    pair_id = directory.lookup(token_a, token_b)
    if pair_id is None:
        raise PairNotFound(f"no pair registered for ({token_a}, {token_b})")
    return pair_id
