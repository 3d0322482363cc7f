"""
Deterministic pair state commitment (v1).

Independent quoting and settlement engines replicate the same pair; comparing
this root is the cheap way to check they agree byte-for-byte on reserves,
supply, accumulators and fee/flash configuration.
"""

from __future__ import annotations

from .canonical import domain_sep_bytes, encode_str, encode_uvarint, sha256_hex
from .pairs import PairState


STATE_ROOT_VERSION = 1


def encode_pair_state(pair: PairState) -> bytes:
    """Length-prefixed binary encoding of every field of `pair`, in declaration order."""
    fee = pair.fee_state
    flash = pair.flash_loan_config
    parts = [
        encode_str(pair.pair_id),
        encode_str(pair.token0),
        encode_str(pair.token1),
        encode_uvarint(pair.reserve0),
        encode_uvarint(pair.reserve1),
        encode_uvarint(pair.total_supply),
        encode_uvarint(pair.price0_cumulative_last),
        encode_uvarint(pair.price1_cumulative_last),
        encode_uvarint(pair.block_timestamp_last),
        encode_uvarint(fee.current_fee_bps),
        encode_uvarint(fee.fee_min_bps),
        encode_uvarint(fee.fee_max_bps),
        encode_uvarint(fee.baseline_fee_bps),
        encode_uvarint(fee.ema_alpha_bps),
        encode_uvarint(flash.flash_fee_bps),
        encode_uvarint(flash.flash_fee_floor_bps),
        encode_uvarint(1 if flash.locked else 0),
    ]
    return b"".join(parts)


def pair_state_root(pair: PairState) -> str:
    return sha256_hex(domain_sep_bytes("pair_state", version=STATE_ROOT_VERSION) + encode_pair_state(pair))
