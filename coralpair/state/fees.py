"""Dynamic fee state.

`current_fee_bps` is the single derived value; the rest is configuration:
- fee bounds `[fee_min_bps, fee_max_bps]` (clamp applied after every update),
- `baseline_fee_bps`, the level the EMA decays toward with a zero signal,
- `ema_alpha_bps`, the EMA weight in fixed point (10000 = 1.0).
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import InvalidFeeConfig


BPS_DENOM = 10_000
ALPHA_SCALE = 10_000


@dataclass(frozen=True)
class FeeState:
    """Immutable dynamic fee state."""

    current_fee_bps: int = 30
    fee_min_bps: int = 5
    fee_max_bps: int = 100
    baseline_fee_bps: int = 30
    ema_alpha_bps: int = 2000

    def __post_init__(self) -> None:
        for name, val in (
            ("current_fee_bps", self.current_fee_bps),
            ("fee_min_bps", self.fee_min_bps),
            ("fee_max_bps", self.fee_max_bps),
            ("baseline_fee_bps", self.baseline_fee_bps),
            ("ema_alpha_bps", self.ema_alpha_bps),
        ):
            if not isinstance(val, int) or isinstance(val, bool):
                raise TypeError(f"{name} must be an int")
        validate_fee_bounds(
            fee_min_bps=self.fee_min_bps,
            fee_max_bps=self.fee_max_bps,
            baseline_fee_bps=self.baseline_fee_bps,
            ema_alpha_bps=self.ema_alpha_bps,
        )
        if not (self.fee_min_bps <= self.current_fee_bps <= self.fee_max_bps):
            raise InvalidFeeConfig(
                f"current_fee_bps must be in [{self.fee_min_bps}, {self.fee_max_bps}]: {self.current_fee_bps}"
            )


def validate_fee_bounds(*, fee_min_bps: int, fee_max_bps: int, baseline_fee_bps: int, ema_alpha_bps: int) -> None:
    if not (0 <= fee_min_bps < BPS_DENOM):
        raise InvalidFeeConfig(f"fee_min_bps must be in [0, {BPS_DENOM}): {fee_min_bps}")
    if not (0 <= fee_max_bps < BPS_DENOM):
        raise InvalidFeeConfig(f"fee_max_bps must be in [0, {BPS_DENOM}): {fee_max_bps}")
    if fee_min_bps > fee_max_bps:
        raise InvalidFeeConfig(f"fee_min_bps ({fee_min_bps}) > fee_max_bps ({fee_max_bps})")
    if not (fee_min_bps <= baseline_fee_bps <= fee_max_bps):
        raise InvalidFeeConfig(
            f"baseline_fee_bps must be in [{fee_min_bps}, {fee_max_bps}]: {baseline_fee_bps}"
        )
    if not (0 < ema_alpha_bps <= ALPHA_SCALE):
        raise InvalidFeeConfig(f"ema_alpha_bps must be in (0, {ALPHA_SCALE}]: {ema_alpha_bps}")
