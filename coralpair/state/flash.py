"""Flash-loan policy record (read-only to the pricing core)."""

from __future__ import annotations

from dataclasses import dataclass


BPS_DENOM = 10_000


@dataclass(frozen=True)
class FlashLoanConfig:
    """
    Attributes:
        flash_fee_bps: Fee charged on each borrowed amount, in basis points
        flash_fee_floor_bps: Minimum rate; the charged rate never drops below it
        locked: When True, new flash borrows are rejected
    """

    flash_fee_bps: int = 9
    flash_fee_floor_bps: int = 5
    locked: bool = False

    def __post_init__(self) -> None:
        for name, val in (
            ("flash_fee_bps", self.flash_fee_bps),
            ("flash_fee_floor_bps", self.flash_fee_floor_bps),
        ):
            if not isinstance(val, int) or isinstance(val, bool):
                raise TypeError(f"{name} must be an int")
            if not (0 <= val <= BPS_DENOM):
                raise ValueError(f"{name} must be in [0, {BPS_DENOM}]: {val}")
        if not isinstance(self.locked, bool):
            raise TypeError("locked must be a bool")
