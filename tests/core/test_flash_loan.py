# [TESTER] v1

from __future__ import annotations

import pytest

from coralpair.core.flash_loan import (
    effective_flash_fee_bps,
    flash_fee,
    require_unlocked,
    required_repayment,
)
from coralpair.errors import FlashLoansDisabled
from coralpair.state import FlashLoanConfig


def test_effective_rate_respects_floor() -> None:
    assert effective_flash_fee_bps(FlashLoanConfig(flash_fee_bps=9, flash_fee_floor_bps=5)) == 9
    assert effective_flash_fee_bps(FlashLoanConfig(flash_fee_bps=2, flash_fee_floor_bps=5)) == 5


def test_flash_fee_rounds_up() -> None:
    config = FlashLoanConfig()
    assert flash_fee(config, 1_000_000) == 900
    # ceil(1 * 9 / 10_000)
    assert flash_fee(config, 1) == 1
    assert flash_fee(config, 0) == 0
    assert flash_fee(FlashLoanConfig(flash_fee_bps=2, flash_fee_floor_bps=5), 1_000_000) == 500


def test_required_repayment() -> None:
    assert required_repayment(FlashLoanConfig(), 1_000_000) == 1_000_900


def test_flash_fee_rejects_negative() -> None:
    with pytest.raises(ValueError):
        flash_fee(FlashLoanConfig(), -1)


def test_require_unlocked() -> None:
    require_unlocked(FlashLoanConfig())
    with pytest.raises(FlashLoansDisabled):
        require_unlocked(FlashLoanConfig(locked=True))
