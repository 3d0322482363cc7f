"""
Pair configuration loading.

A config file is a YAML mapping with two optional sections and one scalar:

    fee:
      initial_fee_bps: 30
      fee_min_bps: 5
      fee_max_bps: 100
      baseline_fee_bps: 30
      ema_alpha_bps: 2000
    flash_loan:
      flash_fee_bps: 9
      flash_fee_floor_bps: 5
      locked: false
    minimum_liquidity: 1000

Omitted keys take the defaults above. Unknown keys are rejected (fail-closed)
so a typo never silently falls back to a default.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

from ..kernels.python.lp_math import DEFAULT_MINIMUM_LIQUIDITY
from ..state.fees import FeeState
from ..state.flash import FlashLoanConfig


class ConfigError(ValueError):
    pass


_TOP_LEVEL_KEYS = frozenset({"fee", "flash_loan", "minimum_liquidity"})
_FEE_KEYS = {
    "initial_fee_bps": "current_fee_bps",
    "fee_min_bps": "fee_min_bps",
    "fee_max_bps": "fee_max_bps",
    "baseline_fee_bps": "baseline_fee_bps",
    "ema_alpha_bps": "ema_alpha_bps",
}
_FLASH_KEYS = frozenset({"flash_fee_bps", "flash_fee_floor_bps", "locked"})


@dataclass(frozen=True)
class PairConfig:
    """Initial policy applied to pairs created by the engine."""

    fee_state: FeeState = field(default_factory=FeeState)
    flash_loan_config: FlashLoanConfig = field(default_factory=FlashLoanConfig)
    minimum_liquidity: int = DEFAULT_MINIMUM_LIQUIDITY

    def __post_init__(self) -> None:
        if not isinstance(self.minimum_liquidity, int) or isinstance(self.minimum_liquidity, bool):
            raise TypeError("minimum_liquidity must be an int")
        if self.minimum_liquidity < 0:
            raise ValueError(f"minimum_liquidity must be non-negative: {self.minimum_liquidity}")


def _require_mapping(obj: Any, *, name: str) -> Mapping[str, Any]:
    if obj is None:
        return {}
    if not isinstance(obj, Mapping):
        raise ConfigError(f"{name} must be a mapping")
    return obj


def _reject_unknown(obj: Mapping[str, Any], allowed, *, name: str) -> None:
    unknown = sorted(str(k) for k in obj if k not in allowed)
    if unknown:
        raise ConfigError(f"{name}: unknown keys {unknown}")


def _require_int(value: Any, *, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ConfigError(f"{name} must be an integer")
    return value


def pair_config_from_mapping(obj: Mapping[str, Any]) -> PairConfig:
    root = _require_mapping(obj, name="config")
    _reject_unknown(root, _TOP_LEVEL_KEYS, name="config")

    fee_obj = _require_mapping(root.get("fee"), name="config.fee")
    _reject_unknown(fee_obj, _FEE_KEYS, name="config.fee")
    fee_kwargs = {_FEE_KEYS[k]: _require_int(v, name=f"config.fee.{k}") for k, v in fee_obj.items()}

    flash_obj = _require_mapping(root.get("flash_loan"), name="config.flash_loan")
    _reject_unknown(flash_obj, _FLASH_KEYS, name="config.flash_loan")
    flash_kwargs: dict[str, Any] = {}
    for k, v in flash_obj.items():
        if k == "locked":
            if not isinstance(v, bool):
                raise ConfigError("config.flash_loan.locked must be a boolean")
            flash_kwargs[k] = v
        else:
            flash_kwargs[k] = _require_int(v, name=f"config.flash_loan.{k}")

    minimum_liquidity = _require_int(
        root.get("minimum_liquidity", DEFAULT_MINIMUM_LIQUIDITY), name="config.minimum_liquidity"
    )

    # Bad fee bounds surface as InvalidFeeConfig from FeeState itself.
    fee_state = FeeState(**fee_kwargs)
    try:
        flash_loan_config = FlashLoanConfig(**flash_kwargs)
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc

    return PairConfig(
        fee_state=fee_state,
        flash_loan_config=flash_loan_config,
        minimum_liquidity=minimum_liquidity,
    )


def load_pair_config(path: str | Path) -> PairConfig:
    """Read a YAML pair config file."""
    raw = Path(path).read_text(encoding="utf-8")
    return pair_config_from_mapping(_require_mapping(yaml.safe_load(raw), name="config"))
