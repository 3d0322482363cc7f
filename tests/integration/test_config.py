# [TESTER] v1

from __future__ import annotations

from pathlib import Path

import pytest

from coralpair.errors import InvalidFeeConfig
from coralpair.integration.config import ConfigError, PairConfig, load_pair_config, pair_config_from_mapping


def test_load_pair_config_from_yaml(tmp_path: Path) -> None:
    path = tmp_path / "pair.yaml"
    path.write_text(
        "\n".join(
            [
                "fee:",
                "  initial_fee_bps: 25",
                "  fee_min_bps: 10",
                "  fee_max_bps: 80",
                "  baseline_fee_bps: 25",
                "  ema_alpha_bps: 5000",
                "flash_loan:",
                "  flash_fee_bps: 12",
                "  locked: true",
                "minimum_liquidity: 0",
                "",
            ]
        ),
        encoding="utf-8",
    )
    cfg = load_pair_config(path)
    assert cfg.fee_state.current_fee_bps == 25
    assert (cfg.fee_state.fee_min_bps, cfg.fee_state.fee_max_bps) == (10, 80)
    assert cfg.fee_state.ema_alpha_bps == 5000
    assert cfg.flash_loan_config.flash_fee_bps == 12
    assert cfg.flash_loan_config.flash_fee_floor_bps == 5
    assert cfg.flash_loan_config.locked is True
    assert cfg.minimum_liquidity == 0


def test_empty_file_gives_defaults(tmp_path: Path) -> None:
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert load_pair_config(path) == PairConfig()


def test_unknown_keys_are_rejected() -> None:
    with pytest.raises(ConfigError, match="unknown keys"):
        pair_config_from_mapping({"minimum_liquidty": 5})
    with pytest.raises(ConfigError, match="config.fee"):
        pair_config_from_mapping({"fee": {"fee_bps": 5}})


def test_type_errors_are_config_errors() -> None:
    with pytest.raises(ConfigError):
        pair_config_from_mapping({"flash_loan": {"locked": "yes"}})
    with pytest.raises(ConfigError):
        pair_config_from_mapping({"fee": {"fee_min_bps": 1.5}})
    with pytest.raises(ConfigError):
        pair_config_from_mapping({"fee": []})
    with pytest.raises(ConfigError):
        pair_config_from_mapping({"flash_loan": {"flash_fee_bps": 20_000}})


def test_bad_fee_bounds_raise_invalid_fee_config() -> None:
    with pytest.raises(InvalidFeeConfig):
        pair_config_from_mapping({"fee": {"fee_min_bps": 90, "fee_max_bps": 10}})


def test_negative_minimum_liquidity() -> None:
    with pytest.raises(ValueError):
        PairConfig(minimum_liquidity=-1)


def test_shipped_example_config_matches_defaults() -> None:
    path = Path(__file__).resolve().parents[2] / "config" / "pair.example.yaml"
    assert load_pair_config(path) == PairConfig()
