"""
Integration layer: the pair engine shell, its injected seams, and config loading
"""

from .config import ConfigError, PairConfig, load_pair_config, pair_config_from_mapping
from .directory import InMemoryPairDirectory, PairDirectory
from .pair_engine import PairEngine

__all__ = [
    "ConfigError",
    "InMemoryPairDirectory",
    "PairConfig",
    "PairDirectory",
    "PairEngine",
    "load_pair_config",
    "pair_config_from_mapping",
]
