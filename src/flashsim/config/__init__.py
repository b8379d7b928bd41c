"""
Configuration package.

This package contains settings loading, pair overrides and validation.
"""

from flashsim.config.config import (
    MarketMakerConfig,
    MarketTakerConfig,
    PairConfig,
    Settings,
    StrategyProbabilities,
)
from flashsim.config.config_validator import ConfigValidator, validate_and_log
from flashsim.config.pairs_config import build_pairs, load_pairs

__all__ = [
    "MarketMakerConfig",
    "MarketTakerConfig",
    "PairConfig",
    "Settings",
    "StrategyProbabilities",
    "ConfigValidator",
    "validate_and_log",
    "build_pairs",
    "load_pairs",
]
