"""
Environment-driven settings and typed per-pair bot configuration.

Process settings come from the environment (``.env`` is honoured through
python-dotenv). Maker/taker parameters are frozen dataclasses whose defaults
can be overridden field by field from the pairs file; see
``flashsim.config.pairs_config``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, field, fields, replace
from typing import Any, Dict, Mapping, Optional

from dotenv import load_dotenv

from flashsim.core.errors import ConfigError

load_dotenv()

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def env_bool(key: str, default: bool) -> bool:
    val = os.getenv(key)
    if val is None:
        return default
    return val.lower() in {"1", "true", "yes", "y"}


def _coerce(owner: str, name: str, target: Any, value: Any) -> Any:
    """Coerce an override to the type of the field default it replaces."""
    if isinstance(value, bool):
        raise ConfigError(f"{owner}.{name}: expected a number, got {value!r}")
    try:
        if isinstance(target, int):
            if isinstance(value, float) and not value.is_integer():
                raise ValueError("not an integer")
            return int(value)
        if isinstance(target, float):
            return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{owner}.{name}: invalid value {value!r} ({exc})") from exc
    return value


def _apply_overrides(obj: Any, overrides: Optional[Mapping[str, Any]]) -> Any:
    if not overrides:
        return obj
    owner = type(obj).__name__
    known = {f.name for f in fields(obj)}
    unknown = sorted(set(overrides) - known)
    if unknown:
        raise ConfigError(f"{owner}: unknown keys {unknown}")
    changes: Dict[str, Any] = {}
    for name, value in overrides.items():
        current = getattr(obj, name)
        if hasattr(current, "with_overrides"):
            if not isinstance(value, Mapping):
                raise ConfigError(f"{owner}.{name}: expected a mapping, got {value!r}")
            changes[name] = current.with_overrides(value)
        else:
            changes[name] = _coerce(owner, name, current, value)
    return replace(obj, **changes)


# Volatility assumed for pairs that do not set one (zero counts as unset).
DEFAULT_VOLATILITY_ESTIMATE = 0.01


@dataclass(frozen=True)
class StrategyProbabilities:
    random: float = 0.5
    momentum: float = 0.3
    mean_reversion: float = 0.1
    passive_limit: float = 0.1

    def with_overrides(self, overrides: Optional[Mapping[str, Any]]) -> "StrategyProbabilities":
        return _apply_overrides(self, overrides)

    @property
    def total(self) -> float:
        return self.random + self.momentum + self.mean_reversion + self.passive_limit


@dataclass(frozen=True)
class MarketMakerConfig:
    base_spread_percentage: float = 0.001
    spread_volatility_multiplier: float = 1.5
    depth_levels: int = 15
    base_size_per_level: float = 0.1
    size_randomization_factor: float = 0.2
    update_interval_ms: int = 1000
    update_interval_variance: float = 0.3
    # 0 keeps every matching order, 1 cancels and replaces the whole ladder
    cancel_replace_ratio: float = 0.0
    max_price_deviation: float = 0.001
    max_size_deviation: float = 0.1

    def with_overrides(self, overrides: Optional[Mapping[str, Any]]) -> "MarketMakerConfig":
        return _apply_overrides(self, overrides)


@dataclass(frozen=True)
class MarketTakerConfig:
    avg_action_interval_ms: int = 5000
    action_interval_variance: float = 0.2
    market_order_probability: float = 0.6
    base_order_size: float = 0.02
    size_randomization_factor: float = 0.3
    strategy_probabilities: StrategyProbabilities = field(default_factory=StrategyProbabilities)
    momentum_lookback_ticks: int = 3
    mean_reversion_threshold: float = 0.003

    def with_overrides(self, overrides: Optional[Mapping[str, Any]]) -> "MarketTakerConfig":
        return _apply_overrides(self, overrides)


@dataclass(frozen=True)
class PairConfig:
    """Effective configuration for one pair: defaults with pair overrides applied."""
    market_maker: MarketMakerConfig = field(default_factory=MarketMakerConfig)
    market_taker: MarketTakerConfig = field(default_factory=MarketTakerConfig)
    volatility_estimate: float = DEFAULT_VOLATILITY_ESTIMATE

    def dump(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class Settings:
    pairs_config_path: str
    reference_base_url: str
    venue_base_url: str
    maker_private_key: str | None
    taker_private_key: str | None
    dry_run: bool
    http_timeout: float
    log_level: str
    log_file: str | None
    metrics_port: int
    shutdown_grace_sec: float
    pair_warmup_sec: float
    stp_mode: str

    def dump(self) -> dict:
        """Return a dict of settings for logging, with secrets masked."""
        data = self.__dict__.copy()
        for key in ("maker_private_key", "taker_private_key"):
            if data.get(key):
                data[key] = "***"
        return data

    @property
    def log_level_value(self) -> int:
        return LOG_LEVELS[self.log_level]

    @classmethod
    def load(cls) -> "Settings":
        def _int_env(key: str, default: int) -> int:
            raw = os.getenv(key)
            if raw is None or raw == "":
                return default
            try:
                return int(raw)
            except ValueError as exc:
                raise ConfigError(f"{key} must be an integer, got {raw!r}") from exc

        def _float_env(key: str, default: float) -> float:
            raw = os.getenv(key)
            if raw is None or raw == "":
                return default
            try:
                return float(raw)
            except ValueError as exc:
                raise ConfigError(f"{key} must be a number, got {raw!r}") from exc

        cfg = cls(
            pairs_config_path=os.getenv("SIM_PAIRS_CONFIG", "configs/pairs.yaml"),
            reference_base_url=os.getenv("SIM_REFERENCE_URL", "https://api.kraken.com"),
            venue_base_url=os.getenv("SIM_VENUE_URL", "https://api.hyperliquid-testnet.xyz"),
            maker_private_key=os.getenv("SIM_MAKER_PRIVATE_KEY") or None,
            taker_private_key=os.getenv("SIM_TAKER_PRIVATE_KEY") or None,
            dry_run=env_bool("SIM_DRY_RUN", False),
            http_timeout=_float_env("SIM_HTTP_TIMEOUT", 5.0),
            log_level=os.getenv("SIM_LOG_LEVEL", "info").lower(),
            log_file=os.getenv("SIM_LOG_FILE", "flashsim.log") or None,
            metrics_port=_int_env("SIM_METRICS_PORT", 0),
            shutdown_grace_sec=_float_env("SIM_SHUTDOWN_GRACE_SEC", 1.0),
            pair_warmup_sec=_float_env("SIM_PAIR_WARMUP_SEC", 2.0),
            stp_mode=os.getenv("SIM_STP_MODE", "IGNORE"),
        )
        cfg._validate()
        return cfg

    def _validate(self) -> None:
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(f"SIM_LOG_LEVEL must be one of {sorted(LOG_LEVELS)}")
        if self.http_timeout <= 0:
            raise ConfigError("SIM_HTTP_TIMEOUT must be > 0")
        if self.shutdown_grace_sec < 0 or self.pair_warmup_sec < 0:
            raise ConfigError("SIM_SHUTDOWN_GRACE_SEC and SIM_PAIR_WARMUP_SEC must be >= 0")
        if self.metrics_port < 0:
            raise ConfigError("SIM_METRICS_PORT must be >= 0")
        if not self.dry_run and (not self.maker_private_key or not self.taker_private_key):
            raise ConfigError(
                "Live trading requires SIM_MAKER_PRIVATE_KEY and SIM_TAKER_PRIVATE_KEY "
                "(or set SIM_DRY_RUN=1)"
            )
