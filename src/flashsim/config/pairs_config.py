"""Load trading pairs and their maker/taker overrides from YAML.

File path via env `SIM_PAIRS_CONFIG`, default `configs/pairs.yaml`. Layout:

    defaults:
      market_maker: {depth_levels: 10}
      market_taker: {base_order_size: 0.02}
    pairs:
      - symbol: BTC-USDB
        base: BTC
        quote: USDB
        market_symbol: BTC/USD
        volatility_estimate: 0.02
        market_maker: {base_size_per_level: 0.05}

Overrides are resolved onto the typed defaults once, here; bots only ever see
the resulting frozen ``PairConfig``.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Mapping

import yaml

from flashsim.config.config import (
    DEFAULT_VOLATILITY_ESTIMATE,
    MarketMakerConfig,
    MarketTakerConfig,
    PairConfig,
)
from flashsim.core.errors import ConfigError
from flashsim.core.models import TradingPair

BUILTIN_PAIRS: List[Dict[str, Any]] = [
    {
        "symbol": "BTC-USDB",
        "base": "BTC",
        "quote": "USDB",
        "market_symbol": "BTC/USD",
        "volatility_estimate": 0.02,
        "market_maker": {"base_size_per_level": 0.05},
        "market_taker": {"base_order_size": 0.01},
    },
    {
        "symbol": "BTC-EURB",
        "base": "BTC",
        "quote": "EURB",
        "market_symbol": "BTC/EUR",
        "volatility_estimate": 0.025,
        "market_maker": {"base_size_per_level": 0.04},
        "market_taker": {"base_order_size": 0.008},
    },
]

_PAIR_KEYS = {"symbol", "base", "quote", "market_symbol", "volatility_estimate", "market_maker", "market_taker"}


def _mapping(value: Any, where: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigError(f"{where}: expected a mapping, got {type(value).__name__}")
    return value


def build_pairs(data: Mapping[str, Any]) -> List[TradingPair]:
    """Resolve a parsed pairs document into TradingPair objects."""
    defaults = _mapping(data.get("defaults"), "defaults")
    maker_defaults = MarketMakerConfig().with_overrides(_mapping(defaults.get("market_maker"), "defaults.market_maker"))
    taker_defaults = MarketTakerConfig().with_overrides(_mapping(defaults.get("market_taker"), "defaults.market_taker"))

    raw_pairs = data.get("pairs")
    if not isinstance(raw_pairs, list) or not raw_pairs:
        raise ConfigError("pairs: expected a non-empty list")

    pairs: List[TradingPair] = []
    seen = set()
    for idx, raw in enumerate(raw_pairs):
        where = f"pairs[{idx}]"
        raw = _mapping(raw, where)
        unknown = sorted(set(raw) - _PAIR_KEYS)
        if unknown:
            raise ConfigError(f"{where}: unknown keys {unknown}")
        try:
            symbol = str(raw["symbol"])
            base = str(raw["base"])
            quote = str(raw["quote"])
            market_symbol = str(raw["market_symbol"])
        except KeyError as exc:
            raise ConfigError(f"{where}: missing required key {exc.args[0]!r}") from exc
        if symbol in seen:
            raise ConfigError(f"{where}: duplicate pair symbol {symbol}")
        seen.add(symbol)
        try:
            volatility = float(raw.get("volatility_estimate") or DEFAULT_VOLATILITY_ESTIMATE)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"{where}.volatility_estimate: {exc}") from exc

        config = PairConfig(
            market_maker=maker_defaults.with_overrides(_mapping(raw.get("market_maker"), f"{where}.market_maker")),
            market_taker=taker_defaults.with_overrides(_mapping(raw.get("market_taker"), f"{where}.market_taker")),
            volatility_estimate=volatility,
        )
        pairs.append(
            TradingPair(
                symbol=symbol,
                base_asset=base,
                quote_asset=quote,
                market_symbol=market_symbol,
                config=config,
            )
        )
    return pairs


def load_pairs(path: str | None = None) -> List[TradingPair]:
    if path is None:
        path = os.getenv("SIM_PAIRS_CONFIG", "configs/pairs.yaml")
    p = Path(path)
    if not p.exists():
        return build_pairs({"pairs": BUILTIN_PAIRS})
    try:
        with p.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"cannot read pairs file {p}: {exc}") from exc
    return build_pairs(_mapping(data, str(p)))
