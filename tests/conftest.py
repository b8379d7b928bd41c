"""
Pytest configuration and fixtures.
Adds src/ to Python path so tests can import flashsim without installing it.
"""

import random
import sys
from pathlib import Path

import pytest

# Add the repo root's src/ directory to sys.path
repo_root = Path(__file__).parent.parent
src_path = repo_root / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from flashsim.config.config import MarketMakerConfig, MarketTakerConfig, PairConfig  # noqa: E402
from flashsim.core.models import TradingPair  # noqa: E402
from flashsim.monitoring.metrics import SimMetrics  # noqa: E402


def build_pair(symbol="BTC-USDB", maker=None, taker=None, volatility=0.0) -> TradingPair:
    return TradingPair(
        symbol=symbol,
        base_asset="BTC",
        quote_asset=symbol.split("-")[1],
        market_symbol="BTC/USD",
        config=PairConfig(
            market_maker=maker or MarketMakerConfig(),
            market_taker=taker or MarketTakerConfig(),
            volatility_estimate=volatility,
        ),
    )


@pytest.fixture
def make_pair():
    return build_pair


@pytest.fixture
def pair():
    return build_pair()


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def metrics():
    return SimMetrics()
