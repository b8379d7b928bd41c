"""
Core package.

Domain models, the exception hierarchy and small numeric helpers.
"""

from flashsim.core.errors import (
    AuthenticationError,
    ConfigError,
    ExecutionError,
    FleetInitializationError,
    MarketDataError,
    SimulationError,
)
from flashsim.core.models import Order, OrderKind, OrderMatch, OrderSide, OrderStatus, Ticker, TradingPair
from flashsim.core.utils import apply_variance, now_ms, random_between, round_to_decimals

__all__ = [
    "AuthenticationError",
    "ConfigError",
    "ExecutionError",
    "FleetInitializationError",
    "MarketDataError",
    "SimulationError",
    "Order",
    "OrderKind",
    "OrderMatch",
    "OrderSide",
    "OrderStatus",
    "Ticker",
    "TradingPair",
    "apply_variance",
    "now_ms",
    "random_between",
    "round_to_decimals",
]
