"""
Exception hierarchy shared across the simulator.

Only conditions that must halt an agent or the process are raised; recoverable
cycle conditions (missing ticker, crossed ladder, no signal) are logged and
skipped by the callers instead.
"""

from __future__ import annotations


class SimulationError(Exception):
    """Base class for all simulator errors."""


class ConfigError(SimulationError):
    """Invalid or unreadable configuration."""


class AuthenticationError(SimulationError):
    """Execution client could not authenticate. Fatal for the owning agent."""


class ExecutionError(SimulationError):
    """An order submission or cancel request failed at the venue."""


class MarketDataError(SimulationError):
    """The market data provider could not be initialized."""


class FleetInitializationError(SimulationError):
    """Fleet startup aborted before any pair was started."""
