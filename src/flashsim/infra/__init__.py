"""
Infrastructure package.

This package contains infrastructure components: async SDK execution and
logging configuration.
"""

from flashsim.infra.async_execution import AsyncExchange
from flashsim.infra.logging_cfg import build_logger, flush_logging, log_event

__all__ = [
    "AsyncExchange",
    "build_logger",
    "flush_logging",
    "log_event",
]
