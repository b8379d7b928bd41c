"""
Monitoring package.

Prometheus metrics for the bot fleet.
"""

from flashsim.monitoring.metrics import SimMetrics, start_metrics_server

__all__ = [
    "SimMetrics",
    "start_metrics_server",
]
