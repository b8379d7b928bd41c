"""
Prometheus metrics for the maker/taker fleet.

Organized into: orders, cycles, strategy.
"""

from __future__ import annotations

from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, start_http_server


class SimMetrics:
    """Counters and gauges for every pair and agent role."""

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        reg = registry or CollectorRegistry()
        self.registry = reg

        # === Order Metrics ===
        self.orders_placed = Counter(
            'orders_placed_total',
            'Orders acknowledged by the venue',
            labelnames=['pair', 'agent', 'side', 'kind'],
            registry=reg
        )
        self.orders_cancelled = Counter(
            'orders_cancelled_total',
            'Resting maker orders cancelled',
            labelnames=['pair'],
            registry=reg
        )
        self.orders_kept = Counter(
            'orders_kept_total',
            'Resting maker orders kept across a reconcile',
            labelnames=['pair'],
            registry=reg
        )
        self.order_failures = Counter(
            'order_failures_total',
            'Failed venue calls',
            labelnames=['pair', 'agent', 'op'],
            registry=reg
        )
        self.resting_orders = Gauge(
            'resting_orders',
            'Orders the maker believes are resting',
            labelnames=['pair'],
            registry=reg
        )

        # === Cycle Metrics ===
        self.cycles_total = Counter(
            'cycles_total',
            'Completed bot cycles',
            labelnames=['pair', 'agent'],
            registry=reg
        )
        self.cycles_skipped = Counter(
            'cycles_skipped_total',
            'Cycles that produced no orders',
            labelnames=['pair', 'agent', 'reason'],
            registry=reg
        )
        self.cycle_latency_ms = Histogram(
            'cycle_latency_ms',
            'Wall time of one bot cycle (milliseconds)',
            labelnames=['pair', 'agent'],
            buckets=[5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000],
            registry=reg
        )

        # === Strategy Metrics ===
        self.strategy_selected = Counter(
            'strategy_selected_total',
            'Taker strategy draws',
            labelnames=['pair', 'strategy'],
            registry=reg
        )


def start_metrics_server(metrics: SimMetrics, port: int, addr: str = "0.0.0.0") -> None:
    """Expose ``metrics`` on ``/metrics`` from a background thread."""
    start_http_server(port, addr=addr, registry=metrics.registry)
