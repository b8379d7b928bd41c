"""
Execution package.

This package turns desired orders into venue calls:
- ExecutionClient: the venue contract (authenticate, submit, batch cancel)
- HyperliquidExecutionClient / DryRunExecutionClient: concrete clients
- order_matcher: tolerance-band matching of resting vs desired orders
- Reconciler: minimal-churn keep/cancel/place for a maker's ladder
"""

from flashsim.execution.client import ExecutionClient, SubmitResult
from flashsim.execution.dry_run import DryRunExecutionClient
from flashsim.execution.hyperliquid_client import HyperliquidExecutionClient
from flashsim.execution.order_matcher import compare_orders, find_best_match, should_replace
from flashsim.execution.reconciler import ReconcileResult, Reconciler

__all__ = [
    "DryRunExecutionClient",
    "ExecutionClient",
    "HyperliquidExecutionClient",
    "ReconcileResult",
    "Reconciler",
    "SubmitResult",
    "compare_orders",
    "find_best_match",
    "should_replace",
]
