"""
Execution client that acknowledges everything and touches no venue.

Selected with ``SIM_DRY_RUN=1``. Useful for watching the ladder and taker
decisions in the logs without funded accounts.
"""

from __future__ import annotations

import itertools
import logging
from typing import Dict, Optional, Sequence

from flashsim.core.errors import AuthenticationError, ExecutionError
from flashsim.core.models import OrderKind, OrderSide
from flashsim.execution.client import SubmitResult
from flashsim.infra.logging_cfg import DEBUG, log_event

log = logging.getLogger("flashsim")


class DryRunExecutionClient:
    def __init__(self, label: str = "dry-run") -> None:
        self.label = label
        self._authenticated = False
        self._ids = itertools.count(1)
        self.open_orders: Dict[str, dict] = {}

    async def initialize(self, credential: str = "") -> None:
        if credential is None:
            raise AuthenticationError(f"{self.label}: credential required")
        self._authenticated = True

    def is_authenticated(self) -> bool:
        return self._authenticated

    async def submit_order(
        self,
        side: OrderSide,
        base_asset: str,
        quote_asset: str,
        quantity: float,
        price: Optional[float],
        kind: OrderKind,
        stp_mode: str,
    ) -> SubmitResult:
        if not self._authenticated:
            raise ExecutionError(f"{self.label}: not authenticated")
        order_id = f"{self.label}-{next(self._ids)}"
        if kind is OrderKind.LIMIT:
            self.open_orders[order_id] = {
                "market": f"{base_asset}/{quote_asset}",
                "side": side.value,
                "sz": quantity,
                "px": price,
            }
        log_event(
            log,
            "dry_run_submit",
            level=DEBUG,
            agent=self.label,
            id=order_id,
            side=side.value,
            kind=kind.value,
            sz=quantity,
            px=price,
        )
        return SubmitResult(order_ids=[order_id])

    async def cancel_orders(self, order_ids: Sequence[str]) -> None:
        if not self._authenticated:
            raise ExecutionError(f"{self.label}: not authenticated")
        for order_id in order_ids:
            self.open_orders.pop(order_id, None)
        log_event(log, "dry_run_cancel", level=DEBUG, agent=self.label, count=len(order_ids))

    async def close(self) -> None:
        self._authenticated = False
