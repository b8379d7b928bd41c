"""
Reconciler: diff the maker's resting orders against a freshly desired ladder.

Each cycle the maker hands over its resting-order map (venue id -> order)
and the ladder it would like to show. The reconciler:

1. Classifies every resting order, oldest first, as keep or cancel. An order
   is kept when a not-yet-claimed desired order lies inside the tolerance
   bands AND a uniform draw exceeds ``cancel_replace_ratio``; the matched
   desired order is then claimed so it is not placed again.
2. Cancels everything marked cancel in one batch call. Only a successful
   batch removes entries from the map.
3. Places every unclaimed desired order individually. Only acknowledged
   orders enter the map, keyed by their venue id.

Ownership:
    The map belongs to one maker bot and is only mutated from that bot's
    scheduling loop, so no locking is done here.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from flashsim.core.models import Order, TradingPair
from flashsim.execution.client import ExecutionClient
from flashsim.execution.order_matcher import (
    DEFAULT_MAX_PRICE_DEVIATION,
    DEFAULT_MAX_SIZE_DEVIATION,
    find_best_match,
)
from flashsim.infra.logging_cfg import DEBUG, ERROR, INFO, log_event
from flashsim.monitoring.metrics import SimMetrics

log = logging.getLogger("flashsim")


@dataclass
class Classification:
    """Outcome of step 1, before any venue call."""
    keep_ids: List[str] = field(default_factory=list)
    cancel_ids: List[str] = field(default_factory=list)
    to_place: List[Order] = field(default_factory=list)


@dataclass
class ReconcileResult:
    """Outcome of one reconcile pass."""
    kept: List[Order] = field(default_factory=list)
    cancelled: List[Order] = field(default_factory=list)
    placed: List[Order] = field(default_factory=list)
    cancel_failed: List[Order] = field(default_factory=list)
    place_failed: List[Order] = field(default_factory=list)

    @property
    def churn(self) -> int:
        return len(self.cancelled) + len(self.placed)


class Reconciler:
    """
    Minimal-churn keep/cancel/place decisions for one pair's ladder.

    Usage:
        reconciler = Reconciler(pair, client)
        result = await reconciler.reconcile(resting, ladder, cancel_replace_ratio=0.0)
    """

    def __init__(
        self,
        pair: TradingPair,
        client: ExecutionClient,
        stp_mode: str = "IGNORE",
        max_price_deviation: float = DEFAULT_MAX_PRICE_DEVIATION,
        max_size_deviation: float = DEFAULT_MAX_SIZE_DEVIATION,
        rng: Optional[random.Random] = None,
        metrics: Optional[SimMetrics] = None,
    ) -> None:
        self.pair = pair
        self.client = client
        self.stp_mode = stp_mode
        self.max_price_deviation = max_price_deviation
        self.max_size_deviation = max_size_deviation
        self.rng = rng or random.Random()
        self.metrics = metrics or SimMetrics()

    def classify(
        self,
        resting: Dict[str, Order],
        desired: Sequence[Order],
        cancel_replace_ratio: float,
    ) -> Classification:
        out = Classification()
        # Desired orders are identified by their slot in the batch.
        unclaimed: List[Tuple[int, Order]] = list(enumerate(desired))
        for order_id, existing in resting.items():
            match = find_best_match(
                existing,
                [o for _, o in unclaimed],
                self.max_price_deviation,
                self.max_size_deviation,
            )
            if match is not None and self.rng.random() > cancel_replace_ratio:
                out.keep_ids.append(order_id)
                unclaimed = [(i, o) for i, o in unclaimed if o is not match]
            else:
                out.cancel_ids.append(order_id)
        out.to_place = [o for _, o in unclaimed]
        return out

    async def reconcile(
        self,
        resting: Dict[str, Order],
        desired: Sequence[Order],
        cancel_replace_ratio: float,
    ) -> ReconcileResult:
        plan = self.classify(resting, desired, cancel_replace_ratio)
        result = ReconcileResult(kept=[resting[i] for i in plan.keep_ids])

        if plan.cancel_ids:
            cancelled, failed = await self._cancel_batch(resting, plan.cancel_ids)
            result.cancelled.extend(cancelled)
            result.cancel_failed.extend(failed)

        if plan.to_place:
            log_event(log, "mm_placing", level=DEBUG, pair=self.pair.symbol, count=len(plan.to_place))
        for order in plan.to_place:
            placed = await self._place(order)
            if placed is None:
                result.place_failed.append(order)
                continue
            resting[placed.id] = placed  # type: ignore[index]
            result.placed.append(placed)

        self.metrics.orders_kept.labels(pair=self.pair.symbol).inc(len(result.kept))
        self.metrics.resting_orders.labels(pair=self.pair.symbol).set(len(resting))
        log_event(
            log,
            "mm_update_summary",
            level=INFO,
            pair=self.pair.symbol,
            resting=len(resting),
            cancelled=len(result.cancelled),
            kept=len(result.kept),
            new=len(result.placed),
            cancel_failed=len(result.cancel_failed),
            place_failed=len(result.place_failed),
        )
        return result

    async def cancel_all(self, resting: Dict[str, Order]) -> ReconcileResult:
        """Cancel every resting order in one batch (used when the maker stops)."""
        result = ReconcileResult()
        if not resting:
            return result
        cancelled, failed = await self._cancel_batch(resting, list(resting))
        result.cancelled.extend(cancelled)
        result.cancel_failed.extend(failed)
        self.metrics.resting_orders.labels(pair=self.pair.symbol).set(len(resting))
        return result

    async def _cancel_batch(self, resting: Dict[str, Order], order_ids: List[str]) -> Tuple[List[Order], List[Order]]:
        orders = [resting[i] for i in order_ids]
        try:
            await self.client.cancel_orders(order_ids)
        except Exception as exc:
            self.metrics.order_failures.labels(pair=self.pair.symbol, agent="maker", op="cancel").inc()
            log_event(
                log,
                "mm_cancel_error",
                level=ERROR,
                pair=self.pair.symbol,
                err=str(exc),
                order_ids=order_ids,
            )
            return [], orders
        for order_id, order in zip(order_ids, orders):
            del resting[order_id]
            log_event(
                log,
                "mm_order_cancelled",
                level=DEBUG,
                pair=self.pair.symbol,
                id=order_id,
                side=order.side.value,
                px=order.price,
                sz=order.size,
            )
        self.metrics.orders_cancelled.labels(pair=self.pair.symbol).inc(len(orders))
        return orders, []

    async def _place(self, order: Order) -> Optional[Order]:
        try:
            ack = await self.client.submit_order(
                side=order.side,
                base_asset=self.pair.base_asset,
                quote_asset=self.pair.quote_asset,
                quantity=order.size,
                price=order.price,
                kind=order.kind,
                stp_mode=self.stp_mode,
            )
        except Exception as exc:
            self.metrics.order_failures.labels(pair=self.pair.symbol, agent="maker", op="place").inc()
            log_event(log, "mm_place_error", level=ERROR, pair=self.pair.symbol, err=str(exc), order=order.describe())
            return None
        order_id = ack.first_id
        if not order_id:
            self.metrics.order_failures.labels(pair=self.pair.symbol, agent="maker", op="place").inc()
            log_event(log, "mm_place_no_id", level=ERROR, pair=self.pair.symbol, order=order.describe())
            return None
        placed = order.placed(order_id)
        self.metrics.orders_placed.labels(
            pair=self.pair.symbol, agent="maker", side=order.side.value, kind=order.kind.value
        ).inc()
        log_event(
            log,
            "mm_order_placed",
            level=INFO,
            pair=self.pair.symbol,
            side=order.side.value.upper(),
            sz=f"{order.size:.8f}",
            px=f"{order.price:.5f}" if order.price is not None else None,
            level_no=order.level,
            id=order_id,
        )
        return placed
