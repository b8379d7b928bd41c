"""
MarketMakerBot: keeps a jittered, volatility-aware ladder resting around the
reference mid.

Each cycle:
1. Fetch the reference ticker; skip the cycle without a two-sided touch.
2. Generate the desired ladder; skip if it cannot be uncrossed.
3. Reconcile the resting-order map against it (keep / cancel / place).

The resting-order map is owned by this bot. Only its own cycle and, once the
scheduler loop has finished, ``stop()`` touch it.
"""

from __future__ import annotations

import logging
import random
import time
from typing import Dict, Optional

from flashsim.core.models import Order, TradingPair
from flashsim.execution.client import ExecutionClient
from flashsim.execution.reconciler import ReconcileResult, Reconciler
from flashsim.infra.logging_cfg import INFO, WARNING, log_event
from flashsim.market_data.provider import MarketDataProvider
from flashsim.monitoring.metrics import SimMetrics
from flashsim.orchestrator.scheduler import Scheduler
from flashsim.strategy.ladder import QuoteLadderGenerator, SpreadModel

log = logging.getLogger("flashsim")

INITIAL_DELAY_MS = 500


class MarketMakerBot:
    agent = "maker"

    def __init__(
        self,
        pair: TradingPair,
        client: ExecutionClient,
        market_data: MarketDataProvider,
        credential: str = "",
        stp_mode: str = "IGNORE",
        metrics: Optional[SimMetrics] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.pair = pair
        self.cfg = pair.config.market_maker
        self.client = client
        self.market_data = market_data
        self.credential = credential
        self.metrics = metrics or SimMetrics()
        self.rng = rng or random.Random()
        self.resting_orders: Dict[str, Order] = {}
        self.spread_model = SpreadModel(self.cfg.base_spread_percentage, self.cfg.spread_volatility_multiplier)
        self.ladder = QuoteLadderGenerator(pair.symbol, self.rng)
        self.reconciler = Reconciler(
            pair,
            client,
            stp_mode=stp_mode,
            max_price_deviation=self.cfg.max_price_deviation,
            max_size_deviation=self.cfg.max_size_deviation,
            rng=self.rng,
            metrics=self.metrics,
        )
        self.scheduler = Scheduler(
            f"maker:{pair.symbol}",
            self.run_cycle,
            interval_ms=self.cfg.update_interval_ms,
            variance=self.cfg.update_interval_variance,
            rng=self.rng,
        )
        log_event(log, "bot_created", level=INFO, agent=self.agent, pair=pair.symbol, config=pair.config.dump()["market_maker"])

    @property
    def is_running(self) -> bool:
        return self.scheduler.is_running

    async def initialize_client(self) -> None:
        await self.client.initialize(self.credential)

    async def start(self) -> None:
        if self.is_running:
            return
        log_event(log, "bot_starting", level=INFO, agent=self.agent, pair=self.pair.symbol)
        self.scheduler.start(INITIAL_DELAY_MS)

    async def stop(self) -> None:
        was_running = self.is_running
        self.scheduler.stop()
        await self.scheduler.wait_stopped()
        if was_running:
            log_event(
                log, "bot_stopping", level=INFO, agent=self.agent, pair=self.pair.symbol, resting=len(self.resting_orders)
            )
        if self.resting_orders:
            await self.reconciler.cancel_all(self.resting_orders)
            if self.resting_orders:
                log_event(
                    log,
                    "mm_stop_orders_remaining",
                    level=WARNING,
                    pair=self.pair.symbol,
                    count=len(self.resting_orders),
                    ids=list(self.resting_orders),
                )

    async def run_cycle(self) -> Optional[ReconcileResult]:
        started = time.perf_counter()
        ticker = await self.market_data.fetch_ticker(self.pair.market_symbol)
        if ticker is None or not ticker.has_touch:
            self.metrics.cycles_skipped.labels(pair=self.pair.symbol, agent=self.agent, reason="no_ticker").inc()
            log_event(log, "ticker_unavailable", level=WARNING, agent=self.agent, pair=self.pair.symbol)
            return None

        ladder = self.ladder.generate(
            mid_price=ticker.mid,
            spread_model=self.spread_model,
            depth_levels=self.cfg.depth_levels,
            base_size_per_level=self.cfg.base_size_per_level,
            size_randomization=self.cfg.size_randomization_factor,
            volatility_estimate=self.pair.config.volatility_estimate,
        )
        if ladder.skipped:
            self.metrics.cycles_skipped.labels(pair=self.pair.symbol, agent=self.agent, reason="crossed").inc()
            log_event(
                log,
                "mm_ladder_crossed",
                level=WARNING,
                pair=self.pair.symbol,
                bid=ladder.best_bid,
                ask=ladder.best_ask,
                reason=ladder.reason,
            )
            return None

        result = await self.reconciler.reconcile(self.resting_orders, ladder.orders, self.cfg.cancel_replace_ratio)
        self.metrics.cycles_total.labels(pair=self.pair.symbol, agent=self.agent).inc()
        self.metrics.cycle_latency_ms.labels(pair=self.pair.symbol, agent=self.agent).observe(
            (time.perf_counter() - started) * 1000
        )
        return result
