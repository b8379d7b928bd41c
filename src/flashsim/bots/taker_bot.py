"""
MarketTakerBot: places one strategy-driven order per jittered action interval.
"""

from __future__ import annotations

import logging
import random
import time
from typing import Optional

from flashsim.core.models import Order, OrderKind, TradingPair
from flashsim.execution.client import ExecutionClient
from flashsim.infra.logging_cfg import DEBUG, ERROR, INFO, WARNING, log_event
from flashsim.market_data.provider import MarketDataProvider
from flashsim.monitoring.metrics import SimMetrics
from flashsim.orchestrator.scheduler import Scheduler
from flashsim.strategy.taker_strategy import PriceHistory, TakerOrderSynthesizer, choose_strategy

log = logging.getLogger("flashsim")


class MarketTakerBot:
    agent = "taker"

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
        self.cfg = pair.config.market_taker
        self.client = client
        self.market_data = market_data
        self.credential = credential
        self.stp_mode = stp_mode
        self.metrics = metrics or SimMetrics()
        self.rng = rng or random.Random()
        self.history = PriceHistory(self.cfg.momentum_lookback_ticks)
        self.synthesizer = TakerOrderSynthesizer(pair.symbol, self.cfg, self.rng)
        self.scheduler = Scheduler(
            f"taker:{pair.symbol}",
            self.run_cycle,
            interval_ms=self.cfg.avg_action_interval_ms,
            variance=self.cfg.action_interval_variance,
            rng=self.rng,
        )
        log_event(log, "bot_created", level=INFO, agent=self.agent, pair=pair.symbol, config=pair.config.dump()["market_taker"])

    @property
    def is_running(self) -> bool:
        return self.scheduler.is_running

    async def initialize_client(self) -> None:
        await self.client.initialize(self.credential)

    async def start(self) -> None:
        if self.is_running:
            return
        log_event(log, "bot_starting", level=INFO, agent=self.agent, pair=self.pair.symbol)
        # first action after one jittered interval
        self.scheduler.start()

    async def stop(self) -> None:
        was_running = self.is_running
        self.scheduler.stop()
        await self.scheduler.wait_stopped()
        if was_running:
            log_event(log, "bot_stopping", level=INFO, agent=self.agent, pair=self.pair.symbol)

    async def run_cycle(self) -> Optional[Order]:
        started = time.perf_counter()
        ticker = await self.market_data.fetch_ticker(self.pair.market_symbol)
        if ticker is None or not ticker.has_touch or not ticker.last:
            self.metrics.cycles_skipped.labels(pair=self.pair.symbol, agent=self.agent, reason="no_ticker").inc()
            log_event(log, "ticker_unavailable", level=WARNING, agent=self.agent, pair=self.pair.symbol)
            return None

        self.history.push(ticker.last)
        strategy = choose_strategy(self.cfg.strategy_probabilities, self.rng)
        self.metrics.strategy_selected.labels(pair=self.pair.symbol, strategy=strategy.value).inc()
        order = self.synthesizer.generate(strategy, ticker, self.history)
        if order is None:
            self.metrics.cycles_skipped.labels(pair=self.pair.symbol, agent=self.agent, reason="no_signal").inc()
            log_event(log, "taker_no_order", level=DEBUG, pair=self.pair.symbol, strategy=strategy.value)
            return None

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
            self.metrics.order_failures.labels(pair=self.pair.symbol, agent=self.agent, op="place").inc()
            log_event(log, "taker_place_error", level=ERROR, pair=self.pair.symbol, err=str(exc), order=order.describe())
            return None

        self.metrics.cycles_total.labels(pair=self.pair.symbol, agent=self.agent).inc()
        self.metrics.cycle_latency_ms.labels(pair=self.pair.symbol, agent=self.agent).observe(
            (time.perf_counter() - started) * 1000
        )
        order_id = ack.first_id
        if not order_id:
            log_event(log, "taker_place_no_id", level=WARNING, pair=self.pair.symbol, order=order.describe())
            return None
        self.metrics.orders_placed.labels(
            pair=self.pair.symbol, agent=self.agent, side=order.side.value, kind=order.kind.value
        ).inc()
        payload = {"side": order.side.value, "sz": order.size, "strategy": strategy.value, "id": order_id}
        if order.kind is OrderKind.LIMIT:
            payload["px"] = order.price
        log_event(log, f"taker_{order.kind.value}_placed", level=INFO, pair=self.pair.symbol, **payload)
        return order.placed(order_id)
