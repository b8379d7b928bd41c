"""
FleetCoordinator: runs every configured pair side by side.

- ``initialize()`` brings up the shared market data provider; a failure
  aborts startup with FleetInitializationError.
- ``start()`` / ``stop()`` fan out to all pairs concurrently. One pair
  failing to start is logged and does not affect the others.
- ``shutdown()`` stops everything, waits a bounded grace period for log
  flushing and closes the provider.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Sequence

from flashsim.core.errors import FleetInitializationError
from flashsim.infra.logging_cfg import ERROR, INFO, flush_logging, log_event
from flashsim.market_data.provider import MarketDataProvider
from flashsim.orchestrator.pair_orchestrator import PairOrchestrator

log = logging.getLogger("flashsim")


class FleetCoordinator:
    def __init__(
        self,
        market_data: MarketDataProvider,
        pairs: Sequence[PairOrchestrator],
        shutdown_grace_sec: float = 1.0,
    ) -> None:
        self.market_data = market_data
        self.pairs: List[PairOrchestrator] = list(pairs)
        self.shutdown_grace_sec = shutdown_grace_sec
        self.failed: Dict[str, Exception] = {}
        self.initialized = False

    @property
    def running_pairs(self) -> List[str]:
        return [p.pair.symbol for p in self.pairs if p.started]

    async def initialize(self) -> None:
        try:
            await self.market_data.initialize()
        except Exception as exc:
            log_event(log, "fleet_init_failed", level=ERROR, err=str(exc))
            raise FleetInitializationError(f"market data initialization failed: {exc}") from exc
        self.initialized = True
        log_event(log, "fleet_initialized", level=INFO, pairs=[p.pair.symbol for p in self.pairs])

    async def start(self) -> None:
        if not self.initialized:
            await self.initialize()
        results = await asyncio.gather(*(p.start() for p in self.pairs), return_exceptions=True)
        for orchestrator, res in zip(self.pairs, results):
            if isinstance(res, BaseException):
                self.failed[orchestrator.pair.symbol] = res  # type: ignore[assignment]
                log_event(log, "pair_start_failed", level=ERROR, pair=orchestrator.pair.symbol, err=str(res))
        log_event(log, "fleet_started", level=INFO, running=self.running_pairs, failed=sorted(self.failed))

    async def stop(self) -> None:
        results = await asyncio.gather(*(p.stop() for p in self.pairs), return_exceptions=True)
        for orchestrator, res in zip(self.pairs, results):
            if isinstance(res, BaseException):
                log_event(log, "pair_stop_failed", level=ERROR, pair=orchestrator.pair.symbol, err=str(res))
        log_event(log, "fleet_stopped", level=INFO)

    async def shutdown(self) -> None:
        await self.stop()
        if self.shutdown_grace_sec > 0:
            await asyncio.sleep(self.shutdown_grace_sec)
        flush_logging(timeout=self.shutdown_grace_sec or 0.5)
        try:
            await self.market_data.close()
        except Exception as exc:
            log_event(log, "market_data_close_error", level=ERROR, err=str(exc))
