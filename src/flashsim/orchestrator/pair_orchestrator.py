"""
PairOrchestrator: lifecycle of one pair's maker + taker.

Start order:
    authenticate both execution clients -> start maker -> warm-up -> start taker
Stop order:
    stop taker -> stop maker (cancels its resting orders) -> close clients

An authentication failure is fatal for this pair only: it propagates to the
fleet, which logs it and carries on with the other pairs.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from flashsim.bots.base import Bot
from flashsim.core.models import TradingPair
from flashsim.infra.logging_cfg import ERROR, INFO, WARNING, log_event

log = logging.getLogger("flashsim")

DEFAULT_WARMUP_SEC = 2.0


class PairOrchestrator:
    def __init__(
        self,
        pair: TradingPair,
        maker: Bot,
        taker: Bot,
        warmup_sec: float = DEFAULT_WARMUP_SEC,
    ) -> None:
        self.pair = pair
        self.maker = maker
        self.taker = taker
        self.warmup_sec = warmup_sec
        self.started = False
        self.error: Optional[Exception] = None

    async def start(self) -> None:
        if self.started:
            return
        log_event(log, "pair_starting", level=INFO, pair=self.pair.symbol, market=self.pair.market_symbol)
        try:
            await self.maker.initialize_client()
            await self.taker.initialize_client()
        except Exception as exc:
            self.error = exc
            log_event(log, "pair_auth_failed", level=ERROR, pair=self.pair.symbol, err=str(exc))
            # the maker may already hold a venue session
            await self._close_clients()
            raise
        self.started = True
        await self.maker.start()
        if self.warmup_sec > 0:
            await asyncio.sleep(self.warmup_sec)
        if not self.started:
            # stopped during warm-up
            return
        await self.taker.start()
        log_event(log, "pair_started", level=INFO, pair=self.pair.symbol)

    async def stop(self) -> None:
        if not self.started:
            return
        self.started = False
        log_event(log, "pair_stopping", level=INFO, pair=self.pair.symbol)
        await self.taker.stop()
        await self.maker.stop()
        await self._close_clients()
        log_event(log, "pair_stopped", level=INFO, pair=self.pair.symbol)

    async def _close_clients(self) -> None:
        for bot in (self.taker, self.maker):
            client = getattr(bot, "client", None)
            if client is None:
                continue
            try:
                await client.close()
            except Exception as exc:
                log_event(log, "client_close_error", level=WARNING, pair=self.pair.symbol, agent=bot.agent, err=str(exc))
