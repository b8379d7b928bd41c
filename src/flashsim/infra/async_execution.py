"""
Awaitable facade over the blocking Hyperliquid ``Exchange``.

Signed SDK calls run in a small dedicated thread pool with a per-call
timeout. Submissions are never retried (a timed-out order may still have
reached the book); cancel batches are idempotent and get a short jittered
backoff.
"""

from __future__ import annotations

import asyncio
import logging
import random
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional

from hyperliquid.utils.signing import CancelRequest

from flashsim.infra.logging_cfg import WARNING, log_event

log = logging.getLogger("flashsim")


class AsyncExchange:
    def __init__(self, exchange: Any, timeout: float = 5.0, max_workers: int = 2, cancel_retries: int = 2) -> None:
        self._exchange = exchange
        self._timeout = timeout
        self._cancel_retries = cancel_retries
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="flashsim-venue")

    async def order(self, name: str, is_buy: bool, sz: float, limit_px: float, order_type: Dict[str, Any]) -> Any:
        return await self._run("order", lambda: self._exchange.order(name, is_buy, sz, limit_px, order_type))

    async def market_open(self, name: str, is_buy: bool, sz: float, px: Optional[float] = None) -> Any:
        return await self._run("market_open", lambda: self._exchange.market_open(name, is_buy, sz, px))

    async def bulk_cancel(self, cancel_requests: List[CancelRequest]) -> Any:
        return await self._run("bulk_cancel", lambda: self._exchange.bulk_cancel(cancel_requests), self._cancel_retries)

    async def close(self, wait: bool = True) -> None:
        self._pool.shutdown(wait=wait)

    async def _run(self, op: str, call: Callable[[], Any], retries: int = 0) -> Any:
        loop = asyncio.get_running_loop()
        delay = 0.2
        attempt = 0
        while True:
            try:
                return await asyncio.wait_for(loop.run_in_executor(self._pool, call), timeout=self._timeout)
            except Exception as exc:
                if attempt >= retries:
                    raise
                attempt += 1
                log_event(log, "venue_call_retry", level=WARNING, op=op, attempt=attempt, err=str(exc))
                await asyncio.sleep(delay + random.uniform(0, delay / 2))
                delay *= 2
