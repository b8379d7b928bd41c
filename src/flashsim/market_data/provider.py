"""
Reference-market ticker source.

``KrakenTickerProvider`` talks to Kraken's public REST API over HTTP/2:
- ``initialize()`` loads the tradable pairs once (``/0/public/AssetPairs``)
  and fails loudly; the fleet cannot run without reference prices.
- ``fetch_ticker(symbol)`` never raises. An unknown symbol, a transport or
  API error and an incomplete ticker each log their own event and return
  None so the calling cycle is skipped.

Kraken names bitcoin ``XBT``; unified symbols such as ``BTC/USD`` are
aliased on lookup.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol, runtime_checkable

import httpx

from flashsim.core.errors import MarketDataError
from flashsim.core.models import Ticker
from flashsim.core.utils import now_ms
from flashsim.infra.logging_cfg import ERROR, INFO, WARNING, log_event

log = logging.getLogger("flashsim")

ASSET_ALIASES = {"BTC": "XBT", "DOGE": "XDG"}


@runtime_checkable
class MarketDataProvider(Protocol):
    async def initialize(self) -> None:
        ...

    async def fetch_ticker(self, market_symbol: str) -> Optional[Ticker]:
        ...

    async def close(self) -> None:
        ...


def _kraken_name(market_symbol: str) -> str:
    base, _, quote = market_symbol.upper().partition("/")
    return f"{ASSET_ALIASES.get(base, base)}/{ASSET_ALIASES.get(quote, quote)}"


def _first_float(field: Any) -> Optional[float]:
    if not isinstance(field, list) or not field:
        return None
    try:
        value = float(field[0])
    except (TypeError, ValueError):
        return None
    return value if value > 0 else None


class KrakenTickerProvider:
    def __init__(
        self,
        base_url: str = "https://api.kraken.com",
        timeout: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        # A shared client is not closed by close(); one we build ourselves is.
        if client is not None:
            self.client = client
            self._owns_client = False
        else:
            self.client = httpx.AsyncClient(base_url=self.base_url, http2=True, timeout=timeout)
            self._owns_client = True
        # "XBT/USD" -> "XXBTZUSD"
        self.markets: Dict[str, str] = {}

    async def initialize(self) -> None:
        log_event(log, "market_data_init", level=INFO, exchange="kraken", url=self.base_url)
        try:
            result = await self._get("/0/public/AssetPairs")
        except Exception as exc:
            log_event(log, "market_data_init_failed", level=ERROR, exchange="kraken", err=str(exc))
            raise MarketDataError(f"kraken: could not load markets: {exc}") from exc
        markets: Dict[str, str] = {}
        for key, info in result.items():
            if not isinstance(info, dict):
                continue
            wsname = info.get("wsname")
            if wsname:
                markets[wsname.upper()] = key
        if not markets:
            raise MarketDataError("kraken: no markets returned")
        self.markets = markets
        log_event(log, "market_data_ready", level=INFO, exchange="kraken", markets=len(markets))

    def resolve(self, market_symbol: str) -> Optional[str]:
        return self.markets.get(_kraken_name(market_symbol))

    async def fetch_ticker(self, market_symbol: str) -> Optional[Ticker]:
        if not self.markets:
            log_event(log, "ticker_unavailable", level=WARNING, symbol=market_symbol, reason="not_initialized")
            return None
        pair_key = self.resolve(market_symbol)
        if pair_key is None:
            log_event(log, "market_symbol_unknown", level=WARNING, symbol=market_symbol, exchange="kraken")
            return None
        try:
            result = await self._get("/0/public/Ticker", params={"pair": pair_key})
        except Exception as exc:
            log_event(log, "ticker_fetch_error", level=ERROR, symbol=market_symbol, err=str(exc))
            return None
        data = result.get(pair_key)
        if not isinstance(data, dict) and len(result) == 1:
            data = next(iter(result.values()))
        if not isinstance(data, dict):
            log_event(log, "ticker_incomplete", level=WARNING, symbol=market_symbol)
            return None
        bid = _first_float(data.get("b"))
        ask = _first_float(data.get("a"))
        if bid is None or ask is None:
            log_event(log, "ticker_incomplete", level=WARNING, symbol=market_symbol)
            return None
        last = _first_float(data.get("c"))
        return Ticker(
            symbol=market_symbol,
            bid=bid,
            ask=ask,
            last=last if last is not None else bid,
            timestamp_ms=now_ms(),
        )

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def _get(self, path: str, params: Optional[dict] = None) -> Dict[str, Any]:
        resp = await self.client.get(path, params=params)
        resp.raise_for_status()
        data = resp.json()
        # Kraken wraps everything as {"error": [...], "result": {...}}
        errors = data.get("error") if isinstance(data, dict) else None
        if errors:
            raise MarketDataError("; ".join(str(e) for e in errors))
        result = data.get("result") if isinstance(data, dict) else None
        if not isinstance(result, dict):
            raise MarketDataError(f"unexpected payload from {path}")
        return result
