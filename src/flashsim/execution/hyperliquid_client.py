"""
Execution client backed by the Hyperliquid SDK.

- Authentication derives a wallet from the agent's private key and builds a
  signed ``Exchange`` for it; any failure is an AuthenticationError.
- Orders go to the spot book named ``BASE/QUOTE``. Limit orders rest GTC,
  market orders use ``market_open``.
- Cancels are one ``bulk_cancel`` call per batch.
- The blocking SDK is driven through ``AsyncExchange`` so calls never block
  the event loop.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from eth_account import Account
from hyperliquid.exchange import Exchange

from flashsim.core.errors import AuthenticationError, ExecutionError
from flashsim.core.models import OrderKind, OrderSide
from flashsim.execution.client import SubmitResult
from flashsim.infra.async_execution import AsyncExchange
from flashsim.infra.logging_cfg import DEBUG, INFO, log_event

log = logging.getLogger("flashsim")

LIMIT_GTC = {"limit": {"tif": "Gtc"}}


def _default_exchange_factory(wallet, base_url: str):
    return Exchange(wallet, base_url)


def extract_statuses(resp: Any) -> List[Any]:
    if not isinstance(resp, dict):
        return []
    payload: Any = resp.get("response", resp)
    if isinstance(payload, dict) and "data" in payload:
        payload = payload.get("data", payload)
    statuses = payload.get("statuses") if isinstance(payload, dict) else None
    return statuses if isinstance(statuses, list) else []


def extract_error(resp: Any) -> Optional[str]:
    """
    Error message from a response, or None when it was accepted.

    Hyperliquid reports rejections either as ``{"status": "err", ...}`` or as
    an ``{"error": "..."}`` entry in the statuses list.
    """
    if not isinstance(resp, dict):
        return f"unexpected response: {resp!r}"
    if resp.get("status") == "err":
        return str(resp.get("response", resp))
    for st in extract_statuses(resp):
        if isinstance(st, dict) and st.get("error"):
            return str(st.get("error"))
    return None


def extract_order_ids(resp: Any) -> List[str]:
    """
    Venue order ids from an order response, resting or filled.

        {"status":"ok","response":{"data":{"statuses":[{"resting":{"oid":123}}]}}}
    """
    ids: List[str] = []
    for st in extract_statuses(resp):
        if not isinstance(st, dict):
            continue
        for key in ("resting", "filled"):
            entry = st.get(key)
            if isinstance(entry, dict) and entry.get("oid") is not None:
                ids.append(str(entry["oid"]))
                break
    return ids


class HyperliquidExecutionClient:
    """One authenticated venue account (the maker and the taker each own one)."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        exchange_factory: Optional[Callable[[Any, str], Any]] = None,
        label: str = "",
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self.label = label
        self._exchange_factory = exchange_factory or _default_exchange_factory
        self._exchange: Optional[AsyncExchange] = None
        self.address: Optional[str] = None
        # venue id -> spot market name, needed by bulk_cancel
        self._coins: Dict[str, str] = {}

    async def initialize(self, credential: str) -> None:
        if not credential:
            raise AuthenticationError(f"{self.label or 'execution client'}: missing private key")
        try:
            wallet = Account.from_key(credential)
        except Exception as exc:
            raise AuthenticationError(f"{self.label or 'execution client'}: invalid private key") from exc
        loop = asyncio.get_running_loop()
        try:
            # Exchange() fetches venue metadata over HTTP on construction.
            exchange = await loop.run_in_executor(None, self._exchange_factory, wallet, self.base_url)
        except Exception as exc:
            raise AuthenticationError(f"{self.label or 'execution client'}: venue session failed: {exc}") from exc
        self._exchange = AsyncExchange(exchange, timeout=self.timeout)
        self.address = wallet.address
        log_event(log, "execution_authenticated", level=INFO, agent=self.label, address=self.address, venue=self.base_url)

    def is_authenticated(self) -> bool:
        return self._exchange is not None

    def _require(self) -> AsyncExchange:
        if self._exchange is None:
            raise ExecutionError("execution client is not authenticated")
        return self._exchange

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
        exchange = self._require()
        name = f"{base_asset}/{quote_asset}"
        if stp_mode and stp_mode != "IGNORE":
            log_event(log, "stp_mode_unsupported", level=DEBUG, agent=self.label, stp_mode=stp_mode)
        try:
            if kind is OrderKind.MARKET:
                resp = await exchange.market_open(name, side.is_buy, quantity, None)
            else:
                if price is None:
                    raise ExecutionError("limit order without price")
                resp = await exchange.order(name, side.is_buy, quantity, price, LIMIT_GTC)
        except ExecutionError:
            raise
        except Exception as exc:
            raise ExecutionError(f"submit failed: {exc}") from exc
        err = extract_error(resp)
        if err:
            raise ExecutionError(f"order rejected: {err}")
        ids = extract_order_ids(resp)
        if kind is OrderKind.LIMIT:
            for oid in ids:
                self._coins[oid] = name
        return SubmitResult(order_ids=ids, raw=resp)

    async def cancel_orders(self, order_ids: Sequence[str]) -> None:
        exchange = self._require()
        if not order_ids:
            return
        requests = [{"coin": self._coin_for(oid), "oid": int(oid)} for oid in order_ids]
        try:
            resp = await exchange.bulk_cancel(requests)
        except Exception as exc:
            raise ExecutionError(f"cancel failed: {exc}") from exc
        err = extract_error(resp)
        if err:
            raise ExecutionError(f"cancel rejected: {err}")
        for oid in order_ids:
            self._coins.pop(oid, None)

    def _coin_for(self, order_id: str) -> str:
        coin = self._coins.get(order_id)
        if coin is None:
            raise ExecutionError(f"unknown market for order {order_id}")
        return coin

    async def close(self) -> None:
        if self._exchange is not None:
            await self._exchange.close(wait=False)
            self._exchange = None
