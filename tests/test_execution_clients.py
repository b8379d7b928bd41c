"""
Tests for HyperliquidExecutionClient (SDK mocked) and DryRunExecutionClient.
"""
from unittest.mock import MagicMock

import pytest

from flashsim.core.errors import AuthenticationError, ExecutionError
from flashsim.core.models import OrderKind, OrderSide
from flashsim.execution.client import ExecutionClient
from flashsim.execution.dry_run import DryRunExecutionClient
from flashsim.execution.hyperliquid_client import (
    HyperliquidExecutionClient,
    extract_error,
    extract_order_ids,
)

KEY = "0x" + "4c" * 32


def ok_resting(oid):
    return {"status": "ok", "response": {"type": "order", "data": {"statuses": [{"resting": {"oid": oid}}]}}}


def ok_filled(oid):
    return {"status": "ok", "response": {"type": "order", "data": {"statuses": [{"filled": {"oid": oid, "totalSz": "0.01", "avgPx": "100.1"}}]}}}


class TestResponseParsing:
    def test_resting_and_filled_ids(self):
        assert extract_order_ids(ok_resting(77)) == ["77"]
        assert extract_order_ids(ok_filled(78)) == ["78"]

    def test_error_status(self):
        resp = {"status": "ok", "response": {"data": {"statuses": [{"error": "Insufficient spot balance"}]}}}
        assert extract_error(resp) == "Insufficient spot balance"
        assert extract_order_ids(resp) == []

    def test_err_envelope(self):
        assert extract_error({"status": "err", "response": "bad nonce"}) == "bad nonce"
        assert extract_error(ok_resting(1)) is None


@pytest.fixture
def sdk():
    exchange = MagicMock()
    exchange.order.return_value = ok_resting(1001)
    exchange.market_open.return_value = ok_filled(1002)
    exchange.bulk_cancel.return_value = {"status": "ok", "response": {"data": {"statuses": ["success"]}}}
    return exchange


@pytest.fixture
def client(sdk):
    return HyperliquidExecutionClient("https://api.hyperliquid-testnet.xyz", exchange_factory=lambda wallet, url: sdk, label="maker")


class TestHyperliquidExecutionClient:
    @pytest.mark.asyncio
    async def test_invalid_key_is_auth_error(self):
        c = HyperliquidExecutionClient("https://x", exchange_factory=lambda w, u: MagicMock())
        with pytest.raises(AuthenticationError):
            await c.initialize("not-a-key")
        with pytest.raises(AuthenticationError):
            await c.initialize("")
        assert not c.is_authenticated()

    @pytest.mark.asyncio
    async def test_session_failure_is_auth_error(self):
        def boom(wallet, url):
            raise ConnectionError("venue unreachable")

        c = HyperliquidExecutionClient("https://x", exchange_factory=boom)
        with pytest.raises(AuthenticationError):
            await c.initialize(KEY)

    @pytest.mark.asyncio
    async def test_limit_order(self, client, sdk):
        await client.initialize(KEY)
        assert client.is_authenticated()
        assert isinstance(client, ExecutionClient)
        res = await client.submit_order(OrderSide.BID, "BTC", "USDB", 0.01, 100.0, OrderKind.LIMIT, "IGNORE")
        assert res.order_ids == ["1001"]
        sdk.order.assert_called_once_with("BTC/USDB", True, 0.01, 100.0, {"limit": {"tif": "Gtc"}})

    @pytest.mark.asyncio
    async def test_market_order(self, client, sdk):
        await client.initialize(KEY)
        res = await client.submit_order(OrderSide.ASK, "BTC", "USDB", 0.02, None, OrderKind.MARKET, "IGNORE")
        assert res.first_id == "1002"
        sdk.market_open.assert_called_once_with("BTC/USDB", False, 0.02, None)

    @pytest.mark.asyncio
    async def test_rejected_order_raises(self, client, sdk):
        await client.initialize(KEY)
        sdk.order.return_value = {"status": "ok", "response": {"data": {"statuses": [{"error": "Order has invalid price"}]}}}
        with pytest.raises(ExecutionError):
            await client.submit_order(OrderSide.BID, "BTC", "USDB", 0.01, 100.0, OrderKind.LIMIT, "IGNORE")

    @pytest.mark.asyncio
    async def test_sdk_exception_raises_execution_error(self, client, sdk):
        await client.initialize(KEY)
        sdk.order.side_effect = RuntimeError("timeout")
        with pytest.raises(ExecutionError):
            await client.submit_order(OrderSide.BID, "BTC", "USDB", 0.01, 100.0, OrderKind.LIMIT, "IGNORE")

    @pytest.mark.asyncio
    async def test_batch_cancel(self, client, sdk):
        await client.initialize(KEY)
        await client.submit_order(OrderSide.BID, "BTC", "USDB", 0.01, 100.0, OrderKind.LIMIT, "IGNORE")
        await client.cancel_orders(["1001"])
        sdk.bulk_cancel.assert_called_once_with([{"coin": "BTC/USDB", "oid": 1001}])

    @pytest.mark.asyncio
    async def test_cancel_unknown_order_raises(self, client):
        await client.initialize(KEY)
        with pytest.raises(ExecutionError):
            await client.cancel_orders(["999"])

    @pytest.mark.asyncio
    async def test_not_authenticated(self):
        c = HyperliquidExecutionClient("https://x")
        with pytest.raises(ExecutionError):
            await c.submit_order(OrderSide.BID, "BTC", "USDB", 0.01, 100.0, OrderKind.LIMIT, "IGNORE")


class TestDryRunExecutionClient:
    @pytest.mark.asyncio
    async def test_acknowledges_and_tracks(self):
        c = DryRunExecutionClient(label="maker")
        await c.initialize("")
        a = await c.submit_order(OrderSide.BID, "BTC", "USDB", 0.1, 100.0, OrderKind.LIMIT, "IGNORE")
        b = await c.submit_order(OrderSide.ASK, "BTC", "USDB", 0.1, None, OrderKind.MARKET, "IGNORE")
        assert a.first_id != b.first_id
        assert list(c.open_orders) == [a.first_id]
        await c.cancel_orders([a.first_id])
        assert c.open_orders == {}

    @pytest.mark.asyncio
    async def test_requires_initialize(self):
        c = DryRunExecutionClient()
        with pytest.raises(ExecutionError):
            await c.submit_order(OrderSide.BID, "BTC", "USDB", 0.1, 100.0, OrderKind.LIMIT, "IGNORE")
