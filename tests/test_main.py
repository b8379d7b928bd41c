"""
Tests for process wiring.
"""
import asyncio
from unittest.mock import MagicMock

import pytest

from flashsim.config.config import Settings
from flashsim.config.pairs_config import BUILTIN_PAIRS, build_pairs
from flashsim.core.errors import MarketDataError
from flashsim.execution.dry_run import DryRunExecutionClient
from flashsim.execution.hyperliquid_client import HyperliquidExecutionClient
from flashsim.main import build_fleet, main, run


def settings(**overrides):
    base = dict(
        pairs_config_path="configs/pairs.yaml",
        reference_base_url="https://api.kraken.com",
        venue_base_url="https://api.hyperliquid-testnet.xyz",
        maker_private_key="0xmaker",
        taker_private_key="0xtaker",
        dry_run=True,
        http_timeout=5.0,
        log_level="info",
        log_file=None,
        metrics_port=0,
        shutdown_grace_sec=0.5,
        pair_warmup_sec=0.0,
        stp_mode="IGNORE",
    )
    base.update(overrides)
    return Settings(**base)


class TestBuildFleet:
    @pytest.mark.asyncio
    async def test_one_orchestrator_per_pair(self, metrics):
        fleet = build_fleet(settings(), build_pairs({"pairs": BUILTIN_PAIRS}), metrics)
        assert [o.pair.symbol for o in fleet.pairs] == ["BTC-USDB", "BTC-EURB"]
        assert fleet.shutdown_grace_sec == 0.5
        for orch in fleet.pairs:
            assert orch.warmup_sec == 0.0
            assert isinstance(orch.maker.client, DryRunExecutionClient)
            assert orch.maker.client is not orch.taker.client
            assert orch.maker.credential == "0xmaker"
            assert orch.taker.credential == "0xtaker"
            assert orch.maker.market_data is fleet.market_data
        await fleet.market_data.close()

    @pytest.mark.asyncio
    async def test_live_mode_uses_venue_client(self, metrics):
        fleet = build_fleet(settings(dry_run=False), build_pairs({"pairs": BUILTIN_PAIRS[:1]}), metrics)
        (orch,) = fleet.pairs
        assert isinstance(orch.maker.client, HyperliquidExecutionClient)
        assert orch.maker.client.base_url == "https://api.hyperliquid-testnet.xyz"
        await fleet.market_data.close()


class StubMarketData:
    def __init__(self, fail=False):
        self.fail = fail
        self.closed = False

    async def initialize(self):
        if self.fail:
            raise MarketDataError("reference exchange unreachable")

    async def fetch_ticker(self, market_symbol):
        return None

    async def close(self):
        self.closed = True


@pytest.fixture
def market_data(monkeypatch):
    def install(fail=False):
        stub = StubMarketData(fail=fail)
        monkeypatch.setattr("flashsim.main.KrakenTickerProvider", lambda *a, **kw: stub)
        return stub

    return install


@pytest.fixture
def signal_handlers(monkeypatch):
    """Captures the callbacks main() registers instead of installing real handlers."""
    handlers = []
    monkeypatch.setattr(
        "asyncio.unix_events._UnixSelectorEventLoop.add_signal_handler",
        lambda self, sig, callback: handlers.append(callback),
    )
    return handlers


def process_settings(tmp_path, **overrides):
    # a missing pairs file falls back to the built-in pairs
    return settings(pairs_config_path=str(tmp_path / "none.yaml"), shutdown_grace_sec=0.0, **overrides)


class TestMain:
    @pytest.mark.asyncio
    async def test_market_data_failure_exits_1(self, tmp_path, market_data, signal_handlers):
        stub = market_data(fail=True)
        assert await main(process_settings(tmp_path)) == 1
        assert stub.closed
        assert signal_handlers == []

    @pytest.mark.asyncio
    async def test_no_pair_started_exits_1(self, tmp_path, market_data, signal_handlers):
        stub = market_data()
        code = await main(process_settings(tmp_path, dry_run=False, maker_private_key="", taker_private_key=""))
        assert code == 1
        assert stub.closed

    @pytest.mark.asyncio
    async def test_signal_shutdown_exits_0(self, tmp_path, market_data, signal_handlers):
        stub = market_data()

        async def deliver_signal():
            while not signal_handlers:
                await asyncio.sleep(0.01)
            await asyncio.sleep(0.05)
            signal_handlers[0]()

        trigger = asyncio.create_task(deliver_signal())
        code = await asyncio.wait_for(main(process_settings(tmp_path)), timeout=5.0)
        await trigger
        assert code == 0
        assert len(signal_handlers) == 2
        assert stub.closed

    @pytest.mark.asyncio
    async def test_invalid_pairs_exit_1(self, tmp_path, market_data):
        stub = market_data()
        path = tmp_path / "pairs.yaml"
        path.write_text(
            "pairs:\n"
            "  - symbol: X-Y\n"
            "    base: X\n"
            "    quote: Y\n"
            "    market_symbol: X/Y\n"
            "    market_maker: {depth_levels: 0}\n"
        )
        assert await main(settings(pairs_config_path=str(path))) == 1
        assert not stub.closed


class TestRun:
    def test_config_error_exits_1(self, monkeypatch):
        monkeypatch.setenv("SIM_LOG_LEVEL", "loud")
        build_logger = MagicMock()
        monkeypatch.setattr("flashsim.main.build_logger", build_logger)
        monkeypatch.setattr("flashsim.main.flush_logging", MagicMock())
        with pytest.raises(SystemExit) as exc_info:
            run()
        assert exc_info.value.code == 1
        build_logger.assert_called_once_with()
