"""
Tests for PairOrchestrator and FleetCoordinator.
"""
import asyncio

import pytest

from flashsim.core.errors import AuthenticationError, FleetInitializationError, MarketDataError
from flashsim.orchestrator.fleet import FleetCoordinator
from flashsim.orchestrator.pair_orchestrator import PairOrchestrator


class MockBot:
    """Records lifecycle calls into a shared journal."""
    def __init__(self, agent, journal, fail_auth=False):
        self.agent = agent
        self.journal = journal
        self.fail_auth = fail_auth
        self.running = False
        self.client = MockClosable(agent, journal)

    @property
    def is_running(self):
        return self.running

    async def initialize_client(self):
        self.journal.append(f"{self.agent}:auth")
        if self.fail_auth:
            raise AuthenticationError(f"{self.agent} bad key")

    async def start(self):
        self.journal.append(f"{self.agent}:start")
        self.running = True

    async def stop(self):
        self.journal.append(f"{self.agent}:stop")
        self.running = False

    async def run_cycle(self):
        return None


class MockClosable:
    def __init__(self, agent, journal):
        self.agent = agent
        self.journal = journal

    async def close(self):
        self.journal.append(f"{self.agent}:close")


class MockMarketData:
    def __init__(self, fail=False):
        self.fail = fail
        self.initialized = False
        self.closed = False

    async def initialize(self):
        if self.fail:
            raise MarketDataError("unreachable")
        self.initialized = True

    async def fetch_ticker(self, market_symbol):
        return None

    async def close(self):
        self.closed = True


def orchestrator(make_pair, symbol="BTC-USDB", fail_auth=None, warmup=0.0):
    journal = []
    maker = MockBot("maker", journal, fail_auth=fail_auth == "maker")
    taker = MockBot("taker", journal, fail_auth=fail_auth == "taker")
    return PairOrchestrator(make_pair(symbol=symbol), maker, taker, warmup_sec=warmup), journal


class TestPairOrchestrator:
    @pytest.mark.asyncio
    async def test_start_order(self, make_pair):
        orch, journal = orchestrator(make_pair)
        await orch.start()
        assert journal == ["maker:auth", "taker:auth", "maker:start", "taker:start"]
        assert orch.started

    @pytest.mark.asyncio
    async def test_stop_order_taker_first(self, make_pair):
        orch, journal = orchestrator(make_pair)
        await orch.start()
        journal.clear()
        await orch.stop()
        assert journal[:2] == ["taker:stop", "maker:stop"]
        assert set(journal[2:]) == {"taker:close", "maker:close"}

    @pytest.mark.asyncio
    async def test_start_and_stop_idempotent(self, make_pair):
        orch, journal = orchestrator(make_pair)
        await orch.start()
        await orch.start()
        assert journal.count("maker:start") == 1
        await orch.stop()
        await orch.stop()
        assert journal.count("maker:stop") == 1

    @pytest.mark.asyncio
    async def test_auth_failure_is_fatal_for_pair(self, make_pair):
        orch, journal = orchestrator(make_pair, fail_auth="taker")
        with pytest.raises(AuthenticationError):
            await orch.start()
        assert "maker:start" not in journal
        assert not orch.started
        assert isinstance(orch.error, AuthenticationError)

    @pytest.mark.asyncio
    async def test_auth_failure_closes_both_clients(self, make_pair):
        orch, journal = orchestrator(make_pair, fail_auth="taker")
        with pytest.raises(AuthenticationError):
            await orch.start()
        assert journal == ["maker:auth", "taker:auth", "taker:close", "maker:close"]

    @pytest.mark.asyncio
    async def test_warmup_between_maker_and_taker(self, make_pair):
        orch, journal = orchestrator(make_pair, warmup=0.2)
        task = asyncio.create_task(orch.start())
        await asyncio.sleep(0.05)
        assert journal[-1] == "maker:start"
        await task
        assert journal[-1] == "taker:start"

    @pytest.mark.asyncio
    async def test_stop_during_warmup_skips_taker(self, make_pair):
        orch, journal = orchestrator(make_pair, warmup=0.2)
        task = asyncio.create_task(orch.start())
        await asyncio.sleep(0.05)
        await orch.stop()
        await task
        assert "taker:start" not in journal
        assert "maker:stop" in journal


class TestFleetCoordinator:
    @pytest.mark.asyncio
    async def test_initialize_failure_aborts(self, make_pair):
        orch, journal = orchestrator(make_pair)
        fleet = FleetCoordinator(MockMarketData(fail=True), [orch], shutdown_grace_sec=0)
        with pytest.raises(FleetInitializationError):
            await fleet.initialize()
        assert journal == []

    @pytest.mark.asyncio
    async def test_failed_pair_does_not_block_others(self, make_pair):
        good, good_journal = orchestrator(make_pair, symbol="BTC-USDB")
        bad, _ = orchestrator(make_pair, symbol="BTC-EURB", fail_auth="maker")
        fleet = FleetCoordinator(MockMarketData(), [bad, good], shutdown_grace_sec=0)
        await fleet.initialize()
        await fleet.start()
        assert fleet.running_pairs == ["BTC-USDB"]
        assert list(fleet.failed) == ["BTC-EURB"]
        assert "taker:start" in good_journal

    @pytest.mark.asyncio
    async def test_start_initializes_when_needed(self, make_pair):
        orch, _ = orchestrator(make_pair)
        md = MockMarketData()
        fleet = FleetCoordinator(md, [orch], shutdown_grace_sec=0)
        await fleet.start()
        assert md.initialized
        assert orch.started

    @pytest.mark.asyncio
    async def test_shutdown_stops_pairs_and_closes_market_data(self, make_pair):
        a, ja = orchestrator(make_pair, symbol="BTC-USDB")
        b, jb = orchestrator(make_pair, symbol="BTC-EURB")
        md = MockMarketData()
        fleet = FleetCoordinator(md, [a, b], shutdown_grace_sec=0.01)
        await fleet.start()
        await fleet.shutdown()
        assert fleet.running_pairs == []
        assert "maker:stop" in ja and "maker:stop" in jb
        assert md.closed
