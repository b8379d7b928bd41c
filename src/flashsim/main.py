"""
Entry point wiring all components.

    python -m flashsim.main      # or the ``flashsim`` console script

Exit codes: 0 after a graceful SIGINT/SIGTERM shutdown, 1 when configuration,
market data initialization or every pair fails to start.
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from typing import List, Sequence

from flashsim.bots.maker_bot import MarketMakerBot
from flashsim.bots.taker_bot import MarketTakerBot
from flashsim.config.config import Settings
from flashsim.config.config_validator import validate_and_log
from flashsim.config.pairs_config import load_pairs
from flashsim.core.errors import ConfigError, FleetInitializationError, SimulationError
from flashsim.core.models import TradingPair
from flashsim.execution.client import ExecutionClient
from flashsim.execution.dry_run import DryRunExecutionClient
from flashsim.execution.hyperliquid_client import HyperliquidExecutionClient
from flashsim.infra.logging_cfg import ERROR, INFO, WARNING, build_logger, flush_logging, log_event
from flashsim.market_data.provider import KrakenTickerProvider
from flashsim.monitoring.metrics import SimMetrics, start_metrics_server
from flashsim.orchestrator.fleet import FleetCoordinator
from flashsim.orchestrator.pair_orchestrator import PairOrchestrator

log = logging.getLogger("flashsim")


def _execution_client(settings: Settings, label: str) -> ExecutionClient:
    if settings.dry_run:
        return DryRunExecutionClient(label=label)
    return HyperliquidExecutionClient(settings.venue_base_url, timeout=settings.http_timeout, label=label)


def build_fleet(settings: Settings, pairs: Sequence[TradingPair], metrics: SimMetrics) -> FleetCoordinator:
    market_data = KrakenTickerProvider(settings.reference_base_url, timeout=settings.http_timeout)
    orchestrators: List[PairOrchestrator] = []
    for pair in pairs:
        maker = MarketMakerBot(
            pair,
            _execution_client(settings, f"maker:{pair.symbol}"),
            market_data,
            credential=settings.maker_private_key or "",
            stp_mode=settings.stp_mode,
            metrics=metrics,
        )
        taker = MarketTakerBot(
            pair,
            _execution_client(settings, f"taker:{pair.symbol}"),
            market_data,
            credential=settings.taker_private_key or "",
            stp_mode=settings.stp_mode,
            metrics=metrics,
        )
        orchestrators.append(PairOrchestrator(pair, maker, taker, warmup_sec=settings.pair_warmup_sec))
    return FleetCoordinator(market_data, orchestrators, shutdown_grace_sec=settings.shutdown_grace_sec)


async def main(settings: Settings) -> int:
    pairs = load_pairs(settings.pairs_config_path)
    if not validate_and_log(pairs, log):
        return 1

    metrics = SimMetrics()
    if settings.metrics_port > 0:
        start_metrics_server(metrics, settings.metrics_port)
        log_event(log, "metrics_server_started", level=INFO, port=settings.metrics_port)

    fleet = build_fleet(settings, pairs, metrics)
    try:
        await fleet.initialize()
    except FleetInitializationError as exc:
        log_event(log, "startup_aborted", level=ERROR, err=str(exc))
        await fleet.market_data.close()
        return 1

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    # Windows doesn't support add_signal_handler; KeyboardInterrupt is handled in run()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            pass

    log_event(log, "startup", level=INFO, pairs=[p.symbol for p in pairs], dry_run=settings.dry_run)
    try:
        await fleet.start()
        if not fleet.running_pairs:
            log_event(log, "no_pairs_running", level=ERROR, failed=sorted(fleet.failed))
            return 1
        await stop_event.wait()
        log_event(log, "shutdown_signal", level=INFO)
        return 0
    finally:
        await fleet.shutdown()
        log_event(log, "shutdown_complete", level=INFO)


def run() -> None:
    try:
        settings = Settings.load()
    except ConfigError as exc:
        build_logger()
        log_event(log, "config_error", level=ERROR, err=str(exc))
        flush_logging()
        sys.exit(1)

    build_logger(level=settings.log_level_value, file_path=settings.log_file)
    log_event(log, "settings_loaded", level=INFO, **settings.dump())
    if settings.dry_run:
        log_event(log, "dry_run_enabled", level=WARNING)

    try:
        code = asyncio.run(main(settings))
    except KeyboardInterrupt:
        code = 0
    except SimulationError as exc:
        log_event(log, "fatal", level=ERROR, err=str(exc))
        code = 1
    flush_logging()
    sys.exit(code)


if __name__ == "__main__":
    run()
