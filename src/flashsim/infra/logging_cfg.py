"""
Structured logging for the simulator.

Every event is logged as one compact JSON object (see ``log_event``):

    {"event": "mm_order_placed", "pair": "BTC-USDB", "side": "BID", ...}

Sinks:
- console: rich, human oriented, with per-pair throttling of the warnings a
  dead reference feed would otherwise print every cycle
- file: one JSON line per record, event fields lifted to the top level,
  written by a background thread so cycles never wait on disk
"""

from __future__ import annotations

import atexit
import json
import logging
import queue
import sys
import threading
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Set, Tuple

from rich.logging import RichHandler

LOGGER_NAME = "flashsim"

# Level semantics used across the bots
ERROR = logging.ERROR       # auth failures, rejected orders, failed cancel batches
WARNING = logging.WARNING   # skipped cycles, degraded taker orders
INFO = logging.INFO         # lifecycle, placements, per-cycle summaries
DEBUG = logging.DEBUG       # cancels, no-signal cycles, dry-run acks

NOISY_EVENTS = frozenset({"ticker_unavailable", "market_symbol_unknown", "ticker_fetch_error", "ticker_incomplete"})


def parse_event(record: logging.LogRecord) -> Optional[Dict[str, Any]]:
    """The JSON payload of a ``log_event`` record, or None for plain messages."""
    msg = record.getMessage()
    if not msg.startswith("{"):
        return None
    try:
        data = json.loads(msg)
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


class EventJsonFormatter(logging.Formatter):
    """One JSON line per record; event fields sit next to ts/level/logger."""

    def format(self, record: logging.LogRecord) -> str:
        line: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
        }
        event = parse_event(record)
        if event is None:
            line["msg"] = record.getMessage()
        else:
            line.update(event)
        if record.exc_info:
            line["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(line, separators=(",", ":"), default=str)


class BackgroundFileHandler(logging.Handler):
    """
    JSON-lines file sink fed through a bounded queue.

    ``emit`` never blocks: when the writer falls behind, records are dropped
    and the count is reported on close.
    """

    def __init__(self, path: str, max_queue_size: int = 10000):
        super().__init__()
        self.path = path
        self._file = logging.FileHandler(path, encoding="utf-8")
        self._file.setFormatter(EventJsonFormatter())
        self._queue: queue.Queue = queue.Queue(maxsize=max_queue_size)
        self._closing = threading.Event()
        self.dropped = 0
        self._writer = threading.Thread(target=self._drain, daemon=True, name="flashsim-log-writer")
        self._writer.start()
        atexit.register(self.close)

    def emit(self, record: logging.LogRecord) -> None:
        if self._closing.is_set():
            return
        try:
            # Render now: args may be mutated after the call returns.
            record.msg = record.getMessage()
            record.args = None
            self._queue.put_nowait(record)
        except queue.Full:
            self.dropped += 1

    def _drain(self) -> None:
        while not (self._closing.is_set() and self._queue.empty()):
            try:
                record = self._queue.get(timeout=0.1)
            except queue.Empty:
                continue
            try:
                self._file.emit(record)
            except Exception:
                self._file.handleError(record)
            finally:
                self._queue.task_done()

    def flush(self, timeout: float = 2.0) -> None:
        deadline = time.monotonic() + timeout
        while self._queue.unfinished_tasks and time.monotonic() < deadline:
            time.sleep(0.01)
        self._file.flush()

    def close(self) -> None:
        if self._closing.is_set():
            return
        self._closing.set()
        self._writer.join(timeout=2.0)
        if self.dropped:
            sys.stderr.write(f"[flashsim] {self.dropped} log records dropped (writer queue full)\n")
        self._file.close()
        super().close()


class ThrottledFilter(logging.Filter):
    """
    Lets one noisy event through per (event, pair, agent) every ``cooldown_sec``.

    The next record let through after a quiet period carries the number of
    duplicates swallowed in between as ``suppressed``.
    """

    def __init__(self, cooldown_sec: float = 30.0, events: Optional[Set[str]] = None):
        super().__init__()
        self.cooldown_sec = cooldown_sec
        self.events = frozenset(events) if events is not None else NOISY_EVENTS
        self._last_emit: Dict[Tuple[str, str, str], float] = {}
        self._suppressed: Dict[Tuple[str, str, str], int] = {}

    def filter(self, record: logging.LogRecord) -> bool:
        event = parse_event(record)
        if event is None or event.get("event") not in self.events:
            return True
        key = (event["event"], str(event.get("pair") or event.get("symbol") or ""), str(event.get("agent") or ""))
        now = time.monotonic()
        last = self._last_emit.get(key)
        if last is not None and now - last < self.cooldown_sec:
            self._suppressed[key] = self._suppressed.get(key, 0) + 1
            return False
        self._last_emit[key] = now
        skipped = self._suppressed.pop(key, 0)
        if skipped:
            event["suppressed"] = skipped
            record.msg = json.dumps(event, default=str)
            record.args = None
        return True


def build_logger(
    name: str = LOGGER_NAME,
    level: int = logging.INFO,
    file_path: Optional[str] = "flashsim.log",
    throttle_console: bool = True,
) -> logging.Logger:
    """
    Configure the process logger once; later calls only adjust the level.

    Args:
        name: logger name, ``flashsim`` for the process
        level: minimum level for every sink
        file_path: JSON-lines file, None to log to the console only
        throttle_console: throttle noisy market-data warnings on the console
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    if logger.handlers:
        for h in logger.handlers:
            h.setLevel(level)
        return logger

    console = RichHandler(show_path=False, markup=False, rich_tracebacks=False)
    console.setFormatter(logging.Formatter("%(message)s"))
    console.setLevel(level)
    if throttle_console:
        console.addFilter(ThrottledFilter())
    logger.addHandler(console)

    if file_path:
        sink = BackgroundFileHandler(file_path)
        sink.setLevel(level)
        logger.addHandler(sink)

    logger.propagate = False
    return logger


def flush_logging(name: str = LOGGER_NAME, timeout: float = 2.0) -> None:
    """Wait for the background file writer to catch up."""
    for handler in logging.getLogger(name).handlers:
        if isinstance(handler, BackgroundFileHandler):
            handler.flush(timeout=timeout)
        else:
            handler.flush()


def log_event(
    logger: logging.Logger,
    event: str,
    level: int = logging.INFO,
    exc_info: bool = False,
    **data,
) -> None:
    """
    Log ``event`` with its context as a single JSON message.

        log_event(log, "mm_order_placed", pair="BTC-USDB", side="BID", px="100.10078")
    """
    logger.log(level, json.dumps({"event": event, **data}, default=str), exc_info=exc_info)
