"""
Scheduler: drives one agent's cycles on a jittered interval.

State machine:
    STOPPED -> SCHEDULED -> RUNNING -> SCHEDULED -> ... -> STOPPED

- ``start(initial_delay_ms)`` spawns the loop task; it is a no-op unless the
  scheduler is stopped.
- After every cycle, whether it succeeded or raised, the next wake is
  ``interval * (1 + U(-variance, variance))`` away.
- ``stop()`` is synchronous and idempotent. It wakes a pending sleep
  immediately; a cycle already running completes but is not rescheduled.
- ``wait_stopped()`` returns once the loop task has finished.

Cycles never overlap: one task runs them back to back.
"""

from __future__ import annotations

import asyncio
import logging
import random
from enum import Enum
from typing import Awaitable, Callable, Optional

from flashsim.core.utils import apply_variance
from flashsim.infra.logging_cfg import DEBUG, ERROR, log_event

log = logging.getLogger("flashsim")


class SchedulerState(str, Enum):
    STOPPED = "stopped"
    SCHEDULED = "scheduled"
    RUNNING = "running"


class Scheduler:
    def __init__(
        self,
        name: str,
        cycle: Callable[[], Awaitable[None]],
        interval_ms: float,
        variance: float = 0.0,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.name = name
        self._cycle = cycle
        self.interval_ms = interval_ms
        self.variance = variance
        self.rng = rng or random.Random()
        self._state = SchedulerState.STOPPED
        self._stop_event: Optional[asyncio.Event] = None
        self._task: Optional[asyncio.Task] = None
        self.cycles_run = 0

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is not SchedulerState.STOPPED

    def next_delay_ms(self) -> float:
        return max(0.0, apply_variance(self.interval_ms, self.variance, self.rng))

    def start(self, initial_delay_ms: Optional[float] = None) -> None:
        if self._state is not SchedulerState.STOPPED:
            return
        if self._task is not None and not self._task.done():
            # previous loop still finishing its last cycle
            log_event(log, "scheduler_start_ignored", level=DEBUG, name=self.name)
            return
        delay = self.next_delay_ms() if initial_delay_ms is None else initial_delay_ms
        stop_event = asyncio.Event()
        self._stop_event = stop_event
        self._state = SchedulerState.SCHEDULED
        self._task = asyncio.create_task(self._run(delay, stop_event), name=f"scheduler-{self.name}")

    def stop(self) -> None:
        if self._stop_event is None or self._stop_event.is_set():
            return
        self._stop_event.set()
        self._state = SchedulerState.STOPPED

    async def wait_stopped(self) -> None:
        if self._task is not None:
            await asyncio.wait({self._task})

    async def _run(self, delay_ms: float, stop_event: asyncio.Event) -> None:
        try:
            while not stop_event.is_set():
                self._state = SchedulerState.SCHEDULED
                try:
                    await asyncio.wait_for(stop_event.wait(), timeout=delay_ms / 1000.0)
                    break
                except asyncio.TimeoutError:
                    pass
                self._state = SchedulerState.RUNNING
                try:
                    await self._cycle()
                except Exception as exc:
                    log_event(log, "cycle_error", level=ERROR, exc_info=True, name=self.name, err=str(exc))
                self.cycles_run += 1
                delay_ms = self.next_delay_ms()
        finally:
            self._state = SchedulerState.STOPPED
