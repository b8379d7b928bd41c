"""
Tests for the jittered Scheduler.
"""
import asyncio
import random

import pytest

from flashsim.orchestrator.scheduler import Scheduler, SchedulerState


class CycleRecorder:
    def __init__(self, fail=False):
        self.calls = 0
        self.fail = fail

    async def __call__(self):
        self.calls += 1
        if self.fail:
            raise RuntimeError("boom")


class TestDelays:
    def test_jitter_within_variance(self):
        s = Scheduler("t", CycleRecorder(), interval_ms=1000, variance=0.3, rng=random.Random(3))
        delays = [s.next_delay_ms() for _ in range(500)]
        assert all(700 <= d <= 1300 for d in delays)
        assert max(delays) - min(delays) > 100

    def test_no_variance_is_exact(self):
        s = Scheduler("t", CycleRecorder(), interval_ms=250, variance=0.0)
        assert s.next_delay_ms() == 250


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_runs_cycles_until_stopped(self):
        cycle = CycleRecorder()
        s = Scheduler("t", cycle, interval_ms=10)
        assert s.state is SchedulerState.STOPPED
        s.start(0)
        assert s.state is SchedulerState.SCHEDULED
        await asyncio.sleep(0.1)
        s.stop()
        assert s.state is SchedulerState.STOPPED
        await s.wait_stopped()
        seen = cycle.calls
        assert seen >= 2
        await asyncio.sleep(0.05)
        assert cycle.calls == seen

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self):
        s = Scheduler("t", CycleRecorder(), interval_ms=10)
        s.stop()
        s.start(0)
        s.stop()
        s.stop()
        await s.wait_stopped()
        await s.wait_stopped()
        assert s.state is SchedulerState.STOPPED

    @pytest.mark.asyncio
    async def test_stop_cancels_pending_wake(self):
        cycle = CycleRecorder()
        s = Scheduler("t", cycle, interval_ms=10)
        s.start(5000)
        await asyncio.sleep(0.01)
        s.stop()
        await asyncio.wait_for(s.wait_stopped(), timeout=1.0)
        assert cycle.calls == 0

    @pytest.mark.asyncio
    async def test_start_while_running_is_noop(self):
        cycle = CycleRecorder()
        s = Scheduler("t", cycle, interval_ms=1000)
        s.start(0)
        first_task = s._task
        s.start(0)
        assert s._task is first_task
        await asyncio.sleep(0.05)
        s.stop()
        await s.wait_stopped()
        assert cycle.calls == 1

    @pytest.mark.asyncio
    async def test_cycle_errors_do_not_stop_loop(self):
        cycle = CycleRecorder(fail=True)
        s = Scheduler("t", cycle, interval_ms=5)
        s.start(0)
        await asyncio.sleep(0.08)
        s.stop()
        await s.wait_stopped()
        assert cycle.calls >= 2
        assert s.cycles_run == cycle.calls

    @pytest.mark.asyncio
    async def test_in_flight_cycle_completes_and_is_not_rescheduled(self):
        entered = asyncio.Event()
        release = asyncio.Event()
        done = []

        async def slow_cycle():
            entered.set()
            await release.wait()
            done.append(True)

        s = Scheduler("t", slow_cycle, interval_ms=1)
        s.start(0)
        await asyncio.wait_for(entered.wait(), timeout=1.0)
        assert s.state is SchedulerState.RUNNING
        s.stop()
        assert s.state is SchedulerState.STOPPED
        release.set()
        await s.wait_stopped()
        assert done == [True]
        assert s.cycles_run == 1

    @pytest.mark.asyncio
    async def test_cycles_never_overlap(self):
        active = 0
        peak = 0

        async def cycle():
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1

        s = Scheduler("t", cycle, interval_ms=0)
        s.start(0)
        await asyncio.sleep(0.1)
        s.stop()
        await s.wait_stopped()
        assert peak == 1

    @pytest.mark.asyncio
    async def test_can_restart_after_stop(self):
        cycle = CycleRecorder()
        s = Scheduler("t", cycle, interval_ms=1000)
        s.start(0)
        await asyncio.sleep(0.02)
        s.stop()
        await s.wait_stopped()
        s.start(0)
        await asyncio.sleep(0.02)
        s.stop()
        await s.wait_stopped()
        assert cycle.calls == 2

    @pytest.mark.asyncio
    async def test_each_run_owns_its_stop_event(self):
        cycle = CycleRecorder()
        s = Scheduler("t", cycle, interval_ms=10)
        s.start(0)
        await asyncio.sleep(0.02)
        first_event = s._stop_event
        s.stop()
        await s.wait_stopped()
        s.start(0)
        assert s._stop_event is not first_event
        assert first_event.is_set()
        await asyncio.sleep(0.05)
        assert s.is_running
        calls = cycle.calls
        s.stop()
        await s.wait_stopped()
        assert s.state is SchedulerState.STOPPED
        assert calls >= 2
