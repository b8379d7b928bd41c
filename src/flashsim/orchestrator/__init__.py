"""
Orchestrator package.

- Scheduler: jittered cycle loop owned by each bot
- pair_orchestrator.PairOrchestrator: one pair's maker + taker lifecycle
- fleet.FleetCoordinator: all pairs, shared market data
"""

from flashsim.orchestrator.scheduler import Scheduler, SchedulerState

__all__ = ["Scheduler", "SchedulerState"]
