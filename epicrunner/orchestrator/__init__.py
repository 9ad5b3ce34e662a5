"""Orchestration layer for running an epic's tasks through the agent.

This package provides the attempt loop, its failure circuit breaker, remote
publication, and the decision oracle used by an outer supervisor.
"""

from .decision import Decision, DecisionOracle
from .epic_runner import EpicRunner, RunOutcome, RunResult, RunState
from .failure_tracker import FailureTracker
from .sync_manager import SyncManager, SyncResult

__all__ = [
    "EpicRunner",
    "RunOutcome",
    "RunResult",
    "RunState",
    "FailureTracker",
    "SyncManager",
    "SyncResult",
    "Decision",
    "DecisionOracle",
]
