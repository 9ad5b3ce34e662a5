"""
epicrunner: Autonomous Epic Runner

Drives a CLI-based coding agent through the open tasks of a single epic, one
attempt at a time, with per-attempt timeouts, a consecutive-failure circuit
breaker, and publication of tracker and git state after every success.
"""

__version__ = "0.1.0"

from epicrunner.core.exceptions import EpicRunnerError

__all__ = ["EpicRunnerError", "__version__"]
