"""Consecutive-failure circuit breaker for the attempt loop.

An unattended loop driving an autonomous agent must stop when attempts keep
failing. One bad attempt is tolerated; ``threshold`` in a row ends the run.
"""

from typing import List

from ..core.attempt_executor import AttemptStatus

DEFAULT_MAX_CONSECUTIVE_FAILURES = 3


class FailureTracker:
    """Counts consecutive non-successful attempts within one run."""

    def __init__(self, threshold: int = DEFAULT_MAX_CONSECUTIVE_FAILURES):
        """Initialize failure tracker.

        Args:
            threshold: Consecutive timeouts/failures that trigger an abort
        """
        if threshold < 1:
            raise ValueError("threshold must be at least 1")
        self.threshold = threshold
        self._count = 0
        self._history: List[int] = []

    @property
    def count(self) -> int:
        """Current number of consecutive non-successes."""
        return self._count

    @property
    def history(self) -> List[int]:
        """Counter value after each recorded outcome."""
        return list(self._history)

    def record(self, status: AttemptStatus) -> int:
        """Fold one attempt outcome into the counter.

        Returns:
            The counter value after recording
        """
        if status == AttemptStatus.SUCCESS:
            self._count = 0
        else:
            self._count += 1
        self._history.append(self._count)
        return self._count

    def should_abort(self) -> bool:
        return self._count >= self.threshold

    def get_status_message(self, status: AttemptStatus, sequence: int) -> str:
        """Get a human-readable message about an attempt outcome."""
        if status == AttemptStatus.SUCCESS:
            return f"Task {sequence} succeeded"

        if status == AttemptStatus.TIMEOUT:
            msg = f"Task {sequence} timed out"
        else:
            msg = f"Task {sequence} failed"

        if self.should_abort():
            return f"{msg} ({self.threshold} consecutive failures, aborting)"
        return f"{msg} ({self._count}/{self.threshold} consecutive failures)"
