"""Publication of tracker and git state to their remotes."""

from dataclasses import dataclass
from typing import List, Optional

from ..core.exceptions import GitOperationError, SyncError, TrackerError
from ..core.git_utils import GitUtils
from ..core.tracker import TrackerClient


@dataclass
class SyncResult:
    """Outcome of one publish call."""

    ok: bool
    pushed: bool
    error_message: Optional[str] = None


class SyncManager:
    """Reconciles the tracker and pushes the feature branch.

    Publishing twice with nothing new in between is a no-op on the git side:
    the push is skipped when the remote already has every commit.
    """

    def __init__(self, tracker: TrackerClient, git: GitUtils, branch: Optional[str] = None):
        """Initialize sync manager.

        Args:
            tracker: Tracker client used for ``sync``
            git: Git utilities used for ``push``
            branch: Branch to publish; may be set later once it is created
        """
        self.tracker = tracker
        self.git = git
        self.branch = branch
        self.publish_count = 0
        self.errors: List[str] = []

    def publish(self) -> SyncResult:
        """Sync the tracker, then push the branch if it has new commits.

        The push is attempted even when the tracker sync fails, so committed
        work reaches the remote regardless of the tracker's state.

        Raises:
            SyncError: If the tracker sync or the push fails. The message
                names every step that failed.
        """
        if not self.branch:
            raise SyncError("No branch to publish")

        self.publish_count += 1
        failures: List[str] = []
        cause: Optional[Exception] = None

        try:
            self.tracker.sync()
        except TrackerError as e:
            failures.append(f"Tracker sync failed: {e}")
            cause = e

        pushed = False
        try:
            if self.git.has_unpushed_commits(self.branch):
                self.git.push(self.branch, set_upstream=True)
                pushed = True
        except GitOperationError as e:
            failures.append(f"Push of '{self.branch}' failed: {e}")
            cause = cause or e

        if failures:
            raise SyncError("; ".join(failures), pushed=pushed) from cause

        return SyncResult(ok=True, pushed=pushed)

    def publish_best_effort(self) -> SyncResult:
        """Publish without raising. Used between attempts."""
        try:
            return self.publish()
        except SyncError as e:
            self.errors.append(str(e))
            return SyncResult(ok=False, pushed=e.pushed, error_message=str(e))

    def publish_final(self) -> SyncResult:
        """Publish at run exit. Failures propagate to the caller.

        Raises:
            SyncError: If publication fails
        """
        try:
            return self.publish()
        except SyncError as e:
            self.errors.append(str(e))
            raise
