"""Epic runner: the attempt loop for one epic.

This module drives a single epic to completion: it verifies the epic, creates
its feature branch, runs one agent attempt at a time while open tasks remain,
publishes after every success, stops after too many consecutive failures, and
always publishes once more on the way out.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional

from rich.console import Console

from ..core.attempt_executor import Attempt, AttemptExecutor, AttemptStatus
from ..core.branch import BranchManager
from ..core.exceptions import (
    EpicNotFoundError,
    GitOperationError,
    SetupError,
    SyncError,
    TrackerError,
)
from ..core.tracker import Epic, TaskSource
from ..tracking.activity_logger import ActivityLogger, EventType
from ..tracking.run_summary import RunSummary, write_summary
from .failure_tracker import FailureTracker
from .sync_manager import SyncManager


class RunState(str, Enum):
    """Lifecycle of one run."""

    INIT = "init"
    LOOPING = "looping"
    DRAINING = "draining"
    TERMINATED = "terminated"


class RunOutcome(str, Enum):
    """How a run ended."""

    EXHAUSTED = "exhausted"
    ABORTED = "aborted"
    INTERRUPTED = "interrupted"
    SETUP_FAILED = "setup_failed"


EXIT_OK = 0
EXIT_SETUP_FAILED = 1
EXIT_ABORTED = 2
EXIT_PUBLISH_FAILED = 3
EXIT_INTERRUPTED = 130

DEFAULT_QUERY_RETRY_DELAY = 10.0


@dataclass
class RunResult:
    """Result of one epic run."""

    epic_id: str
    outcome: RunOutcome
    feature_branch: Optional[str] = None
    base_branch: Optional[str] = None
    attempts: List[Attempt] = field(default_factory=list)
    failure_counts: List[int] = field(default_factory=list)
    publishes: int = 0
    final_publish_ok: bool = False
    error_message: Optional[str] = None
    summary_path: Optional[Path] = None
    duration_seconds: float = 0.0

    @property
    def exit_code(self) -> int:
        """Process exit code for this result.

        Abort takes precedence over a failed final publish.
        """
        if self.outcome == RunOutcome.SETUP_FAILED:
            return EXIT_SETUP_FAILED
        if self.outcome == RunOutcome.ABORTED:
            return EXIT_ABORTED
        if self.outcome == RunOutcome.INTERRUPTED:
            return EXIT_INTERRUPTED
        if not self.final_publish_ok:
            return EXIT_PUBLISH_FAILED
        return EXIT_OK


class EpicRunner:
    """Runs the attempt loop for one epic.

    All mutable run state (failure counter, branch, attempt list) belongs to
    one instance; two runners must never target the same epic at once.
    """

    def __init__(
        self,
        task_source: TaskSource,
        branch_manager: BranchManager,
        attempt_executor: AttemptExecutor,
        sync_manager: SyncManager,
        failure_tracker: Optional[FailureTracker] = None,
        console: Optional[Console] = None,
        activity_logger: Optional[ActivityLogger] = None,
        summaries_dir: Optional[Path] = None,
        run_id: Optional[str] = None,
        show_listing: bool = True,
        query_retry_delay: float = DEFAULT_QUERY_RETRY_DELAY,
    ):
        """Initialize epic runner.

        Args:
            task_source: Source of the remaining-open count
            branch_manager: Creates the feature branch
            attempt_executor: Runs single attempts
            sync_manager: Publishes tracker and git state
            failure_tracker: Circuit breaker (creates default if None)
            console: Console for operator narration (creates default if None)
            activity_logger: Optional structured event log
            summaries_dir: Directory for the run summary (skipped if None)
            run_id: Identifier used in the summary and event log
            show_listing: Print the tracker listing after each attempt
            query_retry_delay: Seconds to wait before re-counting open tasks
                after a failed tracker query
        """
        self.task_source = task_source
        self.branch_manager = branch_manager
        self.attempt_executor = attempt_executor
        self.sync_manager = sync_manager
        self.failure_tracker = failure_tracker or FailureTracker()
        self.console = console or Console()
        self.activity_logger = activity_logger
        self.summaries_dir = Path(summaries_dir) if summaries_dir else None
        self.run_id = run_id
        self.show_listing = show_listing
        self.query_retry_delay = query_retry_delay

        self.state = RunState.INIT

    def run(self, epic_id: str, timeout_seconds: int) -> RunResult:
        """Run the epic until it is exhausted, aborted, or cannot start.

        Args:
            epic_id: Epic identifier
            timeout_seconds: Wall-clock bound for each attempt

        Returns:
            RunResult describing the outcome
        """
        start_time = datetime.now()
        started = time.time()
        self.state = RunState.INIT
        result = RunResult(epic_id=epic_id, outcome=RunOutcome.SETUP_FAILED)
        self._log(EventType.RUN_START, f"Run started for epic {epic_id}", epic_id)

        epic: Optional[Epic] = None
        try:
            epic, base_branch, feature_branch = self._setup(epic_id)
        except (SetupError, TrackerError, GitOperationError) as e:
            self._report_setup_failure(epic_id, e)
            result.error_message = str(e)
            return self._terminate(result, epic, start_time, started)

        result.base_branch = base_branch
        result.feature_branch = feature_branch
        self.sync_manager.branch = feature_branch

        try:
            result.outcome = self._loop(epic, timeout_seconds, result)
        except KeyboardInterrupt:
            # Stop signal: publish what was committed, record the run, then let
            # the caller exit
            result.outcome = RunOutcome.INTERRUPTED
            self.console.print("\n[yellow]Stop requested, publishing before exit...[/yellow]")
            self._log(EventType.ABORT, "Stop signal received", epic.id, reason="interrupt")
            self._drain(result)
            self._terminate(result, epic, start_time, started)
            raise

        self._drain(result)
        return self._terminate(result, epic, start_time, started)

    def _setup(self, epic_id: str):
        """Init state: pre-sync, verify the epic, create the feature branch."""
        tracker = self.task_source.tracker
        try:
            tracker.sync()
        except TrackerError as e:
            self.console.print(f"[dim]Pre-run tracker sync skipped: {e}[/dim]")

        epic = self.task_source.load_epic(epic_id)

        agent = self.attempt_executor.agent
        if not agent.validate_available():
            raise SetupError(f"Agent CLI is not available: {agent.command}")

        base_branch = self.branch_manager.git.get_current_branch()

        feature_branch = self.branch_manager.derive_branch_name(epic.id, epic.title)
        self.console.print(f"Creating feature branch: [bold]{feature_branch}[/bold]")
        created = self.branch_manager.create_and_checkout(feature_branch)
        if not created:
            self.console.print(
                f"[yellow]Reusing existing branch {feature_branch}[/yellow]"
            )
        self._log(
            EventType.BRANCH_CREATED,
            f"Feature branch {feature_branch}",
            epic_id,
            branch=feature_branch,
            base_branch=base_branch,
            created=created,
        )
        return epic, base_branch, feature_branch

    def _loop(self, epic: Epic, timeout_seconds: int, result: RunResult) -> RunOutcome:
        """Looping state. Returns the outcome that sends the run to draining."""
        self.state = RunState.LOOPING
        sequence = 0

        while True:
            try:
                remaining = self.task_source.remaining_open(epic.id)
            except TrackerError as e:
                # Counted like a failed attempt so a broken tracker cannot spin forever
                self.failure_tracker.record(AttemptStatus.FAILURE)
                result.failure_counts = self.failure_tracker.history
                self.console.print(f"[red]Could not count open tasks:[/red] {e}")
                self._log(EventType.ERROR, f"Open-task query failed: {e}", epic.id)
                if self.failure_tracker.should_abort():
                    self._report_abort(epic.id)
                    return RunOutcome.ABORTED
                if self.query_retry_delay > 0:
                    time.sleep(self.query_retry_delay)
                continue

            if remaining == 0:
                self.console.print(f"\n[green]All tasks in {epic.id} complete.[/green]")
                return RunOutcome.EXHAUSTED

            sequence += 1
            log_path = self.attempt_executor.log_path_for(epic.id, sequence)
            self.console.print(
                f"[bold]=== Task {sequence} | {remaining} remaining | log: {log_path} ===[/bold]"
            )
            self._log(
                EventType.ATTEMPT_START,
                f"Attempt {sequence} started",
                epic.id,
                attempt=sequence,
                remaining=remaining,
                log_path=str(log_path),
            )

            attempt = self.attempt_executor.run(
                epic.id, sequence, timeout_seconds, log_path=log_path
            )
            result.attempts.append(attempt)
            self.failure_tracker.record(attempt.status)
            result.failure_counts = self.failure_tracker.history
            self._report_attempt(attempt)
            self._log(
                EventType.ATTEMPT_END,
                f"Attempt {sequence} ended: {attempt.status.value}",
                epic.id,
                attempt=sequence,
                status=attempt.status.value,
                duration_ms=int(attempt.duration_seconds * 1000),
                exit_code=attempt.exit_code,
                consecutive_failures=self.failure_tracker.count,
            )

            if attempt.succeeded:
                self.console.print("Pushing to remote...")
                self._publish_intermediate(epic.id)

            if self.failure_tracker.should_abort():
                self._report_abort(epic.id)
                return RunOutcome.ABORTED

            if self.show_listing:
                self._print_listing()

    def _publish_intermediate(self, epic_id: str) -> None:
        sync_result = self.sync_manager.publish_best_effort()
        if sync_result.ok:
            self._log(EventType.PUBLISH, "Published", epic_id, pushed=sync_result.pushed)
        else:
            self.console.print(
                f"[yellow]Publish failed, continuing:[/yellow] {sync_result.error_message}"
            )
            self._log(
                EventType.ERROR,
                f"Intermediate publish failed: {sync_result.error_message}",
                epic_id,
            )

    def _drain(self, result: RunResult) -> None:
        """Draining state: final publish, then the hand-off message."""
        self.state = RunState.DRAINING
        self.console.print("Final push to remote...")
        try:
            sync_result = self.sync_manager.publish_final()
            result.final_publish_ok = True
            self._log(
                EventType.PUBLISH,
                "Final publish",
                result.epic_id,
                pushed=sync_result.pushed,
                final=True,
            )
        except SyncError as e:
            result.final_publish_ok = False
            result.error_message = str(e)
            self.console.print(f"[red]Final publish failed:[/red] {e}")
            self.console.print(
                f"[red]Work on {result.feature_branch} may not be on the remote. "
                "Push it manually.[/red]"
            )
            self._log(EventType.ERROR, f"Final publish failed: {e}", result.epic_id)

        self.console.print(
            f"Done. Merge branch '[bold]{result.feature_branch}[/bold]' "
            f"into '{result.base_branch}' when ready."
        )

    def _terminate(
        self,
        result: RunResult,
        epic: Optional[Epic],
        start_time: datetime,
        started: float,
    ) -> RunResult:
        self.state = RunState.TERMINATED
        result.publishes = self.sync_manager.publish_count
        result.duration_seconds = time.time() - started

        if self.summaries_dir is not None:
            summary = self._build_summary(result, epic, start_time)
            result.summary_path = write_summary(summary, self.summaries_dir)

        self._log(
            EventType.RUN_END,
            f"Run ended: {result.outcome.value}",
            result.epic_id,
            status=result.outcome.value,
            duration_ms=int(result.duration_seconds * 1000),
            attempts=len(result.attempts),
            exit_code=result.exit_code,
        )
        return result

    def _build_summary(
        self, result: RunResult, epic: Optional[Epic], start_time: datetime
    ) -> RunSummary:
        statuses = [a.status for a in result.attempts]
        return RunSummary(
            run_id=self.run_id or f"{result.epic_id}-{start_time.strftime('%Y%m%d-%H%M%S')}",
            epic_id=result.epic_id,
            epic_title=epic.title if epic else None,
            outcome=result.outcome.value,
            feature_branch=result.feature_branch,
            base_branch=result.base_branch,
            start_time=start_time,
            end_time=datetime.now(),
            attempts=len(result.attempts),
            succeeded=statuses.count(AttemptStatus.SUCCESS),
            timed_out=statuses.count(AttemptStatus.TIMEOUT),
            failed=statuses.count(AttemptStatus.FAILURE),
            failure_counts=result.failure_counts,
            publishes=result.publishes,
            sync_errors=list(self.sync_manager.errors),
            error_message=result.error_message,
        )

    def _report_setup_failure(self, epic_id: str, error: Exception) -> None:
        self.console.print(f"[red]ERROR:[/red] {error}")
        if isinstance(error, EpicNotFoundError):
            self.console.print("Available items:")
            for line in error.available_items:
                self.console.print(line, markup=False)
        self._log(EventType.ERROR, f"Setup failed: {error}", epic_id)

    def _report_attempt(self, attempt: Attempt) -> None:
        message = self.failure_tracker.get_status_message(attempt.status, attempt.sequence)
        if attempt.status == AttemptStatus.SUCCESS:
            self.console.print(f"[green]--- {message}[/green]")
        elif attempt.status == AttemptStatus.TIMEOUT:
            self.console.print(f"[yellow]--- {message}[/yellow]")
        else:
            detail = f": {attempt.error_message}" if attempt.error_message else ""
            self.console.print(f"[red]--- {message}{detail}[/red]")

    def _report_abort(self, epic_id: str) -> None:
        threshold = self.failure_tracker.threshold
        self.console.print(
            f"[red]ERROR: {threshold} consecutive failures, aborting[/red]"
        )
        self._log(
            EventType.ABORT,
            f"Aborted after {threshold} consecutive failures",
            epic_id,
            threshold=threshold,
        )

    def _print_listing(self) -> None:
        try:
            listing = self.task_source.tracker.list_items()
        except TrackerError as e:
            self.console.print(f"[dim]Tracker listing unavailable: {e}[/dim]")
            return
        self.console.print()
        for line in listing:
            self.console.print(line, markup=False)
        self.console.print()

    def _log(self, event_type: EventType, message: str, epic_id: str, **kwargs) -> None:
        if self.activity_logger is not None:
            self.activity_logger.log_event(event_type, message, epic_id=epic_id, **kwargs)
