"""One bounded attempt at an epic's work.

An attempt hands the agent an instruction scoped to a single epic and a single
task, waits at most the timeout, and classifies how it ended.
"""

import time
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from pydantic import BaseModel, Field

from .agent_executor import AgentExecutor
from .exceptions import AgentExecutionError, AgentTimeoutError


class AttemptStatus(str, Enum):
    """Terminal status of an attempt."""

    SUCCESS = "success"
    TIMEOUT = "timeout"
    FAILURE = "failure"


class Attempt(BaseModel):
    """Record of one execution cycle."""

    sequence: int = Field(..., description="1-based attempt number within the run")
    started_at: datetime = Field(default_factory=datetime.now)
    timeout_seconds: int = Field(..., description="Wall-clock bound for the agent")
    status: AttemptStatus
    exit_code: Optional[int] = None
    duration_seconds: float = 0.0
    log_path: Path
    error_message: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == AttemptStatus.SUCCESS


def attempt_log_path(
    log_dir: Path, epic_id: str, sequence: int, now: Optional[datetime] = None
) -> Path:
    """Build the transcript path ``<epic>-task-<sequence>-<HHMMSS>.log``."""
    now = now or datetime.now()
    return Path(log_dir) / f"{epic_id}-task-{sequence}-{now.strftime('%H%M%S')}.log"


def build_instruction(epic_id: str, tracker_command: str = "lb") -> str:
    """Build the agent instruction for one attempt.

    The agent may only touch tasks under ``epic_id``, does exactly one, and
    leaves pushing to the runner.
    """
    return (
        f"Run '{tracker_command} list --parent {epic_id}' to see tasks. "
        "Pick ONE open child task and complete it. "
        "Do NOT work on tasks outside this epic. "
        "Commit your changes and close the item when done. "
        "Do NOT push; the runner handles pushing."
    )


class AttemptExecutor:
    """Runs attempts against the agent and classifies their outcome."""

    def __init__(
        self,
        agent: AgentExecutor,
        log_dir: Path,
        tracker_command: str = "lb",
        output_callback: Optional[Callable[[str], None]] = None,
    ):
        """Initialize attempt executor.

        Args:
            agent: Agent executor that runs the instruction
            log_dir: Directory receiving one transcript per attempt
            tracker_command: Tracker CLI named in the instruction
            output_callback: Optional sink for the agent's live output
        """
        self.agent = agent
        self.log_dir = Path(log_dir)
        self.tracker_command = tracker_command
        self.output_callback = output_callback

    def log_path_for(self, epic_id: str, sequence: int) -> Path:
        return attempt_log_path(self.log_dir, epic_id, sequence)

    def run(
        self,
        epic_id: str,
        sequence: int,
        timeout_seconds: int,
        log_path: Optional[Path] = None,
    ) -> Attempt:
        """Run one attempt.

        Never raises for agent problems: a timeout is classified ``timeout``
        and any other non-zero exit or launch error is ``failure``. Commits the
        agent made before a timeout stay in the working tree.
        """
        log_path = log_path or self.log_path_for(epic_id, sequence)
        started_at = datetime.now()
        start = time.time()
        instruction = build_instruction(epic_id, self.tracker_command)

        try:
            result = self.agent.execute(
                prompt=instruction,
                timeout=timeout_seconds,
                log_path=log_path,
                output_callback=self.output_callback,
            )
        except AgentTimeoutError as e:
            return Attempt(
                sequence=sequence,
                started_at=started_at,
                timeout_seconds=timeout_seconds,
                status=AttemptStatus.TIMEOUT,
                exit_code=e.exit_code,
                duration_seconds=time.time() - start,
                log_path=log_path,
                error_message=str(e),
            )
        except AgentExecutionError as e:
            return Attempt(
                sequence=sequence,
                started_at=started_at,
                timeout_seconds=timeout_seconds,
                status=AttemptStatus.FAILURE,
                duration_seconds=time.time() - start,
                log_path=log_path,
                error_message=str(e),
            )

        return Attempt(
            sequence=sequence,
            started_at=started_at,
            timeout_seconds=timeout_seconds,
            status=AttemptStatus.SUCCESS if result.success else AttemptStatus.FAILURE,
            exit_code=result.exit_code,
            duration_seconds=result.duration_seconds,
            log_path=log_path,
            error_message=result.error_message,
        )
