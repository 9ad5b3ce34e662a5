"""Task tracker client and the open-task source for an epic.

The tracker is an external CLI (``lb`` by default). This module only reads
from it and asks it to sync; creating and closing tasks is left to the agent.
"""

import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from .exceptions import EpicNotFoundError, TrackerError


@dataclass(frozen=True)
class Epic:
    """An epic as seen by one run. Immutable for the run's duration."""

    id: str
    title: str


class TrackerClient:
    """Thin wrapper around the task tracker CLI."""

    def __init__(self, command: str = "lb", working_dir: Optional[Path] = None):
        """Initialize tracker client.

        Args:
            command: Tracker CLI command (e.g., "lb")
            working_dir: Working directory for command execution
        """
        self.command = command
        self.working_dir = Path(working_dir) if working_dir else Path.cwd()

    def _run(self, *args: str, check: bool = True) -> Tuple[int, str, str]:
        """Run a tracker command.

        Returns:
            Tuple of (returncode, stdout, stderr)

        Raises:
            TrackerError: If the CLI is missing, or the command fails and check=True
        """
        cmd = shlex.split(self.command) + list(args)
        try:
            result = subprocess.run(
                cmd,
                cwd=str(self.working_dir),
                capture_output=True,
                text=True,
                check=False,
            )
        except FileNotFoundError as e:
            raise TrackerError(
                f"Tracker CLI not found. Is it installed? Command: {self.command}"
            ) from e
        except OSError as e:
            raise TrackerError(f"Tracker command failed: {e}") from e

        if check and result.returncode != 0:
            raise TrackerError(
                f"Tracker command failed: {self.command} {' '.join(args)}\n"
                f"Error: {result.stderr.strip()}"
            )

        return result.returncode, result.stdout, result.stderr

    def sync(self) -> None:
        """Reconcile local tracker state with its remote."""
        self._run("sync")

    def exists(self, item_id: str) -> bool:
        """Check if an item exists."""
        returncode, _, _ = self._run("show", item_id, check=False)
        return returncode == 0

    def show(self, item_id: str) -> str:
        """Get the raw description of an item."""
        _, stdout, _ = self._run("show", item_id)
        return stdout

    def get_title(self, item_id: str) -> str:
        """Get an item's title.

        The first line of ``show`` output is "<id> <title>".
        """
        lines = self.show(item_id).splitlines()
        if not lines:
            return ""
        _, _, title = lines[0].partition(" ")
        return title.strip()

    def list_items(
        self, parent: Optional[str] = None, status: Optional[str] = None
    ) -> List[str]:
        """List items, one entry per non-empty output line."""
        args = ["list"]
        if parent:
            args.extend(["--parent", parent])
        if status:
            args.extend(["-s", status])

        _, stdout, _ = self._run(*args)
        return [line for line in stdout.splitlines() if line.strip()]

    def snapshot(self) -> str:
        """Get the full tracker listing as text."""
        return "\n".join(self.list_items())


class TaskSource:
    """Reports how much work remains under an epic."""

    def __init__(self, tracker: TrackerClient):
        self.tracker = tracker

    def load_epic(self, epic_id: str) -> Epic:
        """Verify the epic exists and read its title.

        Raises:
            EpicNotFoundError: If the tracker does not know the epic. The error
                carries the tracker's current listing for diagnosis.
        """
        if not self.tracker.exists(epic_id):
            try:
                available = self.tracker.list_items()
            except TrackerError:
                available = []
            raise EpicNotFoundError(epic_id, available)

        return Epic(id=epic_id, title=self.tracker.get_title(epic_id))

    def remaining_open(self, epic_id: str) -> int:
        """Count open tasks under the epic.

        Raises:
            TrackerError: If the query fails. A failed query is never reported
                as zero, since that would end the run as if it were finished.
        """
        return len(self.tracker.list_items(parent=epic_id, status="open"))
