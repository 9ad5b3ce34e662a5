"""Structured activity log for epic runs."""

import threading
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class EventType(str, Enum):
    """Types of events that can be logged."""

    RUN_START = "run_start"
    RUN_END = "run_end"
    BRANCH_CREATED = "branch_created"
    ATTEMPT_START = "attempt_start"
    ATTEMPT_END = "attempt_end"
    PUBLISH = "publish"
    ABORT = "abort"
    ERROR = "error"
    INFO = "info"


class ActivityEvent(BaseModel):
    """Activity event model."""

    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    event_type: EventType = Field(..., description="Type of event")
    run_id: str = Field(..., description="Run identifier")
    epic_id: Optional[str] = Field(None, description="Epic identifier")
    message: str = Field(..., description="Event message")

    attempt: Optional[int] = Field(None, description="Attempt sequence number")
    status: Optional[str] = Field(None, description="Attempt or run status")
    duration_ms: Optional[int] = Field(None, description="Duration in milliseconds")

    data: Dict[str, Any] = Field(
        default_factory=dict, description="Additional event data"
    )


class ActivityLogger:
    """Append-only JSONL logger for one run."""

    _EVENT_FIELDS = {"attempt", "status", "duration_ms"}

    def __init__(self, run_id: str, logs_dir: Path):
        """Initialize activity logger.

        Args:
            run_id: Current run identifier
            logs_dir: Directory to store log files
        """
        self.run_id = run_id
        self.logs_dir = Path(logs_dir)
        self.logs_dir.mkdir(parents=True, exist_ok=True)
        self.log_file = self.logs_dir / f"{run_id}.jsonl"

        self._lock = threading.Lock()

    def log_event(
        self,
        event_type: EventType,
        message: str,
        epic_id: Optional[str] = None,
        **kwargs: Any,
    ) -> ActivityEvent:
        """Log an activity event.

        Keyword arguments naming an ActivityEvent field are set on the event;
        everything else goes into ``data``.
        """
        event_fields: Dict[str, Any] = {
            "event_type": event_type,
            "run_id": self.run_id,
            "epic_id": epic_id,
            "message": message,
        }
        data_fields = {}
        for key, value in kwargs.items():
            if key in self._EVENT_FIELDS:
                event_fields[key] = value
            else:
                data_fields[key] = value
        if data_fields:
            event_fields["data"] = data_fields

        event = ActivityEvent(**event_fields)
        self._write_event(event)
        return event

    def _write_event(self, event: ActivityEvent) -> None:
        with self._lock:
            with open(self.log_file, "a", encoding="utf-8") as f:
                f.write(event.model_dump_json() + "\n")

    def read_events(self) -> List[ActivityEvent]:
        """Read back every event logged so far."""
        if not self.log_file.exists():
            return []
        with open(self.log_file, "r", encoding="utf-8") as f:
            return [
                ActivityEvent.model_validate_json(line)
                for line in f
                if line.strip()
            ]


def generate_run_id(epic_id: str, now: Optional[datetime] = None) -> str:
    """Generate a run id such as ``lb-42-20260101-093000``."""
    now = now or datetime.now()
    return f"{epic_id}-{now.strftime('%Y%m%d-%H%M%S')}"
