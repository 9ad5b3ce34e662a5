"""Run summaries written at the end of each epic run.

The newest summary is one of the inputs the decision oracle reads when a
supervisor asks whether another run is worthwhile.
"""

from datetime import datetime
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field


class RunSummary(BaseModel):
    """What one epic run did."""

    run_id: str = Field(..., description="Run identifier")
    epic_id: str = Field(..., description="Epic identifier")
    epic_title: Optional[str] = Field(None, description="Epic title")
    outcome: str = Field(..., description="exhausted, aborted or setup_failed")
    feature_branch: Optional[str] = Field(None, description="Feature branch")
    base_branch: Optional[str] = Field(None, description="Branch the run started from")
    start_time: datetime = Field(..., description="Run start time")
    end_time: datetime = Field(..., description="Run end time")

    attempts: int = Field(default=0, description="Attempts executed")
    succeeded: int = Field(default=0, description="Successful attempts")
    timed_out: int = Field(default=0, description="Timed-out attempts")
    failed: int = Field(default=0, description="Failed attempts")
    failure_counts: List[int] = Field(
        default_factory=list, description="Consecutive-failure counter after each outcome"
    )
    publishes: int = Field(default=0, description="Publish calls made")
    sync_errors: List[str] = Field(default_factory=list, description="Publish errors")
    error_message: Optional[str] = Field(None, description="Setup or final publish error")

    @property
    def duration(self) -> float:
        """Run duration in seconds."""
        return (self.end_time - self.start_time).total_seconds()


def write_summary(summary: RunSummary, summaries_dir: Path) -> Path:
    """Write a summary as ``<run_id>.json`` and return its path."""
    summaries_dir = Path(summaries_dir)
    summaries_dir.mkdir(parents=True, exist_ok=True)
    path = summaries_dir / f"{summary.run_id}.json"
    path.write_text(summary.model_dump_json(indent=2), encoding="utf-8")
    return path


def load_latest_summary(summaries_dir: Path) -> Optional[str]:
    """Return the text of the most recently modified summary, if any."""
    summaries_dir = Path(summaries_dir)
    if not summaries_dir.is_dir():
        return None

    files = [p for p in summaries_dir.iterdir() if p.is_file()]
    if not files:
        return None

    latest = max(files, key=lambda p: p.stat().st_mtime)
    return latest.read_text(encoding="utf-8")
