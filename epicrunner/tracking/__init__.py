"""Run tracking: activity events and run summaries."""

from .activity_logger import ActivityEvent, ActivityLogger, EventType, generate_run_id
from .run_summary import RunSummary, load_latest_summary, write_summary

__all__ = [
    "ActivityEvent",
    "ActivityLogger",
    "EventType",
    "generate_run_id",
    "RunSummary",
    "load_latest_summary",
    "write_summary",
]
