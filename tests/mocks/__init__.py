"""Mock utilities for testing."""

from .fakes import FakeGit, FakeTracker, ScriptedAgent

__all__ = [
    "FakeGit",
    "FakeTracker",
    "ScriptedAgent",
]
