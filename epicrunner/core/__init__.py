"""Core epicrunner functionality."""

from .agent_executor import AgentExecutor, ExecutionResult
from .attempt_executor import (
    Attempt,
    AttemptExecutor,
    AttemptStatus,
    attempt_log_path,
    build_instruction,
)
from .branch import BranchManager, derive_branch_name, slugify
from .exceptions import (
    AgentExecutionError,
    AgentTimeoutError,
    BranchExistsError,
    ConfigurationError,
    DecisionError,
    EpicNotFoundError,
    EpicRunnerError,
    ExecutionError,
    GitOperationError,
    SetupError,
    SyncError,
    TrackerError,
)
from .git_utils import GitUtils
from .output_parser import OutputParser
from .tracker import Epic, TaskSource, TrackerClient

__all__ = [
    # Exceptions
    "EpicRunnerError",
    "ConfigurationError",
    "SetupError",
    "EpicNotFoundError",
    "BranchExistsError",
    "TrackerError",
    "GitOperationError",
    "ExecutionError",
    "AgentExecutionError",
    "AgentTimeoutError",
    "SyncError",
    "DecisionError",
    # Collaborators
    "AgentExecutor",
    "ExecutionResult",
    "GitUtils",
    "TrackerClient",
    "OutputParser",
    # Task source and branches
    "Epic",
    "TaskSource",
    "BranchManager",
    "derive_branch_name",
    "slugify",
    # Attempts
    "Attempt",
    "AttemptExecutor",
    "AttemptStatus",
    "attempt_log_path",
    "build_instruction",
]
