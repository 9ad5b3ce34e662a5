"""epicrunner exception classes."""

from typing import List, Optional


class EpicRunnerError(Exception):
    """Base exception for all epicrunner errors."""

    pass


class ConfigurationError(EpicRunnerError):
    """Raised when configuration is invalid."""

    pass


class SetupError(EpicRunnerError):
    """Raised when a run cannot be started. Never retried."""

    pass


class EpicNotFoundError(SetupError):
    """Raised when the requested epic does not exist in the tracker."""

    def __init__(self, epic_id: str, available_items: List[str]):
        self.epic_id = epic_id
        self.available_items = available_items
        super().__init__(f"Epic {epic_id} not found in tracker")


class BranchExistsError(SetupError):
    """Raised when the feature branch already exists and cannot be reused."""

    pass


class TrackerError(EpicRunnerError):
    """Raised when a task tracker command fails."""

    pass


class GitOperationError(EpicRunnerError):
    """Raised when git operations fail."""

    pass


class ExecutionError(EpicRunnerError):
    """Raised when agent execution fails."""

    pass


class AgentExecutionError(ExecutionError):
    """Raised when the agent CLI cannot be executed."""

    pass


class AgentTimeoutError(AgentExecutionError):
    """Raised when the agent CLI overruns its timeout and is killed."""

    def __init__(self, message: str, exit_code: Optional[int] = None):
        self.exit_code = exit_code
        super().__init__(message)


class SyncError(EpicRunnerError):
    """Raised when publishing tracker or git state to the remote fails."""

    def __init__(self, message: str, pushed: bool = False):
        self.pushed = pushed
        super().__init__(message)


class DecisionError(EpicRunnerError):
    """Raised when the decision oracle cannot produce a judgment."""

    pass
