"""Configuration models for epicrunner."""

import os
import re
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

_DURATION = re.compile(r"^(\d+)([hms])$")
_UNIT_SECONDS = {"h": 3600, "m": 60, "s": 1}


def parse_duration(value: str) -> int:
    """Convert a duration such as '15m', '2h' or '300s' to seconds."""
    match = _DURATION.match(value)
    if not match:
        raise ValueError("Duration must be in format like '15m', '2h', or '300s'")
    return int(match.group(1)) * _UNIT_SECONDS[match.group(2)]


def _validate_duration(v: str) -> str:
    if parse_duration(v) == 0:
        raise ValueError("Duration must be greater than zero")
    return v


class AgentConfig(BaseModel):
    """Coding agent CLI configuration."""

    command: str = Field(
        default="claude --dangerously-skip-permissions --verbose",
        description="Agent command",
    )
    model: str = Field(default="opus", description="Model passed as --model")
    timeout: str = Field(default="15m", description="Per-attempt timeout")

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: str) -> str:
        """Validate timeout format."""
        return _validate_duration(v)

    def timeout_seconds(self) -> int:
        return parse_duration(self.timeout)


class TrackerConfig(BaseModel):
    """Task tracker CLI configuration."""

    command: str = Field(default="lb", description="Tracker command")


class GitConfig(BaseModel):
    """Git configuration."""

    remote: str = Field(default="origin", description="Remote to fetch from and push to")
    reuse_existing_branch: bool = Field(
        default=False, description="Continue on an existing feature branch"
    )

    @field_validator("remote")
    @classmethod
    def validate_remote(cls, v: str) -> str:
        """Validate remote name."""
        if not v.strip():
            raise ValueError("remote cannot be empty")
        return v


class RunnerConfig(BaseModel):
    """Attempt loop configuration."""

    max_consecutive_failures: int = Field(
        default=3, description="Consecutive failed attempts before aborting"
    )
    log_dir: str = Field(default="logs/epic-runs", description="Attempt transcripts")
    summaries_dir: str = Field(default="logs/summaries", description="Run summaries")
    show_listing: bool = Field(
        default=True, description="Print the tracker listing after each attempt"
    )
    tracker_retry_delay: str = Field(
        default="10s", description="Pause before re-counting after a failed tracker query"
    )

    @field_validator("max_consecutive_failures")
    @classmethod
    def validate_max_failures(cls, v: int) -> int:
        """Validate failure threshold."""
        if v < 1:
            raise ValueError("max_consecutive_failures must be at least 1")
        return v

    @field_validator("tracker_retry_delay")
    @classmethod
    def validate_retry_delay(cls, v: str) -> str:
        """Validate retry delay format."""
        return _validate_duration(v)


class DeciderConfig(BaseModel):
    """Decision oracle configuration."""

    command: str = Field(default="claude", description="Model CLI command")
    model: str = Field(default="sonnet", description="Model passed as --model")
    timeout: str = Field(default="5m", description="Decision timeout")
    spec_path: str = Field(default="SPEC.md", description="Specification document")

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: str) -> str:
        """Validate timeout format."""
        return _validate_duration(v)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    activity_dir: str = Field(default="logs/activity", description="Activity log directory")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARN", "ERROR"]
        if v.upper() not in valid_levels:
            raise ValueError(f"level must be one of: {', '.join(valid_levels)}")
        return v.upper()


class EpicRunnerConfig(BaseModel):
    """Main epicrunner configuration."""

    agent: AgentConfig = Field(default_factory=AgentConfig, description="Agent configuration")
    tracker: TrackerConfig = Field(
        default_factory=TrackerConfig, description="Tracker configuration"
    )
    git: GitConfig = Field(default_factory=GitConfig, description="Git configuration")
    runner: RunnerConfig = Field(
        default_factory=RunnerConfig, description="Runner configuration"
    )
    decider: DeciderConfig = Field(
        default_factory=DeciderConfig, description="Decision oracle configuration"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )

    def resolve_env_vars(self) -> "EpicRunnerConfig":
        """Resolve environment variables in configuration values."""
        config_dict = self.model_dump()
        resolved_dict = _resolve_env_vars_recursive(config_dict)
        return EpicRunnerConfig(**resolved_dict)

    def resolve_path(self, value: str, base: Path) -> Path:
        """Resolve a configured path relative to ``base``."""
        path = Path(value).expanduser()
        if not path.is_absolute():
            path = base / path
        return path


def _resolve_env_vars_recursive(obj: Any) -> Any:
    """Recursively resolve environment variables in configuration."""
    if isinstance(obj, dict):
        return {key: _resolve_env_vars_recursive(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [_resolve_env_vars_recursive(item) for item in obj]
    elif isinstance(obj, str):
        return _resolve_env_var_string(obj)
    else:
        return obj


def _resolve_env_var_string(value: str) -> str:
    """Resolve environment variables in a string."""
    # ${VAR_NAME} or ${VAR_NAME:default_value}
    pattern = r"\$\{([^}:]+)(?::([^}]*))?\}"

    def replace_var(match):
        var_name = match.group(1)
        default_value = match.group(2) if match.group(2) is not None else ""
        return os.getenv(var_name, default_value)

    return re.sub(pattern, replace_var, value)
