"""Decision oracle: should the supervisor launch another run?

The oracle asks a model, through its CLI, to judge the specification, the
tracker snapshot and the latest run summary. It reads; it never changes
tracker or repository state.
"""

import json
import shlex
import subprocess
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError

from ..core.exceptions import DecisionError
from ..core.output_parser import OutputParser

DECISION_SCHEMA = {
    "type": "object",
    "properties": {
        "continue": {
            "type": "boolean",
            "description": "true if more work remains, false if spec is fully implemented",
        },
        "reason": {
            "type": "string",
            "description": "Brief explanation of the decision",
        },
    },
    "required": ["continue", "reason"],
}


class Decision(BaseModel):
    """A continue/stop judgment with its rationale."""

    model_config = {"populate_by_name": True}

    should_continue: bool = Field(..., alias="continue")
    reason: str = ""


class DecisionOracle:
    """Judge whether more work remains using a model CLI."""

    def __init__(
        self,
        command: str = "claude",
        model: Optional[str] = "sonnet",
        working_dir: Optional[Path] = None,
        timeout: int = 300,
    ):
        """Initialize decision oracle.

        Args:
            command: Model CLI command
            model: Model name passed as --model, or None for the CLI default
            working_dir: Working directory for command execution
            timeout: Timeout in seconds
        """
        self.command = command
        self.model = model
        self.working_dir = Path(working_dir) if working_dir else Path.cwd()
        self.timeout = timeout

    def build_prompt(
        self,
        specification: str,
        tracker_snapshot: str,
        latest_summary: Optional[str],
    ) -> str:
        summary = latest_summary.strip() if latest_summary else "(no run summaries yet)"
        snapshot = tracker_snapshot.strip() or "(tracker has no items)"
        return f"""You are deciding whether an AI agent loop should continue or stop.

## Specification
{specification.strip()}

## Current task tracker state
{snapshot}

## Latest run summary
{summary}

Decide:
- continue=true if there are open tasks, unfinished spec requirements, or the agent appears stuck and should retry
- continue=false if the spec is fully implemented and all tasks are closed
"""

    def build_command(self, prompt: str) -> List[str]:
        cmd = shlex.split(self.command) + ["-p"]
        if self.model:
            cmd.extend(["--model", self.model])
        cmd.extend(
            [
                "--output-format",
                "json",
                "--json-schema",
                json.dumps(DECISION_SCHEMA),
                prompt,
            ]
        )
        return cmd

    def decide(
        self,
        specification: str,
        tracker_snapshot: str,
        latest_summary: Optional[str] = None,
    ) -> Decision:
        """Produce a continue/stop judgment.

        Args:
            specification: Text of the project specification
            tracker_snapshot: Current tracker listing
            latest_summary: Most recent run summary, if any

        Returns:
            Decision

        Raises:
            DecisionError: If the CLI fails or its output has no usable decision
        """
        prompt = self.build_prompt(specification, tracker_snapshot, latest_summary)
        cmd = self.build_command(prompt)

        try:
            result = subprocess.run(
                cmd,
                cwd=str(self.working_dir),
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError as e:
            raise DecisionError(
                f"Model CLI not found. Is it installed? Command: {self.command}"
            ) from e
        except subprocess.TimeoutExpired as e:
            raise DecisionError(f"Decision timed out after {self.timeout}s") from e

        if result.returncode != 0:
            error_msg = f"Model CLI failed with exit code {result.returncode}"
            if result.stderr:
                error_msg += f": {result.stderr[:500]}"
            raise DecisionError(error_msg)

        return self.parse_decision(result.stdout)

    @staticmethod
    def parse_decision(output: str) -> Decision:
        """Parse a decision from CLI output.

        ``--output-format json`` wraps the schema-conforming object in
        ``structured_output``; a bare object is accepted too.
        """
        data = OutputParser.extract_json(output, strict=True)
        payload = data.get("structured_output", data)

        if isinstance(payload, str):
            payload = OutputParser.extract_json(payload, strict=True)
        if not isinstance(payload, dict):
            raise DecisionError(f"Unexpected decision payload: {payload!r}")

        try:
            return Decision.model_validate(payload)
        except ValidationError as e:
            raise DecisionError(f"Invalid decision: {e}") from e
