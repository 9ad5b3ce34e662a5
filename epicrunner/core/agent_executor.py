"""Execute the coding agent CLI with subprocess management.

This module provides the interface for invoking the agent (Claude Code CLI by
default): it streams the agent's combined output into a transcript file,
enforces a wall-clock timeout, and reports the exit status.
"""

import os
import shlex
import signal
import subprocess
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from .exceptions import AgentExecutionError, AgentTimeoutError


@dataclass
class ExecutionResult:
    """Result of one agent CLI execution."""

    success: bool
    output: str
    exit_code: int
    duration_seconds: float
    error_message: Optional[str] = None


class AgentExecutor:
    """Execute agent CLI commands with subprocess management."""

    def __init__(
        self,
        command: str = "claude --dangerously-skip-permissions --verbose",
        model: Optional[str] = "opus",
        working_dir: Optional[Path] = None,
        default_timeout: int = 900,  # 15 minutes
    ):
        """Initialize agent executor.

        Args:
            command: Agent CLI command (e.g., "claude --dangerously-skip-permissions")
            model: Model name passed as --model, or None to use the CLI default
            working_dir: Working directory for command execution
            default_timeout: Default timeout in seconds
        """
        self.command = command
        self.model = model
        self.working_dir = Path(working_dir) if working_dir else Path.cwd()
        self.default_timeout = default_timeout

    def build_command(self, prompt: str) -> List[str]:
        cmd = shlex.split(self.command)
        if self.model:
            cmd.extend(["--model", self.model])
        return cmd + ["-p", prompt]

    def execute(
        self,
        prompt: str,
        timeout: Optional[int] = None,
        log_path: Optional[Path] = None,
        output_callback: Optional[Callable[[str], None]] = None,
    ) -> ExecutionResult:
        """Execute the agent with real-time output streaming.

        Stdout and stderr are merged, like ``2>&1 | tee``.

        Args:
            prompt: Instruction to send to the agent
            timeout: Timeout in seconds (uses default if None)
            log_path: Optional transcript file receiving every output line
            output_callback: Optional callback for streaming output (receives line strings)

        Returns:
            ExecutionResult with complete output

        Raises:
            AgentTimeoutError: If the agent overruns the timeout; it is killed first
            AgentExecutionError: If the agent CLI cannot be started
        """
        if timeout is None:
            timeout = self.default_timeout

        cmd = self.build_command(prompt)
        start_time = time.time()
        output_lines: List[str] = []

        log_file = None
        if log_path is not None:
            log_path = Path(log_path)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            log_file = open(log_path, "w", encoding="utf-8")

        try:
            try:
                process = subprocess.Popen(
                    cmd,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.STDOUT,
                    cwd=str(self.working_dir),
                    text=True,
                    bufsize=1,  # Line buffered
                    start_new_session=True,
                )
            except FileNotFoundError as e:
                raise AgentExecutionError(
                    f"Agent CLI not found. Is it installed? Command: {self.command}"
                ) from e
            except OSError as e:
                raise AgentExecutionError(f"Failed to start agent: {e}") from e

            def read_output():
                for line in iter(process.stdout.readline, ""):
                    output_lines.append(line)
                    if log_file is not None:
                        log_file.write(line)
                        log_file.flush()
                    if output_callback:
                        output_callback(line.rstrip("\n"))
                process.stdout.close()

            reader = threading.Thread(target=read_output, daemon=True)
            reader.start()

            try:
                exit_code = process.wait(timeout=timeout)
            except subprocess.TimeoutExpired:
                _kill_process_group(process)
                exit_code = process.wait()
                reader.join(timeout=5)
                raise AgentTimeoutError(
                    f"Agent timed out after {timeout}s", exit_code=exit_code
                )
            except KeyboardInterrupt:
                _kill_process_group(process)
                process.wait()
                raise

            reader.join(timeout=5)
        finally:
            if log_file is not None:
                log_file.close()

        duration = time.time() - start_time
        success = exit_code == 0

        error_message = None
        if not success:
            error_message = f"Agent exited with code {exit_code}"

        return ExecutionResult(
            success=success,
            output="".join(output_lines),
            exit_code=exit_code,
            duration_seconds=duration,
            error_message=error_message,
        )

    def validate_available(self) -> bool:
        """Check if the agent CLI is available."""
        try:
            binary = shlex.split(self.command)[0]
            result = subprocess.run(
                [binary, "--version"],
                capture_output=True,
                timeout=5,
            )
            return result.returncode == 0
        except (FileNotFoundError, subprocess.TimeoutExpired):
            return False


def _kill_process_group(process: subprocess.Popen) -> None:
    """Kill the agent and everything it spawned."""
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass
