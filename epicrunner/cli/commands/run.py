"""epicrunner run command."""

import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from epicrunner.config.loader import load_config
from epicrunner.config.models import EpicRunnerConfig, parse_duration
from epicrunner.core.agent_executor import AgentExecutor
from epicrunner.core.attempt_executor import AttemptExecutor
from epicrunner.core.branch import BranchManager
from epicrunner.core.exceptions import EpicRunnerError
from epicrunner.core.git_utils import GitUtils
from epicrunner.core.tracker import TaskSource, TrackerClient
from epicrunner.orchestrator.epic_runner import EXIT_INTERRUPTED, EpicRunner
from epicrunner.orchestrator.failure_tracker import FailureTracker
from epicrunner.orchestrator.sync_manager import SyncManager
from epicrunner.tracking.activity_logger import ActivityLogger, generate_run_id

console = Console()


@click.command()
@click.argument("epic_id")
@click.argument("timeout_minutes", required=False, type=click.IntRange(min=1))
@click.option(
    "--repo",
    "-r",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Repository to work in (default: current directory)",
)
@click.option(
    "--quiet-agent",
    "-q",
    is_flag=True,
    help="Write agent output only to the attempt log, not the terminal",
)
@click.pass_context
def run_command(
    ctx: click.Context,
    epic_id: str,
    timeout_minutes: Optional[int],
    repo: Optional[Path],
    quiet_agent: bool,
) -> None:
    """Run the open tasks of EPIC_ID until none remain.

    Each attempt gets TIMEOUT_MINUTES (default 15) before the agent is
    stopped. Three consecutive failed or timed-out attempts abort the run.

    \b
    Exit codes:
        0  all tasks closed and the branch published
        1  setup failed (unknown epic, branch conflict, ...)
        2  aborted after consecutive failures
        3  all tasks closed but the final publish failed
        130  stopped by a signal after the final publish

    Examples:
        epicrunner run lb-42           # 15 minutes per attempt
        epicrunner run lb-42 30        # 30 minutes per attempt
    """
    config_path = ctx.obj.get("config") if ctx.obj else None

    try:
        config = load_config(project_config_path=config_path)
        repo_path = (repo or Path.cwd()).resolve()
        runner = build_runner(config, repo_path, epic_id, stream_agent=not quiet_agent)
    except EpicRunnerError as e:
        console.print(f"[red]Failed to start run:[/red] {e}")
        sys.exit(1)

    verbose = ctx.obj.get("verbose") if ctx.obj else False
    if verbose or config.logging.level == "DEBUG":
        console.print(f"[dim]Agent command: {config.agent.command}[/dim]", highlight=False)
        console.print(f"[dim]Tracker command: {config.tracker.command}[/dim]", highlight=False)
        if runner.activity_logger is not None:
            console.print(f"[dim]Activity log: {runner.activity_logger.log_file}[/dim]")

    if timeout_minutes is not None:
        timeout_seconds = timeout_minutes * 60
    else:
        timeout_seconds = config.agent.timeout_seconds()

    console.print(
        f"Running epic [bold]{epic_id}[/bold] "
        f"({timeout_seconds // 60}m timeout per task)..."
    )
    try:
        result = runner.run(epic_id, timeout_seconds)
    except KeyboardInterrupt:
        console.print("[yellow]Run interrupted[/yellow]")
        sys.exit(EXIT_INTERRUPTED)

    if result.summary_path:
        console.print(f"[dim]Summary:[/dim] {result.summary_path}")
    sys.exit(result.exit_code)


def build_runner(
    config: EpicRunnerConfig,
    repo_path: Path,
    epic_id: str,
    stream_agent: bool = True,
) -> EpicRunner:
    """Wire an EpicRunner for ``repo_path`` from configuration."""
    git = GitUtils(repo_path, remote=config.git.remote)
    tracker = TrackerClient(command=config.tracker.command, working_dir=repo_path)
    agent = AgentExecutor(
        command=config.agent.command,
        model=config.agent.model or None,
        working_dir=repo_path,
        default_timeout=config.agent.timeout_seconds(),
    )

    output_callback = None
    if stream_agent:
        output_callback = lambda line: console.print(line, markup=False, highlight=False)

    attempt_executor = AttemptExecutor(
        agent=agent,
        log_dir=config.resolve_path(config.runner.log_dir, repo_path),
        tracker_command=config.tracker.command,
        output_callback=output_callback,
    )

    run_id = generate_run_id(epic_id)
    activity_logger = ActivityLogger(
        run_id, config.resolve_path(config.logging.activity_dir, repo_path)
    )

    return EpicRunner(
        task_source=TaskSource(tracker),
        branch_manager=BranchManager(git, reuse_existing=config.git.reuse_existing_branch),
        attempt_executor=attempt_executor,
        sync_manager=SyncManager(tracker, git),
        failure_tracker=FailureTracker(config.runner.max_consecutive_failures),
        console=console,
        activity_logger=activity_logger,
        summaries_dir=config.resolve_path(config.runner.summaries_dir, repo_path),
        run_id=run_id,
        show_listing=config.runner.show_listing,
        query_retry_delay=parse_duration(config.runner.tracker_retry_delay),
    )
