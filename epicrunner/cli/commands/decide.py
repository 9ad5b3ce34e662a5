"""epicrunner decide command."""

import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from epicrunner.config.loader import load_config
from epicrunner.config.models import parse_duration
from epicrunner.core.exceptions import DecisionError, EpicRunnerError, TrackerError
from epicrunner.core.tracker import TrackerClient
from epicrunner.orchestrator.decision import DecisionOracle
from epicrunner.tracking.run_summary import load_latest_summary

console = Console()

EXIT_CONTINUE = 0
EXIT_STOP = 1
EXIT_ERROR = 2


@click.command()
@click.option(
    "--spec",
    "-s",
    "spec_path",
    type=click.Path(path_type=Path),
    help="Specification document (default: decider.spec_path)",
)
@click.option(
    "--repo",
    "-r",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Repository to judge (default: current directory)",
)
@click.pass_context
def decide_command(
    ctx: click.Context, spec_path: Optional[Path], repo: Optional[Path]
) -> None:
    """Decide whether another agent run is worthwhile.

    Reads the specification, the tracker state and the latest run summary,
    and asks a model to judge them.

    \b
    Exit codes:
        0  continue
        1  stop: the specification is done
        2  no decision could be made
    """
    config_path = ctx.obj.get("config") if ctx.obj else None

    try:
        config = load_config(project_config_path=config_path)
    except EpicRunnerError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(EXIT_ERROR)

    repo_path = (repo or Path.cwd()).resolve()
    spec_file = spec_path or config.resolve_path(config.decider.spec_path, repo_path)
    if not spec_file.exists():
        console.print(f"[red]Specification not found:[/red] {spec_file}")
        sys.exit(EXIT_ERROR)
    specification = spec_file.read_text(encoding="utf-8")

    tracker = TrackerClient(command=config.tracker.command, working_dir=repo_path)
    try:
        snapshot = tracker.snapshot()
    except TrackerError as e:
        snapshot = f"(tracker unavailable: {e})"

    latest_summary = load_latest_summary(
        config.resolve_path(config.runner.summaries_dir, repo_path)
    )

    oracle = DecisionOracle(
        command=config.decider.command,
        model=config.decider.model or None,
        working_dir=repo_path,
        timeout=parse_duration(config.decider.timeout),
    )

    try:
        decision = oracle.decide(specification, snapshot, latest_summary)
    except DecisionError as e:
        console.print(f"[red]Decision failed:[/red] {e}")
        sys.exit(EXIT_ERROR)

    console.print(f"Decider: {decision.reason}", markup=False)
    sys.exit(EXIT_CONTINUE if decision.should_continue else EXIT_STOP)
