"""Main CLI entry point for epicrunner."""

import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from epicrunner.cli.commands.decide import decide_command
from epicrunner.cli.commands.init import init_command
from epicrunner.cli.commands.run import run_command
from epicrunner.core.exceptions import EpicRunnerError

console = Console()


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config: Optional[Path]) -> None:
    """epicrunner: Autonomous Epic Runner.

    Works through the open tasks of one epic with a coding agent, one attempt
    at a time, publishing tracker and git state after every success.

    \b
    Examples:
        epicrunner init                 # Write a default project config
        epicrunner run lb-42            # Run epic lb-42 (15m per attempt)
        epicrunner run lb-42 30         # Run with a 30 minute timeout
        epicrunner decide               # Exit 0 to continue, 1 to stop
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config"] = config

    if verbose:
        console.print("[dim]epicrunner starting with verbose output enabled[/dim]")


cli.add_command(init_command, name="init")
cli.add_command(run_command, name="run")
cli.add_command(decide_command, name="decide")


def main() -> None:
    """Main entry point for the CLI."""
    try:
        cli()
    except EpicRunnerError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"[red]Unexpected error:[/red] {e}")
        if "--verbose" in sys.argv or "-v" in sys.argv:
            console.print_exception()
        sys.exit(1)


if __name__ == "__main__":
    main()
