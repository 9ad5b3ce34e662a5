"""epicrunner init command."""

from pathlib import Path
from typing import List

import click
from rich.console import Console

from epicrunner.config.loader import PROJECT_DIR_NAME, create_default_config, save_config
from epicrunner.core.exceptions import ConfigurationError

console = Console()

GITIGNORE_ENTRIES = ["logs/epic-runs/", "logs/activity/"]


@click.command()
@click.option(
    "--force",
    "-f",
    is_flag=True,
    help="Overwrite an existing configuration",
)
def init_command(force: bool) -> None:
    """Initialize epicrunner in the current project.

    Creates a .epicrunner directory holding the default configuration and
    adds the attempt log directories to the project .gitignore.

    Examples:
        epicrunner init                # Initialize with default settings
        epicrunner init --force        # Rewrite the configuration
    """
    project_root = Path.cwd()
    project_dir = project_root / PROJECT_DIR_NAME
    config_path = project_dir / "config.yaml"

    if config_path.exists() and not force:
        console.print(
            f"[yellow]epicrunner already initialized in {project_root}[/yellow]\n"
            "Use --force to reinitialize"
        )
        return

    try:
        save_config(create_default_config(), config_path)
    except ConfigurationError as e:
        console.print(f"[red]Failed to initialize epicrunner:[/red] {e}")
        raise click.ClickException(f"Initialization failed: {e}")

    added = _update_gitignore(project_root / ".gitignore")

    console.print(f"[green]✓[/green] epicrunner initialized in {project_root}")
    console.print(f"[dim]Configuration:[/dim] {config_path}")
    if added:
        console.print(f"[dim]Added to .gitignore:[/dim] {', '.join(added)}")
    console.print("\n[bold]Next steps:[/bold]")
    console.print("1. Review and customize .epicrunner/config.yaml")
    console.print("2. Start a run: epicrunner run <epic-id>")


def _update_gitignore(gitignore_path: Path) -> List[str]:
    """Append the attempt log directories to .gitignore if missing.

    Returns:
        The entries that were added
    """
    existing = ""
    if gitignore_path.exists():
        existing = gitignore_path.read_text(encoding="utf-8")
    present = {line.strip() for line in existing.splitlines()}

    missing = [entry for entry in GITIGNORE_ENTRIES if entry not in present]
    if missing:
        prefix = "" if not existing or existing.endswith("\n") else "\n"
        with open(gitignore_path, "a", encoding="utf-8") as f:
            f.write(prefix + "\n".join(missing) + "\n")
    return missing
