"""Main Typer application — imports and registers all CLI commands.

Entry point: ``buildtray`` (configured via pyproject.toml console_scripts).
"""

from __future__ import annotations

import logging

import typer

from buildtray.cli.commands.replay_cmd import replay_cmd
from buildtray.config import settings

app = typer.Typer(
    name="buildtray",
    help="buildtray: live build status tray for one or more build servers.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        None, "--log-level", help="Logging level (defaults to BUILDTRAY_LOG_LEVEL)."
    ),
) -> None:
    """Configure logging before any command runs."""
    level = (log_level or settings.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(levelname)s %(name)s: %(message)s",
    )


app.command(name="replay", help="Replay recorded polls and show the tray.")(replay_cmd)


@app.command(name="states", help="List project states and their icon slots.")
def states_cmd() -> None:
    """List every project state with its icon slot and current visibility."""
    from rich.console import Console
    from rich.table import Table

    from buildtray.models.snapshot import ProjectState

    console = Console()
    hidden = settings.visibility_config().hidden_states

    table = Table(title="Project States")
    table.add_column("State", style="cyan")
    table.add_column("Icon", justify="right")
    table.add_column("Hidden", justify="center")

    for state in ProjectState:
        flag = "[yellow]Yes[/yellow]" if state in hidden else "[green]No[/green]"
        table.add_row(state.value, str(state.image_index), flag)

    console.print(table)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
