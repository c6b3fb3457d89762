"""``buildtray replay FILE`` — replay recorded polls through the tray.

The file holds the configured servers and a list of poll rounds::

    {
      "servers": [{"display_name": "ServerA", "projects": ["Proj1"]}],
      "polls": [[{"project_name": "Proj1", ...}], ...]
    }

The first snapshot seen for a project starts monitoring it; later ones
are delivered to its row.  The visible rows are printed after every
round, or only after the last one with ``--final-only``.
"""

from __future__ import annotations

from pathlib import Path

import typer
from pydantic import BaseModel, ConfigDict, ValidationError
from rich.console import Console
from rich.markup import escape

from buildtray.config import settings
from buildtray.models.config import (
    DISCONNECTED_FLAG,
    BuildServer,
    MultiServerConfig,
    VisibilityConfig,
)
from buildtray.models.snapshot import ProjectSnapshot, ProjectState
from buildtray.monitor.board import StatusBoard
from buildtray.monitor.collection import RowCollection
from buildtray.monitor.feed import SnapshotFeed
from buildtray.monitor.formatter import ServerNameTable
from buildtray.monitor.renderer import TrayRenderer

console = Console()


class ReplayDocument(BaseModel):
    """Recorded server configuration plus poll rounds."""

    model_config = ConfigDict(frozen=True)

    servers: list[BuildServer] = []
    polls: list[list[ProjectSnapshot]] = []


def replay_cmd(
    snapshot_file: Path = typer.Argument(
        None,
        help="JSON file of recorded polls (defaults to BUILDTRAY_SNAPSHOT_FILE).",
    ),
    show_disconnected: bool = typer.Option(
        None,
        "--show-disconnected/--hide-disconnected",
        help="Show projects whose server cannot be reached.",
    ),
    hide: list[ProjectState] = typer.Option(
        None,
        "--hide",
        "-H",
        help="Project state to hide (repeatable).",
    ),
    single_server: bool = typer.Option(
        False,
        "--single-server",
        help="Derive server names from project web URLs instead of the server table.",
    ),
    final_only: bool = typer.Option(
        False,
        "--final-only",
        help="Print only the rows left after the last poll round.",
    ),
) -> None:
    """Replay recorded polls and print the visible tray rows."""
    path = snapshot_file or settings.snapshot_file
    if not path.exists():
        console.print(f"[bold red]Snapshot file not found:[/bold red] {path}")
        raise typer.Exit(code=1)

    try:
        document = ReplayDocument.model_validate_json(path.read_text(encoding="utf-8"))
    except ValidationError as exc:
        console.print(f"[bold red]Invalid snapshot file:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc

    visibility = settings.visibility_config()
    if show_disconnected is not None or hide:
        visibility = VisibilityConfig(
            hidden_states=frozenset(hide) if hide else visibility.hidden_states,
            display_flags={
                DISCONNECTED_FLAG: (
                    visibility.show_disconnected
                    if show_disconnected is None
                    else show_disconnected
                )
            },
        )

    server_names = None
    if not single_server:
        server_names = ServerNameTable(
            MultiServerConfig(servers=document.servers).server_name_pairs()
        )

    collection = RowCollection()
    board = StatusBoard(collection, visibility, server_names=server_names)
    renderer = TrayRenderer(console=console)

    failed = False
    for round_no, poll in enumerate(document.polls, start=1):
        pending: list[ProjectSnapshot] = []
        for snapshot in poll:
            if board.is_watching(snapshot.project_name, snapshot.server_display_name):
                pending.append(snapshot)
                continue
            try:
                board.watch(SnapshotFeed(snapshot))
            except ValueError as exc:
                failed = True
                console.print(
                    f"[red]Cannot watch {snapshot.project_name}:[/red] {escape(str(exc))}"
                )

        for failure in board.publish_all(pending):
            failed = True
            console.print(
                f"[red]Poll {round_no}: {escape(failure.project_name)} on "
                f"{escape(failure.server_display_name or '<default>')} failed:[/red] "
                f"{escape(failure.error)}"
            )

        if not final_only:
            renderer.print_rows(collection.views(), title=f"Poll {round_no}")

    if final_only:
        renderer.print_rows(collection.views())

    if failed:
        raise typer.Exit(code=1)
