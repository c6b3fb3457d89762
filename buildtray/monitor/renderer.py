"""Rich terminal renderer for the tray's visible rows.

Reads only ``RowCollection.views()`` copies; it never touches rows or
membership.

Color scheme
------------
- green     : Success
- red       : Broken
- yellow    : Building
- bold red  : BrokenAndBuilding
- magenta   : Failing
- dim       : NotConnected
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

from buildtray.models.snapshot import ProjectState

if TYPE_CHECKING:
    from buildtray.monitor.collection import RowView


_STATE_STYLES: dict[ProjectState, str] = {
    ProjectState.SUCCESS: "green",
    ProjectState.BROKEN: "red",
    ProjectState.BUILDING: "yellow",
    ProjectState.BROKEN_AND_BUILDING: "bold red",
    ProjectState.FAILING: "magenta",
    ProjectState.NOT_CONNECTED: "dim",
}

_STYLE_BY_IMAGE: dict[int, str] = {
    state.image_index: style for state, style in _STATE_STYLES.items()
}

_COLUMNS: list[tuple[str, str]] = [
    ("Server", "server"),
    ("Category", "category"),
    ("Activity", "activity"),
    ("Detail", "detail"),
    ("Last Build Label", "last_build_label"),
    ("Last Build Time", "last_build_time"),
    ("Status", "status"),
    ("Queue", "queue_name"),
    ("Priority", "queue_priority"),
]


class TrayRenderer:
    """Renders row views as a Rich table.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def render_rows(self, views: list[RowView], *, title: str = "Build Tray") -> Table:
        """Build a Rich Table with one line per visible row."""
        table = Table(title=title, show_header=True, header_style="bold cyan")
        table.add_column("Project", min_width=16)
        for header, _ in _COLUMNS:
            table.add_column(header)

        for view in views:
            style = _STYLE_BY_IMAGE.get(view.image_index, "")
            name = f"[{style}]{view.project_name}[/{style}]" if style else view.project_name
            table.add_row(name, *(view.fields.get(key, "") for _, key in _COLUMNS))

        return table

    def print_rows(self, views: list[RowView], *, title: str = "Build Tray") -> None:
        """Print the visible rows, or a placeholder when none are visible."""
        if not views:
            self.console.print("[dim]No visible projects.[/dim]")
            return
        self.console.print(self.render_rows(views, title=title))
