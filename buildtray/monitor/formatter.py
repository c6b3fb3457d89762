"""Display formatter — maps a snapshot onto the tray row's field values.

The formatter is pure.  It returns only the fields that change; the row
adaptor merges the result into its row.  A field missing from the result
keeps whatever value it held before, which is how two cases are expressed:

- a disconnected snapshot clears ``activity`` and ``last_build_label`` and
  leaves every other data field stale-but-present;
- a server name lookup with no match leaves ``server`` untouched.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol, runtime_checkable
from urllib.parse import urlsplit

from buildtray.models.snapshot import ProjectSnapshot

# Row field names, in display column order.
ROW_FIELDS: tuple[str, ...] = (
    "server",
    "category",
    "activity",
    "detail",
    "last_build_label",
    "last_build_time",
    "status",
    "queue_name",
    "queue_priority",
)


class MalformedWebUrlError(ValueError):
    """Raised when a server name cannot be derived from a project web URL."""


# ---------------------------------------------------------------------------
# Server name disambiguation
# ---------------------------------------------------------------------------


class ServerNameTable:
    """Index of every configured ``(project_name, server_display_name)`` pair.

    Servers may expose projects with the same name, so the lookup key is
    the pair, never the project name alone.  The pairs are indexed once;
    when several entries carry the same key the last one wins.

    Parameters
    ----------
    pairs:
        Ordered ``(project_name, server_display_name)`` pairs.
    """

    def __init__(self, pairs: Iterable[tuple[str, str]] = ()) -> None:
        self._index: dict[tuple[str, str], str] = {}
        self.refresh(pairs)

    def refresh(self, pairs: Iterable[tuple[str, str]]) -> None:
        """Replace the index with a fresh set of pairs."""
        index: dict[tuple[str, str], str] = {}
        for project_name, server_name in pairs:
            index[(project_name, server_name)] = server_name
        # Single assignment so concurrent lookups see the old or new index.
        self._index = index

    def lookup(self, project_name: str, server_display_name: str) -> str | None:
        """Return the configured server name, or ``None`` when unconfigured."""
        return self._index.get((project_name, server_display_name))

    def __len__(self) -> int:
        return len(self._index)


def server_host(web_url: str) -> str:
    """Return the host portion of *web_url*.

    Raises
    ------
    MalformedWebUrlError
        If the URL has no host component.
    """
    try:
        host = urlsplit(web_url).hostname
    except ValueError as exc:
        raise MalformedWebUrlError(f"Invalid web URL {web_url!r}: {exc}") from exc
    if not host:
        raise MalformedWebUrlError(f"Web URL {web_url!r} has no host")
    return host


# ---------------------------------------------------------------------------
# Detail strings
# ---------------------------------------------------------------------------


@runtime_checkable
class DetailStringProvider(Protocol):
    """Produces the free-text ``detail`` column for a snapshot."""

    def format_detail(self, snapshot: ProjectSnapshot) -> str:
        ...


class DefaultDetailStringProvider:
    """Describes connection problems, running builds and the next check."""

    def format_detail(self, snapshot: ProjectSnapshot) -> str:
        if not snapshot.is_connected:
            if snapshot.connection_error:
                return f"Error: {snapshot.connection_error}"
            return "Connecting..."

        if snapshot.activity.is_building:
            detail = f"Building since {snapshot.last_build_time}"
            if snapshot.build_stage:
                detail += f" ({snapshot.build_stage})"
            return detail

        if snapshot.next_build_time is not None:
            return f"Next build check: {snapshot.next_build_time}"
        return f"Last build: {snapshot.last_build_label}"


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


def format_queue_priority(priority: int) -> str:
    """Render *priority* as an 8-digit zero-padded decimal string."""
    sign = "-" if priority < 0 else ""
    return f"{sign}{abs(priority):08d}"


def format_snapshot(
    snapshot: ProjectSnapshot,
    server_names: ServerNameTable | None = None,
    detail_provider: DetailStringProvider | None = None,
) -> dict[str, str]:
    """Return the row field values derived from *snapshot*.

    Parameters
    ----------
    snapshot:
        The poll result to render.
    server_names:
        Multi-server lookup table.  When ``None`` the server name is the
        host of ``snapshot.web_url``.
    detail_provider:
        Source of the ``detail`` column.  Defaults to
        ``DefaultDetailStringProvider``.

    Raises
    ------
    MalformedWebUrlError
        Without a table, if the web URL has no host.
    """
    provider = detail_provider or DefaultDetailStringProvider()

    if not snapshot.is_connected:
        return {
            "activity": "",
            "last_build_label": "",
            "detail": provider.format_detail(snapshot),
        }

    fields: dict[str, str] = {}
    if server_names is not None:
        server = server_names.lookup(
            snapshot.project_name, snapshot.server_display_name
        )
        if server is not None:
            fields["server"] = server
    else:
        fields["server"] = server_host(snapshot.web_url)

    fields.update(
        category=snapshot.category,
        activity=snapshot.activity.value,
        detail=provider.format_detail(snapshot),
        last_build_label=snapshot.last_build_label,
        last_build_time=str(snapshot.last_build_time),
        status=snapshot.integrator_state,
        queue_name=snapshot.queue_name,
        queue_priority=format_queue_priority(snapshot.queue_priority),
    )
    return fields
