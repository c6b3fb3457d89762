"""StatusBoard — one row adaptor per monitored project.

The board wires snapshot feeds to row adaptors and routes a poller's
snapshots to the right feed.  A failure while applying one project's
snapshot is logged and reported but never stops the other projects'
rows from updating.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict

from buildtray.models.config import VisibilityConfig
from buildtray.models.snapshot import ProjectSnapshot
from buildtray.monitor.adaptor import RowAdaptor
from buildtray.monitor.collection import Row, RowView, VisualCollection
from buildtray.monitor.feed import SnapshotFeed
from buildtray.monitor.formatter import DetailStringProvider, ServerNameTable

logger = logging.getLogger(__name__)

ProjectKey = tuple[str, str]


class DeliveryFailure(BaseModel):
    """A snapshot that could not be applied to its project's row."""

    model_config = ConfigDict(frozen=True)

    project_name: str
    server_display_name: str
    error: str


class UnknownProjectError(KeyError):
    """Raised when a snapshot arrives for a project nobody watches."""


def _key(snapshot: ProjectSnapshot) -> ProjectKey:
    return (snapshot.project_name, snapshot.server_display_name)


class StatusBoard:
    """Owns the row adaptors for every monitored project.

    Projects are keyed by ``(project_name, server_display_name)`` so that
    same-named projects on different servers get separate rows.

    Parameters
    ----------
    collection:
        Shared visual collection for every row.
    visibility:
        Visibility rules applied to every project.
    server_names:
        Multi-server name table, or ``None`` for single-server setups.
    detail_provider:
        Source of the ``detail`` column.
    """

    def __init__(
        self,
        collection: VisualCollection,
        visibility: VisibilityConfig,
        *,
        server_names: ServerNameTable | None = None,
        detail_provider: DetailStringProvider | None = None,
    ) -> None:
        self._collection = collection
        self._visibility = visibility
        self._server_names = server_names
        self._detail_provider = detail_provider
        self._feeds: dict[ProjectKey, SnapshotFeed] = {}
        self._adaptors: dict[ProjectKey, RowAdaptor] = {}

    # ------------------------------------------------------------------
    # Project management
    # ------------------------------------------------------------------

    def watch(self, feed: SnapshotFeed) -> Row:
        """Start monitoring the project behind *feed* and return its row.

        Watching an already watched project returns the existing row.
        """
        key = _key(feed.current)
        if key in self._adaptors:
            return self._adaptors[key].row

        adaptor = RowAdaptor(
            self._collection,
            self._visibility,
            server_names=self._server_names,
            detail_provider=self._detail_provider,
        )
        row = adaptor.attach(feed)
        self._feeds[key] = feed
        self._adaptors[key] = adaptor
        logger.info("Watching project %s on %s", key[0], key[1] or "<default>")
        return row

    def unwatch(self, project_name: str, server_display_name: str = "") -> None:
        """Tear down monitoring for a project.  Unknown projects are ignored."""
        key = (project_name, server_display_name)
        adaptor = self._adaptors.pop(key, None)
        self._feeds.pop(key, None)
        if adaptor is not None:
            adaptor.detach()
            logger.info("Stopped watching project %s", project_name)

    def is_watching(self, project_name: str, server_display_name: str = "") -> bool:
        return (project_name, server_display_name) in self._adaptors

    @property
    def rows(self) -> list[RowView]:
        """Copies of every owned row, visible or hidden, in watch order."""
        with self._collection.transaction():
            return [adaptor.row.view() for adaptor in self._adaptors.values()]

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    def publish(self, snapshot: ProjectSnapshot) -> None:
        """Route *snapshot* to its project's feed.

        Errors from formatting propagate to the caller.

        Raises
        ------
        UnknownProjectError
            If the project is not watched.
        """
        feed = self._feeds.get(_key(snapshot))
        if feed is None:
            raise UnknownProjectError(
                f"Project {snapshot.project_name!r} on "
                f"{snapshot.server_display_name!r} is not watched"
            )
        feed.publish(snapshot)

    def publish_all(self, snapshots: Iterable[ProjectSnapshot]) -> list[DeliveryFailure]:
        """Deliver a round of polled snapshots, isolating failures.

        Returns one ``DeliveryFailure`` per snapshot that raised.  Snapshots
        for unwatched projects are logged and skipped.
        """
        failures: list[DeliveryFailure] = []
        for snapshot in snapshots:
            try:
                self.publish(snapshot)
            except UnknownProjectError:
                logger.warning(
                    "Dropping snapshot for unwatched project %s",
                    snapshot.project_name,
                )
            except Exception as exc:  # noqa: BLE001
                logger.error(
                    "Snapshot for %s failed: %s", snapshot.project_name, exc
                )
                failures.append(
                    DeliveryFailure(
                        project_name=snapshot.project_name,
                        server_display_name=snapshot.server_display_name,
                        error=str(exc),
                    )
                )
        return failures
