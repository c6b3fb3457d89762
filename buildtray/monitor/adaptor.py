"""RowAdaptor — keeps one project's tray row in step with its snapshots.

Each adaptor owns a single ``Row`` and a two-state membership machine:

- ``VISIBLE -> HIDDEN`` when a snapshot fails the visibility policy; the
  row is removed from the collection.
- ``HIDDEN -> VISIBLE`` when a snapshot passes it; the row is inserted
  again.
- Self-transitions touch the collection not at all.

Fields are re-rendered on every snapshot, hidden or not, so a row that
reappears never shows values from before it was hidden.

Deliveries for one adaptor never overlap (source contract), so the
adaptor holds no lock of its own.  The collection's transaction makes the
membership change and field merge atomic for readers.
"""

from __future__ import annotations

import logging

from buildtray.models.config import VisibilityConfig
from buildtray.models.snapshot import ProjectSnapshot
from buildtray.monitor.collection import MembershipState, Row, VisualCollection
from buildtray.monitor.feed import SnapshotSource
from buildtray.monitor.formatter import (
    DetailStringProvider,
    ServerNameTable,
    format_snapshot,
)
from buildtray.monitor.visibility import should_show

logger = logging.getLogger(__name__)


class RowAdaptor:
    """Binds one project's snapshot stream to its row in the tray.

    Parameters
    ----------
    collection:
        The shared visual collection rows are inserted into and removed
        from.
    visibility:
        Visibility rules, fixed for the adaptor's lifetime.
    server_names:
        Multi-server name table.  ``None`` in single-server deployments,
        where the server column is derived from the project's web URL.
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
        self._source: SnapshotSource | None = None
        self.row = Row()

    @property
    def state(self) -> MembershipState:
        return self.row.membership_state

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------

    def attach(self, source: SnapshotSource) -> Row:
        """Subscribe to *source* and return the owned row.

        The source's current snapshot decides the initial membership; a
        row that starts visible is inserted into the collection here.
        Must be called exactly once per adaptor.
        """
        self._source = source
        initial = source.current
        self.row.project_name = initial.project_name

        updates = self._format(initial)
        with self._collection.transaction():
            if should_show(initial, self._visibility):
                self.row.membership_state = MembershipState.VISIBLE
                self._collection.insert(self.row)
            self._apply(initial, updates)

        source.subscribe(self.on_snapshot)
        logger.debug(
            "Attached row for %s (%s)", initial.project_name, self.state.value
        )
        return self.row

    def detach(self) -> None:
        """Stop listening and take the row out of the collection."""
        if self._source is not None:
            self._source.unsubscribe(self.on_snapshot)
            self._source = None
        with self._collection.transaction():
            if self.row.membership_state is MembershipState.VISIBLE:
                self._collection.remove(self.row)
                self.row.membership_state = MembershipState.HIDDEN

    # ------------------------------------------------------------------
    # Snapshot handling
    # ------------------------------------------------------------------

    def on_snapshot(self, snapshot: ProjectSnapshot) -> None:
        """Apply one polled snapshot to the row.

        Formatting runs before any mutation, so a formatting error
        propagates with the row and the collection unchanged.
        """
        updates = self._format(snapshot)
        show = should_show(snapshot, self._visibility)

        with self._collection.transaction():
            if not show and self.row.membership_state is MembershipState.VISIBLE:
                self._collection.remove(self.row)
                self.row.membership_state = MembershipState.HIDDEN
                logger.debug("Hid row for %s", snapshot.project_name)
            elif show and self.row.membership_state is MembershipState.HIDDEN:
                self._collection.insert(self.row)
                self.row.membership_state = MembershipState.VISIBLE
                logger.debug("Showed row for %s", snapshot.project_name)
            self._apply(snapshot, updates)

    def _format(self, snapshot: ProjectSnapshot) -> dict[str, str]:
        return format_snapshot(snapshot, self._server_names, self._detail_provider)

    def _apply(self, snapshot: ProjectSnapshot, updates: dict[str, str]) -> None:
        self.row.image_index = snapshot.project_state.image_index
        self.row.apply(updates)
