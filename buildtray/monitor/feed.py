"""Snapshot sources — deliver one project's polled snapshots to listeners."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Protocol, runtime_checkable

from buildtray.models.snapshot import ProjectSnapshot

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[ProjectSnapshot], None]


@runtime_checkable
class SnapshotSource(Protocol):
    """Delivers one project's snapshots, one at a time, in arrival order.

    No two deliveries to the same listener overlap.
    """

    @property
    def current(self) -> ProjectSnapshot:
        """The most recent snapshot for the project."""
        ...

    def subscribe(self, listener: SnapshotListener) -> None:
        ...

    def unsubscribe(self, listener: SnapshotListener) -> None:
        ...


class SnapshotFeed:
    """In-process snapshot source for a single project.

    ``publish`` records the snapshot as ``current`` and hands it to every
    listener in subscription order.  Publishes are serialized, so a
    listener never sees two deliveries at once.  Listener errors propagate
    to the publisher and stop delivery to later listeners of this feed.

    Parameters
    ----------
    initial:
        The project's first known snapshot.  Its project name and server
        identify the feed.
    """

    def __init__(self, initial: ProjectSnapshot) -> None:
        self._current = initial
        self._listeners: list[SnapshotListener] = []
        self._delivery_lock = threading.Lock()

    @property
    def current(self) -> ProjectSnapshot:
        return self._current

    @property
    def project_name(self) -> str:
        return self._current.project_name

    @property
    def server_display_name(self) -> str:
        return self._current.server_display_name

    def subscribe(self, listener: SnapshotListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)
            logger.debug("Subscribed listener to feed %s", self.project_name)

    def unsubscribe(self, listener: SnapshotListener) -> None:
        try:
            self._listeners.remove(listener)
            logger.debug("Unsubscribed listener from feed %s", self.project_name)
        except ValueError:
            pass

    def publish(self, snapshot: ProjectSnapshot) -> None:
        """Record *snapshot* and deliver it to every listener.

        Raises
        ------
        ValueError
            If the snapshot belongs to a different project.
        """
        if snapshot.project_name != self.project_name:
            raise ValueError(
                f"Snapshot for {snapshot.project_name!r} published to feed "
                f"for {self.project_name!r}"
            )
        with self._delivery_lock:
            self._current = snapshot
            for listener in list(self._listeners):
                listener(snapshot)
