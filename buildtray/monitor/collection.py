"""Tray rows and the shared, ordered collection of visible rows.

Many row adaptors write to one collection while a renderer reads it, so
every mutation and every read goes through a single lock.  Adaptors hold
the lock via ``transaction()`` while they change membership and fields,
and renderers only ever see copies produced by ``views()``.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from enum import Enum
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict

from buildtray.monitor.formatter import ROW_FIELDS


class MembershipState(str, Enum):
    """Whether a row is currently part of the visual collection."""

    VISIBLE = "visible"
    HIDDEN = "hidden"


class RowView(BaseModel):
    """Frozen copy of a row, handed to renderers."""

    model_config = ConfigDict(frozen=True)

    project_name: str
    image_index: int
    fields: dict[str, str]


class Row:
    """One project's entry, owned by exactly one row adaptor.

    A hidden row still exists and keeps its fields current; it is only
    left out of the visual collection.
    """

    def __init__(self, project_name: str = "") -> None:
        self.project_name = project_name
        self.image_index = 0
        self.membership_state = MembershipState.HIDDEN
        self.fields: dict[str, str] = {name: "" for name in ROW_FIELDS}

    def apply(self, updates: dict[str, str]) -> None:
        """Merge formatted field values; absent fields keep their value."""
        self.fields.update(updates)

    def view(self) -> RowView:
        return RowView(
            project_name=self.project_name,
            image_index=self.image_index,
            fields=dict(self.fields),
        )

    def __repr__(self) -> str:
        return f"Row({self.project_name!r}, {self.membership_state.value})"


@runtime_checkable
class VisualCollection(Protocol):
    """Ordered set of rows displayed by an external renderer."""

    def insert(self, row: Row) -> None:
        ...

    def remove(self, row: Row) -> None:
        ...

    def transaction(self) -> AbstractContextManager[object]:
        """Hold off readers while a row is being changed."""
        ...


class RowCollection:
    """Lock-guarded ordered collection of visible rows.

    ``insert`` appends at the end; no re-sorting is done here.  Inserting
    a row twice or removing an absent row is a no-op.
    """

    def __init__(self) -> None:
        self._rows: list[Row] = []
        self._lock = threading.RLock()

    @contextmanager
    def transaction(self) -> Iterator[RowCollection]:
        with self._lock:
            yield self

    def insert(self, row: Row) -> None:
        with self._lock:
            if not any(r is row for r in self._rows):
                self._rows.append(row)

    def remove(self, row: Row) -> None:
        with self._lock:
            self._rows = [r for r in self._rows if r is not row]

    def views(self) -> list[RowView]:
        """Return a consistent copy of every visible row, in order."""
        with self._lock:
            return [row.view() for row in self._rows]

    def __contains__(self, row: object) -> bool:
        with self._lock:
            return any(r is row for r in self._rows)

    def __len__(self) -> int:
        with self._lock:
            return len(self._rows)
