"""Project snapshot models — one immutable poll result per project."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict


class ProjectState(str, Enum):
    """Discrete lifecycle state of a monitored project."""

    SUCCESS = "Success"
    BROKEN = "Broken"
    BUILDING = "Building"
    BROKEN_AND_BUILDING = "BrokenAndBuilding"
    FAILING = "Failing"
    NOT_CONNECTED = "NotConnected"

    @property
    def image_index(self) -> int:
        """Icon slot used by renderers for this state."""
        return _IMAGE_INDEX[self]


_IMAGE_INDEX: dict[ProjectState, int] = {
    ProjectState.NOT_CONNECTED: 0,
    ProjectState.SUCCESS: 1,
    ProjectState.BROKEN: 2,
    ProjectState.BUILDING: 3,
    ProjectState.BROKEN_AND_BUILDING: 4,
    ProjectState.FAILING: 5,
}


class ProjectActivity(str, Enum):
    """What the remote integrator is doing right now."""

    SLEEPING = "Sleeping"
    BUILDING = "Building"
    CHECKING_MODIFICATIONS = "CheckingModifications"
    PENDING = "Pending"

    @property
    def is_building(self) -> bool:
        return self is ProjectActivity.BUILDING


class ProjectSnapshot(BaseModel):
    """A frozen, point-in-time description of one project's remote state.

    Produced by a poller once per poll.  Consumers derive display values
    from it and never mutate it.
    """

    model_config = ConfigDict(frozen=True)

    project_name: str
    is_connected: bool = True
    project_state: ProjectState = ProjectState.SUCCESS
    integrator_state: str = "Running"
    activity: ProjectActivity = ProjectActivity.SLEEPING
    category: str = ""
    queue_name: str = ""
    queue_priority: int = 0
    last_build_label: str = ""
    last_build_time: datetime = datetime(1970, 1, 1)
    web_url: str = ""
    server_display_name: str = ""
    next_build_time: datetime | None = None
    build_stage: str = ""
    connection_error: str | None = None
