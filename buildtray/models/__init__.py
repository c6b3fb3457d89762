"""buildtray data models — all Pydantic v2, all frozen (immutable)."""

from buildtray.models.config import (
    DISCONNECTED_FLAG,
    BuildServer,
    MultiServerConfig,
    VisibilityConfig,
)
from buildtray.models.snapshot import ProjectActivity, ProjectSnapshot, ProjectState

__all__ = [
    # snapshot
    "ProjectState",
    "ProjectActivity",
    "ProjectSnapshot",
    # config
    "DISCONNECTED_FLAG",
    "VisibilityConfig",
    "BuildServer",
    "MultiServerConfig",
]
