"""Visibility and multi-server configuration models."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, Field, field_validator

from buildtray.models.snapshot import ProjectState

# The only display flag consulted by the visibility policy.
DISCONNECTED_FLAG = "disconnected"


class VisibilityConfig(BaseModel):
    """Rules deciding which projects may appear in the tray.

    Read-only for the lifetime of a row adaptor.  To change the rules,
    build a new config and new adaptors.
    """

    model_config = ConfigDict(frozen=True)

    hidden_states: frozenset[ProjectState] = frozenset()
    display_flags: Mapping[str, bool] = Field(default_factory=dict, validate_default=True)

    @field_validator("display_flags", mode="after")
    @classmethod
    def _freeze_flags(cls, value: Mapping[str, bool]) -> Mapping[str, bool]:
        return MappingProxyType(dict(value))

    @property
    def show_disconnected(self) -> bool:
        """Whether disconnected projects are shown.  Unset means hidden."""
        return bool(self.display_flags.get(DISCONNECTED_FLAG, False))


class BuildServer(BaseModel):
    """A configured build server and the projects it exposes."""

    model_config = ConfigDict(frozen=True)

    display_name: str
    url: str = ""
    projects: list[str] = []


class MultiServerConfig(BaseModel):
    """Every configured project across every configured server.

    Two servers may expose projects with identical names; the pair
    (project name, server display name) identifies a project.
    """

    model_config = ConfigDict(frozen=True)

    servers: list[BuildServer] = []

    def server_name_pairs(self) -> list[tuple[str, str]]:
        """Return ``(project_name, server_display_name)`` in config order."""
        return [
            (project, server.display_name)
            for server in self.servers
            for project in server.projects
        ]
