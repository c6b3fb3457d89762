"""Runtime configuration — env-driven.

Reads from a .env file and BUILDTRAY_* environment variables.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from buildtray.models.config import DISCONNECTED_FLAG, VisibilityConfig
from buildtray.models.snapshot import ProjectState


class TraySettings(BaseSettings):
    """Tray settings with environment variable overrides.

    Examples
    --------
    Override via environment::

        export BUILDTRAY_LOG_LEVEL=DEBUG
        export BUILDTRAY_SHOW_DISCONNECTED=true
        export BUILDTRAY_HIDDEN_STATES='["Success"]'
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="BUILDTRAY_",
        env_file_encoding="utf-8",
    )

    environment: str = "development"
    log_level: str = "INFO"
    debug: bool = False

    # Visibility
    show_disconnected: bool = False
    hidden_states: list[ProjectState] = []

    # Default replay input for ``buildtray replay``
    snapshot_file: Path = Path(".buildtray/polls.json")

    def visibility_config(self) -> VisibilityConfig:
        """Build the visibility rules described by these settings."""
        return VisibilityConfig(
            hidden_states=frozenset(self.hidden_states),
            display_flags={DISCONNECTED_FLAG: self.show_disconnected},
        )


# Module-level singleton — import as `from buildtray.config import settings`
settings = TraySettings()
