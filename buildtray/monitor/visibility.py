"""Visibility policy — decides whether a project belongs in the tray.

Rules, evaluated in order:

1. A project whose state is in ``hidden_states`` is never shown.
2. A disconnected project is shown only when the ``"disconnected"``
   display flag is set.  An unset flag counts as ``False``.
3. Everything else is shown.
"""

from __future__ import annotations

from buildtray.models.config import VisibilityConfig
from buildtray.models.snapshot import ProjectSnapshot


def should_show(snapshot: ProjectSnapshot, config: VisibilityConfig) -> bool:
    """Return True when *snapshot*'s project is eligible for display."""
    if snapshot.project_state in config.hidden_states:
        return False
    if not snapshot.is_connected and not config.show_disconnected:
        return False
    return True
