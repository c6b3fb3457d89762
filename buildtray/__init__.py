"""buildtray: live build status tray.

Keeps a filtered, ordered collection of tray rows in step with the polled
state of projects on one or more build servers:
  - Visibility policy: hide by project state, hide disconnected projects
  - Per-project row adaptors with a Visible/Hidden state machine
  - Server name disambiguation for same-named projects across servers
  - Lock-guarded shared row collection, Rich renderer, Typer CLI
"""

__version__ = "0.1.0"
__description__ = "Live build status tray for one or more build servers"

from buildtray.monitor.adaptor import RowAdaptor
from buildtray.monitor.board import StatusBoard
from buildtray.cli.app import app as cli

__all__ = ["RowAdaptor", "StatusBoard", "cli", "__version__"]
