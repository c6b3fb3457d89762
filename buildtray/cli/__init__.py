"""buildtray CLI — Typer-based command-line interface.

Provides the ``buildtray`` command with subcommands for replaying recorded
polls through the tray and listing project states.

All output uses Rich for formatted terminal display.
"""
