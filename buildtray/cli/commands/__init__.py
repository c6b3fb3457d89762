"""CLI subcommand modules."""
