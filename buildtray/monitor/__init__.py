"""buildtray monitor — keeps tray rows in step with polled project state.

Modules
-------
visibility
    ``should_show`` decides whether a project belongs in the tray.
formatter
    ``format_snapshot`` turns a ``ProjectSnapshot`` into row field values,
    with ``ServerNameTable`` for multi-server disambiguation.
collection
    ``Row`` and the lock-guarded ``RowCollection`` shared by all rows.
feed
    ``SnapshotFeed``, an in-process snapshot source for one project.
adaptor
    ``RowAdaptor``, the per-project Visible/Hidden state machine.
board
    ``StatusBoard`` owns every adaptor and isolates per-project failures.
renderer
    ``TrayRenderer`` prints visible rows as a Rich table.
"""
