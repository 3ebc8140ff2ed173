"""Core data: enums, entity records, catalog, state machine, snapshots."""
