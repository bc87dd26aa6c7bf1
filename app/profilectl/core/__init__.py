"""Core engine: catalog, resolution, validation, reconciliation and planning."""
