"""Command-line interface for profilectl."""
