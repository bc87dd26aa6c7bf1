"""Bundled data files (default catalog and theme)."""
