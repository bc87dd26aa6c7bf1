"""Shared types and utilities for CLI commands.

This module provides the helpers every command uses to load settings,
the catalog and the current reconciliation snapshot from the options
stored on the Typer context by the main callback.
"""

from pathlib import Path
from typing import Any

import typer

from profilectl.core.catalog import Catalog, CatalogError, load_catalog
from profilectl.core.reconciler import ReconciliationSnapshot, SnapshotStore
from profilectl.core.record import load_record
from profilectl.core.settings import Settings, SettingsError, load_settings
from profilectl.probes.base import ServiceProbe
from profilectl.probes.docker import DockerProbe
from profilectl.probes.file import FileProbe
from profilectl.utils.formatting import print_error, print_warning


def _options(ctx: typer.Context) -> dict[str, Any]:
    root = ctx.find_root()
    return root.obj if isinstance(root.obj, dict) else {}


def get_settings(ctx: typer.Context) -> Settings:
    """Load settings once per invocation.

    Exits with code 1 if the settings file is invalid.
    """
    options = _options(ctx)
    if "settings" not in options:
        try:
            options["settings"] = load_settings(options.get("settings_path"))
        except SettingsError as e:
            print_error(str(e))
            raise typer.Exit(code=1) from e
    return options["settings"]


def get_catalog(ctx: typer.Context) -> Catalog:
    """Load the catalog selected by ``--catalog``, settings or environment.

    Exits with code 1 if the catalog is missing or invalid.
    """
    options = _options(ctx)
    path: Path = options.get("catalog_path") or get_settings(ctx).effective_catalog_path
    try:
        return load_catalog(path)
    except CatalogError as e:
        print_error(f"Failed to load catalog: {e}")
        raise typer.Exit(code=1) from e


def get_probe(live_file: Path | None) -> ServiceProbe:
    """Select the live probe: a captured file if given, otherwise Docker."""
    if live_file is not None:
        return FileProbe(live_file)
    return DockerProbe()


def get_snapshot(
    ctx: typer.Context,
    catalog: Catalog,
    live_file: Path | None = None,
    record_path: Path | None = None,
    quiet: bool = False,
) -> ReconciliationSnapshot:
    """Run one reconciliation pass for the current installation.

    Args:
        ctx: Typer context.
        catalog: Loaded catalog.
        live_file: Captured live status file; None probes Docker.
        record_path: Declared record file; None uses settings.
        quiet: Suppress the "live status unavailable" warning.

    Returns:
        Completed ReconciliationSnapshot.
    """
    settings = get_settings(ctx)
    path = record_path or settings.effective_record_path
    store = SnapshotStore(
        catalog,
        get_probe(live_file),
        lambda: load_record(path),
        timeout=settings.probe_timeout_seconds,
        max_age=settings.snapshot_max_age_seconds,
    )
    snapshot = store.latest()
    if not snapshot.live.available and not quiet and not _options(ctx).get("quiet"):
        print_warning(f"Live status unavailable ({snapshot.live.error}); using declared state")
    return snapshot


def parse_assignments(values: list[str]) -> dict[str, str]:
    """Parse ``KEY=VALUE`` strings.

    Raises:
        typer.BadParameter: If a value has no '=' or an empty key.
    """
    result: dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            msg = f"Expected KEY=VALUE, got '{item}'"
            raise typer.BadParameter(msg)
        result[key.strip()] = value
    return result
