"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules. The test
catalog is deliberately small:

- node: root profile, port 16111, service kaspa-node
- explorer: depends on node, port 3008, services explorer + postgres
- archive: root profile, conflicts with node, port 16111
- mining: needs node or archive, port 5555, service stratum
- indexer: depends on node, port 3002, services postgres + indexer
"""

import copy
import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
import tomli_w
from profilectl.core.catalog import Catalog
from profilectl.core.reconciler import ReconciliationSnapshot, build_snapshot
from profilectl.models.profile import CatalogDocument
from profilectl.models.state import DeclaredRecord, LiveSnapshot

CATALOG_DATA: dict[str, Any] = {
    "meta": {"version": "1.0", "name": "test"},
    "rules": {"memory_high_water_gb": 16},
    "restart": {"container_keys": ["*DATA_DIR"], "full_keys": ["NETWORK"]},
    "legacy": {"core": ["node"], "apps": ["explorer", "indexer"]},
    "key_map": {
        "NODE_*": ["kaspa-node"],
        "DATA_DIR": ["kaspa-node"],
        "NETWORK": ["kaspa-node"],
        "EXPLORER_*": ["explorer"],
        "STRATUM_*": ["stratum"],
    },
    "profiles": [
        {
            "id": "node",
            "name": "Node",
            "root": True,
            "conflicts": ["archive"],
            "ports": [16111],
            "config_keys": ["NODE_*", "DATA_DIR", "NETWORK", "PUBLIC_NODE"],
            "resources": {"min_memory": 4, "min_cpu": 2, "min_disk": 100},
            "services": [{"name": "kaspa-node"}],
        },
        {
            "id": "explorer",
            "name": "Explorer",
            "dependencies": ["node"],
            "ports": [3008],
            "config_keys": ["EXPLORER_*"],
            "resources": {"min_memory": 2, "min_cpu": 4, "min_disk": 50},
            "services": [
                {
                    "name": "explorer",
                    "startup_order": 2,
                    "uses": ["kaspa-node"],
                    "container_names": ["explorer-web"],
                },
                {"name": "postgres", "startup_order": 1},
            ],
        },
        {
            "id": "archive",
            "name": "Archive",
            "root": True,
            "conflicts": ["node"],
            "ports": [16111],
            "config_keys": ["ARCHIVE_*"],
            "resources": {"min_memory": 16, "min_cpu": 8, "min_disk": 1000},
            "services": [{"name": "archive-node"}],
        },
        {
            "id": "mining",
            "name": "Mining",
            "prerequisites": ["node", "archive"],
            "ports": [5555],
            "config_keys": ["STRATUM_*"],
            "resources": {"min_memory": 1, "min_cpu": 1, "min_disk": 10},
            "services": [{"name": "stratum", "startup_order": 3, "uses": ["kaspa-node"]}],
        },
        {
            "id": "indexer",
            "name": "Indexer",
            "dependencies": ["node"],
            "ports": [3002],
            "config_keys": ["INDEXER_*"],
            "resources": {"min_memory": 2, "min_cpu": 2, "min_disk": 100},
            "services": [
                {"name": "postgres", "startup_order": 1},
                {"name": "indexer", "startup_order": 2, "uses": ["postgres", "kaspa-node"]},
            ],
        },
    ],
    "templates": [
        {
            "id": "basic",
            "name": "Basic",
            "profiles": ["node"],
            "config": {"NETWORK": "mainnet"},
        },
    ],
}


@pytest.fixture
def catalog_data() -> dict[str, Any]:
    """Fresh copy of the test catalog document."""
    return copy.deepcopy(CATALOG_DATA)


@pytest.fixture
def make_catalog() -> Callable[[dict[str, Any]], Catalog]:
    """Factory building a Catalog from a raw document."""

    def _make(data: dict[str, Any]) -> Catalog:
        return Catalog(CatalogDocument.model_validate(data))

    return _make


@pytest.fixture
def catalog(catalog_data: dict[str, Any], make_catalog: Callable[..., Catalog]) -> Catalog:
    """The test catalog."""
    return make_catalog(catalog_data)


@pytest.fixture
def catalog_file(tmp_path: Path, catalog_data: dict[str, Any]) -> Path:
    """The test catalog written to a TOML file."""
    path = tmp_path / "catalog.toml"
    path.write_bytes(tomli_w.dumps(catalog_data).encode())
    return path


@pytest.fixture
def make_snapshot(catalog: Catalog) -> Callable[..., ReconciliationSnapshot]:
    """Factory building a reconciliation snapshot for the test catalog.

    By default every service of every installed profile is running.
    """

    def _make(
        installed: tuple[str, ...] = (),
        running: list[str] | None = None,
        configuration: dict[str, str] | None = None,
    ) -> ReconciliationSnapshot:
        names = catalog.services_for(installed) if running is None else running
        live = LiveSnapshot.from_entries([{"name": name, "running": True} for name in names])
        record = DeclaredRecord(selected=installed, configuration=configuration or {})
        return build_snapshot(catalog, live, record)

    return _make


@pytest.fixture
def global_args(tmp_path: Path, catalog_file: Path) -> list[str]:
    """Global CLI options pointing at the test catalog and absent settings."""
    return ["--catalog", str(catalog_file), "--settings", str(tmp_path / "settings.toml")]


@pytest.fixture
def write_installation(tmp_path: Path) -> Callable[..., list[str]]:
    """Factory writing a declared record and a live status file.

    Returns the ``--record``/``--live-file`` options for a CLI call. By
    default every service of the selected profiles is running.
    """

    def _write(
        selected: list[str],
        running: list[str] | None = None,
        configuration: dict[str, str] | None = None,
        catalog: Catalog | None = None,
    ) -> list[str]:
        if running is None:
            assert catalog is not None
            running = list(catalog.services_for(selected))
        record = tmp_path / "installation-state.json"
        record.write_text(
            json.dumps(
                {"profiles": {"selected": selected}, "configuration": configuration or {}}
            )
        )
        live = tmp_path / "live.json"
        live.write_text(json.dumps([{"name": name, "running": True} for name in running]))
        return ["--record", str(record), "--live-file", str(live)]

    return _write
