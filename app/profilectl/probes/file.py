"""File-backed live service probe.

Reads a previously captured service list from JSON. Useful for offline
inspection of another host and for tests.

Expected shape::

    [
        {"name": "kaspa-node", "running": true, "state": "running"},
        {"name": "kasia-app", "running": false}
    ]

A top-level object with a ``services`` list is accepted as well.
"""

import json
import logging
from pathlib import Path

from profilectl.models.state import LiveSnapshot
from profilectl.probes.base import ServiceProbe

logger = logging.getLogger(__name__)


class FileProbe(ServiceProbe):
    """Probe that reads a service list from a JSON file."""

    def __init__(self, path: Path) -> None:
        self.path = path

    @property
    def name(self) -> str:
        return "file"

    def is_available(self) -> bool:
        """Check if the snapshot file exists."""
        return self.path.is_file()

    def snapshot(self, timeout: float) -> LiveSnapshot:
        """Read the service list.

        Args:
            timeout: Unused; file reads are not bounded.

        Returns:
            LiveSnapshot from the file, or an unavailable snapshot if the
            file is missing or not valid JSON.
        """
        if not self.is_available():
            return LiveSnapshot.unavailable(f"Live status file not found: {self.path}")

        try:
            with self.path.open(encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("Failed to read live status file %s: %s", self.path, e)
            return LiveSnapshot.unavailable(f"Unreadable live status file: {e}")

        if isinstance(data, dict):
            data = data.get("services")
        if not isinstance(data, list):
            return LiveSnapshot.unavailable("Live status file must contain a list of services")

        return LiveSnapshot.from_entries(data)
