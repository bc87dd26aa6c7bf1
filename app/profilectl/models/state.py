"""Installation state models.

This module defines the structures used by state reconciliation: the
live service snapshot reported by the container runtime, the declared
selection record, and the per-profile reconciled state.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

# Runtime states indicating a service that is failing rather than stopped
FAILED_STATES: frozenset[str] = frozenset({"dead", "restarting"})


class InstallationState(str, Enum):
    """Reconciled installation state of a profile.

    Attributes:
        NOT_INSTALLED: No declared or configured claim for the profile.
        INSTALLED: Claimed installed and consistent with live state.
        PARTIAL: Claimed installed but only some services are running.
        ERROR: Claimed installed and a service is in a failure state.
    """

    NOT_INSTALLED = "not-installed"
    INSTALLED = "installed"
    PARTIAL = "partial"
    ERROR = "error"


class ServiceStatus(str, Enum):
    """Aggregate runtime status of a profile's services."""

    RUNNING = "running"
    STOPPED = "stopped"
    PARTIAL = "partial"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class LiveService:
    """A service entry reported by the container runtime.

    Attributes:
        name: Container/service name.
        running: Whether the service is currently running.
        state: Raw runtime state string (e.g., 'running', 'exited', 'dead').
    """

    name: str
    running: bool
    state: str | None = None

    def __post_init__(self) -> None:
        """Validate service data after initialization."""
        if not self.name:
            msg = "Service name cannot be empty"
            raise ValueError(msg)

    @property
    def failed(self) -> bool:
        """Check if the runtime reports this service as failing."""
        return self.state is not None and self.state.lower() in FAILED_STATES


@dataclass(frozen=True, slots=True)
class LiveSnapshot:
    """Point-in-time view of services reported by the container runtime.

    A snapshot is fetched once per reconciliation pass and shared
    read-only across every profile classification in that pass.

    Attributes:
        services: Well-formed service entries.
        available: False when the runtime could not be queried.
        error: Reason the runtime was unavailable.
        captured_at: When the snapshot was taken.
    """

    services: tuple[LiveService, ...] = ()
    available: bool = True
    error: str | None = None
    captured_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def from_entries(
        cls,
        entries: Iterable[Mapping[str, Any]],
        captured_at: datetime | None = None,
    ) -> LiveSnapshot:
        """Build a snapshot from raw runtime entries.

        Entries without a usable name are skipped; a missing ``running``
        flag is treated as not running.

        Args:
            entries: Mappings with ``name``, ``running`` and optional ``state``.
            captured_at: Capture time; defaults to now.

        Returns:
            LiveSnapshot containing the well-formed entries.
        """
        services: list[LiveService] = []
        for index, entry in enumerate(entries):
            if not isinstance(entry, Mapping):
                logger.debug("Ignoring non-mapping live entry at index %d", index)
                continue
            name = entry.get("name")
            if not isinstance(name, str) or not name.strip():
                logger.debug("Ignoring live entry without name at index %d", index)
                continue
            state = entry.get("state")
            services.append(
                LiveService(
                    name=name.strip(),
                    running=bool(entry.get("running", False)),
                    state=state if isinstance(state, str) else None,
                )
            )
        return cls(
            services=tuple(services),
            captured_at=captured_at or datetime.now(UTC),
        )

    @classmethod
    def unavailable(cls, reason: str) -> LiveSnapshot:
        """Create a snapshot representing an unreachable runtime.

        Args:
            reason: Why the runtime could not be queried.

        Returns:
            LiveSnapshot with ``available=False``.
        """
        return cls(services=(), available=False, error=reason)

    def find(self, names: Iterable[str]) -> LiveService | None:
        """Find the first entry whose name exactly matches one of ``names``.

        Running entries are preferred over stopped ones with the same name.

        Args:
            names: Candidate exact names.

        Returns:
            Matching LiveService, or None if absent.
        """
        wanted = set(names)
        match: LiveService | None = None
        for service in self.services:
            if service.name in wanted:
                if service.running:
                    return service
                match = match or service
        return match

    def age_seconds(self, now: datetime | None = None) -> float:
        """Seconds elapsed since the snapshot was captured."""
        return ((now or datetime.now(UTC)) - self.captured_at).total_seconds()


@dataclass(frozen=True, slots=True)
class DeclaredRecord:
    """The persisted record of what the user last confirmed.

    Attributes:
        selected: Confirmed profile ids, or None when the selection is
            unavailable (missing or corrupted state file).
        configuration: Current configuration key/value pairs.
    """

    selected: tuple[str, ...] | None = None
    configuration: Mapping[str, str] = field(default_factory=lambda: {})

    @property
    def has_selection(self) -> bool:
        """Check whether the declared selection is available."""
        return self.selected is not None


@dataclass(frozen=True, slots=True)
class DetectionSources:
    """Which signals contributed to a profile's classification.

    ``None`` marks a signal that was unavailable for the pass.
    """

    declared: bool | None
    configuration: bool
    live: bool | None

    def to_dict(self) -> dict[str, bool | None]:
        """Convert to dictionary for JSON serialization."""
        return {
            "declared": self.declared,
            "configuration": self.configuration,
            "live": self.live,
        }


@dataclass(frozen=True, slots=True)
class ProfileState:
    """Reconciled installation state of a single profile.

    The ``can_*`` flags are derived from ``installation_state`` on every
    access and are never stored.

    Attributes:
        profile_id: Catalog id.
        name: Display name.
        installation_state: Reconciled installation state.
        status: Aggregate runtime status.
        running_service_count: Running services, or None when live status is unknown.
        total_service_count: Number of services the profile defines.
        running_services: Names of the profile's services found running.
        failed_services: Names of the profile's services in a failure state.
        orphaned_services: Running services of a profile that is not claimed installed.
        sources: Signals used for the classification.
    """

    profile_id: str
    name: str
    installation_state: InstallationState
    status: ServiceStatus
    running_service_count: int | None
    total_service_count: int
    running_services: tuple[str, ...] = ()
    failed_services: tuple[str, ...] = ()
    orphaned_services: tuple[str, ...] = ()
    sources: DetectionSources = field(
        default_factory=lambda: DetectionSources(declared=None, configuration=False, live=None)
    )

    @property
    def can_modify(self) -> bool:
        """Configuration may be modified only for a fully installed profile."""
        return self.installation_state == InstallationState.INSTALLED

    @property
    def can_remove(self) -> bool:
        """Installed or partially installed profiles may be removed."""
        return self.installation_state in (InstallationState.INSTALLED, InstallationState.PARTIAL)

    @property
    def can_add(self) -> bool:
        """Only profiles that are not installed may be added."""
        return self.installation_state == InstallationState.NOT_INSTALLED

    @property
    def is_claimed(self) -> bool:
        """Check whether the profile is claimed installed in any form."""
        return self.installation_state != InstallationState.NOT_INSTALLED

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.profile_id,
            "name": self.name,
            "installation_state": self.installation_state.value,
            "status": self.status.value,
            "running_service_count": self.running_service_count,
            "total_service_count": self.total_service_count,
            "running_services": list(self.running_services),
            "failed_services": list(self.failed_services),
            "orphaned_services": list(self.orphaned_services),
            "can_modify": self.can_modify,
            "can_remove": self.can_remove,
            "can_add": self.can_add,
            "sources": self.sources.to_dict(),
        }
