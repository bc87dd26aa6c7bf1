"""Installation state reconciliation.

This module merges three signals into one installation state per
profile: the declared selection record, the configuration-key
heuristic and the live service snapshot. It also provides the
immutable ReconciliationSnapshot and the SnapshotStore that publishes
completed reconciliation passes to concurrent readers.

Precedence:
- The declared record decides whether a profile is claimed installed.
- The configuration-key heuristic is consulted only when the declared
  selection is unavailable.
- Live status never promotes a profile to installed; it only refines
  the state of a claimed profile. Unknown live status leaves the
  claimed state untouched.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from profilectl.models.state import (
    DeclaredRecord,
    DetectionSources,
    InstallationState,
    LiveSnapshot,
    ProfileState,
    ServiceStatus,
)

if TYPE_CHECKING:
    from profilectl.core.catalog import Catalog
    from profilectl.models.profile import Profile
    from profilectl.probes.base import ServiceProbe

logger = logging.getLogger(__name__)

# Display order of installation states
STATE_ORDER: tuple[InstallationState, ...] = (
    InstallationState.INSTALLED,
    InstallationState.PARTIAL,
    InstallationState.ERROR,
    InstallationState.NOT_INSTALLED,
)


class ReconcileCancelledError(Exception):
    """Raised when a reconciliation pass is cancelled before completion."""


class StateReconciler:
    """Classifies every catalog profile's installation state.

    Stateless: each call re-evaluates every profile from its inputs.

    Example:
        >>> reconciler = StateReconciler(catalog)
        >>> states = reconciler.reconcile(live, record)
        >>> states["kaspa-node"].can_modify
        True
    """

    def __init__(self, catalog: Catalog) -> None:
        """Initialize the reconciler.

        Args:
            catalog: Catalog whose profiles are classified.
        """
        self.catalog = catalog

    def reconcile(
        self,
        live: LiveSnapshot | None,
        record: DeclaredRecord | None,
        cancel: threading.Event | None = None,
    ) -> dict[str, ProfileState]:
        """Classify every catalog profile.

        Args:
            live: Live service snapshot; None or unavailable means unknown.
            record: Declared record; None for a fresh system.
            cancel: Event checked between profile classifications.

        Returns:
            Mapping of profile id to ProfileState, in catalog order.

        Raises:
            ReconcileCancelledError: If ``cancel`` is set during the pass.
        """
        if live is not None and not live.available:
            logger.debug("Live status unavailable: %s", live.error)
            live = None
        elif live is not None and not live.services:
            # An empty list is indistinguishable from an unreachable runtime
            logger.debug("Live snapshot is empty; treating live status as unknown")
            live = None

        declared: frozenset[str] | None = None
        configuration: Mapping[str, str] = {}
        if record is not None:
            configuration = record.configuration
            if record.selected is not None:
                declared = frozenset(self.catalog.migrate(record.selected))

        states: dict[str, ProfileState] = {}
        for profile in self.catalog:
            if cancel is not None and cancel.is_set():
                raise ReconcileCancelledError("Reconciliation cancelled")
            states[profile.id] = self._classify(profile, live, declared, configuration)
        return states

    def _classify(
        self,
        profile: Profile,
        live: LiveSnapshot | None,
        declared: frozenset[str] | None,
        configuration: Mapping[str, str],
    ) -> ProfileState:
        declared_flag = None if declared is None else profile.id in declared
        config_flag = any(profile.owns_config_key(key) for key in configuration)
        claimed = declared_flag if declared_flag is not None else config_flag
        total = len(profile.services)

        if live is None:
            return ProfileState(
                profile_id=profile.id,
                name=profile.name,
                installation_state=(
                    InstallationState.INSTALLED if claimed else InstallationState.NOT_INSTALLED
                ),
                status=ServiceStatus.UNKNOWN,
                running_service_count=None,
                total_service_count=total,
                sources=DetectionSources(
                    declared=declared_flag, configuration=config_flag, live=None
                ),
            )

        running: list[str] = []
        failed: list[str] = []
        for service in profile.services:
            entry = live.find(service.runtime_names)
            if entry is None:
                continue
            if entry.running:
                running.append(service.name)
            elif entry.failed:
                failed.append(service.name)

        if not running:
            status = ServiceStatus.STOPPED
        elif len(running) == total:
            status = ServiceStatus.RUNNING
        else:
            status = ServiceStatus.PARTIAL

        if not claimed:
            state = InstallationState.NOT_INSTALLED
        elif failed:
            state = InstallationState.ERROR
        elif status == ServiceStatus.PARTIAL:
            state = InstallationState.PARTIAL
        else:
            state = InstallationState.INSTALLED

        return ProfileState(
            profile_id=profile.id,
            name=profile.name,
            installation_state=state,
            status=status,
            running_service_count=len(running),
            total_service_count=total,
            running_services=tuple(running),
            failed_services=tuple(failed),
            orphaned_services=() if claimed else tuple(running),
            sources=DetectionSources(
                declared=declared_flag, configuration=config_flag, live=bool(running)
            ),
        )

    def legacy_states(self, states: Mapping[str, ProfileState]) -> dict[str, InstallationState]:
        """Derive the state of each legacy id from its current targets.

        A legacy id counts as installed only if ALL its targets are
        installed. If any target is claimed in some form it is partial;
        otherwise not installed.

        Args:
            states: Reconciled states of current profiles.

        Returns:
            Mapping of legacy id to InstallationState.
        """
        result: dict[str, InstallationState] = {}
        for legacy_id in self.catalog.legacy_ids:
            targets = [states[t] for t in self.catalog.legacy_targets(legacy_id) if t in states]
            if targets and all(
                t.installation_state == InstallationState.INSTALLED for t in targets
            ):
                result[legacy_id] = InstallationState.INSTALLED
            elif any(t.is_claimed for t in targets):
                result[legacy_id] = InstallationState.PARTIAL
            else:
                result[legacy_id] = InstallationState.NOT_INSTALLED
        return result


def group_by_state(
    states: Mapping[str, ProfileState],
) -> dict[InstallationState, list[ProfileState]]:
    """Group profile states by installation state.

    Every installation state is present as a key, in display order.

    Args:
        states: Reconciled states.

    Returns:
        Mapping of InstallationState to the profiles in that state.
    """
    groups: dict[InstallationState, list[ProfileState]] = {state: [] for state in STATE_ORDER}
    for profile_state in states.values():
        groups[profile_state.installation_state].append(profile_state)
    return groups


def summarize_states(states: Mapping[str, ProfileState]) -> dict[str, int]:
    """Count profiles per installation state.

    Returns:
        Mapping of state value to count, plus ``total``.
    """
    summary = {state.value: len(group) for state, group in group_by_state(states).items()}
    summary["total"] = len(states)
    return summary


@dataclass(frozen=True, slots=True)
class ReconciliationSnapshot:
    """Result of one completed reconciliation pass.

    Callers hold a reference to one snapshot per operation; a refresh
    produces a new snapshot rather than mutating this one.

    Attributes:
        states: Reconciled state per profile, in catalog order.
        legacy: Derived state per legacy id.
        configuration: Configuration the pass was based on.
        selected: Declared selection, or None if unavailable.
        live: Live snapshot shared by every classification in the pass.
        captured_at: When the pass completed.
    """

    states: Mapping[str, ProfileState]
    legacy: Mapping[str, InstallationState] = field(default_factory=lambda: MappingProxyType({}))
    configuration: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    selected: tuple[str, ...] | None = None
    live: LiveSnapshot = field(default_factory=lambda: LiveSnapshot.unavailable("not probed"))
    captured_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def get(self, profile_id: str) -> ProfileState | None:
        """Get the state of a profile, or None if unknown."""
        return self.states.get(profile_id)

    @property
    def claimed_ids(self) -> tuple[str, ...]:
        """Profiles claimed installed in any form, in catalog order."""
        return tuple(pid for pid, state in self.states.items() if state.is_claimed)

    def age_seconds(self, now: datetime | None = None) -> float:
        """Seconds elapsed since the pass completed."""
        return ((now or datetime.now(UTC)) - self.captured_at).total_seconds()

    def is_stale(self, max_age: float, now: datetime | None = None) -> bool:
        """Check whether the snapshot is older than ``max_age`` seconds."""
        return self.age_seconds(now) > max_age

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "captured_at": self.captured_at.isoformat(),
            "live": {"available": self.live.available, "error": self.live.error},
            "declared_available": self.selected is not None,
            "summary": summarize_states(self.states),
            "profiles": [state.to_dict() for state in self.states.values()],
            "legacy": {legacy_id: state.value for legacy_id, state in self.legacy.items()},
        }


def build_snapshot(
    catalog: Catalog,
    live: LiveSnapshot | None,
    record: DeclaredRecord | None,
    cancel: threading.Event | None = None,
) -> ReconciliationSnapshot:
    """Run one reconciliation pass and freeze its result.

    Args:
        catalog: Catalog to classify.
        live: Live snapshot for the pass.
        record: Declared record, or None.
        cancel: Optional cancel event.

    Returns:
        A new ReconciliationSnapshot.

    Raises:
        ReconcileCancelledError: If ``cancel`` is set during the pass.
    """
    reconciler = StateReconciler(catalog)
    states = reconciler.reconcile(live, record, cancel)
    return ReconciliationSnapshot(
        states=MappingProxyType(states),
        legacy=MappingProxyType(reconciler.legacy_states(states)),
        configuration=MappingProxyType(dict(record.configuration) if record else {}),
        selected=record.selected if record else None,
        live=live or LiveSnapshot.unavailable("not probed"),
    )


class SnapshotStore:
    """Holds the latest completed reconciliation snapshot.

    ``refresh`` probes the runtime once, reconciles, and publishes the
    result with a single reference swap under a lock. A cancelled
    refresh publishes nothing, so readers only ever see a fully
    completed pass.

    Example:
        >>> store = SnapshotStore(catalog, DockerProbe(), load_record, max_age=30)
        >>> snapshot = store.latest()
    """

    def __init__(
        self,
        catalog: Catalog,
        probe: ServiceProbe,
        record_loader: Callable[[], DeclaredRecord | None],
        timeout: float = 5.0,
        max_age: float | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            catalog: Catalog to classify.
            probe: Source of live service status.
            record_loader: Callable returning the current declared record.
            timeout: Probe timeout in seconds.
            max_age: Age in seconds after which ``latest`` refreshes;
                None refreshes only when nothing was published.
        """
        self.catalog = catalog
        self.probe = probe
        self.record_loader = record_loader
        self.timeout = timeout
        self.max_age = max_age
        self._lock = threading.Lock()
        self._current: ReconciliationSnapshot | None = None

    def refresh(self, cancel: threading.Event | None = None) -> ReconciliationSnapshot:
        """Run a new reconciliation pass and publish it.

        Args:
            cancel: Event that aborts the pass when set.

        Returns:
            The newly published snapshot.

        Raises:
            ReconcileCancelledError: If the pass was cancelled; the
                previously published snapshot stays in place.
        """
        live = self.probe.snapshot(self.timeout)
        if cancel is not None and cancel.is_set():
            raise ReconcileCancelledError("Reconciliation cancelled")

        snapshot = build_snapshot(self.catalog, live, self.record_loader(), cancel)

        with self._lock:
            self._current = snapshot
        logger.debug(
            "Published reconciliation snapshot (live %s)",
            "available" if live.available else "unavailable",
        )
        return snapshot

    def current(
        self,
        max_age: float | None = None,
        now: datetime | None = None,
    ) -> ReconciliationSnapshot | None:
        """Get the latest published snapshot.

        Args:
            max_age: Maximum acceptable age in seconds; None accepts any age.
            now: Reference time for the age check.

        Returns:
            The snapshot, or None if none was published or it is stale.
        """
        with self._lock:
            snapshot = self._current
        if snapshot is None:
            return None
        if max_age is not None and snapshot.is_stale(max_age, now):
            return None
        return snapshot

    def latest(self, cancel: threading.Event | None = None) -> ReconciliationSnapshot:
        """Get the held snapshot while it is fresh, otherwise refresh."""
        return self.current(self.max_age) or self.refresh(cancel)
