"""Reconfiguration planning.

This module computes configuration diffs and the impact of adding,
removing or reconfiguring profiles on an existing installation. Plans
are computed fresh from the caller's reconciliation snapshot and are
never cached.
"""

from __future__ import annotations

import fnmatch
import logging
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

from profilectl.core.validation import ValidationReporter
from profilectl.models.plan import (
    ActionType,
    ChangeImpact,
    ChangeType,
    ConfigChange,
    ConfigDiff,
    ReconfigurationImpact,
    RestartType,
)
from profilectl.models.report import Issue, IssueKind, ValidationReport

if TYPE_CHECKING:
    from profilectl.core.catalog import Catalog
    from profilectl.core.reconciler import ReconciliationSnapshot

logger = logging.getLogger(__name__)

# Expected downtime per restart scope, in seconds
DOWNTIME_SECONDS: dict[RestartType, int] = {
    RestartType.SERVICE: 30,
    RestartType.CONTAINER: 60,
    RestartType.FULL: 300,
}


def _matches(key: str, patterns: Iterable[str]) -> bool:
    return any(fnmatch.fnmatchcase(key, pattern) for pattern in patterns)


def restart_type_for_key(catalog: Catalog, key: str) -> RestartType:
    """Restart scope required by a change to a single key.

    Args:
        catalog: Catalog providing the key categories.
        key: Configuration key name.

    Returns:
        FULL for network-identity keys, CONTAINER for data-directory or
        volume keys, SERVICE otherwise.
    """
    if _matches(key, catalog.full_restart_keys):
        return RestartType.FULL
    if _matches(key, catalog.container_restart_keys):
        return RestartType.CONTAINER
    return RestartType.SERVICE


def change_impact(catalog: Catalog, key: str) -> ChangeImpact:
    """Impact level of a change to a single key.

    Args:
        catalog: Catalog providing the key categories and key map.
        key: Configuration key name.

    Returns:
        HIGH for keys that escalate the restart scope, MEDIUM for keys
        mapped to a service, LOW otherwise.
    """
    if restart_type_for_key(catalog, key) != RestartType.SERVICE:
        return ChangeImpact.HIGH
    if catalog.services_for_key(key):
        return ChangeImpact.MEDIUM
    return ChangeImpact.LOW


def compute_config_diff(
    old: Mapping[str, str],
    new: Mapping[str, str],
    catalog: Catalog | None = None,
) -> ConfigDiff:
    """Compare two configurations key by key.

    Keys with equal values are omitted. Changes are sorted by key.

    Args:
        old: Current configuration.
        new: Proposed configuration.
        catalog: If given, used to grade each change's impact.

    Returns:
        ConfigDiff listing added, removed and modified keys.
    """
    changes: list[ConfigChange] = []
    for key in sorted(set(old) | set(new)):
        if key not in new:
            change_type = ChangeType.REMOVED
        elif key not in old:
            change_type = ChangeType.ADDED
        elif old[key] != new[key]:
            change_type = ChangeType.MODIFIED
        else:
            continue
        changes.append(
            ConfigChange(
                key=key,
                change_type=change_type,
                old_value=old.get(key),
                new_value=new.get(key),
                impact=change_impact(catalog, key) if catalog else ChangeImpact.LOW,
            )
        )
    return ConfigDiff(changes=tuple(changes))


def apply_config_delta(
    current: Mapping[str, str],
    delta: Mapping[str, str | None],
) -> dict[str, str]:
    """Apply a key/value delta to a configuration.

    Args:
        current: Current configuration.
        delta: Keys to set; a None value removes the key.

    Returns:
        New configuration dictionary.
    """
    result = dict(current)
    for key, value in delta.items():
        if value is None:
            result.pop(key, None)
        else:
            result[key] = value
    return result


class ReconfigurationPlanner:
    """Plans add, remove and configure actions on an installation.

    Every plan re-runs the shared ValidationReporter against the
    would-be selection. Add and configure are blocked by validation
    errors; remove is never blocked, its validation errors are reported
    as warnings instead.

    Example:
        >>> planner = ReconfigurationPlanner(catalog)
        >>> result = planner.plan("configure", ["kaspa-node"], snapshot,
        ...                       {"KASPA_NODE_RPC_PORT": "16210"})
        >>> result.restart_type
        <RestartType.SERVICE: 'service'>
    """

    def __init__(
        self,
        catalog: Catalog,
        memory_high_water_gb: float | None = None,
    ) -> None:
        """Initialize the planner.

        Args:
            catalog: Catalog to plan against.
            memory_high_water_gb: Overrides the catalog's memory warning threshold.
        """
        self.catalog = catalog
        self.reporter = ValidationReporter(catalog, memory_high_water_gb)
        self.resolver = self.reporter.resolver

    def plan(
        self,
        action: ActionType | str,
        targets: Iterable[str],
        snapshot: ReconciliationSnapshot,
        config_delta: Mapping[str, str | None] | None = None,
    ) -> ReconfigurationImpact | ValidationReport:
        """Plan a reconfiguration.

        Args:
            action: 'add', 'remove' or 'configure'.
            targets: Target profile ids; legacy ids are migrated.
            snapshot: Reconciliation snapshot describing the current state.
            config_delta: Proposed key changes; None values remove keys.

        Returns:
            ReconfigurationImpact, or a ValidationReport carrying the
            errors that block the action.
        """
        try:
            action = ActionType(action)
        except ValueError:
            choices = ", ".join(a.value for a in ActionType)
            return ValidationReport(
                errors=(
                    Issue(
                        IssueKind.INVALID_ACTION,
                        f"Unknown action '{action}', expected one of: {choices}",
                    ),
                )
            )
        target_ids = self.catalog.migrate(targets)
        delta = config_delta or {}

        blocking = self._check_targets(action, target_ids, snapshot)
        if blocking is not None:
            return blocking

        logger.debug("Planning %s of %s", action.value, ", ".join(target_ids))
        if action == ActionType.ADD:
            return self._plan_add(target_ids, snapshot, delta)
        if action == ActionType.REMOVE:
            return self._plan_remove(target_ids, snapshot, delta)
        return self._plan_configure(target_ids, snapshot, delta)

    def _check_targets(
        self,
        action: ActionType,
        target_ids: tuple[str, ...],
        snapshot: ReconciliationSnapshot,
    ) -> ValidationReport | None:
        """Check that targets exist and their state allows the action."""
        if not target_ids:
            return ValidationReport(
                errors=(Issue(IssueKind.EMPTY_SELECTION, "No target profiles given"),)
            )

        unknown = [pid for pid in target_ids if pid not in self.catalog]
        if unknown:
            return ValidationReport(
                errors=tuple(
                    Issue(IssueKind.UNKNOWN_PROFILE, f"Unknown profile: {pid}", profiles=(pid,))
                    for pid in unknown
                )
            )

        errors: list[Issue] = []
        for profile_id in target_ids:
            state = snapshot.get(profile_id)
            if state is None:
                allowed, current = action == ActionType.ADD, "not-installed"
            else:
                allowed = {
                    ActionType.ADD: state.can_add,
                    ActionType.REMOVE: state.can_remove,
                    ActionType.CONFIGURE: state.can_modify,
                }[action]
                current = state.installation_state.value
            if not allowed:
                errors.append(
                    Issue(
                        IssueKind.INVALID_ACTION_STATE,
                        f"Cannot {action.value} '{profile_id}': profile is {current}",
                        profiles=(profile_id,),
                    )
                )
        if errors:
            return ValidationReport(errors=tuple(errors))
        return None

    def _plan_add(
        self,
        target_ids: tuple[str, ...],
        snapshot: ReconciliationSnapshot,
        delta: Mapping[str, str | None],
    ) -> ReconfigurationImpact | ValidationReport:
        current = snapshot.claimed_ids
        report = self.reporter.validate((*current, *target_ids))
        if not report.valid:
            return report

        before = set(self.catalog.ordered(self.resolver.resolve_closure(current)))
        entering = [pid for pid in report.resolved_profiles if pid not in before]
        existing_services = set(self.catalog.services_for(current))

        diff = compute_config_diff(
            snapshot.configuration,
            apply_config_delta(snapshot.configuration, delta),
            self.catalog,
        )
        services = set(self.catalog.services_for(entering)) | self._services_for_keys(
            diff.keys, scope=report.resolved_profiles
        )
        if not services:
            services = set(self.catalog.services_for(target_ids))

        return self._impact(
            ActionType.ADD,
            target_ids,
            services,
            diff,
            restarted=services & existing_services,
            warnings=report.warnings,
            validation=report,
        )

    def _plan_remove(
        self,
        target_ids: tuple[str, ...],
        snapshot: ReconciliationSnapshot,
        delta: Mapping[str, str | None],
    ) -> ReconfigurationImpact | ValidationReport:
        removed = set(target_ids)
        remaining = tuple(pid for pid in snapshot.claimed_ids if pid not in removed)

        report = self.reporter.validate(remaining)
        # Removal is never blocked; problems it leaves behind are flagged
        warnings = [*report.errors, *report.warnings]
        for profile_id in target_ids:
            dependents = self.resolver.dependents(profile_id, remaining)
            if dependents:
                warnings.append(
                    Issue(
                        IssueKind.DEPENDENT_PROFILE,
                        f"{', '.join(dependents)} depend on '{profile_id}'",
                        profiles=(profile_id, *dependents),
                    )
                )

        # Keys owned only by removed profiles are dropped with them
        orphaned_keys: dict[str, str | None] = {
            key: None
            for key in snapshot.configuration
            if self._owns_key(target_ids, key) and not self._owns_key(remaining, key)
        }
        new_config = apply_config_delta(
            apply_config_delta(snapshot.configuration, orphaned_keys), delta
        )
        diff = compute_config_diff(snapshot.configuration, new_config, self.catalog)

        remaining_services = set(self.catalog.services_for(remaining))
        stopping = set(self.catalog.services_for(target_ids)) - remaining_services
        consumers = self._consumers(stopping) & remaining_services
        services = stopping | consumers | self._services_for_keys(
            diff.keys, scope=remaining
        )
        if not services and diff.has_changes:
            # Dropped keys belonged to the targets even when their services stay up
            services = set(self.catalog.services_for(target_ids))

        return self._impact(
            ActionType.REMOVE,
            target_ids,
            services,
            diff,
            restarted=services & remaining_services,
            warnings=tuple(warnings),
            validation=report,
        )

    def _plan_configure(
        self,
        target_ids: tuple[str, ...],
        snapshot: ReconciliationSnapshot,
        delta: Mapping[str, str | None],
    ) -> ReconfigurationImpact | ValidationReport:
        current = snapshot.claimed_ids
        report = self.reporter.validate(current)
        if not report.valid:
            return report

        diff = compute_config_diff(
            snapshot.configuration,
            apply_config_delta(snapshot.configuration, delta),
            self.catalog,
        )
        services = self._services_for_keys(diff.keys, scope=(*current, *target_ids))
        if not services and diff.has_changes:
            services = set(self.catalog.services_for(target_ids))

        return self._impact(
            ActionType.CONFIGURE,
            target_ids,
            services,
            diff,
            restarted=services,
            warnings=report.warnings,
            validation=report,
        )

    def _owns_key(self, profile_ids: Iterable[str], key: str) -> bool:
        for profile_id in profile_ids:
            profile = self.catalog.get(profile_id)
            if profile is not None and profile.owns_config_key(key):
                return True
        return False

    def _consumers(self, services: Iterable[str]) -> set[str]:
        """Transitive consumers of the given services."""
        found: set[str] = set()
        pending = list(services)
        while pending:
            for consumer in self.catalog.consumers_of(pending.pop()):
                if consumer not in found:
                    found.add(consumer)
                    pending.append(consumer)
        return found

    def _services_for_keys(self, keys: Iterable[str], scope: Iterable[str]) -> set[str]:
        """Services mapped to changed keys, plus their consumers.

        Only services belonging to the ``scope`` profiles are returned.
        """
        mapped: set[str] = set()
        for key in keys:
            mapped.update(self.catalog.services_for_key(key))
        mapped |= self._consumers(mapped)
        return mapped & set(self.catalog.services_for(scope))

    def _impact(
        self,
        action: ActionType,
        target_ids: tuple[str, ...],
        services: set[str],
        diff: ConfigDiff,
        restarted: set[str],
        warnings: tuple[Issue, ...],
        validation: ValidationReport,
    ) -> ReconfigurationImpact | ValidationReport:
        if diff.has_changes and not services:
            return ValidationReport(
                errors=(
                    Issue(
                        IssueKind.PLANNING_INCONSISTENCY,
                        "Configuration changes do not affect any service",
                        profiles=target_ids,
                    ),
                ),
                warnings=warnings,
            )

        restart_type = max(
            (restart_type_for_key(self.catalog, key) for key in diff.keys),
            key=lambda r: r.rank,
            default=RestartType.SERVICE,
        )
        requires_restart = bool(restarted)
        all_services = self.catalog.services_for(self.catalog.ids)
        return ReconfigurationImpact(
            action=action,
            targets=target_ids,
            affected_services=tuple(name for name in all_services if name in services),
            restart_type=restart_type,
            estimated_downtime_seconds=DOWNTIME_SECONDS[restart_type] if requires_restart else 0,
            requires_restart=requires_restart,
            diff=diff,
            warnings=warnings,
            validation=validation,
        )
