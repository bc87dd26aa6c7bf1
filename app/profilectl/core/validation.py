"""Selection validation.

This module provides the ValidationReporter, the single entry point for
checking a profile selection. It is used by the install flow and by
every reconfiguration flow; it does not know which one called it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from profilectl.core.resolver import GraphResolver
from profilectl.models.report import Issue, IssueKind, ResourceRequirements, ValidationReport

if TYPE_CHECKING:
    from profilectl.core.catalog import Catalog

logger = logging.getLogger(__name__)


class ValidationReporter:
    """Checks a selection and reports errors and warnings.

    Checks run in a fixed order: selection shape, profile existence,
    dependency cycles, the root-profile rule, prerequisites, conflicts,
    port collisions, then resource sanity. Unknown profiles short-circuit
    the structural checks. Nothing here raises for an invalid selection.

    Example:
        >>> reporter = ValidationReporter(catalog)
        >>> report = reporter.validate(["kaspa-node", "kaspa-archive-node"])
        >>> report.valid
        False
    """

    def __init__(
        self,
        catalog: Catalog,
        memory_high_water_gb: float | None = None,
    ) -> None:
        """Initialize the reporter.

        Args:
            catalog: Catalog to validate against.
            memory_high_water_gb: Overrides the catalog's high-water mark.
        """
        self.catalog = catalog
        self.resolver = GraphResolver(catalog)
        self.memory_high_water_gb = (
            memory_high_water_gb
            if memory_high_water_gb is not None
            else catalog.memory_high_water_gb
        )

    def validate(self, selection: Iterable[str]) -> ValidationReport:
        """Validate a profile selection.

        Args:
            selection: Requested profile ids. Duplicates are ignored and
                legacy ids are migrated to their current ids.

        Returns:
            ValidationReport; ``valid`` is True only if there are no errors.
        """
        requested = tuple(dict.fromkeys(selection))
        errors: list[Issue] = []
        warnings: list[Issue] = []

        if not requested:
            errors.append(
                Issue(IssueKind.EMPTY_SELECTION, "At least one profile must be selected")
            )
            return ValidationReport(errors=tuple(errors))

        for profile_id in requested:
            if self.catalog.is_legacy(profile_id):
                targets = self.catalog.legacy_targets(profile_id)
                warnings.append(
                    Issue(
                        IssueKind.LEGACY_PROFILE,
                        f"Profile '{profile_id}' is deprecated; using {', '.join(targets)}",
                        profiles=(profile_id, *targets),
                    )
                )
        requested = self.catalog.migrate(requested)

        unknown = [pid for pid in requested if pid not in self.catalog]
        for profile_id in unknown:
            errors.append(
                Issue(
                    IssueKind.UNKNOWN_PROFILE,
                    f"Unknown profile: {profile_id}",
                    profiles=(profile_id,),
                )
            )
        if unknown:
            logger.debug("Selection has unknown profiles: %s", unknown)
            return ValidationReport(errors=tuple(errors), warnings=tuple(warnings))

        closure = self.catalog.ordered(self.resolver.resolve_closure(requested))

        for cycle in self.resolver.detect_cycles(requested):
            errors.append(
                Issue(
                    IssueKind.CIRCULAR_DEPENDENCY,
                    f"Circular dependency: {' -> '.join(cycle)}",
                    profiles=cycle,
                )
            )

        errors.extend(self._check_root(closure))
        errors.extend(self._check_prerequisites(closure))

        conflicts = self.resolver.detect_conflicts(closure)
        conflicting_pairs = {frozenset((c.profile_a, c.profile_b)) for c in conflicts}
        for conflict in conflicts:
            errors.append(
                Issue(
                    IssueKind.PROFILE_CONFLICT,
                    conflict.reason,
                    profiles=(conflict.profile_a, conflict.profile_b),
                )
            )

        for collision in self.resolver.detect_port_collisions(closure):
            # Already reported as a conflict; the pair can never coexist
            if frozenset(collision.profiles) in conflicting_pairs:
                continue
            first, second = collision.profiles
            errors.append(
                Issue(
                    IssueKind.PORT_COLLISION,
                    f"Port {collision.port} is used by both {first} and {second}",
                    profiles=collision.profiles,
                    port=collision.port,
                )
            )

        requirements = self.resolver.aggregate_resources(closure)
        warnings.extend(self._check_resources(requirements))

        return ValidationReport(
            errors=tuple(errors),
            warnings=tuple(warnings),
            resolved_profiles=closure,
            requirements=requirements,
        )

    def _check_root(self, closure: tuple[str, ...]) -> list[Issue]:
        roots = self.catalog.root_profiles
        if not roots or roots & set(closure):
            return []
        names = self.catalog.ordered(roots)
        return [
            Issue(
                IssueKind.MISSING_ROOT_PROFILE,
                f"Selection must include one of: {', '.join(names)}",
                profiles=names,
            )
        ]

    def _check_prerequisites(self, closure: tuple[str, ...]) -> list[Issue]:
        present = set(closure)
        issues: list[Issue] = []
        for profile_id in closure:
            profile = self.catalog[profile_id]
            if profile.prerequisites and not present & set(profile.prerequisites):
                issues.append(
                    Issue(
                        IssueKind.MISSING_PREREQUISITE,
                        f"{profile.name} requires one of: {', '.join(profile.prerequisites)}",
                        profiles=(profile_id, *profile.prerequisites),
                    )
                )
        return issues

    def _check_resources(self, requirements: ResourceRequirements) -> list[Issue]:
        if requirements.min_memory <= self.memory_high_water_gb:
            return []
        return [
            Issue(
                IssueKind.HIGH_RESOURCES,
                f"Selection needs at least {requirements.min_memory:g} GB of memory; "
                "verify the host has enough capacity",
            )
        ]
