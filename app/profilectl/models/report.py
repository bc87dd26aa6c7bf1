"""Validation and resolution result models.

This module defines the immutable result structures produced by the
graph resolver and the validation reporter.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class IssueKind(str, Enum):
    """Kind of a reported validation issue.

    Every engine entry point reports these rather than raising them.
    """

    UNKNOWN_PROFILE = "UnknownProfile"
    CIRCULAR_DEPENDENCY = "CircularDependency"
    PROFILE_CONFLICT = "ProfileConflict"
    MISSING_PREREQUISITE = "MissingPrerequisite"
    MISSING_ROOT_PROFILE = "MissingRootProfile"
    PORT_COLLISION = "PortCollision"
    EMPTY_SELECTION = "EmptySelection"
    PLANNING_INCONSISTENCY = "PlanningInconsistency"
    INVALID_ACTION = "InvalidAction"
    INVALID_ACTION_STATE = "InvalidActionState"
    HIGH_RESOURCES = "HighResources"
    LEGACY_PROFILE = "LegacyProfile"
    DEPENDENT_PROFILE = "DependentProfile"


@dataclass(frozen=True, slots=True)
class Issue:
    """A single error or warning.

    Attributes:
        kind: Issue category.
        message: Human-readable explanation.
        profiles: Profile ids the issue refers to.
        port: Port number for port collisions.
    """

    kind: IssueKind
    message: str
    profiles: tuple[str, ...] = ()
    port: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {"kind": self.kind.value, "message": self.message}
        if self.profiles:
            result["profiles"] = list(self.profiles)
        if self.port is not None:
            result["port"] = self.port
        return result


@dataclass(frozen=True, slots=True)
class ConflictEntry:
    """A pair of mutually exclusive profiles found in one closure."""

    profile_a: str
    profile_b: str
    reason: str


@dataclass(frozen=True, slots=True)
class PortCollision:
    """A port claimed by more than one profile.

    Attributes:
        port: The contested port.
        profiles: First claimant followed by the colliding claimant.
    """

    port: int
    profiles: tuple[str, str]


@dataclass(frozen=True, slots=True)
class SharedService:
    """A service name referenced by more than one profile."""

    name: str
    profiles: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class ResourceRequirements:
    """Aggregated resource requirements for a set of profiles.

    Memory and disk are summed across profiles; CPU is the maximum.
    Shared services are informational and do not reduce the totals.
    """

    min_memory: float = 0
    min_cpu: float = 0
    min_disk: float = 0
    recommended_memory: float = 0
    recommended_cpu: float = 0
    recommended_disk: float = 0
    shared_services: tuple[SharedService, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "min_memory": self.min_memory,
            "min_cpu": self.min_cpu,
            "min_disk": self.min_disk,
            "recommended_memory": self.recommended_memory,
            "recommended_cpu": self.recommended_cpu,
            "recommended_disk": self.recommended_disk,
            "shared_services": [
                {"name": s.name, "profiles": list(s.profiles)} for s in self.shared_services
            ],
        }


@dataclass(frozen=True, slots=True)
class StartupEntry:
    """A service placed in startup order together with its owning profile."""

    service: str
    profile: str
    startup_order: int


@dataclass(frozen=True, slots=True)
class ResolvedSelection:
    """Output of closure resolution.

    Attributes:
        profiles: Transitive closure in catalog order.
        requirements: Aggregated resource requirements.
        ports: De-duplicated, sorted ports bound by the closure.
    """

    profiles: tuple[str, ...]
    requirements: ResourceRequirements
    ports: tuple[int, ...]

    @property
    def shared_services(self) -> tuple[SharedService, ...]:
        """Services referenced by more than one profile in the closure."""
        return self.requirements.shared_services


@dataclass(frozen=True, slots=True)
class ValidationReport:
    """Structured pass/fail result of validating a selection.

    ``valid`` is derived from ``errors``; warnings never affect it.
    """

    errors: tuple[Issue, ...] = ()
    warnings: tuple[Issue, ...] = ()
    resolved_profiles: tuple[str, ...] = ()
    requirements: ResourceRequirements = field(default_factory=ResourceRequirements)

    @property
    def valid(self) -> bool:
        """Check whether the selection passed validation."""
        return not self.errors

    def error_kinds(self) -> list[IssueKind]:
        """Kinds of all errors in report order."""
        return [issue.kind for issue in self.errors]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "valid": self.valid,
            "errors": [issue.to_dict() for issue in self.errors],
            "warnings": [issue.to_dict() for issue in self.warnings],
            "resolved_profiles": list(self.resolved_profiles),
            "requirements": self.requirements.to_dict(),
        }
