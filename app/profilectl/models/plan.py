"""Reconfiguration planning models.

This module defines the configuration diff and the impact summary
returned when planning an add, remove or configure operation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from profilectl.models.report import Issue, ValidationReport


class ActionType(str, Enum):
    """Kind of reconfiguration requested by the user."""

    ADD = "add"
    REMOVE = "remove"
    CONFIGURE = "configure"


class ChangeType(str, Enum):
    """How a configuration key changed."""

    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"


class ChangeImpact(str, Enum):
    """Rough impact level of a single configuration change."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RestartType(str, Enum):
    """Restart scope, in increasing order of disruption."""

    SERVICE = "service"
    CONTAINER = "container"
    FULL = "full"

    @property
    def rank(self) -> int:
        """Position of this restart type in escalation order."""
        return list(RestartType).index(self)


@dataclass(frozen=True, slots=True)
class ConfigChange:
    """A single changed configuration key.

    Attributes:
        key: Configuration key name.
        change_type: Added, removed or modified.
        old_value: Previous value (None when added).
        new_value: New value (None when removed).
        impact: Impact level of the change.
    """

    key: str
    change_type: ChangeType
    old_value: str | None = None
    new_value: str | None = None
    impact: ChangeImpact = ChangeImpact.LOW

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "key": self.key,
            "type": self.change_type.value,
            "old_value": self.old_value,
            "new_value": self.new_value,
            "impact": self.impact.value,
        }


@dataclass(frozen=True, slots=True)
class ConfigDiff:
    """Differences between two configurations, sorted by key."""

    changes: tuple[ConfigChange, ...] = ()

    @property
    def has_changes(self) -> bool:
        """Check whether any key differs."""
        return len(self.changes) > 0

    @property
    def keys(self) -> tuple[str, ...]:
        """Changed key names."""
        return tuple(change.key for change in self.changes)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "has_changes": self.has_changes,
            "change_count": len(self.changes),
            "changes": [change.to_dict() for change in self.changes],
        }


@dataclass(frozen=True, slots=True)
class ReconfigurationImpact:
    """Impact of a planned reconfiguration.

    Computed fresh for every planning call; never cached.

    Attributes:
        action: Requested action.
        targets: Target profile ids.
        affected_services: Services that must be started, stopped or restarted.
        restart_type: Restart scope required.
        estimated_downtime_seconds: Expected downtime for the restart scope.
        requires_restart: Whether applying the plan restarts anything.
        diff: Configuration diff the plan is based on.
        warnings: Non-blocking issues (e.g., stranded prerequisites on removal).
        validation: Validation report of the would-be selection, if one was run.
    """

    action: ActionType
    targets: tuple[str, ...]
    affected_services: tuple[str, ...]
    restart_type: RestartType
    estimated_downtime_seconds: int
    requires_restart: bool
    diff: ConfigDiff = field(default_factory=ConfigDiff)
    warnings: tuple[Issue, ...] = ()
    validation: ValidationReport | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "action": self.action.value,
            "targets": list(self.targets),
            "affected_services": list(self.affected_services),
            "restart_type": self.restart_type.value,
            "estimated_downtime_seconds": self.estimated_downtime_seconds,
            "requires_restart": self.requires_restart,
            "diff": self.diff.to_dict(),
            "warnings": [issue.to_dict() for issue in self.warnings],
        }
