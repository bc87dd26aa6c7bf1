"""Data models for profilectl.

This module exports the core data structures used throughout the application.
"""

from profilectl.models.plan import (
    ActionType,
    ChangeImpact,
    ChangeType,
    ConfigChange,
    ConfigDiff,
    ReconfigurationImpact,
    RestartType,
)
from profilectl.models.profile import (
    CatalogDocument,
    Profile,
    ResourceSpec,
    ServiceSpec,
    Template,
)
from profilectl.models.report import (
    ConflictEntry,
    Issue,
    IssueKind,
    PortCollision,
    ResolvedSelection,
    ResourceRequirements,
    SharedService,
    StartupEntry,
    ValidationReport,
)
from profilectl.models.state import (
    DeclaredRecord,
    DetectionSources,
    InstallationState,
    LiveService,
    LiveSnapshot,
    ProfileState,
    ServiceStatus,
)

__all__ = [
    "ActionType",
    "CatalogDocument",
    "ChangeImpact",
    "ChangeType",
    "ConfigChange",
    "ConfigDiff",
    "ConflictEntry",
    "DeclaredRecord",
    "DetectionSources",
    "InstallationState",
    "Issue",
    "IssueKind",
    "LiveService",
    "LiveSnapshot",
    "PortCollision",
    "Profile",
    "ProfileState",
    "ReconfigurationImpact",
    "ResolvedSelection",
    "ResourceRequirements",
    "ResourceSpec",
    "RestartType",
    "ServiceSpec",
    "ServiceStatus",
    "SharedService",
    "StartupEntry",
    "Template",
    "ValidationReport",
]
