"""Profile catalog models.

This module defines the Pydantic models representing the catalog.toml
structure: installable profiles, their services and the catalog-wide
rules used by validation and reconfiguration planning.
"""

import fnmatch
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Port numbers a profile may bind
Port = Annotated[int, Field(ge=1, le=65535)]


class ServiceSpec(BaseModel):
    """A single service (container) belonging to a profile.

    Attributes:
        name: Service name as used by the container runtime.
        required: Whether the profile is unusable without this service.
        startup_order: Start tier; lower tiers start first.
        container_names: Alternative exact names the runtime may report.
        uses: Names of services this service consumes.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: Annotated[str, Field(min_length=1, description="Service name")]
    required: Annotated[bool, Field(description="Service is mandatory")] = True
    startup_order: Annotated[int, Field(ge=0, description="Startup tier")] = 1
    container_names: Annotated[
        tuple[str, ...],
        Field(description="Alternative runtime names"),
    ] = ()
    uses: Annotated[
        tuple[str, ...],
        Field(description="Services consumed by this service"),
    ] = ()

    @property
    def runtime_names(self) -> tuple[str, ...]:
        """All exact names under which the runtime may report this service."""
        return (self.name, *self.container_names)


class ResourceSpec(BaseModel):
    """Minimum and recommended host resources for a profile.

    Memory and disk are expressed in GB, CPU in cores.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    min_memory: Annotated[float, Field(ge=0)] = 0
    min_cpu: Annotated[float, Field(ge=0)] = 0
    min_disk: Annotated[float, Field(ge=0)] = 0
    recommended_memory: Annotated[float, Field(ge=0)] = 0
    recommended_cpu: Annotated[float, Field(ge=0)] = 0
    recommended_disk: Annotated[float, Field(ge=0)] = 0


class Profile(BaseModel):
    """A named installable unit made of one or more services.

    Attributes:
        id: Unique catalog key.
        name: Human-readable display name.
        description: Optional longer description.
        category: Grouping used for display.
        root: Whether this profile satisfies the root-profile rule on its own.
        services: Ordered service descriptors.
        dependencies: Profiles that must also be selected.
        conflicts: Profiles that must not be selected together with this one.
        prerequisites: Profiles of which at least one must be present.
        ports: Host ports bound by the profile's services.
        resources: Resource requirements.
        config_keys: Glob patterns of configuration keys owned by the profile.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: Annotated[str, Field(min_length=1, description="Profile identifier")]
    name: Annotated[str, Field(min_length=1, description="Display name")]
    description: Annotated[str | None, Field(description="Profile description")] = None
    category: Annotated[str, Field(description="Display category")] = "optional"
    root: Annotated[bool, Field(description="Counts toward the root-profile rule")] = False
    services: Annotated[tuple[ServiceSpec, ...], Field(min_length=1)]
    dependencies: tuple[str, ...] = ()
    conflicts: tuple[str, ...] = ()
    prerequisites: tuple[str, ...] = ()
    ports: tuple[Port, ...] = ()
    resources: ResourceSpec = Field(default_factory=ResourceSpec)
    config_keys: tuple[str, ...] = ()

    @model_validator(mode="after")
    def validate_services(self) -> "Profile":
        """Validate that service names are unique within the profile."""
        names = [service.name for service in self.services]
        duplicates = {name for name in names if names.count(name) > 1}
        if duplicates:
            msg = f"Profile '{self.id}' defines duplicate services: {sorted(duplicates)}"
            raise ValueError(msg)
        return self

    @property
    def service_names(self) -> tuple[str, ...]:
        """Names of all services in declaration order."""
        return tuple(service.name for service in self.services)

    def owns_config_key(self, key: str) -> bool:
        """Check whether a configuration key belongs to this profile.

        Args:
            key: Configuration key name (e.g., 'KASPA_NODE_RPC_PORT').

        Returns:
            True if the key matches one of the profile's key patterns.
        """
        return any(fnmatch.fnmatchcase(key, pattern) for pattern in self.config_keys)


class Template(BaseModel):
    """A named preset selection with default configuration."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: Annotated[str, Field(min_length=1)]
    name: str
    description: str | None = None
    profiles: Annotated[tuple[str, ...], Field(min_length=1)]
    config: dict[str, str] = Field(default_factory=dict)


class CatalogMeta(BaseModel):
    """Metadata section of the catalog."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    version: str = "1.0"
    name: str = "default"


class CatalogRules(BaseModel):
    """Catalog-wide validation rules.

    Attributes:
        root_profiles: Profiles of which at least one must be in every closure.
        memory_high_water_gb: Minimum-memory total above which a warning is raised.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    root_profiles: tuple[str, ...] = ()
    memory_high_water_gb: Annotated[float, Field(gt=0)] = 32


class RestartRules(BaseModel):
    """Configuration key categories that escalate the restart type.

    Attributes:
        container_keys: Glob patterns of data-directory/volume keys.
        full_keys: Glob patterns of network-identity keys.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    container_keys: tuple[str, ...] = ()
    full_keys: tuple[str, ...] = ()


class CatalogDocument(BaseModel):
    """Complete catalog file contents as parsed from TOML."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    meta: CatalogMeta = Field(default_factory=CatalogMeta)
    rules: CatalogRules = Field(default_factory=CatalogRules)
    restart: RestartRules = Field(default_factory=RestartRules)
    legacy: dict[str, tuple[str, ...]] = Field(default_factory=dict)
    key_map: dict[str, tuple[str, ...]] = Field(default_factory=dict)
    profiles: Annotated[tuple[Profile, ...], Field(min_length=1)]
    templates: tuple[Template, ...] = ()
