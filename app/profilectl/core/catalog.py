"""Profile catalog loading and lookup.

This module provides the immutable Catalog registry and the function
for loading it from a TOML file with Pydantic validation. Referential
integrity is checked once at load time; a catalog that references
unknown profiles or services is a startup-fatal configuration error.
"""

import fnmatch
import logging
import tomllib
from collections.abc import Iterable, Iterator
from pathlib import Path
from types import MappingProxyType

from pydantic import ValidationError

from profilectl.core.paths import get_catalog_path
from profilectl.models.profile import CatalogDocument, Profile, ServiceSpec, Template

logger = logging.getLogger(__name__)


class CatalogError(Exception):
    """Base exception for catalog-related errors."""


class CatalogNotFoundError(CatalogError):
    """Raised when the catalog file is not found."""


class CatalogParseError(CatalogError):
    """Raised when the catalog file cannot be parsed."""


class CatalogValidationError(CatalogError):
    """Raised when catalog content does not match the schema."""


class CatalogIntegrityError(CatalogError):
    """Raised when the catalog references undefined profiles or services.

    Attributes:
        problems: Every integrity problem found, in discovery order.
    """

    def __init__(self, problems: list[str]) -> None:
        self.problems = tuple(problems)
        super().__init__("Catalog integrity check failed: " + "; ".join(problems))


class Catalog:
    """Immutable registry of profile definitions.

    Lookups by id return None for unknown ids and never raise. Iteration
    yields profiles in catalog (declaration) order, which is the stable
    order used by every algorithm that needs one.

    Example:
        >>> catalog = load_catalog()
        >>> node = catalog.get("kaspa-node")
        >>> catalog.get("no-such-profile") is None
        True
    """

    def __init__(self, document: CatalogDocument) -> None:
        """Build lookup tables and check referential integrity.

        Args:
            document: Validated catalog document.

        Raises:
            CatalogIntegrityError: If any reference is dangling.
        """
        self._document = document
        problems: list[str] = []

        profiles: dict[str, Profile] = {}
        for profile in document.profiles:
            if profile.id in profiles:
                problems.append(f"duplicate profile id '{profile.id}'")
                continue
            profiles[profile.id] = profile
        self._profiles = MappingProxyType(profiles)
        self._order = {profile_id: index for index, profile_id in enumerate(profiles)}

        # Exact service membership, resolved once
        service_profiles: dict[str, list[str]] = {}
        services: dict[str, ServiceSpec] = {}
        for profile in profiles.values():
            for service in profile.services:
                service_profiles.setdefault(service.name, []).append(profile.id)
                services.setdefault(service.name, service)
        self._service_profiles = MappingProxyType(
            {name: tuple(ids) for name, ids in service_profiles.items()}
        )
        self._services = MappingProxyType(services)

        self._templates = MappingProxyType({t.id: t for t in document.templates})

        problems.extend(self._check_integrity())
        if problems:
            raise CatalogIntegrityError(problems)

        logger.debug(
            "Loaded catalog '%s' with %d profiles and %d services",
            document.meta.name,
            len(profiles),
            len(services),
        )

    def _check_integrity(self) -> list[str]:
        """Collect dangling references across the whole document."""
        problems: list[str] = []

        for profile in self._profiles.values():
            relations = {
                "dependencies": profile.dependencies,
                "conflicts": profile.conflicts,
                "prerequisites": profile.prerequisites,
            }
            for relation, targets in relations.items():
                for target in targets:
                    if target == profile.id:
                        problems.append(f"profile '{profile.id}' lists itself in {relation}")
                    elif target not in self._profiles:
                        problems.append(
                            f"profile '{profile.id}' {relation} references unknown profile "
                            f"'{target}'"
                        )
            for service in profile.services:
                for used in service.uses:
                    if used not in self._services:
                        problems.append(
                            f"service '{service.name}' uses unknown service '{used}'"
                        )

        for root in self._document.rules.root_profiles:
            if root not in self._profiles:
                problems.append(f"root rule references unknown profile '{root}'")

        for legacy_id, targets in self._document.legacy.items():
            if legacy_id in self._profiles:
                problems.append(f"legacy id '{legacy_id}' shadows a current profile")
            if not targets:
                problems.append(f"legacy id '{legacy_id}' maps to no profiles")
            for target in targets:
                if target not in self._profiles:
                    problems.append(
                        f"legacy id '{legacy_id}' maps to unknown profile '{target}'"
                    )

        for pattern, service_names in self._document.key_map.items():
            for name in service_names:
                if name not in self._services:
                    problems.append(f"key map '{pattern}' references unknown service '{name}'")

        for template in self._templates.values():
            for profile_id in template.profiles:
                if profile_id not in self._profiles:
                    problems.append(
                        f"template '{template.id}' references unknown profile '{profile_id}'"
                    )

        return problems

    # -- Profile lookup ---------------------------------------------------

    def get(self, profile_id: str) -> Profile | None:
        """Get a profile by id.

        Args:
            profile_id: Profile identifier.

        Returns:
            Profile if found, None otherwise.
        """
        return self._profiles.get(profile_id)

    def __getitem__(self, profile_id: str) -> Profile:
        """Get a known profile by id.

        Raises:
            KeyError: If the id is not in the catalog.
        """
        return self._profiles[profile_id]

    def __contains__(self, profile_id: object) -> bool:
        return profile_id in self._profiles

    def __iter__(self) -> Iterator[Profile]:
        return iter(self._profiles.values())

    def __len__(self) -> int:
        return len(self._profiles)

    @property
    def ids(self) -> tuple[str, ...]:
        """All profile ids in catalog order."""
        return tuple(self._profiles)

    @property
    def name(self) -> str:
        """Catalog name from the meta section."""
        return self._document.meta.name

    def ordered(self, profile_ids: Iterable[str]) -> tuple[str, ...]:
        """Sort known profile ids into catalog order, dropping unknown ids.

        Args:
            profile_ids: Profile ids in any order.

        Returns:
            De-duplicated tuple of known ids in catalog order.
        """
        known = {pid for pid in profile_ids if pid in self._profiles}
        return tuple(sorted(known, key=self._order.__getitem__))

    # -- Services ---------------------------------------------------------

    def service(self, name: str) -> ServiceSpec | None:
        """Get a service descriptor by exact name."""
        return self._services.get(name)

    def profiles_for_service(self, name: str) -> tuple[str, ...]:
        """Profiles whose service list contains ``name``, in catalog order."""
        return self._service_profiles.get(name, ())

    def services_for(self, profile_ids: Iterable[str]) -> tuple[str, ...]:
        """Service names of the given profiles, de-duplicated, in catalog order.

        Args:
            profile_ids: Profile ids; unknown ids are ignored.

        Returns:
            Tuple of service names.
        """
        names: dict[str, None] = {}
        for profile_id in self.ordered(profile_ids):
            for service_name in self._profiles[profile_id].service_names:
                names.setdefault(service_name)
        return tuple(names)

    def consumers_of(self, service_name: str) -> tuple[str, ...]:
        """Services that declare ``service_name`` in their ``uses`` list."""
        return tuple(
            name for name, service in self._services.items() if service_name in service.uses
        )

    # -- Rules ------------------------------------------------------------

    @property
    def root_profiles(self) -> frozenset[str]:
        """Profiles that satisfy the root-profile rule.

        Combines profiles flagged ``root`` with the catalog's declared
        root rule. Empty when the catalog declares no root requirement.
        """
        flagged = {profile.id for profile in self._profiles.values() if profile.root}
        return frozenset(flagged | set(self._document.rules.root_profiles))

    @property
    def memory_high_water_gb(self) -> float:
        """Minimum-memory total above which validation warns."""
        return self._document.rules.memory_high_water_gb

    @property
    def container_restart_keys(self) -> tuple[str, ...]:
        """Glob patterns of data-directory/volume configuration keys."""
        return self._document.restart.container_keys

    @property
    def full_restart_keys(self) -> tuple[str, ...]:
        """Glob patterns of network-identity configuration keys."""
        return self._document.restart.full_keys

    def services_for_key(self, key: str) -> tuple[str, ...]:
        """Services mapped to a configuration key via the key map.

        Args:
            key: Configuration key name.

        Returns:
            De-duplicated service names from every matching pattern.
        """
        names: dict[str, None] = {}
        for pattern, service_names in self._document.key_map.items():
            if fnmatch.fnmatchcase(key, pattern):
                for name in service_names:
                    names.setdefault(name)
        return tuple(names)

    # -- Legacy ids -------------------------------------------------------

    def is_legacy(self, profile_id: str) -> bool:
        """Check if an id is a legacy alias for current profiles."""
        return profile_id in self._document.legacy

    def legacy_targets(self, profile_id: str) -> tuple[str, ...]:
        """Current profile ids a legacy id maps to (empty if not legacy)."""
        return self._document.legacy.get(profile_id, ())

    @property
    def legacy_ids(self) -> tuple[str, ...]:
        """All legacy aliases in declaration order."""
        return tuple(self._document.legacy)

    def migrate(self, profile_ids: Iterable[str]) -> tuple[str, ...]:
        """Replace legacy ids with their current ids.

        Order is preserved and duplicates are dropped. Ids that are
        neither current nor legacy are passed through unchanged.

        Args:
            profile_ids: Profile ids that may include legacy aliases.

        Returns:
            Tuple of migrated ids.
        """
        result: dict[str, None] = {}
        for profile_id in profile_ids:
            for migrated in self.legacy_targets(profile_id) or (profile_id,):
                result.setdefault(migrated)
        return tuple(result)

    # -- Templates --------------------------------------------------------

    def template(self, template_id: str) -> Template | None:
        """Get a template by id, or None if unknown."""
        return self._templates.get(template_id)

    @property
    def templates(self) -> tuple[Template, ...]:
        """All templates in declaration order."""
        return tuple(self._templates.values())


def load_catalog(path: Path | None = None) -> Catalog:
    """Load and validate a catalog from a TOML file.

    Args:
        path: Path to the catalog file. If None, uses the configured catalog.

    Returns:
        Validated Catalog.

    Raises:
        CatalogNotFoundError: If the catalog file doesn't exist.
        CatalogParseError: If the TOML syntax is invalid.
        CatalogValidationError: If the content doesn't match the schema.
        CatalogIntegrityError: If the content references undefined ids.
    """
    catalog_path = path or get_catalog_path()

    if not catalog_path.exists():
        raise CatalogNotFoundError(f"Catalog not found: {catalog_path}")

    try:
        with open(catalog_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise CatalogParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise CatalogError(f"Failed to read catalog: {e}") from e

    try:
        document = CatalogDocument.model_validate(data)
    except ValidationError as e:
        raise CatalogValidationError(f"Invalid catalog content: {e}") from e

    return Catalog(document)
