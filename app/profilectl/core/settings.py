"""User settings.

Settings are stored in ~/.config/profilectl/settings.toml. Every field
is optional; a missing file yields the defaults.
"""

import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from profilectl.core.paths import (
    CATALOG_ENV_VAR,
    get_catalog_path,
    get_record_path,
    get_settings_path,
)


class SettingsError(Exception):
    """Raised when the settings file cannot be read, parsed or written."""


class Settings(BaseModel):
    """Runtime settings for profilectl.

    Attributes:
        catalog_path: Catalog TOML file. None uses the bundled catalog.
        record_path: Declared record JSON file. None uses the state directory.
        probe_timeout_seconds: Upper bound for a single live probe.
        snapshot_max_age_seconds: Age after which a held snapshot is stale.
        memory_high_water_gb: Overrides the catalog's memory warning threshold.
    """

    model_config = ConfigDict(extra="forbid")

    catalog_path: Annotated[Path | None, Field(description="Catalog file")] = None
    record_path: Annotated[Path | None, Field(description="Declared record file")] = None
    probe_timeout_seconds: Annotated[
        float,
        Field(ge=1, le=60, description="Live probe timeout in seconds (1-60)"),
    ] = 5
    snapshot_max_age_seconds: Annotated[
        float,
        Field(gt=0, description="Maximum reconciliation snapshot age"),
    ] = 30
    memory_high_water_gb: Annotated[
        float | None,
        Field(gt=0, description="Memory warning threshold in GB"),
    ] = None

    @property
    def effective_catalog_path(self) -> Path:
        """Catalog path, with the environment override taking precedence."""
        if os.environ.get(CATALOG_ENV_VAR) or self.catalog_path is None:
            return get_catalog_path()
        return self.catalog_path.expanduser()

    @property
    def effective_record_path(self) -> Path:
        """Declared record path."""
        if self.record_path is None:
            return get_record_path()
        return self.record_path.expanduser()


def load_settings(path: Path | None = None) -> Settings:
    """Load settings from a TOML file.

    Args:
        path: Path to the settings file. If None, uses the default path.

    Returns:
        Validated Settings; defaults if the file does not exist.

    Raises:
        SettingsError: If the file is unreadable or invalid.
    """
    settings_path = path or get_settings_path()

    if not settings_path.exists():
        return Settings()

    try:
        with open(settings_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise SettingsError(f"Invalid TOML syntax in {settings_path}: {e}") from e
    except OSError as e:
        raise SettingsError(f"Failed to read settings: {e}") from e

    try:
        return Settings.model_validate(data)
    except ValidationError as e:
        raise SettingsError(f"Invalid settings content: {e}") from e


def save_settings(settings: Settings, path: Path | None = None) -> Path:
    """Save settings to a TOML file atomically.

    Only fields that differ from their defaults are written.

    Args:
        settings: Settings to save.
        path: Path to save to. If None, uses the default path.

    Returns:
        Path where the settings were saved.

    Raises:
        SettingsError: If the file cannot be written.
    """
    settings_path = path or get_settings_path()
    settings_path.parent.mkdir(parents=True, exist_ok=True)

    data = settings.model_dump(mode="json", exclude_defaults=True, exclude_none=True)

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="wb",
            dir=settings_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(settings_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise SettingsError(f"Failed to write settings: {e}") from e

    return settings_path
