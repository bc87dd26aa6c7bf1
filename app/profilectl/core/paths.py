"""XDG-compliant path management for profilectl.

This module provides standardized paths following the XDG Base Directory
Specification for configuration and state storage.

XDG defaults:
- Config: ~/.config/profilectl/
- State: ~/.local/state/profilectl/
"""

import os
from importlib import resources
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "profilectl"

# Environment variable overriding the catalog location
CATALOG_ENV_VAR = "PROFILECTL_CATALOG"


def _get_xdg_dir(env_var: str, default_subdir: str) -> Path:
    """Get XDG directory respecting environment variable override.

    Args:
        env_var: XDG environment variable name (e.g., "XDG_CONFIG_HOME").
        default_subdir: Default subdirectory under home (e.g., ".config").

    Returns:
        Path to the application-specific directory.
    """
    base = os.environ.get(env_var)
    if base:
        return Path(base) / APP_NAME
    return Path.home() / default_subdir / APP_NAME


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Returns:
        Path to ~/.config/profilectl/ (or XDG_CONFIG_HOME/profilectl/).
    """
    return _get_xdg_dir("XDG_CONFIG_HOME", ".config")


def get_state_dir() -> Path:
    """Get the state directory path.

    State data includes the declared selection record, which persists
    between runs but is not configuration.

    Returns:
        Path to ~/.local/state/profilectl/ (or XDG_STATE_HOME/profilectl/).
    """
    return _get_xdg_dir("XDG_STATE_HOME", ".local/state")


def get_settings_path() -> Path:
    """Get the settings file path.

    Returns:
        Path to ~/.config/profilectl/settings.toml.
    """
    return get_config_dir() / "settings.toml"


def get_record_path() -> Path:
    """Get the declared selection record path.

    Returns:
        Path to ~/.local/state/profilectl/installation-state.json.
    """
    return get_state_dir() / "installation-state.json"


def get_bundled_catalog_path() -> Path:
    """Get the bundled default catalog path.

    Returns:
        Path to the bundled data/catalog.toml.
    """
    return resources.files("profilectl.data").joinpath("catalog.toml")  # type: ignore[return-value]


def get_catalog_path() -> Path:
    """Get the catalog path, honouring the environment override.

    Returns:
        Path from PROFILECTL_CATALOG if set, otherwise the bundled catalog.
    """
    override = os.environ.get(CATALOG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return get_bundled_catalog_path()

