"""Unit tests for XDG path management.

Tests for the paths module that provides XDG-compliant directory paths.
"""

import os
from pathlib import Path
from unittest.mock import patch

from profilectl.core.paths import (
    APP_NAME,
    CATALOG_ENV_VAR,
    get_bundled_catalog_path,
    get_catalog_path,
    get_config_dir,
    get_record_path,
    get_settings_path,
    get_state_dir,
)


class TestGetConfigDir:
    """Tests for get_config_dir function."""

    def test_default_config_dir(self) -> None:
        """get_config_dir returns default path when XDG_CONFIG_HOME not set."""
        with patch.dict(os.environ, {}, clear=True):
            os.environ.pop("XDG_CONFIG_HOME", None)

            result = get_config_dir()

        assert result == Path.home() / ".config" / APP_NAME

    def test_respects_xdg_config_home(self, tmp_path: Path) -> None:
        """get_config_dir respects XDG_CONFIG_HOME environment variable."""
        with patch.dict(os.environ, {"XDG_CONFIG_HOME": str(tmp_path)}):
            result = get_config_dir()

        assert result == tmp_path / APP_NAME


class TestGetStateDir:
    """Tests for get_state_dir function."""

    def test_default_state_dir(self) -> None:
        """get_state_dir returns default path when XDG_STATE_HOME not set."""
        with patch.dict(os.environ, {}, clear=True):
            os.environ.pop("XDG_STATE_HOME", None)

            result = get_state_dir()

        assert result == Path.home() / ".local" / "state" / APP_NAME

    def test_respects_xdg_state_home(self, tmp_path: Path) -> None:
        """get_state_dir respects XDG_STATE_HOME environment variable."""
        with patch.dict(os.environ, {"XDG_STATE_HOME": str(tmp_path)}):
            result = get_state_dir()

        assert result == tmp_path / APP_NAME


class TestFilePaths:
    """Tests for settings and record file paths."""

    def test_settings_path(self, tmp_path: Path) -> None:
        """Settings live in the config directory."""
        with patch.dict(os.environ, {"XDG_CONFIG_HOME": str(tmp_path)}):
            assert get_settings_path() == tmp_path / APP_NAME / "settings.toml"

    def test_record_path(self, tmp_path: Path) -> None:
        """The declared record lives in the state directory."""
        with patch.dict(os.environ, {"XDG_STATE_HOME": str(tmp_path)}):
            assert get_record_path() == tmp_path / APP_NAME / "installation-state.json"


class TestGetCatalogPath:
    """Tests for get_catalog_path function."""

    def test_bundled_by_default(self) -> None:
        """Without override, the bundled catalog is used."""
        with patch.dict(os.environ, {}, clear=True):
            result = get_catalog_path()

        assert result == get_bundled_catalog_path()
        assert Path(result).name == "catalog.toml"

    def test_env_override(self, tmp_path: Path) -> None:
        """The environment variable selects another catalog."""
        with patch.dict(os.environ, {CATALOG_ENV_VAR: str(tmp_path / "c.toml")}):
            assert get_catalog_path() == tmp_path / "c.toml"
