"""Unit tests for resolve command."""

import json

from profilectl.cli.main import app
from typer.testing import CliRunner

runner = CliRunner()


class TestResolveCommand:
    """Tests for the resolve command."""

    def test_resolve(self, global_args: list[str]) -> None:
        """Resolve prints the closure and ports."""
        result = runner.invoke(app, [*global_args, "resolve", "explorer"])

        assert result.exit_code == 0
        assert "Profiles: node, explorer" in result.stdout
        assert "Ports: 3008, 16111" in result.stdout
        assert "Startup Order" in result.stdout

    def test_shared_services_listed(self, global_args: list[str]) -> None:
        """Services shared between profiles are mentioned."""
        result = runner.invoke(app, [*global_args, "resolve", "explorer", "indexer"])

        assert result.exit_code == 0
        assert "Shared service postgres: explorer, indexer" in result.stdout

    def test_json_output(self, global_args: list[str]) -> None:
        """--json outputs closure, ports, requirements and startup order."""
        result = runner.invoke(app, [*global_args, "resolve", "explorer", "indexer", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["profiles"] == ["node", "explorer", "indexer"]
        assert data["ports"] == [3002, 3008, 16111]
        assert data["requirements"]["min_memory"] == 8
        assert [e["service"] for e in data["startup_order"]] == [
            "kaspa-node",
            "postgres",
            "explorer",
            "indexer",
        ]

    def test_legacy_id(self, global_args: list[str]) -> None:
        """Legacy ids resolve to their current profiles."""
        result = runner.invoke(app, [*global_args, "resolve", "apps", "--json"])

        assert result.exit_code == 0
        assert json.loads(result.stdout)["profiles"] == ["node", "explorer", "indexer"]

    def test_unknown_profile(self, global_args: list[str]) -> None:
        """Unknown ids exit 1."""
        result = runner.invoke(app, [*global_args, "resolve", "ghost", "node"])

        assert result.exit_code == 1
        assert "Unknown profiles: ghost" in result.stderr
