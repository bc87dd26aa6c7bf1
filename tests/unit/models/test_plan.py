"""Unit tests for reconfiguration planning models.

Tests for RestartType, ConfigDiff and ReconfigurationImpact.
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


class TestRestartType:
    """Tests for RestartType enum."""

    def test_rank_follows_escalation(self) -> None:
        """service < container < full."""
        assert RestartType.SERVICE.rank < RestartType.CONTAINER.rank < RestartType.FULL.rank

    def test_values(self) -> None:
        """Restart types have lowercase values."""
        assert [r.value for r in RestartType] == ["service", "container", "full"]


class TestConfigDiff:
    """Tests for ConfigDiff dataclass."""

    def test_empty_diff(self) -> None:
        """An empty diff has no changes."""
        diff = ConfigDiff()
        assert diff.has_changes is False
        assert diff.keys == ()

    def test_to_dict(self) -> None:
        """to_dict lists each change."""
        diff = ConfigDiff(
            changes=(
                ConfigChange(
                    key="NETWORK",
                    change_type=ChangeType.MODIFIED,
                    old_value="mainnet",
                    new_value="testnet",
                    impact=ChangeImpact.HIGH,
                ),
            )
        )
        assert diff.keys == ("NETWORK",)
        assert diff.to_dict() == {
            "has_changes": True,
            "change_count": 1,
            "changes": [
                {
                    "key": "NETWORK",
                    "type": "modified",
                    "old_value": "mainnet",
                    "new_value": "testnet",
                    "impact": "high",
                }
            ],
        }


class TestReconfigurationImpact:
    """Tests for ReconfigurationImpact dataclass."""

    def test_to_dict(self) -> None:
        """to_dict serializes enums and nested diff."""
        impact = ReconfigurationImpact(
            action=ActionType.CONFIGURE,
            targets=("node",),
            affected_services=("kaspa-node",),
            restart_type=RestartType.FULL,
            estimated_downtime_seconds=300,
            requires_restart=True,
        )
        data = impact.to_dict()
        assert data["action"] == "configure"
        assert data["targets"] == ["node"]
        assert data["affected_services"] == ["kaspa-node"]
        assert data["restart_type"] == "full"
        assert data["estimated_downtime_seconds"] == 300
        assert data["requires_restart"] is True
        assert data["diff"]["has_changes"] is False
        assert data["warnings"] == []
