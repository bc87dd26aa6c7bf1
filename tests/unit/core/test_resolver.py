"""Unit tests for GraphResolver.

Tests for closure expansion, cycle, conflict and port collision
detection, and resource aggregation.
"""

from collections.abc import Callable
from typing import Any

import pytest
from profilectl.core.catalog import Catalog
from profilectl.core.resolver import GraphResolver
from profilectl.models.report import PortCollision


@pytest.fixture
def resolver(catalog: Catalog) -> GraphResolver:
    """Resolver over the shared test catalog."""
    return GraphResolver(catalog)


@pytest.fixture
def cyclic_resolver(
    catalog_data: dict[str, Any],
    make_catalog: Callable[[dict[str, Any]], Catalog],
) -> GraphResolver:
    """Resolver over a catalog where node and indexer depend on each other."""
    catalog_data["profiles"][0]["dependencies"] = ["indexer"]
    return GraphResolver(make_catalog(catalog_data))


class TestResolveClosure:
    """Tests for resolve_closure method."""

    def test_adds_dependencies(self, resolver: GraphResolver) -> None:
        """Dependencies are pulled into the closure."""
        assert resolver.resolve_closure(["explorer"]) == ("node", "explorer")

    def test_catalog_order(self, resolver: GraphResolver) -> None:
        """The closure is returned in catalog order, not request order."""
        assert resolver.resolve_closure(["indexer", "explorer"]) == (
            "node",
            "explorer",
            "indexer",
        )

    def test_prerequisites_are_not_expanded(self, resolver: GraphResolver) -> None:
        """Prerequisites are constraints, not expansion edges."""
        assert resolver.resolve_closure(["mining"]) == ("mining",)

    def test_conflicts_are_not_expanded(self, resolver: GraphResolver) -> None:
        """Conflicts never add profiles."""
        assert resolver.resolve_closure(["node"]) == ("node",)

    def test_unknown_ids_kept_at_end(self, resolver: GraphResolver) -> None:
        """Unknown requested ids stay in the closure, after known ones."""
        assert resolver.resolve_closure(["ghost", "explorer"]) == ("node", "explorer", "ghost")

    def test_empty_selection(self, resolver: GraphResolver) -> None:
        """An empty selection has an empty closure."""
        assert resolver.resolve_closure([]) == ()

    def test_terminates_on_cycle(self, cyclic_resolver: GraphResolver) -> None:
        """Cyclic dependencies do not loop forever."""
        assert cyclic_resolver.resolve_closure(["explorer"]) == ("node", "explorer", "indexer")


SELECTIONS = [
    [],
    ["node"],
    ["explorer"],
    ["mining"],
    ["indexer", "explorer"],
    ["node", "archive"],
    ["ghost"],
    ["ghost", "explorer", "ghost"],
    ["core"],
    ["apps", "mining"],
]


class TestClosureProperties:
    """Properties that hold for every selection."""

    @pytest.mark.parametrize("resolver_fixture", ["resolver", "cyclic_resolver"])
    @pytest.mark.parametrize("selection", SELECTIONS)
    def test_closure_contains_selection(
        self,
        request: pytest.FixtureRequest,
        resolver_fixture: str,
        selection: list[str],
    ) -> None:
        """Every requested id is kept, including unknown and legacy ids."""
        resolver: GraphResolver = request.getfixturevalue(resolver_fixture)
        assert set(selection) <= set(resolver.resolve_closure(selection))

    @pytest.mark.parametrize("resolver_fixture", ["resolver", "cyclic_resolver"])
    @pytest.mark.parametrize("selection", SELECTIONS)
    def test_closure_contains_migrated_selection(
        self,
        request: pytest.FixtureRequest,
        resolver_fixture: str,
        selection: list[str],
    ) -> None:
        """Legacy ids migrated first are kept as their current ids."""
        resolver: GraphResolver = request.getfixturevalue(resolver_fixture)
        migrated = resolver.catalog.migrate(selection)
        assert set(migrated) <= set(resolver.resolve_closure(migrated))

    @pytest.mark.parametrize("resolver_fixture", ["resolver", "cyclic_resolver"])
    @pytest.mark.parametrize("selection", SELECTIONS)
    def test_closure_is_idempotent(
        self,
        request: pytest.FixtureRequest,
        resolver_fixture: str,
        selection: list[str],
    ) -> None:
        """Resolving a closure again returns it unchanged."""
        resolver: GraphResolver = request.getfixturevalue(resolver_fixture)
        closure = resolver.resolve_closure(selection)
        assert resolver.resolve_closure(closure) == closure


class TestDetectCycles:
    """Tests for detect_cycles method."""

    def test_no_cycles(self, resolver: GraphResolver) -> None:
        """An acyclic catalog reports nothing."""
        assert resolver.detect_cycles(["explorer", "indexer"]) == []

    def test_reports_closed_path(self, cyclic_resolver: GraphResolver) -> None:
        """A cycle is reported as a path closed with its first id."""
        assert cyclic_resolver.detect_cycles(["explorer"]) == [("node", "indexer", "node")]

    def test_each_cycle_reported_once(self, cyclic_resolver: GraphResolver) -> None:
        """Entering a cycle from several ids reports it once."""
        assert cyclic_resolver.detect_cycles(["indexer", "node"]) == [
            ("indexer", "node", "indexer")
        ]

    def test_unreachable_cycle_ignored(self, cyclic_resolver: GraphResolver) -> None:
        """Cycles not reachable from the selection are not reported."""
        assert cyclic_resolver.detect_cycles(["archive"]) == []


class TestDetectConflicts:
    """Tests for detect_conflicts method."""

    def test_mutual_conflict_reported_once(self, resolver: GraphResolver) -> None:
        """A conflict declared on both sides is one entry."""
        conflicts = resolver.detect_conflicts(["archive", "node"])
        assert len(conflicts) == 1
        assert (conflicts[0].profile_a, conflicts[0].profile_b) == ("node", "archive")
        assert conflicts[0].reason == "Node conflicts with Archive"

    def test_no_conflict_without_both(self, resolver: GraphResolver) -> None:
        """A conflict needs both profiles in the closure."""
        assert resolver.detect_conflicts(["node", "explorer"]) == []


class TestDetectPortCollisions:
    """Tests for detect_port_collisions method."""

    def test_first_claimant_wins(self, resolver: GraphResolver) -> None:
        """The later profile in catalog order collides with the earlier one."""
        assert resolver.detect_port_collisions(["archive", "node"]) == [
            PortCollision(port=16111, profiles=("node", "archive"))
        ]

    def test_distinct_ports(self, resolver: GraphResolver) -> None:
        """Distinct ports never collide."""
        assert resolver.detect_port_collisions(["node", "explorer", "indexer"]) == []


class TestAggregateResources:
    """Tests for aggregate_resources method."""

    def test_sums_memory_and_disk_max_cpu(self, resolver: GraphResolver) -> None:
        """Memory and disk are summed, CPU is the maximum."""
        requirements = resolver.aggregate_resources(["node", "explorer", "indexer"])
        assert requirements.min_memory == 8
        assert requirements.min_disk == 250
        assert requirements.min_cpu == 4

    def test_shared_services_listed(self, resolver: GraphResolver) -> None:
        """Services used by several profiles are listed once."""
        requirements = resolver.aggregate_resources(["explorer", "indexer"])
        assert len(requirements.shared_services) == 1
        shared = requirements.shared_services[0]
        assert shared.name == "postgres"
        assert shared.profiles == ("explorer", "indexer")

    def test_empty(self, resolver: GraphResolver) -> None:
        """Nothing selected needs nothing."""
        requirements = resolver.aggregate_resources([])
        assert requirements.min_memory == 0
        assert requirements.shared_services == ()


class TestResolve:
    """Tests for resolve method."""

    def test_resolve(self, resolver: GraphResolver) -> None:
        """resolve() combines closure, ports and requirements."""
        resolved = resolver.resolve(["indexer", "explorer"])
        assert resolved.profiles == ("node", "explorer", "indexer")
        assert resolved.ports == (3002, 3008, 16111)
        assert resolved.requirements.min_memory == 8
        assert [s.name for s in resolved.shared_services] == ["postgres"]

    def test_resolve_drops_unknown(self, resolver: GraphResolver) -> None:
        """Unknown ids are not part of a resolved selection."""
        assert resolver.resolve(["ghost", "node"]).profiles == ("node",)


class TestStartupOrder:
    """Tests for startup_order method."""

    def test_sorted_by_tier_then_name(self, resolver: GraphResolver) -> None:
        """Services start by tier, ties broken by name, shared ones once."""
        entries = resolver.startup_order(["explorer", "indexer"])
        assert [(e.startup_order, e.service, e.profile) for e in entries] == [
            (1, "kaspa-node", "node"),
            (1, "postgres", "explorer"),
            (2, "explorer", "explorer"),
            (2, "indexer", "indexer"),
        ]


class TestDependents:
    """Tests for dependents method."""

    def test_direct_dependents(self, resolver: GraphResolver) -> None:
        """Profiles depending on the target are returned."""
        assert resolver.dependents("node", ["node", "explorer", "indexer"]) == (
            "explorer",
            "indexer",
        )

    def test_prerequisite_is_not_dependency(self, resolver: GraphResolver) -> None:
        """Profiles with only a prerequisite on the target are not dependents."""
        assert resolver.dependents("node", ["node", "mining"]) == ()
