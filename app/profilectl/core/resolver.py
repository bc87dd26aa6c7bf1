"""Dependency graph resolution over the profile catalog.

This module provides the GraphResolver class which expands selections
into their dependency closure and detects cycles, conflicts, port
collisions and aggregated resource requirements. All methods are pure
reads of the immutable catalog and are safe to call concurrently.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from typing import TYPE_CHECKING

from profilectl.models.report import (
    ConflictEntry,
    PortCollision,
    ResolvedSelection,
    ResourceRequirements,
    SharedService,
    StartupEntry,
)

if TYPE_CHECKING:
    from profilectl.core.catalog import Catalog


class GraphResolver:
    """Resolver for profile dependency graphs.

    Only ``dependencies`` are expansion edges. Conflicts and
    prerequisites are constraints checked against a closure, never
    followed. Unknown ids are skipped silently; existence is checked
    by the validation layer.

    Example:
        >>> resolver = GraphResolver(catalog)
        >>> resolver.resolve_closure(["kaspa-explorer-bundle"])
        ('kaspa-node', 'kaspa-explorer-bundle')
    """

    def __init__(self, catalog: Catalog) -> None:
        """Initialize the resolver.

        Args:
            catalog: Catalog to resolve against.
        """
        self.catalog = catalog

    def _dependencies(self, profile_id: str) -> tuple[str, ...]:
        profile = self.catalog.get(profile_id)
        return profile.dependencies if profile else ()

    def resolve_closure(self, selection: Iterable[str]) -> tuple[str, ...]:
        """Compute the transitive dependency closure of a selection.

        Breadth-first expansion over ``dependencies`` edges. Requested
        ids are always kept, even unknown ones, so the closure is a
        superset of its input; unknown ids are simply not expanded.

        Args:
            selection: Requested profile ids.

        Returns:
            Known closure members in catalog order, followed by unknown
            requested ids in request order.
        """
        visited: dict[str, None] = {}
        queue: deque[str] = deque()
        for profile_id in selection:
            if profile_id not in visited:
                visited[profile_id] = None
                queue.append(profile_id)

        while queue:
            current = queue.popleft()
            for dependency in self._dependencies(current):
                if dependency not in visited:
                    visited[dependency] = None
                    queue.append(dependency)

        unknown = tuple(pid for pid in visited if pid not in self.catalog)
        return self.catalog.ordered(visited) + unknown

    def detect_cycles(self, selection: Iterable[str]) -> list[tuple[str, ...]]:
        """Find every dependency cycle reachable from the selection.

        Depth-first traversal with a recursion stack. When a node already
        on the stack is reached again, the stack slice from that node is
        reported as a cycle, closed with the repeated id
        (e.g., ``('a', 'b', 'a')``). Each elementary cycle is reported
        once regardless of the node it was entered from.

        Args:
            selection: Root profile ids.

        Returns:
            List of cycles in discovery order.
        """
        cycles: list[tuple[str, ...]] = []
        seen: set[tuple[str, ...]] = set()
        # Nodes whose whole reachable subgraph has been explored without
        # reaching the current stack again cannot contribute new cycles
        exhausted: set[str] = set()
        stack: list[str] = []
        on_stack: set[str] = set()

        def canonical(cycle: list[str]) -> tuple[str, ...]:
            pivot = cycle.index(min(cycle))
            return tuple(cycle[pivot:] + cycle[:pivot])

        def visit(node: str) -> bool:
            """Explore from node; return True if any cycle passes below it."""
            stack.append(node)
            on_stack.add(node)
            found = False
            for dependency in self._dependencies(node):
                if dependency in on_stack:
                    start = stack.index(dependency)
                    members = stack[start:]
                    key = canonical(members)
                    if key not in seen:
                        seen.add(key)
                        cycles.append((*members, dependency))
                    found = True
                elif dependency not in exhausted and visit(dependency):
                    found = True
            stack.pop()
            on_stack.discard(node)
            if not found:
                exhausted.add(node)
            return found

        for root in dict.fromkeys(selection):
            if root in self.catalog and root not in exhausted:
                visit(root)

        return cycles

    def detect_conflicts(self, resolved: Iterable[str]) -> list[ConflictEntry]:
        """Find mutually exclusive profile pairs within a closure.

        Each unordered pair is reported once, whichever side (or both)
        declares the conflict.

        Args:
            resolved: Closure to check.

        Returns:
            List of conflicts in catalog order.
        """
        members = self.catalog.ordered(resolved)
        present = set(members)
        reported: set[frozenset[str]] = set()
        conflicts: list[ConflictEntry] = []

        for profile_id in members:
            profile = self.catalog[profile_id]
            for other in profile.conflicts:
                pair = frozenset((profile_id, other))
                if other not in present or pair in reported:
                    continue
                reported.add(pair)
                other_name = self.catalog[other].name
                conflicts.append(
                    ConflictEntry(
                        profile_a=profile_id,
                        profile_b=other,
                        reason=f"{profile.name} conflicts with {other_name}",
                    )
                )

        return conflicts

    def detect_port_collisions(self, resolved: Iterable[str]) -> list[PortCollision]:
        """Find ports claimed by more than one profile.

        Profiles are walked in catalog order; the first claimant of a
        port wins and every later claimant produces a collision entry.

        Args:
            resolved: Closure to check.

        Returns:
            List of collisions in discovery order.
        """
        claimants: dict[int, str] = {}
        collisions: list[PortCollision] = []

        for profile_id in self.catalog.ordered(resolved):
            profile = self.catalog[profile_id]
            for port in dict.fromkeys(profile.ports):
                owner = claimants.get(port)
                if owner is None:
                    claimants[port] = profile_id
                else:
                    collisions.append(PortCollision(port=port, profiles=(owner, profile_id)))

        return collisions

    def aggregate_resources(self, resolved: Iterable[str]) -> ResourceRequirements:
        """Aggregate resource requirements across a closure.

        Memory and disk are summed, CPU is the maximum. Services shared
        by several profiles are listed once for display; they do not
        reduce the totals.

        Args:
            resolved: Closure to aggregate.

        Returns:
            ResourceRequirements for the closure.
        """
        totals = dict.fromkeys(
            (
                "min_memory",
                "min_cpu",
                "min_disk",
                "recommended_memory",
                "recommended_cpu",
                "recommended_disk",
            ),
            0.0,
        )
        owners: dict[str, list[str]] = {}

        for profile_id in self.catalog.ordered(resolved):
            profile = self.catalog[profile_id]
            res = profile.resources
            totals["min_memory"] += res.min_memory
            totals["min_disk"] += res.min_disk
            totals["recommended_memory"] += res.recommended_memory
            totals["recommended_disk"] += res.recommended_disk
            totals["min_cpu"] = max(totals["min_cpu"], res.min_cpu)
            totals["recommended_cpu"] = max(totals["recommended_cpu"], res.recommended_cpu)
            for service_name in profile.service_names:
                owners.setdefault(service_name, []).append(profile_id)

        shared = tuple(
            SharedService(name=name, profiles=tuple(ids))
            for name, ids in owners.items()
            if len(ids) > 1
        )
        return ResourceRequirements(**totals, shared_services=shared)

    def resolve(self, selection: Iterable[str]) -> ResolvedSelection:
        """Resolve a selection into closure, requirements and ports.

        Args:
            selection: Requested profile ids.

        Returns:
            ResolvedSelection over the known members of the closure.
        """
        closure = self.catalog.ordered(self.resolve_closure(selection))
        ports: set[int] = set()
        for profile_id in closure:
            ports.update(self.catalog[profile_id].ports)
        return ResolvedSelection(
            profiles=closure,
            requirements=self.aggregate_resources(closure),
            ports=tuple(sorted(ports)),
        )

    def startup_order(self, selection: Iterable[str]) -> list[StartupEntry]:
        """Services of the closure in the order they should be started.

        Sorted by startup tier, then service name. A service shared by
        several profiles appears once, attributed to its first owner.

        Args:
            selection: Requested profile ids.

        Returns:
            List of StartupEntry.
        """
        entries: dict[str, StartupEntry] = {}
        for profile_id in self.catalog.ordered(self.resolve_closure(selection)):
            profile = self.catalog[profile_id]
            for service in profile.services:
                entries.setdefault(
                    service.name,
                    StartupEntry(
                        service=service.name,
                        profile=profile_id,
                        startup_order=service.startup_order,
                    ),
                )
        return sorted(entries.values(), key=lambda e: (e.startup_order, e.service))

    def dependents(self, profile_id: str, selection: Iterable[str]) -> tuple[str, ...]:
        """Members of a selection that depend on a profile, directly or not.

        Args:
            profile_id: Profile that might be depended upon.
            selection: Profiles to inspect.

        Returns:
            Dependent profile ids in catalog order.
        """
        return tuple(
            member
            for member in self.catalog.ordered(selection)
            if member != profile_id and profile_id in self.resolve_closure([member])
        )
