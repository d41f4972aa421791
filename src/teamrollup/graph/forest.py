"""Forest - Container for a built team hierarchy.

A Forest is immutable once published: TreeBuilder creates it, the rollup
calculator and the mutation functions return new forests that share every
node they did not have to change. Consumers may hold on to any forest
(for example, the one a screen is currently rendering) while a new one is
computed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterator

from teamrollup.graph.records import FlatRecord
from teamrollup.graph.store import NodeStore
from teamrollup.graph.TreeNode import NodeKind, TreeNode

if TYPE_CHECKING:
    from teamrollup.graph.metrics import MetricSpec, RolledMetrics
    from teamrollup.graph.mutations import BrokenCycle, DanglingReference


@dataclass
class Forest:
    """Ordered roots plus an id index over every node.

    Uses an iterator-first API for traversal. Rollup results live on the
    forest (keyed by node id), not on the nodes, so rolling up never has
    to copy the structure.
    """

    # Internal storage (prefixed) - populated by TreeBuilder and mutations
    _roots: list[TreeNode] = field(default_factory=list)
    _store: NodeStore[TreeNode] = field(default_factory=NodeStore, repr=False)

    # Detection: repairs applied at build time
    _dangling: list[DanglingReference] = field(default_factory=list)
    _broken_cycles: list[BrokenCycle] = field(default_factory=list)

    # Rollup annotations
    _metric_spec: MetricSpec | None = None
    _rollups: dict[str, RolledMetrics] = field(default_factory=dict, repr=False)

    # ─────────────────────────────────────────────────────────────────────────
    # Structure
    # ─────────────────────────────────────────────────────────────────────────

    def iter_roots(self) -> Iterator[TreeNode]:
        """Iterate root nodes in order."""
        yield from self._roots

    def root_count(self) -> int:
        """Return number of root nodes."""
        return len(self._roots)

    def root_ids(self) -> list[str]:
        return [root.id for root in self._roots]

    def has_root(self, node_id: str) -> bool:
        """Check if a node ID is a root."""
        return any(r.id == node_id for r in self._roots)

    def find_by_id(self, node_id: str | None) -> TreeNode | None:
        """Find node by ID.

        Args:
            node_id: The node ID to find.

        Returns:
            The matching TreeNode, or None if not found.
        """
        return self._store.get(node_id)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._store

    def all_nodes(self) -> Iterator[TreeNode]:
        """Iterate all nodes in input order."""
        yield from self._store

    def nodes_by_kind(self, kind: NodeKind) -> Iterator[TreeNode]:
        """Iterate nodes of a specific kind."""
        for node in self._store:
            if node.kind == kind:
                yield node

    def node_count(self) -> int:
        """Return total number of nodes in the forest."""
        return len(self._store)

    def walk(self, order: str = "pre") -> Iterator[TreeNode]:
        """Iterate every node reachable from the roots.

        Args:
            order: Traversal order ("pre", "post", "level").
        """
        if order == "level":
            # Breadth-first across the whole forest, not root by root
            level = list(self._roots)
            while level:
                yield from level
                level = [child for node in level for child in node.iter_children()]
            return
        for root in self._roots:
            yield from root.walk(order)

    def parent_of(self, node_id: str) -> TreeNode | None:
        """Return the parent node, or None for roots and unknown ids."""
        node = self._store.get(node_id)
        if node is None:
            return None
        return self._store.get(node.parent_id)

    def ancestors(self, node_id: str) -> Iterator[TreeNode]:
        """Iterate ancestors, nearest first.

        The walk stops after node_count() steps, which bounds it even if a
        cycle ever slipped into the parent links.
        """
        node = self._store.get(node_id)
        steps = 0
        limit = len(self._store)
        while node is not None and node.parent_id is not None and steps < limit:
            node = self._store.get(node.parent_id)
            if node is None:
                return
            yield node
            steps += 1

    def ancestry(self, node_id: str) -> list[str]:
        """Return ids from the root down to (and including) node_id.

        Raises:
            KeyError: If node_id is not found.
        """
        node = self._store[node_id]
        chain = [a.id for a in self.ancestors(node.id)]
        chain.reverse()
        chain.append(node.id)
        return chain

    def descendant_ids(self, node_id: str) -> set[str]:
        """Return ids of every node below node_id (excluding itself).

        Raises:
            KeyError: If node_id is not found.
        """
        node = self._store[node_id]
        return {n.id for n in node.walk("pre")} - {node.id}

    def is_descendant(self, candidate_id: str, ancestor_id: str) -> bool:
        """True if candidate_id sits somewhere below ancestor_id."""
        return any(a.id == ancestor_id for a in self.ancestors(candidate_id))

    # ─────────────────────────────────────────────────────────────────────────
    # Detection API: repairs applied while building
    # ─────────────────────────────────────────────────────────────────────────

    def dangling_references(self) -> list[DanglingReference]:
        """Parent references that could not be honoured at build time."""
        return list(self._dangling)

    def has_dangling_references(self) -> bool:
        return bool(self._dangling)

    def broken_cycles(self) -> list[BrokenCycle]:
        """Parent-reference cycles the builder broke by promoting a root."""
        return list(self._broken_cycles)

    # ─────────────────────────────────────────────────────────────────────────
    # Rollups
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def metric_spec(self) -> MetricSpec | None:
        """The MetricSpec the current rollups were computed with."""
        return self._metric_spec

    @property
    def is_rolled(self) -> bool:
        """True if every node carries rollups."""
        return self._metric_spec is not None and len(self._rollups) == len(self._store)

    def rolled(self, node_id: str) -> RolledMetrics | None:
        """Rolled metrics for a node, or None if not computed."""
        return self._rollups.get(node_id)

    def with_rollups(
        self, metric_spec: MetricSpec | None, rollups: dict[str, RolledMetrics]
    ) -> Forest:
        """Return a forest sharing this structure with different rollups."""
        return Forest(
            _roots=list(self._roots),
            _store=self._store,
            _dangling=list(self._dangling),
            _broken_cycles=list(self._broken_cycles),
            _metric_spec=metric_spec,
            _rollups=dict(rollups),
        )

    # ─────────────────────────────────────────────────────────────────────────
    # Export
    # ─────────────────────────────────────────────────────────────────────────

    def to_records(self) -> list[FlatRecord]:
        """Flat snapshot of the current structure in pre-order.

        Parent ids reflect the forest as built (repaired references become
        roots), so building the result again yields the same structure.
        """
        return [
            FlatRecord(
                id=node.id,
                kind=node.kind,
                parent_id=node.parent_id,
                name=node.name,
                own_metrics=dict(node.own_metrics),
            )
            for node in self.walk("pre")
        ]


__all__ = ["Forest"]
