"""Tree Builder - Constructs a Forest from flat parent-linked records.

This module provides the builder pattern for turning the flat snapshot a
caller fetched into a rooted forest. Building never fails on bad links:
upstream hierarchy exports can be partial or can race with onboarding of
new teams, so every record that cannot be placed under its declared parent
becomes a root, and the repair is recorded on the forest.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Any, Callable, Iterable

from teamrollup.graph.forest import Forest
from teamrollup.graph.mutations import BrokenCycle, DanglingReference
from teamrollup.graph.records import FlatRecord
from teamrollup.graph.store import NodeStore
from teamrollup.graph.TreeNode import NodeKind, TreeNode

logger = logging.getLogger(__name__)

SortKey = Callable[[TreeNode], Any]


def by_name(node: TreeNode) -> tuple[str, str]:
    """Order siblings alphabetically by label."""
    return (node.label.casefold(), node.id)


def super_teams_first(node: TreeNode) -> tuple[int, str, str]:
    """Order super teams ahead of their siblings, then by label."""
    return (0 if node.kind == NodeKind.SUPER_TEAM else 1, node.label.casefold(), node.id)


SORT_KEYS: dict[str, SortKey | None] = {
    "insertion": None,
    "name": by_name,
    "super-first": super_teams_first,
}


def resolve_sort_key(name: str) -> SortKey | None:
    """Look up a named sibling ordering.

    Raises:
        ValueError: If the name is unknown.
    """
    try:
        return SORT_KEYS[name]
    except KeyError:
        known = ", ".join(sorted(SORT_KEYS))
        raise ValueError(f"Unknown sort order '{name}' (expected one of: {known})") from None


class TreeBuilder:
    """Builder for constructing a Forest from flat records.

    Usage:
        builder = TreeBuilder(sort_key=by_name)
        builder.add_records(records)
        forest = builder.build()

    Note on Privileged Access:
        TreeBuilder writes TreeNode._children and the Forest's internal
        fields directly. Nodes are only edited here, before the forest is
        published; afterwards they are treated as immutable.
    """

    def __init__(self, sort_key: SortKey | None = None) -> None:
        """Initialize the builder.

        Args:
            sort_key: Key used to order siblings (and roots). None keeps
                stable input order.
        """
        self.sort_key = sort_key
        self._records: list[FlatRecord] = []

    def add_record(self, record: FlatRecord) -> TreeBuilder:
        """Add one record. Returns self for method chaining."""
        self._records.append(record)
        return self

    def add_records(self, records: Iterable[FlatRecord]) -> TreeBuilder:
        """Add records in order. Returns self for method chaining."""
        self._records.extend(records)
        return self

    def build(self) -> Forest:
        """Build the final Forest.

        Pass 1 indexes every record into an empty node shell. Pass 2
        attaches each node to its declared parent when that parent exists
        (and is not a member); everything else becomes a root. Cycles in
        the parent links are then broken. Pass 3 assigns depth from the
        roots down, since depth is only known once linkage is resolved.

        Returns:
            Complete Forest with repair records populated.
        """
        store: NodeStore[TreeNode] = NodeStore(
            TreeNode(
                id=record.id,
                kind=record.kind,
                declared_parent_id=record.parent_id,
                name=record.name,
                own_metrics=dict(record.own_metrics),
            )
            for record in self._records
        )

        dangling = self._link(store)
        broken_cycles = self._break_cycles(store)

        roots = [node for node in store if node.parent_id is None]
        if self.sort_key is not None:
            roots.sort(key=self.sort_key)
            for node in store:
                node._children.sort(key=self.sort_key)

        self._assign_depths(roots)

        forest = Forest(
            _roots=roots,
            _store=store,
            _dangling=dangling,
            _broken_cycles=broken_cycles,
        )
        logger.debug(
            "Built forest: %d nodes, %d roots, %d dangling, %d cycles broken",
            forest.node_count(),
            forest.root_count(),
            len(dangling),
            len(broken_cycles),
        )
        return forest

    def _link(self, store: NodeStore[TreeNode]) -> list[DanglingReference]:
        """Attach nodes to their declared parents."""
        dangling: list[DanglingReference] = []
        for node in store:
            parent_id = node.declared_parent_id
            if parent_id is None:
                continue

            parent = store.get(parent_id)
            if parent_id == node.id:
                reason = "self-parent"
            elif parent is None:
                reason = "missing-parent"
            elif parent.kind == NodeKind.MEMBER:
                reason = "member-parent"
            else:
                parent._children.append(node)
                node.parent_id = parent_id
                continue

            dangling.append(DanglingReference(node_id=node.id, parent_id=parent_id, reason=reason))
            logger.warning("Node %s: parent %s not usable (%s), treating as root", node.id, parent_id, reason)
        return dangling

    def _break_cycles(self, store: NodeStore[TreeNode]) -> list[BrokenCycle]:
        """Promote one node of every parent-link cycle to root.

        Nodes unreachable from any root must sit on, or hang below, a
        cycle. For each such cycle the earliest input record is promoted.
        """
        reachable: set[str] = set()
        for node in store:
            if node.parent_id is None:
                reachable.update(n.id for n in node.walk("pre"))
        if len(reachable) == len(store):
            return []

        order = {node_id: index for index, node_id in enumerate(store.ids())}
        broken: list[BrokenCycle] = []
        for node in store:
            if node.id in reachable:
                continue

            # Follow parent links until a node repeats; the repeat closes the cycle
            path: list[str] = []
            seen: set[str] = set()
            current: TreeNode | None = node
            while current is not None and current.id not in seen and current.id not in reachable:
                seen.add(current.id)
                path.append(current.id)
                current = store.get(current.parent_id)
            if current is None or current.id in reachable:
                continue

            cycle = path[path.index(current.id):]
            promoted_id = min(cycle, key=order.__getitem__)
            promoted = store[promoted_id]
            parent = store[promoted.parent_id]  # type: ignore[index]
            parent._children = [c for c in parent._children if c.id != promoted_id]
            promoted.parent_id = None

            start = cycle.index(promoted_id)
            ordered = tuple(cycle[start:] + cycle[:start])
            broken.append(BrokenCycle(node_id=promoted_id, cycle=ordered))
            logger.warning("Parent cycle %s broken by promoting %s to root", " -> ".join(ordered), promoted_id)

            reachable.update(n.id for n in promoted.walk("pre"))
        return broken

    @staticmethod
    def _assign_depths(roots: list[TreeNode]) -> None:
        """Breadth-first depth assignment from the roots."""
        queue: deque[TreeNode] = deque()
        for root in roots:
            root.depth = 0
            queue.append(root)
        while queue:
            node = queue.popleft()
            for child in node.iter_children():
                child.depth = node.depth + 1
                queue.append(child)


def build_forest(records: Iterable[FlatRecord], sort_key: SortKey | None = None) -> Forest:
    """Build a Forest from records in one call."""
    return TreeBuilder(sort_key=sort_key).add_records(records).build()


__all__ = [
    "TreeBuilder",
    "build_forest",
    "by_name",
    "super_teams_first",
    "resolve_sort_key",
    "SORT_KEYS",
]
