"""Forest aggregate and query functions.

These functions compute statistics and derived views from a Forest. They
follow the composable pattern: take a forest, return computed values or a
new forest. None of them modify their input.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from teamrollup.graph.builder import build_forest
from teamrollup.graph.TreeNode import NodeKind, TreeNode

if TYPE_CHECKING:
    from teamrollup.graph.forest import Forest


@dataclass(frozen=True)
class ForestStats:
    """Headline numbers for a team hierarchy.

    Attributes:
        total_nodes: All nodes in the forest.
        teams: Plain teams.
        super_teams: Super teams.
        members: Members (leaf contributors).
        roots: Root nodes, including repaired ones.
        deepest_level: Greatest depth of any node (0 for flat forests).
        repairs: Dangling references plus broken cycles.
    """

    total_nodes: int = 0
    teams: int = 0
    super_teams: int = 0
    members: int = 0
    roots: int = 0
    deepest_level: int = 0
    repairs: int = 0


# =============================================================================
# Forest Aggregate Functions
# =============================================================================


def count_by_kind(forest: Forest) -> dict[str, int]:
    """Count nodes by kind.

    Returns:
        Dict mapping each NodeKind value to its count (zero included).
    """
    counts = {kind.value: 0 for kind in NodeKind}
    for node in forest.all_nodes():
        counts[node.kind.value] += 1
    return counts


def deepest_level(forest: Forest) -> int:
    """Greatest depth in the forest (0 when empty)."""
    return max((node.depth for node in forest.all_nodes()), default=0)


def forest_stats(forest: Forest) -> ForestStats:
    """Compute ForestStats for a forest."""
    counts = count_by_kind(forest)
    return ForestStats(
        total_nodes=forest.node_count(),
        teams=counts[NodeKind.TEAM.value],
        super_teams=counts[NodeKind.SUPER_TEAM.value],
        members=counts[NodeKind.MEMBER.value],
        roots=forest.root_count(),
        deepest_level=deepest_level(forest),
        repairs=len(forest.dangling_references()) + len(forest.broken_cycles()),
    )


def node_path(forest: Forest, node_id: str, separator: str = " / ") -> str:
    """Label path from the root down to a node (e.g. "Sales / West / Bay").

    Raises:
        KeyError: If node_id is not found.
    """
    labels = [forest.find_by_id(nid).label for nid in forest.ancestry(node_id)]  # type: ignore[union-attr]
    return separator.join(labels)


# =============================================================================
# Filtering
# =============================================================================


def filter_forest(forest: Forest, predicate: Callable[[TreeNode], bool]) -> Forest:
    """Keep matching nodes and the ancestors needed to reach them.

    Non-matching nodes without a matching descendant are dropped, including
    those below a match. Order is preserved. Rollups computed on the full
    forest are carried over for the kept nodes, so a team still shows its
    full totals while the view is filtered.

    Args:
        forest: The forest to filter.
        predicate: Returns True for nodes to keep.

    Returns:
        A new Forest.
    """
    keep: set[str] = set()
    for node in forest.all_nodes():
        if node.id in keep or not predicate(node):
            continue
        keep.add(node.id)
        keep.update(ancestor.id for ancestor in forest.ancestors(node.id))

    records = [record for record in forest.to_records() if record.id in keep]
    filtered = build_forest(records)
    if forest.metric_spec is None:
        return filtered
    rollups = {nid: forest.rolled(nid) for nid in keep if forest.rolled(nid) is not None}
    return filtered.with_rollups(forest.metric_spec, rollups)  # type: ignore[arg-type]


def search(forest: Forest, term: str) -> Forest:
    """Filter by a case-insensitive match on name, id or label path."""
    needle = term.strip().casefold()
    if not needle:
        return forest

    def matches(node: TreeNode) -> bool:
        return (
            needle in node.label.casefold()
            or needle in node.id.casefold()
            or needle in node_path(forest, node.id).casefold()
        )

    return filter_forest(forest, matches)


__all__ = [
    "ForestStats",
    "count_by_kind",
    "deepest_level",
    "forest_stats",
    "node_path",
    "filter_forest",
    "search",
]
