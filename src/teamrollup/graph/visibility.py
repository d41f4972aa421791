"""Visibility flattening for expand/collapse rendering.

Screens render a forest as a linear list of indented rows. A row is shown
only if every ancestor between it and its root is expanded: collapsing a
grandparent must hide grandchildren even when the parent's own flag was
never cleared. Expansion state is a plain set of ids passed in per call;
nothing here keeps or edits it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, AbstractSet, Any, Iterable

from teamrollup.graph.TreeNode import NodeKind, TreeNode

if TYPE_CHECKING:
    from teamrollup.graph.forest import Forest
    from teamrollup.graph.metrics import RolledMetrics


@dataclass(frozen=True)
class FlatRow:
    """One visible row.

    Attributes:
        node: The node shown on this row.
        depth: Indentation level (roots are 0).
        kind: Row styling discriminator (the node's kind).
        has_children: Whether an expand/collapse affordance applies.
        is_expanded: Whether the node's children are shown.
        rolled: The node's rolled metrics, if the forest was rolled up.
    """

    node: TreeNode
    depth: int
    kind: NodeKind
    has_children: bool = False
    is_expanded: bool = False
    rolled: RolledMetrics | None = None

    @property
    def id(self) -> str:
        return self.node.id

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "id": self.node.id,
            "name": self.node.label,
            "kind": self.kind.value,
            "depth": self.depth,
            "hasChildren": self.has_children,
            "isExpanded": self.is_expanded,
        }
        if self.rolled is not None:
            result["rolled"] = dict(self.rolled.values)
        return result


def flatten(forest: Forest, expanded: AbstractSet[str]) -> list[FlatRow]:
    """Produce the visible rows of a forest in pre-order.

    Roots are always emitted. Children are descended into only when their
    parent is in ``expanded``, so traversal stops at the first collapsed
    ancestor and every emitted row has a fully expanded ancestor chain.

    Args:
        forest: The (optionally rolled-up) forest.
        expanded: IDs of expanded nodes. Not modified.

    Returns:
        Rows in forest order (children order as built, never re-sorted).
    """
    rows: list[FlatRow] = []
    seen: set[str] = set()
    stack: list[TreeNode] = list(reversed(list(forest.iter_roots())))
    while stack:
        node = stack.pop()
        if node.id in seen:
            continue
        seen.add(node.id)

        is_expanded = node.id in expanded
        rows.append(
            FlatRow(
                node=node,
                depth=node.depth,
                kind=node.kind,
                has_children=node.has_children,
                is_expanded=is_expanded and node.has_children,
                rolled=forest.rolled(node.id),
            )
        )
        if is_expanded:
            stack.extend(reversed(list(node.iter_children())))
    return rows


def is_visible(forest: Forest, node_id: str, expanded: AbstractSet[str]) -> bool:
    """Check whether a single node would be rendered.

    Walks the full ancestor chain; every ancestor must be expanded.
    Unknown ids are not visible.
    """
    if node_id not in forest:
        return False
    return all(ancestor.id in expanded for ancestor in forest.ancestors(node_id))


def expand_all(forest: Forest) -> frozenset[str]:
    """IDs of every node that has children."""
    return frozenset(node.id for node in forest.all_nodes() if node.has_children)


def expand_kinds(forest: Forest, kinds: Iterable[NodeKind]) -> frozenset[str]:
    """IDs of every node with children whose kind is in kinds.

    Used for initial screen state, e.g. teams open and super teams closed.
    """
    wanted = set(kinds)
    return frozenset(
        node.id for node in forest.all_nodes() if node.has_children and node.kind in wanted
    )


def reveal(forest: Forest, node_id: str, expanded: AbstractSet[str]) -> frozenset[str]:
    """Return expanded plus every ancestor of node_id, making it visible."""
    return frozenset(expanded) | {ancestor.id for ancestor in forest.ancestors(node_id)}


def toggle(expanded: AbstractSet[str], node_id: str) -> frozenset[str]:
    """Return expanded with node_id flipped."""
    if node_id in expanded:
        return frozenset(expanded) - {node_id}
    return frozenset(expanded) | {node_id}


__all__ = [
    "FlatRow",
    "flatten",
    "is_visible",
    "expand_all",
    "expand_kinds",
    "reveal",
    "toggle",
]
