"""TreeNode - Node representation for team hierarchies.

This module provides the core data structures of the engine:
- NodeKind: Enum of node types (team, super team, member)
- TreeNode: One team or contributor with its position in the forest
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterator


class NodeKind(Enum):
    """Types of nodes in a team hierarchy."""

    TEAM = "team"  # Derives entirely from members and child teams
    SUPER_TEAM = "superTeam"  # Own entered target supersedes its members
    MEMBER = "member"  # Leaf contributor (team member, house account)

    @classmethod
    def parse(cls, value: Any) -> NodeKind | None:
        """Resolve a wire value to a NodeKind.

        Accepts the enum itself, its value, the enum name, and the
        snake_case spelling ("super_team"). Returns None when unknown.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        text = value.strip()
        for kind in cls:
            if text == kind.value or text.upper() == kind.name:
                return kind
        if text.lower() in ("super_team", "super-team", "superteam"):
            return cls.SUPER_TEAM
        return None


@dataclass
class TreeNode:
    """A node in a team forest.

    Nodes are created by TreeBuilder and copied (never edited) by the
    mutation functions, so a node reachable from a published Forest can
    be shared safely between forests.

    Attributes:
        id: Unique, stable identifier.
        kind: The type of node.
        parent_id: Effective parent after build-time repair (None for roots).
        declared_parent_id: Parent reference as given by the input record.
        name: Display label.
        own_metrics: Direct (non-rolled-up) contribution of this node.
        depth: Distance from the root (roots are 0).
    """

    id: str
    kind: NodeKind
    parent_id: str | None = None
    declared_parent_id: str | None = None
    name: str = ""
    own_metrics: dict[str, float | int | None] = field(default_factory=dict)
    depth: int = 0

    # Internal storage (prefixed)
    _children: list[TreeNode] = field(default_factory=list, repr=False)

    # Iterator access
    def iter_children(self) -> Iterator[TreeNode]:
        """Iterate over child nodes."""
        yield from self._children

    def child_count(self) -> int:
        """Return number of children."""
        return len(self._children)

    def child_ids(self) -> list[str]:
        """Return the ids of the children in order."""
        return [child.id for child in self._children]

    @property
    def has_children(self) -> bool:
        return bool(self._children)

    @property
    def is_root(self) -> bool:
        """True if this node has no parent."""
        return self.parent_id is None

    @property
    def is_leaf(self) -> bool:
        """True if this node has no children."""
        return not self._children

    @property
    def label(self) -> str:
        """Name for display, falling back to the id."""
        return self.name or self.id

    def get_metric(self, key: str, default: Any = None) -> Any:
        """Get a directly entered metric value."""
        return self.own_metrics.get(key, default)

    def has_own_value(self, key: str) -> bool:
        """True if this node carries a non-null direct value for key."""
        return self.own_metrics.get(key) is not None

    def copy(self, **changes: Any) -> TreeNode:
        """Return a shallow copy with its own children list.

        The children themselves are shared; callers replace the entries
        they need to change.
        """
        clone = replace(self, **changes)
        if "_children" not in changes:
            clone._children = list(self._children)
        return clone

    def walk(self, order: str = "pre") -> Iterator[TreeNode]:
        """Iterate over this node and descendants.

        All orders use an explicit work-list and skip ids already seen,
        so malformed structures cannot recurse without bound.

        Args:
            order: Traversal order:
                - "pre": Parent first (depth-first, pre-order)
                - "post": Children first (depth-first, post-order)
                - "level": Breadth-first (level order)

        Yields:
            TreeNode instances in the specified order.
        """
        if order == "pre":
            yield from self._walk_preorder()
        elif order == "post":
            yield from self._walk_postorder()
        elif order == "level":
            yield from self._walk_level()
        else:
            raise ValueError(f"Unknown traversal order: {order}")

    def _walk_preorder(self) -> Iterator[TreeNode]:
        """Pre-order traversal (parent before children)."""
        seen: set[str] = set()
        stack: list[TreeNode] = [self]
        while stack:
            node = stack.pop()
            if node.id in seen:
                continue
            seen.add(node.id)
            yield node
            stack.extend(reversed(node._children))

    def _walk_postorder(self) -> Iterator[TreeNode]:
        """Post-order traversal (children before parent)."""
        seen: set[str] = set()
        stack: list[tuple[TreeNode, bool]] = [(self, False)]
        while stack:
            node, expanded = stack.pop()
            if expanded:
                yield node
                continue
            if node.id in seen:
                continue
            seen.add(node.id)
            stack.append((node, True))
            for child in reversed(node._children):
                stack.append((child, False))

    def _walk_level(self) -> Iterator[TreeNode]:
        """Level-order (breadth-first) traversal."""
        seen: set[str] = {self.id}
        queue: deque[TreeNode] = deque([self])
        while queue:
            node = queue.popleft()
            yield node
            for child in node._children:
                if child.id not in seen:
                    seen.add(child.id)
                    queue.append(child)

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.id}"


__all__ = ["NodeKind", "TreeNode"]
