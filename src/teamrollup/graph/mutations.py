"""Structural mutations for team forests.

This module provides the re-parent/detach operations, the typed errors
they return, the records of repairs applied while building, and an
append-only log a caller can keep for auditing and undo.

Mutations never edit the input forest. A successful move copies only the
moved subtree and the two affected ancestor chains; every other node is
shared with the input. Failed moves apply nothing.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from teamrollup.errors import MutationRejected
from teamrollup.graph.forest import Forest
from teamrollup.graph.TreeNode import NodeKind, TreeNode

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Build-time repairs
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class DanglingReference:
    """A parent reference the builder could not honour.

    The node was promoted to root instead.

    Attributes:
        node_id: ID of the node whose parent reference was dropped.
        parent_id: The parent ID the record declared.
        reason: "missing-parent", "self-parent" or "member-parent".
    """

    node_id: str
    parent_id: str
    reason: str = "missing-parent"

    def __str__(self) -> str:
        """Human-readable representation."""
        return f"{self.node_id} --[parent]--> {self.parent_id} ({self.reason})"


@dataclass(frozen=True)
class BrokenCycle:
    """A parent-reference cycle found in the input.

    Attributes:
        node_id: The node promoted to root to break the cycle.
        cycle: IDs on the cycle, starting at node_id.
    """

    node_id: str
    cycle: tuple[str, ...]

    def __str__(self) -> str:
        return " -> ".join(self.cycle + (self.node_id,)) + " (cycle broken)"


# ─────────────────────────────────────────────────────────────────────────────
# Errors and results
# ─────────────────────────────────────────────────────────────────────────────


class MutationErrorKind(Enum):
    """Why a mutation was rejected."""

    NODE_NOT_FOUND = "NodeNotFound"
    SELF_PARENT = "SelfParent"
    CYCLE_DETECTED = "CycleDetected"
    INVALID_PARENT = "InvalidParent"  # Members cannot own children


@dataclass(frozen=True)
class MutationError:
    """Typed description of a rejected mutation.

    Attributes:
        kind: The rejection reason.
        node_id: The node the rejection is about (for NodeNotFound, the id
            that could not be found).
        details: Optional human-readable detail.
    """

    kind: MutationErrorKind
    node_id: str
    details: str | None = None

    def __str__(self) -> str:
        text = f"{self.kind.value}: {self.node_id}"
        if self.details:
            text += f" ({self.details})"
        return text

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"kind": self.kind.value, "nodeId": self.node_id}
        if self.details:
            result["details"] = self.details
        return result


@dataclass
class MutationEntry:
    """Single mutation operation record.

    Records a mutation for persistence, auditing and undo support. The
    before_state contains enough information to reverse the operation.

    Attributes:
        id: Unique mutation ID (UUID4).
        timestamp: When the mutation occurred.
        operation: Operation type ("reparent").
        target_id: The moved node.
        before_state: State before mutation (for undo).
        after_state: State after mutation.
    """

    operation: str
    target_id: str
    before_state: dict[str, Any]
    after_state: dict[str, Any]
    id: str = field(default_factory=lambda: uuid4().hex)
    timestamp: datetime = field(default_factory=datetime.now)

    def to_persist(self) -> dict[str, Any]:
        """The payload a caller sends to its backing store."""
        return {"nodeId": self.target_id, "newParentId": self.after_state.get("parent_id")}

    def __str__(self) -> str:
        """Human-readable representation."""
        return f"[{self.id[:8]}] {self.operation}({self.target_id})"


@dataclass
class MutationResult:
    """Outcome of a mutation: either a new forest or a typed error.

    Attributes:
        forest: The new forest on success; the untouched input on failure.
        error: The rejection reason, or None on success.
        entry: Record of the applied mutation (None on failure).
        ancestry: IDs from the root down to the moved node in the new forest.
    """

    forest: Forest
    error: MutationError | None = None
    entry: MutationEntry | None = None
    ancestry: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Forest:
        """Return the new forest, raising if the mutation was rejected.

        Raises:
            MutationRejected: If the mutation was not applied.
        """
        if self.error is not None:
            raise MutationRejected(self.error)
        return self.forest


class MutationLog:
    """Append-only mutation history kept by a caller.

    Provides auditing and undo capabilities for applied mutations.
    Entries are stored in chronological order.

    Example:
        >>> log = MutationLog()
        >>> result = reparent(forest, "team-b", "team-a")
        >>> log.append(result.entry)
        >>> undo_last(result.forest, log).ok
        True
    """

    def __init__(self) -> None:
        """Initialize an empty mutation log."""
        self._entries: list[MutationEntry] = []

    def append(self, entry: MutationEntry) -> None:
        """Append a mutation entry to the log."""
        self._entries.append(entry)

    def iter_entries(self) -> Iterator[MutationEntry]:
        """Iterate over all entries in chronological order."""
        yield from self._entries

    def __len__(self) -> int:
        """Return the number of entries in the log."""
        return len(self._entries)

    def last(self) -> MutationEntry | None:
        """Return the most recent entry, or None if empty."""
        return self._entries[-1] if self._entries else None

    def find_by_id(self, mutation_id: str) -> MutationEntry | None:
        """Find an entry by its mutation ID."""
        for entry in self._entries:
            if entry.id == mutation_id:
                return entry
        return None

    def entries_since(self, mutation_id: str) -> list[MutationEntry]:
        """Get all entries since (and including) a specific mutation.

        Raises:
            ValueError: If the mutation_id is not found.
        """
        for i, entry in enumerate(self._entries):
            if entry.id == mutation_id:
                return list(self._entries[i:])
        raise ValueError(f"Mutation {mutation_id} not found in log")

    def pop(self) -> MutationEntry | None:
        """Remove and return the most recent entry."""
        return self._entries.pop() if self._entries else None

    def clear(self) -> None:
        """Clear all entries from the log."""
        self._entries.clear()


# ─────────────────────────────────────────────────────────────────────────────
# Operations
# ─────────────────────────────────────────────────────────────────────────────


def _reject(forest: Forest, kind: MutationErrorKind, node_id: str, details: str) -> MutationResult:
    error = MutationError(kind=kind, node_id=node_id, details=details)
    logger.debug("Mutation rejected: %s", error)
    return MutationResult(forest=forest, error=error)


def _check_move(forest: Forest, node: TreeNode, new_parent_id: str | None) -> MutationResult | None:
    """Validate moving an existing node; return a rejection or None when it may proceed."""
    node_id = node.id
    if new_parent_id is None:
        return None

    new_parent = forest.find_by_id(new_parent_id)
    if new_parent is None:
        return _reject(
            forest,
            MutationErrorKind.NODE_NOT_FOUND,
            new_parent_id,
            f"New parent '{new_parent_id}' not found",
        )
    if new_parent_id == node_id:
        return _reject(
            forest, MutationErrorKind.SELF_PARENT, node_id, "A node cannot be its own parent"
        )
    if forest.is_descendant(new_parent_id, node_id):
        chain = forest.ancestry(new_parent_id)
        path = " -> ".join(chain[chain.index(node_id):])
        return _reject(
            forest,
            MutationErrorKind.CYCLE_DETECTED,
            node_id,
            f"'{new_parent_id}' is a descendant of '{node_id}': {path}",
        )
    if new_parent.kind == NodeKind.MEMBER:
        return _reject(
            forest,
            MutationErrorKind.INVALID_PARENT,
            node_id,
            f"'{new_parent_id}' is a member and cannot have children",
        )
    return None


def _copy_subtree(
    root: TreeNode, parent_id: str | None, depth: int, copies: dict[str, TreeNode]
) -> TreeNode:
    """Copy a subtree, re-basing depths from the given root depth."""
    new_root = root.copy(parent_id=parent_id, declared_parent_id=parent_id, depth=depth)
    copies[new_root.id] = new_root
    stack = [new_root]
    while stack:
        node = stack.pop()
        children = []
        for child in node.iter_children():
            if child.id in copies:
                continue
            clone = child.copy(depth=node.depth + 1)
            copies[clone.id] = clone
            children.append(clone)
            stack.append(clone)
        node._children = children
    return new_root


def reparent(forest: Forest, node_id: str, new_parent_id: str | None) -> MutationResult:
    """Move a node (and its subtree) under a new parent, or to the root list.

    Preconditions are checked before anything is copied: the node exists,
    the new parent (if given) exists, is not the node itself, is not one of
    its descendants, and is not a member. Any failure returns a result with
    a typed error and the input forest unchanged.

    Args:
        forest: The forest to mutate (never modified).
        node_id: The node to move.
        new_parent_id: The new parent, or None to promote to root.

    Returns:
        MutationResult with the new forest, the applied entry and the moved
        node's ancestry; or with an error.
    """
    node = forest.find_by_id(node_id)
    if node is None:
        return _reject(forest, MutationErrorKind.NODE_NOT_FOUND, node_id, f"Node '{node_id}' not found")
    rejection = _check_move(forest, node, new_parent_id)
    if rejection is not None:
        return rejection

    old_parent_id = node.parent_id

    entry = MutationEntry(
        operation="reparent",
        target_id=node_id,
        before_state={"parent_id": old_parent_id},
        after_state={"parent_id": new_parent_id},
    )

    if old_parent_id == new_parent_id:
        return MutationResult(forest=forest, entry=entry, ancestry=forest.ancestry(node_id))

    new_parent = forest.find_by_id(new_parent_id)
    base_depth = 0 if new_parent is None else new_parent.depth + 1

    # Moved subtree: depths change, structure does not
    copies: dict[str, TreeNode] = {}
    moved = _copy_subtree(node, new_parent_id, base_depth, copies)
    subtree_ids = set(copies)

    # Both ancestor chains need new children lists
    chain_ids: list[str] = []
    for anchor in (old_parent_id, new_parent_id):
        if anchor is None:
            continue
        for chain_node in [forest.find_by_id(anchor), *forest.ancestors(anchor)]:
            if chain_node is not None and chain_node.id not in copies:
                copies[chain_node.id] = chain_node.copy()
                chain_ids.append(chain_node.id)

    if old_parent_id is not None:
        old_parent = copies[old_parent_id]
        old_parent._children = [c for c in old_parent._children if c.id != node_id]
    if new_parent_id is not None:
        copies[new_parent_id]._children.append(moved)
    for chain_id in chain_ids:
        chain_node = copies[chain_id]
        chain_node._children = [copies.get(c.id, c) for c in chain_node._children]

    roots = [copies.get(r.id, r) for r in forest.iter_roots() if r.id != node_id]
    if new_parent_id is None:
        roots.append(moved)

    # Rollups of the changed chains are stale; the moved subtree's are not
    rollups = {
        nid: rolled
        for nid, rolled in forest._rollups.items()
        if nid not in chain_ids
    }

    new_forest = Forest(
        _roots=roots,
        _store=forest._store.replace(copies.values()),
        _dangling=[d for d in forest.dangling_references() if d.node_id != node_id],
        _broken_cycles=[c for c in forest.broken_cycles() if c.node_id != node_id],
        _metric_spec=forest.metric_spec,
        _rollups=rollups,
    )

    logger.debug(
        "Moved %s from %s to %s (%d nodes copied, %d in subtree)",
        node_id,
        old_parent_id or "<root>",
        new_parent_id or "<root>",
        len(copies),
        len(subtree_ids),
    )
    return MutationResult(forest=new_forest, entry=entry, ancestry=new_forest.ancestry(node_id))


def detach(forest: Forest, node_id: str) -> MutationResult:
    """Promote a node (and its subtree) to a root."""
    return reparent(forest, node_id, None)


def valid_parents(forest: Forest, node_id: str) -> list[str]:
    """IDs a node may be moved under, in forest order.

    Excludes the node itself, its descendants and members.

    Raises:
        KeyError: If node_id is not found.
    """
    excluded = forest.descendant_ids(node_id) | {node_id}
    return [
        node.id
        for node in forest.walk("pre")
        if node.id not in excluded and node.kind != NodeKind.MEMBER
    ]


def undo_last(forest: Forest, log: MutationLog) -> MutationResult | None:
    """Reverse the most recent logged reparent.

    The entry is removed from the log only if the inverse move applies.

    Returns:
        The result of the inverse move, or None if the log is empty.
    """
    entry = log.pop()
    if entry is None:
        return None
    result = reparent(forest, entry.target_id, entry.before_state.get("parent_id"))
    if not result.ok:
        log.append(entry)
    return result


__all__ = [
    "DanglingReference",
    "BrokenCycle",
    "MutationErrorKind",
    "MutationError",
    "MutationEntry",
    "MutationResult",
    "MutationLog",
    "reparent",
    "detach",
    "valid_parents",
    "undo_last",
]
