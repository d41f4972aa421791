"""Test helpers for black-box forest testing.

This module provides factories and string conversion helpers for testing
the engine through observable output rather than internal state.
"""

from __future__ import annotations

import random
from typing import Any

from teamrollup.graph import FlatRecord, Forest, MetricSpec, NodeKind, RatioMetric, build_forest

# === Constants ===

SALES_SPEC = MetricSpec(
    additive=("sales", "grossProfit"),
    ratios=(RatioMetric("marginPct", "grossProfit", "sales"),),
)


# === Record Factories ===


def make_record(
    node_id: str,
    parent: str | None = None,
    kind: NodeKind | str = NodeKind.TEAM,
    name: str = "",
    **metrics: Any,
) -> FlatRecord:
    """Factory for creating test records.

    Args:
        node_id: Record id
        parent: Parent id (None for roots)
        kind: NodeKind or its wire value ("team", "superTeam", "member")
        name: Display label
        **metrics: Own metric values (e.g. sales=100)
    """
    if isinstance(kind, str):
        kind = NodeKind.parse(kind) or NodeKind.TEAM
    return FlatRecord(id=node_id, kind=kind, parent_id=parent, name=name, own_metrics=metrics)


def make_member(node_id: str, parent: str | None = None, **metrics: Any) -> FlatRecord:
    return make_record(node_id, parent, NodeKind.MEMBER, **metrics)


def make_super_team(node_id: str, parent: str | None = None, **metrics: Any) -> FlatRecord:
    return make_record(node_id, parent, NodeKind.SUPER_TEAM, **metrics)


def build(*records: FlatRecord) -> Forest:
    """Build a forest from records in insertion order."""
    return build_forest(records)


def random_records(seed: int, count: int = 60, metric: str = "sales") -> list[FlatRecord]:
    """Generate a random valid hierarchy of teams and members.

    Every record's parent is an earlier team, so the input is acyclic.
    Members carry an integer metric value; teams sometimes carry one too.
    """
    rng = random.Random(seed)
    records: list[FlatRecord] = []
    teams: list[str] = []
    for index in range(count):
        node_id = f"n{index}"
        parent = rng.choice(teams) if teams and rng.random() < 0.85 else None
        if index < 3 or rng.random() < 0.35:
            teams.append(node_id)
            metrics = {metric: rng.randint(0, 50)} if rng.random() < 0.3 else {}
            records.append(make_record(node_id, parent, NodeKind.TEAM, **metrics))
        else:
            records.append(make_member(node_id, parent, **{metric: rng.randint(0, 100)}))
    return records


# === String Conversion Helpers ===


def rows_string(rows) -> str:
    """Visible rows as "id@depth" tokens, e.g. "east@0 bay@1"."""
    return " ".join(f"{row.id}@{row.depth}" for row in rows)


def children_string(forest: Forest, node_id: str) -> str:
    """Children ids of a node, comma separated."""
    node = forest.find_by_id(node_id)
    return ",".join(node.child_ids()) if node else ""


def roots_string(forest: Forest) -> str:
    return ",".join(forest.root_ids())
