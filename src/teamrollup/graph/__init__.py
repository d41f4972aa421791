"""Graph module - Core hierarchy data structures and engine.

Exports:
- NodeKind: Enum of node types
- TreeNode: Node representation
- FlatRecord: Flat input record
- NodeStore: Identity-based lookup
- Forest: Immutable container of roots and nodes
- TreeBuilder / build_forest: Flat records -> Forest
- MetricSpec, RatioMetric, DifferenceMetric, RolledMetrics: Rollup declarations and results
- RollupCalculator / rollup: Bottom-up aggregation
- reparent / detach / valid_parents: Structural mutations
- flatten / FlatRow: Expand/collapse-aware rendering rows
"""

from teamrollup.graph.annotators import (
    ForestStats,
    count_by_kind,
    deepest_level,
    filter_forest,
    forest_stats,
    node_path,
    search,
)
from teamrollup.graph.builder import (
    TreeBuilder,
    build_forest,
    by_name,
    resolve_sort_key,
    super_teams_first,
)
from teamrollup.graph.forest import Forest
from teamrollup.graph.metrics import DifferenceMetric, MetricSpec, RatioMetric, RolledMetrics
from teamrollup.graph.mutations import (
    BrokenCycle,
    DanglingReference,
    MutationEntry,
    MutationError,
    MutationErrorKind,
    MutationLog,
    MutationResult,
    detach,
    reparent,
    undo_last,
    valid_parents,
)
from teamrollup.graph.records import FlatRecord, records_from_dicts
from teamrollup.graph.rollup import RollupCalculator, rollup
from teamrollup.graph.store import NodeStore
from teamrollup.graph.TreeNode import NodeKind, TreeNode
from teamrollup.graph.visibility import (
    FlatRow,
    expand_all,
    expand_kinds,
    flatten,
    is_visible,
    reveal,
    toggle,
)

__all__ = [
    "NodeKind",
    "TreeNode",
    "FlatRecord",
    "records_from_dicts",
    "NodeStore",
    "Forest",
    "TreeBuilder",
    "build_forest",
    "by_name",
    "super_teams_first",
    "resolve_sort_key",
    "MetricSpec",
    "RatioMetric",
    "DifferenceMetric",
    "RolledMetrics",
    "RollupCalculator",
    "rollup",
    "DanglingReference",
    "BrokenCycle",
    "MutationErrorKind",
    "MutationError",
    "MutationEntry",
    "MutationLog",
    "MutationResult",
    "reparent",
    "detach",
    "valid_parents",
    "undo_last",
    "FlatRow",
    "flatten",
    "is_visible",
    "expand_all",
    "expand_kinds",
    "reveal",
    "toggle",
    "ForestStats",
    "count_by_kind",
    "deepest_level",
    "forest_stats",
    "node_path",
    "filter_forest",
    "search",
]
