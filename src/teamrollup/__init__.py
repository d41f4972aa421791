"""
teamrollup - Hierarchical aggregation and rollup engine for team hierarchies

Builds arbitrary-depth team forests from flat parent-linked records,
rolls metrics up bottom-up without double counting, applies safe
re-parenting with cycle prevention, and flattens the forest into
expand/collapse-aware rows for rendering.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("teamrollup")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"  # Not installed
__license__ = "MIT"

from teamrollup.errors import ConfigError, MutationRejected, TeamRollupError
from teamrollup.graph import (
    FlatRecord,
    FlatRow,
    Forest,
    MetricSpec,
    MutationError,
    MutationErrorKind,
    MutationResult,
    NodeKind,
    RatioMetric,
    TreeNode,
    build_forest,
    detach,
    flatten,
    reparent,
    rollup,
)

__all__ = [
    "__version__",
    "TeamRollupError",
    "ConfigError",
    "MutationRejected",
    "FlatRecord",
    "FlatRow",
    "Forest",
    "MetricSpec",
    "RatioMetric",
    "MutationError",
    "MutationErrorKind",
    "MutationResult",
    "NodeKind",
    "TreeNode",
    "build_forest",
    "detach",
    "flatten",
    "reparent",
    "rollup",
]
