"""
teamrollup.commands.tree - Show the visible rows of a team forest.
"""

import argparse
import json
from typing import AbstractSet, Any, Dict, List, Optional

from teamrollup.config import load_config
from teamrollup.graph import FlatRow, Forest, expand_all, flatten
from teamrollup.loader import load_forest


def resolve_expanded(spec: Any, forest: Forest) -> AbstractSet[str]:
    """Turn an --expand value or [view] expand setting into an id set.

    Accepts "all", "none", a comma-separated id string, or a list of ids.
    """
    if isinstance(spec, (list, tuple, set, frozenset)):
        return frozenset(str(item) for item in spec)
    text = str(spec or "none").strip()
    if text == "all":
        return expand_all(forest)
    if text in ("", "none"):
        return frozenset()
    return frozenset(part.strip() for part in text.split(",") if part.strip())


def format_value(value: Any) -> str:
    """Plain rendering for metric values (no locale or currency)."""
    if value is None:
        return "-"
    if isinstance(value, float):
        return f"{value:.2f}"
    return str(value)


def format_row(row: FlatRow, metric_names: List[str]) -> str:
    """Render one row as an indented line."""
    if row.has_children:
        marker = "-" if row.is_expanded else "+"
    else:
        marker = " "
    line = f"{'  ' * row.depth}{marker} {row.node.label} [{row.kind.value}]"
    if row.rolled is not None and metric_names:
        cells = [f"{name}={format_value(row.rolled.get(name))}" for name in metric_names]
        line += "  " + "  ".join(cells)
    return line


def run(args: argparse.Namespace) -> int:
    """Run the tree command."""
    config = load_config(args.config)
    forest = load_forest(args.records, config, sort=args.sort)

    expand: Optional[Any] = args.expand
    if expand is None:
        expand = config.get("view", {}).get("expand", "none")
    rows = flatten(forest, resolve_expanded(expand, forest))

    if args.json:
        print(json.dumps([row.to_dict() for row in rows], indent=2))
        return 0

    spec = forest.metric_spec
    metric_names = spec.metric_names() if spec else []
    for row in rows:
        print(format_row(row, metric_names))

    summary: Dict[str, int] = {"rows": len(rows), "nodes": forest.node_count()}
    print(f"\n{summary['rows']} of {summary['nodes']} nodes visible")
    return 0
