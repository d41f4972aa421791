"""
teamrollup.commands.rollup_cmd - Report rolled-up metrics per node.
"""

import argparse
import json
import sys
from typing import Any, Dict

from teamrollup.commands.tree import format_value
from teamrollup.config import load_config
from teamrollup.loader import load_forest


def run(args: argparse.Namespace) -> int:
    """Run the rollup command."""
    config = load_config(args.config)
    forest = load_forest(args.records, config)

    if args.node:
        if args.node not in forest:
            print(f"Error: node '{args.node}' not found", file=sys.stderr)
            return 1
        nodes = [forest.find_by_id(args.node)]
    else:
        nodes = list(forest.walk("pre"))

    spec = forest.metric_spec
    metric_names = spec.metric_names() if spec else []

    if args.json:
        payload: Dict[str, Any] = {}
        for node in nodes:
            rolled = forest.rolled(node.id)
            payload[node.id] = rolled.to_dict() if rolled else None
        print(json.dumps(payload, indent=2))
        return 0

    for node in nodes:
        rolled = forest.rolled(node.id)
        print(f"{node.label} ({node.id}, {node.kind.value}, depth {node.depth})")
        for name in metric_names:
            value = rolled.get(name) if rolled else None
            flag = "" if rolled and rolled.has_data(name) else "  (no data)"
            print(f"  {name}: {format_value(value)}{flag}")
    return 0
