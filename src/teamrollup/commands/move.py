"""
teamrollup.commands.move - Re-parent a node and write the new snapshot.

The move is validated against the current structure; a rejected move
writes nothing and exits with status 1.
"""

import argparse
import logging
import sys
from pathlib import Path

from teamrollup.config import load_config
from teamrollup.graph import reparent
from teamrollup.loader import dump_records, load_forest

logger = logging.getLogger(__name__)


def run(args: argparse.Namespace) -> int:
    """Run the move command."""
    config = load_config(args.config)
    forest = load_forest(args.records, config, rolled=False)

    new_parent = None if args.root else args.to
    result = reparent(forest, args.node, new_parent)
    if not result.ok:
        print(f"Move rejected: {result.error}", file=sys.stderr)
        return 1

    output = dump_records(result.forest.to_records())
    if args.output:
        Path(args.output).write_text(output + "\n", encoding="utf-8")
        logger.info("Wrote %d records to %s", result.forest.node_count(), args.output)
    else:
        print(output)

    print(f"Moved {args.node}: {' / '.join(result.ancestry)}", file=sys.stderr)
    return 0
