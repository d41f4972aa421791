"""
teamrollup.cli - Command-line interface.

Main entry point for the teamrollup CLI tool.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from teamrollup import __version__
from teamrollup.commands import move, rollup_cmd, stats, tree
from teamrollup.graph.builder import SORT_KEYS


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="teamrollup",
        description="Hierarchical team aggregation and rollup tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  teamrollup tree teams.json                 # Top-level rows only
  teamrollup tree teams.json --expand all    # Every row
  teamrollup tree teams.json --expand east   # Roots plus east's children
  teamrollup rollup teams.json --node east   # Rolled metrics for one node
  teamrollup move teams.json alice --to west # Re-parent and print snapshot
  teamrollup stats teams.json                # Counts and repaired references

Records are a JSON list (or {"records": [...]}) of objects with
id, kind, parentId, name and ownMetrics. Use - to read stdin.

Configuration:
  .teamrollup.toml in the current directory or a parent, or --config PATH.
  Environment overrides: TEAMROLLUP_<SECTION>_<KEY>=value

For detailed command help: teamrollup <command> --help
        """,
    )

    # Global options
    parser.add_argument(
        "--version",
        action="version",
        version=f"teamrollup {__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to configuration file",
        metavar="PATH",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Verbose output",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress non-error output",
    )

    # Subcommands
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # tree command
    tree_parser = subparsers.add_parser(
        "tree",
        help="Show the visible rows of the hierarchy",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  teamrollup tree teams.json --expand all
  teamrollup tree teams.json --expand east,west --sort name
  teamrollup tree teams.json --json
        """,
    )
    tree_parser.add_argument("records", help="Record file (JSON), or - for stdin")
    tree_parser.add_argument(
        "--expand",
        help="Expanded rows: all, none, or comma-separated IDs (default: [view] expand)",
        metavar="IDS",
    )
    tree_parser.add_argument(
        "--sort",
        choices=sorted(SORT_KEYS),
        help="Sibling order (default: [tree] sort)",
    )
    tree_parser.add_argument("--json", action="store_true", help="Output rows as JSON")

    # rollup command
    rollup_parser = subparsers.add_parser(
        "rollup",
        help="Report rolled-up metrics",
    )
    rollup_parser.add_argument("records", help="Record file (JSON), or - for stdin")
    rollup_parser.add_argument("--node", help="Only report this node", metavar="ID")
    rollup_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # move command
    move_parser = subparsers.add_parser(
        "move",
        help="Re-parent a node and write the resulting records",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  teamrollup move teams.json alice --to west
  teamrollup move teams.json east --root -o teams.json
        """,
    )
    move_parser.add_argument("records", help="Record file (JSON), or - for stdin")
    move_parser.add_argument("node", help="ID of the node to move")
    target = move_parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--to", help="New parent ID", metavar="PARENT")
    target.add_argument("--root", action="store_true", help="Promote the node to a root")
    move_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Write records to file instead of stdout",
        metavar="FILE",
    )

    # stats command
    stats_parser = subparsers.add_parser(
        "stats",
        help="Summarize node counts and repaired references",
    )
    stats_parser.add_argument("records", help="Record file (JSON), or - for stdin")

    return parser


def configure_logging(args: argparse.Namespace) -> None:
    """Route library log records to stderr at the requested level."""
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = create_parser()

    # Enable shell tab-completion if argcomplete is installed
    # Install with: pip install teamrollup[completion]
    # Then activate: eval "$(register-python-argcomplete teamrollup)"
    try:
        import argcomplete

        argcomplete.autocomplete(parser)
    except ImportError:
        pass

    args = parser.parse_args(argv)

    # Handle no command
    if not args.command:
        parser.print_help()
        return 0

    configure_logging(args)

    try:
        # Dispatch to command handlers
        if args.command == "tree":
            return tree.run(args)
        elif args.command == "rollup":
            return rollup_cmd.run(args)
        elif args.command == "move":
            return move.run(args)
        elif args.command == "stats":
            return stats.run(args)
        else:
            parser.print_help()
            return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled.", file=sys.stderr)
        return 130
    except Exception as e:
        if args.verbose:
            raise
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
