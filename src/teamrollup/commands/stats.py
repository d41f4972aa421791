"""
teamrollup.commands.stats - Summarize a team forest and its repairs.
"""

import argparse

from teamrollup.config import load_config
from teamrollup.graph import forest_stats
from teamrollup.loader import load_forest


def run(args: argparse.Namespace) -> int:
    """Run the stats command."""
    config = load_config(args.config)
    forest = load_forest(args.records, config, rolled=False)
    stats = forest_stats(forest)

    print("Team Hierarchy")
    print("=" * 40)
    print(f"  Nodes:         {stats.total_nodes}")
    print(f"  Teams:         {stats.teams}")
    print(f"  Super teams:   {stats.super_teams}")
    print(f"  Members:       {stats.members}")
    print(f"  Roots:         {stats.roots}")
    print(f"  Deepest level: {stats.deepest_level}")

    repairs = [str(ref) for ref in forest.dangling_references()]
    repairs.extend(str(cycle) for cycle in forest.broken_cycles())
    if repairs:
        print(f"\nRepairs ({len(repairs)}):")
        print("-" * 40)
        for line in repairs:
            print(f"  {line}")
    else:
        print("\n✓ No repairs needed")
    return 0
