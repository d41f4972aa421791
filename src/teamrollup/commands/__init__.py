"""
teamrollup.commands - CLI command implementations
"""

__all__ = [
    "move",
    "rollup_cmd",
    "stats",
    "tree",
]
