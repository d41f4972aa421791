"""
teamrollup.config.defaults - Default configuration values.
"""

CONFIG_FILENAME = ".teamrollup.toml"

ENV_PREFIX = "TEAMROLLUP_"

DEFAULT_CONFIG = {
    "metrics": {
        # Metrics summed across a subtree
        "additive": ["sales", "grossProfit"],
        # Metrics recomputed from rolled numerator / denominator at every level
        "ratios": [
            {
                "name": "marginPct",
                "numerator": "grossProfit",
                "denominator": "sales",
                "scale": 100.0,
                "sentinel": 0.0,
            },
        ],
        # Metrics computed as minuend - subtrahend at every level
        "differences": [],
    },
    "tree": {
        # Sibling ordering: "insertion", "name" or "super-first"
        "sort": "insertion",
    },
    "view": {
        # Initial expansion: "none", "all", or a list of ids
        "expand": "none",
    },
}
