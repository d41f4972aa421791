"""
teamrollup.config - Configuration loading and defaults
"""

from teamrollup.config.defaults import CONFIG_FILENAME, DEFAULT_CONFIG
from teamrollup.config.loader import (
    _try_parse_env_value,
    apply_env_overrides,
    find_config_file,
    load_config,
    merge_configs,
    metric_spec_from_config,
    parse_toml,
    parse_toml_document,
    sort_key_from_config,
)

__all__ = [
    "load_config",
    "find_config_file",
    "merge_configs",
    "apply_env_overrides",
    "parse_toml",
    "parse_toml_document",
    "metric_spec_from_config",
    "sort_key_from_config",
    "CONFIG_FILENAME",
    "DEFAULT_CONFIG",
]
