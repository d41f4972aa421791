"""
teamrollup.config.loader - Configuration loading.

Configuration comes from three layers, later ones winning:
DEFAULT_CONFIG, the nearest .teamrollup.toml, and TEAMROLLUP_<SECTION>_<KEY>
environment variables.
"""

from __future__ import annotations

import copy
import json
import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

import tomlkit
from tomlkit.exceptions import TOMLKitError

from teamrollup.config.defaults import CONFIG_FILENAME, DEFAULT_CONFIG, ENV_PREFIX
from teamrollup.errors import ConfigError

if TYPE_CHECKING:
    from teamrollup.graph.builder import SortKey
    from teamrollup.graph.metrics import MetricSpec

logger = logging.getLogger(__name__)


def parse_toml_document(content: str) -> tomlkit.TOMLDocument:
    """Parse TOML text into a tomlkit document (preserves formatting).

    Raises:
        ConfigError: If the text is not valid TOML.
    """
    try:
        return tomlkit.parse(content)
    except TOMLKitError as e:
        raise ConfigError(f"Invalid TOML: {e}") from e


def parse_toml(content: str) -> Dict[str, Any]:
    """Parse TOML text into plain Python dicts and lists."""
    return parse_toml_document(content).unwrap()


def find_config_file(start_path: Path) -> Optional[Path]:
    """Find .teamrollup.toml in start_path or any parent directory.

    Args:
        start_path: Directory (or file) to start searching from

    Returns:
        Path to the config file, or None if not found
    """
    current = start_path.resolve()
    if current.is_file():
        current = current.parent
    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def merge_configs(base: Mapping[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """Deep-merge override into a copy of base.

    Nested dicts are merged key by key; any other value (lists included)
    in override replaces the base value.
    """
    merged = copy.deepcopy(dict(base))
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _try_parse_env_value(value: str) -> Any:
    """Parse an environment variable value into a typed Python value.

    JSON arrays and objects become lists and dicts, "true"/"false" become
    booleans, integers and floats become numbers. Anything else, including
    malformed JSON, is returned unchanged as a string.
    """
    text = value.strip()
    if text[:1] in ("[", "{"):
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return value
    lowered = text.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return value


def apply_env_overrides(
    config: Mapping[str, Any], env: Optional[Mapping[str, str]] = None
) -> Dict[str, Any]:
    """Apply TEAMROLLUP_<SECTION>_<KEY> overrides.

    Only sections that exist in the configuration are considered, so
    TEAMROLLUP_TREE_SORT=name sets config["tree"]["sort"].
    A plain string given for a list-valued key is split on commas.
    """
    env = os.environ if env is None else env
    result = copy.deepcopy(dict(config))
    for name, raw in env.items():
        if not name.startswith(ENV_PREFIX):
            continue
        remainder = name[len(ENV_PREFIX):].lower()
        section, _, key = remainder.partition("_")
        if not key or not isinstance(result.get(section), dict):
            continue
        existing = {k.lower(): k for k in result[section]}
        target = existing.get(key, key)
        value = _try_parse_env_value(raw)
        if isinstance(result[section].get(target), list) and isinstance(value, str):
            # Plain comma-separated list: TEAMROLLUP_METRICS_ADDITIVE=sales,units
            value = [part.strip() for part in value.split(",") if part.strip()]
        result[section][target] = value
        logger.debug("Config override from %s: [%s] %s", name, section, target)
    return result


def load_config(
    config_path: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    """Load configuration merged with defaults and environment overrides.

    Args:
        config_path: Explicit config file. When None, the nearest
            .teamrollup.toml above the working directory is used, if any.
        env: Environment mapping (defaults to os.environ)

    Returns:
        Configuration dictionary

    Raises:
        ConfigError: If the file cannot be read or parsed.
    """
    if config_path is None:
        config_path = find_config_file(Path.cwd())

    user_config: Dict[str, Any] = {}
    if config_path is not None:
        try:
            content = Path(config_path).read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Cannot read config file {config_path}: {e}") from e
        user_config = parse_toml(content)
        logger.debug("Loaded config from %s", config_path)

    return apply_env_overrides(merge_configs(DEFAULT_CONFIG, user_config), env)


def metric_spec_from_config(config: Mapping[str, Any]) -> MetricSpec:
    """Build the MetricSpec declared in the [metrics] section.

    Raises:
        ConfigError: If the section is malformed.
    """
    from teamrollup.graph.metrics import MetricSpec

    try:
        return MetricSpec.from_dict(config.get("metrics", {}))
    except (KeyError, TypeError, ValueError) as e:
        raise ConfigError(f"Invalid [metrics] configuration: {e}") from e


def sort_key_from_config(config: Mapping[str, Any]) -> Optional[SortKey]:
    """Resolve the [tree] sort setting to a sibling sort key.

    Raises:
        ConfigError: If the sort name is unknown.
    """
    from teamrollup.graph.builder import resolve_sort_key

    try:
        return resolve_sort_key(str(config.get("tree", {}).get("sort", "insertion")))
    except ValueError as e:
        raise ConfigError(str(e)) from e
