"""
Record loading utilities.

Centralized functions for reading flat record snapshots and turning them
into forests according to configuration. Used by every CLI command; the
engine itself never touches files.
"""

import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from teamrollup.config import metric_spec_from_config, sort_key_from_config
from teamrollup.graph.builder import build_forest
from teamrollup.graph.forest import Forest
from teamrollup.graph.records import FlatRecord, records_from_dicts
from teamrollup.graph.rollup import rollup


def parse_records(data: Any) -> List[FlatRecord]:
    """Convert decoded JSON to records.

    Accepts a list of record objects or an object with a "records" list.

    Raises:
        ValueError: If the shape is not recognised or a record has no id.
    """
    if isinstance(data, dict) and "records" in data:
        data = data["records"]
    if not isinstance(data, list):
        raise ValueError("Expected a list of records or an object with a 'records' list")
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise ValueError(f"Record {index} is not an object")
    return records_from_dicts(data)


def load_records(source: Union[str, Path]) -> List[FlatRecord]:
    """Read records from a JSON file, or from stdin when source is "-".

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the content is not valid JSON or not a record list.
    """
    if str(source) == "-":
        text = sys.stdin.read()
    else:
        text = Path(source).read_text(encoding="utf-8")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {source}: {e}") from e
    return parse_records(data)


def load_forest(
    source: Union[str, Path],
    config: Dict[str, Any],
    sort: Optional[str] = None,
    rolled: bool = True,
) -> Forest:
    """Load records and build (and optionally roll up) a forest.

    Args:
        source: JSON file path or "-"
        config: Configuration dict with [metrics] and [tree] sections
        sort: Sort order overriding config["tree"]["sort"]
        rolled: Roll up with the configured MetricSpec

    Returns:
        The built forest
    """
    if sort is not None:
        config = {**config, "tree": {**config.get("tree", {}), "sort": sort}}
    forest = build_forest(load_records(source), sort_key=sort_key_from_config(config))
    if rolled:
        forest = rollup(forest, metric_spec_from_config(config))
    return forest


def dump_records(records: List[FlatRecord]) -> str:
    """Serialize records to the JSON list shape load_records() reads."""
    return json.dumps([record.to_dict() for record in records], indent=2)
