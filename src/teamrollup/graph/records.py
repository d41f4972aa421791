"""Flat input records.

A FlatRecord is one row of the snapshot a caller fetches from its backend:
an id, an optional parent reference, a node kind, and the node's directly
entered metrics. Upstream exports are known to be incomplete, so parsing
degrades rather than fails wherever the record can still be placed.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from teamrollup.graph.TreeNode import NodeKind

logger = logging.getLogger(__name__)

MetricValue = float | int | None


def _coerce_metric(record_id: str, name: str, value: Any) -> MetricValue:
    """Coerce one metric value to a number or None."""
    if value is None:
        return None
    if isinstance(value, bool):
        logger.warning("Record %s: boolean value for metric %r ignored", record_id, name)
        return None
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            logger.warning("Record %s: non-finite value for metric %r ignored", record_id, name)
            return None
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            logger.warning("Record %s: non-numeric value %r for metric %r ignored", record_id, value, name)
            return None
        if not math.isfinite(number):
            logger.warning("Record %s: non-finite value for metric %r ignored", record_id, name)
            return None
        return int(number) if number.is_integer() and "." not in text else number
    logger.warning("Record %s: unsupported value type %s for metric %r ignored", record_id, type(value).__name__, name)
    return None


def _first_present(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


@dataclass(frozen=True)
class FlatRecord:
    """One team or contributor as supplied by the caller.

    Attributes:
        id: Unique, stable identifier.
        kind: Node kind.
        parent_id: Parent reference, None for roots.
        name: Optional display label.
        own_metrics: Metric name to numeric value or None.
    """

    id: str
    kind: NodeKind = NodeKind.TEAM
    parent_id: str | None = None
    name: str = ""
    own_metrics: dict[str, MetricValue] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FlatRecord:
        """Create a record from a mapping.

        Accepts the camelCase wire shape (parentId, ownMetrics) as well as
        snake_case keys (parent_id, own_metrics).

        Raises:
            ValueError: If the mapping has no usable id.
        """
        raw_id = data.get("id")
        if raw_id is None or str(raw_id).strip() == "":
            raise ValueError(f"Record without an id: {dict(data)!r}")
        record_id = str(raw_id)

        raw_kind = data.get("kind", NodeKind.TEAM.value)
        kind = NodeKind.parse(raw_kind)
        if kind is None:
            logger.warning("Record %s: unknown kind %r, treating as team", record_id, raw_kind)
            kind = NodeKind.TEAM

        raw_parent = _first_present(data, "parentId", "parent_id")
        parent_id = str(raw_parent) if raw_parent not in (None, "") else None

        raw_metrics = _first_present(data, "ownMetrics", "own_metrics") or {}
        if not isinstance(raw_metrics, Mapping):
            logger.warning("Record %s: ownMetrics is not a mapping, ignored", record_id)
            raw_metrics = {}
        metrics = {
            str(name): _coerce_metric(record_id, str(name), value)
            for name, value in raw_metrics.items()
        }

        return cls(
            id=record_id,
            kind=kind,
            parent_id=parent_id,
            name=str(data.get("name") or ""),
            own_metrics=metrics,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the camelCase wire shape."""
        result: dict[str, Any] = {"id": self.id, "kind": self.kind.value}
        if self.parent_id is not None:
            result["parentId"] = self.parent_id
        if self.name:
            result["name"] = self.name
        result["ownMetrics"] = dict(self.own_metrics)
        return result


def records_from_dicts(items: Iterable[Mapping[str, Any]]) -> list[FlatRecord]:
    """Convert mappings to FlatRecords, preserving order."""
    return [FlatRecord.from_dict(item) for item in items]


__all__ = ["FlatRecord", "MetricValue", "records_from_dicts"]
