"""Rollup metric data structures.

This module defines the data structures for hierarchical rollups:
- RatioMetric: A metric derived as numerator / denominator * scale
- DifferenceMetric: A metric derived as minuend - subtrahend
- MetricSpec: Declares which metrics are summed and which are derived
- RolledMetrics: Aggregated metrics for one node
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping


@dataclass(frozen=True)
class RatioMetric:
    """A ratio recomputed from rolled-up additive metrics at every level.

    Ratios are never averaged across children: averaging percentages of
    unevenly sized subtrees gives the wrong answer.

    Attributes:
        name: Name of the derived metric (e.g., "marginPct").
        numerator: Additive metric used as numerator (e.g., "grossProfit").
        denominator: Additive metric used as denominator (e.g., "sales").
        scale: Multiplier applied to the quotient (100 for percentages).
        sentinel: Value reported when the denominator is zero or absent.
    """

    name: str
    numerator: str
    denominator: str
    scale: float = 100.0
    sentinel: float | None = 0.0

    def compute(self, values: Mapping[str, float | int]) -> float | None:
        """Compute the ratio from rolled values."""
        denominator = values.get(self.denominator, 0) or 0
        if denominator == 0:
            return self.sentinel
        numerator = values.get(self.numerator, 0) or 0
        return numerator / denominator * self.scale

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RatioMetric:
        sentinel = data.get("sentinel", 0.0)
        return cls(
            name=str(data["name"]),
            numerator=str(data["numerator"]),
            denominator=str(data["denominator"]),
            scale=float(data.get("scale", 100.0)),
            sentinel=None if sentinel is None else float(sentinel),
        )


@dataclass(frozen=True)
class DifferenceMetric:
    """A difference of two rolled-up additive metrics (e.g., goal gap).

    Attributes:
        name: Name of the derived metric (e.g., "gap").
        minuend: Additive metric subtracted from (e.g., "goal").
        subtrahend: Additive metric subtracted (e.g., "forecast").
    """

    name: str
    minuend: str
    subtrahend: str

    def compute(self, values: Mapping[str, float | int]) -> float | int:
        return (values.get(self.minuend, 0) or 0) - (values.get(self.subtrahend, 0) or 0)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DifferenceMetric:
        return cls(
            name=str(data["name"]),
            minuend=str(data["minuend"]),
            subtrahend=str(data["subtrahend"]),
        )


@dataclass(frozen=True)
class MetricSpec:
    """Declares how each metric rolls up.

    Attributes:
        additive: Metrics summed across a subtree.
        ratios: Metrics recomputed from two rolled additive metrics.
        differences: Metrics computed as the difference of two rolled
            additive metrics.

    Raises:
        ValueError: If a derived metric references an undeclared additive
            metric, or a metric name is declared twice.
    """

    additive: tuple[str, ...] = ()
    ratios: tuple[RatioMetric, ...] = ()
    differences: tuple[DifferenceMetric, ...] = ()

    def __post_init__(self) -> None:
        # Normalize lists passed by callers so the MetricSpec stays hashable
        object.__setattr__(self, "additive", tuple(self.additive))
        object.__setattr__(self, "ratios", tuple(self.ratios))
        object.__setattr__(self, "differences", tuple(self.differences))

        names = self.metric_names()
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Metric declared more than once: {', '.join(duplicates)}")

        additive = set(self.additive)
        for ratio in self.ratios:
            for operand in (ratio.numerator, ratio.denominator):
                if operand not in additive:
                    raise ValueError(
                        f"Ratio '{ratio.name}' uses '{operand}', which is not an additive metric"
                    )
        for diff in self.differences:
            for operand in (diff.minuend, diff.subtrahend):
                if operand not in additive:
                    raise ValueError(
                        f"Difference '{diff.name}' uses '{operand}', which is not an additive metric"
                    )

    def metric_names(self) -> list[str]:
        """All declared metric names, additive first."""
        return (
            list(self.additive)
            + [ratio.name for ratio in self.ratios]
            + [diff.name for diff in self.differences]
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> MetricSpec:
        """Create a spec from {"additive": [...], "ratios": [...], "differences": [...]}."""
        if isinstance(data.get("additive"), str):
            raise ValueError("'additive' must be a list of metric names, not a string")
        return cls(
            additive=tuple(str(name) for name in data.get("additive", ())),
            ratios=tuple(RatioMetric.from_dict(r) for r in data.get("ratios", ())),
            differences=tuple(DifferenceMetric.from_dict(d) for d in data.get("differences", ())),
        )

    @classmethod
    def of(cls, *additive: str, ratios: Iterable[RatioMetric] = ()) -> MetricSpec:
        """Shorthand for specs with additive metrics and optional ratios."""
        return cls(additive=tuple(additive), ratios=tuple(ratios))


@dataclass
class RolledMetrics:
    """Aggregated metrics for one node.

    Computed once by the rollup calculator and stored on the Forest.

    Attributes:
        values: Rolled additive values plus derived ratios and differences.
        present: Metrics for which at least one contributing node in the
            subtree supplied a non-null value.
        contributors: Number of nodes whose direct values count toward
            this node's additive totals.
        from_own_entry: Additive metrics taken from the node's own entered
            value instead of its children (super teams).
    """

    values: dict[str, float | int | None] = field(default_factory=dict)
    present: frozenset[str] = frozenset()
    contributors: int = 0
    from_own_entry: frozenset[str] = frozenset()

    def get(self, name: str, default: Any = None) -> Any:
        """Get a rolled value."""
        return self.values.get(name, default)

    def __getitem__(self, name: str) -> float | int | None:
        return self.values[name]

    def has_data(self, name: str) -> bool:
        """True if any node in the subtree supplied a value for name.

        Distinguishes "rolled up to 0" from "no contributor entered data".
        Derived metrics have data when all of their operands do.
        """
        return name in self.present

    def to_dict(self) -> dict[str, Any]:
        return {
            "values": dict(self.values),
            "present": sorted(self.present),
            "contributors": self.contributors,
        }


__all__ = [
    "RatioMetric",
    "DifferenceMetric",
    "MetricSpec",
    "RolledMetrics",
]
