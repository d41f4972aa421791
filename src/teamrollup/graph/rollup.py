"""Rollup Calculator - bottom-up aggregation over a Forest.

The calculator walks each tree children-first with an explicit stack and
combines every node's own contribution with its children's already
computed rollups:

- team: own values plus the sum of the children's rolled values
- member: own values (members are leaves)
- super team: when it has entered a value for any additive metric, its
  own entry is the entire contribution for every additive metric (absent
  fields count as 0); members stay attached for drill-down but are not
  summed again. A super team with no entry at all falls back to the sum
  of its children.

Ratio and difference metrics are recomputed at every level from the rolled
additive values, never averaged from the children's ratios.
"""

from __future__ import annotations

import logging

from teamrollup.graph.forest import Forest
from teamrollup.graph.metrics import MetricSpec, RolledMetrics
from teamrollup.graph.TreeNode import NodeKind, TreeNode

logger = logging.getLogger(__name__)


class RollupCalculator:
    """Computes RolledMetrics for every node of a forest.

    The calculator is stateless apart from its MetricSpec, so one instance
    can serve any number of forests.

    Example:
        spec = MetricSpec(
            additive=("sales", "grossProfit"),
            ratios=(RatioMetric("marginPct", "grossProfit", "sales"),),
        )
        rolled = RollupCalculator(spec).rollup(forest)
        rolled.rolled("west")["marginPct"]
    """

    def __init__(self, metric_spec: MetricSpec) -> None:
        self.metric_spec = metric_spec

    def rollup(self, forest: Forest, reuse: bool = True) -> Forest:
        """Return a new forest annotated with rolled metrics.

        The input forest is not modified.

        Args:
            forest: The forest to aggregate.
            reuse: Reuse rollups the forest already carries when they were
                computed with an equal MetricSpec (for example, untouched
                subtrees after a mutation). Cached subtrees are not
                traversed again.

        Returns:
            A forest sharing the input's nodes, with rollups for every node.
        """
        cache: dict[str, RolledMetrics] = {}
        if reuse and forest.metric_spec == self.metric_spec:
            cache = {
                node_id: rolled
                for node_id, rolled in forest._rollups.items()
                if node_id in forest
            }
        reused = len(cache)

        rollups = dict(cache)
        limit = forest.node_count()
        visits = 0
        for root in forest.iter_roots():
            # (node, children_done) work-list; children are pushed on first visit
            stack: list[tuple[TreeNode, bool]] = [(root, False)]
            while stack:
                node, children_done = stack.pop()
                if node.id in rollups and not children_done:
                    continue
                if children_done:
                    rollups[node.id] = self.combine(node, rollups)
                    continue
                visits += 1
                if visits > limit:
                    logger.warning("Rollup stopped after %d nodes; structure is not a forest", limit)
                    break
                stack.append((node, True))
                for child in node.iter_children():
                    if child.id not in rollups:
                        stack.append((child, False))

        logger.debug(
            "Rolled up %d nodes (%d reused) for metrics %s",
            len(rollups),
            reused,
            ", ".join(self.metric_spec.metric_names()) or "<none>",
        )
        return forest.with_rollups(self.metric_spec, rollups)

    def combine(self, node: TreeNode, rollups: dict[str, RolledMetrics]) -> RolledMetrics:
        """Combine a node's own values with its children's rollups.

        Args:
            node: The node to aggregate.
            rollups: Already computed rollups, keyed by node id; must hold
                every child of node.
        """
        spec = self.metric_spec
        children = [rollups[child.id] for child in node.iter_children() if child.id in rollups]

        values: dict[str, float | int | None] = {}
        present: set[str] = set()
        from_own: set[str] = set()
        own_contributes = False
        child_contributors = 0
        summed_children = False

        if node.kind == NodeKind.SUPER_TEAM and any(
            node.has_own_value(name) for name in spec.additive
        ):
            # Own entry supersedes the members for every additive metric at once
            for name in spec.additive:
                own = node.get_metric(name)
                values[name] = own if own is not None else 0
                if own is not None:
                    present.add(name)
                from_own.add(name)
            own_contributes = True
        else:
            for name in spec.additive:
                own = node.get_metric(name)
                total = own if own is not None else 0
                if own is not None:
                    present.add(name)
                    own_contributes = True
                if node.kind != NodeKind.MEMBER:
                    summed_children = True
                    for rolled in children:
                        total += rolled.values.get(name) or 0
                        if rolled.has_data(name):
                            present.add(name)
                values[name] = total

        if summed_children:
            child_contributors = sum(rolled.contributors for rolled in children)

        for ratio in spec.ratios:
            values[ratio.name] = ratio.compute(values)
            if ratio.numerator in present and ratio.denominator in present:
                present.add(ratio.name)
        for diff in spec.differences:
            values[diff.name] = diff.compute(values)
            if diff.minuend in present and diff.subtrahend in present:
                present.add(diff.name)

        return RolledMetrics(
            values=values,
            present=frozenset(present),
            contributors=child_contributors + (1 if own_contributes else 0),
            from_own_entry=frozenset(from_own),
        )


def rollup(forest: Forest, metric_spec: MetricSpec) -> Forest:
    """Roll up a forest with the given MetricSpec (pure function)."""
    return RollupCalculator(metric_spec).rollup(forest)


__all__ = ["RollupCalculator", "rollup"]
