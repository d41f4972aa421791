"""Tests for forest aggregate and query functions."""

import pytest

from teamrollup.graph import (
    count_by_kind,
    deepest_level,
    filter_forest,
    forest_stats,
    node_path,
    search,
)
from tests.core.graph_test_helpers import build, make_record


class TestAggregates:
    def test_count_by_kind(self, sales_forest):
        assert count_by_kind(sales_forest) == {"team": 3, "superTeam": 1, "member": 5}

    def test_deepest_level(self, sales_forest):
        assert deepest_level(sales_forest) == 2

    def test_deepest_level_empty(self):
        assert deepest_level(build()) == 0

    def test_forest_stats(self, sales_forest):
        stats = forest_stats(sales_forest)

        assert stats.total_nodes == 9
        assert stats.teams == 3
        assert stats.super_teams == 1
        assert stats.members == 5
        assert stats.roots == 2
        assert stats.repairs == 0

    def test_forest_stats_counts_repairs(self):
        stats = forest_stats(build(make_record("a", "b"), make_record("b", "a"), make_record("c", "x")))

        assert stats.repairs == 2


class TestNodePath:
    def test_uses_labels(self, sales_forest):
        assert node_path(sales_forest, "alice") == "North / Bay Area / alice"

    def test_custom_separator(self, sales_forest):
        assert node_path(sales_forest, "bay", ">") == "North>Bay Area"

    def test_unknown_node(self, sales_forest):
        with pytest.raises(KeyError):
            node_path(sales_forest, "ghost")


class TestFiltering:
    def test_keeps_ancestors_of_matches(self, sales_forest):
        filtered = filter_forest(sales_forest, lambda node: node.id == "carol")

        assert [n.id for n in filtered.walk("pre")] == ["north", "goals", "carol"]
        assert filtered.find_by_id("carol").depth == 2

    def test_carries_rollups(self, rolled_forest):
        filtered = filter_forest(rolled_forest, lambda node: node.id == "alice")

        assert filtered.rolled("north")["sales"] == 650
        assert filtered.metric_spec == rolled_forest.metric_spec

    def test_input_unchanged(self, sales_forest):
        filter_forest(sales_forest, lambda node: False)

        assert sales_forest.node_count() == 9

    def test_search_is_case_insensitive(self, sales_forest):
        result = search(sales_forest, "BAY")

        ids = {n.id for n in result.all_nodes()}
        assert {"north", "bay", "alice", "bob"} <= ids
        assert "south" not in ids

    def test_search_matches_id(self, sales_forest):
        result = search(sales_forest, "erin")

        assert [n.id for n in result.walk("pre")] == ["south", "erin"]

    def test_empty_search_returns_forest(self, sales_forest):
        assert search(sales_forest, "  ") is sales_forest
