"""Tests for structural mutations: reparent, detach, undo."""

import pytest

from teamrollup.errors import MutationRejected
from teamrollup.graph import (
    MutationErrorKind,
    MutationLog,
    detach,
    reparent,
    undo_last,
    valid_parents,
)
from tests.core.graph_test_helpers import build, children_string, make_record, roots_string


def _snapshot(forest):
    """Observable structure: (id, parent_id, depth) in pre-order."""
    return [(n.id, n.parent_id, n.depth) for n in forest.walk("pre")]


class TestReparentRejections:
    """Invalid moves return a typed error and apply nothing."""

    def test_cycle_detected(self, sales_forest):
        before = _snapshot(sales_forest)

        result = reparent(sales_forest, "north", "bay")

        assert not result.ok
        assert result.error.kind == MutationErrorKind.CYCLE_DETECTED
        assert result.error.node_id == "north"
        assert "north -> bay" in result.error.details
        assert result.forest is sales_forest
        assert result.entry is None
        assert _snapshot(sales_forest) == before

    def test_cycle_detected_deep_descendant(self, sales_forest):
        result = reparent(sales_forest, "north", "goals")

        assert result.error.kind == MutationErrorKind.CYCLE_DETECTED

    def test_self_parent(self, sales_forest):
        result = reparent(sales_forest, "bay", "bay")

        assert result.error.kind == MutationErrorKind.SELF_PARENT
        assert result.forest is sales_forest

    def test_node_not_found(self, sales_forest):
        result = reparent(sales_forest, "ghost", "north")

        assert result.error.kind == MutationErrorKind.NODE_NOT_FOUND
        assert result.error.node_id == "ghost"

    def test_new_parent_not_found(self, sales_forest):
        result = reparent(sales_forest, "bay", "ghost")

        assert result.error.kind == MutationErrorKind.NODE_NOT_FOUND
        assert result.error.node_id == "ghost"

    def test_missing_node_reported_before_missing_parent(self, sales_forest):
        result = reparent(sales_forest, "ghost", "phantom")

        assert result.error.kind == MutationErrorKind.NODE_NOT_FOUND
        assert result.error.node_id == "ghost"
        assert result.forest is sales_forest

    def test_member_cannot_be_parent(self, sales_forest):
        result = reparent(sales_forest, "bob", "alice")

        assert result.error.kind == MutationErrorKind.INVALID_PARENT
        assert children_string(sales_forest, "alice") == ""

    def test_unwrap_raises(self, sales_forest):
        result = reparent(sales_forest, "north", "bay")

        with pytest.raises(MutationRejected) as exc_info:
            result.unwrap()
        assert exc_info.value.error is result.error
        assert "CycleDetected" in str(exc_info.value)

    def test_error_to_dict(self, sales_forest):
        error = reparent(sales_forest, "bay", "bay").error

        assert error.to_dict()["kind"] == "SelfParent"
        assert error.to_dict()["nodeId"] == "bay"


class TestReparent:
    """Successful moves."""

    def test_move_between_parents(self, sales_forest):
        result = reparent(sales_forest, "bay", "south")

        assert result.ok
        forest = result.forest
        assert children_string(forest, "north") == "goals"
        assert children_string(forest, "south") == "erin,bay"
        assert forest.find_by_id("bay").parent_id == "south"
        assert result.ancestry == ["south", "bay"]

    def test_subtree_moves_with_node(self, sales_forest):
        forest = reparent(sales_forest, "bay", "goals").unwrap()

        assert forest.ancestry("alice") == ["north", "goals", "bay", "alice"]
        assert forest.find_by_id("bay").depth == 2
        assert forest.find_by_id("alice").depth == 3
        assert forest.find_by_id("bob").depth == 3

    def test_depths_consistent_after_move(self, sales_forest):
        forest = reparent(sales_forest, "north", "south").unwrap()

        for node in forest.all_nodes():
            parent = forest.parent_of(node.id)
            expected = 0 if parent is None else parent.depth + 1
            assert node.depth == expected

    def test_input_forest_unchanged(self, sales_forest):
        before = _snapshot(sales_forest)

        reparent(sales_forest, "bay", "south")

        assert _snapshot(sales_forest) == before
        assert children_string(sales_forest, "north") == "bay,goals"

    def test_untouched_nodes_are_shared(self, sales_forest):
        forest = reparent(sales_forest, "bay", "south").unwrap()

        assert forest.find_by_id("goals") is sales_forest.find_by_id("goals")
        assert forest.find_by_id("carol") is sales_forest.find_by_id("carol")
        assert forest.find_by_id("south") is not sales_forest.find_by_id("south")

    def test_move_root_under_team(self, sales_forest):
        forest = reparent(sales_forest, "south", "north").unwrap()

        assert roots_string(forest) == "north"
        assert children_string(forest, "north") == "bay,goals,south"
        assert forest.find_by_id("erin").depth == 2

    def test_same_parent_is_noop(self, sales_forest):
        result = reparent(sales_forest, "bay", "north")

        assert result.ok
        assert result.forest is sales_forest
        assert result.ancestry == ["north", "bay"]

    def test_entry_payload(self, sales_forest):
        entry = reparent(sales_forest, "bay", "south").entry

        assert entry.operation == "reparent"
        assert entry.to_persist() == {"nodeId": "bay", "newParentId": "south"}
        assert entry.before_state == {"parent_id": "north"}

    def test_moving_repaired_node_clears_repair(self):
        forest = build(make_record("home"), make_record("orphan", "ghost"))

        moved = reparent(forest, "orphan", "home").unwrap()

        assert moved.ancestry("orphan") == ["home", "orphan"]
        assert not moved.has_dangling_references()
        assert forest.has_dangling_references()

    def test_to_records_reflects_move(self, sales_forest):
        forest = reparent(sales_forest, "bay", "south").unwrap()

        parents = {record.id: record.parent_id for record in forest.to_records()}
        assert parents["bay"] == "south"
        assert parents["alice"] == "bay"


class TestDetach:
    def test_detach_promotes_to_root(self, sales_forest):
        result = detach(sales_forest, "bay")

        assert result.ok
        assert roots_string(result.forest) == "north,south,bay"
        assert result.forest.find_by_id("bay").depth == 0
        assert result.forest.find_by_id("alice").depth == 1
        assert result.ancestry == ["bay"]

    def test_detach_root_is_noop(self, sales_forest):
        result = detach(sales_forest, "north")

        assert result.ok
        assert result.forest is sales_forest

    def test_detach_unknown(self, sales_forest):
        assert detach(sales_forest, "ghost").error.kind == MutationErrorKind.NODE_NOT_FOUND


class TestValidParents:
    def test_excludes_self_descendants_and_members(self, sales_forest):
        assert valid_parents(sales_forest, "north") == ["south"]

    def test_leaf(self, sales_forest):
        assert valid_parents(sales_forest, "alice") == ["north", "bay", "goals", "south"]

    def test_unknown_node(self, sales_forest):
        with pytest.raises(KeyError):
            valid_parents(sales_forest, "ghost")


class TestMutationLog:
    def test_log_and_undo(self, sales_forest):
        log = MutationLog()
        result = reparent(sales_forest, "bay", "south")
        log.append(result.entry)

        undone = undo_last(result.forest, log)

        assert undone.ok
        assert children_string(undone.forest, "north") == "goals,bay"
        assert len(log) == 0

    def test_undo_empty_log(self, sales_forest):
        assert undo_last(sales_forest, MutationLog()) is None

    def test_failed_undo_keeps_entry(self, sales_forest):
        log = MutationLog()
        first = reparent(sales_forest, "bay", "south")
        log.append(first.entry)
        # north now sits below bay, so bay cannot go back under north
        second = reparent(first.forest, "north", "bay").unwrap()

        result = undo_last(second, log)

        assert result.ok is False
        assert result.error.kind == MutationErrorKind.CYCLE_DETECTED
        assert len(log) == 1

    def test_entries_since(self, sales_forest):
        log = MutationLog()
        forest = sales_forest
        ids = []
        for node_id, parent in [("bay", "south"), ("goals", "south"), ("erin", None)]:
            result = reparent(forest, node_id, parent)
            log.append(result.entry)
            ids.append(result.entry.id)
            forest = result.forest

        assert [e.target_id for e in log.entries_since(ids[1])] == ["goals", "erin"]
        assert log.find_by_id(ids[1]).target_id == "goals"
        assert log.last().target_id == "erin"
