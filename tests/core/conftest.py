"""Pytest fixtures for core tests."""

import pytest


@pytest.fixture
def sales_records():
    """Two regions with teams, a super team and members.

    north (team)
      bay (team)          alice=100/15  bob=50/10
      goals (superTeam)   own sales 500; members carol=300, dave=500
    south (team)          own sales 20
      erin (member)       sales=80/20
    """
    from tests.core.graph_test_helpers import make_member, make_record, make_super_team

    return [
        make_record("north", name="North"),
        make_record("bay", "north", name="Bay Area"),
        make_member("alice", "bay", sales=100, grossProfit=15),
        make_member("bob", "bay", sales=50, grossProfit=10),
        make_super_team("goals", "north", sales=500),
        make_member("carol", "goals", sales=300),
        make_member("dave", "goals", sales=500),
        make_record("south", name="South", sales=20),
        make_member("erin", "south", sales=80, grossProfit=20),
    ]


@pytest.fixture
def sales_forest(sales_records):
    """Built (not rolled) forest for sales_records."""
    from tests.core.graph_test_helpers import build

    return build(*sales_records)


@pytest.fixture
def rolled_forest(sales_forest):
    """sales_forest rolled up with sales, grossProfit and marginPct."""
    from teamrollup.graph import rollup
    from tests.core.graph_test_helpers import SALES_SPEC

    return rollup(sales_forest, SALES_SPEC)


@pytest.fixture
def chain_forest():
    """root -> mid -> leaf, plus a sibling root."""
    from tests.core.graph_test_helpers import build, make_member, make_record

    return build(
        make_record("root"),
        make_record("mid", "root"),
        make_member("leaf", "mid", sales=1),
        make_record("other"),
    )
