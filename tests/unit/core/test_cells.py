"""
Unit tests for cells and the cell store.
"""

from datetime import datetime

import pytest

from cedar.core.cells import Cell, CellStatus, CellStore
from cedar.core.steps import StepType
from cedar.models.project import Reference


@pytest.fixture
def store():
    store = CellStore()
    store.append(Cell.create(StepType.GOAL, "Analyze churn"))
    store.append(Cell.create(StepType.TITLE, "Project Title: Churn"))
    return store


class TestCell:
    """Test cell creation."""

    def test_create_defaults(self):
        """Test a new cell is active and waits for the user."""
        cell = Cell.create(StepType.ABSTRACT, "Churn is driven by ...")

        assert cell.id.startswith("abstract_")
        assert cell.type == StepType.ABSTRACT
        assert cell.status == CellStatus.ACTIVE
        assert cell.requires_user_action is True
        assert cell.can_proceed is False
        assert cell.degraded is False
        assert cell.error is None
        assert isinstance(cell.timestamp, datetime)

    def test_ids_are_unique(self):
        """Test ids differ for cells of the same type."""
        ids = {Cell.create(StepType.TITLE, "x").id for _ in range(20)}
        assert len(ids) == 20

    def test_to_dict_serializes_metadata_models(self):
        """Test nested pydantic models are dumped to plain data."""
        cell = Cell.create(
            StepType.REFERENCES,
            "Found 1 academic references:",
            metadata={"references": [Reference(id="r1", title="Paper A")]},
        )

        data = cell.to_dict()

        assert data["type"] == "references"
        assert data["status"] == "active"
        assert data["metadata"]["references"][0]["title"] == "Paper A"
        assert isinstance(data["timestamp"], str)


class TestCellStore:
    """Test the append-only store."""

    def test_append_preserves_order(self, store):
        """Test cells keep insertion order."""
        assert store.types() == [StepType.GOAL, StepType.TITLE]
        assert len(store) == 2
        assert store.at(1).type == StepType.TITLE
        assert store.at(2) is None

    def test_update_status(self, store):
        """Test updating status and can_proceed in place."""
        cell = store.at(1)

        updated = store.update_status(cell.id, CellStatus.COMPLETED, can_proceed=False)

        assert updated is True
        assert store.at(1).status == CellStatus.COMPLETED
        assert store.at(1).can_proceed is False

    def test_update_status_keeps_can_proceed_when_omitted(self, store):
        """Test can_proceed is untouched unless given."""
        cell = store.at(1)
        cell.can_proceed = True

        store.update_status(cell.id, CellStatus.ERROR)

        assert cell.status == CellStatus.ERROR
        assert cell.can_proceed is True

    def test_update_unknown_cell_is_noop(self, store):
        """Test updating a missing id changes nothing."""
        before = store.to_list()

        updated = store.update_status("title_deadbeef", CellStatus.COMPLETED)

        assert updated is False
        assert store.to_list() == before

    def test_find_latest_by_type(self, store):
        """Test the most recent cell of a type wins."""
        newer = Cell.create(StepType.TITLE, "Project Title: Newer")
        store.append(newer)

        assert store.find_latest_by_type(StepType.TITLE) is newer
        assert store.find_latest_by_type(StepType.CODE) is None

    def test_iteration_is_over_snapshot(self, store):
        """Test appending while iterating does not affect the loop."""
        seen = []
        for cell in store:
            seen.append(cell.type)
            if len(store) < 4:
                store.append(Cell.create(StepType.REFERENCES, "x"))

        assert seen == [StepType.GOAL, StepType.TITLE]
