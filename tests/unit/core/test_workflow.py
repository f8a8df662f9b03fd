"""
Unit tests for the run state machine.
"""

from datetime import datetime

import pytest

from cedar.core.cells import Cell
from cedar.core.steps import StepType, WORKFLOW_STEPS
from cedar.core.workflow import RunStatus, WorkflowRun, WorkflowTransition
from cedar.models.project import ProjectHandle


# Test WorkflowTransition

class TestWorkflowTransition:
    """Test workflow transition model."""

    def test_create_transition(self):
        """Test creating a transition."""
        transition = WorkflowTransition(
            from_status=RunStatus.IDLE,
            to_status=RunStatus.RUNNING,
            step_index=0,
            action="Goal submitted"
        )

        assert transition.from_status == RunStatus.IDLE
        assert transition.to_status == RunStatus.RUNNING
        assert transition.action == "Goal submitted"
        assert isinstance(transition.timestamp, datetime)
        assert transition.metadata == {}

    def test_transition_with_metadata(self):
        """Test transition with metadata."""
        transition = WorkflowTransition(
            from_status=RunStatus.RUNNING,
            to_status=RunStatus.RUNNING,
            step_index=3,
            action="Generated abstract",
            metadata={"degraded": True}
        )

        assert transition.metadata["degraded"] is True


# Test WorkflowRun

class TestWorkflowRun:
    """Test run state and transitions."""

    @pytest.fixture
    def run(self):
        return WorkflowRun("Analyze churn")

    def test_initial_state(self, run):
        """Test a fresh run."""
        assert run.status == RunStatus.IDLE
        assert run.current_step_index == 0
        assert run.current_step.type == StepType.GOAL
        assert run.project is None
        assert len(run.cells) == 0
        assert run.busy is False
        assert run.transition_history == []

    def test_run_ids_are_distinct(self):
        """Test every run gets its own id."""
        assert WorkflowRun("Analyze churn").run_id != WorkflowRun("Analyze churn").run_id

    def test_runs_do_not_share_cells(self):
        """Test cell stores are per run."""
        first = WorkflowRun("a")
        second = WorkflowRun("b")
        first.cells.append(Cell.create(StepType.GOAL, "a"))

        assert len(second.cells) == 0

    def test_valid_transition(self, run):
        """Test idle to running."""
        transition = run.transition_to(RunStatus.RUNNING, action="Goal submitted")

        assert run.status == RunStatus.RUNNING
        assert transition.from_status == RunStatus.IDLE
        assert len(run.transition_history) == 1

    def test_step_advance_transition(self, run):
        """Test running to running moves the step index."""
        run.transition_to(RunStatus.RUNNING)
        transition = run.transition_to(RunStatus.RUNNING, action="Generated title", step_index=1)

        assert run.current_step_index == 1
        assert run.current_step.type == StepType.TITLE
        assert transition.step_index == 1

    def test_invalid_transition(self, run):
        """Test idle cannot complete directly."""
        with pytest.raises(ValueError, match="Invalid transition"):
            run.transition_to(RunStatus.COMPLETED)

        assert run.status == RunStatus.IDLE
        assert run.transition_history == []

    def test_terminal_states(self, run):
        """Test nothing leaves completed or cancelled."""
        run.transition_to(RunStatus.RUNNING)
        run.transition_to(RunStatus.CANCELLED)

        for target in RunStatus:
            assert run.can_transition_to(target) is False
        with pytest.raises(ValueError):
            run.transition_to(RunStatus.RUNNING)

    def test_progress(self, run):
        """Test progress counts the current step."""
        assert run.progress == pytest.approx(0.1)

        run.transition_to(RunStatus.RUNNING, step_index=4)
        assert run.progress == pytest.approx(0.5)

        run.transition_to(RunStatus.RUNNING, step_index=9)
        assert run.is_last_step is True
        assert run.progress == pytest.approx(1.0)

        run.transition_to(RunStatus.COMPLETED)
        assert run.progress == 1.0

    def test_recent_transitions(self, run):
        """Test getting the last transitions."""
        run.transition_to(RunStatus.RUNNING)
        for index in range(1, 8):
            run.transition_to(RunStatus.RUNNING, step_index=index)

        recent = run.get_recent_transitions(3)

        assert len(recent) == 3
        assert [t.step_index for t in recent] == [5, 6, 7]

    def test_to_dict(self, run):
        """Test exporting run state."""
        run.transition_to(RunStatus.RUNNING)
        run.project = ProjectHandle(id="proj-1", name="Churn")
        run.cells.append(Cell.create(StepType.GOAL, "Analyze churn"))

        state = run.to_dict()

        assert state["goal"] == "Analyze churn"
        assert state["status"] == "running"
        assert state["current_step"] == "goal"
        assert state["project_id"] == "proj-1"
        assert len(state["cells"]) == 1
        assert state["transition_count"] == 1
        assert state["recent_transitions"][0]["to"] == "running"

    def test_custom_registry_length(self):
        """Test the last step follows the registry."""
        run = WorkflowRun("x", registry=WORKFLOW_STEPS)
        run.transition_to(RunStatus.RUNNING, step_index=len(WORKFLOW_STEPS) - 1)

        assert run.current_step.type == StepType.WRITEUP
