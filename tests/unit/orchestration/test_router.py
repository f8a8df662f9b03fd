"""
Unit tests for the data router.
"""

import asyncio
from unittest.mock import call

import pytest

from cedar.core.cells import Cell
from cedar.core.providers.base import FileType
from cedar.core.steps import StepType
from cedar.models.project import DataFile, Library, Question, Reference, VariableInfo
from cedar.models.research import ResearchQuestion
from cedar.orchestration.router import WRITE_UP_FILENAME, DataRouter


@pytest.fixture
def router(backend):
    return DataRouter(backend, "proj-1")


def route(router, cell):
    return asyncio.run(router.route(cell))


class TestReferences:
    """Test routing of reference cells."""

    def test_references_routed_in_order(self, router, backend):
        """Test [A, B] yields two add_reference calls, A then B."""
        ref_a = Reference(id="a", title="Paper A")
        ref_b = Reference(id="b", title="Paper B")
        cell = Cell.create(StepType.REFERENCES, "Found 2", metadata={"references": [ref_a, ref_b]})

        result = route(router, cell)

        assert result.success is True
        assert result.calls_issued == 2
        assert backend.add_reference.await_args_list == [
            call("proj-1", ref_a),
            call("proj-1", ref_b),
        ]

    def test_references_as_dicts(self, router, backend):
        """Test plain dictionaries are validated into references."""
        cell = Cell.create(StepType.REFERENCES, "Found 1", metadata={"references": [{"title": "Paper C"}]})

        route(router, cell)

        sent = backend.add_reference.await_args.args[1]
        assert isinstance(sent, Reference)
        assert sent.title == "Paper C"

    def test_no_references(self, router, backend):
        """Test an empty list issues nothing."""
        result = route(router, Cell.create(StepType.REFERENCES, "Found 0", metadata={"references": []}))

        assert result.success is True
        assert result.calls_issued == 0
        backend.add_reference.assert_not_awaited()

    def test_missing_metadata(self, router, backend):
        """Test a cell without metadata routes nothing."""
        result = route(router, Cell.create(StepType.REFERENCES, "Found 0"))

        assert result.success is True
        backend.add_reference.assert_not_awaited()


class TestCode:
    """Test routing of code cells."""

    def test_variables_then_libraries(self, router, backend):
        """Test 2 variables and 3 libraries produce exactly 2 + 3 calls in order."""
        variables = [VariableInfo(name="data"), VariableInfo(name="model")]
        libraries = [Library(name="pandas"), Library(name="numpy"), Library(name="scikit-learn")]
        cell = Cell.create(StepType.CODE, "code", metadata={"variables": variables, "libraries": libraries})

        result = route(router, cell)

        assert result.success is True
        assert result.calls_issued == 5
        assert backend.add_variable.await_count == 2
        assert backend.add_library.await_count == 3
        assert [c.args[1].name for c in backend.add_variable.await_args_list] == ["data", "model"]
        assert [c.args[1].name for c in backend.add_library.await_args_list] == [
            "pandas", "numpy", "scikit-learn"
        ]

    def test_library_failure_counts_variable_calls(self, router, backend, backend_error):
        """Test issued calls include the variables already sent."""
        backend.add_library.side_effect = [None, backend_error, None]
        cell = Cell.create(StepType.CODE, "code", metadata={
            "variables": [VariableInfo(name="data"), VariableInfo(name="model")],
            "libraries": [Library(name="pandas"), Library(name="numpy"), Library(name="scipy")],
        })

        result = route(router, cell)

        assert result.success is False
        assert result.calls_issued == 4
        assert backend.add_library.await_count == 2


class TestFiles:
    """Test routing of data and write-up cells."""

    def test_data_files(self, router, backend):
        """Test one save_file per data file, tagged as data."""
        cell = Cell.create(StepType.DATA, "Generated 2 data files", metadata={"data_files": [
            DataFile(filename="a.csv", content="x\n1\n"),
            {"filename": "b.csv", "content": "y\n2\n"},
        ]})

        result = route(router, cell)

        assert result.calls_issued == 2
        assert backend.save_file.await_args_list == [
            call("proj-1", "a.csv", "x\n1\n", FileType.DATA),
            call("proj-1", "b.csv", "y\n2\n", FileType.DATA),
        ]

    def test_invalid_data_file_is_a_routing_failure(self, router, backend):
        """Test a malformed item fails the pass instead of raising."""
        cell = Cell.create(StepType.DATA, "Generated 1 data files", metadata={"data_files": [
            {"filename": "../escape.csv"},
        ]})

        result = route(router, cell)

        assert result.success is False
        assert result.calls_issued == 1
        backend.save_file.assert_not_awaited()

    def test_writeup(self, router, backend):
        """Test exactly one save_file with the fixed name."""
        cell = Cell.create(StepType.WRITEUP, "# Research Report: churn")

        result = route(router, cell)

        assert result.success is True
        backend.save_file.assert_awaited_once_with(
            "proj-1", WRITE_UP_FILENAME, "# Research Report: churn", FileType.WRITE_UP
        )
        assert WRITE_UP_FILENAME == "research_write_up.md"


class TestNoOpTypes:
    """Test cells with nothing to persist."""

    @pytest.mark.parametrize("step_type", [
        StepType.GOAL,
        StepType.TITLE,
        StepType.ABSTRACT,
        StepType.PLAN,
        StepType.RESULTS,
        StepType.EVALUATION,
    ])
    def test_no_calls(self, router, backend, step_type):
        """Test success with no backend calls."""
        result = route(router, Cell.create(step_type, "content", metadata={"anything": [1, 2]}))

        assert result.success is True
        assert result.calls_issued == 0
        assert result.message == "Data routed successfully"
        assert backend.method_calls == []

    @pytest.mark.parametrize("step_type,key", [
        (StepType.REFERENCES, "references"),
        (StepType.DATA, "data_files"),
        (StepType.CODE, "variables"),
        (StepType.CODE, "libraries"),
    ])
    def test_null_collection(self, router, backend, step_type, key):
        """Test a null collection in metadata routes nothing."""
        result = route(router, Cell.create(step_type, "content", metadata={key: None}))

        assert result.success is True
        assert result.calls_issued == 0
        assert backend.method_calls == []


class TestPartialFailure:
    """Test failure semantics."""

    def test_stops_at_first_failure(self, router, backend, backend_error):
        """Test later items are not sent and earlier ones are not rolled back."""
        backend.add_reference.side_effect = [None, backend_error, None]
        refs = [Reference(title=t) for t in ("A", "B", "C")]
        cell = Cell.create(StepType.REFERENCES, "Found 3", metadata={"references": refs})

        result = route(router, cell)

        assert result.success is False
        assert result.step_type == StepType.REFERENCES
        assert result.calls_issued == 2
        assert backend.add_reference.await_count == 2
        assert result.message.startswith("Error routing data:")
        assert "storage full" in result.message
        assert "2/3" in result.message

    def test_result_to_dict(self, router, backend, backend_error):
        """Test the result can be reported."""
        backend.save_file.side_effect = backend_error

        data = route(router, Cell.create(StepType.WRITEUP, "report")).to_dict()

        assert data["success"] is False
        assert data["step_type"] == "writeup"
        assert data["calls_issued"] == 1


class TestQuestions:
    """Test routing of initialization questions."""

    def test_questions_converted(self, router, backend):
        """Test research questions become initial project questions."""
        questions = [
            ResearchQuestion(id="q1", question="Which segments?", category="scope"),
            {"question": "Which window?", "category": "data"},
        ]

        result = asyncio.run(router.route_questions(questions))

        assert result.success is True
        assert result.calls_issued == 2
        sent = [c.args[1] for c in backend.add_question.await_args_list]
        assert all(isinstance(q, Question) for q in sent)
        assert sent[0].id == "q1"
        assert sent[0].category == "initial"
        assert sent[0].related_to == ["scope"]
        assert sent[1].question == "Which window?"
        assert sent[1].status == "pending"

    def test_question_failure(self, router, backend, backend_error):
        """Test a failed question is reported."""
        backend.add_question.side_effect = backend_error

        result = asyncio.run(router.route_questions([Question(question="Why?")]))

        assert result.success is False
        assert result.message.startswith("Error routing questions:")
