"""
Shared fixtures for Cedar tests.

Backends are AsyncMocks spec'd on ResearchBackend, so every operation is an
awaitable mock whose calls can be inspected in order.
"""

from unittest.mock import AsyncMock

import pytest

from cedar.config import reset_config
from cedar.core.exceptions import BackendConnectionError, BackendError
from cedar.core.providers.base import ResearchBackend
from cedar.models.project import DataFile, ProjectHandle
from cedar.models.research import (
    CodeExecutionResponse,
    ResearchInitialization,
    ResearchPlanResponse,
    ResearchPlanStep,
    ResearchQuestion,
    ResearchSessionResponse,
    ResearchSource,
)

PERSISTENCE_OPERATIONS = [
    "save_file",
    "add_reference",
    "add_variable",
    "add_library",
    "add_question",
]

ALL_OPERATIONS = [
    "initialize_research",
    "generate_research_plan",
    "execute_code",
    "create_project",
    "start_research",
] + PERSISTENCE_OPERATIONS


def make_initialization() -> ResearchInitialization:
    return ResearchInitialization(
        title="Customer Churn Drivers",
        sources=[
            ResearchSource(title="Paper A", authors="Smith, J.", url="https://example.org/a", summary="Churn models"),
            ResearchSource(title="Paper B", authors="Lee, K.", url="https://example.org/b", summary="Retention"),
        ],
        background_summary="Churn is driven by pricing and support quality.",
        questions=[
            ResearchQuestion(id="q1", question="Which customer segments matter?", category="scope"),
            ResearchQuestion(id="q2", question="What time window should be used?", category="data"),
        ],
    )


def make_plan() -> ResearchPlanResponse:
    return ResearchPlanResponse(
        id="plan-1",
        title="Churn analysis",
        description="Model churn against tenure",
        steps=[
            ResearchPlanStep(
                id="s2",
                title="Summarize",
                code="summary = data.describe()\nprint(summary)",
                order=1,
            ),
            ResearchPlanStep(
                id="s1",
                title="Load data",
                code="import pandas as pd\nimport numpy as np\ndata = pd.read_csv('churn.csv')",
                order=0,
            ),
        ],
        data_files=[DataFile(filename="churn.csv", content="tenure,churned\n1,1\n24,0\n")],
    )


@pytest.fixture(autouse=True)
def clean_config():
    """Make sure cached configuration never leaks between tests."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def backend():
    """Backend where every call succeeds."""
    mock = AsyncMock(spec=ResearchBackend)
    mock.initialize_research.return_value = make_initialization()
    mock.generate_research_plan.return_value = make_plan()
    mock.execute_code.return_value = CodeExecutionResponse(
        output="       tenure\ncount     2.0\nmean     12.5",
        logs="",
    )
    mock.create_project.side_effect = lambda name, goal: ProjectHandle(
        id="proj-1", name=name, goal=goal
    )
    mock.start_research.return_value = ResearchSessionResponse(status="planning")
    for operation in PERSISTENCE_OPERATIONS:
        getattr(mock, operation).return_value = None
    return mock


@pytest.fixture
def failing_backend():
    """Backend where every call fails."""
    mock = AsyncMock(spec=ResearchBackend)
    for operation in ALL_OPERATIONS:
        getattr(mock, operation).side_effect = BackendConnectionError(
            operation, "Backend unreachable"
        )
    return mock


@pytest.fixture
def backend_error():
    """A backend error to use as a side effect."""
    return BackendError("add_reference", "storage full", status_code=507)


@pytest.fixture
def plan_response():
    """The research plan the healthy backend returns."""
    return make_plan()
