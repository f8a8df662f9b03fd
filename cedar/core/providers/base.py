"""
Research backend contract.

The orchestrator consumes AI generation, code execution and project storage
through this interface only. Every operation is a single request/response
call and may raise BackendError.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Optional

from cedar.models.project import Library, ProjectHandle, Question, Reference, VariableInfo
from cedar.models.research import (
    CodeExecutionResponse,
    ResearchInitialization,
    ResearchPlanResponse,
    ResearchSessionResponse,
    ResearchSource,
)


class FileType(str, Enum):
    """Kinds of project files accepted by `save_file`."""

    DATA = "data"
    VISUALIZATION = "visualization"
    WRITE_UP = "write_up"


class ResearchBackend(ABC):
    """
    Abstract research backend.

    Implementations translate these calls to a transport (HTTP, IPC, an
    in-process service) and raise BackendError on any failure.
    """

    name = "abstract"

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}

    async def close(self) -> None:
        """Release transport resources."""
        return None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    # Generation and execution

    @abstractmethod
    async def initialize_research(self, goal: str) -> ResearchInitialization:
        """Generate a title, literature sources and a background summary for a goal."""

    @abstractmethod
    async def generate_research_plan(
        self,
        goal: str,
        answers: Dict[str, str],
        sources: List[ResearchSource],
        background_summary: str
    ) -> ResearchPlanResponse:
        """Generate a stepwise research plan."""

    @abstractmethod
    async def execute_code(self, code: str, session_id: str) -> CodeExecutionResponse:
        """Execute a Python script in the session's sandbox."""

    # Project storage

    @abstractmethod
    async def create_project(self, name: str, goal: str) -> ProjectHandle:
        """Create a project and return its handle."""

    @abstractmethod
    async def start_research(
        self,
        project_id: str,
        session_id: str,
        goal: str,
        answers: Dict[str, str]
    ) -> ResearchSessionResponse:
        """Open a research session for a project."""

    @abstractmethod
    async def save_file(
        self,
        project_id: str,
        filename: str,
        content: str,
        file_type: FileType
    ) -> None:
        """Store a file in the project."""

    @abstractmethod
    async def add_reference(self, project_id: str, reference: Reference) -> None:
        """Append a reference to the project."""

    @abstractmethod
    async def add_variable(self, project_id: str, variable: VariableInfo) -> None:
        """Append a variable to the project."""

    @abstractmethod
    async def add_library(self, project_id: str, library: Library) -> None:
        """Append a library to the project."""

    @abstractmethod
    async def add_question(self, project_id: str, question: Question) -> None:
        """Append a question to the project."""
