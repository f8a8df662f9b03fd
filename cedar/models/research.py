"""
Request/response models for the research backend.

Backends are free to return more fields than listed here; extra fields are
kept so nothing the backend sends is silently dropped.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from cedar.models.project import DataFile


class ResearchSource(BaseModel):
    """A literature source suggested during initialization."""

    title: str
    authors: str = ""
    url: Optional[str] = None
    summary: str = ""


class ResearchQuestion(BaseModel):
    """A clarifying question suggested during initialization."""

    id: str = ""
    question: str
    category: str = "scope"  # "data", "approach", "scope", "preferences"
    required: bool = False


class ResearchInitialization(BaseModel):
    """Response of `initialize_research`."""

    model_config = ConfigDict(extra="allow")

    title: str = ""
    sources: List[ResearchSource] = Field(default_factory=list)
    background_summary: str = ""
    questions: List[ResearchQuestion] = Field(default_factory=list)


class ResearchPlanStep(BaseModel):
    """One executable step of a generated research plan."""

    id: str = ""
    title: str = ""
    description: str = ""
    code: Optional[str] = None
    status: str = "pending"
    order: int = 0


class ResearchPlanResponse(BaseModel):
    """Response of `generate_research_plan`."""

    model_config = ConfigDict(extra="allow")

    id: str = ""
    title: str = ""
    description: str = ""
    steps: List[ResearchPlanStep] = Field(default_factory=list)
    data_files: List[DataFile] = Field(default_factory=list)
    created_at: Optional[str] = None
    status: str = "draft"


class CodeExecutionResponse(BaseModel):
    """Response of `execute_code`."""

    model_config = ConfigDict(extra="allow")

    output: str = ""
    logs: str = ""


class ResearchSessionResponse(BaseModel):
    """Response of `start_research`."""

    model_config = ConfigDict(extra="allow")

    cells: Optional[List[Dict[str, Any]]] = None
    status: str = "planning"
