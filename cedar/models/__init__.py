"""
Data models for Cedar.

- project: per-project collection records (references, variables, ...)
- research: backend request/response payloads
- artifacts: payloads produced by the artifact generators
"""

from cedar.models.project import (
    DataFile,
    Library,
    ProjectHandle,
    Question,
    Reference,
    VariableInfo,
)
from cedar.models.research import (
    CodeExecutionResponse,
    ResearchInitialization,
    ResearchPlanResponse,
    ResearchPlanStep,
    ResearchQuestion,
    ResearchSessionResponse,
    ResearchSource,
)
from cedar.models.artifacts import Evaluation, PlanOutline, StepArtifact

__all__ = [
    "DataFile",
    "Library",
    "ProjectHandle",
    "Question",
    "Reference",
    "VariableInfo",
    "CodeExecutionResponse",
    "ResearchInitialization",
    "ResearchPlanResponse",
    "ResearchPlanStep",
    "ResearchQuestion",
    "ResearchSessionResponse",
    "ResearchSource",
    "Evaluation",
    "PlanOutline",
    "StepArtifact",
]
