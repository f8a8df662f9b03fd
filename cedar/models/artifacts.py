"""
Payloads produced by the artifact generators.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from cedar.core.steps import StepType
from cedar.models.project import DataFile
from cedar.models.research import ResearchPlanStep


class PlanOutline(BaseModel):
    """What the analysis script should do, derived from the research plan."""

    script_purpose: str = "Analysis script"
    required_data: str = "Sample data"
    expected_output: str = "Analysis results"
    steps: List[ResearchPlanStep] = Field(default_factory=list)
    data_files: List[DataFile] = Field(default_factory=list)

    def describe(self) -> str:
        return (
            f"Script Purpose: {self.script_purpose}\n\n"
            f"Required Data: {self.required_data}\n\n"
            f"Expected Output: {self.expected_output}"
        )


class Evaluation(BaseModel):
    """Assessment of execution results and the recommended next step."""

    evaluation: str
    needs_more_data: bool = False
    next_steps: str = "Proceed to final write-up"
    execution_succeeded: Optional[bool] = None

    def describe(self) -> str:
        return (
            f"Evaluation: {self.evaluation}\n\n"
            f"Needs More Data: {str(self.needs_more_data).lower()}\n\n"
            f"Next Steps: {self.next_steps}"
        )


@dataclass
class StepArtifact:
    """
    Output of one generator call.

    `degraded` is set when `content`/`metadata` are the step's fallback
    payload rather than generated output; `error` then carries the reason.
    """
    step_type: StepType
    content: str
    metadata: Optional[Dict[str, Any]] = None
    degraded: bool = False
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        metadata = None
        if self.metadata is not None:
            metadata = {key: _dump(value) for key, value in self.metadata.items()}
        return {
            "step_type": self.step_type.value,
            "content": self.content,
            "metadata": metadata,
            "degraded": self.degraded,
            "error": self.error,
        }


def _dump(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [_dump(item) for item in value]
    return value
