"""
Step registry for the integrated research flow.

The pipeline is a fixed, ordered sequence of ten steps:
GOAL → TITLE → REFERENCES → ABSTRACT → PLAN → DATA → CODE
→ RESULTS → EVALUATION → WRITEUP
"""

from enum import Enum
from typing import Iterator, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict


class StepType(str, Enum):
    """Step types of the research pipeline, in pipeline order."""

    GOAL = "goal"
    TITLE = "title"
    REFERENCES = "references"
    ABSTRACT = "abstract"
    PLAN = "plan"
    DATA = "data"
    CODE = "code"
    RESULTS = "results"
    EVALUATION = "evaluation"
    WRITEUP = "writeup"


class StepDefinition(BaseModel):
    """A single stage of the pipeline."""

    model_config = ConfigDict(frozen=True)

    type: StepType
    title: str
    description: str


class StepRegistry:
    """
    Ordered, read-only lookup table of step definitions.

    A step's identity is its position in the registry.
    """

    def __init__(self, steps: Sequence[StepDefinition]):
        types = [step.type for step in steps]
        if len(set(types)) != len(types):
            raise ValueError(f"Duplicate step types in registry: {types}")
        self._steps = tuple(steps)
        self._index = {step.type: i for i, step in enumerate(self._steps)}

    def step_at(self, index: int) -> Optional[StepDefinition]:
        """Return the step at index, or None when out of range."""
        if 0 <= index < len(self._steps):
            return self._steps[index]
        return None

    def index_of(self, step_type: StepType) -> int:
        """
        Return the pipeline position of a step type.

        Raises:
            KeyError: If the step type is not part of this registry
        """
        return self._index[StepType(step_type)]

    def types(self) -> List[StepType]:
        return [step.type for step in self._steps]

    def __len__(self) -> int:
        return len(self._steps)

    def __iter__(self) -> Iterator[StepDefinition]:
        return iter(self._steps)

    def __contains__(self, step_type) -> bool:
        return step_type in self._index


WORKFLOW_STEPS = StepRegistry([
    StepDefinition(type=StepType.GOAL, title="Research Goal",
                   description="Enter your research question"),
    StepDefinition(type=StepType.TITLE, title="Project Title",
                   description="AI-generated project title"),
    StepDefinition(type=StepType.REFERENCES, title="Academic References",
                   description="Research papers and sources"),
    StepDefinition(type=StepType.ABSTRACT, title="Research Abstract",
                   description="Introduction and methodology"),
    StepDefinition(type=StepType.PLAN, title="Research Plan",
                   description="Detailed execution plan"),
    StepDefinition(type=StepType.DATA, title="Data Generation",
                   description="Generate required datasets"),
    StepDefinition(type=StepType.CODE, title="Python Script",
                   description="Analysis code and dependencies"),
    StepDefinition(type=StepType.RESULTS, title="Execution Results",
                   description="Code output and analysis"),
    StepDefinition(type=StepType.EVALUATION, title="Results Evaluation",
                   description="AI evaluation and next steps"),
    StepDefinition(type=StepType.WRITEUP, title="Final Write-up",
                   description="Complete research report"),
])
