"""
Artifact generators for the research pipeline.

One coroutine per step type turns the goal and earlier artifacts into the
next step's payload. Generation is best effort: a failing backend call or
malformed input never propagates. The generator logs it and returns the
step's fixed fallback payload, flagged as degraded.

Step dependencies:
    title       ← goal
    references  ← goal
    abstract    ← goal, references
    plan        ← goal, abstract
    data        ← plan
    code        ← plan, data files
    results     ← code
    evaluation  ← goal, results
    writeup     ← goal, abstract, results, evaluation
"""

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from cedar.core.cells import Cell, CellStore
from cedar.core.exceptions import GenerationError, InvariantViolation
from cedar.core.providers.base import ResearchBackend
from cedar.core.steps import StepType
from cedar.models.artifacts import Evaluation, PlanOutline, StepArtifact
from cedar.models.project import DataFile, Library, Reference, VariableInfo
from cedar.orchestration.code_analysis import detect_libraries, detect_variables

logger = logging.getLogger(__name__)


FALLBACK_TITLE = "Research Project"
FALLBACK_ABSTRACT = "Abstract generation failed."
FALLBACK_EXECUTION_OUTPUT = "Code execution failed"
FALLBACK_EVALUATION = "Results evaluation failed"
FALLBACK_WRITEUP = "Write-up generation failed."
PROCEED_TO_WRITEUP = "Proceed to final write-up"

PLACEHOLDER_SCRIPT = """# Research Analysis Script
# Purpose: {purpose}

import pandas as pd
import numpy as np
import matplotlib.pyplot as plt
import seaborn as sns

# Load and analyze data
print("Starting research analysis...")

# Placeholder: no executable steps were generated for this plan

print("Analysis completed!")
"""


def placeholder_variables() -> List[VariableInfo]:
    return [
        VariableInfo(name="data", type_name="DataFrame", purpose="Main dataset"),
        VariableInfo(name="results", type_name="dict", purpose="Analysis results"),
    ]


def placeholder_libraries() -> List[Library]:
    return [
        Library(name="pandas", version="1.5.0", source="manual", required_by=["code"]),
        Library(name="numpy", version="1.24.0", source="manual", required_by=["code"]),
        Library(name="matplotlib", version="3.6.0", source="manual", required_by=["code"]),
        Library(name="seaborn", version="0.12.0", source="manual", required_by=["code"]),
    ]


def _has_errors(output: str, logs: str) -> bool:
    text = f"{output}\n{logs}"
    return "Traceback (most recent call last)" in text or "Error:" in output


class ArtifactGenerator:
    """
    Produces the payload of each pipeline step.

    Holds a backend reference and nothing else: calling a generator twice
    with the same inputs is safe, and fallback payloads are identical
    across calls.

    Example:
        ```python
        generator = ArtifactGenerator(backend)
        artifact = await generator.generate(StepType.TITLE, goal, cells)
        if artifact.degraded:
            print(artifact.error)
        ```
    """

    def __init__(self, backend: ResearchBackend):
        self.backend = backend

        self._handlers: Dict[StepType, Callable[[str, CellStore, str], Awaitable[StepArtifact]]] = {
            StepType.TITLE: self._title_from_cells,
            StepType.REFERENCES: self._references_from_cells,
            StepType.ABSTRACT: self._abstract_from_cells,
            StepType.PLAN: self._plan_from_cells,
            StepType.DATA: self._data_from_cells,
            StepType.CODE: self._code_from_cells,
            StepType.RESULTS: self._results_from_cells,
            StepType.EVALUATION: self._evaluation_from_cells,
            StepType.WRITEUP: self._writeup_from_cells,
        }

        missing = [t.value for t in StepType if t != StepType.GOAL and t not in self._handlers]
        if missing:
            raise InvariantViolation(f"No generator registered for steps: {missing}")

    def supported_steps(self) -> List[StepType]:
        return list(self._handlers)

    async def generate(
        self,
        step_type: StepType,
        goal: str,
        cells: CellStore,
        session_id: str = "temp"
    ) -> StepArtifact:
        """
        Generate the artifact for a step from the run's existing cells.

        Raises:
            InvariantViolation: If the step has no generator (the goal step
                is entered by the user, not generated)
        """
        handler = self._handlers.get(StepType(step_type))
        if handler is None:
            raise InvariantViolation(f"Step '{StepType(step_type).value}' is not generated")
        return await handler(goal, cells, session_id)

    def _fallback(
        self,
        step_type: StepType,
        error: Exception,
        content: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> StepArtifact:
        logger.warning(f"Generating {step_type.value} failed, using fallback: {error}")
        return StepArtifact(
            step_type=step_type,
            content=content,
            metadata=metadata,
            degraded=True,
            error=str(error),
        )

    # ------------------------------------------------------------------
    # Step generators
    # ------------------------------------------------------------------

    async def generate_title(self, goal: str) -> StepArtifact:
        try:
            response = await self.backend.initialize_research(goal)
            title = response.title.strip()
            if not title:
                raise GenerationError(StepType.TITLE.value, "Backend returned no title")
        except Exception as e:
            return self._fallback(
                StepType.TITLE, e,
                f"Project Title: {FALLBACK_TITLE}",
                {"title": FALLBACK_TITLE, "questions": []}
            )

        return StepArtifact(
            step_type=StepType.TITLE,
            content=f"Project Title: {title}",
            metadata={"title": title, "questions": list(response.questions)},
        )

    async def generate_references(self, goal: str) -> StepArtifact:
        try:
            response = await self.backend.initialize_research(goal)
            references = [
                Reference(
                    title=source.title,
                    authors=source.authors,
                    url=source.url,
                    content=source.summary,
                )
                for source in response.sources
            ]
        except Exception as e:
            return self._fallback(
                StepType.REFERENCES, e,
                "Found 0 academic references:",
                {"references": []}
            )

        return StepArtifact(
            step_type=StepType.REFERENCES,
            content=f"Found {len(references)} academic references:",
            metadata={"references": references},
        )

    async def generate_abstract(self, goal: str, references: List[Reference]) -> StepArtifact:
        try:
            response = await self.backend.initialize_research(goal)
            abstract = response.background_summary.strip()
            if not abstract:
                raise GenerationError(StepType.ABSTRACT.value, "Backend returned no background summary")
        except Exception as e:
            return self._fallback(StepType.ABSTRACT, e, FALLBACK_ABSTRACT)

        logger.debug(f"Abstract generated with {len(references)} references in context")
        return StepArtifact(step_type=StepType.ABSTRACT, content=abstract)

    async def generate_plan(self, goal: str, abstract: str) -> StepArtifact:
        try:
            response = await self.backend.generate_research_plan(
                goal=goal,
                answers={},
                sources=[],
                background_summary=abstract,
            )
            plan = PlanOutline(
                script_purpose=response.description.strip() or "Analysis script",
                steps=sorted(response.steps, key=lambda step: step.order),
                data_files=list(response.data_files),
            )
        except Exception as e:
            plan = PlanOutline()
            return self._fallback(StepType.PLAN, e, plan.describe(), {"plan": plan})

        return StepArtifact(
            step_type=StepType.PLAN,
            content=plan.describe(),
            metadata={"plan": plan},
        )

    async def generate_data(self, plan: Optional[PlanOutline]) -> StepArtifact:
        try:
            if plan is None:
                raise GenerationError(StepType.DATA.value, "No research plan available")
            data_files = [DataFile.model_validate(f) for f in plan.data_files]
        except Exception as e:
            return self._fallback(
                StepType.DATA, e,
                "No data files required",
                {"data_files": []}
            )

        if data_files:
            content = f"Generated {len(data_files)} data files"
        else:
            content = "No data files required"
        return StepArtifact(
            step_type=StepType.DATA,
            content=content,
            metadata={"data_files": data_files},
        )

    async def generate_code(
        self,
        plan: Optional[PlanOutline],
        data_files: List[DataFile]
    ) -> StepArtifact:
        purpose = plan.script_purpose if plan else "Analysis script"
        try:
            if plan is None:
                raise GenerationError(StepType.CODE.value, "No research plan available")
            code = self._assemble_script(plan, data_files)
            libraries = detect_libraries(code)
            variables = detect_variables(code)
        except Exception as e:
            return self._fallback(
                StepType.CODE, e,
                PLACEHOLDER_SCRIPT.format(purpose=purpose),
                {"variables": placeholder_variables(), "libraries": placeholder_libraries()}
            )

        return StepArtifact(
            step_type=StepType.CODE,
            content=code,
            metadata={"variables": variables, "libraries": libraries},
        )

    def _assemble_script(self, plan: PlanOutline, data_files: List[DataFile]) -> str:
        """Join the plan's executable steps into one script."""
        blocks = []
        for step in plan.steps:
            if step.code and step.code.strip():
                header = f"# Step {step.order + 1}: {step.title}" if step.title else f"# Step {step.order + 1}"
                blocks.append(f"{header}\n{step.code.strip()}\n")

        if not blocks:
            raise GenerationError(StepType.CODE.value, "Plan has no executable steps")

        lines = ["# Research Analysis Script", f"# Purpose: {plan.script_purpose}"]
        if data_files:
            lines.append("# Data files: " + ", ".join(f.filename for f in data_files))
        script = "\n".join(lines) + "\n\n" + "\n".join(blocks)

        compile(script, "<analysis>", "exec")
        return script

    async def generate_results(self, code: str, session_id: str) -> StepArtifact:
        try:
            if not code.strip():
                raise GenerationError(StepType.RESULTS.value, "No code to execute")
            response = await self.backend.execute_code(code, session_id)
            output = response.output or "No output"
            logs = response.logs or "No logs"
        except Exception as e:
            output = FALLBACK_EXECUTION_OUTPUT
            logs = str(e)
            return self._fallback(
                StepType.RESULTS, e,
                f"Output:\n{output}\n\nLogs:\n{logs}",
                {"output": output, "logs": logs}
            )

        return StepArtifact(
            step_type=StepType.RESULTS,
            content=f"Output:\n{output}\n\nLogs:\n{logs}",
            metadata={"output": output, "logs": logs},
        )

    async def generate_evaluation(
        self,
        goal: str,
        results: Optional[Dict[str, Any]],
        execution_failed: bool = False
    ) -> StepArtifact:
        try:
            if not results:
                raise GenerationError(StepType.EVALUATION.value, "No execution results available")
            output = str(results.get("output", ""))
            logs = str(results.get("logs", ""))
            failed = execution_failed or _has_errors(output, logs)
            output_lines = len([line for line in output.splitlines() if line.strip()])

            if failed:
                evaluation = Evaluation(
                    evaluation=(
                        f"Analysis did not complete cleanly for: {goal}\n\n"
                        "Results summary:\n"
                        "- Execution reported errors\n"
                        "- Review the logs before relying on these results"
                    ),
                    needs_more_data=False,
                    next_steps="Revise the analysis script, then proceed to final write-up",
                    execution_succeeded=False,
                )
            else:
                evaluation = Evaluation(
                    evaluation=(
                        f"Analysis completed for: {goal}\n\n"
                        "Results summary:\n"
                        "- Code executed successfully\n"
                        f"- {output_lines} lines of output captured\n"
                        "- Ready for final write-up"
                    ),
                    needs_more_data=False,
                    next_steps=PROCEED_TO_WRITEUP,
                    execution_succeeded=True,
                )
        except Exception as e:
            # Recommends proceeding even though nothing was evaluated
            evaluation = Evaluation(
                evaluation=FALLBACK_EVALUATION,
                needs_more_data=False,
                next_steps=PROCEED_TO_WRITEUP,
            )
            return self._fallback(StepType.EVALUATION, e, evaluation.describe(), {"evaluation": evaluation})

        return StepArtifact(
            step_type=StepType.EVALUATION,
            content=evaluation.describe(),
            metadata={"evaluation": evaluation},
        )

    async def generate_writeup(
        self,
        goal: str,
        abstract: Optional[str],
        results: Optional[Dict[str, Any]],
        evaluation: Optional[Evaluation]
    ) -> StepArtifact:
        try:
            if abstract is None or results is None or evaluation is None:
                raise GenerationError(
                    StepType.WRITEUP.value,
                    "Write-up needs the abstract, results and evaluation"
                )
            report = self._render_report(goal, abstract, results, evaluation)
        except Exception as e:
            return self._fallback(StepType.WRITEUP, e, FALLBACK_WRITEUP)

        return StepArtifact(step_type=StepType.WRITEUP, content=report)

    @staticmethod
    def _render_report(
        goal: str,
        abstract: str,
        results: Dict[str, Any],
        evaluation: Evaluation
    ) -> str:
        output = str(results.get("output", "")).strip() or "No output"

        report = f"# Research Report: {goal}\n\n"
        report += "## Executive Summary\n\n"
        report += f"This research project aimed to {goal[:1].lower()}{goal[1:]}.\n\n"
        report += "## Background\n\n"
        report += f"{abstract}\n\n"
        report += "## Methodology\n\n"
        report += "1. **Data Collection**: Gathering relevant data sources\n"
        report += "2. **Data Analysis**: Running the generated Python analysis script\n"
        report += "3. **Evaluation**: Reviewing execution output against the research goal\n\n"
        report += "## Results\n\n"
        report += f"```\n{output}\n```\n\n"
        report += "## Evaluation\n\n"
        report += f"{evaluation.evaluation}\n\n"
        report += f"**Next Steps**: {evaluation.next_steps}\n\n"
        report += "---\n\n"
        report += "*This report was generated automatically as part of the integrated research workflow.*\n"
        return report

    # ------------------------------------------------------------------
    # Context extraction
    # ------------------------------------------------------------------

    @staticmethod
    def _metadata(cell: Optional[Cell], key: str, default=None):
        if cell is None or not cell.metadata:
            return default
        return cell.metadata.get(key, default)

    async def _title_from_cells(self, goal, cells, session_id):
        return await self.generate_title(goal)

    async def _references_from_cells(self, goal, cells, session_id):
        return await self.generate_references(goal)

    async def _abstract_from_cells(self, goal, cells, session_id):
        references = self._metadata(cells.find_latest_by_type(StepType.REFERENCES), "references", [])
        return await self.generate_abstract(goal, references)

    async def _plan_from_cells(self, goal, cells, session_id):
        abstract_cell = cells.find_latest_by_type(StepType.ABSTRACT)
        return await self.generate_plan(goal, abstract_cell.content if abstract_cell else "")

    async def _data_from_cells(self, goal, cells, session_id):
        plan = self._metadata(cells.find_latest_by_type(StepType.PLAN), "plan")
        return await self.generate_data(plan)

    async def _code_from_cells(self, goal, cells, session_id):
        plan = self._metadata(cells.find_latest_by_type(StepType.PLAN), "plan")
        data_files = self._metadata(cells.find_latest_by_type(StepType.DATA), "data_files", [])
        return await self.generate_code(plan, data_files)

    async def _results_from_cells(self, goal, cells, session_id):
        code_cell = cells.find_latest_by_type(StepType.CODE)
        return await self.generate_results(code_cell.content if code_cell else "", session_id)

    async def _evaluation_from_cells(self, goal, cells, session_id):
        results_cell = cells.find_latest_by_type(StepType.RESULTS)
        results = results_cell.metadata if results_cell else None
        execution_failed = bool(results_cell and results_cell.degraded)
        return await self.generate_evaluation(goal, results, execution_failed)

    async def _writeup_from_cells(self, goal, cells, session_id):
        abstract_cell = cells.find_latest_by_type(StepType.ABSTRACT)
        results_cell = cells.find_latest_by_type(StepType.RESULTS)
        evaluation = self._metadata(cells.find_latest_by_type(StepType.EVALUATION), "evaluation")
        return await self.generate_writeup(
            goal,
            abstract_cell.content if abstract_cell else None,
            results_cell.metadata if results_cell else None,
            evaluation,
        )
