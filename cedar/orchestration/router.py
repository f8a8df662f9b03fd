"""
Data router: persists a completed cell's artifacts to the project.

Dispatch is on the cell's step type:
    references → add_reference, one call per reference
    data       → save_file(..., data), one call per data file
    code       → add_variable per variable, then add_library per library
    writeup    → save_file("research_write_up.md", ..., write_up), once
    other      → nothing to persist

Calls are issued sequentially in metadata order. The first failing call
stops the pass; calls already issued are not rolled back.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from pydantic import BaseModel

from cedar.core.cells import Cell
from cedar.core.exceptions import RoutingError
from cedar.core.providers.base import FileType, ResearchBackend
from cedar.core.steps import StepType
from cedar.models.project import DataFile, Library, Question, Reference, VariableInfo

logger = logging.getLogger(__name__)

WRITE_UP_FILENAME = "research_write_up.md"


@dataclass
class RoutingResult:
    """Outcome of routing one cell."""
    success: bool
    message: str
    step_type: Optional[StepType] = None
    calls_issued: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "success": self.success,
            "message": self.message,
            "step_type": self.step_type.value if self.step_type else None,
            "calls_issued": self.calls_issued,
        }


class DataRouter:
    """
    Routes cell artifacts to a project's collections.

    Example:
        ```python
        router = DataRouter(backend, project.id)
        result = await router.route(references_cell)
        if not result.success:
            logger.error(result.message)
        ```
    """

    def __init__(self, backend: ResearchBackend, project_id: str):
        self.backend = backend
        self.project_id = project_id

    async def route(self, cell: Cell) -> RoutingResult:
        """
        Persist the artifacts of a completed cell.

        Returns:
            RoutingResult: success, or the first failure with the number of
            calls that were issued before it
        """
        step_type = StepType(cell.type)
        metadata = cell.metadata or {}
        calls = 0

        try:
            if step_type == StepType.REFERENCES:
                calls += await self._route_each(
                    step_type, metadata.get("references") or [], self._add_reference
                )
            elif step_type == StepType.DATA:
                calls += await self._route_each(
                    step_type, metadata.get("data_files") or [], self._save_data_file
                )
            elif step_type == StepType.CODE:
                calls += await self._route_each(
                    step_type, metadata.get("variables") or [], self._add_variable
                )
                calls += await self._route_each(
                    step_type, metadata.get("libraries") or [], self._add_library, offset=calls
                )
            elif step_type == StepType.WRITEUP:
                calls += await self._route_each(step_type, [cell.content], self._save_write_up)
            else:
                logger.debug(f"Nothing to route for {step_type.value} cell {cell.id}")
        except RoutingError as e:
            logger.error(f"Error routing {step_type.value} cell {cell.id}: {e}")
            return RoutingResult(
                success=False,
                message=f"Error routing data: {e}",
                step_type=step_type,
                calls_issued=e.calls_issued,
            )

        if calls:
            logger.info(f"Routed {calls} item(s) from {step_type.value} cell to project {self.project_id}")
        return RoutingResult(
            success=True,
            message="Data routed successfully",
            step_type=step_type,
            calls_issued=calls,
        )

    async def route_questions(self, questions: Sequence[Any]) -> RoutingResult:
        """Persist research questions suggested during initialization."""
        try:
            calls = await self._route_each(StepType.TITLE, list(questions), self._add_question)
        except RoutingError as e:
            logger.error(f"Error routing questions: {e}")
            return RoutingResult(
                success=False,
                message=f"Error routing questions: {e}",
                step_type=StepType.TITLE,
                calls_issued=e.calls_issued,
            )
        return RoutingResult(
            success=True,
            message="Questions routed successfully",
            step_type=StepType.TITLE,
            calls_issued=calls,
        )

    async def _route_each(
        self,
        step_type: StepType,
        items: List[Any],
        persist: Callable[[Any], Awaitable[None]],
        offset: int = 0
    ) -> int:
        """Persist items one at a time; return how many calls were issued."""
        issued = 0
        for position, item in enumerate(items):
            issued += 1
            try:
                await persist(item)
            except Exception as e:
                raise RoutingError(
                    step_type.value,
                    f"{persist.__name__.lstrip('_')} failed for item {position + 1}/{len(items)}: {e}",
                    calls_issued=offset + issued,
                )
        return issued

    # Persistence calls

    async def _add_reference(self, reference):
        await self.backend.add_reference(self.project_id, Reference.model_validate(reference))

    async def _save_data_file(self, data_file):
        data_file = DataFile.model_validate(data_file)
        await self.backend.save_file(
            self.project_id, data_file.filename, data_file.content, FileType.DATA
        )

    async def _add_variable(self, variable):
        await self.backend.add_variable(self.project_id, VariableInfo.model_validate(variable))

    async def _add_library(self, library):
        await self.backend.add_library(self.project_id, Library.model_validate(library))

    async def _save_write_up(self, content):
        await self.backend.save_file(
            self.project_id, WRITE_UP_FILENAME, content, FileType.WRITE_UP
        )

    async def _add_question(self, question):
        if not isinstance(question, Question):
            data = question.model_dump() if isinstance(question, BaseModel) else dict(question)
            fields = {"question": data["question"], "category": "initial"}
            if data.get("id"):
                fields["id"] = data["id"]
            if data.get("category"):
                fields["related_to"] = [data["category"]]
            question = Question(**fields)
        await self.backend.add_question(self.project_id, question)
