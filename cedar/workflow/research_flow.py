"""
Integrated research flow controller.

Drives one research run through the fixed pipeline:

    submit_goal(goal)
        → goal cell (step 0)
        → title cell (step 1), project created, questions routed
    advance()  [repeated, one call per user confirmation]
        → mark current cell completed
        → route its artifacts to the project
        → generate and append the next cell
    advance() at writeup
        → run completed, project handed back to the caller

Each controller owns at most one live run. Independent controllers share no
state and may run concurrently.
"""

import inspect
import logging
from typing import Any, Callable, Dict, List, Optional

from cedar.core.cells import Cell, CellStatus, CellStore
from cedar.core.exceptions import InvariantViolation
from cedar.core.providers.base import ResearchBackend
from cedar.core.steps import StepDefinition, StepRegistry, StepType, WORKFLOW_STEPS
from cedar.core.workflow import RunStatus, WorkflowRun, WorkflowTransition
from cedar.models.artifacts import StepArtifact
from cedar.models.project import ProjectHandle
from cedar.orchestration.generators import ArtifactGenerator
from cedar.orchestration.router import DataRouter, RoutingResult

logger = logging.getLogger(__name__)

NO_PROJECT_MESSAGE = "No project available for routing"


class ResearchFlowController:
    """
    Step-by-step controller for the research pipeline.

    Example:
        ```python
        async with HttpResearchBackend() as backend:
            controller = ResearchFlowController(backend)
            await controller.submit_goal("Analyze churn")

            while controller.status == RunStatus.RUNNING:
                cell = await controller.advance()

            project = controller.project
        ```
    """

    def __init__(
        self,
        backend: ResearchBackend,
        registry: StepRegistry = WORKFLOW_STEPS,
        generator: Optional[ArtifactGenerator] = None,
        on_complete: Optional[Callable[[Optional[ProjectHandle]], Any]] = None
    ):
        """
        Initialize the controller.

        Args:
            backend: Research backend used for generation and persistence
            registry: Pipeline definition; must start with the goal step
            generator: Artifact generator (defaults to one over ``backend``)
            on_complete: Called with the project handle when a run completes.
                May be a coroutine function.
        """
        if len(registry) == 0 or registry.step_at(0).type != StepType.GOAL:
            raise ValueError("Pipeline must start with the goal step")

        self.backend = backend
        self.registry = registry
        self.generator = generator or ArtifactGenerator(backend)
        self.on_complete = on_complete

        self._run: Optional[WorkflowRun] = None

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def run(self) -> Optional[WorkflowRun]:
        return self._run

    @property
    def status(self) -> RunStatus:
        return self._run.status if self._run else RunStatus.IDLE

    @property
    def project(self) -> Optional[ProjectHandle]:
        return self._run.project if self._run else None

    @property
    def cells(self) -> CellStore:
        return self._run.cells if self._run else CellStore()

    @property
    def current_step(self) -> Optional[StepDefinition]:
        return self._run.current_step if self._run else None

    @property
    def progress(self) -> float:
        return self._run.progress if self._run else 0.0

    @property
    def busy(self) -> bool:
        return bool(self._run and self._run.busy)

    @property
    def transition_history(self) -> List[WorkflowTransition]:
        return list(self._run.transition_history) if self._run else []

    @property
    def routing_results(self) -> List[RoutingResult]:
        return list(self._run.routing_results) if self._run else []

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def submit_goal(self, goal: str) -> WorkflowRun:
        """
        Start a new run for a research goal.

        Appends the goal cell, then generates the title step right away.
        The title step also creates the project and starts its research
        session.

        Args:
            goal: Research goal stated by the user

        Returns:
            WorkflowRun: The new run, or the current one if a run is
            already in progress

        Raises:
            ValueError: If the goal is blank
        """
        if not goal or not goal.strip():
            raise ValueError("Research goal cannot be empty")

        if self._run is not None and self._run.status == RunStatus.RUNNING:
            logger.warning(f"Run {self._run.run_id[:8]} is already in progress, ignoring new goal")
            return self._run

        goal = goal.strip()
        run = WorkflowRun(goal, registry=self.registry)
        self._run = run

        logger.info(f"Starting research run {run.run_id[:8]} for goal: {goal}")
        run.transition_to(RunStatus.RUNNING, action="Goal submitted", step_index=0)

        goal_cell = self._make_cell(
            run,
            StepArtifact(step_type=StepType.GOAL, content=goal),
            step_index=0,
            status=CellStatus.COMPLETED,
            can_proceed=False,
            requires_user_action=False,
        )
        run.cells.append(goal_cell)

        if len(self.registry) == 1:
            await self._complete(run)
            return run

        run.busy = True
        try:
            title_step = self.registry.step_at(1)
            artifact = await self.generator.generate(title_step.type, goal, run.cells)

            if run is not self._run or run.status != RunStatus.RUNNING:
                logger.info(f"Run {run.run_id[:8]} was cancelled during title generation")
                return run

            run.cells.append(self._make_cell(run, artifact, step_index=1))
            run.transition_to(
                RunStatus.RUNNING,
                action=f"Generated {title_step.type.value}",
                step_index=1,
                metadata={"degraded": artifact.degraded},
            )

            if title_step.type == StepType.TITLE:
                await self._create_project(run, artifact)
        finally:
            run.busy = False

        return run

    async def advance(self) -> Optional[Cell]:
        """
        Complete the current step and move to the next one.

        A no-op returning None while a previous call is in flight, when no
        run is in progress, or when the current cell is missing.

        Returns:
            Cell: The newly appended cell, or None if nothing was appended
            (including when the run just completed)
        """
        run = self._run
        if run is None or run.status != RunStatus.RUNNING:
            logger.debug("advance() called with no run in progress")
            return None
        if run.busy:
            logger.debug(f"Run {run.run_id[:8]} is busy, ignoring advance()")
            return None

        run.busy = True
        try:
            index = run.current_step_index
            cell = run.cells.at(index)
            expected = run.current_step
            if cell is None or expected is None or cell.type != expected.type:
                error = InvariantViolation(
                    f"No {expected.type.value if expected else 'known'} cell at step {index}",
                    {"run_id": run.run_id, "cells": [t.value for t in run.cells.types()]}
                )
                logger.error(f"Skipping advance: {error}")
                return None

            run.cells.update_status(cell.id, CellStatus.COMPLETED, can_proceed=False)
            await self._route(run, cell)

            if run is not self._run or run.status != RunStatus.RUNNING:
                logger.info(f"Run {run.run_id[:8]} was cancelled while routing {cell.type.value}")
                return None

            if run.is_last_step:
                await self._complete(run)
                return None

            next_index = index + 1
            next_step = self.registry.step_at(next_index)
            artifact = await self.generator.generate(
                next_step.type, run.goal, run.cells, session_id=self._session_id(run)
            )

            if run is not self._run or run.status != RunStatus.RUNNING:
                logger.info(
                    f"Run {run.run_id[:8]} was cancelled during {next_step.type.value} "
                    f"generation, discarding result"
                )
                return None

            if StepType(artifact.step_type) != next_step.type:
                error = InvariantViolation(
                    f"Generated {StepType(artifact.step_type).value} for step "
                    f"{next_index} ({next_step.type.value})"
                )
                logger.error(f"Skipping advance: {error}")
                return None

            new_cell = self._make_cell(run, artifact, step_index=next_index)
            run.cells.append(new_cell)
            run.transition_to(
                RunStatus.RUNNING,
                action=f"Generated {next_step.type.value}",
                step_index=next_index,
                metadata={"degraded": artifact.degraded},
            )
            return new_cell
        finally:
            run.busy = False

    def cancel(self) -> bool:
        """
        Cancel the run in progress.

        Data already routed to the project stays there. An advance() still
        in flight discards whatever it generates.

        Returns:
            bool: True if a running run was cancelled
        """
        run = self._run
        if run is None or not run.can_transition_to(RunStatus.CANCELLED):
            logger.debug("cancel() called with no run in progress")
            return False

        run.transition_to(RunStatus.CANCELLED, action="Cancelled by user")
        logger.info(
            f"Run {run.run_id[:8]} cancelled at step {run.current_step_index}; "
            f"{len(run.cells)} cells generated"
        )
        return True

    async def run_to_completion(self, goal: Optional[str] = None) -> Optional[ProjectHandle]:
        """
        Advance until the run completes or is cancelled.

        Args:
            goal: If given, a new run is started for it first

        Returns:
            ProjectHandle: The project of a completed run, or None
        """
        if goal is not None:
            await self.submit_goal(goal)

        while self._run is not None and self._run.status == RunStatus.RUNNING:
            before = self._run.current_step_index
            await self.advance()
            if self._run.status == RunStatus.RUNNING and self._run.current_step_index == before:
                logger.error(f"Run {self._run.run_id[:8]} made no progress at step {before}, stopping")
                break

        if self._run is not None and self._run.status == RunStatus.COMPLETED:
            return self._run.project
        return None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _make_cell(
        self,
        run: WorkflowRun,
        artifact: StepArtifact,
        step_index: int,
        **fields
    ) -> Cell:
        fields.setdefault("can_proceed", True)
        return Cell.create(
            StepType(artifact.step_type),
            artifact.content,
            metadata=artifact.metadata,
            degraded=artifact.degraded,
            error=artifact.error,
            step_order=step_index,
            total_steps=len(run.registry),
            **fields
        )

    @staticmethod
    def _session_id(run: WorkflowRun) -> str:
        if run.project is not None and run.project.session_id:
            return run.project.session_id
        return "temp"

    async def _create_project(self, run: WorkflowRun, title_artifact: StepArtifact) -> None:
        """Create the project for a run and start its research session."""
        metadata = title_artifact.metadata or {}
        title = metadata.get("title") or title_artifact.content

        try:
            project = await self.backend.create_project(title, run.goal)
        except Exception as e:
            logger.error(f"Failed to create project for run {run.run_id[:8]}: {e}")
            return

        run.project = project
        logger.info(f"Created project {project.id} ({title})")

        session_id = f"session_{project.id}"
        try:
            session = await self.backend.start_research(project.id, session_id, run.goal, {})
            project.session_id = session_id
            project.session_status = getattr(session, "status", None)
        except Exception as e:
            logger.error(f"Failed to start research session for project {project.id}: {e}")

        questions = metadata.get("questions") or []
        if questions:
            result = await DataRouter(self.backend, project.id).route_questions(questions)
            run.routing_results.append(result)

    async def _route(self, run: WorkflowRun, cell: Cell) -> RoutingResult:
        if run.project is None:
            result = RoutingResult(
                success=False,
                message=NO_PROJECT_MESSAGE,
                step_type=StepType(cell.type),
            )
            logger.warning(f"{NO_PROJECT_MESSAGE}: {cell.type.value} cell {cell.id} not persisted")
        else:
            result = await DataRouter(self.backend, run.project.id).route(cell)
            if not result.success:
                logger.warning(f"Continuing after routing failure: {result.message}")

        run.routing_results.append(result)
        return result

    async def _complete(self, run: WorkflowRun) -> None:
        run.transition_to(RunStatus.COMPLETED, action="Research flow completed")
        logger.info(
            f"Run {run.run_id[:8]} completed with {len(run.cells)} cells"
            + (f" for project {run.project.id}" if run.project else " (no project)")
        )

        if self.on_complete is not None:
            outcome = self.on_complete(run.project)
            if inspect.isawaitable(outcome):
                await outcome

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Export controller state to a dictionary."""
        if self._run is None:
            return {
                "status": RunStatus.IDLE.value,
                "progress": 0.0,
                "cells": [],
                "routing_results": [],
            }

        state = self._run.to_dict()
        state["busy"] = self._run.busy
        state["routing_results"] = [r.to_dict() for r in self._run.routing_results]
        return state

    def get_statistics(self) -> Dict[str, Any]:
        """Summarize the current run."""
        cells = list(self.cells)
        failures = [r for r in self.routing_results if not r.success]

        return {
            "run_id": self._run.run_id if self._run else None,
            "status": self.status.value,
            "progress": self.progress,
            "total_steps": len(self.registry),
            "cells": len(cells),
            "completed_cells": sum(1 for c in cells if c.status == CellStatus.COMPLETED),
            "degraded_steps": [c.type.value for c in cells if c.degraded],
            "routing_calls": sum(r.calls_issued for r in self.routing_results),
            "routing_failures": len(failures),
            "routing_failure_messages": [r.message for r in failures],
            "transitions": len(self.transition_history),
        }
