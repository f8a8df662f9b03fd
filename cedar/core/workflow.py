"""
Run state for the integrated research flow.

A run moves through IDLE → RUNNING → COMPLETED, or RUNNING → CANCELLED.
While RUNNING, the step index walks the pipeline from GOAL to WRITEUP.
"""

import logging
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from pydantic import BaseModel, Field

from cedar.core.cells import CellStore
from cedar.core.steps import StepDefinition, StepRegistry, WORKFLOW_STEPS
from cedar.models.project import ProjectHandle

if TYPE_CHECKING:
    from cedar.orchestration.router import RoutingResult

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RunStatus(str, Enum):
    """States of a research run."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class WorkflowTransition(BaseModel):
    """A transition between run states or pipeline steps."""

    from_status: RunStatus
    to_status: RunStatus
    step_index: int
    action: str
    timestamp: datetime = Field(default_factory=_utcnow)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class WorkflowRun:
    """
    State of one research run.

    Owned by a single controller and never shared. Holds the goal, the
    current step index, the project handle (once the title step created
    it), the run's own cell store and its routing results.
    """

    ALLOWED_TRANSITIONS = {
        RunStatus.IDLE: [RunStatus.RUNNING],
        RunStatus.RUNNING: [RunStatus.RUNNING, RunStatus.COMPLETED, RunStatus.CANCELLED],
        RunStatus.COMPLETED: [],
        RunStatus.CANCELLED: [],
    }

    def __init__(self, goal: str, registry: StepRegistry = WORKFLOW_STEPS):
        """
        Initialize run state.

        Args:
            goal: The research goal stated by the user
            registry: Pipeline definition for this run
        """
        self.run_id = uuid.uuid4().hex
        self.goal = goal
        self.registry = registry
        self.status = RunStatus.IDLE
        self.current_step_index = 0
        self.project: Optional[ProjectHandle] = None
        self.cells = CellStore()
        self.busy = False
        self.created_at = _utcnow()
        self.transition_history: List[WorkflowTransition] = []
        self.routing_results: List["RoutingResult"] = []

    @property
    def current_step(self) -> Optional[StepDefinition]:
        return self.registry.step_at(self.current_step_index)

    @property
    def is_last_step(self) -> bool:
        return self.current_step_index >= len(self.registry) - 1

    @property
    def progress(self) -> float:
        """Fraction of the pipeline reached, counting the current step."""
        if self.status == RunStatus.COMPLETED:
            return 1.0
        return (self.current_step_index + 1) / len(self.registry)

    def can_transition_to(self, target: RunStatus) -> bool:
        return target in self.ALLOWED_TRANSITIONS.get(self.status, [])

    def transition_to(
        self,
        target: RunStatus,
        action: str = "",
        step_index: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> WorkflowTransition:
        """
        Move the run to a new status and/or step index.

        Raises:
            ValueError: If the transition is not allowed
        """
        if not self.can_transition_to(target):
            raise ValueError(
                f"Invalid transition from {self.status.value} to {target.value}. "
                f"Allowed transitions: {[s.value for s in self.ALLOWED_TRANSITIONS[self.status]]}"
            )

        if step_index is not None:
            self.current_step_index = step_index

        transition = WorkflowTransition(
            from_status=self.status,
            to_status=target,
            step_index=self.current_step_index,
            action=action or f"Transition to {target.value}",
            metadata=metadata or {}
        )
        self.status = target
        self.transition_history.append(transition)

        logger.info(f"Run {self.run_id[:8]} → {target.value} at step {self.current_step_index}: {transition.action}")
        return transition

    def get_recent_transitions(self, n: int = 5) -> List[WorkflowTransition]:
        return self.transition_history[-n:]

    def to_dict(self) -> Dict[str, Any]:
        """Export run state to a dictionary."""
        step = self.current_step
        return {
            "run_id": self.run_id,
            "goal": self.goal,
            "status": self.status.value,
            "current_step_index": self.current_step_index,
            "current_step": step.type.value if step else None,
            "progress": self.progress,
            "project_id": self.project.id if self.project else None,
            "cells": self.cells.to_list(),
            "transition_count": len(self.transition_history),
            "recent_transitions": [
                {
                    "from": t.from_status.value,
                    "to": t.to_status.value,
                    "step_index": t.step_index,
                    "action": t.action,
                    "timestamp": t.timestamp.isoformat()
                }
                for t in self.get_recent_transitions(5)
            ]
        }
