"""
Cells and the append-only cell store.

A cell is one artifact produced by a pipeline step. Cells are appended in
pipeline order and never removed while a run is alive; only their status
and can_proceed flag change as the user advances.
"""

import logging
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional

from pydantic import BaseModel, Field

from cedar.core.steps import StepType

logger = logging.getLogger(__name__)


class CellStatus(str, Enum):
    """Lifecycle status of a cell."""

    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    ERROR = "error"


def _new_cell_id(step_type: StepType) -> str:
    return f"{StepType(step_type).value}_{uuid.uuid4().hex[:8]}"


class Cell(BaseModel):
    """
    One produced artifact.

    Example:
        ```python
        cell = Cell.create(StepType.ABSTRACT, "Churn is driven by ...")
        cell.status  # CellStatus.ACTIVE
        ```
    """

    id: str
    type: StepType
    content: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    status: CellStatus = CellStatus.ACTIVE
    metadata: Optional[Dict[str, Any]] = None
    requires_user_action: bool = True
    can_proceed: bool = False

    # Fallback content was substituted for a failed generation
    degraded: bool = False
    error: Optional[str] = None

    step_order: Optional[int] = None
    total_steps: Optional[int] = None

    @classmethod
    def create(
        cls,
        step_type: StepType,
        content: str,
        metadata: Optional[Dict[str, Any]] = None,
        **kwargs
    ) -> "Cell":
        """Create an active cell that waits for the user to proceed."""
        return cls(
            id=_new_cell_id(step_type),
            type=step_type,
            content=content,
            metadata=metadata,
            **kwargs
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-ready dictionary."""
        return self.model_dump(mode="json")


class CellStore:
    """
    Ordered log of cells for one run.

    Appending exactly one cell per pipeline step, in order, is the caller's
    responsibility; the store does not reorder.
    """

    def __init__(self):
        self._cells: List[Cell] = []

    def append(self, cell: Cell) -> None:
        self._cells.append(cell)
        logger.debug(f"Appended cell {cell.id} ({cell.type.value}) at position {len(self._cells) - 1}")

    def update_status(
        self,
        cell_id: str,
        status: CellStatus,
        can_proceed: Optional[bool] = None
    ) -> bool:
        """
        Update a cell's status in place.

        Unknown ids are ignored: a cancelled or superseded run may race with
        a stale update.

        Returns:
            bool: True if a cell was updated
        """
        cell = self.get(cell_id)
        if cell is None:
            logger.debug(f"Ignoring status update for unknown cell {cell_id}")
            return False

        cell.status = CellStatus(status)
        if can_proceed is not None:
            cell.can_proceed = can_proceed
        return True

    def find_latest_by_type(self, step_type: StepType) -> Optional[Cell]:
        """Return the most recently appended cell of a type."""
        for cell in reversed(self._cells):
            if cell.type == step_type:
                return cell
        return None

    def get(self, cell_id: str) -> Optional[Cell]:
        for cell in self._cells:
            if cell.id == cell_id:
                return cell
        return None

    def at(self, index: int) -> Optional[Cell]:
        if 0 <= index < len(self._cells):
            return self._cells[index]
        return None

    def types(self) -> List[StepType]:
        return [cell.type for cell in self._cells]

    def to_list(self) -> List[Dict[str, Any]]:
        return [cell.to_dict() for cell in self._cells]

    def __len__(self) -> int:
        return len(self._cells)

    def __iter__(self) -> Iterator[Cell]:
        return iter(list(self._cells))
