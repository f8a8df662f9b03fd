"""
Orchestration components for the research flow.

1. ArtifactGenerator: produces each step's payload from the goal and
   earlier cells, degrading to a fixed fallback on failure
2. DataRouter: persists completed cells to the project's collections
3. code_analysis: detects libraries and variables in generated scripts

Flow:
    goal → generator(step i) → cell → user advances → router(cell)
    → generator(step i+1) → ...
"""

from .generators import ArtifactGenerator
from .router import DataRouter, RoutingResult, WRITE_UP_FILENAME

__all__ = [
    "ArtifactGenerator",
    "DataRouter",
    "RoutingResult",
    "WRITE_UP_FILENAME",
]
