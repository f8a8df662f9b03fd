"""
Workflow module for Cedar.

Research flow:
1. Goal → submitted by the user
2. Title → generated immediately; creates the project
3. References, abstract, plan, data, code, results, evaluation, write-up
   → one step per user confirmation, each completed cell routed to the
   project before the next one is generated
"""

from .research_flow import ResearchFlowController

__all__ = [
    "ResearchFlowController",
]
