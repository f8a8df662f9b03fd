"""
Cedar: step-by-step research workflow orchestration.

Drives a research goal through a fixed ten-step pipeline (title, references,
abstract, plan, data, code, results, evaluation, write-up), generating each
step through a research backend and persisting artifacts to a project.
"""

__version__ = "0.1.0"
