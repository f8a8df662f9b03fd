"""
Research backend providers.

The orchestrator talks to AI generation, code execution and project storage
through `ResearchBackend`. `HttpResearchBackend` is the built-in
implementation; others can be added with `register_backend`.
"""

from cedar.core.providers.base import FileType, ResearchBackend
from cedar.core.providers.http_backend import HttpResearchBackend
from cedar.core.providers.factory import (
    get_backend,
    get_backend_from_config,
    list_backends,
    register_backend,
)

__all__ = [
    "FileType",
    "ResearchBackend",
    "HttpResearchBackend",
    "get_backend",
    "get_backend_from_config",
    "list_backends",
    "register_backend",
]
