"""
Research backend registry.

Backends are looked up by the name in ``CedarConfig.backend``. The HTTP
backend is registered as ``"http"`` when this module is imported; other
transports (an in-process fake for tests, say) can be added with
``register_backend``.
"""

import logging
from typing import Any, Dict, List, Type

from cedar.core.exceptions import BackendError
from cedar.core.providers.base import ResearchBackend

logger = logging.getLogger(__name__)

_BACKENDS: Dict[str, Type[ResearchBackend]] = {}


def register_backend(name: str, backend_class: type):
    """
    Make a ResearchBackend subclass available under a name.

    Names are case-insensitive. Registering an existing name replaces it.
    """
    if not issubclass(backend_class, ResearchBackend):
        raise ValueError(f"{backend_class} must inherit from ResearchBackend")

    _BACKENDS[name.lower()] = backend_class
    logger.debug(f"Registered backend: {name}")


def get_backend(backend_name: str, config: Dict[str, Any]) -> ResearchBackend:
    """
    Build the backend registered as ``backend_name``.

    Args:
        backend_name: Registered name, matched case-insensitively
        config: Settings passed to the backend constructor

    Raises:
        BackendError: If the name is unknown or the constructor fails
    """
    backend_class = _BACKENDS.get(backend_name.lower())
    if backend_class is None:
        known = ", ".join(sorted(_BACKENDS))
        raise BackendError(
            "get_backend",
            f"Unknown backend '{backend_name}'. Available backends: {known}"
        )

    try:
        backend = backend_class(config)
    except Exception as e:
        logger.error(f"Could not construct {backend_name} backend: {e}")
        raise BackendError(
            "get_backend",
            f"Failed to initialize backend: {e}",
            raw_error=e
        )

    logger.info(f"Using {backend_name} backend")
    return backend


def get_backend_from_config(cedar_config) -> ResearchBackend:
    """Build the backend selected by a CedarConfig, passing its connection settings."""
    return get_backend(cedar_config.backend, {
        "base_url": cedar_config.backend_url,
        "api_key": cedar_config.api_key,
        "timeout": cedar_config.timeout,
        "max_retries": cedar_config.max_retries,
    })


def list_backends() -> List[str]:
    return sorted(_BACKENDS)


def _register_builtin_backends():
    from cedar.core.providers.http_backend import HttpResearchBackend
    register_backend("http", HttpResearchBackend)


_register_builtin_backends()
