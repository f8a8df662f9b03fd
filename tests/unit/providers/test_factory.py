"""
Unit tests for the backend factory.
"""

import pytest

from cedar.config import CedarConfig
from cedar.core.exceptions import BackendError
from cedar.core.providers import factory
from cedar.core.providers.factory import (
    get_backend,
    get_backend_from_config,
    list_backends,
    register_backend,
)
from cedar.core.providers.http_backend import HttpResearchBackend


@pytest.fixture
def restore_registry():
    saved = dict(factory._BACKENDS)
    yield
    factory._BACKENDS.clear()
    factory._BACKENDS.update(saved)


class BrokenBackend(HttpResearchBackend):
    def __init__(self, config=None):
        raise RuntimeError("missing credentials")


class TestFactory:
    """Test backend registration and lookup."""

    def test_http_registered(self):
        """Test the built-in backend is available."""
        assert "http" in list_backends()

    def test_get_backend(self):
        """Test lookup is case-insensitive and passes config."""
        backend = get_backend("HTTP", {"base_url": "http://backend.test/api"})

        assert isinstance(backend, HttpResearchBackend)
        assert backend.base_url == "http://backend.test/api"

    def test_unknown_backend(self):
        """Test unknown names list the available ones."""
        with pytest.raises(BackendError, match="Available backends: http"):
            get_backend("carrier-pigeon", {})

    def test_register_requires_subclass(self):
        """Test only ResearchBackend subclasses are accepted."""
        with pytest.raises(ValueError):
            register_backend("dict", dict)

    def test_init_failure_wrapped(self, restore_registry):
        """Test constructor errors become BackendError."""
        register_backend("broken", BrokenBackend)

        with pytest.raises(BackendError) as exc_info:
            get_backend("broken", {})

        assert isinstance(exc_info.value.raw_error, RuntimeError)
        assert "missing credentials" in str(exc_info.value)

    def test_from_config(self):
        """Test configuration fields are mapped."""
        config = CedarConfig(
            backend_url="https://research.example.org/api",
            api_key="secret",
            timeout=15,
            max_retries=1,
        )

        backend = get_backend_from_config(config)

        assert isinstance(backend, HttpResearchBackend)
        assert backend.base_url == "https://research.example.org/api"
        assert backend.api_key == "secret"
        assert backend.timeout == 15.0
        assert backend.max_retries == 1
