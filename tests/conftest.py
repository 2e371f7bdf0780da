"""Shared fixtures."""

import itertools
import os
from threading import Lock
from unittest.mock import MagicMock, patch

import pytest

from sentry_gateway.config import GatewaySettings, reset_settings
from sentry_gateway.gateway import Gateway


@pytest.fixture(autouse=True)
def clean_environment():
    """Keep SENTRY_* variables from the outer environment out of the tests."""
    env = {k: v for k, v in os.environ.items() if not k.startswith("SENTRY_")}
    with patch.dict(os.environ, env, clear=True):
        reset_settings()
        yield
        reset_settings()


class FakeClient:
    """Thread-safe reporting client that returns sequential event ids."""

    def __init__(self):
        self._lock = Lock()
        self._ids = itertools.count(1)
        self.capture_exception = MagicMock(side_effect=self._next_id)
        self.capture_message = MagicMock(side_effect=self._next_id)
        self.capture_query = MagicMock(side_effect=self._next_id)

    def _next_id(self, *args, **kwargs):
        with self._lock:
            return f"event-{next(self._ids)}"


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def make_settings():
    """Build settings without reading a .env file."""

    def _make(**kwargs):
        kwargs.setdefault("environment", "production")
        return GatewaySettings(_env_file=None, **kwargs)

    return _make


@pytest.fixture
def make_gateway(make_settings, fake_client):
    """Build a gateway around the fake client."""

    def _make(client=None, **kwargs):
        return Gateway(make_settings(**kwargs), client=client or fake_client)

    return _make
