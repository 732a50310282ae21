"""Shared pytest fixtures.

Key goals:
- Prevent the global settings singleton from leaking between tests.
- Provide RestTransports backed by a recording httpx.MockTransport so the
  pipeline can be exercised end-to-end without sockets.
"""

from __future__ import annotations

from collections.abc import Callable

import httpx
import pytest

from routeros_rest.config import set_settings
from routeros_rest.transport import RestTransport
from tests.unit.http_test_utils import RecordingHandler


@pytest.fixture(autouse=True)
def _reset_global_settings() -> None:
    """Ensure the settings singleton does not leak between tests."""
    set_settings(None)
    yield
    set_settings(None)


@pytest.fixture
def make_transport() -> Callable[..., tuple[RestTransport, RecordingHandler]]:
    """Factory for a RestTransport backed by a recording MockTransport."""

    def _make(
        responder: Callable[[httpx.Request], httpx.Response], **kwargs
    ) -> tuple[RestTransport, RecordingHandler]:
        handler = RecordingHandler(responder)
        transport = RestTransport(http_transport=httpx.MockTransport(handler), **kwargs)
        return transport, handler

    return _make
