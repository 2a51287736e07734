"""Pytest configuration and fixtures."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from mcp_annotations.protocol.context import (
    AsyncServerExchange,
    SyncServerExchange,
    TransportContext,
)
from mcp_annotations.protocol.types import CallToolRequest, ReadResourceRequest

# Enable async tests without marking each one
pytest_plugins = ["pytest_asyncio"]


@pytest.fixture
def session():
    """Blocking SDK session double."""
    return MagicMock()


@pytest.fixture
def async_session():
    """Awaitable SDK session double."""
    return AsyncMock()


@pytest.fixture
def transport_context():
    return TransportContext({"request_id": "req-1", "authorization": "Bearer abc"})


@pytest.fixture
def sync_exchange(session, transport_context):
    return SyncServerExchange(session, transport_context=transport_context)


@pytest.fixture
def async_exchange(async_session, transport_context):
    return AsyncServerExchange(async_session, transport_context=transport_context)


@pytest.fixture
def add_request():
    """tools/call request for add(a=2, b=3)."""
    return CallToolRequest(name="add", arguments={"a": 2, "b": 3})


@pytest.fixture
def user_request():
    return ReadResourceRequest(uri="user://alice")
