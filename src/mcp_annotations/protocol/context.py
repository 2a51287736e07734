"""Ambient context handed to handler methods.

Two kinds of context exist and an adapter uses exactly one of them:

- a session exchange (``SyncServerExchange`` / ``AsyncServerExchange``),
  which can issue server-to-client operations through the SDK session;
- a ``TransportContext``, which only carries correlation data and is what
  stateless handlers receive.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from mcp_annotations.protocol.client_types import (
    CreateMessageRequest,
    CreateMessageResult,
    ElicitRequest,
    ElicitResult,
    LoggingMessageNotification,
    LogLevel,
    ProgressNotification,
)
from mcp_annotations.protocol.errors import MCPError


@dataclass(frozen=True)
class TransportContext:
    """Transport-level correlation data (headers, request ids, auth claims)."""

    metadata: Mapping[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.metadata.get(key, default)

    def __contains__(self, key: str) -> bool:
        return key in self.metadata


EMPTY_TRANSPORT_CONTEXT = TransportContext()


class _ExchangeBase:
    """Shared state for sync and async exchanges."""

    def __init__(
        self,
        session: Any,
        transport_context: TransportContext | None = None,
        client_capabilities: dict[str, Any] | None = None,
        client_info: dict[str, Any] | None = None,
    ):
        self._session = session
        self._transport_context = transport_context or EMPTY_TRANSPORT_CONTEXT
        self.client_capabilities = client_capabilities
        self.client_info = client_info
        self.min_logging_level = LogLevel.DEBUG

    def set_logging_level(self, level: LogLevel | str) -> None:
        """Apply a client's logging/setLevel request."""
        if isinstance(level, str):
            level = LogLevel.from_string(level)
        self.min_logging_level = level

    def is_level_allowed(self, level: LogLevel) -> bool:
        """Whether a log message at this level reaches the client."""
        return self.min_logging_level <= level

    def supports(self, capability: str) -> bool:
        """Whether the client declared a capability. Unknown means supported."""
        return self.client_capabilities is None or capability in self.client_capabilities

    @property
    def session(self) -> Any:
        """The SDK session this exchange delegates to."""
        return self._session

    @property
    def transport_context(self) -> TransportContext:
        return self._transport_context

    def _require(self, capability: str) -> None:
        if not self.supports(capability):
            raise MCPError.capability_not_supported(capability)


class SyncServerExchange(_ExchangeBase):
    """Blocking session exchange for synchronous handlers."""

    def log(self, notification: LoggingMessageNotification) -> None:
        if self.is_level_allowed(notification.level):
            self._session.send_logging_message(notification)

    def progress(self, notification: ProgressNotification) -> None:
        self._session.send_progress(notification)

    def create_message(self, request: CreateMessageRequest) -> CreateMessageResult:
        self._require("sampling")
        return self._session.create_message(request)

    def elicit(self, request: ElicitRequest) -> ElicitResult:
        self._require("elicitation")
        return self._session.elicit(request)

    def list_roots(self) -> list[dict[str, Any]]:
        self._require("roots")
        return self._session.list_roots()

    def ping(self) -> None:
        self._session.ping()


class AsyncServerExchange(_ExchangeBase):
    """Session exchange whose operations are awaitable."""

    async def log(self, notification: LoggingMessageNotification) -> None:
        if self.is_level_allowed(notification.level):
            await self._session.send_logging_message(notification)

    async def progress(self, notification: ProgressNotification) -> None:
        await self._session.send_progress(notification)

    async def create_message(self, request: CreateMessageRequest) -> CreateMessageResult:
        self._require("sampling")
        return await self._session.create_message(request)

    async def elicit(self, request: ElicitRequest) -> ElicitResult:
        self._require("elicitation")
        return await self._session.elicit(request)

    async def list_roots(self) -> list[dict[str, Any]]:
        self._require("roots")
        return await self._session.list_roots()

    async def ping(self) -> None:
        await self._session.ping()


ServerExchange = SyncServerExchange | AsyncServerExchange
