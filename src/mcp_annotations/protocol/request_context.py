"""Per-call request context injected into handler methods.

A request context bundles the incoming request with the session exchange
and offers the common server-to-client operations (logging, progress,
sampling, elicitation, roots) without building protocol payloads by hand.
Built without an exchange it is stateless: it still exposes the request,
its meta and the transport context, and the session operations log a
warning and do nothing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Generic, Mapping, TypeVar

from mcp_annotations.protocol.client_types import (
    CreateMessageRequest,
    CreateMessageResult,
    ElicitRequest,
    ElicitResult,
    LoggingMessageNotification,
    LogLevel,
    ModelPreferences,
    ProgressNotification,
    SamplingMessage,
)
from mcp_annotations.protocol.context import (
    EMPTY_TRANSPORT_CONTEXT,
    AsyncServerExchange,
    SyncServerExchange,
    TransportContext,
)
from mcp_annotations.protocol.types import Role, TextContent

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_ELICIT_MESSAGE = "Please provide the required information."
DEFAULT_SAMPLING_MAX_TOKENS = 500

_ELICIT_SCHEMA_CACHE: dict[Any, dict[str, Any]] = {}


@dataclass(frozen=True)
class StructuredElicitResult(Generic[T]):
    """An accepted elicitation with its content converted to the requested type."""

    action: str
    structured_content: T


def _elicit_schema(response_type: Any) -> dict[str, Any]:
    from mcp_annotations.schema import generate_from_type

    if response_type not in _ELICIT_SCHEMA_CACHE:
        _ELICIT_SCHEMA_CACHE[response_type] = generate_from_type(response_type)
    return _ELICIT_SCHEMA_CACHE[response_type]


def _structured(result: ElicitResult | None, response_type: Any) -> StructuredElicitResult | None:
    from mcp_annotations.dispatch.binder import coerce

    if result is None or result.action != "accept":
        return None
    return StructuredElicitResult(
        action=result.action, structured_content=coerce(result.content or {}, response_type)
    )


class _RequestContextBase:
    """Request accessors shared by the sync and async contexts."""

    def __init__(
        self,
        request: Any,
        exchange: SyncServerExchange | AsyncServerExchange | None = None,
        transport_context: TransportContext | None = None,
    ):
        if request is None:
            raise ValueError("Request must not be null")
        self._request = request
        self._exchange = exchange
        self._transport_context = transport_context

    @property
    def request(self) -> Any:
        return self._request

    @property
    def exchange(self) -> SyncServerExchange | AsyncServerExchange | None:
        """The session exchange, or None for a stateless context."""
        return self._exchange

    @property
    def is_stateless(self) -> bool:
        return self._exchange is None

    @property
    def transport_context(self) -> TransportContext:
        if self._exchange is not None:
            return self._exchange.transport_context
        return self._transport_context or EMPTY_TRANSPORT_CONTEXT

    @property
    def meta(self) -> Mapping[str, Any]:
        """The request's ``_meta`` bag."""
        return getattr(self._request, "meta", None) or {}

    @property
    def progress_token(self) -> str | int | None:
        return self.meta.get("progressToken")

    @property
    def client_info(self) -> dict[str, Any] | None:
        return self._exchange.client_info if self._exchange is not None else None

    @property
    def client_capabilities(self) -> dict[str, Any] | None:
        return self._exchange.client_capabilities if self._exchange is not None else None

    def _supports(self, capability: str) -> bool:
        if self._exchange is None:
            logger.warning(f"Stateless request context cannot use {capability}; ignoring")
            return False
        if not self._exchange.supports(capability):
            logger.warning(f"Client does not support {capability}; ignoring {capability} request")
            return False
        return True

    def _elicit_request(
        self, response_type: Any, message: str, meta: dict[str, Any] | None
    ) -> ElicitRequest:
        if not message:
            raise ValueError("Elicitation message must not be empty")
        return ElicitRequest(message=message, requested_schema=_elicit_schema(response_type), meta=meta)

    @staticmethod
    def _sampling_request(
        messages: tuple[str | SamplingMessage, ...],
        system_prompt: str | None,
        max_tokens: int | None,
        temperature: float | None,
        stop_sequences: list[str] | None,
        model_preferences: ModelPreferences | None,
        meta: dict[str, Any] | None,
    ) -> CreateMessageRequest:
        if not messages:
            raise ValueError("At least one sampling message is required")
        return CreateMessageRequest(
            messages=[
                m
                if isinstance(m, SamplingMessage)
                else SamplingMessage(role=Role.USER, content=TextContent(text=m))
                for m in messages
            ],
            max_tokens=max_tokens if max_tokens and max_tokens > 0 else DEFAULT_SAMPLING_MAX_TOKENS,
            system_prompt=system_prompt,
            model_preferences=model_preferences,
            temperature=temperature,
            stop_sequences=list(stop_sequences or []),
            meta=meta,
        )

    def _progress_notification(
        self, progress: float, total: float | None, message: str | None
    ) -> ProgressNotification | None:
        if self._exchange is None:
            logger.warning("Stateless request context cannot send progress; ignoring")
            return None
        token = self.progress_token
        if token is None or token == "":
            logger.warning("Request carries no progress token; ignoring progress update")
            return None
        return ProgressNotification(progress_token=token, progress=progress, total=total, message=message)

    def _log_notification(
        self, message: Any, level: LogLevel, logger_name: str | None
    ) -> LoggingMessageNotification | None:
        if message is None or message == "":
            raise ValueError("Log message must not be empty")
        if self._exchange is None:
            logger.warning("Stateless request context cannot send log messages; ignoring")
            return None
        return LoggingMessageNotification(level=level, data=message, logger=logger_name)

    @staticmethod
    def _percentage(percentage: int) -> float:
        if not 0 <= percentage <= 100:
            raise ValueError("Percentage must be between 0 and 100")
        return percentage / 100.0

    def __repr__(self) -> str:
        kind = "stateless" if self.is_stateless else "session"
        return f"{type(self).__name__}({type(self._request).__name__}, {kind})"


class SyncRequestContext(_RequestContextBase):
    """Request context for synchronous handlers."""

    def roots(self) -> list[dict[str, Any]] | None:
        if not self._supports("roots"):
            return None
        return self._exchange.list_roots()

    def elicit(
        self,
        response_type: type[T],
        message: str = DEFAULT_ELICIT_MESSAGE,
        meta: dict[str, Any] | None = None,
    ) -> StructuredElicitResult[T] | None:
        """
        Ask the user for a value of ``response_type``.

        Returns:
            The accepted content converted to ``response_type``, or None if the
            user declined, cancelled, or the client cannot elicit.
        """
        request = self._elicit_request(response_type, message, meta)
        return _structured(self.elicit_request(request), response_type)

    def elicit_request(self, request: ElicitRequest) -> ElicitResult | None:
        if not self._supports("elicitation"):
            return None
        return self._exchange.elicit(request)

    def sample(
        self,
        *messages: str | SamplingMessage,
        system_prompt: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
        stop_sequences: list[str] | None = None,
        model_preferences: ModelPreferences | None = None,
        meta: dict[str, Any] | None = None,
    ) -> CreateMessageResult | None:
        """Request an LLM completion from the client. Plain strings are user messages."""
        request = self._sampling_request(
            messages, system_prompt, max_tokens, temperature, stop_sequences, model_preferences, meta
        )
        return self.sample_request(request)

    def sample_request(self, request: CreateMessageRequest) -> CreateMessageResult | None:
        if not self._supports("sampling"):
            return None
        return self._exchange.create_message(request)

    def progress(self, progress: float, total: float | None = None, message: str | None = None) -> None:
        notification = self._progress_notification(progress, total, message)
        if notification is not None:
            self._exchange.progress(notification)

    def progress_percent(self, percentage: int) -> None:
        self.progress(self._percentage(percentage), total=1.0)

    def log(self, message: Any, level: LogLevel = LogLevel.INFO, logger_name: str | None = None) -> None:
        notification = self._log_notification(message, level, logger_name)
        if notification is not None:
            self._exchange.log(notification)

    def debug(self, message: str) -> None:
        self.log(message, LogLevel.DEBUG)

    def info(self, message: str) -> None:
        self.log(message, LogLevel.INFO)

    def warning(self, message: str) -> None:
        self.log(message, LogLevel.WARNING)

    def error(self, message: str) -> None:
        self.log(message, LogLevel.ERROR)

    def ping(self) -> None:
        if self._exchange is not None:
            self._exchange.ping()


class AsyncRequestContext(_RequestContextBase):
    """Request context for asynchronous handlers; session operations are awaitable."""

    async def roots(self) -> list[dict[str, Any]] | None:
        if not self._supports("roots"):
            return None
        return await self._exchange.list_roots()

    async def elicit(
        self,
        response_type: type[T],
        message: str = DEFAULT_ELICIT_MESSAGE,
        meta: dict[str, Any] | None = None,
    ) -> StructuredElicitResult[T] | None:
        request = self._elicit_request(response_type, message, meta)
        return _structured(await self.elicit_request(request), response_type)

    async def elicit_request(self, request: ElicitRequest) -> ElicitResult | None:
        if not self._supports("elicitation"):
            return None
        return await self._exchange.elicit(request)

    async def sample(
        self,
        *messages: str | SamplingMessage,
        system_prompt: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
        stop_sequences: list[str] | None = None,
        model_preferences: ModelPreferences | None = None,
        meta: dict[str, Any] | None = None,
    ) -> CreateMessageResult | None:
        request = self._sampling_request(
            messages, system_prompt, max_tokens, temperature, stop_sequences, model_preferences, meta
        )
        return await self.sample_request(request)

    async def sample_request(self, request: CreateMessageRequest) -> CreateMessageResult | None:
        if not self._supports("sampling"):
            return None
        return await self._exchange.create_message(request)

    async def progress(
        self, progress: float, total: float | None = None, message: str | None = None
    ) -> None:
        notification = self._progress_notification(progress, total, message)
        if notification is not None:
            await self._exchange.progress(notification)

    async def progress_percent(self, percentage: int) -> None:
        await self.progress(self._percentage(percentage), total=1.0)

    async def log(
        self, message: Any, level: LogLevel = LogLevel.INFO, logger_name: str | None = None
    ) -> None:
        notification = self._log_notification(message, level, logger_name)
        if notification is not None:
            await self._exchange.log(notification)

    async def debug(self, message: str) -> None:
        await self.log(message, LogLevel.DEBUG)

    async def info(self, message: str) -> None:
        await self.log(message, LogLevel.INFO)

    async def warning(self, message: str) -> None:
        await self.log(message, LogLevel.WARNING)

    async def error(self, message: str) -> None:
        await self.log(message, LogLevel.ERROR)

    async def ping(self) -> None:
        if self._exchange is not None:
            await self._exchange.ping()


RequestContext = SyncRequestContext | AsyncRequestContext
