"""Dispatch adapters: bind, invoke and normalize one handler call."""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Callable

from mcp_annotations.annotations.markers import Marker
from mcp_annotations.capability import Capability, ExecutionMode
from mcp_annotations.config import DispatchConfig
from mcp_annotations.dispatch.binder import ArgumentBinder
from mcp_annotations.dispatch.handler import HandlerMethod, ReturnKind
from mcp_annotations.dispatch.normalizer import ResultNormalizer, is_async_iterator
from mcp_annotations.dispatch.validator import validate_handler
from mcp_annotations.errors import ConfigurationError, NormalizationError
from mcp_annotations.protocol.state import (
    DispatchState,
    DispatchStateMachine,
    StateTransitionCallback,
)

logger = logging.getLogger(__name__)


class DispatchAdapter:
    """
    Generic callback wrapping one validated handler method.

    Every call runs its own state machine:
    IDLE -> BINDING -> INVOKING -> NORMALIZING -> COMPLETE, or FAILED.
    Invocation errors are surfaced through the capability's error policy.
    """

    def __init__(
        self,
        handler: HandlerMethod,
        config: DispatchConfig | None = None,
        binder: ArgumentBinder | None = None,
        normalizer: ResultNormalizer | None = None,
    ):
        self.handler = handler
        self.config = config or DispatchConfig()
        self._binder = binder or ArgumentBinder()
        self._normalizer = normalizer or ResultNormalizer(self.config)
        self._listeners: list[StateTransitionCallback] = []

    @property
    def capability(self) -> Capability:
        return self.handler.capability

    @property
    def mode(self) -> ExecutionMode:
        return self.handler.mode

    @property
    def name(self) -> str:
        return self.handler.name

    def on_transition(self, callback: StateTransitionCallback) -> None:
        """
        Register a callback for per-call state transitions.

        Args:
            callback: Function called with (old_state, new_state) for every call.
        """
        self._listeners.append(callback)

    def _new_call(self) -> DispatchStateMachine:
        return DispatchStateMachine(label=self.name, listeners=self._listeners)

    def _require_request(self, request: Any) -> None:
        if request is None:
            raise ValueError(f"{self.handler.contract.request_label} must not be null")

    def _failure(self, call: DispatchStateMachine, error: Exception) -> Any:
        call.fail(error)
        logger.warning(f"{self.handler.contract.label} handler {self.name} failed: {error}")
        return self.handler.contract.error_policy.surface(error, self.handler)

    def _bind(self, call: DispatchStateMachine, request: Any, context: Any):
        call.transition(DispatchState.BINDING)
        return self._binder.bind(self.handler, request, context)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name}, {self.capability}, {self.mode})"


class SyncDispatchAdapter(DispatchAdapter):
    """Blocking adapter: returns the canonical result or raises."""

    def __call__(self, request: Any, context: Any = None) -> Any:
        self._require_request(request)
        call = self._new_call()

        try:
            args, kwargs = self._bind(call, request, context)
        except Exception as e:
            return self._failure(call, e)

        call.transition(DispatchState.INVOKING)
        try:
            raw = self.handler.function(*args, **kwargs)
        except Exception as e:
            return self._failure(call, e)

        call.transition(DispatchState.NORMALIZING)
        try:
            result = self._normalizer.normalize(raw, self.handler, request)
        except Exception as e:
            return self._failure(call, e)

        call.transition(DispatchState.COMPLETE)
        return result


class AsyncDispatchAdapter(DispatchAdapter):
    """
    Non-blocking adapter.

    Calling it returns an awaitable resolving to the canonical result, or,
    when the handler streams (``streaming`` is True), an async iterator
    producing one canonical result per element. Errors raised while awaiting
    the handler propagate unchanged; cancellation reaches the handler.
    """

    @property
    def streaming(self) -> bool:
        return (
            self.handler.return_shape.kind is ReturnKind.STREAM
            and self.handler.contract.streams
        )

    def __call__(self, request: Any, context: Any = None):
        if self.streaming:
            return self._stream(request, context)
        return self._call(request, context)

    async def _call(self, request: Any, context: Any) -> Any:
        self._require_request(request)
        call = self._new_call()

        try:
            args, kwargs = self._bind(call, request, context)
        except Exception as e:
            return self._failure(call, e)

        call.transition(DispatchState.INVOKING)
        try:
            raw = self.handler.function(*args, **kwargs)
        except Exception as e:
            return self._failure(call, e)

        call.transition(DispatchState.NORMALIZING)
        try:
            value = await self._normalizer.resolve(raw)
        except BaseException as e:
            call.fail(e)
            raise

        try:
            result = self._normalizer.normalize_value(value, self.handler, request)
        except Exception as e:
            return self._failure(call, e)

        call.transition(DispatchState.COMPLETE)
        return result

    async def _stream(self, request: Any, context: Any) -> AsyncIterator[Any]:
        self._require_request(request)
        call = self._new_call()

        try:
            args, kwargs = self._bind(call, request, context)
        except Exception as e:
            yield self._failure(call, e)
            return

        call.transition(DispatchState.INVOKING)
        try:
            source = self.handler.function(*args, **kwargs)
        except Exception as e:
            yield self._failure(call, e)
            return

        if inspect.isawaitable(source):
            try:
                source = await source
            except BaseException as e:
                call.fail(e)
                raise
        if not is_async_iterator(source):
            error = NormalizationError(
                f"{self.name} is declared as streaming but returned {type(source).__name__}",
                method=self.name,
            )
            yield self._failure(call, error)
            return

        call.transition(DispatchState.NORMALIZING)
        try:
            async for item in source:
                try:
                    result = self._normalizer.normalize_value(item, self.handler, request)
                except Exception as e:
                    yield self._failure(call, e)
                    return
                yield result
        except BaseException as e:
            call.fail(e)
            raise
        finally:
            aclose = getattr(source, "aclose", None)
            if aclose is not None:
                await aclose()

        call.transition(DispatchState.COMPLETE)


Adapter = SyncDispatchAdapter | AsyncDispatchAdapter


@dataclass(frozen=True)
class AdapterResult:
    """Outcome of try_create_adapter: an adapter or the configuration error."""

    adapter: Adapter | None = None
    error: ConfigurationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Adapter:
        if self.error is not None:
            raise self.error
        return self.adapter


def create_adapter(
    function: Callable[..., Any],
    capability: Capability,
    mode: ExecutionMode = ExecutionMode.SYNC,
    marker: Marker | None = None,
    config: DispatchConfig | None = None,
) -> Adapter:
    """
    Validate a handler and wrap it in the adapter for its execution mode.

    Raises:
        ConfigurationError: If the handler's signature is not legal.
    """
    config = config or DispatchConfig()
    handler = validate_handler(function, capability, mode, marker, config)
    adapter_cls = AsyncDispatchAdapter if mode.is_async else SyncDispatchAdapter
    return adapter_cls(handler, config)


def try_create_adapter(
    function: Callable[..., Any],
    capability: Capability,
    mode: ExecutionMode = ExecutionMode.SYNC,
    marker: Marker | None = None,
    config: DispatchConfig | None = None,
) -> AdapterResult:
    """Like create_adapter, but returns the error instead of raising it."""
    try:
        return AdapterResult(adapter=create_adapter(function, capability, mode, marker, config))
    except ConfigurationError as e:
        return AdapterResult(error=e)
