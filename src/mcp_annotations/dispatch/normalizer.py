"""Conversion of raw handler return values into canonical results."""

from __future__ import annotations

import asyncio
import base64
import dataclasses
import inspect
import logging
import types
from typing import TYPE_CHECKING, Any

from mcp_annotations.capability import ReturnMode
from mcp_annotations.config import DispatchConfig
from mcp_annotations.errors import NormalizationError
from mcp_annotations.lib import oj
from mcp_annotations.protocol.types import (
    BlobResourceContents,
    CallToolResult,
    CompleteResult,
    Completion,
    GetPromptResult,
    ImageContent,
    PromptMessage,
    ReadResourceResult,
    TextContent,
    TextResourceContents,
)

if TYPE_CHECKING:
    from mcp_annotations.dispatch.handler import HandlerMethod

logger = logging.getLogger(__name__)

_TEXT_MIME_SUFFIXES = ("json", "xml", "javascript", "yaml", "x-sh", "csv")


def is_async_iterator(value: Any) -> bool:
    return hasattr(value, "__anext__") and hasattr(value, "__aiter__")


def _is_text_mime(mime_type: str | None) -> bool:
    if not mime_type:
        return True
    mime_type = mime_type.lower()
    return mime_type.startswith("text/") or mime_type.endswith(_TEXT_MIME_SUFFIXES)


def _unsupported(value: Any, handler: HandlerMethod) -> NormalizationError:
    return NormalizationError(
        f"{handler.name} returned {type(value).__name__}, which cannot be "
        f"converted to a {handler.contract.label} result",
        method=handler.name,
    )


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _to_json_text(value: Any) -> str:
    return oj.dumps(value)


# Text shapes, one per capability


def tool_text(value: Any, handler: HandlerMethod, request: Any, config: DispatchConfig) -> CallToolResult:
    if value is None:
        return CallToolResult.text("null")
    if isinstance(value, str):
        return CallToolResult.text(value)
    if isinstance(value, (TextContent, ImageContent)):
        return CallToolResult(content=[value])
    if _is_sequence(value) and value:
        if all(isinstance(v, str) for v in value):
            return CallToolResult(content=[TextContent(text=v) for v in value])
        if all(isinstance(v, (TextContent, ImageContent)) for v in value):
            return CallToolResult(content=list(value))
    if isinstance(value, (dict, list, tuple)) or (
        dataclasses.is_dataclass(value) and not isinstance(value, type)
    ):
        return CallToolResult.text(_to_json_text(value))
    return CallToolResult.text(str(value))


def _prompt_message(value: Any, handler: HandlerMethod) -> PromptMessage:
    if isinstance(value, PromptMessage):
        return value
    if isinstance(value, str):
        return PromptMessage.assistant(value)
    raise _unsupported(value, handler)


def prompt_text(value: Any, handler: HandlerMethod, request: Any, config: DispatchConfig) -> GetPromptResult:
    description = getattr(handler.marker, "description", None)
    if isinstance(value, (str, PromptMessage)):
        return GetPromptResult(messages=[_prompt_message(value, handler)], description=description)
    if _is_sequence(value):
        return GetPromptResult(
            messages=[_prompt_message(v, handler) for v in value],
            description=description,
        )
    raise _unsupported(value, handler)


def _resource_contents(value: Any, handler: HandlerMethod, uri: str, config: DispatchConfig):
    if isinstance(value, (TextResourceContents, BlobResourceContents)):
        return value
    mime_type = getattr(handler.marker, "mime_type", None) or config.default_mime_type
    if isinstance(value, (bytes, bytearray)):
        return BlobResourceContents(
            uri=uri, blob=base64.b64encode(bytes(value)).decode("ascii"), mime_type=mime_type
        )
    if isinstance(value, str):
        if _is_text_mime(mime_type):
            return TextResourceContents(uri=uri, text=value, mime_type=mime_type)
        # Non-text MIME types expect an already base64-encoded string
        return BlobResourceContents(uri=uri, blob=value, mime_type=mime_type)
    raise _unsupported(value, handler)


def resource_text(value: Any, handler: HandlerMethod, request: Any, config: DispatchConfig) -> ReadResourceResult:
    uri = getattr(request, "uri", "")
    if _is_sequence(value):
        return ReadResourceResult(
            contents=[_resource_contents(v, handler, uri, config) for v in value]
        )
    return ReadResourceResult(contents=[_resource_contents(value, handler, uri, config)])


def complete_text(value: Any, handler: HandlerMethod, request: Any, config: DispatchConfig) -> CompleteResult:
    if isinstance(value, Completion):
        return CompleteResult(completion=value)
    if isinstance(value, str):
        return CompleteResult(completion=Completion(values=[value], total=1, has_more=False))
    if _is_sequence(value) and all(isinstance(v, str) for v in value):
        values = list(value)
        return CompleteResult(completion=Completion(values=values, total=len(values), has_more=False))
    raise _unsupported(value, handler)


def canonical_only(value: Any, handler: HandlerMethod, request: Any, config: DispatchConfig) -> Any:
    raise _unsupported(value, handler)


def notification_text(value: Any, handler: HandlerMethod, request: Any, config: DispatchConfig) -> None:
    if value is None:
        return None
    raise NormalizationError(
        f"{handler.name} handles {handler.contract.label} notifications and must not return a value",
        method=handler.name,
    )


def tool_void(config: DispatchConfig) -> CallToolResult:
    return CallToolResult.text(_to_json_text(config.void_result_text))


def notification_void(config: DispatchConfig) -> None:
    return None


class ResultNormalizer:
    """
    Turns whatever a handler returned into its capability's canonical result.

    Cases, in order:
      1. awaitables and async iterators are resolved first (blocking for
         sync callers, awaited for async ones);
      2. canonical results pass through unchanged;
      3. STRUCTURED values become structured content plus a JSON text;
      4. VOID produces the capability's empty result;
      5. TEXT values go through the capability's text shape.
    Anything else raises NormalizationError.
    """

    def __init__(self, config: DispatchConfig | None = None):
        self.config = config or DispatchConfig()

    def normalize(self, value: Any, handler: HandlerMethod, request: Any) -> Any:
        """Normalize for a synchronous caller, blocking on asynchronous values."""
        return self.normalize_value(self.resolve_sync(value, handler), handler, request)

    async def normalize_async(self, value: Any, handler: HandlerMethod, request: Any) -> Any:
        """Normalize for an asynchronous caller."""
        return self.normalize_value(await self.resolve(value), handler, request)

    def resolve_sync(self, value: Any, handler: HandlerMethod) -> Any:
        if inspect.isawaitable(value) or is_async_iterator(value):
            try:
                asyncio.get_running_loop()
            except RuntimeError:
                return asyncio.run(self.resolve(value))
            if inspect.iscoroutine(value):
                value.close()
            raise NormalizationError(
                f"{handler.name} returned an asynchronous value inside a running event loop; "
                f"register it with an asynchronous execution mode",
                method=handler.name,
            )
        if isinstance(value, types.GeneratorType):
            return list(value)
        return value

    async def resolve(self, value: Any) -> Any:
        """Await futures and take the first element of async iterators, recursively."""
        while True:
            if inspect.isawaitable(value):
                value = await value
                continue
            if is_async_iterator(value):
                value = await self._first(value)
                continue
            if isinstance(value, types.GeneratorType):
                return list(value)
            return value

    @staticmethod
    async def _first(iterator: Any) -> Any:
        try:
            return await iterator.__anext__()
        except StopAsyncIteration:
            return None
        finally:
            aclose = getattr(iterator, "aclose", None)
            if aclose is not None:
                await aclose()

    def normalize_value(self, value: Any, handler: HandlerMethod, request: Any) -> Any:
        contract = handler.contract
        if contract.result_type is not None and isinstance(value, contract.result_type):
            return value

        if handler.return_mode is ReturnMode.STRUCTURED and value is not None:
            return self._structured(value, handler)

        if handler.return_mode is ReturnMode.VOID:
            if value is not None:
                logger.debug(f"{handler.name} declared no result but returned {type(value).__name__}")
            if contract.void_shape is None:
                raise _unsupported(value, handler)
            return contract.void_shape(self.config)

        return contract.text_shape(value, handler, request, self.config)

    def _structured(self, value: Any, handler: HandlerMethod) -> CallToolResult:
        try:
            payload = oj.to_plain(value)
        except TypeError as e:
            raise NormalizationError(
                f"{handler.name} returned a value that is not JSON serializable: {e}",
                method=handler.name,
            ) from e
        if not isinstance(payload, dict):
            raise NormalizationError(
                f"{handler.name} declares an object output schema but returned "
                f"{type(value).__name__}",
                method=handler.name,
            )
        return CallToolResult(
            content=[TextContent(text=_to_json_text(payload))],
            structured_content=payload,
        )
