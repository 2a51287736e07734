"""Validated handler method model."""

from __future__ import annotations

import collections.abc
import inspect
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING, Any, Callable, get_args, get_origin

from mcp_annotations.capability import Capability, ExecutionMode, ReturnMode
from mcp_annotations.schema import split_annotated
from mcp_annotations.uri_template import UriTemplate

if TYPE_CHECKING:
    from mcp_annotations.annotations.markers import Marker
    from mcp_annotations.dispatch.contract import SignatureContract


class ParameterRole(Enum):
    """What a declared parameter receives at call time."""

    PAYLOAD = auto()
    CONTEXT = auto()
    PATH_VARIABLE = auto()
    META = auto()
    FIELD = auto()


class ContextKind(Enum):
    EXCHANGE = auto()
    TRANSPORT = auto()
    REQUEST = auto()


@dataclass(frozen=True)
class ParameterBinding:
    """How one parameter is filled from the request and ambient context."""

    name: str
    role: ParameterRole
    annotation: Any = Any
    key: str | None = None
    required: bool = True
    default: Any = inspect.Parameter.empty
    keyword_only: bool = False
    context_kind: ContextKind | None = None
    position: int = 0

    @property
    def has_default(self) -> bool:
        return self.default is not inspect.Parameter.empty


class ReturnKind(Enum):
    PLAIN = auto()
    AWAITABLE = auto()
    STREAM = auto()


@dataclass(frozen=True)
class ReturnShape:
    """Declared return: plain value, awaitable of a value, or async stream of values."""

    kind: ReturnKind
    value_type: Any = Any

    @property
    def is_async(self) -> bool:
        return self.kind is not ReturnKind.PLAIN


_AWAITABLE_ORIGINS = (
    collections.abc.Awaitable,
    collections.abc.Coroutine,
)
_STREAM_ORIGINS = (
    collections.abc.AsyncIterator,
    collections.abc.AsyncIterable,
    collections.abc.AsyncGenerator,
)


def _first_arg(tp: Any, index: int = 0) -> Any:
    args = get_args(tp)
    return args[index] if len(args) > index else Any


def return_shape(function: Callable[..., Any], hints: dict[str, Any]) -> ReturnShape:
    """Work out whether a function returns a plain value, an awaitable or a stream."""
    declared = hints.get("return", inspect.Parameter.empty)
    if declared is inspect.Parameter.empty:
        declared = Any
    base, _ = split_annotated(declared)
    origin = get_origin(base)

    if inspect.isasyncgenfunction(function):
        value_type = _first_arg(base) if origin in _STREAM_ORIGINS else Any
        return ReturnShape(ReturnKind.STREAM, value_type)
    if inspect.iscoroutinefunction(function):
        # `async def f() -> T` declares T; an inner AsyncIterator makes it a stream
        if origin in _STREAM_ORIGINS:
            return ReturnShape(ReturnKind.STREAM, _first_arg(base))
        return ReturnShape(ReturnKind.AWAITABLE, base)
    if origin in _STREAM_ORIGINS:
        return ReturnShape(ReturnKind.STREAM, _first_arg(base))
    if origin is collections.abc.Coroutine:
        return ReturnShape(ReturnKind.AWAITABLE, _first_arg(base, 2))
    if origin in _AWAITABLE_ORIGINS:
        return ReturnShape(ReturnKind.AWAITABLE, _first_arg(base))
    return ReturnShape(ReturnKind.PLAIN, base)


def is_none_type(tp: Any) -> bool:
    return tp is None or tp is type(None)


@dataclass(frozen=True)
class HandlerMethod:
    """
    A bound method validated against a capability's signature contract.

    Built once by the validator and read-only afterwards. Everything the
    binder and normalizer need at call time is precomputed here.
    """

    function: Callable[..., Any]
    capability: Capability
    mode: ExecutionMode
    marker: Marker
    contract: SignatureContract
    bindings: tuple[ParameterBinding, ...]
    return_shape: ReturnShape
    return_mode: ReturnMode
    output_schema: dict[str, Any] | None = None
    uri_template: UriTemplate | None = None

    @property
    def name(self) -> str:
        """Qualified method name used in diagnostics."""
        target = getattr(self.function, "__func__", self.function)
        return getattr(target, "__qualname__", repr(target))

    @property
    def method_name(self) -> str:
        target = getattr(self.function, "__func__", self.function)
        return getattr(target, "__name__", self.name)

    @property
    def field_bindings(self) -> list[ParameterBinding]:
        return [b for b in self.bindings if b.role is ParameterRole.FIELD]

    def find(self, role: ParameterRole) -> list[ParameterBinding]:
        return [b for b in self.bindings if b.role is role]


def describe_type(tp: Any) -> str:
    """Readable type name for error messages."""
    if tp is inspect.Parameter.empty:
        return "<unannotated>"
    if isinstance(tp, type) and not get_args(tp):
        return tp.__name__
    return repr(tp).replace("typing.", "")
