"""Call-time argument binding."""

from __future__ import annotations

import dataclasses
import inspect
import typing
from enum import Enum
from typing import Any, get_args, get_origin

from mcp_annotations.annotations.params import McpMeta
from mcp_annotations.dispatch.contract import MISSING
from mcp_annotations.dispatch.handler import (
    ContextKind,
    HandlerMethod,
    ParameterBinding,
    ParameterRole,
)
from mcp_annotations.errors import BindingError
from mcp_annotations.protocol.context import (
    EMPTY_TRANSPORT_CONTEXT,
    AsyncServerExchange,
    SyncServerExchange,
    TransportContext,
)
from mcp_annotations.protocol.request_context import AsyncRequestContext, SyncRequestContext
from mcp_annotations.schema import is_class, is_union, strip_optional

_TRUE = {"true", "1", "yes", "on"}
_FALSE = {"false", "0", "no", "off"}


def coerce(value: Any, tp: Any) -> Any:
    """
    Best-effort conversion of a decoded JSON value to a declared type.

    Dataclasses are built from dicts, enums from their values, numbers from
    numeric strings, and lists and dicts element-wise. Values that are
    already the right type, or types this does not know, pass through.

    Raises:
        ValueError: If a conversion is attempted and fails.
    """
    if value is None or tp is Any or tp is inspect.Parameter.empty:
        return value
    tp = strip_optional(tp)
    if get_origin(tp) is typing.Annotated:
        tp = get_args(tp)[0]

    if is_union(tp):
        # Keep the value when it already matches one of the members
        for member in get_args(tp):
            if is_class(member) and isinstance(value, member):
                return value
        return value

    origin = get_origin(tp)
    args = get_args(tp)
    if origin in (list, tuple, set, frozenset) and isinstance(value, (list, tuple, set)):
        if origin is tuple and args and args[-1] is not Ellipsis:
            return tuple(coerce(v, t) for v, t in zip(value, args))
        item = args[0] if args else Any
        return origin(coerce(v, item) for v in value)
    if origin is dict and isinstance(value, dict):
        value_type = args[1] if len(args) > 1 else Any
        return {k: coerce(v, value_type) for k, v in value.items()}
    if origin is not None or not isinstance(tp, type):
        return value

    if isinstance(value, bool) and tp in (int, float):
        raise ValueError(f"expected {tp.__name__}, got boolean {value!r}")
    if isinstance(value, tp):
        return value
    if issubclass(tp, Enum):
        return tp(value)
    if tp is str and isinstance(value, Enum):
        return str(value.value)
    if tp is bool and isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        raise ValueError(f"invalid boolean value {value!r}")
    if tp is bool and isinstance(value, (int, float)):
        if value in (0, 1):
            return bool(value)
        raise ValueError(f"invalid boolean value {value!r}")
    if tp is float and isinstance(value, (int, str)):
        return float(value)
    if tp is int and isinstance(value, float) and value.is_integer():
        return int(value)
    if tp is int and isinstance(value, str):
        return int(value)
    if dataclasses.is_dataclass(tp) and isinstance(value, dict):
        hints = typing.get_type_hints(tp)
        names = {f.name for f in dataclasses.fields(tp) if f.init}
        return tp(**{k: coerce(v, hints.get(k, Any)) for k, v in value.items() if k in names})
    return value


class ArgumentBinder:
    """
    Builds the concrete argument list for one call.

    Walks the handler's bindings in declared order. Binding never partially
    succeeds: the first missing required value raises BindingError before
    the handler is invoked.
    """

    def bind(
        self, handler: HandlerMethod, request: Any, context: Any = None
    ) -> tuple[list[Any], dict[str, Any]]:
        """
        Args:
            handler: Validated handler.
            request: Incoming request or notification payload.
            context: Session exchange or transport context, if any.

        Returns:
            Positional and keyword arguments for the handler.

        Raises:
            BindingError: If a required value is missing or cannot be converted.
        """
        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        variables: dict[str, str] | None = None

        for binding in handler.bindings:
            if binding.role is ParameterRole.PATH_VARIABLE and variables is None:
                variables = self._extract_variables(handler, request)
            value = self._value_for(handler, binding, request, context, variables)
            if binding.keyword_only:
                kwargs[binding.name] = value
            else:
                args.append(value)
        return args, kwargs

    def _value_for(
        self,
        handler: HandlerMethod,
        binding: ParameterBinding,
        request: Any,
        context: Any,
        variables: dict[str, str] | None,
    ) -> Any:
        role = binding.role
        if role is ParameterRole.PAYLOAD:
            return request
        if role is ParameterRole.CONTEXT:
            return self._context_value(handler, binding, request, context)
        if role is ParameterRole.META:
            meta = getattr(request, "meta", None)
            if binding.key is None:
                return McpMeta(meta)
            return (meta or {}).get(binding.key)
        if role is ParameterRole.PATH_VARIABLE:
            return (variables or {})[binding.key]
        return self._field_value(handler, binding, request)

    def _context_value(
        self, handler: HandlerMethod, binding: ParameterBinding, request: Any, context: Any
    ) -> Any:
        if binding.context_kind is ContextKind.TRANSPORT:
            if isinstance(context, TransportContext):
                return context
            if isinstance(context, (SyncServerExchange, AsyncServerExchange)):
                return context.transport_context
            return EMPTY_TRANSPORT_CONTEXT

        if binding.context_kind is ContextKind.REQUEST:
            context_cls = strip_optional(binding.annotation)
            if not is_class(context_cls):
                context_cls = AsyncRequestContext if handler.mode.is_async else SyncRequestContext
            if isinstance(context, (SyncServerExchange, AsyncServerExchange)):
                return context_cls(request, exchange=context)
            if isinstance(context, TransportContext):
                return context_cls(request, transport_context=context)
            return context_cls(request)

        # Stateless handlers never declare an exchange; the validator rejects it
        expected = strip_optional(binding.annotation)
        if is_class(expected) and isinstance(context, expected):
            return context
        if context is None and binding.has_default:
            return binding.default
        if context is None and expected is not binding.annotation:
            return None
        raise BindingError(
            f"{handler.name} requires a {getattr(expected, '__name__', expected)} "
            f"for parameter '{binding.name}', got {type(context).__name__}",
            parameter=binding.name,
        )

    def _extract_variables(self, handler: HandlerMethod, request: Any) -> dict[str, str]:
        template = handler.uri_template
        uri = getattr(request, "uri", None)
        variables = template.extract(uri) if template is not None and uri else {}
        expected = template.variable_names if template is not None else []
        missing = [v for v in expected if v not in variables]
        if missing:
            raise BindingError(
                f"Failed to extract all URI variables from request URI: {uri}. "
                f"Missing: {', '.join(missing)}",
            )
        return variables

    def _field_value(self, handler: HandlerMethod, binding: ParameterBinding, request: Any) -> Any:
        strategy = handler.contract.fields
        value = strategy.extract(request, binding) if strategy is not None else MISSING
        if value is MISSING:
            if binding.required:
                raise BindingError(
                    f"Missing required argument '{binding.key}' for {handler.name}",
                    parameter=binding.name,
                )
            return binding.default if binding.has_default else None
        try:
            return coerce(value, binding.annotation)
        except (TypeError, ValueError) as e:
            raise BindingError(
                f"Invalid value for argument '{binding.key}' of {handler.name}: {e}",
                parameter=binding.name,
            ) from e
