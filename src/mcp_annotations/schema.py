"""JSON Schema generation from Python type hints.

Pure functions from types to schema dicts. Tools use them for their input
schema and, when the return type describes a JSON object, for their output
schema, which also switches the tool to structured results.
"""

from __future__ import annotations

import dataclasses
import inspect
import types
import typing
from collections import abc
from enum import Enum
from typing import Any, Callable, Literal, Union, get_args, get_origin

from mcp_annotations.annotations.params import McpMeta, ProgressToken, PromptArg, ToolParam
from mcp_annotations.protocol import types as wire
from mcp_annotations.protocol import client_types
from mcp_annotations.protocol.context import (
    AsyncServerExchange,
    SyncServerExchange,
    TransportContext,
)
from mcp_annotations.protocol.request_context import AsyncRequestContext, SyncRequestContext

# Parameter types supplied by the dispatch engine, never by the caller
INFRASTRUCTURE_TYPES: tuple[type, ...] = (
    SyncServerExchange,
    AsyncServerExchange,
    TransportContext,
    SyncRequestContext,
    AsyncRequestContext,
    McpMeta,
    wire.CallToolRequest,
    wire.GetPromptRequest,
    wire.ReadResourceRequest,
    wire.CompleteRequest,
    client_types.CreateMessageRequest,
    client_types.ElicitRequest,
    client_types.LoggingMessageNotification,
    client_types.ProgressNotification,
)

# Return types that never get an output schema
_SIMPLE_RETURN_TYPES: tuple[type, ...] = (
    str,
    int,
    float,
    bool,
    bytes,
    wire.CallToolResult,
)

_ARRAY_ORIGINS = (
    list,
    tuple,
    set,
    frozenset,
    abc.Sequence,
    abc.MutableSequence,
    abc.Iterable,
    abc.Set,
)
_MAPPING_ORIGINS = (dict, abc.Mapping, abc.MutableMapping)

_PRIMITIVES: dict[Any, dict[str, Any]] = {
    type(None): {"type": "null"},
    str: {"type": "string"},
    int: {"type": "integer"},
    float: {"type": "number"},
    bool: {"type": "boolean"},
    list: {"type": "array"},
    dict: {"type": "object"},
    bytes: {"type": "string", "contentEncoding": "base64"},
}


def split_annotated(tp: Any) -> tuple[Any, tuple[Any, ...]]:
    """Split ``Annotated[T, *extras]`` into ``(T, extras)``."""
    if get_origin(tp) is typing.Annotated:
        base, *extras = get_args(tp)
        return base, tuple(extras)
    return tp, ()


def strip_optional(tp: Any) -> Any:
    """Return ``T`` for ``Optional[T]``, otherwise the type unchanged."""
    if is_union(tp):
        args = [a for a in get_args(tp) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return tp


def is_union(tp: Any) -> bool:
    return get_origin(tp) is Union or isinstance(tp, types.UnionType)


def is_class(tp: Any) -> bool:
    """A plain class, not a parameterized generic such as ``list[int]``."""
    return isinstance(tp, type) and get_origin(tp) is None


def _description_of(extras: tuple[Any, ...]) -> str | None:
    for extra in extras:
        if isinstance(extra, (ToolParam, PromptArg)) and extra.description:
            return extra.description
        if isinstance(extra, str):
            return extra
    return None


def _nullable(schema: dict[str, Any]) -> dict[str, Any]:
    if "type" in schema and "enum" not in schema:
        schema = dict(schema)
        if isinstance(schema["type"], list):
            schema["type"] = [*schema["type"], "null"]
        else:
            schema["type"] = [schema["type"], "null"]
        return schema
    return {"oneOf": [schema, {"type": "null"}]}


def _literal_schema(values: tuple[Any, ...]) -> dict[str, Any]:
    schema: dict[str, Any] = {"enum": list(values)}
    kinds = {type(v) for v in values}
    if len(kinds) == 1:
        kind = kinds.pop()
        if kind in _PRIMITIVES:
            schema["type"] = _PRIMITIVES[kind]["type"]
    return schema


def _dataclass_schema(cls: type) -> dict[str, Any]:
    hints = typing.get_type_hints(cls, include_extras=True)
    properties: dict[str, Any] = {}
    required: list[str] = []
    for f in dataclasses.fields(cls):
        properties[f.name] = generate_from_type(hints.get(f.name, Any))
        if f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
            required.append(f.name)
    schema: dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


def generate_from_type(tp: Any) -> dict[str, Any]:
    """Convert a Python type to JSON Schema.

    Handles primitives, ``Optional``/``Union``, sequences, mappings,
    ``Literal``, ``Enum`` subclasses, dataclasses and ``Annotated``
    descriptions. Unknown types produce an empty schema (anything goes).
    """
    tp, extras = split_annotated(tp)
    schema = _schema_for(tp)
    description = _description_of(extras)
    if description:
        schema = {**schema, "description": description}
    return schema


def _schema_for(tp: Any) -> dict[str, Any]:
    if tp is Any or tp is inspect.Parameter.empty:
        return {}
    if tp is None:
        return {"type": "null"}
    if tp in _PRIMITIVES:
        return dict(_PRIMITIVES[tp])

    origin = get_origin(tp)
    args = get_args(tp)

    if is_union(tp):
        non_none = [a for a in args if a is not type(None)]
        if len(non_none) == 1:
            return _nullable(generate_from_type(non_none[0]))
        schema = {"oneOf": [generate_from_type(a) for a in non_none]}
        if len(non_none) != len(args):
            schema["oneOf"].append({"type": "null"})
        return schema

    if origin is Literal:
        return _literal_schema(args)

    if origin is typing.Annotated:
        return generate_from_type(tp)

    if origin in _ARRAY_ORIGINS:
        if origin is tuple and args and args[-1] is not Ellipsis:
            return {
                "type": "array",
                "prefixItems": [generate_from_type(a) for a in args],
                "minItems": len(args),
                "maxItems": len(args),
            }
        if args:
            return {"type": "array", "items": generate_from_type(args[0])}
        return {"type": "array"}

    if origin in _MAPPING_ORIGINS:
        if len(args) >= 2:
            return {"type": "object", "additionalProperties": generate_from_type(args[1])}
        return {"type": "object"}

    if is_class(tp):
        if issubclass(tp, Enum):
            return _literal_schema(tuple(member.value for member in tp))
        if dataclasses.is_dataclass(tp):
            return _dataclass_schema(tp)
        if issubclass(tp, (list, tuple, set, frozenset)):
            return {"type": "array"}
        if issubclass(tp, dict):
            return {"type": "object"}

    return {}


def is_infrastructure_type(tp: Any) -> bool:
    """Whether a parameter type is supplied by the engine rather than the caller."""
    base, extras = split_annotated(tp)
    if any(isinstance(e, ProgressToken) or e is ProgressToken for e in extras):
        return True
    base = strip_optional(base)
    return is_class(base) and issubclass(base, INFRASTRUCTURE_TYPES)


def resolve_type_hints(fn: Callable[..., Any]) -> dict[str, Any]:
    """Resolve annotations (including string annotations) keeping ``Annotated`` extras."""
    target = getattr(fn, "__func__", fn)
    try:
        return typing.get_type_hints(target, include_extras=True)
    except (NameError, TypeError):
        # Unresolvable forward references fall back to the raw annotations
        return dict(getattr(target, "__annotations__", {}))


def _tool_param(extras: tuple[Any, ...]) -> ToolParam | None:
    for extra in extras:
        if isinstance(extra, ToolParam):
            return extra
    return None


def generate_for_method_input(fn: Callable[..., Any]) -> dict[str, Any]:
    """Generate the JSON Schema object for a method's caller-supplied parameters.

    ``self``, context, meta, request payload and progress-token parameters
    are skipped. A parameter is required when it has no default, unless a
    ``ToolParam`` marker says otherwise.
    """
    hints = resolve_type_hints(fn)
    properties: dict[str, Any] = {}
    required: list[str] = []

    for param in inspect.signature(fn).parameters.values():
        if param.name in ("self", "cls"):
            continue
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue
        annotation = hints.get(param.name, Any)
        if is_infrastructure_type(annotation):
            continue

        _, extras = split_annotated(annotation)
        marker = _tool_param(extras)
        key = marker.name if marker and marker.name else param.name
        properties[key] = generate_from_type(annotation)

        is_required = param.default is inspect.Parameter.empty
        if marker is not None and marker.required is not None:
            is_required = marker.required
        if is_required:
            required.append(key)

    schema: dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


def generate_output_schema(return_type: Any) -> dict[str, Any] | None:
    """Generate an output schema when the return type describes a JSON object.

    Returns None for ``None``, primitives, ``CallToolResult``, arrays and
    unknown types; those produce text results instead.
    """
    return_type, _ = split_annotated(return_type)
    if return_type in (None, type(None), Any, inspect.Parameter.empty):
        return None
    if is_class(return_type) and issubclass(return_type, _SIMPLE_RETURN_TYPES):
        return None
    schema = generate_from_type(return_type)
    if schema.get("type") != "object":
        return None
    return schema
