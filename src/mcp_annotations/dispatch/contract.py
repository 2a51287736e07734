"""Per-capability signature contracts.

A contract states which parameter and return shapes are legal for one
capability, how sub-field parameters are classified and extracted, what
an invocation error turns into, and which result shape the normalizer
uses. One generic adapter is parameterized by these values.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Mapping, get_args, get_origin

from mcp_annotations.annotations.params import PromptArg, ToolParam
from mcp_annotations.capability import Capability
from mcp_annotations.config import DispatchConfig
from mcp_annotations.dispatch import normalizer as shapes
from mcp_annotations.errors import ConfigurationError
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
from mcp_annotations.protocol.types import (
    BlobResourceContents,
    CallToolRequest,
    CallToolResult,
    CompleteArgument,
    CompleteReference,
    CompleteRequest,
    CompleteResult,
    Completion,
    GetPromptRequest,
    GetPromptResult,
    Prompt,
    PromptMessage,
    ReadResourceRequest,
    ReadResourceResult,
    Resource,
    TextResourceContents,
    Tool,
)
from mcp_annotations.schema import is_class, is_union, split_annotated, strip_optional

if TYPE_CHECKING:
    from mcp_annotations.dispatch.handler import HandlerMethod, ParameterBinding

MISSING = object()

_LIST_ORIGINS = (list, tuple)


def _is_any(tp: Any) -> bool:
    return tp is Any or tp is inspect.Parameter.empty


def _subclass_of(tp: Any, accepted: tuple[type, ...]) -> bool:
    return is_class(tp) and issubclass(tp, accepted)


def root_cause(error: BaseException) -> BaseException:
    """Follow the __cause__ chain to the innermost exception."""
    seen = set()
    while error.__cause__ is not None and id(error) not in seen:
        seen.add(id(error))
        error = error.__cause__
    return error


# Return contracts


@dataclass(frozen=True)
class ReturnContract:
    """Declared return types a capability accepts."""

    types: tuple[type, ...] = ()
    list_items: tuple[type, ...] = ()
    allow_none: bool = False
    allow_any: bool = False

    def accepts(self, tp: Any) -> bool:
        tp, _ = split_annotated(tp)
        if _is_any(tp):
            return True
        if tp is None or tp is type(None):
            return self.allow_none
        if self.allow_any:
            return True
        if is_union(tp):
            return all(self.accepts(arg) for arg in get_args(tp))
        origin = get_origin(tp)
        if origin in _LIST_ORIGINS or _subclass_of(origin, _LIST_ORIGINS):
            if not self.list_items:
                return False
            args = get_args(tp)
            item = args[0] if args else Any
            return self._accepts_item(item)
        if tp in _LIST_ORIGINS:
            return bool(self.list_items)
        return _subclass_of(tp, self.types)

    def _accepts_item(self, item: Any) -> bool:
        item, _ = split_annotated(item)
        if _is_any(item):
            return True
        if is_union(item):
            return all(self._accepts_item(arg) for arg in get_args(item))
        return _subclass_of(item, self.list_items)

    def describe(self) -> str:
        names = [t.__name__ for t in self.types]
        names += [f"list[{t.__name__}]" for t in self.list_items]
        if self.allow_none:
            names.append("None")
        return ", ".join(names) or "anything"


# Field strategies


@dataclass(frozen=True)
class FieldSpec:
    key: str
    required: bool


class FieldStrategy:
    """Classifies sub-field parameters and extracts their values from a request."""

    description = "request field"

    def classify(
        self, param: inspect.Parameter, annotation: Any, extras: tuple[Any, ...], index: int
    ) -> FieldSpec | None:
        raise NotImplementedError

    def extract(self, request: Any, binding: ParameterBinding) -> Any:
        raise NotImplementedError

    def check(self, fields: list[ParameterBinding], method: str, payload: str) -> None:
        """Validate the complete set of field parameters."""
        pass


class NamedArguments(FieldStrategy):
    """Fields looked up by name in a request's argument mapping."""

    def __init__(self, marker_type: type, source: Callable[[Any], Mapping[str, Any] | None]):
        self.marker_type = marker_type
        self.source = source
        self.description = "named argument"

    def classify(self, param, annotation, extras, index):
        marker = next((e for e in extras if isinstance(e, self.marker_type)), None)
        key = getattr(marker, "name", None) or param.name
        required = param.default is inspect.Parameter.empty
        if marker is not None and getattr(marker, "required", None) is not None:
            required = marker.required
        return FieldSpec(key=key, required=required)

    def extract(self, request, binding):
        arguments = self.source(request) or {}
        return arguments.get(binding.key, MISSING)


class ResourceUri(FieldStrategy):
    """A single string parameter of a non-template resource receives the URI."""

    description = "resource URI"

    def classify(self, param, annotation, extras, index):
        base = strip_optional(annotation)
        if _is_any(base) or base is str:
            return FieldSpec(key="uri", required=True)
        return None

    def extract(self, request, binding):
        return request.uri

    def check(self, fields, method, payload):
        if len(fields) > 1:
            raise ConfigurationError(
                f"{method} may declare at most one string parameter to receive the resource URI",
                method=method,
            )


class CompletionFields(FieldStrategy):
    """Completion handlers may take the argument, the reference or the argument value."""

    description = "completion field"

    def classify(self, param, annotation, extras, index):
        base = strip_optional(annotation)
        if _subclass_of(base, (CompleteArgument,)):
            return FieldSpec(key="argument", required=True)
        if _subclass_of(base, (CompleteReference,)):
            return FieldSpec(key="ref", required=True)
        if base is str or _is_any(base):
            return FieldSpec(key="value", required=True)
        return None

    def extract(self, request, binding):
        if binding.key == "argument":
            return request.argument
        if binding.key == "ref":
            return request.ref
        return request.argument.value

    def check(self, fields, method, payload):
        keys = [f.key for f in fields]
        duplicates = {k for k in keys if keys.count(k) > 1}
        if duplicates:
            raise ConfigurationError(
                f"{method} declares more than one completion {', '.join(sorted(duplicates))} parameter",
                method=method,
            )


@dataclass(frozen=True)
class PositionalField:
    key: str
    types: tuple[type, ...]
    getter: Callable[[Any], Any]


class PositionalFields(FieldStrategy):
    """A fixed list of fields bound by position, as an alternative to the payload."""

    description = "positional field"

    def __init__(self, *fields: PositionalField):
        self.fields = fields

    def classify(self, param, annotation, extras, index):
        if index >= len(self.fields):
            return None
        spec = self.fields[index]
        base = strip_optional(annotation)
        if _is_any(base) or _subclass_of(base, spec.types):
            return FieldSpec(key=spec.key, required=False)
        return None

    def extract(self, request, binding):
        for spec in self.fields:
            if spec.key == binding.key:
                return spec.getter(request)
        return MISSING

    def check(self, fields, method, payload):
        if fields and len(fields) != len(self.fields):
            names = ", ".join(f.key for f in self.fields)
            raise ConfigurationError(
                f"{method} must declare either a single {payload} parameter "
                f"or exactly {len(self.fields)} parameters ({names})",
                method=method,
            )


# Error policies


class ErrorPolicy(Enum):
    """What an invocation error becomes for a capability."""

    TOOL_RESULT = "tool_result"
    INVALID_PARAMS = "invalid_params"
    INTERNAL_ERROR = "internal_error"

    def surface(self, error: Exception, handler: HandlerMethod) -> Any:
        """Return the error result, or raise the capability's error type."""
        cause = root_cause(error)
        label = handler.contract.label
        if self is ErrorPolicy.TOOL_RESULT:
            return CallToolResult.error(f"Error invoking method: {cause}")
        if isinstance(error, MCPError):
            raise error
        owner = type(getattr(handler.function, "__self__", None)).__name__
        message = f"Error invoking {label} method: {handler.method_name} in {owner}. Cause: {cause}"
        if self is ErrorPolicy.INVALID_PARAMS:
            raise MCPError.invalid_params(message) from error
        raise MCPError.internal_error(message) from error


# Contracts


@dataclass(frozen=True)
class SignatureContract:
    """Legal parameter and return shapes for one capability."""

    capability: Capability
    label: str
    payload_types: tuple[type, ...]
    result_type: type | tuple[type, ...] | None
    returns: ReturnContract
    text_shape: Callable[[Any, HandlerMethod, Any, DispatchConfig], Any]
    error_policy: ErrorPolicy
    void_shape: Callable[[DispatchConfig], Any] | None = None
    min_params: int = 0
    max_params: int | None = None
    allows_context: bool = False
    allows_meta: bool = False
    fields: FieldStrategy | None = None
    uses_path_variables: bool = False
    async_allows_plain: bool = True
    streams: bool = False
    payload_list_item: type | None = None

    @property
    def request_label(self) -> str:
        """Name of the payload in null-payload errors."""
        return "Notification" if self.capability.is_notification else "Request"

    @property
    def payload_name(self) -> str:
        if self.payload_list_item is not None:
            return f"list[{self.payload_list_item.__name__}]"
        return " or ".join(t.__name__ for t in self.payload_types)

    def payload_matches(self, tp: Any) -> bool:
        if self.payload_list_item is not None:
            origin = get_origin(tp)
            if origin not in _LIST_ORIGINS and not _subclass_of(origin, _LIST_ORIGINS):
                return False
            args = get_args(tp)
            return bool(args) and _subclass_of(args[0], (self.payload_list_item,))
        return _subclass_of(tp, self.payload_types)


def _list_changed(capability: Capability, item: type, label: str) -> SignatureContract:
    return SignatureContract(
        capability=capability,
        label=label,
        payload_types=(list,),
        payload_list_item=item,
        result_type=None,
        returns=ReturnContract(allow_none=True),
        text_shape=shapes.notification_text,
        void_shape=shapes.notification_void,
        error_policy=ErrorPolicy.INTERNAL_ERROR,
        min_params=1,
        max_params=1,
    )


CONTRACTS: dict[Capability, SignatureContract] = {
    Capability.TOOL: SignatureContract(
        capability=Capability.TOOL,
        label="tool",
        payload_types=(CallToolRequest,),
        result_type=CallToolResult,
        returns=ReturnContract(allow_none=True, allow_any=True),
        text_shape=shapes.tool_text,
        void_shape=shapes.tool_void,
        error_policy=ErrorPolicy.TOOL_RESULT,
        allows_context=True,
        allows_meta=True,
        fields=NamedArguments(ToolParam, lambda request: request.arguments),
        async_allows_plain=False,
        streams=True,
    ),
    Capability.PROMPT: SignatureContract(
        capability=Capability.PROMPT,
        label="prompt",
        payload_types=(GetPromptRequest,),
        result_type=GetPromptResult,
        returns=ReturnContract(
            types=(GetPromptResult, PromptMessage, str),
            list_items=(PromptMessage, str),
        ),
        text_shape=shapes.prompt_text,
        error_policy=ErrorPolicy.INVALID_PARAMS,
        allows_context=True,
        allows_meta=True,
        fields=NamedArguments(PromptArg, lambda request: request.arguments),
    ),
    Capability.RESOURCE: SignatureContract(
        capability=Capability.RESOURCE,
        label="resource",
        payload_types=(ReadResourceRequest,),
        result_type=ReadResourceResult,
        returns=ReturnContract(
            types=(ReadResourceResult, TextResourceContents, BlobResourceContents, str, bytes),
            list_items=(TextResourceContents, BlobResourceContents, str),
        ),
        text_shape=shapes.resource_text,
        error_policy=ErrorPolicy.INVALID_PARAMS,
        allows_context=True,
        allows_meta=True,
        fields=ResourceUri(),
        uses_path_variables=True,
    ),
    Capability.COMPLETE: SignatureContract(
        capability=Capability.COMPLETE,
        label="complete",
        payload_types=(CompleteRequest,),
        result_type=CompleteResult,
        returns=ReturnContract(types=(CompleteResult, Completion, str), list_items=(str,)),
        text_shape=shapes.complete_text,
        error_policy=ErrorPolicy.INVALID_PARAMS,
        allows_context=True,
        allows_meta=True,
        fields=CompletionFields(),
    ),
    Capability.SAMPLING: SignatureContract(
        capability=Capability.SAMPLING,
        label="sampling",
        payload_types=(CreateMessageRequest,),
        result_type=CreateMessageResult,
        returns=ReturnContract(types=(CreateMessageResult,)),
        text_shape=shapes.canonical_only,
        error_policy=ErrorPolicy.INTERNAL_ERROR,
        min_params=1,
        max_params=1,
    ),
    Capability.ELICITATION: SignatureContract(
        capability=Capability.ELICITATION,
        label="elicitation",
        payload_types=(ElicitRequest,),
        result_type=ElicitResult,
        returns=ReturnContract(types=(ElicitResult,)),
        text_shape=shapes.canonical_only,
        error_policy=ErrorPolicy.INTERNAL_ERROR,
        min_params=1,
        max_params=1,
    ),
    Capability.LOGGING: SignatureContract(
        capability=Capability.LOGGING,
        label="logging",
        payload_types=(LoggingMessageNotification,),
        result_type=None,
        returns=ReturnContract(allow_none=True),
        text_shape=shapes.notification_text,
        void_shape=shapes.notification_void,
        error_policy=ErrorPolicy.INTERNAL_ERROR,
        min_params=1,
        max_params=3,
        fields=PositionalFields(
            PositionalField("level", (LogLevel, str), lambda n: n.level),
            PositionalField("logger", (str,), lambda n: n.logger),
            PositionalField("data", (object,), lambda n: n.data),
        ),
    ),
    Capability.PROGRESS: SignatureContract(
        capability=Capability.PROGRESS,
        label="progress",
        payload_types=(ProgressNotification,),
        result_type=None,
        returns=ReturnContract(allow_none=True),
        text_shape=shapes.notification_text,
        void_shape=shapes.notification_void,
        error_policy=ErrorPolicy.INTERNAL_ERROR,
        min_params=1,
        max_params=3,
        fields=PositionalFields(
            PositionalField("progress", (float, int), lambda n: n.progress),
            PositionalField("progress_token", (str, int), lambda n: n.progress_token),
            PositionalField("total", (float, int, str), lambda n: n.total),
        ),
    ),
    Capability.TOOL_LIST_CHANGED: _list_changed(Capability.TOOL_LIST_CHANGED, Tool, "tool list changed"),
    Capability.PROMPT_LIST_CHANGED: _list_changed(
        Capability.PROMPT_LIST_CHANGED, Prompt, "prompt list changed"
    ),
    Capability.RESOURCE_LIST_CHANGED: _list_changed(
        Capability.RESOURCE_LIST_CHANGED, Resource, "resource list changed"
    ),
}


def contract_for(capability: Capability) -> SignatureContract:
    return CONTRACTS[capability]
