"""Registration-time validation of handler method signatures."""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable

from mcp_annotations.annotations.markers import Marker, ResourceMarker, ToolMarker, get_marker
from mcp_annotations.annotations.params import McpMeta, ProgressToken
from mcp_annotations.capability import Capability, ExecutionMode, ReturnMode
from mcp_annotations.config import DispatchConfig
from mcp_annotations.dispatch.contract import SignatureContract, contract_for
from mcp_annotations.dispatch.handler import (
    ContextKind,
    HandlerMethod,
    ParameterBinding,
    ParameterRole,
    ReturnKind,
    ReturnShape,
    describe_type,
    is_none_type,
    return_shape,
)
from mcp_annotations.errors import ConfigurationError
from mcp_annotations.protocol.context import (
    AsyncServerExchange,
    SyncServerExchange,
    TransportContext,
)
from mcp_annotations.protocol.request_context import AsyncRequestContext, SyncRequestContext
from mcp_annotations.schema import (
    generate_output_schema,
    is_class,
    is_infrastructure_type,
    resolve_type_hints,
    split_annotated,
    strip_optional,
)
from mcp_annotations.uri_template import UriTemplate

logger = logging.getLogger(__name__)


def _method_name(function: Callable[..., Any]) -> str:
    target = getattr(function, "__func__", function)
    return getattr(target, "__qualname__", repr(target))


def check_return(
    function: Callable[..., Any],
    contract: SignatureContract,
    mode: ExecutionMode,
    shape: ReturnShape,
) -> None:
    """Reject return shapes the contract does not allow for the mode."""
    name = _method_name(function)
    if not mode.is_async and shape.is_async:
        raise ConfigurationError(
            f"{name} returns an asynchronous value and cannot be registered "
            f"with a synchronous {contract.label} adapter",
            method=name,
        )
    if mode.is_async and not shape.is_async and not contract.async_allows_plain:
        raise ConfigurationError(
            f"{name} must be a coroutine, async generator or return an awaitable "
            f"to be registered with an asynchronous {contract.label} adapter",
            method=name,
        )
    if not contract.returns.accepts(shape.value_type):
        raise ConfigurationError(
            f"{name} declares return type {describe_type(shape.value_type)}; "
            f"{contract.label} handlers must return {contract.returns.describe()}",
            method=name,
        )


def _context_kind(
    base: Any, name: str, param: str, contract: SignatureContract, mode: ExecutionMode
) -> ContextKind | None:
    if not is_class(base):
        return None
    if issubclass(base, TransportContext):
        kind = ContextKind.TRANSPORT
    elif issubclass(base, (SyncServerExchange, AsyncServerExchange)):
        kind = ContextKind.EXCHANGE
    elif issubclass(base, (SyncRequestContext, AsyncRequestContext)):
        kind = ContextKind.REQUEST
    else:
        return None

    if not contract.allows_context:
        raise ConfigurationError(
            f"{name}: parameter '{param}' of type {base.__name__} is not allowed "
            f"for {contract.label} handlers",
            method=name,
        )
    if kind is ContextKind.EXCHANGE and mode.is_stateless:
        raise ConfigurationError(
            f"{name}: stateless {contract.label} handlers cannot declare a session "
            f"exchange parameter '{param}'; use TransportContext",
            method=name,
        )
    if kind is ContextKind.EXCHANGE:
        expected = AsyncServerExchange if mode.is_async else SyncServerExchange
    elif kind is ContextKind.REQUEST:
        expected = AsyncRequestContext if mode.is_async else SyncRequestContext
    else:
        return kind
    if not issubclass(base, expected):
        raise ConfigurationError(
            f"{name}: parameter '{param}' must be {expected.__name__} "
            f"for {mode} adapters, got {base.__name__}",
            method=name,
        )
    return kind


def check_parameters(
    function: Callable[..., Any],
    contract: SignatureContract,
    mode: ExecutionMode,
    hints: dict[str, Any],
    template: UriTemplate | None = None,
) -> tuple[ParameterBinding, ...]:
    """Classify every parameter into a role, rejecting illegal patterns."""
    name = _method_name(function)
    bindings: list[ParameterBinding] = []
    fields: list[ParameterBinding] = []
    path_variables = set(template.variable_names) if template else set()
    seen: dict[str, str] = {}

    def claim_single(what: str, param: str) -> None:
        if what in seen:
            raise ConfigurationError(
                f"{name} declares more than one {what} parameter "
                f"('{seen[what]}' and '{param}')",
                method=name,
            )
        seen[what] = param

    parameters = list(inspect.signature(function).parameters.values())
    for param in parameters:
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            raise ConfigurationError(
                f"{name}: variadic parameter '{param.name}' is not supported", method=name
            )

        annotation = hints.get(param.name, inspect.Parameter.empty)
        base, extras = split_annotated(annotation)
        inner = strip_optional(base)
        common = dict(
            name=param.name,
            annotation=base,
            default=param.default,
            keyword_only=param.kind is param.KEYWORD_ONLY,
            position=len(bindings),
        )

        if any(isinstance(e, ProgressToken) or e is ProgressToken for e in extras):
            if not contract.allows_meta:
                raise ConfigurationError(
                    f"{name}: progress token parameter '{param.name}' is not allowed "
                    f"for {contract.label} handlers",
                    method=name,
                )
            claim_single("progress token", param.name)
            bindings.append(
                ParameterBinding(role=ParameterRole.META, key="progressToken", required=False, **common)
            )
            continue

        if is_class(inner) and issubclass(inner, McpMeta):
            if not contract.allows_meta:
                raise ConfigurationError(
                    f"{name}: meta parameter '{param.name}' is not allowed "
                    f"for {contract.label} handlers",
                    method=name,
                )
            claim_single("meta", param.name)
            bindings.append(ParameterBinding(role=ParameterRole.META, key=None, **common))
            continue

        kind = _context_kind(inner, name, param.name, contract, mode)
        if kind is not None:
            claim_single("context", param.name)
            bindings.append(
                ParameterBinding(role=ParameterRole.CONTEXT, context_kind=kind, **common)
            )
            continue

        if contract.payload_matches(inner):
            claim_single("request", param.name)
            bindings.append(ParameterBinding(role=ParameterRole.PAYLOAD, **common))
            continue

        if is_infrastructure_type(annotation):
            raise ConfigurationError(
                f"{name}: parameter '{param.name}' of type {describe_type(inner)} "
                f"is not valid for {contract.label} handlers",
                method=name,
            )

        if template is not None and param.name in path_variables:
            if not (inner is str or inner is inspect.Parameter.empty or inner is Any):
                raise ConfigurationError(
                    f"{name}: URI variable parameter '{param.name}' must be a str, "
                    f"got {describe_type(inner)}",
                    method=name,
                )
            bindings.append(
                ParameterBinding(role=ParameterRole.PATH_VARIABLE, key=param.name, **common)
            )
            continue

        if template is not None:
            raise ConfigurationError(
                f"{name}: parameter '{param.name}' does not match any variable of "
                f"URI template '{template.template}'",
                method=name,
            )

        spec = None
        if contract.fields is not None:
            spec = contract.fields.classify(param, base, extras, len(fields))
        if spec is None:
            raise ConfigurationError(
                f"{name}: parameter '{param.name}' of type {describe_type(base)} "
                f"is not valid for {contract.label} handlers",
                method=name,
            )
        binding = ParameterBinding(
            role=ParameterRole.FIELD, key=spec.key, required=spec.required, **common
        )
        bindings.append(binding)
        fields.append(binding)

    payload = "request" in seen
    path_bound = [b for b in bindings if b.role is ParameterRole.PATH_VARIABLE]
    if payload and (fields or path_bound):
        offending = (fields or path_bound)[0].name
        raise ConfigurationError(
            f"{name} declares both a {contract.payload_name} parameter and "
            f"field parameter '{offending}'; use one or the other",
            method=name,
        )

    if contract.fields is not None:
        contract.fields.check(fields, name, contract.payload_name)

    count = len(parameters)
    if count < contract.min_params or (
        contract.max_params is not None and count > contract.max_params
    ):
        bounds = (
            f"exactly {contract.min_params}"
            if contract.min_params == contract.max_params
            else f"between {contract.min_params} and {contract.max_params}"
        )
        raise ConfigurationError(
            f"{name} declares {count} parameters; {contract.label} handlers take {bounds}",
            method=name,
        )

    if contract.min_params > 0 and not payload and not fields:
        raise ConfigurationError(
            f"{name} must declare a {contract.payload_name} parameter", method=name
        )

    if template is not None:
        unbound = [v for v in template.variable_names if v not in {b.name for b in path_bound}]
        if unbound:
            raise ConfigurationError(
                f"{name}: URI template '{template.template}' variable(s) "
                f"{', '.join(unbound)} are not bound to parameters",
                method=name,
            )

    return tuple(bindings)


def _return_mode(
    capability: Capability,
    marker: Marker,
    shape: ReturnShape,
    config: DispatchConfig,
) -> tuple[ReturnMode, dict[str, Any] | None]:
    if is_none_type(shape.value_type):
        return ReturnMode.VOID, None
    if (
        capability is Capability.TOOL
        and config.generate_output_schema
        and isinstance(marker, ToolMarker)
        and marker.generate_output_schema
        and shape.kind is not ReturnKind.STREAM
    ):
        schema = generate_output_schema(shape.value_type)
        if schema is not None:
            return ReturnMode.STRUCTURED, schema
    return ReturnMode.TEXT, None


def validate_handler(
    function: Callable[..., Any],
    capability: Capability,
    mode: ExecutionMode = ExecutionMode.SYNC,
    marker: Marker | None = None,
    config: DispatchConfig | None = None,
) -> HandlerMethod:
    """
    Validate a method against its capability's signature contract.

    Runs the return check, then the parameter check.

    Args:
        function: Bound method (or plain function) to validate.
        capability: Capability it is registered for.
        mode: Execution mode of the adapter that will wrap it.
        marker: Marker metadata; read from the function when omitted.
        config: Dispatch settings.

    Returns:
        The immutable HandlerMethod used by binder and normalizer.

    Raises:
        ConfigurationError: If the signature is not legal for the capability and mode.
    """
    config = config or DispatchConfig()
    contract = contract_for(capability)
    if function is None or not callable(function):
        raise ConfigurationError(f"{capability} handler must be callable, got {function!r}")
    name = _method_name(function)

    marker = marker or get_marker(function, capability)
    if marker is None:
        raise ConfigurationError(f"{name} is not marked as a {contract.label} handler", method=name)

    hints = resolve_type_hints(function)
    shape = return_shape(function, hints)
    check_return(function, contract, mode, shape)

    template = None
    if contract.uses_path_variables and isinstance(marker, ResourceMarker):
        if UriTemplate.is_template(marker.uri):
            template = UriTemplate(marker.uri)

    bindings = check_parameters(function, contract, mode, hints, template)
    return_mode, output_schema = _return_mode(capability, marker, shape, config)

    handler = HandlerMethod(
        function=function,
        capability=capability,
        mode=mode,
        marker=marker,
        contract=contract,
        bindings=bindings,
        return_shape=shape,
        return_mode=return_mode,
        output_schema=output_schema,
        uri_template=template,
    )
    logger.debug(f"Validated {contract.label} handler {name} ({mode}, {return_mode.value})")
    return handler
