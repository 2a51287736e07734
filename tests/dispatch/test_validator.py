"""Tests for handler signature validation."""

from dataclasses import dataclass
from typing import Annotated, AsyncIterator, Optional

import pytest

from mcp_annotations.annotations import (
    McpMeta,
    ProgressToken,
    ToolMarker,
    ToolParam,
    mcp_complete,
    mcp_elicitation,
    mcp_logging,
    mcp_progress,
    mcp_prompt,
    mcp_resource,
    mcp_sampling,
    mcp_tool,
    mcp_tool_list_changed,
)
from mcp_annotations.capability import Capability, ExecutionMode, ReturnMode
from mcp_annotations.config import DispatchConfig
from mcp_annotations.dispatch.handler import ContextKind, ParameterRole, ReturnKind
from mcp_annotations.dispatch.validator import validate_handler
from mcp_annotations.errors import ConfigurationError
from mcp_annotations.protocol.client_types import (
    CreateMessageRequest,
    CreateMessageResult,
    ElicitRequest,
    ElicitResult,
    LoggingMessageNotification,
    LogLevel,
)
from mcp_annotations.protocol.context import (
    AsyncServerExchange,
    SyncServerExchange,
    TransportContext,
)
from mcp_annotations.protocol.request_context import SyncRequestContext
from mcp_annotations.protocol.types import (
    CallToolRequest,
    CallToolResult,
    CompleteArgument,
    CompleteRequest,
    Prompt,
    ReadResourceRequest,
    Tool,
)


@dataclass
class Forecast:
    city: str
    celsius: float


class Calculator:
    @mcp_tool(description="Add two numbers")
    def add(self, a: int, b: int) -> int:
        return a + b

    @mcp_tool
    def forecast(self, city: str) -> Forecast:
        return Forecast(city=city, celsius=21.5)

    @mcp_tool(generate_output_schema=False)
    def forecast_text(self, city: str) -> Forecast:
        return Forecast(city=city, celsius=21.5)

    @mcp_tool
    def reset(self) -> None:
        pass

    @mcp_tool
    async def slow_add(self, a: int, b: int) -> int:
        return a + b

    @mcp_tool
    async def count(self, n: int) -> AsyncIterator[str]:
        for i in range(n):
            yield str(i)

    @mcp_tool
    def with_request(self, request: CallToolRequest) -> CallToolResult:
        return CallToolResult.text(request.name)

    @mcp_tool
    def mixed(self, request: CallToolRequest, a: int) -> str:
        return ""

    @mcp_tool
    def with_exchange(self, exchange: SyncServerExchange, a: int) -> str:
        return ""

    @mcp_tool
    def with_async_exchange(self, exchange: AsyncServerExchange) -> str:
        return ""

    @mcp_tool
    def with_transport(self, transport: TransportContext, a: int) -> str:
        return ""

    @mcp_tool
    def two_exchanges(self, first: SyncServerExchange, second: SyncServerExchange) -> str:
        return ""

    @mcp_tool
    def with_meta(
        self,
        meta: McpMeta,
        token: Annotated[Optional[str], ProgressToken()],
        query: Annotated[str, ToolParam("Query", name="q")],
    ) -> str:
        return ""

    @mcp_tool
    def variadic(self, *args: int) -> str:
        return ""


class Prompts:
    @mcp_prompt
    def greeting(self, name: str) -> str:
        return f"Hello {name}"

    @mcp_prompt
    def bad_return(self, name: str) -> int:
        return 1


class Resources:
    @mcp_resource("user://{name}")
    def user(self, name: str) -> str:
        return name

    @mcp_resource("user://{name}")
    def extra_param(self, name: str, age: int) -> str:
        return name

    @mcp_resource("user://{name}/{id}")
    def unbound(self, name: str) -> str:
        return name

    @mcp_resource("item://{id}")
    def non_string_variable(self, id: int) -> str:
        return ""

    @mcp_resource("config://app")
    def config(self, uri: str) -> str:
        return uri

    @mcp_resource("config://two")
    def two_uris(self, uri: str, other: str) -> str:
        return uri

    @mcp_resource("config://request")
    def with_request(self, request: ReadResourceRequest) -> str:
        return request.uri


class ClientHandlers:
    @mcp_sampling
    def sample(self, request: CreateMessageRequest) -> CreateMessageResult:
        return CreateMessageResult.text("hi")

    @mcp_sampling
    def sample_no_request(self) -> CreateMessageResult:
        return CreateMessageResult.text("hi")

    @mcp_sampling
    def sample_two(self, request: CreateMessageRequest, extra: str) -> CreateMessageResult:
        return CreateMessageResult.text("hi")

    @mcp_sampling
    def sample_wrong_return(self, request: CreateMessageRequest) -> str:
        return ""

    @mcp_elicitation
    async def elicit(self, request: ElicitRequest) -> ElicitResult:
        return ElicitResult(action="accept", content={})

    @mcp_logging
    def on_log(self, notification: LoggingMessageNotification) -> None:
        pass

    @mcp_logging
    def on_log_fields(self, level: LogLevel, logger: str, data: object) -> None:
        pass

    @mcp_logging
    def on_log_partial(self, level: LogLevel, logger: str) -> None:
        pass

    @mcp_logging
    def on_log_with_context(self, exchange: SyncServerExchange) -> None:
        pass

    @mcp_progress
    def on_progress(self, progress: float, token: str, total: float) -> None:
        pass

    @mcp_tool_list_changed
    def on_tools(self, tools: list[Tool]) -> None:
        pass

    @mcp_tool_list_changed
    def on_wrong_list(self, prompts: list[Prompt]) -> None:
        pass


class Completions:
    @mcp_complete(prompt="greeting")
    def names(self, value: str) -> list[str]:
        return []

    @mcp_complete(prompt="greeting")
    def from_argument(self, argument: CompleteArgument) -> list[str]:
        return []

    @mcp_complete(prompt="greeting")
    def from_request(self, request: CompleteRequest) -> list[str]:
        return []


def roles(handler):
    return [(b.name, b.role) for b in handler.bindings]


class TestToolValidation:
    """Tests for tool signatures."""

    def test_named_arguments(self):
        handler = validate_handler(Calculator().add, Capability.TOOL)
        assert roles(handler) == [("a", ParameterRole.FIELD), ("b", ParameterRole.FIELD)]
        assert handler.return_mode is ReturnMode.TEXT
        assert handler.output_schema is None

    def test_object_return_is_structured(self):
        handler = validate_handler(Calculator().forecast, Capability.TOOL)
        assert handler.return_mode is ReturnMode.STRUCTURED
        assert handler.output_schema["properties"]["celsius"] == {"type": "number"}

    def test_marker_disables_output_schema(self):
        handler = validate_handler(Calculator().forecast_text, Capability.TOOL)
        assert handler.return_mode is ReturnMode.TEXT

    def test_config_disables_output_schema(self):
        config = DispatchConfig(generate_output_schema=False)
        handler = validate_handler(Calculator().forecast, Capability.TOOL, config=config)
        assert handler.return_mode is ReturnMode.TEXT

    def test_none_return_is_void(self):
        handler = validate_handler(Calculator().reset, Capability.TOOL)
        assert handler.return_mode is ReturnMode.VOID

    def test_async_method_rejected_in_sync_mode(self):
        with pytest.raises(ConfigurationError, match="asynchronous value"):
            validate_handler(Calculator().slow_add, Capability.TOOL)

    def test_plain_method_rejected_in_async_mode(self):
        with pytest.raises(ConfigurationError, match="must be a coroutine"):
            validate_handler(Calculator().add, Capability.TOOL, ExecutionMode.ASYNC)

    def test_async_generator_is_stream(self):
        handler = validate_handler(Calculator().count, Capability.TOOL, ExecutionMode.ASYNC)
        assert handler.return_shape.kind is ReturnKind.STREAM
        assert handler.return_shape.value_type is str
        assert handler.return_mode is ReturnMode.TEXT

    def test_request_payload(self):
        handler = validate_handler(Calculator().with_request, Capability.TOOL)
        assert roles(handler) == [("request", ParameterRole.PAYLOAD)]

    def test_payload_and_fields_rejected(self):
        with pytest.raises(ConfigurationError, match="one or the other"):
            validate_handler(Calculator().mixed, Capability.TOOL)

    def test_sync_exchange(self):
        handler = validate_handler(Calculator().with_exchange, Capability.TOOL)
        context = handler.find(ParameterRole.CONTEXT)[0]
        assert context.context_kind is ContextKind.EXCHANGE

    def test_exchange_must_match_mode(self):
        with pytest.raises(ConfigurationError, match="must be SyncServerExchange"):
            validate_handler(Calculator().with_async_exchange, Capability.TOOL)

    def test_exchange_rejected_when_stateless(self):
        with pytest.raises(ConfigurationError, match="stateless"):
            validate_handler(
                Calculator().with_exchange, Capability.TOOL, ExecutionMode.STATELESS_SYNC
            )

    def test_transport_context_when_stateless(self):
        handler = validate_handler(
            Calculator().with_transport, Capability.TOOL, ExecutionMode.STATELESS_SYNC
        )
        assert handler.find(ParameterRole.CONTEXT)[0].context_kind is ContextKind.TRANSPORT

    def test_request_context_when_stateless(self):
        class Handlers:
            @mcp_tool
            def traced(self, ctx: SyncRequestContext, query: str) -> str:
                return query

            @mcp_tool
            def doubled(self, ctx: SyncRequestContext, exchange: SyncServerExchange) -> str:
                return ""

        handler = validate_handler(
            Handlers().traced, Capability.TOOL, ExecutionMode.STATELESS_SYNC
        )
        assert handler.find(ParameterRole.CONTEXT)[0].context_kind is ContextKind.REQUEST
        with pytest.raises(ConfigurationError, match="more than one context"):
            validate_handler(Handlers().doubled, Capability.TOOL)

    def test_single_context(self):
        with pytest.raises(ConfigurationError, match="more than one context"):
            validate_handler(Calculator().two_exchanges, Capability.TOOL)

    def test_meta_progress_token_and_renamed_field(self):
        handler = validate_handler(Calculator().with_meta, Capability.TOOL)
        meta = handler.find(ParameterRole.META)
        assert [(b.name, b.key) for b in meta] == [("meta", None), ("token", "progressToken")]
        assert handler.field_bindings[0].key == "q"

    def test_variadic_rejected(self):
        with pytest.raises(ConfigurationError, match="variadic"):
            validate_handler(Calculator().variadic, Capability.TOOL)

    def test_unmarked_rejected(self):
        def plain(a: int) -> int:
            return a

        with pytest.raises(ConfigurationError, match="not marked"):
            validate_handler(plain, Capability.TOOL)

    def test_explicit_marker(self):
        def plain(a: int) -> int:
            return a

        handler = validate_handler(plain, Capability.TOOL, marker=ToolMarker(name="plain"))
        assert handler.marker.name == "plain"

    def test_not_callable(self):
        with pytest.raises(ConfigurationError, match="must be callable"):
            validate_handler(None, Capability.TOOL)


class TestPromptValidation:
    def test_plain_prompt_allowed_in_async_mode(self):
        handler = validate_handler(Prompts().greeting, Capability.PROMPT, ExecutionMode.ASYNC)
        assert handler.return_shape.kind is ReturnKind.PLAIN

    def test_return_type_checked(self):
        with pytest.raises(ConfigurationError, match="prompt handlers must return"):
            validate_handler(Prompts().bad_return, Capability.PROMPT)


class TestResourceValidation:
    """Tests for resource signatures and URI templates."""

    def test_template_variable(self):
        handler = validate_handler(Resources().user, Capability.RESOURCE)
        assert roles(handler) == [("name", ParameterRole.PATH_VARIABLE)]
        assert handler.uri_template.template == "user://{name}"

    def test_parameter_outside_template(self):
        with pytest.raises(ConfigurationError, match="does not match any variable"):
            validate_handler(Resources().extra_param, Capability.RESOURCE)

    def test_unbound_variable(self):
        with pytest.raises(ConfigurationError, match="not bound"):
            validate_handler(Resources().unbound, Capability.RESOURCE)

    def test_variable_must_be_string(self):
        with pytest.raises(ConfigurationError, match="must be a str"):
            validate_handler(Resources().non_string_variable, Capability.RESOURCE)

    def test_uri_parameter(self):
        handler = validate_handler(Resources().config, Capability.RESOURCE)
        assert handler.uri_template is None
        assert handler.field_bindings[0].key == "uri"

    def test_single_uri_parameter(self):
        with pytest.raises(ConfigurationError, match="at most one string parameter"):
            validate_handler(Resources().two_uris, Capability.RESOURCE)

    def test_request_payload(self):
        handler = validate_handler(Resources().with_request, Capability.RESOURCE)
        assert roles(handler) == [("request", ParameterRole.PAYLOAD)]


class TestClientValidation:
    """Tests for sampling, elicitation and notification signatures."""

    def test_sampling(self):
        handler = validate_handler(ClientHandlers().sample, Capability.SAMPLING)
        assert roles(handler) == [("request", ParameterRole.PAYLOAD)]

    def test_sampling_requires_request(self):
        with pytest.raises(ConfigurationError, match="declares 0 parameters"):
            validate_handler(ClientHandlers().sample_no_request, Capability.SAMPLING)

    def test_sampling_takes_one_parameter(self):
        with pytest.raises(ConfigurationError):
            validate_handler(ClientHandlers().sample_two, Capability.SAMPLING)

    def test_sampling_return_type(self):
        with pytest.raises(ConfigurationError, match="must return CreateMessageResult"):
            validate_handler(ClientHandlers().sample_wrong_return, Capability.SAMPLING)

    def test_elicitation_async(self):
        handler = validate_handler(
            ClientHandlers().elicit, Capability.ELICITATION, ExecutionMode.ASYNC
        )
        assert handler.return_shape.kind is ReturnKind.AWAITABLE
        assert handler.return_shape.value_type is ElicitResult

    def test_logging_payload(self):
        handler = validate_handler(ClientHandlers().on_log, Capability.LOGGING)
        assert roles(handler) == [("notification", ParameterRole.PAYLOAD)]
        assert handler.return_mode is ReturnMode.VOID

    def test_logging_fields(self):
        handler = validate_handler(ClientHandlers().on_log_fields, Capability.LOGGING)
        assert [b.key for b in handler.field_bindings] == ["level", "logger", "data"]

    def test_logging_fields_must_be_complete(self):
        with pytest.raises(ConfigurationError, match="exactly 3 parameters"):
            validate_handler(ClientHandlers().on_log_partial, Capability.LOGGING)

    def test_logging_rejects_context(self):
        with pytest.raises(ConfigurationError, match="not allowed"):
            validate_handler(ClientHandlers().on_log_with_context, Capability.LOGGING)

    def test_progress_fields(self):
        handler = validate_handler(ClientHandlers().on_progress, Capability.PROGRESS)
        assert [b.key for b in handler.field_bindings] == ["progress", "progress_token", "total"]

    def test_list_changed(self):
        handler = validate_handler(ClientHandlers().on_tools, Capability.TOOL_LIST_CHANGED)
        assert roles(handler) == [("tools", ParameterRole.PAYLOAD)]

    def test_list_changed_item_type(self):
        with pytest.raises(ConfigurationError, match="not valid"):
            validate_handler(ClientHandlers().on_wrong_list, Capability.TOOL_LIST_CHANGED)


class TestCompletionValidation:
    def test_value_parameter(self):
        handler = validate_handler(Completions().names, Capability.COMPLETE)
        assert handler.field_bindings[0].key == "value"

    def test_argument_parameter(self):
        handler = validate_handler(Completions().from_argument, Capability.COMPLETE)
        assert handler.field_bindings[0].key == "argument"

    def test_request_parameter(self):
        handler = validate_handler(Completions().from_request, Capability.COMPLETE)
        assert roles(handler) == [("request", ParameterRole.PAYLOAD)]
