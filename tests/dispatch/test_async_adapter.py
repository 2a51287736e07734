"""Tests for asynchronous dispatch adapters."""

import asyncio
from typing import Any, AsyncIterator, Awaitable

import pytest

from mcp_annotations.annotations import mcp_elicitation, mcp_prompt, mcp_resource, mcp_tool
from mcp_annotations.capability import Capability, ExecutionMode
from mcp_annotations.dispatch.adapter import AsyncDispatchAdapter, create_adapter
from mcp_annotations.errors import ConfigurationError
from mcp_annotations.protocol.client_types import (
    ElicitRequest,
    ElicitResult,
    LoggingMessageNotification,
    LogLevel,
)
from mcp_annotations.protocol.context import AsyncServerExchange, TransportContext
from mcp_annotations.protocol.errors import INVALID_PARAMS, MCPError
from mcp_annotations.protocol.state import DispatchState
from mcp_annotations.protocol.types import (
    CallToolRequest,
    CallToolResult,
    GetPromptRequest,
    ReadResourceRequest,
)

ASYNC = ExecutionMode.ASYNC


class Tools:
    @mcp_tool
    async def add(self, a: int, b: int) -> int:
        await asyncio.sleep(0)
        return a + b

    @mcp_tool
    async def count(self, n: int) -> AsyncIterator[str]:
        for i in range(n):
            yield str(i)

    @mcp_tool
    async def flaky(self) -> AsyncIterator[str]:
        yield "ok"
        raise RuntimeError("stream broke")

    @mcp_tool
    async def unserializable(self) -> Any:
        return {"x": object()}

    @mcp_tool
    async def unserializable_stream(self) -> AsyncIterator[Any]:
        yield {"x": object()}
        yield "never reached"

    @mcp_tool
    async def rejected(self) -> str:
        raise RuntimeError("rejected")

    @mcp_tool
    def deferred(self, text: str) -> Awaitable[str]:
        async def later():
            return text.upper()

        return later()

    @mcp_tool
    def throws_before_await(self) -> Awaitable[str]:
        raise ValueError("not started")

    @mcp_tool
    async def hang(self) -> str:
        await asyncio.sleep(60)
        return "never"

    @mcp_tool
    async def notify(self, exchange: AsyncServerExchange, message: str) -> str:
        await exchange.log(LoggingMessageNotification(level=LogLevel.INFO, data=message))
        return "logged"

    @mcp_tool
    async def whoami(self, transport: TransportContext) -> str:
        return transport.get("authorization", "anonymous")

    @mcp_tool
    def plain(self) -> str:
        return "plain"


class Prompts:
    @mcp_prompt
    def sync_greeting(self, name: str) -> str:
        return f"Hello {name}"

    @mcp_prompt
    async def streamed(self) -> AsyncIterator[str]:
        yield "first"
        yield "second"


class Resources:
    @mcp_resource("user://{name}")
    async def user(self, name: str) -> str:
        return f"User: {name}"

    @mcp_resource("fail://{name}")
    async def broken(self, name: str) -> str:
        raise LookupError(name)


class Client:
    @mcp_elicitation
    async def elicit(self, request: ElicitRequest) -> ElicitResult:
        return ElicitResult(action="accept", content={"name": "Ada"})


@pytest.fixture
def tools():
    return Tools()


class TestAsyncToolAdapter:
    """Tests for awaitable tool dispatch."""

    @pytest.mark.asyncio
    async def test_add(self, tools, add_request):
        adapter = create_adapter(tools.add, Capability.TOOL, ASYNC)
        assert isinstance(adapter, AsyncDispatchAdapter)
        assert not adapter.streaming
        result = await adapter(add_request)
        assert result.texts == ["5"]

    @pytest.mark.asyncio
    async def test_null_request(self, tools):
        adapter = create_adapter(tools.add, Capability.TOOL, ASYNC)
        with pytest.raises(ValueError, match="Request must not be null"):
            await adapter(None)

    @pytest.mark.asyncio
    async def test_rejected_awaitable_propagates(self, tools):
        adapter = create_adapter(tools.rejected, Capability.TOOL, ASYNC)
        states = []
        adapter.on_transition(lambda old, new: states.append(new))
        with pytest.raises(RuntimeError, match="rejected"):
            await adapter(CallToolRequest(name="rejected"))
        assert states[-1] == DispatchState.FAILED

    @pytest.mark.asyncio
    async def test_function_returning_awaitable(self, tools):
        adapter = create_adapter(tools.deferred, Capability.TOOL, ASYNC)
        result = await adapter(CallToolRequest(name="deferred", arguments={"text": "hi"}))
        assert result.texts == ["HI"]

    @pytest.mark.asyncio
    async def test_synchronous_throw_becomes_error_result(self, tools):
        adapter = create_adapter(tools.throws_before_await, Capability.TOOL, ASYNC)
        result = await adapter(CallToolRequest(name="throws_before_await"))
        assert isinstance(result, CallToolResult)
        assert result.is_error is True
        assert result.texts == ["Error invoking method: not started"]

    @pytest.mark.asyncio
    async def test_binding_error_becomes_error_result(self, tools):
        adapter = create_adapter(tools.add, Capability.TOOL, ASYNC)
        result = await adapter(CallToolRequest(name="add", arguments={"a": 1}))
        assert result.is_error is True

    @pytest.mark.asyncio
    async def test_cancellation_reaches_handler(self, tools):
        adapter = create_adapter(tools.hang, Capability.TOOL, ASYNC)
        task = asyncio.create_task(adapter(CallToolRequest(name="hang")))
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    @pytest.mark.asyncio
    async def test_async_exchange(self, tools, async_exchange, async_session):
        adapter = create_adapter(tools.notify, Capability.TOOL, ASYNC)
        result = await adapter(
            CallToolRequest(name="notify", arguments={"message": "hello"}), async_exchange
        )
        assert result.texts == ["logged"]
        async_session.send_logging_message.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_stateless_transport_context(self, tools, transport_context):
        adapter = create_adapter(tools.whoami, Capability.TOOL, ExecutionMode.STATELESS_ASYNC)
        result = await adapter(CallToolRequest(name="whoami"), transport_context)
        assert result.texts == ["Bearer abc"]

    def test_plain_tool_rejected(self, tools):
        with pytest.raises(ConfigurationError):
            create_adapter(tools.plain, Capability.TOOL, ASYNC)


class TestStreamingToolAdapter:
    """Tests for tools returning async streams."""

    @pytest.mark.asyncio
    async def test_three_items_in_order(self, tools):
        adapter = create_adapter(tools.count, Capability.TOOL, ASYNC)
        assert adapter.streaming
        results = [r async for r in adapter(CallToolRequest(name="count", arguments={"n": 3}))]
        assert [r.texts for r in results] == [["0"], ["1"], ["2"]]

    @pytest.mark.asyncio
    async def test_states(self, tools):
        adapter = create_adapter(tools.count, Capability.TOOL, ASYNC)
        states = []
        adapter.on_transition(lambda old, new: states.append(new))
        async for _ in adapter(CallToolRequest(name="count", arguments={"n": 2})):
            pass
        assert states[-1] == DispatchState.COMPLETE

    @pytest.mark.asyncio
    async def test_null_request(self, tools):
        adapter = create_adapter(tools.count, Capability.TOOL, ASYNC)
        with pytest.raises(ValueError, match="Request must not be null"):
            async for _ in adapter(None):
                pass

    @pytest.mark.asyncio
    async def test_binding_error_yields_error_result(self, tools):
        adapter = create_adapter(tools.count, Capability.TOOL, ASYNC)
        results = [r async for r in adapter(CallToolRequest(name="count"))]
        assert len(results) == 1
        assert results[0].is_error is True

    @pytest.mark.asyncio
    async def test_unserializable_item_becomes_error_result(self, tools):
        single = create_adapter(tools.unserializable, Capability.TOOL, ASYNC)
        single_result = await single(CallToolRequest(name="unserializable"))
        assert single_result.is_error is True

        adapter = create_adapter(tools.unserializable_stream, Capability.TOOL, ASYNC)
        states = []
        adapter.on_transition(lambda old, new: states.append(new))
        results = [r async for r in adapter(CallToolRequest(name="unserializable_stream"))]
        assert len(results) == 1
        assert isinstance(results[0], CallToolResult)
        assert results[0].is_error is True
        assert results[0].texts == single_result.texts
        assert states[-1] == DispatchState.FAILED

    @pytest.mark.asyncio
    async def test_failure_mid_stream_propagates(self, tools):
        adapter = create_adapter(tools.flaky, Capability.TOOL, ASYNC)
        results = []
        with pytest.raises(RuntimeError, match="stream broke"):
            async for result in adapter(CallToolRequest(name="flaky")):
                results.append(result)
        assert [r.texts for r in results] == [["ok"]]


class TestAsyncOtherAdapters:
    """Tests for non-tool capabilities in asynchronous mode."""

    @pytest.mark.asyncio
    async def test_plain_prompt(self):
        adapter = create_adapter(Prompts().sync_greeting, Capability.PROMPT, ASYNC)
        result = await adapter(GetPromptRequest(name="sync_greeting", arguments={"name": "Ada"}))
        assert result.messages[0].content.text == "Hello Ada"

    @pytest.mark.asyncio
    async def test_streamed_prompt_takes_first_element(self):
        adapter = create_adapter(Prompts().streamed, Capability.PROMPT, ASYNC)
        assert not adapter.streaming
        result = await adapter(GetPromptRequest(name="streamed"))
        assert [m.content.text for m in result.messages] == ["first"]

    @pytest.mark.asyncio
    async def test_resource_template(self, user_request):
        adapter = create_adapter(Resources().user, Capability.RESOURCE, ASYNC)
        result = await adapter(user_request)
        assert result.contents[0].text == "User: alice"

    @pytest.mark.asyncio
    async def test_resource_binding_error_is_invalid_params(self):
        adapter = create_adapter(Resources().user, Capability.RESOURCE, ASYNC)
        with pytest.raises(MCPError) as exc_info:
            await adapter(ReadResourceRequest(uri="other://alice"))
        assert exc_info.value.code == INVALID_PARAMS

    @pytest.mark.asyncio
    async def test_resource_awaited_error_propagates(self):
        adapter = create_adapter(Resources().broken, Capability.RESOURCE, ASYNC)
        with pytest.raises(LookupError):
            await adapter(ReadResourceRequest(uri="fail://x"))

    @pytest.mark.asyncio
    async def test_elicitation(self):
        adapter = create_adapter(Client().elicit, Capability.ELICITATION, ASYNC)
        result = await adapter(ElicitRequest(message="Your name?"))
        assert result.content == {"name": "Ada"}
