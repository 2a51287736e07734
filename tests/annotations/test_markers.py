"""Tests for handler decorators and parameter markers."""

import pytest

from mcp_annotations.annotations import (
    MARKER_ATTRIBUTE,
    ClientMarker,
    CompleteMarker,
    McpMeta,
    ResourceMarker,
    ToolMarker,
    get_marker,
    get_markers,
    mcp_complete,
    mcp_logging,
    mcp_prompt,
    mcp_resource,
    mcp_sampling,
    mcp_tool,
)
from mcp_annotations.capability import Capability
from mcp_annotations.errors import ConfigurationError


class TestDecorators:
    """Tests for marker attachment."""

    def test_bare_tool_decorator(self):
        @mcp_tool
        def ping() -> str:
            return "pong"

        assert get_marker(ping, Capability.TOOL) == ToolMarker()
        assert ping() == "pong"

    def test_tool_decorator_with_arguments(self):
        @mcp_tool(name="sum", description="Add", read_only_hint=True)
        def add(a: int, b: int) -> int:
            return a + b

        marker = get_marker(add, Capability.TOOL)
        assert marker.name == "sum"
        assert marker.read_only_hint is True
        assert add(1, 2) == 3

    def test_decorator_does_not_wrap(self):
        def original() -> str:
            return ""

        decorated = mcp_prompt(original)
        assert decorated is original
        assert MARKER_ATTRIBUTE in vars(original)

    def test_bound_method_reads_function_markers(self):
        class Server:
            @mcp_resource("config://app", mime_type="application/json")
            def config(self) -> str:
                return "{}"

        marker = get_marker(Server().config, Capability.RESOURCE)
        assert isinstance(marker, ResourceMarker)
        assert marker.uri == "config://app"
        assert marker.mime_type == "application/json"

    def test_multiple_capabilities(self):
        @mcp_tool
        @mcp_prompt
        def both() -> str:
            return ""

        assert set(get_markers(both)) == {Capability.TOOL, Capability.PROMPT}

    def test_duplicate_capability_rejected(self):
        with pytest.raises(ConfigurationError, match="already marked"):

            @mcp_tool
            @mcp_tool(name="again")
            def twice() -> str:
                return ""

    def test_resource_requires_uri(self):
        with pytest.raises(ConfigurationError, match="requires a uri"):
            mcp_resource("")

    def test_client_scoping(self):
        @mcp_sampling(clients="claude")
        def sample(request):
            return None

        @mcp_logging
        def log(notification) -> None:
            pass

        assert get_marker(sample, Capability.SAMPLING) == ClientMarker(clients=("claude",))
        assert get_marker(log, Capability.LOGGING) == ClientMarker()

    def test_unmarked_function(self):
        def plain():
            pass

        assert get_markers(plain) == {}
        assert get_marker(plain, Capability.TOOL) is None


class TestCompleteMarker:
    """Tests for completion references."""

    def test_prompt_reference(self):
        @mcp_complete(prompt="greeting")
        def complete_name(value: str) -> list[str]:
            return []

        marker = get_marker(complete_name, Capability.COMPLETE)
        assert marker.reference.to_dict() == {"type": "ref/prompt", "name": "greeting"}

    def test_resource_reference(self):
        marker = CompleteMarker(uri="user://{name}")
        assert marker.reference.to_dict() == {"type": "ref/resource", "uri": "user://{name}"}

    def test_requires_exactly_one_target(self):
        with pytest.raises(ConfigurationError, match="exactly one"):
            CompleteMarker()
        with pytest.raises(ConfigurationError, match="exactly one"):
            CompleteMarker(prompt="p", uri="u://x")


class TestMcpMeta:
    def test_read_only_mapping(self):
        meta = McpMeta({"progressToken": "t1", "trace": "abc"})
        assert meta["trace"] == "abc"
        assert len(meta) == 2
        assert dict(meta) == {"progressToken": "t1", "trace": "abc"}
        with pytest.raises(TypeError):
            meta["trace"] = "x"

    def test_empty(self):
        assert dict(McpMeta(None)) == {}
