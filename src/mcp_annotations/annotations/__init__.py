"""
Declarative markers for handler methods.

Decorators attach capability metadata to methods; parameter markers
describe arguments through ``typing.Annotated``.
"""

from mcp_annotations.annotations.markers import (
    MARKER_ATTRIBUTE,
    ClientMarker,
    CompleteMarker,
    Marker,
    PromptMarker,
    ResourceMarker,
    ToolMarker,
    get_marker,
    get_markers,
    mcp_complete,
    mcp_elicitation,
    mcp_logging,
    mcp_progress,
    mcp_prompt,
    mcp_prompt_list_changed,
    mcp_resource,
    mcp_resource_list_changed,
    mcp_sampling,
    mcp_tool,
    mcp_tool_list_changed,
)
from mcp_annotations.annotations.params import McpMeta, ProgressToken, PromptArg, ToolParam

__all__ = [
    # Markers
    "MARKER_ATTRIBUTE",
    "ClientMarker",
    "CompleteMarker",
    "Marker",
    "PromptMarker",
    "ResourceMarker",
    "ToolMarker",
    "get_marker",
    "get_markers",
    # Decorators
    "mcp_complete",
    "mcp_elicitation",
    "mcp_logging",
    "mcp_progress",
    "mcp_prompt",
    "mcp_prompt_list_changed",
    "mcp_resource",
    "mcp_resource_list_changed",
    "mcp_sampling",
    "mcp_tool",
    "mcp_tool_list_changed",
    # Parameters
    "McpMeta",
    "ProgressToken",
    "PromptArg",
    "ToolParam",
]
