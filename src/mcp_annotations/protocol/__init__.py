"""
MCP protocol surface consumed by the dispatch engine.

Wire dataclasses for requests and results, the session exchange and
transport context types, protocol errors, and the per-call state machine.
"""

from mcp_annotations.protocol.errors import (
    MCPError,
    PARSE_ERROR,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    INVALID_PARAMS,
    INTERNAL_ERROR,
    CAPABILITY_NOT_SUPPORTED,
    RESOURCE_NOT_FOUND,
)
from mcp_annotations.protocol.state import (
    DispatchState,
    DispatchStateMachine,
    InvalidStateTransition,
)
from mcp_annotations.protocol.types import (
    Annotations,
    BlobResourceContents,
    CallToolRequest,
    CallToolResult,
    CompleteArgument,
    CompleteReference,
    CompleteRequest,
    CompleteResult,
    Completion,
    Content,
    GetPromptRequest,
    GetPromptResult,
    ImageContent,
    Prompt,
    PromptArgument,
    PromptMessage,
    ReadResourceRequest,
    ReadResourceResult,
    Resource,
    ResourceContents,
    ResourceTemplate,
    Role,
    TextContent,
    TextResourceContents,
    Tool,
    ToolAnnotations,
)
from mcp_annotations.protocol.client_types import (
    CreateMessageRequest,
    CreateMessageResult,
    ElicitRequest,
    ElicitResult,
    LoggingMessageNotification,
    LogLevel,
    ModelPreferences,
    ProgressNotification,
    SamplingMessage,
)
from mcp_annotations.protocol.context import (
    AsyncServerExchange,
    ServerExchange,
    SyncServerExchange,
    TransportContext,
)
from mcp_annotations.protocol.request_context import (
    AsyncRequestContext,
    RequestContext,
    StructuredElicitResult,
    SyncRequestContext,
)

__all__ = [
    # Errors
    "MCPError",
    "PARSE_ERROR",
    "INVALID_REQUEST",
    "METHOD_NOT_FOUND",
    "INVALID_PARAMS",
    "INTERNAL_ERROR",
    "CAPABILITY_NOT_SUPPORTED",
    "RESOURCE_NOT_FOUND",
    # State
    "DispatchState",
    "DispatchStateMachine",
    "InvalidStateTransition",
    # Server-side types
    "Annotations",
    "BlobResourceContents",
    "CallToolRequest",
    "CallToolResult",
    "CompleteArgument",
    "CompleteReference",
    "CompleteRequest",
    "CompleteResult",
    "Completion",
    "Content",
    "GetPromptRequest",
    "GetPromptResult",
    "ImageContent",
    "Prompt",
    "PromptArgument",
    "PromptMessage",
    "ReadResourceRequest",
    "ReadResourceResult",
    "Resource",
    "ResourceContents",
    "ResourceTemplate",
    "Role",
    "TextContent",
    "TextResourceContents",
    "Tool",
    "ToolAnnotations",
    # Client-side types
    "CreateMessageRequest",
    "CreateMessageResult",
    "ElicitRequest",
    "ElicitResult",
    "LoggingMessageNotification",
    "LogLevel",
    "ModelPreferences",
    "ProgressNotification",
    "SamplingMessage",
    # Context
    "AsyncServerExchange",
    "ServerExchange",
    "SyncServerExchange",
    "TransportContext",
    # Request context
    "AsyncRequestContext",
    "RequestContext",
    "StructuredElicitResult",
    "SyncRequestContext",
]
