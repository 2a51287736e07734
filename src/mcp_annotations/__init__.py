"""
Declarative MCP capability handlers.

Plain methods marked with decorators become MCP tools, prompts, resources
and completions on the server side, or sampling, elicitation and
notification handlers on the client side.

Submodules:
- annotations: Method decorators and parameter markers
- dispatch: Scanner, signature validator, argument binder, result normalizer, adapters
- providers: Specifications built from scanned objects
- protocol: Wire types, exchanges, errors and the per-call state machine
- schema: JSON Schema generation from type hints
- config: Dispatch configuration loading
"""

# Markers
from mcp_annotations.annotations import (
    McpMeta,
    ProgressToken,
    PromptArg,
    ToolParam,
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

# Enumerations and errors
from mcp_annotations.capability import Capability, ExecutionMode, ReturnMode
from mcp_annotations.errors import BindingError, ConfigurationError, NormalizationError

# Configuration
from mcp_annotations.config import DispatchConfig, load_dispatch_config

# Request context
from mcp_annotations.protocol.request_context import (
    AsyncRequestContext,
    StructuredElicitResult,
    SyncRequestContext,
)

# Dispatch
from mcp_annotations.dispatch import (
    AsyncDispatchAdapter,
    CapabilityScanner,
    SyncDispatchAdapter,
    create_adapter,
    try_create_adapter,
    validate_handler,
)

# Providers
from mcp_annotations.providers import (
    CapabilityProvider,
    capabilities_from_specifications,
    complete_specifications,
    elicitation_specifications,
    logging_specifications,
    progress_specifications,
    prompt_list_changed_specifications,
    prompt_specifications,
    resource_list_changed_specifications,
    resource_specifications,
    resource_template_specifications,
    sampling_specifications,
    tool_list_changed_specifications,
    tool_specifications,
)

# Schema
from mcp_annotations.schema import generate_for_method_input, generate_output_schema
from mcp_annotations.uri_template import UriTemplate

__version__ = "0.1.0"

__all__ = [
    # Markers
    "McpMeta",
    "ProgressToken",
    "PromptArg",
    "ToolParam",
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
    # Enumerations and errors
    "Capability",
    "ExecutionMode",
    "ReturnMode",
    "BindingError",
    "ConfigurationError",
    "NormalizationError",
    # Configuration
    "DispatchConfig",
    "load_dispatch_config",
    # Request context
    "AsyncRequestContext",
    "StructuredElicitResult",
    "SyncRequestContext",
    # Dispatch
    "AsyncDispatchAdapter",
    "CapabilityScanner",
    "SyncDispatchAdapter",
    "create_adapter",
    "try_create_adapter",
    "validate_handler",
    # Providers
    "CapabilityProvider",
    "capabilities_from_specifications",
    "complete_specifications",
    "elicitation_specifications",
    "logging_specifications",
    "progress_specifications",
    "prompt_list_changed_specifications",
    "prompt_specifications",
    "resource_list_changed_specifications",
    "resource_specifications",
    "resource_template_specifications",
    "sampling_specifications",
    "tool_list_changed_specifications",
    "tool_specifications",
    # Schema
    "generate_for_method_input",
    "generate_output_schema",
    "UriTemplate",
]
