"""
Capability providers.

Turn bound objects carrying marked methods into the specifications an MCP
server or client SDK registers: wire metadata plus a dispatch adapter.
"""

from mcp_annotations.providers.provider import (
    CapabilityProvider,
    Registration,
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
from mcp_annotations.providers.specifications import (
    ClientSpecification,
    CompletionSpecification,
    PromptSpecification,
    ResourceSpecification,
    ResourceTemplateSpecification,
    Specification,
    ToolSpecification,
)

__all__ = [
    # Provider
    "CapabilityProvider",
    "Registration",
    "capabilities_from_specifications",
    # Server-side
    "complete_specifications",
    "prompt_specifications",
    "resource_specifications",
    "resource_template_specifications",
    "tool_specifications",
    # Client-side
    "elicitation_specifications",
    "logging_specifications",
    "progress_specifications",
    "prompt_list_changed_specifications",
    "resource_list_changed_specifications",
    "sampling_specifications",
    "tool_list_changed_specifications",
    # Specifications
    "ClientSpecification",
    "CompletionSpecification",
    "PromptSpecification",
    "ResourceSpecification",
    "ResourceTemplateSpecification",
    "Specification",
    "ToolSpecification",
]
