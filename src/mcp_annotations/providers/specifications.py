"""Capability specifications: wire metadata paired with a dispatch adapter."""

from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from typing import Any

from mcp_annotations.annotations.markers import (
    ClientMarker,
    CompleteMarker,
    PromptMarker,
    ResourceMarker,
    ToolMarker,
)
from mcp_annotations.annotations.params import PromptArg
from mcp_annotations.capability import Capability
from mcp_annotations.dispatch.adapter import Adapter
from mcp_annotations.dispatch.handler import HandlerMethod, ParameterRole
from mcp_annotations.protocol.types import (
    Annotations,
    CompleteReference,
    Prompt,
    PromptArgument,
    Resource,
    ResourceTemplate,
    Tool,
    ToolAnnotations,
)
from mcp_annotations.schema import (
    generate_for_method_input,
    resolve_type_hints,
    split_annotated,
)


@dataclass(frozen=True)
class ToolSpecification:
    tool: Tool
    call_handler: Adapter

    def to_dict(self) -> dict[str, Any]:
        return self.tool.to_dict()


@dataclass(frozen=True)
class PromptSpecification:
    prompt: Prompt
    prompt_handler: Adapter

    def to_dict(self) -> dict[str, Any]:
        return self.prompt.to_dict()


@dataclass(frozen=True)
class ResourceSpecification:
    resource: Resource
    read_handler: Adapter

    def to_dict(self) -> dict[str, Any]:
        return self.resource.to_dict()


@dataclass(frozen=True)
class ResourceTemplateSpecification:
    resource_template: ResourceTemplate
    read_handler: Adapter

    def to_dict(self) -> dict[str, Any]:
        return self.resource_template.to_dict()


@dataclass(frozen=True)
class CompletionSpecification:
    reference: CompleteReference
    completion_handler: Adapter

    def to_dict(self) -> dict[str, Any]:
        return self.reference.to_dict()


@dataclass(frozen=True)
class ClientSpecification:
    """Client-side handler (sampling, elicitation, notification consumers)."""

    capability: Capability
    handler: Adapter
    clients: tuple[str, ...] = field(default_factory=tuple)

    def applies_to(self, client_id: str) -> bool:
        """Whether this handler serves a client; unscoped handlers serve all."""
        return not self.clients or client_id in self.clients

    def to_dict(self) -> dict[str, Any]:
        return {"capability": self.capability.value, "clients": list(self.clients)}


Specification = (
    ToolSpecification
    | PromptSpecification
    | ResourceSpecification
    | ResourceTemplateSpecification
    | CompletionSpecification
    | ClientSpecification
)


def _description(handler: HandlerMethod, declared: str | None) -> str:
    if declared:
        return declared
    doc = inspect.getdoc(handler.function)
    if doc:
        return doc.strip().split("\n\n", 1)[0].replace("\n", " ")
    return ""


def tool_specification(handler: HandlerMethod, adapter: Adapter) -> ToolSpecification:
    marker: ToolMarker = handler.marker
    tool = Tool(
        name=marker.name or handler.method_name,
        description=_description(handler, marker.description),
        input_schema=generate_for_method_input(handler.function),
        output_schema=handler.output_schema,
        title=marker.title,
        annotations=ToolAnnotations(
            title=marker.title,
            read_only_hint=marker.read_only_hint,
            destructive_hint=marker.destructive_hint,
            idempotent_hint=marker.idempotent_hint,
            open_world_hint=marker.open_world_hint,
        ),
        meta=marker.meta,
    )
    return ToolSpecification(tool=tool, call_handler=adapter)


def _prompt_arguments(handler: HandlerMethod) -> list[PromptArgument]:
    hints = resolve_type_hints(handler.function)
    arguments = []
    for binding in handler.find(ParameterRole.FIELD):
        _, extras = split_annotated(hints.get(binding.name))
        marker = next((e for e in extras if isinstance(e, PromptArg)), None)
        arguments.append(
            PromptArgument(
                name=binding.key,
                description=marker.description if marker else "",
                required=binding.required,
            )
        )
    return arguments


def prompt_specification(handler: HandlerMethod, adapter: Adapter) -> PromptSpecification:
    marker: PromptMarker = handler.marker
    prompt = Prompt(
        name=marker.name or handler.method_name,
        description=_description(handler, marker.description),
        title=marker.title,
        arguments=_prompt_arguments(handler),
        meta=marker.meta,
    )
    return PromptSpecification(prompt=prompt, prompt_handler=adapter)


def _resource_fields(handler: HandlerMethod, marker: ResourceMarker, default_mime: str) -> dict[str, Any]:
    return dict(
        name=marker.name or handler.method_name,
        description=_description(handler, marker.description),
        title=marker.title,
        mime_type=marker.mime_type or default_mime,
        annotations=Annotations(audience=list(marker.audience), priority=marker.priority),
        meta=marker.meta,
    )


def resource_specification(
    handler: HandlerMethod, adapter: Adapter, default_mime: str
) -> ResourceSpecification | ResourceTemplateSpecification:
    marker: ResourceMarker = handler.marker
    fields = _resource_fields(handler, marker, default_mime)
    if handler.uri_template is not None:
        return ResourceTemplateSpecification(
            resource_template=ResourceTemplate(uri_template=marker.uri, **fields),
            read_handler=adapter,
        )
    return ResourceSpecification(resource=Resource(uri=marker.uri, **fields), read_handler=adapter)


def completion_specification(handler: HandlerMethod, adapter: Adapter) -> CompletionSpecification:
    marker: CompleteMarker = handler.marker
    return CompletionSpecification(reference=marker.reference, completion_handler=adapter)


def client_specification(handler: HandlerMethod, adapter: Adapter) -> ClientSpecification:
    marker: ClientMarker = handler.marker
    return ClientSpecification(
        capability=handler.capability, handler=adapter, clients=tuple(marker.clients)
    )
