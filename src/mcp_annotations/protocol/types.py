"""Server-side MCP wire types: tools, prompts, resources and completion."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal


class Role(Enum):
    """Message author role."""

    USER = "user"
    ASSISTANT = "assistant"


# Content types
@dataclass
class TextContent:
    """Text content block."""

    text: str = ""
    type: Literal["text"] = "text"

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "text": self.text}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TextContent":
        return cls(text=data.get("text", ""))


@dataclass
class ImageContent:
    """Image content block."""

    data: str = ""  # Base64 encoded
    mime_type: str = "image/png"
    type: Literal["image"] = "image"

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "data": self.data,
            "mimeType": self.mime_type,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ImageContent":
        return cls(
            data=data.get("data", ""),
            mime_type=data.get("mimeType", "image/png"),
        )


Content = TextContent | ImageContent


def content_from_dict(data: dict[str, Any]) -> Content:
    """Parse a content block by its type tag."""
    if data.get("type") == "image":
        return ImageContent.from_dict(data)
    return TextContent.from_dict(data)


@dataclass
class Annotations:
    """Audience and priority hints for resources and content."""

    audience: list[Role] = field(default_factory=lambda: [Role.USER])
    priority: float = 0.5

    def to_dict(self) -> dict[str, Any]:
        return {
            "audience": [role.value for role in self.audience],
            "priority": self.priority,
        }


# Tools
@dataclass
class ToolAnnotations:
    """Behavioral hints attached to a tool."""

    title: str | None = None
    read_only_hint: bool = False
    destructive_hint: bool = True
    idempotent_hint: bool = False
    open_world_hint: bool = True

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "readOnlyHint": self.read_only_hint,
            "destructiveHint": self.destructive_hint,
            "idempotentHint": self.idempotent_hint,
            "openWorldHint": self.open_world_hint,
        }
        if self.title:
            result["title"] = self.title
        return result


@dataclass
class Tool:
    """Tool descriptor advertised in tools/list."""

    name: str
    description: str = ""
    input_schema: dict[str, Any] = field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )
    output_schema: dict[str, Any] | None = None
    title: str | None = None
    annotations: ToolAnnotations | None = None
    meta: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }
        if self.title:
            result["title"] = self.title
        if self.output_schema is not None:
            result["outputSchema"] = self.output_schema
        if self.annotations is not None:
            result["annotations"] = self.annotations.to_dict()
        if self.meta:
            result["_meta"] = self.meta
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Tool":
        return cls(
            name=data["name"],
            description=data.get("description", ""),
            input_schema=data.get("inputSchema", {"type": "object", "properties": {}}),
            output_schema=data.get("outputSchema"),
            title=data.get("title"),
            meta=data.get("_meta"),
        )


@dataclass
class CallToolRequest:
    """tools/call request parameters."""

    name: str
    arguments: dict[str, Any] = field(default_factory=dict)
    meta: dict[str, Any] | None = None

    @property
    def progress_token(self) -> str | int | None:
        """Progress token carried in the request metadata, if any."""
        return (self.meta or {}).get("progressToken")

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"name": self.name, "arguments": self.arguments}
        if self.meta:
            result["_meta"] = self.meta
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CallToolRequest":
        return cls(
            name=data["name"],
            arguments=data.get("arguments") or {},
            meta=data.get("_meta"),
        )


@dataclass
class CallToolResult:
    """tools/call result."""

    content: list[Content] = field(default_factory=list)
    structured_content: Any = None
    is_error: bool = False
    meta: dict[str, Any] | None = None

    @classmethod
    def text(cls, text: str) -> "CallToolResult":
        """Create a single-fragment text result."""
        return cls(content=[TextContent(text=text)])

    @classmethod
    def error(cls, message: str) -> "CallToolResult":
        """Create an error result carrying a text message."""
        return cls(content=[TextContent(text=message)], is_error=True)

    @property
    def texts(self) -> list[str]:
        """Text of every text fragment, in order."""
        return [c.text for c in self.content if isinstance(c, TextContent)]

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "content": [c.to_dict() for c in self.content],
            "isError": self.is_error,
        }
        if self.structured_content is not None:
            result["structuredContent"] = self.structured_content
        if self.meta:
            result["_meta"] = self.meta
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CallToolResult":
        return cls(
            content=[content_from_dict(c) for c in data.get("content", [])],
            structured_content=data.get("structuredContent"),
            is_error=data.get("isError", False),
            meta=data.get("_meta"),
        )


# Prompts
@dataclass
class PromptArgument:
    """Argument accepted by a prompt template."""

    name: str
    description: str = ""
    required: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "required": self.required,
        }


@dataclass
class Prompt:
    """Prompt descriptor advertised in prompts/list."""

    name: str
    description: str = ""
    title: str | None = None
    arguments: list[PromptArgument] = field(default_factory=list)
    meta: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "arguments": [a.to_dict() for a in self.arguments],
        }
        if self.title:
            result["title"] = self.title
        if self.meta:
            result["_meta"] = self.meta
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Prompt":
        return cls(
            name=data["name"],
            description=data.get("description", ""),
            title=data.get("title"),
            arguments=[
                PromptArgument(
                    name=a["name"],
                    description=a.get("description", ""),
                    required=a.get("required", False),
                )
                for a in data.get("arguments", [])
            ],
            meta=data.get("_meta"),
        )


@dataclass
class PromptMessage:
    """One message produced by a prompt."""

    role: Role
    content: Content

    @classmethod
    def user(cls, text: str) -> "PromptMessage":
        return cls(role=Role.USER, content=TextContent(text=text))

    @classmethod
    def assistant(cls, text: str) -> "PromptMessage":
        return cls(role=Role.ASSISTANT, content=TextContent(text=text))

    def to_dict(self) -> dict[str, Any]:
        return {"role": self.role.value, "content": self.content.to_dict()}


@dataclass
class GetPromptRequest:
    """prompts/get request parameters."""

    name: str
    arguments: dict[str, Any] = field(default_factory=dict)
    meta: dict[str, Any] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GetPromptRequest":
        return cls(
            name=data["name"],
            arguments=data.get("arguments") or {},
            meta=data.get("_meta"),
        )


@dataclass
class GetPromptResult:
    """prompts/get result."""

    messages: list[PromptMessage] = field(default_factory=list)
    description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"messages": [m.to_dict() for m in self.messages]}
        if self.description is not None:
            result["description"] = self.description
        return result


# Resources
@dataclass
class Resource:
    """Concrete resource descriptor advertised in resources/list."""

    uri: str
    name: str
    description: str = ""
    title: str | None = None
    mime_type: str | None = None
    annotations: Annotations | None = None
    meta: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "uri": self.uri,
            "name": self.name,
            "description": self.description,
        }
        if self.title:
            result["title"] = self.title
        if self.mime_type:
            result["mimeType"] = self.mime_type
        if self.annotations is not None:
            result["annotations"] = self.annotations.to_dict()
        if self.meta:
            result["_meta"] = self.meta
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Resource":
        return cls(
            uri=data["uri"],
            name=data.get("name", data["uri"]),
            description=data.get("description", ""),
            title=data.get("title"),
            mime_type=data.get("mimeType"),
            meta=data.get("_meta"),
        )


@dataclass
class ResourceTemplate:
    """Parameterized resource descriptor advertised in resources/templates/list."""

    uri_template: str
    name: str
    description: str = ""
    title: str | None = None
    mime_type: str | None = None
    annotations: Annotations | None = None
    meta: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "uriTemplate": self.uri_template,
            "name": self.name,
            "description": self.description,
        }
        if self.title:
            result["title"] = self.title
        if self.mime_type:
            result["mimeType"] = self.mime_type
        if self.annotations is not None:
            result["annotations"] = self.annotations.to_dict()
        if self.meta:
            result["_meta"] = self.meta
        return result


@dataclass
class TextResourceContents:
    """Text body of a resource."""

    uri: str
    text: str
    mime_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"uri": self.uri, "text": self.text}
        if self.mime_type:
            result["mimeType"] = self.mime_type
        return result


@dataclass
class BlobResourceContents:
    """Binary body of a resource, base64 encoded."""

    uri: str
    blob: str
    mime_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"uri": self.uri, "blob": self.blob}
        if self.mime_type:
            result["mimeType"] = self.mime_type
        return result


ResourceContents = TextResourceContents | BlobResourceContents


@dataclass
class ReadResourceRequest:
    """resources/read request parameters."""

    uri: str
    meta: dict[str, Any] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReadResourceRequest":
        return cls(uri=data["uri"], meta=data.get("_meta"))


@dataclass
class ReadResourceResult:
    """resources/read result."""

    contents: list[ResourceContents] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"contents": [c.to_dict() for c in self.contents]}


# Completion
@dataclass
class CompleteReference:
    """What a completion request refers to: a prompt or a resource template."""

    type: Literal["ref/prompt", "ref/resource"]
    name: str | None = None
    uri: str | None = None

    @property
    def identifier(self) -> str:
        """Prompt name or resource URI, depending on the reference type."""
        return (self.name if self.type == "ref/prompt" else self.uri) or ""

    def to_dict(self) -> dict[str, Any]:
        if self.type == "ref/prompt":
            return {"type": self.type, "name": self.name}
        return {"type": self.type, "uri": self.uri}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CompleteReference":
        return cls(type=data["type"], name=data.get("name"), uri=data.get("uri"))


@dataclass
class CompleteArgument:
    """Argument being completed."""

    name: str
    value: str = ""


@dataclass
class CompleteRequest:
    """completion/complete request parameters."""

    ref: CompleteReference
    argument: CompleteArgument
    context_arguments: dict[str, str] = field(default_factory=dict)
    meta: dict[str, Any] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CompleteRequest":
        argument = data.get("argument", {})
        return cls(
            ref=CompleteReference.from_dict(data["ref"]),
            argument=CompleteArgument(
                name=argument.get("name", ""), value=argument.get("value", "")
            ),
            context_arguments=(data.get("context") or {}).get("arguments", {}),
            meta=data.get("_meta"),
        )


@dataclass
class Completion:
    """Completion values."""

    values: list[str] = field(default_factory=list)
    total: int | None = None
    has_more: bool | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"values": self.values}
        if self.total is not None:
            result["total"] = self.total
        if self.has_more is not None:
            result["hasMore"] = self.has_more
        return result


@dataclass
class CompleteResult:
    """completion/complete result."""

    completion: Completion = field(default_factory=Completion)

    def to_dict(self) -> dict[str, Any]:
        return {"completion": self.completion.to_dict()}
