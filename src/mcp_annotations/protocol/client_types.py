"""Client-side MCP wire types: sampling, elicitation, logging and progress."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal

from mcp_annotations.protocol.types import Content, Role, TextContent, content_from_dict


class LogLevel(Enum):
    """
    MCP log levels following RFC 5424 severity levels.

    Ordered from least to most severe.
    """

    DEBUG = "debug"
    INFO = "info"
    NOTICE = "notice"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"
    ALERT = "alert"
    EMERGENCY = "emergency"

    @classmethod
    def from_string(cls, value: str) -> "LogLevel":
        """Parse log level from string value."""
        try:
            return cls(value.lower())
        except ValueError:
            raise ValueError(f"Invalid log level: {value}")

    def __lt__(self, other: "LogLevel") -> bool:
        """Compare severity (lower = less severe)."""
        order = list(LogLevel)
        return order.index(self) < order.index(other)

    def __le__(self, other: "LogLevel") -> bool:
        return self == other or self < other


# Sampling
@dataclass
class SamplingMessage:
    """Message in a sampling conversation."""

    role: Role
    content: Content

    def to_dict(self) -> dict[str, Any]:
        return {"role": self.role.value, "content": self.content.to_dict()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SamplingMessage":
        return cls(
            role=Role(data.get("role", "user")),
            content=content_from_dict(data.get("content", {})),
        )


@dataclass
class ModelPreferences:
    """Model selection preferences."""

    hints: list[str] = field(default_factory=list)
    cost_priority: float | None = None
    speed_priority: float | None = None
    intelligence_priority: float | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ModelPreferences":
        return cls(
            hints=[h.get("name", "") for h in data.get("hints", [])],
            cost_priority=data.get("costPriority"),
            speed_priority=data.get("speedPriority"),
            intelligence_priority=data.get("intelligencePriority"),
        )


@dataclass
class CreateMessageRequest:
    """sampling/createMessage request from a server."""

    messages: list[SamplingMessage]
    max_tokens: int = 1024
    system_prompt: str | None = None
    model_preferences: ModelPreferences | None = None
    temperature: float | None = None
    stop_sequences: list[str] = field(default_factory=list)
    include_context: Literal["none", "thisServer", "allServers"] = "none"
    metadata: dict[str, Any] | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CreateMessageRequest":
        prefs = data.get("modelPreferences")
        return cls(
            messages=[SamplingMessage.from_dict(m) for m in data.get("messages", [])],
            max_tokens=data.get("maxTokens", 1024),
            system_prompt=data.get("systemPrompt"),
            model_preferences=ModelPreferences.from_dict(prefs) if prefs else None,
            temperature=data.get("temperature"),
            stop_sequences=data.get("stopSequences", []),
            include_context=data.get("includeContext", "none"),
            metadata=data.get("metadata"),
            meta=data.get("_meta"),
        )


@dataclass
class CreateMessageResult:
    """sampling/createMessage result."""

    content: Content
    model: str
    role: Role = Role.ASSISTANT
    stop_reason: str | None = None

    @classmethod
    def text(cls, text: str, model: str = "unknown") -> "CreateMessageResult":
        return cls(content=TextContent(text=text), model=model)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "role": self.role.value,
            "content": self.content.to_dict(),
            "model": self.model,
        }
        if self.stop_reason:
            result["stopReason"] = self.stop_reason
        return result


# Elicitation
@dataclass
class ElicitRequest:
    """elicitation/create request from a server."""

    message: str
    requested_schema: dict[str, Any] = field(default_factory=dict)
    meta: dict[str, Any] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ElicitRequest":
        return cls(
            message=data.get("message", ""),
            requested_schema=data.get("requestedSchema", {}),
            meta=data.get("_meta"),
        )


@dataclass
class ElicitResult:
    """elicitation/create result."""

    action: Literal["accept", "decline", "cancel"]
    content: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"action": self.action}
        if self.action == "accept" and self.content is not None:
            result["content"] = self.content
        return result


# Notifications
@dataclass
class LoggingMessageNotification:
    """notifications/message payload."""

    level: LogLevel
    data: Any
    logger: str | None = None
    meta: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"level": self.level.value, "data": self.data}
        if self.logger:
            result["logger"] = self.logger
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LoggingMessageNotification":
        return cls(
            level=LogLevel.from_string(data.get("level", "info")),
            data=data.get("data"),
            logger=data.get("logger"),
            meta=data.get("_meta"),
        )


@dataclass
class ProgressNotification:
    """notifications/progress payload."""

    progress_token: str | int
    progress: float
    total: float | None = None
    message: str | None = None
    meta: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "progressToken": self.progress_token,
            "progress": self.progress,
        }
        if self.total is not None:
            result["total"] = self.total
        if self.message:
            result["message"] = self.message
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProgressNotification":
        return cls(
            progress_token=data["progressToken"],
            progress=data.get("progress", 0),
            total=data.get("total"),
            message=data.get("message"),
            meta=data.get("_meta"),
        )
