"""Capability, execution mode and return mode enumerations."""

from __future__ import annotations

from enum import Enum


class Capability(Enum):
    """Category of protocol-exposed behavior a handler method implements."""

    TOOL = "tool"
    PROMPT = "prompt"
    RESOURCE = "resource"
    COMPLETE = "complete"
    SAMPLING = "sampling"
    ELICITATION = "elicitation"
    LOGGING = "logging"
    PROGRESS = "progress"
    TOOL_LIST_CHANGED = "tool_list_changed"
    PROMPT_LIST_CHANGED = "prompt_list_changed"
    RESOURCE_LIST_CHANGED = "resource_list_changed"

    @property
    def is_client_side(self) -> bool:
        """Handled on the client in response to a server request or notification."""
        return self not in (
            Capability.TOOL,
            Capability.PROMPT,
            Capability.RESOURCE,
            Capability.COMPLETE,
        )

    @property
    def is_notification(self) -> bool:
        """Consumes a notification and produces no result."""
        return self in (
            Capability.LOGGING,
            Capability.PROGRESS,
            Capability.TOOL_LIST_CHANGED,
            Capability.PROMPT_LIST_CHANGED,
            Capability.RESOURCE_LIST_CHANGED,
        )

    def __str__(self) -> str:
        return self.value


class ExecutionMode(Enum):
    """Calling convention of an adapter."""

    SYNC = "sync"
    ASYNC = "async"
    STATELESS_SYNC = "stateless_sync"
    STATELESS_ASYNC = "stateless_async"

    @property
    def is_async(self) -> bool:
        return self in (ExecutionMode.ASYNC, ExecutionMode.STATELESS_ASYNC)

    @property
    def is_stateless(self) -> bool:
        return self in (ExecutionMode.STATELESS_SYNC, ExecutionMode.STATELESS_ASYNC)

    def __str__(self) -> str:
        return self.value


class ReturnMode(Enum):
    """How a non-awaitable return value becomes a canonical result."""

    VOID = "void"
    TEXT = "text"
    STRUCTURED = "structured"
