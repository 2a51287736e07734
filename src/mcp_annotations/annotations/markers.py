"""Decorators that mark methods as capability handlers.

Each decorator attaches a frozen, data-only marker to the function under
``__mcp_markers__``, keyed by capability. Nothing here wraps or changes the
function; scanning reads the markers once at registration.

Example:
    class Calculator:
        @mcp_tool(description="Add two numbers")
        def add(self, a: int, b: int) -> int:
            return a + b
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

from mcp_annotations.capability import Capability
from mcp_annotations.errors import ConfigurationError
from mcp_annotations.protocol.types import CompleteReference, Role

MARKER_ATTRIBUTE = "__mcp_markers__"

F = TypeVar("F", bound=Callable[..., Any])


@dataclass(frozen=True)
class ToolMarker:
    name: str | None = None
    description: str | None = None
    title: str | None = None
    read_only_hint: bool = False
    destructive_hint: bool = True
    idempotent_hint: bool = False
    open_world_hint: bool = True
    generate_output_schema: bool = True
    meta: dict[str, Any] | None = None


@dataclass(frozen=True)
class PromptMarker:
    name: str | None = None
    description: str | None = None
    title: str | None = None
    meta: dict[str, Any] | None = None


@dataclass(frozen=True)
class ResourceMarker:
    uri: str = ""
    name: str | None = None
    description: str | None = None
    title: str | None = None
    mime_type: str | None = None
    audience: tuple[Role, ...] = (Role.USER,)
    priority: float = 0.5
    meta: dict[str, Any] | None = None


@dataclass(frozen=True)
class CompleteMarker:
    """Completion handler for a prompt argument or a resource template variable."""

    prompt: str | None = None
    uri: str | None = None

    def __post_init__(self):
        if bool(self.prompt) == bool(self.uri):
            raise ConfigurationError(
                "Completion marker requires exactly one of prompt or uri"
            )

    @property
    def reference(self) -> CompleteReference:
        if self.prompt:
            return CompleteReference(type="ref/prompt", name=self.prompt)
        return CompleteReference(type="ref/resource", uri=self.uri)


@dataclass(frozen=True)
class ClientMarker:
    """Marker for client-side handlers; ``clients`` scopes them to client ids."""

    clients: tuple[str, ...] = field(default_factory=tuple)


Marker = ToolMarker | PromptMarker | ResourceMarker | CompleteMarker | ClientMarker


def _attach(fn: F, capability: Capability, marker: Marker) -> F:
    target = getattr(fn, "__func__", fn)
    markers = dict(getattr(target, MARKER_ATTRIBUTE, {}))
    if capability in markers:
        raise ConfigurationError(
            f"{getattr(target, '__qualname__', target)} is already marked as {capability}"
        )
    markers[capability] = marker
    setattr(target, MARKER_ATTRIBUTE, markers)
    return fn


def get_markers(fn: Callable[..., Any]) -> dict[Capability, Marker]:
    """Return all markers attached to a function or bound method."""
    target = getattr(fn, "__func__", fn)
    return dict(getattr(target, MARKER_ATTRIBUTE, {}))


def get_marker(fn: Callable[..., Any], capability: Capability) -> Marker | None:
    """Return the marker for one capability, or None."""
    return get_markers(fn).get(capability)


def _decorator(capability: Capability, marker: Marker, fn: F | None):
    if fn is not None:
        return _attach(fn, capability, marker)

    def decorator(func: F) -> F:
        return _attach(func, capability, marker)

    return decorator


def mcp_tool(
    fn: F | None = None,
    *,
    name: str | None = None,
    description: str | None = None,
    title: str | None = None,
    read_only_hint: bool = False,
    destructive_hint: bool = True,
    idempotent_hint: bool = False,
    open_world_hint: bool = True,
    generate_output_schema: bool = True,
    meta: dict[str, Any] | None = None,
):
    """Mark a method as a tool. Usable bare or with keyword arguments."""
    marker = ToolMarker(
        name=name,
        description=description,
        title=title,
        read_only_hint=read_only_hint,
        destructive_hint=destructive_hint,
        idempotent_hint=idempotent_hint,
        open_world_hint=open_world_hint,
        generate_output_schema=generate_output_schema,
        meta=meta,
    )
    return _decorator(Capability.TOOL, marker, fn)


def mcp_prompt(
    fn: F | None = None,
    *,
    name: str | None = None,
    description: str | None = None,
    title: str | None = None,
    meta: dict[str, Any] | None = None,
):
    """Mark a method as a prompt."""
    marker = PromptMarker(name=name, description=description, title=title, meta=meta)
    return _decorator(Capability.PROMPT, marker, fn)


def mcp_resource(
    uri: str,
    *,
    name: str | None = None,
    description: str | None = None,
    title: str | None = None,
    mime_type: str | None = None,
    audience: tuple[Role, ...] = (Role.USER,),
    priority: float = 0.5,
    meta: dict[str, Any] | None = None,
):
    """Mark a method as a resource. A ``{variable}`` in ``uri`` makes it a template."""
    if not uri:
        raise ConfigurationError("Resource marker requires a uri")
    marker = ResourceMarker(
        uri=uri,
        name=name,
        description=description,
        title=title,
        mime_type=mime_type,
        audience=tuple(audience),
        priority=priority,
        meta=meta,
    )
    return _decorator(Capability.RESOURCE, marker, None)


def mcp_complete(*, prompt: str | None = None, uri: str | None = None):
    """Mark a method as the completion handler for a prompt or resource template."""
    return _decorator(Capability.COMPLETE, CompleteMarker(prompt=prompt, uri=uri), None)


def _client_decorator(capability: Capability, fn: F | None, clients: tuple[str, ...] | str):
    if isinstance(clients, str):
        clients = (clients,)
    return _decorator(capability, ClientMarker(clients=tuple(clients)), fn)


def mcp_sampling(fn: F | None = None, *, clients: tuple[str, ...] | str = ()):
    """Mark a method as the handler for sampling/createMessage requests."""
    return _client_decorator(Capability.SAMPLING, fn, clients)


def mcp_elicitation(fn: F | None = None, *, clients: tuple[str, ...] | str = ()):
    """Mark a method as the handler for elicitation/create requests."""
    return _client_decorator(Capability.ELICITATION, fn, clients)


def mcp_logging(fn: F | None = None, *, clients: tuple[str, ...] | str = ()):
    """Mark a method as a consumer of logging notifications."""
    return _client_decorator(Capability.LOGGING, fn, clients)


def mcp_progress(fn: F | None = None, *, clients: tuple[str, ...] | str = ()):
    """Mark a method as a consumer of progress notifications."""
    return _client_decorator(Capability.PROGRESS, fn, clients)


def mcp_tool_list_changed(fn: F | None = None, *, clients: tuple[str, ...] | str = ()):
    return _client_decorator(Capability.TOOL_LIST_CHANGED, fn, clients)


def mcp_prompt_list_changed(fn: F | None = None, *, clients: tuple[str, ...] | str = ()):
    return _client_decorator(Capability.PROMPT_LIST_CHANGED, fn, clients)


def mcp_resource_list_changed(fn: F | None = None, *, clients: tuple[str, ...] | str = ()):
    return _client_decorator(Capability.RESOURCE_LIST_CHANGED, fn, clients)
