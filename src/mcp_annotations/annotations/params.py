"""Parameter markers used with ``typing.Annotated`` and the meta bag type."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, Mapping


@dataclass(frozen=True)
class ToolParam:
    """Describes one tool argument.

    ``required=None`` infers the requirement from whether the parameter has
    a default value. ``name`` overrides the argument key in the request.

    Example:
        def search(self, query: Annotated[str, ToolParam("Search terms")]) -> str: ...
    """

    description: str = ""
    required: bool | None = None
    name: str | None = None


@dataclass(frozen=True)
class PromptArg:
    """Describes one prompt argument, listed in the prompt descriptor."""

    name: str | None = None
    description: str = ""
    required: bool = False


@dataclass(frozen=True)
class ProgressToken:
    """Marks a parameter that receives the request's progress token."""

    pass


class McpMeta(Mapping[str, Any]):
    """Read-only view of a request's ``_meta`` bag."""

    __slots__ = ("_data",)

    def __init__(self, data: Mapping[str, Any] | None = None):
        self._data = dict(data or {})

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"McpMeta({self._data!r})"
