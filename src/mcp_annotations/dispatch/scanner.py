"""Discovery of marked handler methods on bound objects."""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from mcp_annotations.annotations.markers import MARKER_ATTRIBUTE, ResourceMarker, get_marker
from mcp_annotations.capability import Capability, ExecutionMode
from mcp_annotations.dispatch.contract import contract_for
from mcp_annotations.dispatch.handler import return_shape
from mcp_annotations.schema import resolve_type_hints
from mcp_annotations.uri_template import UriTemplate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SkippedMethod:
    """A marked method the scanner did not claim for its execution mode."""

    name: str
    reason: str


@dataclass
class ScanResult:
    """Methods found on one target, split into accepted and skipped."""

    target: Any
    capability: Capability
    accepted: list[Callable[..., Any]] = field(default_factory=list)
    skipped: list[SkippedMethod] = field(default_factory=list)

    def exact_resources(self) -> list[Callable[..., Any]]:
        """Resource handlers whose URI has no ``{variable}``."""
        return [m for m in self.accepted if not self._is_template(m)]

    def resource_templates(self) -> list[Callable[..., Any]]:
        """Resource handlers whose URI is a template."""
        return [m for m in self.accepted if self._is_template(m)]

    @staticmethod
    def _is_template(method: Callable[..., Any]) -> bool:
        marker = get_marker(method, Capability.RESOURCE)
        return isinstance(marker, ResourceMarker) and UriTemplate.is_template(marker.uri)


def _candidates(target: Any) -> list[tuple[str, Callable[..., Any]]]:
    if inspect.isfunction(target) or inspect.ismethod(target):
        return [(getattr(target, "__name__", repr(target)), target)]

    found = []
    for name in sorted(dir(target)):
        if name.startswith("__"):
            continue
        try:
            raw = inspect.getattr_static(target, name)
        except AttributeError:
            continue
        if isinstance(raw, (staticmethod, classmethod)):
            raw = raw.__func__
        if not callable(raw) or not getattr(raw, MARKER_ATTRIBUTE, None):
            continue
        found.append((name, getattr(target, name)))
    return found


class CapabilityScanner:
    """
    Finds the methods on a bound object marked for one capability.

    Methods are visited in name order. A scanner for synchronous adapters
    skips asynchronous methods, and a scanner for asynchronous adapters
    skips plain methods when the capability requires them to be
    asynchronous. Skips are logged and recorded in the ScanResult, since
    one object may legitimately mix sync and async handlers.
    """

    def __init__(self, capability: Capability, mode: ExecutionMode = ExecutionMode.SYNC):
        self.capability = capability
        self.mode = mode
        self.contract = contract_for(capability)

    def scan(self, target: Any) -> ScanResult:
        """Scan one bound object (or a single marked function)."""
        result = ScanResult(target=target, capability=self.capability)

        for name, method in _candidates(target):
            if get_marker(method, self.capability) is None:
                continue
            reason = self._mode_mismatch(method)
            if reason is not None:
                logger.info(f"Skipping {self.contract.label} method {name}: {reason}")
                result.skipped.append(SkippedMethod(name=name, reason=reason))
                continue
            result.accepted.append(method)

        return result

    def _mode_mismatch(self, method: Callable[..., Any]) -> str | None:
        shape = return_shape(method, resolve_type_hints(method))
        if not self.mode.is_async and shape.is_async:
            return f"returns an asynchronous value, not claimed by {self.mode} scanner"
        if self.mode.is_async and not shape.is_async and not self.contract.async_allows_plain:
            return f"returns a plain value, not claimed by {self.mode} scanner"
        return None
