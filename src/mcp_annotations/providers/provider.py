"""Capability providers: scan bound objects and build specifications."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable

from mcp_annotations.capability import Capability, ExecutionMode
from mcp_annotations.config import DispatchConfig
from mcp_annotations.dispatch.adapter import AsyncDispatchAdapter, SyncDispatchAdapter
from mcp_annotations.dispatch.contract import contract_for
from mcp_annotations.dispatch.handler import HandlerMethod
from mcp_annotations.dispatch.scanner import CapabilityScanner, SkippedMethod
from mcp_annotations.dispatch.validator import validate_handler
from mcp_annotations.errors import ConfigurationError
from mcp_annotations.providers.specifications import (
    ClientSpecification,
    CompletionSpecification,
    PromptSpecification,
    ResourceSpecification,
    ResourceTemplateSpecification,
    Specification,
    ToolSpecification,
    client_specification,
    completion_specification,
    prompt_specification,
    resource_specification,
    tool_specification,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Registration:
    """Outcome of registering one marked method."""

    method: str
    specification: Specification | None = None
    error: ConfigurationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class CapabilityProvider:
    """
    Builds the capability specifications for one capability across targets.

    Duplicate names are not deduplicated; collision handling belongs to
    the SDK that registers the specifications. In strict mode any invalid
    method fails the whole provider with one aggregated ConfigurationError,
    raised after every target has been scanned. Otherwise invalid methods
    are logged, left out, and listed in ``errors``.
    """

    def __init__(
        self,
        capability: Capability,
        targets: Iterable[Any],
        mode: ExecutionMode = ExecutionMode.SYNC,
        config: DispatchConfig | None = None,
    ):
        self.capability = capability
        self.targets = list(targets)
        self.mode = mode
        self.config = config or DispatchConfig()
        self._registrations: list[Registration] | None = None
        self._skipped: list[SkippedMethod] = []

    def _build(self, handler: HandlerMethod) -> Specification:
        adapter_cls = AsyncDispatchAdapter if self.mode.is_async else SyncDispatchAdapter
        adapter = adapter_cls(handler, self.config)
        if self.capability.is_client_side:
            return client_specification(handler, adapter)
        if self.capability is Capability.TOOL:
            return tool_specification(handler, adapter)
        if self.capability is Capability.PROMPT:
            return prompt_specification(handler, adapter)
        if self.capability is Capability.RESOURCE:
            return resource_specification(handler, adapter, self.config.default_mime_type)
        return completion_specification(handler, adapter)

    def _register(self, method: Callable[..., Any]) -> Registration:
        handler_name = getattr(getattr(method, "__func__", method), "__qualname__", repr(method))
        try:
            handler = validate_handler(method, self.capability, self.mode, config=self.config)
        except ConfigurationError as e:
            log = logger.debug if self.config.strict else logger.error
            log(f"Rejected {self.capability} handler {handler_name}: {e}")
            return Registration(method=handler_name, error=e)
        logger.debug(f"Registered {self.capability} handler {handler_name} ({self.mode})")
        return Registration(method=handler_name, specification=self._build(handler))

    @property
    def registrations(self) -> list[Registration]:
        """Per-method outcomes, scanning on first access."""
        if self._registrations is None:
            self._registrations = self._scan()
        return self._registrations

    def _scan(self) -> list[Registration]:
        scanner = CapabilityScanner(self.capability, self.mode)
        registrations: list[Registration] = []
        for target in self.targets:
            result = scanner.scan(target)
            self._skipped.extend(result.skipped)
            if self.capability is Capability.RESOURCE:
                methods = result.exact_resources() + result.resource_templates()
            else:
                methods = result.accepted
            registrations.extend(self._register(m) for m in methods)

        if not registrations:
            logger.warning(
                f"No {contract_for(self.capability).label} methods found "
                f"in {len(self.targets)} target(s)"
            )
        return registrations

    @property
    def errors(self) -> list[ConfigurationError]:
        return [r.error for r in self.registrations if r.error is not None]

    @property
    def skipped(self) -> list[SkippedMethod]:
        """Marked methods the scanner left to a scanner of another execution mode."""
        if self._registrations is None:
            self._registrations = self._scan()
        return list(self._skipped)

    def specifications(self) -> list[Specification]:
        """
        Return the specifications of every valid method, in scan order.

        Raises:
            ConfigurationError: In strict mode, if any method failed validation.
        """
        errors = self.errors
        if errors and self.config.strict:
            details = "\n".join(f"  - {e}" for e in errors)
            raise ConfigurationError(
                f"{len(errors)} {self.capability} handler method(s) failed validation:\n{details}",
                errors=errors,
            )
        return [r.specification for r in self.registrations if r.specification is not None]


def _specifications(
    capability: Capability,
    targets: tuple[Any, ...],
    mode: ExecutionMode,
    config: DispatchConfig | None,
) -> list[Specification]:
    return CapabilityProvider(capability, targets, mode, config).specifications()


def tool_specifications(
    *targets: Any, mode: ExecutionMode = ExecutionMode.SYNC, config: DispatchConfig | None = None
) -> list[ToolSpecification]:
    return _specifications(Capability.TOOL, targets, mode, config)


def prompt_specifications(
    *targets: Any, mode: ExecutionMode = ExecutionMode.SYNC, config: DispatchConfig | None = None
) -> list[PromptSpecification]:
    return _specifications(Capability.PROMPT, targets, mode, config)


def resource_specifications(
    *targets: Any, mode: ExecutionMode = ExecutionMode.SYNC, config: DispatchConfig | None = None
) -> list[ResourceSpecification]:
    """Specifications for resources with a fixed URI."""
    specs = _specifications(Capability.RESOURCE, targets, mode, config)
    return [s for s in specs if isinstance(s, ResourceSpecification)]


def resource_template_specifications(
    *targets: Any, mode: ExecutionMode = ExecutionMode.SYNC, config: DispatchConfig | None = None
) -> list[ResourceTemplateSpecification]:
    """Specifications for resources whose URI is a template."""
    specs = _specifications(Capability.RESOURCE, targets, mode, config)
    return [s for s in specs if isinstance(s, ResourceTemplateSpecification)]


def complete_specifications(
    *targets: Any, mode: ExecutionMode = ExecutionMode.SYNC, config: DispatchConfig | None = None
) -> list[CompletionSpecification]:
    return _specifications(Capability.COMPLETE, targets, mode, config)


def sampling_specifications(
    *targets: Any, mode: ExecutionMode = ExecutionMode.SYNC, config: DispatchConfig | None = None
) -> list[ClientSpecification]:
    return _specifications(Capability.SAMPLING, targets, mode, config)


def elicitation_specifications(
    *targets: Any, mode: ExecutionMode = ExecutionMode.SYNC, config: DispatchConfig | None = None
) -> list[ClientSpecification]:
    return _specifications(Capability.ELICITATION, targets, mode, config)


def logging_specifications(
    *targets: Any, mode: ExecutionMode = ExecutionMode.SYNC, config: DispatchConfig | None = None
) -> list[ClientSpecification]:
    return _specifications(Capability.LOGGING, targets, mode, config)


def progress_specifications(
    *targets: Any, mode: ExecutionMode = ExecutionMode.SYNC, config: DispatchConfig | None = None
) -> list[ClientSpecification]:
    return _specifications(Capability.PROGRESS, targets, mode, config)


def tool_list_changed_specifications(
    *targets: Any, mode: ExecutionMode = ExecutionMode.SYNC, config: DispatchConfig | None = None
) -> list[ClientSpecification]:
    return _specifications(Capability.TOOL_LIST_CHANGED, targets, mode, config)


def prompt_list_changed_specifications(
    *targets: Any, mode: ExecutionMode = ExecutionMode.SYNC, config: DispatchConfig | None = None
) -> list[ClientSpecification]:
    return _specifications(Capability.PROMPT_LIST_CHANGED, targets, mode, config)


def resource_list_changed_specifications(
    *targets: Any, mode: ExecutionMode = ExecutionMode.SYNC, config: DispatchConfig | None = None
) -> list[ClientSpecification]:
    return _specifications(Capability.RESOURCE_LIST_CHANGED, targets, mode, config)


def capabilities_from_specifications(specifications: Iterable[Specification]) -> dict[str, Any]:
    """
    Summarize which server capabilities a set of specifications provides.

    Returns:
        A ServerCapabilities-shaped dict, e.g. {"tools": {"listChanged": True}}.
    """
    capabilities: dict[str, Any] = {}
    for spec in specifications:
        if isinstance(spec, ToolSpecification):
            capabilities["tools"] = {"listChanged": True}
        elif isinstance(spec, PromptSpecification):
            capabilities["prompts"] = {"listChanged": True}
        elif isinstance(spec, (ResourceSpecification, ResourceTemplateSpecification)):
            capabilities["resources"] = {"subscribe": False, "listChanged": True}
        elif isinstance(spec, CompletionSpecification):
            capabilities["completions"] = {}
    return capabilities
