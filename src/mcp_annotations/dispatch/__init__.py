"""
Generic declarative dispatch engine.

Scanner finds marked methods, the validator checks them against their
capability's signature contract, and adapters bind arguments, invoke the
method and normalize its result.
"""

from mcp_annotations.dispatch.adapter import (
    Adapter,
    AdapterResult,
    AsyncDispatchAdapter,
    DispatchAdapter,
    SyncDispatchAdapter,
    create_adapter,
    try_create_adapter,
)
from mcp_annotations.dispatch.binder import ArgumentBinder, coerce
from mcp_annotations.dispatch.contract import (
    CONTRACTS,
    ErrorPolicy,
    ReturnContract,
    SignatureContract,
    contract_for,
)
from mcp_annotations.dispatch.handler import (
    HandlerMethod,
    ParameterBinding,
    ParameterRole,
    ReturnKind,
    ReturnShape,
)
from mcp_annotations.dispatch.normalizer import ResultNormalizer
from mcp_annotations.dispatch.scanner import CapabilityScanner, ScanResult, SkippedMethod
from mcp_annotations.dispatch.validator import validate_handler

__all__ = [
    # Adapters
    "Adapter",
    "AdapterResult",
    "AsyncDispatchAdapter",
    "DispatchAdapter",
    "SyncDispatchAdapter",
    "create_adapter",
    "try_create_adapter",
    # Binding
    "ArgumentBinder",
    "coerce",
    # Contracts
    "CONTRACTS",
    "ErrorPolicy",
    "ReturnContract",
    "SignatureContract",
    "contract_for",
    # Handler model
    "HandlerMethod",
    "ParameterBinding",
    "ParameterRole",
    "ReturnKind",
    "ReturnShape",
    # Normalization
    "ResultNormalizer",
    # Scanning
    "CapabilityScanner",
    "ScanResult",
    "SkippedMethod",
    # Validation
    "validate_handler",
]
