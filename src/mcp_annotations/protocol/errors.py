"""Protocol error types and error codes."""

from dataclasses import dataclass
from typing import Any

# Standard JSON-RPC 2.0 error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

# Custom MCP error codes (-32000 to -32099 reserved for implementation)
CAPABILITY_NOT_SUPPORTED = -32004
RESOURCE_NOT_FOUND = -32002

ERROR_MESSAGES = {
    PARSE_ERROR: "Parse error",
    INVALID_REQUEST: "Invalid Request",
    METHOD_NOT_FOUND: "Method not found",
    INVALID_PARAMS: "Invalid params",
    INTERNAL_ERROR: "Internal error",
    CAPABILITY_NOT_SUPPORTED: "Capability not supported",
    RESOURCE_NOT_FOUND: "Resource not found",
}


@dataclass
class MCPError(Exception):
    """
    MCP protocol error.

    Raised by dispatch adapters for prompt, resource, completion and
    client-side capabilities when a handler fails. Handlers may raise it
    themselves to control the code and message returned to the peer.
    """

    code: int
    message: str
    data: dict[str, Any] | None = None

    def __post_init__(self):
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-RPC error object."""
        error = {
            "code": self.code,
            "message": self.message,
        }
        if self.data is not None:
            error["data"] = self.data
        return error

    @classmethod
    def from_dict(cls, error: dict[str, Any]) -> "MCPError":
        """Create from JSON-RPC error object."""
        return cls(
            code=error.get("code", INTERNAL_ERROR),
            message=error.get("message", "Unknown error"),
            data=error.get("data"),
        )

    @classmethod
    def invalid_params(
        cls, details: str | None = None, data: dict[str, Any] | None = None
    ) -> "MCPError":
        """Create an invalid params error."""
        return cls(
            code=INVALID_PARAMS,
            message=details or ERROR_MESSAGES[INVALID_PARAMS],
            data=data,
        )

    @classmethod
    def internal_error(
        cls, details: str | None = None, data: dict[str, Any] | None = None
    ) -> "MCPError":
        """Create an internal error."""
        return cls(
            code=INTERNAL_ERROR,
            message=details or ERROR_MESSAGES[INTERNAL_ERROR],
            data=data,
        )

    @classmethod
    def capability_not_supported(cls, capability: str) -> "MCPError":
        """Create an error for a client capability the peer did not declare."""
        return cls(
            code=CAPABILITY_NOT_SUPPORTED,
            message=f"Client does not support {capability}",
            data={"capability": capability},
        )

    @classmethod
    def resource_not_found(cls, uri: str) -> "MCPError":
        """Create a resource not found error."""
        return cls(
            code=RESOURCE_NOT_FOUND,
            message=f"Resource not found: {uri}",
            data={"uri": uri},
        )

    def __str__(self) -> str:
        base = f"MCPError({self.code}): {self.message}"
        if self.data:
            base += f" {self.data}"
        return base

    def __repr__(self) -> str:
        return f"MCPError(code={self.code}, message={self.message!r}, data={self.data})"
