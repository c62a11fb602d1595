"""
Shared error handling for the relay provider.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response format."""

    relay_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class RelayProviderException(Exception):
    """Base exception for relay provider failures."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self, relay_id: Optional[str] = None) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            relay_id=relay_id,
            code=self.code,
            message=self.message,
            details=self.details
        )


class SigningError(RelayProviderException):
    """AAT construction or verification failed."""

    def __init__(self, message: str = "AAT signing failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("SIGNING_ERROR", message, details)


class TransportError(RelayProviderException):
    """Network-level relay failure (timeout, refused connection, bad envelope)."""

    def __init__(self, message: str = "Relay transport failed", attempts: int = 0,
                 details: Optional[Dict[str, Any]] = None):
        details = dict(details or {})
        details.setdefault("attempts", attempts)
        super().__init__("TRANSPORT_ERROR", message, details)
        self.attempts = attempts


class RelayRejection(RelayProviderException):
    """The relay network or target chain explicitly rejected the relay."""

    def __init__(self, relay_code: int, relay_message: str, details: Optional[Dict[str, Any]] = None):
        details = dict(details or {})
        details.setdefault("relay_code", relay_code)
        super().__init__("RELAY_REJECTION", relay_message, details)
        self.relay_code = relay_code
        self.relay_message = relay_message


class DecodeError(RelayProviderException):
    """Relay succeeded but the payload is not the JSON the caller expects."""

    def __init__(self, message: str = "Relay payload could not be decoded", details: Optional[Dict[str, Any]] = None):
        super().__init__("DECODE_ERROR", message, details)


class ChainRpcError(RelayProviderException):
    """The chain node answered with a JSON-RPC error object."""

    def __init__(self, rpc_code: int, message: str, details: Optional[Dict[str, Any]] = None):
        details = dict(details or {})
        details.setdefault("rpc_code", rpc_code)
        super().__init__("CHAIN_RPC_ERROR", message, details)
        self.rpc_code = rpc_code


class InvalidRequestError(RelayProviderException, ValueError):
    """Caller misuse: unsupported HTTP method, unsigned transaction, unreadable input."""

    def __init__(self, message: str = "Invalid relay request", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_REQUEST", message, details)
