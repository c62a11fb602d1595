"""
Relay transport package.

Moves one opaque request body, plus routing metadata (chain id, path,
HTTP method) and the AAT, to a relay node and returns either the chain's
raw response or the node's structured rejection.

- transport.models: request/result types and wire envelopes.
- transport.client: node rotation, retries and timeouts over httpx.
"""

from .client import RelayTransport
from .models import (
    HttpMethod,
    RelayEnvelope,
    RelayErrorBody,
    RelayFailure,
    RelayNode,
    RelayRequest,
    RelayResponseBody,
    RelayResult,
    RelaySuccess,
)

__all__ = [
    "RelayTransport",
    "HttpMethod",
    "RelayEnvelope",
    "RelayErrorBody",
    "RelayFailure",
    "RelayNode",
    "RelayRequest",
    "RelayResponseBody",
    "RelayResult",
    "RelaySuccess",
]
