"""
Relay request/result types and the relay node wire envelopes.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, Field

from ..aat import AuthToken

RELAY_ROUTE = "/v1/client/relay"


class HttpMethod(str, Enum):
    """HTTP method the relay node uses against the target chain."""
    GET = "GET"
    POST = "POST"


@dataclass(frozen=True)
class RelayNode:
    """A relay node reachable over HTTP."""
    endpoint: str

    def __post_init__(self):
        object.__setattr__(self, "endpoint", self.endpoint.rstrip("/"))

    @property
    def relay_url(self) -> str:
        return f"{self.endpoint}{RELAY_ROUTE}"


@dataclass(frozen=True)
class RelayRequest:
    """One outgoing relay. Built per call and discarded afterwards."""
    payload: bytes
    chain_id: str
    auth_token: AuthToken
    http_method: HttpMethod
    path: str
    retryable: bool = True

    def to_envelope(self) -> "RelayEnvelope":
        return RelayEnvelope(
            payload=RelayPayload(
                data=self.payload.decode("utf-8"),
                method=self.http_method,
                path=self.path,
            ),
            blockchain=self.chain_id,
            aat=self.auth_token.to_wire(),
        )


@dataclass(frozen=True)
class RelaySuccess:
    payload: bytes


@dataclass(frozen=True)
class RelayFailure:
    code: int
    message: str


RelayResult = Union[RelaySuccess, RelayFailure]


class RelayPayload(BaseModel):
    """Request the relay node forwards to the chain."""
    data: str
    method: HttpMethod = HttpMethod.POST
    path: str = ""
    headers: Dict[str, str] = Field(default_factory=dict)


class RelayEnvelope(BaseModel):
    """Body of ``POST /v1/client/relay``."""
    payload: RelayPayload
    blockchain: str
    aat: Dict[str, str]


class RelayResponseBody(BaseModel):
    """Successful relay answer; ``response`` is the raw chain body."""
    response: str
    signature: Optional[str] = None


class RelayErrorDetail(BaseModel):
    code: int
    message: str


class RelayErrorBody(BaseModel):
    """Structured rejection returned by a relay node."""
    error: RelayErrorDetail

    @classmethod
    def build(cls, code: int, message: str) -> Dict[str, Any]:
        return cls(error=RelayErrorDetail(code=code, message=message)).model_dump()
