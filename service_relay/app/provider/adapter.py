"""
Provider adapter: serves a chain SDK's HTTP requests through the relay network.
"""

import json
import time
from urllib.parse import urlsplit
from typing import Any, FrozenSet, Iterable, Optional, Protocol, Union, runtime_checkable

from shared.config import DEFAULT_NON_RETRYABLE_METHODS, RelayConfig
from shared.errors import (
    DecodeError,
    InvalidRequestError,
    RelayProviderException,
    RelayRejection,
    SigningError,
)
from shared.logging import clear_context, get_logger, set_relay_context
from shared.metrics import MetricsCollector, get_metrics_collector
from ..aat import AuthToken, issue, verify
from ..transport import HttpMethod, RelayFailure, RelayRequest, RelayTransport

JSONValue = Any

DEFAULT_SUBMISSION_METHODS: FrozenSet[str] = frozenset(DEFAULT_NON_RETRYABLE_METHODS)


@runtime_checkable
class RequestCapability(Protocol):
    """Anything a chain client can hand an HTTP-shaped JSON-RPC call to."""

    async def request(self, url: str, body: str,
                      method: Union[HttpMethod, str] = HttpMethod.POST) -> JSONValue:
        ...


def rpc_method_names(body: str) -> Optional[FrozenSet[str]]:
    """JSON-RPC method names in ``body``; None when they cannot be read."""
    try:
        decoded = json.loads(body)
    except (TypeError, ValueError):
        return None

    calls = decoded if isinstance(decoded, list) else [decoded]
    names = set()
    for call in calls:
        if not isinstance(call, dict) or not isinstance(call.get("method"), str):
            return None
        names.add(call["method"])
    return frozenset(names) if names else None


class ProviderAdapter:
    """Relays every ``request`` through ``transport`` with a fixed AAT and chain.

    Holds only immutable configuration; concurrent calls share nothing but
    the token and the transport's node list.
    """

    def __init__(self,
                 transport: RelayTransport,
                 auth_token: AuthToken,
                 chain_id: str,
                 path_prefix: str = "",
                 non_retryable_methods: Iterable[str] = DEFAULT_SUBMISSION_METHODS,
                 metrics: Optional[MetricsCollector] = None):
        if not verify(auth_token):
            raise SigningError("Refusing to relay with an AAT that does not verify")
        if not chain_id:
            raise ValueError("chain_id is required")

        self.transport = transport
        self.auth_token = auth_token
        self.chain_id = chain_id
        self.path_prefix = path_prefix.rstrip("/")
        self.non_retryable_methods = frozenset(non_retryable_methods)
        self.metrics = metrics or transport.metrics
        self.logger = get_logger("relay.provider")

    @classmethod
    def from_config(cls, config: RelayConfig, metrics: Optional[MetricsCollector] = None,
                    **transport_kwargs) -> "ProviderAdapter":
        """Issue the AAT and wire transport and adapter from configuration."""
        if config.application_private_key is None or config.application_public_key is None:
            raise SigningError("AAT key material is not configured")

        auth_token = issue(
            config.aat_version,
            config.resolved_client_public_key,
            config.application_public_key,
            config.application_private_key.get_secret_value(),
        )
        metrics = metrics or get_metrics_collector("relay")
        transport = RelayTransport(
            config.relay_nodes,
            request_timeout_ms=config.request_timeout_ms,
            overall_timeout_ms=config.overall_timeout_ms,
            max_attempts=config.max_attempts,
            retry_base_delay_ms=config.retry_base_delay_ms,
            retry_backoff_strategy=config.retry_backoff_strategy,
            metrics=metrics,
            **transport_kwargs
        )
        return cls(
            transport,
            auth_token,
            config.chain_id,
            path_prefix=config.path_prefix,
            non_retryable_methods=config.non_retryable_methods,
            metrics=metrics,
        )

    def resolve_path(self, url: str) -> str:
        """Relative SDK urls are joined onto the configured path prefix."""
        if not url:
            return self.path_prefix or "/"
        if url.startswith(("http://", "https://")):
            parts = urlsplit(url)
            return parts.path + (f"?{parts.query}" if parts.query else "")
        if self.path_prefix and (url == self.path_prefix or url.startswith(self.path_prefix + "/")):
            return url
        return f"{self.path_prefix}/{url.lstrip('/')}"

    def is_retryable(self, body: str, method: HttpMethod) -> bool:
        """GETs and read-only JSON-RPC calls may be retried; submissions never."""
        if method is HttpMethod.GET:
            return True
        names = rpc_method_names(body)
        if names is None:
            return False
        return not (names & self.non_retryable_methods)

    def build_request(self, url: str, body: str, method: HttpMethod,
                      retryable: Optional[bool] = None) -> RelayRequest:
        if retryable is None:
            retryable = self.is_retryable(body, method)
        return RelayRequest(
            payload=body.encode("utf-8"),
            chain_id=self.chain_id,
            auth_token=self.auth_token,
            http_method=method,
            path=self.resolve_path(url),
            retryable=retryable,
        )

    async def request(self,
                      url: str,
                      body: str,
                      method: Union[HttpMethod, str] = HttpMethod.POST,
                      timeout_ms: Optional[int] = None,
                      retryable: Optional[bool] = None) -> JSONValue:
        """Relay one SDK call and return the chain's parsed JSON body.

        Raises:
            InvalidRequestError: ``method`` is neither GET nor POST.
            RelayRejection: the relay node or chain rejected the relay.
            TransportError: no node answered within the retry and time budget.
            DecodeError: the relayed body is not JSON.
        """
        set_relay_context(chain_id=self.chain_id)
        start_time = time.perf_counter()
        result_label = "aborted"

        try:
            method = _http_method(method)
            relay_request = self.build_request(url, body, method, retryable)
            self.logger.info(
                "Dispatching relay",
                path=relay_request.path,
                method=method.value,
                retryable=relay_request.retryable
            )

            result = await self.transport.send(relay_request, timeout_ms=timeout_ms)

            if isinstance(result, RelayFailure):
                raise RelayRejection(
                    result.code,
                    result.message,
                    details={"chain_id": self.chain_id, "path": relay_request.path}
                )

            try:
                parsed = json.loads(result.payload)
            except ValueError as e:
                raise DecodeError(
                    "Relayed response is not valid JSON",
                    details={"error": str(e), "payload": result.payload[:200].decode("utf-8", "replace")}
                )

            result_label = "success"
            return parsed

        except RelayProviderException as e:
            result_label = e.code.lower()
            self.logger.warning("Relay failed", code=e.code, error=e.message)
            raise
        finally:
            self.metrics.record_request(self.chain_id, result_label, time.perf_counter() - start_time)
            clear_context()


def _http_method(method: Union[HttpMethod, str]) -> HttpMethod:
    try:
        return HttpMethod(method.upper() if isinstance(method, str) else method)
    except ValueError:
        raise InvalidRequestError(
            f"Unsupported HTTP method: {method}",
            details={"method": str(method), "supported": [m.value for m in HttpMethod]}
        )
