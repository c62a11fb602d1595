"""
Relay transport: dispatches one relay to a configured set of relay nodes.
"""

import asyncio
import random
from typing import Any, Optional, Sequence, Union

import httpx
from pydantic import ValidationError

from shared.errors import TransportError
from shared.logging import get_logger
from shared.metrics import MetricsCollector, get_metrics_collector
from shared.retry import RetryConfig, RetryError, retry_on_exception
from .models import (
    RelayErrorBody,
    RelayFailure,
    RelayNode,
    RelayRequest,
    RelayResponseBody,
    RelayResult,
    RelaySuccess,
)


class RelayTransport:
    """Sends relays to relay nodes with bounded, node-rotating retries.

    Transport-level failures (timeouts, refused connections, 5xx without a
    structured error, unreadable envelopes) are retried against the next
    node. A structured rejection from a node is returned as
    ``RelayFailure`` and never retried. Nothing is cached between calls.
    """

    def __init__(self,
                 nodes: Sequence[Union[RelayNode, str]],
                 request_timeout_ms: int = 100000,
                 overall_timeout_ms: int = 10000000,
                 max_attempts: int = 5,
                 retry_base_delay_ms: int = 100,
                 retry_backoff_strategy: str = "exponential",
                 metrics: Optional[MetricsCollector] = None,
                 http_transport: Optional[httpx.AsyncBaseTransport] = None):
        self.nodes = tuple(
            node if isinstance(node, RelayNode) else RelayNode(node) for node in nodes
        )
        if not self.nodes:
            raise ValueError("RelayTransport needs at least one relay node")
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self.request_timeout_ms = request_timeout_ms
        self.overall_timeout_ms = overall_timeout_ms
        self.max_attempts = max_attempts
        self.retry_base_delay_ms = retry_base_delay_ms
        self.retry_backoff_strategy = retry_backoff_strategy
        self.metrics = metrics or get_metrics_collector("relay")
        self.logger = get_logger("relay.transport")
        self._http_transport = http_transport

    def _retry_config(self, retryable: bool) -> RetryConfig:
        base_delay = self.retry_base_delay_ms / 1000.0
        return RetryConfig(
            max_attempts=self.max_attempts if retryable else 1,
            base_delay=base_delay,
            max_delay=base_delay * 10,
            jitter=base_delay > 0,
            backoff_strategy=self.retry_backoff_strategy,
        )

    async def send(self, request: RelayRequest, timeout_ms: Optional[int] = None) -> RelayResult:
        """Dispatch ``request`` and return its single result.

        Raises:
            TransportError: attempts exhausted or the overall budget elapsed.
        """
        budget_ms = timeout_ms if timeout_ms is not None else self.overall_timeout_ms
        offset = random.randrange(len(self.nodes))
        attempts = 0

        @retry_on_exception((TransportError,), config=self._retry_config(request.retryable))
        async def relay_attempt() -> RelayResult:
            nonlocal attempts
            node = self.nodes[(offset + attempts) % len(self.nodes)]
            attempts += 1
            return await self._dispatch(node, request, attempts)

        try:
            return await asyncio.wait_for(relay_attempt(), timeout=budget_ms / 1000.0)
        except RetryError as e:
            raise TransportError(
                f"Relay failed after {e.attempts} attempt(s): {e.last_exception}",
                attempts=e.attempts,
                details={"chain_id": request.chain_id, "retryable": request.retryable}
            ) from e.last_exception
        except asyncio.TimeoutError:
            self.logger.error("Relay exceeded overall timeout", timeout_ms=budget_ms, attempts=attempts)
            raise TransportError(
                f"Relay exceeded overall timeout of {budget_ms} ms",
                attempts=attempts,
                details={"chain_id": request.chain_id, "timeout_ms": budget_ms}
            )

    async def _dispatch(self, node: RelayNode, request: RelayRequest, attempt: int) -> RelayResult:
        """Exactly one HTTP round trip to ``node``."""
        envelope = request.to_envelope().model_dump(mode="json")

        async with httpx.AsyncClient(
            timeout=self.request_timeout_ms / 1000.0,
            transport=self._http_transport
        ) as client:
            try:
                response = await asyncio.wait_for(
                    client.post(node.relay_url, json=envelope),
                    timeout=self.request_timeout_ms / 1000.0
                )
            except asyncio.TimeoutError:
                self.metrics.record_attempt(request.chain_id, "timeout")
                self.logger.warning(
                    "Relay attempt timed out",
                    node=node.endpoint,
                    attempt=attempt,
                    timeout_ms=self.request_timeout_ms
                )
                raise TransportError(
                    f"{node.endpoint}: no relay answer within {self.request_timeout_ms} ms",
                    attempts=attempt,
                    details={"node": node.endpoint, "request_timeout_ms": self.request_timeout_ms}
                )
            except httpx.RequestError as e:
                self.metrics.record_attempt(request.chain_id, "transport_error")
                self.logger.warning(
                    "Relay attempt failed",
                    node=node.endpoint,
                    attempt=attempt,
                    error=repr(e)
                )
                raise TransportError(
                    f"{node.endpoint}: {type(e).__name__}: {e}",
                    attempts=attempt,
                    details={"node": node.endpoint}
                )

        return self._interpret(node, response, request.chain_id, attempt)

    def _interpret(self, node: RelayNode, response: httpx.Response,
                   chain_id: str, attempt: int) -> RelayResult:
        try:
            body: Any = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict) and "error" in body:
            try:
                error = RelayErrorBody.model_validate(body).error
            except ValidationError:
                error = None
            if error is not None:
                self.metrics.record_attempt(chain_id, "rejected")
                self.logger.warning(
                    "Relay rejected",
                    node=node.endpoint,
                    status_code=response.status_code,
                    relay_code=error.code,
                    relay_message=error.message
                )
                return RelayFailure(code=error.code, message=error.message)

        if response.is_success and isinstance(body, dict):
            try:
                result = RelayResponseBody.model_validate(body)
            except ValidationError:
                result = None
            if result is not None:
                self.metrics.record_attempt(chain_id, "success")
                self.logger.debug("Relay succeeded", node=node.endpoint, attempt=attempt)
                return RelaySuccess(payload=result.response.encode("utf-8"))

        self.metrics.record_attempt(chain_id, "bad_envelope")
        self.logger.warning(
            "Unrecognized relay envelope",
            node=node.endpoint,
            attempt=attempt,
            status_code=response.status_code
        )
        raise TransportError(
            f"{node.endpoint}: unrecognized relay envelope (HTTP {response.status_code})",
            attempts=attempt,
            details={"node": node.endpoint, "status_code": response.status_code}
        )
