"""
Shared metrics configuration for the relay provider.
"""

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest
from typing import Dict, Any, Optional


class MetricsCollector:
    """Prometheus metrics for relay dispatch.

    Each collector owns its registry unless one is passed in, so several
    adapters in one process (or one test session) never register the same
    metric name twice.
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up relay metrics."""
        self._metrics["relay_attempts_total"] = Counter(
            "relay_attempts_total",
            "Total relay attempts sent to relay nodes",
            ["chain_id", "outcome"],
            registry=self.registry
        )

        self._metrics["relay_requests_total"] = Counter(
            "relay_requests_total",
            "Total provider calls by final result",
            ["chain_id", "result"],
            registry=self.registry
        )

        self._metrics["relay_request_duration_seconds"] = Histogram(
            "relay_request_duration_seconds",
            "Provider call duration in seconds, retries included",
            ["chain_id"],
            registry=self.registry
        )

    def get_metric(self, name: str):
        """Get a metric by name."""
        return self._metrics.get(name)

    def record_attempt(self, chain_id: str, outcome: str):
        """Record a single relay attempt."""
        self._metrics["relay_attempts_total"].labels(chain_id=chain_id, outcome=outcome).inc()

    def record_request(self, chain_id: str, result: str, duration: float):
        """Record the final result of a provider call."""
        self._metrics["relay_requests_total"].labels(chain_id=chain_id, result=result).inc()
        self._metrics["relay_request_duration_seconds"].labels(chain_id=chain_id).observe(duration)

    def sample(self, name: str, **labels) -> float:
        """Current value of a sample, 0.0 when it was never recorded."""
        value = self.registry.get_sample_value(name, labels)
        return value if value is not None else 0.0

    def export(self) -> bytes:
        """Render the registry in Prometheus text format."""
        return generate_latest(self.registry)


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
