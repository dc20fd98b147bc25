"""
Shared metrics configuration for the hosting edge auth gate.
"""

import threading
import time
from contextlib import contextmanager
from typing import Any, Dict, Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, Info, generate_latest


class MetricsCollector:
    """Centralized metrics collector for a service.

    Each collector owns its registry unless one is passed in, so building a
    second collector (tests, a second app instance) never trips duplicate
    registration in the global prometheus registry.
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up common and gate-specific metrics."""

        self._metrics["service_info"] = Info(
            "service_info",
            "Service information",
            registry=self.registry
        )
        self._metrics["service_info"].info({
            "service": self.service_name,
            "version": "1.0.0"
        })

        # HTTP metrics (local edge host only)
        self._metrics["http_requests_total"] = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "status_code"],
            registry=self.registry
        )

        self._metrics["http_request_duration_seconds"] = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method"],
            registry=self.registry
        )

        self._metrics["health_check_total"] = Counter(
            "health_check_total",
            "Total health check requests",
            ["status"],
            registry=self.registry
        )

        # Gate metrics
        self._metrics["decisions_total"] = Counter(
            "edge_auth_decisions_total",
            "Terminal gate states reached",
            ["state"],
            registry=self.registry
        )

        self._metrics["token_verifications_total"] = Counter(
            "edge_auth_token_verifications_total",
            "Session token verifications",
            ["result"],
            registry=self.registry
        )

        self._metrics["token_exchanges_total"] = Counter(
            "edge_auth_token_exchanges_total",
            "Authorization code exchanges",
            ["result"],
            registry=self.registry
        )

        self._metrics["config_loads_total"] = Counter(
            "edge_auth_config_loads_total",
            "Config bundle loads from the parameter store",
            ["result"],
            registry=self.registry
        )

        self._metrics["jwks_refresh_total"] = Counter(
            "edge_auth_jwks_refresh_total",
            "Signing key set fetches",
            ["status"],
            registry=self.registry
        )

        self._metrics["gate_duration_seconds"] = Histogram(
            "edge_auth_gate_duration_seconds",
            "Time spent deciding a request",
            registry=self.registry
        )

    def get_metric(self, name: str):
        """Get a metric by name."""
        return self._metrics.get(name)

    def record_http_request(self, method: str, status_code: int, duration: float):
        """Record HTTP request metrics."""
        self._metrics["http_requests_total"].labels(
            method=method,
            status_code=str(status_code)
        ).inc()

        self._metrics["http_request_duration_seconds"].labels(method=method).observe(duration)

    def record_health_check(self, status: str):
        """Record health check metrics."""
        self._metrics["health_check_total"].labels(status=status).inc()

    def record_decision(self, state: str):
        self._metrics["decisions_total"].labels(state=state).inc()

    def record_token_verification(self, result: str):
        self._metrics["token_verifications_total"].labels(result=result).inc()

    def record_token_exchange(self, result: str):
        self._metrics["token_exchanges_total"].labels(result=result).inc()

    def record_config_load(self, result: str):
        self._metrics["config_loads_total"].labels(result=result).inc()

    def record_jwks_refresh(self, status: str):
        self._metrics["jwks_refresh_total"].labels(status=status).inc()

    @contextmanager
    def time_operation(self, operation_name: str, **labels):
        """Context manager to time an operation."""
        start_time = time.time()
        try:
            yield
        finally:
            duration = time.time() - start_time
            metric = self._metrics.get(operation_name)
            if metric is not None:
                (metric.labels(**labels) if labels else metric).observe(duration)

    def sample_value(self, name: str, labels: Optional[Dict[str, str]] = None) -> Optional[float]:
        """Read back a sample, mainly for tests and health output."""
        return self.registry.get_sample_value(name, labels or {})

    def export(self) -> bytes:
        """Render the registry in the Prometheus text format."""
        return generate_latest(self.registry)


_collectors: Dict[str, MetricsCollector] = {}
_collectors_lock = threading.Lock()


def get_metrics_collector(service_name: str) -> MetricsCollector:
    """Get the metrics collector for a service, creating it on first use."""
    with _collectors_lock:
        collector = _collectors.get(service_name)
        if collector is None:
            collector = MetricsCollector(service_name)
            _collectors[service_name] = collector
        return collector
