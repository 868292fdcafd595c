"""Prometheus metrics for the request pipeline."""

from prometheus_client import Counter, Histogram

# Request metrics
api_request_latency_ms = Histogram(
    "api_request_latency_ms",
    "API request attempt latency in milliseconds",
    ["method", "outcome"],
    buckets=[10, 50, 100, 200, 500, 1000, 2000, 5000, 10000, 30000],
)

api_request_errors_total = Counter(
    "api_request_errors_total",
    "Total API request errors",
    ["method", "kind"],
)

token_refresh_total = Counter(
    "token_refresh_total",
    "Total refresh-token exchanges",
    ["outcome"],
)


class PrometheusRequestMetrics:
    """Prometheus-based request and refresh metrics implementation."""

    def record_latency(self, method: str, outcome: str, latency_ms: float) -> None:
        """Record request attempt latency."""
        api_request_latency_ms.labels(method=method, outcome=outcome).observe(latency_ms)

    def inc_error(self, method: str, kind: str) -> None:
        """Increment error counter."""
        api_request_errors_total.labels(method=method, kind=kind).inc()

    def inc_refresh(self, outcome: str) -> None:
        """Increment refresh counter."""
        token_refresh_total.labels(outcome=outcome).inc()
