"""Prometheus metrics for the generation pipeline."""

from typing import Any

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

OUTCOMES = ("success", "cache_hit", "fallback", "error")


class GenerationMetrics:
    """Counters and latency histogram for generate calls and cache cleanup.

    Each instance owns its registry so several clients can live in one process.
    """

    def __init__(self, namespace: str = "content_generation", registry: CollectorRegistry | None = None):
        self.namespace = namespace
        self.registry = registry or CollectorRegistry()

        self.requests_total = Counter(
            f"{namespace}_requests_total",
            "Generate calls by outcome",
            ["outcome"],
            registry=self.registry,
        )
        self.retries_total = Counter(
            f"{namespace}_retries_total",
            "Retries by classified error kind",
            ["error_kind"],
            registry=self.registry,
        )
        self.cleanups_total = Counter(
            f"{namespace}_cache_cleanups_total",
            "Cache cleanup runs by result",
            ["result"],
            registry=self.registry,
        )
        self.latency = Histogram(
            f"{namespace}_latency_seconds",
            "Latency of successful remote generations",
            buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
            registry=self.registry,
        )

    def record_outcome(self, outcome: str) -> None:
        self.requests_total.labels(outcome=outcome).inc()

    def record_retry(self, error_kind: str) -> None:
        self.retries_total.labels(error_kind=error_kind).inc()

    def record_latency(self, latency_ms: float) -> None:
        self.latency.observe(latency_ms / 1000.0)

    def record_cleanup(self, success: bool) -> None:
        self.cleanups_total.labels(result="success" if success else "failure").inc()

    def _value(self, name: str, labels: dict[str, str] | None = None) -> float:
        return self.registry.get_sample_value(name, labels or {}) or 0.0

    def snapshot(self) -> dict[str, Any]:
        """Plain-number view of the counters."""
        ns = self.namespace
        return {
            "requests": {
                outcome: self._value(f"{ns}_requests_total", {"outcome": outcome})
                for outcome in OUTCOMES
            },
            "cleanups": {
                result: self._value(f"{ns}_cache_cleanups_total", {"result": result})
                for result in ("success", "failure")
            },
            "latency_count": self._value(f"{ns}_latency_seconds_count"),
        }

    def retries(self, error_kind: str) -> float:
        return self._value(f"{self.namespace}_retries_total", {"error_kind": error_kind})

    def export(self) -> bytes:
        return generate_latest(self.registry)
