"""
Metrics Collection
Prometheus metrics for document loading, resolution and actions
"""

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram


class MetricsCollector:
    """
    Collects and exposes Prometheus metrics for the resolver.
    """

    def __init__(self, registry: CollectorRegistry = REGISTRY) -> None:
        self.registry = registry

        # Documents
        self.documents_loaded = Counter(
            "screenspec_documents_loaded_total",
            "Total number of document load attempts",
            ["status"],
            registry=registry,
        )
        self.sessions_active = Gauge(
            "screenspec_sessions_active",
            "Currently open document sessions",
            registry=registry,
        )

        # Resolution
        self.resolutions_total = Counter(
            "screenspec_resolutions_total",
            "Total number of render tree resolution passes",
            registry=registry,
        )
        self.resolution_duration = Histogram(
            "screenspec_resolution_duration_seconds",
            "Render tree resolution duration in seconds",
            buckets=[0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0],
            registry=registry,
        )
        self.node_failures = Counter(
            "screenspec_node_failures_total",
            "Nodes that failed to resolve and were degraded",
            ["kind"],
            registry=registry,
        )

        # Actions
        self.actions_total = Counter(
            "screenspec_actions_total",
            "Total number of executed leaf actions",
            ["type", "status"],
            registry=registry,
        )
        self.action_duration = Histogram(
            "screenspec_action_duration_seconds",
            "Top-level action duration in seconds",
            ["type"],
            buckets=[0.001, 0.01, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
            registry=registry,
        )
        self.requests_total = Counter(
            "screenspec_requests_total",
            "Network requests issued by request actions",
            ["method", "status"],
            registry=registry,
        )

        # Cache
        self.cache_hits = Counter(
            "screenspec_cache_hits_total",
            "Total number of cache hits",
            ["cache_type"],
            registry=registry,
        )
        self.cache_misses = Counter(
            "screenspec_cache_misses_total",
            "Total number of cache misses",
            ["cache_type"],
            registry=registry,
        )

    def record_document_load(self, status: str) -> None:
        self.documents_loaded.labels(status=status).inc()

    def record_resolution(self, duration: float) -> None:
        """Record a render tree resolution pass."""
        self.resolutions_total.inc()
        self.resolution_duration.observe(duration)

    def record_node_failure(self, kind: str) -> None:
        self.node_failures.labels(kind=kind).inc()

    def record_action(self, action_type: str, status: str) -> None:
        """Record a leaf action outcome."""
        self.actions_total.labels(type=action_type, status=status).inc()

    def record_action_duration(self, action_type: str, duration: float) -> None:
        self.action_duration.labels(type=action_type).observe(duration)

    def record_request(self, method: str, status: str) -> None:
        self.requests_total.labels(method=method, status=status).inc()

    def record_cache(self, cache_type: str, hits: int, misses: int) -> None:
        """Add hit/miss deltas for a cache."""
        if hits:
            self.cache_hits.labels(cache_type=cache_type).inc(hits)
        if misses:
            self.cache_misses.labels(cache_type=cache_type).inc(misses)


# Global metrics collector instance
metrics_collector = MetricsCollector()
