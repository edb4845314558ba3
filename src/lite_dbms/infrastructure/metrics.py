"""Prometheus metrics for the database engine."""

from __future__ import annotations

from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    Info,
    start_http_server,
    REGISTRY,
    CollectorRegistry,
)


class MetricsRegistry:
    """Registry of all database engine metrics."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """Initialize metrics registry."""
        self._registry = registry or REGISTRY

        # Statement metrics
        self.statements_total = Counter(
            "lite_dbms_statements_total",
            "Total number of statements executed",
            ["kind", "status"],  # status: ok, error, queued
            registry=self._registry,
        )

        self.statement_latency_seconds = Histogram(
            "lite_dbms_statement_latency_seconds",
            "Statement latency in seconds",
            ["kind"],
            buckets=(0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
            registry=self._registry,
        )

        # Transaction metrics
        self.transactions_total = Counter(
            "lite_dbms_transactions_total",
            "Total number of finished transactions",
            ["outcome"],  # commit, rollback
            registry=self._registry,
        )

        self.transactions_active = Gauge(
            "lite_dbms_transactions_active",
            "Number of open transactions",
            registry=self._registry,
        )

        self.replayed_operations_total = Counter(
            "lite_dbms_replayed_operations_total",
            "Buffered operations replayed at commit",
            ["kind", "status"],  # status: applied, failed, lock_conflict
            registry=self._registry,
        )

        # Lock metrics
        self.lock_acquisitions_total = Counter(
            "lite_dbms_lock_acquisitions_total",
            "Lock acquisition attempts",
            ["mode", "result"],  # mode: read, write; result: granted, denied
            registry=self._registry,
        )

        # Storage metrics
        self.table_writes_total = Counter(
            "lite_dbms_table_writes_total",
            "Full-file rewrites of table data files",
            registry=self._registry,
        )

        self.load_failures_total = Counter(
            "lite_dbms_load_failures_total",
            "Catalog or table reads that failed and were treated as empty",
            ["target"],  # catalog, table
            registry=self._registry,
        )

        # Index metrics
        self.index_entries = Gauge(
            "lite_dbms_index_entries",
            "Entries currently held in the in-memory index",
            ["table"],
            registry=self._registry,
        )

        # Server info
        self.info = Info(
            "lite_dbms",
            "Database engine information",
            registry=self._registry,
        )


# Global metrics registry
_metrics: MetricsRegistry | None = None


def setup_metrics(port: int = 8001, registry: CollectorRegistry | None = None) -> MetricsRegistry:
    """
    Set up Prometheus metrics server.

    Args:
        port: Port for the metrics HTTP server
        registry: Optional custom registry

    Returns:
        The metrics registry
    """
    global _metrics
    _metrics = MetricsRegistry(registry)

    from lite_dbms import __version__
    _metrics.info.info({
        "version": __version__,
    })

    start_http_server(port, registry=registry or REGISTRY)

    return _metrics


def get_metrics() -> MetricsRegistry:
    """Get the global metrics registry."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsRegistry()
    return _metrics
