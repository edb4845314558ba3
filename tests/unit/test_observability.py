"""Unit tests for logging, tracing and metrics helpers."""

from __future__ import annotations

import pytest
import structlog
from prometheus_client import CollectorRegistry

from lite_dbms.infrastructure.config import ObservabilityConfig
from lite_dbms.infrastructure.logging import (
    bind_statement_context,
    clear_statement_context,
    get_logger,
    setup_logging_from_config,
)
from lite_dbms.infrastructure.metrics import MetricsRegistry, get_metrics
from lite_dbms.infrastructure.tracing import get_tracer, trace_span


@pytest.mark.unit
class TestLogging:
    """Logging helper tests."""

    def test_statement_context_is_bound_and_cleared(self) -> None:
        bind_statement_context(3, "students")
        assert structlog.contextvars.get_contextvars() == {
            "session_id": 3,
            "database": "students",
        }

        clear_statement_context()
        assert structlog.contextvars.get_contextvars() == {}

    def test_setup_from_config(self) -> None:
        setup_logging_from_config(ObservabilityConfig(log_level="DEBUG", log_format="console"))

        logger = get_logger(__name__, component="test")
        logger.debug("logging_configured")


@pytest.mark.unit
class TestTracing:
    """Tracing helper tests."""

    def test_span_skips_none_attributes(self) -> None:
        with trace_span("statement.select", {"session_id": 1, "database": None}) as span:
            assert span is not None

    def test_tracer_is_cached(self) -> None:
        assert get_tracer() is get_tracer()


@pytest.mark.unit
class TestMetrics:
    """Metrics registry tests."""

    def test_separate_registries(self) -> None:
        first = MetricsRegistry(registry=CollectorRegistry())
        second = MetricsRegistry(registry=CollectorRegistry())

        first.table_writes_total.inc()

        assert first._registry.get_sample_value("lite_dbms_table_writes_total") == 1.0
        assert second._registry.get_sample_value("lite_dbms_table_writes_total") == 0.0

    def test_global_registry_is_shared(self) -> None:
        assert get_metrics() is get_metrics()
