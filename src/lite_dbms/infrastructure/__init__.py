"""Infrastructure layer - cross-cutting concerns."""

from lite_dbms.infrastructure.config import Config, get_config
from lite_dbms.infrastructure.logging import (
    bind_statement_context,
    clear_statement_context,
    get_logger,
    setup_logging,
    setup_logging_from_config,
)
from lite_dbms.infrastructure.metrics import setup_metrics, get_metrics, MetricsRegistry
from lite_dbms.infrastructure.tracing import setup_tracing, get_tracer, trace_span

__all__ = [
    "Config",
    "get_config",
    "setup_logging",
    "setup_logging_from_config",
    "get_logger",
    "bind_statement_context",
    "clear_statement_context",
    "setup_metrics",
    "get_metrics",
    "MetricsRegistry",
    "setup_tracing",
    "get_tracer",
    "trace_span",
]
