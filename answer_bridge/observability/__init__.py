"""Observability for the answer bridge.

Provides structlog logging setup and OpenTelemetry tracing.

Quick Start:
    from answer_bridge.observability import configure_logging, init_tracing, get_tracer

    configure_logging("INFO")
    init_tracing()
    tracer = get_tracer()
"""

from answer_bridge.observability.logging import configure_logging
from answer_bridge.observability.tracing import (
    get_tracer,
    init_tracing,
    is_otel_enabled,
    shutdown_tracing,
    truncate,
)

__all__ = [
    "configure_logging",
    "get_tracer",
    "init_tracing",
    "is_otel_enabled",
    "shutdown_tracing",
    "truncate",
]
