"""OpenTelemetry tracing for the answer bridge.

Tracing is exported over OTLP/HTTP only when OTEL_EXPORTER_OTLP_ENDPOINT is
set. Without it the global no-op provider stays in place and spans cost
nothing.
"""

from __future__ import annotations

import os
from typing import Any

import structlog
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from answer_bridge import __version__

logger = structlog.get_logger(__name__)

# Max attribute value length accepted by most collectors
MAX_ATTR_LENGTH = 4096

_tracer_provider: TracerProvider | None = None
_otel_enabled: bool = False


def _get_service_config() -> dict[str, str]:
    """Get service configuration from environment."""
    return {
        "service_name": os.getenv("OTEL_SERVICE_NAME", "answer-bridge"),
        "service_version": __version__,
        "deployment_env": os.getenv("DEPLOYMENT_ENV", "development"),
    }


def _should_enable_otel() -> bool:
    """Check if OTEL should be enabled."""
    enabled_env = os.getenv("OTEL_TRACING_ENABLED", "true").lower() != "false"
    return enabled_env and bool(os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT"))


def truncate(val: Any, max_len: int = MAX_ATTR_LENGTH) -> str:
    """Truncate string to max length."""
    str_val = str(val)
    if len(str_val) <= max_len:
        return str_val
    return str_val[: max_len - 3] + "..."


def init_tracing() -> bool:
    """Initialize the OpenTelemetry SDK with an OTLP/HTTP exporter.

    Returns:
        True if an exporting tracer provider is active
    """
    global _tracer_provider, _otel_enabled  # noqa: PLW0603

    if not _should_enable_otel():
        logger.info("OTEL tracing disabled", reason="no OTLP endpoint configured")
        _otel_enabled = False
        return False

    if _tracer_provider:
        return True

    svc_config = _get_service_config()
    endpoint = os.environ["OTEL_EXPORTER_OTLP_ENDPOINT"].rstrip("/")
    trace_url = endpoint if endpoint.endswith("/v1/traces") else f"{endpoint}/v1/traces"

    try:
        resource = Resource.create(
            {
                "service.name": svc_config["service_name"],
                "service.version": svc_config["service_version"],
                "deployment.environment": svc_config["deployment_env"],
            }
        )
        _tracer_provider = TracerProvider(resource=resource)
        _tracer_provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=trace_url))
        )
        trace.set_tracer_provider(_tracer_provider)

        _otel_enabled = True
        logger.info("OTEL tracing initialized", endpoint=trace_url, service=svc_config["service_name"])
        return True

    except Exception as e:
        logger.error("OTEL tracing failed to initialize", error=str(e))
        _tracer_provider = None
        return False


def get_tracer():
    """Get the tracer instance."""
    svc_config = _get_service_config()
    return trace.get_tracer(svc_config["service_name"], svc_config["service_version"])


def is_otel_enabled() -> bool:
    """Check if OTEL is enabled."""
    return _otel_enabled


def shutdown_tracing() -> None:
    """Flush pending spans and shut the provider down."""
    global _tracer_provider, _otel_enabled  # noqa: PLW0603

    if _tracer_provider is None:
        return
    try:
        _tracer_provider.shutdown()
    except Exception as e:
        logger.warning("OTEL tracer shutdown failed", error=str(e))
    _tracer_provider = None
    _otel_enabled = False
