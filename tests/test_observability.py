import logging

from answer_bridge.observability import configure_logging, get_tracer, init_tracing, is_otel_enabled, truncate
from answer_bridge.observability.tracing import _should_enable_otel


def test_truncate():
    """Verify truncation logic."""
    assert truncate("hello", 10) == "hello"
    assert truncate("hello world", 5) == "he..."
    assert truncate(123, 10) == "123"


def test_should_enable_otel_logic(monkeypatch):
    """Test the enablement logic with different env vars."""
    monkeypatch.delenv("OTEL_EXPORTER_OTLP_ENDPOINT", raising=False)
    monkeypatch.setenv("OTEL_TRACING_ENABLED", "true")
    assert _should_enable_otel() is False

    monkeypatch.setenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://collector:4318")
    assert _should_enable_otel() is True

    monkeypatch.setenv("OTEL_TRACING_ENABLED", "false")
    assert _should_enable_otel() is False


def test_init_tracing_without_endpoint(monkeypatch):
    monkeypatch.delenv("OTEL_EXPORTER_OTLP_ENDPOINT", raising=False)
    assert init_tracing() is False
    assert is_otel_enabled() is False
    assert get_tracer() is not None


def test_configure_logging_replaces_handlers():
    configure_logging("DEBUG")
    configure_logging("WARNING")
    root = logging.getLogger()
    assert len(root.handlers) == 1
    assert root.level == logging.WARNING
    assert logging.getLogger("httpx").level == logging.WARNING
