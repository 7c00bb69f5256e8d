"""Tests for OpenTelemetry tracing helpers and the dispatcher's spans."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest
from opentelemetry import trace

from agw.utils.telemetry import (
    _INSTRUMENTATION_NAME,
    ATTR_ACTION,
    ATTR_OUTCOME,
    ATTR_RESULT_COUNT,
    ATTR_TOOL_NAME,
    configure_telemetry,
    current_span,
    get_tracer,
)


class TestGetTracer:
    def test_returns_tracer(self) -> None:
        assert isinstance(get_tracer("test.module"), trace.Tracer)
        assert isinstance(get_tracer(), trace.Tracer)

    def test_noop_span(self) -> None:
        with get_tracer("test.noop").start_as_current_span("test") as span:
            span.set_attribute("key", "value")

    def test_current_span_outside_trace(self) -> None:
        assert not current_span().is_recording()


class TestConfigureTelemetry:
    def test_raises_without_sdk(self) -> None:
        with patch.dict("sys.modules", {"opentelemetry.sdk.resources": None}):
            with pytest.raises(ImportError, match="opentelemetry-sdk"):
                configure_telemetry()

    def test_otlp_raises_without_exporter(self) -> None:
        pytest.importorskip("opentelemetry.sdk.trace")
        with (
            patch.dict(
                "sys.modules",
                {"opentelemetry.exporter.otlp.proto.grpc.trace_exporter": None},
            ),
            patch("agw.utils.telemetry.trace.set_tracer_provider") as set_provider,
            pytest.raises(ImportError, match="opentelemetry-exporter-otlp"),
        ):
            configure_telemetry(export_to_console=False, otlp_endpoint="http://localhost:4317")
        set_provider.assert_not_called()

    def test_installs_provider(self) -> None:
        sdk_trace = pytest.importorskip("opentelemetry.sdk.trace")
        with patch("agw.utils.telemetry.trace.set_tracer_provider") as set_provider:
            configure_telemetry(service_name="test-svc", export_to_console=True)

        (provider,) = set_provider.call_args.args
        assert isinstance(provider, sdk_trace.TracerProvider)
        assert provider.resource.attributes["service.name"] == "test-svc"


class TestAttributeConstants:
    def test_namespaced(self) -> None:
        assert _INSTRUMENTATION_NAME == "agw"
        for key in (ATTR_ACTION, ATTR_OUTCOME, ATTR_RESULT_COUNT, ATTR_TOOL_NAME):
            assert key.startswith("agw.")


class TestDispatchSpans:
    @pytest.fixture
    def exporter(self):
        sdk_trace = pytest.importorskip("opentelemetry.sdk.trace")
        export = pytest.importorskip("opentelemetry.sdk.trace.export")
        in_memory = pytest.importorskip("opentelemetry.sdk.trace.export.in_memory_span_exporter")

        exporter = in_memory.InMemorySpanExporter()
        provider = sdk_trace.TracerProvider()
        provider.add_span_processor(export.SimpleSpanProcessor(exporter))
        with patch("agw.gateway.dispatcher._tracer", provider.get_tracer("test")):
            yield exporter

    async def test_list_span(self, exporter) -> None:
        from agw.gateway.dispatcher import ActionDispatcher

        client = SimpleNamespace(get_tools=AsyncMock(return_value={}))
        await ActionDispatcher(client).dispatch({"action": "list_tools"})

        (span,) = exporter.get_finished_spans()
        assert span.name == "mcp.dispatch"
        assert span.attributes[ATTR_ACTION] == "list_tools"
        assert span.attributes[ATTR_OUTCOME] == "ok"
        assert span.attributes[ATTR_RESULT_COUNT] == 0

    async def test_error_span(self, exporter) -> None:
        from agw.gateway.dispatcher import ActionDispatcher
        from agw.gateway.errors import GatewayError

        client = SimpleNamespace(get_tools=AsyncMock(return_value={}))
        with pytest.raises(GatewayError):
            await ActionDispatcher(client).dispatch({"action": "execute_tool", "tool_name": "x"})

        (span,) = exporter.get_finished_spans()
        assert span.attributes[ATTR_OUTCOME] == "error"
        assert span.attributes[ATTR_TOOL_NAME] == "x"
