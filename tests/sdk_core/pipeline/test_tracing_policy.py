"""Tests for RequestActivityPolicy spans."""

import pytest
from opentelemetry.trace import SpanKind, StatusCode

from sdk_core.diagnostics import DiagnosticScopeFactory
from sdk_core.errors import ConnectionError
from sdk_core.pipeline.base import AsyncPipeline, Pipeline
from sdk_core.pipeline.policies.headers import RequestIdPolicy, UserAgentPolicy
from sdk_core.pipeline.policies.tracing import AsyncRequestActivityPolicy, RequestActivityPolicy
from sdk_core.testing import AsyncMockTransport, MockTransport, mock_response


def _pipeline(transport, tracer, enabled=True):
    return Pipeline(
        transport,
        [
            RequestIdPolicy(),
            UserAgentPolicy(application_id="test-app"),
            RequestActivityPolicy(enabled=enabled, tracer=tracer),
        ],
    )


class TestRequestActivityPolicy:
    def test_span_attributes(self, tracer, span_exporter):
        transport = MockTransport(mock_response(200, headers={"x-ms-request-id": "svc-42"}))
        pipeline = _pipeline(transport, tracer)

        pipeline.run(pipeline.create_request("GET", "https://example.org/kv?sig=secret"))

        (span,) = span_exporter.get_finished_spans()
        sent = transport.last_request
        assert span.name == "Http.Request"
        assert span.kind == SpanKind.CLIENT
        assert span.attributes["http.method"] == "GET"
        assert span.attributes["http.url"] == "https://example.org/kv?sig=[REDACTED]"
        assert span.attributes["http.user_agent"].startswith("test-app ")
        assert span.attributes["requestId"] == sent.headers["x-ms-client-request-id"]
        assert span.attributes["http.status_code"] == 200
        assert span.attributes["serviceRequestId"] == "svc-42"
        assert span.status.status_code == StatusCode.UNSET

    def test_injects_traceparent(self, tracer, span_exporter):
        transport = MockTransport(mock_response(200))
        pipeline = _pipeline(transport, tracer)

        pipeline.run(pipeline.create_request("GET", "https://example.org/kv"))

        (span,) = span_exporter.get_finished_spans()
        traceparent = transport.last_request.headers["traceparent"]
        assert format(span.context.trace_id, "032x") in traceparent
        assert format(span.context.span_id, "016x") in traceparent

    def test_error_status(self, tracer, span_exporter):
        pipeline = _pipeline(MockTransport(mock_response(500)), tracer)
        pipeline.run(pipeline.create_request("GET", "https://example.org/kv"))
        (span,) = span_exporter.get_finished_spans()
        assert span.status.status_code == StatusCode.ERROR

    def test_exception_recorded_and_reraised(self, tracer, span_exporter):
        pipeline = _pipeline(MockTransport(ConnectionError("refused")), tracer)

        with pytest.raises(ConnectionError):
            pipeline.run(pipeline.create_request("GET", "https://example.org/kv"))

        (span,) = span_exporter.get_finished_spans()
        assert span.status.status_code == StatusCode.ERROR
        assert any(event.name == "exception" for event in span.events)

    def test_disabled_is_pass_through(self, tracer, span_exporter):
        transport = MockTransport(mock_response(200))
        pipeline = _pipeline(transport, tracer, enabled=False)

        pipeline.run(pipeline.create_request("GET", "https://example.org/kv"))

        assert span_exporter.get_finished_spans() == ()
        assert "traceparent" not in transport.last_request.headers

    def test_request_span_is_child_of_scope(self, tracer, span_exporter):
        pipeline = _pipeline(MockTransport(mock_response(200)), tracer)
        factory = DiagnosticScopeFactory(namespace="Contoso.Client", tracer=tracer)

        with factory.create_scope("Get"):
            pipeline.run(pipeline.create_request("GET", "https://example.org/kv"))

        spans = {span.name: span for span in span_exporter.get_finished_spans()}
        assert spans["Http.Request"].parent.span_id == spans["Contoso.Client.Get"].context.span_id


class TestAsyncRequestActivityPolicy:
    @pytest.mark.asyncio
    async def test_span_created(self, tracer, span_exporter):
        transport = AsyncMockTransport(mock_response(204))
        pipeline = AsyncPipeline(transport, [AsyncRequestActivityPolicy(tracer=tracer)])

        await pipeline.run(pipeline.create_request("DELETE", "https://example.org/kv/a"))

        (span,) = span_exporter.get_finished_spans()
        assert span.attributes["http.method"] == "DELETE"
        assert span.attributes["http.status_code"] == 204
        assert "traceparent" in transport.last_request.headers
