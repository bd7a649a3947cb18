"""Tests for DiagnosticScope and DiagnosticScopeFactory."""

import pytest
from opentelemetry import trace
from opentelemetry.trace import SpanKind, StatusCode

from sdk_core.diagnostics import DiagnosticScope, DiagnosticScopeFactory
from sdk_core.errors import RequestFailedError
from sdk_core.logging import get_log_context


class TestDiagnosticScope:
    def test_name_includes_namespace(self, tracer, span_exporter):
        factory = DiagnosticScopeFactory(namespace="Contoso.KeyVault", tracer=tracer)

        with factory.create_scope("SecretClient.Get"):
            pass

        (span,) = span_exporter.get_finished_spans()
        assert span.name == "Contoso.KeyVault.SecretClient.Get"
        assert span.kind == SpanKind.INTERNAL

    def test_success_leaves_status_unset(self, tracer, span_exporter):
        with DiagnosticScopeFactory(tracer=tracer).create_scope("Get") as scope:
            scope.add_attribute("key", "color")
            scope.add_attribute("label", None)

        (span,) = span_exporter.get_finished_spans()
        assert span.status.status_code == StatusCode.UNSET
        assert span.attributes["key"] == "color"
        assert "label" not in span.attributes
        assert not scope.is_failed

    def test_failure_records_exception_and_reraises(self, tracer, span_exporter):
        scope = DiagnosticScopeFactory(tracer=tracer).create_scope("Get")

        with pytest.raises(RequestFailedError):
            with scope:
                raise RequestFailedError("not found", status=404)

        (span,) = span_exporter.get_finished_spans()
        assert span.status.status_code == StatusCode.ERROR
        assert any(event.name == "exception" for event in span.events)
        assert scope.is_failed

    def test_close_is_idempotent(self, tracer, span_exporter):
        scope = DiagnosticScopeFactory(tracer=tracer).create_scope("Get").start()
        scope.close()
        scope.close()
        assert len(span_exporter.get_finished_spans()) == 1

    def test_span_is_current_inside_scope(self, tracer):
        with DiagnosticScopeFactory(tracer=tracer).create_scope("Get") as scope:
            assert trace.get_current_span() is scope.span
        assert trace.get_current_span() is not scope.span

    def test_attribute_added_before_start(self, tracer, span_exporter):
        scope = DiagnosticScope("Op", tracer=tracer)
        scope.add_attribute("item_count", 3)
        with scope:
            pass
        (span,) = span_exporter.get_finished_spans()
        assert span.attributes["item_count"] == 3

    def test_log_context_carries_operation(self, tracer):
        with DiagnosticScopeFactory(namespace="Svc", tracer=tracer).create_scope("List"):
            assert get_log_context()["operation"] == "Svc.List"
        assert get_log_context()["operation"] == ""

    def test_disabled_factory_creates_no_span(self, tracer, span_exporter):
        factory = DiagnosticScopeFactory(tracer=tracer, enabled=False)

        with factory.create_scope("Get") as scope:
            assert get_log_context()["operation"] == "Get"

        assert scope.span is None
        assert span_exporter.get_finished_spans() == ()

    def test_scope_without_tracer_is_disabled(self):
        with DiagnosticScope("Get") as scope:
            pass
        assert scope.span is None
