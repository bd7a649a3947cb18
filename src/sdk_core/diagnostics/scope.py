"""
Diagnostic scopes: one named span per logical client operation.

A scope wraps everything a public client method does (including every
HTTP attempt the pipeline makes on its behalf), so request spans created
by RequestActivityPolicy become its children.
"""

import logging
import time
from typing import Any

from opentelemetry import context as otel_context
from opentelemetry import trace
from opentelemetry.trace import SpanKind, Status, StatusCode, Tracer

from sdk_core.logging.context_managers import LogContext
from sdk_core.logging.utilities import log_with_context

logger = logging.getLogger(__name__)

TRACER_NAME = "sdk_core"


class DiagnosticScope:
    """
    Named span around one logical operation.

    Usage:
        with factory.create_scope("ConfigurationClient.Get") as scope:
            scope.add_attribute("key", key)
            return pipeline.run(request)

    Leaving the block with an exception records it on the span and
    re-raises; the span is ended exactly once either way.
    """

    def __init__(
        self,
        name: str,
        tracer: Tracer | None = None,
        enabled: bool = True,
        kind: SpanKind = SpanKind.INTERNAL,
    ):
        self.name = name
        self._tracer = tracer
        self._enabled = enabled and tracer is not None
        self._kind = kind
        self._attributes: dict[str, Any] = {}
        self._span: trace.Span | None = None
        self._context_token: object | None = None
        self._log_context: LogContext | None = None
        self._start_time: float | None = None
        self._error: BaseException | None = None
        self._closed = False

    @property
    def span(self) -> trace.Span | None:
        return self._span

    @property
    def is_failed(self) -> bool:
        return self._error is not None

    def add_attribute(self, key: str, value: Any) -> None:
        if value is None:
            return
        self._attributes[key] = value
        if self._span is not None:
            self._span.set_attribute(key, value)

    def start(self) -> "DiagnosticScope":
        self._start_time = time.perf_counter()
        self._log_context = LogContext(operation=self.name)
        self._log_context.__enter__()

        if self._enabled:
            self._span = self._tracer.start_span(
                self.name, kind=self._kind, attributes=self._attributes
            )
            self._context_token = otel_context.attach(trace.set_span_in_context(self._span))
        return self

    def failed(self, exc: BaseException) -> None:
        self._error = exc
        if self._span is not None:
            self._span.record_exception(exc)
            self._span.set_status(Status(StatusCode.ERROR, f"{type(exc).__name__}: {exc}"[:200]))

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True

        duration_ms = None
        if self._start_time is not None:
            duration_ms = round((time.perf_counter() - self._start_time) * 1000, 2)

        if self._span is not None:
            if self._context_token is not None:
                otel_context.detach(self._context_token)
            self._span.end()

        if self._error is not None:
            log_with_context(
                logger,
                logging.DEBUG,
                "Failed: %s",
                self.name,
                scope_name=self.name,
                duration_ms=duration_ms,
                error_type=type(self._error).__name__,
                error_message=str(self._error)[:200],
            )
        else:
            log_with_context(
                logger,
                logging.DEBUG,
                "Completed: %s",
                self.name,
                scope_name=self.name,
                duration_ms=duration_ms,
            )

        if self._log_context is not None:
            self._log_context.__exit__(None, None, None)

    def __enter__(self) -> "DiagnosticScope":
        return self.start()

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_val is not None:
            self.failed(exc_val)
        self.close()
        return False


class DiagnosticScopeFactory:
    """
    Creates DiagnosticScopes for a client.

    Args:
        namespace: Optional prefix joined to scope names with a dot
        tracer: OpenTelemetry tracer; defaults to the global provider's
        enabled: When False, scopes only log and never create spans
    """

    def __init__(
        self,
        namespace: str | None = None,
        tracer: Tracer | None = None,
        enabled: bool = True,
    ):
        self.namespace = namespace
        self._tracer = tracer
        self.enabled = enabled

    @property
    def tracer(self) -> Tracer:
        # Resolved per call so a provider installed after construction is honoured
        return self._tracer or trace.get_tracer(TRACER_NAME)

    def create_scope(self, name: str, kind: SpanKind = SpanKind.INTERNAL) -> DiagnosticScope:
        full_name = f"{self.namespace}.{name}" if self.namespace else name
        tracer = self.tracer if self.enabled else None
        return DiagnosticScope(full_name, tracer=tracer, enabled=self.enabled, kind=kind)


__all__ = ["DiagnosticScope", "DiagnosticScopeFactory", "TRACER_NAME"]
