"""Context variables for structured logging."""

from contextvars import ContextVar
from typing import Dict, Optional

from opentelemetry import trace

_service: ContextVar[str] = ContextVar("service", default="")
_operation: ContextVar[str] = ContextVar("operation", default="")
_client_request_id: ContextVar[str] = ContextVar("client_request_id", default="")
_trace_id: ContextVar[str] = ContextVar("trace_id", default="")


def set_log_context(
    service: Optional[str] = None,
    operation: Optional[str] = None,
    client_request_id: Optional[str] = None,
    trace_id: Optional[str] = None,
) -> None:
    if service is not None:
        _service.set(service)
    if operation is not None:
        _operation.set(operation)
    if client_request_id is not None:
        _client_request_id.set(client_request_id)
    if trace_id is not None:
        _trace_id.set(trace_id)


def get_log_context() -> Dict[str, str]:
    context = {
        "service": _service.get(),
        "operation": _operation.get(),
        "client_request_id": _client_request_id.get(),
        "trace_id": _trace_id.get(),
    }

    span_ctx = trace.get_current_span().get_span_context()
    if span_ctx.is_valid:
        context["otel_trace_id"] = format(span_ctx.trace_id, "032x")
        context["otel_span_id"] = format(span_ctx.span_id, "016x")

    return context


def clear_log_context() -> None:
    _service.set("")
    _operation.set("")
    _client_request_id.set("")
    _trace_id.set("")
