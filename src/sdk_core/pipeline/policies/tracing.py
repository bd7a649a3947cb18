"""
Per-attempt HTTP spans.

Each HTTP call the pipeline makes gets a CLIENT span named ``Http.Request``
that is a child of whatever span is current (normally the operation's
DiagnosticScope). W3C trace context headers are injected so the service
can correlate its own telemetry.
"""

from opentelemetry import trace
from opentelemetry.propagate import inject
from opentelemetry.trace import SpanKind, Status, StatusCode, Tracer

from sdk_core.diagnostics.scope import TRACER_NAME
from sdk_core.http.headers import HttpHeader
from sdk_core.http.request import Request
from sdk_core.http.response import Response
from sdk_core.logging.formatters import sanitize_url
from sdk_core.pipeline.policies.base import AsyncHTTPPolicy, HTTPPolicy

SPAN_NAME = "Http.Request"


class _RequestActivityBase:
    def __init__(self, enabled: bool = True, tracer: Tracer | None = None):
        super().__init__()
        self.enabled = enabled
        self._tracer = tracer

    @property
    def tracer(self) -> Tracer:
        return self._tracer or trace.get_tracer(TRACER_NAME)

    @staticmethod
    def _request_attributes(request: Request) -> dict[str, str]:
        attributes = {
            "http.method": request.method,
            "http.url": sanitize_url(request.url),
        }
        user_agent = request.headers.get(HttpHeader.USER_AGENT)
        if user_agent:
            attributes["http.user_agent"] = user_agent
        request_id = request.headers.get(HttpHeader.CLIENT_REQUEST_ID)
        if request_id:
            attributes["requestId"] = request_id
        return attributes

    @staticmethod
    def _record_response(span: trace.Span, response: Response) -> None:
        span.set_attribute("http.status_code", response.status)
        service_request_id = response.headers.get(HttpHeader.SERVICE_REQUEST_ID)
        if service_request_id:
            span.set_attribute("serviceRequestId", service_request_id)
        if response.status >= 400:
            span.set_status(Status(StatusCode.ERROR, f"HTTP {response.status}"))

    @staticmethod
    def _record_exception(span: trace.Span, exc: Exception) -> None:
        span.record_exception(exc)
        span.set_status(Status(StatusCode.ERROR, f"{type(exc).__name__}: {exc}"[:200]))


class RequestActivityPolicy(_RequestActivityBase, HTTPPolicy):
    """
    Wraps every HTTP attempt in an OpenTelemetry span.

    Args:
        enabled: When False the policy forwards the request untouched
        tracer: Tracer to use; defaults to the global provider's
    """

    def send(self, request: Request) -> Response:
        if not self.enabled:
            return self.next.send(request)

        with self.tracer.start_as_current_span(
            SPAN_NAME,
            kind=SpanKind.CLIENT,
            attributes=self._request_attributes(request),
            record_exception=False,
            set_status_on_exception=False,
        ) as span:
            inject(request.headers)
            try:
                response = self.next.send(request)
            except Exception as e:
                self._record_exception(span, e)
                raise
            self._record_response(span, response)
            return response


class AsyncRequestActivityPolicy(_RequestActivityBase, AsyncHTTPPolicy):
    """Asyncio twin of RequestActivityPolicy."""

    async def send(self, request: Request) -> Response:
        if not self.enabled:
            return await self.next.send(request)

        with self.tracer.start_as_current_span(
            SPAN_NAME,
            kind=SpanKind.CLIENT,
            attributes=self._request_attributes(request),
            record_exception=False,
            set_status_on_exception=False,
        ) as span:
            inject(request.headers)
            try:
                response = await self.next.send(request)
            except Exception as e:
                self._record_exception(span, e)
                raise
            self._record_response(span, response)
            return response


__all__ = ["AsyncRequestActivityPolicy", "RequestActivityPolicy", "SPAN_NAME"]
