"""
Tests for the exception hierarchy and error classification.

Test Coverage:
    - Category and retryability of each exception type
    - HTTP status classification
    - String-marker classification of foreign exceptions
    - error_from_response message and error code extraction
"""

import pytest

from sdk_core.errors import (
    AuthError,
    ConnectionError,
    ErrorCategory,
    PagingError,
    PermanentError,
    RequestFailedError,
    SdkError,
    ThrottlingError,
    TimeoutError,
    TransientError,
    classify_exception,
    classify_http_status,
    error_from_response,
    is_auth_error,
    is_retryable_error,
    is_transient_error,
    wrap_exception,
)
from sdk_core.testing import mock_response


class TestSdkError:
    def test_str_includes_cause(self):
        cause = ValueError("bad value")
        error = SdkError("Operation failed", cause=cause)
        assert str(error) == "Operation failed | Caused by: bad value"

    def test_context_defaults_to_empty_dict(self):
        assert SdkError("x").context == {}

    @pytest.mark.parametrize(
        "error_cls,category,retryable",
        [
            (AuthError, ErrorCategory.AUTH, True),
            (TransientError, ErrorCategory.TRANSIENT, True),
            (TimeoutError, ErrorCategory.TRANSIENT, True),
            (ConnectionError, ErrorCategory.TRANSIENT, True),
            (PermanentError, ErrorCategory.PERMANENT, False),
            (PagingError, ErrorCategory.PERMANENT, False),
            (SdkError, ErrorCategory.UNKNOWN, True),
        ],
    )
    def test_categories(self, error_cls, category, retryable):
        error = error_cls("msg")
        assert error.category == category
        assert error.is_retryable is retryable

    def test_auth_error_requests_refresh(self):
        assert AuthError("expired").should_refresh_auth
        assert not TransientError("blip").should_refresh_auth

    def test_throttling_error_keeps_retry_after(self):
        error = ThrottlingError("slow down", retry_after=12.5)
        assert error.retry_after == 12.5
        assert isinstance(error, TransientError)


class TestClassifyHttpStatus:
    @pytest.mark.parametrize(
        "status,category",
        [
            (401, ErrorCategory.AUTH),
            (302, ErrorCategory.AUTH),
            (408, ErrorCategory.TRANSIENT),
            (429, ErrorCategory.TRANSIENT),
            (500, ErrorCategory.TRANSIENT),
            (503, ErrorCategory.TRANSIENT),
            (400, ErrorCategory.PERMANENT),
            (404, ErrorCategory.PERMANENT),
            (409, ErrorCategory.PERMANENT),
            (200, ErrorCategory.UNKNOWN),
        ],
    )
    def test_status_classification(self, status, category):
        assert classify_http_status(status) == category


class TestClassifyException:
    def test_sdk_error_uses_own_category(self):
        assert classify_exception(PermanentError("x")) == ErrorCategory.PERMANENT

    def test_timeout_markers(self):
        assert classify_exception(OSError("read timeout")) == ErrorCategory.TRANSIENT

    def test_auth_markers(self):
        assert classify_exception(RuntimeError("401 Unauthorized")) == ErrorCategory.AUTH

    def test_not_found_is_permanent(self):
        assert classify_exception(RuntimeError("404 not found")) == ErrorCategory.PERMANENT

    def test_unknown(self):
        assert classify_exception(RuntimeError("weird")) == ErrorCategory.UNKNOWN

    def test_helpers(self):
        assert is_auth_error(RuntimeError("token expired"))
        assert is_transient_error(RuntimeError("service unavailable"))
        assert not is_retryable_error(PermanentError("no"))
        assert is_retryable_error(RuntimeError("weird"))


class TestWrapException:
    def test_passes_through_sdk_errors(self):
        error = TransientError("x")
        assert wrap_exception(error, context={"k": "v"}) is error
        assert error.context == {"k": "v"}

    def test_throttling(self):
        wrapped = wrap_exception(RuntimeError("429 Too Many Requests"))
        assert isinstance(wrapped, ThrottlingError)
        assert wrapped.context["error_type"] == "throttling"

    def test_auth(self):
        assert isinstance(wrap_exception(RuntimeError("401 Unauthorized")), AuthError)

    def test_permanent(self):
        assert isinstance(wrap_exception(RuntimeError("403 Forbidden")), PermanentError)

    def test_default_class(self):
        wrapped = wrap_exception(RuntimeError("weird"))
        assert type(wrapped) is SdkError
        assert isinstance(wrapped.cause, RuntimeError)


class TestErrorFromResponse:
    def test_message_layout_with_error_code_header(self):
        response = mock_response(
            404,
            {"message": "missing"},
            headers={"x-ms-error-code": "KeyNotFound"},
            reason="Not Found",
        )
        error = error_from_response(response)

        assert isinstance(error, RequestFailedError)
        assert error.status == 404
        assert error.error_code == "KeyNotFound"
        assert error.category == ErrorCategory.PERMANENT
        assert error.response is response
        assert str(error).startswith(
            "Service request failed.\nStatus: 404 (Not Found)\nErrorCode: KeyNotFound"
        )
        assert "Content:" in str(error)

    def test_error_code_from_body(self):
        response = mock_response(409, {"error": {"code": "Conflict", "message": "busy"}})
        assert error_from_response(response).error_code == "Conflict"

    def test_no_body(self):
        error = error_from_response(mock_response(500, reason="Internal Server Error"))
        assert error.error_code is None
        assert "Content:" not in str(error)
        assert error.is_retryable

    def test_content_is_truncated(self):
        error = error_from_response(mock_response(400, "x" * 2000))
        assert str(error).endswith("x" * 500 + "...")

    def test_retry_after_is_parsed(self):
        error = error_from_response(mock_response(429, headers={"Retry-After": "7"}))
        assert error.retry_after == 7.0
