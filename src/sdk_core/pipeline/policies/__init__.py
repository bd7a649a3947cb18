"""Pipeline policies."""

from sdk_core.pipeline.policies.authentication import (
    AsyncBearerTokenCredentialPolicy,
    BearerTokenCredentialPolicy,
)
from sdk_core.pipeline.policies.base import AsyncHTTPPolicy, HTTPPolicy, SansIOHTTPPolicy
from sdk_core.pipeline.policies.headers import (
    ApiVersionPolicy,
    CustomHeadersPolicy,
    HeadersPolicy,
    RequestIdPolicy,
    UserAgentPolicy,
)
from sdk_core.pipeline.policies.logging_policy import HttpLoggingPolicy
from sdk_core.pipeline.policies.retry import AsyncRetryPolicy, RetryPolicy
from sdk_core.pipeline.policies.tracing import (
    AsyncRequestActivityPolicy,
    RequestActivityPolicy,
)

__all__ = [
    "ApiVersionPolicy",
    "AsyncBearerTokenCredentialPolicy",
    "AsyncHTTPPolicy",
    "AsyncRequestActivityPolicy",
    "AsyncRetryPolicy",
    "BearerTokenCredentialPolicy",
    "CustomHeadersPolicy",
    "HTTPPolicy",
    "HeadersPolicy",
    "HttpLoggingPolicy",
    "RequestActivityPolicy",
    "RequestIdPolicy",
    "RetryPolicy",
    "SansIOHTTPPolicy",
    "UserAgentPolicy",
]
