"""
Assembles pipelines in the standard stage order.

    RequestIdPolicy
    UserAgentPolicy
    HeadersPolicy          (when static headers are configured)
    ApiVersionPolicy       (when an api_version is configured)
    CustomHeadersPolicy
    per_call_policies
    RetryPolicy
    BearerTokenCredentialPolicy (when a credential is given)
    per_retry_policies
    RequestActivityPolicy
    HttpLoggingPolicy
    transport

Everything above the retry stage runs once per logical request; everything
below it runs once per attempt.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol

from opentelemetry.trace import Tracer

from sdk_core.auth.token_cache import TokenCache
from sdk_core.diagnostics.scope import DiagnosticScopeFactory
from sdk_core.pipeline.base import AsyncPipeline, Pipeline
from sdk_core.pipeline.policies.authentication import (
    AsyncBearerTokenCredentialPolicy,
    BearerTokenCredentialPolicy,
)
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
from sdk_core.resilience.retry import RetryConfig
from sdk_core.transport.aiohttp_transport import AioHttpTransport
from sdk_core.transport.base import AsyncHttpTransport, HttpTransport
from sdk_core.transport.requests_transport import RequestsTransport

logger = logging.getLogger(__name__)


class TransportFactory(Protocol):
    """Anything that builds transports, e.g. sdk_core.config.TransportConfig."""

    def create_transport(self) -> HttpTransport: ...

    def create_async_transport(self) -> AsyncHttpTransport: ...


@dataclass
class PipelineOptions:
    """Client-level knobs for build_pipeline / build_async_pipeline."""

    retry: RetryConfig = field(default_factory=RetryConfig)
    application_id: str | None = None
    headers: dict[str, str] = field(default_factory=dict)
    api_version: str | None = None

    tracing_enabled: bool = True
    tracer: Tracer | None = None
    diagnostics_namespace: str | None = None

    logging_enabled: bool = True
    allowed_header_names: set[str] = field(default_factory=set)

    # Extra policies inserted before / after the retry stage
    per_call_policies: list = field(default_factory=list)
    per_retry_policies: list = field(default_factory=list)

    # Transport instance; when None a default one is created
    transport: HttpTransport | AsyncHttpTransport | None = None
    # Used when no transport instance is given (verify_ssl, pool limits, redirects)
    transport_config: TransportFactory | None = None
    connection_timeout: float = 30.0
    read_timeout: float = 300.0

    enforce_https: bool = True


def _head_policies(options: PipelineOptions) -> list:
    policies: list = [
        RequestIdPolicy(),
        UserAgentPolicy(application_id=options.application_id),
    ]
    if options.headers:
        policies.append(HeadersPolicy(options.headers))
    if options.api_version:
        policies.append(ApiVersionPolicy(options.api_version))
    policies.append(CustomHeadersPolicy())
    policies.extend(options.per_call_policies)
    return policies


def _diagnostics(options: PipelineOptions) -> DiagnosticScopeFactory:
    return DiagnosticScopeFactory(
        namespace=options.diagnostics_namespace,
        tracer=options.tracer,
        enabled=options.tracing_enabled,
    )


def _default_transport(options: PipelineOptions) -> HttpTransport:
    if options.transport_config is not None:
        return options.transport_config.create_transport()
    return RequestsTransport(
        connection_timeout=options.connection_timeout,
        read_timeout=options.read_timeout,
    )


def _default_async_transport(options: PipelineOptions) -> AsyncHttpTransport:
    if options.transport_config is not None:
        return options.transport_config.create_async_transport()
    return AioHttpTransport(
        timeout_connect=options.connection_timeout,
        timeout_total=options.read_timeout,
    )


def build_pipeline(
    options: PipelineOptions | None = None,
    credential=None,
    scopes: Sequence[str] = (),
    transport: HttpTransport | None = None,
    token_cache: TokenCache | None = None,
) -> Pipeline:
    """
    Build a blocking Pipeline.

    Args:
        options: Pipeline options (defaults used when None)
        credential: azure-identity credential; enables bearer auth when set
        scopes: Token scopes for the credential
        transport: Overrides options.transport; otherwise built from
            options.transport_config, or a default RequestsTransport
        token_cache: Optional shared TokenCache for the auth policy
    """
    options = options or PipelineOptions()
    transport = transport or options.transport or _default_transport(options)

    policies = _head_policies(options)
    policies.append(RetryPolicy(options.retry))
    if credential is not None:
        policies.append(
            BearerTokenCredentialPolicy(
                credential, *scopes, cache=token_cache, enforce_https=options.enforce_https
            )
        )
    policies.extend(options.per_retry_policies)
    policies.append(RequestActivityPolicy(enabled=options.tracing_enabled, tracer=options.tracer))
    if options.logging_enabled:
        policies.append(HttpLoggingPolicy(options.allowed_header_names))

    logger.debug(
        "Built pipeline",
        extra={
            "operation": "build_pipeline",
            "api_version": options.api_version,
            "max_attempts": options.retry.max_attempts,
        },
    )
    return Pipeline(transport, policies, diagnostics=_diagnostics(options))


def build_async_pipeline(
    options: PipelineOptions | None = None,
    credential=None,
    scopes: Sequence[str] = (),
    transport: AsyncHttpTransport | None = None,
    token_cache: TokenCache | None = None,
) -> AsyncPipeline:
    """Asyncio variant of build_pipeline; AioHttpTransport is the default transport."""
    options = options or PipelineOptions()
    transport = transport or options.transport or _default_async_transport(options)

    policies = _head_policies(options)
    policies.append(AsyncRetryPolicy(options.retry))
    if credential is not None:
        policies.append(
            AsyncBearerTokenCredentialPolicy(
                credential, *scopes, cache=token_cache, enforce_https=options.enforce_https
            )
        )
    policies.extend(options.per_retry_policies)
    policies.append(
        AsyncRequestActivityPolicy(enabled=options.tracing_enabled, tracer=options.tracer)
    )
    if options.logging_enabled:
        policies.append(HttpLoggingPolicy(options.allowed_header_names))

    logger.debug(
        "Built async pipeline",
        extra={
            "operation": "build_async_pipeline",
            "api_version": options.api_version,
            "max_attempts": options.retry.max_attempts,
        },
    )
    return AsyncPipeline(transport, policies, diagnostics=_diagnostics(options))


__all__ = ["PipelineOptions", "TransportFactory", "build_async_pipeline", "build_pipeline"]
