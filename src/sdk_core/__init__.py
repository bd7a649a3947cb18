"""
sdk_core: shared HTTP pipeline for Azure-style REST service clients.

Modules:
    http         - Request, Response, URI builder, header names
    transport    - requests (sync) and aiohttp (async) transports
    pipeline     - Chain-of-responsibility pipeline, policies and builder
    resilience   - Retry configuration, backoff and retry decorators
    diagnostics  - OpenTelemetry diagnostic scopes
    paging       - Lazy, restartable continuation-token pagers
    service      - Per-client request/paging helpers
    errors       - Error classification and exception hierarchy
    auth         - azure-identity credentials and token caching
    logging      - Structured JSON/console logging with context
    config       - YAML client configuration
    testing      - Mock transports for unit tests
"""

from sdk_core._version import VERSION
from sdk_core.errors import RequestFailedError, SdkError
from sdk_core.http import Request, Response
from sdk_core.paging import AsyncItemPaged, ItemPaged, Page
from sdk_core.pipeline import (
    AsyncPipeline,
    Pipeline,
    PipelineOptions,
    build_async_pipeline,
    build_pipeline,
)
from sdk_core.resilience import RetryConfig
from sdk_core.service import AsyncServicePipeline, ServicePipeline, ValueResponse
from sdk_core.types import ErrorCategory, ResponseClassifier, TokenProvider

__version__ = VERSION

__all__ = [
    "AsyncItemPaged",
    "AsyncPipeline",
    "AsyncServicePipeline",
    "ErrorCategory",
    "ItemPaged",
    "Page",
    "Pipeline",
    "PipelineOptions",
    "Request",
    "RequestFailedError",
    "Response",
    "ResponseClassifier",
    "RetryConfig",
    "SdkError",
    "ServicePipeline",
    "TokenProvider",
    "ValueResponse",
    "build_async_pipeline",
    "build_pipeline",
]
