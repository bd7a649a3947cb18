"""
Per-client glue between a service's REST surface and the pipeline.

A client holds one ServicePipeline bound to its endpoint and api-version
and uses it to build requests, send them, turn unaccepted statuses into
RequestFailedError, and page through list operations inside diagnostic
scopes.

Usage:
    service = ServicePipeline("https://myvault.vault.azure.net", "7.0", pipeline)
    secret = service.send("GET", "/secrets/", name, result_factory=Secret.from_dict).value
    for item in service.list_items("/secrets", SecretProperties.from_dict, "SecretClient.List"):
        ...
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar
from urllib.parse import urljoin

from sdk_core.diagnostics.scope import DiagnosticScope
from sdk_core.errors.exceptions import error_from_response
from sdk_core.http.headers import HttpHeader
from sdk_core.http.request import Request
from sdk_core.http.response import Response
from sdk_core.http.uri import RequestUriBuilder
from sdk_core.paging.pager import AsyncItemPaged, ItemPaged, Page
from sdk_core.paging.parsers import parse_json_page
from sdk_core.pipeline.base import AsyncPipeline, Pipeline
from sdk_core.pipeline.policies.headers import ApiVersionPolicy
from sdk_core.types import ResponseClassifier

logger = logging.getLogger(__name__)

T = TypeVar("T")

SUCCESS_STATUS_CODES = frozenset({200, 201, 202, 204})

PageParser = Callable[..., Page]


class StatusCodeClassifier:
    """ResponseClassifier that accepts a fixed set of status codes."""

    def __init__(self, success_codes: Iterable[int] = SUCCESS_STATUS_CODES):
        self.success_codes = frozenset(success_codes)

    def is_error(self, response: Response) -> bool:
        return response.status not in self.success_codes


@dataclass
class ValueResponse(Generic[T]):
    """A deserialized value together with the raw response it came from."""

    value: T
    response: Response

    @property
    def status(self) -> int:
        return self.response.status


class _ServicePipelineBase:
    def __init__(
        self,
        base_url: str,
        api_version: str,
        pipeline,
        namespace: str | None = None,
        classifier: ResponseClassifier | None = None,
        page_size_param: str | None = None,
    ):
        if not base_url:
            raise ValueError("base_url is required")
        self.base_url = base_url
        self.api_version = api_version
        self.pipeline = pipeline
        self.namespace = namespace
        self.classifier = classifier or StatusCodeClassifier()
        self.page_size_param = page_size_param

    def create_first_page_uri(self, path: str, *query_params: tuple[str, Any]) -> str:
        """Base URL + path + api-version + extra (name, value) query pairs."""
        uri = RequestUriBuilder(self.base_url)
        uri.append_path(path)
        uri.append_query(ApiVersionPolicy.QUERY_NAME, self.api_version)
        for name, value in query_params:
            if value is not None:
                uri.append_query(name, value)
        return uri.to_uri()

    def create_request_for_uri(self, method: str, uri: str) -> Request:
        request = self.pipeline.create_request(method, uri)
        request.headers[HttpHeader.CONTENT_TYPE] = HttpHeader.JSON
        request.headers[HttpHeader.ACCEPT] = HttpHeader.JSON
        return request

    def create_request(self, method: str, *path: str) -> Request:
        request = self.create_request_for_uri(method, self.base_url)
        for segment in path:
            request.uri.append_path(segment)
        request.uri.append_query(ApiVersionPolicy.QUERY_NAME, self.api_version)
        return request

    def create_scope(self, name: str) -> DiagnosticScope:
        """Scope named <namespace>.<name>; the pipeline's diagnostics namespace wins when set."""
        factory = self.pipeline.diagnostics
        if self.namespace and not factory.namespace:
            name = f"{self.namespace}.{name}"
        return factory.create_scope(name)

    def _resolve_next_link(self, first_page_uri: str, next_link: str | None) -> str:
        if not next_link:
            return first_page_uri
        # Link headers usually carry a path relative to the endpoint
        return urljoin(self.base_url, next_link)

    def _page_uri(
        self, first_page_uri: str, next_link: str | None, page_size_hint: int | None
    ) -> str:
        uri = self._resolve_next_link(first_page_uri, next_link)
        if next_link or not self.page_size_param or page_size_hint is None:
            return uri
        builder = RequestUriBuilder(uri)
        if not builder.has_query(self.page_size_param):
            builder.append_query(self.page_size_param, page_size_hint)
        return builder.to_uri()

    def _prepare(
        self,
        method: str,
        path: tuple[str, ...],
        content: Any,
        context: dict | None,
    ) -> Request:
        request = self.create_request(method, *path)
        if content is not None:
            request.set_json_body(content)
        if context:
            request.context.update(context)
        return request

    def _check(self, response: Response) -> Response:
        if self.classifier.is_error(response):
            error = error_from_response(response)
            logger.debug(
                "Service request failed",
                extra={
                    "http_status": response.status,
                    "error_code": error.error_code,
                },
            )
            raise error
        return response

    @staticmethod
    def _to_value(response: Response, result_factory: Callable[[Any], T] | None) -> ValueResponse:
        payload = response.json()
        value = result_factory(payload) if result_factory and payload is not None else payload
        return ValueResponse(value, response)


class ServicePipeline(_ServicePipelineBase):
    """
    Blocking service helper.

    Args:
        base_url: Service endpoint, e.g. https://contoso.appconfig.io
        api_version: Value sent as the api-version query parameter
        pipeline: Pipeline built by build_pipeline
        namespace: Prefix for diagnostic scope names, used when the pipeline has none
        classifier: Decides which responses are errors (200/201/202/204 accepted)
        page_size_param: Query parameter carrying the page size hint, if the service has one
    """

    def __init__(
        self,
        base_url: str,
        api_version: str,
        pipeline: Pipeline,
        namespace: str | None = None,
        classifier: ResponseClassifier | None = None,
        page_size_param: str | None = None,
    ):
        super().__init__(base_url, api_version, pipeline, namespace, classifier, page_size_param)

    def send_request(self, request: Request) -> Response:
        return self._check(self.pipeline.run(request))

    def send(
        self,
        method: str,
        *path: str,
        content: Any = None,
        result_factory: Callable[[Any], T] | None = None,
        context: dict | None = None,
    ) -> ValueResponse:
        request = self._prepare(method, path, content, context)
        return self._to_value(self.send_request(request), result_factory)

    def get_page(
        self,
        first_page_uri: str,
        next_link: str | None,
        item_factory: Callable[[Any], T] | None,
        operation_name: str,
        parser: PageParser = parse_json_page,
        page_size_hint: int | None = None,
    ) -> Page:
        with self.create_scope(operation_name):
            uri = self._page_uri(first_page_uri, next_link, page_size_hint)
            request = self.create_request_for_uri("GET", uri)
            response = self.send_request(request)
            return parser(response, item_factory)

    def list_items(
        self,
        path: str,
        item_factory: Callable[[Any], T] | None,
        operation_name: str,
        *query_params: tuple[str, Any],
        parser: PageParser = parse_json_page,
        page_size_hint: int | None = None,
    ) -> ItemPaged:
        first_page_uri = self.create_first_page_uri(path, *query_params)

        def fetch_page(continuation_token: str | None, hint: int | None) -> Page:
            return self.get_page(
                first_page_uri, continuation_token, item_factory, operation_name, parser, hint
            )

        return ItemPaged(fetch_page, page_size_hint=page_size_hint)


class AsyncServicePipeline(_ServicePipelineBase):
    """Asyncio twin of ServicePipeline over an AsyncPipeline."""

    def __init__(
        self,
        base_url: str,
        api_version: str,
        pipeline: AsyncPipeline,
        namespace: str | None = None,
        classifier: ResponseClassifier | None = None,
        page_size_param: str | None = None,
    ):
        super().__init__(base_url, api_version, pipeline, namespace, classifier, page_size_param)

    async def send_request(self, request: Request) -> Response:
        return self._check(await self.pipeline.run(request))

    async def send(
        self,
        method: str,
        *path: str,
        content: Any = None,
        result_factory: Callable[[Any], T] | None = None,
        context: dict | None = None,
    ) -> ValueResponse:
        request = self._prepare(method, path, content, context)
        return self._to_value(await self.send_request(request), result_factory)

    async def get_page(
        self,
        first_page_uri: str,
        next_link: str | None,
        item_factory: Callable[[Any], T] | None,
        operation_name: str,
        parser: PageParser = parse_json_page,
        page_size_hint: int | None = None,
    ) -> Page:
        with self.create_scope(operation_name):
            uri = self._page_uri(first_page_uri, next_link, page_size_hint)
            request = self.create_request_for_uri("GET", uri)
            response = await self.send_request(request)
            return parser(response, item_factory)

    def list_items(
        self,
        path: str,
        item_factory: Callable[[Any], T] | None,
        operation_name: str,
        *query_params: tuple[str, Any],
        parser: PageParser = parse_json_page,
        page_size_hint: int | None = None,
    ) -> AsyncItemPaged:
        first_page_uri = self.create_first_page_uri(path, *query_params)

        async def fetch_page(continuation_token: str | None, hint: int | None) -> Page:
            return await self.get_page(
                first_page_uri, continuation_token, item_factory, operation_name, parser, hint
            )

        return AsyncItemPaged(fetch_page, page_size_hint=page_size_hint)


__all__ = [
    "AsyncServicePipeline",
    "SUCCESS_STATUS_CODES",
    "ServicePipeline",
    "StatusCodeClassifier",
    "ValueResponse",
]
