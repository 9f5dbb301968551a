"""Per-request proxy pipeline.

resolve -> rewrite request headers -> fetch with timeout ->
rewrite response headers -> respond. A failure at any stage short-circuits
into a JSON error response; nothing is retried.
"""

from collections.abc import AsyncIterator, Iterable
from typing import Any

import httpx
from fastapi import Response
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.background import BackgroundTask

from core.exceptions import ResolutionError, UpstreamError
from core.headers import CORS_RESPONSE_HEADERS, HeaderBuilder
from core.protocols import RequestLogger
from core.request_types import PreparedFetch
from core.resolver import ResolvedTarget, TargetResolver
from services.upstream import UpstreamClient


class ProxyDispatcher:
    """Forward a caller-supplied target URL and make the result CORS-readable."""

    def __init__(
        self,
        resolver: TargetResolver,
        header_builder: HeaderBuilder,
        upstream: UpstreamClient,
        logger: RequestLogger,
    ) -> None:
        self._resolver = resolver
        self._headers = header_builder
        self._upstream = upstream
        self._logger = logger

    async def handle(
        self,
        raw_url: str | None,
        inbound_headers: dict[str, Any] | Iterable[tuple[str, Any]],
    ) -> Response:
        """Run the pipeline for one /proxy request."""
        try:
            target = self.resolve(raw_url)
        except ResolutionError as e:
            self._logger.log_rejected(e.category, raw_url, e.message)
            return self._error_response(e.status_code, e.to_payload())

        prepared = self.prepare(raw_url or "", target, inbound_headers)

        deadline = self._upstream.deadline()
        try:
            response = await self._upstream.fetch(prepared, deadline)
        except UpstreamError as e:
            self._logger.log_error(prepared.target_url, e.status_code, e.message)
            return self._error_response(e.status_code, e.to_payload())

        self._logger.log_forwarded(prepared.target_url, response.status_code)
        streaming = StreamingResponse(
            self._stream_body(response, prepared, deadline),
            status_code=response.status_code,
            background=BackgroundTask(self._upstream.close, response),
        )
        # Appended one by one so repeated headers such as Set-Cookie survive
        for key, value in self._headers.build_response(response.headers.multi_items()):
            streaming.headers.append(key, value)
        return streaming

    def resolve(self, raw_url: str | None) -> ResolvedTarget:
        """Resolve the target, logging any recovered decode anomaly."""
        target = self._resolver.resolve(raw_url)
        if target.anomaly:
            self._logger.log_decode_anomaly(raw_url or "", target.anomaly)
        return target

    def prepare(
        self,
        raw_url: str,
        target: ResolvedTarget,
        inbound_headers: dict[str, Any] | Iterable[tuple[str, Any]],
    ) -> PreparedFetch:
        return PreparedFetch(
            raw_url=raw_url,
            target_url=target.url,
            headers=self._headers.build_outbound(inbound_headers),
        )

    def inspect(self, raw_url: str) -> dict[str, Any]:
        """Run only the resolver and describe the outcome (no fetch)."""
        try:
            target = self.resolve(raw_url)
        except ResolutionError as e:
            decoded = e.decoded
            if decoded is None and isinstance(raw_url, str):
                decoded = self._resolver.decode(raw_url.strip()).value
            return {
                "original": raw_url,
                "decoded": decoded,
                "isValid": False,
                "testResult": e.message,
            }
        return {
            "original": raw_url,
            "decoded": target.decoded,
            "resolved": target.url,
            "isValid": True,
            "testResult": "passed",
        }

    async def _stream_body(
        self,
        response: httpx.Response,
        prepared: PreparedFetch,
        deadline: float,
    ) -> AsyncIterator[bytes]:
        # Status and headers are already sent, so a failure can only cut the body short
        try:
            async for chunk in self._upstream.iter_body(response, prepared, deadline):
                yield chunk
        except UpstreamError as e:
            self._logger.log_error(prepared.target_url, e.status_code, e.message)

    @staticmethod
    def _error_response(status_code: int, payload: dict[str, Any]) -> JSONResponse:
        return JSONResponse(payload, status_code=status_code, headers=dict(CORS_RESPONSE_HEADERS))
