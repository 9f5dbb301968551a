"""FastAPI application factory."""

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request

from api.handlers import handle_decode_test, handle_health, handle_proxy
from api.middleware import AllowAnyOriginMiddleware
from core.allowlist import AllowList
from core.config import Config
from core.headers import HeaderBuilder
from core.protocols import RequestLogger
from core.resolver import TargetResolver
from services.dispatcher import ProxyDispatcher
from services.upstream import UpstreamClient


def create_app(
    config: Config,
    logger: RequestLogger,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        limits = httpx.Limits(
            max_connections=config.fetch.max_connections,
            max_keepalive_connections=config.fetch.max_keepalive_connections,
        )
        client = httpx.AsyncClient(
            timeout=config.fetch.timeout,
            limits=limits,
            follow_redirects=config.fetch.follow_redirects,
            transport=transport,
        )
        app.state.dispatcher = ProxyDispatcher(
            resolver=TargetResolver(AllowList.from_settings(config.allowlist)),
            header_builder=HeaderBuilder(config.headers),
            upstream=UpstreamClient(client, timeout=config.fetch.timeout),
            logger=logger,
        )
        try:
            yield
        finally:
            await client.aclose()

    app = FastAPI(title="CDN CORS Proxy", version="0.1.0", lifespan=lifespan)
    app.add_middleware(AllowAnyOriginMiddleware)

    @app.get("/proxy")
    async def proxy(request: Request):
        return await handle_proxy(request, config)

    @app.get("/health")
    async def health():
        return await handle_health()

    @app.get("/decode-test")
    async def decode_test(request: Request):
        return await handle_decode_test(request)

    return app
