"""FastAPI route handlers."""

from datetime import UTC, datetime

from fastapi import Request, Response

from core.config import Config
from ui.log_utils import write_request_log

SAMPLE_ENCODED_URL = (
    "https%253A%252F%252Fae01.alicdn.com%252Fkf%252F"
    "S48a6a8f4b7c34e7d9b0d7f6e3a1f2c9bQ.jpg_220x220.jpg"
)


async def handle_proxy(request: Request, config: Config) -> Response:
    """Handle /proxy?url=... through the dispatcher."""
    raw_url = request.query_params.get("url")
    headers = request.headers.items()
    if config.proxy.debug:
        write_request_log(request.method, request.url.path, dict(request.headers), raw_url)

    dispatcher = request.app.state.dispatcher
    return await dispatcher.handle(raw_url, headers)


async def handle_health() -> dict[str, str]:
    """Liveness probe; never depends on earlier proxy outcomes."""
    return {
        "status": "ok",
        "message": "Proxy server is running.",
        "timestamp": datetime.now(UTC).isoformat(),
    }


async def handle_decode_test(request: Request) -> dict:
    """Run the resolver on ?url= (or a sample AliCDN URL) without fetching."""
    raw_url = request.query_params.get("url") or SAMPLE_ENCODED_URL
    return request.app.state.dispatcher.inspect(raw_url)
