"""Test doubles shared across test modules."""

import asyncio

import httpx

from core.config import Config


class RecordingLogger:
    """RequestLogger that keeps every call in memory."""

    def __init__(self):
        self.forwarded: list[tuple[str, int]] = []
        self.rejected: list[tuple[str, str | None, str]] = []
        self.errors: list[tuple[str, int, str]] = []
        self.anomalies: list[tuple[str, str]] = []

    def log_forwarded(self, target, status):
        self.forwarded.append((target, status))

    def log_rejected(self, category, raw, message):
        self.rejected.append((category, raw, message))

    def log_error(self, target, status, message):
        self.errors.append((target, status, message))

    def log_decode_anomaly(self, raw, message):
        self.anomalies.append((raw, message))


class RecordingTransport(httpx.MockTransport):
    """MockTransport that remembers the requests it served."""

    def __init__(self, handler):
        self.requests: list[httpx.Request] = []

        def record(request):
            self.requests.append(request)
            return handler(request)

        super().__init__(record)


def image_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(
        200,
        content=b"\x89PNG fake image",
        headers={"Content-Type": "image/png", "Access-Control-Allow-Origin": "https://www.aliexpress.com"},
    )


def make_config(**allowlist) -> Config:
    config = Config()
    for key, value in allowlist.items():
        setattr(config.allowlist, key, value)
    return config


class DripStream(httpx.AsyncByteStream):
    """Upstream body that sends one chunk per ``interval`` and can fail midway."""

    def __init__(self, chunks: int = 100, interval: float = 0.0, fail_after: int | None = None):
        self.chunks = chunks
        self.interval = interval
        self.fail_after = fail_after
        self.sent = 0
        self.closed = False

    async def __aiter__(self):
        for _ in range(self.chunks):
            if self.fail_after is not None and self.sent >= self.fail_after:
                raise httpx.ReadError("connection reset by peer")
            if self.interval:
                await asyncio.sleep(self.interval)
            self.sent += 1
            yield b"x"

    async def aclose(self):
        self.closed = True
