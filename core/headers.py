"""Header rewriting for outbound fetches and proxied responses."""

from collections.abc import Iterable
from typing import Any

from core.config import HeaderSettings

HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailer",
        "trailers",
        "transfer-encoding",
        "upgrade",
    }
)

# Never forwarded to the target; httpx sets host/content-length itself
DROPPED_REQUEST_HEADERS = frozenset({"host", "content-length", "cookie"})

CORS_RESPONSE_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "*",
}


class HeaderBuilder:
    """Build outbound and response header sets."""

    def __init__(self, settings: HeaderSettings | None = None) -> None:
        self.settings = settings or HeaderSettings()

    def overrides(self) -> dict[str, str]:
        """Headers that replace whatever the client sent."""
        headers = {
            "User-Agent": self.settings.user_agent,
            "Referer": self.settings.referer,
        }
        if self.settings.mimic_image_request:
            headers["Accept"] = self.settings.accept
            headers["Accept-Language"] = self.settings.accept_language
        return headers

    def build_outbound(self, inbound: dict[str, Any] | Iterable[tuple[str, Any]]) -> dict[str, str | bytes]:
        """Return a new header set: filtered client headers plus the overrides.

        Non-ASCII values are forwarded as their latin-1 bytes, the encoding
        the server decoded them with; values outside latin-1 are dropped.
        """
        overrides = self.overrides()
        replaced = {key.lower() for key in overrides}
        skipped = HOP_BY_HOP_HEADERS | DROPPED_REQUEST_HEADERS | replaced

        outbound: dict[str, str | bytes] = {}
        for key, value in _items(inbound):
            if key.lower() in skipped or not key.isascii():
                continue
            encoded = _header_value(value)
            if encoded is not None:
                outbound[key] = encoded
        outbound.update(overrides)
        return outbound

    def build_response(self, downstream: dict[str, Any] | Iterable[tuple[str, Any]]) -> list[tuple[str, str]]:
        """Copy downstream headers, repeated ones included, and force CORS on top."""
        forced = {key.lower() for key in CORS_RESPONSE_HEADERS}
        headers: list[tuple[str, str]] = []
        for key, value in _items(downstream):
            key_lower = key.lower()
            if key_lower in HOP_BY_HOP_HEADERS or key_lower in forced:
                continue
            headers.append((key, str(value)))
        headers.extend(CORS_RESPONSE_HEADERS.items())
        return headers


def _header_value(value: Any) -> str | bytes | None:
    if isinstance(value, bytes):
        return value
    value = str(value)
    if value.isascii():
        return value
    try:
        return value.encode("latin-1")
    except UnicodeEncodeError:
        return None


def _items(headers: dict[str, Any] | Iterable[tuple[str, Any]]) -> Iterable[tuple[str, Any]]:
    if hasattr(headers, "items"):
        return headers.items()
    return headers
