"""Custom exception hierarchy for the CDN CORS proxy."""

from typing import Any


class ProxyError(Exception):
    """Base exception for all proxy errors."""


class ConfigurationError(ProxyError):
    """Raised when configuration is missing or invalid."""


class DecodeAnomaly(ValueError):
    """Raised by a single percent-decode pass on a malformed escape sequence."""


class ResolutionError(ProxyError):
    """Raised when a target URL cannot be resolved.

    Attributes:
        message: Human readable reason
        raw: The untouched ``url`` query value
        decoded: The value after percent-decoding (if decoding ran)
    """

    category = "resolution_error"
    status_code = 400

    def __init__(
        self,
        message: str,
        raw: Any = None,
        decoded: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.raw = raw
        self.decoded = decoded

    def to_payload(self) -> dict[str, Any]:
        return {
            "error": self.category,
            "message": self.message,
            "url": self.raw if isinstance(self.raw, str) else None,
        }


class MissingTarget(ResolutionError):
    """No ``url`` parameter, or only whitespace."""

    category = "missing_target"


class InvalidURL(ResolutionError):
    """Decoded value is not an absolute http(s) URL."""

    category = "invalid_url"


class TargetNotAllowed(ResolutionError):
    """Target URL does not match any allow-list pattern."""

    category = "target_not_allowed"
    status_code = 403


class UpstreamError(ProxyError):
    """Raised when fetching the resolved target fails.

    Attributes:
        message: Error message
        target: Resolved URL the fetch was issued against
        url: Original requested value
    """

    category = "upstream_error"
    status_code = 502

    def __init__(
        self,
        message: str,
        target: str | None = None,
        url: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.target = target
        self.url = url

    def to_payload(self) -> dict[str, Any]:
        return {
            "error": self.category,
            "message": self.message,
            "url": self.url,
            "target": self.target,
        }


class UpstreamTimeoutError(UpstreamError):
    """Raised when the target does not answer within the fetch timeout."""

    category = "upstream_timeout"
    status_code = 504


class UpstreamConnectionError(UpstreamError):
    """Raised when unable to connect to the target (including DNS failure)."""

    category = "upstream_connection_error"


class UpstreamRequestError(UpstreamError):
    """Raised when the outbound request cannot be built from the prepared fetch."""

    category = "upstream_request_error"
