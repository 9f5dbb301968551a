"""Target URL resolution: iterative percent-decoding, repair and validation.

Callers pass the ``url`` query value through one or more layers of
percent-encoding (CDN paths are already encoded, and pages encode the whole
URL again). The resolver peels those layers off, repairs stray ``%`` signs,
fixes protocol-relative URLs and checks the result against the allow-list.
"""

import re
from dataclasses import dataclass
from typing import Any
from urllib.parse import unquote, urlsplit

import httpx

from core.allowlist import AllowList
from core.exceptions import DecodeAnomaly, InvalidURL, MissingTarget, TargetNotAllowed

MAX_DECODE_PASSES = 10
ALLOWED_SCHEMES = ("http", "https")

# "%" not followed by two hex digits
MALFORMED_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


@dataclass(frozen=True)
class DecodedValue:
    """Outcome of the decode loop."""

    value: str
    passes: int
    anomaly: str | None = None


@dataclass(frozen=True)
class ResolvedTarget:
    """A validated absolute URL ready to be fetched."""

    url: str
    decoded: str
    passes: int
    anomaly: str | None = None


def percent_decode(value: str) -> str:
    """Apply a single strict percent-decode pass."""
    match = MALFORMED_ESCAPE.search(value)
    if match:
        raise DecodeAnomaly(f"Malformed escape sequence at offset {match.start()}")
    try:
        return unquote(value, errors="strict")
    except UnicodeDecodeError as e:
        raise DecodeAnomaly(f"Escape sequence is not valid UTF-8: {e.reason}") from e


def repair_escapes(value: str) -> str:
    """Strip every ``%`` that does not start a valid escape."""
    return MALFORMED_ESCAPE.sub("", value)


def is_absolute_url(candidate: str) -> bool:
    """Check for an http(s) URL with a host that the HTTP client accepts."""
    try:
        parts = urlsplit(candidate)
        parts.port  # raises ValueError on an out-of-range or non-numeric port
    except ValueError:
        return False
    if parts.scheme.lower() not in ALLOWED_SCHEMES or not parts.hostname:
        return False
    if any(ch.isspace() for ch in parts.netloc):
        return False
    try:
        httpx.URL(candidate)
    except httpx.InvalidURL:
        return False
    return True


class TargetResolver:
    """Turn a raw ``url`` query value into a validated target URL."""

    def __init__(self, allow_list: AllowList | None = None) -> None:
        self.allow_list = allow_list

    def decode(self, raw: str) -> DecodedValue:
        """Decode until a pass changes nothing or no ``%`` remains.

        A pass that fails is retried once on the repaired string; if that
        fails too, decoding stops and the last good value is kept.
        """
        value = raw
        passes = 0
        anomaly = None
        while passes < MAX_DECODE_PASSES and "%" in value:
            try:
                decoded = percent_decode(value)
            except DecodeAnomaly as e:
                anomaly = str(e)
                try:
                    decoded = percent_decode(repair_escapes(value))
                except DecodeAnomaly as retry_error:
                    anomaly = f"{anomaly}; repair failed: {retry_error}"
                    break
            passes += 1
            if decoded == value:
                break
            value = decoded
        return DecodedValue(value=value, passes=passes, anomaly=anomaly)

    def resolve(self, raw: Any) -> ResolvedTarget:
        """Resolve a raw query value, raising a ResolutionError subclass on rejection."""
        if raw is None:
            raise MissingTarget("Missing 'url' query parameter", raw)
        if not isinstance(raw, str):
            raise InvalidURL("The 'url' query parameter must be a string", raw)
        trimmed = raw.strip()
        if not trimmed:
            raise MissingTarget("The 'url' query parameter is empty", raw)

        decoded = self.decode(trimmed)
        candidate = decoded.value
        if not is_absolute_url(candidate) and candidate.startswith("//"):
            candidate = "https:" + candidate
        if not is_absolute_url(candidate):
            raise InvalidURL(f"Not a valid absolute URL: {decoded.value}", raw, decoded.value)

        if self.allow_list is not None and not self.allow_list.allows(candidate):
            raise TargetNotAllowed(f"Target is not in the allow-list: {candidate}", raw, candidate)

        return ResolvedTarget(
            url=candidate,
            decoded=decoded.value,
            passes=decoded.passes,
            anomaly=decoded.anomaly,
        )


def resolve(raw: Any, allow_list: AllowList | None = None) -> ResolvedTarget:
    """Resolve without keeping a resolver around."""
    return TargetResolver(allow_list).resolve(raw)
