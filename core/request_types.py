"""Shared request data types."""

from dataclasses import dataclass


@dataclass(frozen=True)
class PreparedFetch:
    """Prepared data for an outbound fetch."""

    raw_url: str
    target_url: str
    headers: dict[str, str | bytes]
