"""Shared protocol definitions."""

from typing import Protocol


class RequestLogger(Protocol):
    """Protocol for request logging (Dashboard, ConsoleLogger)."""

    def log_forwarded(self, target: str, status: int) -> None: ...
    def log_rejected(self, category: str, raw: str | None, message: str) -> None: ...
    def log_error(self, target: str, status: int, message: str) -> None: ...
    def log_decode_anomaly(self, raw: str, message: str) -> None: ...
