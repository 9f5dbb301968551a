"""Domain allow-list with ``*`` wildcard patterns."""

import re
from dataclasses import dataclass
from urllib.parse import urlsplit

from core.config import AllowListSettings


def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a domain pattern where ``*`` matches any run of characters."""
    body = ".*".join(re.escape(part) for part in pattern.split("*"))
    return re.compile(body, re.IGNORECASE)


@dataclass(frozen=True)
class AllowList:
    """Immutable set of compiled domain patterns.

    Unanchored lists search every pattern anywhere in the full URL string, so
    ``alicdn.com`` also matches ``https://alicdn.com.attacker.net/``. Anchored
    lists full-match each pattern against the host only. Matching ignores case
    in both modes, so ``https://AE01.ALICDN.COM/`` passes like its lower-case form.
    """

    patterns: tuple[str, ...]
    compiled: tuple[re.Pattern[str], ...]
    anchored: bool = False

    @classmethod
    def from_patterns(cls, patterns: list[str] | tuple[str, ...], anchored: bool = False) -> "AllowList":
        cleaned = tuple(p.strip() for p in patterns if p and p.strip())
        return cls(
            patterns=cleaned,
            compiled=tuple(compile_pattern(p) for p in cleaned),
            anchored=anchored,
        )

    @classmethod
    def from_settings(cls, settings: AllowListSettings) -> "AllowList | None":
        """Build the allow-list, or None when the permissive variant is configured."""
        if not settings.enabled:
            return None
        return cls.from_patterns(settings.patterns, anchored=settings.anchored)

    def allows(self, url: str) -> bool:
        if self.anchored:
            host = (urlsplit(url).hostname or "").lower()
            return any(regex.fullmatch(host) for regex in self.compiled)
        return any(regex.search(url) for regex in self.compiled)
