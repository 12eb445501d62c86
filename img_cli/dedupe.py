"""First-seen order deduplication of resolved URLs."""

from __future__ import annotations

from typing import Set


class Deduplicator:
    """Tracks emitted URLs by exact string equality."""

    def __init__(self) -> None:
        self._seen: Set[str] = set()

    def __contains__(self, url: str) -> bool:
        return url in self._seen

    def add(self, url: str) -> bool:
        """Record ``url``; return False when it was already emitted."""
        if url in self._seen:
            return False
        self._seen.add(url)
        return True

    def discard(self, url: str) -> None:
        """Forget ``url`` so a later repeat is considered again."""
        self._seen.discard(url)
