"""Data models used throughout the scan pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional


@dataclass
class PageDocument:
    """Fetched page stored in the run's scratch directory."""

    url: str
    final_url: str
    path: Path
    encoding: str

    def read_text(self) -> str:
        return self.path.read_text(encoding=self.encoding, errors="replace")


class ClassificationKind(str, Enum):
    EXTENSION = "extension"
    CONTENT_TYPE = "content-type"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Classification:
    """Outcome of deciding whether a resolved URL denotes an image."""

    kind: ClassificationKind
    image_type: Optional[str] = None

    @property
    def is_image(self) -> bool:
        return self.kind is not ClassificationKind.REJECTED

    @classmethod
    def rejected(cls) -> "Classification":
        return cls(ClassificationKind.REJECTED)


@dataclass
class ImageCandidate:
    """Raw image reference paired with its absolute URL."""

    original_src: str
    absolute_url: str


@dataclass
class ScanResult:
    """Accepted image URLs for one page, in first-seen order."""

    page_url: str
    urls: List[str] = field(default_factory=list)
    candidate_count: int = 0
    skipped: Dict[str, int] = field(default_factory=dict)

    def skip(self, reason: str) -> None:
        self.skipped[reason] = self.skipped.get(reason, 0) + 1
