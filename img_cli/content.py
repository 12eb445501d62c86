"""Image reference extraction from raw HTML and inline CSS."""

from __future__ import annotations

import html
import re
from typing import List

IMG_SRC_PATTERN = re.compile(r'<img[^>]+src="([^"\r\n]+)"', re.IGNORECASE)
SRCSET_PATTERN = re.compile(r'srcset="([^"\r\n]+)"', re.IGNORECASE)
BACKGROUND_PATTERN = re.compile(
    r"background(?:-image)?:[^;]*url\(([^)\r\n]+)\)", re.IGNORECASE
)


def extract_img_sources(markup: str) -> List[str]:
    """Return the ``src`` value of every ``<img>`` tag."""
    return [html.unescape(match) for match in IMG_SRC_PATTERN.findall(markup)]


def extract_srcset_urls(markup: str) -> List[str]:
    """Return the URL part of each ``srcset`` entry, dropping descriptors."""
    urls: List[str] = []
    for value in SRCSET_PATTERN.findall(markup):
        for entry in html.unescape(value).split(","):
            tokens = entry.split()
            urls.append(tokens[0] if tokens else "")
    return urls


def extract_background_urls(markup: str) -> List[str]:
    """Return ``url(...)`` arguments of CSS background declarations."""
    urls: List[str] = []
    for value in BACKGROUND_PATTERN.findall(markup):
        urls.append(html.unescape(value).strip().strip("'\""))
    return urls


def extract_raw_candidates(markup: str) -> List[str]:
    """Collect raw image references from all three passes.

    The result may contain duplicates, empty strings and relative paths;
    normalisation happens later in the pipeline.
    """
    return (
        extract_img_sources(markup)
        + extract_srcset_urls(markup)
        + extract_background_urls(markup)
    )
