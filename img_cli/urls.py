"""Resolution of raw image references against the page URL."""

from __future__ import annotations

import re
from typing import Tuple
from urllib.parse import urlsplit

ABSOLUTE_PATTERN = re.compile(r"^https?://")
SCHEME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")
DIRECTORY_PATTERN = re.compile(r"^https?://[^/]+/[^/]+/")


class UnresolvableURL(ValueError):
    """Raised when a raw reference cannot become an http(s) URL."""


def ensure_scheme(url: str) -> Tuple[str, bool]:
    """Prefix ``https://`` when the URL has no http(s) scheme.

    Returns the URL and whether it was changed.
    """
    if ABSOLUTE_PATTERN.match(url):
        return url, False
    return f"https://{url}", True


def site_root(page_url: str) -> str:
    """Return ``scheme://host`` for the page."""
    parts = urlsplit(page_url)
    return f"{parts.scheme}://{parts.netloc}"


def directory_prefix(page_url: str) -> str:
    """Return scheme, host and first path segment with a trailing slash.

    Deeper segments are ignored. Pages without a first-segment directory
    fall back to the site root.
    """
    match = DIRECTORY_PATTERN.match(page_url)
    if match:
        return match.group(0)
    return site_root(page_url) + "/"


def resolve_candidate(raw: str, page_url: str) -> str:
    """Turn a raw reference into an absolute http(s) URL."""
    candidate = raw.strip()
    if not candidate:
        raise UnresolvableURL("empty reference")
    if candidate.startswith("//"):
        return "https:" + candidate
    if candidate.startswith("/"):
        return site_root(page_url) + candidate
    if ABSOLUTE_PATTERN.match(candidate):
        return candidate
    if SCHEME_PATTERN.match(candidate):
        raise UnresolvableURL(f"unsupported scheme in {candidate[:40]!r}")
    return directory_prefix(page_url) + candidate
