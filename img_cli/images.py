"""Image classification and HTTP validation utilities."""

from __future__ import annotations

import logging
import re
from typing import Optional

import requests
from filetype import guess

from .config import IMAGE_EXTENSIONS, ScanConfig
from .models import Classification, ClassificationKind

logger = logging.getLogger("img_cli.images")

EXTENSION_PATTERN = re.compile(
    r"\.(" + "|".join(IMAGE_EXTENSIONS) + r")(\?.*)?$", re.IGNORECASE
)


def detect_image_format(data: bytes) -> Optional[str]:
    """Detect image type using filetype; returns lowercase extension."""
    kind = guess(data)
    if kind and kind.mime.startswith("image/"):
        return kind.extension.lower()
    return None


def extension_of(url: str) -> Optional[str]:
    """Return the allow-listed image extension at the end of the URL path."""
    match = EXTENSION_PATTERN.search(url)
    if match:
        return match.group(1).lower()
    return None


def content_type_subtype(content_type: Optional[str]) -> Optional[str]:
    """Return the media subtype of a Content-Type header value."""
    if not content_type:
        return None
    media_type = content_type.split(";")[0]
    if "/" not in media_type:
        return None
    subtype = media_type.split("/", 1)[1].strip().lower()
    return subtype or None


def probe_content_type(
    url: str,
    session: requests.Session,
    config: ScanConfig,
) -> Optional[str]:
    """Issue a HEAD request and return the image type it advertises."""
    try:
        resp = session.head(url, timeout=config.timeout, allow_redirects=False)
    except requests.RequestException as exc:
        logger.debug("Content-Type probe failed for %s: %s", url, exc)
        return None
    subtype = content_type_subtype(resp.headers.get("Content-Type"))
    if subtype in IMAGE_EXTENSIONS:
        return subtype
    return None


def classify_url(
    url: str,
    session: Optional[requests.Session],
    config: ScanConfig,
) -> Classification:
    """Decide whether ``url`` is an image by extension, then by Content-Type."""
    extension = extension_of(url)
    if extension:
        return Classification(ClassificationKind.EXTENSION, extension)
    if config.check_http and session is not None:
        subtype = probe_content_type(url, session, config)
        if subtype:
            return Classification(ClassificationKind.CONTENT_TYPE, subtype)
    return Classification.rejected()


def validate_url(
    url: str,
    session: requests.Session,
    config: ScanConfig,
) -> Optional[int]:
    """Return the HEAD status code for ``url``, or None when unreachable.

    Only 200 counts as valid; redirects are not followed.
    """
    try:
        resp = session.head(url, timeout=config.timeout, allow_redirects=False)
    except requests.RequestException as exc:
        logger.debug("Validation request failed for %s: %s", url, exc)
        return None
    return resp.status_code
