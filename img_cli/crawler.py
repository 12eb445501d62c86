"""High-level orchestration for fetching a page and collecting image URLs."""

from __future__ import annotations

import codecs
import logging
import tempfile
from pathlib import Path
from typing import Callable, List, Optional

import requests

from .config import ScanConfig
from .content import extract_raw_candidates
from .dedupe import Deduplicator
from .images import classify_url, validate_url
from .models import ImageCandidate, PageDocument, ScanResult
from .urls import UnresolvableURL, resolve_candidate

logger = logging.getLogger("img_cli")

_CHUNK_SIZE = 64 * 1024


class FetchError(RuntimeError):
    """Raised when the page itself cannot be retrieved."""


def build_session(config: ScanConfig) -> requests.Session:
    """Create a session that identifies itself with the configured user agent."""
    session = requests.Session()
    session.headers.update({"User-Agent": config.user_agent})
    return session


def _response_encoding(resp: requests.Response) -> str:
    # requests assumes ISO-8859-1 for text/* without an explicit charset
    content_type = resp.headers.get("Content-Type", "").lower()
    if "charset=" not in content_type or not resp.encoding:
        return "utf-8"
    try:
        codecs.lookup(resp.encoding)
    except LookupError:
        logger.warning("Unknown charset %r, decoding as utf-8", resp.encoding)
        return "utf-8"
    return resp.encoding


def fetch_page(
    session: requests.Session,
    url: str,
    destination: Path,
    timeout: float,
) -> PageDocument:
    """Download ``url`` into ``destination`` and describe the stored document."""
    try:
        with session.get(url, timeout=timeout, stream=True) as resp:
            resp.raise_for_status()
            with destination.open("wb") as handle:
                for chunk in resp.iter_content(chunk_size=_CHUNK_SIZE):
                    handle.write(chunk)
            final_url = resp.url or url
            encoding = _response_encoding(resp)
    except requests.RequestException as exc:
        raise FetchError(f"Failed to fetch {url}: {exc}") from exc
    return PageDocument(url=url, final_url=final_url, path=destination, encoding=encoding)


def collect_candidates(markup: str, page_url: str, result: ScanResult) -> List[ImageCandidate]:
    """Resolve the sorted unique raw references found in ``markup``."""
    raw_values = sorted(set(extract_raw_candidates(markup)))
    result.candidate_count = len(raw_values)
    candidates: List[ImageCandidate] = []
    for raw in raw_values:
        if not raw.strip():
            result.skip("empty")
            continue
        try:
            absolute_url = resolve_candidate(raw, page_url)
        except UnresolvableURL as exc:
            logger.debug("Skipping (unresolvable): %s (%s)", raw.strip()[:80], exc)
            result.skip("unresolvable")
            continue
        candidates.append(ImageCandidate(original_src=raw, absolute_url=absolute_url))
    return candidates


def filter_candidates(
    candidates: List[ImageCandidate],
    result: ScanResult,
    session: requests.Session,
    config: ScanConfig,
    on_accept: Optional[Callable[[str], None]] = None,
) -> None:
    """Classify, deduplicate and optionally validate each candidate in order."""
    emitted = Deduplicator()
    for candidate in candidates:
        url = candidate.absolute_url
        classification = classify_url(url, session, config)
        if not classification.is_image:
            if config.check_http:
                logger.debug("Skipping (not image): %s", url)
                result.skip("not-image")
            else:
                logger.debug("Skipping (unknown type): %s", url)
                result.skip("unknown-type")
            continue

        if not emitted.add(url):
            logger.debug("Skipping (duplicate): %s", url)
            result.skip("duplicate")
            continue

        if config.check_http:
            status = validate_url(url, session, config)
            if status != 200:
                logger.debug("Invalid (HTTP %s): %s", status or "error", url)
                result.skip("http-status")
                emitted.discard(url)
                continue

        result.urls.append(url)
        if on_accept is not None:
            on_accept(url)
        logger.debug("Found: %s (%s: %s)", url, classification.kind.value, classification.image_type)


def run_scan(
    page_url: str,
    config: ScanConfig,
    session: Optional[requests.Session] = None,
    on_accept: Optional[Callable[[str], None]] = None,
) -> ScanResult:
    """Fetch ``page_url`` and return the image URLs it references.

    The page is spooled into a scratch directory that is removed when the
    scan ends, whichever way it ends.
    """
    session = session or build_session(config)
    result = ScanResult(page_url=page_url)
    with tempfile.TemporaryDirectory(prefix="img-cli-") as tmp_dir:
        logger.info("Fetching content from: %s", page_url)
        document = fetch_page(session, page_url, Path(tmp_dir) / "page.html", config.timeout)
        if document.final_url != page_url:
            logger.debug("Redirected to %s", document.final_url)

        logger.info("Extracting image URLs...")
        candidates = collect_candidates(document.read_text(), page_url, result)

    logger.info("Processing found URLs...")
    filter_candidates(candidates, result, session, config, on_accept)
    logger.debug(
        "Scanned %d unique reference(s): %d accepted, skipped %s",
        result.candidate_count,
        len(result.urls),
        result.skipped or "none",
    )
    return result
