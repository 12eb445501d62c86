"""Shared fixtures: fake requests responses and sessions."""

from unittest.mock import MagicMock

import pytest
import requests

from img_cli.config import ScanConfig

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def make_response(status=200, headers=None, body=b"", url="https://site.test/"):
    resp = MagicMock()
    resp.status_code = status
    resp.headers = headers or {}
    resp.url = url
    resp.encoding = "ISO-8859-1"
    resp.content = body
    resp.iter_content.return_value = [body]
    resp.__enter__.return_value = resp
    if status >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status} Error")
    return resp


@pytest.fixture
def config():
    return ScanConfig(timeout=3.0, preview=False)


@pytest.fixture
def http_config():
    return ScanConfig(timeout=3.0, check_http=True, preview=False)


@pytest.fixture
def page_session():
    """Session whose GET serves HTML and whose HEAD answers per URL."""

    def _build(html, heads=None, page_url="https://site.test/x/y"):
        heads = heads or {}
        session = MagicMock()
        session.get.return_value = make_response(
            headers={"Content-Type": "text/html"},
            body=html.encode("utf-8"),
            url=page_url,
        )

        def _head(url, **kwargs):
            outcome = heads.get(url, make_response(status=404))
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        session.head.side_effect = _head
        return session

    return _build
