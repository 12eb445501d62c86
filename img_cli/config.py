"""Configuration objects and constants for the scanner."""

from __future__ import annotations

import argparse
import os
from dataclasses import dataclass
from typing import Tuple

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)
USER_AGENT_ENV = "IMG_CLI_USER_AGENT"
DEFAULT_TIMEOUT = 10.0

IMAGE_EXTENSIONS = ("jpg", "jpeg", "png", "gif", "svg", "webp", "bmp", "ico", "tiff")

# chafa renders cells at roughly 1:2, so 100x50 is about square
DEFAULT_PREVIEW_WIDTH = 100
DEFAULT_PREVIEW_HEIGHT = 50


def default_user_agent() -> str:
    """Return the user agent, honouring the environment override."""
    override = os.getenv(USER_AGENT_ENV, "").strip()
    return override or DEFAULT_USER_AGENT


@dataclass
class ScanConfig:
    """Settings shared by every network call and the preview stage."""

    timeout: float = DEFAULT_TIMEOUT
    check_http: bool = False
    user_agent: str = DEFAULT_USER_AGENT
    preview: bool = True
    preview_width: int = DEFAULT_PREVIEW_WIDTH
    preview_height: int = DEFAULT_PREVIEW_HEIGHT

    @property
    def preview_size(self) -> str:
        return f"{self.preview_width}x{self.preview_height}"


def parse_size(value: str) -> Tuple[int, int]:
    """Parse a ``WIDTHxHEIGHT`` preview size."""
    width, sep, height = value.lower().partition("x")
    if not sep or not width.isdigit() or not height.isdigit():
        raise argparse.ArgumentTypeError(f"expected WIDTHxHEIGHT, got {value!r}")
    if int(width) <= 0 or int(height) <= 0:
        raise argparse.ArgumentTypeError(f"size must be positive, got {value!r}")
    return int(width), int(height)
