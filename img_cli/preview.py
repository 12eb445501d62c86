"""Interactive image picker backed by fzf with chafa thumbnails.

The picker runs ``fzf`` over the accepted URLs. Its preview pane re-invokes
this module (``python -m img_cli.preview URL``), which downloads the image
and pipes the bytes through ``chafa``.
"""

from __future__ import annotations

import argparse
import logging
import os
import shlex
import shutil
import subprocess
import sys
from typing import List, Optional, Sequence, TextIO

import requests

from .config import (
    DEFAULT_PREVIEW_HEIGHT,
    DEFAULT_PREVIEW_WIDTH,
    DEFAULT_TIMEOUT,
    USER_AGENT_ENV,
    ScanConfig,
    default_user_agent,
    parse_size,
)
from .images import detect_image_format

logger = logging.getLogger("img_cli.preview")

PICKER_COMMAND = "fzf"
RENDER_COMMAND = "chafa"
PREVIEW_WINDOW = "right:70%:wrap"


def missing_tools() -> List[str]:
    """Return the preview executables that are not on PATH."""
    return [name for name in (PICKER_COMMAND, RENDER_COMMAND) if shutil.which(name) is None]


def fetch_image_bytes(
    url: str,
    config: ScanConfig,
    session: Optional[requests.Session] = None,
) -> Optional[bytes]:
    """Download ``url`` and return its bytes when they look like an image."""
    getter = session or requests
    try:
        resp = getter.get(
            url,
            timeout=config.timeout,
            headers={"User-Agent": config.user_agent},
        )
        resp.raise_for_status()
    except requests.RequestException as exc:
        logger.warning("Failed to fetch image %s: %s", url, exc)
        return None

    data = resp.content
    content_type = resp.headers.get("Content-Type", "")
    if detect_image_format(data) is None and not content_type.startswith("image/"):
        logger.warning("Skipping %s: not an image (Content-Type=%s)", url, content_type)
        return None
    return data


def render_image(
    url: str,
    config: ScanConfig,
    session: Optional[requests.Session] = None,
) -> bool:
    """Render ``url`` to the terminal with chafa; return whether it worked."""
    data = fetch_image_bytes(url, config, session)
    if data is None:
        return False
    try:
        completed = subprocess.run(
            [RENDER_COMMAND, "--size", config.preview_size, "-"],
            input=data,
            check=False,
        )
    except OSError as exc:
        logger.warning("Could not run %s: %s", RENDER_COMMAND, exc)
        return False
    return completed.returncode == 0


def build_preview_command(config: ScanConfig) -> str:
    """Shell command fzf runs for the highlighted entry (``{}``)."""
    parts = [
        sys.executable,
        "-m",
        "img_cli.preview",
        "--size",
        config.preview_size,
        "--timeout",
        str(config.timeout),
    ]
    return " ".join(shlex.quote(part) for part in parts) + " {}"


def pick_url(urls: Sequence[str], config: ScanConfig) -> Optional[str]:
    """Let the user choose one URL; returns None when nothing was selected."""
    env = dict(os.environ)
    env[USER_AGENT_ENV] = config.user_agent
    completed = subprocess.run(
        [
            PICKER_COMMAND,
            f"--preview={build_preview_command(config)}",
            f"--preview-window={PREVIEW_WINDOW}",
        ],
        input="\n".join(urls) + "\n",
        stdout=subprocess.PIPE,
        text=True,
        env=env,
        check=False,
    )
    selected = completed.stdout.strip() if completed.stdout else ""
    if completed.returncode != 0 or not selected:
        return None
    return selected


def run_preview(
    urls: Sequence[str],
    config: ScanConfig,
    stdout: TextIO = sys.stdout,
) -> Optional[str]:
    """Open the picker, echo the chosen URL and render it once more."""
    logger.info("Preparing image preview (size: %s chars)...", config.preview_size)
    selected = pick_url(urls, config)
    if selected is None:
        logger.info("No image selected")
        return None

    stdout.write(selected + "\n")
    stdout.flush()
    logger.info("Image preview (%s chars):", config.preview_size)
    if not render_image(selected, config):
        logger.error("Failed to display image preview")
    return selected


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Preview pane entry point used by the fzf picker."""
    parser = argparse.ArgumentParser(description="Render one image URL with chafa.")
    parser.add_argument("url", help="Image URL to render")
    parser.add_argument(
        "--size",
        type=parse_size,
        default=(DEFAULT_PREVIEW_WIDTH, DEFAULT_PREVIEW_HEIGHT),
        help="chafa output size as WIDTHxHEIGHT",
    )
    parser.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.WARNING, format="%(message)s", stream=sys.stdout)

    width, height = args.size
    config = ScanConfig(
        timeout=args.timeout,
        user_agent=default_user_agent(),
        preview_width=width,
        preview_height=height,
    )
    sys.stdout.write(f"URL: {args.url}\nLoading image preview...\n")
    sys.stdout.flush()
    return 0 if render_image(args.url, config) else 1


if __name__ == "__main__":
    sys.exit(main())
