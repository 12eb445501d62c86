"""Command-line entry point for the image URL extractor."""

from __future__ import annotations

import argparse
import logging
import os
import stat
import sys
import tempfile
import time
from pathlib import Path
from typing import Iterable, NoReturn, Optional, Sequence

from .config import (
    DEFAULT_PREVIEW_HEIGHT,
    DEFAULT_PREVIEW_WIDTH,
    DEFAULT_TIMEOUT,
    ScanConfig,
    default_user_agent,
    parse_size,
)
from .crawler import FetchError, run_scan
from .preview import missing_tools, run_preview
from .urls import ensure_scheme

logger = logging.getLogger("img_cli.cli")

EXAMPLES = """\
Examples:
  img-cli https://example.com
  img-cli https://example.com -o images.txt -v -c
  img-cli https://example.com -t 5 --check-http
  img-cli https://example.com -n (disable image preview)
"""


class ArgumentParser(argparse.ArgumentParser):
    """Argument parser that exits with status 1 on usage errors."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(1, f"Error: {message}\n")


def _positive_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: {value!r}") from None
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be greater than zero: {value!r}")
    return number


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(
        prog="img-cli",
        description="Extract all image URLs from a web page and preview them with chafa in fzf.",
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("url", nargs="?", help="Page to scan (https:// is added when missing)")
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        metavar="FILE",
        help="Save results to FILE",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose output",
    )
    parser.add_argument(
        "-c",
        "--check-http",
        action="store_true",
        help="Check if image URLs are accessible (HTTP 200)",
    )
    parser.add_argument(
        "-t",
        "--timeout",
        type=_positive_float,
        default=DEFAULT_TIMEOUT,
        metavar="SECONDS",
        help="Set timeout for HTTP requests (default: %(default)g)",
    )
    parser.add_argument(
        "-n",
        "--no-preview",
        action="store_true",
        help="Disable image preview with chafa",
    )
    parser.add_argument(
        "--preview-size",
        type=parse_size,
        default=(DEFAULT_PREVIEW_WIDTH, DEFAULT_PREVIEW_HEIGHT),
        metavar="WxH",
        help=f"chafa preview size (default: {DEFAULT_PREVIEW_WIDTH}x{DEFAULT_PREVIEW_HEIGHT})",
    )
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def _output_mode(path: Path) -> int:
    # mkstemp creates 0600; match an existing file or what a plain open() would give
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def write_results(path: Path, urls: Iterable[str]) -> None:
    """Write one URL per line, replacing ``path`` only once fully written."""
    path = path.expanduser()
    handle = tempfile.NamedTemporaryFile(
        "w",
        encoding="utf-8",
        dir=path.parent,
        prefix=f".{path.name}.",
        delete=False,
    )
    try:
        with handle:
            for url in urls:
                handle.write(url + "\n")
        os.chmod(handle.name, _output_mode(path))
        os.replace(handle.name, path)
    except BaseException:
        os.unlink(handle.name)
        raise


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
        stream=sys.stderr,
        force=True,
    )
    # keep -v output to our own diagnostics
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def _emit(url: str) -> None:
    sys.stdout.write(url + "\n")
    sys.stdout.flush()


def _run(args: argparse.Namespace) -> int:
    width, height = args.preview_size
    config = ScanConfig(
        timeout=args.timeout,
        check_http=args.check_http,
        user_agent=default_user_agent(),
        preview=not args.no_preview,
        preview_width=width,
        preview_height=height,
    )

    if config.preview:
        missing = missing_tools()
        if missing:
            logger.warning("Missing dependencies: %s", " ".join(missing))
            logger.warning("Image preview functionality will be disabled")
            config.preview = False

    page_url, prefixed = ensure_scheme(args.url)
    if prefixed:
        logger.warning(
            "URL doesn't start with http:// or https://, adding https:// prefix"
        )

    start = time.perf_counter()
    try:
        result = run_scan(
            page_url,
            config,
            on_accept=None if args.output else _emit,
        )
    except FetchError as exc:
        logger.error("%s", exc)
        return 1
    logger.debug("Scan finished in %.2fs", time.perf_counter() - start)

    if args.output:
        try:
            write_results(args.output, result.urls)
        except OSError as exc:
            logger.error("Failed to write %s: %s", args.output, exc)
            return 1
        logger.info("Results saved to: %s", args.output)
        logger.info("Total image URLs found: %d", len(result.urls))

    if config.preview and result.urls:
        run_preview(result.urls, config)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    _configure_logging(args.verbose)

    if not args.url:
        logger.error("URL is required")
        build_parser().print_help(sys.stderr)
        return 1

    try:
        return _run(args)
    except KeyboardInterrupt:
        logger.error("Interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
