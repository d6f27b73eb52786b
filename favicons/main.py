"""Entry point for the favicons task.

Usage:
  favicons -c favicons.yaml
  favicons img/logo.png public/icons --html public/index.html --html-prefix /icons/
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Any

from favicons.config import FileGroup, get_config
from favicons.core.errors import FaviconsError
from favicons.core.logging_config import setup_logging
from favicons.core.task import FaviconsTask

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="favicons",
        description="Generate favicon.ico and icons for iOS, Android, Windows tiles and Firefox OS",
    )
    parser.add_argument("src", nargs="?", help="Source image (glob allowed)")
    parser.add_argument("dest", nargs="?", help="Output directory")
    parser.add_argument("-c", "--config", help="YAML task config with files and options")
    parser.add_argument("--html", help="HTML file to inject the icon tags into")
    parser.add_argument("--html-prefix", dest="html_prefix", help="Prefix for every href in HTML/manifest")
    parser.add_argument("--firefox-manifest", dest="firefox_manifest", help="Firefox OS manifest to update")
    parser.add_argument("--executable", help="ImageMagick convert binary (default: convert)")
    parser.add_argument("--debug", action="store_true", default=None, help="Log every ImageMagick command")
    parser.add_argument("--json-logs", action="store_true", help="Log as JSON lines")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    config = get_config(args.config)

    update: dict[str, Any] = {}
    for key in ("html", "html_prefix", "firefox_manifest", "debug"):
        value = getattr(args, key)
        if value is not None:
            update[key] = value
    if args.firefox_manifest:
        update["firefox"] = True
    if update:
        config.options = config.options.model_copy(update=update)
    if args.executable:
        config.executable = args.executable
    if args.src or args.dest:
        if not (args.src and args.dest):
            build_parser().error("src and dest must be given together")
        config.files.append(FileGroup(src=[args.src], dest=args.dest))

    level = "DEBUG" if config.options.debug else config.log_level
    setup_logging(level=level, use_json=args.json_logs or config.log_json)

    if not config.files:
        logger.error("No source files configured")
        sys.exit(1)
    try:
        reports = FaviconsTask(config).run()
    except FaviconsError as e:
        logger.error("%s", e)
        sys.exit(1)
    logger.info("Generated icons for %d source image(s)", len(reports))


if __name__ == "__main__":
    main()
