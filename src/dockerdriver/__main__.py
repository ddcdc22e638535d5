#!/usr/bin/env python3
"""CLI entrypoint: start one docker browser and keep it until Enter or Ctrl+C."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from loguru import logger
from selenium.common.exceptions import WebDriverException

from dockerdriver.browsers import BrowserRequest, BrowserType, VersionSpec
from dockerdriver.config import load_settings
from dockerdriver.handler import DockerDriverHandler
from dockerdriver.runtime.base import DockerDriverError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dockerdriver",
        description="Start a browser in Docker and print its WebDriver URL",
    )
    parser.add_argument(
        "browser",
        type=BrowserType.parse,
        help="Browser name (chrome, firefox, opera)",
    )
    parser.add_argument(
        "version",
        nargs="?",
        default="latest",
        help="Browser version, 'latest' or 'latest-N'",
    )
    parser.add_argument("--vnc", action="store_true", help="Start a noVNC viewer for the session")
    parser.add_argument("--recording", action="store_true", help="Record the session to mp4")
    parser.add_argument(
        "--output-folder",
        type=Path,
        default=None,
        help="Folder for recordings and VNC redirect pages",
    )
    parser.add_argument("--log-level", default="INFO", help="Log level (TRACE, DEBUG, INFO...)")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logger.remove()
    logger.add(sys.stderr, level=args.log_level.upper())

    overrides = {}
    if args.vnc:
        overrides["vnc"] = True
    if args.recording:
        overrides["recording"] = True
    if args.output_folder:
        overrides["output_folder"] = args.output_folder

    try:
        settings = load_settings(overrides)
        handler = DockerDriverHandler(settings, browser_count=1)
    except DockerDriverError as e:
        logger.error(f"{e}")
        return 1

    request = BrowserRequest(args.browser, VersionSpec.parse(args.version))
    with handler:
        try:
            session = handler.resolve(request)
        except DockerDriverError as e:
            logger.error(f"{e.code}: {e}")
            return 1

        logger.success(f"WebDriver URL: {session.url}")
        logger.info(f"Session id: {session.session_id}")
        if session.vnc_url:
            logger.info(f"VNC URL: {session.vnc_url}")
        try:
            input("Press Enter to stop the browser\n")
        except (KeyboardInterrupt, EOFError):
            pass
        try:
            session.driver.quit()
        except WebDriverException as e:
            logger.warning(f"Error quitting session {session.session_id}: {e.msg}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
