#!/usr/bin/env python3
"""CLI shim for the ad-library keyword search scraper."""
from __future__ import annotations

import asyncio
import sys

from adlib_scraper.logging import configure_logging, logging_context, set_global_context
from adlib_scraper.meta import CliArgs, get_scraper_version, parse_args, run

SCRIPT_NAME = "meta"


def main() -> None:
    configure_logging()
    set_global_context(app="adlib_scraper", pipeline=SCRIPT_NAME)
    version = get_scraper_version()
    with logging_context(script=SCRIPT_NAME, scraper_version=version):
        args: CliArgs = parse_args()
        outcome = asyncio.run(run(args))
    if outcome.status == "error":
        sys.exit(1)


if __name__ == "__main__":
    main()
