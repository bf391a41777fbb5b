#!/usr/bin/env python3
"""CLI shim for the landing page snapshot scraper."""
from __future__ import annotations

import asyncio
import sys

from adlib_scraper.landing import LandingArgs, parse_args, run
from adlib_scraper.logging import configure_logging, logging_context, set_global_context
from adlib_scraper.meta import get_scraper_version

SCRIPT_NAME = "landing"


def main() -> None:
    configure_logging()
    set_global_context(app="adlib_scraper", pipeline=SCRIPT_NAME)
    with logging_context(script=SCRIPT_NAME, scraper_version=get_scraper_version()):
        args: LandingArgs = parse_args()
        landing = asyncio.run(run(args))
    if not landing.ok:
        sys.exit(1)


if __name__ == "__main__":
    main()
