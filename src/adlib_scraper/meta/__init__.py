"""Ad-library keyword search pipeline exports."""

from __future__ import annotations

from .pipeline import CliArgs, get_scraper_version, parse_args, run, run_search, scrape_page

__all__ = ["CliArgs", "get_scraper_version", "parse_args", "run", "run_search", "scrape_page"]
