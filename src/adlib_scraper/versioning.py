"""Scraper version resolution helpers."""

from __future__ import annotations

import os

SCRIPT_NAME = "meta"
SCRIPT_VERSION = "2025-06-01.1"


def get_scraper_version(script_name: str = SCRIPT_NAME, script_version: str = SCRIPT_VERSION) -> str:
    """Return ``<script>:<version>``, overridable through ``AD_SCRAPER_VERSION``."""

    return os.getenv("AD_SCRAPER_VERSION", f"{script_name}:{script_version}")


__all__ = ["SCRIPT_NAME", "SCRIPT_VERSION", "get_scraper_version"]
