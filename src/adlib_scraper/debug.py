"""Best-effort debug artifacts (page HTML, full-page screenshots)."""

from __future__ import annotations

import os

from playwright.async_api import Page

from .logging import jlog


def ensure_debug_dir(directory: str) -> str:
    """Create the debug directory if it does not exist and return the path."""

    try:
        os.makedirs(directory, exist_ok=True)
    except OSError as exc:
        jlog("warning", event="debug_dir_error", directory=directory, error=str(exc))
    return directory


async def save_debug_html(page: Page, directory: str, search_id: str) -> str | None:
    """Persist the current page HTML for later debugging."""

    path = os.path.join(ensure_debug_dir(directory), f"page_{search_id}.html")
    try:
        html = await page.content()
        with open(path, "w", encoding="utf-8") as f:
            f.write(html)
        return path
    except Exception as exc:  # pragma: no cover - logging only
        jlog("error", event="debug_save_html_error", search_id=search_id, error=str(exc))
        return None


async def save_debug_screenshot(page: Page, directory: str, filename: str) -> str | None:
    """Full-page screenshot used when detection finds nothing or the session fails."""

    path = os.path.join(ensure_debug_dir(directory), filename)
    try:
        await page.screenshot(path=path, full_page=True)
        jlog("info", event="debug_screenshot_saved", path=path)
        return path
    except Exception as exc:
        jlog("error", event="debug_screenshot_error", path=path, error=str(exc))
        return None


__all__ = ["ensure_debug_dir", "save_debug_html", "save_debug_screenshot"]
