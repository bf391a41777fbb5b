"""Playwright helpers shared by the search and landing page scrapers."""

from __future__ import annotations

import os

from playwright.async_api import Page, TimeoutError

from .debug import ensure_debug_dir
from .logging import jlog

SCROLL_BY_JS = "(dy) => window.scrollBy(0, dy)"
SCROLL_TO_JS = "(y) => window.scrollTo({ top: y, behavior: 'instant' })"


async def scroll_by(page: Page, dy: int) -> None:
    await page.evaluate(SCROLL_BY_JS, dy)


async def scroll_to(page: Page, y: float) -> None:
    await page.evaluate(SCROLL_TO_JS, max(0, y))


async def wait_network_idle(page: Page, timeout_ms: int) -> bool:
    """Wait for network idle; a timeout is logged and otherwise ignored."""

    try:
        await page.wait_for_load_state("networkidle", timeout=timeout_ms)
        return True
    except TimeoutError:
        jlog("info", event="network_idle_timeout", timeout_ms=timeout_ms, url=page.url)
        return False


async def cleanup_playwright(context, browser, trace: bool, debug_dir: str, label: str) -> None:
    """Save the trace when requested, then close context and browser.

    Close failures are logged; a browser that already died must not mask the
    session outcome.
    """

    if trace and context:
        trace_path = os.path.join(ensure_debug_dir(debug_dir), f"trace_{label}.zip")
        try:
            await context.tracing.stop(path=trace_path)
            jlog("info", event="trace_saved", path=trace_path)
        except Exception as exc:
            jlog("warning", event="trace_save_error", path=trace_path, error=str(exc))
    for name, resource in (("context", context), ("browser", browser)):
        if resource is None:
            continue
        try:
            await resource.close()
        except Exception as exc:
            jlog("warning", event="playwright_close_error", resource=name, label=label, error=str(exc))


CHROMIUM_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-dev-shm-usage",
    "--disable-setuid-sandbox",
    "--disable-gpu",
]


__all__ = [
    "CHROMIUM_LAUNCH_ARGS",
    "SCROLL_BY_JS",
    "SCROLL_TO_JS",
    "cleanup_playwright",
    "scroll_by",
    "scroll_to",
    "wait_network_idle",
]
