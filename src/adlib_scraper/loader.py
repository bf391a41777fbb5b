"""Incremental loading of the infinite-scroll ad feed."""

from __future__ import annotations

import math
from dataclasses import dataclass

from playwright.async_api import Page

from .config import ScraperConfig
from .events import ProgressReporter
from .playwright import scroll_by, scroll_to
from .vocab import MARKER_PHRASE, MAX_MARKER_TEXT

# Each scroll reveals roughly this many cards.
ADS_PER_SCROLL = 3
EXTRA_SCROLLS = 5
MAX_SCROLLS = 40
TARGET_OVERSHOOT = 1.2
STAGNANT_SCROLL_LIMIT = 5
# Several nested elements carry the marker text for a single card.
MARKER_ELEMENTS_PER_AD = 3
MAX_SCROLL_PROGRESS = 95.0

PROXY_COUNT_JS = """
({ marker, maxText }) => {
  let count = 0;
  for (const el of document.querySelectorAll('*')) {
    const text = el.innerText;
    if (text && text.includes(marker) && text.length < maxText) count++;
  }
  return count;
}
"""


@dataclass(frozen=True)
class LoadResult:
    scrolls: int
    proxy_count: int
    stop_reason: str


def scroll_budget(ad_count: int) -> int:
    return min(math.ceil(ad_count / ADS_PER_SCROLL) + EXTRA_SCROLLS, MAX_SCROLLS)


async def proxy_ad_count(page: Page) -> int:
    """Rough number of loaded ads; only used to decide when to stop scrolling."""

    marker_elements = await page.evaluate(PROXY_COUNT_JS, {"marker": MARKER_PHRASE, "maxText": MAX_MARKER_TEXT})
    return int(marker_elements or 0) // MARKER_ELEMENTS_PER_AD


async def load_ads(page: Page, ad_count: int, reporter: ProgressReporter, config: ScraperConfig) -> LoadResult:
    """Scroll until the proxy count covers ``ad_count`` or the feed stops growing.

    Leaves the page scrolled back to the top so detection measures absolute
    coordinates from a known origin.
    """

    budget = scroll_budget(ad_count)
    target = ad_count * TARGET_OVERSHOOT
    loaded = 0
    stagnant = 0
    scrolls = 0
    stop_reason = "budget"

    while scrolls < budget:
        await scroll_by(page, config.scroll_step_px)
        await config.scroll_pacing.sleep()
        scrolls += 1

        current = await proxy_ad_count(page)
        if current > loaded:
            loaded = current
            stagnant = 0
        else:
            stagnant += 1

        reporter.emit(
            "scroll",
            f"Loading ads... found ~{loaded} (target: {ad_count})",
            progress=min(loaded / ad_count * 100, MAX_SCROLL_PROGRESS),
        )

        if loaded >= target:
            stop_reason = "target"
            break
        if stagnant >= STAGNANT_SCROLL_LIMIT:
            stop_reason = "stagnant"
            break

    await scroll_to(page, 0)
    await config.top_settle.sleep()
    return LoadResult(scrolls=scrolls, proxy_count=loaded, stop_reason=stop_reason)


__all__ = ["LoadResult", "PROXY_COUNT_JS", "load_ads", "proxy_ad_count", "scroll_budget"]
