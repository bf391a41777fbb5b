"""Per-card screenshot capture and persistence."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from typing import Any, Optional

from playwright.async_api import Page

from .config import ScraperConfig
from .events import ProgressReporter
from .extract import clean_advertiser_name
from .hashing import fingerprint_png
from .logging import adlog, jlog
from .metadata import build_screenshot_metadata
from .models import AdSink, CapturedAd, DetectedCard, SessionParams
from .playwright import scroll_to
from .relevance import CheckFailed, RelevanceClassifier, check_relevance, keeps
from .storage import ScreenshotStore
from .versioning import get_scraper_version
from .vocab import CARD_METADATA_MARKERS, SPONSORED_MARKER, VOCAB_VERSION

# Scroll the card this far below the viewport top before capturing it.
VIEWPORT_TOP_OFFSET = 100
LOCATE_TOP_TOLERANCE = 200
TIGHT_MIN_WIDTH, TIGHT_MAX_WIDTH = 300, 700
TIGHT_MIN_HEIGHT, TIGHT_MAX_HEIGHT = 200, 800
CLIP_MAX_WIDTH, CLIP_MAX_HEIGHT = 700, 800
FALLBACK_HALF_WIDTH = 300
FALLBACK_WIDTH = 600
FALLBACK_MAX_HEIGHT = 700

LOCATE_CARD_JS = """
({ cardTop, tolerance, sponsored, markers, minW, maxW, minH, maxH }) => {
  for (const el of document.querySelectorAll('div')) {
    const r = el.getBoundingClientRect();
    if (Math.abs(r.top + window.scrollY - cardTop) > tolerance) continue;
    const text = el.innerText || '';
    if (!text.includes(sponsored) || !markers.some(m => text.includes(m))) continue;
    if (r.width < minW || r.width > maxW || r.height < minH || r.height > maxH) continue;
    return { x: Math.max(0, r.left), y: Math.max(0, r.top), width: r.width, height: r.height };
  }
  return null;
}
"""


@dataclass(frozen=True)
class Clip:
    """Viewport-relative screenshot region."""

    x: float
    y: float
    width: float
    height: float
    method: str = "card_bounds"

    def as_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass
class CaptureSummary:
    captured: list[CapturedAd] = field(default_factory=list)
    skipped: int = 0
    failed: int = 0


async def locate_card_bounds(page: Page, card_top: float) -> Optional[Clip]:
    """Find the tight card element near ``card_top`` in the live page."""

    raw: Optional[dict[str, Any]] = await page.evaluate(
        LOCATE_CARD_JS,
        {
            "cardTop": card_top,
            "tolerance": LOCATE_TOP_TOLERANCE,
            "sponsored": SPONSORED_MARKER,
            "markers": list(CARD_METADATA_MARKERS),
            "minW": TIGHT_MIN_WIDTH,
            "maxW": TIGHT_MAX_WIDTH,
            "minH": TIGHT_MIN_HEIGHT,
            "maxH": TIGHT_MAX_HEIGHT,
        },
    )
    if not raw:
        return None
    return Clip(
        x=float(raw["x"]),
        y=float(raw["y"]),
        width=float(raw["width"]),
        height=float(raw["height"]),
    )


def compute_clip(bounds: Optional[Clip], card: DetectedCard) -> Clip:
    if bounds is not None:
        return Clip(
            x=max(0.0, bounds.x),
            y=max(0.0, bounds.y),
            width=min(bounds.width, CLIP_MAX_WIDTH),
            height=min(bounds.height, CLIP_MAX_HEIGHT),
            method="card_bounds",
        )
    # The page was scrolled so the card starts VIEWPORT_TOP_OFFSET below the top.
    return Clip(
        x=max(0.0, card.box.center_x - FALLBACK_HALF_WIDTH),
        y=float(VIEWPORT_TOP_OFFSET),
        width=float(FALLBACK_WIDTH),
        height=min(card.box.height, FALLBACK_MAX_HEIGHT),
        method="fallback",
    )


async def capture_card(
    page: Page,
    card: DetectedCard,
    *,
    search_id: str,
    store: ScreenshotStore,
    sink: AdSink,
    config: ScraperConfig,
) -> CapturedAd:
    await scroll_to(page, card.top - VIEWPORT_TOP_OFFSET)
    await config.card_settle.sleep()

    clip = compute_clip(await locate_card_bounds(page, card.top), card)
    png = await page.screenshot(type="png", clip=clip.as_dict())
    fp = fingerprint_png(png)
    advertiser = clean_advertiser_name(card.advertiser_name)

    metadata = build_screenshot_metadata(
        search_id=search_id,
        advertiser_name=advertiser,
        media_type=card.media_type.value,
        clip_method=clip.method,
        width=fp.width,
        height=fp.height,
        sha256=fp.sha256,
        phash=fp.phash,
        scraper_version=get_scraper_version(),
        vocab_version=VOCAB_VERSION,
        start_date=card.start_date,
        landing_url=card.landing_url,
    )
    screenshot_path = store.save(png, metadata=metadata)

    ad = CapturedAd(
        search_id=search_id,
        advertiser_name=advertiser,
        ad_copy=card.ad_copy,
        start_date=card.start_date,
        cta_text=card.cta_text,
        landing_url=card.landing_url,
        media_type=card.media_type,
        screenshot_path=screenshot_path,
        width=fp.width,
        height=fp.height,
        sha256=fp.sha256,
        phash=fp.phash,
    )
    ad_id = sink.insert_ad(search_id, ad)
    if ad_id is not None:
        ad = replace(ad, ad_id=ad_id)
    adlog(
        "ad_saved",
        search_id=search_id,
        ad_id=ad_id,
        advertiser=advertiser,
        clip_method=clip.method,
        screenshot=screenshot_path,
        width=fp.width,
        height=fp.height,
    )
    return ad


async def capture_cards(
    page: Page,
    cards: Sequence[DetectedCard],
    params: SessionParams,
    *,
    search_id: str,
    store: ScreenshotStore,
    sink: AdSink,
    reporter: ProgressReporter,
    config: ScraperConfig,
    classifier: Optional[RelevanceClassifier] = None,
) -> CaptureSummary:
    """Capture at most ``params.ad_count`` cards, one at a time, in reading order.

    A failure on one card is reported as a warning and never aborts the batch.
    """

    batch = list(cards[: params.ad_count])
    total = len(batch)
    summary = CaptureSummary()

    for i, card in enumerate(batch):
        try:
            if params.filter_relevant:
                reporter.emit(
                    "checking",
                    f"Checking relevance: {card.advertiser_name}",
                    progress=i / total * 100,
                )
                verdict = await check_relevance(classifier, card.ad_copy, card.advertiser_name, params.keywords)
                if not keeps(verdict):
                    summary.skipped += 1
                    reporter.emit(
                        "skipped",
                        f"Skipped (not relevant): {card.advertiser_name} - {verdict.reason}",
                        progress=i / total * 100,
                    )
                    continue
                if isinstance(verdict, CheckFailed):
                    jlog("info", event="relevance_fail_open", search_id=search_id, index=i, reason=verdict.reason)

            reporter.emit(
                "capturing",
                f"Capturing ad {i + 1}/{total}: {card.advertiser_name}",
                progress=i / total * 100,
            )
            ad = await capture_card(page, card, search_id=search_id, store=store, sink=sink, config=config)
            summary.captured.append(ad)
            reporter.emit(
                "ad_captured",
                f"Captured: {ad.advertiser_name}",
                progress=(i + 1) / total * 100,
                ad=ad.to_event_payload(),
                capturedCount=len(summary.captured),
                totalAds=total,
            )
            await config.capture_pacing.sleep()
        except Exception as exc:
            summary.failed += 1
            jlog("error", event="ad_capture_error", search_id=search_id, index=i + 1, error=str(exc))
            reporter.emit("warning", f"Skipped ad {i + 1}: {exc}")

    return summary


__all__ = [
    "CaptureSummary",
    "Clip",
    "LOCATE_CARD_JS",
    "capture_card",
    "capture_cards",
    "compute_clip",
    "locate_card_bounds",
]
