"""Landing page snapshots for captured ads.

Loads an ad's destination URL, records the messaging a reviewer would compare
against the ad (title, meta description, headline, primary CTA, lead
paragraphs) and keeps an above-the-fold screenshot.

Usage
-----
python scripts/scrape_landing_page.py --url https://example.com/offer --dry-run
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from playwright.async_api import Page, async_playwright

from .config import ScraperConfig
from .db import save_landing_page, sql_connect
from .logging import jlog
from .playwright import CHROMIUM_LAUNCH_ARGS, cleanup_playwright, wait_network_idle
from .storage import ScreenshotStore, new_screenshot_name
from .urls import landing_domain

LANDING_NAV_TIMEOUT_MS = 30000
LANDING_IDLE_TIMEOUT_MS = 10000
LANDING_SETTLE_MS = 2000
LANDING_VIEWPORT = {"width": 1280, "height": 800}
SCREENSHOT_PREFIX = "lp-"

EXTRACT_LANDING_JS = """
() => {
  const text = el => (el && el.innerText ? el.innerText.trim() : '');
  const ctaSelectors = [
    'button[type="submit"]', 'a.btn', 'a.button', 'button.btn', 'button.button',
    '[class*="cta"]', '[class*="btn-primary"]', 'a[href*="signup"]',
    'a[href*="register"]', 'a[href*="demo"]', 'a[href*="trial"]', 'a[href*="get-started"]'
  ];
  let primaryCta = '';
  for (const sel of ctaSelectors) {
    const el = document.querySelector(sel);
    if (el && el.innerText && el.innerText.length < 50) { primaryCta = text(el); break; }
  }
  if (!primaryCta) {
    for (const btn of document.querySelectorAll('button, a[role="button"]')) {
      const t = text(btn);
      if (t.length > 2 && t.length < 40) { primaryCta = t; break; }
    }
  }
  const meta = document.querySelector('meta[name="description"]');
  return {
    title: document.title || '',
    description: (meta && meta.content) || '',
    headline: text(document.querySelector('h1')),
    primaryCta,
    paragraphs: Array.from(document.querySelectorAll('p')).map(text),
    finalUrl: window.location.href,
  };
}
"""

KEY_MESSAGE_MIN_CHARS = 30
KEY_MESSAGE_MAX_CHARS = 500
KEY_MESSAGE_LIMIT = 3


@dataclass
class LandingPage:
    url: str
    title: str = ""
    description: str = ""
    headline: str = ""
    primary_cta: str = ""
    key_messaging: list[str] = field(default_factory=list)
    screenshot_path: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def key_messages(paragraphs: Sequence[str]) -> list[str]:
    """First few paragraphs long enough to carry a message."""

    picked = [
        p
        for p in (s.strip() for s in paragraphs if s)
        if KEY_MESSAGE_MIN_CHARS < len(p) < KEY_MESSAGE_MAX_CHARS
    ]
    return picked[:KEY_MESSAGE_LIMIT]


def landing_from_extract(url: str, raw: dict[str, Any]) -> LandingPage:
    return LandingPage(
        url=raw.get("finalUrl") or url,
        title=raw.get("title") or "",
        description=raw.get("description") or "",
        headline=raw.get("headline") or "",
        primary_cta=raw.get("primaryCta") or "",
        key_messaging=key_messages(raw.get("paragraphs") or []),
    )


async def snapshot_landing(page: Page, url: str, *, store: ScreenshotStore, settle_ms: int = LANDING_SETTLE_MS) -> LandingPage:
    """Load ``url`` on an open page and capture its above-the-fold content."""

    if not url or not url.startswith("http"):
        return LandingPage(url=url or "", error="Invalid URL")
    try:
        await page.goto(url, wait_until="domcontentloaded", timeout=LANDING_NAV_TIMEOUT_MS)
        await wait_network_idle(page, LANDING_IDLE_TIMEOUT_MS)
        if settle_ms:
            await page.wait_for_timeout(settle_ms)

        landing = landing_from_extract(url, await page.evaluate(EXTRACT_LANDING_JS))
        png = await page.screenshot(type="png", clip={"x": 0, "y": 0, **LANDING_VIEWPORT})
        landing.screenshot_path = store.save(png, name=new_screenshot_name(SCREENSHOT_PREFIX))
        jlog(
            "info",
            event="landing_scraped",
            url=landing.url,
            domain=landing_domain(landing.url),
            screenshot=landing.screenshot_path,
        )
        return landing
    except Exception as exc:
        jlog("error", event="landing_error", url=url, error=str(exc))
        return LandingPage(url=url, error=str(exc) or type(exc).__name__)


async def scrape_landing_page(
    url: str,
    *,
    store: ScreenshotStore,
    config: ScraperConfig | None = None,
) -> LandingPage:
    """Launch a browser, snapshot one landing page and close the browser."""

    config = config or ScraperConfig()
    if not url or not url.startswith("http"):
        return LandingPage(url=url or "", error="Invalid URL")

    async with async_playwright() as pw:
        browser = None
        context = None
        try:
            browser = await pw.chromium.launch(headless=config.headless, args=CHROMIUM_LAUNCH_ARGS)
            context = await browser.new_context(viewport=LANDING_VIEWPORT, user_agent=config.user_agent)
            page = await context.new_page()
            return await snapshot_landing(page, url, store=store)
        except Exception as exc:
            jlog("error", event="landing_browser_error", url=url, error=str(exc))
            return LandingPage(url=url, error=str(exc) or type(exc).__name__)
        finally:
            await cleanup_playwright(context, browser, False, config.debug_dir, "landing")


# ============================
# CLI
# ============================


@dataclass(frozen=True)
class LandingArgs:
    url: str
    screenshots_dir: str
    gcs_bucket: str | None
    sql_conn: str | None
    db_host: str | None
    db_port: int | None
    dry_run: bool


def parse_args(argv: Sequence[str] | None = None) -> LandingArgs:
    p = argparse.ArgumentParser(description="Snapshot an ad landing page")
    p.add_argument("--url", required=True)
    p.add_argument("--screenshots-dir", default=ScraperConfig().screenshots_dir)
    p.add_argument("--gcs-bucket")
    p.add_argument("--sql-conn")
    p.add_argument("--db-host")
    p.add_argument("--db-port", type=int)
    p.add_argument("--dry-run", action="store_true", help="Do not write to the DB or bucket")
    ns = p.parse_args(argv)
    return LandingArgs(
        url=ns.url,
        screenshots_dir=ns.screenshots_dir,
        gcs_bucket=ns.gcs_bucket,
        sql_conn=ns.sql_conn,
        db_host=ns.db_host,
        db_port=ns.db_port,
        dry_run=ns.dry_run,
    )


async def run(args: LandingArgs) -> LandingPage:
    store = ScreenshotStore(args.screenshots_dir, bucket=args.gcs_bucket, dry_run=args.dry_run)
    landing = await scrape_landing_page(args.url, store=store)
    if not landing.ok:
        return landing
    if args.dry_run:
        save_landing_page(None, landing, dry_run=True)
        return landing
    con = sql_connect(args.sql_conn, args.db_host, args.db_port)
    try:
        save_landing_page(con, landing)
    finally:
        con.close()
    return landing


__all__ = [
    "EXTRACT_LANDING_JS",
    "LandingArgs",
    "LandingPage",
    "key_messages",
    "landing_from_extract",
    "parse_args",
    "run",
    "scrape_landing_page",
    "snapshot_landing",
]
