"""scrape_meta_ads.py

Ad-library search scraper: one search session end to end.

For a keyword/location request this module:
- Opens the ad library's keyword search in Chromium (Playwright).
- Scrolls the infinite feed until enough ad cards are loaded (see ``loader``).
- Detects ad cards heuristically from the rendered DOM and deduplicates them
  (see ``detect`` and ``extract``).
- Optionally gates each card through a keyword relevance classifier.
- Screenshots every accepted card, stores the PNG under an opaque name and
  inserts one ad row per card (see ``capture``).
- Publishes progress events for the search on the in-process event bus and
  mirrors them to structured JSON logs.

A session is strictly sequential: the single page/viewport is owned by the
pipeline from navigation until the browser is closed.

Usage (examples)
----------------
# Capture 25 ads for a keyword in the US
python scripts/scrape_meta_ads.py --keywords "meal kit" --location "United States" \
  --ad-count 25 --db-host 127.0.0.1

# Dry run: no DB writes, screenshots to a scratch directory, visible browser
python scripts/scrape_meta_ads.py --keywords "running shoes" --ad-count 5 \
  --dry-run --headed --screenshots-dir /tmp/shots
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass, replace
from typing import Optional, Sequence

from playwright.async_api import Page, async_playwright

from ..capture import capture_cards
from ..config import Pacing, ScraperConfig
from ..db import PostgresAdSink, create_search, sql_connect
from ..debug import save_debug_html, save_debug_screenshot
from ..detect import find_ad_cards
from ..events import EventBus, ProgressReporter, event_bus
from ..loader import load_ads
from ..logging import jlog, logging_context
from ..models import AdSink, SearchOutcome, SessionParams
from ..playwright import CHROMIUM_LAUNCH_ARGS, cleanup_playwright, wait_network_idle
from ..relevance import RelevanceClassifier, classifier_from_env
from ..storage import ScreenshotStore
from ..urls import build_search_url
from ..versioning import SCRIPT_NAME, SCRIPT_VERSION
from ..versioning import get_scraper_version as resolve_version

# ============================
# Constants & configuration
# ============================
DEFAULT_AD_COUNT = 25
DEFAULT_LOCATION = "US"
DEFAULT_SQL_CONN = "your-project:your-region:your-instance"
TOTAL_STEPS = 5


def get_scraper_version() -> str:
    return resolve_version(SCRIPT_NAME, SCRIPT_VERSION)


# ============================
# Argument parsing & validation
# ============================


@dataclass(frozen=True)
class CliArgs:
    keywords: str
    location: str
    ad_count: int
    filter_relevant: bool
    industry: str | None
    search_id: str | None
    screenshots_dir: str
    debug_dir: str
    gcs_bucket: str | None
    sql_conn: str
    db_host: str | None
    db_port: int | None
    headless: bool
    nav_timeout_ms: int
    idle_timeout_ms: int
    scroll_delay_ms: tuple[int, int]
    capture_delay_ms: tuple[int, int]
    trace: bool
    debug_html: bool
    dry_run: bool


def validate_args(args: argparse.Namespace) -> None:
    if not args.keywords or not args.keywords.strip():
        raise ValueError("--keywords must not be empty")
    if args.ad_count < 1:
        raise ValueError(f"--ad-count must be >= 1 (got {args.ad_count})")
    for flag in ("scroll_delay_ms", "capture_delay_ms"):
        lo, hi = getattr(args, flag)
        if lo < 0 or hi < lo:
            raise ValueError(f"--{flag.replace('_', '-')} expects MIN MAX with 0 <= MIN <= MAX")
    if args.ad_count > 100:
        jlog(
            "warning",
            event="large_ad_count",
            message="Scrolling is capped at 40 steps; very large --ad-count values are rarely reached.",
            ad_count=args.ad_count,
        )


def parse_args(argv: Sequence[str] | None = None) -> CliArgs:
    defaults = ScraperConfig()
    p = argparse.ArgumentParser(description="Capture ads from the ad library for a keyword search")
    p.add_argument("--keywords", required=True)
    p.add_argument("--location", default=DEFAULT_LOCATION)
    p.add_argument("--ad-count", type=int, default=DEFAULT_AD_COUNT)
    p.add_argument(
        "--filter-relevant",
        action="store_true",
        help="Ask the relevance classifier (OPENAI_API_KEY) before capturing each ad.",
    )
    p.add_argument("--industry", help="Free-form label stored on the search row")
    p.add_argument("--search-id", help="Attach to an existing search row instead of creating one")
    p.add_argument("--screenshots-dir", default=defaults.screenshots_dir)
    p.add_argument("--debug-dir", default=defaults.debug_dir)
    p.add_argument("--gcs-bucket", help="Mirror screenshots to gs://<bucket>/screenshots/")
    p.add_argument("--sql-conn", default=DEFAULT_SQL_CONN)
    p.add_argument("--db-host")
    p.add_argument("--db-port", type=int)
    p.add_argument("--headed", action="store_true", help="Show the browser window")
    p.add_argument("--nav-timeout-ms", type=int, default=defaults.nav_timeout_ms)
    p.add_argument("--idle-timeout-ms", type=int, default=defaults.idle_timeout_ms)
    p.add_argument(
        "--scroll-delay-ms",
        type=int,
        nargs=2,
        metavar=("MIN", "MAX"),
        default=(defaults.scroll_pacing.min_ms, defaults.scroll_pacing.max_ms),
    )
    p.add_argument(
        "--capture-delay-ms",
        type=int,
        nargs=2,
        metavar=("MIN", "MAX"),
        default=(defaults.capture_pacing.min_ms, defaults.capture_pacing.max_ms),
    )
    p.add_argument("--trace", action="store_true", help="Save a Playwright trace to the debug dir.")
    p.add_argument("--debug-html", action="store_true", help="Dump the loaded feed HTML to the debug dir.")
    p.add_argument("--dry-run", action="store_true", help="Do not write to the DB or bucket")

    ns = p.parse_args(argv)
    validate_args(ns)

    return CliArgs(
        keywords=ns.keywords.strip(),
        location=ns.location,
        ad_count=ns.ad_count,
        filter_relevant=ns.filter_relevant,
        industry=ns.industry,
        search_id=ns.search_id,
        screenshots_dir=ns.screenshots_dir,
        debug_dir=ns.debug_dir,
        gcs_bucket=ns.gcs_bucket,
        sql_conn=ns.sql_conn,
        db_host=ns.db_host,
        db_port=ns.db_port,
        headless=not ns.headed,
        nav_timeout_ms=ns.nav_timeout_ms,
        idle_timeout_ms=ns.idle_timeout_ms,
        scroll_delay_ms=(ns.scroll_delay_ms[0], ns.scroll_delay_ms[1]),
        capture_delay_ms=(ns.capture_delay_ms[0], ns.capture_delay_ms[1]),
        trace=ns.trace,
        debug_html=ns.debug_html,
        dry_run=ns.dry_run,
    )


def config_from_args(args: CliArgs) -> ScraperConfig:
    return replace(
        ScraperConfig(),
        headless=args.headless,
        nav_timeout_ms=args.nav_timeout_ms,
        idle_timeout_ms=args.idle_timeout_ms,
        screenshots_dir=args.screenshots_dir,
        debug_dir=args.debug_dir,
        scroll_pacing=Pacing(*args.scroll_delay_ms),
        capture_pacing=Pacing(*args.capture_delay_ms),
    )


# ============================
# Session pipeline
# ============================


async def scrape_page(
    page: Page,
    search_id: str,
    params: SessionParams,
    *,
    sink: AdSink,
    store: ScreenshotStore,
    reporter: ProgressReporter,
    config: ScraperConfig,
    classifier: Optional[RelevanceClassifier] = None,
    debug_html: bool = False,
) -> SearchOutcome:
    """Run load → detect → capture on an open page. Returns the search outcome.

    Navigation failures are fatal to the session; a network-idle timeout is not.
    """

    search_id = str(search_id)
    url = build_search_url(params.keywords, params.location)
    try:
        reporter.emit("status", "Navigating to Meta Ad Library...", step=2, totalSteps=TOTAL_STEPS)
        jlog("info", event="navigate", search_id=search_id, url=url)
        await page.goto(url, wait_until="domcontentloaded", timeout=config.nav_timeout_ms)
        await config.post_nav_pacing.sleep()

        reporter.emit("status", "Waiting for ads to load...", step=3, totalSteps=TOTAL_STEPS)
        await wait_network_idle(page, config.idle_timeout_ms)
        await config.post_idle_pacing.sleep()

        reporter.emit(
            "status",
            f"Scrolling to load ads (targeting {params.ad_count})...",
            step=4,
            totalSteps=TOTAL_STEPS,
        )
        load = await load_ads(page, params.ad_count, reporter, config)
        jlog(
            "info",
            event="feed_loaded",
            search_id=search_id,
            scrolls=load.scrolls,
            proxy_count=load.proxy_count,
            stop_reason=load.stop_reason,
        )

        reporter.emit("status", "Finding ad cards...", step=5, totalSteps=TOTAL_STEPS)
        if debug_html:
            await save_debug_html(page, config.debug_dir, search_id)
        detection = await find_ad_cards(page)
        cards = detection.cards[: params.ad_count]

        if not cards:
            await save_debug_screenshot(page, config.debug_dir, f"debug-{search_id}.png")
            reporter.emit("warning", "No ads found. Debug screenshot saved.")
            sink.update_search_status(search_id, "completed", 0)
            reporter.emit("complete", "Completed! Captured 0 ads.", totalAds=0, skippedCount=0)
            return SearchOutcome(search_id=search_id, status="completed")

        if len(cards) < params.ad_count:
            reporter.emit(
                "warning",
                f"Only found {len(cards)} ads (requested {params.ad_count}). Proceeding with available ads.",
            )

        reporter.emit("status", f"Found {len(cards)} ads. Capturing screenshots...", totalAds=len(cards))
        summary = await capture_cards(
            page,
            cards,
            params,
            search_id=search_id,
            store=store,
            sink=sink,
            reporter=reporter,
            config=config,
            classifier=classifier,
        )

        captured = len(summary.captured)
        sink.update_search_status(search_id, "completed", captured)
        skip_msg = f" ({summary.skipped} filtered as irrelevant)" if summary.skipped else ""
        reporter.emit(
            "complete",
            f"Completed! Captured {captured} ads.{skip_msg}",
            totalAds=captured,
            skippedCount=summary.skipped,
        )
        return SearchOutcome(
            search_id=search_id,
            status="completed",
            captured=summary.captured,
            skipped=summary.skipped,
            failed=summary.failed,
        )

    except Exception as exc:
        message = str(exc) or type(exc).__name__
        jlog("error", event="search_failed", search_id=search_id, error=message)
        try:
            sink.update_search_status(search_id, "error")
        except Exception as db_exc:
            jlog("error", event="search_status_error", search_id=search_id, error=str(db_exc))
        reporter.emit("error", message)
        await save_debug_screenshot(page, config.debug_dir, f"error-{search_id}.png")
        return SearchOutcome(search_id=search_id, status="error", error=message)


async def run_search(
    search_id: str,
    params: SessionParams,
    *,
    sink: AdSink,
    store: ScreenshotStore,
    config: ScraperConfig | None = None,
    classifier: Optional[RelevanceClassifier] = None,
    bus: EventBus = event_bus,
    trace: bool = False,
    debug_html: bool = False,
) -> SearchOutcome:
    """Launch a browser session for one search and run it to completion."""

    config = config or ScraperConfig()
    search_id = str(search_id)
    reporter = ProgressReporter(bus, search_id)

    with logging_context(search_id=search_id, keywords=params.keywords):
        reporter.emit("status", "Launching browser...", step=1, totalSteps=TOTAL_STEPS)
        async with async_playwright() as pw:
            browser = None
            context = None
            try:
                browser = await pw.chromium.launch(
                    headless=config.headless,
                    slow_mo=config.slow_mo_ms or None,
                    args=CHROMIUM_LAUNCH_ARGS,
                )
                context = await browser.new_context(
                    viewport={"width": config.viewport_width, "height": config.viewport_height},
                    user_agent=config.user_agent,
                )
                if trace:
                    await context.tracing.start(screenshots=True, snapshots=True, sources=True)
                page = await context.new_page()
                return await scrape_page(
                    page,
                    search_id,
                    params,
                    sink=sink,
                    store=store,
                    reporter=reporter,
                    config=config,
                    classifier=classifier,
                    debug_html=debug_html,
                )
            except Exception as exc:  # browser launch / context failures
                message = str(exc) or type(exc).__name__
                jlog("error", event="browser_error", search_id=search_id, error=message)
                try:
                    sink.update_search_status(search_id, "error")
                except Exception as db_exc:
                    jlog("error", event="search_status_error", search_id=search_id, error=str(db_exc))
                reporter.emit("error", message)
                return SearchOutcome(search_id=search_id, status="error", error=message)
            finally:
                await cleanup_playwright(context, browser, trace, config.debug_dir, search_id)


# ============================
# Entrypoint
# ============================


async def run(args: CliArgs) -> SearchOutcome:
    """Execute one search for the supplied CLI arguments."""

    params = SessionParams(
        keywords=args.keywords,
        location=args.location,
        ad_count=args.ad_count,
        filter_relevant=args.filter_relevant,
        industry=args.industry,
    )
    config = config_from_args(args)

    con = None if args.dry_run else sql_connect(args.sql_conn, args.db_host, args.db_port)
    try:
        sink = PostgresAdSink(con, dry_run=args.dry_run)
        search_id = args.search_id or str(create_search(con, params, dry_run=args.dry_run))
        store = ScreenshotStore(args.screenshots_dir, bucket=args.gcs_bucket, dry_run=args.dry_run)
        classifier = classifier_from_env() if args.filter_relevant else None
        if args.filter_relevant and classifier is None:
            jlog("warning", event="relevance_unconfigured", message="OPENAI_API_KEY not set; every ad will be kept")

        jlog(
            "info",
            event="search_start",
            search_id=search_id,
            keywords=params.keywords,
            location=params.location,
            ad_count=params.ad_count,
            filter_relevant=params.filter_relevant,
            scraper_version=get_scraper_version(),
        )
        outcome = await run_search(
            search_id,
            params,
            sink=sink,
            store=store,
            config=config,
            classifier=classifier,
            trace=args.trace,
            debug_html=args.debug_html,
        )
        jlog(
            "info",
            event="search_done",
            search_id=search_id,
            status=outcome.status,
            total_ads=outcome.total_ads,
            skipped=outcome.skipped,
            failed=outcome.failed,
        )
        return outcome
    finally:
        if con is not None:
            con.close()
