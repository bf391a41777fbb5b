import asyncio
import json
import logging
import os

from adlib_scraper.landing import key_messages, landing_from_extract, snapshot_landing
from adlib_scraper.logging import LOGGER_NAME

from fakes import FakePage

LONG = "We build running shoes for people who run every single day."


def test_key_messages_keeps_first_three_mid_length_paragraphs():
    paragraphs = ["short", LONG, "x" * 600, LONG + " 2", "", LONG + " 3", LONG + " 4"]
    assert key_messages(paragraphs) == [LONG, LONG + " 2", LONG + " 3"]


def test_landing_from_extract_prefers_final_url():
    page = landing_from_extract("https://a.example", {"finalUrl": "https://b.example/", "title": "B"})
    assert page.url == "https://b.example/"
    assert page.title == "B"
    assert landing_from_extract("https://a.example", {}).url == "https://a.example"


def test_snapshot_landing_rejects_non_http_urls(store):
    page = FakePage()
    result = asyncio.run(snapshot_landing(page, "ftp://files.example", store=store))
    assert result.error == "Invalid URL"
    assert page.gotos == []


def test_snapshot_landing_extracts_and_screenshots(store):
    page = FakePage(
        landing={
            "title": "Run Co",
            "description": "Shoes for runners",
            "headline": "Run further",
            "primaryCta": "Shop shoes",
            "paragraphs": [LONG],
            "finalUrl": "https://run.example/home",
        }
    )
    result = asyncio.run(snapshot_landing(page, "https://run.example", store=store, settle_ms=0))
    assert result.ok
    assert result.url == "https://run.example/home"
    assert result.primary_cta == "Shop shoes"
    assert result.key_messaging == [LONG]
    assert result.screenshot_path.startswith("lp-")
    assert page.clips == [{"x": 0, "y": 0, "width": 1280, "height": 800}]
    assert os.path.exists(store.path_for(result.screenshot_path))


def test_snapshot_landing_reports_navigation_errors(store):
    page = FakePage(goto_error=TimeoutError("Timeout 30000ms exceeded"))
    result = asyncio.run(snapshot_landing(page, "https://slow.example", store=store, settle_ms=0))
    assert not result.ok
    assert result.error == "Timeout 30000ms exceeded"
    assert result.url == "https://slow.example"


def test_snapshot_landing_logs_the_landing_domain(store, caplog):
    caplog.set_level(logging.INFO, logger=LOGGER_NAME)
    page = FakePage(landing={"title": "Run Co", "finalUrl": "https://www.run.example/home?ref=ad"})
    result = asyncio.run(snapshot_landing(page, "https://run.example", store=store, settle_ms=0))
    assert result.ok
    records = [json.loads(r.getMessage()) for r in caplog.records if r.name == LOGGER_NAME]
    scraped = [r for r in records if r["event"] == "landing_scraped"]
    assert len(scraped) == 1
    assert scraped[0]["domain"] == "run.example"
    assert scraped[0]["url"] == "https://www.run.example/home?ref=ad"
