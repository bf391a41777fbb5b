import asyncio
import os

from adlib_scraper.capture import Clip, capture_card, capture_cards, compute_clip
from adlib_scraper.models import Box, DetectedCard, MediaType, SessionParams
from adlib_scraper.relevance import NotRelevant

from fakes import FakeClassifier, FakePage

COPY = "Fresh meal kits delivered weekly with free shipping."


def _card(top: float, name: str, left: float = 100) -> DetectedCard:
    return DetectedCard(
        box=Box(top, left, 400, 900),
        advertiser_name=name,
        ad_copy=COPY,
        start_date="Jan 5, 2025",
        cta_text="Shop now",
        landing_url="https://acme.example",
        media_type=MediaType.IMAGE,
    )


def test_compute_clip_caps_located_bounds():
    clip = compute_clip(Clip(x=-5, y=40, width=900, height=950), _card(0, "a"))
    assert clip == Clip(x=0.0, y=40, width=700, height=800, method="card_bounds")


def test_compute_clip_falls_back_to_centered_window():
    clip = compute_clip(None, _card(2000, "a"))
    assert clip.method == "fallback"
    assert clip.x == 0.0  # center 300 minus half width 300
    assert clip.y == 100.0
    assert clip.width == 600.0
    assert clip.height == 700


def test_capture_card_saves_screenshot_and_row(sink, store, config):
    page = FakePage(locate={"x": 50, "y": 100, "width": 480, "height": 620})
    ad = asyncio.run(capture_card(page, _card(1500, "\u200bAcme"), search_id="7", store=store, sink=sink, config=config))
    assert page.scroll_to_calls == [1400]
    assert page.clips == [{"x": 50.0, "y": 100.0, "width": 480.0, "height": 620.0}]
    assert ad.advertiser_name == "Acme"
    assert ad.ad_id == 1
    assert (ad.width, ad.height) == (480, 620)
    assert len(ad.sha256) == 64
    assert os.path.exists(store.path_for(ad.screenshot_path))
    assert sink.ads[0].screenshot_path == ad.screenshot_path


def test_capture_cards_caps_batch_at_ad_count(sink, store, reporter, bus, config):
    cards = [_card(i * 700, f"Advertiser {i:02d}") for i in range(30)]
    params = SessionParams(keywords="meal kit", ad_count=25)
    summary = asyncio.run(
        capture_cards(FakePage(), cards, params, search_id="7", store=store, sink=sink, reporter=reporter, config=config)
    )
    assert len(summary.captured) == 25
    assert [a.advertiser_name for a in sink.ads] == [f"Advertiser {i:02d}" for i in range(25)]
    captured_events = bus.of_type("ad_captured")
    assert len(captured_events) == 25
    assert captured_events[-1].progress == 100.0
    assert captured_events[-1].extra == {"capturedCount": 25, "totalAds": 25}


def test_capture_cards_continues_after_a_failed_card(sink, store, reporter, bus, config):
    cards = [_card(0, "A"), _card(700, "B"), _card(1400, "C")]
    page = FakePage(fail_screenshots={1})
    summary = asyncio.run(
        capture_cards(
            page, cards, SessionParams(keywords="x", ad_count=3),
            search_id="7", store=store, sink=sink, reporter=reporter, config=config,
        )
    )
    assert [a.advertiser_name for a in summary.captured] == ["A", "C"]
    assert summary.failed == 1
    warnings = bus.of_type("warning")
    assert [w.message for w in warnings] == ["Skipped ad 2: element detached"]


def test_capture_cards_skips_irrelevant_and_keeps_failed_checks(sink, store, reporter, bus, config):
    cards = [_card(0, "Keep"), _card(700, "Drop"), _card(1400, "Broken")]
    classifier = FakeClassifier({"Drop": NotRelevant("car insurance"), "Broken": TimeoutError("timed out")})
    params = SessionParams(keywords="meal kit", ad_count=3, filter_relevant=True)
    summary = asyncio.run(
        capture_cards(
            FakePage(), cards, params,
            search_id="7", store=store, sink=sink, reporter=reporter, config=config, classifier=classifier,
        )
    )
    assert [a.advertiser_name for a in summary.captured] == ["Keep", "Broken"]
    assert summary.skipped == 1
    assert [e.message for e in bus.of_type("skipped")] == ["Skipped (not relevant): Drop - car insurance"]
    assert len(bus.of_type("checking")) == 3
    assert [c[2] for c in classifier.calls] == ["meal kit"] * 3


def test_capture_cards_without_filter_never_checks(sink, store, reporter, bus, config):
    classifier = FakeClassifier({"A": NotRelevant("no")})
    summary = asyncio.run(
        capture_cards(
            FakePage(), [_card(0, "A")], SessionParams(keywords="x", ad_count=1),
            search_id="7", store=store, sink=sink, reporter=reporter, config=config, classifier=classifier,
        )
    )
    assert len(summary.captured) == 1
    assert classifier.calls == []
    assert bus.of_type("checking") == []
