import pytest

from adlib_scraper.models import Box, CapturedAd, DetectedCard, MediaType, SessionParams


def test_session_params_validation():
    with pytest.raises(ValueError):
        SessionParams(keywords="  ")
    with pytest.raises(ValueError):
        SessionParams(keywords="shoes", ad_count=0)
    params = SessionParams(keywords="shoes")
    assert params.location == "US"
    assert params.ad_count == 25
    assert params.filter_relevant is False


def test_detected_card_build_clamps_fields():
    card = DetectedCard.build(
        Box(10, 20, 500, 600),
        advertiser_name="a" * 150,
        ad_copy="b" * 900,
        start_date="",
        cta_text="c" * 60,
        landing_url="https://x.example/" + "d" * 600,
        media_type=MediaType.VIDEO,
    )
    assert len(card.advertiser_name) == 100
    assert len(card.ad_copy) == 800
    assert len(card.cta_text) == 50
    assert len(card.landing_url) == 500
    assert DetectedCard.build(
        Box(0, 0, 1, 1),
        advertiser_name="",
        ad_copy="",
        start_date="",
        cta_text="",
        landing_url="",
        media_type=MediaType.IMAGE,
    ).advertiser_name == "Unknown"


def test_captured_ad_event_payload_uses_camel_case():
    ad = CapturedAd(
        search_id="3",
        advertiser_name="Acme",
        ad_copy="copy",
        start_date="Jan 5, 2025",
        cta_text="Shop now",
        landing_url="https://acme.example",
        media_type=MediaType.CAROUSEL,
        screenshot_path="abc.png",
        ad_id=9,
    )
    payload = ad.to_event_payload()
    assert payload["id"] == 9
    assert payload["advertiserName"] == "Acme"
    assert payload["mediaType"] == "carousel"
    assert payload["screenshotPath"] == "abc.png"
