from adlib_scraper.metadata import build_screenshot_metadata


def _md(**kwargs):
    base = dict(
        search_id=7,
        advertiser_name="Acme",
        media_type="image",
        clip_method="card_bounds",
        width=480,
        height=620,
        sha256="a" * 64,
        phash="b" * 16,
        scraper_version="meta:2025-06-01.1",
        vocab_version="2025-06-01.1",
    )
    base.update(kwargs)
    return build_screenshot_metadata(**base)


def test_build_screenshot_metadata_includes_optional_fields_when_provided():
    md = _md(start_date="Jan 5, 2025", landing_url="https://acme.example")
    assert md["search_id"] == "7"
    assert md["width"] == "480"
    assert md["start_date"] == "Jan 5, 2025"
    assert md["landing_url"] == "https://acme.example"
    assert list(md)[:3] == ["platform", "search_id", "advertiser_name"]


def test_build_screenshot_metadata_omits_optional_fields_when_absent():
    md = _md()
    assert "start_date" not in md
    assert "landing_url" not in md
