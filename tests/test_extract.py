from adlib_scraper.extract import (
    classify_media_type,
    clean_advertiser_name,
    extract_ad_copy,
    extract_advertiser,
    extract_cta_and_landing,
    extract_fields,
    extract_start_date,
    is_cta_label,
)
from adlib_scraper.models import Box, ContainerSnapshot, Link, MediaType

from fakes import snapshot


def _snap(**kwargs) -> ContainerSnapshot:
    base = dict(node_id=1, box=Box(0, 0, 500, 600))
    base.update(kwargs)
    return ContainerSnapshot(**base)


def test_extract_advertiser_skips_library_chrome_and_cta_links():
    links = [
        Link("FACEBOOK", "https://facebook.com"),
        Link("Library ID: 12345", ""),
        Link("Shop now", "https://acme.example"),
        Link("ab", "https://facebook.com/ab"),
        Link("Acme Widgets", "https://facebook.com/acme"),
    ]
    assert extract_advertiser(links) == "Acme Widgets"


def test_extract_advertiser_defaults_to_unknown():
    assert extract_advertiser([Link("x" * 80, "")]) == "Unknown"
    assert extract_advertiser([]) == "Unknown"


def test_clean_advertiser_name_strips_zero_width_characters():
    assert clean_advertiser_name("\u200bAcme\u200d ") == "Acme"
    assert clean_advertiser_name("\ufeff") == "Unknown"


def test_extract_ad_copy_keeps_long_non_metadata_lines():
    text = "\n".join(
        [
            "Sponsored",
            "Acme Widgets",
            "Our widgets are the best widgets money can buy today.",
            "Started running on Jan 5, 2025 with a long suffix here",
            "Free shipping on every order placed before the end of June.",
        ]
    )
    copy = extract_ad_copy(text, "Acme Widgets")
    assert copy == (
        "Our widgets are the best widgets money can buy today. "
        "Free shipping on every order placed before the end of June."
    )


def test_extract_ad_copy_stops_after_soft_limit_and_caps_length():
    line = "y" * 450
    copy = extract_ad_copy("\n".join([line, line, line]), "Acme")
    assert len(copy) == 800
    assert copy.startswith(line)


def test_extract_start_date():
    assert extract_start_date("Started running on Mar 3, 2024 · Total active time") == "Mar 3, 2024"
    assert extract_start_date("no marker here") == ""


def test_classify_media_type_prefers_video_then_carousel():
    assert classify_media_type(_snap(video_count=1, image_count=5)) is MediaType.VIDEO
    assert classify_media_type(_snap(aria_labels=("Play video",))) is MediaType.VIDEO
    assert classify_media_type(_snap(text="Tap to Watch video")) is MediaType.VIDEO
    assert classify_media_type(_snap(image_count=3)) is MediaType.CAROUSEL
    assert classify_media_type(_snap(image_count=1, button_aria_labels=("Next card",))) is MediaType.CAROUSEL
    assert classify_media_type(_snap(image_count=1, aria_labels=("carousel",))) is MediaType.CAROUSEL
    assert classify_media_type(_snap(image_count=1)) is MediaType.IMAGE


def test_is_cta_label_accepts_short_phrases():
    assert is_cta_label("Shop now")
    assert is_cta_label("Learn More")
    assert is_cta_label("Sign up now")
    assert not is_cta_label("")
    assert not is_cta_label("Acme Widgets")


def test_is_cta_label_rejects_long_text_containing_a_phrase():
    label = "Learn More About Our Amazing Product"
    assert "learn more" in label.lower()
    assert not is_cta_label(label)


def test_long_cta_candidate_leaves_cta_empty():
    links = [Link("Learn More About Our Amazing Product", "https://acme.example/p")]
    cta, landing = extract_cta_and_landing(links)
    assert cta == ""
    assert landing == "https://acme.example/p"


def test_long_cta_candidate_falls_through_to_a_later_qualifying_link():
    links = [
        Link("Learn More About Our Amazing Product", "https://acme.example/p"),
        Link("Learn more", "https://acme.example/q"),
    ]
    cta, landing = extract_cta_and_landing(links)
    assert cta == "Learn more"
    assert landing == "https://acme.example/p"


def test_cta_falls_back_to_role_buttons():
    links = [Link("Acme", "https://www.facebook.com/acme")]
    cta, landing = extract_cta_and_landing(links, ["Like", "Get offer"])
    assert cta == "Get offer"
    assert landing == ""


def test_extract_fields_builds_a_complete_card():
    card = extract_fields(ContainerSnapshot.from_dict(snapshot(4, 120, 80)))
    assert card.advertiser_name == "Acme Widgets"
    assert card.ad_copy == "Fresh meal kits delivered to your door every single week."
    assert card.start_date == "Jan 5, 2025"
    assert card.cta_text == "Shop now"
    assert card.landing_url == "https://acme.example/sale"
    assert card.media_type is MediaType.IMAGE
    assert (card.top, card.left) == (120, 80)
