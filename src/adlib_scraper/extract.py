"""Field extractors that turn one card container snapshot into a DetectedCard.

Every function here is pure: it reads the text, links and counters captured
from the live DOM by :mod:`adlib_scraper.detect` and never touches the page.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from .models import UNKNOWN_ADVERTISER, ContainerSnapshot, DetectedCard, Link, MediaType
from .urls import normalize_landing_url
from .vocab import (
    ADVERTISER_DENYLIST,
    ADVERTISER_DENYLIST_LOWER,
    CAROUSEL_ARIA_MARKERS,
    CAROUSEL_BUTTON_MARKERS,
    CTA_MAX_LENGTH,
    CTA_PHRASES,
    CTA_PREFIX_SLACK,
    METADATA_MARKERS,
    START_DATE_RE,
    VIDEO_ARIA_MARKERS,
    VIDEO_TEXT_MARKERS,
)

ADVERTISER_MIN_LEN = 2
ADVERTISER_MAX_LEN = 80
COPY_MIN_LINE_LEN = 30
COPY_SOFT_LIMIT = 500
COPY_HARD_LIMIT = 800

_ZERO_WIDTH_RE = re.compile("[\u200b-\u200d\ufeff]")


def _is_denied_advertiser(text: str) -> bool:
    if any(marker in text for marker in ADVERTISER_DENYLIST):
        return True
    lowered = text.lower()
    return any(marker in lowered for marker in ADVERTISER_DENYLIST_LOWER)


def extract_advertiser(links: Iterable[Link]) -> str:
    """Pick the page name link; the first anchor that is not library chrome or a CTA."""

    for link in links:
        text = link.text.strip()
        if not (ADVERTISER_MIN_LEN < len(text) < ADVERTISER_MAX_LEN):
            continue
        if _is_denied_advertiser(text):
            continue
        return text
    return UNKNOWN_ADVERTISER


def clean_advertiser_name(name: str | None) -> str:
    cleaned = _ZERO_WIDTH_RE.sub("", name or "").strip()
    return cleaned or UNKNOWN_ADVERTISER


def _text_lines(text: str) -> list[str]:
    return [line.strip() for line in text.split("\n") if line.strip()]


def extract_ad_copy(text: str, advertiser: str) -> str:
    copy_lines: list[str] = []
    for line in _text_lines(text):
        if len(line) <= COPY_MIN_LINE_LEN:
            continue
        if any(marker in line for marker in METADATA_MARKERS) or line == advertiser:
            continue
        copy_lines.append(line)
        if len(" ".join(copy_lines)) > COPY_SOFT_LIMIT:
            break
    return " ".join(copy_lines)[:COPY_HARD_LIMIT]


def extract_start_date(text: str) -> str:
    match = START_DATE_RE.search(text or "")
    return match.group(1) if match else ""


def classify_media_type(snapshot: ContainerSnapshot) -> MediaType:
    """Video beats carousel beats the default single image."""

    text = snapshot.text.lower()
    has_video = (
        snapshot.video_count > 0
        or any(marker in text for marker in VIDEO_TEXT_MARKERS)
        or any(m in label for label in snapshot.aria_labels for m in VIDEO_ARIA_MARKERS)
    )
    if has_video:
        return MediaType.VIDEO
    has_carousel = (
        snapshot.image_count > 2
        or any(m in label for label in snapshot.aria_labels for m in CAROUSEL_ARIA_MARKERS)
        or any(m in label for label in snapshot.button_aria_labels for m in CAROUSEL_BUTTON_MARKERS)
    )
    if has_carousel:
        return MediaType.CAROUSEL
    return MediaType.IMAGE


def is_cta_label(text: str) -> bool:
    """Return True for short button labels such as "Shop now" or "Learn more >".

    Body text that merely contains a CTA phrase is rejected by the length gate
    before the vocabulary is consulted.
    """

    label = text.strip()
    if not label or len(label) > CTA_MAX_LENGTH:
        return False
    lowered = label.lower()
    for phrase in CTA_PHRASES:
        if lowered == phrase:
            return True
        if lowered.startswith(phrase) and len(label) <= len(phrase) + CTA_PREFIX_SLACK:
            return True
    return False


def extract_cta_and_landing(links: Iterable[Link], buttons: Iterable[str] = ()) -> tuple[str, str]:
    """Return ``(cta_text, landing_url)``; either may be empty."""

    cta_text = ""
    landing_url = ""
    for link in links:
        label = link.text.strip()
        if not cta_text and is_cta_label(label):
            cta_text = label
        if not landing_url:
            landing_url = normalize_landing_url(link.href) or ""
    if not cta_text:
        for text in buttons:
            label = text.strip()
            if is_cta_label(label):
                cta_text = label
                break
    return cta_text, landing_url


def extract_fields(snapshot: ContainerSnapshot) -> DetectedCard:
    advertiser = extract_advertiser(snapshot.links)
    cta_text, landing_url = extract_cta_and_landing(snapshot.links, snapshot.buttons)
    return DetectedCard.build(
        snapshot.box,
        advertiser_name=advertiser,
        ad_copy=extract_ad_copy(snapshot.text, advertiser),
        start_date=extract_start_date(snapshot.text),
        cta_text=cta_text,
        landing_url=landing_url,
        media_type=classify_media_type(snapshot),
    )


__all__ = [
    "classify_media_type",
    "clean_advertiser_name",
    "extract_ad_copy",
    "extract_advertiser",
    "extract_cta_and_landing",
    "extract_fields",
    "extract_start_date",
    "is_cta_label",
]
