"""Vocabulary tables used by the card detector and field extractors.

The ad library renders without semantic labels, so detection keys off visible
strings. Keep every string the heuristics depend on in this module and bump
``VOCAB_VERSION`` whenever a table changes; the version is stamped on every
captured screenshot's metadata.
"""

from __future__ import annotations

import re

VOCAB_VERSION = "2025-06-01.1"

# Text shown on every ad card, followed by the start date.
MARKER_PHRASE = "Started running on"
START_DATE_RE = re.compile(r"Started running on ([A-Za-z]+ \d+,? \d{4})")

# Elements whose innerText is longer than this are page scaffolding, not cards.
MAX_MARKER_TEXT = 2000

SPONSORED_MARKER = "Sponsored"
# Either string proves a live element belongs to an ad card.
CARD_METADATA_MARKERS: tuple[str, ...] = ("Started running", "Library ID")

CTA_PHRASES: tuple[str, ...] = (
    "learn more",
    "shop now",
    "sign up",
    "get offer",
    "book now",
    "contact us",
    "download",
    "subscribe",
    "get started",
    "apply now",
    "order now",
    "buy now",
    "see more",
    "watch more",
    "listen now",
    "get quote",
    "send message",
    "call now",
    "get directions",
    "watch video",
)

# Longest CTA label accepted, and how far past a known phrase a label may run.
CTA_MAX_LENGTH = 25
CTA_PREFIX_SLACK = 5

# Link texts that are library chrome rather than the advertiser's page name.
ADVERTISER_DENYLIST: tuple[str, ...] = (
    "Library ID",
    "Started running",
    "INSTAGRAM",
    "FACEBOOK",
)
ADVERTISER_DENYLIST_LOWER: tuple[str, ...] = (
    "learn more",
    "shop now",
    "sign up",
    "visit",
)

# Lines carrying these substrings are card metadata, never ad copy.
METADATA_MARKERS: tuple[str, ...] = (
    "Started running",
    "Library ID",
    "About this ad",
    "INSTAGRAM.COM",
    "FACEBOOK.COM",
)

VIDEO_TEXT_MARKERS: tuple[str, ...] = ("watch video",)
VIDEO_ARIA_MARKERS: tuple[str, ...] = ("video",)
CAROUSEL_ARIA_MARKERS: tuple[str, ...] = ("carousel", "scroll")
CAROUSEL_BUTTON_MARKERS: tuple[str, ...] = ("Next",)

PLATFORM_DOMAINS: tuple[str, ...] = ("facebook.com", "instagram.com")
# Outbound redirectors; the destination travels in the ``u`` query parameter.
REDIRECT_HOSTS: tuple[str, ...] = ("l.facebook.com", "l.instagram.com", "lm.facebook.com")
REDIRECT_PARAM = "u"
# Click identifiers appended by the platform redirector.
LANDING_TRACKER_PARAMS: frozenset[str] = frozenset({"fbclid"})

DEFAULT_COUNTRY = "US"
COUNTRY_CODES: dict[str, str] = {
    "united states": "US",
    "usa": "US",
    "us": "US",
    "united kingdom": "GB",
    "uk": "GB",
    "canada": "CA",
    "australia": "AU",
    "germany": "DE",
    "france": "FR",
    "spain": "ES",
    "italy": "IT",
    "brazil": "BR",
    "mexico": "MX",
    "india": "IN",
}


__all__ = [
    "ADVERTISER_DENYLIST",
    "ADVERTISER_DENYLIST_LOWER",
    "CARD_METADATA_MARKERS",
    "CAROUSEL_ARIA_MARKERS",
    "CAROUSEL_BUTTON_MARKERS",
    "COUNTRY_CODES",
    "CTA_MAX_LENGTH",
    "CTA_PHRASES",
    "CTA_PREFIX_SLACK",
    "DEFAULT_COUNTRY",
    "LANDING_TRACKER_PARAMS",
    "MARKER_PHRASE",
    "MAX_MARKER_TEXT",
    "METADATA_MARKERS",
    "PLATFORM_DOMAINS",
    "REDIRECT_HOSTS",
    "REDIRECT_PARAM",
    "SPONSORED_MARKER",
    "START_DATE_RE",
    "VIDEO_ARIA_MARKERS",
    "VIDEO_TEXT_MARKERS",
    "VOCAB_VERSION",
]
