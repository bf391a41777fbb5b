"""Object metadata for mirrored screenshots."""

from __future__ import annotations

from collections import OrderedDict
from typing import OrderedDict as OrderedDictType


def build_screenshot_metadata(
    *,
    search_id: str,
    advertiser_name: str,
    media_type: str,
    clip_method: str,
    width: int,
    height: int,
    sha256: str,
    phash: str,
    scraper_version: str,
    vocab_version: str,
    start_date: str | None = None,
    landing_url: str | None = None,
) -> OrderedDictType[str, str]:
    """Return metadata with deterministic ordering for auditability."""

    md: OrderedDictType[str, str] = OrderedDict()
    md["platform"] = "meta"
    md["search_id"] = str(search_id)
    md["advertiser_name"] = advertiser_name
    md["media_type"] = media_type
    md["clip_method"] = clip_method
    md["width"] = str(width)
    md["height"] = str(height)
    md["sha256"] = sha256
    md["phash"] = phash
    md["scraper_version"] = scraper_version
    md["vocab_version"] = vocab_version
    if start_date:
        md["start_date"] = start_date
    if landing_url:
        md["landing_url"] = landing_url
    return md


__all__ = ["build_screenshot_metadata"]
