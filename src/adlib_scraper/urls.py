"""URL helpers for ad-library searches and ad landing pages."""

from __future__ import annotations

import urllib.parse

from .vocab import (
    COUNTRY_CODES,
    DEFAULT_COUNTRY,
    LANDING_TRACKER_PARAMS,
    PLATFORM_DOMAINS,
    REDIRECT_HOSTS,
    REDIRECT_PARAM,
)

AD_LIBRARY_URL = "https://www.facebook.com/ads/library/"


def country_code(location: str | None) -> str:
    """Map a free-form location name onto the library's two-letter country code."""

    if not location:
        return DEFAULT_COUNTRY
    return COUNTRY_CODES.get(location.strip().lower(), DEFAULT_COUNTRY)


def build_search_url(keywords: str, location: str | None = None) -> str:
    query = urllib.parse.urlencode(
        [
            ("active_status", "active"),
            ("ad_type", "all"),
            ("country", country_code(location)),
            ("q", keywords),
            ("search_type", "keyword_unordered"),
            ("media_type", "all"),
        ],
        quote_via=urllib.parse.quote,
    )
    return f"{AD_LIBRARY_URL}?{query}"


def _host(url: str) -> str:
    try:
        return (urllib.parse.urlparse(url).hostname or "").lower()
    except ValueError:
        return ""


def _host_matches(host: str, domain: str) -> bool:
    return host == domain or host.endswith("." + domain)


def is_redirect_url(url: str) -> bool:
    host = _host(url)
    return any(host == h for h in REDIRECT_HOSTS)


def is_platform_url(url: str) -> bool:
    host = _host(url)
    return any(_host_matches(host, d) for d in PLATFORM_DOMAINS)


def unwrap_redirect(url: str) -> str | None:
    """Return the destination carried by a platform redirect URL, if any."""

    if not is_redirect_url(url):
        return None
    qs = urllib.parse.parse_qs(urllib.parse.urlparse(url).query)
    dest = qs.get(REDIRECT_PARAM, [None])[0]
    return dest or None


def _strip_trackers(url: str) -> str:
    """Drop tracker pairs; every other pair keeps its original encoding."""

    parsed = urllib.parse.urlparse(url)
    if not parsed.query:
        return url
    pairs = parsed.query.split("&")
    kept = [p for p in pairs if urllib.parse.unquote_plus(p.split("=", 1)[0]) not in LANDING_TRACKER_PARAMS]
    if len(kept) == len(pairs):
        return url
    return urllib.parse.urlunparse(parsed._replace(query="&".join(kept)))


def normalize_landing_url(href: str | None) -> str | None:
    """Return the external destination behind an ad link, or None for platform links."""

    try:
        if not href or not href.startswith(("http://", "https://")):
            return None
        inner = unwrap_redirect(href)
        if inner is not None:
            if not inner.startswith(("http://", "https://")) or is_platform_url(inner):
                return None
            return _strip_trackers(inner)
        if is_platform_url(href):
            return None
        return _strip_trackers(href)
    except ValueError:
        return None


def landing_domain(url: str) -> str | None:
    host = _host(url)
    if not host:
        return None
    return host[4:] if host.startswith("www.") else host


__all__ = [
    "AD_LIBRARY_URL",
    "build_search_url",
    "country_code",
    "is_platform_url",
    "is_redirect_url",
    "landing_domain",
    "normalize_landing_url",
    "unwrap_redirect",
]
