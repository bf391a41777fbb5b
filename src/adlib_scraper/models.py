"""Records passed between the loader, detector, capture pipeline and sinks."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Protocol

ADVERTISER_MAX_CHARS = 100
AD_COPY_MAX_CHARS = 800
CTA_MAX_CHARS = 50
LANDING_URL_MAX_CHARS = 500

UNKNOWN_ADVERTISER = "Unknown"
PLATFORM = "meta"


class MediaType(str, Enum):
    IMAGE = "image"
    VIDEO = "video"
    CAROUSEL = "carousel"


@dataclass(frozen=True, slots=True)
class Box:
    """Absolute page rectangle in CSS pixels."""

    top: float
    left: float
    width: float
    height: float

    @property
    def center_x(self) -> float:
        return self.left + self.width / 2

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "Box":
        return cls(
            top=float(raw.get("top") or 0),
            left=float(raw.get("left") or 0),
            width=float(raw.get("width") or 0),
            height=float(raw.get("height") or 0),
        )


@dataclass(frozen=True, slots=True)
class ElementInfo:
    """Cheap description of one element on a marker's ancestor chain."""

    node_id: int
    tag: str
    box: Box
    image_count: int

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "ElementInfo":
        return cls(
            node_id=int(raw["id"]),
            tag=str(raw.get("tag") or ""),
            box=Box.from_dict(raw),
            image_count=int(raw.get("images") or 0),
        )


@dataclass(frozen=True, slots=True)
class Link:
    text: str
    href: str


@dataclass(frozen=True, slots=True)
class ContainerSnapshot:
    """Everything the field extractors read from one accepted card container."""

    node_id: int
    box: Box
    text: str = ""
    image_count: int = 0
    video_count: int = 0
    aria_labels: tuple[str, ...] = ()
    button_aria_labels: tuple[str, ...] = ()
    links: tuple[Link, ...] = ()
    buttons: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "ContainerSnapshot":
        return cls(
            node_id=int(raw["id"]),
            box=Box.from_dict(raw),
            text=str(raw.get("text") or ""),
            image_count=int(raw.get("images") or 0),
            video_count=int(raw.get("videos") or 0),
            aria_labels=tuple(str(v) for v in raw.get("ariaLabels") or ()),
            button_aria_labels=tuple(str(v) for v in raw.get("buttonAriaLabels") or ()),
            links=tuple(Link(text=str(l.get("text") or ""), href=str(l.get("href") or "")) for l in raw.get("links") or ()),
            buttons=tuple(str(v) for v in raw.get("buttons") or ()),
        )


@dataclass(frozen=True, slots=True)
class DetectedCard:
    """One ad card found in the loaded feed, before capture."""

    box: Box
    advertiser_name: str = UNKNOWN_ADVERTISER
    ad_copy: str = ""
    start_date: str = ""
    cta_text: str = ""
    landing_url: str = ""
    media_type: MediaType = MediaType.IMAGE

    @property
    def top(self) -> float:
        return self.box.top

    @property
    def left(self) -> float:
        return self.box.left

    @classmethod
    def build(
        cls,
        box: Box,
        *,
        advertiser_name: str,
        ad_copy: str,
        start_date: str,
        cta_text: str,
        landing_url: str,
        media_type: MediaType,
    ) -> "DetectedCard":
        """Construct a card with every string field clamped to its storage cap."""

        return cls(
            box=box,
            advertiser_name=(advertiser_name or UNKNOWN_ADVERTISER)[:ADVERTISER_MAX_CHARS],
            ad_copy=(ad_copy or "")[:AD_COPY_MAX_CHARS],
            start_date=start_date or "",
            cta_text=(cta_text or "")[:CTA_MAX_CHARS],
            landing_url=(landing_url or "")[:LANDING_URL_MAX_CHARS],
            media_type=media_type,
        )


@dataclass(frozen=True, slots=True)
class CapturedAd:
    search_id: str
    advertiser_name: str
    ad_copy: str
    start_date: str
    cta_text: str
    landing_url: str
    media_type: MediaType
    screenshot_path: str
    platform: str = PLATFORM
    width: Optional[int] = None
    height: Optional[int] = None
    sha256: Optional[str] = None
    phash: Optional[str] = None
    ad_id: Optional[int] = None

    def to_event_payload(self) -> dict[str, Any]:
        return {
            "id": self.ad_id,
            "advertiserName": self.advertiser_name,
            "adCopy": self.ad_copy,
            "screenshotPath": self.screenshot_path,
            "startDate": self.start_date,
            "ctaText": self.cta_text,
            "landingUrl": self.landing_url,
            "mediaType": self.media_type.value,
        }


@dataclass(frozen=True)
class SessionParams:
    keywords: str
    location: str = "US"
    ad_count: int = 25
    filter_relevant: bool = False
    industry: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.keywords or not self.keywords.strip():
            raise ValueError("keywords must be a non-empty string")
        if self.ad_count < 1:
            raise ValueError(f"ad_count must be >= 1 (got {self.ad_count})")


@dataclass
class SearchOutcome:
    search_id: str
    status: str
    captured: list[CapturedAd] = field(default_factory=list)
    skipped: int = 0
    failed: int = 0
    error: Optional[str] = None

    @property
    def total_ads(self) -> int:
        return len(self.captured)


class AdSink(Protocol):
    """Persistence collaborator that owns search and ad rows."""

    def insert_ad(self, search_id: str, ad: CapturedAd) -> Optional[int]: ...

    def update_search_status(self, search_id: str, status: str, total_ads: Optional[int] = None) -> None: ...


__all__ = [
    "AD_COPY_MAX_CHARS",
    "ADVERTISER_MAX_CHARS",
    "AdSink",
    "Box",
    "CTA_MAX_CHARS",
    "CapturedAd",
    "ContainerSnapshot",
    "DetectedCard",
    "ElementInfo",
    "LANDING_URL_MAX_CHARS",
    "Link",
    "MediaType",
    "PLATFORM",
    "SearchOutcome",
    "SessionParams",
    "UNKNOWN_ADVERTISER",
]
