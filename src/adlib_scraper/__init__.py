"""High-level utilities shared across the ad-library scrapers."""

from .capture import capture_card, capture_cards, compute_clip
from .config import Pacing, ScraperConfig
from .detect import dedupe_cards, find_ad_cards, is_card_shaped
from .events import EventBus, ProgressEvent, ProgressReporter, event_bus
from .extract import extract_fields
from .hashing import fingerprint_png
from .loader import load_ads
from .logging import adlog, jlog
from .metadata import build_screenshot_metadata
from .models import CapturedAd, DetectedCard, MediaType, SearchOutcome, SessionParams
from .relevance import CheckFailed, NotRelevant, Relevant, check_relevance
from .storage import ScreenshotStore
from .urls import build_search_url, normalize_landing_url
from .versioning import get_scraper_version

__all__ = [
    "adlog",
    "build_screenshot_metadata",
    "build_search_url",
    "capture_card",
    "capture_cards",
    "check_relevance",
    "compute_clip",
    "dedupe_cards",
    "extract_fields",
    "find_ad_cards",
    "fingerprint_png",
    "get_scraper_version",
    "is_card_shaped",
    "jlog",
    "load_ads",
    "normalize_landing_url",
    "CapturedAd",
    "CheckFailed",
    "DetectedCard",
    "EventBus",
    "MediaType",
    "NotRelevant",
    "Pacing",
    "ProgressEvent",
    "ProgressReporter",
    "Relevant",
    "ScraperConfig",
    "ScreenshotStore",
    "SearchOutcome",
    "SessionParams",
    "event_bus",
]
