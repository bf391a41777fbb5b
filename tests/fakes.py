from __future__ import annotations

import os
from io import BytesIO
from typing import Any

from PIL import Image

from adlib_scraper.capture import LOCATE_CARD_JS
from adlib_scraper.detect import DESCRIBE_CONTAINERS_JS, SCAN_MARKERS_JS
from adlib_scraper.events import EventBus
from adlib_scraper.landing import EXTRACT_LANDING_JS
from adlib_scraper.loader import PROXY_COUNT_JS
from adlib_scraper.playwright import SCROLL_BY_JS, SCROLL_TO_JS
from adlib_scraper.relevance import Relevant


def png_bytes(width: int = 40, height: int = 30, color=(200, 30, 30)) -> bytes:
    img = Image.new("RGB", (width, height), color)
    buf = BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def element(node_id: int, top: float, left: float, width: float = 500, height: float = 600, images: int = 1) -> dict:
    return {"id": node_id, "tag": "div", "top": top, "left": left, "width": width, "height": height, "images": images}


def marker_chain(container_id: int, top: float, left: float, marker_id: int | None = None) -> list[dict]:
    """Marker span, an inner text block too small to be a card, then the card."""

    marker_id = 10_000 + container_id * 2 if marker_id is None else marker_id
    return [
        element(marker_id, top + 500, left + 10, width=200, height=20, images=0),
        element(marker_id + 1, top + 480, left + 10, width=480, height=60, images=0),
        element(container_id, top, left),
    ]


def snapshot(
    node_id: int,
    top: float,
    left: float,
    *,
    advertiser: str = "Acme Widgets",
    copy: str = "Fresh meal kits delivered to your door every single week.",
    cta: str = "Shop now",
    href: str = "https://l.facebook.com/l.php?u=https%3A%2F%2Facme.example%2Fsale%3Ffbclid%3Dabc",
    width: float = 500,
    height: float = 600,
    **extra: Any,
) -> dict:
    raw = {
        "id": node_id,
        "top": top,
        "left": left,
        "width": width,
        "height": height,
        "text": f"Sponsored\n{advertiser}\n{copy}\nStarted running on Jan 5, 2025\nLibrary ID: {node_id}",
        "images": 1,
        "videos": 0,
        "ariaLabels": [],
        "buttonAriaLabels": [],
        "links": [
            {"text": advertiser, "href": "https://www.facebook.com/acme"},
            {"text": cta, "href": href},
        ],
        "buttons": [],
    }
    raw.update(extra)
    return raw


class FakePage:
    """Stand-in for a Playwright page that dispatches on the evaluated script."""

    def __init__(
        self,
        *,
        chains: list[list[dict]] | None = None,
        snapshots: list[dict] | None = None,
        proxy_counts: list[int] | None = None,
        locate: dict | None = None,
        landing: dict | None = None,
        goto_error: Exception | None = None,
        fail_screenshots: set[int] | None = None,
    ) -> None:
        self.url = "about:blank"
        self.chains = chains or []
        self.snapshots = snapshots or []
        self.proxy_counts = proxy_counts or [0]
        self.locate = locate
        self.landing = landing or {}
        self.goto_error = goto_error
        self.fail_screenshots = fail_screenshots or set()
        self.scroll_y = 0.0
        self.scroll_steps = 0
        self.scroll_to_calls: list[float] = []
        self.proxy_calls = 0
        self.clips: list[dict] = []
        self.full_page_paths: list[str] = []
        self.gotos: list[str] = []

    async def goto(self, url: str, **kwargs: Any) -> None:
        self.gotos.append(url)
        if self.goto_error is not None:
            raise self.goto_error
        self.url = url

    async def wait_for_load_state(self, state: str, timeout: float | None = None) -> None:
        return None

    async def wait_for_timeout(self, ms: float) -> None:
        return None

    async def content(self) -> str:
        return "<html><body></body></html>"

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        if script == SCROLL_BY_JS:
            self.scroll_y += arg
            self.scroll_steps += 1
            return None
        if script == SCROLL_TO_JS:
            self.scroll_y = arg
            self.scroll_to_calls.append(arg)
            return None
        if script == PROXY_COUNT_JS:
            count = self.proxy_counts[min(self.proxy_calls, len(self.proxy_counts) - 1)]
            self.proxy_calls += 1
            return count
        if script == SCAN_MARKERS_JS:
            return self.chains
        if script == DESCRIBE_CONTAINERS_JS:
            wanted = set(arg)
            return [s for s in self.snapshots if s["id"] in wanted]
        if script == LOCATE_CARD_JS:
            return self.locate
        if script == EXTRACT_LANDING_JS:
            return self.landing
        raise AssertionError(f"unexpected script: {script[:60]}")

    async def screenshot(self, *, path: str | None = None, full_page: bool = False, type: str = "png", clip=None) -> bytes:
        if full_page:
            data = png_bytes(80, 120)
            if path:
                os.makedirs(os.path.dirname(path), exist_ok=True)
                with open(path, "wb") as fh:
                    fh.write(data)
                self.full_page_paths.append(path)
            return data
        index = len(self.clips)
        self.clips.append(dict(clip or {}))
        if index in self.fail_screenshots:
            raise RuntimeError("element detached")
        width = int((clip or {}).get("width", 40))
        height = int((clip or {}).get("height", 30))
        return png_bytes(width, height, color=(index * 7 % 255, 80, 120))


class FakeSink:
    def __init__(self) -> None:
        self.ads: list = []
        self.statuses: list[tuple[str, int | None]] = []

    def insert_ad(self, search_id: str, ad) -> int:
        self.ads.append(ad)
        return len(self.ads)

    def update_search_status(self, search_id: str, status: str, total_ads: int | None = None) -> None:
        self.statuses.append((status, total_ads))


class FakeClassifier:
    """Returns a preset verdict per advertiser; an Exception value is raised."""

    def __init__(self, verdicts: dict | None = None) -> None:
        self.verdicts = verdicts or {}
        self.calls: list[tuple[str, str, str]] = []

    async def classify(self, ad_copy: str, advertiser: str, keywords: str):
        self.calls.append((ad_copy, advertiser, keywords))
        verdict = self.verdicts.get(advertiser, Relevant("matches"))
        if isinstance(verdict, Exception):
            raise verdict
        return verdict


class RecordingBus(EventBus):
    """Event bus that also keeps every published event for assertions."""

    def __init__(self) -> None:
        super().__init__()
        self.events: list = []

    def publish(self, search_id: str, event) -> int:
        self.events.append(event)
        return super().publish(search_id, event)

    def of_type(self, event_type: str) -> list:
        return [e for e in self.events if e.type == event_type]
