"""Ad card detection over the fully scrolled ad-library feed.

The feed carries no stable class names or test ids, so cards are found in two
phases:

1. ``scan_markers`` runs one in-page pass that finds every element whose text
   carries the "Started running on" marker and returns the element plus up to
   ten ancestors as cheap :class:`ElementInfo` records. Elements are registered
   on ``window`` under stable numeric ids so two markers inside one card
   resolve to the same container id.
2. The Python side walks each chain with :func:`is_card_shaped`, keeps the
   first card-sized ancestor that holds an image, and asks the page for a full
   :class:`ContainerSnapshot` of every distinct container via
   ``describe_containers``. Field extraction then runs on the snapshots.

Everything after the two ``page.evaluate`` calls is pure and is what the unit
tests drive with synthetic fixtures.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass

from playwright.async_api import Page

from .extract import extract_fields
from .logging import jlog
from .models import ContainerSnapshot, DetectedCard, ElementInfo
from .vocab import MARKER_PHRASE, MAX_MARKER_TEXT

MAX_ANCESTOR_DEPTH = 10
CARD_MIN_WIDTH = 300
CARD_MAX_WIDTH = 1000
CARD_MIN_HEIGHT = 250
CARD_MAX_HEIGHT = 1200
DEDUP_RADIUS_PX = 50

SCAN_MARKERS_JS = """
({ marker, maxText, maxDepth }) => {
  const registry = window.__adlibNodes = [];
  const ids = new Map();
  const idOf = (el) => {
    if (!ids.has(el)) {
      ids.set(el, registry.length);
      registry.push(el);
    }
    return ids.get(el);
  };
  const light = (el) => {
    const r = el.getBoundingClientRect();
    return {
      id: idOf(el),
      tag: el.tagName.toLowerCase(),
      top: r.top + window.scrollY,
      left: r.left + window.scrollX,
      width: r.width,
      height: r.height,
      images: el.querySelectorAll('img').length,
    };
  };
  const chains = [];
  for (const el of document.querySelectorAll('*')) {
    if (!el.childNodes.length) continue;
    const text = el.innerText;
    if (!text || !text.includes(marker) || text.length >= maxText) continue;
    const chain = [];
    let node = el;
    for (let depth = 0; depth < maxDepth && node && node.parentElement; depth++) {
      chain.push(light(node));
      node = node.parentElement;
    }
    chains.push(chain);
  }
  return chains;
}
"""

DESCRIBE_CONTAINERS_JS = """
(ids) => {
  const registry = window.__adlibNodes || [];
  const text = (n) => (n.innerText || '').trim();
  const out = [];
  for (const id of ids) {
    const el = registry[id];
    if (!el || !el.isConnected) continue;
    const r = el.getBoundingClientRect();
    out.push({
      id,
      top: r.top + window.scrollY,
      left: r.left + window.scrollX,
      width: r.width,
      height: r.height,
      text: el.innerText || '',
      images: el.querySelectorAll('img').length,
      videos: el.querySelectorAll('video').length,
      ariaLabels: Array.from(el.querySelectorAll('[aria-label]')).map(n => n.getAttribute('aria-label') || ''),
      buttonAriaLabels: Array.from(el.querySelectorAll('button[aria-label]')).map(n => n.getAttribute('aria-label') || ''),
      links: Array.from(el.querySelectorAll('a')).map(a => ({ text: text(a), href: a.href || '' })),
      buttons: Array.from(el.querySelectorAll('div[role="button"], span[role="button"]')).map(text),
    });
  }
  return out;
}
"""

DescribeFn = Callable[[Sequence[int]], Awaitable[list[ContainerSnapshot]]]


@dataclass(frozen=True)
class DetectionResult:
    cards: list[DetectedCard]
    markers_found: int
    containers_found: int
    raw_cards: int


def is_card_shaped(element: ElementInfo) -> bool:
    """A plausible ad card: holds an image and has card-sized bounds."""

    box = element.box
    return (
        element.image_count > 0
        and CARD_MIN_WIDTH < box.width < CARD_MAX_WIDTH
        and CARD_MIN_HEIGHT < box.height < CARD_MAX_HEIGHT
    )


def choose_container(chain: Sequence[ElementInfo], max_depth: int = MAX_ANCESTOR_DEPTH) -> ElementInfo | None:
    for element in chain[:max_depth]:
        if is_card_shaped(element):
            return element
    return None


def select_containers(chains: Iterable[Sequence[ElementInfo]]) -> list[ElementInfo]:
    """Return each distinct container once, in first-seen order."""

    seen: set[int] = set()
    containers: list[ElementInfo] = []
    for chain in chains:
        container = choose_container(chain)
        if container is None or container.node_id in seen:
            continue
        seen.add(container.node_id)
        containers.append(container)
    return containers


def sort_cards(cards: Iterable[DetectedCard]) -> list[DetectedCard]:
    return sorted(cards, key=lambda c: (c.top, c.left))


def dedupe_cards(cards: Iterable[DetectedCard], radius: float = DEDUP_RADIUS_PX) -> list[DetectedCard]:
    """Drop a card when a kept card sits within ``radius`` on both axes.

    Grid rows share a top and columns share a left, so a single-axis check
    would merge distinct ads.
    """

    unique: list[DetectedCard] = []
    for card in cards:
        duplicate = any(abs(c.top - card.top) < radius and abs(c.left - card.left) < radius for c in unique)
        if not duplicate:
            unique.append(card)
    return unique


def cards_from_snapshots(snapshots: Iterable[ContainerSnapshot]) -> list[DetectedCard]:
    cards: list[DetectedCard] = []
    for snap in snapshots:
        try:
            cards.append(extract_fields(snap))
        except Exception as exc:
            jlog("warning", event="card_extract_error", node_id=snap.node_id, error=str(exc))
    return cards


async def detect_cards(chains: Sequence[Sequence[ElementInfo]], describe: DescribeFn) -> DetectionResult:
    containers = select_containers(chains)
    snapshots = await describe([c.node_id for c in containers]) if containers else []
    raw = sort_cards(cards_from_snapshots(snapshots))
    unique = dedupe_cards(raw)
    return DetectionResult(
        cards=unique,
        markers_found=len(chains),
        containers_found=len(containers),
        raw_cards=len(raw),
    )


async def scan_markers(page: Page) -> list[list[ElementInfo]]:
    raw = await page.evaluate(
        SCAN_MARKERS_JS,
        {"marker": MARKER_PHRASE, "maxText": MAX_MARKER_TEXT, "maxDepth": MAX_ANCESTOR_DEPTH},
    )
    return [[ElementInfo.from_dict(el) for el in chain] for chain in raw or []]


async def describe_containers(page: Page, ids: Sequence[int]) -> list[ContainerSnapshot]:
    raw = await page.evaluate(DESCRIBE_CONTAINERS_JS, list(ids))
    return [ContainerSnapshot.from_dict(item) for item in raw or []]


async def find_ad_cards(page: Page) -> DetectionResult:
    """Scan the loaded feed and return sorted, deduplicated cards."""

    chains = await scan_markers(page)

    async def _describe(ids: Sequence[int]) -> list[ContainerSnapshot]:
        return await describe_containers(page, ids)

    result = await detect_cards(chains, _describe)
    jlog(
        "info",
        event="cards_detected",
        markers_found=result.markers_found,
        containers_found=result.containers_found,
        raw_cards=result.raw_cards,
        after_dedup=len(result.cards),
    )
    return result


__all__ = [
    "CARD_MAX_HEIGHT",
    "CARD_MAX_WIDTH",
    "CARD_MIN_HEIGHT",
    "CARD_MIN_WIDTH",
    "DEDUP_RADIUS_PX",
    "DESCRIBE_CONTAINERS_JS",
    "DetectionResult",
    "MAX_ANCESTOR_DEPTH",
    "SCAN_MARKERS_JS",
    "cards_from_snapshots",
    "choose_container",
    "dedupe_cards",
    "describe_containers",
    "detect_cards",
    "find_ad_cards",
    "is_card_shaped",
    "scan_markers",
    "select_containers",
    "sort_cards",
]
