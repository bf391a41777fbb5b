"""Runtime configuration: timeouts, viewport and request pacing.

Defaults are read from the environment once at import time and can be
overridden per run through the CLI flags in :mod:`adlib_scraper.meta.pipeline`.
"""

from __future__ import annotations

import asyncio
import os
import random
from dataclasses import dataclass, field

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
DEFAULT_VIEWPORT_WIDTH = int(os.getenv("VIEWPORT_WIDTH", "1400"))
DEFAULT_VIEWPORT_HEIGHT = int(os.getenv("VIEWPORT_HEIGHT", "900"))
DEFAULT_NAV_TIMEOUT_MS = int(os.getenv("NAV_TIMEOUT_MS", "90000"))
DEFAULT_IDLE_TIMEOUT_MS = int(os.getenv("IDLE_TIMEOUT_MS", "45000"))
DEFAULT_SCROLL_STEP_PX = int(os.getenv("SCROLL_STEP_PX", "1000"))
DEFAULT_SCREENSHOTS_DIR = os.getenv("SCREENSHOTS_DIR", "screenshots")
DEFAULT_DEBUG_DIR = os.getenv("DEBUG_DIR", "media/debug")


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Pacing:
    """Inclusive jitter window for a delay, in milliseconds."""

    min_ms: int
    max_ms: int

    def __post_init__(self) -> None:
        if self.min_ms < 0 or self.max_ms < self.min_ms:
            raise ValueError(f"invalid pacing window {self.min_ms}..{self.max_ms}")

    @classmethod
    def fixed(cls, ms: int) -> "Pacing":
        return cls(ms, ms)

    @classmethod
    def zero(cls) -> "Pacing":
        return cls(0, 0)

    def pick_ms(self) -> int:
        return random.randint(self.min_ms, self.max_ms)

    async def sleep(self) -> None:
        await asyncio.sleep(self.pick_ms() / 1000.0)


@dataclass(frozen=True)
class ScraperConfig:
    viewport_width: int = DEFAULT_VIEWPORT_WIDTH
    viewport_height: int = DEFAULT_VIEWPORT_HEIGHT
    user_agent: str = os.getenv("SCRAPER_USER_AGENT", DEFAULT_USER_AGENT)
    headless: bool = _env_flag("HEADLESS", "1")
    slow_mo_ms: int = int(os.getenv("SLOW_MO_MS", "0"))
    nav_timeout_ms: int = DEFAULT_NAV_TIMEOUT_MS
    idle_timeout_ms: int = DEFAULT_IDLE_TIMEOUT_MS
    scroll_step_px: int = DEFAULT_SCROLL_STEP_PX
    screenshots_dir: str = DEFAULT_SCREENSHOTS_DIR
    debug_dir: str = DEFAULT_DEBUG_DIR
    post_nav_pacing: Pacing = field(default_factory=lambda: Pacing(3000, 5000))
    post_idle_pacing: Pacing = field(default_factory=lambda: Pacing(2000, 3000))
    scroll_pacing: Pacing = field(default_factory=lambda: Pacing(1200, 2000))
    top_settle: Pacing = field(default_factory=lambda: Pacing.fixed(1500))
    card_settle: Pacing = field(default_factory=lambda: Pacing.fixed(600))
    capture_pacing: Pacing = field(default_factory=lambda: Pacing(500, 1000))

    @classmethod
    def immediate(cls, **overrides) -> "ScraperConfig":
        """Config with every delay set to zero (dry runs and tests)."""

        zero = Pacing.zero()
        base = dict(
            post_nav_pacing=zero,
            post_idle_pacing=zero,
            scroll_pacing=zero,
            top_settle=zero,
            card_settle=zero,
            capture_pacing=zero,
        )
        base.update(overrides)
        return cls(**base)


__all__ = [
    "DEFAULT_USER_AGENT",
    "Pacing",
    "ScraperConfig",
]
