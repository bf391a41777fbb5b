"""Screenshot fingerprints: exact byte hash plus a 64-bit average hash."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from io import BytesIO

from PIL import Image

AHASH_SIZE = 8


@dataclass(frozen=True, slots=True)
class ScreenshotFingerprint:
    sha256: str
    phash: str
    width: int
    height: int


def average_hash(im: Image.Image) -> str:
    """16 hex chars; re-captures of the same card land within a few bits."""

    small = im.convert("L").resize((AHASH_SIZE, AHASH_SIZE), resample=Image.Resampling.LANCZOS)
    pixels = list(small.getdata())
    mean = sum(pixels) / len(pixels)
    value = 0
    for p in pixels:
        value = (value << 1) | (p > mean)
    return f"{value:016x}"


def fingerprint_png(png_bytes: bytes) -> ScreenshotFingerprint:
    """Fingerprint the PNG exactly as stored; no re-encoding."""

    digest = hashlib.sha256(png_bytes).hexdigest()
    with Image.open(BytesIO(png_bytes)) as im:
        return ScreenshotFingerprint(sha256=digest, phash=average_hash(im), width=im.width, height=im.height)


__all__ = ["ScreenshotFingerprint", "average_hash", "fingerprint_png"]
