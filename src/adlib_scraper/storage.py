"""Screenshot storage: a local directory, optionally mirrored to Cloud Storage."""

from __future__ import annotations

import os
import uuid
from typing import Mapping, Optional

from google.cloud import storage  # type: ignore[attr-defined]

from .logging import jlog

BUCKET_PREFIX = "screenshots"


def new_screenshot_name(prefix: str = "") -> str:
    """Return an opaque, collision-free PNG filename."""

    return f"{prefix}{uuid.uuid4()}.png"


def bucket_path(bucket: str, name: str) -> str:
    return f"gs://{bucket}/{BUCKET_PREFIX}/{name}"


def upload_png(
    storage_client: storage.Client,
    bucket_name: str,
    blob_path: str,
    png_bytes: bytes,
    metadata: Mapping[str, str] | None,
    *,
    dry_run: bool = False,
) -> None:
    """Upload one screenshot; names are uuid-based so objects are never rewritten."""

    prefix = f"gs://{bucket_name}/"
    if not blob_path.startswith(prefix):
        raise ValueError(f"{blob_path!r} is not inside gs://{bucket_name}")
    if dry_run:
        jlog("info", event="dry_run_upload", path=blob_path, bytes=len(png_bytes))
        return
    blob = storage_client.bucket(bucket_name).blob(blob_path[len(prefix) :])
    blob.cache_control = "public, max-age=31536000, immutable"
    blob.metadata = {k: str(v) for k, v in (metadata or {}).items()}
    blob.upload_from_string(png_bytes, content_type="image/png")
    jlog("info", event="screenshot_uploaded", path=blob_path)


class ScreenshotStore:
    """Writes screenshots under ``directory`` and returns their opaque names."""

    def __init__(
        self,
        directory: str,
        *,
        bucket: Optional[str] = None,
        storage_client: Optional[storage.Client] = None,
        dry_run: bool = False,
    ) -> None:
        self.directory = directory
        self.bucket = bucket
        self.dry_run = dry_run
        if bucket and storage_client is None and not dry_run:
            storage_client = storage.Client()
        self.storage_client = storage_client

    def path_for(self, name: str) -> str:
        return os.path.join(self.directory, name)

    def save(
        self,
        png_bytes: bytes,
        *,
        name: Optional[str] = None,
        metadata: Mapping[str, str] | None = None,
    ) -> str:
        name = name or new_screenshot_name()
        os.makedirs(self.directory, exist_ok=True)
        with open(self.path_for(name), "wb") as fh:
            fh.write(png_bytes)
        if self.bucket:
            upload_png(
                self.storage_client,  # type: ignore[arg-type]
                self.bucket,
                bucket_path(self.bucket, name),
                png_bytes,
                metadata,
                dry_run=self.dry_run,
            )
        return name


__all__ = ["BUCKET_PREFIX", "ScreenshotStore", "bucket_path", "new_screenshot_name", "upload_png"]
