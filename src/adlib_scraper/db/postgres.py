"""Postgres persistence helpers for searches, captured ads and landing pages."""

from __future__ import annotations

import json
import os
from typing import TYPE_CHECKING, Optional

import psycopg2

from ..logging import jlog
from ..models import CapturedAd, SessionParams

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from ..landing import LandingPage

SEARCH_STATUSES = ("running", "completed", "error")


def sql_connect(sql_conn: str | None, db_host: str | None = None, db_port: int | None = None):
    """Return a psycopg2 connection using either TCP or a Cloud SQL socket."""

    dbname = os.getenv("DB_NAME", "adsdb")
    user = os.getenv("DB_USER", "postgres")
    password = os.getenv("DB_PASSWORD")
    if not password:
        raise RuntimeError("DB_PASSWORD environment variable is required for database connections")

    if db_host:
        return psycopg2.connect(
            host=db_host,
            port=db_port or 5432,
            dbname=dbname,
            user=user,
            password=password,
            connect_timeout=10,
            sslmode=os.getenv("DB_SSLMODE", "prefer"),
        )

    if not sql_conn:
        raise RuntimeError("sql_conn must be provided when db_host is not set")
    return psycopg2.connect(
        host=f"/cloudsql/{sql_conn}",
        dbname=dbname,
        user=user,
        password=password,
        connect_timeout=10,
    )


def create_search(con, params: SessionParams, *, dry_run: bool = False) -> int:
    """Insert a ``running`` search row and return its id."""

    if dry_run:
        jlog("info", event="dry_run_create_search", keywords=params.keywords, location=params.location)
        return 0
    with con.cursor() as cur:
        cur.execute(
            """
            INSERT INTO searches(industry, location, keywords, ad_count, filter_relevant, status)
            VALUES (%s, %s, %s, %s, %s, 'running')
            RETURNING id
            """,
            (params.industry, params.location, params.keywords, params.ad_count, params.filter_relevant),
        )
        search_id = cur.fetchone()[0]
    con.commit()
    jlog("info", event="search_created", search_id=search_id, keywords=params.keywords)
    return int(search_id)


def insert_ad(con, search_id: str, ad: CapturedAd, *, dry_run: bool = False) -> Optional[int]:
    """Insert one captured ad and return its row id."""

    if dry_run:
        jlog(
            "info",
            event="dry_run_insert_ad",
            search_id=search_id,
            advertiser=ad.advertiser_name,
            screenshot=ad.screenshot_path,
        )
        return None
    with con.cursor() as cur:
        cur.execute(
            """
            INSERT INTO ads(search_id, platform, advertiser_name, ad_copy, screenshot_path,
                            start_date, media_type, cta_text, landing_url,
                            width_px, height_px, sha256, phash)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
            RETURNING id
            """,
            (
                int(search_id),
                ad.platform,
                ad.advertiser_name,
                ad.ad_copy,
                ad.screenshot_path,
                ad.start_date,
                ad.media_type.value,
                ad.cta_text,
                ad.landing_url,
                ad.width,
                ad.height,
                ad.sha256,
                ad.phash,
            ),
        )
        ad_id = cur.fetchone()[0]
    con.commit()
    return int(ad_id)


def update_search_status(
    con,
    search_id: str,
    status: str,
    total_ads: Optional[int] = None,
    *,
    dry_run: bool = False,
) -> None:
    """Set a search's status and, when given, its captured-ad total."""

    if status not in SEARCH_STATUSES:
        raise ValueError(f"unknown search status: {status}")
    if dry_run:
        jlog("info", event="dry_run_search_status", search_id=search_id, status=status, total_ads=total_ads)
        return
    with con.cursor() as cur:
        if total_ads is None:
            cur.execute("UPDATE searches SET status=%s WHERE id=%s", (status, int(search_id)))
        else:
            cur.execute(
                "UPDATE searches SET status=%s, total_ads=%s WHERE id=%s",
                (status, total_ads, int(search_id)),
            )
    con.commit()
    if status == "error":
        jlog("error", event="search_error", search_id=search_id)
    else:
        jlog("info", event="search_status", search_id=search_id, status=status, total_ads=total_ads)


def save_landing_page(con, page: "LandingPage", *, dry_run: bool = False) -> Optional[int]:
    """Upsert a landing page snapshot keyed by URL."""

    if dry_run:
        jlog("info", event="dry_run_landing_page", url=page.url)
        return None
    with con.cursor() as cur:
        cur.execute(
            """
            INSERT INTO landing_pages(url, title, description, headline, primary_cta,
                                      key_messaging, screenshot_path, scraped_at)
            VALUES (%s, %s, %s, %s, %s, %s, %s, NOW())
            ON CONFLICT (url) DO UPDATE
               SET title           = EXCLUDED.title,
                   description     = EXCLUDED.description,
                   headline        = EXCLUDED.headline,
                   primary_cta     = EXCLUDED.primary_cta,
                   key_messaging   = EXCLUDED.key_messaging,
                   screenshot_path = EXCLUDED.screenshot_path,
                   scraped_at      = NOW()
            RETURNING id
            """,
            (
                page.url,
                page.title,
                page.description,
                page.headline,
                page.primary_cta,
                json.dumps(list(page.key_messaging), ensure_ascii=False),
                page.screenshot_path,
            ),
        )
        row_id = cur.fetchone()[0]
    con.commit()
    return int(row_id)


class PostgresAdSink:
    """:class:`~adlib_scraper.models.AdSink` backed by a psycopg2 connection."""

    def __init__(self, con, *, dry_run: bool = False) -> None:
        self.con = con
        self.dry_run = dry_run

    def insert_ad(self, search_id: str, ad: CapturedAd) -> Optional[int]:
        return insert_ad(self.con, search_id, ad, dry_run=self.dry_run)

    def update_search_status(self, search_id: str, status: str, total_ads: Optional[int] = None) -> None:
        update_search_status(self.con, search_id, status, total_ads, dry_run=self.dry_run)


__all__ = [
    "PostgresAdSink",
    "SEARCH_STATUSES",
    "create_search",
    "insert_ad",
    "save_landing_page",
    "sql_connect",
    "update_search_status",
]
