"""Database helpers for the search pipeline."""

from .postgres import (
    SEARCH_STATUSES,
    PostgresAdSink,
    create_search,
    insert_ad,
    save_landing_page,
    sql_connect,
    update_search_status,
)

__all__ = [
    "PostgresAdSink",
    "SEARCH_STATUSES",
    "create_search",
    "insert_ad",
    "save_landing_page",
    "sql_connect",
    "update_search_status",
]
