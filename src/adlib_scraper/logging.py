"""JSON-lines logging for search sessions.

Every record is one JSON object on the ``adlib_scraper`` logger. Fields come
from three layers, later layers winning: process-wide fields set once by the
CLI shim (:func:`set_global_context`), per-session fields pushed with
:func:`logging_context`, and the call's own keyword arguments.

Session fields live in a :class:`contextvars.ContextVar`, so two searches
running as separate asyncio tasks never see each other's ``search_id``.
"""

from __future__ import annotations

import json
import logging
import os
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Iterator, Mapping

UTC = getattr(datetime, "UTC", timezone.utc)
LOGGER_NAME = "adlib_scraper"

_configured = False
_process_fields: dict[str, Any] = {}
_session_fields: ContextVar[Mapping[str, Any]] = ContextVar("adlib_log_fields", default={})


def configure_logging(level: int | str | None = None) -> None:
    """Install the root handler once; ``LOG_LEVEL`` applies when no level is given."""

    global _configured
    if _configured:
        return
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(message)s")
    _configured = True


def _present(fields: Mapping[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in fields.items() if v is not None}


def set_global_context(**fields: Any) -> None:
    _process_fields.update(_present(fields))


@contextmanager
def logging_context(**fields: Any) -> Iterator[None]:
    """Add ``fields`` to every record logged inside the block (and its tasks)."""

    token = _session_fields.set({**_session_fields.get(), **_present(fields)})
    try:
        yield
    finally:
        _session_fields.reset(token)


def jlog(level: str, /, **fields: Any) -> None:
    record = {
        "ts": datetime.now(UTC).isoformat(),
        **_process_fields,
        **_session_fields.get(),
        **fields,
    }
    log = logging.getLogger(LOGGER_NAME)
    getattr(log, level.lower())(json.dumps(record, ensure_ascii=False, sort_keys=True, default=str))


def adlog(event: str, *, search_id: str, **kw: Any) -> None:
    """Info record for one search; ``search_id`` is always present."""

    jlog("info", event=event, search_id=str(search_id), **kw)


__all__ = ["LOGGER_NAME", "adlog", "configure_logging", "jlog", "logging_context", "set_global_context"]
