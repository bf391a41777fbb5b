import asyncio
import json
import logging

from adlib_scraper.logging import LOGGER_NAME, adlog, jlog, logging_context


def _records(caplog) -> list[dict]:
    return [json.loads(r.getMessage()) for r in caplog.records if r.name == LOGGER_NAME]


def test_jlog_merges_session_fields(caplog):
    caplog.set_level(logging.INFO, logger=LOGGER_NAME)
    with logging_context(search_id="7", keywords=None):
        with logging_context(step="capture"):
            jlog("info", event="inner")
        jlog("warning", event="outer")
    jlog("info", event="after")

    inner, outer, after = _records(caplog)
    assert inner["search_id"] == "7" and inner["step"] == "capture"
    assert "keywords" not in inner
    assert outer["search_id"] == "7" and "step" not in outer
    assert "search_id" not in after
    assert "ts" in after


def test_concurrent_sessions_keep_their_own_fields(caplog):
    caplog.set_level(logging.INFO, logger=LOGGER_NAME)

    async def session(search_id: str):
        with logging_context(search_id=search_id):
            await asyncio.sleep(0)
            jlog("info", event="tick", expected=search_id)

    async def main():
        await asyncio.gather(session("1"), session("2"))

    asyncio.run(main())
    ticks = [r for r in _records(caplog) if r["event"] == "tick"]
    assert len(ticks) == 2
    assert all(r["search_id"] == r["expected"] for r in ticks)


def test_adlog_stringifies_search_id(caplog):
    caplog.set_level(logging.INFO, logger=LOGGER_NAME)
    adlog("ad_saved", search_id=7, ad_id=None)
    (record,) = _records(caplog)
    assert record["search_id"] == "7"
    assert record["ad_id"] is None
