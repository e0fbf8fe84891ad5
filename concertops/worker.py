from __future__ import annotations

import asyncio
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from dotenv import load_dotenv
from zoneinfo import ZoneInfo

load_dotenv()

from concertops import config
from concertops.db.base import init_db
from concertops.services.usage import reset_monthly_usage

log = logging.getLogger("worker")


async def job_reset_monthly_usage() -> int:
    """Zero monthly query counters left over from a previous month. Lifetime totals are untouched."""
    try:
        n = reset_monthly_usage()
    except Exception as e:
        log.exception("monthly reset failed: %s", e)
        return 0
    log.info("monthly reset ok: %d users", n)
    return n


async def main() -> None:
    logging.basicConfig(level=config.log_level())
    init_db()
    scheduler = AsyncIOScheduler(timezone=ZoneInfo("UTC"))

    scheduler.add_job(job_reset_monthly_usage, "cron", day=1, hour=0, minute=5)  # 00:05 UTC on the 1st

    scheduler.start()

    # Catch up if the worker was down over the month boundary; rows already
    # counted this month are left alone
    await job_reset_monthly_usage()

    await asyncio.Event().wait()


if __name__ == "__main__":
    asyncio.run(main())
