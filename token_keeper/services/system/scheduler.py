"""
Interval job scheduler.

Runs the credential refresh jobs on an APScheduler ``AsyncIOScheduler`` in the
configured timezone. Jobs are wrapped with ``isolated_job``: an unexpected
fault in one job is logged and never stops the process or the other jobs.
"""

from __future__ import annotations

import asyncio
import functools
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from token_keeper.core.logger import logger


def isolated_job(
    func: Callable[..., Awaitable[Any]],
    name: str | None = None,
) -> Callable[..., Awaitable[Any]]:
    """Wrap a job so that any unexpected fault stays inside that job."""
    display_name = name or getattr(func, "__name__", "job")

    @functools.wraps(func)
    async def runner(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)
        except asyncio.CancelledError:
            logger.debug("[{}] job cancelled (shutdown?)", display_name)
            return None
        except Exception:
            logger.exception("Scheduled job failed: {}", display_name)
            return None

    return runner


class TaskScheduler:
    """Thin wrapper around ``AsyncIOScheduler``."""

    def __init__(self, timezone: str = "Asia/Shanghai") -> None:
        self.timezone = timezone
        self.scheduler = AsyncIOScheduler(timezone=timezone)
        self._started = False

    def add_interval_job(
        self,
        func: Callable[..., Any],
        seconds: int | None = None,
        minutes: int | None = None,
        hours: int | None = None,
        job_id: str | None = None,
        name: str | None = None,
        start_delay_seconds: int = 0,
        **kwargs: Any,
    ) -> Any:
        """
        Register a job that runs at a fixed interval.

        Args:
            func: coroutine function to run
            seconds: interval seconds
            minutes: interval minutes
            hours: interval hours
            job_id: job id, defaults to the function name
            name: display name for logs
            start_delay_seconds: extra delay before the first run
            **kwargs: keyword arguments passed to ``func``
        """
        # only pass the interval parts that were given
        trigger_kwargs: dict[str, Any] = {}
        if seconds is not None:
            trigger_kwargs["seconds"] = seconds
        if minutes is not None:
            trigger_kwargs["minutes"] = minutes
        if hours is not None:
            trigger_kwargs["hours"] = hours
        if start_delay_seconds > 0:
            # IntervalTrigger defaults start_date to now + interval; keep that and shift it
            interval = timedelta(seconds=seconds or 0, minutes=minutes or 0, hours=hours or 0)
            trigger_kwargs["start_date"] = (
                datetime.now().astimezone() + interval + timedelta(seconds=start_delay_seconds)
            )

        trigger = IntervalTrigger(timezone=self.timezone, **trigger_kwargs)

        job_id = job_id or func.__name__
        display_name = name or job_id

        interval_parts = []
        if hours:
            interval_parts.append(f"{hours}h")
        if minutes:
            interval_parts.append(f"{minutes}m")
        if seconds:
            interval_parts.append(f"{seconds}s")
        interval_desc = "".join(interval_parts) or "unknown"

        job = self.scheduler.add_job(
            func,
            trigger,
            id=job_id,
            name=display_name,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            kwargs=kwargs,
        )

        logger.info("Registered interval job: {}, every {}", display_name, interval_desc)
        return job

    def start(self) -> None:
        """Start the scheduler; a second call only warns."""
        if self._started:
            logger.warning("Scheduler is already running")
            return

        self.scheduler.start()
        self._started = True
        logger.info("Scheduler started, timezone: {}", self.timezone)

        self._log_next_run_times()

    def stop(self) -> None:
        """Stop without waiting for running jobs."""
        if not self._started:
            return

        self.scheduler.shutdown(wait=False)
        self._started = False
        logger.info("Scheduler stopped")

    def _log_next_run_times(self) -> None:
        jobs = self.scheduler.get_jobs()
        if not jobs:
            return

        logger.info("Scheduled jobs:")
        for job in jobs:
            next_run = job.next_run_time
            if next_run:
                logger.info("  - {}: next run at {}", job.name, next_run.strftime("%Y-%m-%d %H:%M:%S"))

    def remove_job(self, job_id: str) -> None:
        job = self.scheduler.get_job(job_id)
        if job is None:
            logger.warning("Job not found: {}", job_id)
            return
        self.scheduler.remove_job(job_id)
        logger.info("Removed job: {}", job_id)

    def get_job_info(self, job_id: str) -> dict | None:
        """Return ``id``, ``name`` and ``next_run_time`` of a job, or ``None``."""
        job = self.scheduler.get_job(job_id)
        if not job:
            return None

        next_run = getattr(job, "next_run_time", None)
        return {
            "id": job.id,
            "name": job.name,
            "next_run_time": next_run.isoformat() if next_run else None,
        }
