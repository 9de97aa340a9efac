"""
Nightly absence sweep.

Once a day, at ``ABSENCE_SWEEP_TIME`` in the configured zone, every employee
without an attendance row for the day gets an Absent row. The sweeper runs
as a single asyncio task owned by the application lifespan.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from hrdesk.core.clock import local_tz, parse_hhmm
from hrdesk.core.config import settings
from hrdesk.services.attendance import mark_absent_employees

logger = logging.getLogger(__name__)


class AbsenceSweeper:
    def __init__(
        self,
        session_factory: Callable[[], AsyncSession],
        tz: ZoneInfo | None = None,
        run_at: time | None = None,
        retry_delay: float | None = None,
    ) -> None:
        self._session_factory = session_factory
        self.tz = tz or local_tz()
        self.run_at = run_at or parse_hhmm(settings.ABSENCE_SWEEP_TIME)
        self.retry_delay = (
            settings.ABSENCE_SWEEP_RETRY_SECONDS if retry_delay is None else retry_delay
        )
        self._task: asyncio.Task | None = None
        self._stopping = asyncio.Event()
        self._lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def seconds_until_next_run(self, now: datetime | None = None) -> float:
        """Seconds until the next run time; tomorrow's once today's has passed."""
        if now is None:
            local_now = datetime.now(self.tz)
        elif now.tzinfo is None:
            local_now = now.replace(tzinfo=self.tz)
        else:
            local_now = now.astimezone(self.tz)

        target = datetime.combine(local_now.date(), self.run_at, tzinfo=self.tz)
        if local_now >= target:
            target = datetime.combine(
                local_now.date() + timedelta(days=1), self.run_at, tzinfo=self.tz
            )
        # Compare in UTC so a DST change between now and target is counted.
        delta = target.astimezone(timezone.utc) - local_now.astimezone(timezone.utc)
        return delta.total_seconds()

    async def run_once(self, day: date | None = None) -> int:
        async with self._lock:
            day = day or datetime.now(self.tz).date()
            async with self._session_factory() as db:
                return await mark_absent_employees(db, day)

    def start(self) -> None:
        if self.running:
            return
        self._stopping = asyncio.Event()
        self._task = asyncio.create_task(self._run(), name="absence-sweeper")
        logger.info(
            "Absence sweeper started (daily at %s %s)", self.run_at.strftime("%H:%M"), self.tz
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        self._stopping.set()
        await self._task
        self._task = None
        logger.info("Absence sweeper stopped")

    async def _wait(self, seconds: float) -> bool:
        """Sleep up to ``seconds``; True if stop was requested meanwhile."""
        try:
            await asyncio.wait_for(self._stopping.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True

    async def _run(self) -> None:
        while not self._stopping.is_set():
            delay = self.seconds_until_next_run()
            logger.info("Next absence sweep in %.0f seconds", delay)
            if await self._wait(delay):
                break

            try:
                await self.run_once()
            except Exception:
                logger.exception(
                    "Absence sweep failed, retrying schedule in %.0f seconds",
                    self.retry_delay,
                )
                if await self._wait(self.retry_delay):
                    break
