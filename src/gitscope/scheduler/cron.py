"""Cron-driven scheduler for monitoring cycles.

Wraps APScheduler's AsyncIOScheduler with a single job. Cycles never
overlap: a trigger that fires while a cycle is still running is skipped
and logged, not queued.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from apscheduler.events import EVENT_JOB_MAX_INSTANCES, JobSubmissionEvent
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from gitscope.logging import get_logger

log = get_logger("gitscope.scheduler.cron")

JOB_ID = "gitscope-monitor"


@dataclass
class SchedulerStats:
    """Statistics about scheduled cycle execution."""

    total_runs: int = 0
    failed_runs: int = 0
    skipped_overlaps: int = 0
    last_run: datetime | None = None
    last_error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "total_runs": self.total_runs,
            "failed_runs": self.failed_runs,
            "skipped_overlaps": self.skipped_overlaps,
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "last_error": self.last_error,
        }


class CycleScheduler:
    """Runs a cycle function on a crontab schedule, one at a time."""

    def __init__(
        self,
        cycle_fn: Callable[[], Awaitable[Any]],
        schedule: str,
        timezone: str = "UTC",
    ):
        """Initialize the scheduler.

        Args:
            cycle_fn: Coroutine function running one monitoring cycle.
            schedule: Five-field crontab expression.
            timezone: Timezone the schedule is interpreted in.
        """
        self._cycle_fn = cycle_fn
        self._schedule = schedule
        self._timezone = timezone
        self._trigger = CronTrigger.from_crontab(schedule, timezone=timezone)
        self._scheduler: AsyncIOScheduler | None = None
        self._busy = False
        self._stats = SchedulerStats()

    @property
    def stats(self) -> SchedulerStats:
        """Get scheduler statistics."""
        return self._stats

    @property
    def is_running(self) -> bool:
        """Check if the scheduler is running."""
        return self._scheduler is not None and self._scheduler.running

    @property
    def is_busy(self) -> bool:
        """Check if a cycle is in flight."""
        return self._busy

    def start(self) -> None:
        """Start the scheduler. Must be called from within the event loop."""
        if self.is_running:
            log.warning("scheduler_already_running")
            return

        self._scheduler = AsyncIOScheduler(timezone=self._timezone)
        self._scheduler.add_job(
            self._tick,
            trigger=self._trigger,
            id=JOB_ID,
            name="GitScope monitoring cycle",
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        self._scheduler.add_listener(self._on_max_instances, EVENT_JOB_MAX_INSTANCES)
        self._scheduler.start()
        log.info("scheduler_started", schedule=self._schedule, timezone=self._timezone)

    def stop(self) -> None:
        """Stop the scheduler without waiting for a running cycle."""
        if self._scheduler is not None and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        self._scheduler = None
        log.info("scheduler_stopped")

    async def run_once(self) -> None:
        """Run a cycle now, unless one is already in flight."""
        await self._tick()

    async def _tick(self) -> None:
        """Run one cycle, containing any failure."""
        if self._busy:
            self._record_overlap()
            return

        self._busy = True
        self._stats.total_runs += 1
        self._stats.last_run = datetime.now(UTC)
        log.info("monitor_cycle_starting")
        try:
            await self._cycle_fn()
            log.info("monitor_cycle_finished")
        except Exception as e:
            self._stats.failed_runs += 1
            self._stats.last_error = str(e)
            log.error("monitor_cycle_crashed", error=str(e))
        finally:
            self._busy = False

    def _on_max_instances(self, event: JobSubmissionEvent) -> None:
        """APScheduler refused to start a second concurrent instance."""
        self._record_overlap()

    def _record_overlap(self) -> None:
        self._stats.skipped_overlaps += 1
        log.warning("monitor_cycle_overlap_skipped", reason="previous cycle still running")
