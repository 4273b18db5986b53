"""Cycle scheduling.

This package provides:
- CycleScheduler: Cron-driven, non-overlapping runner for monitoring cycles
- SchedulerStats: Run, failure and skipped-overlap counters
"""

from gitscope.scheduler.cron import CycleScheduler, SchedulerStats

__all__ = [
    "CycleScheduler",
    "SchedulerStats",
]
