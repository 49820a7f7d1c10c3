from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from .repositories import CountQuery, Repository
from .schemas import DashboardStats
from .utils import percentage, start_of_day

taskflow_access_logger = logging.getLogger("taskflow.access")


@dataclass(frozen=True)
class TimeBoundaries:
    """
    Calendar boundaries used by the dashboard, all relative to "now".

    - today: start of now's calendar day
    - yesterday: today - 1 day
    - this_week_start: today - 7 days
    - last_week_start: today - 14 days
    """
    now: datetime
    today: datetime
    yesterday: datetime
    this_week_start: datetime
    last_week_start: datetime


# PUBLIC_INTERFACE
def time_boundaries(now: datetime) -> TimeBoundaries:
    today = start_of_day(now)
    return TimeBoundaries(
        now=now,
        today=today,
        yesterday=today - timedelta(days=1),
        this_week_start=today - timedelta(days=7),
        last_week_start=today - timedelta(days=14),
    )


# PUBLIC_INTERFACE
def completion_rate(completed_tasks: int, total_tasks: int) -> int:
    """Completed share of all tasks in percent; 0 when there are no tasks."""
    return percentage(completed_tasks, total_tasks)


# PUBLIC_INTERFACE
def productivity_change(this_week_completed: int, last_week_completed: int) -> int:
    """
    Week-over-week change in completions, in percent.

    Going from nothing last week to something this week counts as a full 100%
    improvement; nothing in both weeks is no change.
    """
    if last_week_completed > 0:
        return percentage(this_week_completed - last_week_completed, last_week_completed)
    if this_week_completed > 0:
        return 100
    return 0


# PUBLIC_INTERFACE
def compute_dashboard_stats(repository: Repository, user_id: str, now: datetime) -> DashboardStats:
    """
    Compute the dashboard counters of `user_id` as of `now`.

    Each counter is an independent count query against the repository. Completion
    time is approximated by `updated_at`, the last mutation of a completed todo.
    """
    b = time_boundaries(now)

    total_tasks = repository.count(user_id)
    completed_tasks = repository.count(user_id, CountQuery(completed=True))
    active_tasks = repository.count(user_id, CountQuery(completed=False))
    today_tasks = repository.count(user_id, CountQuery(created_from=b.today, created_before=b.now))
    yesterday_tasks = repository.count(user_id, CountQuery(created_from=b.yesterday, created_before=b.today))
    this_week_completed = repository.count(
        user_id, CountQuery(completed=True, updated_from=b.this_week_start, updated_before=b.now)
    )
    last_week_completed = repository.count(
        user_id, CountQuery(completed=True, updated_from=b.last_week_start, updated_before=b.this_week_start)
    )

    stats = DashboardStats(
        total_tasks=total_tasks,
        completed_tasks=completed_tasks,
        active_tasks=active_tasks,
        completion_rate=completion_rate(completed_tasks, total_tasks),
        productivity_change=productivity_change(this_week_completed, last_week_completed),
        tasks_change=today_tasks - yesterday_tasks,
        this_week_completed=this_week_completed,
    )
    taskflow_access_logger.debug(f"Dashboard stats for user {user_id}: {stats.model_dump()}")
    return stats
