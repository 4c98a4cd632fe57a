"""Resource load profile of a computed schedule."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

from .config import DEFAULT_HOURS_PER_DAY, WorkloadConfig
from .models import AoaTask, ScheduleResult


@dataclass(frozen=True)
class DailyLoad:
    """Number of performers busy on one day (tasks at their early start)."""

    day: int
    load: int


@dataclass
class WorkloadSummary:
    """Aggregate workload figures for a schedule."""

    total_labor_intensity: float
    total_performers: int
    average_load: float  # Percent
    peak_load: int
    largest_crew: int  # Most performers any single task needs
    exceeds_limit: bool


def daily_load(result: ScheduleResult) -> list[DailyLoad]:
    """Performers needed on each day, with every task at its (possibly pinned) early start."""
    if not result.tasks or not result.project_duration:
        return []

    loads = [0] * (math.ceil(result.project_duration) + 1)
    for task in result.tasks:
        if task.is_dummy:
            continue
        timing = result.timings[task.id]
        first_day = math.floor(timing.early_start)
        last_day = math.ceil(timing.early_finish)
        for day in range(max(first_day, 0), min(last_day, len(loads))):
            loads[day] += task.number_of_performers

    return [DailyLoad(day=day, load=load) for day, load in enumerate(loads)]


def total_labor_intensity(tasks: Sequence[AoaTask]) -> float:
    return sum(task.labor_intensity for task in tasks)


def total_performers(tasks: Sequence[AoaTask]) -> int:
    return sum(task.number_of_performers for task in tasks if not task.is_dummy)


def average_load(tasks: Sequence[AoaTask], project_duration: float, hours_per_day: float) -> float:
    """Labor as a percentage of what all performers could deliver over the project."""
    performers = total_performers(tasks)
    if not project_duration or not performers:
        return 0.0
    return total_labor_intensity(tasks) / (performers * project_duration * hours_per_day) * 100


def summarize_workload(
    result: ScheduleResult, config: WorkloadConfig | None = None
) -> WorkloadSummary:
    """Collect the workload figures shown next to a schedule."""
    config = config or WorkloadConfig()
    hours_per_day = config.hours_per_day or DEFAULT_HOURS_PER_DAY
    profile = daily_load(result)
    largest_crew = max(
        (task.number_of_performers for task in result.tasks if not task.is_dummy), default=0
    )
    return WorkloadSummary(
        total_labor_intensity=total_labor_intensity(result.tasks),
        total_performers=total_performers(result.tasks),
        average_load=average_load(result.tasks, result.project_duration, hours_per_day),
        peak_load=max((entry.load for entry in profile), default=0),
        largest_crew=largest_crew,
        exceeds_limit=config.resource_limit is not None and largest_crew > config.resource_limit,
    )
