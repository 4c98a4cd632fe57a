"""Interactive what-if rescheduling with start-time overrides.

Overrides are view state: a map of task id -> pinned early start that is
reapplied on each recompute. The task list itself never changes, so
resetting the overrides always brings back the baseline schedule.
"""

from __future__ import annotations

from collections.abc import Sequence

from .logger import get_logger
from .models import AoaTask, ScheduleResult, StartOverride
from .network.engine import compute_schedule

logger = get_logger()


class WhatIfSession:
    """Holds the overrides for one validated AOA network, with undo."""

    def __init__(self, tasks: Sequence[AoaTask]):
        self.tasks = list(tasks)
        self.baseline = compute_schedule(self.tasks)
        self._overrides: dict[str, StartOverride] = {}
        self._history: list[dict[str, StartOverride]] = []
        self._result = self.baseline

    @property
    def overrides(self) -> dict[str, StartOverride]:
        """A copy of the current overrides."""
        return dict(self._overrides)

    @property
    def result(self) -> ScheduleResult:
        """The schedule for the current overrides."""
        return self._result

    @property
    def can_undo(self) -> bool:
        return bool(self._history)

    def move(self, task_id: str, early_start: float) -> ScheduleResult:
        """Pin a task's early start and recompute.

        The override is kept only if the recompute succeeds; otherwise the
        failed result is returned and the session is left as it was.
        """
        candidate = {**self._overrides, task_id: StartOverride(early_start)}
        result = compute_schedule(self.tasks, candidate)
        if not result.is_valid:
            logger.checks(f"What-if: move of {task_id} rejected: {'; '.join(result.errors)}")
            return result

        self._history.append(self._overrides)
        self._overrides = candidate
        self._result = result
        logger.changes(f"What-if: {task_id} starts at day {result.applied_overrides[task_id]:g}")
        return result

    def undo(self) -> ScheduleResult:
        """Restore the overrides that were in place before the last change."""
        if not self._history:
            return self._result
        self._overrides = self._history.pop()
        self._result = self._recompute()
        return self._result

    def reset(self) -> ScheduleResult:
        """Drop every override; the cleared state can itself be undone."""
        if self._overrides:
            self._history.append(self._overrides)
            self._overrides = {}
        self._result = self.baseline
        return self._result

    def _recompute(self) -> ScheduleResult:
        if not self._overrides:
            return self.baseline
        return compute_schedule(self.tasks, self._overrides)
