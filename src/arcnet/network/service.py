"""High-level planning service: raw task list in, schedule out."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from arcnet.config import ArcnetConfig
from arcnet.exceptions import CycleDetectedError
from arcnet.logger import get_logger
from arcnet.models import (
    AoaTask,
    ScheduleResult,
    StartOverride,
    TaskLike,
    field_value,
    needs_conversion,
    to_number,
    to_performers,
)

from .converter import check_acyclic, convert_aon_to_aoa, task_duration_days
from .engine import compute_schedule
from .validator import EMPTY_NETWORK_ERROR, validate_network

logger = get_logger()


class PlanningService:
    """Runs the full calculation for a task list.

    This service coordinates:
    - AON detection and conversion (ConversionOptions from the config)
    - Duration normalization for AOA input
    - Network validation
    - The CPM engine, with optional start overrides

    Every call derives a fresh schedule from its input.
    """

    def __init__(self, config: ArcnetConfig | None = None):
        self.config = config or ArcnetConfig()

    def normalize_aoa_record(self, record: TaskLike) -> dict[str, Any]:
        """Copy an AOA record, deriving its duration from labor intensity if given.

        Dummy edges always get duration 0. Values that are not numeric are left
        untouched for the validator to report.
        """
        if isinstance(record, AoaTask):
            normalized = record.to_record()
        else:
            normalized = dict(record)

        if field_value(normalized, "is_dummy", False):
            normalized["duration"] = 0.0
            return normalized

        labor = to_number(field_value(normalized, "labor_intensity"))
        if labor is not None and labor > 0:
            performers = to_performers(field_value(normalized, "number_of_performers"))
            normalized["duration"] = float(
                task_duration_days(labor, None, performers, self.config.conversion.hours_per_day)
            )
        return normalized

    def prepare(self, records: Sequence[TaskLike]) -> tuple[list[AoaTask], list[str]]:
        """Turn raw records into a validated AOA task list.

        Returns:
            Tuple of (tasks, errors); tasks is empty whenever errors is not
        """
        if not records:
            return ([], [EMPTY_NETWORK_ERROR])

        candidates: Sequence[TaskLike]
        if needs_conversion(records):
            logger.changes(f"Task list is in AON form; converting {len(records)} tasks")
            try:
                check_acyclic(records)
            except CycleDetectedError as e:
                return ([], [str(e)])
            candidates = convert_aon_to_aoa(records, self.config.conversion)
        else:
            logger.changes(f"Task list is in AOA form ({len(records)} edges)")
            candidates = [self.normalize_aoa_record(record) for record in records]

        validation = validate_network(candidates)
        if not validation.is_valid:
            return ([], validation.errors)

        tasks = [
            task if isinstance(task, AoaTask) else AoaTask.from_record(task)
            for task in candidates
        ]
        return (tasks, [])

    def plan(
        self,
        records: Sequence[TaskLike],
        overrides: Mapping[str, StartOverride] | None = None,
    ) -> ScheduleResult:
        """Convert if needed, validate and schedule.

        Returns:
            The schedule, or an invalid result carrying the errors
        """
        tasks, errors = self.prepare(records)
        if errors:
            return ScheduleResult.failed(errors)
        return compute_schedule(tasks, overrides)


def plan_project(
    records: Sequence[TaskLike],
    config: ArcnetConfig | None = None,
    overrides: Mapping[str, StartOverride] | None = None,
) -> ScheduleResult:
    """Shortcut for PlanningService(config).plan(records, overrides)."""
    return PlanningService(config).plan(records, overrides)
