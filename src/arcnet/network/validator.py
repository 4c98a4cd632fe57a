"""Pre-flight checks for AOA task lists."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from arcnet.exceptions import (
    CycleDetectedError,
    DuplicateIdError,
    InvalidFieldError,
    MalformedIdError,
    ValidationError,
)
from arcnet.logger import get_logger
from arcnet.models import (
    AoaTask,
    TaskLike,
    ValidationResult,
    field_value,
    parse_edge_id,
    to_number,
)

from . import engine

logger = get_logger()

EMPTY_NETWORK_ERROR = "Task list is empty"


def _check_performers(task_id: object, value: Any) -> InvalidFieldError | None:
    if value is None:
        return None  # Defaults to one performer
    number = to_number(value)
    if number is None or not number.is_integer() or number <= 0:
        return InvalidFieldError(
            task_id, "number of performers", f"must be a positive integer (got {value!r})"
        )
    return None


def _check_task(task: TaskLike, seen_ids: set[str]) -> list[ValidationError]:
    problems: list[ValidationError] = []
    raw_id = field_value(task, "id")

    try:
        parse_edge_id(raw_id)
    except MalformedIdError as e:
        problems.append(e)
    else:
        task_id = str(raw_id).strip()
        if task_id in seen_ids:
            problems.append(DuplicateIdError(task_id))
        seen_ids.add(task_id)

    name = field_value(task, "name")
    if name is None or not str(name).strip():
        problems.append(InvalidFieldError(raw_id, "name", "must not be empty"))

    duration = field_value(task, "duration")
    number = to_number(duration)
    if number is None or number < 0:
        problems.append(
            InvalidFieldError(raw_id, "duration", f"must be a number >= 0 (got {duration!r})")
        )

    if not field_value(task, "is_dummy", False):
        problem = _check_performers(raw_id, field_value(task, "number_of_performers"))
        if problem is not None:
            problems.append(problem)

    return problems


def validate_network(tasks: Sequence[TaskLike]) -> ValidationResult:
    """Validate an AOA task list before scheduling.

    Checks ids (``"<from>-<to>"``, unique), names, durations and performer
    counts. Only if all of those pass is a dry CPM pass run to surface cycles.

    Args:
        tasks: AoaTask objects or raw records

    Returns:
        ValidationResult with every problem found
    """
    if not tasks:
        return ValidationResult(is_valid=False, errors=[EMPTY_NETWORK_ERROR])

    seen_ids: set[str] = set()
    problems: list[ValidationError] = []
    for task in tasks:
        problems.extend(_check_task(task, seen_ids))

    if problems:
        for problem in problems:
            logger.checks(f"Validation: {problem}")
        return ValidationResult(is_valid=False, errors=[str(problem) for problem in problems])

    network = [task if isinstance(task, AoaTask) else AoaTask.from_record(task) for task in tasks]
    try:
        engine.calculate_event_times(network)
    except CycleDetectedError as e:
        logger.checks(f"Validation: {e}")
        return ValidationResult(is_valid=False, errors=[str(e)])

    return ValidationResult(is_valid=True)
