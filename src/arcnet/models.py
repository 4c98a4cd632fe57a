"""Data models for arcnet task networks.

Two task shapes exist. An AON (activity-on-node) task names its predecessors
explicitly. An AOA (activity-on-arc) task is an edge between two numbered
events and its id is the event pair, ``"<from>-<to>"``. Computed schedule
values never live on the task objects: the engine returns them in a separate
``TaskTiming`` record keyed by task id.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Union

from .exceptions import MalformedIdError

EDGE_ID_PATTERN = re.compile(r"[0-9]+-[0-9]+")

# A task counts as critical when its total float is within this tolerance of zero
CRITICAL_TOLERANCE = 1e-3

# Raw records coming from files or forms may use the camelCase keys
_CAMEL_CASE_KEYS = {
    "labor_intensity": "laborIntensity",
    "number_of_performers": "numberOfPerformers",
    "is_dummy": "isDummy",
    "source_task_id": "sourceTaskId",
}


@dataclass(frozen=True)
class EdgeId:
    """The pair of event ids an AOA task connects."""

    start: int
    end: int

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"


def is_edge_id(task_id: object) -> bool:
    """Return True if the id has the AOA form ``"<from>-<to>"`` (surrounding spaces allowed)."""
    if task_id is None:
        return False
    return EDGE_ID_PATTERN.fullmatch(str(task_id).strip()) is not None


def parse_edge_id(task_id: object) -> EdgeId:
    """Split an AOA task id into its two event ids.

    Raises:
        MalformedIdError: If the id is not of the form ``"<from>-<to>"``
    """
    if not is_edge_id(task_id):
        raise MalformedIdError(task_id)
    start, end = str(task_id).strip().split("-")
    return EdgeId(int(start), int(end))


def field_value(task: object, name: str, default: Any = None) -> Any:
    """Read a field from a task dataclass or a raw record.

    Records may use either the snake_case field name or its camelCase form.
    """
    if isinstance(task, Mapping):
        if name in task:
            return task[name]
        camel = _CAMEL_CASE_KEYS.get(name)
        if camel is not None and camel in task:
            return task[camel]
        return default
    return getattr(task, name, default)


def needs_conversion(tasks: Sequence[object]) -> bool:
    """Decide whether a task list is AON and must go through the converter.

    A single id that is not an edge id makes the whole list AON.
    """
    return any(not is_edge_id(field_value(task, "id")) for task in tasks)


def to_number(value: Any) -> float | None:
    """Coerce a raw value to a finite float, or None if it is not numeric."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def to_performers(value: Any) -> int:
    """Coerce a raw performer count to an integer of at least 1."""
    number = to_number(value)
    if number is None:
        return 1
    return max(1, int(number))


@dataclass(frozen=True)
class AonTask:
    """A task in activity-on-node form, as authored by the user."""

    id: str | int
    name: str = ""
    duration: float | None = None
    labor_intensity: float | None = None  # Total effort in person-hours
    number_of_performers: int = 1
    predecessors: Sequence[str | int] | str = ()  # Ids, or a "1, 2; 3" style string
    phase: float | None = None


@dataclass(frozen=True)
class AoaTask:
    """A task (or dummy) as an edge between two events."""

    id: str
    name: str
    duration: float  # Days; exactly 0 for dummy edges
    labor_intensity: float = 0.0
    number_of_performers: int = 1
    is_dummy: bool = False
    source_task_id: int | None = None  # Originating AON task, for converted real edges
    phase: float | None = None

    @property
    def edge(self) -> EdgeId:
        """The (from, to) event pair encoded in the id."""
        return parse_edge_id(self.id)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> AoaTask:
        """Build a task from a raw record (assumed to have passed validation)."""
        source = field_value(record, "source_task_id")
        source_number = to_number(source)
        return cls(
            id=str(field_value(record, "id", "")).strip(),
            name=str(field_value(record, "name", "") or ""),
            duration=to_number(field_value(record, "duration")) or 0.0,
            labor_intensity=to_number(field_value(record, "labor_intensity")) or 0.0,
            number_of_performers=to_performers(field_value(record, "number_of_performers")),
            is_dummy=bool(field_value(record, "is_dummy", False)),
            source_task_id=int(source_number) if source_number is not None else None,
            phase=to_number(field_value(record, "phase")),
        )

    def to_record(self) -> dict[str, Any]:
        """Convert to a plain dictionary for YAML/JSON output."""
        record: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "duration": self.duration,
            "labor_intensity": self.labor_intensity,
            "number_of_performers": self.number_of_performers,
        }
        if self.is_dummy:
            record["is_dummy"] = True
        if self.source_task_id is not None:
            record["source_task_id"] = self.source_task_id
        if self.phase is not None:
            record["phase"] = self.phase
        return record


# Anything the validator and the service accept as a task
TaskLike = Union[AoaTask, Mapping[str, Any]]


@dataclass(frozen=True)
class StartOverride:
    """A user-pinned early start for one task (what-if view state, never persisted)."""

    early_start: float


@dataclass(frozen=True)
class TaskTiming:
    """Computed schedule values for one task, in days from project start."""

    early_start: float
    early_finish: float
    late_start: float
    late_finish: float
    total_float: float
    free_float: float
    is_critical: bool


def _default_str_list() -> list[str]:
    return []


def _default_float_dict() -> dict[str, float]:
    return {}


@dataclass
class ValidationResult:
    """Outcome of validating a task list."""

    is_valid: bool
    errors: list[str] = field(default_factory=_default_str_list)


@dataclass
class ScheduleResult:
    """Complete CPM schedule, or an empty result carrying errors."""

    tasks: list[AoaTask]
    timings: dict[str, TaskTiming]
    project_duration: float
    critical_path: list[int]  # Event ids, start to finish
    early_event_time: dict[int, float]
    late_event_time: dict[int, float]
    is_valid: bool = True
    errors: list[str] = field(default_factory=_default_str_list)
    applied_overrides: dict[str, float] = field(default_factory=_default_float_dict)

    @classmethod
    def failed(cls, errors: list[str]) -> ScheduleResult:
        """Build the zeroed result returned when no schedule could be computed."""
        return cls(
            tasks=[],
            timings={},
            project_duration=0.0,
            critical_path=[],
            early_event_time={},
            late_event_time={},
            is_valid=False,
            errors=list(errors),
        )

    def timing(self, task_id: str) -> TaskTiming:
        """Get the computed timing of a task (KeyError if unknown)."""
        return self.timings[task_id]

    def critical_tasks(self) -> list[AoaTask]:
        """All critical tasks, in task list order."""
        return [task for task in self.tasks if self.timings[task.id].is_critical]

    def critical_path_task_ids(self) -> list[str]:
        """Map the critical event sequence back to the task ids along it."""
        by_edge: dict[tuple[int, int], str] = {}
        for task in self.critical_tasks():
            edge = task.edge
            by_edge.setdefault((edge.start, edge.end), task.id)
        return [
            by_edge[pair]
            for pair in zip(self.critical_path, self.critical_path[1:])
            if pair in by_edge
        ]

    def to_records(self) -> list[dict[str, Any]]:
        """Tasks joined with their timings, for tables and exports."""
        records: list[dict[str, Any]] = []
        for task in self.tasks:
            timing = self.timings[task.id]
            edge = task.edge
            record = task.to_record()
            record.update(
                early_start=timing.early_start,
                early_finish=timing.early_finish,
                late_start=timing.late_start,
                late_finish=timing.late_finish,
                total_float=timing.total_float,
                free_float=timing.free_float,
                is_critical=timing.is_critical,
                event_float=self.late_event_time[edge.end] - self.early_event_time[edge.end],
            )
            records.append(record)
        return records
