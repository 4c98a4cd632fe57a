"""Critical Path Method over activity-on-arc networks."""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from arcnet.exceptions import CycleDetectedError, OverrideError
from arcnet.logger import Verbosity, enabled, get_logger
from arcnet.models import (
    CRITICAL_TOLERANCE,
    AoaTask,
    EdgeId,
    ScheduleResult,
    StartOverride,
    TaskTiming,
)

from .sequencer import topological_order

logger = get_logger()


@dataclass
class NetworkTimes:
    """Raw output of one forward/backward pass."""

    timings: dict[str, TaskTiming]
    project_duration: float
    early_event_time: dict[int, float]
    late_event_time: dict[int, float]


def calculate_event_times(
    tasks: Sequence[AoaTask],
    pinned_starts: Mapping[str, float] | None = None,
) -> NetworkTimes:
    """Run the forward and backward passes.

    Args:
        tasks: AOA tasks with well-formed, unique ids
        pinned_starts: Task id -> early start to use instead of the event time

    Raises:
        CycleDetectedError: If the event graph contains a cycle
    """
    pinned_starts = pinned_starts or {}
    edges: list[tuple[AoaTask, EdgeId]] = [(task, task.edge) for task in tasks]

    incoming: dict[int, list[tuple[AoaTask, EdgeId]]] = {}
    outgoing: dict[int, list[tuple[AoaTask, EdgeId]]] = {}
    for task, edge in edges:
        for node in (edge.start, edge.end):
            incoming.setdefault(node, [])
            outgoing.setdefault(node, [])
        outgoing[edge.start].append((task, edge))
        incoming[edge.end].append((task, edge))

    order = topological_order(
        {node: [edge.start for _, edge in incoming[node]] for node in incoming}
    )

    # Forward pass
    early_event_time = dict.fromkeys(order, 0.0)
    early_start: dict[str, float] = {}
    early_finish: dict[str, float] = {}
    for node in order:
        for task, edge in outgoing[node]:
            start = pinned_starts.get(task.id, early_event_time[node])
            early_start[task.id] = start
            early_finish[task.id] = start + task.duration
            early_event_time[edge.end] = max(early_event_time[edge.end], early_finish[task.id])

    project_duration = max([0.0, *early_event_time.values()])

    # Backward pass
    late_event_time = dict.fromkeys(order, project_duration)
    late_start: dict[str, float] = {}
    late_finish: dict[str, float] = {}
    for node in reversed(order):
        for task, edge in incoming[node]:
            late_finish[task.id] = late_event_time[node]
            late_start[task.id] = late_finish[task.id] - task.duration
            late_event_time[edge.start] = min(late_event_time[edge.start], late_start[task.id])

    timings: dict[str, TaskTiming] = {}
    for task, edge in edges:
        total_float = late_start[task.id] - early_start[task.id]
        timings[task.id] = TaskTiming(
            early_start=early_start[task.id],
            early_finish=early_finish[task.id],
            late_start=late_start[task.id],
            late_finish=late_finish[task.id],
            total_float=total_float,
            free_float=early_event_time[edge.end] - early_finish[task.id],
            is_critical=abs(total_float) < CRITICAL_TOLERANCE,
        )

    if enabled(Verbosity.DEBUG):
        for node in order:
            logger.debug(
                f"  event {node}: early={early_event_time[node]:g} late={late_event_time[node]:g}"
            )

    return NetworkTimes(
        timings=timings,
        project_duration=project_duration,
        early_event_time=early_event_time,
        late_event_time=late_event_time,
    )


def find_critical_path(tasks: Sequence[AoaTask], timings: Mapping[str, TaskTiming]) -> list[int]:
    """Chain critical tasks into a sequence of event ids.

    Starts at the first critical task's start event (in list order) that no
    critical task leads into and, at every event, follows the first outgoing
    critical task in list order. When the critical subgraph branches, only
    that first branch is reported.
    """
    critical = [task.edge for task in tasks if timings[task.id].is_critical]
    if not critical:
        return []

    next_events: dict[int, list[int]] = {}
    for edge in critical:
        next_events.setdefault(edge.start, []).append(edge.end)

    targets = {edge.end for edge in critical}
    start = next((edge.start for edge in critical if edge.start not in targets), None)
    if start is None:
        return []

    path = [start]
    current = start
    while next_events.get(current):
        current = next_events[current][0]
        if current in path:
            break
        path.append(current)
    return path


def _resolve_overrides(
    tasks: Sequence[AoaTask],
    overrides: Mapping[str, StartOverride],
) -> dict[str, float]:
    """Check overrides and clamp each into its task's [early start, late start] window.

    The window comes from an override-free pass over the same tasks.

    Raises:
        OverrideError: For an unknown task id or a non-finite start
    """
    known_ids = {task.id for task in tasks}
    for task_id, override in overrides.items():
        if task_id not in known_ids:
            raise OverrideError(task_id, "no such task in the network")
        if not math.isfinite(override.early_start):
            raise OverrideError(task_id, f"start {override.early_start} is not a finite number")

    natural = calculate_event_times(tasks).timings
    pinned: dict[str, float] = {}
    for task_id, override in overrides.items():
        window = natural[task_id]
        start = min(max(override.early_start, window.early_start), window.late_start)
        if start != override.early_start:
            logger.checks(
                f"Override for {task_id} clamped from {override.early_start:g} to {start:g} "
                f"(allowed {window.early_start:g}..{window.late_start:g})"
            )
        pinned[task_id] = start
    return pinned


def compute_schedule(
    tasks: Sequence[AoaTask],
    overrides: Mapping[str, StartOverride] | None = None,
) -> ScheduleResult:
    """Compute the CPM schedule of a validated AOA task list.

    Overrides pin a task's early start; they are clamped into the task's
    natural [early start, late start] window and applied on every call
    without touching the tasks themselves.

    Each window comes from the override-free schedule, so overrides are
    clamped independently of one another: pinning a task late and its
    successor early can start the successor before the pinned task finishes.

    Returns:
        The full schedule, or an invalid result with errors and no timings if the
        network has a cycle or an override is rejected
    """
    tasks = list(tasks)
    try:
        pinned = _resolve_overrides(tasks, overrides) if overrides else {}
        times = calculate_event_times(tasks, pinned)
    except (CycleDetectedError, OverrideError) as e:
        logger.checks(f"Schedule failed: {e}")
        return ScheduleResult.failed([str(e)])

    critical_path = find_critical_path(tasks, times.timings)
    logger.changes(
        f"Project duration {times.project_duration:g} days, "
        f"critical path {'-'.join(str(node) for node in critical_path)}"
    )

    return ScheduleResult(
        tasks=tasks,
        timings=times.timings,
        project_duration=times.project_duration,
        critical_path=critical_path,
        early_event_time=times.early_event_time,
        late_event_time=times.late_event_time,
        applied_overrides=pinned,
    )
