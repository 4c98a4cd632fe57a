"""Conversion of activity-on-node task lists into activity-on-arc networks.

Every AON task becomes one real AOA edge with a freshly numbered end event.
Its start event is the shared end event of its predecessors when there is
exactly one, otherwise a merge event fed by zero-duration dummy edges. Merge
events are cached by their set of incoming events and phase anchors by the
previous phase, so the same structure is never wired twice.

Tasks are walked in dependency order with ties broken by ascending id, and a
phase anchor only joins tasks of earlier phases that have already been
walked. Phases are therefore honoured only when ids grow with the phase: a
phase 2 task numbered below every phase 1 task starts at the project start
event alongside them.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from arcnet.config import DEFAULT_HOURS_PER_DAY, ConversionOptions
from arcnet.logger import get_logger
from arcnet.models import AoaTask, field_value, to_number, to_performers

from .sequencer import ascending_topological_order, topological_order

logger = get_logger()

START_EVENT = 1

DUMMY_NAME = "Dummy"
MERGE_DUMMY_NAME = "Dummy (predecessor merge)"
ANCHOR_DUMMY_NAME = "Dummy (phase anchor)"
SINK_DUMMY_NAME = "Dummy (merge into finish)"

_PREDECESSOR_SEPARATORS = re.compile(r"[,;\s]+")


@dataclass
class _AonNode:
    """An AON task after normalization."""

    id: int
    name: str
    predecessors: list[int]
    duration_days: int
    performers: int
    labor_intensity: float | None
    phase: float | None


@dataclass
class _EventPair:
    start: int
    end: int


def _default_edge_list() -> list[AoaTask]:
    return []


def _default_id_set() -> set[str]:
    return set()


def _default_merge_dict() -> dict[tuple[int, ...], int]:
    return {}


def _default_anchor_dict() -> dict[float, int]:
    return {}


def _default_event_dict() -> dict[int, _EventPair]:
    return {}


def _default_node_list() -> list[_AonNode]:
    return []


@dataclass
class _ConversionState:
    """Mutable bookkeeping for one conversion call."""

    event_counter: int = START_EVENT
    edges: list[AoaTask] = field(default_factory=_default_edge_list)
    seen_dummies: set[str] = field(default_factory=_default_id_set)
    merge_events: dict[tuple[int, ...], int] = field(default_factory=_default_merge_dict)
    anchor_events: dict[float, int] = field(default_factory=_default_anchor_dict)
    task_events: dict[int, _EventPair] = field(default_factory=_default_event_dict)
    processed: list[_AonNode] = field(default_factory=_default_node_list)

    def next_event(self) -> int:
        self.event_counter += 1
        return self.event_counter

    def add_dummy(self, from_event: int, to_event: int, name: str = DUMMY_NAME) -> None:
        """Add a dummy edge unless an identical one already exists."""
        edge_id = f"{from_event}-{to_event}"
        if edge_id in self.seen_dummies:
            return
        self.seen_dummies.add(edge_id)
        self.edges.append(
            AoaTask(
                id=edge_id,
                name=name,
                duration=0.0,
                labor_intensity=0.0,
                number_of_performers=1,
                is_dummy=True,
            )
        )


def _to_task_id(value: Any) -> int | None:
    number = to_number(value)
    if number is None or not number.is_integer():
        return None
    return int(number)


def _normalize_predecessors(raw: Any) -> list[int]:
    """Turn a list or a delimiter-separated string into an ordered list of unique ids."""
    if isinstance(raw, str):
        items: Iterable[Any] = [part for part in _PREDECESSOR_SEPARATORS.split(raw) if part]
    elif isinstance(raw, Iterable):
        items = raw
    else:
        items = []

    result: list[int] = []
    for item in items:
        pred = _to_task_id(item)
        if pred is not None and pred not in result:
            result.append(pred)
    return result


def task_duration_days(
    labor_intensity: Any, duration: Any, performers: int, hours_per_day: float
) -> int:
    """Duration in whole days: from labor when it is positive, else the given duration.

    Always at least one day.
    """
    labor = to_number(labor_intensity)
    if labor is not None and labor > 0:
        return max(1, math.ceil(labor / (hours_per_day * performers)))
    days = to_number(duration) or 1.0
    return max(1, math.ceil(days))


def _normalize_tasks(
    tasks: Sequence[object], hours_per_day: float = DEFAULT_HOURS_PER_DAY
) -> dict[int, _AonNode]:
    nodes: dict[int, _AonNode] = {}
    for task in tasks:
        raw_id = field_value(task, "id")
        task_id = _to_task_id(raw_id)
        if task_id is None:
            logger.checks(f"Skipping task with non-numeric id {raw_id!r}")
            continue
        if task_id in nodes:
            logger.warning(f"Task id {task_id} appears more than once; keeping the last one")

        performers = to_performers(field_value(task, "number_of_performers"))
        labor = field_value(task, "labor_intensity")
        nodes[task_id] = _AonNode(
            id=task_id,
            name=str(field_value(task, "name") or field_value(task, "title") or raw_id),
            predecessors=_normalize_predecessors(field_value(task, "predecessors")),
            duration_days=task_duration_days(
                labor, field_value(task, "duration"), performers, hours_per_day
            ),
            performers=performers,
            labor_intensity=to_number(labor),
            phase=to_number(field_value(task, "phase")),
        )

    for node in nodes.values():
        unknown = [pred for pred in node.predecessors if pred not in nodes]
        if unknown:
            logger.checks(f"Task {node.id}: dropping unknown predecessors {unknown}")
            node.predecessors = [pred for pred in node.predecessors if pred in nodes]
    return nodes


def check_acyclic(tasks: Sequence[object]) -> None:
    """Check that the AON dependency graph has no cycle.

    Raises:
        CycleDetectedError: Naming the task where the cycle was found
    """
    nodes = _normalize_tasks(tasks)
    topological_order({node.id: node.predecessors for node in nodes.values()}, kind="task")


def _terminal_tasks_in_phase(
    state: _ConversionState, phase: float, same_phase_successors: dict[int, set[int]]
) -> list[_AonNode]:
    return [
        node
        for node in state.processed
        if node.phase == phase and not same_phase_successors[node.id]
    ]


def _phase_start_event(
    state: _ConversionState,
    node: _AonNode,
    phases: list[float],
    same_phase_successors: dict[int, set[int]],
) -> int:
    """Start event for a task without predecessors: the global start or a phase anchor."""
    if node.phase is None:
        return START_EVENT
    previous_index = phases.index(node.phase) - 1
    if previous_index < 0:
        return START_EVENT
    previous_phase = phases[previous_index]

    anchors = _terminal_tasks_in_phase(state, previous_phase, same_phase_successors)
    if not anchors:
        # Fall back to the nearest earlier phase that has terminal tasks
        for index in range(previous_index - 1, -1, -1):
            anchors = _terminal_tasks_in_phase(state, phases[index], same_phase_successors)
            if anchors:
                break
    if not anchors:
        anchors = [other for other in state.processed if other.phase == previous_phase]

    candidates = [state.task_events[anchor.id].end for anchor in anchors]
    if not candidates:
        return START_EVENT
    if len(candidates) == 1:
        return candidates[0]

    if previous_phase in state.anchor_events:
        return state.anchor_events[previous_phase]
    anchor_event = state.next_event()
    for end_event in sorted(set(candidates)):
        state.add_dummy(end_event, anchor_event, ANCHOR_DUMMY_NAME)
    state.anchor_events[previous_phase] = anchor_event
    logger.debug(f"Phase {node.phase}: anchor event {anchor_event} after phase {previous_phase}")
    return anchor_event


def _merge_start_event(state: _ConversionState, node: _AonNode) -> int:
    """Start event for a task with predecessors, merging their end events if needed."""
    ends: list[int] = []
    for pred in node.predecessors:
        events = state.task_events.get(pred)
        if events is not None and events.end not in ends:
            ends.append(events.end)

    if not ends:
        return START_EVENT
    if len(ends) == 1:
        return ends[0]

    key = tuple(sorted(ends))
    if key in state.merge_events:
        return state.merge_events[key]
    merge_event = state.next_event()
    for end_event in ends:
        state.add_dummy(end_event, merge_event, MERGE_DUMMY_NAME)
    state.merge_events[key] = merge_event
    logger.debug(f"Task {node.id}: merge event {merge_event} for predecessor events {list(key)}")
    return merge_event


def _add_sink(state: _ConversionState) -> None:
    """Funnel every terminal event into one finish event."""
    start_events = {edge.edge.start for edge in state.edges}
    terminal_events: list[int] = []
    for edge in state.edges:
        end = edge.edge.end
        if end not in start_events and end not in terminal_events:
            terminal_events.append(end)

    if len(terminal_events) > 1:
        sink_event = state.next_event()
        for end_event in terminal_events:
            state.add_dummy(end_event, sink_event, SINK_DUMMY_NAME)
        logger.debug(f"Sink event {sink_event} joins terminal events {terminal_events}")


def convert_aon_to_aoa(
    tasks: Sequence[object],
    options: ConversionOptions | None = None,
) -> list[AoaTask]:
    """Convert AON tasks into an AOA edge list with dummy edges.

    Args:
        tasks: AonTask objects or raw records with id, name, duration or
            labor_intensity, number_of_performers, predecessors and optional phase.
            Tasks whose id is not an integer are dropped, as are predecessor ids
            with no matching task.
        options: Hours per working day and whether to create a single sink event

    Returns:
        Real edges (tagged with source_task_id) and dummy edges, numbered from event 1
    """
    options = options or ConversionOptions()
    nodes = _normalize_tasks(tasks, options.hours_per_day)
    if not nodes:
        return []

    same_phase_successors: dict[int, set[int]] = {task_id: set() for task_id in nodes}
    for node in nodes.values():
        for pred in node.predecessors:
            if node.phase is not None and node.phase == nodes[pred].phase:
                same_phase_successors[pred].add(node.id)
    phases = sorted({node.phase for node in nodes.values() if node.phase is not None})

    order = ascending_topological_order({node.id: node.predecessors for node in nodes.values()})
    state = _ConversionState()

    for task_id in order:
        node = nodes[task_id]
        if node.predecessors:
            start_event = _merge_start_event(state, node)
        else:
            start_event = _phase_start_event(state, node, phases, same_phase_successors)

        end_event = state.next_event()
        state.task_events[task_id] = _EventPair(start_event, end_event)
        state.edges.append(
            AoaTask(
                id=f"{start_event}-{end_event}",
                name=node.name,
                duration=float(node.duration_days),
                labor_intensity=(
                    node.labor_intensity
                    if node.labor_intensity is not None
                    else node.duration_days * options.hours_per_day * node.performers
                ),
                number_of_performers=node.performers,
                source_task_id=task_id,
                phase=node.phase,
            )
        )
        state.processed.append(node)

    if options.create_sink:
        _add_sink(state)

    dummy_count = sum(1 for edge in state.edges if edge.is_dummy)
    logger.changes(
        f"Converted {len(nodes)} AON tasks into {len(state.edges)} AOA edges "
        f"({dummy_count} dummy, {state.event_counter} events)"
    )
    return state.edges
