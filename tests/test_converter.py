"""Tests for AON to AOA conversion."""

from typing import Any

import pytest

from arcnet.config import ConversionOptions
from arcnet.exceptions import CycleDetectedError
from arcnet.models import AoaTask, AonTask
from arcnet.network.converter import (
    START_EVENT,
    _ConversionState,
    check_acyclic,
    convert_aon_to_aoa,
    task_duration_days,
)

NO_SINK = ConversionOptions(create_sink=False)


def _ids(edges: list[AoaTask]) -> list[str]:
    return [edge.id for edge in edges]


def _real(edges: list[AoaTask]) -> list[AoaTask]:
    return [edge for edge in edges if not edge.is_dummy]


def _dummies(edges: list[AoaTask]) -> list[AoaTask]:
    return [edge for edge in edges if edge.is_dummy]


def _task(task_id: int, duration: float = 1, **fields: Any) -> dict[str, Any]:
    return {"id": task_id, "name": f"Task {task_id}", "duration": duration, **fields}


class TestTaskDuration:
    """Test the duration rule for converted tasks."""

    def test_labor_intensity_wins(self) -> None:
        """Test ceil(labor / (hours per day * performers))."""
        assert task_duration_days(100, None, 2, 6.0) == 9

    def test_hours_per_day_is_a_parameter(self) -> None:
        """Test that the working day length is not hard-coded."""
        assert task_duration_days(100, None, 2, 8.0) == 7

    def test_fractional_duration_rounds_up(self) -> None:
        """Test that a plain duration is rounded up to whole days."""
        assert task_duration_days(None, 2.3, 1, 6.0) == 3

    def test_minimum_one_day(self) -> None:
        """Test that zero or missing durations become one day."""
        assert task_duration_days(None, 0, 1, 6.0) == 1
        assert task_duration_days(None, None, 1, 6.0) == 1
        assert task_duration_days(1, None, 4, 6.0) == 1

    def test_zero_labor_falls_back_to_duration(self) -> None:
        """Test that non-positive labor uses the duration instead."""
        assert task_duration_days(0, 4, 1, 6.0) == 4


class TestBasicConversion:
    """Test conversion of simple dependency shapes."""

    def test_empty_list(self) -> None:
        """Test that no tasks give no edges."""
        assert convert_aon_to_aoa([]) == []

    def test_chain(self) -> None:
        """Test that a chain shares events and needs no dummies."""
        edges = convert_aon_to_aoa([_task(1, 2), _task(2, 3, predecessors=[1])])

        assert _ids(edges) == ["1-2", "2-3"]
        assert [edge.duration for edge in edges] == [2.0, 3.0]
        assert [edge.source_task_id for edge in edges] == [1, 2]
        assert edges[0].edge.start == START_EVENT

    def test_fan_in_uses_merge_event(self) -> None:
        """Test that two predecessors are merged through dummy edges."""
        edges = convert_aon_to_aoa([_task(1), _task(2), _task(3, predecessors=[1, 2])])

        assert _ids(edges) == ["1-2", "1-3", "2-4", "3-4", "4-5"]
        assert _ids(_dummies(edges)) == ["2-4", "3-4"]
        assert all(dummy.duration == 0 for dummy in _dummies(edges))

    def test_fan_out_shares_start_event(self) -> None:
        """Test that successors of one task all start at its end event."""
        edges = convert_aon_to_aoa(
            [_task(1), _task(2, predecessors=[1]), _task(3, predecessors=[1])], NO_SINK
        )
        assert _ids(edges) == ["1-2", "2-3", "2-4"]

    def test_merge_event_is_reused(self) -> None:
        """Test that tasks with the same predecessor set share one merge event."""
        tasks = [
            _task(1),
            _task(2),
            _task(3, predecessors=[1, 2]),
            _task(4, predecessors=[2, 1]),
            _task(5, predecessors=[1, 2]),
        ]
        edges = convert_aon_to_aoa(tasks, NO_SINK)

        assert len(_dummies(edges)) == 2
        assert {edge.edge.start for edge in _real(edges) if edge.source_task_id in (3, 4, 5)} == {4}
        assert _ids(_real(edges)) == ["1-2", "1-3", "4-5", "4-6", "4-7"]

    def test_single_sink_event(self) -> None:
        """Test that terminal events are joined into one finish event."""
        tasks = [
            _task(1),
            _task(2),
            _task(3, predecessors=[1, 2]),
            _task(4, predecessors=[1, 2]),
            _task(5, predecessors=[1, 2]),
        ]
        edges = convert_aon_to_aoa(tasks)

        assert _ids(edges)[-3:] == ["5-8", "6-8", "7-8"]
        assert all(edge.is_dummy for edge in edges[-3:])
        ends = {edge.edge.end for edge in edges}
        starts = {edge.edge.start for edge in edges}
        assert ends - starts == {8}

    def test_no_sink_for_single_terminal(self) -> None:
        """Test that a network with one terminal event gets no extra sink."""
        edges = convert_aon_to_aoa([_task(1), _task(2, predecessors=[1])])
        assert not _dummies(edges)

    def test_real_end_events_are_unique(self) -> None:
        """Test that every real edge gets its own end event."""
        tasks = [
            _task(i, predecessors=[j for j in range(1, i) if (i + j) % 3 == 0])
            for i in range(1, 12)
        ]
        edges = convert_aon_to_aoa(tasks)

        ends = [edge.edge.end for edge in _real(edges)]
        assert len(ends) == len(set(ends)) == 11
        assert len(_ids(edges)) == len(set(_ids(edges)))


class TestConversionInput:
    """Test how raw task input is normalized."""

    def test_labor_and_performers(self) -> None:
        """Test that labor intensity drives the converted duration."""
        edges = convert_aon_to_aoa(
            [{"id": 1, "name": "Assemble", "laborIntensity": 100, "numberOfPerformers": 2}]
        )
        assert edges[0].duration == 9.0
        assert edges[0].labor_intensity == 100
        assert edges[0].number_of_performers == 2

    def test_hours_per_day_option(self) -> None:
        """Test that the conversion options supply the working day length."""
        edges = convert_aon_to_aoa(
            [{"id": 1, "name": "Assemble", "labor_intensity": 100, "number_of_performers": 2}],
            ConversionOptions(hours_per_day=8),
        )
        assert edges[0].duration == 7.0

    def test_labor_derived_from_duration(self) -> None:
        """Test that tasks given by duration carry the equivalent labor."""
        edges = convert_aon_to_aoa([_task(1, 2, numberOfPerformers=3)])
        assert edges[0].labor_intensity == 2 * 6.0 * 3

    def test_string_predecessors(self) -> None:
        """Test that "1, 2" style predecessor strings are split."""
        by_list = convert_aon_to_aoa([_task(1), _task(2), _task(3, predecessors=["1", "2"])])
        by_string = convert_aon_to_aoa([_task(1), _task(2), _task(3, predecessors="1, 2")])
        by_semicolon = convert_aon_to_aoa([_task(1), _task(2), _task(3, predecessors="1;2")])
        assert _ids(by_list) == _ids(by_string) == _ids(by_semicolon)

    def test_non_numeric_ids_are_dropped(self) -> None:
        """Test that tasks without an integer id are skipped."""
        edges = convert_aon_to_aoa([_task(1), {"id": "abc", "name": "Bad", "duration": 2}])
        assert _ids(edges) == ["1-2"]

    def test_unknown_predecessors_are_dropped(self) -> None:
        """Test that references to missing tasks are ignored."""
        edges = convert_aon_to_aoa([_task(1), _task(2, predecessors=[1, 99])])
        assert _ids(edges) == ["1-2", "2-3"]

    def test_aon_task_objects(self) -> None:
        """Test that AonTask dataclasses convert like records."""
        edges = convert_aon_to_aoa(
            [
                AonTask(id=1, name="Design", duration=2),
                AonTask(id=2, name="Build", duration=4, predecessors="1"),
            ]
        )
        assert _ids(edges) == ["1-2", "2-3"]
        assert edges[1].name == "Build"

    def test_input_order_does_not_matter(self) -> None:
        """Test that tasks listed after their successors are still wired correctly."""
        edges = convert_aon_to_aoa([_task(2, predecessors=[1]), _task(1)])
        assert _ids(edges) == ["1-2", "2-3"]
        assert [edge.source_task_id for edge in edges] == [1, 2]

    def test_conversion_is_repeatable(self) -> None:
        """Test that two conversions of the same input number events identically."""
        tasks = [_task(1), _task(2), _task(3, predecessors=[1, 2])]
        assert convert_aon_to_aoa(tasks) == convert_aon_to_aoa(tasks)


class TestPhases:
    """Test phase anchoring of tasks without predecessors."""

    def test_later_phase_starts_after_earlier_phase(self) -> None:
        """Test that phase 2 tasks hang off an anchor joining phase 1's ends."""
        tasks = [
            _task(1, phase=1),
            _task(2, phase=1),
            _task(3, phase=2),
            _task(4, phase=2),
        ]
        edges = convert_aon_to_aoa(tasks, NO_SINK)

        assert _ids(edges) == ["1-2", "1-3", "2-4", "3-4", "4-5", "4-6"]
        assert [edge.phase for edge in _real(edges)] == [1, 1, 2, 2]

    def test_phases_with_sink(self) -> None:
        """Test that the sink joins the last phase's ends."""
        tasks = [
            _task(1, phase=1),
            _task(2, phase=1),
            _task(3, phase=2),
            _task(4, phase=2),
        ]
        edges = convert_aon_to_aoa(tasks)
        assert _ids(edges)[-2:] == ["5-7", "6-7"]

    def test_single_terminal_task_needs_no_anchor(self) -> None:
        """Test that one terminal task in the previous phase is used directly."""
        edges = convert_aon_to_aoa([_task(1, phase=1), _task(2, phase=2)])
        assert _ids(edges) == ["1-2", "2-3"]

    def test_only_terminal_tasks_anchor(self) -> None:
        """Test that tasks with same-phase successors do not feed the anchor."""
        tasks = [
            _task(1, phase=1),
            _task(2, phase=1, predecessors=[1]),
            _task(3, phase=2),
        ]
        edges = convert_aon_to_aoa(tasks)
        assert _ids(edges) == ["1-2", "2-3", "3-4"]

    def test_first_phase_starts_at_project_start(self) -> None:
        """Test that the earliest phase is anchored at the start event."""
        edges = convert_aon_to_aoa([_task(1, phase=3), _task(2, phase=3)], NO_SINK)
        assert all(edge.edge.start == START_EVENT for edge in edges)

    def test_anchor_skips_phase_not_yet_walked(self) -> None:
        """Test that the nearest earlier phase with walked tasks is used."""
        tasks = [_task(1, phase=1), _task(2, phase=3), _task(3, phase=2)]
        edges = convert_aon_to_aoa(tasks, NO_SINK)

        by_source = {edge.source_task_id: edge for edge in _real(edges)}
        assert by_source[2].edge.start == by_source[1].edge.end
        assert by_source[3].edge.start == by_source[1].edge.end
        assert _ids(edges) == ["1-2", "2-3", "2-4"]

    def test_anchor_falls_back_to_non_terminal_tasks(self) -> None:
        """Test anchoring when the previous phase's terminal task is not walked yet."""
        tasks = [
            _task(1, phase=1),
            _task(2, phase=2),
            _task(3, phase=1, predecessors=[1]),
        ]
        edges = convert_aon_to_aoa(tasks, NO_SINK)

        by_source = {edge.source_task_id: edge for edge in _real(edges)}
        assert by_source[2].edge.start == by_source[1].edge.end
        assert _ids(edges) == ["1-2", "2-3", "2-4"]

    def test_no_earlier_phase_walked(self) -> None:
        """Test that a later phase walked first starts at the project start."""
        edges = convert_aon_to_aoa([_task(1, phase=2), _task(2, phase=1)], NO_SINK)

        assert _ids(edges) == ["1-2", "1-3"]
        assert all(edge.edge.start == START_EVENT for edge in edges)


class TestCycles:
    """Test conversion and checking of cyclic dependencies."""

    def test_check_acyclic_passes(self) -> None:
        """Test that an acyclic task list is accepted."""
        check_acyclic([_task(1), _task(2, predecessors=[1])])

    def test_check_acyclic_raises(self) -> None:
        """Test that a dependency cycle is reported against a task."""
        with pytest.raises(CycleDetectedError) as exc_info:
            check_acyclic([_task(1, predecessors=[2]), _task(2, predecessors=[1])])
        assert exc_info.value.kind == "task"

    def test_conversion_stays_total_on_cycles(self) -> None:
        """Test that every task still becomes an edge when the input is cyclic."""
        tasks = [_task(1, predecessors=[2]), _task(2, predecessors=[1]), _task(3)]
        edges = convert_aon_to_aoa(tasks)
        assert sorted(edge.source_task_id for edge in _real(edges)) == [1, 2, 3]


class TestConversionState:
    """Test the per-call bookkeeping of a conversion."""

    def test_duplicate_dummy_is_ignored(self) -> None:
        """Test that wiring the same dummy twice adds one edge."""
        state = _ConversionState()
        state.add_dummy(2, 5)
        state.add_dummy(2, 5, "Another name")

        assert _ids(state.edges) == ["2-5"]
        assert state.seen_dummies == {"2-5"}
        assert state.edges[0].is_dummy
        assert state.edges[0].duration == 0.0

    def test_event_counter_starts_after_start_event(self) -> None:
        """Test that fresh events are numbered from 2."""
        state = _ConversionState()
        assert [state.next_event(), state.next_event()] == [START_EVENT + 1, START_EVENT + 2]
