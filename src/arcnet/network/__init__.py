"""Network package - AOA conversion and critical path scheduling.

Main entry points:
- convert_aon_to_aoa: AON task list -> AOA edge list with dummy edges
- validate_network: structural checks plus a dry CPM pass
- compute_schedule: forward/backward pass, floats and critical path
- PlanningService / plan_project: the whole pipeline for a raw task list

Lower level:
- topological_order / ascending_topological_order: dependency ordering
- calculate_event_times / find_critical_path: the individual CPM steps
"""

from .converter import check_acyclic, convert_aon_to_aoa, task_duration_days
from .engine import NetworkTimes, calculate_event_times, compute_schedule, find_critical_path
from .sequencer import ascending_topological_order, topological_order
from .service import PlanningService, plan_project
from .validator import validate_network

__all__ = [
    # Conversion
    "convert_aon_to_aoa",
    "check_acyclic",
    "task_duration_days",
    # Ordering
    "topological_order",
    "ascending_topological_order",
    # Scheduling
    "compute_schedule",
    "calculate_event_times",
    "find_critical_path",
    "NetworkTimes",
    # Validation
    "validate_network",
    # Pipeline
    "PlanningService",
    "plan_project",
]
