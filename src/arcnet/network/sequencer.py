"""Topological ordering of dependency graphs."""

from __future__ import annotations

import heapq
from collections.abc import Hashable, Iterable, Iterator, Mapping
from typing import Any, TypeVar

from arcnet.exceptions import CycleDetectedError
from arcnet.logger import get_logger

logger = get_logger()

NodeT = TypeVar("NodeT", bound=Hashable)


def _successor_map(predecessors: Mapping[NodeT, Iterable[NodeT]]) -> dict[NodeT, list[NodeT]]:
    """Invert a predecessor map, ignoring ids that are not nodes of the graph."""
    successors: dict[NodeT, list[NodeT]] = {node: [] for node in predecessors}
    for node, preds in predecessors.items():
        for pred in preds:
            if pred in successors and node not in successors[pred]:
                successors[pred].append(node)
    return successors


def topological_order(
    predecessors: Mapping[NodeT, Iterable[NodeT]],
    *,
    kind: str = "event",
) -> list[NodeT]:
    """Order nodes so that every predecessor comes before its dependents.

    Depth-first search over successors. Source nodes (no predecessors inside
    the graph) are visited first in ascending order, then any node not yet
    reached, also in ascending order. The result is the reversed post-order.

    Args:
        predecessors: Map of node id -> ids it depends on
        kind: What a node is ("event", "task"), used in the cycle error message

    Returns:
        Node ids in dependency order

    Raises:
        CycleDetectedError: If a back-edge into a node still being visited is found
    """
    successors = _successor_map(predecessors)
    has_predecessor = {node for targets in successors.values() for node in targets}
    ordered_nodes: list[Any] = sorted(successors)

    visited: set[NodeT] = set()
    visiting: set[NodeT] = set()
    post_order: list[NodeT] = []

    def visit(root: NodeT) -> None:
        visiting.add(root)
        stack: list[tuple[NodeT, Iterator[NodeT]]] = [(root, iter(successors[root]))]
        while stack:
            node, children = stack[-1]
            for child in children:
                if child in visiting:
                    raise CycleDetectedError(child, kind)
                if child not in visited:
                    visiting.add(child)
                    stack.append((child, iter(successors[child])))
                    break
            else:
                stack.pop()
                visiting.discard(node)
                visited.add(node)
                post_order.append(node)

    for node in ordered_nodes:
        if node not in has_predecessor and node not in visited:
            visit(node)
    for node in ordered_nodes:
        if node not in visited:
            visit(node)

    post_order.reverse()
    return post_order


def ascending_topological_order(predecessors: Mapping[NodeT, Iterable[NodeT]]) -> list[NodeT]:
    """Order nodes by dependency, always taking the smallest ready id next.

    Never fails: nodes stuck on a cycle are appended at the end in ascending
    order, so callers that must stay total (the converter) get every node.
    """
    successors = _successor_map(predecessors)
    in_degree = dict.fromkeys(successors, 0)
    for targets in successors.values():
        for node in targets:
            in_degree[node] += 1

    ready: list[Any] = [node for node, degree in in_degree.items() if degree == 0]
    heapq.heapify(ready)
    order: list[NodeT] = []

    while ready:
        node = heapq.heappop(ready)
        order.append(node)
        for child in successors[node]:
            in_degree[child] -= 1
            if in_degree[child] == 0:
                heapq.heappush(ready, child)

    if len(order) != len(successors):
        placed = set(order)
        leftover: list[Any] = sorted(node for node in successors if node not in placed)
        logger.warning(f"Dependency cycle among {leftover}; appending them in id order")
        order.extend(leftover)

    return order
