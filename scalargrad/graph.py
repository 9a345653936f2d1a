"""
Graph builder.

A ``Graph`` is the ordered, deduplicated list of nodes reachable from one
root. It is built once per architecture and then re-evaluated for every
training example, so the order has to serve both passes: the root sits at
position 0, and the forward pass walks the list backwards while the backward
pass walks it forwards.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Iterator, List

import numpy as np

from scalargrad.arena import Arena
from scalargrad.errors import GraphCapacityError
from scalargrad.node import Node

logger = logging.getLogger(__name__)


class Ordering(str, Enum):
    # every node precedes all of its operands; safe for shared sub-graphs
    TOPOLOGICAL = "topological"
    # depth-first pre-order; a node only precedes the operand edge that found it
    DISCOVERY = "discovery"


class Graph:
    def __init__(self, arena: Arena, indices: List[int]):
        self.arena = arena
        self.indices = list(indices)
        self.index_array = np.asarray(self.indices, dtype=np.int64)

    @classmethod
    def build(cls, root: Node, capacity: int, ordering: Ordering = Ordering.TOPOLOGICAL) -> Graph:
        """Collect every node reachable from ``root``.

        ``capacity`` bounds the number of distinct nodes the traversal may
        record; going past it raises ``GraphCapacityError``.
        """
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")

        ordering = Ordering(ordering)
        if ordering is Ordering.DISCOVERY:
            indices = _discovery_order(root.arena, root.index, capacity)
        else:
            indices = _topological_order(root.arena, root.index, capacity)

        logger.info("Built graph with %d nodes (%s order)", len(indices), ordering.value)
        return cls(root.arena, indices)

    @property
    def root(self) -> Node:
        return Node(self.arena, self.indices[0])

    def __len__(self) -> int:
        return len(self.indices)

    def __iter__(self) -> Iterator[Node]:
        for index in self.indices:
            yield Node(self.arena, index)

    def __getitem__(self, position: int) -> Node:
        return Node(self.arena, self.indices[position])

    def position(self, node: Node) -> int:
        return self.indices.index(node.index)

    def parameters(self) -> List[Node]:
        """Nodes the update phase will change."""
        return [node for node in self if node.is_parameter]


def _check_capacity(count: int, capacity: int) -> None:
    if count >= capacity:
        raise GraphCapacityError(f"Graph traversal exceeded capacity of {capacity} nodes")


def _discovery_order(arena: Arena, root: int, capacity: int) -> List[int]:
    order: List[int] = []
    visited = set()
    stack = [root]

    while stack:
        index = stack.pop()
        if index in visited:
            continue
        _check_capacity(len(order), capacity)
        visited.add(index)
        order.append(index)
        # reversed so the leftmost operand is popped first
        stack.extend(reversed(arena.operand_indices(index)))

    return order


def _topological_order(arena: Arena, root: int, capacity: int) -> List[int]:
    post_order: List[int] = []
    visited = set()
    stack = [(root, False)]

    while stack:
        index, expanded = stack.pop()
        if expanded:
            post_order.append(index)
            continue
        if index in visited:
            continue
        _check_capacity(len(visited), capacity)
        visited.add(index)
        stack.append((index, True))
        for operand in reversed(arena.operand_indices(index)):
            if operand not in visited:
                stack.append((operand, False))

    post_order.reverse()
    return post_order


def format_graph(graph: Graph) -> str:
    lines = [f"===== Graph({len(graph)} values) ====="]
    lines.extend(repr(node) for node in graph)
    lines.append("===========================")
    return "\n".join(lines)
