"""
Graph evaluator: one optimization step is zero-grad, forward, backward and
update, always over the same fixed node order.
"""

from __future__ import annotations

from scalargrad.errors import EmptyGraphError
from scalargrad.graph import Graph
from scalargrad.ops import Op, propagate, recompute


def zero_grad(graph: Graph) -> None:
    graph.arena.grads[graph.index_array] = 0.0


def forward(graph: Graph) -> None:
    """Recompute every derived node, operands first."""
    arena = graph.arena
    for index in reversed(graph.indices):
        recompute(arena, index)


def backward(graph: Graph) -> None:
    """Seed the root with 1 and push gradients down to the leaves."""
    arena = graph.arena
    arena.grads[graph.indices[0]] = 1.0
    for index in graph.indices:
        propagate(arena, index)


def update(graph: Graph, learning_rate: float) -> None:
    """Plain SGD on every non-constant leaf.

    Operator nodes are skipped: their values are derived and get recomputed
    by the next forward pass anyway.
    """
    arena = graph.arena
    indices = graph.index_array
    learnable = ~arena.constant[indices] & (arena.kinds[indices] == Op.LEAF)
    trainable = indices[learnable]
    arena.values[trainable] -= learning_rate * arena.grads[trainable]


def optimization_step(graph: Graph, learning_rate: float) -> float:
    """Run one full training step and return the loss seen by the forward pass."""
    if len(graph) == 0:
        raise EmptyGraphError("Cannot run an optimization step on an empty graph")

    zero_grad(graph)
    forward(graph)
    loss = graph.root.value
    backward(graph)
    update(graph, learning_rate)
    return loss
