"""
Operator library.

Primitive constructors (leaves, add, mul, relu, sigmoid, clip) allocate one
node each; negate and mean_squared_error are compositions of them and
allocate several. Operator nodes are evaluated as soon as they are built, so
a fresh expression already holds a value.
Forward and backward rules for all operation kinds live in ``recompute`` and
``propagate``; the evaluator calls them for each node of a graph.
"""

from __future__ import annotations

import math
from enum import IntEnum
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from scalargrad.arena import Arena
    from scalargrad.node import Node


EPSILON = 0.01
RANDOM_SCALE = 0.2
NO_OPERAND = -1

# nodes allocated by one mean_squared_error call
MEAN_SQUARED_ERROR_NODES = 6


class Op(IntEnum):
    LEAF = 0
    ADD = 1
    MUL = 2
    RELU = 3
    SIGMOID = 4
    CLIP = 5


def _sigmoid(x: float) -> float:
    if x >= 0.0:
        return 1.0 / (1.0 + math.exp(-x))
    z = math.exp(x)
    return z / (1.0 + z)


def _shared_arena(*nodes: Node) -> Arena:
    arena = nodes[0].arena
    for node in nodes[1:]:
        if node.arena is not arena:
            raise ValueError("operands belong to different arenas")
    return arena


def _build(kind: Op, operands: tuple, tag: str) -> Node:
    arena = _shared_arena(*operands)
    node = arena.allocate(kind, operands, tag=tag)
    recompute(arena, node.index)
    return node


# Leaves

def constant(arena: Arena, value: float, tag: str = "v") -> Node:
    """Fixed value, never touched by the update phase."""
    return arena.allocate(Op.LEAF, value=value, constant=True, tag=tag)


def parameter(arena: Arena, value: float, tag: str = "v") -> Node:
    """Trainable leaf with an explicit starting value."""
    return arena.allocate(Op.LEAF, value=value, constant=False, tag=tag)


def random(arena: Arena, rng: np.random.Generator, tag: str = "v") -> Node:
    """Trainable leaf drawn from U[0, 1) and scaled down by ``RANDOM_SCALE``."""
    return parameter(arena, float(rng.uniform()) * RANDOM_SCALE, tag=tag)


# Operators

def add(a: Node, b: Node, tag: str = "+") -> Node:
    return _build(Op.ADD, (a, b), tag)


def mul(a: Node, b: Node, tag: str = "*") -> Node:
    return _build(Op.MUL, (a, b), tag)


def relu(a: Node, tag: str = "r") -> Node:
    return _build(Op.RELU, (a,), tag)


def sigmoid(a: Node, tag: str = "s") -> Node:
    return _build(Op.SIGMOID, (a,), tag)


def clip(a: Node, tag: str = "c") -> Node:
    return _build(Op.CLIP, (a,), tag)


def negate(a: Node, tag: str = "*") -> Node:
    return mul(a, constant(a.arena, -1.0), tag=tag)


def mean_squared_error(y_true: Node, y_pred: Node, tag: str = "l") -> Node:
    """0.5 * (y_pred - y_true) ** 2, built from add/mul/negate."""
    diff = add(y_pred, negate(y_true))
    half = constant(diff.arena, 0.5)
    return mul(half, mul(diff, diff), tag=tag)


# Forward / backward rules

def recompute(arena: Arena, index: int) -> None:
    """Derive the value of node ``index`` from its operands."""
    kind = arena.kinds[index]
    if kind == Op.LEAF:
        return

    values = arena.values
    first, second = arena.operands[index]
    a = float(values[first])

    if kind == Op.ADD:
        values[index] = a + values[second]
    elif kind == Op.MUL:
        values[index] = a * values[second]
    elif kind == Op.RELU:
        values[index] = a if a > 0.0 else 0.0
    elif kind == Op.SIGMOID:
        values[index] = _sigmoid(a)
    elif kind == Op.CLIP:
        values[index] = min(max(a, EPSILON), 1.0 - EPSILON)
    else:
        raise ValueError(f"Unknown operation kind: {kind}")


def propagate(arena: Arena, index: int) -> None:
    """Add the local gradient contribution of node ``index`` to its operands."""
    kind = arena.kinds[index]
    if kind == Op.LEAF:
        return

    values = arena.values
    grads = arena.grads
    grad = grads[index]
    first, second = arena.operands[index]

    if kind == Op.ADD:
        grads[first] += grad
        grads[second] += grad
    elif kind == Op.MUL:
        # read both values before writing: x * x has first == second
        a, b = values[first], values[second]
        grads[first] += b * grad
        grads[second] += a * grad
    elif kind == Op.RELU:
        grads[first] += grad if values[index] > 0.0 else 0.0
    elif kind == Op.SIGMOID:
        s = values[index]
        grads[first] += grad * s * (1.0 - s)
    elif kind == Op.CLIP:
        grads[first] += grad
    else:
        raise ValueError(f"Unknown operation kind: {kind}")
