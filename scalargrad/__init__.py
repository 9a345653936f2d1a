"""Scalar reverse-mode autodiff with a small dense-network builder."""

from scalargrad.arena import Arena
from scalargrad.errors import (
    ArenaExhaustedError,
    EmptyGraphError,
    GraphCapacityError,
    ScalarGradError,
    UnsupportedActivationError,
)
from scalargrad.evaluator import backward, forward, optimization_step, update, zero_grad
from scalargrad.graph import Graph, Ordering, format_graph
from scalargrad.network import Activation, NetworkConfig, inputs, layer, network, neuron
from scalargrad.node import Node
from scalargrad.ops import (
    EPSILON,
    Op,
    add,
    clip,
    constant,
    mean_squared_error,
    mul,
    negate,
    parameter,
    random,
    relu,
    sigmoid,
)

__all__ = [
    "Activation",
    "Arena",
    "ArenaExhaustedError",
    "EPSILON",
    "EmptyGraphError",
    "Graph",
    "GraphCapacityError",
    "NetworkConfig",
    "Node",
    "Op",
    "Ordering",
    "ScalarGradError",
    "UnsupportedActivationError",
    "add",
    "backward",
    "clip",
    "constant",
    "format_graph",
    "forward",
    "inputs",
    "layer",
    "mean_squared_error",
    "mul",
    "negate",
    "network",
    "neuron",
    "optimization_step",
    "parameter",
    "random",
    "relu",
    "sigmoid",
    "update",
    "zero_grad",
]
