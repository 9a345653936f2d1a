from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

import numpy as np

from scalargrad import ops
from scalargrad.arena import Arena
from scalargrad.errors import UnsupportedActivationError
from scalargrad.node import Node


class Activation(str, Enum):
    LINEAR = "linear"
    RELU = "relu"
    SIGMOID = "sigmoid"
    SOFTMAX = "softmax"


@dataclass
class NetworkConfig:
    num_inputs: int
    num_neurons: Sequence[int]
    hidden_activation: Activation = Activation.RELU
    output_activation: Activation = Activation.LINEAR

    def __post_init__(self) -> None:
        if self.num_inputs <= 0:
            raise ValueError(f"num_inputs must be positive, got {self.num_inputs}")
        self.num_neurons = tuple(self.num_neurons)
        if not self.num_neurons:
            raise ValueError("num_neurons must list at least one layer")
        if any(count <= 0 for count in self.num_neurons):
            raise ValueError(f"every layer needs a positive neuron count, got {self.num_neurons}")
        self.hidden_activation = Activation(self.hidden_activation)
        self.output_activation = Activation(self.output_activation)

    def activation_for(self, layer_index: int) -> Activation:
        if layer_index == len(self.num_neurons) - 1:
            return self.output_activation
        return self.hidden_activation

    def required_capacity(self) -> int:
        """Number of nodes ``network`` allocates for this config, inputs included."""
        total = self.num_inputs
        fan_in = self.num_inputs
        for i, count in enumerate(self.num_neurons):
            # bias + (weight, mul, add) per input + optional activation node
            per_neuron = 1 + 3 * fan_in
            if self.activation_for(i) is not Activation.LINEAR:
                per_neuron += 1
            total += count * per_neuron
            fan_in = count
        return total


def _check_supported(activation: Activation) -> Activation:
    activation = Activation(activation)
    if activation is Activation.SOFTMAX:
        raise UnsupportedActivationError("softmax has no scalar operator implementation")
    return activation


def activate(node: Node, activation: Activation) -> Node:
    activation = _check_supported(activation)
    if activation is Activation.RELU:
        return ops.relu(node)
    if activation is Activation.SIGMOID:
        return ops.sigmoid(node)
    return node


def inputs(arena: Arena, n: int, values: Optional[Sequence[float]] = None) -> List[Node]:
    """Constant placeholders, overwritten with feature values before each step."""
    if values is not None and len(values) != n:
        raise ValueError(f"expected {n} input values, got {len(values)}")
    return [
        ops.constant(arena, 0.0 if values is None else values[i], tag="x")
        for i in range(n)
    ]


def neuron(
    arena: Arena,
    inputs: Sequence[Node],
    activation: Activation,
    rng: np.random.Generator,
) -> Node:
    activation = _check_supported(activation)

    out = ops.random(arena, rng, tag="b")
    for x in inputs:
        weight = ops.random(arena, rng, tag="w")
        out = ops.add(out, ops.mul(weight, x))

    return activate(out, activation)


def layer(
    arena: Arena,
    inputs: Sequence[Node],
    count: int,
    activation: Activation,
    rng: np.random.Generator,
) -> List[Node]:
    return [neuron(arena, inputs, activation, rng) for _ in range(count)]


def network(
    arena: Arena,
    inputs: Sequence[Node],
    config: NetworkConfig,
    rng: np.random.Generator,
) -> List[Node]:
    """Stack fully-connected layers and return the output layer's nodes."""
    if len(inputs) != config.num_inputs:
        raise ValueError(f"config expects {config.num_inputs} inputs, got {len(inputs)}")
    # reject before allocating anything
    for i in range(len(config.num_neurons)):
        _check_supported(config.activation_for(i))

    outputs = list(inputs)
    for i, count in enumerate(config.num_neurons):
        outputs = layer(arena, outputs, count, config.activation_for(i), rng)
    return outputs
