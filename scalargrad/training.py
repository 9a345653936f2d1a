from __future__ import annotations

import itertools
import logging
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from scalargrad.evaluator import forward, optimization_step
from scalargrad.graph import Graph
from scalargrad.node import Node

logger = logging.getLogger(__name__)

Sample = Tuple[Sequence[float], float]


def write_features(inputs: Sequence[Node], features: Sequence[float]) -> None:
    if len(features) != len(inputs):
        raise ValueError(f"expected {len(inputs)} features, got {len(features)}")
    for node, x in zip(inputs, features):
        node.value = x


def sample_forever(
    dataset: Sequence[Sample], rng: Optional[np.random.Generator] = None
) -> Iterator[Sample]:
    """Cycle through ``dataset``, or draw uniformly from it when ``rng`` is given."""
    if not dataset:
        raise ValueError("dataset is empty")
    if rng is None:
        yield from itertools.cycle(dataset)
    else:
        while True:
            yield dataset[int(rng.integers(len(dataset)))]


def train(
    graph: Graph,
    inputs: Sequence[Node],
    target: Node,
    samples: Iterable[Sample],
    learning_rate: float,
    iterations: int,
    log_interval: int = 0,
) -> List[float]:
    """
    Run one optimization step per sample, for at most ``iterations`` samples.

    Returns the loss of every step. With ``log_interval > 0`` the mean loss of
    the last ``log_interval`` steps is logged.
    """
    history: List[float] = []
    for i, (features, label) in enumerate(itertools.islice(samples, iterations)):
        write_features(inputs, features)
        target.value = label
        history.append(optimization_step(graph, learning_rate))

        if log_interval > 0 and (i + 1) % log_interval == 0:
            window = history[-log_interval:]
            logger.info("Iter: %6d | loss: %.6f", i + 1, sum(window) / len(window))

    return history


def predict(graph: Graph, inputs: Sequence[Node], output: Node, features: Sequence[float]) -> float:
    """Forward pass only: no gradients, no update."""
    write_features(inputs, features)
    forward(graph)
    return output.value
