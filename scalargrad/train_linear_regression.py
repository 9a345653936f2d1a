import argparse
import logging
from dataclasses import dataclass
from typing import Iterator

import numpy as np

from scalargrad import ops
from scalargrad.arena import Arena
from scalargrad.graph import Graph, format_graph
from scalargrad.logger import setup_logging
from scalargrad.node import Node
from scalargrad.training import Sample, train

logger = logging.getLogger("scalargrad.linreg")

#python -m scalargrad.train_linear_regression --iterations 10000 --lr 0.003 --seed 0

TRUE_W1 = 3.0
TRUE_W2 = -1.0
TRUE_B = -2.0


@dataclass
class LinearModel:
    x1: Node
    x2: Node
    y: Node
    w1: Node
    w2: Node
    b: Node
    loss: Node


def compute_y(x1: float, x2: float, noise: float = 0.0) -> float:
    return TRUE_W1 * x1 + TRUE_W2 * x2 + TRUE_B + noise


def synthetic_samples(rng: np.random.Generator, noise_scale: float = 0.1) -> Iterator[Sample]:
    # noise is one-sided, U[0, noise_scale)
    while True:
        x1, x2 = float(rng.uniform()), float(rng.uniform())
        noise = float(rng.uniform()) * noise_scale
        yield (x1, x2), compute_y(x1, x2, noise)


def build_model(arena: Arena, rng: np.random.Generator) -> LinearModel:
    x1 = ops.constant(arena, 0.0, tag="x")
    x2 = ops.constant(arena, 0.0, tag="x")
    y = ops.constant(arena, 0.0, tag="y")

    w1 = ops.random(arena, rng, tag="w")
    w2 = ops.random(arena, rng, tag="w")
    b = ops.random(arena, rng, tag="b")

    y_pred = ops.add(ops.add(ops.mul(w1, x1), ops.mul(w2, x2)), b)
    diff = ops.add(ops.negate(y), y_pred)
    loss = ops.mul(diff, diff, tag="l")
    return LinearModel(x1=x1, x2=x2, y=y, w1=w1, w2=w2, b=b, loss=loss)


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--iterations", type=int, default=10000)
    parser.add_argument("--lr", type=float, default=0.003)
    parser.add_argument("--noise", type=float, default=0.1)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--log_interval", type=int, default=1000)
    parser.add_argument("--logfile", default=None)
    args = parser.parse_args()

    setup_logging(logfile=args.logfile)
    rng = np.random.default_rng(args.seed)

    with Arena(32) as arena:
        model = build_model(arena, rng)
        graph = Graph.build(model.loss, capacity=20)

        logger.info("Training for %d iterations, lr=%g", args.iterations, args.lr)
        train(
            graph,
            [model.x1, model.x2],
            model.y,
            synthetic_samples(rng, args.noise),
            learning_rate=args.lr,
            iterations=args.iterations,
            log_interval=args.log_interval,
        )

        print(format_graph(graph))

        header = f"{'Param':<6} | {'Learned':>10} | {'True':>10}"
        sep = "-" * len(header)
        print(sep)
        print(header)
        print(sep)
        for name, node, true in (("w1", model.w1, TRUE_W1), ("w2", model.w2, TRUE_W2), ("b", model.b, TRUE_B)):
            print(f"{name:<6} | {node.value:>10.4f} | {true:>10.4f}")
        print(sep)


if __name__ == "__main__":
    main()
