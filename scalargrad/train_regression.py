import argparse
import logging
from typing import Iterator

import numpy as np

from scalargrad import ops
from scalargrad.arena import Arena
from scalargrad.graph import Graph
from scalargrad.logger import setup_logging
from scalargrad.network import Activation, NetworkConfig, inputs, network
from scalargrad.training import Sample, train

logger = logging.getLogger("scalargrad.regression")

#python -m scalargrad.train_regression --iterations 5000 --lr 0.3 --log_interval 200

TRUE_WEIGHTS = (3.0, -1.0, 5.0)
TRUE_B = -2.0


def synthetic_samples(rng: np.random.Generator, noise_scale: float = 0.1) -> Iterator[Sample]:
    weights = np.asarray(TRUE_WEIGHTS)
    while True:
        x = rng.uniform(size=len(weights))
        noise = float(rng.uniform()) * noise_scale
        yield x.tolist(), float(weights @ x) + TRUE_B + noise


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--iterations", type=int, default=5000)
    parser.add_argument("--lr", type=float, default=0.3)
    parser.add_argument("--hidden", type=int, nargs="+", default=[3, 3])
    parser.add_argument("--noise", type=float, default=0.1)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--log_interval", type=int, default=200)
    parser.add_argument("--logfile", default=None)
    args = parser.parse_args()

    setup_logging(logfile=args.logfile)
    rng = np.random.default_rng(args.seed)

    config = NetworkConfig(
        num_inputs=len(TRUE_WEIGHTS),
        num_neurons=[*args.hidden, 1],
        hidden_activation=Activation.RELU,
        output_activation=Activation.LINEAR,
    )
    # network + target + loss
    capacity = config.required_capacity() + 1 + ops.MEAN_SQUARED_ERROR_NODES

    with Arena(capacity) as arena:
        x = inputs(arena, config.num_inputs)
        y = ops.constant(arena, 0.0, tag="y")
        y_pred = network(arena, x, config, rng)[0]
        loss = ops.mean_squared_error(y, y_pred)
        graph = Graph.build(loss, capacity=capacity)

        logger.info("Network %s: %d nodes, %d parameters", list(config.num_neurons), len(graph), len(graph.parameters()))
        history = train(
            graph,
            x,
            y,
            synthetic_samples(rng, args.noise),
            learning_rate=args.lr,
            iterations=args.iterations,
            log_interval=args.log_interval,
        )

    tail = history[-args.log_interval:]
    print(f"Final mean loss over last {len(tail)} iterations: {sum(tail) / max(1, len(tail)):.6f}")


if __name__ == "__main__":
    main()
