"""
Zeros-vs-ones MNIST classifier: one sigmoid neuron over 784 pixels,
trained with the scalar engine, then used for forward-only inference.
"""

import argparse
import logging
from typing import List, Tuple

import matplotlib.pyplot as plt
import numpy as np
import torch
from PIL import Image
from torchvision import datasets

from scalargrad import ops
from scalargrad.arena import Arena
from scalargrad.graph import Graph
from scalargrad.logger import setup_logging
from scalargrad.network import Activation, NetworkConfig, inputs, network
from scalargrad.training import predict, sample_forever, train

logger = logging.getLogger("scalargrad.mnist")

IMAGE_HEIGHT = 28
IMAGE_WIDTH = 28


def load_zeros_and_ones(root: str, train: bool = True, download: bool = True) -> List[Tuple[List[float], float]]:
    """MNIST digits 0 and 1 as (pixels scaled to [0, 1], label) pairs."""
    dataset = datasets.MNIST(root=root, train=train, download=download)

    mask = (dataset.targets == 0) | (dataset.targets == 1)
    images = dataset.data[mask].to(torch.float32).view(-1, IMAGE_HEIGHT * IMAGE_WIDTH) / 255.0
    labels = dataset.targets[mask].to(torch.float32)

    return [(x.tolist(), float(y)) for x, y in zip(images, labels)]


def image_to_pixels(path: str) -> List[float]:
    """Load any image as a 28x28 grayscale digit scaled to [0, 1]."""
    img = Image.open(path).convert("L")
    if img.size != (IMAGE_WIDTH, IMAGE_HEIGHT):
        img = img.resize((IMAGE_WIDTH, IMAGE_HEIGHT))
    pixels = np.asarray(img, dtype=np.float32) / 255.0
    return pixels.reshape(-1).tolist()


def plot_losses(epoch_losses: List[float], save_path: str = "mnist_loss.png"):
    fig, ax = plt.subplots(figsize=(8, 5))
    ax.plot(range(1, len(epoch_losses) + 1), epoch_losses, marker="o")
    ax.set_xlabel("Epoch")
    ax.set_ylabel("MSE")
    ax.set_title("Train Loss")
    ax.grid(True)
    plt.tight_layout()
    plt.savefig(save_path, dpi=150)
    plt.close(fig)


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--data_root", default="data")
    parser.add_argument("--epochs", type=int, default=2)
    parser.add_argument("--lr", type=float, default=0.0003)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--plot", default="mnist_loss.png")
    parser.add_argument("--predict", default=None, help="image file to classify after training")
    parser.add_argument("--logfile", default=None)
    args = parser.parse_args()

    setup_logging(logfile=args.logfile)
    rng = np.random.default_rng(args.seed)

    logger.info("Loading data")
    data = load_zeros_and_ones(args.data_root, train=True)
    logger.info("Kept %d images of zeros and ones", len(data))

    config = NetworkConfig(
        num_inputs=IMAGE_HEIGHT * IMAGE_WIDTH,
        num_neurons=[1],
        output_activation=Activation.SIGMOID,
    )
    capacity = config.required_capacity() + 1 + ops.MEAN_SQUARED_ERROR_NODES

    with Arena(capacity) as arena:
        logger.info("Creating model")
        x = inputs(arena, config.num_inputs)
        y = ops.constant(arena, 0.0, tag="y")
        y_pred = network(arena, x, config, rng)[0]
        loss = ops.mean_squared_error(y, y_pred)
        graph = Graph.build(loss, capacity=capacity)

        logger.info("Starting training, each epoch has %d iterations", len(data))
        samples = sample_forever(data, rng)
        epoch_losses = []
        for epoch in range(1, args.epochs + 1):
            history = train(graph, x, y, samples, learning_rate=args.lr, iterations=len(data))
            epoch_losses.append(sum(history) / len(history))
            logger.info("Epoch: %4d | loss: %.6f", epoch, epoch_losses[-1])

        if args.plot:
            plot_losses(epoch_losses, save_path=args.plot)
            logger.info("Loss curve saved to %s", args.plot)

        if args.predict:
            score = predict(graph, x, y_pred, image_to_pixels(args.predict))
            print(f"Prediction: {score:f}")
            print(f"Predicted Label: {'0' if score < 0.5 else '1'}")


if __name__ == "__main__":
    main()
