from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

import numpy as np

from scalargrad.errors import ArenaExhaustedError
from scalargrad.node import Node
from scalargrad.ops import NO_OPERAND, Op

logger = logging.getLogger(__name__)


class Arena:
    """Fixed-capacity store for every node of one training run.

    Nodes are slots in contiguous numpy arrays and refer to their operands by
    slot index. A node can only reference slots allocated before it, so any
    expression built here is acyclic. Slots are never freed one by one;
    ``release`` drops the whole store.
    """

    def __init__(self, capacity: int):
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self.size = 0
        self.released = False

        self.values = np.zeros(capacity, dtype=np.float64)
        self.grads = np.zeros(capacity, dtype=np.float64)
        self.kinds = np.full(capacity, Op.LEAF, dtype=np.int8)
        self.operands = np.full((capacity, 2), NO_OPERAND, dtype=np.int64)
        self.constant = np.zeros(capacity, dtype=bool)
        self.tags: List[str] = []

        logger.debug("Created arena with capacity %d", capacity)

    def __len__(self) -> int:
        return self.size

    def __enter__(self) -> Arena:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def allocate(
        self,
        kind: Op,
        operands: Sequence[Node] = (),
        value: float = 0.0,
        constant: bool = False,
        tag: str = "v",
    ) -> Node:
        if self.released:
            raise ArenaExhaustedError("Cannot allocate from a released arena")
        if self.size >= self.capacity:
            raise ArenaExhaustedError(f"Arena capacity of {self.capacity} nodes exhausted")
        if len(operands) > 2:
            raise ValueError(f"A node takes at most 2 operands, got {len(operands)}")

        if any(operand.arena is not self for operand in operands):
            raise ValueError("Operand belongs to a different arena")

        index = self.size
        self.operands[index] = NO_OPERAND
        for slot, operand in enumerate(operands):
            self.operands[index, slot] = operand.index

        self.values[index] = value
        self.grads[index] = 0.0
        self.kinds[index] = kind
        self.constant[index] = constant
        self.tags.append(tag)
        self.size += 1
        return Node(self, index)

    def node(self, index: int) -> Node:
        if not 0 <= index < self.size:
            raise IndexError(f"No node at index {index} (arena holds {self.size})")
        return Node(self, index)

    def operand_indices(self, index: int) -> Tuple[int, ...]:
        return tuple(int(i) for i in self.operands[index] if i != NO_OPERAND)

    def release(self) -> None:
        if self.released:
            return
        logger.debug("Releasing arena (%d/%d nodes used)", self.size, self.capacity)
        self.values = np.empty(0, dtype=np.float64)
        self.grads = np.empty(0, dtype=np.float64)
        self.kinds = np.empty(0, dtype=np.int8)
        self.operands = np.empty((0, 2), dtype=np.int64)
        self.constant = np.empty(0, dtype=bool)
        self.tags = []
        self.size = 0
        self.released = True
