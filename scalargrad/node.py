from __future__ import annotations

from typing import TYPE_CHECKING, Tuple

from scalargrad import ops
from scalargrad.ops import NO_OPERAND, Op

if TYPE_CHECKING:
    from scalargrad.arena import Arena


class Node:
    """Handle to one scalar slot of an :class:`~scalargrad.arena.Arena`.

    The handle itself stores nothing but the arena and the slot index; value,
    gradient, operands and flags are read from and written to the arena.
    """

    __slots__ = ("arena", "index")

    def __init__(self, arena: Arena, index: int):
        self.arena = arena
        self.index = index

    @property
    def value(self) -> float:
        return float(self.arena.values[self.index])

    @value.setter
    def value(self, value: float) -> None:
        self.arena.values[self.index] = value

    @property
    def grad(self) -> float:
        return float(self.arena.grads[self.index])

    @grad.setter
    def grad(self, grad: float) -> None:
        self.arena.grads[self.index] = grad

    @property
    def tag(self) -> str:
        return self.arena.tags[self.index]

    @tag.setter
    def tag(self, tag: str) -> None:
        self.arena.tags[self.index] = tag

    @property
    def constant(self) -> bool:
        return bool(self.arena.constant[self.index])

    @constant.setter
    def constant(self, constant: bool) -> None:
        self.arena.constant[self.index] = constant

    @property
    def trainable(self) -> bool:
        return not self.constant

    @property
    def is_parameter(self) -> bool:
        """Learned leaf, the only kind of node the update phase changes."""
        return self.trainable and self.kind is Op.LEAF

    @property
    def kind(self) -> Op:
        return Op(int(self.arena.kinds[self.index]))

    @property
    def operands(self) -> Tuple[Node, ...]:
        return tuple(
            Node(self.arena, int(i)) for i in self.arena.operands[self.index] if i != NO_OPERAND
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Node):
            return NotImplemented
        return self.arena is other.arena and self.index == other.index

    def __hash__(self) -> int:
        return hash((id(self.arena), self.index))

    def __repr__(self) -> str:
        return (
            f"{self.tag}(value={self.value:f}, grad={self.grad:f}, "
            f"trainable={'true' if self.trainable else 'false'})"
        )

    def _lift(self, other: Node | float) -> Node:
        return other if isinstance(other, Node) else ops.constant(self.arena, other)

    # Addition
    def __add__(self, other: Node | float) -> Node:
        return ops.add(self, self._lift(other))

    def __radd__(self, other: float) -> Node:
        return ops.add(self._lift(other), self)

    # Multiplication
    def __mul__(self, other: Node | float) -> Node:
        return ops.mul(self, self._lift(other))

    def __rmul__(self, other: float) -> Node:
        return ops.mul(self._lift(other), self)

    # Negation and subtraction
    def __neg__(self) -> Node:
        return ops.negate(self)

    def __sub__(self, other: Node | float) -> Node:
        return ops.add(self, ops.negate(self._lift(other)))

    def __rsub__(self, other: float) -> Node:
        return ops.add(self._lift(other), ops.negate(self))

    # Activations
    def relu(self) -> Node:
        return ops.relu(self)

    def sigmoid(self) -> Node:
        return ops.sigmoid(self)

    def clip(self) -> Node:
        return ops.clip(self)
