"""Exceptions raised by the engine."""


class ScalarGradError(Exception):
    """Base class for all engine errors."""


class ArenaExhaustedError(ScalarGradError):
    """Raised when a node is allocated past the arena capacity or after release."""


class GraphCapacityError(ScalarGradError):
    """Raised when a traversal reaches more distinct nodes than it was sized for."""


class EmptyGraphError(ScalarGradError):
    """Raised when an optimization step is requested on a graph without nodes."""


class UnsupportedActivationError(ScalarGradError, NotImplementedError):
    """Raised for activation kinds that have no operator implementation."""
