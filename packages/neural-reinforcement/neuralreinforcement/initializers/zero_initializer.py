"""Zeros initializer for layer weights."""

import numpy as np

from neuralreinforcement.initializers._initializer import WeightInitializer


class ZeroInitializer(WeightInitializer):
    """Initialize weights to zero."""

    def __str__(self) -> str:
        """Return string representation of the initializer."""
        return "ZeroInitializer()"

    def initialize(
        self,
        shape: tuple[int, ...],
        rng: np.random.Generator,  # noqa: ARG002
    ) -> np.ndarray:
        """Return an array of zeros."""
        return np.zeros(shape)
