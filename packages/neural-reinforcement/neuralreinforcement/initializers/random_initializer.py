"""Random uniform initializers for layer weights."""

import numpy as np

from neuralreinforcement.initializers._initializer import WeightInitializer


class RandomUniformInitializer(WeightInitializer):
    """Initialize weights uniformly in a configurable range [low, high)."""

    def __init__(self, low: float = -0.1, high: float = 0.1) -> None:
        if low >= high:
            error_message = f"Invalid range [{low}, {high}): low must be smaller than high."
            raise ValueError(error_message)
        self.low = low
        self.high = high

    def __str__(self) -> str:
        """Return string representation of the initializer."""
        return f"RandomUniformInitializer(range=[{self.low}, {self.high}])"

    def initialize(
        self,
        shape: tuple[int, ...],
        rng: np.random.Generator,
    ) -> np.ndarray:
        """Draw values uniformly in the configured range."""
        return rng.uniform(self.low, self.high, size=shape)


class FanOutUniformInitializer(WeightInitializer):
    """
    Initialize weights uniformly in [-1/NO, 1/NO).

    NO is the number of output units of the layer, the first dimension of
    the requested shape. Wide layers start with proportionally smaller
    weights so that their summed contribution stays of order one.
    """

    def __str__(self) -> str:
        """Return string representation of the initializer."""
        return "FanOutUniformInitializer(range=[-1/NO, 1/NO])"

    def initialize(
        self,
        shape: tuple[int, ...],
        rng: np.random.Generator,
    ) -> np.ndarray:
        """Draw values uniformly in [-1/NO, 1/NO)."""
        bound = 1.0 / shape[0]
        return rng.uniform(-bound, bound, size=shape)
