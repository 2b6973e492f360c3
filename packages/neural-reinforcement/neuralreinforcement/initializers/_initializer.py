"""Base class for weight initialization strategies."""

from typing import Protocol

import numpy as np


class WeightInitializer(Protocol):
    """Base class for weight initialization strategies."""

    def initialize(
        self,
        shape: tuple[int, ...],
        rng: np.random.Generator,
    ) -> np.ndarray:
        """
        Draw initial values for a weight or bias array.

        Parameters
        ----------
        shape : tuple[int, ...]
            Shape of the array to create. For a weight matrix this is
            ``(outputs, inputs)``, for a bias vector ``(outputs,)``.
        rng : np.random.Generator
            Generator providing the randomness.

        Returns
        -------
        np.ndarray
            A float64 array of the requested shape.
        """
        error_msg = "Subclasses must implement the `initialize` method."
        raise NotImplementedError(error_msg)
