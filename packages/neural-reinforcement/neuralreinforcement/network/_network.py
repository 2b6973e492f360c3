"""
Feed-forward network contract.

A network maps an input vector to an output vector and keeps, next to its
weights, a gradient buffer with the same shape. The buffer is filled by
``update_gradient`` and consumed by ``apply_gradient``.

Forward and backward calls are order-dependent: ``update_gradient`` uses the
input and pre-activation cached by the last ``forward`` call, so the forward
pass of a sample must immediately precede its backward pass.

Gradients follow the ascent convention. The delta fed to ``update_gradient``
is ``target - output`` and ``apply_gradient(alpha)`` adds ``alpha * gradient``
to the weights, which moves the output towards the target.
"""

from __future__ import annotations

import copy
import math
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TYPE_CHECKING

import numpy as np

from neuralreinforcement.dtypes import Float, OutputRange
from neuralreinforcement.logging_config import logger

if TYPE_CHECKING:
    from neuralreinforcement.initializers import WeightInitializer
    from neuralreinforcement.optimizers.adam import Optimizer

TrainingSample = tuple[Sequence[Float] | np.ndarray, Sequence[Float] | np.ndarray]


class Network(ABC):
    """A differentiable stage: a single layer or a chain of stages."""

    @property
    @abstractmethod
    def input_dim(self) -> int:
        """Number of inputs."""

    @property
    @abstractmethod
    def output_dim(self) -> int:
        """Number of outputs."""

    @abstractmethod
    def forward(self, inputs: Sequence[Float] | np.ndarray) -> np.ndarray:
        """Compute the outputs and cache what the backward pass needs."""

    @abstractmethod
    def update_gradient(self, relaxation: Float, delta: Sequence[Float] | np.ndarray) -> np.ndarray:
        """
        Back-propagate ``delta`` and blend the result into the gradient buffer.

        The buffer becomes ``(1 - relaxation) * gradient + relaxation * new``:
        ``relaxation = 1`` keeps only the new gradient, ``relaxation = 0.5``
        averages the new and previous values.

        Returns the delta for the inputs, to feed the preceding stage.
        """

    @abstractmethod
    def reset_gradient(self) -> None:
        """Zero the gradient buffer."""

    @abstractmethod
    def apply_gradient(self, alpha: Float) -> None:
        """Add ``alpha * gradient`` to the weights."""

    @abstractmethod
    def randomize(
        self,
        rng: np.random.Generator,
        initializer: WeightInitializer | None = None,
    ) -> None:
        """Draw new weights."""

    @abstractmethod
    def rescale_gradient(self, a: Float) -> None:
        """Multiply the gradient buffer by ``a``."""

    @abstractmethod
    def norm2_gradient(self) -> Float:
        """Return the squared L2 norm of the gradient buffer."""

    @abstractmethod
    def add_gradient(self, other: Network) -> None:
        """Add the gradient buffer of a network with the same structure."""

    @abstractmethod
    def output_ranges(self) -> list[OutputRange]:
        """Return the declared range of every output unit."""

    @abstractmethod
    def parameters(self) -> list[np.ndarray]:
        """Return the weight arrays, in a stable order."""

    @abstractmethod
    def gradients(self) -> list[np.ndarray]:
        """Return the gradient arrays, in the order of ``parameters``."""

    def normalize_gradient(self) -> Float:
        """
        Rescale the gradient buffer to unit L2 norm.

        A zero gradient is left untouched.

        Returns
        -------
            The norm of the gradient before normalization.
        """
        norm = math.sqrt(self.norm2_gradient())
        if norm > 0.0:
            self.rescale_gradient(1.0 / norm)
        return norm

    def clone(self) -> Network:
        """Return an independent copy with the same weights and a zeroed gradient."""
        network = copy.deepcopy(self)
        network.reset_gradient()
        return network

    def train(
        self,
        iterations: int,
        alpha: Float,
        training_data: Sequence[TrainingSample],
        *,
        optimizer: Optimizer | None = None,
    ) -> Float:
        """
        Fit the network to a fixed dataset by per-sample gradient steps.

        For every sample the delta ``target - output`` is back-propagated
        with ``relaxation = 1`` and applied right away, either as a plain
        step of size ``alpha`` or through ``optimizer`` (which then uses its
        own learning rate).

        Args:
            iterations: Number of passes over the dataset.
            alpha: Step size of the plain gradient step.
            training_data: ``(inputs, targets)`` pairs.
            optimizer: Optional optimizer replacing the plain step.

        Returns
        -------
            The mean squared error per sample of the last pass.
        """
        log_interval = max(1, iterations // 10)
        error = 0.0
        for i in range(iterations):
            error = 0.0
            for inputs, targets in training_data:
                outputs = self.forward(inputs)
                delta = np.asarray(targets, dtype=np.float64) - outputs
                error += float(np.dot(delta, delta))
                self.update_gradient(1.0, delta)
                if optimizer is None:
                    self.apply_gradient(alpha)
                else:
                    optimizer.step(self)
            error /= max(1, len(training_data))
            if i % log_interval == 0 or i == iterations - 1:
                logger.info(f"Training iteration {i}: mean squared error = {error:.3e}")
        self.reset_gradient()
        return error
