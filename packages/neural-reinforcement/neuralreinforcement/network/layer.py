"""Fully connected layer: one affine transform followed by an activation."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from neuralreinforcement.dtypes import ActivationType, Float, OutputRange
from neuralreinforcement.errors import (
    ERROR_DELTA_DIMENSION_MISMATCH,
    ERROR_GRADIENT_SHAPE_MISMATCH,
    ERROR_GRADIENT_STRUCTURE_MISMATCH,
    ERROR_INPUT_DIMENSION_MISMATCH,
    ERROR_LAYER_EMPTY,
)
from neuralreinforcement.initializers import FanOutUniformInitializer, WeightInitializer
from neuralreinforcement.logging_config import logger
from neuralreinforcement.network._network import Network
from neuralreinforcement.network.activation import Activation, create_activation


class Layer(Network):
    """
    Dense layer ``y = activation(W x + b)``.

    Attributes
    ----------
    weights : np.ndarray
        Weight matrix of shape ``(outputs, inputs)``.
    bias : np.ndarray
        Bias vector of shape ``(outputs,)``.
    gradient, gradient_bias : np.ndarray
        Relaxed gradient buffers, same shapes as ``weights`` and ``bias``.
    activation : Activation
        Activation applied to every output unit.
    """

    def __init__(
        self,
        inputs: int,
        outputs: int,
        activation: Activation | ActivationType | str = ActivationType.ID,
        rng: np.random.Generator | None = None,
        initializer: WeightInitializer | None = None,
    ) -> None:
        if inputs < 1 or outputs < 1:
            error_message = ERROR_LAYER_EMPTY.format(inputs=inputs, outputs=outputs)
            logger.error(error_message)
            raise ValueError(error_message)
        if not isinstance(activation, Activation):
            activation = create_activation(activation)
        self.activation = activation
        self.weights = np.zeros((outputs, inputs))
        self.bias = np.zeros(outputs)
        self.gradient = np.zeros((outputs, inputs))
        self.gradient_bias = np.zeros(outputs)
        self._inputs = np.zeros(inputs)
        self._pre_activations = np.zeros(outputs)
        if rng is not None:
            self.randomize(rng, initializer)

    def __repr__(self) -> str:
        """Return the shape and activation of the layer."""
        return f"Layer({self.input_dim} -> {self.output_dim}, {self.activation!r})"

    @property
    def input_dim(self) -> int:
        return self.weights.shape[1]

    @property
    def output_dim(self) -> int:
        return self.weights.shape[0]

    def forward(self, inputs: Sequence[Float] | np.ndarray) -> np.ndarray:
        inputs = np.asarray(inputs, dtype=np.float64)
        if inputs.shape != (self.input_dim,):
            error_message = ERROR_INPUT_DIMENSION_MISMATCH.format(
                expected=self.input_dim,
                actual=inputs.shape[0] if inputs.ndim == 1 else inputs.shape,
            )
            raise ValueError(error_message)
        self._inputs = inputs.copy()
        self._pre_activations = self.weights @ inputs + self.bias
        return self.activation.apply(self._pre_activations)

    def update_gradient(self, relaxation: Float, delta: Sequence[Float] | np.ndarray) -> np.ndarray:
        delta = np.asarray(delta, dtype=np.float64)
        if delta.shape != (self.output_dim,):
            error_message = ERROR_DELTA_DIMENSION_MISMATCH.format(
                expected=self.output_dim,
                actual=delta.shape[0] if delta.ndim == 1 else delta.shape,
            )
            raise ValueError(error_message)
        local = delta * self.activation.derivative(self._pre_activations)
        delta_out = local @ self.weights
        self.gradient *= 1.0 - relaxation
        self.gradient += relaxation * np.outer(local, self._inputs)
        self.gradient_bias *= 1.0 - relaxation
        self.gradient_bias += relaxation * local
        return delta_out

    def reset_gradient(self) -> None:
        self.gradient.fill(0.0)
        self.gradient_bias.fill(0.0)

    def apply_gradient(self, alpha: Float) -> None:
        self.weights += alpha * self.gradient
        self.bias += alpha * self.gradient_bias

    def randomize(
        self,
        rng: np.random.Generator,
        initializer: WeightInitializer | None = None,
    ) -> None:
        """Draw weights and bias, by default uniformly in ``[-1/NO, 1/NO)``."""
        initializer = initializer or FanOutUniformInitializer()
        self.weights[...] = initializer.initialize(self.weights.shape, rng)
        self.bias[...] = initializer.initialize(self.bias.shape, rng)

    def rescale_gradient(self, a: Float) -> None:
        self.gradient *= a
        self.gradient_bias *= a

    def norm2_gradient(self) -> Float:
        return float(np.sum(self.gradient**2) + np.sum(self.gradient_bias**2))

    def add_gradient(self, other: Network) -> None:
        if not isinstance(other, Layer):
            error_message = ERROR_GRADIENT_STRUCTURE_MISMATCH.format(
                expected=type(self).__name__,
                actual=type(other).__name__,
            )
            raise ValueError(error_message)
        if other.gradient.shape != self.gradient.shape:
            error_message = ERROR_GRADIENT_SHAPE_MISMATCH.format(
                expected=self.gradient.shape,
                actual=other.gradient.shape,
            )
            raise ValueError(error_message)
        self.gradient += other.gradient
        self.gradient_bias += other.gradient_bias

    def output_ranges(self) -> list[OutputRange]:
        return [self.activation.range()] * self.output_dim

    def parameters(self) -> list[np.ndarray]:
        return [self.weights, self.bias]

    def gradients(self) -> list[np.ndarray]:
        return [self.gradient, self.gradient_bias]
