"""
Chaining of networks.

``Layers(head, tail)`` feeds the output of ``head`` into ``tail``. Both sides
are networks, so chains nest freely: ``Layers(l1, Layers(l2, l3))`` and
``Layers(Layers(l1, l2), l3)`` compute the same outputs and gradients.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from neuralreinforcement.dtypes import ActivationType, Float, OutputRange
from neuralreinforcement.errors import (
    ERROR_GRADIENT_STRUCTURE_MISMATCH,
    ERROR_LAYERS_DIMENSION_MISMATCH,
)
from neuralreinforcement.initializers import WeightInitializer
from neuralreinforcement.logging_config import logger
from neuralreinforcement.network._network import Network
from neuralreinforcement.network.activation import Activation
from neuralreinforcement.network.layer import Layer

LayerSpec = tuple[int, Activation | ActivationType | str]


class Layers(Network):
    """Feed-forward composition of a head network followed by a tail network."""

    def __init__(self, head: Network, tail: Network) -> None:
        if head.output_dim != tail.input_dim:
            error_message = ERROR_LAYERS_DIMENSION_MISMATCH.format(
                head_outputs=head.output_dim,
                tail_inputs=tail.input_dim,
            )
            logger.error(error_message)
            raise ValueError(error_message)
        self.head = head
        self.tail = tail

    def __repr__(self) -> str:
        """Return the nested structure."""
        return f"Layers({self.head!r}, {self.tail!r})"

    @classmethod
    def from_layers(cls, *networks: Network) -> Network:
        """Chain networks front to back, nesting to the right."""
        if not networks:
            error_message = "At least one network is required to build a chain."
            raise ValueError(error_message)
        network = networks[-1]
        for head in reversed(networks[:-1]):
            network = cls(head, network)
        return network

    @property
    def input_dim(self) -> int:
        return self.head.input_dim

    @property
    def output_dim(self) -> int:
        return self.tail.output_dim

    def forward(self, inputs: Sequence[Float] | np.ndarray) -> np.ndarray:
        return self.tail.forward(self.head.forward(inputs))

    def update_gradient(self, relaxation: Float, delta: Sequence[Float] | np.ndarray) -> np.ndarray:
        # The output delta reaches the tail first
        return self.head.update_gradient(relaxation, self.tail.update_gradient(relaxation, delta))

    def reset_gradient(self) -> None:
        self.head.reset_gradient()
        self.tail.reset_gradient()

    def apply_gradient(self, alpha: Float) -> None:
        self.head.apply_gradient(alpha)
        self.tail.apply_gradient(alpha)

    def randomize(
        self,
        rng: np.random.Generator,
        initializer: WeightInitializer | None = None,
    ) -> None:
        self.head.randomize(rng, initializer)
        self.tail.randomize(rng, initializer)

    def rescale_gradient(self, a: Float) -> None:
        self.head.rescale_gradient(a)
        self.tail.rescale_gradient(a)

    def norm2_gradient(self) -> Float:
        return self.head.norm2_gradient() + self.tail.norm2_gradient()

    def add_gradient(self, other: Network) -> None:
        if not isinstance(other, Layers):
            error_message = ERROR_GRADIENT_STRUCTURE_MISMATCH.format(
                expected=type(self).__name__,
                actual=type(other).__name__,
            )
            raise ValueError(error_message)
        self.head.add_gradient(other.head)
        self.tail.add_gradient(other.tail)

    def output_ranges(self) -> list[OutputRange]:
        return self.tail.output_ranges()

    def parameters(self) -> list[np.ndarray]:
        return self.head.parameters() + self.tail.parameters()

    def gradients(self) -> list[np.ndarray]:
        return self.head.gradients() + self.tail.gradients()


def build_network(
    input_dim: int,
    layers: Sequence[LayerSpec],
    rng: np.random.Generator | None = None,
    initializer: WeightInitializer | None = None,
) -> Network:
    """
    Build a multi-layer perceptron.

    Args:
        input_dim: Number of inputs of the first layer.
        layers: ``(outputs, activation)`` of every layer, front to back.
        rng: Generator used to randomize the weights; zero weights when None.
        initializer: Weight initializer, ``±1/NO`` uniform when None.

    Returns
    -------
        A single ``Layer`` or a right-nested ``Layers`` chain.
    """
    built: list[Network] = []
    inputs = input_dim
    for outputs, activation in layers:
        built.append(Layer(inputs, outputs, activation, rng=rng, initializer=initializer))
        inputs = outputs
    network = Layers.from_layers(*built)
    logger.info(f"Built network: {network!r}")
    return network
