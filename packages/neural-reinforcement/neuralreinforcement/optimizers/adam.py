"""Adaptive moment optimizers acting on a network's gradient buffer."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

import numpy as np

if TYPE_CHECKING:
    from neuralreinforcement.network._network import Network

DEFAULT_ADAM_LEARNING_RATE = 0.001
DEFAULT_ADAMAX_LEARNING_RATE = 0.002
DEFAULT_ADAM_BETA1 = 0.9
DEFAULT_ADAM_BETA2 = 0.999
DEFAULT_ADAM_EPSILON = 1e-8


class Optimizer(Protocol):
    """Turns the gradient buffer of a network into a weight update."""

    def step(self, network: Network) -> None:
        """Update the weights of ``network`` from its current gradient."""
        ...


class Adam:
    """
    Implements the Adam optimization algorithm.

    Keeps exponential moving averages of the gradient (first moment) and of
    its square (second moment), with bias correction for the first steps.
    Gradients follow the ascent convention of the networks, so the update is
    added to the weights.

    Attributes
    ----------
        learning_rate (float): Step size.
        beta1 (float): Exponential decay rate for the first moment estimates.
        beta2 (float): Exponential decay rate for the second moment estimates.
        epsilon (float): A small constant to prevent division by zero.
        steps (int): Counter for the number of optimization steps taken.
    """

    def __init__(
        self,
        learning_rate: float = DEFAULT_ADAM_LEARNING_RATE,
        beta1: float = DEFAULT_ADAM_BETA1,
        beta2: float = DEFAULT_ADAM_BETA2,
        epsilon: float = DEFAULT_ADAM_EPSILON,
    ) -> None:
        self.learning_rate = learning_rate
        self.beta1 = beta1
        self.beta2 = beta2
        self.epsilon = epsilon
        self.m: list[np.ndarray] = []
        self.v: list[np.ndarray] = []
        self.steps = 0

    def step(self, network: Network) -> None:
        """Apply one Adam update to ``network``."""
        parameters = network.parameters()
        gradients = network.gradients()
        if not self.m:
            self.m = [np.zeros_like(g) for g in gradients]
            self.v = [np.zeros_like(g) for g in gradients]
        self.steps += 1
        c1 = 1.0 - self.beta1**self.steps
        c2 = np.sqrt(1.0 - self.beta2**self.steps)
        alpha_step = self.learning_rate * c2 / c1
        epsilon_step = self.epsilon * c2
        for param, grad, m, v in zip(parameters, gradients, self.m, self.v, strict=True):
            m *= self.beta1
            m += (1.0 - self.beta1) * grad
            v *= self.beta2
            v += (1.0 - self.beta2) * grad**2
            param += alpha_step * m / (np.sqrt(v) + epsilon_step)

    def __str__(self) -> str:
        """Return a string representation of the optimizer."""
        return (
            f"Adam("
            f"learning_rate={self.learning_rate}, "
            f"beta1={self.beta1}, "
            f"beta2={self.beta2}, "
            f"epsilon={self.epsilon}, "
            f"steps={self.steps})"
        )


class Adamax:
    """
    Implements Adamax, the infinity-norm variant of Adam.

    The second moment is replaced by an exponentially weighted maximum of the
    absolute gradient, which needs no bias correction.
    """

    def __init__(
        self,
        learning_rate: float = DEFAULT_ADAMAX_LEARNING_RATE,
        beta1: float = DEFAULT_ADAM_BETA1,
        beta2: float = DEFAULT_ADAM_BETA2,
        epsilon: float = DEFAULT_ADAM_EPSILON,
    ) -> None:
        self.learning_rate = learning_rate
        self.beta1 = beta1
        self.beta2 = beta2
        self.epsilon = epsilon
        self.m: list[np.ndarray] = []
        self.u: list[np.ndarray] = []
        self.steps = 0

    def step(self, network: Network) -> None:
        """Apply one Adamax update to ``network``."""
        parameters = network.parameters()
        gradients = network.gradients()
        if not self.m:
            self.m = [np.zeros_like(g) for g in gradients]
            self.u = [np.zeros_like(g) for g in gradients]
        self.steps += 1
        alpha_step = self.learning_rate / (1.0 - self.beta1**self.steps)
        for param, grad, m, u in zip(parameters, gradients, self.m, self.u, strict=True):
            m *= self.beta1
            m += (1.0 - self.beta1) * grad
            np.maximum(self.beta2 * u, np.abs(grad), out=u)
            param += alpha_step * m / (u + self.epsilon)

    def __str__(self) -> str:
        """Return a string representation of the optimizer."""
        return (
            f"Adamax("
            f"learning_rate={self.learning_rate}, "
            f"beta1={self.beta1}, "
            f"beta2={self.beta2}, "
            f"epsilon={self.epsilon}, "
            f"steps={self.steps})"
        )
