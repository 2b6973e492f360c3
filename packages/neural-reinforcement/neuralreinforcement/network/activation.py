"""
Scalar activation functions.

Every activation is stateless and vectorized: ``apply`` and ``derivative``
accept a float or a numpy array and work elementwise. ``derivative`` is
evaluated at the pre-activation value, not at the activation output.

``range`` declares the co-domain as ``(lower, upper)`` where ``None`` marks an
unbounded side. The stochastic policy relies on it to keep sampled actions
inside what the output layer can produce.
"""

from abc import ABC, abstractmethod

import numpy as np

from neuralreinforcement.dtypes import ActivationType, OutputRange
from neuralreinforcement.errors import ERROR_UNKNOWN_ACTIVATION
from neuralreinforcement.logging_config import logger


class Activation(ABC):
    """Base class of the activation functions."""

    activation_type: ActivationType

    @abstractmethod
    def apply(self, x: np.ndarray) -> np.ndarray:
        """Compute the activation of ``x``."""

    @abstractmethod
    def derivative(self, x: np.ndarray) -> np.ndarray:
        """Compute the derivative of the activation at the pre-activation ``x``."""

    def range(self) -> OutputRange:
        """Return the declared output range, unbounded by default."""
        return (None, None)

    def is_bounded(self) -> bool:
        """Check whether both sides of the output range are finite."""
        lower, upper = self.range()
        return lower is not None and upper is not None

    def __repr__(self) -> str:
        """Return the name of the activation."""
        return f"{type(self).__name__}()"

    def __eq__(self, other: object) -> bool:
        """Activations are stateless, so two instances of a class are equal."""
        return type(self) is type(other)

    def __hash__(self) -> int:
        """Hash on the activation class."""
        return hash(type(self))


class Id(Activation):
    """Identity: ``y = x``."""

    activation_type = ActivationType.ID

    def apply(self, x: np.ndarray) -> np.ndarray:
        return np.asarray(x, dtype=np.float64)

    def derivative(self, x: np.ndarray) -> np.ndarray:
        return np.ones_like(x, dtype=np.float64)


class Relu(Activation):
    """Rectified linear unit: ``y = max(0, x)`` with range ``[0, +inf)``."""

    activation_type = ActivationType.RELU

    def apply(self, x: np.ndarray) -> np.ndarray:
        return np.maximum(x, 0.0)

    def derivative(self, x: np.ndarray) -> np.ndarray:
        return np.where(np.asarray(x) > 0.0, 1.0, 0.0)

    def range(self) -> OutputRange:
        return (0.0, None)


def _logistic_parts(x: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """
    Return ``(sigmoid(x), sigmoid'(x))`` with overflow mapped to zero slope.

    ``exp(-x)`` overflows for very negative ``x``. The derivative
    ``e / (1 + e)**2`` then becomes ``inf / inf``; those entries are set to 0.
    """
    with np.errstate(over="ignore", invalid="ignore"):
        e = np.exp(-np.asarray(x, dtype=np.float64))
        value = 1.0 / (1.0 + e)
        slope = e / (1.0 + e) ** 2
    slope = np.where(np.isfinite(slope), slope, 0.0)
    return value, slope


class Sigmoid(Activation):
    """Logistic sigmoid ``y = 1 / (1 + exp(-x))`` with range ``[0, 1]``."""

    activation_type = ActivationType.SIGMOID

    def apply(self, x: np.ndarray) -> np.ndarray:
        return _logistic_parts(x)[0]

    def derivative(self, x: np.ndarray) -> np.ndarray:
        return _logistic_parts(x)[1]

    def range(self) -> OutputRange:
        return (0.0, 1.0)


class SigmoidSim(Activation):
    """Sigmoid rescaled to be symmetric: ``y = 2 / (1 + exp(-x)) - 1`` with range ``[-1, 1]``."""

    activation_type = ActivationType.SIGMOID_SIM

    def apply(self, x: np.ndarray) -> np.ndarray:
        return 2.0 * _logistic_parts(x)[0] - 1.0

    def derivative(self, x: np.ndarray) -> np.ndarray:
        return 2.0 * _logistic_parts(x)[1]

    def range(self) -> OutputRange:
        return (-1.0, 1.0)


class Tanh(Activation):
    """Hyperbolic tangent ``y = tanh(x)`` with range ``[-1, 1]``."""

    activation_type = ActivationType.TANH

    def apply(self, x: np.ndarray) -> np.ndarray:
        return np.tanh(np.asarray(x, dtype=np.float64))

    def derivative(self, x: np.ndarray) -> np.ndarray:
        return 1.0 - np.tanh(np.asarray(x, dtype=np.float64)) ** 2

    def range(self) -> OutputRange:
        return (-1.0, 1.0)


ACTIVATIONS: dict[ActivationType, type[Activation]] = {
    ActivationType.ID: Id,
    ActivationType.RELU: Relu,
    ActivationType.SIGMOID: Sigmoid,
    ActivationType.SIGMOID_SIM: SigmoidSim,
    ActivationType.TANH: Tanh,
}


def create_activation(activation: ActivationType | str) -> Activation:
    """
    Create an activation from its type or its configuration name.

    Args:
        activation: An ``ActivationType`` or one of its string values.

    Returns
    -------
        A new activation instance.
    """
    try:
        activation_type = ActivationType(activation)
    except ValueError as exc:
        valid = ", ".join(a.value for a in ActivationType)
        error_message = ERROR_UNKNOWN_ACTIVATION.format(name=activation, valid=valid)
        logger.error(error_message)
        raise ValueError(error_message) from exc
    return ACTIVATIONS[activation_type]()
