"""Module for optimizers and gradient methods."""

__all__ = [
    "Adam",
    "Adamax",
    "GradientCalculationMethod",
    "Optimizer",
    "compute_gradients",
    "scale_advantage",
]

from .adam import Adam, Adamax, Optimizer
from .gradient_methods import GradientCalculationMethod, compute_gradients, scale_advantage
