"""Module for initializers."""

__all__ = [
    "FanOutUniformInitializer",
    "RandomUniformInitializer",
    "WeightInitializer",
    "ZeroInitializer",
]

from ._initializer import WeightInitializer
from .random_initializer import FanOutUniformInitializer, RandomUniformInitializer
from .zero_initializer import ZeroInitializer
