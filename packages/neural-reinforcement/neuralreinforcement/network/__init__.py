"""Module for networks, stochastic policies and the reinforcement engine."""

__all__ = [
    "ACTIVATIONS",
    "Activation",
    "EpisodeStats",
    "Id",
    "Layer",
    "LayerSpec",
    "Layers",
    "Network",
    "Reinforcement",
    "Relu",
    "Score",
    "Sigmoid",
    "SigmoidSim",
    "StochasticPolicy",
    "Tanh",
    "build_network",
    "create_activation",
]

from ._network import Network
from .activation import (
    ACTIVATIONS,
    Activation,
    Id,
    Relu,
    Sigmoid,
    SigmoidSim,
    Tanh,
    create_activation,
)
from .layer import Layer
from .layers import Layers, LayerSpec, build_network
from .policy import StochasticPolicy
from .reinforcement import EpisodeStats, Reinforcement
from .score import Score
