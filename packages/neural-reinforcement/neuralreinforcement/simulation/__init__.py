"""Module for simulations driving the reinforcement engine."""

__all__ = [
    "AccelerationSimulation",
    "AgentContext",
    "Parameter",
    "Reinforce",
    "Render",
    "Reply",
    "Request",
    "Reset",
    "Simulation",
    "SimulationWorker",
    "Trajectories",
    "UpdateParameter",
]

from ._simulation import (
    Parameter,
    Reinforce,
    Render,
    Reply,
    Request,
    Reset,
    Simulation,
    Trajectories,
    UpdateParameter,
)
from .acceleration import AccelerationSimulation, AgentContext
from .worker import SimulationWorker
