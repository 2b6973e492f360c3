"""
Simulation harness around the reinforcement engine.

A simulation owns an engine, its meta parameters and a set of episode
contexts. It is driven by requests, so a front-end (a CLI loop or a
``SimulationWorker`` thread) never touches the networks directly.
"""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

import numpy as np

from neuralreinforcement.dtypes import Float, MetaParameters
from neuralreinforcement.logging_config import logger
from neuralreinforcement.network import EpisodeStats, Reinforcement

C = TypeVar("C")


class Parameter(Enum):
    """Meta parameters that can be updated while a simulation runs."""

    ALPHA = "alpha"
    ALPHA_SCORE = "alpha_score"
    RELAXATION = "relaxation"
    SIGMA = "sigma"


@dataclass(frozen=True)
class Reinforce:
    """Run one reinforcement request."""


@dataclass(frozen=True)
class Reset:
    """Randomize the networks and restart from the initial state."""


@dataclass(frozen=True)
class UpdateParameter:
    """Replace the value of one meta parameter."""

    parameter: Parameter | str
    value: Float


@dataclass(frozen=True)
class Render:
    """Roll out the deterministic policy; answered with ``Trajectories``."""


@dataclass
class Trajectories(Generic[C]):
    """Context snapshots of every deterministic roll-out, one list per context."""

    trajectories: list[list[C]] = field(default_factory=list)


Request = Reinforce | Reset | UpdateParameter | Render
Reply = Trajectories


class Simulation(ABC, Generic[C]):
    """
    A task solved by reinforcement.

    Subclasses describe the task: the initial contexts, the projection of a
    context onto the network input, the physics applied to an action and the
    reward of the resulting state.

    Parameters
    ----------
    reinforcement : Reinforcement
        Engine holding the policy (and optional score network).
    meta_parameters : MetaParameters
        Initial hyper-parameters.
    max_ticks : int
        Step limit of every episode and roll-out.
    reinforcements_per_request : int
        Number of engine batches run for each ``Reinforce`` request.
    """

    def __init__(
        self,
        reinforcement: Reinforcement,
        meta_parameters: MetaParameters,
        max_ticks: int,
        reinforcements_per_request: int = 1,
    ) -> None:
        self.reinforcement = reinforcement
        self._meta_parameters = meta_parameters
        self.max_ticks = max_ticks
        self.reinforcements_per_request = reinforcements_per_request
        self.total_reinforcements = 0

    def meta_parameters(self) -> MetaParameters:
        """Return the current meta parameters."""
        return self._meta_parameters

    def update_parameter(self, parameter: Parameter | str, value: Float) -> None:
        """
        Replace one meta parameter.

        The updated set is validated as a whole; an invalid value raises a
        pydantic ``ValidationError`` and keeps the previous parameters.
        """
        try:
            parameter = Parameter(parameter)
        except ValueError as exc:
            error_message = (
                f"Unknown parameter '{parameter}'. "
                f"Valid parameters: {', '.join(p.value for p in Parameter)}."
            )
            logger.error(error_message)
            raise ValueError(error_message) from exc
        values = self._meta_parameters.model_dump()
        values[parameter.value] = value
        self._meta_parameters = MetaParameters(**values)
        logger.info(f"Updated {parameter.value} to {value}")

    @abstractmethod
    def reset(self) -> None:
        """Randomize the networks and restore the initial state."""

    @abstractmethod
    def ctx_list(self) -> list[C]:
        """Return fresh episode contexts, one per agent."""

    @abstractmethod
    def ctx_to_action(self, ctx: C) -> np.ndarray:
        """Return the network input describing ``ctx``."""

    @abstractmethod
    def physics(self, ctx: C, action: np.ndarray) -> Any:  # noqa: ANN401
        """Apply ``action`` to ``ctx`` in place; return whatever ``score_goal`` needs."""

    @abstractmethod
    def score_goal(self, ctx: C, info: Any) -> tuple[Float, bool]:  # noqa: ANN401
        """Return the reward of the current step and whether the episode is over."""

    def step(self, ctx: C, action: np.ndarray) -> tuple[Float, bool]:
        """Apply the physics, then score the new state."""
        info = self.physics(ctx, action)
        return self.score_goal(ctx, info)

    def reinforce(self) -> list[EpisodeStats]:
        """Run ``reinforcements_per_request`` batches; return the stats of the last one."""
        stats: list[EpisodeStats] = []
        for _ in range(self.reinforcements_per_request):
            stats = self.reinforcement.reinforce(
                self._meta_parameters,
                self.ctx_list(),
                self.ctx_to_action,
                self.max_ticks,
                self.step,
            )
        self.total_reinforcements += self.reinforcements_per_request
        return stats

    def simulate(self) -> list[list[C]]:
        """
        Roll out the deterministic policy from every initial context.

        Returns
        -------
            One trajectory per context: the initial snapshot followed by the
            snapshot after every step, except the step that ended the episode.
        """
        trajectories = []
        for ctx in self.ctx_list():
            trajectory = [copy.deepcopy(ctx)]
            for _ in range(self.max_ticks):
                action = self.reinforcement.forward(self.ctx_to_action(ctx))
                _, done = self.step(ctx, action)
                if done:
                    break
                trajectory.append(copy.deepcopy(ctx))
            trajectories.append(trajectory)
        return trajectories

    def handle_request(self, request: Request) -> Reply | None:
        """Execute one request; only ``Render`` produces a reply."""
        match request:
            case UpdateParameter(parameter=parameter, value=value):
                self.update_parameter(parameter, value)
            case Reinforce():
                self.reinforce()
            case Reset():
                self.reset()
            case Render():
                return Trajectories(self.simulate())
            case _:
                error_message = f"Unknown simulation request: {request!r}"
                logger.error(error_message)
                raise TypeError(error_message)
        return None
