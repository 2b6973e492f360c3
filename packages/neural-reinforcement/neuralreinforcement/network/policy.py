"""
Stochastic policy over a bounded network.

The deterministic output of the wrapped network is the mean (normal
sampling) or the mode (PERT sampling) of the action distribution. After
sampling, the difference ``action - output`` is back-propagated as the
delta: the gradient then points from the current output towards the action
actually taken, and the reinforcement engine later rescales it by how much
better or worse than expected that action turned out.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from neuralreinforcement.dtypes import Float, OutputRange, SamplingMethod
from neuralreinforcement.errors import ERROR_PERT_UNBOUNDED_RANGE
from neuralreinforcement.logging_config import logger
from neuralreinforcement.network._network import Network

# Normal samples are clipped to 10 sigma around the mean when a side is unbounded
NORMAL_CLIP_SIGMAS = 10.0


def sample_normal(
    mean: np.ndarray,
    sigma: Float,
    ranges: Sequence[OutputRange],
    rng: np.random.Generator,
) -> np.ndarray:
    """
    Sample one normal value per unit, clipped to its range and to ``mean ± 10 sigma``.

    Args:
        mean: Center of each unit's distribution.
        sigma: Standard deviation, shared by every unit.
        ranges: ``(lower, upper)`` of each unit, ``None`` for an unbounded side.
        rng: Generator providing the randomness.

    Returns
    -------
        The sampled values.
    """
    limit = NORMAL_CLIP_SIGMAS * sigma
    lower = np.array([-np.inf if lo is None else lo for lo, _ in ranges])
    upper = np.array([np.inf if hi is None else hi for _, hi in ranges])
    lower = np.maximum(lower, mean - limit)
    upper = np.minimum(upper, mean + limit)
    return np.clip(rng.normal(mean, sigma), lower, upper)


def sample_pert(
    mode: np.ndarray,
    shape: Float,
    ranges: Sequence[OutputRange],
    rng: np.random.Generator,
) -> np.ndarray:
    """
    Sample one PERT value per unit.

    PERT(min, max, mode, shape) is a Beta distribution rescaled to
    ``[min, max]`` with parameters ``1 + shape * (mode - min) / (max - min)``
    and ``1 + shape * (max - mode) / (max - min)``. ``shape = 4`` gives the
    classic PERT; larger shapes concentrate the samples around the mode.

    Args:
        mode: Mode of each unit's distribution, inside its range.
        shape: Concentration, shared by every unit.
        ranges: Finite ``(lower, upper)`` of each unit.
        rng: Generator providing the randomness.

    Returns
    -------
        The sampled values.
    """
    lower = np.array([lo for lo, _ in ranges], dtype=np.float64)
    upper = np.array([hi for _, hi in ranges], dtype=np.float64)
    width = upper - lower
    # The output of a saturated activation can sit exactly on a bound
    relative_mode = np.clip((mode - lower) / width, 0.0, 1.0)
    a = 1.0 + shape * relative_mode
    b = 1.0 + shape * (1.0 - relative_mode)
    return lower + width * rng.beta(a, b)


class StochasticPolicy:
    """
    Randomized action selection around the output of a network.

    Parameters
    ----------
    network : Network
        The policy network. Its output ranges bound the sampled actions.
    sampling : SamplingMethod
        Normal or PERT exploration. PERT needs every output to have two
        finite bounds; this is checked here, at construction.
    """

    def __init__(
        self,
        network: Network,
        sampling: SamplingMethod = SamplingMethod.NORMAL,
    ) -> None:
        sampling = SamplingMethod(sampling)
        if sampling == SamplingMethod.PERT and not all(
            lo is not None and hi is not None for lo, hi in network.output_ranges()
        ):
            logger.error(ERROR_PERT_UNBOUNDED_RANGE)
            raise ValueError(ERROR_PERT_UNBOUNDED_RANGE)
        self.network = network
        self.sampling = sampling

    def __repr__(self) -> str:
        """Return the sampling method and the wrapped network."""
        return f"StochasticPolicy({self.sampling.value}, {self.network!r})"

    def clone(self) -> StochasticPolicy:
        """Return a policy over a clone of the network, with a zeroed gradient."""
        return StochasticPolicy(self.network.clone(), self.sampling)

    def forward(self, inputs: Sequence[Float] | np.ndarray) -> np.ndarray:
        """Return the deterministic action."""
        return self.network.forward(inputs)

    def sample(
        self,
        outputs: np.ndarray,
        sigma: Float,
        rng: np.random.Generator,
    ) -> np.ndarray:
        """Sample an action around ``outputs``; ``sigma`` is the PERT shape for PERT."""
        ranges = self.network.output_ranges()
        if self.sampling == SamplingMethod.PERT:
            return sample_pert(outputs, sigma, ranges, rng)
        return sample_normal(outputs, sigma, ranges, rng)

    def stochastic_forward(
        self,
        inputs: Sequence[Float] | np.ndarray,
        sigma: Float,
        relaxation: Float,
        rng: np.random.Generator,
    ) -> np.ndarray:
        """
        Sample an action and blend its log-derivative direction into the gradient.

        Args:
            inputs: Network input.
            sigma: Normal standard deviation, or PERT shape.
            relaxation: Blending rate of the gradient update.
            rng: Generator providing the randomness.

        Returns
        -------
            The sampled action.
        """
        outputs = self.network.forward(inputs)
        action = self.sample(outputs, sigma, rng)
        self.network.update_gradient(relaxation, action - outputs)
        return action
