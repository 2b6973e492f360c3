"""Running statistics of episode rewards, used as a reinforcement baseline."""

import math

from neuralreinforcement.dtypes import Float

SCORE_MEAN_GAIN = 0.5
SCORE_VARIANCE_GAIN = 1e-4


class Score:
    """
    Exponentially filtered mean and variance of a reward signal.

    ``update`` returns ``diff``, the sample minus the mean *before* the
    update, which serves as the advantage of the sample. The mean moves half
    way to every new sample; the variance tracks the squared diff with a
    much smaller gain.
    """

    def __init__(self) -> None:
        self.last: Float = 0.0
        self.diff: Float = 0.0
        self.mean: Float = 0.0
        self.var: Float = 0.0

    def __repr__(self) -> str:
        """Return the current statistics."""
        return (
            f"Score(last={self.last:.4g}, mean={self.mean:.4g}, "
            f"diff={self.diff:.4g}, sigma={self.sigma:.4g})"
        )

    @property
    def sigma(self) -> Float:
        """Standard deviation estimate."""
        return math.sqrt(self.var)

    def update(self, sample: Float) -> Float:
        """Fold ``sample`` into the statistics and return its advantage."""
        self.last = sample
        self.diff = sample - self.mean
        self.mean += SCORE_MEAN_GAIN * self.diff
        self.var = (1.0 - SCORE_VARIANCE_GAIN) * self.var + SCORE_VARIANCE_GAIN * self.diff**2
        return self.diff
