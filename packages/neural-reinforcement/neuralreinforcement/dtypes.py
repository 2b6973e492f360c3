"""Define the shared types of the neural reinforcement package."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, field_validator

Float = float

# (lower bound, upper bound); None marks an unbounded side
OutputRange = tuple[Float | None, Float | None]


class ActivationType(Enum):
    """Available activation functions."""

    ID = "id"
    RELU = "relu"
    SIGMOID = "sigmoid"
    SIGMOID_SIM = "sigmoid_sim"
    TANH = "tanh"


class SamplingMethod(Enum):
    """
    Exploration distributions for the stochastic policy.

    - NORMAL: Gaussian centered on the network output, clipped to the output range
    - PERT: PERT distribution with the network output as mode, needs finite bounds
    """

    NORMAL = "normal"
    PERT = "pert"


class AdvantageScaling(Enum):
    """Bounded monotonic squashing applied to the advantage before rescaling a gradient."""

    ATAN = "atan"
    SIGMOID = "sigmoid"


class CreditAssignment(Enum):
    """
    How the rewards of an episode are credited to its actions.

    - TERMINAL: one relaxed gradient per episode, scaled by the cumulative reward
    - DISCOUNTED: per-step gradients scaled by the discounted return from that step
    """

    TERMINAL = "terminal"
    DISCOUNTED = "discounted"


DEFAULT_ALPHA = 1e-2
DEFAULT_ALPHA_SCORE = 1e-1
DEFAULT_RELAXATION = 1e-4
DEFAULT_SIGMA = 1e1


class MetaParameters(BaseModel):
    """Hyper-parameters of one reinforcement batch."""

    model_config = ConfigDict(frozen=True)

    alpha: Float = DEFAULT_ALPHA  # Learning rate of the policy network
    alpha_score: Float = DEFAULT_ALPHA_SCORE  # Learning rate of the score network
    relaxation: Float = DEFAULT_RELAXATION  # Gradient blending rate, also the discount
    sigma: Float = DEFAULT_SIGMA  # Exploration stddev (normal) or shape (pert)

    @field_validator("relaxation")
    @classmethod
    def validate_relaxation(cls, v: Float) -> Float:
        """Validate that relaxation lies in (0, 1]."""
        if not 0.0 < v <= 1.0:
            msg = f"relaxation must be in (0, 1], got {v}"
            raise ValueError(msg)
        return v

    @field_validator("sigma")
    @classmethod
    def validate_sigma(cls, v: Float) -> Float:
        """Validate that sigma is strictly positive."""
        if v <= 0.0:
            msg = f"sigma must be > 0, got {v}"
            raise ValueError(msg)
        return v
