"""Load and configure simulation settings from a YAML file."""

from pathlib import Path

import numpy as np
import yaml
from pydantic import BaseModel, field_validator

from neuralreinforcement.dtypes import (
    ActivationType,
    AdvantageScaling,
    CreditAssignment,
    MetaParameters,
    SamplingMethod,
)
from neuralreinforcement.initializers import (
    FanOutUniformInitializer,
    RandomUniformInitializer,
    WeightInitializer,
    ZeroInitializer,
)
from neuralreinforcement.logging_config import logger
from neuralreinforcement.network import (
    Network,
    Reinforcement,
    StochasticPolicy,
    build_network,
)
from neuralreinforcement.optimizers.gradient_methods import (
    DEFAULT_MAX_GRADIENT_NORM,
    GradientCalculationMethod,
)

DEFAULT_HIDDEN_DIMS = (16, 16)
DEFAULT_MAX_TICKS = 100
DEFAULT_BATCHES = 100


class NetworkConfig(BaseModel):
    """Configuration of a multi-layer perceptron; the output size is set by the task."""

    hidden_dims: list[int] = list(DEFAULT_HIDDEN_DIMS)
    hidden_activation: ActivationType = ActivationType.RELU
    output_activation: ActivationType = ActivationType.ID

    @field_validator("hidden_dims")
    @classmethod
    def validate_hidden_dims(cls, v: list[int]) -> list[int]:
        """Validate that every hidden layer has at least one unit."""
        if any(dim < 1 for dim in v):
            msg = f"hidden_dims must be positive, got {v}"
            raise ValueError(msg)
        return v


class ReinforcementConfig(BaseModel):
    """Configuration of the reinforcement engine."""

    sampling: SamplingMethod = SamplingMethod.NORMAL
    advantage: AdvantageScaling = AdvantageScaling.ATAN
    credit_assignment: CreditAssignment = CreditAssignment.TERMINAL
    gradient_method: GradientCalculationMethod = GradientCalculationMethod.NORMALIZE
    max_gradient_norm: float = DEFAULT_MAX_GRADIENT_NORM  # For norm_clip
    use_score_network: bool = True
    workers: int = 1

    @field_validator("workers")
    @classmethod
    def validate_workers(cls, v: int) -> int:
        """Validate that at least one worker runs the episodes."""
        if v < 1:
            msg = f"workers must be >= 1, got {v}"
            raise ValueError(msg)
        return v

    @field_validator("max_gradient_norm")
    @classmethod
    def validate_max_gradient_norm(cls, v: float) -> float:
        """Validate that the clipping norm is strictly positive."""
        if v <= 0.0:
            msg = f"max_gradient_norm must be > 0, got {v}"
            raise ValueError(msg)
        return v


class ParameterInitializerConfig(BaseModel):
    """Configuration for weight initialization."""

    type: str = "fan_out"
    low: float = -0.1  # For random_uniform
    high: float = 0.1  # For random_uniform


class SimulationConfig(BaseModel):
    """Configuration for a reinforcement simulation."""

    seed: int | None = None
    max_ticks: int = DEFAULT_MAX_TICKS
    batches: int = DEFAULT_BATCHES
    reinforcements_per_batch: int = 1
    meta_parameters: MetaParameters | None = None
    network: NetworkConfig | None = None
    score_network: NetworkConfig | None = None
    reinforcement: ReinforcementConfig | None = None
    parameter_initializer: ParameterInitializerConfig | None = None


def load_simulation_config(config_path: str | Path) -> SimulationConfig:
    """
    Load simulation configuration from a YAML file and parse it into a SimulationConfig model.

    Args:
        config_path (str | Path): Path to the YAML configuration file.

    Returns
    -------
        SimulationConfig: Parsed configuration as a Pydantic model.
    """
    with Path(config_path).open() as file:
        data = yaml.safe_load(file) or {}
        return SimulationConfig(**data)


def configure_meta_parameters(config: SimulationConfig) -> MetaParameters:
    """
    Configure the meta parameters, with the defaults of the package when absent.

    Args:
        config (SimulationConfig): Simulation configuration object.

    Returns
    -------
        MetaParameters: The validated meta parameters.
    """
    if config.meta_parameters is None:
        logger.info("No meta_parameters configuration found. Using defaults.")
        return MetaParameters()
    return config.meta_parameters


def configure_reinforcement(config: SimulationConfig) -> ReinforcementConfig:
    """
    Configure the reinforcement engine options.

    Args:
        config (SimulationConfig): Simulation configuration object.

    Returns
    -------
        ReinforcementConfig: The configured engine options.
    """
    return config.reinforcement or ReinforcementConfig()


def configure_parameter_initializer(
    config: SimulationConfig,
) -> ParameterInitializerConfig:
    """
    Configure the parameter initializer based on the provided configuration.

    Args:
        config (SimulationConfig): Simulation configuration object.

    Returns
    -------
        ParameterInitializerConfig: The configured parameter initializer object.
    """
    return config.parameter_initializer or ParameterInitializerConfig()


def create_parameter_initializer_instance(
    param_config: ParameterInitializerConfig,
) -> WeightInitializer:
    """
    Create a weight initializer instance from configuration.

    Args:
        param_config: Parameter initializer configuration.

    Returns
    -------
        Weight initializer instance.

    Raises
    ------
        ValueError: If an unknown parameter initializer type is specified.
    """
    init_type = param_config.type.lower()

    if init_type == "fan_out":
        return FanOutUniformInitializer()
    if init_type == "random_uniform":
        return RandomUniformInitializer(low=param_config.low, high=param_config.high)
    if init_type == "zero":
        return ZeroInitializer()
    error_message = (
        f"Unknown parameter initializer type: {init_type}. "
        "Valid options are: 'fan_out', 'random_uniform', 'zero'."
    )
    logger.error(error_message)
    raise ValueError(error_message)


def configure_network(  # noqa: PLR0913
    network_config: NetworkConfig | None,
    input_dim: int,
    output_dim: int,
    rng: np.random.Generator,
    initializer: WeightInitializer | None = None,
    output_activation: ActivationType | None = None,
) -> Network:
    """
    Build a randomized network from its configuration.

    Args:
        network_config: Hidden layers and activations; defaults when None.
        input_dim: Number of inputs, fixed by the task.
        output_dim: Number of outputs, fixed by the task.
        rng: Generator for the initial weights.
        initializer: Weight initializer; ``±1/NO`` uniform when None.
        output_activation: Overrides the configured output activation.

    Returns
    -------
        The built network.
    """
    network_config = network_config or NetworkConfig()
    layers = [(dim, network_config.hidden_activation) for dim in network_config.hidden_dims]
    layers.append((output_dim, output_activation or network_config.output_activation))
    return build_network(input_dim, layers, rng=rng, initializer=initializer)


def create_reinforcement_instance(
    config: SimulationConfig,
    input_dim: int,
    output_dim: int,
    rng: np.random.Generator,
) -> Reinforcement:
    """
    Create the policy, the optional score network and the engine driving them.

    Args:
        config (SimulationConfig): Simulation configuration object.
        input_dim (int): Size of the observation fed to the networks.
        output_dim (int): Size of the action produced by the policy.
        rng (np.random.Generator): Generator for weights and episodes.

    Returns
    -------
        Reinforcement: The configured engine.
    """
    reinforcement_config = configure_reinforcement(config)
    initializer = create_parameter_initializer_instance(configure_parameter_initializer(config))

    policy = StochasticPolicy(
        configure_network(config.network, input_dim, output_dim, rng, initializer),
        reinforcement_config.sampling,
    )
    score_network = None
    if reinforcement_config.use_score_network:
        # The score predicts an unbounded reward
        score_network = configure_network(
            config.score_network,
            input_dim,
            1,
            rng,
            initializer,
            output_activation=ActivationType.ID,
        )

    logger.info(
        f"Reinforcement configured: sampling={reinforcement_config.sampling.value}, "
        f"advantage={reinforcement_config.advantage.value}, "
        f"credit_assignment={reinforcement_config.credit_assignment.value}, "
        f"gradient_method={reinforcement_config.gradient_method.value}, "
        f"score_network={score_network is not None}, workers={reinforcement_config.workers}, "
        f"initializer={initializer}",
    )
    return Reinforcement(
        policy,
        score_network,
        advantage_scaling=reinforcement_config.advantage,
        credit_assignment=reinforcement_config.credit_assignment,
        gradient_method=reinforcement_config.gradient_method,
        max_gradient_norm=reinforcement_config.max_gradient_norm,
        workers=reinforcement_config.workers,
        rng=rng,
        initializer=initializer,
    )
