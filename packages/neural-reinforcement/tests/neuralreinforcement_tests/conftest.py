import numpy as np
import pytest
from neuralreinforcement.dtypes import ActivationType, MetaParameters
from neuralreinforcement.network import Layer, StochasticPolicy
from neuralreinforcement.utils.seeding import get_rng


@pytest.fixture
def rng():
    """Create a seeded random number generator."""
    return get_rng(12345)


@pytest.fixture
def linear_layer():
    """Create a 2-input, 1-output identity layer with known weights."""
    layer = Layer(2, 1, ActivationType.ID)
    layer.weights[...] = np.array([[0.3, -0.2]])
    layer.bias[...] = np.array([0.1])
    return layer


@pytest.fixture
def linear_policy(linear_layer):
    """Create a normal-sampling policy over the linear layer."""
    return StochasticPolicy(linear_layer)


@pytest.fixture
def meta_parameters():
    """Create meta parameters with full relaxation for deterministic gradients."""
    return MetaParameters(alpha=0.1, alpha_score=0.1, relaxation=1.0, sigma=0.5)
