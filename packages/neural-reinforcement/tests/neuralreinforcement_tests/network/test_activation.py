"""Tests for the activation functions."""

import warnings

import numpy as np
import pytest
from neuralreinforcement.dtypes import ActivationType
from neuralreinforcement.network.activation import (
    Activation,
    Id,
    Relu,
    Sigmoid,
    SigmoidSim,
    Tanh,
    create_activation,
)


class TestActivationValues:
    """Test cases for activation values and derivatives."""

    @pytest.mark.parametrize(
        ("activation", "x", "expected"),
        [
            (Id(), -2.5, -2.5),
            (Relu(), -1.0, 0.0),
            (Relu(), 3.0, 3.0),
            (Sigmoid(), 0.0, 0.5),
            (SigmoidSim(), 0.0, 0.0),
            (SigmoidSim(), 50.0, 1.0),
            (Tanh(), 0.0, 0.0),
            (Tanh(), 1.0, 0.7615941559557649),
        ],
    )
    def test_apply(self, activation, x, expected):
        """Test activation values at reference points."""
        assert activation.apply(np.array([x]))[0] == pytest.approx(expected)

    @pytest.mark.parametrize(
        ("activation", "x", "expected"),
        [
            (Id(), 7.0, 1.0),
            (Relu(), -1.0, 0.0),
            (Relu(), 2.0, 1.0),
            (Sigmoid(), 0.0, 0.25),
            (SigmoidSim(), 0.0, 0.5),
            (Tanh(), 0.0, 1.0),
        ],
    )
    def test_derivative(self, activation, x, expected):
        """Test derivatives at reference points."""
        assert activation.derivative(np.array([x]))[0] == pytest.approx(expected)

    @pytest.mark.parametrize("activation", [Id(), Relu(), Sigmoid(), SigmoidSim(), Tanh()])
    def test_derivative_matches_finite_difference(self, activation):
        """Test that derivatives agree with central differences away from kinks."""
        x = np.array([-1.3, -0.4, 0.7, 2.1])
        eps = 1e-6
        numeric = (activation.apply(x + eps) - activation.apply(x - eps)) / (2 * eps)
        np.testing.assert_allclose(activation.derivative(x), numeric, atol=1e-6)

    @pytest.mark.parametrize("activation", [Sigmoid(), SigmoidSim()])
    def test_derivative_overflow_is_zero(self, activation):
        """Test that the derivative is zero, not NaN, under exponential overflow."""
        x = np.array([-1000.0, 1000.0])
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            derivative = activation.derivative(x)
            values = activation.apply(x)
        np.testing.assert_array_equal(derivative, [0.0, 0.0])
        assert np.all(np.isfinite(values))


class TestActivationRanges:
    """Test cases for declared output ranges."""

    @pytest.mark.parametrize(
        ("activation", "expected", "bounded"),
        [
            (Id(), (None, None), False),
            (Relu(), (0.0, None), False),
            (Sigmoid(), (0.0, 1.0), True),
            (SigmoidSim(), (-1.0, 1.0), True),
            (Tanh(), (-1.0, 1.0), True),
        ],
    )
    def test_range(self, activation, expected, bounded):
        """Test the declared range and boundedness."""
        assert activation.range() == expected
        assert activation.is_bounded() is bounded

    @pytest.mark.parametrize("activation", [Sigmoid(), SigmoidSim(), Tanh()])
    def test_values_stay_in_range(self, activation):
        """Test that bounded activations never leave their range."""
        lower, upper = activation.range()
        values = activation.apply(np.linspace(-50.0, 50.0, 101))
        assert np.all(values >= lower)
        assert np.all(values <= upper)


class TestCreateActivation:
    """Test cases for the activation factory."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("id", Id),
            ("relu", Relu),
            ("sigmoid", Sigmoid),
            (ActivationType.SIGMOID_SIM, SigmoidSim),
            ("tanh", Tanh),
        ],
    )
    def test_create(self, name, expected):
        """Test creation from names and enum members."""
        assert isinstance(create_activation(name), expected)

    def test_unknown_activation_raises(self):
        """Test that an unknown name raises a ValueError listing valid names."""
        with pytest.raises(ValueError, match="Unknown activation 'softmax'"):
            create_activation("softmax")

    def test_equality_by_type(self):
        """Test that stateless activations compare by class."""
        assert Relu() == Relu()
        assert Relu() != Sigmoid()
        assert len({Relu(), Relu(), Id()}) == 2

    def test_every_type_is_registered(self):
        """Test that the factory covers every activation type."""
        for activation_type in ActivationType:
            assert create_activation(activation_type).activation_type == activation_type

    def test_base_class_is_abstract(self):
        """Test that the base class needs apply and derivative."""
        with pytest.raises(TypeError):
            Activation()
