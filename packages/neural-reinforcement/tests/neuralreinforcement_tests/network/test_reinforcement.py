"""Unit tests for the reinforcement engine."""

import math

import numpy as np
import pytest
from neuralreinforcement.dtypes import (
    ActivationType,
    AdvantageScaling,
    CreditAssignment,
    MetaParameters,
)
from neuralreinforcement.initializers import ZeroInitializer
from neuralreinforcement.network import (
    EpisodeStats,
    Layer,
    Reinforcement,
    StochasticPolicy,
    build_network,
)
from neuralreinforcement.optimizers import GradientCalculationMethod
from neuralreinforcement.utils.seeding import get_rng


def make_contexts(inputs, rewards):
    """Create one mutable context per (input, reward) pair."""
    return [
        {"index": i, "input": np.array(x), "reward": r, "ticks": 0}
        for i, (x, r) in enumerate(zip(inputs, rewards, strict=True))
    ]


def ctx_to_input(ctx):
    """Return the input stored in a context."""
    return ctx["input"]


class RecordingPhysics:
    """Physics returning the context reward and recording every action."""

    def __init__(self, done_after=1):
        self.done_after = done_after
        self.actions = {}

    def __call__(self, ctx, action):
        self.actions.setdefault(ctx["index"], []).append(np.array(action))
        ctx["ticks"] += 1
        return ctx["reward"], ctx["ticks"] >= self.done_after


class StepRewards:
    """Physics paying a scripted reward per step and recording every action."""

    def __init__(self, rewards):
        self.rewards = rewards
        self.actions = {}

    def __call__(self, ctx, action):
        self.actions.setdefault(ctx["index"], []).append(np.array(action))
        rewards = self.rewards[ctx["index"]]
        reward = rewards[ctx["ticks"]]
        ctx["ticks"] += 1
        return reward, ctx["ticks"] >= len(rewards)


def make_engine(seed=0, workers=1, **kwargs):
    """Create an engine over a random 3-4-2 policy."""
    network = build_network(
        3,
        [(4, ActivationType.SIGMOID_SIM), (2, ActivationType.ID)],
        rng=get_rng(seed),
    )
    return Reinforcement(StochasticPolicy(network), workers=workers, rng=get_rng(seed + 1), **kwargs)


class TestReinforcementConstruction:
    """Test cases for engine construction."""

    def test_score_network_must_have_one_output(self, linear_policy):
        """Test that a multi-output score network is rejected."""
        with pytest.raises(ValueError, match="single value"):
            Reinforcement(linear_policy, Layer(2, 2))

    def test_score_network_input_must_match_policy(self, linear_policy):
        """Test that the score network reads the policy input."""
        with pytest.raises(ValueError, match="score network expects 3 inputs"):
            Reinforcement(linear_policy, Layer(3, 1))

    def test_workers_must_be_positive(self, linear_policy):
        """Test that zero workers is rejected."""
        with pytest.raises(ValueError, match="workers"):
            Reinforcement(linear_policy, workers=0)

    def test_empty_contexts_raise(self, linear_policy, meta_parameters):
        """Test that a batch needs at least one context."""
        engine = Reinforcement(linear_policy)
        with pytest.raises(ValueError, match="at least one context"):
            engine.reinforce(meta_parameters, [], ctx_to_input, 1, RecordingPhysics())


class TestReinforcementStep:
    """Test cases for the batched policy update."""

    def test_weight_delta_matches_normalized_scaled_gradients(self, linear_policy, meta_parameters):
        """Test alpha/N * sum(atan(adv_i) * g_i / |g_i|) on a linear policy."""
        engine = Reinforcement(linear_policy, rng=get_rng(3))
        inputs = [[1.0, 2.0], [-1.0, 0.5], [0.0, 3.0]]
        rewards = [2.0, -1.0, 0.5]
        contexts = make_contexts(inputs, rewards)
        outputs = [linear_policy.forward(x)[0] for x in inputs]
        weights = linear_policy.network.weights.copy()
        bias = linear_policy.network.bias.copy()
        physics = RecordingPhysics()

        stats = engine.reinforce(meta_parameters, contexts, ctx_to_input, 1, physics)

        expected_weights = np.zeros_like(weights)
        expected_bias = np.zeros_like(bias)
        for i, (x, reward, output) in enumerate(zip(inputs, rewards, outputs, strict=True)):
            delta = physics.actions[i][0][0] - output
            gradient = delta * np.array([*x, 1.0])
            gradient *= math.atan(reward) / np.linalg.norm(gradient)
            expected_weights[0] += gradient[:2]
            expected_bias[0] += gradient[2]
        step = meta_parameters.alpha / len(contexts)
        np.testing.assert_allclose(linear_policy.network.weights, weights + step * expected_weights)
        np.testing.assert_allclose(linear_policy.network.bias, bias + step * expected_bias)

        assert [s.advantage for s in stats] == pytest.approx(rewards)
        assert all(isinstance(s, EpisodeStats) for s in stats)

    @pytest.mark.parametrize(
        ("method", "process"),
        [
            (GradientCalculationMethod.RAW, lambda g: g),
            (
                GradientCalculationMethod.NORM_CLIP,
                lambda g: g * min(1.0, 0.05 / np.linalg.norm(g)),
            ),
        ],
    )
    def test_gradient_method_processes_episode_gradients(
        self,
        linear_policy,
        meta_parameters,
        method,
        process,
    ):
        """Test that the configured gradient method replaces the unit normalization."""
        engine = Reinforcement(
            linear_policy,
            gradient_method=method,
            max_gradient_norm=0.05,
            rng=get_rng(3),
        )
        inputs = [[1.0, 2.0], [-1.0, 0.5]]
        rewards = [2.0, -1.0]
        outputs = [linear_policy.forward(x)[0] for x in inputs]
        parameters = np.array([*linear_policy.network.weights[0], linear_policy.network.bias[0]])
        physics = RecordingPhysics()

        engine.reinforce(
            meta_parameters,
            make_contexts(inputs, rewards),
            ctx_to_input,
            1,
            physics,
        )

        expected = np.zeros(3)
        for i, (x, reward, output) in enumerate(zip(inputs, rewards, outputs, strict=True)):
            gradient = (physics.actions[i][0][0] - output) * np.array([*x, 1.0])
            expected += math.atan(reward) * process(gradient)
        updated = np.array([*linear_policy.network.weights[0], linear_policy.network.bias[0]])
        np.testing.assert_allclose(updated, parameters + meta_parameters.alpha / 2 * expected)

    def test_gradients_are_reset_after_a_batch(self, meta_parameters):
        """Test that the master gradient is zero after reinforce returns."""
        engine = make_engine()
        contexts = make_contexts([[0.1, 0.2, 0.3]] * 4, [1.0, 2.0, 3.0, 4.0])
        engine.reinforce(meta_parameters, contexts, ctx_to_input, 5, RecordingPhysics(3))
        assert engine.network.norm2_gradient() == 0.0

    def test_score_trackers_grow_and_update(self, meta_parameters):
        """Test one tracker per context slot, fed with the cumulative reward."""
        engine = make_engine()
        physics = RecordingPhysics(done_after=3)
        contexts = make_contexts([[0.0, 0.0, 1.0], [1.0, 0.0, 0.0]], [1.0, -2.0])
        stats = engine.reinforce(meta_parameters, contexts, ctx_to_input, 10, physics)

        assert len(engine.scores) == 2
        assert [s.total_reward for s in stats] == pytest.approx([3.0, -6.0])
        assert [s.steps for s in stats] == [3, 3]
        assert all(s.done for s in stats)
        assert engine.scores[0].last == pytest.approx(3.0)
        assert engine.scores[1].mean == pytest.approx(-3.0)

    def test_step_limit(self, meta_parameters):
        """Test that an episode never exceeds max_steps."""
        engine = make_engine()
        physics = RecordingPhysics(done_after=1000)
        stats = engine.reinforce(
            meta_parameters,
            make_contexts([[0.0, 0.0, 0.0]], [1.0]),
            ctx_to_input,
            7,
            physics,
        )
        assert stats[0].steps == 7
        assert stats[0].done is False
        assert len(physics.actions[0]) == 7

    def test_workers_match_sequential(self, meta_parameters):
        """Test that threaded episodes give the same update as sequential ones."""
        inputs = [[0.1 * i, -0.2 * i, 0.3] for i in range(6)]
        rewards = [float(i) for i in range(6)]
        sequential = make_engine(workers=1)
        threaded = make_engine(workers=3)

        for engine in (sequential, threaded):
            for _ in range(3):
                engine.reinforce(
                    meta_parameters,
                    make_contexts(inputs, rewards),
                    ctx_to_input,
                    4,
                    RecordingPhysics(done_after=2),
                )

        for a, b in zip(
            sequential.network.parameters(),
            threaded.network.parameters(),
            strict=True,
        ):
            np.testing.assert_allclose(a, b)

    def test_physics_error_propagates_and_resets(self, meta_parameters):
        """Test that a failing closure aborts the batch without side effects."""
        engine = make_engine()
        weights = [p.copy() for p in engine.network.parameters()]

        def failing_physics(ctx, action):  # noqa: ARG001
            if ctx["index"] == 1:
                message = "simulation exploded"
                raise RuntimeError(message)
            return 1.0, True

        contexts = make_contexts([[0.0, 1.0, 0.0]] * 3, [1.0] * 3)
        with pytest.raises(RuntimeError, match="simulation exploded"):
            engine.reinforce(meta_parameters, contexts, ctx_to_input, 3, failing_physics)

        assert engine.network.norm2_gradient() == 0.0
        for before, after in zip(weights, engine.network.parameters(), strict=True):
            np.testing.assert_array_equal(before, after)
        assert all(score.mean == 0.0 for score in engine.scores)


class TestScoreNetwork:
    """Test cases for the learned baseline."""

    def test_score_network_moves_towards_reward(self, linear_policy, meta_parameters):
        """Test that the score network prediction approaches the realized reward."""
        score_network = Layer(2, 1, ActivationType.ID)
        engine = Reinforcement(linear_policy, score_network, rng=get_rng(5))
        inputs = np.array([0.5, 0.5])
        before = score_network.forward(inputs)[0]

        stats = engine.reinforce(
            meta_parameters,
            make_contexts([inputs], [4.0]),
            ctx_to_input,
            1,
            RecordingPhysics(),
        )

        after = score_network.forward(inputs)[0]
        assert abs(4.0 - after) < abs(4.0 - before)
        assert stats[0].advantage == pytest.approx(4.0 - before)
        assert score_network.norm2_gradient() == 0.0

    def test_randomize_resets_trackers(self, meta_parameters, rng):
        """Test that randomize draws new weights and forgets the trackers."""
        engine = make_engine()
        engine.reinforce(
            meta_parameters,
            make_contexts([[1.0, 1.0, 1.0]], [1.0]),
            ctx_to_input,
            1,
            RecordingPhysics(),
        )
        weights = engine.network.parameters()[0].copy()
        engine.randomize(rng)
        assert engine.scores == []
        assert not np.allclose(weights, engine.network.parameters()[0])

    def test_randomize_uses_initializer(self, rng):
        """Test that randomize draws with the initializer given to the engine."""
        network = build_network(3, [(4, ActivationType.RELU), (2, ActivationType.ID)], rng=rng)
        score_network = build_network(3, [(1, ActivationType.ID)], rng=rng)
        engine = Reinforcement(
            StochasticPolicy(network),
            score_network,
            initializer=ZeroInitializer(),
        )
        engine.randomize(rng)
        for parameter in engine.network.parameters() + score_network.parameters():
            np.testing.assert_array_equal(parameter, 0.0)


class TestCreditAssignment:
    """Test cases for discounted per-step credit."""

    def test_discounted_return(self):
        """Test the discounted return with discount equal to the relaxation."""
        engine = make_engine(credit_assignment=CreditAssignment.DISCOUNTED)
        meta_parameters = MetaParameters(alpha=0.1, relaxation=0.5, sigma=0.5)
        stats = engine.reinforce(
            meta_parameters,
            make_contexts([[0.2, 0.1, 0.0]], [1.0]),
            ctx_to_input,
            3,
            RecordingPhysics(done_after=100),
        )
        assert stats[0].total_reward == pytest.approx(1.0 + 0.5 + 0.25)
        assert stats[0].steps == 3
        assert engine.network.norm2_gradient() == 0.0

    def test_discounted_updates_weights(self):
        """Test that per-step credit changes the policy."""
        engine = make_engine(
            credit_assignment=CreditAssignment.DISCOUNTED,
            advantage_scaling=AdvantageScaling.SIGMOID,
        )
        weights = [p.copy() for p in engine.network.parameters()]
        engine.reinforce(
            MetaParameters(alpha=0.1, relaxation=0.9, sigma=0.5),
            make_contexts([[0.2, 0.1, 0.0], [0.0, 0.3, 0.4]], [1.0, -1.0]),
            ctx_to_input,
            4,
            RecordingPhysics(done_after=4),
        )
        assert any(
            not np.allclose(before, after)
            for before, after in zip(weights, engine.network.parameters(), strict=True)
        )

    def test_discounted_with_score_network(self):
        """Test that per-step credit also trains the score network."""
        network = build_network(3, [(2, ActivationType.ID)], rng=get_rng(1))
        score_network = Layer(3, 1, ActivationType.ID)
        engine = Reinforcement(
            StochasticPolicy(network),
            score_network,
            credit_assignment=CreditAssignment.DISCOUNTED,
            rng=get_rng(2),
        )
        engine.reinforce(
            MetaParameters(alpha=0.1, alpha_score=0.1, relaxation=0.5, sigma=0.5),
            make_contexts([[1.0, 0.0, 0.0]], [2.0]),
            ctx_to_input,
            2,
            RecordingPhysics(done_after=10),
        )
        assert np.any(score_network.weights != 0.0)
        assert score_network.norm2_gradient() == 0.0

    def test_discounted_weight_delta_matches_hand_computation(self, linear_policy):
        """Test alpha/N * sum_i normalize(sum_t atan(G_t - b) * g_t) on a linear policy."""
        engine = Reinforcement(
            linear_policy,
            credit_assignment=CreditAssignment.DISCOUNTED,
            rng=get_rng(4),
        )
        meta_parameters = MetaParameters(alpha=0.1, relaxation=0.5, sigma=0.5)
        inputs = [[1.0, 2.0], [0.5, -1.5]]
        physics = StepRewards([[1.0, 3.0], [-2.0, 0.5]])
        outputs = [linear_policy.forward(x)[0] for x in inputs]
        parameters = np.array([*linear_policy.network.weights[0], linear_policy.network.bias[0]])

        stats = engine.reinforce(
            meta_parameters,
            make_contexts(inputs, [0.0, 0.0]),
            ctx_to_input,
            10,
            physics,
        )

        # Returns folded backwards: G_1 = r_1, G_0 = r_0 + 0.5 * G_1; baselines start at 0
        returns = [[2.5, 3.0], [-1.75, 0.5]]
        expected = np.zeros(3)
        for i, (x, output) in enumerate(zip(inputs, outputs, strict=True)):
            episode = np.zeros(3)
            for action, discounted in zip(physics.actions[i], returns[i], strict=True):
                episode += math.atan(discounted) * (action[0] - output) * np.array([*x, 1.0])
            expected += episode / np.linalg.norm(episode)
        updated = np.array([*linear_policy.network.weights[0], linear_policy.network.bias[0]])
        np.testing.assert_allclose(updated, parameters + meta_parameters.alpha / 2 * expected)

        assert [s.total_reward for s in stats] == pytest.approx([2.5, -1.75])
        assert [s.steps for s in stats] == [2, 2]
        assert all(s.done for s in stats)
