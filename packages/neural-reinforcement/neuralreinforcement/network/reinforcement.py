"""
Policy-gradient reinforcement engine.

One call to ``Reinforcement.reinforce`` runs a batch: every context plays one
episode on its own clone of the policy network, so the episodes accumulate
their gradients independently and may run on parallel threads. Each episode
gradient goes through the configured gradient method (by default it is
normalized to unit length), then is rescaled by a bounded function
of the advantage (realized reward minus a baseline). The rescaled gradients
are summed into the master network, which takes a single step of
``alpha / number_of_episodes``.

Baselines:
- Without a score network, each context slot has a ``Score`` tracker whose
  running mean is the baseline.
- With a score network, its prediction from the episode's first input is the
  baseline, and the network is trained towards the realized reward with the
  ``alpha_score`` learning rate.

Credit assignment:
- TERMINAL: the episode keeps one gradient buffer, blended step after step
  with the ``relaxation`` rate, and the cumulative reward is its advantage.
- DISCOUNTED: every step keeps its own gradient. Folding the history
  backwards, each step is rescaled by the advantage of its discounted return
  (discount factor ``relaxation``), then the steps are summed.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Generic, TypeVar

import numpy as np
from pydantic import BaseModel, Field

from neuralreinforcement.dtypes import (
    AdvantageScaling,
    CreditAssignment,
    Float,
    MetaParameters,
)
from neuralreinforcement.errors import (
    ERROR_EMPTY_CONTEXTS,
    ERROR_SCORE_NETWORK_INPUT,
    ERROR_SCORE_NETWORK_OUTPUT,
)
from neuralreinforcement.initializers import WeightInitializer
from neuralreinforcement.logging_config import logger
from neuralreinforcement.network._network import Network
from neuralreinforcement.network.policy import StochasticPolicy
from neuralreinforcement.network.score import Score
from neuralreinforcement.optimizers.gradient_methods import (
    DEFAULT_MAX_GRADIENT_NORM,
    GradientCalculationMethod,
    compute_gradients,
    scale_advantage,
)
from neuralreinforcement.utils.seeding import get_rng, spawn_rngs

C = TypeVar("C")

# The returned reward must only score the current step, never depend on previous ones
PhysicsAndReward = Callable[[C, np.ndarray], tuple[Float, bool]]
CtxToInput = Callable[[C], Sequence[Float] | np.ndarray]


class EpisodeStats(BaseModel):
    """Outcome of one episode of a reinforcement batch."""

    total_reward: float = Field(
        description="Cumulative reward (terminal) or discounted return (discounted).",
    )
    advantage: float = Field(description="Reward minus the baseline of the episode.")
    steps: int = Field(description="Number of physics steps played.")
    done: bool = Field(description="True if the episode ended before the step limit.")


@dataclass
class _Episode(Generic[C]):
    policy: StochasticPolicy
    total_reward: Float
    steps: int
    done: bool
    initial_input: np.ndarray
    score_network: Network | None = None
    baseline: Float = 0.0


class Reinforcement(Generic[C]):
    """
    REINFORCE with a baseline and norm-invariant step sizes.

    Parameters
    ----------
    policy : StochasticPolicy
        Policy being trained.
    score_network : Network | None
        Optional value network with a single unbounded output, predicting
        the episode reward from the episode's first input.
    advantage_scaling : AdvantageScaling
        Squashing of the advantage into a gradient scale.
    credit_assignment : CreditAssignment
        Whole-episode or per-step credit.
    gradient_method : GradientCalculationMethod
        Processing of every episode gradient before the advantage scaling;
        NORMALIZE makes the step size independent of the gradient norm.
    max_gradient_norm : float
        Clipping norm of the NORM_CLIP method.
    workers : int
        Number of threads running episodes; 1 runs them in the calling thread.
    rng : np.random.Generator | None
        Source of every episode's randomness.
    initializer : WeightInitializer | None
        Initializer used by ``randomize``; fan-out uniform when None.
    """

    def __init__(  # noqa: PLR0913
        self,
        policy: StochasticPolicy,
        score_network: Network | None = None,
        *,
        advantage_scaling: AdvantageScaling = AdvantageScaling.ATAN,
        credit_assignment: CreditAssignment = CreditAssignment.TERMINAL,
        gradient_method: GradientCalculationMethod = GradientCalculationMethod.NORMALIZE,
        max_gradient_norm: Float = DEFAULT_MAX_GRADIENT_NORM,
        workers: int = 1,
        rng: np.random.Generator | None = None,
        initializer: WeightInitializer | None = None,
    ) -> None:
        if score_network is not None:
            if score_network.output_dim != 1:
                error_message = ERROR_SCORE_NETWORK_OUTPUT.format(outputs=score_network.output_dim)
                logger.error(error_message)
                raise ValueError(error_message)
            if score_network.input_dim != policy.network.input_dim:
                error_message = ERROR_SCORE_NETWORK_INPUT.format(
                    score_inputs=score_network.input_dim,
                    policy_inputs=policy.network.input_dim,
                )
                logger.error(error_message)
                raise ValueError(error_message)
        if workers < 1:
            error_message = f"workers must be >= 1, got {workers}"
            logger.error(error_message)
            raise ValueError(error_message)
        self.policy = policy
        self.score_network = score_network
        self.advantage_scaling = AdvantageScaling(advantage_scaling)
        self.credit_assignment = CreditAssignment(credit_assignment)
        self.gradient_method = GradientCalculationMethod(gradient_method)
        self.max_gradient_norm = max_gradient_norm
        self.initializer = initializer
        self.workers = workers
        self.rng = rng if rng is not None else get_rng()
        self.relaxation: Float = 1.0
        self.scores: list[Score] = []

    @property
    def network(self) -> Network:
        """The policy network."""
        return self.policy.network

    def randomize(self, rng: np.random.Generator | None = None) -> None:
        """Draw new weights for every network and forget the score trackers."""
        rng = rng if rng is not None else self.rng
        self.policy.network.randomize(rng, self.initializer)
        if self.score_network is not None:
            self.score_network.randomize(rng, self.initializer)
        self.scores = []

    def forward(self, inputs: Sequence[Float] | np.ndarray) -> np.ndarray:
        """Return the deterministic action of the policy."""
        return self.policy.forward(inputs)

    def reinforce(  # noqa: PLR0913
        self,
        meta_parameters: MetaParameters,
        contexts: Sequence[C],
        ctx_to_input: CtxToInput[C],
        max_steps: int,
        physics_and_reward: PhysicsAndReward[C],
    ) -> list[EpisodeStats]:
        """
        Run one episode per context and apply one batched policy update.

        Contexts are mutated in place by ``physics_and_reward``. An exception
        raised by a closure aborts the batch: it propagates unchanged, no
        weight is modified and the gradient buffers are reset.

        Args:
            meta_parameters: Learning rates, relaxation and exploration width.
            contexts: One mutable state per episode.
            ctx_to_input: Projects a context onto the policy input.
            max_steps: Step limit of every episode.
            physics_and_reward: Applies an action to a context and returns
                the reward of that step and whether the episode is over.

        Returns
        -------
            The statistics of every episode, in context order.
        """
        if not contexts:
            logger.error(ERROR_EMPTY_CONTEXTS)
            raise ValueError(ERROR_EMPTY_CONTEXTS)

        self.relaxation = meta_parameters.relaxation
        while len(self.scores) < len(contexts):
            self.scores.append(Score())

        template = self.policy.clone()
        score_template = self.score_network.clone() if self.score_network is not None else None
        rngs = spawn_rngs(self.rng, len(contexts))
        baselines = [self.scores[i].mean for i in range(len(contexts))]

        def run(index: int) -> _Episode[C]:
            if self.credit_assignment == CreditAssignment.DISCOUNTED:
                return self._discounted_episode(
                    template,
                    score_template,
                    meta_parameters,
                    contexts[index],
                    ctx_to_input,
                    max_steps,
                    physics_and_reward,
                    rngs[index],
                    baselines[index],
                )
            return self._terminal_episode(
                template,
                meta_parameters,
                contexts[index],
                ctx_to_input,
                max_steps,
                physics_and_reward,
                rngs[index],
            )

        try:
            if self.workers > 1 and len(contexts) > 1:
                with ThreadPoolExecutor(max_workers=min(self.workers, len(contexts))) as executor:
                    episodes = list(executor.map(run, range(len(contexts))))
            else:
                episodes = [run(index) for index in range(len(contexts))]

            stats = [
                self._merge_episode(index, episode, score_template)
                for index, episode in enumerate(episodes)
            ]

            episode_count = len(contexts)
            self.policy.network.apply_gradient(meta_parameters.alpha / episode_count)
            if self.score_network is not None:
                self.score_network.apply_gradient(meta_parameters.alpha_score / episode_count)
        finally:
            self.policy.network.reset_gradient()
            if self.score_network is not None:
                self.score_network.reset_gradient()

        logger.debug(
            f"Reinforcement batch of {len(stats)} episodes: "
            f"mean reward = {np.mean([s.total_reward for s in stats]):.4g}, "
            f"mean steps = {np.mean([s.steps for s in stats]):.1f}",
        )
        return stats

    def _terminal_episode(  # noqa: PLR0913
        self,
        template: StochasticPolicy,
        meta_parameters: MetaParameters,
        ctx: C,
        ctx_to_input: CtxToInput[C],
        max_steps: int,
        physics_and_reward: PhysicsAndReward[C],
        rng: np.random.Generator,
    ) -> _Episode[C]:
        policy = template.clone()
        inputs = np.asarray(ctx_to_input(ctx), dtype=np.float64)
        initial_input = inputs
        total_reward = 0.0
        steps = 0
        done = False
        while steps < max_steps:
            action = policy.stochastic_forward(
                inputs,
                meta_parameters.sigma,
                meta_parameters.relaxation,
                rng,
            )
            step_reward, done = physics_and_reward(ctx, action)
            total_reward += step_reward
            steps += 1
            if done:
                break
            inputs = np.asarray(ctx_to_input(ctx), dtype=np.float64)
        return _Episode(
            policy=policy,
            total_reward=total_reward,
            steps=steps,
            done=done,
            initial_input=initial_input,
        )

    def _discounted_episode(  # noqa: PLR0913
        self,
        template: StochasticPolicy,
        score_template: Network | None,
        meta_parameters: MetaParameters,
        ctx: C,
        ctx_to_input: CtxToInput[C],
        max_steps: int,
        physics_and_reward: PhysicsAndReward[C],
        rng: np.random.Generator,
        baseline: Float,
    ) -> _Episode[C]:
        history: list[tuple[Float, Network, np.ndarray]] = []
        inputs = np.asarray(ctx_to_input(ctx), dtype=np.float64)
        initial_input = inputs
        done = False
        while len(history) < max_steps:
            step_policy = template.clone()
            action = step_policy.stochastic_forward(inputs, meta_parameters.sigma, 1.0, rng)
            step_reward, done = physics_and_reward(ctx, action)
            history.append((step_reward, step_policy.network, inputs))
            if done:
                break
            inputs = np.asarray(ctx_to_input(ctx), dtype=np.float64)

        policy = template.clone()
        score_network = score_template.clone() if score_template is not None else None
        discounted = 0.0
        initial_baseline = baseline
        for step_reward, step_network, step_inputs in reversed(history):
            discounted = meta_parameters.relaxation * discounted + step_reward
            if score_template is not None and score_network is not None:
                step_score = score_template.clone()
                step_baseline = float(step_score.forward(step_inputs)[0])
                step_score.update_gradient(1.0, [discounted - step_baseline])
                score_network.add_gradient(step_score)
                initial_baseline = step_baseline
            else:
                step_baseline = baseline
            advantage = discounted - step_baseline
            step_network.rescale_gradient(scale_advantage(advantage, self.advantage_scaling))
            policy.network.add_gradient(step_network)

        return _Episode(
            policy=policy,
            total_reward=discounted,
            steps=len(history),
            done=done,
            initial_input=initial_input,
            score_network=score_network,
            baseline=initial_baseline,
        )

    def _merge_episode(
        self,
        index: int,
        episode: _Episode[C],
        score_template: Network | None,
    ) -> EpisodeStats:
        score = self.scores[index]
        if self.credit_assignment == CreditAssignment.DISCOUNTED:
            advantage = episode.total_reward - episode.baseline
            score.update(episode.total_reward)
            compute_gradients(episode.policy.network, self.gradient_method, self.max_gradient_norm)
            if self.score_network is not None and episode.score_network is not None:
                self.score_network.add_gradient(episode.score_network)
        else:
            if self.score_network is not None and score_template is not None:
                score_network = score_template.clone()
                prediction = float(score_network.forward(episode.initial_input)[0])
                advantage = episode.total_reward - prediction
                score_network.update_gradient(1.0, [advantage])
                self.score_network.add_gradient(score_network)
                score.update(episode.total_reward)
            else:
                advantage = score.update(episode.total_reward)
            compute_gradients(episode.policy.network, self.gradient_method, self.max_gradient_norm)
            episode.policy.network.rescale_gradient(
                scale_advantage(advantage, self.advantage_scaling),
            )
        self.policy.network.add_gradient(episode.policy.network)
        return EpisodeStats(
            total_reward=episode.total_reward,
            advantage=advantage,
            steps=episode.steps,
            done=episode.done,
        )