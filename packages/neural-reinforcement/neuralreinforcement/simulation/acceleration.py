"""
Two-dimensional navigation by acceleration.

Four agents start between the corners of a square and must each reach the
target in one corner, steering around circular obstacles. The policy reads
the position, speed and target of an agent and outputs an acceleration.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from neuralreinforcement.dtypes import ActivationType, Float, MetaParameters
from neuralreinforcement.logging_config import logger
from neuralreinforcement.network import Reinforcement, StochasticPolicy, build_network
from neuralreinforcement.simulation._simulation import Simulation
from neuralreinforcement.utils.seeding import get_rng

DT = 0.1
MAX_TICKS = 100
INPUT_DIM = 6
OUTPUT_DIM = 2
HIDDEN_DIM = 16

TARGET_DISTANCE = 100.0
TARGET_RADIUS = 5.0
INNER_OBSTACLE_RADIUS = 40.0
RING_RADIUS = 200.0
RING_OBSTACLE_COUNT = 40
RING_OBSTACLE_RADIUS = 30.0

# Reward shaping
PROXIMITY_PENALTY = 1e1
COLLISION_PENALTY = 1e2
TARGET_BONUS = 1e2
STEP_BONUS = 1e0


@dataclass
class AgentContext:
    """State of one agent during an episode."""

    target: np.ndarray
    target_radius: Float
    obstacles: np.ndarray  # (n, 3) rows of x, y, radius; shared between agents
    position: np.ndarray
    speed: np.ndarray
    ticks: int = 0

    def __deepcopy__(self, memo: dict) -> AgentContext:
        """Copy the mutable state; targets and obstacles are shared."""
        return AgentContext(
            target=self.target,
            target_radius=self.target_radius,
            obstacles=self.obstacles,
            position=self.position.copy(),
            speed=self.speed.copy(),
            ticks=self.ticks,
        )

    def distance_to_target(self) -> Float:
        """Euclidean distance between the agent and its target."""
        return float(np.linalg.norm(self.target - self.position))


def create_targets() -> np.ndarray:
    """Return the four target centers, one per corner."""
    d = TARGET_DISTANCE
    return np.array([[d, d], [d, -d], [-d, -d], [-d, d]])


def create_starts(targets: np.ndarray) -> np.ndarray:
    """Start agent ``i`` at a quarter of the sum of the two targets after its own."""
    count = len(targets)
    return np.array(
        [(targets[(i + 1) % count] + targets[(i + 2) % count]) * 0.25 for i in range(count)],
    )


def create_obstacles(targets: np.ndarray) -> np.ndarray:
    """Return one obstacle half way to every target, plus a ring around the arena."""
    inner = [(x * 0.5, y * 0.5, INNER_OBSTACLE_RADIUS) for x, y in targets]
    ring = []
    for i in range(RING_OBSTACLE_COUNT):
        angle = i / RING_OBSTACLE_COUNT * 2.0 * np.pi
        ring.append(
            (np.cos(angle) * RING_RADIUS, np.sin(angle) * RING_RADIUS, RING_OBSTACLE_RADIUS),
        )
    return np.array(inner + ring)


def create_default_reinforcement(rng: np.random.Generator) -> Reinforcement:
    """Build the default policy (6-16-16-2) and score network (6-16-16-1)."""
    hidden = [(HIDDEN_DIM, ActivationType.RELU), (HIDDEN_DIM, ActivationType.RELU)]
    policy = StochasticPolicy(
        build_network(INPUT_DIM, [*hidden, (OUTPUT_DIM, ActivationType.ID)], rng=rng),
    )
    score_network = build_network(INPUT_DIM, [*hidden, (1, ActivationType.ID)], rng=rng)
    return Reinforcement(policy, score_network, rng=rng)


class AccelerationSimulation(Simulation[AgentContext]):
    """
    Agents steering towards their targets by choosing accelerations.

    Parameters
    ----------
    reinforcement : Reinforcement | None
        Engine with a 6-input, 2-output policy; a default one is built when None.
    meta_parameters : MetaParameters | None
        Hyper-parameters; package defaults when None.
    max_ticks : int
        Step limit of every episode.
    reinforcements_per_request : int
        Engine batches per ``Reinforce`` request.
    rng : np.random.Generator | None
        Generator used to build the default engine.
    """

    def __init__(
        self,
        reinforcement: Reinforcement | None = None,
        meta_parameters: MetaParameters | None = None,
        max_ticks: int = MAX_TICKS,
        reinforcements_per_request: int = 1,
        rng: np.random.Generator | None = None,
    ) -> None:
        if reinforcement is None:
            reinforcement = create_default_reinforcement(rng if rng is not None else get_rng())
        if reinforcement.network.input_dim != INPUT_DIM or reinforcement.network.output_dim != OUTPUT_DIM:
            error_message = (
                f"The acceleration task needs a {INPUT_DIM}-input, {OUTPUT_DIM}-output policy, "
                f"got {reinforcement.network.input_dim} inputs and "
                f"{reinforcement.network.output_dim} outputs."
            )
            logger.error(error_message)
            raise ValueError(error_message)
        super().__init__(
            reinforcement,
            meta_parameters or MetaParameters(),
            max_ticks,
            reinforcements_per_request,
        )
        self.targets = create_targets()
        self.starts = create_starts(self.targets)
        self.obstacles = create_obstacles(self.targets)

    def reset(self) -> None:
        self.reinforcement.randomize()
        self.total_reinforcements = 0

    def ctx_list(self) -> list[AgentContext]:
        return [
            AgentContext(
                target=target,
                target_radius=TARGET_RADIUS,
                obstacles=self.obstacles,
                position=start.copy(),
                speed=np.zeros(2),
            )
            for target, start in zip(self.targets, self.starts, strict=True)
        ]

    def ctx_to_action(self, ctx: AgentContext) -> np.ndarray:
        return np.concatenate([ctx.position, ctx.speed, ctx.target])

    def physics(self, ctx: AgentContext, action: np.ndarray) -> bool:
        """Integrate one tick; an agent about to enter an obstacle stops in place."""
        ctx.speed = ctx.speed + np.asarray(action, dtype=np.float64) * DT
        next_position = ctx.position + ctx.speed * DT
        offsets = next_position - ctx.obstacles[:, :2]
        collision = bool(np.any(np.sum(offsets**2, axis=1) < ctx.obstacles[:, 2] ** 2))
        if collision:
            ctx.speed = np.zeros(2)
        else:
            ctx.position = next_position
        ctx.ticks += 1
        return collision

    def score_goal(self, ctx: AgentContext, info: bool) -> tuple[Float, bool]:  # noqa: ARG002
        """
        Score the state reached after a tick.

        The reward penalizes the proximity of every obstacle (cubic falloff
        from its edge), any speed while inside an obstacle and the remaining
        distance to the target. Reaching the target earns a large bonus and
        ends the episode; otherwise a small bonus rewards survival.
        """
        distance = ctx.distance_to_target()
        offsets = ctx.position - ctx.obstacles[:, :2]
        squared = np.sum(offsets**2, axis=1)
        radii = ctx.obstacles[:, 2]
        edge_distances = np.sqrt(squared) - radii
        reward = -float(np.sum(PROXIMITY_PENALTY / (1.0 + edge_distances) ** 3))
        inside = int(np.count_nonzero(squared < radii**2))
        reward -= inside * COLLISION_PENALTY * float(np.dot(ctx.speed, ctx.speed))
        reward -= distance
        reached = distance < ctx.target_radius
        reward += TARGET_BONUS if reached else STEP_BONUS
        return reward, reached or ctx.ticks >= self.max_ticks
