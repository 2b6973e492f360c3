"""Utilities module for Neural Reinforcement."""

from neuralreinforcement.utils.seeding import (
    ensure_seed,
    generate_seed,
    get_rng,
    spawn_rngs,
)

__all__ = [
    "ensure_seed",
    "generate_seed",
    "get_rng",
    "spawn_rngs",
]
