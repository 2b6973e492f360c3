"""Seeding infrastructure for reproducible experiments.

Every stochastic operation of the package (weight initialization, action
sampling) takes an explicit ``numpy.random.Generator``. This module creates
those generators:

1. Automatic seed generation when not provided by user
2. Creating seeded random number generators
3. Spawning independent child generators, one per episode

Usage:
    seed = ensure_seed(user_seed)
    rng = get_rng(seed)
    episode_rngs = spawn_rngs(rng, len(contexts))
"""

import secrets

import numpy as np

# Maximum seed value (2^32 - 1, compatible with numpy)
MAX_SEED = 2**32


def generate_seed() -> int:
    """Generate a cryptographically random seed.

    Returns
    -------
        A random integer in [0, 2^32)
    """
    return secrets.randbelow(MAX_SEED)


def ensure_seed(seed: int | None = None) -> int:
    """Ensure a seed is available, generating one if not provided.

    Args:
        seed: User-provided seed, or None to auto-generate

    Returns
    -------
        The provided seed or a newly generated one
    """
    if seed is not None:
        return seed
    return generate_seed()


def get_rng(seed: int | None = None) -> np.random.Generator:
    """Create a seeded numpy random number Generator.

    Args:
        seed: Seed for the RNG, or None to use a random seed

    Returns
    -------
        A numpy Generator instance seeded with the given seed
    """
    actual_seed = ensure_seed(seed)
    return np.random.default_rng(actual_seed)


def spawn_rngs(rng: np.random.Generator, count: int) -> list[np.random.Generator]:
    """Spawn independent child generators from a parent generator.

    The children are derived from the parent's seed sequence, so the same
    parent state always yields the same children whatever thread later
    consumes them.

    Args:
        rng: Parent generator (its state advances)
        count: Number of children to create

    Returns
    -------
        A list of ``count`` independent generators
    """
    return rng.spawn(count)
