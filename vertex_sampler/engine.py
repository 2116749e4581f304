"""
Seeded Random Engine
====================

A single 64-bit pseudo-random bit generator owned by one vertex sampler.

Seeding
-------
The integer seed is never used directly as generator state. It is first
expanded through ``numpy.random.SeedSequence``, whose hash-based mixing
spreads the entropy of small or structured seeds (0, 1, 42, ...) across the
full 128-bit PCG64 state. The resulting ``Generator`` is created once and
reused for every draw; there is no per-call reseeding and no parallel
engine.

Thread Safety
-------------
Every draw mutates the generator state. The engine is not reentrant: a
sampling call performs a sequence of dependent draws whose order is part of
the reproducibility contract, so callers must serialize access.
"""

import numbers

import numpy as np

from .constants import SEED_MAX
from .exceptions import ConfigurationError


def validate_seed(seed) -> int:
    """Return ``seed`` as a Python int, checking the 64-bit unsigned range."""
    if isinstance(seed, bool) or not isinstance(seed, numbers.Integral):
        raise ConfigurationError(
            f"Seed must be an integer, got {type(seed).__name__} {seed!r}"
        )
    seed = int(seed)
    if seed < 0 or seed > SEED_MAX:
        raise ConfigurationError(
            f"Seed must lie in [0, 2**64 - 1], got {seed}"
        )
    return seed


class SeededEngine:
    """PCG64 generator initialised once from a SeedSequence-expanded seed.

    Parameters
    ----------
    seed : int
        64-bit unsigned seed. 0 is a valid seed.

    Attributes
    ----------
    seed : int
        The seed the engine was initialised with.
    rng : numpy.random.Generator
        The shared generator; all distributions draw from it.
    """

    def __init__(self, seed: int):
        self._seed = validate_seed(seed)
        self._seed_sequence = np.random.SeedSequence(self._seed)
        self._rng = np.random.Generator(np.random.PCG64(self._seed_sequence))

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def rng(self) -> np.random.Generator:
        return self._rng

    @property
    def state(self) -> dict:
        """Snapshot of the bit-generator state (for provenance records)."""
        return self._rng.bit_generator.state

    def __repr__(self) -> str:
        return f"SeededEngine(seed={self._seed})"
