"""
Seed Service
============

Hands out one 64-bit seed per named engine so that several samplers in the
same process get reproducible, non-colliding random streams.

Policy
------
- Each engine registers under a unique label (e.g. ``"MARLEY_Vertex_Sampler"``).
- Without an explicit override the seed is derived from the service's master
  seed and the label:  SeedSequence(master, spawn_key=(hash(label),)).
  The label hash is a stable SHA-256 digest, so the same (master, label) pair
  yields the same seed in every process and on every platform.
- An explicit per-engine ``seed`` (from the vertex configuration table)
  replaces the derived one.
- Registering the same label twice is a configuration error.
"""

import hashlib
import logging
from typing import Dict, Optional

import numpy as np

from .engine import validate_seed
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def _label_key(name: str) -> int:
    digest = hashlib.sha256(name.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "little")


def derive_seed(master_seed: int, name: str) -> int:
    """Deterministic 64-bit seed for engine ``name`` under ``master_seed``."""
    ss = np.random.SeedSequence(validate_seed(master_seed),
                                spawn_key=(_label_key(name),))
    return int(ss.generate_state(1, dtype=np.uint64)[0])


class SeedService:
    """Registry of per-engine seeds derived from one master seed.

    Parameters
    ----------
    master_seed : int
        Run-level seed (64-bit unsigned).
    """

    def __init__(self, master_seed: int = 0):
        self.master_seed = validate_seed(master_seed)
        self._seeds: Dict[str, int] = {}

    def register_engine(self, name: str, seed: Optional[int] = None) -> int:
        """Register engine ``name`` and return its seed.

        Parameters
        ----------
        name : str
            Unique instance label.
        seed : int, optional
            Explicit seed that overrides the derived one.

        Returns
        -------
        int
            The seed assigned to the engine.
        """
        if not isinstance(name, str) or not name:
            raise ConfigurationError("Engine name must be a non-empty string")
        if name in self._seeds:
            raise ConfigurationError(
                f"Engine '{name}' is already registered with the seed service"
            )

        if seed is None:
            assigned = derive_seed(self.master_seed, name)
            if assigned in self._seeds.values():
                raise ConfigurationError(
                    f"Derived seed for '{name}' collides with another engine"
                )
        else:
            assigned = validate_seed(seed)
            if assigned in self._seeds.values():
                logger.warning(
                    "Engine '%s' uses explicit seed %d, already assigned to "
                    "another engine; their streams will be identical",
                    name, assigned,
                )

        self._seeds[name] = assigned
        logger.debug("Registered engine '%s' with seed %d", name, assigned)
        return assigned

    def seed_for(self, name: str) -> int:
        """Seed previously assigned to ``name``."""
        try:
            return self._seeds[name]
        except KeyError:
            raise KeyError(f"No engine registered under '{name}'") from None

    @property
    def registered(self) -> Dict[str, int]:
        return dict(self._seeds)

    def __contains__(self, name: str) -> bool:
        return name in self._seeds
