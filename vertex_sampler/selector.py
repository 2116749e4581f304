"""
Mass-Weighted Cell Selection
============================

Discrete distribution over cell indices with weights equal to the cells'
active masses, so that vertices land in each cell in proportion to the
amount of target material it holds.

Algorithm
---------
The weights are normalised once, at rebuild time, into a cumulative table

    C_i = sum_{j <= i} m_j / M,   M = sum_j m_j,   C_{n-1} := 1

and each selection inverts it with a single uniform draw u in [0, 1):

    index = min{ i : C_i > u }

A cell with zero mass adds a flat step to the table and can never be
returned. The table is rebuilt only when the catalog changes.
"""

from typing import Optional, Sequence

import numpy as np

from .exceptions import ConfigurationError, NotConfiguredError
from .geometry import Cell


class CellSelector:
    """Chooses cell indices with probability proportional to active mass."""

    def __init__(self, cells: Optional[Sequence[Cell]] = None):
        self._probabilities: Optional[np.ndarray] = None
        self._cdf: Optional[np.ndarray] = None
        if cells is not None:
            self.rebuild(cells)

    @staticmethod
    def _build_tables(cells: Sequence[Cell]):
        if len(cells) == 0:
            raise ConfigurationError(
                "Cannot build a cell distribution from an empty catalog"
            )
        weights = np.array([float(c.active_mass) for c in cells],
                           dtype=np.float64)
        if not np.all(np.isfinite(weights)) or np.any(weights < 0.0):
            raise ConfigurationError(
                "Cell active masses must be finite and non-negative"
            )
        total = float(np.sum(weights))
        if total <= 0.0:
            raise ConfigurationError(
                f"Total active mass of the {len(cells)} cell(s) is zero; "
                f"mass-weighted cell selection is undefined"
            )
        probs = weights / total
        cdf = np.cumsum(probs)
        # Trailing zero-mass cells share the final step; pin it to exactly 1
        last = int(np.flatnonzero(weights)[-1])
        cdf[last:] = 1.0
        return probs, cdf

    def rebuild(self, cells: Sequence[Cell]) -> None:
        """Reload the distribution from an up-to-date list of cells.

        On error the previous distribution (if any) is left untouched.
        """
        self._probabilities, self._cdf = self._build_tables(cells)

    @property
    def is_built(self) -> bool:
        return self._cdf is not None

    @property
    def n_cells(self) -> int:
        return 0 if self._cdf is None else len(self._cdf)

    @property
    def probabilities(self) -> np.ndarray:
        """Normalised selection probability of each cell."""
        if self._probabilities is None:
            raise NotConfiguredError("Cell selector has not been built")
        return self._probabilities.copy()

    def select(self, rng: np.random.Generator) -> int:
        """Draw one cell index using one uniform variate from ``rng``."""
        if self._cdf is None:
            raise NotConfiguredError("Cell selector has not been built")
        u = rng.random()
        index = int(np.searchsorted(self._cdf, u, side="right"))
        return min(index, len(self._cdf) - 1)
