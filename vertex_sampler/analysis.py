"""
Statistical Validation of Sampled Vertices
==========================================

Draws batches of vertices from a configured sampler and checks them against
the laws they are supposed to follow:

  - Cell weighting: observed cell counts vs. active-mass fractions
    (Pearson chi-squared test)
  - Containment: every vertex placed in a cell lies inside that cell
  - Fixed position: every vertex sits on the configured point
  - Time law: sample moments and a Kolmogorov-Smirnov test against the
    configured uniform / gaussian distribution

Usage
-----
>>> from vertex_sampler.analysis import validate_sampler
>>> report = validate_sampler(sampler, n_vertices=20000)
>>> report.print_summary()
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, Optional, TYPE_CHECKING

import numpy as np
from scipy import stats

from .constants import TimeMode, VertexMode
from .geometry import CellCatalog

if TYPE_CHECKING:
    from .sampler import VertexSampler


NO_CELL = -1
"""Cell index stored for vertices not attached to a cell."""


# =====================================================================
# Vertex batch
# =====================================================================
@dataclass
class VertexBatch:
    """Column-wise store of sampled vertices.

    Attributes
    ----------
    x, y, z, t : np.ndarray, shape (n,)
        Vertex coordinates and times, in sampling order.
    cell : np.ndarray of int, shape (n,)
        Cell index per vertex, NO_CELL where none applies.
    """
    x: np.ndarray
    y: np.ndarray
    z: np.ndarray
    t: np.ndarray
    cell: np.ndarray

    @property
    def n(self) -> int:
        return len(self.t)

    @property
    def positions(self) -> np.ndarray:
        """Positions as an (n, 3) array."""
        return np.column_stack([self.x, self.y, self.z])


def sample_vertices(sampler: "VertexSampler", n_vertices: int) -> VertexBatch:
    """Call ``sampler.sample_vertex()`` ``n_vertices`` times, in order."""
    n = int(n_vertices)
    if n < 0:
        raise ValueError(f"n_vertices must be >= 0, got {n_vertices}")
    out = np.empty((n, 4), dtype=np.float64)
    cell = np.full(n, NO_CELL, dtype=np.int64)
    for i in range(n):
        v = sampler.sample_vertex()
        out[i] = v.as_tuple()
        if v.cell_index is not None:
            cell[i] = v.cell_index
    return VertexBatch(x=out[:, 0], y=out[:, 1], z=out[:, 2], t=out[:, 3],
                       cell=cell)


# =====================================================================
# Cell weighting
# =====================================================================
@dataclass
class CellFrequencyResult:
    """Outcome of the cell-weighting chi-squared test."""
    observed: np.ndarray
    expected: np.ndarray
    statistic: float
    p_value: float
    dof: int

    @property
    def observed_fraction(self) -> np.ndarray:
        total = self.observed.sum()
        return self.observed / total if total > 0 else self.observed.astype(float)

    @property
    def expected_fraction(self) -> np.ndarray:
        total = self.expected.sum()
        return self.expected / total if total > 0 else self.expected


def cell_frequency_test(batch: VertexBatch,
                        probabilities: np.ndarray) -> CellFrequencyResult:
    """Compare observed cell counts with the selection probabilities.

    Cells with zero probability are excluded from the chi-squared sum; any
    vertex found in one of them makes the test fail outright (p = 0).

    Parameters
    ----------
    batch : VertexBatch
        Vertices from a sampled-mode sampler.
    probabilities : np.ndarray
        Expected selection probability per cell (sums to 1).

    Returns
    -------
    CellFrequencyResult
    """
    probs = np.asarray(probabilities, dtype=np.float64)
    in_cell = batch.cell[batch.cell != NO_CELL]
    observed = np.bincount(in_cell, minlength=len(probs)).astype(np.int64)
    n = int(observed.sum())
    expected = probs * n

    positive = probs > 0.0
    if np.any(observed[~positive] > 0):
        return CellFrequencyResult(observed, expected, math.inf, 0.0,
                                   int(positive.sum()) - 1)

    dof = int(positive.sum()) - 1
    if dof < 1 or n == 0:
        return CellFrequencyResult(observed, expected, 0.0, 1.0, max(dof, 0))

    chi2, p_value = stats.chisquare(observed[positive], expected[positive])
    return CellFrequencyResult(observed, expected, float(chi2), float(p_value), dof)


def count_bound_violations(batch: VertexBatch, catalog: CellCatalog) -> int:
    """Number of vertices lying outside the cell they were assigned to."""
    violations = 0
    for i in np.flatnonzero(batch.cell != NO_CELL):
        cell = catalog[int(batch.cell[i])]
        if not cell.contains(batch.x[i], batch.y[i], batch.z[i]):
            violations += 1
    return violations


# =====================================================================
# Time law
# =====================================================================
def time_statistics(batch: VertexBatch) -> Dict[str, float]:
    """Sample mean, standard deviation, and range of the vertex times."""
    t = batch.t
    if len(t) == 0:
        return {"mean": math.nan, "std": math.nan, "min": math.nan,
                "max": math.nan, "sem": math.nan}
    std = float(np.std(t, ddof=1)) if len(t) > 1 else 0.0
    return {
        "mean": float(np.mean(t)),
        "std": std,
        "min": float(np.min(t)),
        "max": float(np.max(t)),
        "sem": std / math.sqrt(len(t)),
    }


def time_law_test(batch: VertexBatch,
                  mode: TimeMode,
                  t_center: float,
                  t_spread: float) -> float:
    """Kolmogorov-Smirnov p-value of the times against the configured law.

    With zero spread the law is a point mass: returns 1.0 if every time
    equals ``t_center`` exactly, else 0.0.
    """
    if len(batch.t) == 0:
        return 1.0
    if t_spread == 0.0:
        return 1.0 if np.all(batch.t == t_center) else 0.0
    if mode is TimeMode.GAUSSIAN:
        dist = stats.norm(loc=t_center, scale=t_spread)
    else:
        dist = stats.uniform(loc=t_center - t_spread, scale=2.0 * t_spread)
    return float(stats.kstest(batch.t, dist.cdf).pvalue)


# =====================================================================
# Report
# =====================================================================
@dataclass
class ValidationReport:
    """Results of :func:`validate_sampler`."""
    sampler_name: str
    seed: int
    vertex_mode: VertexMode
    time_mode: TimeMode
    t_center: float
    t_spread: float
    n_vertices: int
    time_stats: Dict[str, float]
    time_p_value: float
    bound_violations: int = 0
    fixed_mismatches: int = 0
    cell_test: Optional[CellFrequencyResult] = None
    batch: Optional[VertexBatch] = field(default=None, repr=False)

    def passed(self, alpha: float = 1e-3) -> bool:
        """True if every check passes at significance ``alpha``."""
        ok = self.bound_violations == 0 and self.fixed_mismatches == 0
        ok = ok and self.time_p_value >= alpha
        if self.cell_test is not None:
            ok = ok and self.cell_test.p_value >= alpha
        return ok

    def summary(self) -> str:
        """Return a formatted summary of the validation run."""
        ts = self.time_stats
        lines = [
            "",
            "=" * 70,
            f"  Vertex Sampler Validation: {self.sampler_name}",
            "=" * 70,
            "",
            f"  Seed            = {self.seed}",
            f"  Vertex mode     = {self.vertex_mode.value}",
            f"  Time law        = {self.time_mode.value} "
            f"(T0 = {self.t_center:g}, SigmaT = {self.t_spread:g})",
            f"  Vertices        = {self.n_vertices:,}",
            "",
            f"  t mean          = {ts['mean']:.6g} +/- {ts['sem']:.2g}",
            f"  t std           = {ts['std']:.6g}",
            f"  t range         = [{ts['min']:.6g}, {ts['max']:.6g}]",
            f"  Time law p      = {self.time_p_value:.4f}",
        ]
        if self.cell_test is not None:
            ct = self.cell_test
            lines += [
                "",
                f"  Cell chi2       = {ct.statistic:.3f} (dof {ct.dof}), "
                f"p = {ct.p_value:.4f}",
            ]
            for i, (obs, exp) in enumerate(zip(ct.observed_fraction,
                                               ct.expected_fraction)):
                lines.append(f"    #{i:<3d} observed {obs:7.4f}   "
                             f"expected {exp:7.4f}")
        lines += [
            "",
            f"  Out-of-cell     = {self.bound_violations}",
        ]
        if self.vertex_mode is VertexMode.FIXED:
            lines.append(f"  Off-position    = {self.fixed_mismatches}")
        lines += [
            f"  Result          = {'PASS' if self.passed() else 'FAIL'}",
            "=" * 70,
        ]
        return "\n".join(lines)

    def print_summary(self) -> None:
        """Print the formatted summary to stdout."""
        print(self.summary())


def validate_sampler(sampler: "VertexSampler",
                     n_vertices: int = 10000,
                     keep_batch: bool = False) -> ValidationReport:
    """Sample ``n_vertices`` vertices and run every applicable check.

    Parameters
    ----------
    sampler : VertexSampler
        A configured sampler. Its engine state advances.
    n_vertices : int
        Number of vertices to draw.
    keep_batch : bool
        Attach the sampled VertexBatch to the report (for plotting).

    Returns
    -------
    ValidationReport
    """
    cfg = sampler.config
    batch = sample_vertices(sampler, n_vertices)

    cell_test = None
    violations = 0
    mismatches = 0
    if cfg.vertex_mode is VertexMode.SAMPLED:
        cell_test = cell_frequency_test(batch, sampler.cell_probabilities)
    if sampler.catalog is not None:
        violations = count_bound_violations(batch, sampler.catalog)
    if cfg.vertex_mode is VertexMode.FIXED:
        fx, fy, fz = cfg.fixed_position
        mismatches = int(np.sum((batch.x != fx) | (batch.y != fy)
                                | (batch.z != fz)))
    elif cfg.vertex_mode is VertexMode.BOX:
        lo = np.asarray(cfg.box_min)
        hi = np.asarray(cfg.box_max)
        pos = batch.positions
        violations += int(np.sum(np.any((pos < lo) | (pos > hi), axis=1)))

    return ValidationReport(
        sampler_name=sampler.name,
        seed=sampler.seed,
        vertex_mode=cfg.vertex_mode,
        time_mode=cfg.time_mode,
        t_center=cfg.t_center,
        t_spread=cfg.t_spread,
        n_vertices=batch.n,
        time_stats=time_statistics(batch),
        time_p_value=time_law_test(batch, cfg.time_mode, cfg.t_center,
                                   cfg.t_spread),
        bound_violations=violations,
        fixed_mismatches=mismatches,
        cell_test=cell_test,
        batch=batch if keep_batch else None,
    )
