"""
Vertex Time Sampling
====================

Event times drawn around a central time T0 with a spread SigmaT, under one
of two laws:

    uniform  : t ~ U[T0 - SigmaT, T0 + SigmaT]    (SigmaT = semi-interval)
    gaussian : t ~ N(T0, SigmaT^2)                (SigmaT = RMS)

Both reduce to the constant T0 when SigmaT = 0. One variate is taken from
the shared generator per call, after any position draws of the same
sampling call.
"""

import math

import numpy as np

from .constants import TimeMode
from .exceptions import ConfigurationError


def validate_time_parameters(t_center: float, t_spread: float) -> None:
    """Reject non-finite parameters and negative spreads."""
    if not math.isfinite(t_center):
        raise ConfigurationError(f"T0 must be finite, got {t_center}")
    if not math.isfinite(t_spread) or t_spread < 0.0:
        raise ConfigurationError(
            f"SigmaT must be finite and non-negative, got {t_spread}"
        )


def sample_time(mode: TimeMode,
                t_center: float,
                t_spread: float,
                rng: np.random.Generator) -> float:
    """Draw a vertex time.

    Parameters
    ----------
    mode : TimeMode
        UNIFORM or GAUSSIAN.
    t_center : float
        Central time T0.
    t_spread : float
        SigmaT >= 0.
    rng : numpy.random.Generator
        Shared engine.

    Returns
    -------
    float
        Sampled time; exactly ``t_center`` when ``t_spread == 0``.
    """
    if mode is TimeMode.GAUSSIAN:
        return float(rng.normal(t_center, t_spread))
    if mode is TimeMode.UNIFORM:
        return float(rng.uniform(t_center - t_spread, t_center + t_spread))
    raise ConfigurationError(f"Unknown time mode {mode!r}")
