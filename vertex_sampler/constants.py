"""
Constants for Active-Volume Vertex Sampling
===========================================

Closed enumerations of the vertex-placement and vertex-time techniques,
default values of the configuration table, and the numerical limits used by
the seeding and rejection-sampling routines.

Vertex Techniques
-----------------
sampled : pick a cell with probability proportional to its active mass, then
          a point uniformly inside the cell's box
fixed   : the same configured point on every call
box     : a point uniformly inside a user-defined box, optionally rejected
          unless it falls inside one of the catalog's cells

Time Techniques
---------------
uniform  : flat on [T0 - SigmaT, T0 + SigmaT]
gaussian : normal with mean T0 and standard deviation SigmaT
"""

import enum


# =============================================================================
# TECHNIQUE ENUMERATIONS
# =============================================================================

class VertexMode(enum.Enum):
    """Technique used to choose vertex locations."""
    SAMPLED = "sampled"
    FIXED = "fixed"
    BOX = "box"


class TimeMode(enum.Enum):
    """Technique used to select vertex times."""
    UNIFORM = "uniform"
    GAUSSIAN = "gaussian"


VERTEX_MODE_NAMES = tuple(m.value for m in VertexMode)
"""Allowed values of the ``type`` configuration key."""

TIME_MODE_NAMES = tuple(m.value for m in TimeMode)
"""Allowed values of the ``time_type`` configuration key."""


# =============================================================================
# CONFIGURATION DEFAULTS
# =============================================================================

DEFAULT_VERTEX_MODE = VertexMode.SAMPLED
DEFAULT_TIME_MODE = TimeMode.UNIFORM
DEFAULT_T0 = 0.0                  # central vertex time
DEFAULT_SIGMA_T = 0.0             # semi-interval (uniform) or RMS (gaussian)
DEFAULT_CHECK_ACTIVE = False      # box mode: reject points outside all cells

DEFAULT_SAMPLER_NAME = "vertex_sampler"
"""Instance label registered with the seed service."""

CONFIG_KEYS = (
    "type", "seed", "position", "min_position", "max_position",
    "check_active", "T0", "SigmaT", "time_type",
)
"""Keys recognised in a vertex configuration table."""


# =============================================================================
# NUMERICAL LIMITS
# =============================================================================

SEED_MAX = 2**64 - 1
"""Largest seed accepted by the engine (64-bit unsigned)."""

N_SPATIAL_DIMS = 3
"""Number of spatial coordinates in a vertex position."""

MAX_REJECTION_ATTEMPTS = 100_000
"""Upper bound on box-mode redraws before a sampling call gives up."""
