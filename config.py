"""
Central Configuration for the Vertex Sampling Demonstration Detector

This file defines ALL run parameters in a tiered structure:
  Tier 1: Detector Basis (cell layout, target material)
  Tier 2: Derived Parameters (cell masses, mass fractions, volumes)
  Tier 3: Vertex Sampler Settings (configuration tables per technique)
  Tier 4: Seeding
  Tier 5: Validation Statistics

Lengths in cm, masses in kg, times in seconds (as in the generator's
vertex table).

Usage:
    from config import build_demo_catalog, compute_derived, print_summary
    catalog = build_demo_catalog()
    print_summary(compute_derived(catalog))
"""

from dataclasses import dataclass

import numpy as np

from vertex_sampler.geometry import Cell, CellCatalog


# =============================================================================
# TIER 1: DETECTOR BASIS
# =============================================================================

DETECTOR_NAME = "Two-module liquid argon TPC demonstrator"

# --- TARGET MATERIAL ---
TARGET_MATERIAL = "Liquid argon (87 K)"
LAR_DENSITY = 1.3954e-3            # kg/cm3 (1.3954 g/cm3)

# --- TPC ACTIVE VOLUMES ---
# (min_x, max_x, min_y, max_y, min_z, max_z) per TPC, in index order.
# Each module holds two drift volumes on either side of a 3 cm cathode
# plane; module 1's east drift volume is only half instrumented.
CATHODE_HALF_GAP = 1.5             # cm
MODULE_GAP = 3.0                   # cm (inactive, between modules along z)
TPC_BOUNDS = [
    (-60.0, -CATHODE_HALF_GAP, -62.0, 62.0, 0.0, 62.0),     # module 0, west
    (CATHODE_HALF_GAP, 60.0, -62.0, 62.0, 0.0, 62.0),       # module 0, east
    (-60.0, -CATHODE_HALF_GAP, -62.0, 62.0, 65.0, 127.0),   # module 1, west
    (CATHODE_HALF_GAP, 30.0, -62.0, 62.0, 65.0, 127.0),     # module 1, east
]


# =============================================================================
# TIER 2: DERIVED PARAMETERS
# =============================================================================

def build_demo_catalog(density=LAR_DENSITY):
    """Cell catalog of the demonstrator; active mass = volume * density.

    Args:
        density: Target density in kg/cm3 (default liquid argon)

    Returns:
        CellCatalog with one cell per entry of TPC_BOUNDS
    """
    cells = []
    for i, (x0, x1, y0, y1, z0, z1) in enumerate(TPC_BOUNDS):
        volume = (x1 - x0) * (y1 - y0) * (z1 - z0)
        cells.append(Cell(index=i, min_x=x0, max_x=x1, min_y=y0, max_y=y1,
                          min_z=z0, max_z=z1, active_mass=volume * density))
    return CellCatalog(cells)


@dataclass
class DerivedParameters:
    """Detector quantities computed from Tier 1."""

    n_cells: int                       # number of TPCs
    total_active_volume: float         # cm3
    total_active_mass: float           # kg
    cell_masses: np.ndarray            # kg, per TPC
    cell_fractions: np.ndarray         # expected share of vertices per TPC
    bounding_min: np.ndarray           # cm, (x, y, z)
    bounding_max: np.ndarray           # cm, (x, y, z)
    active_fraction_of_envelope: float # active volume / bounding-box volume


def compute_derived(catalog=None):
    """Compute all derived detector parameters.

    Args:
        catalog: CellCatalog (demonstrator built if not provided)

    Returns:
        DerivedParameters
    """
    if catalog is None:
        catalog = build_demo_catalog()

    masses = catalog.masses
    total_mass = float(masses.sum())
    lo, hi = catalog.bounding_box()
    envelope = float(np.prod(hi - lo))

    return DerivedParameters(
        n_cells=len(catalog),
        total_active_volume=catalog.total_volume,
        total_active_mass=total_mass,
        cell_masses=masses,
        cell_fractions=masses / total_mass if total_mass > 0 else masses,
        bounding_min=lo,
        bounding_max=hi,
        active_fraction_of_envelope=(catalog.total_volume / envelope
                                     if envelope > 0 else 0.0),
    )


# =============================================================================
# TIER 3: VERTEX SAMPLER SETTINGS
# =============================================================================

# --- Time window (beam-spill-like) ---
VERTEX_T0 = 0.0                    # s (central vertex time)
VERTEX_SIGMA_T = 5.0e-6            # s (semi-interval for uniform, RMS for gaussian)

# --- Fixed vertex (centre of module 0, west drift volume) ---
FIXED_POSITION = [-30.75, 0.0, 31.0]    # cm

# --- Box straddling the cathode and the inter-module gap ---
BOX_MIN_POSITION = [-20.0, -20.0, 40.0]  # cm
BOX_MAX_POSITION = [20.0, 20.0, 90.0]    # cm

SAMPLED_VERTEX_TABLE = {
    "type": "sampled",
    "T0": VERTEX_T0,
    "SigmaT": VERTEX_SIGMA_T,
    "time_type": "uniform",
}

FIXED_VERTEX_TABLE = {
    "type": "fixed",
    "position": FIXED_POSITION,
    "T0": VERTEX_T0,
    "SigmaT": VERTEX_SIGMA_T,
    "time_type": "gaussian",
}

BOX_VERTEX_TABLE = {
    "type": "box",
    "min_position": BOX_MIN_POSITION,
    "max_position": BOX_MAX_POSITION,
    "check_active": True,
    "T0": VERTEX_T0,
    "SigmaT": VERTEX_SIGMA_T,
    "time_type": "uniform",
}

VERTEX_TABLES = {
    "sampled": SAMPLED_VERTEX_TABLE,
    "fixed": FIXED_VERTEX_TABLE,
    "box": BOX_VERTEX_TABLE,
}


# =============================================================================
# TIER 4: SEEDING
# =============================================================================

MASTER_SEED = 42                   # run-level seed given to the seed service
SAMPLER_NAME = "Vertex_Sampler"    # instance label prefix


# =============================================================================
# TIER 5: VALIDATION STATISTICS
# =============================================================================

N_VERTICES = 50_000                # vertices per validation run
N_VERTICES_QUICK = 5_000           # --quick runs
SIGNIFICANCE = 1.0e-3              # minimum p-value for a PASS


# =============================================================================
# SUMMARY
# =============================================================================

def print_summary(d=None):
    """Print a formatted summary of the detector and sampler settings.

    Args:
        d: DerivedParameters instance (computed if not provided)
    """
    if d is None:
        d = compute_derived()

    print("=" * 72)
    print(f"     {DETECTOR_NAME.upper()}")
    print("=" * 72)

    print("\n--- Detector Basis ---")
    print(f"  Target Material:        {TARGET_MATERIAL}")
    print(f"  Density:                {LAR_DENSITY * 1e3:10.4f} g/cm3")
    print(f"  TPCs:                   {d.n_cells:10d}")
    print(f"  Active Volume:          {d.total_active_volume / 1e6:10.4f} m3")
    print(f"  Active Mass:            {d.total_active_mass:10.1f} kg")
    print(f"  Envelope Fill Fraction: {d.active_fraction_of_envelope:10.4f}")

    print("\n--- Per-TPC Active Mass ---")
    for i, (m, f) in enumerate(zip(d.cell_masses, d.cell_fractions)):
        print(f"  TPC {i}:                  {m:10.1f} kg  ({f * 100:5.1f}% of vertices)")

    print("\n--- Vertex Time ---")
    print(f"  T0:                     {VERTEX_T0:10.3e} s")
    print(f"  SigmaT:                 {VERTEX_SIGMA_T:10.3e} s")

    print("\n--- Seeding & Statistics ---")
    print(f"  Master Seed:            {MASTER_SEED:10d}")
    print(f"  Vertices per Run:       {N_VERTICES:10d}")
    print(f"  Significance Level:     {SIGNIFICANCE:10.1e}")
    print("=" * 72)


if __name__ == "__main__":
    print_summary()
