"""
Cell Catalog Geometry for Vertex Sampling
==========================================

Describes a detector as an ordered collection of axis-aligned rectangular
cells (for example the TPCs of a multi-TPC liquid-argon detector). Each cell
carries the bounds of its active volume and its active mass; the mass is the
weight used when choosing which cell receives a vertex.

Coordinate System
-----------------
- Cartesian x, y, z in the units of the catalog (cm for detector geometry)
- Each cell spans [min_x, max_x] x [min_y, max_y] x [min_z, max_z]
- Degenerate extents (min == max) are allowed on any axis
- Active mass in kg

The catalog is read-only from the sampler's point of view: it is queried
once per configuration through ``list_cells()`` and never on the sampling
hot path.
"""

import json
import math
from dataclasses import dataclass
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from .constants import N_SPATIAL_DIMS
from .exceptions import ConfigurationError


_BOUND_KEYS = ("min_x", "max_x", "min_y", "max_y", "min_z", "max_z")


# =============================================================================
# CELL
# =============================================================================

@dataclass(frozen=True)
class Cell:
    """Rectangular sub-volume of the detector with a known active mass.

    Attributes
    ----------
    index : int
        Position of the cell in its catalog.
    min_x, max_x, min_y, max_y, min_z, max_z : float
        Active-volume bounds on each axis (``min <= max``).
    active_mass : float
        Mass of sensitive material inside the cell [kg], >= 0.
    """
    index: int
    min_x: float
    max_x: float
    min_y: float
    max_y: float
    min_z: float
    max_z: float
    active_mass: float

    def __post_init__(self):
        """Validate bounds ordering and mass."""
        for key in _BOUND_KEYS:
            if not math.isfinite(getattr(self, key)):
                raise ConfigurationError(
                    f"Cell #{self.index}: {key} must be finite, "
                    f"got {getattr(self, key)}"
                )
        for axis, (lo, hi) in zip("xyz", self.bounds):
            if lo > hi:
                raise ConfigurationError(
                    f"Cell #{self.index}: min_{axis} ({lo}) exceeds "
                    f"max_{axis} ({hi})"
                )
            if not math.isfinite(hi - lo):
                raise ConfigurationError(
                    f"Cell #{self.index}: {axis} extent ({lo}, {hi}) is too "
                    f"large to represent"
                )
        if not math.isfinite(self.active_mass) or self.active_mass < 0.0:
            raise ConfigurationError(
                f"Cell #{self.index}: active_mass must be finite and "
                f"non-negative, got {self.active_mass}"
            )

    @property
    def bounds(self) -> Tuple[Tuple[float, float], ...]:
        """((min_x, max_x), (min_y, max_y), (min_z, max_z))."""
        return ((self.min_x, self.max_x),
                (self.min_y, self.max_y),
                (self.min_z, self.max_z))

    @property
    def center(self) -> Tuple[float, float, float]:
        return (0.5 * (self.min_x + self.max_x),
                0.5 * (self.min_y + self.max_y),
                0.5 * (self.min_z + self.max_z))

    @property
    def volume(self) -> float:
        """Box volume [catalog units^3]."""
        return ((self.max_x - self.min_x)
                * (self.max_y - self.min_y)
                * (self.max_z - self.min_z))

    def contains(self, x: float, y: float, z: float) -> bool:
        """True if the point lies inside the box, boundaries included."""
        return (self.min_x <= x <= self.max_x
                and self.min_y <= y <= self.max_y
                and self.min_z <= z <= self.max_z)


# =============================================================================
# CATALOG
# =============================================================================

class CellCatalog:
    """Ordered, immutable collection of detector cells.

    Parameters
    ----------
    cells : sequence of Cell
        Cells in catalog order. ``cells[i].index`` must equal ``i``.

    Examples
    --------
    >>> catalog = CellCatalog.from_records([
    ...     {"min_x": 0, "max_x": 10, "min_y": 0, "max_y": 10,
    ...      "min_z": 0, "max_z": 10, "active_mass": 1.0},
    ... ])
    >>> len(catalog)
    1
    """

    def __init__(self, cells: Sequence[Cell]):
        cells = tuple(cells)
        for i, cell in enumerate(cells):
            if not isinstance(cell, Cell):
                raise ConfigurationError(
                    f"Catalog entry {i} is a {type(cell).__name__}, not a Cell"
                )
            if cell.index != i:
                raise ConfigurationError(
                    f"Catalog entry {i} carries index {cell.index}; cells "
                    f"must be listed in index order"
                )
        self._cells = cells

    # ---- Construction helpers ----
    @classmethod
    def from_records(cls, records: Sequence[Mapping]) -> "CellCatalog":
        """Build a catalog from mappings with the six bound keys and
        ``active_mass``. Missing ``index`` keys default to list position.
        """
        cells = []
        for i, rec in enumerate(records):
            missing = [k for k in _BOUND_KEYS + ("active_mass",) if k not in rec]
            if missing:
                raise ConfigurationError(
                    f"Cell record {i} is missing keys: {', '.join(missing)}"
                )
            try:
                values = {k: float(rec[k]) for k in _BOUND_KEYS}
                mass = float(rec["active_mass"])
                index = int(rec.get("index", i))
            except (TypeError, ValueError) as e:
                raise ConfigurationError(
                    f"Cell record {i} has a non-numeric field: {e}"
                ) from e
            cells.append(Cell(index=index, active_mass=mass, **values))
        return cls(cells)

    def to_records(self) -> List[Dict[str, float]]:
        """Inverse of :meth:`from_records`."""
        out = []
        for cell in self._cells:
            rec = {"index": cell.index}
            rec.update({k: getattr(cell, k) for k in _BOUND_KEYS})
            rec["active_mass"] = cell.active_mass
            out.append(rec)
        return out

    # ---- Query interface ----
    def list_cells(self) -> Tuple[Cell, ...]:
        """Ordered sequence of cells (the catalog query used by samplers)."""
        return self._cells

    def __len__(self) -> int:
        return len(self._cells)

    def __iter__(self) -> Iterator[Cell]:
        return iter(self._cells)

    def __getitem__(self, index: int) -> Cell:
        return self._cells[index]

    def __repr__(self) -> str:
        return (f"CellCatalog(n_cells={len(self)}, "
                f"total_active_mass={self.total_active_mass:.6g})")

    @property
    def masses(self) -> np.ndarray:
        """Active masses in catalog order [kg]."""
        return np.array([c.active_mass for c in self._cells], dtype=np.float64)

    @property
    def total_active_mass(self) -> float:
        return float(np.sum(self.masses)) if self._cells else 0.0

    @property
    def total_volume(self) -> float:
        return float(sum(c.volume for c in self._cells))

    def bounding_box(self) -> Tuple[np.ndarray, np.ndarray]:
        """Smallest box enclosing every cell, as (mins, maxs) arrays."""
        if not self._cells:
            raise ConfigurationError("Empty catalog has no bounding box")
        lo = np.array([[c.min_x, c.min_y, c.min_z] for c in self._cells])
        hi = np.array([[c.max_x, c.max_y, c.max_z] for c in self._cells])
        return lo.min(axis=0), hi.max(axis=0)

    def find_cell(self, x: float, y: float, z: float) -> Optional[int]:
        """Index of the first cell containing the point, or None."""
        for cell in self._cells:
            if cell.contains(x, y, z):
                return cell.index
        return None

    def contains(self, x: float, y: float, z: float) -> bool:
        """True if the point lies in the active volume of any cell."""
        return self.find_cell(x, y, z) is not None

    def overlap_fraction(self, box_min: Sequence[float],
                         box_max: Sequence[float]) -> float:
        """Fraction of a box's measure covered by the catalog's cells.

        Axes on which the box is degenerate (min == max) contribute a factor
        of 1 if the fixed coordinate lies within the cell's range and 0
        otherwise; other axes contribute the overlap length divided by the
        box length. Cells are assumed not to overlap one another, so the sum
        over cells is the covered fraction.

        Parameters
        ----------
        box_min, box_max : sequence of 3 float
            Box corners.

        Returns
        -------
        float
            Covered fraction in [0, 1] (may exceed 1 only if cells overlap).
        """
        total = 0.0
        for cell in self._cells:
            frac = 1.0
            for (c_lo, c_hi), b_lo, b_hi in zip(cell.bounds, box_min, box_max):
                length = b_hi - b_lo
                if length == 0.0:
                    frac *= 1.0 if c_lo <= b_lo <= c_hi else 0.0
                else:
                    overlap = min(c_hi, b_hi) - max(c_lo, b_lo)
                    frac *= max(overlap, 0.0) / length
                if frac == 0.0:
                    break
            total += frac
        return total

    def summary(self) -> str:
        """Return a formatted summary of the catalog."""
        lines = [
            f"  Cells:             {len(self)}",
            f"  Total active mass: {self.total_active_mass:.4g} kg",
            f"  Total volume:      {self.total_volume:.4g}",
        ]
        if self._cells:
            lo, hi = self.bounding_box()
            lines.append(
                f"  Bounding box:      x [{lo[0]:.4g}, {hi[0]:.4g}]  "
                f"y [{lo[1]:.4g}, {hi[1]:.4g}]  z [{lo[2]:.4g}, {hi[2]:.4g}]"
            )
        total = self.total_active_mass
        for cell in self._cells:
            share = cell.active_mass / total if total > 0 else 0.0
            lines.append(
                f"    #{cell.index:<3d} mass = {cell.active_mass:10.4g} kg  "
                f"({share * 100:5.1f}%)"
            )
        return "\n".join(lines)


# =============================================================================
# BUILDERS AND I/O
# =============================================================================

def build_cell_grid(origin: Sequence[float],
                    cell_size: Sequence[float],
                    shape: Sequence[int],
                    density: float,
                    gap: float = 0.0) -> CellCatalog:
    """Regular grid of identical cells whose mass is volume * density.

    Cells are indexed with x varying slowest and z fastest, the way
    drift volumes are numbered along the drift axis first.

    Parameters
    ----------
    origin : sequence of 3 float
        Minimum corner of cell (0, 0, 0).
    cell_size : sequence of 3 float
        Extent of each cell along x, y, z.
    shape : sequence of 3 int
        Number of cells along x, y, z.
    density : float
        Mass per unit volume used to derive each cell's active mass.
    gap : float
        Inactive spacing between neighbouring cells on every axis.

    Returns
    -------
    CellCatalog
    """
    if len(origin) != N_SPATIAL_DIMS or len(cell_size) != N_SPATIAL_DIMS \
            or len(shape) != N_SPATIAL_DIMS:
        raise ConfigurationError("origin, cell_size and shape need 3 entries")
    if any(int(n) < 1 for n in shape):
        raise ConfigurationError(f"shape entries must be >= 1, got {shape}")
    if any(s < 0 for s in cell_size) or gap < 0 or density < 0:
        raise ConfigurationError(
            "cell_size, gap and density must be non-negative"
        )

    nx, ny, nz = (int(n) for n in shape)
    sx, sy, sz = (float(s) for s in cell_size)
    ox, oy, oz = (float(o) for o in origin)
    mass = sx * sy * sz * float(density)

    cells = []
    for ix in range(nx):
        for iy in range(ny):
            for iz in range(nz):
                x0 = ox + ix * (sx + gap)
                y0 = oy + iy * (sy + gap)
                z0 = oz + iz * (sz + gap)
                cells.append(Cell(
                    index=len(cells),
                    min_x=x0, max_x=x0 + sx,
                    min_y=y0, max_y=y0 + sy,
                    min_z=z0, max_z=z0 + sz,
                    active_mass=mass,
                ))
    return CellCatalog(cells)


def load_catalog(path: str) -> CellCatalog:
    """Read a catalog from JSON: a list of cell records, or an object with a
    ``"cells"`` list.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, Mapping):
        data = data.get("cells")
    if not isinstance(data, list):
        raise ConfigurationError(
            f"{path}: expected a list of cells or an object with 'cells'"
        )
    return CellCatalog.from_records(data)
