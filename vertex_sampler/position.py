"""
Vertex Position Sampling
========================

Uniform-in-volume position draws inside a rectangular box.

Each coordinate is an independent uniform draw on its axis range, taken in
the order x, y, z from the shared generator. That ordering is part of the
reproducibility contract: with a fixed seed and a fixed sequence of boxes
the same points come out. A degenerate axis (min == max) returns that exact
value.
"""

from typing import Optional, Sequence, Tuple

import numpy as np

from .constants import MAX_REJECTION_ATTEMPTS
from .exceptions import SamplingError
from .geometry import Cell, CellCatalog


def _uniform_xyz(rng: np.random.Generator,
                 x_range: Tuple[float, float],
                 y_range: Tuple[float, float],
                 z_range: Tuple[float, float]) -> Tuple[float, float, float]:
    x = float(rng.uniform(x_range[0], x_range[1]))
    y = float(rng.uniform(y_range[0], y_range[1]))
    z = float(rng.uniform(z_range[0], z_range[1]))
    return x, y, z


def sample_position_in_cell(cell: Cell,
                            rng: np.random.Generator
                            ) -> Tuple[float, float, float]:
    """Sample a point uniformly over a cell's active volume.

    Parameters
    ----------
    cell : Cell
        Chosen cell.
    rng : numpy.random.Generator
        Shared engine; exactly three uniform draws are consumed.

    Returns
    -------
    tuple of float
        (x, y, z) with min <= coordinate <= max on each axis.
    """
    return _uniform_xyz(rng,
                        (cell.min_x, cell.max_x),
                        (cell.min_y, cell.max_y),
                        (cell.min_z, cell.max_z))


def sample_position_in_box(box_min: Sequence[float],
                           box_max: Sequence[float],
                           rng: np.random.Generator,
                           catalog: Optional[CellCatalog] = None,
                           max_attempts: int = MAX_REJECTION_ATTEMPTS,
                           ) -> Tuple[Tuple[float, float, float], Optional[int]]:
    """Sample a point uniformly inside a box, optionally restricted to the
    active volume of a catalog.

    Without a catalog one (x, y, z) triple is drawn. With a catalog, triples
    are redrawn until one falls inside some cell (rejection sampling), which
    keeps the accepted points uniform over the intersection of the box with
    the active volume.

    Parameters
    ----------
    box_min, box_max : sequence of 3 float
        Box corners (min <= max on each axis).
    rng : numpy.random.Generator
        Shared engine.
    catalog : CellCatalog, optional
        If given, points outside every cell are rejected.
    max_attempts : int
        Rejection cap.

    Returns
    -------
    (position, cell_index)
        cell_index is the containing cell, or None when no catalog is used.

    Raises
    ------
    SamplingError
        If ``max_attempts`` triples are all rejected.
    """
    ranges = tuple(zip(box_min, box_max))
    if catalog is None:
        return _uniform_xyz(rng, *ranges), None

    for _ in range(int(max_attempts)):
        x, y, z = _uniform_xyz(rng, *ranges)
        index = catalog.find_cell(x, y, z)
        if index is not None:
            return (x, y, z), index

    raise SamplingError(
        f"No point inside an active volume after {max_attempts} attempts "
        f"in box {tuple(box_min)} - {tuple(box_max)}"
    )
