# Ensure repository root is on sys.path for imports like `from vertex_sampler.sampler import ...`
import os
import sys

import pytest

_REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if _REPO_ROOT not in sys.path:
    sys.path.insert(0, _REPO_ROOT)

from vertex_sampler.geometry import CellCatalog


@pytest.fixture
def two_cell_catalog():
    """Cell 0 at x in [0, 10] with mass 1, cell 1 at x in [100, 110] with mass 3."""
    return CellCatalog.from_records([
        dict(min_x=0.0, max_x=10.0, min_y=0.0, max_y=10.0,
             min_z=0.0, max_z=10.0, active_mass=1.0),
        dict(min_x=100.0, max_x=110.0, min_y=0.0, max_y=10.0,
             min_z=0.0, max_z=10.0, active_mass=3.0),
    ])


@pytest.fixture
def two_cell_config():
    return {"type": "sampled", "time_type": "uniform", "T0": 5.0, "SigmaT": 1.0}
