"""
Active-Volume Vertex Sampling Package
=====================================

Monte Carlo selection of the primary vertex (x, y, z, t) of simulated
events in a detector made of several rectangular active volumes ("cells"),
such as a multi-TPC liquid-argon detector. Fully experiment-agnostic: the
detector enters only through a catalog of cell bounds and active masses.

Vertex positions are chosen in one of three ways:

  - sampled: a cell is picked with probability proportional to its active
    mass, then a point is drawn uniformly inside it
  - fixed:   a configured point, reused for every event
  - box:     a point drawn uniformly inside a user box, optionally
    restricted to the active volume by rejection

Vertex times follow a uniform or gaussian law around T0 with spread SigmaT.
Every draw comes from one SeedSequence-seeded PCG64 engine owned by the
sampler, so a run is reproducible from its seed.

Modules
-------
constants
    Technique enumerations, configuration defaults, numerical limits.
exceptions
    ConfigurationError, NotConfiguredError, SamplingError.
geometry
    Cell and CellCatalog; grid builder and JSON loader.
engine
    SeededEngine: the per-sampler random engine.
seeds
    SeedService: per-instance seeds derived from a master seed.
selector
    CellSelector: mass-weighted discrete distribution over cells.
position
    Uniform position draws in a cell or box.
timing
    Uniform / gaussian vertex time draws.
settings
    SamplerConfig and the configuration-table parser.
sampler
    VertexSampler facade and the SampledVertex output value.
analysis
    Statistical validation of sampled vertices.
"""

__version__ = "0.1.0"

from .constants import TimeMode, VertexMode
from .exceptions import (
    ConfigurationError,
    NotConfiguredError,
    SamplingError,
    VertexSamplerError,
)
from .geometry import Cell, CellCatalog, build_cell_grid, load_catalog
from .engine import SeededEngine
from .seeds import SeedService, derive_seed
from .selector import CellSelector
from .position import sample_position_in_box, sample_position_in_cell
from .timing import sample_time
from .settings import SamplerConfig, load_config
from .sampler import SampledVertex, VertexSampler
