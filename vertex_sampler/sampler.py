"""
Active-Volume Vertex Sampler
============================

Chooses the primary vertex (x, y, z, t) of each simulated event inside the
active volume of a multi-cell detector. Experiment-agnostic: everything it
knows about the detector comes from a cell catalog.

Per sampling call
-----------------
    sampled : index = select(mass-weighted cells)      1 draw
              (x, y, z) = uniform in cells[index]      3 draws (x, y, z)
    fixed   : (x, y, z) = configured position          0 draws
    box     : (x, y, z) = uniform in box               3 draws per attempt
              (redrawn until inside a cell if check_active)
    always  : t = time law(T0, SigmaT)                 1 draw, last

All draws come from one SeededEngine owned by the sampler, so the sequence
of vertices is a pure function of (seed, catalog, configuration, number of
calls).

Lifecycle
---------
    Unconfigured --configure()--> Configured --configure()--> Configured

``configure`` either succeeds completely or leaves the sampler exactly as it
was. ``sample_vertex`` is not reentrant; callers must not sample and
reconfigure concurrently.
"""

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple, Union

import numpy as np

from .constants import DEFAULT_SAMPLER_NAME, VertexMode
from .engine import SeededEngine, validate_seed
from .exceptions import ConfigurationError, NotConfiguredError
from .geometry import CellCatalog
from .position import sample_position_in_box, sample_position_in_cell
from .seeds import SeedService
from .selector import CellSelector
from .settings import SamplerConfig
from .timing import sample_time

logger = logging.getLogger(__name__)


# =====================================================================
# Output value
# =====================================================================
@dataclass(frozen=True)
class SampledVertex:
    """Primary vertex 4-position.

    Attributes
    ----------
    x, y, z : float
        Vertex position (catalog units).
    t : float
        Vertex time (units of T0).
    cell_index : int or None
        Cell the vertex was placed in (sampled mode, or box mode with
        check_active); None otherwise.
    """
    x: float
    y: float
    z: float
    t: float
    cell_index: Optional[int] = None

    @property
    def position(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """(x, y, z, t)."""
        return (self.x, self.y, self.z, self.t)

    def to_array(self) -> np.ndarray:
        return np.array(self.as_tuple(), dtype=np.float64)


# =====================================================================
# Configured state
# =====================================================================
@dataclass(frozen=True)
class _Plan:
    """Everything derived from one successful configure() call."""
    config: SamplerConfig
    catalog: Optional[CellCatalog]
    selector: Optional[CellSelector]
    fixed_position: Optional[Tuple[float, float, float]]


def _as_catalog(catalog: Any) -> Optional[CellCatalog]:
    if catalog is None or isinstance(catalog, CellCatalog):
        return catalog
    if hasattr(catalog, "list_cells"):
        return CellCatalog(catalog.list_cells())
    raise ConfigurationError(
        f"Cell catalog must provide list_cells(), got {type(catalog).__name__}"
    )


def _build_plan(config: SamplerConfig,
                catalog: Optional[CellCatalog],
                name: str) -> _Plan:
    """Check ``config`` against ``catalog``; touches no sampler state."""
    selector = None
    fixed_position = None
    mode = config.vertex_mode

    if mode is VertexMode.SAMPLED:
        if catalog is None:
            raise ConfigurationError(
                "Sampled vertex mode requires a cell catalog"
            )
        # Active masses of the current catalog are the selection weights
        selector = CellSelector(catalog.list_cells())

    elif mode is VertexMode.FIXED:
        fixed_position = config.fixed_position

    elif mode is VertexMode.BOX:
        if config.check_active:
            if catalog is None:
                raise ConfigurationError(
                    "Box vertex mode with check_active requires a cell "
                    "catalog"
                )
            fraction = catalog.overlap_fraction(config.box_min,
                                                config.box_max)
            if fraction <= 0.0:
                raise ConfigurationError(
                    f"Box {config.box_min} - {config.box_max} does not "
                    f"overlap any active volume"
                )
            logger.info("Sampler '%s': %.3g of the box is active volume",
                        name, fraction)

    else:
        raise ConfigurationError(f"Unhandled vertex mode {mode!r}")

    return _Plan(config=config, catalog=catalog,
                 selector=selector, fixed_position=fixed_position)


# =====================================================================
# Sampler
# =====================================================================
class VertexSampler:
    """Samples primary vertex 4-positions within a detector's active volume.

    Parameters
    ----------
    seed_source : SeedService or int
        Either a seed service with which the sampler registers under
        ``name``, or a 64-bit seed used directly.
    name : str
        Instance label registered with the seed service.
    seed : int, optional
        Explicit seed overriding the one the seed source would assign.

    Examples
    --------
    >>> from vertex_sampler import CellCatalog, SamplerConfig, VertexSampler
    >>> catalog = CellCatalog.from_records([
    ...     dict(min_x=0, max_x=10, min_y=0, max_y=10, min_z=0, max_z=10,
    ...          active_mass=1.0)])
    >>> sampler = VertexSampler(42)
    >>> sampler.configure(SamplerConfig(t_center=5.0, t_spread=1.0), catalog)
    >>> v = sampler.sample_vertex()
    >>> 4.0 <= v.t <= 6.0
    True
    """

    def __init__(self,
                 seed_source: Union[SeedService, int],
                 name: str = DEFAULT_SAMPLER_NAME,
                 seed: Optional[int] = None):
        self.name = name
        if isinstance(seed_source, SeedService):
            engine_seed = seed_source.register_engine(name, seed)
        else:
            engine_seed = validate_seed(seed if seed is not None else seed_source)
        self.engine = SeededEngine(engine_seed)
        self._plan: Optional[_Plan] = None
        self.n_sampled = 0

    @classmethod
    def from_config(cls,
                    config: Union[SamplerConfig, Mapping[str, Any]],
                    catalog: Any,
                    seed_source: Union[SeedService, int],
                    name: str = DEFAULT_SAMPLER_NAME) -> "VertexSampler":
        """Construct, seed (honouring the config's ``seed``) and configure.

        The configuration is checked against the catalog before the name is
        registered with the seed service, so a rejected configuration leaves
        the service as it was.
        """
        config = _as_config(config).copy()
        plan = _build_plan(config, _as_catalog(catalog), name)
        sampler = cls(seed_source, name=name, seed=config.seed)
        sampler._commit(plan)
        return sampler

    # ---- State ----
    @property
    def seed(self) -> int:
        return self.engine.seed

    @property
    def is_configured(self) -> bool:
        return self._plan is not None

    @property
    def config(self) -> SamplerConfig:
        return self._require_plan().config.copy()

    @property
    def catalog(self) -> Optional[CellCatalog]:
        return self._require_plan().catalog

    @property
    def cell_probabilities(self) -> np.ndarray:
        """Selection probability per cell (sampled mode only)."""
        plan = self._require_plan()
        if plan.selector is None:
            raise ConfigurationError(
                f"Sampler '{self.name}' is not in sampled mode"
            )
        return plan.selector.probabilities

    def _require_plan(self) -> _Plan:
        if self._plan is None:
            raise NotConfiguredError(
                f"Vertex sampler '{self.name}' used before configure()"
            )
        return self._plan

    def __repr__(self) -> str:
        mode = self._plan.config.vertex_mode.value if self._plan else "unconfigured"
        return f"VertexSampler(name={self.name!r}, seed={self.seed}, mode={mode})"

    # ---- Configuration ----
    def configure(self,
                  config: Union[SamplerConfig, Mapping[str, Any]],
                  catalog: Any = None) -> None:
        """Validate ``config`` against ``catalog`` and make it current.

        Parameters
        ----------
        config : SamplerConfig or mapping
            Vertex configuration (a mapping is parsed with
            ``SamplerConfig.from_dict``).
        catalog : CellCatalog or object with list_cells()
            Required in sampled mode and in box mode with check_active.

        Raises
        ------
        ConfigurationError
            On any invalid value, or a ``seed`` other than the engine's
            (the engine is seeded once, at construction); the previous
            configuration stays in force.
        """
        config = _as_config(config).copy()
        if config.seed is not None and config.seed != self.seed:
            raise ConfigurationError(
                f"Sampler '{self.name}' was seeded with {self.seed}; a "
                f"configuration with seed {config.seed} needs a new sampler "
                f"(use VertexSampler.from_config)"
            )
        self._commit(_build_plan(config, _as_catalog(catalog), self.name))

    def _commit(self, plan: _Plan) -> None:
        self._plan = plan
        logger.info("Configured sampler '%s' (seed %d): %s",
                    self.name, self.seed, plan.config.describe())

    # ---- Sampling ----
    def sample_vertex(self) -> SampledVertex:
        """Select the primary vertex 4-position for one event.

        Raises
        ------
        NotConfiguredError
            If ``configure`` has not succeeded yet.
        SamplingError
            Box mode with check_active only, if rejection sampling gives up.
        """
        plan = self._require_plan()
        cfg = plan.config
        rng = self.engine.rng
        cell_index = None

        if cfg.vertex_mode is VertexMode.SAMPLED:
            cell_index = plan.selector.select(rng)
            x, y, z = sample_position_in_cell(plan.catalog[cell_index], rng)
        elif cfg.vertex_mode is VertexMode.FIXED:
            x, y, z = plan.fixed_position
        else:
            active = plan.catalog if cfg.check_active else None
            (x, y, z), cell_index = sample_position_in_box(
                cfg.box_min, cfg.box_max, rng, catalog=active)

        t = sample_time(cfg.time_mode, cfg.t_center, cfg.t_spread, rng)
        self.n_sampled += 1

        if logger.isEnabledFor(logging.DEBUG):
            where = f"cell #{cell_index}" if cell_index is not None else cfg.vertex_mode.value
            logger.debug("Sampler '%s': vertex in %s, x = %g, y = %g, z = %g, t = %g",
                         self.name, where, x, y, z, t)

        return SampledVertex(x=x, y=y, z=z, t=t, cell_index=cell_index)


def _as_config(config: Union[SamplerConfig, Mapping[str, Any]]) -> SamplerConfig:
    if isinstance(config, SamplerConfig):
        return config
    if isinstance(config, Mapping):
        return SamplerConfig.from_dict(config)
    raise ConfigurationError(
        f"Expected a SamplerConfig or mapping, got {type(config).__name__}"
    )
