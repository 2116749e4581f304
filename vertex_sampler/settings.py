"""
Vertex Sampler Configuration
============================

The vertex configuration table, as written in a job configuration:

    {
      "type":         "sampled" | "fixed" | "box"      (default "sampled")
      "seed":         int, optional                    (engine seed override)
      "position":     [x, y, z]                        (required iff "fixed")
      "min_position": [x, y, z]                        (required iff "box")
      "max_position": [x, y, z]                        (required iff "box")
      "check_active": bool                             ("box" only, default false)
      "T0":           float                            (default 0)
      "SigmaT":       float >= 0                       (default 0)
      "time_type":    "uniform" | "gaussian"           (default "uniform")
    }

``SamplerConfig`` validates the table once, at construction, against the
closed technique enumerations; an unknown technique, an unknown key, a
negative spread or a malformed position raises ``ConfigurationError``.
"""

import json
import math
from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping, Optional, Tuple

from .constants import (
    CONFIG_KEYS, DEFAULT_CHECK_ACTIVE, DEFAULT_SIGMA_T, DEFAULT_T0,
    DEFAULT_TIME_MODE, DEFAULT_VERTEX_MODE, N_SPATIAL_DIMS,
    TIME_MODE_NAMES, VERTEX_MODE_NAMES, TimeMode, VertexMode,
)
from .engine import validate_seed
from .exceptions import ConfigurationError
from .timing import validate_time_parameters


Position = Tuple[float, float, float]


# =============================================================================
# FIELD PARSERS
# =============================================================================

def parse_vertex_mode(value: Any) -> VertexMode:
    if isinstance(value, VertexMode):
        return value
    try:
        return VertexMode(value)
    except ValueError:
        raise ConfigurationError(
            f"Invalid vertex type '{value}' requested. Allowed values are "
            + ", ".join(f"'{v}'" for v in VERTEX_MODE_NAMES)
        ) from None


def parse_time_mode(value: Any) -> TimeMode:
    if isinstance(value, TimeMode):
        return value
    try:
        return TimeMode(value)
    except ValueError:
        raise ConfigurationError(
            f"Invalid vertex time type '{value}' requested. Allowed values "
            f"are " + ", ".join(f"'{v}'" for v in TIME_MODE_NAMES)
        ) from None


def parse_position(value: Any, name: str) -> Position:
    """Three finite coordinates, each kept on its own axis."""
    if isinstance(value, (str, bytes, Mapping)) or not hasattr(value, "__len__"):
        raise ConfigurationError(
            f"'{name}' must be a sequence of {N_SPATIAL_DIMS} numbers"
        )
    if len(value) != N_SPATIAL_DIMS:
        raise ConfigurationError(
            f"'{name}' must have exactly {N_SPATIAL_DIMS} components, "
            f"got {len(value)}"
        )
    try:
        x, y, z = (float(v) for v in value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"'{name}' has a non-numeric entry") from e
    if not all(math.isfinite(c) for c in (x, y, z)):
        raise ConfigurationError(f"'{name}' must be finite, got {value}")
    return (x, y, z)


def _parse_float(value: Any, name: str) -> float:
    if isinstance(value, bool):
        raise ConfigurationError(f"'{name}' must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            f"'{name}' must be a number, got {value!r}"
        ) from e


# =============================================================================
# CONFIG DATACLASS
# =============================================================================

@dataclass
class SamplerConfig:
    """Validated vertex sampler configuration.

    Attributes
    ----------
    vertex_mode : VertexMode
        Technique used to choose vertex locations.
    time_mode : TimeMode
        Technique used to select vertex times.
    t_center : float
        Central vertex time (T0).
    t_spread : float
        Semi-interval (uniform) or RMS (gaussian) of the time (SigmaT).
    fixed_position : tuple of 3 float, optional
        Vertex position in fixed mode.
    box_min, box_max : tuple of 3 float, optional
        Box corners in box mode.
    check_active : bool
        Box mode: only accept points inside a catalog cell.
    seed : int, optional
        Explicit engine seed, overriding the seed service.
    """
    vertex_mode: VertexMode = DEFAULT_VERTEX_MODE
    time_mode: TimeMode = DEFAULT_TIME_MODE
    t_center: float = DEFAULT_T0
    t_spread: float = DEFAULT_SIGMA_T
    fixed_position: Optional[Position] = None
    box_min: Optional[Position] = None
    box_max: Optional[Position] = None
    check_active: bool = DEFAULT_CHECK_ACTIVE
    seed: Optional[int] = None

    def __post_init__(self):
        """Normalise technique names and check every parameter."""
        self.vertex_mode = parse_vertex_mode(self.vertex_mode)
        self.time_mode = parse_time_mode(self.time_mode)
        self.t_center = _parse_float(self.t_center, "T0")
        self.t_spread = _parse_float(self.t_spread, "SigmaT")
        validate_time_parameters(self.t_center, self.t_spread)

        if not isinstance(self.check_active, bool):
            raise ConfigurationError(
                f"'check_active' must be a boolean, got {self.check_active!r}"
            )
        if self.seed is not None:
            self.seed = validate_seed(self.seed)

        fixed = self.vertex_mode is VertexMode.FIXED
        box = self.vertex_mode is VertexMode.BOX

        if fixed:
            if self.fixed_position is None:
                raise ConfigurationError(
                    "'position' is required when the vertex type is 'fixed'"
                )
            self.fixed_position = parse_position(self.fixed_position, "position")
        elif self.fixed_position is not None:
            raise ConfigurationError(
                "'position' is only allowed when the vertex type is 'fixed'"
            )

        if box:
            if self.box_min is None or self.box_max is None:
                raise ConfigurationError(
                    "'min_position' and 'max_position' are required when "
                    "the vertex type is 'box'"
                )
            self.box_min = parse_position(self.box_min, "min_position")
            self.box_max = parse_position(self.box_max, "max_position")
            for axis, lo, hi in zip("xyz", self.box_min, self.box_max):
                if lo > hi:
                    raise ConfigurationError(
                        f"Box min_position {axis} ({lo}) exceeds "
                        f"max_position {axis} ({hi})"
                    )
                if not math.isfinite(hi - lo):
                    raise ConfigurationError(
                        f"Box {axis} extent ({lo}, {hi}) is too large to "
                        f"represent"
                    )
        elif self.box_min is not None or self.box_max is not None \
                or self.check_active:
            raise ConfigurationError(
                "'min_position', 'max_position' and 'check_active' are only "
                "allowed when the vertex type is 'box'"
            )

    # ---- Conversion ----
    @classmethod
    def from_dict(cls, table: Mapping[str, Any]) -> "SamplerConfig":
        """Build from a configuration table (see module docstring)."""
        if not isinstance(table, Mapping):
            raise ConfigurationError(
                f"Vertex configuration must be a mapping, got "
                f"{type(table).__name__}"
            )
        unknown = sorted(set(table) - set(CONFIG_KEYS))
        if unknown:
            raise ConfigurationError(
                "Unsupported vertex configuration key(s): " + ", ".join(unknown)
            )
        return cls(
            vertex_mode=table.get("type", DEFAULT_VERTEX_MODE.value),
            time_mode=table.get("time_type", DEFAULT_TIME_MODE.value),
            t_center=table.get("T0", DEFAULT_T0),
            t_spread=table.get("SigmaT", DEFAULT_SIGMA_T),
            fixed_position=table.get("position"),
            box_min=table.get("min_position"),
            box_max=table.get("max_position"),
            check_active=table.get("check_active", DEFAULT_CHECK_ACTIVE),
            seed=table.get("seed"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Configuration table equivalent to this config."""
        table: Dict[str, Any] = {
            "type": self.vertex_mode.value,
            "T0": self.t_center,
            "SigmaT": self.t_spread,
            "time_type": self.time_mode.value,
        }
        if self.seed is not None:
            table["seed"] = self.seed
        if self.fixed_position is not None:
            table["position"] = list(self.fixed_position)
        if self.vertex_mode is VertexMode.BOX:
            table["min_position"] = list(self.box_min)
            table["max_position"] = list(self.box_max)
            table["check_active"] = self.check_active
        return table

    def copy(self) -> "SamplerConfig":
        return replace(self)

    def describe(self) -> str:
        """One-line description used in log messages."""
        if self.vertex_mode is VertexMode.FIXED:
            where = f"fixed at {self.fixed_position}"
        elif self.vertex_mode is VertexMode.BOX:
            where = (f"box {self.box_min} - {self.box_max}"
                     f"{' (active only)' if self.check_active else ''}")
        else:
            where = "sampled by active mass"
        return (f"vertex {where}; time {self.time_mode.value} "
                f"T0={self.t_center:g} SigmaT={self.t_spread:g}")


def load_config(path: str) -> SamplerConfig:
    """Read a vertex configuration from JSON.

    The table may be the top-level object or nested under ``"vertex"``, the
    way an event generator embeds it in its own configuration.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, Mapping) and isinstance(data.get("vertex"), Mapping):
        data = data["vertex"]
    return SamplerConfig.from_dict(data)
