"""Engine configuration for Focus Map.

All tunables live on ``EngineConfig``.  A config can be loaded from a
YAML file, either given explicitly or named by the ``FOCUS_MAP_CONFIG``
environment variable.  Any key left out keeps its default.

Example::

    simulation:
      link_distance: 120
      charge_strength: -250
    opacity:
      ambient: 0.6
    done_match: exact
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field, model_validator

from .themes import DEFAULT_NODE_COLOR, DONE_COLOR

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "FOCUS_MAP_CONFIG"


class SimulationSettings(BaseModel):
    """Force simulation parameters (d3-force defaults where they exist)."""
    link_distance: float = 100.0
    charge_strength: float = -300.0
    theta: float = 0.9
    velocity_decay: float = 0.4
    alpha_min: float = 0.001
    alpha_decay: Optional[float] = None  # derived from alpha_min when unset
    drag_alpha_target: float = 0.3
    mode_change_alpha: float = 0.5
    resize_alpha: float = 0.3

    def effective_alpha_decay(self) -> float:
        if self.alpha_decay is not None:
            return self.alpha_decay
        return 1 - self.alpha_min ** (1 / 300)


class OpacitySettings(BaseModel):
    """Opacity levels shared by the filter compositor and highlighting."""
    ambient: float = Field(0.7, ge=0.0, le=1.0)
    full: float = Field(1.0, ge=0.0, le=1.0)
    dimmed: float = Field(0.15, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _ordered(self) -> "OpacitySettings":
        if not self.dimmed <= self.ambient <= self.full:
            raise ValueError("opacity levels must satisfy dimmed <= ambient <= full")
        return self


class LayoutSettings(BaseModel):
    """Positional constraint strengths and tidy scale geometry."""
    tidy_range: tuple[float, float] = (0.1, 0.9)
    tidy_padding: float = 0.3
    tidy_x_strength: float = 0.8
    tidy_y_strength: float = 0.3
    quadrant_strength: float = 0.8
    label_top: float = 20.0
    label_font_size: float = 14.0


class ViewportSettings(BaseModel):
    """Viewport, device class and popup geometry."""
    width: float = 1280.0
    height: float = 800.0
    min_zoom: float = 0.3
    max_zoom: float = 4.0
    popup_offset: float = 15.0
    phone_breakpoint: float = 768.0
    phone_scale: float = 0.8


class EngineConfig(BaseModel):
    """Every tunable of the engine."""
    simulation: SimulationSettings = Field(default_factory=SimulationSettings)
    opacity: OpacitySettings = Field(default_factory=OpacitySettings)
    layout: LayoutSettings = Field(default_factory=LayoutSettings)
    viewport: ViewportSettings = Field(default_factory=ViewportSettings)
    done_match: Literal["substring", "exact"] = "substring"
    done_word: str = "done"
    done_color: str = DONE_COLOR
    default_node_color: str = DEFAULT_NODE_COLOR


def load_config(path: Optional[str] = None) -> EngineConfig:
    """Load an ``EngineConfig`` from YAML.

    ``path`` wins over ``FOCUS_MAP_CONFIG``.  When neither points at an
    existing file the defaults are returned.  A file that exists but does
    not validate raises ``pydantic.ValidationError``.
    """
    path = path or os.environ.get(CONFIG_ENV_VAR)
    if not path:
        return EngineConfig()

    config_path = Path(path)
    if not config_path.exists():
        logger.warning("Config file %s not found, using defaults", config_path)
        return EngineConfig()

    data = yaml.safe_load(config_path.read_text()) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping")
    return EngineConfig(**data)
