"""
Frame models — the visual state handed to the rendering layer.

A ``Frame`` is rebuilt from scratch on every tick or state-changing
event and is never stored.  Coordinates are in graph space; the
``transform`` carries the pan/zoom needed to place them on screen.
"""

from __future__ import annotations
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field

from .layout import BackgroundLine, BackgroundRect, BackgroundText
from .media import MediaSource
from .state import ViewState
from .themes import INITIAL_PALETTE, InterfacePalette
from .viewport import PopupContent


class NodeVisual(BaseModel):
    """One node as it should be drawn."""
    id: str
    label: str
    x: float
    y: float
    radius: float
    fill: str
    shape: Literal["circle", "glyph"] = "circle"
    glyph: Optional[str] = None
    glyph_font_size: float = 0.0
    opacity: float = Field(ge=0.0, le=1.0)
    label_color: str
    label_font_size: float
    label_offset: float


class LinkVisual(BaseModel):
    """One link as it should be drawn."""
    source: str
    target: str
    x1: float
    y1: float
    x2: float
    y2: float
    stroke: str
    stroke_width: float = 1.5
    stroke_opacity: float = Field(ge=0.0, le=1.0)
    highlighted: bool = False


class Transform(BaseModel):
    k: float = 1.0
    tx: float = 0.0
    ty: float = 0.0


class Frame(BaseModel):
    """Everything the renderer needs for one frame."""
    width: float
    height: float
    transform: Transform = Field(default_factory=Transform)
    palette: InterfacePalette = INITIAL_PALETTE
    view: ViewState = Field(default_factory=ViewState)
    background: list[Union[BackgroundRect, BackgroundLine, BackgroundText]] = Field(default_factory=list)
    links: list[LinkVisual] = Field(default_factory=list)
    nodes: list[NodeVisual] = Field(default_factory=list)
    popup: Optional[PopupContent] = None
    media: Optional[MediaSource] = None

    def get_node(self, node_id: str) -> Optional[NodeVisual]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None
