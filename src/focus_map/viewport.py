"""Viewport, device class and popup tracking for Focus Map."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel

from .config import ViewportSettings
from .layout import ViewportSize
from .models import TechniqueNode
from .state import FilterState


@dataclass
class NodeMetrics:
    """Rendered size of a node on the current device class."""
    radius: float
    label_font_size: float
    label_offset: float

    @property
    def glyph_font_size(self) -> float:
        return self.radius * 2


class PopupContent(BaseModel):
    """What the popup collaborator needs to render one node."""
    name: str
    type: str
    description: str = ""
    order_tag: str = ""
    order_tag_active: bool = False
    anchor: tuple[float, float] = (0.0, 0.0)


class Viewport:
    """Pan/zoom transform and viewport size.

    Screen position of a graph point is ``(x·k + tx, y·k + ty)``.
    """

    def __init__(self, settings: Optional[ViewportSettings] = None):
        self.settings = settings or ViewportSettings()
        self.width = self.settings.width
        self.height = self.settings.height
        self.k = 1.0
        self.tx = 0.0
        self.ty = 0.0

    @property
    def size(self) -> ViewportSize:
        return ViewportSize(width=self.width, height=self.height)

    @property
    def center(self) -> tuple[float, float]:
        return (self.width / 2, self.height / 2)

    # --- device class ---

    @property
    def is_phone(self) -> bool:
        return self.width <= self.settings.phone_breakpoint

    @property
    def phone_scale(self) -> float:
        return self.settings.phone_scale if self.is_phone else 1.0

    def node_radius(self, scale: float) -> float:
        if self.is_phone:
            radius = 10 + scale * 2
        else:
            radius = 5 + scale * 3.7
        return radius * self.phone_scale

    def node_metrics(self, node: TechniqueNode) -> NodeMetrics:
        radius = self.node_radius(node.scale)
        return NodeMetrics(
            radius=radius,
            label_font_size=10 * self.phone_scale,
            label_offset=radius + 14 * self.phone_scale,
        )

    # --- transform ---

    def resize(self, width: float, height: float) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"Viewport size must be positive, got {width}x{height}")
        self.width = width
        self.height = height

    def set_transform(self, k: float, tx: float, ty: float) -> None:
        self.k = min(max(k, self.settings.min_zoom), self.settings.max_zoom)
        self.tx = tx
        self.ty = ty

    def zoom_at(self, factor: float, px: float, py: float) -> None:
        """Zoom by ``factor`` keeping screen point ``(px, py)`` fixed."""
        k = min(max(self.k * factor, self.settings.min_zoom), self.settings.max_zoom)
        gx = (px - self.tx) / self.k
        gy = (py - self.ty) / self.k
        self.k = k
        self.tx = px - gx * k
        self.ty = py - gy * k

    def pan(self, dx: float, dy: float) -> None:
        self.tx += dx
        self.ty += dy

    def to_screen(self, x: float, y: float) -> tuple[float, float]:
        return (x * self.k + self.tx, y * self.k + self.ty)

    def popup_anchor(self, node: TechniqueNode) -> tuple[float, float]:
        """Screen anchor for the popup of ``node``, offset from its center."""
        sx, sy = self.to_screen(node.x, node.y)
        offset = self.settings.popup_offset
        return (sx + offset, sy + offset)


def popup_content(node: TechniqueNode, filters: FilterState, viewport: Viewport) -> PopupContent:
    """Build the popup contract for ``node``."""
    return PopupContent(
        name=node.name,
        type=node.type,
        description=node.description.strip(),
        order_tag=node.order_tag,
        order_tag_active=bool(node.order_tag) and node.order_tag in filters.selected_order_tags,
        anchor=viewport.popup_anchor(node),
    )
