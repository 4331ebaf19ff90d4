"""
Layout constraint provider for Focus Map.

Produces per-node target positions that the force simulation turns into
x / y pull forces, and the non-interactive background layer drawn behind
the nodes for the active layout.

Three layouts are supported:

  1. Free — no targets; nodes settle under repulsion, link attraction
     and centering alone.
  2. Tidy — one column per distinct order tag.  Tags are sorted and
     mapped onto a point scale spanning the middle 80% of the width.
     Nodes without a tag are pulled to the middle of that range.
     The background shows one label per column, with separators between
     columns.  Columns are divided evenly by count, independent of the
     point scale.
  3. Eisenhower — the viewport is cut into four quadrants.  The matrix
     tag is read by substring: "urgent" pulls left, "not urgent" right,
     "important" up, "not important" down.  Anything else stays centered
     on that axis.

Strength constants:
  - Tidy: 0.8 horizontal, 0.3 vertical (toward mid-height)
  - Eisenhower: 0.8 on both axes
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .config import LayoutSettings
from .models import TechniqueNode
from .state import LayoutMode
from .themes import InterfacePalette


# --- Quadrant labels (two lines each, top-left, top-right, bottom-left, bottom-right) ---

QUADRANT_LABELS: tuple[tuple[str, str], ...] = (
    ("do first", "urgent & important"),
    ("schedule", "not urgent & important"),
    ("delegate", "urgent & not important"),
    ("drop", "not urgent & not important"),
)

SEPARATOR_OPACITY = 0.3


@dataclass
class PositionHint:
    """Target position for a node.  ``None`` means no pull on that axis."""
    x: Optional[float] = None
    y: Optional[float] = None
    x_strength: float = 0.0
    y_strength: float = 0.0

    @property
    def is_empty(self) -> bool:
        return self.x is None and self.y is None


@dataclass
class ViewportSize:
    width: float
    height: float


@dataclass
class BackgroundRect:
    """A column area (transparent; kept for hit-testing and debugging)."""
    x: float
    y: float
    width: float
    height: float
    fill: Optional[str] = None
    kind: str = "rect"


@dataclass
class BackgroundLine:
    x1: float
    y1: float
    x2: float
    y2: float
    stroke: str
    stroke_width: float = 1.0
    stroke_opacity: float = SEPARATOR_OPACITY
    kind: str = "line"


@dataclass
class BackgroundText:
    x: float
    y: float
    text: str
    fill: str
    font_size: float
    anchor: str = "middle"
    kind: str = "text"


BackgroundPrimitive = BackgroundRect | BackgroundLine | BackgroundText


# ---------------------------------------------------------------------------
# Point scale (tidy x targets)
# ---------------------------------------------------------------------------

@dataclass
class TagScale:
    """Ordinal point scale mapping sorted tags onto evenly spaced x values.

    Same arithmetic as a d3 point scale with ``align = 0.5``: the outer
    padding is expressed in steps and the points are centered in the range.
    """
    tags: list[str]
    start: float
    stop: float
    padding: float = 0.3

    def __post_init__(self):
        n = len(self.tags)
        span = self.stop - self.start
        self.step = span / max(1, n - 1 + self.padding * 2)
        offset = (span - self.step * (n - 1)) / 2 if n else 0.0
        self._positions = {
            tag: self.start + offset + self.step * i
            for i, tag in enumerate(self.tags)
        }

    @property
    def midpoint(self) -> float:
        return (self.start + self.stop) / 2

    def __call__(self, tag: str) -> Optional[float]:
        return self._positions.get(tag)

    def position(self, tag: str) -> float:
        """Position for ``tag``, or the range midpoint for empty/unknown tags."""
        value = self._positions.get(tag) if tag else None
        return self.midpoint if value is None else value


def tag_scale(order_tags: list[str], width: float, settings: Optional[LayoutSettings] = None) -> TagScale:
    """Build the tidy-layout point scale for the given viewport width."""
    opts = settings or LayoutSettings()
    lo, hi = opts.tidy_range
    return TagScale(
        tags=sorted(order_tags),
        start=width * lo,
        stop=width * hi,
        padding=opts.tidy_padding,
    )


# ---------------------------------------------------------------------------
# Position hints
# ---------------------------------------------------------------------------

def quadrant_axis(tag: str, positive: str) -> int:
    """Classify ``tag`` on one Eisenhower axis.

    Returns -1 for the ``positive`` word (urgent / important), +1 for its
    negation ("not ..."), 0 when neither appears.
    """
    text = tag.lower()
    if f"not {positive}" in text:
        return 1
    if positive in text:
        return -1
    return 0


def position_hint(
    node: TechniqueNode,
    mode: LayoutMode,
    size: ViewportSize,
    order_tags: list[str],
    settings: Optional[LayoutSettings] = None,
    scale: Optional[TagScale] = None,
) -> PositionHint:
    """Target position for ``node`` under ``mode``.

    Pure function of its arguments.  ``scale`` may be passed in to avoid
    rebuilding the tidy scale for every node.
    """
    opts = settings or LayoutSettings()

    if mode is LayoutMode.TIDY:
        if not order_tags:
            return PositionHint()
        scale = scale or tag_scale(order_tags, size.width, opts)
        return PositionHint(
            x=scale.position(node.order_tag),
            y=size.height / 2,
            x_strength=opts.tidy_x_strength,
            y_strength=opts.tidy_y_strength,
        )

    if mode is LayoutMode.EISENHOWER:
        horizontal = quadrant_axis(node.matrix_tag, "urgent")
        vertical = quadrant_axis(node.matrix_tag, "important")
        return PositionHint(
            x=size.width * (0.5 + 0.25 * horizontal),
            y=size.height * (0.5 + 0.25 * vertical),
            x_strength=opts.quadrant_strength,
            y_strength=opts.quadrant_strength,
        )

    return PositionHint()


def position_hints(
    nodes: list[TechniqueNode],
    mode: LayoutMode,
    size: ViewportSize,
    order_tags: list[str],
    settings: Optional[LayoutSettings] = None,
) -> dict[str, PositionHint]:
    """Position hints for every node, keyed by id."""
    scale = None
    if mode is LayoutMode.TIDY and order_tags:
        scale = tag_scale(order_tags, size.width, settings)
    return {
        node.id: position_hint(node, mode, size, order_tags, settings, scale)
        for node in nodes
    }


# ---------------------------------------------------------------------------
# Background layer
# ---------------------------------------------------------------------------

def background_layer(
    mode: LayoutMode,
    size: ViewportSize,
    order_tags: list[str],
    palette: InterfacePalette,
    phone_scale: float = 1.0,
    settings: Optional[LayoutSettings] = None,
) -> list[BackgroundPrimitive]:
    """Primitives drawn behind the graph for the active layout."""
    opts = settings or LayoutSettings()
    if mode is LayoutMode.TIDY:
        return _tidy_columns(sorted(order_tags), size, palette, phone_scale, opts)
    if mode is LayoutMode.EISENHOWER:
        return _quadrants(size, palette, phone_scale, opts)
    return []


def _tidy_columns(
    tags: list[str],
    size: ViewportSize,
    palette: InterfacePalette,
    phone_scale: float,
    opts: LayoutSettings,
) -> list[BackgroundPrimitive]:
    if not tags:
        return []

    primitives: list[BackgroundPrimitive] = []
    column_width = size.width / len(tags)

    for i, tag in enumerate(tags):
        x = i * column_width
        primitives.append(BackgroundRect(x=x, y=0, width=column_width, height=size.height))
        primitives.append(BackgroundText(
            x=x + column_width / 2,
            y=opts.label_top,
            text=tag,
            fill=palette.text_on_background,
            font_size=opts.label_font_size * phone_scale,
        ))
        # Separator on the boundary with the next column
        if i < len(tags) - 1:
            next_x = (i + 1) * column_width
            primitives.append(BackgroundLine(
                x1=next_x, y1=0, x2=next_x, y2=size.height,
                stroke=palette.text_on_background,
                stroke_width=1 * phone_scale,
            ))

    return primitives


def _quadrants(
    size: ViewportSize,
    palette: InterfacePalette,
    phone_scale: float,
    opts: LayoutSettings,
) -> list[BackgroundPrimitive]:
    w, h = size.width, size.height
    stroke = palette.text_on_background
    font_size = opts.label_font_size * phone_scale
    line_gap = font_size * 1.3

    primitives: list[BackgroundPrimitive] = [
        BackgroundLine(x1=w / 2, y1=0, x2=w / 2, y2=h, stroke=stroke, stroke_width=1 * phone_scale),
        BackgroundLine(x1=0, y1=h / 2, x2=w, y2=h / 2, stroke=stroke, stroke_width=1 * phone_scale),
    ]

    anchors = ((w / 4, 0.0), (3 * w / 4, 0.0), (w / 4, h / 2), (3 * w / 4, h / 2))
    for (cx, top), (title, subtitle) in zip(anchors, QUADRANT_LABELS):
        primitives.append(BackgroundText(
            x=cx, y=top + opts.label_top, text=title, fill=stroke, font_size=font_size,
        ))
        primitives.append(BackgroundText(
            x=cx, y=top + opts.label_top + line_gap, text=subtitle, fill=stroke, font_size=font_size,
        ))

    return primitives
