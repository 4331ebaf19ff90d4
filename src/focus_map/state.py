"""
Immutable state snapshots for Focus Map.

The engine never flips scattered booleans.  Each event produces a new
snapshot that replaces the previous one as a whole, and every consumer
(compositor, highlighter, frame builder) takes the snapshot it should
read as a parameter:

    ViewState       — automation-driven modes (layout, palette, glyphs, ...)
    FilterState     — type / order tag / search restrictions
    HighlightState  — hover and click-lock focus, popup visibility

All three are frozen pydantic models.  Use ``replace(**changes)`` rather
than ``model_copy(update=...)`` so the new snapshot is validated.
"""

from __future__ import annotations
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, model_validator


class LayoutMode(str, Enum):
    """Positional layout variant.  Exactly one is active at a time."""
    FREE = "free"
    TIDY = "tidy"
    EISENHOWER = "eisenhower"


class GlyphVariant(str, Enum):
    """Iconographic replacement for node circles."""
    NONE = "none"
    EYES = "eyes"
    TOMATO = "tomato"
    HEART = "heart"


class _Snapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    def replace(self, **changes):
        """Return a validated copy with ``changes`` applied."""
        return self.__class__.model_validate({**dict(self), **changes})


# ---------------------------------------------------------------------------
# View (automation modes)
# ---------------------------------------------------------------------------

class ViewState(_Snapshot):
    """Automation-driven visual modes.

    ``layout`` is a tagged variant, so tidy and Eisenhower layouts can
    never both be on.  The remaining toggles are independent of each
    other.  ``recolored`` holds the ids painted with the completion color
    by the reversed list; it is only ever non-empty while
    ``reversed_list`` is on.
    """
    layout: LayoutMode = LayoutMode.FREE
    pretty: bool = False
    glyph: GlyphVariant = GlyphVariant.NONE
    write_down: bool = False
    reversed_list: bool = False
    recolored: frozenset[str] = frozenset()

    @model_validator(mode="after")
    def _recolor_requires_reversed_list(self) -> "ViewState":
        if self.recolored and not self.reversed_list:
            raise ValueError("recolored nodes require reversed_list to be active")
        return self

    @property
    def tidy(self) -> bool:
        return self.layout is LayoutMode.TIDY

    @property
    def eisenhower(self) -> bool:
        return self.layout is LayoutMode.EISENHOWER

    @property
    def glyph_active(self) -> bool:
        return self.glyph is not GlyphVariant.NONE

    @property
    def palette_name(self) -> str:
        return "pretty" if self.pretty else "initial"


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------

class FilterState(_Snapshot):
    """The three independent filter dimensions.  Empty means unrestricted."""
    selected_types: frozenset[str] = frozenset()
    selected_order_tags: frozenset[str] = frozenset()
    search_query: str = ""

    @property
    def is_active(self) -> bool:
        return bool(self.selected_types or self.selected_order_tags or self.search_query)

    def toggle_type(self, node_type: str) -> "FilterState":
        return self.replace(selected_types=self.selected_types ^ {node_type})

    def toggle_order_tag(self, order_tag: str) -> "FilterState":
        return self.with_order_tag(order_tag, order_tag not in self.selected_order_tags)

    def with_order_tag(self, order_tag: str, active: bool) -> "FilterState":
        if active:
            tags = self.selected_order_tags | {order_tag}
        else:
            tags = self.selected_order_tags - {order_tag}
        return self.replace(selected_order_tags=tags)

    def with_search(self, query: str) -> "FilterState":
        return self.replace(search_query=query)

    def reset(self) -> "FilterState":
        return FilterState()


# ---------------------------------------------------------------------------
# Highlight
# ---------------------------------------------------------------------------

class HighlightPhase(str, Enum):
    IDLE = "idle"
    HOVER_ACTIVE = "hover_active"
    CLICK_ACTIVE = "click_active"


class HighlightState(_Snapshot):
    """Pointer focus.

    ``hovered`` is only ever set to the locked node while a lock is held,
    because hovering anything else is ignored during a lock.
    """
    hovered: Optional[str] = None
    locked: Optional[str] = None
    popup_visible: bool = False

    @property
    def phase(self) -> HighlightPhase:
        if self.hovered is not None:
            return HighlightPhase.HOVER_ACTIVE
        if self.locked is not None:
            return HighlightPhase.CLICK_ACTIVE
        return HighlightPhase.IDLE

    @property
    def focal(self) -> Optional[str]:
        """Node whose neighborhood is emphasized, if any."""
        return self.hovered if self.hovered is not None else self.locked

    @property
    def tracked(self) -> Optional[str]:
        """Node the popup follows: hovered, falling back to locked."""
        return self.focal
