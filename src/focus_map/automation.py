"""
Automation modes for Focus Map.

Nodes whose ``automation_function`` is set act as buttons embedded in
the graph.  Clicking one dispatches the named effect from the registry.
Every effect maps a ``ViewState`` to a new ``ViewState`` and is
idempotent: running it again while its mode is already on changes
nothing.

    tidyUp / eisenhower / messUp     — layout variant (tidy, quadrant, free)
    prettyItUp / colorBombing        — pretty palette on / off
    coworking / pomodoro / selfLove  — glyph mode (eyes, tomato, heart)
    runAway                          — back to circles
    writeDown / keepIt               — opacity floor on / off
    reversedList / ordinaryList      — completion recolor on / off
    animation                        — play the node's media

Colors and glyphs are derived per frame from the node's static data and
the current ``ViewState`` (see ``node_fill`` and ``node_glyph``), so
reversing a mode always restores exactly what was shown before.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from .config import EngineConfig
from .media import MediaOverlay
from .models import TechniqueGraph, TechniqueNode
from .state import GlyphVariant, LayoutMode, ViewState

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Glyphs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GlyphStyle:
    """Glyph drawn instead of a circle, with one node singled out."""
    glyph: str
    special_node: str
    special_glyph: str


GLYPH_STYLES: dict[GlyphVariant, GlyphStyle] = {
    GlyphVariant.EYES: GlyphStyle(glyph="\U0001F440", special_node="guilty", special_glyph="\U0001FAE0"),
    GlyphVariant.TOMATO: GlyphStyle(glyph="\U0001F345", special_node="pomodoro", special_glyph="⏰"),
    GlyphVariant.HEART: GlyphStyle(glyph="❤️", special_node="self-love", special_glyph="\U0001F497"),
}


def node_glyph(node: TechniqueNode, view: ViewState) -> Optional[str]:
    """Glyph for ``node``, or None when nodes are drawn as circles."""
    style = GLYPH_STYLES.get(view.glyph)
    if style is None:
        return None
    if node.id == style.special_node:
        return style.special_glyph
    return style.glyph


# ---------------------------------------------------------------------------
# Colors
# ---------------------------------------------------------------------------

def is_done(order_tag: str, config: Optional[EngineConfig] = None) -> bool:
    """Whether ``order_tag`` marks a completed technique.

    Case-insensitive.  ``done_match`` picks between an exact match and
    substring containment.
    """
    cfg = config or EngineConfig()
    tag = order_tag.strip().lower()
    word = cfg.done_word.lower()
    if not tag:
        return False
    if cfg.done_match == "exact":
        return tag == word
    return word in tag


def node_fill(node: TechniqueNode, view: ViewState, config: Optional[EngineConfig] = None) -> str:
    """Fill color for ``node``: completion color, else the active palette entry."""
    cfg = config or EngineConfig()
    if node.id in view.recolored:
        return cfg.done_color
    return node.pretty_color if view.pretty else node.color


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

@dataclass
class AutomationContext:
    """What an effect may read (and, for media, open)."""
    graph: TechniqueGraph
    config: EngineConfig
    media: MediaOverlay
    node: Optional[TechniqueNode] = None


Effect = Callable[[ViewState, AutomationContext], ViewState]


class AutomationRegistry:
    """Name → effect table."""

    def __init__(self):
        self._effects: dict[str, Effect] = {}

    def register(self, name: str) -> Callable[[Effect], Effect]:
        def decorator(effect: Effect) -> Effect:
            self._effects[name] = effect
            return effect
        return decorator

    def names(self) -> list[str]:
        return sorted(self._effects)

    def __contains__(self, name: str) -> bool:
        return name in self._effects

    def dispatch(self, name: str, view: ViewState, context: AutomationContext) -> ViewState:
        """Run effect ``name``.  Unknown names are reported and ignored."""
        effect = self._effects.get(name.strip())
        if effect is None:
            logger.warning("Unknown automation function %r ignored", name)
            return view
        logger.debug("Running automation %s", name)
        return effect(view, context)


registry = AutomationRegistry()


# --- layout ---

@registry.register("tidyUp")
def tidy_up(view: ViewState, ctx: AutomationContext) -> ViewState:
    return view.replace(layout=LayoutMode.TIDY)


@registry.register("eisenhower")
def eisenhower(view: ViewState, ctx: AutomationContext) -> ViewState:
    return view.replace(layout=LayoutMode.EISENHOWER)


@registry.register("messUp")
def mess_up(view: ViewState, ctx: AutomationContext) -> ViewState:
    return view.replace(layout=LayoutMode.FREE)


# --- palette ---

@registry.register("prettyItUp")
def pretty_it_up(view: ViewState, ctx: AutomationContext) -> ViewState:
    return view.replace(pretty=True)


@registry.register("colorBombing")
def color_bombing(view: ViewState, ctx: AutomationContext) -> ViewState:
    return view.replace(pretty=False)


# --- glyphs ---

@registry.register("coworking")
def coworking(view: ViewState, ctx: AutomationContext) -> ViewState:
    return view.replace(glyph=GlyphVariant.EYES)


@registry.register("pomodoro")
def pomodoro(view: ViewState, ctx: AutomationContext) -> ViewState:
    return view.replace(glyph=GlyphVariant.TOMATO)


@registry.register("selfLove")
def self_love(view: ViewState, ctx: AutomationContext) -> ViewState:
    return view.replace(glyph=GlyphVariant.HEART)


@registry.register("runAway")
def run_away(view: ViewState, ctx: AutomationContext) -> ViewState:
    if not view.glyph_active:
        return view
    return view.replace(glyph=GlyphVariant.NONE)


# --- opacity floor ---

@registry.register("writeDown")
def write_down(view: ViewState, ctx: AutomationContext) -> ViewState:
    return view.replace(write_down=True)


@registry.register("keepIt")
def keep_it(view: ViewState, ctx: AutomationContext) -> ViewState:
    return view.replace(write_down=False)


# --- completion recolor ---

@registry.register("reversedList")
def reversed_list(view: ViewState, ctx: AutomationContext) -> ViewState:
    done = frozenset(n.id for n in ctx.graph.nodes if is_done(n.order_tag, ctx.config))
    return view.replace(reversed_list=True, recolored=done)


@registry.register("ordinaryList")
def ordinary_list(view: ViewState, ctx: AutomationContext) -> ViewState:
    if not view.reversed_list:
        return view
    return view.replace(reversed_list=False, recolored=frozenset())


# --- media ---

@registry.register("animation")
def animation(view: ViewState, ctx: AutomationContext) -> ViewState:
    if ctx.node is None or not ctx.node.video_url.strip():
        logger.info("Animation requested without a media reference")
        return view
    ctx.media.open(ctx.node.video_url)
    return view
