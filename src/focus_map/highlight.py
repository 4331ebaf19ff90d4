"""
Hover / click highlight state machine for Focus Map.

States:

    idle                 — nothing focused; filter opacity everywhere
    hover_active(node)   — pointer over ``node``
    click_active(node)   — ``node`` is locked by a click

Transitions are pure functions ``HighlightState -> HighlightState``:

    pointer_enter(n)  → hover n, unless a lock is held on another node
    pointer_leave(n)  → drop hover; a held lock keeps its emphasis and popup
    click(n)          → lock n, replacing any previous lock
    clear()           → back to idle (empty canvas / outside click)

Emphasis around a focal node ``d``: ``d`` and its direct neighbors are
shown at full opacity.  While hovering, so is every node of ``d``'s type.
Everything else is dimmed.  A link touching ``d`` is highlighted at full
opacity.  Other links take the opacity of their dimmer endpoint.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .config import OpacitySettings
from .filters import filter_opacities, link_opacity
from .models import TechniqueGraph
from .simulation import SimLink
from .state import FilterState, HighlightPhase, HighlightState, ViewState


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------

def pointer_enter(state: HighlightState, node_id: str) -> HighlightState:
    if state.locked is not None and state.locked != node_id:
        return state
    return state.replace(hovered=node_id, popup_visible=True)


def pointer_leave(state: HighlightState, node_id: str) -> HighlightState:
    if state.locked is not None:
        return state.replace(hovered=None, popup_visible=True)
    return state.replace(hovered=None, popup_visible=False)


def click(state: HighlightState, node_id: str) -> HighlightState:
    return HighlightState(hovered=None, locked=node_id, popup_visible=True)


def clear(state: HighlightState) -> HighlightState:
    return HighlightState()


# ---------------------------------------------------------------------------
# Opacity
# ---------------------------------------------------------------------------

@dataclass
class Emphasis:
    """Computed opacity for every node and link."""
    nodes: dict[str, float]
    links: list[float]
    highlighted: list[bool]


def connected_ids(graph: TechniqueGraph, node_id: str) -> set[str]:
    """``node_id`` plus every node exactly one link away."""
    return {node_id} | graph.neighbors(node_id)


def focus_opacities(
    graph: TechniqueGraph,
    focal_id: str,
    hover: bool,
    opacity: Optional[OpacitySettings] = None,
) -> dict[str, float]:
    """Node opacities around ``focal_id``.

    Highlight levels are absolute: full or dimmed, independent of the
    ambient baseline.
    """
    levels = opacity or OpacitySettings()
    focal = graph.get_node(focal_id)
    connected = connected_ids(graph, focal_id)
    result: dict[str, float] = {}
    for node in graph.nodes:
        if node.id in connected:
            result[node.id] = levels.full
        elif hover and focal is not None and node.type == focal.type:
            result[node.id] = levels.full
        else:
            result[node.id] = levels.dimmed
    return result


def compute_emphasis(
    graph: TechniqueGraph,
    links: list[SimLink],
    state: HighlightState,
    filters: FilterState,
    view: ViewState,
    opacity: Optional[OpacitySettings] = None,
) -> Emphasis:
    """Combine highlight state with the filter compositor.

    With a focal node, highlighting decides every opacity.  Without one,
    the filter compositor does.  The full node and link sets are always
    recomputed.
    """
    levels = opacity or OpacitySettings()
    focal = state.focal

    if focal is None or graph.get_node(focal) is None:
        node_opacity = filter_opacities(graph.nodes, filters, view, levels)
        return Emphasis(
            nodes=node_opacity,
            links=[link_opacity(link, node_opacity) for link in links],
            highlighted=[False] * len(links),
        )

    hover = state.phase is HighlightPhase.HOVER_ACTIVE
    node_opacity = focus_opacities(graph, focal, hover, levels)
    link_values: list[float] = []
    highlighted: list[bool] = []
    for link in links:
        touching = link.touches(focal)
        highlighted.append(touching)
        link_values.append(levels.full if touching else link_opacity(link, node_opacity))

    return Emphasis(nodes=node_opacity, links=link_values, highlighted=highlighted)
