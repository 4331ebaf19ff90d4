"""Filter compositor — type filter, order tag filter and text search.

Pure functions over the filter and view snapshots.  The compositor is
what every node falls back to when nothing is hovered or locked.
"""

from __future__ import annotations

from typing import Iterable, Optional

from .config import OpacitySettings
from .models import TechniqueNode
from .simulation import SimLink
from .state import FilterState, ViewState


def ambient_opacity(view: ViewState, opacity: Optional[OpacitySettings] = None) -> float:
    """Baseline opacity of an unfiltered node (raised to full by write-down)."""
    levels = opacity or OpacitySettings()
    return levels.full if view.write_down else levels.ambient


def filter_opacity(
    node: TechniqueNode,
    filters: FilterState,
    view: ViewState,
    opacity: Optional[OpacitySettings] = None,
) -> float:
    """Opacity of ``node`` under the current filters.

    Precedence, first match wins:
      1. type filter excludes node   → dimmed
      2. tag filter excludes node    → dimmed (untagged nodes included)
      3. search does not match name  → dimmed
      4. otherwise                   → ambient baseline (full under write-down)
    """
    levels = opacity or OpacitySettings()

    if filters.selected_types and node.type not in filters.selected_types:
        return levels.dimmed
    if filters.selected_order_tags and (
        not node.order_tag or node.order_tag not in filters.selected_order_tags
    ):
        return levels.dimmed
    query = filters.search_query.lower()
    if query and query not in node.name.lower():
        return levels.dimmed
    return ambient_opacity(view, levels)


def filter_opacities(
    nodes: Iterable[TechniqueNode],
    filters: FilterState,
    view: ViewState,
    opacity: Optional[OpacitySettings] = None,
) -> dict[str, float]:
    """Filter opacity for every node, keyed by id."""
    return {node.id: filter_opacity(node, filters, view, opacity) for node in nodes}


def link_opacity(link: SimLink, node_opacity: dict[str, float]) -> float:
    """A link is never more visible than its dimmer endpoint."""
    return min(node_opacity[link.source.id], node_opacity[link.target.id])
