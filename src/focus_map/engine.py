"""
Focus Map engine — wires the components into one event-driven object.

    graph ──► Simulation (positions, links)
      │           │ tick
      │           ▼
      │       popup anchor, Frame
      ▼
    ViewState / FilterState / HighlightState ──► emphasis (opacity per node/link)

Every public method is a synchronous event handler.  Each one replaces
whichever snapshot it affects, recomputes opacity over the full node
set, and, for positional changes, reconfigures the layout forces and
re-energizes the simulation.  The simulation ticks only when the host
calls ``tick()``.  It never stops on its own.

An engine built on an empty graph stays uninitialized (``ready`` is
False); its handlers do nothing and ``frame()`` returns an empty frame.
"""

from __future__ import annotations

import logging
from typing import Optional

from . import highlight
from .automation import AutomationContext, AutomationRegistry, node_fill, node_glyph, registry
from .config import EngineConfig
from .frame import Frame, LinkVisual, NodeVisual, Transform
from .highlight import Emphasis, compute_emphasis
from .layout import background_layer, position_hints
from .media import MediaOverlay
from .models import TechniqueGraph, TechniqueNode
from .simulation import CenterForce, LinkForce, ManyBodyForce, PositionForce, SimLink, Simulation, attach_links
from .state import FilterState, HighlightState, ViewState
from .themes import get_palette
from .viewport import PopupContent, Viewport, popup_content

logger = logging.getLogger(__name__)


class FocusMapEngine:
    """The layout / interaction / mode engine."""

    def __init__(
        self,
        graph: Optional[TechniqueGraph] = None,
        config: Optional[EngineConfig] = None,
        automations: Optional[AutomationRegistry] = None,
        seed: Optional[int] = None,
    ):
        self.config = config or EngineConfig()
        self.automations = automations or registry
        self.viewport = Viewport(self.config.viewport)
        self.media = MediaOverlay()
        self.seed = seed

        self.graph = TechniqueGraph()
        self.simulation: Optional[Simulation] = None
        self.links: list[SimLink] = []

        self.view = ViewState()
        self.filters = FilterState()
        self.highlight = HighlightState()
        self.emphasis = Emphasis(nodes={}, links=[], highlighted=[])
        self.popup: Optional[PopupContent] = None

        if graph is not None:
            self.load(graph)

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    @property
    def ready(self) -> bool:
        return self.simulation is not None

    def load(self, graph: TechniqueGraph) -> bool:
        """Attach ``graph`` and start the simulation.

        Returns False (and leaves the engine uninitialized) for an empty
        graph.  All state snapshots start over.
        """
        self.view = ViewState()
        self.filters = FilterState()
        self.highlight = HighlightState()
        self.popup = None
        self.media.source = None

        if graph.is_empty():
            logger.error("No techniques to display; visualization not initialized")
            self.graph = TechniqueGraph()
            self.simulation = None
            self.links = []
            self.emphasis = Emphasis(nodes={}, links=[], highlighted=[])
            return False

        self.graph = graph
        settings = self.config.simulation
        self.simulation = Simulation(graph.nodes, settings, seed=self.seed)
        self.links = attach_links(graph.links, {n.id: n for n in graph.nodes})

        cx, cy = self.viewport.center
        self.simulation.set_force("link", LinkForce(self.links, distance=settings.link_distance))
        self.simulation.set_force("charge", ManyBodyForce(settings.charge_strength, settings.theta))
        self.simulation.set_force("center", CenterForce(cx, cy))
        self.simulation.on_tick(self._on_tick)

        logger.info("Loaded %d techniques and %d links", len(graph.nodes), len(self.links))
        self._apply_layout()
        self._refresh()
        return True

    # ------------------------------------------------------------------
    # Internal recompute
    # ------------------------------------------------------------------

    def _apply_layout(self, alpha: Optional[float] = None) -> None:
        """Replace both axis forces with the active layout's targets."""
        if self.simulation is None:
            return
        hints = position_hints(
            self.graph.nodes,
            self.view.layout,
            self.viewport.size,
            self.graph.order_tags(),
            self.config.layout,
        )
        x_targets = {nid: (h.x, h.x_strength) for nid, h in hints.items() if h.x is not None}
        y_targets = {nid: (h.y, h.y_strength) for nid, h in hints.items() if h.y is not None}
        self.simulation.set_force("x", PositionForce("x", x_targets) if x_targets else None)
        self.simulation.set_force("y", PositionForce("y", y_targets) if y_targets else None)
        if alpha is not None:
            self.simulation.reheat(alpha)

    def _refresh(self) -> None:
        """Recompute opacity for every node and link, and the popup."""
        self.emphasis = compute_emphasis(
            self.graph,
            self.links,
            self.highlight,
            self.filters,
            self.view,
            self.config.opacity,
        )
        self._refresh_popup()

    def _refresh_popup(self) -> None:
        node = self._tracked_node()
        if node is None or not self.highlight.popup_visible:
            self.popup = None
            return
        self.popup = popup_content(node, self.filters, self.viewport)

    def _tracked_node(self) -> Optional[TechniqueNode]:
        tracked = self.highlight.tracked
        return self.graph.get_node(tracked) if tracked is not None else None

    def _on_tick(self, simulation: Simulation) -> None:
        if self.popup is not None:
            node = self._tracked_node()
            if node is not None:
                self.popup = self.popup.model_copy(update={"anchor": self.viewport.popup_anchor(node)})

    def _set_view(self, view: ViewState) -> None:
        previous = self.view
        self.view = view
        if view.layout is not previous.layout:
            logger.info("Layout %s -> %s", previous.layout.value, view.layout.value)
            self._apply_layout(self.config.simulation.mode_change_alpha)
        self._refresh()

    def _node(self, node_id: str) -> Optional[TechniqueNode]:
        node = self.graph.get_node(node_id)
        if node is None:
            logger.warning("Unknown technique %r", node_id)
        return node

    # ------------------------------------------------------------------
    # Pointer events
    # ------------------------------------------------------------------

    def pointer_enter(self, node_id: str) -> None:
        if not self.ready or self._node(node_id) is None:
            return
        self.highlight = highlight.pointer_enter(self.highlight, node_id)
        self._refresh()

    def pointer_leave(self, node_id: str) -> None:
        if not self.ready or self._node(node_id) is None:
            return
        self.highlight = highlight.pointer_leave(self.highlight, node_id)
        self._refresh()

    def click_node(self, node_id: str) -> None:
        """Lock ``node_id`` and run its automation, if it declares one."""
        if not self.ready:
            return
        node = self._node(node_id)
        if node is None:
            return
        self.highlight = highlight.click(self.highlight, node_id)
        if node.has_automation:
            self.run_automation(node.automation_function, node_id)
        self._refresh()

    def click_background(self) -> None:
        """Click on empty canvas, or any pointer event outside graph and popup."""
        if not self.ready:
            return
        self.highlight = highlight.clear(self.highlight)
        self._refresh()

    # ------------------------------------------------------------------
    # Drag
    # ------------------------------------------------------------------

    def drag_start(self, node_id: str) -> None:
        node = self._node(node_id) if self.ready else None
        if node is not None:
            self.simulation.drag_start(node)

    def drag_move(self, node_id: str, x: float, y: float) -> None:
        node = self._node(node_id) if self.ready else None
        if node is not None:
            self.simulation.drag_move(node, x, y)

    def drag_end(self, node_id: str) -> None:
        node = self._node(node_id) if self.ready else None
        if node is not None:
            self.simulation.drag_end(node)

    # ------------------------------------------------------------------
    # Filters
    # ------------------------------------------------------------------

    def set_search(self, query: str) -> None:
        self.filters = self.filters.with_search(query)
        self._refresh()

    def toggle_type(self, node_type: str) -> None:
        self.filters = self.filters.toggle_type(node_type)
        self._refresh()

    def toggle_order_tag(self, order_tag: str) -> None:
        self.filters = self.filters.toggle_order_tag(order_tag)
        self._refresh()

    def set_order_tag(self, order_tag: str, active: bool) -> None:
        self.filters = self.filters.with_order_tag(order_tag, active)
        self._refresh()

    def toggle_popup_tag(self) -> None:
        """The popup's tag affordance: toggle the shown node's tag filter."""
        if self.popup is None or not self.popup.order_tag:
            return
        self.toggle_order_tag(self.popup.order_tag)

    def reset_filters(self) -> None:
        self.filters = self.filters.reset()
        self._refresh()

    def available_filters(self) -> dict[str, list[dict]]:
        """Filter chips for the host UI, with their active flags."""
        return {
            "types": [
                {"value": t, "active": t in self.filters.selected_types}
                for t in self.graph.types()
            ],
            "order_tags": [
                {"value": t, "active": t in self.filters.selected_order_tags}
                for t in self.graph.order_tags()
            ],
        }

    # ------------------------------------------------------------------
    # Automations
    # ------------------------------------------------------------------

    def run_automation(self, name: str, node_id: Optional[str] = None) -> None:
        if not self.ready:
            return
        context = AutomationContext(
            graph=self.graph,
            config=self.config,
            media=self.media,
            node=self.graph.get_node(node_id) if node_id else None,
        )
        self._set_view(self.automations.dispatch(name, self.view, context))

    # ------------------------------------------------------------------
    # Media overlay
    # ------------------------------------------------------------------

    def key_press(self, key: str) -> None:
        self.media.handle_key(key)

    def close_media(self, reason: str = "close") -> None:
        self.media.dismiss(reason)

    # ------------------------------------------------------------------
    # Viewport
    # ------------------------------------------------------------------

    def tick(self, iterations: int = 1) -> None:
        if self.simulation is not None:
            self.simulation.tick(iterations)

    def resize(self, width: float, height: float) -> None:
        """Adopt a new viewport size and replay the layout against it."""
        self.viewport.resize(width, height)
        if self.simulation is None:
            return
        cx, cy = self.viewport.center
        self.simulation.set_force("center", CenterForce(cx, cy))
        self._apply_layout(self.config.simulation.resize_alpha)
        self._refresh_popup()

    def zoom(self, k: float, tx: float, ty: float) -> None:
        self.viewport.set_transform(k, tx, ty)
        self._refresh_popup()

    def zoom_at(self, factor: float, px: float, py: float) -> None:
        self.viewport.zoom_at(factor, px, py)
        self._refresh_popup()

    def pan(self, dx: float, dy: float) -> None:
        self.viewport.pan(dx, dy)
        self._refresh_popup()

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def frame(self) -> Frame:
        """Build the visual state for the current positions and snapshots."""
        palette = get_palette(self.view.palette_name)
        frame = Frame(
            width=self.viewport.width,
            height=self.viewport.height,
            transform=Transform(k=self.viewport.k, tx=self.viewport.tx, ty=self.viewport.ty),
            palette=palette,
            view=self.view,
            popup=self.popup,
            media=self.media.source,
        )
        if not self.ready:
            return frame

        frame.background = background_layer(
            self.view.layout,
            self.viewport.size,
            self.graph.order_tags(),
            palette,
            self.viewport.phone_scale,
            self.config.layout,
        )

        for i, link in enumerate(self.links):
            frame.links.append(LinkVisual(
                source=link.source.id,
                target=link.target.id,
                x1=link.source.x,
                y1=link.source.y,
                x2=link.target.x,
                y2=link.target.y,
                stroke=palette.edges,
                stroke_opacity=self.emphasis.links[i],
                highlighted=self.emphasis.highlighted[i],
            ))

        for node in self.graph.nodes:
            metrics = self.viewport.node_metrics(node)
            glyph = node_glyph(node, self.view)
            frame.nodes.append(NodeVisual(
                id=node.id,
                label=node.name,
                x=node.x,
                y=node.y,
                radius=metrics.radius,
                fill=node_fill(node, self.view, self.config),
                shape="glyph" if glyph else "circle",
                glyph=glyph,
                glyph_font_size=metrics.glyph_font_size if glyph else 0.0,
                opacity=self.emphasis.nodes[node.id],
                label_color=palette.text,
                label_font_size=metrics.label_font_size,
                label_offset=metrics.label_offset,
            ))

        return frame

    def opacity(self, node_id: str) -> float:
        return self.emphasis.nodes[node_id]

    def link_opacity(self, a: str, b: str) -> float:
        for i, link in enumerate(self.links):
            if {link.source.id, link.target.id} == {a, b}:
                return self.emphasis.links[i]
        raise KeyError(f"No link between '{a}' and '{b}'")

    def snapshot(self) -> dict:
        """JSON-friendly summary of the engine state."""
        return {
            "ready": self.ready,
            "view": self.view.model_dump(mode="json"),
            "filters": {
                **self.filters.model_dump(mode="json"),
                "active": self.filters.is_active,
            },
            "highlight": {
                **self.highlight.model_dump(mode="json"),
                "phase": self.highlight.phase.value,
            },
            "viewport": {
                "width": self.viewport.width,
                "height": self.viewport.height,
                "k": self.viewport.k,
                "tx": self.viewport.tx,
                "ty": self.viewport.ty,
                "phone": self.viewport.is_phone,
            },
            "popup": self.popup.model_dump(mode="json") if self.popup else None,
            "media": self.media.source.model_dump(mode="json") if self.media.source else None,
            "alpha": self.simulation.alpha if self.simulation else 0.0,
        }
