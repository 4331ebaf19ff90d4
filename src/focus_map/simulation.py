"""
Force simulation for Focus Map.

A continuously running force-directed layout with the same semantics as
d3-force: velocity Verlet integration with velocity decay, an ``alpha``
"temperature" that decays toward ``alpha_target`` and scales every
force, and named, replaceable forces:

    link    — springs between linked nodes at a fixed target distance
    charge  — many-body repulsion (Barnes–Hut approximation)
    center  — translates the centroid onto the viewport center
    x / y   — pull toward per-node targets from the layout provider

The simulation never stops itself.  ``tick()`` always integrates; when
alpha falls below ``alpha_min`` the system is merely ``settled``, and
mode changes, drags and resizes re-energize it by raising alpha.

Links are normalized once, when they attach, into ``SimLink`` records
holding live node references, so every tick reads current coordinates.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol

from .config import SimulationSettings
from .models import TechniqueLink, TechniqueNode


INITIAL_RADIUS = 10.0
INITIAL_ANGLE = math.pi * (3 - math.sqrt(5))
DISTANCE_MIN2 = 1.0


class Force(Protocol):
    def initialize(self, nodes: list[TechniqueNode], rng: random.Random) -> None: ...

    def __call__(self, alpha: float) -> None: ...


@dataclass
class SimLink:
    """A link whose endpoints are resolved to live node references."""
    source: TechniqueNode
    target: TechniqueNode
    index: int = 0

    def touches(self, node_id: str) -> bool:
        return self.source.id == node_id or self.target.id == node_id


def attach_links(
    links: list[TechniqueLink],
    node_map: dict[str, TechniqueNode],
) -> list[SimLink]:
    """Resolve link endpoints once.  Links to unknown ids are dropped."""
    resolved: list[SimLink] = []
    for link in links:
        source = node_map.get(link.source)
        target = node_map.get(link.target)
        if source is None or target is None or source is target:
            continue
        resolved.append(SimLink(source=source, target=target, index=len(resolved)))
    return resolved


def _jiggle(rng: random.Random) -> float:
    return (rng.random() - 0.5) * 1e-6


# ---------------------------------------------------------------------------
# Forces
# ---------------------------------------------------------------------------

class LinkForce:
    """Spring force along links toward a fixed distance.

    Strength defaults to ``1 / min(degree(source), degree(target))`` and
    the correction is split between endpoints by degree, so hubs move less.
    """

    def __init__(self, links: list[SimLink], distance: float = 100.0, iterations: int = 1):
        self.links = links
        self.distance = distance
        self.iterations = iterations
        self._strengths: list[float] = []
        self._bias: list[float] = []
        self._rng = random.Random()

    def initialize(self, nodes: list[TechniqueNode], rng: random.Random) -> None:
        self._rng = rng
        count: dict[str, int] = {}
        for link in self.links:
            count[link.source.id] = count.get(link.source.id, 0) + 1
            count[link.target.id] = count.get(link.target.id, 0) + 1
        self._strengths = [
            1 / min(count[l.source.id], count[l.target.id]) for l in self.links
        ]
        self._bias = [
            count[l.source.id] / (count[l.source.id] + count[l.target.id]) for l in self.links
        ]

    def __call__(self, alpha: float) -> None:
        for _ in range(self.iterations):
            for i, link in enumerate(self.links):
                source, target = link.source, link.target
                x = target.x + target.vx - source.x - source.vx or _jiggle(self._rng)
                y = target.y + target.vy - source.y - source.vy or _jiggle(self._rng)
                length = math.sqrt(x * x + y * y)
                length = (length - self.distance) / length * alpha * self._strengths[i]
                x *= length
                y *= length
                bias = self._bias[i]
                target.vx -= x * bias
                target.vy -= y * bias
                source.vx += x * (1 - bias)
                source.vy += y * (1 - bias)


@dataclass
class _Quad:
    x0: float
    y0: float
    x1: float
    y1: float
    children: list["_Quad"] = field(default_factory=list)
    points: list[TechniqueNode] = field(default_factory=list)
    value: float = 0.0
    cx: float = 0.0
    cy: float = 0.0

    @property
    def is_leaf(self) -> bool:
        return not self.children


def _build_quad(
    nodes: list[TechniqueNode],
    x0: float, y0: float, x1: float, y1: float,
    strength: float,
    depth: int = 0,
) -> _Quad:
    quad = _Quad(x0, y0, x1, y1)
    if len(nodes) <= 1 or depth >= 32:
        quad.points = nodes
    else:
        mx, my = (x0 + x1) / 2, (y0 + y1) / 2
        buckets: list[list[TechniqueNode]] = [[], [], [], []]
        for node in nodes:
            buckets[(node.x >= mx) + 2 * (node.y >= my)].append(node)
        bounds = ((x0, y0, mx, my), (mx, y0, x1, my), (x0, my, mx, y1), (mx, my, x1, y1))
        for bucket, (bx0, by0, bx1, by1) in zip(buckets, bounds):
            if bucket:
                quad.children.append(_build_quad(bucket, bx0, by0, bx1, by1, strength, depth + 1))

    # Aggregate charge and its centroid
    quad.value = strength * len(nodes)
    quad.cx = sum(n.x for n in nodes) / len(nodes)
    quad.cy = sum(n.y for n in nodes) / len(nodes)
    return quad


class ManyBodyForce:
    """Inverse-distance repulsion (negative strength) between all nodes.

    Far-away groups of nodes are approximated by their centroid when the
    quadrant width over the distance is below ``theta``.
    """

    def __init__(self, strength: float = -300.0, theta: float = 0.9):
        self.strength = strength
        self.theta2 = theta * theta
        self.nodes: list[TechniqueNode] = []
        self._rng = random.Random()

    def initialize(self, nodes: list[TechniqueNode], rng: random.Random) -> None:
        self.nodes = nodes
        self._rng = rng

    def __call__(self, alpha: float) -> None:
        if len(self.nodes) < 2:
            return

        x0 = min(n.x for n in self.nodes)
        y0 = min(n.y for n in self.nodes)
        extent = max(
            max(n.x for n in self.nodes) - x0,
            max(n.y for n in self.nodes) - y0,
        ) + 1.0
        root = _build_quad(self.nodes, x0, y0, x0 + extent, y0 + extent, self.strength)

        for node in self.nodes:
            self._apply(node, root, alpha)

    def _apply(self, node: TechniqueNode, root: _Quad, alpha: float) -> None:
        stack = [root]
        while stack:
            quad = stack.pop()
            if not quad.value:
                continue

            if not quad.is_leaf:
                dx = quad.cx - node.x
                dy = quad.cy - node.y
                width = quad.x1 - quad.x0
                dist2 = dx * dx + dy * dy
                if width * width / self.theta2 < dist2:
                    if dist2 < DISTANCE_MIN2:
                        dist2 = math.sqrt(DISTANCE_MIN2 * dist2)
                    node.vx += dx * quad.value * alpha / dist2
                    node.vy += dy * quad.value * alpha / dist2
                    continue
                stack.extend(quad.children)
                continue

            for other in quad.points:
                if other is node:
                    continue
                dx = (other.x - node.x) or _jiggle(self._rng)
                dy = (other.y - node.y) or _jiggle(self._rng)
                dist2 = dx * dx + dy * dy
                if dist2 < DISTANCE_MIN2:
                    dist2 = math.sqrt(DISTANCE_MIN2 * dist2)
                node.vx += dx * self.strength * alpha / dist2
                node.vy += dy * self.strength * alpha / dist2


class CenterForce:
    """Shift all nodes so their centroid sits on ``(x, y)``."""

    def __init__(self, x: float = 0.0, y: float = 0.0, strength: float = 1.0):
        self.x = x
        self.y = y
        self.strength = strength
        self.nodes: list[TechniqueNode] = []

    def initialize(self, nodes: list[TechniqueNode], rng: random.Random) -> None:
        self.nodes = nodes

    def __call__(self, alpha: float) -> None:
        if not self.nodes:
            return
        sx = sum(n.x for n in self.nodes) / len(self.nodes) - self.x
        sy = sum(n.y for n in self.nodes) / len(self.nodes) - self.y
        for node in self.nodes:
            node.x -= sx * self.strength
            node.y -= sy * self.strength


class PositionForce:
    """Pull each node toward its own target on one axis.

    ``targets`` maps node id → ``(target, strength)``; nodes without an
    entry are left alone.
    """

    def __init__(self, axis: str, targets: dict[str, tuple[float, float]]):
        if axis not in ("x", "y"):
            raise ValueError(f"Unknown axis '{axis}'")
        self.axis = axis
        self.targets = targets
        self.nodes: list[TechniqueNode] = []

    def initialize(self, nodes: list[TechniqueNode], rng: random.Random) -> None:
        self.nodes = nodes

    def __call__(self, alpha: float) -> None:
        for node in self.nodes:
            entry = self.targets.get(node.id)
            if entry is None:
                continue
            target, strength = entry
            if self.axis == "x":
                node.vx += (target - node.x) * strength * alpha
            else:
                node.vy += (target - node.y) * strength * alpha


# ---------------------------------------------------------------------------
# Simulation
# ---------------------------------------------------------------------------

class Simulation:
    """Owns the node positions and the named forces acting on them."""

    def __init__(
        self,
        nodes: list[TechniqueNode],
        settings: Optional[SimulationSettings] = None,
        seed: Optional[int] = None,
        place_nodes: bool = True,
    ):
        self.settings = settings or SimulationSettings()
        self.nodes = nodes
        self.alpha = 1.0
        self.alpha_min = self.settings.alpha_min
        self.alpha_decay = self.settings.effective_alpha_decay()
        self.alpha_target = 0.0
        self.velocity_decay = 1 - self.settings.velocity_decay
        self.ticks = 0
        self._forces: dict[str, Force] = {}
        self._listeners: list[Callable[["Simulation"], None]] = []
        self._active_drags = 0
        self._rng = random.Random(seed)

        if place_nodes:
            self._place_nodes()

    def _place_nodes(self) -> None:
        """Phyllotaxis arrangement around the origin."""
        for i, node in enumerate(self.nodes):
            radius = INITIAL_RADIUS * math.sqrt(0.5 + i)
            angle = i * INITIAL_ANGLE
            node.x = radius * math.cos(angle)
            node.y = radius * math.sin(angle)
            node.vx = 0.0
            node.vy = 0.0

    # --- forces ---

    def force(self, name: str) -> Optional[Force]:
        """Get a force by name."""
        return self._forces.get(name)

    def set_force(self, name: str, force: Optional[Force]) -> None:
        """Install ``force`` under ``name``, replacing any previous one.

        Passing ``None`` removes the force.
        """
        if force is None:
            self._forces.pop(name, None)
            return
        force.initialize(self.nodes, self._rng)
        self._forces[name] = force

    # --- energy ---

    @property
    def settled(self) -> bool:
        return self.alpha < self.alpha_min

    def reheat(self, alpha: float) -> None:
        """Set alpha outright (mode changes, resizes)."""
        self.alpha = alpha

    # --- ticking ---

    def on_tick(self, listener: Callable[["Simulation"], None]) -> None:
        self._listeners.append(listener)

    def step(self) -> None:
        """Advance one step without notifying listeners."""
        self.alpha += (self.alpha_target - self.alpha) * self.alpha_decay

        for force in self._forces.values():
            force(self.alpha)

        for node in self.nodes:
            if node.fx is None:
                node.vx *= self.velocity_decay
                node.x += node.vx
            else:
                node.x = node.fx
                node.vx = 0.0
            if node.fy is None:
                node.vy *= self.velocity_decay
                node.y += node.vy
            else:
                node.y = node.fy
                node.vy = 0.0

        self.ticks += 1

    def tick(self, iterations: int = 1) -> None:
        """Advance ``iterations`` steps, notifying listeners after each."""
        for _ in range(iterations):
            self.step()
            for listener in self._listeners:
                listener(self)

    # --- dragging ---

    def drag_start(self, node: TechniqueNode) -> None:
        """Pin ``node`` where it is and keep the system warm while dragging."""
        if node.is_pinned:
            return
        if self._active_drags == 0:
            self.alpha_target = self.settings.drag_alpha_target
        self._active_drags += 1
        node.fx = node.x
        node.fy = node.y

    def drag_move(self, node: TechniqueNode, x: float, y: float) -> None:
        node.fx = x
        node.fy = y

    def drag_end(self, node: TechniqueNode) -> None:
        """Release ``node`` at its current position and let energy decay."""
        if not node.is_pinned:
            return
        self._active_drags = max(0, self._active_drags - 1)
        if self._active_drags == 0:
            self.alpha_target = 0.0
        if node.fx is not None:
            node.x = node.fx
        if node.fy is not None:
            node.y = node.fy
        node.fx = None
        node.fy = None
