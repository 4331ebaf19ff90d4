"""
Data models for Focus Map — the technique graph.

A focus map is a flat graph of *techniques*.  Every technique is a node;
relations between techniques are declared one-directionally on the node
(``connected_techniques``) but always produce undirected links:

    TechniqueGraph
    ├── TechniqueNode   — a single technique (the atomic unit)
    └── TechniqueLink   — an unordered pair of technique ids

Each node's ``id`` doubles as its display name.  Besides the static data
read from the dataset, a node carries the runtime fields owned by the
physics simulation (``x``, ``y``, ``vx``, ``vy``) and by dragging
(``fx``, ``fy``).  Everything else about how a node looks on screen is
derived per frame and never stored on the node.
"""

from __future__ import annotations
from typing import Optional
from pydantic import BaseModel, Field, field_validator


# ---------------------------------------------------------------------------
# Node
# ---------------------------------------------------------------------------

class TechniqueNode(BaseModel):
    """A technique — the atomic unit of the focus map.

    Identity
    --------
    ``id`` is unique across the graph and is also the display name.
    Rows without an id never become nodes.

    Positioning tags
    ----------------
    ``order_tag`` buckets the node into a column in tidy layout; empty
    means the node sits in the middle.  ``matrix_tag`` is a free-text
    urgency/importance descriptor read by the Eisenhower layout.

    Colors
    ------
    ``color`` and ``pretty_color`` are the two static palette entries.
    The engine picks one per frame depending on the palette mode; the
    node itself is never recolored.

    Automation
    ----------
    A node with a non-empty ``automation_function`` acts as a mode
    switch embedded in the graph: clicking it dispatches that function.
    ``automation_config`` is passed through untouched.
    """
    id: str
    type: str = ""
    order_tag: str = ""
    matrix_tag: str = ""
    scale: float = 1.0
    color: str = "#E673C8"
    pretty_color: str = "#E673C8"
    description: str = ""
    automation_function: str = ""
    automation_config: str = ""
    video_url: str = ""
    connected_techniques: list[str] = Field(default_factory=list)

    # Runtime fields (simulation / drag)
    x: float = 0.0
    y: float = 0.0
    vx: float = 0.0
    vy: float = 0.0
    fx: Optional[float] = None
    fy: Optional[float] = None

    @field_validator("id")
    @classmethod
    def _id_not_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("technique id must not be empty")
        return value

    @property
    def name(self) -> str:
        """Display name (the id)."""
        return self.id

    @property
    def is_pinned(self) -> bool:
        return self.fx is not None or self.fy is not None

    @property
    def has_automation(self) -> bool:
        return bool(self.automation_function.strip())


# ---------------------------------------------------------------------------
# Link
# ---------------------------------------------------------------------------

class TechniqueLink(BaseModel):
    """An undirected link between two techniques.

    ``source`` is the node whose relation list declared the link; it has
    no other meaning.  ``key`` is the canonical sorted pair used for
    deduplication.
    """
    source: str
    target: str

    @property
    def key(self) -> tuple[str, str]:
        a, b = sorted((self.source, self.target))
        return (a, b)

    def touches(self, node_id: str) -> bool:
        return self.source == node_id or self.target == node_id

    def other(self, node_id: str) -> str:
        return self.target if self.source == node_id else self.source


# ---------------------------------------------------------------------------
# Graph (root)
# ---------------------------------------------------------------------------

class TechniqueGraph(BaseModel):
    """The root graph model — nodes in input order plus derived links.

    Flat Access
    -----------
    The graph maintains a ``_node_map`` for O(1) lookup by id and an
    ``_adjacency`` map of neighbor ids.  Both are rebuilt by
    ``model_post_init``; call ``from_nodes`` to build a graph whose links
    are derived from the nodes' relation lists.
    """
    title: str = "Focus Map"
    nodes: list[TechniqueNode] = Field(default_factory=list)
    links: list[TechniqueLink] = Field(default_factory=list)

    _node_map: dict[str, TechniqueNode] = {}
    _adjacency: dict[str, set[str]] = {}

    def model_post_init(self, __context):
        """Build lookup maps after initialization."""
        self._node_map = {}
        for node in self.nodes:
            if node.id in self._node_map:
                raise ValueError(f"Duplicate technique id '{node.id}'")
            self._node_map[node.id] = node

        self._adjacency = {node.id: set() for node in self.nodes}
        for link in self.links:
            if link.source in self._adjacency and link.target in self._adjacency:
                self._adjacency[link.source].add(link.target)
                self._adjacency[link.target].add(link.source)

    @classmethod
    def from_nodes(cls, nodes: list[TechniqueNode], title: str = "Focus Map") -> "TechniqueGraph":
        """Build a graph, deriving links from ``connected_techniques``."""
        return cls(title=title, nodes=nodes, links=derive_links(nodes))

    def get_node(self, node_id: str) -> Optional[TechniqueNode]:
        """Look up a node by id."""
        return self._node_map.get(node_id)

    def neighbors(self, node_id: str) -> set[str]:
        """Ids of every node one link away from ``node_id``."""
        return set(self._adjacency.get(node_id, set()))

    def degree(self, node_id: str) -> int:
        return len(self._adjacency.get(node_id, ()))

    def order_tags(self) -> list[str]:
        """Distinct non-empty order tags, sorted lexicographically."""
        return sorted({n.order_tag for n in self.nodes if n.order_tag.strip()})

    def types(self) -> list[str]:
        """Distinct non-empty node types, sorted."""
        return sorted({n.type for n in self.nodes if n.type})

    def is_empty(self) -> bool:
        return not self.nodes


def derive_links(nodes: list[TechniqueNode]) -> list[TechniqueLink]:
    """Materialize undirected links from the nodes' relation lists.

    A link A–B is created when A lists B, B exists and A != B.  Listing
    the same pair again, from either end, does not add a second link.
    """
    known = {node.id for node in nodes}
    seen: set[tuple[str, str]] = set()
    links: list[TechniqueLink] = []

    for node in nodes:
        for other_id in node.connected_techniques:
            if other_id not in known or other_id == node.id:
                continue
            link = TechniqueLink(source=node.id, target=other_id)
            if link.key in seen:
                continue
            seen.add(link.key)
            links.append(link)

    return links
