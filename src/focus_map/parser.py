"""Dataset parser for Focus Map.

Supports two formats:
1. CSV export of the technique table (one row per technique)
2. YAML document with a ``techniques:`` list using the same keys

Both go through ``parse_rows``, which normalizes raw rows into a
``TechniqueGraph``.
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Any, Iterable, Optional

import yaml

from .models import TechniqueGraph, TechniqueNode
from .themes import DEFAULT_NODE_COLOR

logger = logging.getLogger(__name__)


# Column names of the technique table
NAME_KEY = "technique name"
CONNECTED_KEY = "connected techniques"


def parse_rows(
    rows: Iterable[dict[str, Any]],
    title: str = "Focus Map",
    default_color: str = DEFAULT_NODE_COLOR,
) -> TechniqueGraph:
    """Normalize raw rows into a graph.

    Rows without a technique name are dropped.  A later row reusing a
    name already seen is dropped with a warning.
    """
    nodes: list[TechniqueNode] = []
    seen: set[str] = set()

    for row in rows:
        node = _parse_row(row, default_color)
        if node is None:
            continue
        if node.id in seen:
            logger.warning("Duplicate technique %r ignored", node.id)
            continue
        seen.add(node.id)
        nodes.append(node)

    return TechniqueGraph.from_nodes(nodes, title=title)


def _text(row: dict[str, Any], key: str) -> str:
    value = row.get(key)
    if value is None:
        return ""
    return str(value).strip()


def _parse_scale(raw: Any) -> float:
    """Parse the scale column; missing, invalid or non-positive → 1."""
    try:
        scale = float(raw)
    except (TypeError, ValueError):
        return 1.0
    if scale != scale or scale <= 0:  # NaN or not positive
        return 1.0
    return scale


def _parse_connections(raw: Any) -> list[str]:
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        parts = [str(p) for p in raw]
    else:
        parts = str(raw).split(",")
    return [p.strip() for p in parts if p.strip()]


def _parse_row(row: dict[str, Any], default_color: str) -> Optional[TechniqueNode]:
    """Parse a single row, or None if it has no technique name."""
    name = _text(row, NAME_KEY)
    if not name:
        return None

    # An empty color falls back to the pretty color, both to the default,
    # and an empty pretty color to the color.
    color = _text(row, "color")
    pretty_color = _text(row, "pretty_color")
    if not color:
        color = pretty_color or default_color
    if not pretty_color:
        pretty_color = color

    return TechniqueNode(
        id=name,
        type=_text(row, "type"),
        order_tag=_text(row, "order_tag"),
        matrix_tag=_text(row, "matrix_tag"),
        scale=_parse_scale(row.get("scale")),
        color=color,
        pretty_color=pretty_color,
        description=str(row.get("description") or ""),
        automation_function=_text(row, "automation_function"),
        automation_config=str(row.get("automation_config") or ""),
        video_url=_text(row, "video_url"),
        connected_techniques=_parse_connections(row.get(CONNECTED_KEY)),
    )


def parse_csv(
    csv_str: str,
    title: str = "Focus Map",
    default_color: str = DEFAULT_NODE_COLOR,
) -> TechniqueGraph:
    """Parse CSV text (with a header row) into a graph."""
    reader = csv.DictReader(csv_str.splitlines())
    return parse_rows(reader, title=title, default_color=default_color)


def load_csv(path: str, default_color: str = DEFAULT_NODE_COLOR) -> TechniqueGraph:
    """Parse a CSV file into a graph."""
    content = Path(path).read_text(encoding="utf-8-sig")
    return parse_csv(content, title=Path(path).stem, default_color=default_color)


def parse_yaml(yaml_str: str, default_color: str = DEFAULT_NODE_COLOR) -> TechniqueGraph:
    """Parse a YAML string into a graph.

    Example:
        title: Focus Techniques
        techniques:
          - technique name: pomodoro
            type: timeboxing
            order_tag: 1 start
            connected techniques: [deep work, breaks]
          - technique name: deep work
            type: environment
    """
    data = yaml.safe_load(yaml_str)
    if not data:
        raise ValueError("Empty YAML input")
    if not isinstance(data, dict) or "techniques" not in data:
        raise ValueError("YAML dataset must contain a 'techniques' list")

    rows = data["techniques"] or []
    if not isinstance(rows, list) or not all(isinstance(r, dict) for r in rows):
        raise ValueError("'techniques' must be a list of mappings")

    return parse_rows(rows, title=data.get("title", "Focus Map"), default_color=default_color)


def load_dataset(path: str, default_color: str = DEFAULT_NODE_COLOR) -> TechniqueGraph:
    """Load a dataset file, degrading to an empty graph on failure.

    ``.yaml`` / ``.yml`` files are parsed as YAML, everything else as CSV.
    Failures are logged rather than raised.
    """
    try:
        if Path(path).suffix.lower() in (".yaml", ".yml"):
            graph = parse_yaml(Path(path).read_text(encoding="utf-8"), default_color)
        else:
            graph = load_csv(path, default_color)
    except (OSError, ValueError, csv.Error, yaml.YAMLError) as e:
        logger.error("Error loading dataset %s: %s", path, e)
        return TechniqueGraph()

    if graph.is_empty():
        logger.error("No techniques loaded from %s", path)
    return graph


def graph_to_yaml(graph: TechniqueGraph) -> str:
    """Serialize a graph back to the YAML dataset format."""
    rows = []
    for node in graph.nodes:
        row: dict[str, Any] = {NAME_KEY: node.id}
        if node.type:
            row["type"] = node.type
        if node.order_tag:
            row["order_tag"] = node.order_tag
        if node.matrix_tag:
            row["matrix_tag"] = node.matrix_tag
        if node.scale != 1:
            row["scale"] = node.scale
        row["color"] = node.color
        if node.pretty_color != node.color:
            row["pretty_color"] = node.pretty_color
        if node.description:
            row["description"] = node.description
        if node.automation_function:
            row["automation_function"] = node.automation_function
        if node.automation_config:
            row["automation_config"] = node.automation_config
        if node.video_url:
            row["video_url"] = node.video_url
        if node.connected_techniques:
            row[CONNECTED_KEY] = list(node.connected_techniques)
        rows.append(row)

    data = {"title": graph.title, "techniques": rows}
    return yaml.dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)
