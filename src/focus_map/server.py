"""Focus Map server — MCP tools that drive the engine and render frames."""

from __future__ import annotations

import json
import logging
import os
import uuid
from pathlib import Path
from typing import Optional

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from .automation import registry
from .config import load_config
from .engine import FocusMapEngine
from .parser import load_dataset, parse_yaml
from .renderer import CanvasRenderer


# --- Constants ---
OUTPUT_DIR = Path(os.environ.get("FOCUS_MAP_OUTPUT_DIR", Path.home() / ".focus-map" / "frames"))

logger = logging.getLogger(__name__)

server = Server("focus-map")
engine: Optional[FocusMapEngine] = None


def _ensure_output_dir():
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)


def _get_engine() -> FocusMapEngine:
    """The shared engine, built from the config on first use."""
    global engine
    if engine is None:
        engine = FocusMapEngine(config=load_config())
    return engine


def _node_tool(name: str, description: str) -> Tool:
    return Tool(
        name=name,
        description=description,
        inputSchema={
            "type": "object",
            "properties": {
                "node_id": {"type": "string", "description": "Technique name"},
            },
            "required": ["node_id"],
        },
    )


# --- Tool definitions ---

@server.list_tools()
async def list_tools() -> list[Tool]:
    return [
        Tool(
            name="load_dataset",
            description=(
                "Load a technique dataset and start the layout. Give either a path "
                "to a CSV/YAML file or an inline YAML document with a 'techniques' list."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "path": {"type": "string", "description": "Path to a .csv, .yaml or .yml file"},
                    "yaml_dataset": {"type": "string", "description": "Inline YAML dataset"},
                    "warmup_ticks": {
                        "type": "integer",
                        "description": "Simulation ticks to run after loading (default 300)",
                        "default": 300,
                    },
                },
            },
        ),
        _node_tool("pointer_enter", "Hover a technique (highlights its neighborhood and type)."),
        _node_tool("pointer_leave", "Stop hovering a technique."),
        _node_tool(
            "click_node",
            "Click a technique: locks the highlight and runs its automation function, if any.",
        ),
        Tool(
            name="click_background",
            description="Click on empty canvas: clears hover, lock and popup.",
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="set_search",
            description="Set the search query (empty string clears it).",
            inputSchema={
                "type": "object",
                "properties": {"query": {"type": "string"}},
                "required": ["query"],
            },
        ),
        Tool(
            name="toggle_type",
            description="Toggle a type filter chip.",
            inputSchema={
                "type": "object",
                "properties": {"type": {"type": "string"}},
                "required": ["type"],
            },
        ),
        Tool(
            name="toggle_order_tag",
            description="Toggle an order tag filter chip.",
            inputSchema={
                "type": "object",
                "properties": {"order_tag": {"type": "string"}},
                "required": ["order_tag"],
            },
        ),
        Tool(
            name="reset_filters",
            description="Clear type, order tag and search filters.",
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="run_automation",
            description="Run a named automation (e.g. tidyUp, eisenhower, prettyItUp, coworking).",
            inputSchema={
                "type": "object",
                "properties": {
                    "name": {"type": "string", "enum": registry.names()},
                    "node_id": {"type": "string", "description": "Triggering technique (for animation)"},
                },
                "required": ["name"],
            },
        ),
        Tool(
            name="tick",
            description="Advance the force simulation.",
            inputSchema={
                "type": "object",
                "properties": {"iterations": {"type": "integer", "default": 1}},
            },
        ),
        Tool(
            name="resize",
            description="Resize the viewport; the active layout is replayed against the new size.",
            inputSchema={
                "type": "object",
                "properties": {
                    "width": {"type": "number"},
                    "height": {"type": "number"},
                },
                "required": ["width", "height"],
            },
        ),
        Tool(
            name="zoom",
            description="Set the pan/zoom transform (k is clamped to the zoom extent).",
            inputSchema={
                "type": "object",
                "properties": {
                    "k": {"type": "number"},
                    "tx": {"type": "number"},
                    "ty": {"type": "number"},
                },
                "required": ["k", "tx", "ty"],
            },
        ),
        Tool(
            name="close_media",
            description="Dismiss the media overlay.",
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="get_state",
            description="Return modes, filters, highlight, viewport and popup state as JSON.",
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="render_frame",
            description="Render the current frame to PNG. Returns the file path.",
            inputSchema={
                "type": "object",
                "properties": {
                    "scale": {
                        "type": "number",
                        "description": "Render scale factor (default 1.0)",
                        "default": 1.0,
                    },
                    "filename": {
                        "type": "string",
                        "description": "Output filename (without extension). Default: auto-generated UUID.",
                    },
                },
            },
        ),
    ]


@server.call_tool()
async def call_tool(name: str, arguments: dict) -> list[TextContent]:
    arguments = arguments or {}
    if name == "load_dataset":
        return await _load_dataset(arguments)
    elif name == "render_frame":
        return await _render_frame(arguments)
    elif name == "get_state":
        return _state_response()

    handler = _EVENT_HANDLERS.get(name)
    if handler is None:
        return [TextContent(type="text", text=f"Unknown tool: {name}")]
    try:
        handler(_get_engine(), arguments)
    except (KeyError, ValueError) as e:
        return [TextContent(type="text", text=f"Invalid arguments for {name}: {e}")]
    return _state_response()


_EVENT_HANDLERS = {
    "pointer_enter": lambda e, a: e.pointer_enter(a["node_id"]),
    "pointer_leave": lambda e, a: e.pointer_leave(a["node_id"]),
    "click_node": lambda e, a: e.click_node(a["node_id"]),
    "click_background": lambda e, a: e.click_background(),
    "set_search": lambda e, a: e.set_search(a["query"]),
    "toggle_type": lambda e, a: e.toggle_type(a["type"]),
    "toggle_order_tag": lambda e, a: e.toggle_order_tag(a["order_tag"]),
    "reset_filters": lambda e, a: e.reset_filters(),
    "run_automation": lambda e, a: e.run_automation(a["name"], a.get("node_id")),
    "tick": lambda e, a: e.tick(int(a.get("iterations", 1))),
    "resize": lambda e, a: e.resize(float(a["width"]), float(a["height"])),
    "zoom": lambda e, a: e.zoom(float(a["k"]), float(a["tx"]), float(a["ty"])),
    "close_media": lambda e, a: e.close_media(),
}


def _state_response() -> list[TextContent]:
    return [TextContent(type="text", text=json.dumps(_get_engine().snapshot()))]


async def _load_dataset(args: dict) -> list[TextContent]:
    """Load a dataset from a file or inline YAML."""
    engine = _get_engine()
    default_color = engine.config.default_node_color
    if args.get("yaml_dataset"):
        try:
            graph = parse_yaml(args["yaml_dataset"], default_color)
        except ValueError as e:
            return [TextContent(type="text", text=f"Failed to parse YAML dataset: {e}")]
    elif args.get("path"):
        graph = load_dataset(args["path"], default_color)
    else:
        return [TextContent(type="text", text="Provide 'path' or 'yaml_dataset'")]

    if not engine.load(graph):
        return [TextContent(type="text", text="No techniques loaded; visualization not initialized")]

    engine.tick(int(args.get("warmup_ticks", 300)))
    return [TextContent(
        type="text",
        text=json.dumps({
            "status": "success",
            "title": graph.title,
            "techniques": len(graph.nodes),
            "links": len(engine.links),
            "filters": engine.available_filters(),
        }),
    )]


async def _render_frame(args: dict) -> list[TextContent]:
    """Render the current frame to PNG."""
    _ensure_output_dir()

    scale = args.get("scale", 1.0)
    filename = args.get("filename", str(uuid.uuid4())[:8])
    output_path = str(OUTPUT_DIR / f"{filename}.png")

    try:
        CanvasRenderer(scale=scale).render(_get_engine().frame(), output_path=output_path)
    except OSError as e:
        logger.error("Rendering failed: %s", e)
        return [TextContent(type="text", text=f"Rendering failed: {e}")]

    return [TextContent(
        type="text",
        text=json.dumps({"status": "success", "path": output_path}),
    )]


def main():
    """Entry point for the MCP server."""
    import asyncio
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    asyncio.run(_run())


async def _run():
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


if __name__ == "__main__":
    main()
