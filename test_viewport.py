"""Viewport, popup tracking and engine lifecycle tests."""

import logging

import pytest

from focus_map.engine import FocusMapEngine
from focus_map.models import TechniqueGraph, TechniqueNode
from focus_map.parser import parse_rows
from focus_map.simulation import CenterForce
from focus_map.viewport import Viewport


def build_engine():
    graph = parse_rows([
        {"technique name": "A", "type": "focus", "scale": "2", "connected techniques": "B"},
        {"technique name": "B", "type": "rest", "order_tag": "1 todo"},
        {"technique name": "C", "type": "rest", "order_tag": "2 doing"},
    ])
    return FocusMapEngine(graph, seed=1)


# --- metrics ---

def test_desktop_metrics():
    viewport = Viewport()
    metrics = viewport.node_metrics(TechniqueNode(id="a", scale=2))
    assert metrics.radius == pytest.approx(5 + 3.7 * 2)
    assert metrics.label_font_size == 10
    assert metrics.label_offset == pytest.approx(metrics.radius + 14)
    assert metrics.glyph_font_size == pytest.approx(2 * metrics.radius)


def test_phone_metrics():
    viewport = Viewport()
    viewport.resize(768, 900)
    assert viewport.is_phone
    metrics = viewport.node_metrics(TechniqueNode(id="a", scale=2))
    assert metrics.radius == pytest.approx((10 + 2 * 2) * 0.8)
    assert metrics.label_font_size == pytest.approx(8)
    assert metrics.label_offset == pytest.approx(metrics.radius + 14 * 0.8)


def test_resize_rejects_non_positive_sizes():
    with pytest.raises(ValueError):
        Viewport().resize(0, 100)


# --- transform ---

def test_zoom_is_clamped():
    viewport = Viewport()
    viewport.set_transform(10, 0, 0)
    assert viewport.k == 4
    viewport.set_transform(0.01, 0, 0)
    assert viewport.k == 0.3


def test_zoom_at_keeps_point_under_cursor():
    viewport = Viewport()
    viewport.set_transform(1.5, 20, -10)
    before = ((300 - viewport.tx) / viewport.k, (200 - viewport.ty) / viewport.k)
    viewport.zoom_at(2, 300, 200)
    assert viewport.k == 3
    assert viewport.to_screen(*before) == (pytest.approx(300), pytest.approx(200))


def test_pan_moves_translation():
    viewport = Viewport()
    viewport.pan(5, -7)
    assert (viewport.tx, viewport.ty) == (5, -7)


# --- popup ---

def test_popup_anchor_follows_transform():
    engine = build_engine()
    engine.pointer_enter("A")
    engine.zoom(2, 10, 20)
    node = engine.graph.get_node("A")
    assert engine.popup.anchor == (pytest.approx(2 * node.x + 25), pytest.approx(2 * node.y + 35))


def test_popup_anchor_tracks_node_every_tick():
    engine = build_engine()
    engine.click_node("A")
    engine.run_automation("tidyUp")
    engine.tick(5)
    node = engine.graph.get_node("A")
    assert engine.popup.anchor == (pytest.approx(node.x + 15), pytest.approx(node.y + 15))


def test_popup_content():
    engine = build_engine()
    engine.pointer_enter("B")
    assert engine.popup.name == "B"
    assert engine.popup.type == "rest"
    assert engine.popup.order_tag == "1 todo"


def test_no_popup_when_idle():
    engine = build_engine()
    assert engine.popup is None
    assert engine.frame().popup is None


# --- resize ---

def test_resize_recenters_and_reheats():
    engine = build_engine()
    engine.tick(500)
    engine.resize(600, 400)
    center = engine.simulation.force("center")
    assert isinstance(center, CenterForce)
    assert (center.x, center.y) == (300, 200)
    assert engine.simulation.alpha == 0.3

    engine.tick(300)
    cx = sum(n.x for n in engine.graph.nodes) / 3
    assert cx == pytest.approx(300, abs=5)


def test_resize_replays_active_layout():
    engine = build_engine()
    engine.run_automation("tidyUp")
    wide = dict(engine.simulation.force("x").targets)
    engine.resize(640, 800)
    narrow = engine.simulation.force("x").targets
    assert narrow["B"][0] == pytest.approx(wide["B"][0] / 2)


def test_frame_uses_phone_metrics_after_resize():
    engine = build_engine()
    engine.resize(500, 800)
    node = engine.frame().get_node("A")
    assert node.radius == pytest.approx((10 + 2 * 2) * 0.8)
    assert node.label_font_size == pytest.approx(8)


# --- lifecycle ---

def test_empty_graph_leaves_engine_uninitialized(caplog):
    with caplog.at_level(logging.ERROR):
        engine = FocusMapEngine(TechniqueGraph())
    assert not engine.ready
    assert "not initialized" in caplog.text

    engine.pointer_enter("A")
    engine.click_node("A")
    engine.run_automation("tidyUp")
    engine.tick(3)
    frame = engine.frame()
    assert frame.nodes == [] and frame.links == []
    assert engine.snapshot()["ready"] is False


def test_reload_resets_state():
    engine = build_engine()
    engine.run_automation("prettyItUp")
    engine.toggle_type("rest")
    engine.click_node("A")
    assert engine.load(parse_rows([{"technique name": "Z"}]))
    assert not engine.view.pretty
    assert not engine.filters.is_active
    assert engine.highlight.locked is None
    assert [n.id for n in engine.frame().nodes] == ["Z"]


def test_snapshot_is_json_friendly():
    import json

    engine = build_engine()
    engine.run_automation("reversedList")
    engine.pointer_enter("A")
    state = json.loads(json.dumps(engine.snapshot()))
    assert state["view"]["reversed_list"] is True
    assert state["highlight"]["phase"] == "hover_active"
    assert state["popup"]["name"] == "A"

    engine.toggle_type("focus")
    assert engine.snapshot()["filters"]["active"] is True
    engine.reset_filters()
    assert engine.snapshot()["filters"]["active"] is False


def test_available_filters_lists_chips():
    engine = build_engine()
    engine.toggle_order_tag("2 doing")
    chips = engine.available_filters()
    assert [c["value"] for c in chips["types"]] == ["focus", "rest"]
    assert chips["order_tags"] == [
        {"value": "1 todo", "active": False},
        {"value": "2 doing", "active": True},
    ]
