"""Automation registry, mode exclusivity and media overlay tests."""

import logging

import pytest

from focus_map.automation import GLYPH_STYLES, is_done, node_fill, registry
from focus_map.config import EngineConfig
from focus_map.engine import FocusMapEngine
from focus_map.media import MediaOverlay, resolve_media_url
from focus_map.parser import parse_rows
from focus_map.state import GlyphVariant, LayoutMode, ViewState
from focus_map.themes import DONE_COLOR, INITIAL_PALETTE, PRETTY_PALETTE

EYES = GLYPH_STYLES[GlyphVariant.EYES]


def build_graph():
    return parse_rows([
        {"technique name": "tidy", "automation_function": "tidyUp", "order_tag": "1 todo"},
        {"technique name": "matrix", "automation_function": "eisenhower", "matrix_tag": "urgent & important"},
        {"technique name": "guilty", "color": "#111111", "pretty_color": "#222222", "order_tag": "3 done"},
        {"technique name": "finished", "color": "#333333", "order_tag": "Done!"},
        {"technique name": "video", "automation_function": "animation",
         "video_url": "https://youtu.be/abc123", "connected techniques": "tidy"},
        {"technique name": "broken video", "automation_function": "animation", "video_url": "ftp://x/y"},
    ])


def build_engine(**config):
    return FocusMapEngine(build_graph(), config=EngineConfig(**config), seed=1)


# --- registry ---

def test_registry_has_every_automation():
    expected = {
        "tidyUp", "eisenhower", "messUp", "prettyItUp", "colorBombing",
        "coworking", "pomodoro", "selfLove", "runAway", "writeDown", "keepIt",
        "reversedList", "ordinaryList", "animation",
    }
    assert set(registry.names()) == expected


def test_unknown_automation_is_a_logged_no_op(caplog):
    engine = build_engine()
    before = engine.view
    with caplog.at_level(logging.WARNING):
        engine.run_automation("teleport")
    assert engine.view == before
    assert "Unknown automation function" in caplog.text


# --- layout modes ---

def test_layout_modes_are_exclusive():
    engine = build_engine()
    engine.run_automation("tidyUp")
    assert engine.view.tidy
    engine.run_automation("eisenhower")
    assert engine.view.layout is LayoutMode.EISENHOWER
    assert not engine.view.tidy


def test_tidy_installs_axis_forces_and_mess_up_removes_them():
    engine = build_engine()
    assert engine.simulation.force("x") is None
    engine.run_automation("tidyUp")
    assert engine.simulation.force("x") is not None
    assert engine.simulation.force("y") is not None
    assert engine.simulation.alpha == 0.5
    engine.run_automation("messUp")
    assert engine.simulation.force("x") is None
    assert engine.simulation.force("y") is None


def test_repeating_a_layout_does_not_reheat():
    engine = build_engine()
    engine.run_automation("tidyUp")
    engine.tick(10)
    alpha = engine.simulation.alpha
    engine.run_automation("tidyUp")
    assert engine.simulation.alpha == alpha


def test_clicking_automation_node_locks_and_dispatches():
    engine = build_engine()
    engine.click_node("matrix")
    assert engine.highlight.locked == "matrix"
    assert engine.view.eisenhower


def test_layout_background_follows_mode():
    engine = build_engine()
    assert engine.frame().background == []
    engine.run_automation("eisenhower")
    assert len(engine.frame().background) == 10


# --- palette ---

def test_pretty_palette_round_trip():
    engine = build_engine()
    engine.run_automation("prettyItUp")
    frame = engine.frame()
    assert frame.palette == PRETTY_PALETTE
    assert frame.get_node("guilty").fill == "#222222"

    engine.run_automation("colorBombing")
    frame = engine.frame()
    assert frame.palette == INITIAL_PALETTE
    assert frame.get_node("guilty").fill == "#111111"


# --- glyphs ---

def test_coworking_draws_eyes_with_special_node():
    engine = build_engine()
    engine.run_automation("coworking")
    frame = engine.frame()
    assert frame.get_node("tidy").shape == "glyph"
    assert frame.get_node("tidy").glyph == EYES.glyph
    assert frame.get_node("guilty").glyph == EYES.special_glyph
    assert frame.get_node("tidy").glyph_font_size == pytest.approx(2 * frame.get_node("tidy").radius)


def test_glyph_modes_replace_each_other_and_run_away_restores_circles():
    engine = build_engine()
    engine.run_automation("coworking")
    engine.run_automation("pomodoro")
    assert engine.view.glyph is GlyphVariant.TOMATO
    engine.run_automation("selfLove")
    assert engine.view.glyph is GlyphVariant.HEART
    engine.run_automation("runAway")
    frame = engine.frame()
    assert all(n.shape == "circle" and n.glyph is None for n in frame.nodes)


def test_run_away_without_glyphs_changes_nothing():
    engine = build_engine()
    before = engine.view
    engine.run_automation("runAway")
    assert engine.view == before


# --- completion recolor ---

def test_reversed_list_recolors_done_nodes_and_ordinary_list_restores():
    engine = build_engine()
    engine.run_automation("reversedList")
    assert engine.view.recolored == {"guilty", "finished"}
    frame = engine.frame()
    assert frame.get_node("guilty").fill == DONE_COLOR
    assert frame.get_node("finished").fill == DONE_COLOR

    engine.run_automation("reversedList")
    assert engine.view.recolored == {"guilty", "finished"}

    engine.run_automation("ordinaryList")
    frame = engine.frame()
    assert frame.get_node("guilty").fill == "#111111"
    assert frame.get_node("finished").fill == "#333333"


def test_recolor_survives_palette_switch():
    engine = build_engine()
    engine.run_automation("reversedList")
    engine.run_automation("prettyItUp")
    assert engine.frame().get_node("guilty").fill == DONE_COLOR
    engine.run_automation("ordinaryList")
    assert engine.frame().get_node("guilty").fill == "#222222"


def test_exact_done_match():
    engine = build_engine(done_match="exact")
    engine.run_automation("reversedList")
    assert engine.view.recolored == frozenset()

    assert is_done("DONE", EngineConfig(done_match="exact"))
    assert is_done("3 done")
    assert not is_done("")


def test_recolored_requires_reversed_list():
    with pytest.raises(ValueError):
        ViewState(recolored=frozenset({"a"}))


def test_node_fill_defaults():
    graph = build_graph()
    assert node_fill(graph.get_node("guilty"), ViewState()) == "#111111"


# --- media ---

def test_animation_opens_embedded_player_and_escape_closes():
    engine = build_engine()
    engine.click_node("video")
    assert engine.media.source.kind == "embed"
    assert engine.media.source.url.startswith("https://www.youtube.com/embed/abc123?autoplay=1")
    assert engine.frame().media is not None

    engine.key_press("Escape")
    assert engine.media.source is None


def test_unplayable_media_opens_nothing(caplog):
    engine = build_engine()
    with caplog.at_level(logging.WARNING):
        engine.click_node("broken video")
    assert engine.media.source is None
    assert "Media not played" in caplog.text


@pytest.mark.parametrize("url, kind, expected", [
    ("https://www.youtube.com/watch?v=XYZ", "embed",
     "https://www.youtube.com/embed/XYZ?autoplay=1&controls=1&modestbranding=1"),
    ("https://youtube.com/embed/XYZ", "embed",
     "https://www.youtube.com/embed/XYZ?autoplay=1&controls=1&modestbranding=1"),
    ("https://vimeo.com/12345", "embed", "https://player.vimeo.com/video/12345?autoplay=1"),
    ("https://example.com/clip.mp4", "video", "https://example.com/clip.mp4"),
])
def test_resolve_media_url(url, kind, expected):
    source = resolve_media_url(url)
    assert (source.kind, source.url) == (kind, expected)


@pytest.mark.parametrize("url", ["", "not a url", "https://vimeo.com/about", "file:///tmp/a.mp4"])
def test_resolve_media_url_rejects(url):
    with pytest.raises(ValueError):
        resolve_media_url(url)


def test_overlay_dismiss_reasons():
    overlay = MediaOverlay()
    assert overlay.open("https://example.com/a.mp4")
    assert overlay.dismiss("click")
    assert not overlay.dismiss("close")
    with pytest.raises(ValueError):
        overlay.dismiss("swipe")
