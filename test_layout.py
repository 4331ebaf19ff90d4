"""Layout constraint provider tests: tidy columns, quadrants, background layer."""

import pytest

from focus_map.layout import (
    BackgroundLine,
    BackgroundRect,
    BackgroundText,
    QUADRANT_LABELS,
    ViewportSize,
    background_layer,
    position_hint,
    position_hints,
    quadrant_axis,
    tag_scale,
)
from focus_map.models import TechniqueNode
from focus_map.state import LayoutMode
from focus_map.themes import INITIAL_PALETTE

SIZE = ViewportSize(width=1000, height=600)
TAGS = ["3 done", "1 todo", "2 doing"]


def node(name, **fields):
    return TechniqueNode(id=name, **fields)


# --- tidy ---

def test_tag_scale_spreads_sorted_tags_across_middle_of_width():
    scale = tag_scale(TAGS, SIZE.width)
    xs = [scale("1 todo"), scale("2 doing"), scale("3 done")]
    assert xs == sorted(xs)
    assert all(100 <= x <= 900 for x in xs)
    assert xs[1] == pytest.approx(500)
    assert xs[1] - xs[0] == pytest.approx(xs[2] - xs[1])


def test_tag_scale_midpoint_for_empty_and_unknown_tags():
    scale = tag_scale(TAGS, SIZE.width)
    assert scale.position("") == pytest.approx(500)
    assert scale.position("never seen") == pytest.approx(500)


def test_tidy_hint_targets_column_and_mid_height():
    hint = position_hint(node("a", order_tag="1 todo"), LayoutMode.TIDY, SIZE, TAGS)
    assert hint.x == pytest.approx(tag_scale(TAGS, SIZE.width)("1 todo"))
    assert hint.y == pytest.approx(300)
    assert (hint.x_strength, hint.y_strength) == (0.8, 0.3)


def test_tidy_without_any_tags_has_no_targets():
    hint = position_hint(node("a"), LayoutMode.TIDY, SIZE, [])
    assert hint.is_empty


def test_free_layout_has_no_targets():
    hints = position_hints([node("a"), node("b", order_tag="x")], LayoutMode.FREE, SIZE, ["x"])
    assert all(h.is_empty for h in hints.values())


# --- eisenhower ---

@pytest.mark.parametrize("tag, expected", [
    ("urgent & important", -1),
    ("not urgent & important", 1),
    ("NOT URGENT", 1),
    ("important", 0),
    ("", 0),
])
def test_quadrant_axis_urgency(tag, expected):
    assert quadrant_axis(tag, "urgent") == expected


@pytest.mark.parametrize("tag, x, y", [
    ("urgent & important", 250, 150),
    ("not urgent & important", 750, 150),
    ("urgent & not important", 250, 450),
    ("not urgent & not important", 750, 450),
    ("someday", 500, 300),
])
def test_quadrant_hints(tag, x, y):
    hint = position_hint(node("a", matrix_tag=tag), LayoutMode.EISENHOWER, SIZE, [])
    assert (hint.x, hint.y) == (pytest.approx(x), pytest.approx(y))
    assert hint.x_strength == hint.y_strength == 0.8


# --- background layer ---

def test_tidy_background_has_column_per_tag_and_separators_between():
    layer = background_layer(LayoutMode.TIDY, SIZE, TAGS, INITIAL_PALETTE)
    rects = [p for p in layer if isinstance(p, BackgroundRect)]
    texts = [p for p in layer if isinstance(p, BackgroundText)]
    lines = [p for p in layer if isinstance(p, BackgroundLine)]
    assert len(rects) == 3
    assert [t.text for t in texts] == sorted(TAGS)
    assert len(lines) == 2
    assert [l.x1 for l in lines] == [pytest.approx(1000 / 3), pytest.approx(2000 / 3)]


def test_quadrant_background_has_two_axes_and_eight_label_lines():
    layer = background_layer(LayoutMode.EISENHOWER, SIZE, TAGS, INITIAL_PALETTE)
    lines = [p for p in layer if isinstance(p, BackgroundLine)]
    texts = [p for p in layer if isinstance(p, BackgroundText)]
    assert len(lines) == 2
    assert len(texts) == 2 * len(QUADRANT_LABELS) == 8


def test_free_background_is_empty():
    assert background_layer(LayoutMode.FREE, SIZE, TAGS, INITIAL_PALETTE) == []


def test_background_text_scales_on_phone():
    desktop = background_layer(LayoutMode.EISENHOWER, SIZE, [], INITIAL_PALETTE)
    phone = background_layer(LayoutMode.EISENHOWER, SIZE, [], INITIAL_PALETTE, phone_scale=0.8)
    d_text = next(p for p in desktop if isinstance(p, BackgroundText))
    p_text = next(p for p in phone if isinstance(p, BackgroundText))
    assert p_text.font_size == pytest.approx(d_text.font_size * 0.8)
