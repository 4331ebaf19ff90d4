"""Graph model and dataset parsing tests."""

import logging

import pytest

from focus_map.models import TechniqueGraph, TechniqueLink, TechniqueNode, derive_links
from focus_map.parser import (
    graph_to_yaml,
    load_dataset,
    parse_csv,
    parse_rows,
    parse_yaml,
)
from focus_map.themes import DEFAULT_NODE_COLOR, get_palette


def row(name, **extra):
    return {"technique name": name, **extra}


# --- links ---

def test_mutual_listing_produces_one_link():
    graph = parse_rows([
        row("A", **{"connected techniques": "B, C"}),
        row("B", **{"connected techniques": "A"}),
        row("C"),
    ])
    keys = sorted(link.key for link in graph.links)
    assert keys == [("A", "B"), ("A", "C")]


def test_unknown_and_self_links_are_dropped():
    nodes = [
        TechniqueNode(id="A", connected_techniques=["A", "ghost", "B"]),
        TechniqueNode(id="B"),
    ]
    links = derive_links(nodes)
    assert [(l.source, l.target) for l in links] == [("A", "B")]


def test_link_helpers():
    link = TechniqueLink(source="b", target="a")
    assert link.key == ("a", "b")
    assert link.touches("a") and link.touches("b")
    assert not link.touches("c")
    assert link.other("a") == "b"


def test_graph_neighbors_and_degree():
    graph = parse_rows([
        row("A", **{"connected techniques": "B,C"}),
        row("B"),
        row("C"),
        row("D"),
    ])
    assert graph.neighbors("A") == {"B", "C"}
    assert graph.neighbors("B") == {"A"}
    assert graph.degree("D") == 0
    assert graph.neighbors("missing") == set()


def test_duplicate_ids_rejected_by_graph():
    with pytest.raises(ValueError):
        TechniqueGraph(nodes=[TechniqueNode(id="A"), TechniqueNode(id="A")])


def test_order_tags_are_sorted_and_non_empty():
    graph = parse_rows([
        row("A", order_tag="2 doing"),
        row("B", order_tag=""),
        row("C", order_tag="1 todo"),
        row("D", order_tag="2 doing"),
    ])
    assert graph.order_tags() == ["1 todo", "2 doing"]


# --- row normalization ---

def test_rows_without_name_are_dropped():
    graph = parse_rows([row(""), row("  "), {"type": "x"}, row("kept")])
    assert [n.id for n in graph.nodes] == ["kept"]


def test_duplicate_rows_keep_the_first(caplog):
    with caplog.at_level(logging.WARNING):
        graph = parse_rows([row("A", type="first"), row("A", type="second")])
    assert len(graph.nodes) == 1
    assert graph.get_node("A").type == "first"
    assert "Duplicate technique" in caplog.text


@pytest.mark.parametrize("raw", [None, "", "abc", "0", "-2", "nan"])
def test_invalid_scale_defaults_to_one(raw):
    graph = parse_rows([row("A", scale=raw)])
    assert graph.get_node("A").scale == 1.0


def test_valid_scale_is_kept():
    graph = parse_rows([row("A", scale="2.5")])
    assert graph.get_node("A").scale == 2.5


def test_color_fallbacks():
    graph = parse_rows([
        row("only-pretty", pretty_color="#111111"),
        row("only-color", color="#222222"),
        row("none"),
        row("both", color="#333333", pretty_color="#444444"),
    ])
    assert graph.get_node("only-pretty").color == "#111111"
    assert graph.get_node("only-color").pretty_color == "#222222"
    assert graph.get_node("none").color == DEFAULT_NODE_COLOR
    assert graph.get_node("none").pretty_color == DEFAULT_NODE_COLOR
    both = graph.get_node("both")
    assert (both.color, both.pretty_color) == ("#333333", "#444444")


def test_connections_are_trimmed_and_empties_dropped():
    graph = parse_rows([
        row("A", **{"connected techniques": " B , ,C,"}),
        row("B"),
        row("C"),
    ])
    assert graph.get_node("A").connected_techniques == ["B", "C"]


def test_parse_csv():
    text = (
        "technique name,type,order_tag,scale,connected techniques\n"
        'pomodoro,timeboxing,1 todo,2,"deep work"\n'
        "deep work,environment,,,\n"
    )
    graph = parse_csv(text)
    assert [n.id for n in graph.nodes] == ["pomodoro", "deep work"]
    assert graph.get_node("pomodoro").scale == 2.0
    assert len(graph.links) == 1


def test_parse_yaml_with_list_connections():
    graph = parse_yaml(
        "title: Focus\n"
        "techniques:\n"
        "  - technique name: A\n"
        "    connected techniques: [B]\n"
        "  - technique name: B\n"
    )
    assert graph.title == "Focus"
    assert [l.key for l in graph.links] == [("A", "B")]


@pytest.mark.parametrize("text", [
    "",
    "just a string",
    "nodes: []",
    "techniques: oops",
    "techniques:\n  - just a string\n",
])
def test_parse_yaml_rejects_other_documents(text):
    with pytest.raises(ValueError):
        parse_yaml(text)


def test_yaml_round_trip_keeps_fields():
    graph = parse_rows([
        row("A", type="t", order_tag="done", scale="3", automation_function="tidyUp",
            **{"connected techniques": "B"}),
        row("B", color="#123456"),
    ])
    again = parse_yaml(graph_to_yaml(graph))
    assert again.get_node("A").automation_function == "tidyUp"
    assert again.get_node("A").scale == 3.0
    assert again.get_node("B").color == "#123456"
    assert [l.key for l in again.links] == [("A", "B")]


def test_load_dataset_missing_file_returns_empty_graph(tmp_path, caplog):
    with caplog.at_level(logging.ERROR):
        graph = load_dataset(str(tmp_path / "missing.csv"))
    assert graph.is_empty()
    assert "Error loading dataset" in caplog.text


def test_load_dataset_with_malformed_entries_returns_empty_graph(tmp_path, caplog):
    path = tmp_path / "techniques.yaml"
    path.write_text("techniques:\n  - just a string\n")
    with caplog.at_level(logging.ERROR):
        graph = load_dataset(str(path))
    assert graph.is_empty()
    assert "Error loading dataset" in caplog.text


def test_loaders_use_the_given_default_color(tmp_path):
    assert parse_rows([row("A")], default_color="#ABCDEF").get_node("A").color == "#ABCDEF"
    assert parse_yaml("techniques:\n  - technique name: A\n", "#ABCDEF").get_node("A").color == "#ABCDEF"
    assert parse_csv("technique name\nA\n", default_color="#ABCDEF").get_node("A").color == "#ABCDEF"

    path = tmp_path / "techniques.csv"
    path.write_text("technique name,color\nA,\nB,#123456\n")
    graph = load_dataset(str(path), "#ABCDEF")
    assert graph.get_node("A").color == "#ABCDEF"
    assert graph.get_node("B").color == "#123456"


def test_load_dataset_dispatches_on_suffix(tmp_path):
    path = tmp_path / "techniques.yml"
    path.write_text("techniques:\n  - technique name: A\n")
    assert [n.id for n in load_dataset(str(path)).nodes] == ["A"]

    csv_path = tmp_path / "techniques.csv"
    csv_path.write_text("\ufefftechnique name,type\nB,x\n", encoding="utf-8")
    assert [n.id for n in load_dataset(str(csv_path)).nodes] == ["B"]


# --- palettes ---

def test_unknown_palette_raises():
    assert get_palette("pretty").background == "#262123"
    with pytest.raises(ValueError):
        get_palette("neon")
