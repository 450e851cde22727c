"""Tests for the breadth-first service map layout."""

import math

import networkx as nx
import pytest

from ml_job_analyzer.models.service_map import Position
from ml_job_analyzer.service_map.layout import breadthfirst_layout
from ml_job_analyzer.service_map.layout import center_viewport
from ml_job_analyzer.service_map.layout import fit_viewport
from ml_job_analyzer.service_map.layout import get_layout_options
from ml_job_analyzer.service_map.layout import rotate_point


def test_rotate_point():
    rotated = rotate_point(Position(1, 0), 90)
    assert rotated.x == pytest.approx(0, abs=1e-9)
    assert rotated.y == pytest.approx(1)

    rotated = rotate_point(Position(3, 4), -95)
    assert math.hypot(rotated.x, rotated.y) == pytest.approx(5)


def test_layout_options():
    options = get_layout_options(["a"], height=600, width=800)

    assert options["name"] == "breadthfirst"
    assert options["roots"] == ["a"]
    assert options["fit"] is True
    assert options["padding"] == 40
    assert options["spacingFactor"] == 0.85
    assert options["animate"] is True
    assert options["animationDuration"] == 250
    assert options["boundingBox"] == {"x1": 0, "y1": 0, "w": 600, "h": 800}
    transformed = options["transform"]("a", Position(0, 10))
    expected = rotate_point(Position(0, 10), -95)
    assert (transformed.x, transformed.y) == pytest.approx((expected.x, expected.y))


def test_layout_options_without_roots():
    assert get_layout_options([], 100, 100)["roots"] is None


def test_breadthfirst_layout_flows_left_to_right():
    graph = nx.DiGraph([("a", "b"), ("b", "c")])

    positions = breadthfirst_layout(graph, get_layout_options(["a"], height=600, width=800))

    assert set(positions) == {"a", "b", "c"}
    assert positions["a"].x < positions["b"].x < positions["c"].x


def test_breadthfirst_layout_places_siblings_in_one_column():
    graph = nx.DiGraph([("a", "b"), ("a", "c")])
    options = get_layout_options(["a"], height=600, width=800)
    options["transform"] = None

    positions = breadthfirst_layout(graph, options)

    # Without rotation, depth grows along y and siblings share a row
    assert positions["b"].y == pytest.approx(positions["c"].y)
    assert positions["a"].y < positions["b"].y
    assert positions["b"].x != positions["c"].x


def test_breadthfirst_layout_spacing_factor_scales_about_center():
    graph = nx.DiGraph([("a", "b"), ("b", "c")])
    options = get_layout_options(["a"], height=600, width=800)
    options["transform"] = None

    positions = breadthfirst_layout(graph, options)

    # Rows at 200, 400, 600 shrink by 0.85 around 400
    assert positions["a"].y == pytest.approx(230)
    assert positions["b"].y == pytest.approx(400)
    assert positions["c"].y == pytest.approx(570)
    assert positions["a"].x == pytest.approx(300)


def test_breadthfirst_layout_roots_components_without_roots():
    graph = nx.DiGraph([("a", "b"), ("x", "y"), ("y", "x"), ("y", "z")])
    options = get_layout_options(["a"], height=600, width=800)
    options["transform"] = None

    positions = breadthfirst_layout(graph, options)

    assert set(positions) == {"a", "b", "x", "y", "z"}
    # y has the highest degree in its component, so it sits on the root row
    assert positions["y"].y == pytest.approx(positions["a"].y)


def test_breadthfirst_layout_ignores_unknown_roots():
    graph = nx.DiGraph([("a", "b")])

    positions = breadthfirst_layout(graph, get_layout_options(["missing"], 100, 100))

    assert set(positions) == {"a", "b"}


def test_breadthfirst_layout_empty_graph():
    assert breadthfirst_layout(nx.DiGraph(), get_layout_options([], 100, 100)) == {}


def test_fit_viewport_single_node():
    viewport = fit_viewport({"a": Position(0, 0)}, width=100, height=100, padding=0, node_size=40)

    assert viewport.zoom == pytest.approx(2.5)
    assert (viewport.pan.x, viewport.pan.y) == pytest.approx((50, 50))


def test_fit_viewport_clamps_zoom():
    viewport = fit_viewport(
        {"a": Position(0, 0), "b": Position(100000, 0)}, width=100, height=100
    )

    assert viewport.zoom == pytest.approx(0.2)


def test_fit_viewport_without_positions():
    viewport = fit_viewport({}, 100, 100)

    assert viewport.zoom == 1.0


def test_center_viewport():
    pan = center_viewport(Position(10, 20), zoom=2, width=100, height=200)

    assert (pan.x, pan.y) == (30, 60)
