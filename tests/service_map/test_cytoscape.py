"""Tests for the headless service map event handling."""

import pytest

from ml_job_analyzer.service_map.cytoscape import ServiceMap
from ml_job_analyzer.service_map.cytoscape import is_rum_agent_name
from ml_job_analyzer.service_map.layout import center_viewport


def _classes(service_map, element_id):
    return service_map.get_element(element_id).classes


@pytest.fixture
def service_map(service_map_elements):
    return ServiceMap(service_map_elements, height=600, width=800, service_name="api")


def test_is_rum_agent_name():
    assert is_rum_agent_name("rum-js")
    assert is_rum_agent_name("js-base")
    assert not is_rum_agent_name("python")
    assert not is_rum_agent_name(None)


def test_initial_elements_are_invisible(service_map):
    assert all("invisible" in e["classes"].split() for e in service_map.to_elements())


def test_container_style_gets_height(service_map_elements):
    service_map = ServiceMap(service_map_elements, height=500, width=800, style={"width": "100%"})

    assert service_map.div_style == {"width": "100%", "height": 500}


def test_edges_with_missing_nodes_are_skipped(service_map_elements):
    elements = service_map_elements + [{"data": {"id": "x~y", "source": "x", "target": "y"}}]

    service_map = ServiceMap(elements, height=600, width=800)

    assert service_map.get_element("x~y") is None
    assert len(service_map.edges()) == 2


def test_select_roots_unions_rum_nodes_and_graph_roots(service_map_elements):
    elements = service_map_elements + [
        {"data": {"id": "worker"}},
        {"data": {"id": "browser", "agent.name": "js-base"}},
        {"data": {"id": "api~browser", "source": "api", "target": "browser"}},
    ]
    service_map = ServiceMap(elements, height=600, width=800)

    assert service_map.select_roots() == ["frontend", "browser", "worker"]


def test_ready_highlights_the_primary_service(service_map):
    service_map.ready()

    assert "primary" in _classes(service_map, "api")
    assert "primary" not in _classes(service_map, "db")
    assert "highlight" in _classes(service_map, "frontend~api")
    assert "highlight" in _classes(service_map, "api~db")


def test_ready_lays_out_and_shows_elements(service_map):
    service_map.ready()

    assert all("invisible" not in e["classes"].split() for e in service_map.to_elements())
    positions = {n.id: n.position for n in service_map.nodes()}
    assert all(p is not None for p in positions.values())
    assert positions["frontend"].x < positions["api"].x < positions["db"].x
    assert service_map.layout_options["roots"] == ["frontend"]


def test_ready_centers_on_the_primary_service(service_map):
    service_map.ready()

    api = service_map.get_element("api")
    expected = center_viewport(api.position, service_map.viewport.zoom, 800, 600)
    assert service_map.viewport.pan == expected


def test_ready_without_service_name(service_map_elements):
    service_map = ServiceMap(service_map_elements, height=600, width=800)
    service_map.get_element("api~db").add_class("highlight")

    service_map.ready()

    assert all("highlight" not in e.classes for e in service_map.edges())
    assert all("primary" not in n.classes for n in service_map.nodes())


def test_ready_without_elements():
    service_map = ServiceMap([], height=600, width=800, service_name="api")

    service_map.ready()

    assert service_map.layout_options is None
    assert service_map.to_elements() == []


def test_mouseover_and_mouseout_node(service_map):
    service_map.trigger("mouseover", "api")

    assert "hover" in _classes(service_map, "api")
    assert "nodeHover" in _classes(service_map, "frontend~api")
    assert "nodeHover" in _classes(service_map, "api~db")

    service_map.trigger("mouseout", "api")

    assert "hover" not in _classes(service_map, "api")
    assert all("nodeHover" not in e.classes for e in service_map.edges())


def test_mouseover_edge(service_map):
    service_map.trigger("mouseover", "api~db")

    assert "hover" in _classes(service_map, "api~db")
    assert "nodeHover" not in _classes(service_map, "frontend~api")


def test_select_and_unselect(service_map):
    service_map.ready()

    service_map.trigger("select", "db")

    assert "highlight" in _classes(service_map, "api~db")
    assert "highlight" not in _classes(service_map, "frontend~api")
    assert service_map.to_cytoscape_json()["elements"][2]["selected"] is True

    service_map.trigger("unselect", "db")

    assert all("highlight" not in e.classes for e in service_map.edges())
    assert service_map.selected == []


def test_select_edge_is_ignored(service_map):
    service_map.trigger("select", "api~db")

    assert service_map.selected == []


def test_set_elements_adds_new_elements_and_relayouts(service_map):
    service_map.ready()

    service_map.set_elements(
        [
            {"data": {"id": "api"}},
            {"data": {"id": "cache"}},
            {"data": {"id": "api~cache", "source": "api", "target": "cache"}},
        ]
    )

    cache = service_map.get_element("cache")
    assert cache.position is not None
    assert "highlight" in _classes(service_map, "api~cache")
    assert len(service_map.nodes()) == 4


def test_unknown_event(service_map):
    with pytest.raises(ValueError):
        service_map.trigger("tap", "api")


def test_destroy(service_map):
    service_map.destroy()

    with pytest.raises(RuntimeError):
        service_map.trigger("data")
    with pytest.raises(RuntimeError):
        service_map.to_elements()


def test_to_cytoscape_json(service_map):
    service_map.ready()

    result = service_map.to_cytoscape_json()

    assert result["layout"]["name"] == "preset"
    assert result["zoom"] == service_map.viewport.zoom
    assert result["layout"]["roots"] == ["frontend"]
    assert set(result) == {
        "elements",
        "style",
        "layout",
        "zoom",
        "pan",
        "autoungrabify",
        "boxSelectionEnabled",
        "minZoom",
        "maxZoom",
    }
    assert any(rule["selector"] == "edge.highlight" for rule in result["style"])
    nodes = [e for e in result["elements"] if e["group"] == "nodes"]
    assert all("position" in node for node in nodes)
