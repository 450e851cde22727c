"""Headless Cytoscape service map.

Keeps the service map elements and the CSS classes that the browser map
toggles in response to hover, select and data events, and computes the
layout, so that a Cytoscape front end only has to render the exported JSON.
"""
import logging
from typing import Any
from typing import Callable
from typing import Dict
from typing import Iterable
from typing import List
from typing import Optional

import networkx as nx

from ml_job_analyzer.config.service_map import AGENT_NAME
from ml_job_analyzer.config.service_map import RUM_AGENT_NAMES
from ml_job_analyzer.config.service_map import animation_options
from ml_job_analyzer.config.service_map import cytoscape_options
from ml_job_analyzer.models.service_map import Element
from ml_job_analyzer.models.service_map import Viewport
from ml_job_analyzer.service_map.layout import breadthfirst_layout
from ml_job_analyzer.service_map.layout import center_viewport
from ml_job_analyzer.service_map.layout import fit_viewport
from ml_job_analyzer.service_map.layout import get_layout_options

logger = logging.getLogger(__name__)


def is_rum_agent_name(agent_name: Optional[str]) -> bool:
    return agent_name in RUM_AGENT_NAMES


class ServiceMap:
    """Service map graph with Cytoscape-style event handling."""

    def __init__(
        self,
        elements: Iterable[Dict[str, Any]],
        height: float,
        width: float,
        service_name: Optional[str] = None,
        style: Optional[Dict[str, Any]] = None,
    ):
        self.height = height
        self.width = width
        self.service_name = service_name
        # The height is required and kept apart from the rest of the style
        self.div_style = {**(style or {}), "height": height}
        self.viewport = Viewport()
        self.layout_options: Optional[Dict[str, Any]] = None
        self.selected: List[str] = []
        self._elements: Dict[str, Element] = {}
        self._graph = nx.MultiDiGraph()
        self._destroyed = False
        self._handlers: Dict[str, Callable[[Optional[str]], None]] = {
            "data": lambda target: self._data_handler(),
            "ready": lambda target: self._data_handler(),
            "mouseover": self.mouseover,
            "mouseout": self.mouseout,
            "select": self.select,
            "unselect": self.unselect,
        }

        initial_elements = []
        for definition in elements:
            element = Element.from_dict(definition)
            # prevents flash of unstyled elements
            element.add_class("invisible")
            initial_elements.append(element)
        self._add(initial_elements)

    @property
    def graph(self) -> nx.MultiDiGraph:
        self._check_alive()
        return self._graph

    def _check_alive(self) -> None:
        if self._destroyed:
            raise RuntimeError("The service map has been destroyed")

    def _add(self, elements: List[Element]) -> None:
        # Nodes go first so that edges can refer to nodes added in the same batch
        for element in sorted(elements, key=lambda e: e.is_edge):
            if element.id in self._elements:
                logger.debug(f"Element {element.id} already exists, skipping")
                continue
            if element.is_edge:
                source, target = str(element.data["source"]), str(element.data["target"])
                if source not in self._graph or target not in self._graph:
                    logger.warning(
                        f"Skipping edge {element.id}: {source} or {target} is not a node"
                    )
                    continue
                self._graph.add_edge(source, target, key=element.id)
            else:
                self._graph.add_node(element.id)
            self._elements[element.id] = element

    def get_element(self, element_id: str) -> Optional[Element]:
        self._check_alive()
        return self._elements.get(element_id)

    def nodes(self) -> List[Element]:
        return [e for e in self._elements.values() if e.is_node]

    def edges(self) -> List[Element]:
        return [e for e in self._elements.values() if e.is_edge]

    def connected_edges(self, element_id: str) -> List[Element]:
        """Edges touching a node; edges have no connected edges."""
        element = self._elements.get(element_id)
        if element is None or element.is_edge:
            return []
        keys = [key for _, _, key in self._graph.in_edges(element_id, keys=True)]
        keys += [key for _, _, key in self._graph.out_edges(element_id, keys=True)]
        return [self._elements[key] for key in dict.fromkeys(keys)]

    def select_roots(self) -> List[str]:
        """Graph roots plus the nodes of RUM agents, which start user journeys."""
        nodes = self.nodes()
        roots = [n.id for n in nodes if self._graph.in_degree(n.id) == 0]
        rum_nodes = [n.id for n in nodes if is_rum_agent_name(n.data.get(AGENT_NAME))]
        return list(dict.fromkeys(rum_nodes + roots))

    def reset_connected_edge_style(self, node_id: Optional[str] = None) -> None:
        for edge in self.edges():
            edge.remove_class("highlight")
        if node_id is not None:
            for edge in self.connected_edges(node_id):
                edge.add_class("highlight")

    def _data_handler(self) -> None:
        self._check_alive()
        if self.service_name:
            self.reset_connected_edge_style(self.service_name)
            # Add the "primary" class to the node if its id matches the serviceName.
            nodes = self.nodes()
            if nodes:
                for node in nodes:
                    node.remove_class("primary")
                primary = self._elements.get(self.service_name)
                if primary is not None and primary.is_node:
                    primary.add_class("primary")
        else:
            self.reset_connected_edge_style()

        if self._elements:
            self.run_layout(self.select_roots())

    def run_layout(self, roots: List[str]) -> None:
        self.layout_options = get_layout_options(roots, self.height, self.width)
        positions = breadthfirst_layout(self._graph, self.layout_options)
        for node_id, position in positions.items():
            self._elements[node_id].position = position
        if self.layout_options["fit"]:
            self.viewport = fit_viewport(
                positions, self.width, self.height, self.layout_options["padding"]
            )
        self._layout_stop()

    def _layout_stop(self) -> None:
        if self.service_name:
            focused_node = self._elements.get(self.service_name)
            if focused_node is not None and focused_node.position is not None:
                self.viewport.pan = center_viewport(
                    focused_node.position, self.viewport.zoom, self.width, self.height
                )
        # show elements after layout is applied
        for element in self._elements.values():
            element.remove_class("invisible")

    def ready(self) -> None:
        self._data_handler()

    def set_elements(self, elements: Iterable[Dict[str, Any]]) -> None:
        """Add new elements and re-run the data handler."""
        self._check_alive()
        self._add([Element.from_dict(definition) for definition in elements])
        self.trigger("data")

    def mouseover(self, target: Optional[str]) -> None:
        element = self.get_element(target)
        if element is None:
            return
        element.add_class("hover")
        for edge in self.connected_edges(target):
            edge.add_class("nodeHover")

    def mouseout(self, target: Optional[str]) -> None:
        element = self.get_element(target)
        if element is None:
            return
        element.remove_class("hover")
        for edge in self.connected_edges(target):
            edge.remove_class("nodeHover")

    def select(self, target: Optional[str]) -> None:
        element = self.get_element(target)
        if element is None or element.is_edge:
            return
        if target not in self.selected:
            self.selected.append(target)
        self.reset_connected_edge_style(target)

    def unselect(self, target: Optional[str]) -> None:
        element = self.get_element(target)
        if element is None or element.is_edge:
            return
        if target in self.selected:
            self.selected.remove(target)
        self.reset_connected_edge_style()

    def trigger(self, event: str, target: Optional[str] = None) -> None:
        self._check_alive()
        handler = self._handlers.get(event)
        if handler is None:
            raise ValueError(f"Unknown service map event: {event}")
        handler(target)

    def destroy(self) -> None:
        self._elements.clear()
        self._graph.clear()
        self.selected = []
        self._destroyed = True

    def to_elements(self) -> List[Dict[str, Any]]:
        self._check_alive()
        elements = []
        for element in self._elements.values():
            definition = element.to_dict()
            if element.id in self.selected:
                definition["selected"] = True
            elements.append(definition)
        return elements

    def to_cytoscape_json(self) -> Dict[str, Any]:
        """Elements, stylesheet and viewport for a Cytoscape front end."""
        return {
            **cytoscape_options,
            "elements": self.to_elements(),
            "layout": {
                "name": "preset",
                "fit": False,
                "animate": True,
                "animationDuration": animation_options["duration"],
                "animationEasing": animation_options["easing"],
                "roots": (self.layout_options or {}).get("roots"),
            },
            "zoom": self.viewport.zoom,
            "pan": self.viewport.pan.to_dict(),
        }
