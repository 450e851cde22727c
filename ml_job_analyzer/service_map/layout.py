"""Breadth-first layout of the service map.

Nodes are placed in rows by their BFS depth from the selected roots, which
gives a top to bottom flow; every position is then rotated counter-clockwise
so that the map reads left to right.
"""
import logging
import math
from typing import Any
from typing import Dict
from typing import Iterable
from typing import List
from typing import Optional

import networkx as nx
import numpy as np

from ml_job_analyzer.config.service_map import animation_options
from ml_job_analyzer.config.service_map import cytoscape_options
from ml_job_analyzer.config.service_map import node_height
from ml_job_analyzer.models.service_map import BoundingBox
from ml_job_analyzer.models.service_map import Position
from ml_job_analyzer.models.service_map import Viewport

logger = logging.getLogger(__name__)

# The extra 5° separates overlapping taxi-styled edges.
LAYOUT_ROTATION_DEGREES = -95


def rotate_point(point: Position, degrees_rotated: float) -> Position:
    """Rotate a point around the origin; positive degrees turn clockwise on screen."""
    theta = math.radians(degrees_rotated)
    cos_theta = math.cos(theta)
    sin_theta = math.sin(theta)
    return Position(
        x=point.x * cos_theta - point.y * sin_theta,
        y=point.x * sin_theta + point.y * cos_theta,
    )


def get_layout_options(selected_roots: List[str], height: float, width: float) -> Dict[str, Any]:
    return {
        "name": "breadthfirst",
        "roots": selected_roots if selected_roots else None,
        "fit": True,
        "padding": node_height,
        "spacingFactor": 0.85,
        "animate": True,
        "animationEasing": animation_options["easing"],
        "animationDuration": animation_options["duration"],
        # Rotate from top→bottom to left→right
        "transform": lambda node, pos: rotate_point(pos, LAYOUT_ROTATION_DEGREES),
        # Width and height are swapped to compensate for the rotation
        "boundingBox": {"x1": 0, "y1": 0, "w": height, "h": width},
    }


def _component_roots(graph: nx.Graph, roots: Optional[Iterable[str]]) -> List[str]:
    """Use the given roots, plus the highest-degree node of every component without one."""
    selected = [root for root in dict.fromkeys(roots or []) if root in graph]
    missing = set(roots or []) - set(selected)
    if missing:
        logger.debug(f"Ignoring layout roots not in the graph: {sorted(missing)}")

    for component in nx.connected_components(graph):
        if not component.intersection(selected):
            ordered = [n for n in graph.nodes if n in component]
            selected.append(max(ordered, key=graph.degree))
    return selected


def breadthfirst_layout(
    graph: nx.Graph,
    options: Dict[str, Any],
    min_spacing: float = node_height,
) -> Dict[str, Position]:
    """Compute node positions for a breadthfirst layout described by options."""
    if graph.number_of_nodes() == 0:
        return {}

    undirected = graph.to_undirected(as_view=True) if graph.is_directed() else graph
    roots = _component_roots(undirected, options.get("roots"))
    depths = [list(layer) for layer in nx.bfs_layers(undirected, roots)]

    bb = BoundingBox(**options["boundingBox"])
    distance_y = max(bb.h / (len(depths) + 1), min_spacing)
    ids: List[str] = []
    coords = []
    for depth, layer in enumerate(depths):
        distance_x = max(bb.w / (len(layer) + 1), min_spacing)
        for index, node_id in enumerate(layer):
            ids.append(node_id)
            coords.append((bb.x1 + (index + 1) * distance_x, bb.y1 + (depth + 1) * distance_y))

    points = np.array(coords, dtype=float)
    spacing_factor = options.get("spacingFactor", 1)
    if spacing_factor != 1:
        center = (points.min(axis=0) + points.max(axis=0)) / 2
        points = center + (points - center) * spacing_factor

    transform = options.get("transform")
    positions = {}
    for node_id, (x, y) in zip(ids, points):
        position = Position(float(x), float(y))
        positions[node_id] = transform(node_id, position) if transform else position
    return positions


def fit_viewport(
    positions: Dict[str, Position],
    width: float,
    height: float,
    padding: float = 0,
    node_size: float = node_height,
    min_zoom: float = cytoscape_options["minZoom"],
    max_zoom: float = cytoscape_options["maxZoom"],
) -> Viewport:
    """Zoom and pan so that every node fits in a width x height container."""
    if not positions:
        return Viewport()

    points = np.array([(p.x, p.y) for p in positions.values()], dtype=float)
    half = node_size / 2
    x1, y1 = points.min(axis=0) - half
    x2, y2 = points.max(axis=0) + half

    zoom = min((width - 2 * padding) / (x2 - x1), (height - 2 * padding) / (y2 - y1))
    zoom = float(np.clip(zoom, min_zoom, max_zoom))
    return Viewport(
        zoom=zoom,
        pan=Position(
            x=float((width - zoom * (x1 + x2)) / 2),
            y=float((height - zoom * (y1 + y2)) / 2),
        ),
    )


def center_viewport(position: Position, zoom: float, width: float, height: float) -> Position:
    """Pan that places position at the centre of the container."""
    return Position(x=width / 2 - zoom * position.x, y=height / 2 - zoom * position.y)
