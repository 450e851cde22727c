"""Cytoscape options for the service map.

Sizes and colours follow the EUI light theme so that a front end rendering
the exported JSON looks like the APM service map.
"""

AGENT_NAME = "agent.name"
RUM_AGENT_NAMES = ("js-base", "rum-js")

node_height = 40

animation_options = {
    "duration": 250,
    "easing": "cubic-bezier(.34,1.61,.7,1)",
}

_line_color = "#C5CCD7"
_primary_color = "#006BB4"
_dark_shade = "#69707D"

z_index_node = 200
z_index_edge = 100
z_index_edge_highlight = 110
z_index_edge_hover = 120

style = [
    {
        "selector": "node",
        "style": {
            "background-color": "#FFFFFF",
            "border-color": _dark_shade,
            "border-style": "solid",
            "border-width": 1,
            "color": "#343741",
            "font-family": "Inter UI, Segoe UI, Helvetica, Arial, sans-serif",
            "font-size": "12px",
            "height": node_height,
            "label": "data(id)",
            "min-zoomed-font-size": 24,
            "overlay-opacity": 0,
            "shape": "ellipse",
            "text-margin-y": 8,
            "text-max-width": "200px",
            "text-valign": "bottom",
            "text-wrap": "ellipsis",
            "width": node_height,
            "z-index": z_index_node,
        },
    },
    {
        "selector": "edge",
        "style": {
            "curve-style": "taxi",
            "taxi-direction": "rightward",
            "line-color": _line_color,
            "overlay-opacity": 0,
            "target-arrow-color": _line_color,
            "target-arrow-shape": "triangle",
            "source-distance-from-node": 8,
            "target-distance-from-node": 8,
            "width": 1,
            "z-index": z_index_edge,
        },
    },
    {
        "selector": "edge[bidirectional]",
        "style": {
            "source-arrow-shape": "triangle",
            "source-arrow-color": _line_color,
            "target-arrow-shape": "triangle",
        },
    },
    {"selector": ".invisible", "style": {"visibility": "hidden"}},
    {
        "selector": "edge.nodeHover",
        "style": {
            "width": 2,
            "z-index": z_index_edge_hover,
            "line-color": _dark_shade,
            "source-arrow-color": _dark_shade,
            "target-arrow-color": _dark_shade,
        },
    },
    {"selector": "node.hover", "style": {"border-width": 2}},
    {
        "selector": "node.primary, node:selected",
        "style": {"border-color": _primary_color, "border-width": 2},
    },
    {
        "selector": "edge.highlight",
        "style": {
            "width": 2,
            "line-color": _primary_color,
            "source-arrow-color": _primary_color,
            "target-arrow-color": _primary_color,
            "z-index": z_index_edge_highlight,
        },
    },
]

cytoscape_options = {
    "autoungrabify": True,
    "boxSelectionEnabled": False,
    "maxZoom": 3,
    "minZoom": 0.2,
    "style": style,
}
