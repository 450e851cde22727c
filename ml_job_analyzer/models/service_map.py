"""Data models for service map graph elements.

Elements use the Cytoscape JSON shape: ``{"data": {...}, "classes": "a b"}``,
where an element is an edge when its data has both ``source`` and ``target``.
"""

from dataclasses import dataclass
from dataclasses import field
from typing import Any
from typing import Dict
from typing import List
from typing import Optional


@dataclass
class Position:
    x: float
    y: float

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y}


@dataclass
class BoundingBox:
    x1: float
    y1: float
    w: float
    h: float


@dataclass
class Viewport:
    """Zoom and pan that a renderer should apply to show the laid out graph."""

    zoom: float = 1.0
    pan: Position = field(default_factory=lambda: Position(0.0, 0.0))


@dataclass
class Element:
    """A node or an edge of the service map."""

    data: Dict[str, Any]
    classes: List[str] = field(default_factory=list)
    position: Optional[Position] = field(default=None)

    @property
    def id(self) -> str:
        return self.data["id"]

    @property
    def is_edge(self) -> bool:
        return "source" in self.data and "target" in self.data

    @property
    def is_node(self) -> bool:
        return not self.is_edge

    def has_class(self, name: str) -> bool:
        return name in self.classes

    def add_class(self, name: str) -> None:
        if name not in self.classes:
            self.classes.append(name)

    def remove_class(self, name: str) -> None:
        if name in self.classes:
            self.classes.remove(name)

    @classmethod
    def from_dict(cls, definition: Dict[str, Any]) -> "Element":
        """Create Element from a Cytoscape element definition."""
        data = dict(definition.get("data") or {})
        if "id" not in data:
            if "source" in data and "target" in data:
                data["id"] = f"{data['source']}~{data['target']}"
            else:
                raise ValueError(f"Element definition without an id: {definition!r}")
        data["id"] = str(data["id"])
        classes = definition.get("classes") or []
        if isinstance(classes, str):
            classes = classes.split()
        position = definition.get("position")
        return cls(
            data=data,
            classes=list(dict.fromkeys(classes)),
            position=Position(position["x"], position["y"]) if position else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a Cytoscape element definition."""
        result: Dict[str, Any] = {
            "group": "edges" if self.is_edge else "nodes",
            "data": dict(self.data),
            "classes": " ".join(self.classes),
        }
        if self.position is not None and self.is_node:
            result["position"] = self.position.to_dict()
        return result
