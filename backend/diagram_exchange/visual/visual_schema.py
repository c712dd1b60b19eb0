from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class ElementKind(str, Enum):
    RECTANGLE = "rectangle"
    ELLIPSE = "ellipse"
    DIAMOND = "diamond"
    ARROW = "arrow"
    SHAPE = "shape"


class Complexity(str, Enum):
    SIMPLE = "simple"           # <= 5 cells
    MODERATE = "moderate"       # 6-15 cells
    COMPLEX = "complex"         # > 15 cells


@dataclass(frozen=True)
class Position:
    x: float = 0.0
    y: float = 0.0


@dataclass
class ElementDescriptor:
    id: str
    kind: ElementKind
    label: str
    position: Position = field(default_factory=Position)
    connections: List[str] = field(default_factory=list)   # filled only with link_edges

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "label": self.label,
            "position": {"x": self.position.x, "y": self.position.y},
            "connections": list(self.connections),
        }


@dataclass(frozen=True)
class LayoutSummary:
    width: float
    height: float
    complexity: Complexity

    def to_dict(self) -> dict:
        return {
            "width": self.width,
            "height": self.height,
            "complexity": self.complexity.value,
        }


@dataclass
class IntrospectionResult:
    elements: List[ElementDescriptor] = field(default_factory=list)
    layout: Optional[LayoutSummary] = None
    suggestions: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "elements": [e.to_dict() for e in self.elements],
            "layout": self.layout.to_dict() if self.layout else None,
            "suggestions": list(self.suggestions),
        }
