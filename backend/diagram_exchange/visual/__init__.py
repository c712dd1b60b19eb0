# Introspection of draw.io documents: element graph, layout summary, suggestions

from diagram_exchange.visual.visual_schema import (
    Complexity,
    ElementDescriptor,
    ElementKind,
    IntrospectionResult,
    LayoutSummary,
    Position,
)
from diagram_exchange.visual.introspector import diagram_info, introspect

__all__ = [
    "Complexity",
    "ElementDescriptor",
    "ElementKind",
    "IntrospectionResult",
    "LayoutSummary",
    "Position",
    "diagram_info",
    "introspect",
]
