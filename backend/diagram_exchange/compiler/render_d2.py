# backend/diagram_exchange/compiler/render_d2.py
"""
D2 Diagram Renderer

D2 is a modern diagram language with auto-layout and built-in shapes.
Only nodes are emitted; a draw.io ellipse or rhombus keeps its shape.

Docs: https://d2lang.com/
"""

from diagram_exchange.compiler.types import Graph, Node
from diagram_exchange.visual.visual_schema import ElementKind


# D2 shape mappings from element kinds; anything else is D2's default rectangle
D2_SHAPE_MAP = {
    ElementKind.ELLIPSE: "oval",
    ElementKind.DIAMOND: "diamond",
}


def _render_node(node: Node) -> str:
    label = node.label.replace("\\", "\\\\").replace('"', '\\"')
    shape = D2_SHAPE_MAP.get(node.kind)
    if shape:
        return f'{node.id}: "{label}" {{ shape: {shape} }}'
    return f'{node.id}: "{label}"'


def render_d2(graph: Graph) -> str:
    lines = ["direction: down", ""]

    for node in graph.nodes:
        lines.append(_render_node(node))

    return "\n".join(lines)
