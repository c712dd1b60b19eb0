# backend/diagram_exchange/compiler/render_mermaid.py

from diagram_exchange.compiler.types import Graph


def mermaid_label(label: str) -> str:
    return label.replace('"', "#quot;")


def render_mermaid(graph: Graph) -> str:
    lines = ["flowchart TD"]

    for node in graph.nodes:
        lines.append(f'    {node.id}["{mermaid_label(node.label)}"]')

    return "\n".join(lines)
