# backend/diagram_exchange/compiler/render_plantuml.py

from diagram_exchange.compiler.types import Graph


def render_plantuml(graph: Graph) -> str:
    lines = ["@startuml"]

    for node in graph.nodes:
        # PlantUML strings have no quote escape
        label = node.label.replace('"', "'")
        lines.append(f'rectangle "{label}" as {node.id}')

    lines.append("@enduml")
    return "\n".join(lines)
