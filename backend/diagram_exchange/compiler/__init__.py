from diagram_exchange.compiler.compiler import (
    D2Text,
    MermaidText,
    NativeXml,
    PlantUmlText,
    Projection,
    TargetFormat,
    project_to,
)

__all__ = [
    "D2Text",
    "MermaidText",
    "NativeXml",
    "PlantUmlText",
    "Projection",
    "TargetFormat",
    "project_to",
]
