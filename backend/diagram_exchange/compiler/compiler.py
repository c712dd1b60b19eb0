# backend/diagram_exchange/compiler/compiler.py
"""
One-way projection of a draw.io document into other text notations.

Only labelled, non-edge content cells are emitted. Connections are not
rendered, so a projection cannot be turned back into the source document.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, List, Union

from diagram_exchange.compiler.render_d2 import render_d2
from diagram_exchange.compiler.render_mermaid import render_mermaid
from diagram_exchange.compiler.render_plantuml import render_plantuml
from diagram_exchange.compiler.types import Graph, Node
from diagram_exchange.ir.diagram import DiagramDocument
from diagram_exchange.ir.errors import ErrorKind, PipelineError
from diagram_exchange.visual.introspector import display_label, element_kind


class TargetFormat(str, Enum):
    NATIVE = "native"
    MERMAID = "mermaid"
    PLANTUML = "plantuml"
    D2 = "d2"


# ============================================================
# Projection results (tagged union)
# ============================================================

@dataclass(frozen=True)
class NativeXml:
    source: str
    format: ClassVar[TargetFormat] = TargetFormat.NATIVE


@dataclass(frozen=True)
class MermaidText:
    source: str
    format: ClassVar[TargetFormat] = TargetFormat.MERMAID


@dataclass(frozen=True)
class PlantUmlText:
    source: str
    format: ClassVar[TargetFormat] = TargetFormat.PLANTUML


@dataclass(frozen=True)
class D2Text:
    source: str
    format: ClassVar[TargetFormat] = TargetFormat.D2


Projection = Union[NativeXml, MermaidText, PlantUmlText, D2Text]


# ============================================================
# ID helper
# ============================================================

def safe_id(text: str) -> str:
    """Strip everything outside [A-Za-z0-9_]."""
    return re.sub(r"[^a-zA-Z0-9_]", "", text or "")


def build_graph(doc: DiagramDocument) -> Graph:
    graph = Graph()
    used = set()

    for cell in doc.content_cells:
        if cell.is_edge:
            continue
        label = display_label(cell.label)
        if not label:
            continue

        base = safe_id(cell.id) or f"n{len(graph.nodes)}"
        node_id = base
        suffix = 2
        while node_id in used:
            node_id = f"{base}_{suffix}"
            suffix += 1
        used.add(node_id)

        graph.nodes.append(Node(id=node_id, label=label, kind=element_kind(cell.style)))

    return graph


_RENDERERS = {
    TargetFormat.MERMAID: (render_mermaid, MermaidText),
    TargetFormat.PLANTUML: (render_plantuml, PlantUmlText),
    TargetFormat.D2: (render_d2, D2Text),
}


def supported_formats() -> List[str]:
    return [f.value for f in TargetFormat]


def project_to(doc: DiagramDocument, target: Union[TargetFormat, str]) -> Union[Projection, PipelineError]:
    """
    Project a document into `target`.

    Returns a PipelineError(ConversionUnsupported) for an unknown target;
    never raises for one.
    """
    try:
        fmt = TargetFormat(target.lower() if isinstance(target, str) else target)
    except (ValueError, AttributeError):
        return PipelineError(
            ErrorKind.CONVERSION_UNSUPPORTED,
            f"Unsupported target '{target}'. Supported: {', '.join(supported_formats())}",
        )

    if fmt == TargetFormat.NATIVE:
        return NativeXml(source=doc.source)

    render, wrap = _RENDERERS[fmt]
    return wrap(source=render(build_graph(doc)))
