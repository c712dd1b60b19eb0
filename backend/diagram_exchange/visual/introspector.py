"""
Introspector - walks a valid draw.io document into an element graph
plus a layout/complexity summary and rule-based suggestions.
"""

import html
import re
from typing import Dict, List

from diagram_exchange.ir.diagram import Cell, DiagramDocument, parse_style
from diagram_exchange.visual.visual_schema import (
    Complexity,
    ElementDescriptor,
    ElementKind,
    IntrospectionResult,
    LayoutSummary,
    Position,
)

LAYOUT_PADDING = 200
SIMPLE_MAX_CELLS = 5
MODERATE_MAX_CELLS = 15
GROUPING_THRESHOLD = 10

SUGGEST_MORE_ELEMENTS = "Consider adding more elements to make the diagram more informative"
SUGGEST_SPLIT = "The diagram is quite complex - consider breaking it into smaller, focused diagrams"
SUGGEST_GROUPING = "Consider using grouping or layers to organize related elements"
SUGGEST_LABELS = "Add descriptive labels to make the diagram more understandable"

_BR_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")
_WS_RE = re.compile(r"\s+")

_FALSY = {"0", "false", "none", ""}


def display_label(value: str) -> str:
    """Cell value as plain text: HTML tags dropped, <br> as a space, entities unescaped."""
    text = _BR_RE.sub(" ", value or "")
    text = _TAG_RE.sub("", text)
    text = html.unescape(text)
    return _WS_RE.sub(" ", text).strip()


def element_kind(style: str) -> ElementKind:
    styles = parse_style(style)

    if styles.get("rounded", "0").lower() not in _FALSY:
        return ElementKind.RECTANGLE
    if "ellipse" in styles or styles.get("shape") == "ellipse":
        return ElementKind.ELLIPSE
    if "rhombus" in styles or styles.get("shape") == "rhombus":
        return ElementKind.DIAMOND
    if any("arrow" in key.lower() or "arrow" in value.lower() for key, value in styles.items()):
        return ElementKind.ARROW
    return ElementKind.SHAPE


def classify_complexity(cell_count: int) -> Complexity:
    if cell_count <= SIMPLE_MAX_CELLS:
        return Complexity.SIMPLE
    if cell_count <= MODERATE_MAX_CELLS:
        return Complexity.MODERATE
    return Complexity.COMPLEX


def _outgoing(doc: DiagramDocument) -> Dict[str, List[str]]:
    out: Dict[str, List[str]] = {}
    for cell in doc.cells:
        if cell.is_edge and cell.source and cell.target:
            targets = out.setdefault(cell.source, [])
            if cell.target not in targets:
                targets.append(cell.target)
    return out


def _describe(cell: Cell, label: str) -> ElementDescriptor:
    geometry = cell.geometry
    return ElementDescriptor(
        id=cell.id,
        kind=element_kind(cell.style),
        label=label,
        position=Position(geometry.x, geometry.y) if geometry else Position(),
    )


def extract_elements(doc: DiagramDocument, link_edges: bool = False) -> List[ElementDescriptor]:
    outgoing = _outgoing(doc) if link_edges else {}

    elements = []
    for cell in doc.cells:
        label = display_label(cell.label)
        if not label:
            continue
        element = _describe(cell, label)
        element.connections.extend(outgoing.get(cell.id, []))
        elements.append(element)
    return elements


def analyze_layout(doc: DiagramDocument) -> LayoutSummary:
    max_x = 0.0
    max_y = 0.0
    for cell in doc.cells:
        if cell.geometry is not None:
            max_x = max(max_x, cell.geometry.right)
            max_y = max(max_y, cell.geometry.bottom)

    return LayoutSummary(
        width=max_x + LAYOUT_PADDING,
        height=max_y + LAYOUT_PADDING,
        complexity=classify_complexity(len(doc.content_cells)),
    )


def generate_suggestions(elements: List[ElementDescriptor], layout: LayoutSummary,
                         cell_count: int) -> List[str]:
    suggestions = []

    if not elements:
        suggestions.append(SUGGEST_MORE_ELEMENTS)
    if layout.complexity == Complexity.COMPLEX:
        suggestions.append(SUGGEST_SPLIT)
    if cell_count > GROUPING_THRESHOLD:
        suggestions.append(SUGGEST_GROUPING)
    if not any(e.label for e in elements):
        suggestions.append(SUGGEST_LABELS)

    return suggestions


def introspect(doc: DiagramDocument, link_edges: bool = False) -> IntrospectionResult:
    elements = extract_elements(doc, link_edges=link_edges)
    layout = analyze_layout(doc)
    suggestions = generate_suggestions(elements, layout, len(doc.content_cells))
    return IntrospectionResult(elements=elements, layout=layout, suggestions=suggestions)


def diagram_info(doc: DiagramDocument) -> dict:
    """Title, cell count and page bounds of the first diagram."""
    primary = doc.primary
    model = doc.model
    return {
        "title": (primary.name or None) if primary else None,
        "element_count": len(doc.cells),
        "bounds": {
            "width": model.page_width if model else 827,
            "height": model.page_height if model else 1169,
        },
    }
