"""
In-memory model of a draw.io document.

    mxfile -> diagram* -> mxGraphModel -> root -> mxCell*

Cells live in an id-addressed arena on Root; parent/source/target are
plain id lookups, never object references.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from diagram_exchange.utils.xml_tree import (
    child_elements,
    decode_compressed_diagram,
    local_name,
    parse_fragment,
    parse_recover,
    parse_strict,
)

DOCUMENT_TAG = "mxfile"
CANVAS_ROOT_ID = "0"
DEFAULT_LAYER_ID = "1"
DEFAULT_CELL_IDS = (CANVAS_ROOT_ID, DEFAULT_LAYER_ID)

CELL_TAG = "mxCell"
CELL_WRAPPER_TAGS = ("object", "UserObject")


class CellKind(str, Enum):
    VERTEX = "vertex"
    EDGE = "edge"
    CONTAINER = "container"    # canvas root, layers, groups, swimlanes


def parse_style(style: str) -> Dict[str, str]:
    """'rounded=1;whiteSpace=wrap;ellipse' -> {'rounded': '1', 'whiteSpace': 'wrap', 'ellipse': '1'}"""
    out: Dict[str, str] = {}
    for part in (style or "").split(";"):
        part = part.strip()
        if not part:
            continue
        if "=" in part:
            k, v = part.split("=", 1)
            out[k.strip()] = v.strip()
        else:
            out[part] = "1"
    return out


@dataclass(frozen=True)
class Geometry:
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    relative: bool = False

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height


@dataclass(frozen=True)
class Cell:
    id: str
    parent: Optional[str]
    kind: CellKind
    label: str = ""
    style: str = ""
    geometry: Optional[Geometry] = None
    source: Optional[str] = None
    target: Optional[str] = None

    @property
    def is_default(self) -> bool:
        return self.id in DEFAULT_CELL_IDS

    @property
    def is_edge(self) -> bool:
        return self.kind == CellKind.EDGE


@dataclass(frozen=True)
class Root:
    cells: Tuple[Cell, ...] = ()
    index: Dict[str, Cell] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        index: Dict[str, Cell] = {}
        for cell in self.cells:
            # first occurrence wins for duplicate ids
            if cell.id and cell.id not in index:
                index[cell.id] = cell
        object.__setattr__(self, "index", index)

    def get(self, cell_id: Optional[str]) -> Optional[Cell]:
        if cell_id is None:
            return None
        return self.index.get(cell_id)


@dataclass(frozen=True)
class GraphModel:
    attributes: Dict[str, str] = field(default_factory=dict)
    root: Optional[Root] = None

    def _number(self, key: str, default: float) -> float:
        try:
            return float(self.attributes.get(key, default))
        except (TypeError, ValueError):
            return default

    @property
    def page_width(self) -> float:
        return self._number("pageWidth", 827)

    @property
    def page_height(self) -> float:
        return self._number("pageHeight", 1169)

    @property
    def scale(self) -> float:
        return self._number("pageScale", 1)

    @property
    def grid_size(self) -> float:
        return self._number("gridSize", 10)


@dataclass(frozen=True)
class Diagram:
    id: str = ""
    name: str = ""
    model: Optional[GraphModel] = None
    compressed: bool = False


@dataclass(frozen=True)
class DiagramDocument:
    root_tag: str
    attributes: Dict[str, str] = field(default_factory=dict)
    diagrams: Tuple[Diagram, ...] = ()
    source: str = ""
    # lxml element the document was read from; used for salvage during repair
    element: Any = field(default=None, compare=False, repr=False)

    @property
    def has_document_root(self) -> bool:
        return self.root_tag == DOCUMENT_TAG

    @property
    def primary(self) -> Optional[Diagram]:
        return self.diagrams[0] if self.diagrams else None

    @property
    def model(self) -> Optional[GraphModel]:
        primary = self.primary
        return primary.model if primary else None

    @property
    def root(self) -> Optional[Root]:
        model = self.model
        return model.root if model else None

    @property
    def cells(self) -> Tuple[Cell, ...]:
        root = self.root
        return root.cells if root else ()

    @property
    def content_cells(self) -> Tuple[Cell, ...]:
        return tuple(c for c in self.cells if not c.is_default)

    def cell(self, cell_id: str) -> Optional[Cell]:
        root = self.root
        return root.get(cell_id) if root else None

    @classmethod
    def from_element(cls, element, source: str = "") -> "DiagramDocument":
        tag = local_name(element)
        diagrams = ()
        if tag == DOCUMENT_TAG:
            diagrams = tuple(
                _diagram_from_element(d) for d in child_elements(element, "diagram")
            )
        return cls(
            root_tag=tag,
            attributes=dict(element.attrib),
            diagrams=diagrams,
            source=source,
            element=element,
        )


# ============================================================
# Element -> model
# ============================================================

def _float_attr(element, name: str) -> float:
    try:
        return float(element.get(name, 0) or 0)
    except ValueError:
        return 0.0


def _geometry_from_cell(element) -> Optional[Geometry]:
    geometries = child_elements(element, "mxGeometry")
    if not geometries:
        return None
    g = geometries[0]
    return Geometry(
        x=_float_attr(g, "x"),
        y=_float_attr(g, "y"),
        width=_float_attr(g, "width"),
        height=_float_attr(g, "height"),
        relative=g.get("relative") == "1",
    )


def _cell_kind(element, style: str) -> CellKind:
    if element.get("edge") == "1":
        return CellKind.EDGE
    if element.get("vertex") == "1":
        styles = parse_style(style)
        if (
            styles.get("container") == "1"
            or element.get("container") == "1"
            or "swimlane" in styles
            or styles.get("shape") == "swimlane"
            or "group" in styles
        ):
            return CellKind.CONTAINER
        return CellKind.VERTEX
    return CellKind.CONTAINER


def is_cell_element(element) -> bool:
    return local_name(element) in (CELL_TAG,) + CELL_WRAPPER_TAGS


def cell_from_element(element) -> Optional[Cell]:
    name = local_name(element)
    if name in CELL_WRAPPER_TAGS:
        inner = next(iter(child_elements(element, CELL_TAG)), None)
        attrs = inner if inner is not None else element
        cell_id = element.get("id") or (inner.get("id") if inner is not None else None)
        label = element.get("label")
        if label is None and inner is not None:
            label = inner.get("value", "")
    elif name == CELL_TAG:
        attrs = element
        cell_id = element.get("id")
        label = element.get("value", "")
    else:
        return None

    style = attrs.get("style", "")
    return Cell(
        id=cell_id or "",
        parent=attrs.get("parent"),
        kind=_cell_kind(attrs, style),
        label=label or "",
        style=style,
        geometry=_geometry_from_cell(attrs),
        source=attrs.get("source"),
        target=attrs.get("target"),
    )


def _graph_model_from_element(element) -> GraphModel:
    roots = child_elements(element, "root")
    if not roots:
        return GraphModel(attributes=dict(element.attrib), root=None)

    cells = []
    for child in roots[0]:
        if is_cell_element(child):
            cell = cell_from_element(child)
            if cell is not None:
                cells.append(cell)
    return GraphModel(attributes=dict(element.attrib), root=Root(cells=tuple(cells)))


def _diagram_from_element(element) -> Diagram:
    model_element = next(iter(child_elements(element, "mxGraphModel")), None)
    compressed = False

    if model_element is None and (element.text or "").strip():
        decoded = decode_compressed_diagram(element.text)
        if decoded is not None:
            compressed = True
            model_element = parse_fragment(decoded)

    model = None
    if model_element is not None and local_name(model_element) == "mxGraphModel":
        model = _graph_model_from_element(model_element)

    return Diagram(
        id=element.get("id", ""),
        name=element.get("name", ""),
        model=model,
        compressed=compressed,
    )


def parse_document(text: str) -> DiagramDocument:
    """Strict parse into a DiagramDocument. Raises etree.XMLSyntaxError."""
    return DiagramDocument.from_element(parse_strict(text), source=text)


def parse_best_effort(text: str) -> Optional[DiagramDocument]:
    """Recover-mode parse; None when nothing could be read."""
    element = parse_recover(text)
    if element is None:
        return None
    return DiagramDocument.from_element(element, source=text)
