from dataclasses import dataclass, field
from typing import List

from diagram_exchange.visual.visual_schema import ElementKind


@dataclass
class Node:
    id: str             # already sanitized and unique
    label: str
    kind: ElementKind


@dataclass
class Graph:
    # edges are not projected; every target notation gets nodes only
    nodes: List[Node] = field(default_factory=list)
