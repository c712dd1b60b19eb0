from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    PARSE_FAILURE = "ParseFailure"
    MALFORMED_MARKUP = "MalformedMarkup"
    MISSING_ROOT = "MissingRoot"
    MISSING_DIAGRAM = "MissingDiagram"
    MISSING_GRAPH_MODEL = "MissingGraphModel"
    MISSING_ROOT_CELLS = "MissingRootCells"
    MISSING_DEFAULT_CELLS = "MissingDefaultCells"
    UNRESOLVED_PARENT = "UnresolvedParent"
    DANGLING_EDGE = "DanglingEdge"              # strict mode only
    REPAIR_FAILURE = "RepairFailure"
    CONVERSION_UNSUPPORTED = "ConversionUnsupported"
    INPUT_TOO_LARGE = "InputTooLarge"


# Kinds produced by structural validation; each one earns a single repair attempt
STRUCTURAL_KINDS = frozenset({
    ErrorKind.MALFORMED_MARKUP,
    ErrorKind.MISSING_ROOT,
    ErrorKind.MISSING_DIAGRAM,
    ErrorKind.MISSING_GRAPH_MODEL,
    ErrorKind.MISSING_ROOT_CELLS,
    ErrorKind.MISSING_DEFAULT_CELLS,
    ErrorKind.UNRESOLVED_PARENT,
    ErrorKind.DANGLING_EDGE,
})


@dataclass(frozen=True)
class PipelineError:
    kind: ErrorKind
    detail: str = ""

    @property
    def is_structural(self) -> bool:
        return self.kind in STRUCTURAL_KINDS

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "detail": self.detail,
        }
