"""
Diagram Validator - Checks draw.io markup against the structure the format requires.

Checks, in order (each missing level short-circuits the rest):
- Well-formed markup (one Tier A normalization attempt before giving up)
- <mxfile> document root
- At least one <diagram>
- An <mxGraphModel> (plain or compressed)
- A <root> holding cells
- Default cells "0" (canvas) and "1" (layer, parent "0")

Once the default cells are in place:
- Every other cell's parent resolves

Strict mode adds:
- Every edge's source/target resolves to a non-edge cell
"""

import logging
from typing import List, Optional

from lxml import etree

from diagram_exchange.ir.diagram import (
    CANVAS_ROOT_ID,
    DEFAULT_LAYER_ID,
    DiagramDocument,
    parse_document,
)
from diagram_exchange.ir.errors import ErrorKind, PipelineError
from diagram_exchange.ir.validation import ValidationResult
from diagram_exchange.utils.xml_tree import well_formedness_error
from diagram_exchange.validation.markup_normalizer import normalize_markup

logger = logging.getLogger(__name__)


class DiagramValidator:
    """
    Validates draw.io markup.

    Usage:
        validator = DiagramValidator()
        result = validator.validate(xml)

        if not result.is_valid:
            for error in result.errors:
                logger.info("%s: %s", error.kind.value, error.detail)
    """

    def __init__(self, strict_mode: bool = False):
        self.strict_mode = strict_mode

    def validate(self, xml: str) -> ValidationResult:
        text = xml or ""
        corrected: Optional[str] = None

        syntax_error = well_formedness_error(text)
        if syntax_error is not None:
            normalized = normalize_markup(text)
            if well_formedness_error(normalized) is not None:
                logger.info("[VALIDATOR] Malformed markup: %s", syntax_error)
                return ValidationResult.failure(
                    [PipelineError(ErrorKind.MALFORMED_MARKUP, syntax_error)]
                )
            logger.debug("[VALIDATOR] Markup became well-formed after normalization")
            text = corrected = normalized

        try:
            document = parse_document(text)
        except (etree.XMLSyntaxError, ValueError) as e:
            return ValidationResult.failure(
                [PipelineError(ErrorKind.MALFORMED_MARKUP, str(e))]
            )

        errors = self._check_structure(document)
        if errors:
            return ValidationResult.failure(
                errors,
                element_count=len(document.cells),
                document=document,
                corrected_xml=corrected,
            )

        errors = self._check_default_cells(document)
        if not errors:
            errors = self._check_parents(document)
            if self.strict_mode:
                errors.extend(self._check_edges(document))

        element_count = len(document.cells)
        if errors:
            logger.debug("[VALIDATOR] %d error(s), %d cell(s)", len(errors), element_count)
            return ValidationResult.failure(
                errors,
                element_count=element_count,
                document=document,
                corrected_xml=corrected,
            )
        return ValidationResult.success(element_count, document, corrected_xml=corrected)

    def _check_structure(self, document: DiagramDocument) -> List[PipelineError]:
        if not document.has_document_root:
            return [PipelineError(
                ErrorKind.MISSING_ROOT,
                f"Document root is <{document.root_tag}>, expected <mxfile>",
            )]
        if not document.diagrams:
            return [PipelineError(ErrorKind.MISSING_DIAGRAM, "No <diagram> element")]
        if document.model is None:
            return [PipelineError(ErrorKind.MISSING_GRAPH_MODEL, "No <mxGraphModel> in the first diagram")]
        if document.root is None:
            return [PipelineError(ErrorKind.MISSING_ROOT_CELLS, "No <root> in the graph model")]
        if not document.cells:
            return [PipelineError(ErrorKind.MISSING_ROOT_CELLS, "<root> holds no cells")]
        return []

    def _check_default_cells(self, document: DiagramDocument) -> List[PipelineError]:
        canvas = document.cell(CANVAS_ROOT_ID)
        layer = document.cell(DEFAULT_LAYER_ID)

        missing = []
        if canvas is None:
            missing.append(f'id="{CANVAS_ROOT_ID}"')
        if layer is None:
            missing.append(f'id="{DEFAULT_LAYER_ID}"')
        if missing or len(document.cells) < 2:
            return [PipelineError(
                ErrorKind.MISSING_DEFAULT_CELLS,
                "Missing required default cells (" + ", ".join(missing or ['id="0"', 'id="1"']) + ")",
            )]
        if layer.parent != CANVAS_ROOT_ID:
            return [PipelineError(
                ErrorKind.MISSING_DEFAULT_CELLS,
                f'Default layer "1" has parent {layer.parent!r}, expected "0"',
            )]
        return []

    def _check_parents(self, document: DiagramDocument) -> List[PipelineError]:
        errors = []
        for cell in document.cells:
            if cell.id == CANVAS_ROOT_ID:
                continue
            if document.cell(cell.parent) is None or cell.parent == cell.id:
                errors.append(PipelineError(
                    ErrorKind.UNRESOLVED_PARENT,
                    f"Cell {cell.id!r} has unresolved parent {cell.parent!r}",
                ))
        return errors

    def _check_edges(self, document: DiagramDocument) -> List[PipelineError]:
        errors = []
        for cell in document.cells:
            if not cell.is_edge:
                continue
            for end in ("source", "target"):
                ref = getattr(cell, end)
                if ref is None:
                    continue
                other = document.cell(ref)
                if other is None or other.is_edge:
                    errors.append(PipelineError(
                        ErrorKind.DANGLING_EDGE,
                        f"Edge {cell.id!r} {end} {ref!r} does not resolve to a shape",
                    ))
        return errors


# ============================================================
# CONVENIENCE FUNCTIONS
# ============================================================

def validate_diagram(xml: str, strict: bool = False) -> ValidationResult:
    """Quick validation function."""
    return DiagramValidator(strict_mode=strict).validate(xml)


def get_validation_summary(xml: str) -> str:
    """Get a one-line validation summary."""
    return validate_diagram(xml).get_summary()
