"""
Diagram Repairer - Two-tier repair for draw.io markup that failed validation.

Tier A (textual)    -> normalize_markup; accepted when the result validates
Tier B (structural) -> fresh mxfile skeleton + cells salvaged from a
                       best-effort parse of the Tier A text
Neither works       -> RepairFailure; callers must not emit an empty diagram

Both tiers are deterministic and idempotent: repair(repair(x)) == repair(x).
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from lxml import etree

from diagram_exchange.ir.diagram import (
    CANVAS_ROOT_ID,
    CELL_TAG,
    CELL_WRAPPER_TAGS,
    DEFAULT_CELL_IDS,
    DEFAULT_LAYER_ID,
    DiagramDocument,
)
from diagram_exchange.ir.errors import ErrorKind, PipelineError
from diagram_exchange.ir.validation import ValidationResult
from diagram_exchange.utils.xml_tree import (
    child_elements,
    decode_compressed_diagram,
    local_name,
    parse_recover,
    serialize,
)
from diagram_exchange.validation.diagram_validator import DiagramValidator
from diagram_exchange.validation.markup_normalizer import normalize_markup

logger = logging.getLogger(__name__)

# Fixed attributes keep Tier B output byte-for-byte reproducible
SKELETON_FILE_ATTRS = (
    ("host", "app.diagrams.net"),
    ("agent", "diagram-exchange"),
    ("version", "21.7.5"),
    ("etag", "generated"),
)

SKELETON_DIAGRAM_ATTRS = (
    ("id", "generated-diagram"),
    ("name", "Generated Diagram"),
)

SKELETON_MODEL_ATTRS = (
    ("dx", "1422"),
    ("dy", "794"),
    ("grid", "1"),
    ("gridSize", "10"),
    ("guides", "1"),
    ("tooltips", "1"),
    ("connect", "1"),
    ("arrows", "1"),
    ("fold", "1"),
    ("page", "1"),
    ("pageScale", "1"),
    ("pageWidth", "827"),
    ("pageHeight", "1169"),
    ("math", "0"),
    ("shadow", "0"),
)


@dataclass
class RepairResult:
    """Result of a repair attempt"""
    xml: Optional[str] = None
    tier: Optional[str] = None  # "A" | "B" | None
    changes: List[str] = field(default_factory=list)
    error: Optional[PipelineError] = None

    @property
    def success(self) -> bool:
        return self.xml is not None

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "tier": self.tier,
            "changes": self.changes,
            "error": self.error.to_dict() if self.error else None,
        }


def _add_element(parent, tag: str, attrs) -> etree._Element:
    el = etree.SubElement(parent, tag)
    for key, value in attrs:
        el.set(key, value)
    return el


def build_skeleton() -> Tuple[etree._Element, etree._Element]:
    """Minimal valid document; returns (mxfile, root)."""
    mxfile = etree.Element("mxfile")
    for key, value in SKELETON_FILE_ATTRS:
        mxfile.set(key, value)
    diagram = _add_element(mxfile, "diagram", SKELETON_DIAGRAM_ATTRS)
    model = _add_element(diagram, "mxGraphModel", SKELETON_MODEL_ATTRS)
    root = etree.SubElement(model, "root")
    _add_element(root, CELL_TAG, (("id", CANVAS_ROOT_ID),))
    _add_element(root, CELL_TAG, (("id", DEFAULT_LAYER_ID), ("parent", CANVAS_ROOT_ID)))
    return mxfile, root


# ============================================================
# Salvage helpers
# ============================================================

def _inner_cell(element) -> etree._Element:
    """The element carrying parent/source/target: the mxCell itself, or the one a wrapper holds."""
    if local_name(element) in CELL_WRAPPER_TAGS:
        inner = child_elements(element, CELL_TAG)
        if inner:
            return inner[0]
    return element


def _iter_cell_elements(tree) -> Iterator[etree._Element]:
    for el in tree.iter():
        name = local_name(el)
        if name in CELL_WRAPPER_TAGS:
            yield el
        elif name == CELL_TAG:
            parent = el.getparent()
            if parent is None or local_name(parent) not in CELL_WRAPPER_TAGS:
                yield el


def _salvage_trees(tree) -> Iterator[etree._Element]:
    yield tree
    # cells of compressed pages live in the diagram's text
    for el in tree.iter():
        if local_name(el) != "diagram" or child_elements(el, "mxGraphModel"):
            continue
        decoded = decode_compressed_diagram(el.text or "")
        if decoded is not None:
            fragment = parse_recover(decoded)
            if fragment is not None:
                yield fragment


def salvage_cells(tree) -> Tuple[List[etree._Element], List[str]]:
    """Copies of every content cell in document order; duplicate ids keep the first."""
    cells: List[etree._Element] = []
    changes: List[str] = []
    seen = set()

    for source in _salvage_trees(tree):
        for el in _iter_cell_elements(source):
            cell_id = el.get("id") or _inner_cell(el).get("id")
            if not cell_id or cell_id in DEFAULT_CELL_IDS:
                continue
            if cell_id in seen:
                changes.append(f"Dropped duplicate cell '{cell_id}'")
                continue
            seen.add(cell_id)
            cell = copy.deepcopy(el)
            cell.tail = None
            cells.append(cell)

    return cells, changes


def apply_reference_policy(cells: List[etree._Element]) -> Tuple[List[etree._Element], List[str]]:
    """
    Drop edges whose present source/target does not resolve to a shape,
    then re-parent every cell whose parent is missing to the default layer.
    """
    changes: List[str] = []
    ids: Dict[str, etree._Element] = {}
    for el in cells:
        ids[el.get("id") or _inner_cell(el).get("id")] = el

    def is_edge(el) -> bool:
        return _inner_cell(el).get("edge") == "1"

    shapes = set(DEFAULT_CELL_IDS) | {cid for cid, el in ids.items() if not is_edge(el)}

    kept = []
    for el in cells:
        inner = _inner_cell(el)
        cell_id = el.get("id") or inner.get("id")
        if is_edge(el):
            dangling = [
                end for end in ("source", "target")
                if inner.get(end) is not None and inner.get(end) not in shapes
            ]
            if dangling:
                changes.append(
                    f"Dropped edge '{cell_id}' with unresolved {' and '.join(dangling)}"
                )
                continue
        kept.append(el)

    kept_ids = set(DEFAULT_CELL_IDS) | {el.get("id") or _inner_cell(el).get("id") for el in kept}
    for el in kept:
        inner = _inner_cell(el)
        cell_id = el.get("id") or inner.get("id")
        parent = inner.get("parent")
        if parent is None or parent not in kept_ids or parent == cell_id:
            inner.set("parent", DEFAULT_LAYER_ID)
            changes.append(f"Re-parented cell '{cell_id}' to layer '{DEFAULT_LAYER_ID}'")

    return kept, changes


class DiagramRepairer:
    """
    Repairs draw.io markup that failed validation.

    Usage:
        repairer = DiagramRepairer()
        result = repairer.repair(xml)
        if result.success:
            xml = result.xml
    """

    def __init__(self, validator: Optional[DiagramValidator] = None):
        self.validator = validator or DiagramValidator()

    def repair(self, xml: Optional[str], best_effort: Optional[DiagramDocument] = None) -> RepairResult:
        normalized = normalize_markup(xml or "")
        changes: List[str] = []
        if normalized != (xml or "").strip():
            changes.append("Normalized markup text")

        if normalized and self.validator.validate(normalized).is_valid:
            logger.info("[REPAIR] Tier A normalization produced a valid document")
            return RepairResult(xml=normalized, tier="A", changes=changes)

        logger.info("[REPAIR] Tier A insufficient, rebuilding document structure")
        return self._rebuild(normalized, best_effort, changes)

    def _rebuild(self, normalized: str, best_effort: Optional[DiagramDocument],
                 changes: List[str]) -> RepairResult:
        tree = None
        if best_effort is not None and best_effort.element is not None:
            tree = best_effort.element
        if tree is None:
            tree = parse_recover(normalized)

        mxfile, root = build_skeleton()
        changes.append("Rebuilt document skeleton")

        if tree is not None:
            cells, salvage_changes = salvage_cells(tree)
            cells, policy_changes = apply_reference_policy(cells)
            changes.extend(salvage_changes)
            changes.extend(policy_changes)
            for el in cells:
                root.append(el)
            if cells:
                changes.append(f"Salvaged {len(cells)} cell(s)")
        else:
            changes.append("Nothing could be salvaged from the original markup")

        try:
            rebuilt = serialize(mxfile)
        except (etree.SerialisationError, ValueError) as e:
            logger.warning("[REPAIR] Serialization failed: %s", e)
            return RepairResult(
                changes=changes,
                error=PipelineError(ErrorKind.REPAIR_FAILURE, f"Serialization failed: {e}"),
            )

        check = self.validator.validate(rebuilt)
        if not check.is_valid:
            detail = "; ".join(f"{e.kind.value}: {e.detail}" for e in check.errors)
            logger.warning("[REPAIR] Rebuilt document is still invalid: %s", detail)
            return RepairResult(
                changes=changes,
                error=PipelineError(ErrorKind.REPAIR_FAILURE, detail),
            )

        return RepairResult(xml=rebuilt, tier="B", changes=changes)


# ============================================================
# CONVENIENCE FUNCTIONS
# ============================================================

def repair_markup(xml: Optional[str], best_effort: Optional[DiagramDocument] = None,
                  strict: bool = False) -> Optional[str]:
    """Repaired markup, or None when the document cannot be repaired."""
    return DiagramRepairer(DiagramValidator(strict_mode=strict)).repair(xml, best_effort).xml


def validate_and_repair(xml: str, strict: bool = False) -> Tuple[ValidationResult, Optional[RepairResult]]:
    """
    Validate, and on a structural failure run exactly one repair and re-validate.

    Returns:
        Tuple of (final_validation, repair_result or None when no repair ran)
    """
    validator = DiagramValidator(strict_mode=strict)
    result = validator.validate(xml)
    if result.is_valid or not any(e.is_structural for e in result.errors):
        return result, None

    repair = DiagramRepairer(validator).repair(xml, best_effort=result.document)
    if not repair.success:
        failed = ValidationResult.failure(
            list(result.errors) + [repair.error],
            element_count=result.element_count,
            document=result.document,
            corrected_xml=result.corrected_xml,
        )
        return failed, repair

    final = validator.validate(repair.xml)
    return final.with_repair(repair.xml, final.document), repair
