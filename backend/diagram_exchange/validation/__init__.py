"""
Validation module: structural validation, repair and confidence scoring.
"""

from diagram_exchange.validation.diagram_validator import (
    DiagramValidator,
    validate_diagram,
    get_validation_summary,
)

from diagram_exchange.validation.diagram_fixer import (
    DiagramRepairer,
    RepairResult,
    repair_markup,
    validate_and_repair,
)

from diagram_exchange.validation.markup_normalizer import normalize_markup
from diagram_exchange.validation.confidence import score_confidence

__all__ = [
    "DiagramValidator",
    "validate_diagram",
    "get_validation_summary",
    "DiagramRepairer",
    "RepairResult",
    "repair_markup",
    "validate_and_repair",
    "normalize_markup",
    "score_confidence",
]
