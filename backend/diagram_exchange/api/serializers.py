from typing import Optional

from diagram_exchange.compiler.compiler import Projection
from diagram_exchange.ir.errors import PipelineError
from diagram_exchange.ir.validation import ValidationResult


def error_body(stage: Optional[str], error: PipelineError) -> dict:
    return {
        "status": "error",
        "stage": stage,
        "error": error.to_dict(),
    }


def validation_body(result: ValidationResult) -> dict:
    """Validate-only response: camelCase keys, correctedXML only when present."""
    body = {
        "isValid": result.is_valid,
        "errors": [e.to_dict() for e in result.errors],
        "elementCount": result.element_count,
    }
    if result.corrected_xml:
        body["correctedXML"] = result.corrected_xml
    return body


def projection_body(projection: Projection) -> dict:
    return {
        "status": "success",
        "format": projection.format.value,
        "source": projection.source,
    }
