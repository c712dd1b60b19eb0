from dataclasses import dataclass, field
from typing import List, Optional

from diagram_exchange.ir.errors import PipelineError
from diagram_exchange.ir.validation import ValidationResult
from diagram_exchange.llm.parser import Envelope
from diagram_exchange.validation.diagram_fixer import RepairResult
from diagram_exchange.visual.visual_schema import IntrospectionResult


@dataclass
class PipelineContext:
    # Raw model output (authoritative)
    raw_text: str
    source_prompt: str = ""

    # Envelope
    envelope: Optional[Envelope] = None
    xml: Optional[str] = None           # best markup so far; replaced by repair
    commentary: str = ""

    # Validation / repair
    validation: Optional[ValidationResult] = None
    repair: Optional[RepairResult] = None

    # Introspection / scoring
    introspection: Optional[IntrospectionResult] = None
    confidence: Optional[float] = None

    errors: List[PipelineError] = field(default_factory=list)
    failed_stage: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return (
            not self.errors
            and self.validation is not None
            and self.validation.is_valid
        )

    @property
    def document(self):
        return self.validation.document if self.validation else None

    def add_error(self, error: PipelineError):
        self.errors.append(error)

    def to_response(self) -> dict:
        introspection = self.introspection.to_dict() if self.introspection else {}
        return {
            "xml": self.xml,
            "commentary": self.commentary,
            "recovered_by": self.envelope.recovered_by if self.envelope else None,
            "elements": introspection.get("elements", []),
            "layout": introspection.get("layout"),
            "suggestions": introspection.get("suggestions", []),
            "confidence": self.confidence,
            "validation": self.validation.to_dict() if self.validation else None,
            "repair": self.repair.to_dict() if self.repair else None,
        }
