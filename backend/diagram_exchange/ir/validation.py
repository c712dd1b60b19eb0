from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

from .diagram import DiagramDocument
from .errors import ErrorKind, PipelineError


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    errors: Tuple[PipelineError, ...] = ()
    element_count: int = 0
    document: Optional[DiagramDocument] = None
    corrected_xml: Optional[str] = None      # Tier A output, when it was needed
    repaired: Optional[DiagramDocument] = None

    @classmethod
    def success(cls, element_count: int, document: DiagramDocument,
                corrected_xml: Optional[str] = None):
        return cls(
            is_valid=True,
            element_count=element_count,
            document=document,
            corrected_xml=corrected_xml,
        )

    @classmethod
    def failure(cls, errors: List[PipelineError], element_count: int = 0,
                document: Optional[DiagramDocument] = None,
                corrected_xml: Optional[str] = None):
        return cls(
            is_valid=False,
            errors=tuple(errors),
            element_count=element_count,
            document=document,
            corrected_xml=corrected_xml,
        )

    @property
    def error_kinds(self) -> List[ErrorKind]:
        return [e.kind for e in self.errors]

    def with_repair(self, corrected_xml: str, repaired: DiagramDocument) -> "ValidationResult":
        return replace(self, corrected_xml=corrected_xml, repaired=repaired)

    def get_summary(self) -> str:
        status = "valid" if self.is_valid else "invalid"
        kinds = ", ".join(k.value for k in self.error_kinds) or "none"
        return f"{status} | cells: {self.element_count} | errors: {kinds}"

    def to_dict(self) -> dict:
        return {
            "is_valid": self.is_valid,
            "errors": [e.to_dict() for e in self.errors],
            "element_count": self.element_count,
            "corrected_xml": self.corrected_xml,
        }
