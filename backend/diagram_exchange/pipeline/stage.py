from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List

from diagram_exchange.ir.errors import PipelineError
from diagram_exchange.pipeline.context import PipelineContext


@dataclass
class StageResult:
    is_valid: bool
    errors: List[PipelineError] = field(default_factory=list)

    @classmethod
    def ok(cls) -> "StageResult":
        return cls(is_valid=True)

    @classmethod
    def fail(cls, *errors: PipelineError) -> "StageResult":
        return cls(is_valid=False, errors=list(errors))


class PipelineStage(ABC):
    name: str

    @abstractmethod
    def run(self, context: PipelineContext) -> StageResult:
        """
        Must:
        - read from context
        - write to context
        - NEVER call other stages
        """
        pass
