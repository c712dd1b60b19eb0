import logging
from typing import List, Optional

from diagram_exchange.config import PipelineConfig
from diagram_exchange.pipeline.context import PipelineContext
from diagram_exchange.pipeline.envelope_stage import (
    EnvelopeStage,
    InputLimitStage,
    MarkupExtractionStage,
)
from diagram_exchange.pipeline.introspection_stage import IntrospectionStage, ScoringStage
from diagram_exchange.pipeline.stage import PipelineStage
from diagram_exchange.pipeline.validation_stage import RepairStage, ValidationStage
from diagram_exchange.validation.diagram_validator import DiagramValidator

logger = logging.getLogger(__name__)


class PipelineController:
    """
    raw text -> envelope -> validate -> (one repair) -> introspect + score

    Stages never call each other; ordering lives here. A failing stage
    stops the run and its errors land on the context.
    """

    def __init__(self, config: Optional[PipelineConfig] = None):
        self.config = config or PipelineConfig()

        validator = DiagramValidator(strict_mode=self.config.strict_references)

        self.input_stage = InputLimitStage(self.config.max_input_chars)
        self.envelope_stage = EnvelopeStage()
        self.markup_stage = MarkupExtractionStage()

        # Core stages (always run after extraction)
        self.core_stages: List[PipelineStage] = [
            ValidationStage(validator),
            RepairStage(validator),
            IntrospectionStage(link_edges=self.config.link_edges),
            ScoringStage(),
        ]

    def run(self, raw_text: str, source_prompt: str = "") -> PipelineContext:
        return self._run(
            [self.input_stage, self.envelope_stage] + self.core_stages,
            raw_text,
            source_prompt,
        )

    def run_markup(self, text: str, source_prompt: str = "") -> PipelineContext:
        return self._run(
            [self.input_stage, self.markup_stage] + self.core_stages,
            text,
            source_prompt,
        )

    def _run(self, stages: List[PipelineStage], raw_text: str, source_prompt: str) -> PipelineContext:
        context = PipelineContext(raw_text=raw_text or "", source_prompt=source_prompt or "")

        for stage in stages:
            result = stage.run(context)

            # -------------------------------------------------
            # Hard stop on failure
            # -------------------------------------------------
            if not result.is_valid:
                context.errors.extend(result.errors)
                context.failed_stage = stage.name
                logger.warning(
                    "[PIPELINE] Stage '%s' failed: %s",
                    stage.name,
                    ", ".join(e.kind.value for e in result.errors),
                )
                break

        if context.succeeded:
            logger.info(
                "[PIPELINE] Done: %d cell(s), confidence %.2f",
                context.validation.element_count,
                context.confidence or 0.0,
            )
        return context
