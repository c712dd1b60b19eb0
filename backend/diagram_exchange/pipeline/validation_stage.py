import logging

from diagram_exchange.ir.errors import ErrorKind, PipelineError
from diagram_exchange.pipeline.stage import PipelineStage, StageResult
from diagram_exchange.validation.diagram_fixer import DiagramRepairer
from diagram_exchange.validation.diagram_validator import DiagramValidator

logger = logging.getLogger(__name__)


class ValidationStage(PipelineStage):
    name = "validation"

    def __init__(self, validator: DiagramValidator):
        self.validator = validator

    def run(self, context) -> StageResult:
        result = self.validator.validate(context.xml)
        context.validation = result

        if result.is_valid and result.corrected_xml:
            context.xml = result.corrected_xml

        # invalid documents go on to RepairStage
        return StageResult.ok()


class RepairStage(PipelineStage):
    """One repair attempt for a structurally invalid document, then re-validation."""
    name = "repair"

    def __init__(self, validator: DiagramValidator):
        self.validator = validator
        self.repairer = DiagramRepairer(validator)

    def run(self, context) -> StageResult:
        validation = context.validation
        if validation is None or validation.is_valid:
            return StageResult.ok()

        if not any(e.is_structural for e in validation.errors):
            return StageResult.fail(*validation.errors)

        repair = self.repairer.repair(context.xml, best_effort=validation.document)
        context.repair = repair
        if not repair.success:
            return StageResult.fail(repair.error)

        final = self.validator.validate(repair.xml)
        if not final.is_valid:
            detail = "; ".join(e.detail for e in final.errors)
            return StageResult.fail(PipelineError(ErrorKind.REPAIR_FAILURE, detail))

        logger.info("[PIPELINE] Repaired with tier %s (%d change(s))", repair.tier, len(repair.changes))
        context.validation = final.with_repair(repair.xml, final.document)
        context.xml = repair.xml
        return StageResult.ok()
