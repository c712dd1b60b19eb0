from diagram_exchange.ir.errors import ErrorKind, PipelineError
from diagram_exchange.llm.parser import (
    extract_description,
    extract_markup,
    parse_envelope,
)
from diagram_exchange.pipeline.stage import PipelineStage, StageResult


class InputLimitStage(PipelineStage):
    name = "input"

    def __init__(self, max_chars: int):
        self.max_chars = max_chars

    def run(self, context) -> StageResult:
        size = len(context.raw_text or "")
        if size > self.max_chars:
            return StageResult.fail(PipelineError(
                ErrorKind.INPUT_TOO_LARGE,
                f"Input has {size} characters, limit is {self.max_chars}",
            ))
        return StageResult.ok()


class EnvelopeStage(PipelineStage):
    name = "envelope"

    def run(self, context) -> StageResult:
        result = parse_envelope(context.raw_text)
        if isinstance(result, PipelineError):
            return StageResult.fail(result)

        context.envelope = result
        context.xml = result.xml
        context.commentary = result.commentary
        return StageResult.ok()


class MarkupExtractionStage(PipelineStage):
    """For responses carrying bare markup instead of a JSON envelope."""
    name = "markup"

    def run(self, context) -> StageResult:
        markup = extract_markup(context.raw_text)
        if markup is None:
            return StageResult.fail(PipelineError(
                ErrorKind.PARSE_FAILURE,
                "No draw.io markup found in response",
            ))

        context.xml = markup
        context.commentary = extract_description(context.raw_text)
        return StageResult.ok()
