from diagram_exchange.pipeline.stage import PipelineStage, StageResult
from diagram_exchange.validation.confidence import score_confidence
from diagram_exchange.visual.introspector import introspect


class IntrospectionStage(PipelineStage):
    name = "introspection"

    def __init__(self, link_edges: bool = False):
        self.link_edges = link_edges

    def run(self, context) -> StageResult:
        document = context.document
        if document is not None:
            context.introspection = introspect(document, link_edges=self.link_edges)
        return StageResult.ok()


class ScoringStage(PipelineStage):
    name = "scoring"

    def run(self, context) -> StageResult:
        context.confidence = score_confidence(context.xml or "", context.source_prompt)
        return StageResult.ok()
