from functools import lru_cache

from fastapi import APIRouter, Depends

from diagram_exchange.api.serializers import error_body, projection_body, validation_body
from diagram_exchange.compiler.compiler import project_to
from diagram_exchange.config import PipelineConfig
from diagram_exchange.ir.errors import ErrorKind, PipelineError
from diagram_exchange.pipeline.controller import PipelineController
from diagram_exchange.schemas import (
    FollowUpPromptRequest,
    InitialPromptRequest,
    ProcessRequest,
    ProjectRequest,
    ScoreRequest,
    XmlRequest,
)
from diagram_exchange.validation.confidence import score_confidence
from diagram_exchange.validation.diagram_fixer import validate_and_repair
from diagram_exchange.visual.introspector import diagram_info, introspect

router = APIRouter()


@lru_cache(maxsize=1)
def get_pipeline_config() -> PipelineConfig:
    return PipelineConfig.from_env()


def _pipeline_response(context) -> dict:
    if not context.succeeded:
        error = context.errors[0] if context.errors else PipelineError(
            ErrorKind.REPAIR_FAILURE, "No valid document was produced"
        )
        return error_body(context.failed_stage, error)
    return {"status": "success", **context.to_response()}


def _valid_document(xml: str, config: PipelineConfig):
    """(document, None) for usable markup, (None, error body) otherwise."""
    result, _ = validate_and_repair(xml, strict=config.strict_references)
    if not result.is_valid or result.document is None:
        error = result.errors[-1] if result.errors else PipelineError(ErrorKind.MALFORMED_MARKUP)
        return None, error_body("validation", error)
    return result.document, None


@router.get("/health")
def health():
    return {"status": "ok"}


@router.post("/diagrams/process")
def process_model_output(request: ProcessRequest, config: PipelineConfig = Depends(get_pipeline_config)):
    context = PipelineController(config).run(request.raw_output, request.prompt)
    return _pipeline_response(context)


@router.post("/diagrams/process-markup")
def process_bare_markup(request: ProcessRequest, config: PipelineConfig = Depends(get_pipeline_config)):
    context = PipelineController(config).run_markup(request.raw_output, request.prompt)
    return _pipeline_response(context)


@router.post("/diagrams/validate")
def validate_markup(request: XmlRequest, config: PipelineConfig = Depends(get_pipeline_config)):
    result, _ = validate_and_repair(request.xml, strict=config.strict_references)
    return validation_body(result)


@router.post("/diagrams/analyze")
def analyze_markup(request: XmlRequest, config: PipelineConfig = Depends(get_pipeline_config)):
    document, error = _valid_document(request.xml, config)
    if error:
        return error

    analysis = introspect(document, link_edges=config.link_edges)
    return {
        "status": "success",
        **analysis.to_dict(),
        "info": diagram_info(document),
    }


@router.post("/diagrams/project")
def project_markup(request: ProjectRequest, config: PipelineConfig = Depends(get_pipeline_config)):
    document, error = _valid_document(request.xml, config)
    if error:
        return error

    projection = project_to(document, request.target)
    if isinstance(projection, PipelineError):
        return error_body("conversion", projection)
    return projection_body(projection)


@router.post("/diagrams/score")
def score_markup(request: ScoreRequest):
    return {
        "status": "success",
        "confidence": score_confidence(request.xml, request.prompt),
    }


@router.post("/prompts/initial")
def initial_prompt(request: InitialPromptRequest, config: PipelineConfig = Depends(get_pipeline_config)):
    prompts = config.prompts
    files = [f.model_dump() for f in request.files]
    return {
        "status": "success",
        "system_prompt": prompts.system_prompt,
        "style_guide": prompts.style_guide,
        "prompt": prompts.build_initial_prompt(files, request.additional_context),
    }


@router.post("/prompts/follow-up")
def follow_up_prompt(request: FollowUpPromptRequest, config: PipelineConfig = Depends(get_pipeline_config)):
    prompts = config.prompts
    return {
        "status": "success",
        "system_prompt": prompts.system_prompt,
        "prompt": prompts.build_follow_up_prompt(request.follow_up),
    }
