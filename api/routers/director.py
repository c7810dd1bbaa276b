"""Scene director endpoints for the editor UI.

Each endpoint exposes one engine step; ``/apply`` runs validation,
normalization and insertion planning in one call.  The model call itself is
made by the client between ``/prompt`` and ``/apply``.
"""

import logging

from fastapi import APIRouter, Depends, status

from api.dependencies import get_director_service
from core.models import (
    ApplyGenerationRequest,
    DetectSceneRequest,
    GenerationOutcome,
    GenerationRequest,
    InsertionPlan,
    NormalizeRequest,
    NormalizeResponse,
    PlanInsertionRequest,
    PreviousSceneRequest,
    PromptBuildRequest,
    SceneContextResponse,
    ValidateResponseRequest,
    ValidationResult,
)
from services.director import DirectorService
from services.fountain_normalizer import format_scenes, normalize_lines
from services.insertion_planner import plan_insertion

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/detect",
    response_model=SceneContextResponse,
    status_code=status.HTTP_200_OK,
    summary="Detect the scene around an offset",
)
async def detect_scene(
    request: DetectSceneRequest,
    director: DirectorService = Depends(get_director_service),
) -> SceneContextResponse:
    """Return the scene containing ``offset``; ``scene`` is null when no heading precedes it."""
    return SceneContextResponse(scene=director.detector.detect(request.text, request.offset))


@router.post(
    "/previous",
    response_model=SceneContextResponse,
    status_code=status.HTTP_200_OK,
    summary="Scene before the one starting at a line",
)
async def previous_scene(
    request: PreviousSceneRequest,
    director: DirectorService = Depends(get_director_service),
) -> SceneContextResponse:
    return SceneContextResponse(
        scene=director.detector.extract_previous(request.text, request.start_line)
    )


@router.post(
    "/prompt",
    response_model=GenerationRequest,
    status_code=status.HTTP_200_OK,
    summary="Assemble the generation prompts",
)
async def build_generation_prompt(
    request: PromptBuildRequest,
    director: DirectorService = Depends(get_director_service),
) -> GenerationRequest:
    """Detect context and return the system and user prompt for the model call."""
    return director.prepare_generation(request.document, request.scenes, request.characters)


@router.post(
    "/validate",
    response_model=ValidationResult,
    status_code=status.HTTP_200_OK,
    summary="Validate a raw model response",
)
async def validate_model_output(
    request: ValidateResponseRequest,
    director: DirectorService = Depends(get_director_service),
) -> ValidationResult:
    """Rejected responses are reported in the body, not as an HTTP error."""
    return director.validate(
        request.model_output,
        request.context_before_cursor,
        request.requested_scene_count,
    )


@router.post(
    "/normalize",
    response_model=NormalizeResponse,
    status_code=status.HTTP_200_OK,
    summary="Normalize scene content to Fountain formatting",
)
async def normalize_content(request: NormalizeRequest) -> NormalizeResponse:
    """Normalize ``lines`` or, when ``scenes`` is given, format whole scenes."""
    if request.scenes:
        text = format_scenes(request.scenes)
        return NormalizeResponse(lines=text.split("\n"), text=text)

    lines = normalize_lines(request.lines)
    return NormalizeResponse(lines=lines, text="\n".join(lines))


@router.post(
    "/plan",
    response_model=InsertionPlan,
    status_code=status.HTTP_200_OK,
    summary="Plan the splice of a scene block",
)
async def plan_scene_insertion(
    request: PlanInsertionRequest,
    director: DirectorService = Depends(get_director_service),
) -> InsertionPlan:
    return plan_insertion(
        request.document_text,
        request.cursor_offset,
        request.scene_block,
        heading_lookback=director.settings.heading_lookback_chars,
    )


@router.post(
    "/apply",
    response_model=GenerationOutcome,
    status_code=status.HTTP_200_OK,
    summary="Validate, normalize and plan a model response",
)
async def apply_generation(
    request: ApplyGenerationRequest,
    director: DirectorService = Depends(get_director_service),
) -> GenerationOutcome:
    """
    Turn a model response into a splice proposal.

    Responds 422 with the first critical error when the response fails a
    hard check.
    """
    generation = director.prepare_generation(request.document, request.scenes, request.characters)
    outcome = director.process_response(request.document, request.model_output, generation)
    logger.info(
        "Planned insertion of %d scene(s) at %d",
        len(outcome.validation.scenes),
        outcome.plan.insert_at,
    )
    return outcome
