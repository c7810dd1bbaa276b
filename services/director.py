"""Scene generation flow: context -> prompt -> model -> validation -> splice.

``DirectorService`` wires the engine components together with parameters
taken from ``Settings``.  Everything except ``generate_scenes`` is
synchronous and free of I/O; the model call is made through whatever
``BaseLLMProvider`` the caller supplies.
"""

import logging
from collections.abc import Iterable, Sequence

from api.config import Settings, get_settings
from core.exceptions import GenerationRejectedException, LLMException, ValidationException
from core.models import (
    CharacterProfile,
    Document,
    GenerationOutcome,
    GenerationRequest,
    SceneRequest,
    ValidationResult,
)
from llm.base import BaseLLMProvider
from llm.prompt_manager import PromptManager, get_prompt_manager
from parsers.scene_detector import SceneDetector, extract_selection_context
from services.character_context import build_character_summaries
from services.fountain_normalizer import format_scenes
from services.insertion_planner import plan_insertion
from services.prompt_assembler import build_prompt, get_system_prompt
from services.response_validator import validate_response

logger = logging.getLogger(__name__)


class DirectorService:
    """Runs one scene generation against a document."""

    def __init__(
        self,
        settings: Settings | None = None,
        prompts: PromptManager | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.prompts = prompts or get_prompt_manager(self.settings.prompts_path)
        self.detector = SceneDetector(
            chars_per_page=self.settings.chars_per_page,
            context_before_chars=self.settings.context_before_chars,
            context_after_chars=self.settings.context_after_chars,
        )

    def check_scene_requests(self, scene_requests: Sequence[SceneRequest]) -> None:
        """Raise ``ValidationException`` unless 1..max_requested_scenes requests are given."""
        limit = self.settings.max_requested_scenes
        if not 1 <= len(scene_requests) <= limit:
            raise ValidationException(
                f"Between 1 and {limit} scenes can be generated at once",
                details={"requested": len(scene_requests), "max": limit},
            )

    def prepare_generation(
        self,
        document: Document,
        scene_requests: Sequence[SceneRequest],
        registry: Iterable[CharacterProfile] = (),
    ) -> GenerationRequest:
        """Detect context and assemble the prompts for *scene_requests*."""
        self.check_scene_requests(scene_requests)

        offset = document.insertion_offset
        scene = self.detector.detect(document.text, offset)
        previous = (
            self.detector.extract_previous(document.text, scene.start_line) if scene else None
        )

        if document.has_selection:
            selection = extract_selection_context(
                document.text,
                document.selection.start,
                document.selection.end,
                window=self.settings.selection_context_chars,
            )
            context_before = selection.before.strip()
        elif scene is not None:
            context_before = scene.context_before_cursor
        else:
            context_before = ""

        summaries = build_character_summaries(scene, list(registry))
        prompt = build_prompt(
            scene_requests,
            scene,
            previous.content if previous else None,
            summaries,
            prompts=self.prompts,
        )

        logger.debug(
            "Prepared generation of %d scene(s) at %d (scene=%s, previous=%s)",
            len(scene_requests),
            offset,
            scene.heading if scene else None,
            previous.heading if previous else None,
        )

        return GenerationRequest(
            system_prompt=get_system_prompt(len(scene_requests), prompts=self.prompts),
            prompt=prompt,
            scene_context=scene,
            previous_scene=previous,
            context_before=context_before,
            requested_scene_count=len(scene_requests),
            insert_at=offset,
        )

    def validate(
        self,
        model_output: str,
        context_before: str | None,
        requested_scene_count: int,
    ) -> ValidationResult:
        return validate_response(
            model_output,
            context_before,
            requested_scene_count,
            min_content_lines=self.settings.min_content_lines,
            max_content_lines=self.settings.max_content_lines,
            total_lines_tolerance=self.settings.total_lines_tolerance,
        )

    def process_response(
        self,
        document: Document,
        model_output: str,
        request: GenerationRequest,
    ) -> GenerationOutcome:
        """Validate, normalize and plan the insertion of *model_output*.

        Raises ``GenerationRejectedException`` with the first critical error
        when the response fails a hard check.
        """
        validation = self.validate(
            model_output, request.context_before, request.requested_scene_count
        )
        if not validation.usable:
            raise GenerationRejectedException(
                validation.critical_errors[0],
                details={"errors": validation.critical_errors},
            )

        for warning in validation.warnings:
            logger.warning("Generated scenes accepted with warning: %s", warning)

        scene_block = format_scenes(validation.scenes)
        plan = plan_insertion(
            document.text,
            request.insert_at,
            scene_block,
            heading_lookback=self.settings.heading_lookback_chars,
        )
        return GenerationOutcome(plan=plan, validation=validation, scene_block=scene_block)

    async def generate_scenes(
        self,
        provider: BaseLLMProvider,
        document: Document,
        scene_requests: Sequence[SceneRequest],
        registry: Iterable[CharacterProfile] = (),
    ) -> GenerationOutcome:
        """Full flow including the model call."""
        request = self.prepare_generation(document, scene_requests, registry)

        logger.info(
            "Requesting %d scene(s) from %s", request.requested_scene_count, provider.provider_name
        )
        try:
            model_output = await provider.generate(
                request.prompt,
                system_prompt=request.system_prompt,
                temperature=self.settings.llm_temperature,
                max_tokens=self.settings.llm_max_tokens,
            )
        except LLMException:
            raise
        except Exception as e:
            logger.error(f"Scene generation failed: {e}")
            raise LLMException(
                f"Scene generation failed: {str(e)}",
                details={"provider": provider.provider_name},
            ) from e

        return self.process_response(document, model_output, request)


def prepare_generation(
    document: Document,
    scene_requests: Sequence[SceneRequest],
    registry: Iterable[CharacterProfile] = (),
) -> GenerationRequest:
    return DirectorService().prepare_generation(document, scene_requests, registry)


def process_response(
    document: Document, model_output: str, request: GenerationRequest
) -> GenerationOutcome:
    return DirectorService().process_response(document, model_output, request)


async def generate_scenes(
    provider: BaseLLMProvider,
    document: Document,
    scene_requests: Sequence[SceneRequest],
    registry: Iterable[CharacterProfile] = (),
) -> GenerationOutcome:
    return await DirectorService().generate_scenes(provider, document, scene_requests, registry)
