"""Tests for the end-to-end director flow."""

import json
import logging
from typing import Any

import pytest

from api.config import Settings
from core.exceptions import GenerationRejectedException, LLMException, ValidationException
from core.models import Document, SceneRequest, TextSelection, ValidationStatus
from llm.base import BaseLLMProvider
from services.director import DirectorService


def _output(*headings: str, total_lines: int | None = None) -> str:
    scenes = [
        {"heading": heading, "content": ["Wind howls.", "JANE", "Who's there?"]}
        for heading in headings
    ]
    payload: dict[str, Any] = {"scenes": scenes}
    payload["totalLines"] = total_lines if total_lines is not None else 3 * len(scenes)
    return json.dumps(payload)


class StaticProvider(BaseLLMProvider):
    """Provider returning a fixed response, or raising a fixed error."""

    def __init__(self, response: str = "", error: Exception | None = None) -> None:
        super().__init__({"model": "static"})
        self.response = response
        self.error = error
        self.calls: list[dict[str, Any]] = []

    async def generate(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 4000,
        **kwargs: Any,
    ) -> str:
        self.calls.append(
            {
                "prompt": prompt,
                "system_prompt": system_prompt,
                "temperature": temperature,
                "max_tokens": max_tokens,
            }
        )
        if self.error is not None:
            raise self.error
        return self.response

    @property
    def provider_name(self) -> str:
        return "static"


@pytest.fixture
def director(settings, prompt_manager) -> DirectorService:
    return DirectorService(settings, prompt_manager)


# ===================================================================
# Preparation
# ===================================================================


class TestPrepareGeneration:
    """Tests for DirectorService.prepare_generation."""

    def test_context_and_prompts(self, director, screenplay, scene_requests, registry):
        document = Document(text=screenplay, cursor_offset=len(screenplay))
        request = director.prepare_generation(document, scene_requests, registry)

        assert request.scene_context.heading == "EXT. FOREST - DAY"
        assert request.previous_scene.heading == "INT. CABIN - NIGHT"
        assert request.context_before == request.scene_context.context_before_cursor
        assert request.requested_scene_count == 2
        assert request.insert_at == len(screenplay)
        assert "PREVIOUS SCENE:" in request.prompt
        assert "- JANE (lead, 30s)" in request.prompt
        assert "exactly 2 scenes" in request.system_prompt

    def test_no_scene_yet(self, director, scene_requests):
        document = Document(text="FADE IN:", cursor_offset=8)
        request = director.prepare_generation(document, scene_requests)

        assert request.scene_context is None
        assert request.previous_scene is None
        assert request.context_before == ""
        assert "CURRENT SCENE" not in request.prompt

    def test_selection_collapses_to_start(self, director, screenplay, scene_requests):
        start = screenplay.index("Jane runs")
        document = Document(
            text=screenplay,
            cursor_offset=len(screenplay),
            selection=TextSelection(start=start, end=start + 9),
        )
        request = director.prepare_generation(document, scene_requests)

        assert request.insert_at == start
        assert request.context_before == screenplay[max(0, start - 200) : start].strip()

    def test_selection_window_from_settings(self, prompt_manager, screenplay, scene_requests):
        director = DirectorService(Settings(selection_context_chars=10), prompt_manager)
        start = screenplay.index("Jane runs")
        document = Document(
            text=screenplay,
            cursor_offset=0,
            selection=TextSelection(start=start, end=start + 9),
        )
        request = director.prepare_generation(document, scene_requests)

        assert request.context_before == screenplay[start - 10 : start].strip()

    @pytest.mark.parametrize("count", [0, 4])
    def test_scene_count_limits(self, director, screenplay, count):
        document = Document(text=screenplay, cursor_offset=0)
        requests = [SceneRequest(location="Barn", scenario="A fight")] * count

        with pytest.raises(ValidationException):
            director.prepare_generation(document, requests)

    def test_empty_location_rejected_before_generation(self):
        with pytest.raises(ValueError):
            SceneRequest(location="  ", scenario="A fight")


# ===================================================================
# Response processing
# ===================================================================


class TestProcessResponse:
    """Tests for DirectorService.process_response."""

    def test_accepted_response(self, director, screenplay, scene_requests):
        document = Document(text=screenplay, cursor_offset=len(screenplay))
        request = director.prepare_generation(document, scene_requests)

        outcome = director.process_response(
            document, _output("INT. BARN - NIGHT", "EXT. FIELD - DAY"), request
        )

        assert outcome.validation.status == ValidationStatus.ACCEPTED
        assert outcome.scene_block.startswith("INT. BARN - NIGHT\n\nWind howls.")
        assert "\n\nEXT. FIELD - DAY\n\n" in outcome.scene_block
        assert outcome.plan.text_to_insert == "\n\n" + outcome.scene_block
        assert outcome.plan.apply(screenplay) == screenplay + "\n\n" + outcome.scene_block

    def test_warnings_are_logged(self, director, screenplay, scene_requests, caplog):
        document = Document(text=screenplay, cursor_offset=len(screenplay))
        request = director.prepare_generation(document, scene_requests[:1])

        with caplog.at_level(logging.WARNING, logger="services.director"):
            outcome = director.process_response(
                document, _output("INT. BARN - NIGHT", total_lines=99), request
            )

        assert outcome.validation.status == ValidationStatus.ACCEPTED_WITH_WARNINGS
        assert "totalLines" in caplog.text

    def test_rejected_response(self, director, screenplay, scene_requests):
        document = Document(text=screenplay, cursor_offset=len(screenplay))
        request = director.prepare_generation(document, scene_requests)

        with pytest.raises(GenerationRejectedException) as exc_info:
            director.process_response(document, '{"scenes": []}', request)

        assert "at least 1 scene" in exc_info.value.message

    def test_unparseable_response(self, director, screenplay, scene_requests):
        document = Document(text=screenplay, cursor_offset=len(screenplay))
        request = director.prepare_generation(document, scene_requests)

        with pytest.raises(GenerationRejectedException) as exc_info:
            director.process_response(document, "Sorry, I can't help with that.", request)

        assert exc_info.value.message == "invalid JSON"

    def test_tolerance_from_settings(self, prompt_manager, screenplay, scene_requests):
        director = DirectorService(Settings(total_lines_tolerance=5), prompt_manager)
        document = Document(text=screenplay, cursor_offset=len(screenplay))
        request = director.prepare_generation(document, scene_requests[:1])

        outcome = director.process_response(document, _output("INT. BARN - NIGHT", total_lines=7), request)
        assert outcome.validation.status == ValidationStatus.ACCEPTED


# ===================================================================
# Generation with a provider
# ===================================================================


@pytest.mark.asyncio
class TestGenerateScenes:
    """Tests for DirectorService.generate_scenes."""

    async def test_full_flow(self, director, screenplay, scene_requests):
        provider = StaticProvider(_output("INT. BARN - NIGHT", "EXT. FIELD - DAY"))
        document = Document(text=screenplay, cursor_offset=len(screenplay))

        outcome = await director.generate_scenes(provider, document, scene_requests)

        assert outcome.validation.usable
        assert len(provider.calls) == 1
        call = provider.calls[0]
        assert "SCENES TO WRITE:" in call["prompt"]
        assert call["system_prompt"].startswith("You are a professional screenplay director.")
        assert call["temperature"] == director.settings.llm_temperature
        assert call["max_tokens"] == director.settings.llm_max_tokens

    async def test_transport_error_is_wrapped(self, director, screenplay, scene_requests):
        provider = StaticProvider(error=TimeoutError("timed out"))
        document = Document(text=screenplay, cursor_offset=len(screenplay))

        with pytest.raises(LLMException) as exc_info:
            await director.generate_scenes(provider, document, scene_requests)

        assert exc_info.value.details == {"provider": "static"}

    async def test_llm_exception_passes_through(self, director, screenplay, scene_requests):
        error = LLMException("quota exceeded")
        provider = StaticProvider(error=error)
        document = Document(text=screenplay, cursor_offset=len(screenplay))

        with pytest.raises(LLMException) as exc_info:
            await director.generate_scenes(provider, document, scene_requests)

        assert exc_info.value is error

    async def test_invalid_request_skips_model_call(self, director, screenplay):
        provider = StaticProvider(_output("INT. BARN - NIGHT"))
        document = Document(text=screenplay, cursor_offset=0)

        with pytest.raises(ValidationException):
            await director.generate_scenes(provider, document, [])

        assert provider.calls == []
