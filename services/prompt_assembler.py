"""Assemble the scene-generation prompt.

Sections appear in a fixed order and are left out entirely when empty:

1. the previous scene's text
2. the current scene up to the cursor
3. character summaries
4. one block per requested scene
5. generation rules

Pure string assembly: nothing is validated here and nothing raises for
missing context.
"""

from collections.abc import Sequence

from core.models import SceneContext, SceneRequest
from llm.prompt_manager import PromptManager, get_prompt_manager

PROMPT_SECTION = "director"
PROMPT_NAME = "scenes"


def _format_request(prompts: PromptManager, number: int, request: SceneRequest) -> str:
    block = prompts.get_text(
        "sections",
        "request",
        number=number,
        location=request.location,
        scenario=request.scenario,
    )
    if request.direction:
        block += "\n" + prompts.get_text("sections", "direction", direction=request.direction)
    return block


def _current_scene_text(scene_context: SceneContext | None) -> str:
    if scene_context is None:
        return ""
    body = scene_context.content_before_offset.strip()
    return f"{scene_context.heading}\n\n{body}" if body else scene_context.heading


def build_prompt(
    scene_requests: Sequence[SceneRequest],
    scene_context: SceneContext | None,
    previous_scene_text: str | None,
    character_summaries: Sequence[str],
    *,
    prompts: PromptManager | None = None,
) -> str:
    """Build the user prompt for generating *scene_requests* after the current scene."""
    prompts = prompts or get_prompt_manager()
    sections: list[str] = []

    if previous_scene_text and previous_scene_text.strip():
        sections.append(
            f"{prompts.get_text('sections', 'previous_scene')}\n{previous_scene_text.strip()}"
        )

    current = _current_scene_text(scene_context)
    if current:
        sections.append(f"{prompts.get_text('sections', 'current_scene')}\n{current}")

    summaries = [summary for summary in character_summaries if summary.strip()]
    if summaries:
        listed = "\n".join(f"- {summary}" for summary in summaries)
        sections.append(f"{prompts.get_text('sections', 'characters')}\n{listed}")

    if scene_requests:
        blocks = "\n\n".join(
            _format_request(prompts, number, request)
            for number, request in enumerate(scene_requests, start=1)
        )
        sections.append(f"{prompts.get_text('sections', 'requests')}\n{blocks}")

    count = len(scene_requests)
    current_heading = (
        scene_context.heading if scene_context else prompts.get_text("sections", "no_current_scene")
    )
    _, instructions = prompts.get(
        PROMPT_SECTION,
        PROMPT_NAME,
        scene_count=count,
        scene_word="scene" if count == 1 else "scenes",
        current_heading=current_heading,
    )
    sections.append(instructions)

    return "\n\n".join(sections)


def get_system_prompt(scene_count: int = 1, *, prompts: PromptManager | None = None) -> str:
    """System instruction mandating the JSON scene schema."""
    prompts = prompts or get_prompt_manager()
    system = prompts.get_system(PROMPT_SECTION, PROMPT_NAME)
    if scene_count > 1:
        system += f"\n\nReturn exactly {scene_count} scenes in the \"scenes\" array."
    return system
