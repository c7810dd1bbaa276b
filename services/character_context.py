"""Short character summaries for the generation prompt."""

import logging
from collections.abc import Iterable

from core.models import CharacterProfile, SceneContext
from parsers.scene_detector import extract_recent_dialogue
from parsers.scene_heading import CharacterCueMatcher

logger = logging.getLogger(__name__)

DEFAULT_SUMMARY_LENGTH = 240


def _key(name: str) -> str:
    return CharacterCueMatcher.base_name(name)


def summarize_character(profile: CharacterProfile, last_line: str | None = None) -> str:
    """``NAME (type, age): description Arc: notes Last line: "..."``"""
    qualifiers = [profile.type.value]
    if profile.age:
        qualifiers.append(profile.age)

    summary = f"{_key(profile.name)} ({', '.join(qualifiers)})"
    details = []
    if profile.description:
        details.append(profile.description.strip())
    if profile.arc_notes:
        details.append(f"Arc: {profile.arc_notes.strip()}")
    if last_line:
        details.append(f'Last line: "{last_line}"')
    if details:
        summary += ": " + " ".join(details)
    return summary


def _truncate(text: str, max_length: int) -> str:
    if max_length <= 0 or len(text) <= max_length:
        return text
    if max_length <= 3:
        return text[:max_length]
    return text[: max_length - 3].rstrip() + "..."


def build_character_summaries(
    scene_context: SceneContext | None,
    registry: Iterable[CharacterProfile] | None,
    *,
    include: Iterable[str] = (),
    max_length: int = DEFAULT_SUMMARY_LENGTH,
) -> list[str]:
    """One summary line per known character of the scene, first-seen order.

    Scene characters come first, then any *include* names.  Names are matched
    to the registry ignoring case, extra whitespace and cue extensions;
    characters missing from the registry are skipped.
    """
    profiles = {_key(profile.name): profile for profile in registry or ()}
    if not profiles:
        return []

    names: dict[str, None] = {}
    if scene_context is not None:
        for name in scene_context.characters:
            names.setdefault(_key(name), None)
    for name in include:
        names.setdefault(_key(name), None)

    last_lines: dict[str, str] = {}
    if scene_context is not None:
        for exchange in extract_recent_dialogue(scene_context.content_before_offset, count=50):
            last_lines[_key(exchange.character)] = exchange.line

    summaries = []
    for name in names:
        profile = profiles.get(name)
        if profile is None:
            logger.debug("No registry entry for %s", name)
            continue
        summaries.append(_truncate(summarize_character(profile, last_lines.get(name)), max_length))
    return summaries
