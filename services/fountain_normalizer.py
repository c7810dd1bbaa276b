"""Normalize generated scene lines to Fountain formatting.

Two passes run over every scene's content:

1. Capitalization repair -- models often emit character introductions and
   action in ALL CAPS (``DR. MARTINEZ, 50S, WEATHERED ZOOKEEPER``).  Such a
   line would be read as a character cue, so it is rewritten in sentence
   case.  Bare cues (``DR. MARTINEZ``) are never touched.
2. Spacing -- blank lines are re-derived from the element sequence: one
   blank line between elements, parentheticals kept directly under the cue
   or dialogue they belong to.

Sentence case lower-cases proper nouns inside repaired lines.  That loss is
known and kept, since downstream consumers see the same output for the same
input.
"""

import logging
import re
from collections.abc import Iterable, Sequence
from enum import Enum

from core.models import GeneratedScene
from parsers.scene_heading import CharacterCueMatcher, SceneHeadingMatcher

logger = logging.getLogger(__name__)

_AGE_OR_DURATION_RE = re.compile(
    r",\s*(?:(?:EARLY|MID|LATE)[\s-]*)?\d+\s*"
    r"(?:'?S|YEARS?|YRS?|MONTHS?|WEEKS?|DAYS?|HOURS?|MINUTES?)?\b",
    re.IGNORECASE,
)
_ACTION_VERB_RE = re.compile(
    r"\b(?:exits|enters|walks|runs|sits|stands|grabs|takes|opens|closes|weathered|years)\b",
    re.IGNORECASE,
)
_LOWERCASE_RE = re.compile(r"[a-z]")


class ElementKind(str, Enum):
    """Fountain element a content line is read as."""

    ACTION = "action"
    CHARACTER = "character"
    PARENTHETICAL = "parenthetical"
    DIALOGUE = "dialogue"


# ---------------------------------------------------------------------------
# Capitalization repair
# ---------------------------------------------------------------------------


def has_upper_case_lead(line: str) -> bool:
    """True if the text before the first comma starts with a capital and has no lowercase."""
    lead = line.split(",", 1)[0].strip()
    return bool(lead) and "A" <= lead[0] <= "Z" and not _LOWERCASE_RE.search(lead)


def matches_description_pattern(line: str) -> bool:
    """Age/duration after a comma, or a common action verb."""
    return bool(_AGE_OR_DURATION_RE.search(line) or _ACTION_VERB_RE.search(line))


def is_miscased_action(line: str) -> bool:
    """True if *line* reads as an action line typed in capitals."""
    text = line.strip()
    return (
        has_upper_case_lead(text)
        and matches_description_pattern(text)
        and not SceneHeadingMatcher.is_heading(text)
        and not SceneHeadingMatcher.has_heading_prefix(text)
        and not CharacterCueMatcher.is_pure_character_name(text)
    )


def to_sentence_case(line: str) -> str:
    if not line:
        return line
    return line[0].upper() + line[1:].lower()


def repair_capitalization(line: str) -> str:
    """Rewrite a mis-cased action line in sentence case; pass anything else through."""
    text = line.strip()
    if is_miscased_action(text):
        repaired = to_sentence_case(text)
        logger.debug("Repaired capitalization: %r -> %r", text, repaired)
        return repaired
    return text


# ---------------------------------------------------------------------------
# Spacing
# ---------------------------------------------------------------------------


def _expand(lines: Iterable[str] | str) -> list[str]:
    """Split embedded newlines, strip, drop blank lines."""
    if isinstance(lines, str):
        lines = [lines]
    expanded: list[str] = []
    for item in lines:
        for part in str(item).split("\n"):
            part = part.strip()
            if part:
                expanded.append(part)
    return expanded


def classify_elements(lines: Sequence[str]) -> list[ElementKind]:
    """Element kind of each non-blank line, in order."""
    kinds: list[ElementKind] = []
    for line in lines:
        previous = kinds[-1] if kinds else None
        if CharacterCueMatcher.is_parenthetical(line):
            kind = ElementKind.PARENTHETICAL
        elif CharacterCueMatcher.is_character_cue(line):
            kind = ElementKind.CHARACTER
        elif previous in (ElementKind.CHARACTER, ElementKind.PARENTHETICAL):
            kind = ElementKind.DIALOGUE
        else:
            kind = ElementKind.ACTION
        kinds.append(kind)
    return kinds


def _needs_blank_line(previous: ElementKind, current: ElementKind) -> bool:
    if current == ElementKind.PARENTHETICAL and previous in (
        ElementKind.CHARACTER,
        ElementKind.DIALOGUE,
    ):
        return False
    if current == ElementKind.DIALOGUE and previous == ElementKind.PARENTHETICAL:
        return False
    return True


def apply_spacing(lines: Sequence[str]) -> list[str]:
    """Interleave blank lines (``""``) between elements; no leading or trailing blanks."""
    kinds = classify_elements(lines)
    spaced: list[str] = []
    for index, (line, kind) in enumerate(zip(lines, kinds)):
        if index and _needs_blank_line(kinds[index - 1], kind):
            spaced.append("")
        spaced.append(line)
    return spaced


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def normalize_lines(lines: Iterable[str] | str) -> list[str]:
    """Repair capitalization and re-derive spacing.

    A single string is treated as newline-separated text, so normalized output
    can be fed back in.

    The result contains ``""`` entries for blank lines and is a fixed point:
    ``normalize_lines(normalize_lines(x)) == normalize_lines(x)``.
    """
    repaired = [repair_capitalization(line) for line in _expand(lines)]
    return apply_spacing(repaired)


def normalize(lines: Iterable[str] | str) -> str:
    """Normalized content as newline-joined Fountain text."""
    return "\n".join(normalize_lines(lines))


def format_scene(scene: GeneratedScene) -> str:
    body = normalize(scene.content)
    heading = scene.heading.strip()
    return f"{heading}\n\n{body}" if body else heading


def format_scenes(scenes: Sequence[GeneratedScene]) -> str:
    """Join formatted scenes with one blank line between them."""
    return "\n\n".join(format_scene(scene) for scene in scenes)
