"""Validate the model's JSON scene response.

Checks come in two tiers:

* hard checks -- the response parses, ``scenes`` is a non-empty list and every
  scene has a heading and at least three content lines.  Any failure rejects
  the whole response.
* soft checks -- self-reported ``totalLines``, the scene count, heading style,
  organizational lines, duplicated headings.  Failures become warnings; the
  scenes stay usable.

Models miscount reliably, so a wrong ``totalLines`` must never cost a good
scene.
"""

import json
import logging
import re
from typing import Any

from core.models import GeneratedScene, ValidationResult, ValidationStatus
from parsers.scene_heading import SceneHeadingMatcher

logger = logging.getLogger(__name__)

INVALID_JSON = "invalid JSON"

DEFAULT_MIN_CONTENT_LINES = 3
DEFAULT_MAX_CONTENT_LINES = 50

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def find_first_json_object(text: str) -> str | None:
    """Return the first balanced top-level ``{...}`` in *text*, or ``None``.

    Braces inside JSON strings (including escaped quotes) are ignored.
    """
    depth = 0
    start = -1
    in_string = False
    escaped = False

    for index, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"' and depth > 0:
            in_string = True
        elif char == "{":
            if depth == 0:
                start = index
            depth += 1
        elif char == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                return text[start : index + 1]

    return None


def extract_json_object(text: str) -> dict[str, Any] | None:
    """Parse the model output into a JSON object, tolerating surrounding prose.

    Tries, in order: the whole text, the first fenced code block, the first
    balanced object anywhere.  Returns ``None`` if none of them is an object.
    """
    if not text or not text.strip():
        return None

    candidates = [text.strip()]
    fence = _FENCE_RE.search(text)
    if fence:
        candidates.append(fence.group(1))

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except ValueError:
            parsed = None
        if isinstance(parsed, dict):
            return parsed

        snippet = find_first_json_object(candidate)
        if snippet is None:
            continue
        try:
            parsed = json.loads(snippet)
        except ValueError:
            continue
        if isinstance(parsed, dict):
            return parsed

    return None


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------


def check_hard_requirements(
    raw: dict[str, Any], min_content_lines: int = DEFAULT_MIN_CONTENT_LINES
) -> list[str]:
    """Errors that make the response unusable.  Empty list means usable."""
    scenes = raw.get("scenes")
    if scenes is None:
        return ['Missing required field: "scenes"']
    if not isinstance(scenes, list):
        return ['Field "scenes" must be an array']
    if not scenes:
        return ['Field "scenes" must have at least 1 scene']

    errors: list[str] = []
    for number, scene in enumerate(scenes, start=1):
        if not isinstance(scene, dict):
            errors.append(f"Scene {number} must be an object")
            continue

        heading = scene.get("heading")
        if not isinstance(heading, str) or not heading.strip():
            errors.append(f'Scene {number}: Missing required field "heading"')

        content = scene.get("content")
        if not isinstance(content, list):
            errors.append(f'Scene {number}: Field "content" must be an array')
        elif len(content) < min_content_lines:
            errors.append(
                f"Scene {number}: Content must have at least {min_content_lines} lines "
                f"(got {len(content)})"
            )
        elif not all(isinstance(line, str) for line in content):
            errors.append(f"Scene {number}: Every content line must be a string")

    return errors


def check_soft_requirements(
    raw: dict[str, Any],
    context_before_cursor: str | None,
    requested_scene_count: int,
    max_content_lines: int = DEFAULT_MAX_CONTENT_LINES,
    total_lines_tolerance: int = 0,
) -> list[str]:
    """Cosmetic mismatches.  Only call once the hard checks passed."""
    scenes: list[dict[str, Any]] = raw["scenes"]
    warnings: list[str] = []

    if len(scenes) != requested_scene_count:
        warnings.append(f"Expected {requested_scene_count} scene(s), got {len(scenes)}")

    total_lines = raw.get("totalLines")
    if total_lines is not None:
        actual = sum(len(scene["content"]) for scene in scenes)
        if isinstance(total_lines, bool) or not isinstance(total_lines, int):
            warnings.append('Field "totalLines" must be an integer')
        elif abs(total_lines - actual) > total_lines_tolerance:
            warnings.append(
                f'Field "totalLines" ({total_lines}) does not match actual content length ({actual})'
            )

    context_headings = _context_headings(context_before_cursor)

    for number, scene in enumerate(scenes, start=1):
        heading = scene["heading"].strip()
        if not SceneHeadingMatcher.has_heading_prefix(heading):
            warnings.append(f"Scene {number}: Heading must start with INT./EXT./I/E.")
        elif SceneHeadingMatcher.location_key(heading) in context_headings:
            warnings.append(f"Scene {number}: Scene heading is a duplicate of content before cursor")

        content: list[str] = scene["content"]
        if len(content) > max_content_lines:
            warnings.append(
                f"Scene {number}: Content must have at most {max_content_lines} lines "
                f"(got {len(content)})"
            )
        for line_number, line in enumerate(content, start=1):
            stripped = line.strip()
            if stripped.startswith("="):
                warnings.append(f"Scene {number}, line {line_number}: Synopsis lines are not allowed")
            elif stripped.startswith("#"):
                warnings.append(f"Scene {number}, line {line_number}: Section lines are not allowed")

    return warnings


def _context_headings(context: str | None) -> set[str]:
    if not context:
        return set()
    return {
        SceneHeadingMatcher.location_key(line)
        for line in context.split("\n")
        if SceneHeadingMatcher.has_heading_prefix(line)
    }


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def validate_response(
    model_output: str,
    context_before_cursor: str | None,
    requested_scene_count: int,
    *,
    min_content_lines: int = DEFAULT_MIN_CONTENT_LINES,
    max_content_lines: int = DEFAULT_MAX_CONTENT_LINES,
    total_lines_tolerance: int = 0,
) -> ValidationResult:
    """Validate *model_output* against the scene-array schema.

    Never raises for malformed output; the outcome is carried by the
    returned ``ValidationResult``.
    """
    raw = extract_json_object(model_output or "")
    if raw is None:
        logger.warning("Model response is not parseable JSON")
        return ValidationResult.rejected([INVALID_JSON])

    critical = check_hard_requirements(raw, min_content_lines)
    if critical:
        logger.warning("Model response rejected: %s", critical[0])
        return ValidationResult.rejected(critical, raw_json=raw)

    warnings = check_soft_requirements(
        raw,
        context_before_cursor,
        requested_scene_count,
        max_content_lines=max_content_lines,
        total_lines_tolerance=total_lines_tolerance,
    )
    scenes = [
        GeneratedScene(heading=scene["heading"], content=scene["content"])
        for scene in raw["scenes"]
    ]

    if warnings:
        logger.info("Model response accepted with %d warning(s)", len(warnings))
        status = ValidationStatus.ACCEPTED_WITH_WARNINGS
    else:
        status = ValidationStatus.ACCEPTED

    return ValidationResult(status=status, scenes=scenes, warnings=warnings, raw_json=raw)
