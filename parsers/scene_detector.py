"""Locate the scene around a cursor offset in Fountain text.

Scene boundaries are inferred from heading lines: the nearest heading at or
above the cursor opens the scene, the next heading below it closes it.  No
heading above the cursor means there is no scene context yet, which callers
treat as a normal state.
"""

import logging
import math
from dataclasses import dataclass

from core.exceptions import OffsetOutOfRangeException
from core.models import DialogueExchange, SceneContext
from parsers.scene_heading import CharacterCueMatcher, SceneHeadingMatcher, parse_scene_heading

logger = logging.getLogger(__name__)

DEFAULT_CHARS_PER_PAGE = 2000
DEFAULT_CONTEXT_BEFORE_CHARS = 150
DEFAULT_CONTEXT_AFTER_CHARS = 200


@dataclass(frozen=True, slots=True)
class SelectionContext:
    """Selected text plus a small window on each side."""

    selected_text: str
    before: str
    after: str
    start: int
    end: int


class _Lines:
    """Line split of a document with the offset each line starts at."""

    __slots__ = ("text", "lines", "starts")

    def __init__(self, text: str) -> None:
        self.text = text
        self.lines = text.split("\n")
        self.starts: list[int] = []
        pos = 0
        for line in self.lines:
            self.starts.append(pos)
            pos += len(line) + 1

    def line_of(self, offset: int) -> int:
        return self.text.count("\n", 0, offset)

    def heading_at_or_before(self, line_index: int) -> int | None:
        for i in range(line_index, -1, -1):
            if SceneHeadingMatcher.is_heading(self.lines[i]):
                return i
        return None

    def scene_end(self, line_index: int) -> int:
        for i in range(line_index + 1, len(self.lines)):
            if SceneHeadingMatcher.is_heading(self.lines[i]):
                return i - 1
        return len(self.lines) - 1


def extract_characters(scene_text: str) -> list[str]:
    """Speaking-character names in *scene_text*, deduplicated, first-seen order."""
    seen: dict[str, None] = {}
    for raw in scene_text.split("\n"):
        line = raw.strip()
        if CharacterCueMatcher.is_speaking_character(line):
            seen.setdefault(line, None)
    return list(seen)


def estimate_act(heading_offset: int, text_length: int) -> int:
    """Rough three-act position of an offset: first quarter, middle half, last quarter."""
    if text_length <= 0:
        return 1
    position = heading_offset / text_length
    if position < 0.25:
        return 1
    if position < 0.75:
        return 2
    return 3


class SceneDetector:
    """Detects the scene containing an offset and the scene before it."""

    def __init__(
        self,
        chars_per_page: int = DEFAULT_CHARS_PER_PAGE,
        context_before_chars: int = DEFAULT_CONTEXT_BEFORE_CHARS,
        context_after_chars: int = DEFAULT_CONTEXT_AFTER_CHARS,
    ) -> None:
        if chars_per_page <= 0:
            raise ValueError("chars_per_page must be positive")
        self.chars_per_page = chars_per_page
        self.context_before_chars = context_before_chars
        self.context_after_chars = context_after_chars

    def detect(self, text: str, offset: int) -> SceneContext | None:
        """Return the scene containing *offset*, or ``None`` if no heading precedes it.

        Raises ``OffsetOutOfRangeException`` for a negative offset or one past
        the end of *text*.
        """
        check_offset(text, offset)
        if not text or offset == 0:
            return None

        doc = _Lines(text)
        current = doc.line_of(offset)
        start = doc.heading_at_or_before(current)
        if start is None:
            logger.debug("No scene heading above offset %d", offset)
            return None

        end = doc.scene_end(current)
        return self._build(doc, start, end, current, offset)

    def extract_previous(self, text: str, start_line: int) -> SceneContext | None:
        """Return the scene immediately before the one starting at *start_line*."""
        if not text or start_line <= 0:
            return None

        doc = _Lines(text)
        if start_line > len(doc.lines):
            raise OffsetOutOfRangeException(
                f"start_line {start_line} is past the last line",
                details={"start_line": start_line, "line_count": len(doc.lines)},
            )

        previous = doc.heading_at_or_before(start_line - 1)
        if previous is None:
            return None

        end = start_line - 1
        # The whole previous scene lies before the cursor.
        offset = doc.starts[end] + len(doc.lines[end])
        return self._build(doc, previous, end, end, offset)

    def _build(self, doc: _Lines, start: int, end: int, current: int, offset: int) -> SceneContext:
        heading = doc.lines[start].strip()
        scene_start = doc.starts[start]
        heading_end = scene_start + len(doc.lines[start])
        content = "\n".join(doc.lines[start : end + 1])

        if offset > heading_end:
            content_before_offset = doc.text[heading_end + 1 : offset]
        else:
            content_before_offset = ""

        cursor_in_scene = offset - scene_start
        before_window = content[max(0, cursor_in_scene - self.context_before_chars) : cursor_in_scene]
        context_before = "\n".join(
            line
            for line in before_window.strip().split("\n")
            if not SceneHeadingMatcher.has_heading_prefix(line)
        ).strip()
        context_after = content[cursor_in_scene : cursor_in_scene + self.context_after_chars].strip()

        total_pages = max(1, math.ceil(len(doc.text) / self.chars_per_page))
        page_number = min(scene_start // self.chars_per_page + 1, total_pages)

        return SceneContext(
            heading=heading,
            act=estimate_act(scene_start, len(doc.text)),
            page_number=page_number,
            total_pages=total_pages,
            characters=extract_characters(content),
            start_line=start,
            end_line=end,
            current_line=current,
            content_before_offset=content_before_offset,
            context_before_cursor=context_before,
            context_after_cursor=context_after,
            content=content,
            components=parse_scene_heading(heading),
        )


def check_offset(text: str, offset: int) -> None:
    if offset < 0 or offset > len(text):
        raise OffsetOutOfRangeException(
            f"Offset {offset} outside document of length {len(text)}",
            details={"offset": offset, "length": len(text)},
        )


def detect_scene(
    text: str,
    offset: int,
    *,
    chars_per_page: int = DEFAULT_CHARS_PER_PAGE,
    context_before_chars: int = DEFAULT_CONTEXT_BEFORE_CHARS,
    context_after_chars: int = DEFAULT_CONTEXT_AFTER_CHARS,
) -> SceneContext | None:
    """Scene containing *offset* in *text*, or ``None`` when there is none yet."""
    return SceneDetector(chars_per_page, context_before_chars, context_after_chars).detect(
        text, offset
    )


def extract_previous_scene(
    text: str,
    start_line: int,
    *,
    chars_per_page: int = DEFAULT_CHARS_PER_PAGE,
) -> SceneContext | None:
    """Scene right before the scene whose heading is on *start_line*."""
    return SceneDetector(chars_per_page).extract_previous(text, start_line)


def extract_recent_dialogue(scene_text: str, count: int = 5) -> list[DialogueExchange]:
    """Return the last *count* character/dialogue exchanges in *scene_text*.

    Dialogue runs from a character cue to the next cue or heading;
    parentheticals are skipped.
    """
    if not scene_text or count <= 0:
        return []

    exchanges: list[DialogueExchange] = []
    speaker: str | None = None
    spoken: list[str] = []

    def flush() -> None:
        if speaker and spoken:
            exchanges.append(DialogueExchange(character=speaker, line=" ".join(spoken).strip()))

    for raw in scene_text.split("\n"):
        line = raw.strip()
        if SceneHeadingMatcher.has_heading_prefix(line):
            flush()
            speaker, spoken = None, []
        elif CharacterCueMatcher.is_speaking_character(line):
            flush()
            speaker, spoken = line, []
        elif speaker and line and not CharacterCueMatcher.is_parenthetical(line):
            spoken.append(line)

    flush()
    return exchanges[-count:]


def extract_selection_context(
    text: str, start: int, end: int, window: int = 100
) -> SelectionContext:
    """Selected text of *text* with up to *window* characters on each side."""
    check_offset(text, start)
    check_offset(text, end)
    if end < start:
        raise OffsetOutOfRangeException(
            "Selection end precedes start", details={"start": start, "end": end}
        )
    return SelectionContext(
        selected_text=text[start:end],
        before=text[max(0, start - window) : start],
        after=text[end : end + window],
        start=start,
        end=end,
    )
