"""Compute the splice that inserts a generated scene block at the cursor.

The block is padded so it sits two newlines (one blank line) away from the
text on either side, the way Fountain separates elements.  Padding is only
ever added: existing text is never touched, and newlines already present at
the cursor are counted before any are added.
"""

import logging

from core.models import InsertionPlan
from parsers.scene_detector import check_offset
from parsers.scene_heading import SceneHeadingMatcher

logger = logging.getLogger(__name__)

DEFAULT_HEADING_LOOKBACK = 100

SEPARATION = 2

# Leading rules, in evaluation order.
TEXT_ON_CURRENT_LINE = "text_on_current_line"
HEADING_BEFORE_CURSOR = "heading_before_cursor"
DEFAULT = "default"

# Trailing rules.
NOTHING_AFTER = "nothing_after"
HEADING_AFTER_SEPARATED = "heading_after_separated"
HEADING_AFTER_ONE_NEWLINE = "heading_after_one_newline"
HEADING_AFTER_NO_NEWLINE = "heading_after_no_newline"
TEXT_AFTER_NO_NEWLINE = "text_after_no_newline"
TEXT_AFTER_NEWLINE = "text_after_newline"


def _newlines_in(whitespace: str) -> int:
    return whitespace.count("\n")


def _top_up(existing: int, target: int = SEPARATION) -> str:
    return "\n" * max(0, target - existing)


def leading_rule(before: str, heading_lookback: int = DEFAULT_HEADING_LOOKBACK) -> str:
    """Name of the leading rule that applies to the text before the cursor."""
    current_line = before.rsplit("\n", 1)[-1]
    if current_line.strip():
        return TEXT_ON_CURRENT_LINE

    recent = before[-heading_lookback:].strip() if heading_lookback > 0 else ""
    if recent and SceneHeadingMatcher.is_heading(recent.rsplit("\n", 1)[-1]):
        return HEADING_BEFORE_CURSOR

    return DEFAULT


def leading_padding(before: str, rule: str) -> str:
    """Newlines to place before the block.

    Every rule aims at the same two-newline separation; they are kept apart
    so each case can be tuned on its own.
    """
    trailing_whitespace = before[len(before.rstrip()) :]
    existing = _newlines_in(trailing_whitespace)

    if rule == TEXT_ON_CURRENT_LINE:
        return _top_up(existing)
    if rule == HEADING_BEFORE_CURSOR:
        return _top_up(existing)
    return _top_up(existing)


def trailing_rule(after: str) -> str:
    """Name of the trailing rule that applies to the text after the cursor."""
    stripped = after.lstrip()
    if not stripped:
        return NOTHING_AFTER

    existing = _newlines_in(after[: len(after) - len(stripped)])
    first_line = stripped.split("\n", 1)[0]

    if SceneHeadingMatcher.is_heading(first_line):
        if existing >= SEPARATION:
            return HEADING_AFTER_SEPARATED
        if existing == 1:
            return HEADING_AFTER_ONE_NEWLINE
        return HEADING_AFTER_NO_NEWLINE

    if existing == 0:
        return TEXT_AFTER_NO_NEWLINE
    return TEXT_AFTER_NEWLINE


_TRAILING_PADDING = {
    NOTHING_AFTER: "",
    HEADING_AFTER_SEPARATED: "",
    HEADING_AFTER_ONE_NEWLINE: "\n",
    HEADING_AFTER_NO_NEWLINE: "\n\n",
    TEXT_AFTER_NO_NEWLINE: "\n",
    TEXT_AFTER_NEWLINE: "",
}


def plan_insertion(
    document_text: str,
    cursor_offset: int,
    scene_block: str,
    *,
    heading_lookback: int = DEFAULT_HEADING_LOOKBACK,
) -> InsertionPlan:
    """Plan the splice of *scene_block* into *document_text* at *cursor_offset*.

    Raises ``OffsetOutOfRangeException`` if the offset lies outside the text.
    """
    check_offset(document_text, cursor_offset)

    before = document_text[:cursor_offset]
    after = document_text[cursor_offset:]

    lead_rule = leading_rule(before, heading_lookback)
    lead = leading_padding(before, lead_rule)
    trail_rule = trailing_rule(after)
    trail = _TRAILING_PADDING[trail_rule]

    logger.debug(
        "Insertion at %d: leading=%s (%d), trailing=%s (%d)",
        cursor_offset,
        lead_rule,
        len(lead),
        trail_rule,
        len(trail),
    )

    return InsertionPlan(
        text_to_insert=f"{lead}{scene_block}{trail}",
        insert_at=cursor_offset,
        leading_padding=lead,
        trailing_padding=trail,
        leading_rule=lead_rule,
        trailing_rule=trail_rule,
    )
