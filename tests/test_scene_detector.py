"""Tests for heading/cue classification and scene detection."""

import math

import pytest

from core.exceptions import OffsetOutOfRangeException
from core.models import LocationType, TimeOfDay
from parsers.scene_detector import (
    SceneDetector,
    detect_scene,
    estimate_act,
    extract_characters,
    extract_previous_scene,
    extract_recent_dialogue,
    extract_selection_context,
)
from parsers.scene_heading import CharacterCueMatcher, SceneHeadingMatcher, parse_scene_heading

# ===================================================================
# Scene Heading Matcher
# ===================================================================


class TestSceneHeadingMatcher:
    """Tests for parsers.scene_heading.SceneHeadingMatcher."""

    @pytest.mark.parametrize(
        "line",
        [
            "INT. WAREHOUSE - NIGHT",
            "EXT. BEACH - DAY",
            "I/E. VAN - MOMENTS LATER",
            "INT./EXT. CAR - CONTINUOUS",
            "int. kitchen - later",
            "  EXT. ROOF - NIGHT  ",
        ],
    )
    def test_headings(self, line):
        assert SceneHeadingMatcher.is_heading(line)

    @pytest.mark.parametrize(
        "line",
        [
            "INT. WAREHOUSE",
            "INTERIOR WAREHOUSE - NIGHT",
            "JANE",
            "She walks into the INT. office - day",
            "",
        ],
    )
    def test_non_headings(self, line):
        assert not SceneHeadingMatcher.is_heading(line)

    def test_prefix_without_time_of_day(self):
        assert SceneHeadingMatcher.has_heading_prefix("INT. WAREHOUSE")
        assert not SceneHeadingMatcher.has_heading_prefix("DR. MARTINEZ")

    def test_location_key_ignores_time_and_case(self):
        assert SceneHeadingMatcher.location_key("INT. CABIN - NIGHT") == "int. cabin"
        assert SceneHeadingMatcher.location_key("int.  Cabin - DAY") == "int. cabin"


class TestCharacterCueMatcher:
    """Tests for parsers.scene_heading.CharacterCueMatcher."""

    @pytest.mark.parametrize("line", ["JANE", "DR MARTINEZ", "AGENT #2", "O'BRIEN", "TOM 2"])
    def test_pure_character_names(self, line):
        assert CharacterCueMatcher.is_pure_character_name(line)

    @pytest.mark.parametrize(
        "line",
        [
            "J",
            "Jane",
            "JANE (V.O.)",
            "DR. MARTINEZ",
            "DR. MARTINEZ, 50S, WEATHERED ZOOKEEPER",
            "A" * 51,
        ],
    )
    def test_not_pure_character_names(self, line):
        assert not CharacterCueMatcher.is_pure_character_name(line)

    @pytest.mark.parametrize("line", ["JANE", "DR. MARTINEZ", "JANE (V.O.)", "TOM (CONT'D)"])
    def test_character_cues(self, line):
        assert CharacterCueMatcher.is_character_cue(line)

    @pytest.mark.parametrize(
        "line", ["She enters.", "INT. CABIN - NIGHT", "DR. MARTINEZ, 50S", "HELLO?"]
    )
    def test_not_character_cues(self, line):
        assert not CharacterCueMatcher.is_character_cue(line)

    def test_transitions_are_not_speaking_characters(self):
        assert not CharacterCueMatcher.is_speaking_character("THE END")
        assert not CharacterCueMatcher.is_speaking_character("CUT TO")
        assert CharacterCueMatcher.is_speaking_character("JANE")

    def test_parenthetical(self):
        assert CharacterCueMatcher.is_parenthetical("(whispering)")
        assert not CharacterCueMatcher.is_parenthetical("She whispers (softly).")

    def test_base_name(self):
        assert CharacterCueMatcher.base_name("Jane  (V.O.)") == "JANE"
        assert CharacterCueMatcher.base_name("  dr.  martinez ") == "DR. MARTINEZ"


class TestParseSceneHeading:
    """Tests for parsers.scene_heading.parse_scene_heading."""

    def test_int_night(self):
        result = parse_scene_heading("INT. CABIN - NIGHT")
        assert result.location_type == LocationType.INT
        assert result.location == "CABIN"
        assert result.time_of_day == TimeOfDay.NIGHT

    def test_int_ext_moments_later(self):
        result = parse_scene_heading("INT./EXT. CAR - MOMENTS LATER")
        assert result.location_type == LocationType.INT_EXT
        assert result.location == "CAR"
        assert result.time_of_day == TimeOfDay.MOMENTS_LATER

    def test_location_with_inner_dash(self):
        result = parse_scene_heading("EXT. FOREST - CLEARING - DAY")
        assert result.location == "FOREST - CLEARING"
        assert result.time_of_day == TimeOfDay.DAY

    def test_unknown_time(self):
        result = parse_scene_heading("I/E. VAN")
        assert result.location_type == LocationType.INT_EXT
        assert result.location == "VAN"
        assert result.time_of_day == TimeOfDay.UNKNOWN


# ===================================================================
# Scene Detection
# ===================================================================


class TestDetectScene:
    """Tests for parsers.scene_detector.detect_scene."""

    def test_scene_around_offset(self, screenplay):
        offset = screenplay.index("Just the wind.")
        scene = detect_scene(screenplay, offset)

        assert scene is not None
        assert scene.heading == "INT. CABIN - NIGHT"
        assert scene.start_line == 2
        assert scene.end_line == 12
        assert scene.current_line == 11
        assert scene.characters == ["JANE", "TOM"]
        assert scene.components.location == "CABIN"

    def test_start_line_points_at_heading(self, screenplay):
        lines = screenplay.split("\n")
        for offset in range(1, len(screenplay) + 1):
            scene = detect_scene(screenplay, offset)
            if scene is not None:
                assert SceneHeadingMatcher.is_heading(lines[scene.start_line])

    def test_content_before_offset(self, screenplay):
        offset = screenplay.index("Just the wind.")
        scene = detect_scene(screenplay, offset)

        assert scene.content_before_offset == (
            "\nRain hammers the roof.\n\nJANE\nIs anyone out there?\n\nTOM\n(whispering)\n"
        )

    def test_offset_on_heading_line(self, screenplay):
        offset = screenplay.index("EXT. FOREST") + 3
        scene = detect_scene(screenplay, offset)

        assert scene.heading == "EXT. FOREST - DAY"
        assert scene.content_before_offset == ""

    def test_offset_at_end_of_document(self, screenplay):
        scene = detect_scene(screenplay, len(screenplay))

        assert scene.heading == "EXT. FOREST - DAY"
        assert scene.characters == ["JANE"]
        assert scene.end_line == len(screenplay.split("\n")) - 1

    def test_context_windows_drop_headings(self, screenplay):
        offset = screenplay.index("Just the wind.")
        scene = detect_scene(screenplay, offset)

        assert "INT. CABIN" not in scene.context_before_cursor
        assert scene.context_before_cursor.endswith("(whispering)")
        assert scene.context_after_cursor == "Just the wind."

    def test_context_before_window_size(self, screenplay):
        offset = screenplay.index("Just the wind.")
        scene = detect_scene(screenplay, offset, context_before_chars=10)

        assert len(scene.context_before_cursor) <= 10

    def test_no_heading_before_offset(self, screenplay):
        assert detect_scene(screenplay, screenplay.index("IN:")) is None

    def test_offset_zero_and_empty_text(self, screenplay):
        assert detect_scene(screenplay, 0) is None
        assert detect_scene("", 0) is None

    @pytest.mark.parametrize("offset", [-1, 10_000])
    def test_offset_out_of_range(self, screenplay, offset):
        with pytest.raises(OffsetOutOfRangeException):
            detect_scene(screenplay, offset)

    def test_out_of_range_is_value_error(self):
        with pytest.raises(ValueError):
            detect_scene("abc", 4)

    def test_page_estimate(self, screenplay):
        offset = len(screenplay)
        scene = detect_scene(screenplay, offset, chars_per_page=20)

        assert scene.page_number == screenplay.index("EXT. FOREST") // 20 + 1
        assert scene.total_pages == math.ceil(len(screenplay) / 20)

    def test_single_page_document(self, screenplay):
        scene = detect_scene(screenplay, len(screenplay))
        assert scene.page_number == 1
        assert scene.total_pages == 1

    def test_detection_is_deterministic(self, screenplay):
        offsets = [5, 40, screenplay.index("Tom!"), len(screenplay)]
        for offset in offsets:
            assert detect_scene(screenplay, offset) == detect_scene(screenplay, offset)

    def test_repeated_heading_resolved_by_position(self):
        text = "INT. A - DAY\n\nBOB\nHi.\n\nINT. A - DAY\n\nSUE\nYo."

        second = detect_scene(text, len(text))
        assert second.start_line == 5
        assert second.characters == ["SUE"]

        first = detect_scene(text, text.index("Hi."))
        assert first.start_line == 0
        assert first.end_line == 4
        assert first.characters == ["BOB"]
        assert first.heading == second.heading

    def test_invalid_page_size(self):
        with pytest.raises(ValueError):
            SceneDetector(chars_per_page=0)


class TestEstimateAct:
    """Tests for parsers.scene_detector.estimate_act."""

    @pytest.mark.parametrize(
        ("offset", "length", "act"),
        [(0, 100, 1), (24, 100, 1), (25, 100, 2), (74, 100, 2), (75, 100, 3), (0, 0, 1)],
    )
    def test_act_boundaries(self, offset, length, act):
        assert estimate_act(offset, length) == act


class TestPreviousScene:
    """Tests for parsers.scene_detector.extract_previous_scene."""

    def test_previous_scene(self, screenplay):
        current = detect_scene(screenplay, len(screenplay))
        previous = extract_previous_scene(screenplay, current.start_line)

        assert previous.heading == "INT. CABIN - NIGHT"
        assert previous.start_line == 2
        assert previous.end_line == current.start_line - 1
        assert previous.characters == ["JANE", "TOM"]
        assert "Just the wind." in previous.content
        assert "EXT. FOREST" not in previous.content

    def test_first_scene_has_no_previous(self, screenplay):
        assert extract_previous_scene(screenplay, 2) is None
        assert extract_previous_scene(screenplay, 0) is None

    def test_start_line_past_end(self, screenplay):
        with pytest.raises(OffsetOutOfRangeException):
            extract_previous_scene(screenplay, 500)


# ===================================================================
# Helpers
# ===================================================================


class TestExtractionHelpers:
    """Tests for character, dialogue and selection helpers."""

    def test_extract_characters_first_seen_order(self):
        text = "TOM\nHi.\n\nJANE\nHey.\n\nTOM\nBye.\n\nCUT TO\n\nTHE END"
        assert extract_characters(text) == ["TOM", "JANE"]

    def test_recent_dialogue(self, screenplay):
        scene = detect_scene(screenplay, screenplay.index("EXT. FOREST") - 1)
        exchanges = extract_recent_dialogue(scene.content)

        assert [(e.character, e.line) for e in exchanges] == [
            ("JANE", "Is anyone out there?"),
            ("TOM", "Just the wind."),
        ]

    def test_recent_dialogue_count(self, screenplay):
        exchanges = extract_recent_dialogue(screenplay, count=1)
        assert len(exchanges) == 1
        assert exchanges[0].character == "JANE"
        assert exchanges[0].line == "Tom!"

    def test_recent_dialogue_empty(self):
        assert extract_recent_dialogue("") == []
        assert extract_recent_dialogue("JANE\nHi.", count=0) == []

    def test_selection_context(self):
        text = "0123456789abcdefghij"
        context = extract_selection_context(text, 10, 12, window=3)

        assert context.selected_text == "ab"
        assert context.before == "789"
        assert context.after == "cde"

    def test_selection_context_reversed(self):
        with pytest.raises(OffsetOutOfRangeException):
            extract_selection_context("abcdef", 4, 2)
