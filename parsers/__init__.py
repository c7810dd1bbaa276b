"""Heuristic Fountain parsing: headings, character cues and scene detection."""

from parsers.scene_detector import SceneDetector, detect_scene, extract_previous_scene
from parsers.scene_heading import CharacterCueMatcher, SceneHeadingMatcher, parse_scene_heading

__all__ = [
    "CharacterCueMatcher",
    "SceneDetector",
    "SceneHeadingMatcher",
    "detect_scene",
    "extract_previous_scene",
    "parse_scene_heading",
]
