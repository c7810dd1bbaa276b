"""Line classifiers for Fountain screenplay text.

Headings and character cues are recognised heuristically, the same way
real drafts are read: by regex over single stripped lines.

    INT. WAREHOUSE - NIGHT        -> scene heading
    I/E. VAN - MOMENTS LATER      -> scene heading
    DR. MARTINEZ                  -> character cue
    JANE (V.O.)                   -> character cue with extension
"""

import re

from core.models import HeadingComponents, LocationType, TimeOfDay

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

_HEADING_PREFIX = r"(?:INT\.?\s*/\s*EXT\.|EXT\.?\s*/\s*INT\.|INT\.|EXT\.|I/E\.)"

# Full heading: prefix, location, dash, time-of-day token.
HEADING_RE = re.compile(
    rf"^{_HEADING_PREFIX}\s+.+-\s+(DAY|NIGHT|CONTINUOUS|LATER|MOMENTS LATER)",
    re.IGNORECASE,
)

# Prefix only -- used where anything that starts like a heading must be left alone.
HEADING_PREFIX_RE = re.compile(rf"^{_HEADING_PREFIX}", re.IGNORECASE)

PURE_CHARACTER_NAME_RE = re.compile(r"^[A-Z][A-Z\s#0-9']+$")
_LOWERCASE_RE = re.compile(r"[a-z]")
_PARENTHETICAL_CONTENT_RE = re.compile(r"\([^)]+\)")
_PARENTHETICAL_LINE_RE = re.compile(r"^\(.+\)$")

# Cue extensions that keep a line a character cue: (V.O.), (O.S.), (CONT'D)...
_CUE_EXTENSION_RE = re.compile(r"^(?P<name>.+?)\s*(?:\((?:V\.O\.|O\.S\.|O\.C\.|CONT'D|CONT’D)\)\s*)+\^?$")

# Cue names with honorifics or initials: DR. MARTINEZ, MRS. O'BRIEN, J.J.
_TITLED_NAME_RE = re.compile(r"^[A-Z][A-Z\s#0-9'.\-]*[A-Z0-9]$")

# All-caps lines that look like names but are transitions or markers.
NON_CHARACTER_LINES = frozenset(
    {
        "THE END",
        "CONTINUED",
        "FADE IN",
        "FADE OUT",
        "FADE TO BLACK",
        "BLACK",
        "CUT TO",
        "SMASH CUT",
        "DISSOLVE TO",
        "MORE",
    }
)

# Time-of-day tokens (longer first so "MOMENTS LATER" wins over "LATER").
_TIME_MAP: list[tuple[str, TimeOfDay]] = [
    ("MOMENTS LATER", TimeOfDay.MOMENTS_LATER),
    ("CONTINUOUS", TimeOfDay.CONTINUOUS),
    ("NIGHT", TimeOfDay.NIGHT),
    ("LATER", TimeOfDay.LATER),
    ("DAY", TimeOfDay.DAY),
]

# Location-type prefixes (order matters -- longer matches first)
_LOC_PREFIXES: list[tuple[re.Pattern[str], LocationType]] = [
    (re.compile(r"^INT\.?\s*/\s*EXT\.", re.IGNORECASE), LocationType.INT_EXT),
    (re.compile(r"^EXT\.?\s*/\s*INT\.", re.IGNORECASE), LocationType.INT_EXT),
    (re.compile(r"^I/E\.", re.IGNORECASE), LocationType.INT_EXT),
    (re.compile(r"^INT\.", re.IGNORECASE), LocationType.INT),
    (re.compile(r"^EXT\.", re.IGNORECASE), LocationType.EXT),
]

# Separator between location and time-of-day (dash variants)
_SEP_RE = re.compile(r"\s+[-–—]\s+")


class SceneHeadingMatcher:
    """Classifies lines as scene headings."""

    @staticmethod
    def is_heading(line: str) -> bool:
        """True if *line* is a complete heading (prefix, location, time of day)."""
        return bool(HEADING_RE.match(line.strip()))

    @staticmethod
    def has_heading_prefix(line: str) -> bool:
        """True if *line* starts like a heading, time of day or not."""
        return bool(HEADING_PREFIX_RE.match(line.strip()))

    @staticmethod
    def location_key(line: str) -> str:
        """Lower-cased heading text before the first `` - `` separator.

        Two headings sharing a key name the same place, whatever the time.
        """
        normalized = re.sub(r"\s+", " ", line.strip().lower())
        return _SEP_RE.split(normalized, maxsplit=1)[0]


class CharacterCueMatcher:
    """Classifies lines as character cues and parentheticals."""

    @staticmethod
    def is_pure_character_name(line: str) -> bool:
        """True if *line* is a bare upper-case character name.

        The pattern is ``^[A-Z][A-Z\\s#0-9']+$`` with length 2-50, no
        lowercase letters and no parenthetical.  Scene character extraction
        and capitalization repair both rely on this exact rule.
        """
        text = line.strip()
        if not 2 <= len(text) <= 50:
            return False
        if _LOWERCASE_RE.search(text) or _PARENTHETICAL_CONTENT_RE.search(text):
            return False
        return bool(PURE_CHARACTER_NAME_RE.match(text))

    @classmethod
    def is_character_cue(cls, line: str) -> bool:
        """True for a cue name, optionally followed by a cue extension.

        Looser than ``is_pure_character_name``: honorifics with periods
        (``DR. MARTINEZ``) also count.  Used for spacing only.
        """
        text = line.strip()
        if SceneHeadingMatcher.has_heading_prefix(text):
            return False
        match = _CUE_EXTENSION_RE.match(text)
        name = match.group("name") if match else text
        return cls.is_pure_character_name(name) or cls._is_titled_name(name)

    @staticmethod
    def _is_titled_name(text: str) -> bool:
        return 2 <= len(text) <= 50 and bool(_TITLED_NAME_RE.match(text))

    @classmethod
    def is_speaking_character(cls, line: str) -> bool:
        """A pure character name that is not a transition or marker."""
        text = line.strip()
        return cls.is_pure_character_name(text) and text not in NON_CHARACTER_LINES

    @staticmethod
    def is_parenthetical(line: str) -> bool:
        return bool(_PARENTHETICAL_LINE_RE.match(line.strip()))

    @staticmethod
    def base_name(cue: str) -> str:
        """Strip cue extensions and collapse whitespace: ``JANE  (V.O.)`` -> ``JANE``."""
        text = _PARENTHETICAL_CONTENT_RE.sub("", cue).replace("^", "")
        return re.sub(r"\s+", " ", text).strip().upper()


def parse_scene_heading(heading: str) -> HeadingComponents:
    """Parse a scene heading string into its constituent parts.

    Returns ``HeadingComponents`` with best-effort extraction.  Unknown
    location types or times default to ``UNKNOWN``.
    """
    text = heading.strip()

    # 1. Determine location type by prefix
    loc_type = LocationType.UNKNOWN
    remainder = text
    for prefix_re, lt in _LOC_PREFIXES:
        match = prefix_re.match(text)
        if match:
            loc_type = lt
            remainder = text[match.end() :].strip()
            break

    # 2. Split remainder on last separator to get location and time-of-day
    parts = _SEP_RE.split(remainder)
    if len(parts) >= 2:
        location = " - ".join(parts[:-1]).strip()
        raw_time = parts[-1].strip().upper()
    else:
        location = remainder.strip()
        raw_time = ""

    location = location.strip(". ")

    # 3. Map time-of-day
    tod = TimeOfDay.UNKNOWN
    for token, value in _TIME_MAP:
        if raw_time.startswith(token):
            tod = value
            break

    return HeadingComponents(
        location_type=loc_type,
        location=location if location else text,
        time_of_day=tod,
    )
