"""Pydantic models for the scene context and insertion engine."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator


class LocationType(str, Enum):
    """Interior/exterior designation from scene headings."""

    INT = "INT"
    EXT = "EXT"
    INT_EXT = "INT/EXT"
    UNKNOWN = "UNKNOWN"


class TimeOfDay(str, Enum):
    """Time-of-day designation extracted from scene headings."""

    DAY = "DAY"
    NIGHT = "NIGHT"
    CONTINUOUS = "CONTINUOUS"
    LATER = "LATER"
    MOMENTS_LATER = "MOMENTS LATER"
    UNKNOWN = "UNKNOWN"


class CharacterType(str, Enum):
    """Role weight of a registered character."""

    LEAD = "lead"
    SUPPORTING = "supporting"
    MINOR = "minor"


class ValidationStatus(str, Enum):
    """Outcome tier of a validated model response."""

    ACCEPTED = "accepted"
    ACCEPTED_WITH_WARNINGS = "accepted_with_warnings"
    REJECTED = "rejected"


# ---------------------------------------------------------------------------
# Document view
# ---------------------------------------------------------------------------


class TextSelection(BaseModel):
    """A selected character range inside the editor buffer."""

    start: int = Field(..., ge=0, description="Selection start offset")
    end: int = Field(..., ge=0, description="Selection end offset (exclusive)")

    @model_validator(mode="after")
    def validate_order(self) -> "TextSelection":
        if self.end < self.start:
            raise ValueError("Selection end must not precede its start")
        return self

    @property
    def is_empty(self) -> bool:
        return self.start == self.end


class Document(BaseModel):
    """Immutable view of the editor buffer for one operation."""

    text: str = Field(default="", description="Full screenplay text")
    cursor_offset: int = Field(..., ge=0, description="Cursor offset into text")
    selection: TextSelection | None = Field(None, description="Active selection, if any")

    @model_validator(mode="after")
    def validate_offsets(self) -> "Document":
        """Reject cursor or selection offsets past the end of the text."""
        length = len(self.text)
        if self.cursor_offset > length:
            raise ValueError(f"cursor_offset {self.cursor_offset} exceeds text length {length}")
        if self.selection is not None and self.selection.end > length:
            raise ValueError(f"selection end {self.selection.end} exceeds text length {length}")
        return self

    @property
    def has_selection(self) -> bool:
        return self.selection is not None and not self.selection.is_empty

    @property
    def insertion_offset(self) -> int:
        """Offset generated content is planned at (selection collapses to its start)."""
        if self.has_selection:
            return self.selection.start
        return self.cursor_offset


# ---------------------------------------------------------------------------
# Detected context
# ---------------------------------------------------------------------------


class HeadingComponents(BaseModel):
    """Parsed components of a scene heading."""

    location_type: LocationType = Field(..., description="INT/EXT designation")
    location: str = Field(..., description="Extracted location name")
    time_of_day: TimeOfDay = Field(..., description="Time of day")


class SceneContext(BaseModel):
    """Scene surrounding an offset, derived from the document. Read-only."""

    heading: str = Field(..., description="Scene heading line, trimmed")
    act: int | None = Field(None, ge=1, le=3, description="Estimated act (1-3)")
    page_number: int | None = Field(None, ge=1, description="Estimated page of the heading")
    total_pages: int | None = Field(None, ge=1, description="Estimated page count of the document")
    characters: list[str] = Field(
        default_factory=list, description="Speaking characters, first-seen order"
    )
    start_line: int = Field(..., ge=0, description="Line index of the scene heading")
    end_line: int = Field(..., ge=0, description="Line index of the last scene line")
    current_line: int = Field(..., ge=0, description="Line index containing the offset")
    content_before_offset: str = Field(
        default="", description="Scene text after the heading, up to the offset"
    )
    context_before_cursor: str = Field(
        default="", description="Short trimmed window before the offset, headings removed"
    )
    context_after_cursor: str = Field(
        default="", description="Short trimmed window after the offset"
    )
    content: str = Field(default="", description="Full scene text including the heading")
    components: HeadingComponents | None = Field(None, description="Parsed heading parts")

    model_config = ConfigDict(frozen=True)


class DialogueExchange(BaseModel):
    """A character cue and the dialogue spoken under it."""

    character: str = Field(..., description="Speaking character name")
    line: str = Field(..., description="Dialogue text, parentheticals removed")


class CharacterProfile(BaseModel):
    """Entry of the external character registry."""

    name: str = Field(..., min_length=1, description="Character name")
    type: CharacterType = Field(default=CharacterType.SUPPORTING, description="Role weight")
    description: str | None = Field(None, description="Short character description")
    age: str | None = Field(None, description="Age or age range")
    arc_notes: str | None = Field(None, description="Character arc notes")


# ---------------------------------------------------------------------------
# Generation request / response
# ---------------------------------------------------------------------------


class SceneRequest(BaseModel):
    """User direction for one scene to generate."""

    location: str = Field(..., description="Where the scene takes place")
    scenario: str = Field(..., description="What happens in the scene")
    direction: str | None = Field(None, description="Optional tone or staging direction")

    @field_validator("location", "scenario")
    @classmethod
    def validate_required_text(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator("direction")
    @classmethod
    def blank_direction_to_none(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v.strip()


class GeneratedScene(BaseModel):
    """One scene returned by the model, after the hard checks."""

    heading: str = Field(..., min_length=1, description="Scene heading, trimmed")
    content: list[str] = Field(..., min_length=3, description="Screenplay lines")

    @field_validator("heading")
    @classmethod
    def strip_heading(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("heading must not be blank")
        return stripped


class ValidationResult(BaseModel):
    """Tagged outcome of validating a model response.

    ``rejected`` results never carry scenes.  ``accepted_with_warnings``
    results are usable even though ``valid`` is False: soft checks such as the
    model's self-reported line count are recorded but do not block insertion.
    """

    status: ValidationStatus = Field(..., description="Outcome tier")
    scenes: list[GeneratedScene] = Field(default_factory=list, description="Usable scenes")
    critical_errors: list[str] = Field(default_factory=list, description="Hard-check failures")
    warnings: list[str] = Field(default_factory=list, description="Soft-check failures")
    raw_json: dict[str, Any] | None = Field(None, description="Parsed model output")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def valid(self) -> bool:
        return self.status == ValidationStatus.ACCEPTED

    @computed_field  # type: ignore[prop-decorator]
    @property
    def usable(self) -> bool:
        return self.status != ValidationStatus.REJECTED

    @computed_field  # type: ignore[prop-decorator]
    @property
    def errors(self) -> list[str]:
        return [*self.critical_errors, *self.warnings]

    @classmethod
    def rejected(
        cls, errors: list[str], raw_json: dict[str, Any] | None = None
    ) -> "ValidationResult":
        return cls(status=ValidationStatus.REJECTED, critical_errors=errors, raw_json=raw_json)


class InsertionPlan(BaseModel):
    """Splice proposal handed back to the editor."""

    text_to_insert: str = Field(..., description="Padding + scene block + padding")
    insert_at: int = Field(..., ge=0, description="Offset to insert at (the cursor)")
    leading_padding: str = Field(default="", description="Newlines placed before the block")
    trailing_padding: str = Field(default="", description="Newlines placed after the block")
    leading_rule: str = Field(default="", description="Leading decision rule that fired")
    trailing_rule: str = Field(default="", description="Trailing decision rule that fired")

    def apply(self, document_text: str) -> str:
        """Return *document_text* with the splice applied."""
        return document_text[: self.insert_at] + self.text_to_insert + document_text[self.insert_at :]


class GenerationRequest(BaseModel):
    """Everything the caller needs to invoke the model for a generation."""

    system_prompt: str = Field(..., description="System instruction mandating JSON output")
    prompt: str = Field(..., description="Assembled user prompt")
    scene_context: SceneContext | None = Field(None, description="Detected current scene")
    previous_scene: SceneContext | None = Field(None, description="Scene before the current one")
    context_before: str = Field(default="", description="Text used for duplicate checks")
    requested_scene_count: int = Field(..., ge=1, description="Number of requested scenes")
    insert_at: int = Field(..., ge=0, description="Offset the generated block will go to")


class GenerationOutcome(BaseModel):
    """Result of turning a model response into a splice."""

    plan: InsertionPlan = Field(..., description="Splice proposal")
    validation: ValidationResult = Field(..., description="Validation outcome")
    scene_block: str = Field(..., description="Normalized multi-scene block")


# ---------------------------------------------------------------------------
# HTTP requests / responses
# ---------------------------------------------------------------------------


class DetectSceneRequest(BaseModel):
    """Request to detect the scene around an offset."""

    text: str = Field(default="", description="Full screenplay text")
    offset: int = Field(..., ge=0, description="Cursor offset into text")


class PreviousSceneRequest(BaseModel):
    """Request for the scene before the one starting at a line."""

    text: str = Field(default="", description="Full screenplay text")
    start_line: int = Field(..., ge=0, description="Heading line of the current scene")


class SceneContextResponse(BaseModel):
    """Detected scene, absent when no heading precedes the offset."""

    scene: SceneContext | None = Field(None, description="Detected scene context")


class PromptBuildRequest(BaseModel):
    """Request to assemble generation prompts for a document."""

    document: Document = Field(..., description="Editor buffer and cursor")
    scenes: list[SceneRequest] = Field(..., description="Scenes to generate")
    characters: list[CharacterProfile] = Field(
        default_factory=list, description="Character registry"
    )


class ValidateResponseRequest(BaseModel):
    """Request to validate a raw model response."""

    model_config = ConfigDict(protected_namespaces=())

    model_output: str = Field(..., description="Raw text returned by the model")
    context_before_cursor: str | None = Field(None, description="Text checked for duplicate headings")
    requested_scene_count: int = Field(default=1, ge=1, description="Number of requested scenes")


class NormalizeRequest(BaseModel):
    """Request to normalize scene content or whole scenes."""

    lines: list[str] = Field(default_factory=list, description="Content lines of one scene")
    scenes: list[GeneratedScene] = Field(default_factory=list, description="Scenes to format")


class NormalizeResponse(BaseModel):
    """Normalized content lines and the formatted scene block."""

    lines: list[str] = Field(default_factory=list, description="Normalized lines, blanks as empty strings")
    text: str = Field(default="", description="Newline-joined normalized text")


class PlanInsertionRequest(BaseModel):
    """Request to plan the splice of a scene block."""

    document_text: str = Field(default="", description="Full screenplay text")
    cursor_offset: int = Field(..., ge=0, description="Insertion offset")
    scene_block: str = Field(..., description="Formatted scene block")


class ApplyGenerationRequest(BaseModel):
    """Model output to validate, normalize and plan against a document."""

    model_config = ConfigDict(protected_namespaces=())

    document: Document = Field(..., description="Editor buffer and cursor")
    scenes: list[SceneRequest] = Field(..., description="Scenes that were requested")
    model_output: str = Field(..., description="Raw text returned by the model")
    characters: list[CharacterProfile] = Field(
        default_factory=list, description="Character registry"
    )


# ---------------------------------------------------------------------------
# HTTP envelopes
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(default="healthy", description="Service health status")
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Response timestamp")
    version: str = Field(default="0.1.0", description="API version")


class ErrorDetail(BaseModel):
    """Detailed error information."""

    field: str | None = Field(None, description="Field that caused the error")
    message: str = Field(..., description="Error message")
    error_code: str | None = Field(None, description="Error code for programmatic handling")


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Human-readable error message")
    details: list[ErrorDetail] = Field(default_factory=list, description="Detailed error info")
    request_id: str | None = Field(None, description="Request tracking ID")
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Error timestamp")
