"""Pydantic data models — the shared validation objects.

The WebSocket server, the MCP tools and the requester client all exchange
these models. Wire payloads use camelCase keys (``phaseResults``,
``validationId``); Python code uses the snake_case attribute names.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from .errors import ValidationInputError

MAX_CONTENT_SIZE = 100_000


class WireModel(BaseModel):
    """Base for models that travel over the message protocol."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class Severity(str, Enum):
    """Flag severity."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class FlagType(str, Enum):
    """What kind of problem a flag reports."""

    NOVELTY = "novelty"
    FORBIDDEN = "forbidden"
    CORRIDOR = "corridor"
    MUTATION = "mutation"
    EMOTIONAL = "emotional"
    GOVERNANCE = "governance"
    STRUCTURE = "structure"
    VALIDATION = "validation"


class Pacing(str, Enum):
    SLOW = "slow"
    MODERATE = "moderate"
    FAST = "fast"


class PhaseStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"


class ResultStatus(str, Enum):
    COMPLETE = "complete"
    FAILED = "failed"


class CorridorConfig(WireModel):
    """A cultural/linguistic authenticity target."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    corridor_id: str
    name: str
    language: str
    emotional_tone: str
    key_phrases: tuple[str, ...]
    forbidden_words: frozenset[str]
    arm_threshold: float = Field(0.85, ge=0.0, le=1.0)
    cultural_anchors: frozenset[str] = frozenset()


class EmotionalProfile(WireModel):
    """Delivery characteristics of an emotional state."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    state_id: str
    syllable_pattern: str
    pacing: Pacing
    vowels: str
    fields: frozenset[str]


class PhaseDescriptor(WireModel):
    """Catalog entry for one validation phase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: int
    name: str
    description: str
    critical: bool = False


class ValidationFlag(WireModel):
    """A single problem found in the content."""

    severity: Severity
    type: FlagType
    message: str
    phase: Optional[int] = None
    word: Optional[str] = None
    line_number: Optional[int] = None


class ScoreMap(WireModel):
    """Sub-scores keyed by dimension. ``None`` means no phase contributed it."""

    arm: Optional[float] = None
    corridor: Optional[float] = None
    novelty: Optional[float] = None
    economic: Optional[float] = None
    mythos: Optional[float] = None
    shadow: Optional[float] = None
    continental: Optional[float] = None

    def present(self) -> dict[str, float]:
        return {k: v for k, v in self.model_dump().items() if v is not None}


class PhaseOutcome(BaseModel):
    """What a single phase check reports back to the orchestrator.

    Scores are left unbounded here; ``run_phase`` clamps them and maps
    non-finite values to 0.
    """

    ok: bool
    score: float
    line: str
    scores: dict[str, float] = Field(default_factory=dict)
    flags: list[ValidationFlag] = Field(default_factory=list)
    modifications: Optional[list[str]] = None
    error: Optional[str] = None


class PhaseResult(WireModel):
    """Record of one executed phase inside a validation result."""

    phase: int
    name: str
    status: PhaseStatus
    score: Optional[float] = None
    modifications: Optional[list[str]] = None
    error: Optional[str] = None
    duration: float = Field(0.0, description="Elapsed milliseconds")


class ValidationRequest(WireModel):
    """Parameters of a ``validate`` action."""

    content: str = Field(min_length=1, max_length=MAX_CONTENT_SIZE)
    corridor: str = Field(min_length=1)
    emotional_state: Optional[str] = None
    run_phases: Optional[list[int]] = None

    @field_validator("run_phases")
    @classmethod
    def _empty_means_default(cls, value: Optional[list[int]]) -> Optional[list[int]]:
        return value or None

    @classmethod
    def from_params(cls, params: Any) -> "ValidationRequest":
        """Build a request from raw message params, raising ``ValidationInputError``.

        The size guard runs before anything else so oversized payloads are
        rejected with a clear message.
        """
        if not isinstance(params, dict):
            raise ValidationInputError("Validation params are required")
        content = params.get("content")
        if not content or not isinstance(content, str):
            raise ValidationInputError("content is required and must be a string")
        if len(content) > MAX_CONTENT_SIZE:
            raise ValidationInputError(f"Content exceeds maximum size of {MAX_CONTENT_SIZE} characters")
        corridor = params.get("corridor")
        if not corridor or not isinstance(corridor, str):
            raise ValidationInputError("Corridor parameter is required and must be a string")
        try:
            return cls.model_validate(params)
        except ValidationError as exc:
            raise ValidationInputError(f"Invalid validation params: {exc.errors()[0]['msg']}") from exc


class ValidationResult(WireModel):
    """Aggregate outcome of a validation run."""

    line: str
    original: str
    scores: ScoreMap = Field(default_factory=ScoreMap)
    phase_results: list[PhaseResult] = Field(default_factory=list)
    flags: list[ValidationFlag] = Field(default_factory=list)
    is_valid: bool = False
    critical_phases_failed: int = 0
    status: ResultStatus = ResultStatus.COMPLETE
    error: Optional[str] = None
    profile: str = "server"
    validation_id: str = Field(default_factory=lambda: str(uuid.uuid4()))


class ScanResult(WireModel):
    """Output of the forbidden scanner."""

    clean: bool
    flags: list[ValidationFlag] = Field(default_factory=list)
    cleaned_content: Optional[str] = None
    suggestions: list[str] = Field(default_factory=list)


class LineValidationResult(WireModel):
    """Output of the single-line check (no phase sequencing)."""

    line: str
    scores: dict[str, float]
    flags: list[ValidationFlag] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    cleaned_content: Optional[str] = None


class SongSection(WireModel):
    type: str
    lyrics: str
    delivery: str
    arm_score: float = Field(ge=0.0, le=1.0)


class SongMetadata(WireModel):
    bpm: Optional[int] = None
    genre: str = "auto-detected"
    corridor: Optional[str] = None
    emotional_state: Optional[str] = None
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class SongStructure(WireModel):
    """Template song skeleton returned by ``generateSong``."""

    title: str
    sections: list[SongSection]
    metadata: SongMetadata
