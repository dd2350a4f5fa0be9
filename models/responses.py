"""Validated wire models for generation service responses.

The generation service returns free text; once a JSON object has been
extracted from it (see tools/llm_client.py) it is validated here. Every
field is optional with a default, enum values are normalised leniently and
numeric scores are clamped, so only a structural mismatch (e.g. ``events``
being a string) fails validation and triggers the fallback record.
"""

from functools import partial
from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator

from models.arc import AuthorArcPhase, AuthorDirection, PhaseTransition
from models.enums import (
    CharacterStatus, ImprintType, Importance, Season, StoryHealth, WarningSeverity, WarningType,
)
from models.memory import Imprint
from models.npc import NPCInteraction
from models.storyline import StorylineMetrics, StorylineWarning

_WIRE_CONFIG = ConfigDict(populate_by_name=True, extra="ignore")


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def _to_text_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, (list, tuple)):
        return [_to_text(v) for v in value if v is not None]
    raise ValueError(f"Expected a list of strings, got {type(value).__name__}")


def _to_score(value: Any, default: int) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return max(0, min(100, int(round(number))))


def _to_enum(enum_cls, default, value: Any):
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower().replace("-", "_").replace(" ", "_")
        try:
            return enum_cls(normalized)
        except ValueError:
            return default
    return default


def _to_index(value: Any) -> int:
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return 0


Text = Annotated[str, BeforeValidator(_to_text)]
TextList = Annotated[list[str], BeforeValidator(_to_text_list)]
Intensity = Annotated[int, BeforeValidator(partial(_to_score, default=30))]
Index = Annotated[int, BeforeValidator(_to_index)]


def _score(default: int):
    return Annotated[int, BeforeValidator(partial(_to_score, default=default))]


def _lenient(enum_cls, default):
    return Annotated[enum_cls, BeforeValidator(partial(_to_enum, enum_cls, default))]


def _drop_none(value: Any) -> Any:
    return [] if value is None else value


# ---------------------------------------------------------------------------
# Year simulation response
# ---------------------------------------------------------------------------

class ImprintPayload(BaseModel):
    model_config = _WIRE_CONFIG

    type: ImprintType
    content: Text = ""
    intensity: Intensity = 30
    source: Text = ""
    appearance_change: Optional[str] = Field(default=None, alias="appearanceChange")

    @field_validator("appearance_change", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Optional[str]:
        text = _to_text(v).strip()
        return text or None

    def to_imprint(self) -> Imprint:
        return Imprint(
            type=self.type,
            content=self.content,
            intensity=self.intensity,
            source=self.source,
            appearance_change=self.appearance_change,
        )


class EventPayload(BaseModel):
    model_config = _WIRE_CONFIG

    season: _lenient(Season, Season.SPRING) = Season.SPRING
    title: Text = ""
    summary: Text = ""
    importance: _lenient(Importance, Importance.MINOR) = Importance.MINOR
    tags: TextList = Field(default_factory=list)
    related_characters: TextList = Field(default_factory=list, alias="relatedCharacters")
    emotional_shift: Optional[dict] = Field(default=None, alias="emotionalShift")
    stats_change: Optional[dict] = Field(default=None, alias="statsChange")
    year: Optional[int] = None

    @field_validator("emotional_shift", "stats_change", mode="before")
    @classmethod
    def dict_or_none(cls, v: Any) -> Optional[dict]:
        return v if isinstance(v, dict) and v else None

    @field_validator("year", mode="before")
    @classmethod
    def int_or_none(cls, v: Any) -> Optional[int]:
        try:
            return int(v)
        except (TypeError, ValueError):
            return None


class MemoryPayload(BaseModel):
    model_config = _WIRE_CONFIG

    event_index: Index = Field(default=0, alias="eventIndex")
    content: Text = ""
    imprints: list[ImprintPayload] = Field(default_factory=list)
    emotional_weight: Intensity = Field(default=30, alias="emotionalWeight")

    @field_validator("imprints", mode="before")
    @classmethod
    def drop_unknown_imprints(cls, v: Any) -> list:
        """Imprints of an unknown type are dropped rather than failing the memory."""
        if v is None:
            return []
        if not isinstance(v, list):
            raise ValueError("imprints must be a list")
        known = {t.value for t in ImprintType}
        kept = []
        for item in v:
            if not isinstance(item, dict):
                continue
            kind = _to_text(item.get("type")).strip().lower()
            if kind in known:
                kept.append({**item, "type": kind})
        return kept


class NPCInteractionPayload(BaseModel):
    model_config = _WIRE_CONFIG

    event_index: Index = Field(default=0, alias="eventIndex")
    npc_alias: Text = Field(default="", alias="npcAlias")
    npc_name: Optional[str] = Field(default=None, alias="npcName")
    role: Text = ""
    interaction: Text = ""
    is_new: bool = Field(default=True, alias="isNew")

    @field_validator("npc_name", mode="before")
    @classmethod
    def blank_name_to_none(cls, v: Any) -> Optional[str]:
        text = _to_text(v).strip()
        return text or None

    @field_validator("is_new", mode="before")
    @classmethod
    def default_is_new(cls, v: Any) -> Any:
        return True if v is None else v

    def to_interaction(self) -> NPCInteraction:
        return NPCInteraction(
            event_index=self.event_index,
            npc_alias=self.npc_alias,
            npc_name=self.npc_name,
            role=self.role,
            interaction=self.interaction,
            is_new=self.is_new,
        )


class PhaseTransitionPayload(BaseModel):
    model_config = _WIRE_CONFIG

    from_phase: Text = Field(default="", alias="from")
    to_phase: Text = Field(default="", alias="to")
    reason: Text = ""


class AuthorDirectionPayload(BaseModel):
    model_config = _WIRE_CONFIG

    arc_position: Text = Field(default="", alias="arcPosition")
    narrative_intent: Text = Field(default="", alias="narrativeIntent")
    world_pressure: Text = Field(default="", alias="worldPressure")
    avoid: Text = ""
    desired_effect: Text = Field(default="", alias="desiredEffect")
    phase_transition: Optional[PhaseTransitionPayload] = Field(default=None, alias="phaseTransition")

    @field_validator("phase_transition", mode="before")
    @classmethod
    def empty_transition_to_none(cls, v: Any) -> Any:
        return v if isinstance(v, dict) and v else None

    def to_direction(self, character_id: str, year: int, age: int) -> AuthorDirection:
        transition = None
        if self.phase_transition is not None:
            transition = PhaseTransition(
                from_phase=self.phase_transition.from_phase,
                to_phase=self.phase_transition.to_phase,
                reason=self.phase_transition.reason,
            )
        return AuthorDirection(
            character_id=character_id,
            year=year,
            age=age,
            arc_position=self.arc_position,
            narrative_intent=self.narrative_intent,
            world_pressure=self.world_pressure,
            avoid=self.avoid,
            desired_effect=self.desired_effect,
            phase_transition=transition,
        )


class YearResponse(BaseModel):
    """One character's simulated step."""
    model_config = _WIRE_CONFIG

    events: list[EventPayload] = Field(default_factory=list)
    year_end_status: _lenient(CharacterStatus, CharacterStatus.WANDERING) = Field(
        default=CharacterStatus.WANDERING, alias="yearEndStatus",
    )
    memories: list[MemoryPayload] = Field(default_factory=list)
    npc_interactions: list[NPCInteractionPayload] = Field(default_factory=list, alias="npcInteractions")
    author_direction: Optional[AuthorDirectionPayload] = Field(default=None, alias="authorDirection")

    @field_validator("events", "memories", "npc_interactions", mode="before")
    @classmethod
    def none_to_list(cls, v: Any) -> Any:
        return _drop_none(v)

    @field_validator("author_direction", mode="before")
    @classmethod
    def empty_direction_to_none(cls, v: Any) -> Any:
        return v if isinstance(v, dict) and v else None


def fallback_year_response() -> YearResponse:
    """Minimal safe record used when a response cannot be recovered."""
    return YearResponse(
        events=[EventPayload(
            season=Season.SPRING,
            title="Uneventful days",
            summary="The year passed quietly without notable incident.",
            importance=Importance.MINOR,
            tags=["daily"],
        )],
        year_end_status=CharacterStatus.WANDERING,
        memories=[],
        npc_interactions=[],
    )


# ---------------------------------------------------------------------------
# Author arc design
# ---------------------------------------------------------------------------

class ArcPhasePayload(BaseModel):
    model_config = _WIRE_CONFIG

    id: Text = ""
    name: Text = ""
    estimated_age_range: Text = Field(default="", alias="estimatedAgeRange")
    intent: Text = ""
    key_moments: TextList = Field(default_factory=list, alias="keyMoments")
    emotional_arc: Text = Field(default="", alias="emotionalArc")
    end_condition: Text = Field(default="", alias="endCondition")

    def to_phase(self, index: int) -> AuthorArcPhase:
        return AuthorArcPhase(
            id=self.id or f"phase-{index + 1}",
            name=self.name or f"Phase {index + 1}",
            estimated_age_range=self.estimated_age_range,
            intent=self.intent,
            key_moments=list(self.key_moments),
            emotional_arc=self.emotional_arc,
            end_condition=self.end_condition,
        )


class ArcDesignResponse(BaseModel):
    model_config = _WIRE_CONFIG

    phases: list[ArcPhasePayload] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Storyline analysis
# ---------------------------------------------------------------------------

class MetricsPayload(BaseModel):
    model_config = _WIRE_CONFIG

    theme_alignment: _score(50) = Field(default=50, alias="themeAlignment")
    coherence: _score(50) = 50
    interest: _score(50) = 50
    character_depth: _score(50) = Field(default=50, alias="characterDepth")
    awakening_potential: _score(30) = Field(default=30, alias="awakeningPotential")

    def to_metrics(self) -> StorylineMetrics:
        return StorylineMetrics(
            theme_alignment=self.theme_alignment,
            coherence=self.coherence,
            interest=self.interest,
            character_depth=self.character_depth,
            awakening_potential=self.awakening_potential,
        )


class WarningPayload(BaseModel):
    model_config = _WIRE_CONFIG

    type: _lenient(WarningType, WarningType.PACING) = WarningType.PACING
    severity: _lenient(WarningSeverity, WarningSeverity.LOW) = WarningSeverity.LOW
    message: Text = ""
    detected_at_age: Index = Field(default=0, alias="detectedAtAge")

    def to_warning(self) -> StorylineWarning:
        return StorylineWarning(
            type=self.type,
            severity=self.severity,
            message=self.message,
            detected_at_age=self.detected_at_age,
        )


class PreviewResponse(BaseModel):
    model_config = _WIRE_CONFIG

    narrative_so_far: Text = Field(default="", alias="narrativeSoFar")
    character_snapshot: Text = Field(default="", alias="characterSnapshot")
    projected_direction: Text = Field(default="", alias="projectedDirection")
    metrics: MetricsPayload = Field(default_factory=MetricsPayload)
    warnings: list[WarningPayload] = Field(default_factory=list)

    @field_validator("metrics", mode="before")
    @classmethod
    def metrics_default(cls, v: Any) -> Any:
        return v if isinstance(v, dict) else {}

    @field_validator("warnings", mode="before")
    @classmethod
    def warnings_default(cls, v: Any) -> Any:
        return [w for w in v if isinstance(w, dict)] if isinstance(v, list) else []


class IntegratedResponse(BaseModel):
    model_config = _WIRE_CONFIG

    convergence_status: Text = Field(default="", alias="convergenceStatus")
    betrayal_prediction: Text = Field(default="", alias="betrayalPrediction")
    overall_theme_alignment: _score(50) = Field(default=50, alias="overallThemeAlignment")
    overall_interest: _score(50) = Field(default=50, alias="overallInterest")
    story_health: _lenient(StoryHealth, StoryHealth.GOOD) = Field(
        default=StoryHealth.GOOD, alias="storyHealth",
    )
    recommendation: Text = ""
