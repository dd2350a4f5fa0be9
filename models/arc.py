"""Narrative arc models: mechanical beat grammar and author-designed arcs."""

from dataclasses import dataclass, field
from typing import Optional

from models.enums import ArcArchetype, BeatType


# ---------------------------------------------------------------------------
# Mechanical grammar
# ---------------------------------------------------------------------------

@dataclass
class Beat:
    type: BeatType = BeatType.COMPLICATION
    description: str = ""
    fulfilled: bool = False
    fulfillment_event_id: Optional[str] = None
    fulfillment_year: Optional[int] = None


@dataclass
class ArcPhase:
    name: str = ""
    description: str = ""
    start_year: int = 0
    end_year: int = 0
    tension_target: int = 50
    required_beats: list[Beat] = field(default_factory=list)
    optional_beats: list[Beat] = field(default_factory=list)

    def covers(self, year: int) -> bool:
        return self.start_year <= year <= self.end_year


@dataclass
class CharacterArc:
    character_id: str = ""
    archetype: ArcArchetype = ArcArchetype.HEROES_JOURNEY
    current_phase: int = 0
    phases: list[ArcPhase] = field(default_factory=list)
    tension: int = 0      # 0-100
    fulfillment: int = 0  # percentage of required beats fulfilled

    @property
    def active_phase(self) -> Optional[ArcPhase]:
        if 0 <= self.current_phase < len(self.phases):
            return self.phases[self.current_phase]
        return None


@dataclass
class MasterAct:
    name: str = ""
    start_year: int = 0
    end_year: int = 0
    tension_target: int = 50
    description: str = ""


@dataclass
class MasterArc:
    archetype: ArcArchetype = ArcArchetype.HEROES_JOURNEY
    acts: list[MasterAct] = field(default_factory=list)
    current_act: int = 0
    overall_tension: int = 0
    key_beats: list[Beat] = field(default_factory=list)


@dataclass
class NarrativeDirective:
    """Guidance handed to the generator for one character and year."""
    character_id: str = ""
    phase_name: str = ""
    phase_description: str = ""
    tension_target: int = 0
    current_tension: int = 0
    tension_guidance: str = ""
    required_beats: list[str] = field(default_factory=list)
    beat_type_guidance: str = ""
    arc_fulfillment: int = 0
    master_act_name: str = ""


@dataclass
class FulfilledBeat:
    character_id: str = ""
    beat_description: str = ""
    beat_type: BeatType = BeatType.COMPLICATION


@dataclass
class EvaluationResult:
    fulfilled_beats: list[FulfilledBeat] = field(default_factory=list)
    tension_delta: int = 0
    phase_advanced: bool = False


# ---------------------------------------------------------------------------
# Author-designed arcs
# ---------------------------------------------------------------------------

@dataclass
class AuthorArcPhase:
    id: str = ""
    name: str = ""
    estimated_age_range: str = ""
    intent: str = ""
    key_moments: list[str] = field(default_factory=list)
    emotional_arc: str = ""
    end_condition: str = ""


@dataclass
class ArcRevision:
    year: int = 0
    reason: str = ""
    changes: str = ""


@dataclass
class AuthorNarrativeArc:
    """Advisory narrative intent designed once per character."""
    character_id: str = ""
    phases: list[AuthorArcPhase] = field(default_factory=list)
    current_phase_index: int = 0
    revisions: list[ArcRevision] = field(default_factory=list)

    @property
    def current_phase(self) -> Optional[AuthorArcPhase]:
        if 0 <= self.current_phase_index < len(self.phases):
            return self.phases[self.current_phase_index]
        return None

    @property
    def is_last_phase(self) -> bool:
        return self.current_phase_index >= len(self.phases) - 1


@dataclass
class PhaseTransition:
    from_phase: str = ""
    to_phase: str = ""
    reason: str = ""


@dataclass
class AuthorDirection:
    """Direction the generator reports alongside a character's year."""
    character_id: str = ""
    year: int = 0
    age: int = 0
    arc_position: str = ""
    narrative_intent: str = ""
    world_pressure: str = ""
    avoid: str = ""
    desired_effect: str = ""
    phase_transition: Optional[PhaseTransition] = None
