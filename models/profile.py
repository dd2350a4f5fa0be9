"""Emergent profile and flattened character view models."""

from dataclasses import dataclass, field
from typing import Optional

from models.enums import AbilityLevel, CharacterStatus


@dataclass
class TraitChange:
    year: int = 0
    change: int = 0
    reason: str = ""


@dataclass
class PersonalityTrait:
    trait: str = ""
    strength: int = 0  # cumulative, capped at 100
    origin: str = ""
    year_formed: int = 0
    history: list[TraitChange] = field(default_factory=list)


@dataclass
class Belief:
    content: str = ""
    conviction: int = 0  # capped at 100
    formed_year: int = 0
    challenged: bool = False


@dataclass
class Ability:
    name: str = ""
    level: AbilityLevel = AbilityLevel.DISCOVERED
    discovered_year: int = 0
    milestones: list[str] = field(default_factory=list)


@dataclass
class EmergentProfile:
    """Read-model derived from a character's full ordered memory list."""
    display_name: str = ""
    current_alias: str = ""
    personality: list[PersonalityTrait] = field(default_factory=list)
    beliefs: list[Belief] = field(default_factory=list)
    abilities: list[Ability] = field(default_factory=list)
    speech_patterns: list[str] = field(default_factory=list)
    inner_conflicts: list[str] = field(default_factory=list)
    computed_at: int = 0


@dataclass
class EmotionalState:
    primary: str = "calm"
    intensity: int = 20
    trigger: str = ""


@dataclass
class SpecialStat:
    name: str = ""
    value: int = 0


@dataclass
class CharacterStats:
    combat: int = 1
    intellect: int = 1
    willpower: int = 1
    social: int = 1
    special: SpecialStat = field(default_factory=SpecialStat)


@dataclass
class CharacterState:
    """Flattened view of a character at a given year."""
    id: str = ""
    name: str = ""
    alias: str = ""
    age: int = 0
    birth_year: int = 0
    status: CharacterStatus = CharacterStatus.CHILDHOOD
    stats: CharacterStats = field(default_factory=CharacterStats)
    emotional_state: EmotionalState = field(default_factory=EmotionalState)
    background: str = ""
    personality: str = ""
    motivation: str = ""
    abilities: list[str] = field(default_factory=list)
    weakness: str = ""
    color: str = ""
    appearance: Optional[str] = None
