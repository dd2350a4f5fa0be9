"""Character seed and world-building data models."""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Seed:
    """Origin record of a character before any simulated experience."""
    id: str = ""
    codename: str = ""
    birth_year: int = 0
    initial_condition: str = ""
    temperament: str = ""
    latent_ability: str = ""
    physical_trait: str = ""
    wound: str = ""  # core psychological deficit
    color: str = "#888888"
    innate_appearance: Optional[str] = None
    name: Optional[str] = None

    def age_in(self, year: int) -> int:
        return year - self.birth_year


# Fields a soft edit may change; everything in SOFT_EDIT_LOCKED is fixed once simulated
SOFT_EDIT_ALLOWED = ("innate_appearance", "latent_ability", "temperament", "wound")
SOFT_EDIT_LOCKED = ("birth_year", "initial_condition", "physical_trait", "codename", "id", "color")


@dataclass
class WorldEvent:
    """A world-level event that shapes the context of every character."""
    year: int = 0
    event: str = ""
    impact: str = ""


@dataclass
class CharacterSituation:
    character_id: str = ""
    situation: str = ""


@dataclass
class AnchorEvent:
    """A mandatory world event scheduled for a specific year."""
    id: str = ""
    trigger_year: int = 0
    event: str = ""
    world_impact: str = ""
    character_situations: list[CharacterSituation] = field(default_factory=list)
    scope: str = "all"  # "all" or "specific"
    target_characters: list[str] = field(default_factory=list)
    mandatory: bool = True

    def applies_to(self, character_id: str) -> bool:
        if self.scope == "specific":
            return character_id in self.target_characters
        return True

    def situation_for(self, character_id: str) -> str:
        for situation in self.character_situations:
            if situation.character_id == character_id:
                return situation.situation
        return ""


@dataclass
class AuthorPersona:
    """Authorial voice used when designing narrative arcs."""
    name: str = ""
    signature: str = ""
    strengths: list[str] = field(default_factory=list)
    avoidance: list[str] = field(default_factory=list)
