"""Memory, imprint and narrative event data models."""

from dataclasses import dataclass, field
from typing import Optional

from models.enums import ImprintType, Importance, Season


@dataclass
class Imprint:
    """Typed atomic unit of personality, skill or belief change."""
    type: ImprintType = ImprintType.INSIGHT
    content: str = ""
    intensity: int = 30  # 0-100
    source: str = ""
    appearance_change: Optional[str] = None


@dataclass
class Memory:
    """One lived experience of a character. Appended once, never mutated."""
    id: str = ""
    character_id: str = ""
    year: int = 0
    season: Season = Season.SPRING
    content: str = ""
    imprints: list[Imprint] = field(default_factory=list)
    emotional_weight: int = 30  # 0-100
    tags: list[str] = field(default_factory=list)

    @property
    def sort_key(self) -> tuple[int, int]:
        return (self.year, self.season.order)


@dataclass
class NarrativeEvent:
    """One simulated plot beat for a character."""
    id: str = ""
    character_id: str = ""
    year: int = 0
    season: Season = Season.SPRING
    title: str = ""
    summary: str = ""
    importance: Importance = Importance.MINOR
    tags: list[str] = field(default_factory=list)
    related_characters: list[str] = field(default_factory=list)
    emotional_shift: Optional[dict] = None  # {primary, intensity, trigger}
    stats_change: Optional[dict] = None

    @property
    def sort_key(self) -> tuple[int, int]:
        return (self.year, self.season.order)
