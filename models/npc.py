"""NPC pool models."""

from dataclasses import dataclass, field
from typing import Optional

from models.enums import NPCLifecycle, Season


@dataclass
class NPCAppearance:
    year: int = 0
    season: Season = Season.SPRING
    event_id: str = ""
    role: str = ""
    interaction: str = ""


@dataclass
class NPCRelationship:
    character_id: str = ""
    relationship: str = ""
    sentiment: int = 0  # -100..100


@dataclass
class NPC:
    id: str = ""
    lifecycle: NPCLifecycle = NPCLifecycle.ENCOUNTER
    role: str = ""
    name: Optional[str] = None
    alias: str = ""
    description: str = ""
    appearances: list[NPCAppearance] = field(default_factory=list)
    first_seen_year: int = 0
    last_seen_year: int = 0
    total_appearances: int = 0
    related_characters: list[NPCRelationship] = field(default_factory=list)

    def relationship_with(self, character_id: str) -> Optional[NPCRelationship]:
        for rel in self.related_characters:
            if rel.character_id == character_id:
                return rel
        return None


@dataclass
class NPCPool:
    npcs: list[NPC] = field(default_factory=list)
    max_active: int = 20
    next_id: int = 1

    @property
    def is_full(self) -> bool:
        return len(self.npcs) >= self.max_active


@dataclass
class NPCInteraction:
    """NPC encounter reported by the generator for one event."""
    event_index: int = 0
    npc_alias: str = ""
    npc_name: Optional[str] = None
    role: str = ""
    interaction: str = ""
    is_new: bool = True
