"""Simulation configuration, session, progress and result models."""

import uuid
from dataclasses import dataclass, field
from typing import Optional

from models.arc import AuthorDirection, AuthorNarrativeArc, CharacterArc, MasterArc
from models.character import AnchorEvent, AuthorPersona, Seed, WorldEvent
from models.enums import (
    ArcArchetype, DirectiveStrategy, ProgressType, RunStatus, SeedEditMode, TensionCurve,
)
from models.memory import Memory, NarrativeEvent
from models.npc import NPCPool
from models.profile import CharacterState, EmergentProfile
from models.storyline import IntegratedStoryline, MonitorConfig, StorylinePreview


@dataclass
class GrammarConfig:
    enabled: bool = True
    master_archetype: ArcArchetype = ArcArchetype.HEROES_JOURNEY
    character_overrides: dict[str, ArcArchetype] = field(default_factory=dict)
    tension_curve: TensionCurve = TensionCurve.STANDARD
    act_count: int = 3  # 3, 4 or 5


@dataclass
class SimulationConfig:
    start_year: int = 0
    end_year: int = 10
    events_per_year: int = 3
    selected_characters: Optional[list[str]] = None  # None means every seed
    batched: bool = False
    world_events: list[WorldEvent] = field(default_factory=list)
    anchor_events: list[AnchorEvent] = field(default_factory=list)
    grammar: GrammarConfig = field(default_factory=GrammarConfig)
    author_persona: Optional[AuthorPersona] = None
    theme: str = ""
    world_summary: str = ""
    monitor: MonitorConfig = field(default_factory=MonitorConfig)
    drop_placeholder_events: bool = False


@dataclass
class ProgressUpdate:
    """One entry of the progress stream consumed by the presentation layer."""
    type: ProgressType = ProgressType.YEAR_START
    message: str = ""
    progress: int = 0
    character_id: Optional[str] = None
    character_name: Optional[str] = None
    year: Optional[int] = None
    events: Optional[list[NarrativeEvent]] = None
    storyline_preview: Optional[StorylinePreview] = None
    integrated_storyline: Optional[IntegratedStoryline] = None
    pause_reason: Optional[str] = None
    session_id: Optional[str] = None
    narrative_arcs: Optional[dict[str, AuthorNarrativeArc]] = None
    author_direction: Optional[AuthorDirection] = None


@dataclass
class SeedEditLog:
    character_id: str = ""
    mode: SeedEditMode = SeedEditMode.PRE_SIMULATION
    previous_seed: Optional[Seed] = None
    new_seed: Optional[Seed] = None
    rewind_to_age: Optional[int] = None
    deleted_memory_count: int = 0
    deleted_npc_ids: list[str] = field(default_factory=list)
    affected_memory_ids: list[str] = field(default_factory=list)


@dataclass
class SimulationSession:
    """All state of one simulation, owned by the engine for the length of a run."""
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    seeds: dict[str, Seed] = field(default_factory=dict)
    memories: dict[str, list[Memory]] = field(default_factory=dict)
    profiles: dict[str, EmergentProfile] = field(default_factory=dict)
    events: list[NarrativeEvent] = field(default_factory=list)
    character_arcs: dict[str, CharacterArc] = field(default_factory=dict)
    master_arc: Optional[MasterArc] = None
    author_arcs: dict[str, AuthorNarrativeArc] = field(default_factory=dict)
    npc_pool: NPCPool = field(default_factory=NPCPool)
    previews: dict[str, StorylinePreview] = field(default_factory=dict)
    integrated: Optional[IntegratedStoryline] = None
    strategies: dict[str, DirectiveStrategy] = field(default_factory=dict)
    edit_logs: list[SeedEditLog] = field(default_factory=list)
    status: RunStatus = RunStatus.IDLE
    last_year: Optional[int] = None

    def memories_for(self, character_id: str) -> list[Memory]:
        return self.memories.setdefault(character_id, [])

    def events_for(self, character_id: str) -> list[NarrativeEvent]:
        return [e for e in self.events if e.character_id == character_id]


@dataclass
class SimulationResult:
    status: RunStatus = RunStatus.COMPLETED
    events: list[NarrativeEvent] = field(default_factory=list)
    memories: dict[str, list[Memory]] = field(default_factory=dict)
    profiles: dict[str, EmergentProfile] = field(default_factory=dict)
    character_arcs: dict[str, CharacterArc] = field(default_factory=dict)
    master_arc: Optional[MasterArc] = None
    author_arcs: dict[str, AuthorNarrativeArc] = field(default_factory=dict)
    npc_pool: NPCPool = field(default_factory=NPCPool)
    characters: dict[str, CharacterState] = field(default_factory=dict)
    final_year: Optional[int] = None
