"""Models package: simulation dataclasses, wire models, and enums."""

from models.arc import (
    ArcPhase,
    ArcRevision,
    AuthorArcPhase,
    AuthorDirection,
    AuthorNarrativeArc,
    Beat,
    CharacterArc,
    EvaluationResult,
    FulfilledBeat,
    MasterAct,
    MasterArc,
    NarrativeDirective,
    PhaseTransition,
)
from models.character import AnchorEvent, AuthorPersona, CharacterSituation, Seed, WorldEvent
from models.enums import (
    AbilityLevel,
    ArcArchetype,
    BeatType,
    CharacterStatus,
    ControlAction,
    DirectiveStrategy,
    GenerationKind,
    ImprintType,
    Importance,
    NPCLifecycle,
    PreviewFrequency,
    ProgressType,
    RunStatus,
    Season,
    SeedEditMode,
    StoryHealth,
    TensionCurve,
    WarningSeverity,
    WarningType,
)
from models.memory import Imprint, Memory, NarrativeEvent
from models.npc import NPC, NPCAppearance, NPCInteraction, NPCPool, NPCRelationship
from models.profile import (
    Ability,
    Belief,
    CharacterState,
    CharacterStats,
    EmergentProfile,
    EmotionalState,
    PersonalityTrait,
)
from models.simulation import (
    GrammarConfig,
    ProgressUpdate,
    SeedEditLog,
    SimulationConfig,
    SimulationResult,
    SimulationSession,
)
from models.storyline import (
    IntegratedStoryline,
    MonitorConfig,
    StorylineMetrics,
    StorylinePreview,
    StorylineWarning,
)

__all__ = [
    "Ability",
    "AbilityLevel",
    "AnchorEvent",
    "ArcArchetype",
    "ArcPhase",
    "ArcRevision",
    "AuthorArcPhase",
    "AuthorDirection",
    "AuthorNarrativeArc",
    "AuthorPersona",
    "Beat",
    "BeatType",
    "Belief",
    "CharacterArc",
    "CharacterSituation",
    "CharacterState",
    "CharacterStats",
    "CharacterStatus",
    "ControlAction",
    "DirectiveStrategy",
    "EmergentProfile",
    "EmotionalState",
    "EvaluationResult",
    "FulfilledBeat",
    "GenerationKind",
    "GrammarConfig",
    "Imprint",
    "ImprintType",
    "Importance",
    "IntegratedStoryline",
    "MasterAct",
    "MasterArc",
    "Memory",
    "MonitorConfig",
    "NarrativeDirective",
    "NarrativeEvent",
    "NPC",
    "NPCAppearance",
    "NPCInteraction",
    "NPCLifecycle",
    "NPCPool",
    "NPCRelationship",
    "PersonalityTrait",
    "PhaseTransition",
    "PreviewFrequency",
    "ProgressType",
    "ProgressUpdate",
    "RunStatus",
    "Season",
    "Seed",
    "SeedEditLog",
    "SeedEditMode",
    "SimulationConfig",
    "SimulationResult",
    "SimulationSession",
    "StoryHealth",
    "StorylineMetrics",
    "StorylinePreview",
    "StorylineWarning",
    "TensionCurve",
    "WarningSeverity",
    "WarningType",
    "WorldEvent",
]
