"""Enumerations for simulation state tracking."""

from enum import Enum


class Season(str, Enum):
    SPRING = "spring"
    SUMMER = "summer"
    AUTUMN = "autumn"
    WINTER = "winter"

    @property
    def order(self) -> int:
        return _SEASON_ORDER[self]


_SEASON_ORDER = {
    Season.SPRING: 0,
    Season.SUMMER: 1,
    Season.AUTUMN: 2,
    Season.WINTER: 3,
}


class ImprintType(str, Enum):
    INSIGHT = "insight"
    EMOTION = "emotion"
    SKILL = "skill"
    SPEECH = "speech"
    NAME = "name"
    RELATIONSHIP = "relationship"
    TRAUMA = "trauma"
    BELIEF = "belief"


class Importance(str, Enum):
    MINOR = "minor"
    MAJOR = "major"
    TURNING_POINT = "turning_point"


class CharacterStatus(str, Enum):
    CHILDHOOD = "childhood"
    TRAINING = "training"
    WANDERING = "wandering"
    CONFLICT = "conflict"
    TRANSFORMATION = "transformation"
    CONVERGENCE = "convergence"


class AbilityLevel(str, Enum):
    DISCOVERED = "discovered"
    PRACTICING = "practicing"
    MASTERED = "mastered"


class BeatType(str, Enum):
    INCITING = "inciting"
    COMPLICATION = "complication"
    REVERSAL = "reversal"
    CRISIS = "crisis"
    CLIMAX = "climax"
    RESOLUTION = "resolution"


class ArcArchetype(str, Enum):
    HEROES_JOURNEY = "heroes_journey"
    TRAGEDY = "tragedy"
    TRANSFORMATION = "transformation"
    FALL = "fall"
    REDEMPTION = "redemption"
    REVENGE = "revenge"


class TensionCurve(str, Enum):
    STANDARD = "standard"
    SLOW_BURN = "slow_burn"
    EXPLOSIVE = "explosive"


class NPCLifecycle(str, Enum):
    MENTION = "mention"
    ENCOUNTER = "encounter"
    RECURRING = "recurring"
    SIGNIFICANT = "significant"
    CORE = "core"


class PreviewFrequency(str, Enum):
    OFF = "off"
    MANUAL = "manual"
    SEMI_AUTO = "semi_auto"
    AUTO = "auto"


class StoryHealth(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    CONCERNING = "concerning"
    CRITICAL = "critical"


class WarningType(str, Enum):
    THEME_DRIFT = "theme_drift"
    FLAT_CHARACTER = "flat_character"
    NO_CONFLICT = "no_conflict"
    REPETITIVE = "repetitive"
    DEAD_END = "dead_end"
    PACING = "pacing"


class WarningSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ProgressType(str, Enum):
    SESSION_INIT = "session_init"
    YEAR_START = "year_start"
    GENERATING = "generating"
    COMPLETED = "completed"
    CROSS_EVENT = "cross_event"
    ARC_DESIGNED = "arc_designed"
    AUTHOR_DIRECTION = "author_direction"
    STORYLINE_PREVIEW = "storyline_preview"
    INTEGRATED_STORYLINE = "integrated_storyline"
    AUTO_PAUSED = "auto_paused"
    ERROR = "error"
    DONE = "done"


class RunStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"
    FAILED = "failed"


class GenerationKind(str, Enum):
    SIMULATION = "simulation"   # bulk narrative generation
    STRUCTURE = "structure"     # low-temperature structured output
    DETAIL = "detail"           # high-quality prose expansion


class DirectiveStrategy(str, Enum):
    NONE = "none"
    GRAMMAR = "grammar"
    AUTHOR = "author"


class SeedEditMode(str, Enum):
    PRE_SIMULATION = "pre_simulation"
    SOFT_EDIT = "soft_edit"
    HARD_RESET = "hard_reset"


class ControlAction(str, Enum):
    PAUSE = "pause"
    RESUME = "resume"
    ABORT = "abort"
