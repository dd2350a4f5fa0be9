"""Storyline health monitor models."""

from dataclasses import dataclass, field

from models.enums import PreviewFrequency, StoryHealth, WarningSeverity, WarningType


@dataclass
class StorylineWarning:
    type: WarningType = WarningType.PACING
    severity: WarningSeverity = WarningSeverity.LOW
    message: str = ""
    detected_at_age: int = 0


@dataclass
class StorylineMetrics:
    theme_alignment: int = 50
    coherence: int = 50
    interest: int = 50
    character_depth: int = 50
    awakening_potential: int = 30


@dataclass
class StorylinePreview:
    character_id: str = ""
    year: int = 0
    narrative_so_far: str = ""
    character_snapshot: str = ""
    projected_direction: str = ""
    metrics: StorylineMetrics = field(default_factory=StorylineMetrics)
    warnings: list[StorylineWarning] = field(default_factory=list)
    generated_at: str = ""


@dataclass
class IntegratedStoryline:
    characters: list[StorylinePreview] = field(default_factory=list)
    convergence_status: str = ""
    betrayal_prediction: str = ""
    overall_theme_alignment: int = 50
    overall_interest: int = 50
    story_health: StoryHealth = StoryHealth.GOOD
    recommendation: str = ""
    generated_at: str = ""


@dataclass
class MonitorConfig:
    preview_frequency: PreviewFrequency = PreviewFrequency.OFF
    auto_pause_on_critical: bool = False
    integrated_analysis_enabled: bool = True
