"""Narrative package: profile derivation, grammar state machine, NPC tracking."""

from narrative.arc_templates import (
    ARC_LABELS,
    ARC_TEMPLATES,
    create_arcs_from_config,
    create_character_arc,
    create_master_arc,
    split_years,
)
from narrative.classifiers import (
    classify_sentiment,
    detect_beat_types,
    infer_status,
    is_placeholder_event,
    tension_delta,
)
from narrative.grammar_engine import GrammarEngine
from narrative.npc_tracker import NPCTracker
from narrative.profile_calculator import ProfileCalculator, sort_memories

__all__ = [
    "ARC_LABELS",
    "ARC_TEMPLATES",
    "create_arcs_from_config",
    "create_character_arc",
    "create_master_arc",
    "split_years",
    "classify_sentiment",
    "detect_beat_types",
    "infer_status",
    "is_placeholder_event",
    "tension_delta",
    "GrammarEngine",
    "NPCTracker",
    "ProfileCalculator",
    "sort_memories",
]
