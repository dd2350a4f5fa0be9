"""Agents package: generation-backed agent classes."""

from agents.base_agent import BaseAgent
from agents.simulation_agent import (
    CharacterContext,
    SimulationAgent,
    build_world_context,
    select_anchor_events,
    format_directive,
)
from agents.author_arc_agent import AuthorArcAgent
from agents.storyline_agent import StorylineAgent, should_preview
from agents.detail_agent import DetailAgent

__all__ = [
    "BaseAgent",
    "CharacterContext",
    "SimulationAgent",
    "build_world_context",
    "select_anchor_events",
    "format_directive",
    "AuthorArcAgent",
    "StorylineAgent",
    "should_preview",
    "DetailAgent",
]
