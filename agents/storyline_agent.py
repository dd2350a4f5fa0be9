"""Storyline Agent: periodic health analysis of each character's storyline."""

import logging
from datetime import datetime, timezone
from typing import Optional, Sequence

from pydantic import ValidationError

from agents.base_agent import BaseAgent
from agents.simulation_agent import summarize_profile
from config.exceptions import GenerationError
from config.settings import Settings
from models.character import Seed
from models.enums import GenerationKind, Importance, PreviewFrequency, StoryHealth
from models.memory import Memory, NarrativeEvent
from models.profile import EmergentProfile
from models.responses import IntegratedResponse, PreviewResponse
from models.storyline import IntegratedStoryline, StorylineMetrics, StorylinePreview
from tools.agent_sdk_client import AgentSDKClient

logger = logging.getLogger(__name__)


def should_preview(
    frequency: PreviewFrequency,
    year: int,
    start_year: int,
    events: Sequence[NarrativeEvent],
    interval: int = 5,
) -> bool:
    """Decide whether this year's step should trigger a storyline preview.

    ``events`` are the events committed in the step being checked.
    """
    if frequency == PreviewFrequency.AUTO:
        return any(e.importance == Importance.TURNING_POINT for e in events)
    if frequency == PreviewFrequency.SEMI_AUTO:
        return year != start_year and (year - start_year) % interval == 0
    return False


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class StorylineAgent(BaseAgent):
    """Scores storylines and combines per-character previews into one report.

    Analysis never interrupts a run: failures yield a neutral preview or a
    healthy integrated report.
    """

    prompt_name = "storyline"

    def __init__(
        self,
        llm_client: Optional[AgentSDKClient] = None,
        settings: Optional[Settings] = None,
    ):
        super().__init__(llm_client, settings)

    async def preview(
        self,
        seed: Seed,
        profile: Optional[EmergentProfile],
        events: Sequence[NarrativeEvent],
        memories: Sequence[Memory],
        year: int,
        theme: str = "",
    ) -> StorylinePreview:
        events_summary = "\n".join(
            f"[{e.year}/{e.season.value}] {e.title}: {e.summary} ({e.importance.value})"
            for e in list(events)[-10:]
        ) or "(no events)"
        memories_summary = "\n".join(
            f"[{m.year}] {m.content}" for m in list(memories)[-8:]
        ) or "(no memories)"

        request = self._section(
            "Preview Request",
            theme=theme or "(unspecified)",
            codename=seed.codename,
            initial_condition=seed.initial_condition,
            temperament=seed.temperament,
            wound=seed.wound,
            profile_summary=summarize_profile(profile),
            events_summary=events_summary,
            memories_summary=memories_summary,
            year=year,
            age=seed.age_in(year),
        )
        prompt = f"{request}\n\n[Output: JSON only]\n{self._section('Preview Output Format')}"

        try:
            data = await self.llm.generate_json(self.system_prompt, prompt, GenerationKind.STRUCTURE)
            parsed = PreviewResponse.model_validate(data)
        except (GenerationError, ValidationError) as e:
            logger.warning(f"Storyline preview failed for {seed.codename} in year {year}: {e}")
            return self._neutral_preview(seed.id, year)

        return StorylinePreview(
            character_id=seed.id,
            year=year,
            narrative_so_far=parsed.narrative_so_far,
            character_snapshot=parsed.character_snapshot,
            projected_direction=parsed.projected_direction,
            metrics=parsed.metrics.to_metrics(),
            warnings=[w.to_warning() for w in parsed.warnings],
            generated_at=_now(),
        )

    async def integrate(
        self, previews: Sequence[StorylinePreview], theme: str = "",
    ) -> IntegratedStoryline:
        previews_summary = "\n\n".join(
            f"[{p.character_id}]\n"
            f"Story so far: {p.narrative_so_far}\n"
            f"Now: {p.character_snapshot}\n"
            f"Heading: {p.projected_direction}\n"
            f"Theme {p.metrics.theme_alignment} / interest {p.metrics.interest} / "
            f"awakening {p.metrics.awakening_potential}\n"
            f"Warnings: {', '.join(w.message for w in p.warnings) or 'none'}"
            for p in previews
        )
        request = self._section(
            "Integrated Request",
            theme=theme or "(unspecified)",
            previews_summary=previews_summary,
        )
        prompt = f"{request}\n\n[Output: JSON only]\n{self._section('Integrated Output Format')}"

        try:
            data = await self.llm.generate_json(self.system_prompt, prompt, GenerationKind.STRUCTURE)
            parsed = IntegratedResponse.model_validate(data)
        except (GenerationError, ValidationError) as e:
            logger.warning(f"Integrated storyline analysis failed: {e}")
            return IntegratedStoryline(
                characters=list(previews),
                convergence_status="Analysis failed",
                betrayal_prediction="",
                story_health=StoryHealth.GOOD,
                recommendation="Continue the simulation",
                generated_at=_now(),
            )

        return IntegratedStoryline(
            characters=list(previews),
            convergence_status=parsed.convergence_status,
            betrayal_prediction=parsed.betrayal_prediction,
            overall_theme_alignment=parsed.overall_theme_alignment,
            overall_interest=parsed.overall_interest,
            story_health=parsed.story_health,
            recommendation=parsed.recommendation,
            generated_at=_now(),
        )

    @staticmethod
    def _neutral_preview(character_id: str, year: int) -> StorylinePreview:
        return StorylinePreview(
            character_id=character_id,
            year=year,
            narrative_so_far="Analysis failed",
            character_snapshot="Analysis failed",
            projected_direction="Analysis failed",
            metrics=StorylineMetrics(),
            warnings=[],
            generated_at=_now(),
        )
