"""Author Arc Agent: designs per-character narrative arcs and applies directions."""

import logging
import math
from typing import Mapping, Optional, Sequence

from pydantic import ValidationError

from agents.base_agent import BaseAgent
from config.exceptions import GenerationError
from config.settings import Settings
from models.arc import ArcRevision, AuthorArcPhase, AuthorDirection, AuthorNarrativeArc
from models.character import AnchorEvent, AuthorPersona, Seed
from models.enums import GenerationKind, Importance
from models.memory import Memory, NarrativeEvent
from models.profile import EmergentProfile
from models.responses import ArcDesignResponse
from tools.agent_sdk_client import AgentSDKClient

logger = logging.getLogger(__name__)


class AuthorArcAgent(BaseAgent):
    """Designs an advisory arc once per character, then follows the generator's
    reported directions to move through it.

    Arcs only move forward and never past their last phase.
    """

    prompt_name = "author_arc"

    def __init__(
        self,
        llm_client: Optional[AgentSDKClient] = None,
        settings: Optional[Settings] = None,
    ):
        super().__init__(llm_client, settings)

    async def design_arc(
        self,
        seed: Seed,
        persona: AuthorPersona,
        theme: str,
        world_summary: str,
        other_seeds: Sequence[Seed],
        anchor_events: Sequence[AnchorEvent],
        start_year: int,
        end_year: int,
    ) -> AuthorNarrativeArc:
        """Design one character's arc; falls back to a three-phase arc on failure."""
        others = "\n".join(
            f"{s.codename}: {s.initial_condition}, temperament: {s.temperament}"
            for s in other_seeds if s.id != seed.id
        ) or "none"
        milestones = "\n".join(
            f"Year {a.trigger_year}: {a.event}"
            + (f" (this character: {a.situation_for(seed.id)})" if a.situation_for(seed.id) else "")
            for a in anchor_events
        ) or "none"

        request = self._section(
            "Arc Design Request",
            signature=persona.signature or persona.name,
            strengths=", ".join(persona.strengths) or "(unspecified)",
            avoidance=", ".join(persona.avoidance) or "(unspecified)",
            theme=theme or "(unspecified)",
            world_summary=world_summary or "(unspecified)",
            start_year=start_year,
            end_year=end_year,
            start_age=max(0, seed.age_in(start_year)),
            end_age=seed.age_in(end_year),
            codename=seed.codename,
            birth_year=seed.birth_year,
            initial_condition=seed.initial_condition,
            temperament=seed.temperament,
            latent_ability=seed.latent_ability,
            wound=seed.wound,
            physical_trait=seed.physical_trait,
            appearance_line=f"\nInnate appearance: {seed.innate_appearance}" if seed.innate_appearance else "",
            other_characters=others,
            milestones=milestones,
        )
        prompt = f"{request}\n\n[Output: JSON only]\n{self._section('Arc Output Format')}"

        try:
            data = await self.llm.generate_json(self.system_prompt, prompt, GenerationKind.STRUCTURE)
            design = ArcDesignResponse.model_validate(data)
        except (GenerationError, ValidationError) as e:
            logger.warning(f"Arc design failed for {seed.codename}: {e}. Using fallback arc.")
            return self.fallback_arc(seed, start_year, end_year)

        if not design.phases:
            logger.warning(f"Arc design for {seed.codename} returned no phases. Using fallback arc.")
            return self.fallback_arc(seed, start_year, end_year)

        logger.info(f"Designed {len(design.phases)}-phase arc for {seed.codename}")
        return AuthorNarrativeArc(
            character_id=seed.id,
            phases=[phase.to_phase(idx) for idx, phase in enumerate(design.phases)],
        )

    @staticmethod
    def fallback_arc(seed: Seed, start_year: int, end_year: int) -> AuthorNarrativeArc:
        """Three phases split at thirds of the character's simulated age span."""
        total = end_year - start_year
        start_age = max(0, seed.age_in(start_year))
        end_age = seed.age_in(end_year)
        third = math.floor(start_age + total / 3)
        two_thirds = math.floor(start_age + total * 2 / 3)

        return AuthorNarrativeArc(
            character_id=seed.id,
            phases=[
                AuthorArcPhase(
                    id="phase-1",
                    name="Inception: first contact with the world",
                    estimated_age_range=f"{start_age}-{third}",
                    intent="The character perceives the world, faces the root wound and meets a first challenge.",
                    key_moments=["Perceiving the world", "Becoming aware of the root wound", "The first challenge"],
                    emotional_arc="Confusion, fear, then a small resolve",
                    end_condition="When the character holds a goal of their own",
                ),
                AuthorArcPhase(
                    id="phase-2",
                    name="Development: growth and trial intertwined",
                    estimated_age_range=f"{third}-{two_thirds}",
                    intent="Growth and setbacks repeat while the character's core is tested.",
                    key_moments=["A significant meeting", "An unexpected setback", "Partial awakening of potential"],
                    emotional_arc="Resolve, growth, setback, recovery",
                    end_condition="When the character stands at a fundamental crossroads",
                ),
                AuthorArcPhase(
                    id="phase-3",
                    name="Convergence: choice and fruition",
                    estimated_age_range=f"{two_thirds}-{end_age}",
                    intent="Accumulated experience bears fruit and the character establishes their own path.",
                    key_moments=["A decisive choice", "Full awakening of potential", "Converging with other characters"],
                    emotional_arc="Conflict, decision, change",
                    end_condition="When the character's story enters a new stage",
                ),
            ],
        )

    def process_direction(
        self,
        arc: AuthorNarrativeArc,
        direction: AuthorDirection,
        events: Sequence[NarrativeEvent],
    ) -> bool:
        """Apply a reported direction to the arc. Returns True if the phase moved."""
        advanced = False
        transition = direction.phase_transition
        if transition is not None and not arc.is_last_phase:
            arc.revisions.append(ArcRevision(
                year=direction.year,
                reason=transition.reason,
                changes=f'Phase transition: "{transition.from_phase}" → "{transition.to_phase}"',
            ))
            arc.current_phase_index += 1
            advanced = True
            logger.info(
                f"Author arc {arc.character_id} moved to phase {arc.current_phase_index + 1} "
                f"in year {direction.year}"
            )

        turning_points = [e for e in events if e.importance == Importance.TURNING_POINT]
        if turning_points and arc.current_phase is not None:
            arc.revisions.append(ArcRevision(
                year=direction.year,
                reason=f"Turning point detected: {', '.join(e.title for e in turning_points)}",
                changes="Arc progress may accelerate",
            ))
        return advanced

    def build_direction_section(
        self,
        arc: AuthorNarrativeArc,
        persona: AuthorPersona,
        theme: str,
        age: int,
        other_characters: str = "",
    ) -> str:
        """Render the author-direction block that replaces the grammar directive."""
        phase = arc.current_phase
        if phase is None:
            return ""
        next_index = arc.current_phase_index + 1
        next_phase = (
            f"{arc.phases[next_index].name} ({arc.phases[next_index].estimated_age_range})"
            if next_index < len(arc.phases) else "this is the final phase"
        )
        revisions = ""
        if arc.revisions:
            revisions = "\n[Arc revisions]\n" + "\n".join(
                f"[year {r.year}] {r.reason}: {r.changes}" for r in arc.revisions[-2:]
            ) + "\n"

        section = self._section(
            "Direction Section",
            signature=persona.signature or persona.name,
            strengths=", ".join(persona.strengths) or "(unspecified)",
            avoidance=", ".join(persona.avoidance) or "(unspecified)",
            theme=theme or "(unspecified)",
            phase_name=phase.name,
            phase_age_range=phase.estimated_age_range,
            phase_intent=phase.intent,
            key_moments=", ".join(phase.key_moments),
            emotional_arc=phase.emotional_arc,
            end_condition=phase.end_condition,
            next_phase=next_phase,
            revisions=revisions,
            other_characters=other_characters or "none",
            age=age,
        )
        return f"\n\n{section}\n{self._section('Direction Output Format')}"

    @staticmethod
    def other_characters_summary(
        seeds: Sequence[Seed],
        profiles: Mapping[str, EmergentProfile],
        memories: Mapping[str, Sequence[Memory]],
        arcs: Mapping[str, AuthorNarrativeArc],
        exclude_id: str,
        year: int,
    ) -> str:
        """One line per other living character: age, arc phase, latest memories."""
        lines = []
        for seed in seeds:
            if seed.id == exclude_id or year < seed.birth_year:
                continue
            profile = profiles.get(seed.id)
            name = profile.display_name if profile and profile.display_name else seed.codename
            line = f"{name} ({seed.id}): age {seed.age_in(year)}"
            arc = arcs.get(seed.id)
            if arc is not None and arc.current_phase is not None:
                line += f", arc: {arc.current_phase.name}"
            recent = "; ".join(m.content for m in list(memories.get(seed.id, []))[-2:])
            if recent:
                line += f", recent: {recent}"
            lines.append(line)
        return "\n".join(lines)
