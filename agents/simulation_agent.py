"""Simulation Agent: asks the generator what happens to characters each step."""

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from agents.base_agent import BaseAgent
from config.settings import Settings
from models.arc import NarrativeDirective
from models.character import AnchorEvent, Seed, WorldEvent
from models.enums import GenerationKind
from models.memory import Memory
from models.profile import EmergentProfile
from models.responses import YearResponse
from tools.agent_sdk_client import AgentSDKClient
from tools.llm_client import parse_batched_response, parse_year_response

logger = logging.getLogger(__name__)

IMPRINT_MARKERS = {
    "insight": "[insight]",
    "emotion": "[emotion]",
    "skill": "[skill]",
    "speech": "[speech]",
    "name": "[name]",
    "relationship": "[bond]",
    "trauma": "[trauma]",
    "belief": "[belief]",
}


@dataclass
class CharacterContext:
    """Everything the generator needs to know about one character for one step."""
    seed: Seed
    profile: EmergentProfile
    recent_memories: list[Memory] = field(default_factory=list)
    guidance: str = ""  # grammar directive or author direction block, never both
    anchors: list[AnchorEvent] = field(default_factory=list)
    npc_summary: str = ""


# ---------------------------------------------------------------------------
# Prompt fragments
# ---------------------------------------------------------------------------

def build_world_context(world_events: Sequence[WorldEvent], year: int, world_summary: str = "") -> str:
    """The last five world events at or before `year`, after the world summary."""
    recent = [we for we in world_events if we.year <= year][-5:]
    lines = [world_summary.strip()] if world_summary.strip() else []
    if recent:
        lines.append("Recent world events:")
        lines.extend(f"- [year {we.year}] {we.event}: {we.impact}" for we in recent)
    return "\n".join(lines) or "(no notable world events)"


def select_anchor_events(anchor_events: Sequence[AnchorEvent], year: int, character_id: str) -> list[AnchorEvent]:
    """Mandatory anchor events that fire this year for the character."""
    return [
        a for a in anchor_events
        if a.trigger_year == year and a.mandatory and a.applies_to(character_id)
    ]


def format_directive(directive: NarrativeDirective) -> str:
    lines = [
        "",
        "[Narrative grammar]",
        f"Current phase: {directive.phase_name}: {directive.phase_description}",
        f"Current act: {directive.master_act_name}",
        f"Target tension: {directive.tension_target}/100 (current: {directive.current_tension}/100)",
        directive.tension_guidance,
    ]
    if directive.required_beats:
        lines.append(f"Required beats still pending: {', '.join(directive.required_beats)}")
    lines.append(f"Event guidance: {directive.beat_type_guidance}")
    lines.append(f"Arc fulfillment: {directive.arc_fulfillment}%")
    return "\n".join(lines)


def summarize_seed(seed: Seed) -> str:
    lines = [
        f"Codename: {seed.codename}",
        f"Initial condition: {seed.initial_condition}",
        f"Temperament: {seed.temperament}",
        f"Latent ability: {seed.latent_ability}",
        f"Root wound: {seed.wound}",
    ]
    if seed.innate_appearance:
        lines.append(f"Innate appearance: {seed.innate_appearance}")
    return "\n".join(lines)


def summarize_profile(profile: Optional[EmergentProfile]) -> str:
    if profile is None or not profile.personality:
        return "(no emergent profile yet)"
    name = profile.display_name
    if profile.current_alias:
        name += f" ({profile.current_alias})"
    traits = ", ".join(f"{t.trait}({t.strength})" for t in profile.personality[:3])
    beliefs = "; ".join(b.content for b in profile.beliefs[:2]) or "(not formed yet)"
    abilities = ", ".join(f"{a.name}[{a.level.value}]" for a in profile.abilities) or "none"
    speech = ", ".join(profile.speech_patterns[:2]) or "(nothing distinctive yet)"
    conflicts = "; ".join(profile.inner_conflicts[:2]) or "(none)"
    return (
        f"Current name: {name}\n"
        f"Personality: {traits}\n"
        f"Beliefs: {beliefs}\n"
        f"Abilities: {abilities}\n"
        f"Speech: {speech}\n"
        f"Inner conflicts: {conflicts}"
    )


def summarize_memories(memories: Sequence[Memory], limit: int = 5) -> str:
    if not memories:
        return "(no memories)"
    lines = []
    for memory in list(memories)[-limit:]:
        markers = []
        for imprint in memory.imprints:
            marker = IMPRINT_MARKERS.get(imprint.type.value, "")
            if marker not in markers:
                markers.append(marker)
        lines.append(f"[{memory.year}/{memory.season.value}] {''.join(markers)} {memory.content}")
    return "\n".join(lines)


def format_anchor_section(anchors: Sequence[AnchorEvent], seeds: Sequence[Seed], ranged: bool = False) -> str:
    """Mandatory-event block; ``ranged`` dates each event for multi-year requests."""
    if not anchors:
        return ""
    if ranged:
        anchors = sorted(anchors, key=lambda a: a.trigger_year)
    blocks = []
    for anchor in anchors:
        situations = "\n".join(
            f"  {seed.codename}: {anchor.situation_for(seed.id) or 'not directly affected'}"
            for seed in seeds
        )
        event = f"{anchor.event} (year {anchor.trigger_year})" if ranged else anchor.event
        blocks.append(
            f"Event: {event}\nWorld impact: {anchor.world_impact}\nSituation:\n{situations}"
        )
    heading = "each happens in the year given" if ranged else "these happen this year"
    return (
        f"\n\n[Mandatory events: {heading}]\n"
        + "\n\n".join(blocks)
        + "\nThe events themselves cannot change; the characters' reactions, choices "
          "and feelings are free."
    )


def format_npc_section(npc_summary: str) -> str:
    if not npc_summary:
        return ""
    return (
        "\n\n[NPCs who may appear]\n"
        f"{npc_summary}\n"
        "Bring these NPCs back naturally or introduce someone new, and record them in npcInteractions."
    )


# ---------------------------------------------------------------------------
# Agent
# ---------------------------------------------------------------------------

class SimulationAgent(BaseAgent):
    """Builds step requests and parses the generator's replies.

    Generation failures propagate so the caller can isolate them per
    character; malformed replies never do, the parser falls back instead.
    """

    prompt_name = "simulation"

    def __init__(
        self,
        llm_client: Optional[AgentSDKClient] = None,
        settings: Optional[Settings] = None,
    ):
        super().__init__(llm_client, settings)

    # --- Prompt building ---------------------------------------------------

    def build_year_prompt(
        self, ctx: CharacterContext, year: int, world_context: str, events_per_year: int = 3,
    ) -> str:
        request = self._section(
            "Year Request",
            year=year,
            event_count=events_per_year,
            seed_summary=summarize_seed(ctx.seed),
            age=ctx.seed.age_in(year),
            profile_summary=summarize_profile(ctx.profile),
            world_context=world_context,
            memory_summary=summarize_memories(ctx.recent_memories, self.settings.recent_memory_count),
            guidance_section=ctx.guidance,
            npc_section=format_npc_section(ctx.npc_summary),
            anchor_section=format_anchor_section(ctx.anchors, [ctx.seed]),
        )
        return self._compose(request, "Single Output Format")

    def build_batched_prompt(
        self,
        contexts: Sequence[CharacterContext],
        year: int,
        world_context: str,
        npc_summary: str = "",
        events_per_year: int = 3,
    ) -> str:
        anchors = self._unique_anchors(contexts)
        request = self._section(
            "Batched Request",
            year=year,
            event_count=events_per_year,
            world_context=world_context,
            npc_section=format_npc_section(npc_summary),
            anchor_section=format_anchor_section(anchors, [c.seed for c in contexts]),
            character_summaries=self._character_summaries(contexts, year),
            character_ids=", ".join(c.seed.id for c in contexts),
        )
        return self._compose(request, "Batched Output Format")

    def build_range_prompt(
        self,
        contexts: Sequence[CharacterContext],
        start_year: int,
        end_year: int,
        world_context: str,
        npc_summary: str = "",
    ) -> str:
        request = self._section(
            "Range Request",
            start_year=start_year,
            end_year=end_year,
            world_context=world_context,
            npc_section=format_npc_section(npc_summary),
            anchor_section=format_anchor_section(
                self._unique_anchors(contexts), [c.seed for c in contexts], ranged=True,
            ),
            character_summaries=self._character_summaries(contexts, start_year, end_year),
            character_ids=", ".join(c.seed.id for c in contexts),
        )
        return self._compose(request, "Range Output Format")

    # --- Generation --------------------------------------------------------

    async def simulate_year(
        self, ctx: CharacterContext, year: int, world_context: str, events_per_year: int = 3,
    ) -> YearResponse:
        prompt = self.build_year_prompt(ctx, year, world_context, events_per_year)
        text = await self.llm.generate(self.system_prompt, prompt, GenerationKind.SIMULATION)
        return parse_year_response(text)

    async def simulate_batched(
        self,
        contexts: Sequence[CharacterContext],
        year: int,
        world_context: str,
        npc_summary: str = "",
        events_per_year: int = 3,
    ) -> dict[str, YearResponse]:
        prompt = self.build_batched_prompt(contexts, year, world_context, npc_summary, events_per_year)
        text = await self.llm.generate(self.system_prompt, prompt, GenerationKind.SIMULATION)
        return parse_batched_response(text, [c.seed.id for c in contexts])

    async def simulate_range(
        self,
        contexts: Sequence[CharacterContext],
        start_year: int,
        end_year: int,
        world_context: str,
        npc_summary: str = "",
    ) -> dict[str, YearResponse]:
        prompt = self.build_range_prompt(contexts, start_year, end_year, world_context, npc_summary)
        text = await self.llm.generate(self.system_prompt, prompt, GenerationKind.SIMULATION)
        return parse_batched_response(text, [c.seed.id for c in contexts])

    # --- Internals ---------------------------------------------------------

    def _compose(self, request: str, output_section: str) -> str:
        return (
            f"{request}\n\n"
            f"{self._section('Writing Rules')}\n\n"
            f"[Output: JSON only]\n"
            f"{self._section(output_section)}"
        )

    def _character_summaries(
        self, contexts: Sequence[CharacterContext], year: int, end_year: Optional[int] = None,
    ) -> str:
        blocks = []
        for ctx in contexts:
            seed = ctx.seed
            age = f"age {seed.age_in(year)}"
            if end_year is not None:
                age = f"age {seed.age_in(year)}-{seed.age_in(end_year)}"
            recent = "; ".join(
                f"[{m.year}/{m.season.value}] {m.content}" for m in ctx.recent_memories[-3:]
            ) or "none"
            blocks.append(
                f"## {seed.codename} (ID: {seed.id}), {age}\n"
                f"Temperament: {seed.temperament}\n"
                f"Latent ability: {seed.latent_ability}\n"
                f"Wound: {seed.wound}\n"
                f"{summarize_profile(ctx.profile)}\n"
                f"Recent memories: {recent}"
                f"{ctx.guidance}"
            )
        return "\n\n".join(blocks)

    @staticmethod
    def _unique_anchors(contexts: Sequence[CharacterContext]) -> list[AnchorEvent]:
        seen: dict[str, AnchorEvent] = {}
        for ctx in contexts:
            for anchor in ctx.anchors:
                seen.setdefault(anchor.id or anchor.event, anchor)
        return list(seen.values())
