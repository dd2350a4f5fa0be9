"""Tests for Agent classes and BaseAgent utilities."""

import json

import pytest
from unittest.mock import AsyncMock


_SECTION_TEMPLATE = """\
## System Prompt
You are a test assistant.

## Greeting Request
Hello {name}, it is year {year}.

## Greeting Output Format
{"reply": "..."}
"""


class TestBaseAgent:
    def test_no_prompt_name_loads_nothing(self, mock_llm, settings):
        from agents.base_agent import BaseAgent
        agent = BaseAgent(llm_client=mock_llm, settings=settings)
        assert agent.sections == {}
        assert agent.system_prompt == ""
        assert agent.llm is mock_llm

    def test_split_sections_stops_at_next_header(self):
        from agents.base_agent import split_sections
        sections = split_sections("# Title\n\n" + _SECTION_TEMPLATE)
        assert list(sections) == ["System Prompt", "Greeting Request", "Greeting Output Format"]
        assert sections["System Prompt"] == "You are a test assistant."

    def test_missing_section_renders_empty(self, mock_llm, settings):
        from agents.base_agent import BaseAgent
        agent = BaseAgent(llm_client=mock_llm, settings=settings)
        assert agent._section("Missing") == ""

    def test_section_formats_only_with_values(self, mock_llm, settings):
        from agents.base_agent import BaseAgent, split_sections
        agent = BaseAgent(llm_client=mock_llm, settings=settings)
        agent.sections = split_sections(_SECTION_TEMPLATE)
        assert agent._section("Greeting Request", name="Lin", year=3) == "Hello Lin, it is year 3."
        assert agent._section("Greeting Output Format") == '{"reply": "..."}'
        assert agent.system_prompt == "You are a test assistant."

    def test_shipped_templates_have_system_prompt(self):
        from agents.base_agent import load_prompt_sections
        for name in ("simulation", "author_arc", "storyline", "detail"):
            assert load_prompt_sections(name)["System Prompt"]

    def test_missing_template_raises(self, mock_llm, settings):
        from agents.base_agent import BaseAgent

        class MissingAgent(BaseAgent):
            prompt_name = "does_not_exist"

        with pytest.raises(FileNotFoundError):
            MissingAgent(llm_client=mock_llm, settings=settings)


class TestPromptFragments:
    def test_world_context_keeps_last_five(self):
        from agents.simulation_agent import build_world_context
        from models.character import WorldEvent
        events = [WorldEvent(year=y, event=f"event {y}", impact="none") for y in range(10)]
        context = build_world_context(events, 7, "A divided empire.")
        assert context.startswith("A divided empire.")
        assert "[year 3]" in context and "[year 7]" in context
        assert "[year 2]" not in context and "[year 8]" not in context

    def test_world_context_empty(self):
        from agents.simulation_agent import build_world_context
        assert build_world_context([], 5) == "(no notable world events)"

    def test_select_anchor_events(self):
        from agents.simulation_agent import select_anchor_events
        from models.character import AnchorEvent
        anchors = [
            AnchorEvent(id="war", trigger_year=5, event="War"),
            AnchorEvent(id="plague", trigger_year=5, event="Plague", scope="specific", target_characters=["rival"]),
            AnchorEvent(id="optional", trigger_year=5, event="Fair", mandatory=False),
            AnchorEvent(id="later", trigger_year=6, event="Flood"),
        ]
        assert [a.id for a in select_anchor_events(anchors, 5, "hero")] == ["war"]
        assert [a.id for a in select_anchor_events(anchors, 5, "rival")] == ["war", "plague"]

    def test_format_directive(self):
        from agents.simulation_agent import format_directive
        from models.arc import NarrativeDirective
        text = format_directive(NarrativeDirective(
            phase_name="Ordinary World",
            phase_description="A lack",
            tension_target=15,
            current_tension=5,
            tension_guidance="Raise tension slightly.",
            required_beats=["The lack is revealed"],
            beat_type_guidance="Recommended: Inciting incident",
            arc_fulfillment=10,
            master_act_name="Setup",
        ))
        assert "[Narrative grammar]" in text
        assert "Target tension: 15/100 (current: 5/100)" in text
        assert "Required beats still pending: The lack is revealed" in text

    def test_summarize_memories_markers(self):
        from agents.simulation_agent import summarize_memories
        from models.enums import ImprintType
        from models.memory import Imprint, Memory
        memory = Memory(year=3, content="Fell from a tree", imprints=[
            Imprint(type=ImprintType.TRAUMA), Imprint(type=ImprintType.TRAUMA), Imprint(type=ImprintType.SKILL),
        ])
        assert summarize_memories([memory]) == "[3/spring] [trauma][skill] Fell from a tree"
        assert summarize_memories([]) == "(no memories)"


class TestSimulationAgent:
    def _context(self, seed, guidance=""):
        from agents.simulation_agent import CharacterContext
        from models.profile import EmergentProfile
        return CharacterContext(seed=seed, profile=EmergentProfile(display_name=seed.codename), guidance=guidance)

    def test_year_prompt_uses_template(self, mock_llm, settings, hero_seed):
        from agents.simulation_agent import SimulationAgent
        agent = SimulationAgent(mock_llm, settings)
        prompt = agent.build_year_prompt(self._context(hero_seed, "\n[Narrative grammar]"), 4, "Quiet times", 2)
        assert "Codename: Wanderer" in prompt
        assert "Quiet times" in prompt
        assert "[Narrative grammar]" in prompt
        assert "[Output: JSON only]" in prompt

    def test_range_prompt_lists_characters(self, mock_llm, settings, hero_seed, rival_seed):
        from agents.simulation_agent import SimulationAgent
        agent = SimulationAgent(mock_llm, settings)
        prompt = agent.build_range_prompt(
            [self._context(hero_seed), self._context(rival_seed)], 2, 4, "World",
        )
        assert "hero, rival" in prompt
        assert "age 2-4" in prompt
        assert "age 0-2" in prompt

    def test_range_prompt_dates_mandatory_events(self, mock_llm, settings, hero_seed):
        from dataclasses import replace
        from agents.simulation_agent import SimulationAgent
        from models.character import AnchorEvent
        agent = SimulationAgent(mock_llm, settings)
        ctx = replace(self._context(hero_seed), anchors=[
            AnchorEvent(id="flood", trigger_year=2, event="The river floods"),
            AnchorEvent(id="famine", trigger_year=1, event="Famine"),
        ])
        prompt = agent.build_range_prompt([ctx], 0, 2, "World")
        assert "[Mandatory events: each happens in the year given]" in prompt
        assert prompt.index("Famine (year 1)") < prompt.index("The river floods (year 2)")

    def test_range_prompt_without_anchors(self, mock_llm, settings, hero_seed):
        from agents.simulation_agent import SimulationAgent
        agent = SimulationAgent(mock_llm, settings)
        prompt = agent.build_range_prompt([self._context(hero_seed)], 0, 2, "World")
        assert "Mandatory events" not in prompt

    @pytest.mark.asyncio
    async def test_simulate_year_parses_response(self, mock_llm, settings, hero_seed):
        from agents.simulation_agent import SimulationAgent
        from models.enums import GenerationKind
        mock_llm.generate = AsyncMock(return_value=json.dumps({
            "events": [{"title": "The temple bell", "importance": "major"}],
        }))
        agent = SimulationAgent(mock_llm, settings)
        response = await agent.simulate_year(self._context(hero_seed), 4, "World")
        assert response.events[0].title == "The temple bell"
        assert mock_llm.generate.await_args.args[2] == GenerationKind.SIMULATION

    @pytest.mark.asyncio
    async def test_simulate_year_falls_back_on_garbage(self, mock_llm, settings, hero_seed):
        from agents.simulation_agent import SimulationAgent
        mock_llm.generate = AsyncMock(return_value="Sorry, no JSON today")
        agent = SimulationAgent(mock_llm, settings)
        response = await agent.simulate_year(self._context(hero_seed), 4, "World")
        assert response.events[0].title == "Uneventful days"

    @pytest.mark.asyncio
    async def test_simulate_year_propagates_generation_errors(self, mock_llm, settings, hero_seed):
        from agents.simulation_agent import SimulationAgent
        from config.exceptions import GenerationError
        mock_llm.generate = AsyncMock(side_effect=GenerationError("down"))
        agent = SimulationAgent(mock_llm, settings)
        with pytest.raises(GenerationError):
            await agent.simulate_year(self._context(hero_seed), 4, "World")

    @pytest.mark.asyncio
    async def test_simulate_batched(self, mock_llm, settings, hero_seed, rival_seed):
        from agents.simulation_agent import SimulationAgent
        mock_llm.generate = AsyncMock(return_value=json.dumps({"characters": {
            "hero": {"events": [{"title": "H"}]},
        }}))
        agent = SimulationAgent(mock_llm, settings)
        results = await agent.simulate_batched([self._context(hero_seed), self._context(rival_seed)], 4, "World")
        assert results["hero"].events[0].title == "H"
        assert results["rival"].events[0].title == "Uneventful days"


class TestAuthorArcAgent:
    @pytest.mark.asyncio
    async def test_design_arc(self, mock_llm, settings, hero_seed, rival_seed):
        from agents.author_arc_agent import AuthorArcAgent
        from models.character import AuthorPersona
        from models.enums import GenerationKind
        mock_llm.generate_json = AsyncMock(return_value={"phases": [
            {"id": "p1", "name": "Ashes", "estimatedAgeRange": "0-8", "keyMoments": ["the fire"]},
            {"name": "Embers"},
        ]})
        agent = AuthorArcAgent(mock_llm, settings)
        arc = await agent.design_arc(
            hero_seed, AuthorPersona(name="Gu Long"), "loyalty", "", [hero_seed, rival_seed], [], 0, 30,
        )
        assert arc.character_id == "hero"
        assert [p.name for p in arc.phases] == ["Ashes", "Embers"]
        assert arc.phases[1].id == "phase-2"
        assert arc.current_phase_index == 0
        prompt = mock_llm.generate_json.await_args.args[1]
        assert "Rival" in prompt
        assert mock_llm.generate_json.await_args.args[2] == GenerationKind.STRUCTURE

    @pytest.mark.asyncio
    async def test_design_arc_falls_back_on_failure(self, mock_llm, settings, hero_seed):
        from agents.author_arc_agent import AuthorArcAgent
        from config.exceptions import ResponseParseError
        from models.character import AuthorPersona
        mock_llm.generate_json = AsyncMock(side_effect=ResponseParseError(raw_response="??"))
        agent = AuthorArcAgent(mock_llm, settings)
        arc = await agent.design_arc(hero_seed, AuthorPersona(), "", "", [hero_seed], [], 0, 30)
        assert len(arc.phases) == 3

    @pytest.mark.asyncio
    async def test_design_arc_falls_back_on_empty_phases(self, mock_llm, settings, hero_seed):
        from agents.author_arc_agent import AuthorArcAgent
        from models.character import AuthorPersona
        mock_llm.generate_json = AsyncMock(return_value={"phases": []})
        agent = AuthorArcAgent(mock_llm, settings)
        arc = await agent.design_arc(hero_seed, AuthorPersona(), "", "", [hero_seed], [], 0, 30)
        assert arc.phases[0].id == "phase-1"

    def test_fallback_arc_age_ranges(self, hero_seed):
        from agents.author_arc_agent import AuthorArcAgent
        arc = AuthorArcAgent.fallback_arc(hero_seed, 0, 30)
        assert [p.estimated_age_range for p in arc.phases] == ["0-10", "10-20", "20-30"]

    def test_process_direction_moves_forward(self, mock_llm, settings, hero_seed):
        from agents.author_arc_agent import AuthorArcAgent
        from models.arc import AuthorDirection, PhaseTransition
        agent = AuthorArcAgent(mock_llm, settings)
        arc = agent.fallback_arc(hero_seed, 0, 30)
        direction = AuthorDirection(
            character_id="hero", year=10,
            phase_transition=PhaseTransition(from_phase="Inception", to_phase="Development", reason="goal found"),
        )
        assert agent.process_direction(arc, direction, [])
        assert arc.current_phase_index == 1
        assert arc.revisions[-1].reason == "goal found"
        assert arc.revisions[-1].changes == 'Phase transition: "Inception" → "Development"'

    def test_process_direction_stops_at_last_phase(self, mock_llm, settings, hero_seed):
        from agents.author_arc_agent import AuthorArcAgent
        from models.arc import AuthorDirection, PhaseTransition
        agent = AuthorArcAgent(mock_llm, settings)
        arc = agent.fallback_arc(hero_seed, 0, 30)
        arc.current_phase_index = 2
        direction = AuthorDirection(year=25, phase_transition=PhaseTransition(from_phase="C", to_phase="D"))
        assert not agent.process_direction(arc, direction, [])
        assert arc.current_phase_index == 2
        assert arc.revisions == []

    def test_turning_point_adds_revision(self, mock_llm, settings, hero_seed):
        from agents.author_arc_agent import AuthorArcAgent
        from models.arc import AuthorDirection
        from models.enums import Importance
        from models.memory import NarrativeEvent
        agent = AuthorArcAgent(mock_llm, settings)
        arc = agent.fallback_arc(hero_seed, 0, 30)
        events = [NarrativeEvent(title="The temple burns", importance=Importance.TURNING_POINT)]
        assert not agent.process_direction(arc, AuthorDirection(year=7), events)
        assert arc.revisions[-1].reason == "Turning point detected: The temple burns"
        assert arc.current_phase_index == 0

    def test_direction_section(self, mock_llm, settings, hero_seed):
        from agents.author_arc_agent import AuthorArcAgent
        from models.character import AuthorPersona
        agent = AuthorArcAgent(mock_llm, settings)
        arc = agent.fallback_arc(hero_seed, 0, 30)
        section = agent.build_direction_section(arc, AuthorPersona(name="Gu Long"), "loyalty", 4)
        assert section.startswith("\n\n")
        assert arc.phases[0].name in section
        assert arc.phases[1].name in section

    def test_other_characters_summary(self, hero_seed, rival_seed):
        from agents.author_arc_agent import AuthorArcAgent
        from models.memory import Memory
        memories = {"rival": [Memory(content="lost the estate")]}
        summary = AuthorArcAgent.other_characters_summary(
            [hero_seed, rival_seed], {}, memories, {}, "hero", 10,
        )
        assert summary == "Rival (rival): age 8, recent: lost the estate"
        assert AuthorArcAgent.other_characters_summary([hero_seed, rival_seed], {}, {}, {}, "hero", 1) == ""


class TestShouldPreview:
    def _events(self, importance):
        from models.enums import Importance
        from models.memory import NarrativeEvent
        return [NarrativeEvent(importance=Importance(importance))]

    def test_auto_on_turning_point(self):
        from agents.storyline_agent import should_preview
        from models.enums import PreviewFrequency
        assert should_preview(PreviewFrequency.AUTO, 3, 0, self._events("turning_point"))
        assert not should_preview(PreviewFrequency.AUTO, 3, 0, self._events("major"))

    def test_semi_auto_interval(self):
        from agents.storyline_agent import should_preview
        from models.enums import PreviewFrequency
        assert should_preview(PreviewFrequency.SEMI_AUTO, 5, 0, [])
        assert should_preview(PreviewFrequency.SEMI_AUTO, 10, 0, [])
        assert not should_preview(PreviewFrequency.SEMI_AUTO, 0, 0, [])
        assert not should_preview(PreviewFrequency.SEMI_AUTO, 7, 0, [])

    def test_off_and_manual(self):
        from agents.storyline_agent import should_preview
        from models.enums import PreviewFrequency
        events = self._events("turning_point")
        assert not should_preview(PreviewFrequency.OFF, 5, 0, events)
        assert not should_preview(PreviewFrequency.MANUAL, 5, 0, events)


class TestStorylineAgent:
    @pytest.mark.asyncio
    async def test_preview(self, mock_llm, settings, hero_seed):
        from agents.storyline_agent import StorylineAgent
        mock_llm.generate_json = AsyncMock(return_value={
            "narrativeSoFar": "An orphan grows up.",
            "metrics": {"themeAlignment": 80, "interest": 65},
            "warnings": [{"type": "flat_character", "severity": "high", "message": "Too passive"}],
        })
        agent = StorylineAgent(mock_llm, settings)
        preview = await agent.preview(hero_seed, None, [], [], 10, "loyalty")
        assert preview.character_id == "hero"
        assert preview.narrative_so_far == "An orphan grows up."
        assert preview.metrics.theme_alignment == 80
        assert preview.metrics.coherence == 50
        assert preview.warnings[0].message == "Too passive"
        assert preview.generated_at

    @pytest.mark.asyncio
    async def test_preview_failure_is_neutral(self, mock_llm, settings, hero_seed):
        from agents.storyline_agent import StorylineAgent
        from config.exceptions import GenerationError
        mock_llm.generate_json = AsyncMock(side_effect=GenerationError("down"))
        agent = StorylineAgent(mock_llm, settings)
        preview = await agent.preview(hero_seed, None, [], [], 10)
        assert preview.narrative_so_far == "Analysis failed"
        assert preview.metrics.interest == 50
        assert preview.warnings == []

    @pytest.mark.asyncio
    async def test_integrate(self, mock_llm, settings):
        from agents.storyline_agent import StorylineAgent
        from models.enums import StoryHealth
        from models.storyline import StorylinePreview
        mock_llm.generate_json = AsyncMock(return_value={
            "storyHealth": "Critical", "recommendation": "Introduce a conflict", "overallInterest": 20,
        })
        agent = StorylineAgent(mock_llm, settings)
        previews = [StorylinePreview(character_id="hero"), StorylinePreview(character_id="rival")]
        report = await agent.integrate(previews)
        assert report.story_health == StoryHealth.CRITICAL
        assert report.overall_interest == 20
        assert len(report.characters) == 2

    @pytest.mark.asyncio
    async def test_integrate_failure_is_healthy(self, mock_llm, settings):
        from agents.storyline_agent import StorylineAgent
        from config.exceptions import GenerationError
        from models.enums import StoryHealth
        mock_llm.generate_json = AsyncMock(side_effect=GenerationError("down"))
        agent = StorylineAgent(mock_llm, settings)
        report = await agent.integrate([])
        assert report.story_health == StoryHealth.GOOD
        assert report.recommendation == "Continue the simulation"


class TestDetailAgent:
    @pytest.mark.asyncio
    async def test_expand_event(self, mock_llm, settings, hero_seed):
        from agents.detail_agent import DetailAgent
        from models.enums import GenerationKind
        from models.memory import NarrativeEvent
        mock_llm.generate_json = AsyncMock(return_value={
            "content": "Smoke rose.\\nHe ran.", "atmosphere": "grim", "innerThought": "Not again",
        })
        agent = DetailAgent(mock_llm, settings)
        event = NarrativeEvent(
            id="hero-5-0", character_id="hero", year=5, title="The temple burns",
            related_characters=["rival"], emotional_shift={"primary": "fear", "intensity": 80},
        )
        scene = await agent.expand_event(hero_seed, None, event, related_names={"rival": "Rival"})
        assert scene["content"] == "Smoke rose.\nHe ran."
        assert scene["atmosphere"] == "grim"
        assert scene["inner_thought"] == "Not again"
        assert scene["char_count"] == len(scene["content"])
        prompt = mock_llm.generate_json.await_args.args[1]
        assert "fear" in prompt
        assert "Characters involved: Rival" in prompt
        assert mock_llm.generate_json.await_args.args[2] == GenerationKind.DETAIL

    @pytest.mark.asyncio
    async def test_expand_event_uses_raw_text_when_not_json(self, mock_llm, settings, hero_seed):
        from agents.detail_agent import DetailAgent
        from config.exceptions import ResponseParseError
        from models.memory import NarrativeEvent
        mock_llm.generate_json = AsyncMock(side_effect=ResponseParseError(raw_response="  Plain prose.  "))
        agent = DetailAgent(mock_llm, settings)
        scene = await agent.expand_event(hero_seed, None, NarrativeEvent(id="hero-5-0", year=5))
        assert scene["content"] == "Plain prose."
        assert scene["atmosphere"] == ""
