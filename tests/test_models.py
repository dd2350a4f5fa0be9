"""Tests for data models and wire models."""


class TestSeason:
    def test_order(self):
        from models.enums import Season
        assert [s.order for s in Season] == [0, 1, 2, 3]

    def test_string_enum(self):
        from models.enums import Season
        assert Season("winter") is Season.WINTER
        assert Season.WINTER == "winter"


class TestSeed:
    def test_age_in(self, hero_seed):
        assert hero_seed.age_in(12) == 12
        assert hero_seed.age_in(-1) == -1


class TestAnchorEvent:
    def test_scope_all_applies_to_everyone(self):
        from models.character import AnchorEvent
        anchor = AnchorEvent(id="a1", trigger_year=5, event="The war begins")
        assert anchor.applies_to("anyone")

    def test_specific_scope(self):
        from models.character import AnchorEvent
        anchor = AnchorEvent(scope="specific", target_characters=["hero"])
        assert anchor.applies_to("hero")
        assert not anchor.applies_to("rival")

    def test_situation_for(self):
        from models.character import AnchorEvent, CharacterSituation
        anchor = AnchorEvent(character_situations=[CharacterSituation("hero", "Conscripted")])
        assert anchor.situation_for("hero") == "Conscripted"
        assert anchor.situation_for("rival") == ""


class TestMemoryOrdering:
    def test_sort_key(self):
        from models.enums import Season
        from models.memory import Memory
        early = Memory(year=3, season=Season.WINTER)
        late = Memory(year=4, season=Season.SPRING)
        same_year_later = Memory(year=3, season=Season.AUTUMN)
        ordered = sorted([late, early, same_year_later], key=lambda m: m.sort_key)
        assert ordered == [same_year_later, early, late]


class TestArcs:
    def test_character_arc_active_phase(self):
        from models.arc import ArcPhase, CharacterArc
        arc = CharacterArc(phases=[ArcPhase(name="One"), ArcPhase(name="Two")], current_phase=1)
        assert arc.active_phase.name == "Two"
        arc.current_phase = 5
        assert arc.active_phase is None

    def test_phase_covers(self):
        from models.arc import ArcPhase
        phase = ArcPhase(start_year=3, end_year=6)
        assert phase.covers(3) and phase.covers(6)
        assert not phase.covers(7)

    def test_author_arc_last_phase(self):
        from models.arc import AuthorArcPhase, AuthorNarrativeArc
        arc = AuthorNarrativeArc(phases=[AuthorArcPhase(name="A"), AuthorArcPhase(name="B")])
        assert not arc.is_last_phase
        arc.current_phase_index = 1
        assert arc.is_last_phase
        assert arc.current_phase.name == "B"


class TestNPCPool:
    def test_is_full(self):
        from models.npc import NPC, NPCPool
        pool = NPCPool(max_active=2)
        assert not pool.is_full
        pool.npcs = [NPC(id="npc-001"), NPC(id="npc-002")]
        assert pool.is_full

    def test_relationship_with(self):
        from models.npc import NPC, NPCRelationship
        npc = NPC(related_characters=[NPCRelationship(character_id="hero", relationship="mentor")])
        assert npc.relationship_with("hero").relationship == "mentor"
        assert npc.relationship_with("rival") is None


class TestSession:
    def test_memories_for_creates_list(self, sample_session):
        memories = sample_session.memories_for("hero")
        assert memories == []
        assert sample_session.memories["hero"] is memories

    def test_events_for_filters_by_character(self, sample_session):
        from models.memory import NarrativeEvent
        sample_session.events = [
            NarrativeEvent(id="hero-0-0", character_id="hero"),
            NarrativeEvent(id="rival-2-0", character_id="rival"),
        ]
        assert [e.id for e in sample_session.events_for("hero")] == ["hero-0-0"]

    def test_session_id_generated(self):
        from models.simulation import SimulationSession
        assert SimulationSession().session_id != SimulationSession().session_id


class TestWireModels:
    def test_npc_interaction_defaults(self):
        from models.responses import NPCInteractionPayload
        payload = NPCInteractionPayload.model_validate(
            {"eventIndex": "2", "npcAlias": "old hermit", "npcName": "  ", "isNew": None}
        )
        interaction = payload.to_interaction()
        assert interaction.event_index == 2
        assert interaction.npc_name is None
        assert interaction.is_new is True

    def test_author_direction_to_direction(self):
        from models.responses import AuthorDirectionPayload
        payload = AuthorDirectionPayload.model_validate({
            "arcPosition": "early",
            "narrativeIntent": "plant the wound",
            "phaseTransition": {"from": "Inception", "to": "Development", "reason": "ready"},
        })
        direction = payload.to_direction("hero", 5, 5)
        assert direction.narrative_intent == "plant the wound"
        assert direction.phase_transition.from_phase == "Inception"
        assert direction.phase_transition.to_phase == "Development"

    def test_metrics_scores_clamped(self):
        from models.responses import PreviewResponse
        parsed = PreviewResponse.model_validate({"metrics": {"themeAlignment": 140, "interest": "n/a"}})
        metrics = parsed.metrics.to_metrics()
        assert metrics.theme_alignment == 100
        assert metrics.interest == 50
        assert metrics.awakening_potential == 30

    def test_arc_phase_defaults(self):
        from models.responses import ArcPhasePayload
        phase = ArcPhasePayload.model_validate({"keyMoments": "one moment"}).to_phase(1)
        assert phase.id == "phase-2"
        assert phase.name == "Phase 2"
        assert phase.key_moments == ["one moment"]
