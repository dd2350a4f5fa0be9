"""Tests for arc templates and arc factories."""

import pytest


class TestSplitYears:
    def test_three_parts(self):
        from narrative.arc_templates import split_years
        assert split_years(0, 10, 3) == [(0, 2), (3, 6), (7, 10)]

    def test_ranges_are_contiguous(self):
        from narrative.arc_templates import split_years
        ranges = split_years(1200, 1259, 6)
        assert ranges[0][0] == 1200
        assert ranges[-1][1] == 1259
        for (_, end), (start, _) in zip(ranges, ranges[1:]):
            assert start == end + 1


class TestCharacterArc:
    def test_heroes_journey_layout(self):
        from narrative.arc_templates import create_character_arc
        from models.enums import ArcArchetype
        arc = create_character_arc("hero", ArcArchetype.HEROES_JOURNEY, 0, 59)
        assert len(arc.phases) == 6
        assert [p.start_year for p in arc.phases] == [0, 10, 20, 30, 39, 49]
        assert arc.phases[-1].end_year == 59
        assert arc.phases[0].name == "Ordinary World"
        assert arc.tension == 0
        assert arc.current_phase == 0

    def test_beats_start_unfulfilled(self):
        from narrative.arc_templates import create_character_arc
        from models.enums import ArcArchetype
        arc = create_character_arc("hero", ArcArchetype.REVENGE, 0, 40)
        beats = [b for p in arc.phases for b in p.required_beats + p.optional_beats]
        assert beats and not any(b.fulfilled for b in beats)

    def test_arcs_do_not_share_beats(self):
        from narrative.arc_templates import create_character_arc
        from models.enums import ArcArchetype
        first = create_character_arc("a", ArcArchetype.TRAGEDY, 0, 20)
        second = create_character_arc("b", ArcArchetype.TRAGEDY, 0, 20)
        first.phases[0].required_beats[0].fulfilled = True
        assert not second.phases[0].required_beats[0].fulfilled

    @pytest.mark.parametrize("curve,first,last", [
        ("standard", 15, 70),
        ("slow_burn", 11, 91),
        ("explosive", 20, 84),
    ])
    def test_tension_curves(self, curve, first, last):
        from narrative.arc_templates import create_character_arc
        from models.enums import ArcArchetype, TensionCurve
        arc = create_character_arc("hero", ArcArchetype.HEROES_JOURNEY, 0, 59, TensionCurve(curve))
        assert arc.phases[0].tension_target == first
        assert arc.phases[-1].tension_target == last

    def test_tension_target_capped(self):
        from narrative.arc_templates import create_character_arc
        from models.enums import ArcArchetype, TensionCurve
        arc = create_character_arc("hero", ArcArchetype.TRAGEDY, 0, 50, TensionCurve.SLOW_BURN)
        assert all(p.tension_target <= 100 for p in arc.phases)


class TestMasterArc:
    @pytest.mark.parametrize("act_count", [3, 4, 5])
    def test_act_counts(self, act_count):
        from narrative.arc_templates import create_master_arc
        from models.enums import ArcArchetype, BeatType
        master = create_master_arc(ArcArchetype.HEROES_JOURNEY, 0, 30, act_count)
        assert len(master.acts) == act_count
        assert master.acts[-1].end_year == 30
        assert len(master.key_beats) <= act_count + 2
        assert all(
            b.type in (BeatType.INCITING, BeatType.CLIMAX, BeatType.RESOLUTION) for b in master.key_beats
        )

    def test_four_act_names(self):
        from narrative.arc_templates import create_master_arc
        from models.enums import ArcArchetype
        master = create_master_arc(ArcArchetype.FALL, 0, 40, 4)
        assert [a.name for a in master.acts] == ["Setup", "Development", "Crisis", "Ending"]

    def test_invalid_act_count(self):
        from narrative.arc_templates import create_master_arc
        from models.enums import ArcArchetype
        with pytest.raises(ValueError):
            create_master_arc(ArcArchetype.FALL, 0, 40, 6)


class TestCreateArcsFromConfig:
    def test_overrides_apply_per_character(self):
        from narrative.arc_templates import create_arcs_from_config
        from models.enums import ArcArchetype
        from models.simulation import GrammarConfig
        config = GrammarConfig(
            master_archetype=ArcArchetype.HEROES_JOURNEY,
            character_overrides={"rival": ArcArchetype.FALL},
            act_count=5,
        )
        arcs, master = create_arcs_from_config(config, ["hero", "rival"], 0, 30)
        assert arcs["hero"].archetype == ArcArchetype.HEROES_JOURNEY
        assert arcs["rival"].archetype == ArcArchetype.FALL
        assert master.archetype == ArcArchetype.HEROES_JOURNEY
        assert len(master.acts) == 5
