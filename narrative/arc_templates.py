"""Archetype templates and factories for character and master arcs."""

from dataclasses import dataclass
from typing import Callable, Iterable

from models.arc import ArcPhase, Beat, CharacterArc, MasterAct, MasterArc
from models.enums import ArcArchetype, BeatType, TensionCurve
from models.simulation import GrammarConfig
from tools.text_utils import round_half_up

ARC_LABELS: dict[ArcArchetype, str] = {
    ArcArchetype.HEROES_JOURNEY: "Hero's Journey",
    ArcArchetype.TRAGEDY: "Tragedy",
    ArcArchetype.TRANSFORMATION: "Transformation",
    ArcArchetype.FALL: "Fall",
    ArcArchetype.REDEMPTION: "Redemption",
    ArcArchetype.REVENGE: "Revenge",
}


@dataclass(frozen=True)
class PhaseTemplate:
    name: str
    description: str
    tension_target: int
    required: tuple[tuple[BeatType, str], ...] = ()
    optional: tuple[tuple[BeatType, str], ...] = ()


_I, _CO, _R = BeatType.INCITING, BeatType.COMPLICATION, BeatType.REVERSAL
_CR, _CL, _RE = BeatType.CRISIS, BeatType.CLIMAX, BeatType.RESOLUTION

ARC_TEMPLATES: dict[ArcArchetype, tuple[PhaseTemplate, ...]] = {
    ArcArchetype.HEROES_JOURNEY: (
        PhaseTemplate(
            "Ordinary World", "Living with a lack in an ordinary world", 15,
            required=((_I, "The lack in everyday life is revealed"),),
            optional=((_CO, "Meeting a mentor"),),
        ),
        PhaseTemplate(
            "Call to Adventure", "Receiving the call and crossing the threshold", 35,
            required=((_I, "A fateful event occurs"), (_CO, "Refusal of the call or inner conflict")),
            optional=((_CO, "A companion or helper appears"),),
        ),
        PhaseTemplate(
            "Road of Trials", "Growing through trials and adversaries", 55,
            required=((_CO, "Facing a major trial"), (_R, "An unexpected reversal")),
            optional=((_CO, "Betrayal or loss"), (_CR, "Inner conflict deepens")),
        ),
        PhaseTemplate(
            "Innermost Cave", "Confronting the greatest crisis", 85,
            required=((_CR, "Greatest crisis, the risk of losing everything"),
                      (_CL, "Decisive confrontation or test")),
            optional=((_R, "A hidden truth comes to light"),),
        ),
        PhaseTemplate(
            "Reward and Return", "Overcoming the ordeal and claiming the reward", 50,
            required=((_RE, "Reward gained or realization reached"),),
            optional=((_CO, "Obstacles on the road back"), (_R, "A final twist")),
        ),
        PhaseTemplate(
            "Resurrection", "Returning to the world as a changed being", 70,
            required=((_CL, "The final test (resurrection)"),
                      (_RE, "Returning the gift to the world (change complete)")),
        ),
    ),
    ArcArchetype.TRAGEDY: (
        PhaseTemplate(
            "Introduction", "The protagonist's greatness and flaw are revealed", 20,
            required=((_I, "Strength and fatal flaw exposed"),),
            optional=((_CO, "A figure who warns appears"),),
        ),
        PhaseTemplate(
            "Rise", "Racing toward ambition while the flaw deepens", 45,
            required=((_CO, "Moral compromise in pursuit of ambition"), (_R, "Cracks within success")),
            optional=((_CO, "Conflict with someone once loyal"),),
        ),
        PhaseTemplate(
            "Climax", "Making an irreversible choice", 80,
            required=((_CL, "An irreversible decisive act"), (_CR, "The flaw seeds catastrophe")),
            optional=((_R, "Unexpected consequences"),),
        ),
        PhaseTemplate(
            "Fall", "Consequences return in a chain", 90,
            required=((_CR, "Alliances collapse or betrayal"), (_R, "A hidden truth is exposed")),
            optional=((_CO, "The last chance of rescue is missed"),),
        ),
        PhaseTemplate(
            "Catastrophe", "Reaching final ruin", 100,
            required=((_CL, "Final ruin (death, bankruptcy or loss)"),
                      (_RE, "Tragic realization or lesson")),
        ),
    ),
    ArcArchetype.TRANSFORMATION: (
        PhaseTemplate(
            "Old Order", "Trapped in an existing identity", 20,
            required=((_I, "Dissatisfaction with or oppression by the status quo"),),
            optional=((_CO, "Omens of change"),),
        ),
        PhaseTemplate(
            "Trigger", "An event sets change in motion", 40,
            required=((_I, "A decisive event shakes the old order"), (_CO, "Discovery of a new possibility")),
        ),
        PhaseTemplate(
            "Resistance", "Resisting and struggling against change", 65,
            required=((_CR, "Inner resistance to change"), (_CO, "Temptation to return to the old order")),
            optional=((_R, "An unexpected ordeal"),),
        ),
        PhaseTemplate(
            "Acceptance", "Accepting change and forming a new self", 75,
            required=((_CL, "Decisive abandonment of the old order"), (_R, "The new identity is tested")),
            optional=((_CR, "A last identity crisis"),),
        ),
        PhaseTemplate(
            "Integration", "Change completes and a new being emerges", 45,
            required=((_RE, "Reconciling with the world as a new identity"),),
            optional=((_CO, "The price of change"),),
        ),
    ),
    ArcArchetype.FALL: (
        PhaseTemplate(
            "Summit", "Standing at the peak", 15,
            required=((_I, "High status, ability or fame established"),),
            optional=((_CO, "Foreshadowing of latent danger"),),
        ),
        PhaseTemplate(
            "Temptation", "Reaching for the forbidden", 35,
            required=((_I, "Falling for forbidden power, love or secrets"), (_CO, "The first moral compromise")),
        ),
        PhaseTemplate(
            "Corruption", "Sinking deeper and deeper", 60,
            required=((_CO, "Corruption deepens and harms those nearby"),
                      (_R, "Failing to notice one's own change")),
            optional=((_CR, "Warnings ignored"),),
        ),
        PhaseTemplate(
            "Price", "The cost of corruption comes due", 85,
            required=((_CR, "Beginning to lose what is precious"), (_R, "Betrayal or isolation")),
            optional=((_CL, "The moment of a last choice"),),
        ),
        PhaseTemplate(
            "Ruin", "Reaching final ruin", 95,
            required=((_CL, "Complete ruin or downfall"),
                      (_RE, "The meaning of the fall (tragic realization)")),
        ),
    ),
    ArcArchetype.REDEMPTION: (
        PhaseTemplate(
            "Fallen State", "Living in guilt or darkness", 30,
            required=((_I, "Past sin, failure or darkness is revealed"),),
            optional=((_CO, "A light or opening toward redemption"),),
        ),
        PhaseTemplate(
            "Awakening", "Realizing the need for change", 45,
            required=((_I, "An event that prompts atonement"), (_CO, "Past and present in conflict")),
        ),
        PhaseTemplate(
            "Trial of Atonement", "Enduring hardship for atonement", 70,
            required=((_CR, "Paying the price of atonement"), (_R, "The past interferes with the present")),
            optional=((_CO, "Struggling to earn trust"),),
        ),
        PhaseTemplate(
            "Final Test", "Proving the change is real", 85,
            required=((_CL, "A final test facing one's former self"),
                      (_CR, "The decisive choice between redemption and ruin")),
        ),
        PhaseTemplate(
            "Redemption", "Earning forgiveness and a new beginning", 40,
            required=((_RE, "Redemption complete (forgiveness, reconciliation, a new start)"),),
            optional=((_R, "The price of redemption"),),
        ),
    ),
    ArcArchetype.REVENGE: (
        PhaseTemplate(
            "Loss", "Losing something precious", 40,
            required=((_I, "The loss or injustice that causes revenge"),),
            optional=((_CO, "Vowing revenge"),),
        ),
        PhaseTemplate(
            "Preparation", "Building strength for revenge", 50,
            required=((_CO, "Training or planning for revenge"), (_I, "Gathering information on the enemy")),
            optional=((_CO, "A moment of doubt about revenge"),),
        ),
        PhaseTemplate(
            "Pursuit", "Closing in on the enemy", 70,
            required=((_CO, "First encounter with or approach to the enemy"),
                      (_R, "Discovering an unexpected side of the enemy")),
            optional=((_CR, "Moral conflict caused by revenge"),),
        ),
        PhaseTemplate(
            "Confrontation", "The final showdown with the enemy", 95,
            required=((_CL, "The final confrontation"), (_CR, "The price or emptiness of revenge")),
            optional=((_R, "A hidden truth"),),
        ),
        PhaseTemplate(
            "Aftermath", "Emptiness after revenge or a new start", 35,
            required=((_RE, "The end of revenge (emptiness, liberation or new purpose)"),),
        ),
    ),
}

TENSION_CURVE_MULTIPLIERS: dict[TensionCurve, Callable[[float], float]] = {
    TensionCurve.STANDARD: lambda ratio: 1.0,
    TensionCurve.SLOW_BURN: lambda ratio: 0.7 if ratio < 0.5 else 1.3,
    TensionCurve.EXPLOSIVE: lambda ratio: 1.3 if ratio < 0.3 else (0.8 if ratio < 0.7 else 1.2),
}

MASTER_ACTS: dict[int, tuple[tuple[str, int], ...]] = {
    3: (("Setup", 25), ("Development", 70), ("Ending", 50)),
    4: (("Setup", 20), ("Development", 50), ("Crisis", 85), ("Ending", 45)),
    5: (("Setup", 15), ("Development", 40), ("Climax", 80), ("Falling Action", 65), ("Ending", 40)),
}

_MASTER_BEAT_TYPES = (BeatType.INCITING, BeatType.CLIMAX, BeatType.RESOLUTION)


def _beats(specs: Iterable[tuple[BeatType, str]]) -> list[Beat]:
    return [Beat(type=beat_type, description=description) for beat_type, description in specs]


def split_years(start_year: int, end_year: int, count: int) -> list[tuple[int, int]]:
    """Split [start_year, end_year] into `count` consecutive ranges.

    The last range always ends at end_year; earlier ones end the year before
    the next one starts.
    """
    per_part = (end_year - start_year) / count
    ranges = []
    for idx in range(count):
        start = round_half_up(start_year + idx * per_part)
        if idx == count - 1:
            end = end_year
        else:
            end = round_half_up(start_year + (idx + 1) * per_part) - 1
        ranges.append((start, end))
    return ranges


def create_character_arc(
    character_id: str,
    archetype: ArcArchetype,
    start_year: int,
    end_year: int,
    tension_curve: TensionCurve = TensionCurve.STANDARD,
) -> CharacterArc:
    """Instantiate an archetype template over the simulated year span."""
    template = ARC_TEMPLATES[archetype]
    multiplier = TENSION_CURVE_MULTIPLIERS[tension_curve]
    count = len(template)

    phases = []
    for idx, ((start, end), phase) in enumerate(zip(split_years(start_year, end_year, count), template)):
        ratio = idx / (count - 1) if count > 1 else 0.0
        target = round_half_up(min(100.0, phase.tension_target * multiplier(ratio)))
        phases.append(ArcPhase(
            name=phase.name,
            description=phase.description,
            start_year=start,
            end_year=end,
            tension_target=target,
            required_beats=_beats(phase.required),
            optional_beats=_beats(phase.optional),
        ))

    return CharacterArc(character_id=character_id, archetype=archetype, phases=phases)


def create_master_arc(
    archetype: ArcArchetype,
    start_year: int,
    end_year: int,
    act_count: int = 3,
) -> MasterArc:
    """Build the whole-story arc with 3, 4 or 5 acts."""
    if act_count not in MASTER_ACTS:
        raise ValueError(f"act_count must be 3, 4 or 5, got {act_count}")

    layout = MASTER_ACTS[act_count]
    acts = [
        MasterAct(
            name=name,
            start_year=start,
            end_year=end,
            tension_target=target,
            description=f"Act {idx + 1}: {name}",
        )
        for idx, ((name, target), (start, end)) in enumerate(
            zip(layout, split_years(start_year, end_year, act_count))
        )
    ]

    key_beats = [
        Beat(type=beat_type, description=description)
        for phase in ARC_TEMPLATES[archetype]
        for beat_type, description in phase.required
        if beat_type in _MASTER_BEAT_TYPES
    ][:act_count + 2]

    return MasterArc(archetype=archetype, acts=acts, key_beats=key_beats)


def create_arcs_from_config(
    config: GrammarConfig,
    character_ids: Iterable[str],
    start_year: int,
    end_year: int,
) -> tuple[dict[str, CharacterArc], MasterArc]:
    """Create every character arc plus the master arc from a grammar config."""
    character_arcs = {}
    for cid in character_ids:
        archetype = config.character_overrides.get(cid, config.master_archetype)
        character_arcs[cid] = create_character_arc(
            cid, archetype, start_year, end_year, config.tension_curve,
        )
    master_arc = create_master_arc(config.master_archetype, start_year, end_year, config.act_count)
    return character_arcs, master_arc
