"""Narrative grammar: beat fulfilment and tension tracking per character arc."""

import logging
from typing import Optional

from models.arc import (
    ArcPhase,
    CharacterArc,
    EvaluationResult,
    FulfilledBeat,
    MasterArc,
    NarrativeDirective,
)
from models.enums import BeatType
from models.memory import NarrativeEvent
from narrative.classifiers import BEAT_LABELS, detect_beat_types, tension_delta
from tools.text_utils import clamp, round_half_up

logger = logging.getLogger(__name__)


def _tension_guidance(diff: int) -> str:
    if diff > 20:
        return "Raise tension sharply. Introduce a crisis, conflict or reversal."
    if diff > 5:
        return "Raise tension slightly. Add a complication or trial."
    if diff < -20:
        return "Time to breathe. Include reflection, recovery or everyday moments."
    if diff < -5:
        return "Ease off slightly. A brief calm before the next development."
    return "Tension is on target. Hold the current flow."


def _beat_type_guidance(phase: ArcPhase, current_tension: int) -> str:
    pending = [b for b in phase.required_beats if not b.fulfilled]
    if pending:
        return f"Recommended: {BEAT_LABELS[pending[0].type]}"
    if current_tension < 30:
        return "Build tension with a complication or inciting event"
    if current_tension < 60:
        return "Raise tension through a reversal or trial"
    if current_tension < 80:
        return "Steer toward a crisis or climax"
    return "Move into resolution and release after the climax"


class GrammarEngine:
    """Tracks beats, tension and phase progress for every character arc.

    The engine works on the arc objects it is given, so a session that owns
    the arcs sees every update without copying. Beats never un-fulfil and
    phases only move forward.
    """

    def __init__(self, character_arcs: dict[str, CharacterArc], master_arc: MasterArc):
        self.character_arcs = character_arcs
        self.master_arc = master_arc

    # --- Directives --------------------------------------------------------

    def current_directive(self, character_id: str, year: int) -> Optional[NarrativeDirective]:
        """Build the guidance block for one character's upcoming year."""
        arc = self.character_arcs.get(character_id)
        if arc is None or not arc.phases:
            return None

        arc.current_phase = max(arc.current_phase, self._phase_index(arc, year))
        phase = arc.active_phase
        if phase is None:
            return None

        self.master_arc.current_act = max(self.master_arc.current_act, self._act_index(year))
        act_name = "Unknown"
        if 0 <= self.master_arc.current_act < len(self.master_arc.acts):
            act_name = self.master_arc.acts[self.master_arc.current_act].name

        return NarrativeDirective(
            character_id=character_id,
            phase_name=phase.name,
            phase_description=phase.description,
            tension_target=phase.tension_target,
            current_tension=arc.tension,
            tension_guidance=_tension_guidance(phase.tension_target - arc.tension),
            required_beats=[b.description for b in phase.required_beats if not b.fulfilled],
            beat_type_guidance=_beat_type_guidance(phase, arc.tension),
            arc_fulfillment=arc.fulfillment,
            master_act_name=act_name,
        )

    # --- Evaluation --------------------------------------------------------

    def evaluate(self, event: NarrativeEvent) -> EvaluationResult:
        """Match an event against the active phase and the master key beats."""
        result = EvaluationResult()
        detected = detect_beat_types(event)

        arc = self.character_arcs.get(event.character_id)
        phase = arc.active_phase if arc else None
        if arc is not None and phase is not None:
            for beat in phase.required_beats + phase.optional_beats:
                if beat.fulfilled or beat.type not in detected:
                    continue
                beat.fulfilled = True
                beat.fulfillment_event_id = event.id
                beat.fulfillment_year = event.year
                result.fulfilled_beats.append(FulfilledBeat(
                    character_id=event.character_id,
                    beat_description=beat.description,
                    beat_type=beat.type,
                ))

            result.tension_delta = tension_delta(event, detected)
            arc.tension = clamp(arc.tension + result.tension_delta)
            arc.fulfillment = self._fulfillment(arc)

            if (
                all(b.fulfilled for b in phase.required_beats)
                and arc.current_phase < len(arc.phases) - 1
                and event.year >= phase.end_year
            ):
                arc.current_phase += 1
                result.phase_advanced = True
                logger.info(
                    f"Arc {event.character_id} advanced to phase "
                    f"'{arc.phases[arc.current_phase].name}' in year {event.year}"
                )

        for beat in self.master_arc.key_beats:
            if not beat.fulfilled and beat.type in detected:
                beat.fulfilled = True
                beat.fulfillment_event_id = event.id
                beat.fulfillment_year = event.year

        self._update_master_tension()
        return result

    # --- Cross-character suggestions ---------------------------------------

    def suggest_cross_event(self, year: int) -> Optional[str]:
        """Suggest an event where two active storylines intersect, if any."""
        active = [
            arc for arc in self.character_arcs.values()
            if arc.active_phase is not None and arc.active_phase.covers(year)
        ]
        if len(active) < 2:
            return None

        first, second = sorted(active, key=lambda a: a.tension, reverse=True)[:2]
        if first.tension > 60 and second.tension > 60:
            return (
                f"Tension is high for both {first.character_id} and {second.character_id}. "
                "Consider a confrontation where their conflicts collide."
            )

        def has_pending_complication(arc: CharacterArc) -> bool:
            return any(
                not b.fulfilled and b.type == BeatType.COMPLICATION
                for b in arc.active_phase.required_beats
            )

        if has_pending_complication(first) or has_pending_complication(second):
            return (
                f"The storylines of {first.character_id} and {second.character_id} can intersect now. "
                "Consider an event that complicates their relationship."
            )
        return None

    # --- Internals ---------------------------------------------------------

    @staticmethod
    def _phase_index(arc: CharacterArc, year: int) -> int:
        for idx in range(len(arc.phases) - 1, -1, -1):
            if year >= arc.phases[idx].start_year:
                return idx
        return 0

    def _act_index(self, year: int) -> int:
        for idx in range(len(self.master_arc.acts) - 1, -1, -1):
            if year >= self.master_arc.acts[idx].start_year:
                return idx
        return 0

    @staticmethod
    def _fulfillment(arc: CharacterArc) -> int:
        required = [b for phase in arc.phases for b in phase.required_beats]
        if not required:
            return 100
        done = sum(1 for b in required if b.fulfilled)
        return round_half_up(done / len(required) * 100)

    def _update_master_tension(self) -> None:
        if not self.character_arcs:
            return
        total = sum(arc.tension for arc in self.character_arcs.values())
        self.master_arc.overall_tension = round_half_up(total / len(self.character_arcs))
