"""LangGraph StateGraph: orchestrates the year-by-year simulation loop."""

import asyncio
import logging
from typing import Optional, Sequence

from langgraph.graph import StateGraph, END

from config.exceptions import ConfigurationError, InvalidConfigError
from config.settings import Settings, get_settings
from models.character import Seed
from models.enums import (
    DirectiveStrategy, PreviewFrequency, ProgressType, RunStatus, Season, StoryHealth,
)
from models.memory import Memory, NarrativeEvent
from models.profile import EmergentProfile
from models.responses import YearResponse
from models.simulation import ProgressUpdate, SimulationConfig, SimulationResult, SimulationSession
from models.storyline import StorylinePreview
from narrative.arc_templates import create_arcs_from_config
from narrative.classifiers import is_placeholder_event
from narrative.grammar_engine import GrammarEngine
from narrative.npc_tracker import NPCTracker
from narrative.profile_calculator import ProfileCalculator
from tools.agent_sdk_client import AgentSDKClient
from tools.text_utils import round_half_up

from agents.author_arc_agent import AuthorArcAgent
from agents.simulation_agent import (
    CharacterContext,
    SimulationAgent,
    build_world_context,
    format_directive,
    select_anchor_events,
)
from agents.storyline_agent import StorylineAgent, should_preview

from workflow.callbacks import SimulationCallback
from workflow.conditions import route_after_advance, route_after_control, route_after_simulate
from workflow.control import SessionControl, SessionRegistry, get_registry
from workflow.state import SimulationWorkflowState

logger = logging.getLogger(__name__)

# Each simulated step visits at most this many nodes
_NODES_PER_YEAR = 6

MODE_RANGE = "range"
MODE_BATCHED = "batched"
MODE_INDIVIDUAL = "individual"


class SimulationEngine:
    """Owns one SimulationSession and drives it through the year loop.

    Units of work (generation calls) never touch session state; their
    results are merged by the engine once the whole step has returned, so an
    abort observed after the step discards it without a partial year.
    """

    def __init__(
        self,
        session: SimulationSession,
        settings: Optional[Settings] = None,
        llm_client: Optional[AgentSDKClient] = None,
        registry: Optional[SessionRegistry] = None,
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.llm = llm_client or AgentSDKClient(self.settings)
        self.registry = registry or get_registry()

        self.simulation_agent = SimulationAgent(self.llm, self.settings)
        self.author_agent = AuthorArcAgent(self.llm, self.settings)
        self.storyline_agent = StorylineAgent(self.llm, self.settings)
        self.calculator = ProfileCalculator(self.settings)
        self.npc_tracker = NPCTracker(session.npc_pool)
        self.grammar: Optional[GrammarEngine] = None

        self.config = SimulationConfig()
        self.control: Optional[SessionControl] = None
        self._callbacks: list[SimulationCallback] = []
        self._progress = 0

    @property
    def session_id(self) -> str:
        return self.session.session_id

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    async def run(
        self,
        config: SimulationConfig,
        callbacks: Optional[Sequence[SimulationCallback]] = None,
    ) -> SimulationResult:
        """Run the simulation described by ``config`` and return a snapshot.

        Raises:
            InvalidConfigError: If the configuration is unusable.
            MissingCredentialsError: If the generation service has no credentials.
        """
        # Preflight: nothing below may run before these pass
        self._validate(config)
        self.llm.ensure_credentials()

        self.config = config
        self._callbacks = list(callbacks or [])
        self._progress = 0
        self.control = self.registry.register(self.session_id)
        self.session.status = RunStatus.RUNNING

        app = build_graph(self)
        initial_state: SimulationWorkflowState = {
            "session_id": self.session_id,
            "start_year": config.start_year,
            "end_year": config.end_year,
            "year": config.start_year,
            "aborted": False,
        }
        years = config.end_year - config.start_year + 1
        recursion_limit = max(50, years * _NODES_PER_YEAR + 20)

        logger.info(
            "Starting simulation %s: years %d-%d, %d characters",
            self.session_id, config.start_year, config.end_year, len(self._selected_seeds()),
        )
        try:
            await app.ainvoke(initial_state, config={"recursion_limit": recursion_limit})
        finally:
            if self.session.status == RunStatus.RUNNING:
                self.session.status = RunStatus.FAILED
            self.registry.unregister(self.session_id)

        result = self._build_result()
        for callback in self._callbacks:
            callback.on_simulation_complete(result)
        logger.info("Simulation %s %s", self.session_id, result.status.value)
        return result

    async def preview_character(self, character_id: str, year: Optional[int] = None) -> StorylinePreview:
        """Run a storyline preview on demand (manual monitor mode)."""
        seed = self.session.seeds.get(character_id)
        if seed is None:
            raise KeyError(character_id)
        if year is None:
            year = self.session.last_year if self.session.last_year is not None else self.config.start_year
        preview = await self.storyline_agent.preview(
            seed,
            self.session.profiles.get(character_id),
            self.session.events_for(character_id),
            self.session.memories_for(character_id),
            year,
            self.config.theme,
        )
        self.session.previews[character_id] = preview
        return preview

    # ------------------------------------------------------------------
    # Node functions
    # ------------------------------------------------------------------

    async def initialize(self, state: SimulationWorkflowState) -> dict:
        """Announce the session, design author arcs and fix each character's strategy."""
        logger.info("Entering node: initialize")
        session = self.session
        config = self.config
        selected = self._selected_seeds()
        self._emit(
            ProgressType.SESSION_INIT,
            f"Session {session.session_id} started",
            session_id=session.session_id,
        )

        session.npc_pool.max_active = self.settings.npc_max_active

        if config.author_persona is not None and not session.author_arcs:
            await self._design_author_arcs(selected)

        if config.grammar.enabled:
            missing = [s.id for s in selected if s.id not in session.character_arcs]
            if missing or session.master_arc is None:
                arcs, master_arc = create_arcs_from_config(
                    config.grammar, missing, config.start_year, config.end_year,
                )
                session.character_arcs.update(arcs)
                if session.master_arc is None:
                    session.master_arc = master_arc
            self.grammar = GrammarEngine(session.character_arcs, session.master_arc)

        for seed in selected:
            session.strategies[seed.id] = self._choose_strategy(seed.id)
            session.memories_for(seed.id)
            logger.debug("Strategy for %s: %s", seed.id, session.strategies[seed.id].value)

        return {"year": config.start_year, "aborted": False, "last_node": "initialize"}

    async def check_control(self, state: SimulationWorkflowState) -> dict:
        """Honour pause/abort, then find the characters alive this year."""
        year = state["year"]
        if await self._wait_while_paused():
            logger.info("Abort observed before year %d", year)
            return {"aborted": True, "last_node": "check_control"}

        active = [s.id for s in self._selected_seeds() if year >= s.birth_year]
        return {
            "active_ids": active,
            "step_end": year,
            "contexts": [],
            "step_events": [],
            "aborted": False,
            "last_node": "check_control",
        }

    async def plan_step(self, state: SimulationWorkflowState) -> dict:
        """Choose the step mode and build every character's request context."""
        year = state["year"]
        end_year = state["end_year"]
        seeds = [self.session.seeds[cid] for cid in state["active_ids"]]

        step_end = year
        block_end = year + self.settings.childhood_block_years - 1
        # A block never spans a birth, so newborns get their first year
        births_in_block = any(year < s.birth_year <= block_end for s in self._selected_seeds())
        if block_end <= end_year and not births_in_block and all(
            0 <= s.age_in(year) < self.settings.childhood_age_limit for s in seeds
        ):
            mode = MODE_RANGE
            step_end = block_end
        elif self.config.batched:
            mode = MODE_BATCHED
        else:
            mode = MODE_INDIVIDUAL

        label = f"Year {year}" if step_end == year else f"Years {year}-{step_end}"
        self._emit(
            ProgressType.YEAR_START,
            f"{label}: {len(seeds)} characters",
            progress=self._year_progress(year),
            year=year,
        )

        world_context = build_world_context(self.config.world_events, year, self.config.world_summary)
        if self.grammar is not None:
            suggestion = self.grammar.suggest_cross_event(year)
            if suggestion:
                world_context += f"\n\n[Possible intersection]\n{suggestion}"

        contexts = [self._build_context(seed, year, step_end) for seed in seeds]
        return {
            "mode": mode,
            "step_end": step_end,
            "contexts": contexts,
            "world_context": world_context,
            "last_node": "plan_step",
        }

    async def simulate_step(self, state: SimulationWorkflowState) -> dict:
        """Run the step's generation units, then merge their results."""
        if self.control.aborted:
            return {"aborted": True, "last_node": "simulate_step"}

        contexts: list[CharacterContext] = state["contexts"]
        year = state["year"]
        step_end = state["step_end"]
        mode = state["mode"]

        for ctx in contexts:
            name = self._name(ctx.seed.id)
            self._emit(
                ProgressType.GENERATING,
                f"Simulating {name} ({mode})",
                character_id=ctx.seed.id,
                character_name=name,
                year=year,
            )

        results = await self._run_units(mode, contexts, year, step_end, state.get("world_context", ""))

        if self.control.aborted:
            logger.info("Abort observed during year %d, discarding step results", year)
            return {"aborted": True, "step_events": [], "last_node": "simulate_step"}

        committed: list[NarrativeEvent] = []
        for ctx in contexts:
            cid = ctx.seed.id
            name = self._name(cid)
            outcome = results.get(cid)
            if isinstance(outcome, BaseException):
                logger.error("Simulation failed for %s in year %d: %s", cid, year, outcome)
                self._emit(
                    ProgressType.ERROR,
                    f"{name}: simulation failed for year {year}: {outcome}",
                    character_id=cid,
                    character_name=name,
                    year=year,
                )
                continue

            events = self._commit(ctx.seed, outcome, year, step_end, mode == MODE_RANGE)
            committed.extend(events)
            self._emit(
                ProgressType.COMPLETED,
                f"{self._name(cid)}: {len(events)} events",
                character_id=cid,
                character_name=self._name(cid),
                year=year,
                events=events,
            )

        crossing = [e for e in committed if e.related_characters]
        if crossing:
            self._emit(
                ProgressType.CROSS_EVENT,
                f"{len(crossing)} events cross between characters",
                year=year,
                events=crossing,
            )

        self.session.last_year = step_end
        return {"step_events": committed, "last_node": "simulate_step"}

    async def review_storyline(self, state: SimulationWorkflowState) -> dict:
        """Preview storylines when the monitor asks for it; auto-pause on critical health."""
        monitor = self.config.monitor
        if monitor.preview_frequency in (PreviewFrequency.OFF, PreviewFrequency.MANUAL):
            return {"last_node": "review_storyline"}

        session = self.session
        # A childhood block is judged at the year it reaches
        year = state.get("step_end", state["year"])
        step_events: list[NarrativeEvent] = state.get("step_events", [])

        new_previews = []
        for cid in state.get("active_ids", []):
            own_events = [e for e in step_events if e.character_id == cid]
            if not should_preview(
                monitor.preview_frequency, year, self.config.start_year, own_events,
                self.settings.semi_auto_preview_interval,
            ):
                continue
            preview = await self.preview_character(cid, year)
            new_previews.append(preview)
            self._emit(
                ProgressType.STORYLINE_PREVIEW,
                f"{self._name(cid)}: storyline preview "
                f"(theme {preview.metrics.theme_alignment}, interest {preview.metrics.interest})",
                character_id=cid,
                character_name=self._name(cid),
                year=year,
                storyline_preview=preview,
            )

        if new_previews and monitor.integrated_analysis_enabled and len(session.previews) > 1:
            integrated = await self.storyline_agent.integrate(list(session.previews.values()), self.config.theme)
            session.integrated = integrated
            self._emit(
                ProgressType.INTEGRATED_STORYLINE,
                f"Story health: {integrated.story_health.value}",
                year=year,
                integrated_storyline=integrated,
            )
            if integrated.story_health == StoryHealth.CRITICAL and monitor.auto_pause_on_critical:
                self.control.pause()
                logger.warning("Auto-paused session %s: %s", self.session_id, integrated.recommendation)
                self._emit(
                    ProgressType.AUTO_PAUSED,
                    f"Paused: {integrated.recommendation}",
                    year=year,
                    pause_reason=integrated.recommendation,
                )

        return {"last_node": "review_storyline"}

    async def advance_year(self, state: SimulationWorkflowState) -> dict:
        """Move the cursor past the current step."""
        if state.get("active_ids"):
            await asyncio.sleep(self.settings.inter_year_delay_seconds)
        next_year = state.get("step_end", state["year"]) + 1
        return {"year": next_year, "last_node": "advance_year"}

    async def finalize(self, state: SimulationWorkflowState) -> dict:
        """Record the final status and close the progress stream."""
        aborted = state.get("aborted", False) or (self.control is not None and self.control.aborted)
        self.session.status = RunStatus.ABORTED if aborted else RunStatus.COMPLETED
        self._emit(
            ProgressType.DONE,
            "Simulation aborted" if aborted else "Simulation complete",
            progress=100,
        )
        return {"aborted": aborted, "last_node": "finalize"}

    # ------------------------------------------------------------------
    # Generation units
    # ------------------------------------------------------------------

    async def _run_units(
        self,
        mode: str,
        contexts: list[CharacterContext],
        year: int,
        step_end: int,
        world_context: str,
    ) -> dict[str, YearResponse | BaseException]:
        """Issue the step's generation calls. Failures come back as values."""
        if mode == MODE_INDIVIDUAL:
            outcomes = await asyncio.gather(
                *(
                    self.simulation_agent.simulate_year(ctx, year, world_context, self.config.events_per_year)
                    for ctx in contexts
                ),
                return_exceptions=True,
            )
            results = {ctx.seed.id: outcome for ctx, outcome in zip(contexts, outcomes)}
        else:
            npc_summary = self.npc_tracker.pool_summary(limit=self.settings.npc_summary_limit)
            try:
                if mode == MODE_RANGE:
                    results = await self.simulation_agent.simulate_range(
                        contexts, year, step_end, world_context, npc_summary,
                    )
                else:
                    results = await self.simulation_agent.simulate_batched(
                        contexts, year, world_context, npc_summary, self.config.events_per_year,
                    )
            except ConfigurationError:
                raise
            except Exception as e:
                results = {ctx.seed.id: e for ctx in contexts}

        for outcome in results.values():
            if isinstance(outcome, ConfigurationError):
                raise outcome
            if isinstance(outcome, BaseException) and not isinstance(outcome, Exception):
                raise outcome
        return results

    # ------------------------------------------------------------------
    # Commit
    # ------------------------------------------------------------------

    def _commit(
        self,
        seed: Seed,
        response: YearResponse,
        year: int,
        step_end: int,
        ranged: bool,
    ) -> list[NarrativeEvent]:
        """Merge one character's step into the session; returns the recorded events."""
        session = self.session
        cid = seed.id

        built: list[NarrativeEvent] = []
        for idx, payload in enumerate(response.events):
            event_year = year
            if ranged:
                if payload.year is not None and year <= payload.year <= step_end:
                    event_year = payload.year
                else:
                    event_year = min(year + idx, step_end)
            built.append(NarrativeEvent(
                id=f"{cid}-{event_year}-{idx}",
                character_id=cid,
                year=event_year,
                season=payload.season,
                title=payload.title,
                summary=payload.summary,
                importance=payload.importance,
                tags=list(payload.tags),
                related_characters=list(payload.related_characters),
                emotional_shift=payload.emotional_shift,
                stats_change=payload.stats_change,
            ))

        events = built
        if self.config.drop_placeholder_events:
            events = [e for e in built if not is_placeholder_event(e)]
        session.events.extend(events)

        # Memories take their year and season from the event they reference
        memories = session.memories_for(cid)
        for midx, payload in enumerate(response.memories):
            if not payload.imprints:
                continue
            ref = None
            if built:
                ref = built[payload.event_index] if payload.event_index < len(built) else built[0]
            memory_year = ref.year if ref else year
            memories.append(Memory(
                id=f"mem-{cid}-{memory_year}-{midx}",
                character_id=cid,
                year=memory_year,
                season=ref.season if ref else Season.SPRING,
                content=payload.content,
                imprints=[imprint.to_imprint() for imprint in payload.imprints],
                emotional_weight=payload.emotional_weight,
                tags=list(ref.tags) if ref else [],
            ))
        memories.sort(key=lambda m: m.sort_key)

        session.profiles[cid] = self.calculator.compute(seed, memories)

        if self.grammar is not None and cid in session.character_arcs:
            for event in events:
                evaluation = self.grammar.evaluate(event)
                for beat in evaluation.fulfilled_beats:
                    logger.debug("Beat fulfilled for %s: %s", cid, beat.beat_description)

        interactions = [i.to_interaction() for i in response.npc_interactions]
        if interactions:
            self.npc_tracker.process_interactions(interactions, cid, built)
        else:
            # Unreported mentions are surfaced for prompt tuning, never added to the pool
            for event in events:
                for mention in self.npc_tracker.detect_from_event(event):
                    logger.debug(
                        "Unreported NPC mention in %s: '%s' (%s)", event.id, mention["alias"], mention["role"],
                    )

        arc = session.author_arcs.get(cid)
        if (
            response.author_direction is not None
            and arc is not None
            and session.strategies.get(cid) == DirectiveStrategy.AUTHOR
        ):
            direction = response.author_direction.to_direction(cid, year, seed.age_in(year))
            advanced = self.author_agent.process_direction(arc, direction, events)
            message = f"{self._name(cid)}: {direction.narrative_intent or direction.arc_position}"
            if advanced and arc.current_phase is not None:
                message += f" (now in {arc.current_phase.name})"
            self._emit(
                ProgressType.AUTHOR_DIRECTION,
                message,
                character_id=cid,
                character_name=self._name(cid),
                year=year,
                author_direction=direction,
            )

        return events

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _design_author_arcs(self, seeds: list[Seed]) -> None:
        config = self.config
        all_seeds = list(self.session.seeds.values())
        arcs = await asyncio.gather(*(
            self.author_agent.design_arc(
                seed,
                config.author_persona,
                config.theme,
                config.world_summary,
                all_seeds,
                config.anchor_events,
                config.start_year,
                config.end_year,
            )
            for seed in seeds
        ))
        for seed, arc in zip(seeds, arcs):
            self.session.author_arcs[seed.id] = arc

        self._emit(
            ProgressType.ARC_DESIGNED,
            f"Author arcs designed for {len(arcs)} characters",
            narrative_arcs=dict(self.session.author_arcs),
        )
        await asyncio.sleep(self.settings.arc_design_delay_seconds)

    def _choose_strategy(self, character_id: str) -> DirectiveStrategy:
        if character_id in self.session.author_arcs:
            return DirectiveStrategy.AUTHOR
        if self.config.grammar.enabled:
            return DirectiveStrategy.GRAMMAR
        return DirectiveStrategy.NONE

    def _build_context(self, seed: Seed, year: int, step_end: int) -> CharacterContext:
        session = self.session
        memories = session.memories_for(seed.id)
        profile = session.profiles.get(seed.id) or EmergentProfile(display_name=seed.name or seed.codename)

        guidance = ""
        strategy = session.strategies.get(seed.id, DirectiveStrategy.NONE)
        if strategy == DirectiveStrategy.AUTHOR:
            others = self.author_agent.other_characters_summary(
                self._selected_seeds(), session.profiles, session.memories,
                session.author_arcs, seed.id, year,
            )
            guidance = self.author_agent.build_direction_section(
                session.author_arcs[seed.id],
                self.config.author_persona,
                self.config.theme,
                seed.age_in(year),
                others,
            )
        elif strategy == DirectiveStrategy.GRAMMAR and self.grammar is not None:
            directive = self.grammar.current_directive(seed.id, year)
            if directive is not None:
                guidance = format_directive(directive)

        return CharacterContext(
            seed=seed,
            profile=profile,
            recent_memories=list(memories[-self.settings.recent_memory_count:]),
            guidance=guidance,
            anchors=[
                anchor
                for anchor_year in range(year, step_end + 1)
                for anchor in select_anchor_events(self.config.anchor_events, anchor_year, seed.id)
            ],
            npc_summary=self.npc_tracker.pool_summary(seed.id, self.settings.npc_summary_limit),
        )

    async def _wait_while_paused(self) -> bool:
        """Block while paused. Returns True if an abort was observed."""
        control = self.control
        while control.paused and not control.aborted:
            await asyncio.sleep(self.settings.pause_poll_interval_seconds)
        return control.aborted

    def _selected_seeds(self) -> list[Seed]:
        selected = self.config.selected_characters
        return [
            seed for seed in self.session.seeds.values()
            if selected is None or seed.id in selected
        ]

    def _name(self, character_id: str) -> str:
        profile = self.session.profiles.get(character_id)
        if profile is not None and profile.display_name:
            return profile.display_name
        seed = self.session.seeds.get(character_id)
        return seed.codename if seed else character_id

    def _year_progress(self, year: int) -> int:
        span = self.config.end_year - self.config.start_year
        if span <= 0:
            return 0
        return round_half_up((year - self.config.start_year) / span * 100)

    def _emit(self, type_: ProgressType, message: str, progress: Optional[int] = None, **fields) -> None:
        if progress is not None:
            self._progress = max(self._progress, progress)
        update = ProgressUpdate(type=type_, message=message, progress=self._progress, **fields)
        for callback in self._callbacks:
            callback.on_progress(update)

    def _validate(self, config: SimulationConfig) -> None:
        if not self.session.seeds:
            raise InvalidConfigError("No character seeds to simulate")
        if config.start_year > config.end_year:
            raise InvalidConfigError(
                "start_year must not be after end_year",
                {"start_year": config.start_year, "end_year": config.end_year},
            )
        if config.events_per_year < 1:
            raise InvalidConfigError("events_per_year must be >= 1", {"events_per_year": config.events_per_year})
        if config.grammar.act_count not in (3, 4, 5):
            raise InvalidConfigError("act_count must be 3, 4 or 5", {"act_count": config.grammar.act_count})
        if config.selected_characters is not None:
            unknown = [cid for cid in config.selected_characters if cid not in self.session.seeds]
            if unknown:
                raise InvalidConfigError("Unknown selected characters", {"ids": ", ".join(unknown)})

    def _build_result(self) -> SimulationResult:
        session = self.session
        final_year = session.last_year if session.last_year is not None else self.config.start_year
        characters = {
            seed.id: self.calculator.to_character_view(seed, session.memories_for(seed.id), final_year)
            for seed in self._selected_seeds()
            if final_year >= seed.birth_year
        }
        return SimulationResult(
            status=session.status,
            events=list(session.events),
            memories={cid: list(memories) for cid, memories in session.memories.items()},
            profiles=dict(session.profiles),
            character_arcs=session.character_arcs,
            master_arc=session.master_arc,
            author_arcs=session.author_arcs,
            npc_pool=session.npc_pool,
            characters=characters,
            final_year=session.last_year,
        )


# ---------------------------------------------------------------------------
# Graph construction
# ---------------------------------------------------------------------------

def build_graph(engine: SimulationEngine):
    """Build and compile the simulation StateGraph around an engine's nodes.

    Args:
        engine: The SimulationEngine whose bound methods become the nodes.
    """
    graph = StateGraph(SimulationWorkflowState)

    graph.add_node("initialize", engine.initialize)
    graph.add_node("check_control", engine.check_control)
    graph.add_node("plan_step", engine.plan_step)
    graph.add_node("simulate_step", engine.simulate_step)
    graph.add_node("review_storyline", engine.review_storyline)
    graph.add_node("advance_year", engine.advance_year)
    graph.add_node("finalize", engine.finalize)

    graph.set_entry_point("initialize")
    graph.add_edge("initialize", "check_control")

    # Conditional: abort -> finalize, nobody alive yet -> advance, else plan
    graph.add_conditional_edges(
        "check_control",
        route_after_control,
        {
            "finalize": "finalize",
            "advance_year": "advance_year",
            "plan_step": "plan_step",
        },
    )

    graph.add_edge("plan_step", "simulate_step")

    # Conditional: abort mid-step -> finalize (step discarded), else review
    graph.add_conditional_edges(
        "simulate_step",
        route_after_simulate,
        {
            "finalize": "finalize",
            "review_storyline": "review_storyline",
        },
    )

    graph.add_edge("review_storyline", "advance_year")

    # Conditional: past end_year -> finalize, else next year
    graph.add_conditional_edges(
        "advance_year",
        route_after_advance,
        {
            "check_control": "check_control",
            "finalize": "finalize",
        },
    )

    graph.add_edge("finalize", END)

    return graph.compile()


async def run_simulation(
    seeds: Sequence[Seed],
    config: SimulationConfig,
    callbacks: Optional[Sequence[SimulationCallback]] = None,
    settings: Optional[Settings] = None,
    llm_client: Optional[AgentSDKClient] = None,
    session: Optional[SimulationSession] = None,
) -> tuple[SimulationResult, SimulationSession]:
    """Build an engine around a new (or given) session and run it.

    Args:
        seeds: Character seeds; ignored when ``session`` already holds seeds.
        config: Simulation configuration.
        callbacks: Progress callbacks.
        settings: Settings override.
        llm_client: Generation client override.
        session: Existing session to continue, e.g. loaded from a checkpoint.

    Returns:
        The result snapshot and the session it was produced from.
    """
    if session is None:
        session = SimulationSession()
    if not session.seeds:
        session.seeds = {seed.id: seed for seed in seeds}

    engine = SimulationEngine(session, settings=settings, llm_client=llm_client)
    result = await engine.run(config, callbacks)
    return result, session
