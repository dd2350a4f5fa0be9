"""LangGraph workflow state definition."""

from typing import TypedDict


class SimulationWorkflowState(TypedDict, total=False):
    """Cursor state passed between workflow nodes.

    The simulation data itself (memories, profiles, arcs, NPCs) lives in the
    engine's SimulationSession; the graph state only tracks where the year
    loop is and what the current step is working on.

    Fields are grouped logically:
    - Identity: session_id
    - Cursor: start_year, end_year, year, step_end
    - Step: mode, active_ids, contexts, world_context, step_events
    - Control: aborted, last_node
    """

    # Identity
    session_id: str

    # Cursor
    start_year: int
    end_year: int
    year: int       # first year of the current step
    step_end: int   # last year of the current step (== year unless a childhood block)

    # Step
    mode: str                # "range", "batched" or "individual"
    active_ids: list[str]    # characters born by this year, in seed order
    contexts: list           # CharacterContext per active character
    world_context: str
    step_events: list        # events committed by this step

    # Control flow
    aborted: bool
    last_node: str
