"""Conditional routing functions for the LangGraph workflow."""

from workflow.state import SimulationWorkflowState


def route_after_control(state: SimulationWorkflowState) -> str:
    """Route after the control check: stop on abort, skip years nobody is alive in."""
    if state.get("aborted", False):
        return "finalize"
    if not state.get("active_ids"):
        return "advance_year"
    return "plan_step"


def route_after_simulate(state: SimulationWorkflowState) -> str:
    """Route after a step: an abort seen mid-step ends the run with the step discarded."""
    if state.get("aborted", False):
        return "finalize"
    return "review_storyline"


def route_after_advance(state: SimulationWorkflowState) -> str:
    """Route after advancing the cursor: next year or done."""
    if state.get("aborted", False):
        return "finalize"
    if state.get("year", 0) > state.get("end_year", 0):
        return "finalize"
    return "check_control"
