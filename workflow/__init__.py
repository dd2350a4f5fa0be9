"""Workflow package: LangGraph engine, state, conditions, control and utilities."""

from workflow.graph import SimulationEngine, build_graph, run_simulation
from workflow.state import SimulationWorkflowState
from workflow.conditions import (
    route_after_control,
    route_after_simulate,
    route_after_advance,
)
from workflow.callbacks import SimulationCallback, LoggingCallback, RichProgressCallback
from workflow.control import SessionControl, SessionRegistry, control, get_registry
from workflow.checkpoint import save_session, load_session, list_sessions, load_project
from workflow.seed_editor import edit_seed

__all__ = [
    "SimulationEngine",
    "build_graph",
    "run_simulation",
    "SimulationWorkflowState",
    "route_after_control",
    "route_after_simulate",
    "route_after_advance",
    "SimulationCallback",
    "LoggingCallback",
    "RichProgressCallback",
    "SessionControl",
    "SessionRegistry",
    "control",
    "get_registry",
    "save_session",
    "load_session",
    "list_sessions",
    "load_project",
    "edit_seed",
]
