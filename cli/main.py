"""CLI entry point: narrasim character life simulator.

Usage:
  narrasim run project.json              run a simulation from a project file
  narrasim show data/sessions/x.session.json
  narrasim edit-seed CHECKPOINT ID --mode soft_edit --set wound="..."
  narrasim expand CHECKPOINT EVENT_ID    expand one event into a prose scene
  narrasim --help                        list all commands
"""

import asyncio
import dataclasses
import logging
import os
import signal
import sys
from pathlib import Path

# Ensure UTF-8 output on Windows so Rich can render non-ASCII text
if sys.platform == "win32":
    os.environ.setdefault("PYTHONIOENCODING", "utf-8")

import click
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from cli.theme import (
    get_console,
    app_header,
    command_panel,
    success_panel,
    character_table,
    arc_tree,
    npc_table,
)
from config.exceptions import CheckpointError, ConfigurationError, GenerationError, SeedEditError
from config.logging_config import setup_logging
from config.settings import Settings
from models.character import Seed
from models.enums import ControlAction, Importance, SeedEditMode
from models.simulation import SimulationSession
from workflow.callbacks import RichProgressCallback
from workflow.checkpoint import list_sessions, load_project, load_session, save_session

console = get_console()
logger = logging.getLogger(__name__)

_INT_SEED_FIELDS = {"birth_year"}
_OPTIONAL_SEED_FIELDS = {"innate_appearance", "name"}


def _init_logging(verbose: bool):
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.INFO
    settings = Settings()
    setup_logging(level=level, log_dir=settings.log_dir, console_enabled=verbose)


def _load_or_exit(checkpoint: Path) -> SimulationSession:
    try:
        return load_session(checkpoint)
    except CheckpointError as e:
        console.print(f"[error]{escape(str(e))}[/]")
        sys.exit(1)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose):
    """narrasim: simulate characters' lives year by year and grow a story from them.

    \b
    Commands:
      narrasim run project.json --end 30
      narrasim show CHECKPOINT
      narrasim edit-seed CHECKPOINT CHARACTER_ID --mode soft_edit --set wound=...
      narrasim expand CHECKPOINT EVENT_ID
      narrasim sessions
    """
    _init_logging(verbose)


# ---------------------------------------------------------------------------
# run command
# ---------------------------------------------------------------------------

@cli.command()
@click.argument("project_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--start", "-s", type=int, default=None, help="First simulated year (overrides the project)")
@click.option("--end", "-e", type=int, default=None, help="Last simulated year (overrides the project)")
@click.option("--batched/--individual", default=None,
              help="One request for all characters per year, or one per character")
@click.option("--characters", "-c", default=None, help="Comma-separated character ids to simulate")
@click.option("--save/--no-save", default=True, help="Save a session checkpoint when done (default: save)")
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Checkpoint path (default: DATA_DIR/sessions/<id>.session.json)")
def run(project_file, start, end, batched, characters, save, output):
    """Run a simulation from a project file.

    The project file is JSON with "seeds" and "config" keys. Ctrl-C aborts
    after the current step; the completed years are kept.

    Examples:
      narrasim run project.json
      narrasim run project.json --start 0 --end 20 --batched
      narrasim run project.json -c hero,rival --no-save
    """
    from workflow.graph import SimulationEngine

    settings = Settings()
    try:
        seeds, config = load_project(project_file)
    except CheckpointError as e:
        console.print(f"[error]{escape(str(e))}[/]")
        sys.exit(1)

    if start is not None:
        config.start_year = start
    if end is not None:
        config.end_year = end
    if batched is not None:
        config.batched = batched
    if characters:
        config.selected_characters = [c.strip() for c in characters.split(",") if c.strip()]

    session = SimulationSession(seeds={seed.id: seed for seed in seeds})

    console.print(app_header())
    console.print()
    console.print(command_panel("Run simulation", {
        "Session": session.session_id,
        "Years": f"{config.start_year}-{config.end_year}",
        "Characters": ", ".join(config.selected_characters or [s.id for s in seeds]),
        "Mode": "batched" if config.batched else "individual",
        "Grammar": config.grammar.master_archetype.value if config.grammar.enabled else "off",
        "Author": config.author_persona.name if config.author_persona else "none",
    }))
    console.print()

    engine = SimulationEngine(session, settings=settings)
    try:
        cb = RichProgressCallback(console=console)
        cb.start()
        try:
            result = asyncio.run(_run_engine(engine, config, [cb]))
        finally:
            cb.stop()
    except ConfigurationError as e:
        console.print(f"\n[error]Configuration error: {escape(str(e))}[/]")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[warning]Interrupted[/]")
        sys.exit(130)
    except Exception as e:
        console.print(f"\n[error]Simulation failed: {escape(str(e))}[/]")
        logger.exception("Simulation failed")
        sys.exit(1)

    turning_points = [e for e in result.events if e.importance == Importance.TURNING_POINT]
    console.print()
    console.print(success_panel(f"Simulation {result.status.value}", (
        f"  Final year: [stat.value]{result.final_year}[/]\n"
        f"  Events: [stat.value]{len(result.events)}[/] "
        f"([turning_point]{len(turning_points)} turning points[/])\n"
        f"  NPCs: [stat.value]{len(result.npc_pool.npcs)}[/]"
    )))
    console.print(character_table(session))

    if save:
        path = save_session(session, output, data_dir=settings.data_dir)
        console.print(f"\nCheckpoint: [info]{path}[/]")
        console.print(f"Next: [info]narrasim show {path}[/]")

    _print_usage_summary(engine.llm.get_usage_summary())


async def _run_engine(engine, config, callbacks):
    """Run the engine with Ctrl-C mapped to a graceful abort."""
    loop = asyncio.get_running_loop()
    handle_sigint = sys.platform != "win32"
    if handle_sigint:
        loop.add_signal_handler(signal.SIGINT, _abort_session, engine)
    try:
        return await engine.run(config, callbacks)
    finally:
        if handle_sigint:
            loop.remove_signal_handler(signal.SIGINT)


def _abort_session(engine) -> None:
    if engine.session_id in engine.registry:
        console.print("\n[warning]Aborting after the current step...[/]")
        engine.registry.control(engine.session_id, ControlAction.ABORT)


# ---------------------------------------------------------------------------
# show command
# ---------------------------------------------------------------------------

@cli.command()
@click.argument("checkpoint", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--events", "-n", "event_limit", default=10, help="Number of recent turning points to list")
def show(checkpoint, event_limit):
    """Summarise a saved session: characters, arcs, NPCs and story health."""
    session = _load_or_exit(checkpoint)

    console.print(app_header())
    console.print()
    console.print(command_panel("Session", {
        "ID": session.session_id,
        "Status": session.status.value,
        "Last year": str(session.last_year if session.last_year is not None else "-"),
        "Events": str(len(session.events)),
        "NPCs": str(len(session.npc_pool.npcs)),
        "Seed edits": str(len(session.edit_logs)),
    }))
    console.print()
    console.print(character_table(session))

    if session.character_arcs or session.author_arcs:
        console.print()
        console.print(arc_tree(session))

    if session.npc_pool.npcs:
        console.print()
        console.print(npc_table(session.npc_pool))

    turning_points = [e for e in session.events if e.importance == Importance.TURNING_POINT]
    if turning_points:
        console.print()
        table = Table(title="Turning points", show_header=True, border_style="dim")
        table.add_column("ID", style="muted")
        table.add_column("Year", style="year", justify="right")
        table.add_column("Title", style="turning_point")
        table.add_column("Summary")
        for event in turning_points[-event_limit:]:
            summary = event.summary if len(event.summary) <= 60 else event.summary[:60] + "..."
            table.add_row(event.id, str(event.year), escape(event.title), escape(summary))
        console.print(table)

    if session.integrated is not None:
        report = session.integrated
        console.print()
        console.print(Panel(
            f"  [stat.label]Health:[/] [stat.value]{report.story_health.value}[/]  "
            f"[muted]|[/]  [stat.label]Theme:[/] {report.overall_theme_alignment}  "
            f"[muted]|[/]  [stat.label]Interest:[/] {report.overall_interest}\n"
            f"  [stat.label]Convergence:[/] {escape(report.convergence_status)}\n"
            f"  [stat.label]Recommendation:[/] {escape(report.recommendation)}",
            title="[bold]Storyline[/]",
            border_style="dim",
            padding=(0, 2),
        ))


# ---------------------------------------------------------------------------
# edit-seed command
# ---------------------------------------------------------------------------

@cli.command(name="edit-seed")
@click.argument("checkpoint", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("character_id")
@click.option("--mode", "-m", default=SeedEditMode.SOFT_EDIT.value,
              type=click.Choice([m.value for m in SeedEditMode]),
              help="pre_simulation, soft_edit (default) or hard_reset")
@click.option("--set", "assignments", multiple=True, metavar="FIELD=VALUE",
              help="Seed field to change; may be repeated")
@click.option("--rewind-age", type=int, default=None,
              help="hard_reset only: keep memories up to this age (default: purge all)")
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Write the edited session here instead of overwriting the checkpoint")
def edit_seed_command(checkpoint, character_id, mode, assignments, rewind_age, output):
    """Edit a character's seed in a saved session.

    Examples:
      narrasim edit-seed CHECKPOINT hero --set wound="abandoned by a mentor"
      narrasim edit-seed CHECKPOINT hero -m hard_reset --rewind-age 10 --set temperament=calm
    """
    from workflow.seed_editor import edit_seed

    session = _load_or_exit(checkpoint)
    seed = session.seeds.get(character_id)
    if seed is None:
        console.print(f"[error]Unknown character: {escape(character_id)}[/]")
        sys.exit(1)

    try:
        changes = _parse_assignments(assignments)
    except click.BadParameter as e:
        console.print(f"[error]{escape(e.format_message())}[/]")
        sys.exit(1)

    try:
        log = edit_seed(session, character_id, dataclasses.replace(seed, **changes), mode, rewind_age)
    except SeedEditError as e:
        console.print(f"[error]Seed edit refused: {escape(str(e))}[/]")
        sys.exit(1)

    path = save_session(session, output or checkpoint)
    console.print(success_panel("Seed edited", (
        f"  Character: [character.name]{escape(character_id)}[/] ({log.mode.value})\n"
        f"  Memories deleted: [stat.value]{log.deleted_memory_count}[/]\n"
        f"  NPCs deleted: [stat.value]{len(log.deleted_npc_ids)}[/]\n"
        f"  Saved: [info]{path}[/]"
    )))


def _parse_assignments(assignments: tuple[str, ...]) -> dict:
    """Turn ("field=value", ...) into Seed field overrides."""
    known = {f.name for f in dataclasses.fields(Seed)}
    changes: dict = {}
    for item in assignments:
        name, sep, value = item.partition("=")
        name = name.strip()
        if not sep or name not in known:
            raise click.BadParameter(f"Expected FIELD=VALUE with a seed field, got '{item}'")
        if name in _INT_SEED_FIELDS:
            try:
                changes[name] = int(value)
            except ValueError:
                raise click.BadParameter(f"{name} must be an integer, got '{value}'")
        elif name in _OPTIONAL_SEED_FIELDS and not value:
            changes[name] = None
        else:
            changes[name] = value
    return changes


# ---------------------------------------------------------------------------
# expand command
# ---------------------------------------------------------------------------

@cli.command()
@click.argument("checkpoint", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("event_id")
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Also write the scene to this Markdown file")
def expand(checkpoint, event_id, output):
    """Expand one simulated event into a full prose scene."""
    from agents.detail_agent import DetailAgent
    from narrative.profile_calculator import ProfileCalculator

    settings = Settings()
    session = _load_or_exit(checkpoint)
    event = next((e for e in session.events if e.id == event_id), None)
    if event is None:
        console.print(f"[error]Event not found: {escape(event_id)}[/]")
        sys.exit(1)

    seed = session.seeds[event.character_id]
    memories = [m for m in session.memories_for(seed.id) if m.sort_key <= event.sort_key]
    profile = ProfileCalculator(settings).compute(seed, memories)
    names = {
        cid: (session.profiles[cid].display_name if cid in session.profiles else s.codename)
        for cid, s in session.seeds.items()
    }

    agent = DetailAgent(settings=settings)
    try:
        agent.llm.ensure_credentials()
        with console.status(f"Expanding [accent]{escape(event.title)}[/]..."):
            scene = asyncio.run(agent.expand_event(seed, profile, event, memories, related_names=names))
    except (ConfigurationError, GenerationError) as e:
        console.print(f"[error]Expansion failed: {escape(str(e))}[/]")
        sys.exit(1)

    console.print(Panel(
        escape(scene["content"]),
        title=f"[bold]{escape(event.title)}[/] [muted]year {event.year}, {event.season.value}[/]",
        border_style="dim",
        padding=(1, 2),
    ))
    if scene["atmosphere"]:
        console.print(f"[muted]Atmosphere: {escape(scene['atmosphere'])}[/]")
    if scene["inner_thought"]:
        console.print(f"[muted]Inner thought: {escape(scene['inner_thought'])}[/]")

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(f"# {event.title}\n\n{scene['content']}\n", encoding="utf-8")
        console.print(f"\nSaved: [info]{output}[/]")

    _print_usage_summary(agent.llm.get_usage_summary())


# ---------------------------------------------------------------------------
# sessions command
# ---------------------------------------------------------------------------

@cli.command()
def sessions():
    """List saved session checkpoints."""
    settings = Settings()
    saved = list_sessions(settings.data_dir)
    if not saved:
        console.print("[muted]No saved sessions[/]")
        return

    table = Table(show_header=True, border_style="dim")
    table.add_column("Session", style="accent")
    table.add_column("Status")
    table.add_column("Last year", style="year", justify="right")
    table.add_column("Characters", justify="right")
    table.add_column("Events", justify="right")
    table.add_column("Path", style="muted")
    for info in saved:
        table.add_row(
            info["session_id"],
            info["status"],
            str(info["last_year"] if info["last_year"] is not None else "-"),
            str(info["characters"]),
            str(info["events"]),
            info["path"],
        )
    console.print(table)


def _print_usage_summary(usage: dict) -> None:
    """Print generation call and cost summary if any calls were made."""
    if not usage or not usage.get("total_calls"):
        return
    console.print(
        f"\n[muted]Generation calls: {usage['total_calls']} | "
        f"estimated cost: ${usage.get('total_cost_usd', 0.0):.4f}[/]"
    )


def main():
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
