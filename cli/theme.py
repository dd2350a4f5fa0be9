"""Unified Rich theme and reusable UI helper functions for the CLI."""

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.theme import Theme
from rich.tree import Tree

from models.npc import NPCPool
from models.simulation import SimulationSession

NARRASIM_THEME = Theme({
    "app.title": "bold",
    "success": "green",
    "warning": "yellow",
    "error": "red",
    "info": "blue",
    "muted": "dim",
    "accent": "cyan",
    "stat.label": "dim",
    "stat.value": "bold",
    "year": "blue",
    "character.name": "bold cyan",
    "turning_point": "bold magenta",
})


def get_console() -> Console:
    """Return a Console instance with the narrasim theme applied."""
    return Console(theme=NARRASIM_THEME)


def app_header(title: str = "narrasim") -> Rule:
    """Return a Rule element for the application header banner."""
    return Rule(title=f"[bold]{title}[/]", style="dim")


def command_panel(title: str, fields: dict[str, str]) -> Panel:
    """Return a Panel displaying command parameters.

    Args:
        title: Panel title (e.g. "Run simulation").
        fields: Ordered dict of label -> value pairs.
    """
    lines = []
    for label, value in fields.items():
        lines.append(f"  [stat.label]{label}:[/] [stat.value]{value}[/]")
    body = "\n".join(lines)
    return Panel(body, title=f"[bold]{title}[/]", box=box.ROUNDED, border_style="dim", padding=(0, 2))


def success_panel(title: str, body: str) -> Panel:
    """Return a green-bordered Panel for success results."""
    return Panel(body, title=f"[success]{title}[/]", box=box.ROUNDED, border_style="green", padding=(0, 2))


def character_table(session: SimulationSession) -> Table:
    """Build a table with one row per character: name, profile highlights, counts."""
    table = Table(box=box.ROUNDED, border_style="dim", show_header=True, padding=(0, 1))
    table.add_column("Character", style="character.name")
    table.add_column("Born", style="year", justify="right")
    table.add_column("Personality")
    table.add_column("Abilities")
    table.add_column("Memories", justify="right")
    table.add_column("Events", justify="right")

    for seed in session.seeds.values():
        profile = session.profiles.get(seed.id)
        name = seed.codename
        traits = seed.temperament
        abilities = seed.latent_ability
        if profile is not None:
            name = profile.display_name or seed.codename
            if profile.current_alias:
                name += f" [muted]({profile.current_alias})[/]"
            traits = ", ".join(t.trait for t in profile.personality[:3]) or traits
            abilities = ", ".join(f"{a.name} ({a.level.value})" for a in profile.abilities) or abilities

        if len(traits) > 40:
            traits = traits[:40] + "..."

        table.add_row(
            f"{name} [muted]{seed.id}[/]",
            str(seed.birth_year),
            traits,
            abilities,
            str(len(session.memories.get(seed.id, []))),
            str(len(session.events_for(seed.id))),
        )
    return table


def arc_tree(session: SimulationSession) -> Tree:
    """Build a tree of each character's grammar arc and author arc positions."""
    tree = Tree("[bold]Arcs[/]")
    if session.master_arc is not None and session.master_arc.acts:
        act = session.master_arc.acts[min(session.master_arc.current_act, len(session.master_arc.acts) - 1)]
        tree.add(
            f"[accent]Master[/] {session.master_arc.archetype.value}: {act.name} "
            f"[muted](tension {session.master_arc.overall_tension})[/]"
        )

    for seed in session.seeds.values():
        branch = tree.add(f"[character.name]{seed.codename}[/]")
        arc = session.character_arcs.get(seed.id)
        if arc is not None and arc.active_phase is not None:
            branch.add(
                f"Grammar: {arc.archetype.value}, phase {arc.current_phase + 1}/{len(arc.phases)} "
                f"{arc.active_phase.name} [muted](tension {arc.tension}, fulfilled {arc.fulfillment}%)[/]"
            )
        author_arc = session.author_arcs.get(seed.id)
        if author_arc is not None and author_arc.current_phase is not None:
            branch.add(
                f"Author: phase {author_arc.current_phase_index + 1}/{len(author_arc.phases)} "
                f"{author_arc.current_phase.name}"
            )
            for revision in author_arc.revisions[-3:]:
                branch.add(f"[muted]year {revision.year}: {revision.reason}[/]")
    return tree


def npc_table(pool: NPCPool, limit: int = 15) -> Table:
    """Build a table of the most frequently seen NPCs."""
    table = Table(box=box.ROUNDED, border_style="dim", show_header=True, padding=(0, 1))
    table.add_column("NPC", style="character.name")
    table.add_column("Role", style="muted")
    table.add_column("Lifecycle")
    table.add_column("Seen", justify="right")
    table.add_column("Years", style="year")

    npcs = sorted(pool.npcs, key=lambda n: n.total_appearances, reverse=True)
    for npc in npcs[:limit]:
        label = npc.name or npc.alias
        table.add_row(
            f"{label} [muted]{npc.id}[/]",
            npc.role,
            npc.lifecycle.value,
            str(npc.total_appearances),
            f"{npc.first_seen_year}-{npc.last_seen_year}",
        )
    if len(npcs) > limit:
        table.add_row(f"[muted]+{len(npcs) - limit} more[/]", "", "", "", "")
    return table
