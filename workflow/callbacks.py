"""Simulation progress callbacks for monitoring and real-time reporting."""

import logging
from typing import Protocol, runtime_checkable

from rich.markup import escape

from models.enums import ProgressType, StoryHealth
from models.simulation import ProgressUpdate, SimulationResult

logger = logging.getLogger(__name__)


@runtime_checkable
class SimulationCallback(Protocol):
    """Protocol for simulation progress callbacks.

    Implement this protocol to consume the progress stream of a run.
    """

    def on_progress(self, update: ProgressUpdate) -> None:
        """Called for every entry of the progress stream, in order."""
        ...

    def on_simulation_complete(self, result: SimulationResult) -> None:
        """Called once when the run finishes, completed or aborted."""
        ...


class LoggingCallback:
    """Lightweight callback that logs progress to the standard logger."""

    def on_progress(self, update: ProgressUpdate) -> None:
        if update.type == ProgressType.ERROR:
            logger.error("[%d%%] %s", update.progress, update.message)
        elif update.type in (ProgressType.GENERATING, ProgressType.COMPLETED):
            logger.debug("[%d%%] %s", update.progress, update.message)
        else:
            logger.info("[%d%%] %s", update.progress, update.message)

    def on_simulation_complete(self, result: SimulationResult) -> None:
        logger.info(
            "Simulation %s: %d events, final year %s",
            result.status.value, len(result.events), result.final_year,
        )


class RichProgressCallback:
    """Progress callback that renders a Rich live progress display in the terminal."""

    _TYPE_STYLES: dict[ProgressType, str] = {
        ProgressType.SESSION_INIT: "dim",
        ProgressType.ARC_DESIGNED: "magenta",
        ProgressType.YEAR_START: "bold",
        ProgressType.CROSS_EVENT: "yellow",
        ProgressType.AUTHOR_DIRECTION: "magenta",
        ProgressType.STORYLINE_PREVIEW: "cyan",
        ProgressType.INTEGRATED_STORYLINE: "cyan",
        ProgressType.AUTO_PAUSED: "bold red",
        ProgressType.ERROR: "red",
    }

    _HEALTH_STYLES: dict[StoryHealth, str] = {
        StoryHealth.EXCELLENT: "bold green",
        StoryHealth.GOOD: "green",
        StoryHealth.CONCERNING: "yellow",
        StoryHealth.CRITICAL: "bold red",
    }

    def __init__(self, console=None):
        """
        Args:
            console: Rich Console instance. Creates one if not provided.
        """
        self._console = console
        self._progress = None
        self._year_task_id = None
        self._step_task_id = None

    def start(self):
        """Start the progress display. Call before running the simulation."""
        from rich.console import Console
        from rich.progress import (
            Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn,
        )

        if self._console is None:
            self._console = Console()

        self._progress = Progress(
            SpinnerColumn("dots"),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=self._console,
        )
        self._progress.start()
        self._year_task_id = self._progress.add_task("Waiting to start...", total=100)
        self._step_task_id = self._progress.add_task("[dim]Initializing...[/]", total=None)

    def stop(self):
        """Stop the progress display."""
        if self._progress:
            self._progress.stop()
            self._progress = None

    def on_progress(self, update: ProgressUpdate) -> None:
        if not self._progress:
            return

        self._progress.update(self._year_task_id, completed=update.progress)

        if update.type == ProgressType.YEAR_START:
            self._progress.update(self._year_task_id, description=escape(update.message))
        elif update.type in (ProgressType.GENERATING, ProgressType.COMPLETED):
            self._progress.update(self._step_task_id, description=f"[dim]{escape(update.message)}[/]")
        elif update.type == ProgressType.DONE:
            self._progress.update(self._year_task_id, description=f"[bold green]{escape(update.message)}[/]")
            self._progress.update(self._step_task_id, description="")
        else:
            style = self._TYPE_STYLES.get(update.type, "")
            if update.type == ProgressType.INTEGRATED_STORYLINE and update.integrated_storyline:
                style = self._HEALTH_STYLES.get(update.integrated_storyline.story_health, style)
            # Notable events scroll above the live display
            message = escape(update.message)
            self._progress.console.print(f"  [{style}]{message}[/]" if style else f"  {message}")

    def on_simulation_complete(self, result: SimulationResult) -> None:
        if not self._progress:
            return
        self._progress.update(
            self._step_task_id,
            description=f"[dim]{len(result.events)} events recorded[/]",
        )
