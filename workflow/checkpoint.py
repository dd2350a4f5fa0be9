"""Session checkpoint utilities: save, load and list sessions; load project files."""

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import TypeAdapter, ValidationError

from config.exceptions import CheckpointError
from models.character import Seed
from models.simulation import SimulationConfig, SimulationSession

logger = logging.getLogger(__name__)

_session_adapter = TypeAdapter(SimulationSession)

CHECKPOINT_SUFFIX = ".session.json"


def checkpoint_path(data_dir: Path | str, session_id: str) -> Path:
    """Default checkpoint location for a session under ``data_dir``."""
    return Path(data_dir) / "sessions" / f"{session_id}{CHECKPOINT_SUFFIX}"


def save_session(session: SimulationSession, path: Optional[Path | str] = None, data_dir: Optional[Path | str] = None) -> Path:
    """Write a session snapshot as JSON.

    Args:
        session: Session to save.
        path: Target file. Defaults to ``checkpoint_path(data_dir, session_id)``.
        data_dir: Base directory used when ``path`` is not given.

    Returns:
        The path written.
    """
    if path is None:
        if data_dir is None:
            from config.settings import get_settings
            data_dir = get_settings().data_dir
        path = checkpoint_path(data_dir, session.session_id)

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        path.write_bytes(_session_adapter.dump_json(session, indent=2))
    except OSError as e:
        raise CheckpointError(f"Failed to save session: {e}", {"path": str(path)}) from e

    logger.info("Saved session %s to %s", session.session_id, path)
    return path


def load_session(path: Path | str) -> SimulationSession:
    """Load a session snapshot written by save_session().

    Raises:
        CheckpointError: If the file is missing or not a valid session.
    """
    path = Path(path)
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise CheckpointError(f"Failed to read checkpoint: {e}", {"path": str(path)}) from e

    try:
        session = _session_adapter.validate_json(raw)
    except ValidationError as e:
        raise CheckpointError(
            f"Invalid checkpoint: {e.error_count()} validation errors", {"path": str(path)},
        ) from e

    logger.info("Loaded session %s from %s", session.session_id, path)
    return session


def list_sessions(data_dir: Path | str) -> list[dict]:
    """List saved sessions with their id, status, last year and character count.

    Unreadable files are skipped with a warning.
    """
    sessions_dir = Path(data_dir) / "sessions"
    if not sessions_dir.exists():
        return []

    results = []
    for path in sorted(sessions_dir.glob(f"*{CHECKPOINT_SUFFIX}")):
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Skipping unreadable checkpoint %s: %s", path, e)
            continue
        results.append({
            "session_id": data.get("session_id", ""),
            "status": data.get("status", ""),
            "last_year": data.get("last_year"),
            "characters": len(data.get("seeds", {})),
            "events": len(data.get("events", [])),
            "path": str(path),
        })
    return results


_seeds_adapter = TypeAdapter(list[Seed])
_config_adapter = TypeAdapter(SimulationConfig)


def load_project(path: Path | str) -> tuple[list[Seed], SimulationConfig]:
    """Load seeds and a simulation config from a project JSON file.

    The file holds ``{"seeds": [...], "config": {...}}`` with snake_case keys
    matching the Seed and SimulationConfig fields.

    Raises:
        CheckpointError: If the file cannot be read or does not validate.
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise CheckpointError(f"Failed to read project file: {e}", {"path": str(path)}) from e
    if not isinstance(data, dict):
        raise CheckpointError("Project file must contain a JSON object", {"path": str(path)})

    try:
        seeds = _seeds_adapter.validate_python(data.get("seeds", []))
        config = _config_adapter.validate_python(data.get("config", {}))
    except ValidationError as e:
        raise CheckpointError(
            f"Invalid project file: {e.error_count()} validation errors", {"path": str(path)},
        ) from e
    return seeds, config
