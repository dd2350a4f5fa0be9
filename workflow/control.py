"""Pause/resume/abort registry for running simulation sessions."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional

from config.exceptions import InvalidControlActionError, SessionNotFoundError
from models.enums import ControlAction

logger = logging.getLogger(__name__)


@dataclass
class SessionControl:
    """Control flags polled by the year loop.

    Pause is level-triggered and polled at a bounded interval; abort is
    sticky once set.
    """
    session_id: str = ""
    paused: bool = False
    abort_event: asyncio.Event = field(default_factory=asyncio.Event)

    @property
    def aborted(self) -> bool:
        return self.abort_event.is_set()

    def pause(self) -> None:
        self.paused = True

    def resume(self) -> None:
        self.paused = False

    def abort(self) -> None:
        self.abort_event.set()


class SessionRegistry:
    """Maps session ids to their control flags for external control."""

    def __init__(self):
        self._sessions: dict[str, SessionControl] = {}

    def register(self, session_id: str) -> SessionControl:
        control = SessionControl(session_id=session_id)
        self._sessions[session_id] = control
        logger.debug("Registered session %s", session_id)
        return control

    def unregister(self, session_id: str) -> None:
        if self._sessions.pop(session_id, None) is not None:
            logger.debug("Unregistered session %s", session_id)

    def get(self, session_id: str) -> Optional[SessionControl]:
        return self._sessions.get(session_id)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    @property
    def session_ids(self) -> list[str]:
        return list(self._sessions)

    def control(self, session_id: str, action: str | ControlAction) -> SessionControl:
        """Apply pause, resume or abort to a running session.

        Raises:
            InvalidControlActionError: If the action is not pause/resume/abort.
            SessionNotFoundError: If no session with that id is registered.
        """
        try:
            action = ControlAction(action)
        except ValueError:
            raise InvalidControlActionError(str(action))

        control = self._sessions.get(session_id)
        if control is None:
            raise SessionNotFoundError(session_id)

        if action == ControlAction.PAUSE:
            control.pause()
        elif action == ControlAction.RESUME:
            control.resume()
        else:
            control.abort()
            self.unregister(session_id)

        logger.info("Session %s: %s", session_id, action.value)
        return control


_registry: SessionRegistry | None = None


def get_registry() -> SessionRegistry:
    """Get the process-wide session registry."""
    global _registry
    if _registry is None:
        _registry = SessionRegistry()
    return _registry


def control(session_id: str, action: str | ControlAction) -> SessionControl:
    """Apply a control action through the process-wide registry."""
    return get_registry().control(session_id, action)
