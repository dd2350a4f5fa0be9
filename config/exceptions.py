"""Custom exception hierarchy for the narrative simulation engine."""

from typing import Optional


class SimulationError(Exception):
    """Base exception for all simulation errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


# ---- Generation Errors ----

class GenerationError(SimulationError):
    """Base exception for generation service errors."""


class GenerationRateLimitError(GenerationError):
    """Generation service rate limit exceeded."""

    def __init__(self, message: str = "API rate limit exceeded", retry_after: Optional[float] = None):
        details = {}
        if retry_after is not None:
            details["retry_after"] = retry_after
        super().__init__(message, details)
        self.retry_after = retry_after


class GenerationOverloadedError(GenerationError):
    """Generation service is temporarily overloaded."""


class GenerationTimeoutError(GenerationError):
    """Generation request timed out."""


class ResponseParseError(GenerationError):
    """Failed to parse a generation response."""

    def __init__(self, message: str = "Failed to parse generation response", raw_response: str = ""):
        details = {"raw_response": raw_response[:200]} if raw_response else {}
        super().__init__(message, details)
        self.raw_response = raw_response


# ---- Configuration Errors (fatal) ----

class ConfigurationError(SimulationError):
    """Configuration problem that must stop a run before any state changes."""


class MissingCredentialsError(ConfigurationError):
    """No usable credentials for the generation service."""

    def __init__(self, message: str = "Generation service credentials not found"):
        super().__init__(message)


class InvalidConfigError(ConfigurationError):
    """Configuration value is invalid."""


# ---- Session Errors ----

class SessionError(SimulationError):
    """Base exception for session control errors."""


class SessionNotFoundError(SessionError):
    """No running session with the given id."""

    def __init__(self, session_id: str):
        super().__init__(f"Session not found: {session_id}", {"session_id": session_id})
        self.session_id = session_id


class InvalidControlActionError(SessionError):
    """Control action is not one of pause/resume/abort."""

    def __init__(self, action: str):
        super().__init__(f"Invalid control action: {action}", {"action": action})
        self.action = action


# ---- Seed Edit Errors ----

class SeedEditError(SimulationError):
    """Seed edit could not be applied."""


class LockedFieldError(SeedEditError):
    """A soft edit tried to change a locked seed field."""

    def __init__(self, field: str):
        super().__init__(f"Seed field is locked for soft edits: {field}", {"field": field})
        self.field = field


# ---- Checkpoint Errors ----

class CheckpointError(SimulationError):
    """Session checkpoint could not be saved or loaded."""
