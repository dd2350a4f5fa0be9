"""Configuration package: settings, logging, and exceptions."""

from config.exceptions import (
    SimulationError,
    GenerationError,
    GenerationRateLimitError,
    GenerationOverloadedError,
    GenerationTimeoutError,
    ResponseParseError,
    ConfigurationError,
    MissingCredentialsError,
    InvalidConfigError,
    SessionError,
    SessionNotFoundError,
    InvalidControlActionError,
    SeedEditError,
    LockedFieldError,
    CheckpointError,
)
from config.logging_config import setup_logging
from config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "setup_logging",
    "SimulationError",
    "GenerationError",
    "GenerationRateLimitError",
    "GenerationOverloadedError",
    "GenerationTimeoutError",
    "ResponseParseError",
    "ConfigurationError",
    "MissingCredentialsError",
    "InvalidConfigError",
    "SessionError",
    "SessionNotFoundError",
    "InvalidControlActionError",
    "SeedEditError",
    "LockedFieldError",
    "CheckpointError",
]
