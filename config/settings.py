"""Configuration settings loaded from .env file."""

from pathlib import Path
from typing import Optional

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings, loaded from .env file.

    Claude Agent SDK handles authentication through the Claude Code CLI;
    ``anthropic_api_key`` is only needed when the CLI is not logged in.
    Temperature is not configurable in Agent SDK, so each generation kind
    carries its sampling intent in its system prompt instead.
    """

    # LLM Models, one per generation kind
    llm_model_simulation: str = "claude-haiku-4-5"   # bulk year simulation
    llm_model_structure: str = "claude-haiku-4-5"    # arc design, storyline analysis
    llm_model_detail: str = "claude-sonnet-4-6"      # prose expansion
    anthropic_api_key: Optional[str] = None

    # Generation retry policy
    generation_max_retries: int = 3
    rate_limit_backoff_seconds: float = 10.0
    overload_backoff_seconds: float = 3.0

    # Year loop pacing
    inter_year_delay_seconds: float = 0.8
    pause_poll_interval_seconds: float = 0.5
    arc_design_delay_seconds: float = 1.0

    # Simulation
    recent_memory_count: int = 5
    childhood_age_limit: int = 6
    childhood_block_years: int = 3
    training_age_limit: int = 12

    # NPC pool
    npc_max_active: int = 20
    npc_summary_limit: int = 10

    # Profile
    belief_challenge_threshold: int = 30

    # Storyline monitor
    semi_auto_preview_interval: int = 5

    # Storage
    data_dir: Path = Path("./data")

    # Logging
    log_dir: Path = Path("./data/logs")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @field_validator("generation_max_retries")
    @classmethod
    def validate_max_retries(cls, v: int) -> int:
        if v < 1:
            raise ValueError("generation_max_retries must be >= 1")
        return v

    @field_validator(
        "rate_limit_backoff_seconds",
        "overload_backoff_seconds",
        "inter_year_delay_seconds",
        "arc_design_delay_seconds",
    )
    @classmethod
    def validate_delays(cls, v: float) -> float:
        if v < 0:
            raise ValueError("Delays must be non-negative")
        return v

    @field_validator("pause_poll_interval_seconds")
    @classmethod
    def validate_poll_interval(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("pause_poll_interval_seconds must be > 0")
        return v

    @field_validator("npc_max_active", "npc_summary_limit", "childhood_block_years",
                     "recent_memory_count", "semi_auto_preview_interval")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Value must be >= 1")
        return v

    @field_validator("data_dir", "log_dir")
    @classmethod
    def ensure_parent_dirs(cls, v: Path) -> Path:
        v.parent.mkdir(parents=True, exist_ok=True)
        return v

    @model_validator(mode="after")
    def validate_age_limits(self) -> "Settings":
        if self.childhood_age_limit > self.training_age_limit:
            raise ValueError(
                f"childhood_age_limit ({self.childhood_age_limit}) must not exceed "
                f"training_age_limit ({self.training_age_limit})"
            )
        return self


_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings instance."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
