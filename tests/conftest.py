"""Shared pytest fixtures for the narrasim test suite."""

import json

import pytest
from unittest.mock import MagicMock, AsyncMock


# ---------------------------------------------------------------------------
# Settings fixture
# ---------------------------------------------------------------------------

@pytest.fixture
def settings(tmp_path):
    """Return a Settings instance with paths under tmp_path and no pacing delays."""
    from config.settings import Settings
    return Settings(
        data_dir=tmp_path / "data",
        log_dir=tmp_path / "logs",
        inter_year_delay_seconds=0,
        arc_design_delay_seconds=0,
        pause_poll_interval_seconds=0.01,
        rate_limit_backoff_seconds=0,
        overload_backoff_seconds=0,
    )


# ---------------------------------------------------------------------------
# Generation client mocks
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_llm():
    """Return a MagicMock replacing AgentSDKClient."""
    llm = MagicMock()
    llm.generate = AsyncMock(return_value=json.dumps({
        "events": [{"season": "spring", "title": "A first step", "summary": "Something began.",
                    "importance": "minor", "tags": ["daily"]}],
        "memories": [],
    }))
    llm.generate_json = AsyncMock(return_value={})
    llm.ensure_credentials = MagicMock(return_value=None)
    llm.get_usage_summary.return_value = {"total_calls": 1, "total_cost_usd": 0.0}
    return llm


# ---------------------------------------------------------------------------
# Sample data fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def hero_seed():
    from models.character import Seed
    return Seed(
        id="hero",
        codename="Wanderer",
        birth_year=0,
        initial_condition="Orphan raised in a mountain temple",
        temperament="quiet and observant",
        latent_ability="Sword Intent — a blade that answers the will",
        physical_trait="scar across the left palm",
        wound="abandoned by parents",
        color="#3366cc",
        innate_appearance="thin, dark-eyed child",
    )


@pytest.fixture
def rival_seed():
    from models.character import Seed
    return Seed(
        id="rival",
        codename="Rival",
        birth_year=2,
        initial_condition="Heir of a fallen noble house",
        temperament="bright and talkative",
        latent_ability="Silver Tongue",
        physical_trait="silver hair",
        wound="a family disgraced",
        color="#cc3333",
    )


@pytest.fixture
def sample_session(hero_seed, rival_seed):
    """Return a session holding the hero and rival seeds and nothing else."""
    from models.simulation import SimulationSession
    return SimulationSession(
        session_id="test-session",
        seeds={hero_seed.id: hero_seed, rival_seed.id: rival_seed},
    )
