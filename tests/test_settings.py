"""Tests for configuration settings."""

import pytest
from pydantic import ValidationError
from unittest.mock import patch


class TestSettings:
    def test_defaults(self, tmp_path):
        from config.settings import Settings
        settings = Settings(data_dir=tmp_path / "data", log_dir=tmp_path / "logs")
        assert settings.generation_max_retries == 3
        assert settings.rate_limit_backoff_seconds == 10.0
        assert settings.overload_backoff_seconds == 3.0
        assert settings.inter_year_delay_seconds == 0.8
        assert settings.childhood_age_limit == 6
        assert settings.childhood_block_years == 3
        assert settings.npc_max_active == 20
        assert settings.belief_challenge_threshold == 30

    def test_env_override(self, tmp_path, monkeypatch):
        from config.settings import Settings
        monkeypatch.setenv("NPC_MAX_ACTIVE", "5")
        monkeypatch.setenv("LLM_MODEL_DETAIL", "claude-opus-4-6")
        settings = Settings(data_dir=tmp_path / "data", log_dir=tmp_path / "logs")
        assert settings.npc_max_active == 5
        assert settings.llm_model_detail == "claude-opus-4-6"

    def test_max_retries_must_be_positive(self, tmp_path):
        from config.settings import Settings
        with pytest.raises(ValidationError):
            Settings(data_dir=tmp_path / "data", log_dir=tmp_path / "logs", generation_max_retries=0)

    def test_negative_delay_rejected(self, tmp_path):
        from config.settings import Settings
        with pytest.raises(ValidationError):
            Settings(data_dir=tmp_path / "data", log_dir=tmp_path / "logs", inter_year_delay_seconds=-1)

    def test_poll_interval_must_be_positive(self, tmp_path):
        from config.settings import Settings
        with pytest.raises(ValidationError):
            Settings(data_dir=tmp_path / "data", log_dir=tmp_path / "logs", pause_poll_interval_seconds=0)

    def test_childhood_limit_cannot_exceed_training_limit(self, tmp_path):
        from config.settings import Settings
        with pytest.raises(ValidationError, match="childhood_age_limit"):
            Settings(
                data_dir=tmp_path / "data", log_dir=tmp_path / "logs",
                childhood_age_limit=14, training_age_limit=12,
            )

    def test_parent_dirs_created(self, tmp_path):
        from config.settings import Settings
        Settings(data_dir=tmp_path / "nested" / "data", log_dir=tmp_path / "logs")
        assert (tmp_path / "nested").is_dir()

    def test_get_settings_is_cached(self):
        from config import settings as settings_module
        with patch.object(settings_module, "_settings_instance", None):
            first = settings_module.get_settings()
            second = settings_module.get_settings()
            assert first is second


@pytest.fixture
def restore_logging():
    import logging
    from config.logging_config import DEDICATED_LOGS
    watched = [logging.getLogger()] + [logging.getLogger(name) for name in DEDICATED_LOGS]
    saved = [(lg, lg.handlers[:], lg.level) for lg in watched]
    yield
    for lg, handlers, level in saved:
        for handler in lg.handlers:
            if handler not in handlers:
                handler.close()
        lg.handlers[:] = handlers
        lg.setLevel(level)


class TestSetupLogging:
    def test_creates_log_files(self, tmp_path, restore_logging):
        import logging
        from config.logging_config import setup_logging
        setup_logging(level=logging.INFO, log_dir=tmp_path / "logs", console_enabled=False)
        logging.getLogger("tools.agent_sdk_client").debug("request sent")
        logging.getLogger("workflow.graph").debug("year 3 planned")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert (tmp_path / "logs" / "narrasim.log").exists()
        assert "request sent" in (tmp_path / "logs" / "generation_calls.log").read_text(encoding="utf-8")
        assert "year 3 planned" in (tmp_path / "logs" / "simulation.log").read_text(encoding="utf-8")
        # main log stays at the chosen level
        assert "request sent" not in (tmp_path / "logs" / "narrasim.log").read_text(encoding="utf-8")

    def test_repeat_setup_does_not_duplicate_handlers(self, tmp_path, restore_logging):
        import logging
        from config.logging_config import setup_logging
        setup_logging(log_dir=tmp_path, console_enabled=True)
        setup_logging(log_dir=tmp_path, console_enabled=True)
        assert len(logging.getLogger().handlers) == 2
        assert len(logging.getLogger("workflow").handlers) == 1
