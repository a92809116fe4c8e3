"""
Unit tests for application and session configuration.
"""

import pytest
from pydantic import ValidationError

from config import AppSettings
from session import config as session_config
from session.config import DevelopmentConfig, ProductionConfig, SessionConfig, get_config


class TestSessionConfig:

    def test_defaults(self):
        config = SessionConfig()
        assert config.preparation_countdown_sec == 3.0
        assert config.min_session_sec == 300
        assert config.live_feedback_interval_sec == 10.0
        assert config.analysis_delay_sec == 1.0
        assert config.volume_sample_interval_sec == pytest.approx(1 / 60)
        assert config.fft_size == 256
        assert config.smoothing_time_constant == 0.8

    def test_fft_size_must_be_power_of_two(self):
        with pytest.raises(ValidationError):
            SessionConfig(fft_size=300)

    def test_decibel_range(self):
        with pytest.raises(ValidationError):
            SessionConfig(min_decibels=-30, max_decibels=-100)

    def test_live_interval_bounds(self):
        with pytest.raises(ValidationError):
            SessionConfig(live_feedback_interval_sec=1)

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("SESSION_MIN_SESSION_SEC", "120")
        assert SessionConfig().min_session_sec == 120

    @pytest.mark.parametrize("env,cls", [
        ("production", ProductionConfig),
        ("dev", DevelopmentConfig),
        ("testing", session_config.TestingConfig),
        ("unknown", SessionConfig),
    ])
    def test_get_config(self, env, cls):
        assert type(get_config(env)) is cls

    def test_get_config_from_environment(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "testing")
        config = get_config()
        assert isinstance(config, session_config.TestingConfig)
        assert config.min_session_sec == 0


class TestAppSettings:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("SPEECHCOACH_FEEDBACK_TONE", raising=False)
        settings = AppSettings(_env_file=None)
        assert settings.SPEECHCOACH_LANGUAGE == "en-US"
        assert settings.SPEECHCOACH_FEEDBACK_TONE == "standard"

    def test_tone_from_env(self, monkeypatch):
        monkeypatch.setenv("SPEECHCOACH_FEEDBACK_TONE", "Executive")
        assert AppSettings(_env_file=None).SPEECHCOACH_FEEDBACK_TONE == "executive"

    def test_unknown_tone(self, monkeypatch):
        monkeypatch.setenv("SPEECHCOACH_FEEDBACK_TONE", "sarcastic")
        with pytest.raises(ValidationError):
            AppSettings(_env_file=None)
