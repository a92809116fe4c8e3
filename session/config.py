"""
Configuration for speaking sessions.

Provides validated, environment-aware timing and audio settings. Every field
can be overridden with a ``SESSION_``-prefixed environment variable, e.g.
``SESSION_MIN_SESSION_SEC=120``.
"""

import os
from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SessionConfig(BaseSettings):
    """Configuration for the session orchestrator and volume sampler."""

    # --- Session timing ---
    preparation_countdown_sec: float = Field(
        default=3.0,
        ge=0.0,
        le=30.0,
        description="Delay between start and speaking",
    )

    min_session_sec: int = Field(
        default=300,
        ge=0,
        le=3600,
        description="Lower bound on the speaking countdown, whatever the question suggests",
    )

    countdown_tick_sec: float = Field(
        default=1.0,
        gt=0.0,
        le=5.0,
    )

    live_feedback_interval_sec: float = Field(
        default=10.0,
        ge=2.0,
        le=60.0,
        description="Seconds between live feedback evaluations",
    )

    analysis_delay_sec: float = Field(
        default=1.0,
        ge=0.0,
        le=10.0,
        description="Settle time before the final analysis runs",
    )

    # --- Audio sampling ---
    volume_sample_interval_sec: float = Field(
        default=1.0 / 60.0,
        gt=0.0,
        le=1.0,
        description="Volume sampling tick (animation-frame cadence)",
    )

    audio_sample_rate: int = Field(
        default=44100,
        ge=8000,
        le=96000,
    )

    fft_size: int = Field(
        default=256,
        ge=32,
        le=32768,
    )

    smoothing_time_constant: float = Field(
        default=0.8,
        ge=0.0,
        lt=1.0,
    )

    min_decibels: float = Field(default=-100.0, le=0.0)

    max_decibels: float = Field(default=-30.0, le=0.0)

    input_device_name: Optional[str] = Field(
        default=None,
        description="Substring of the preferred input device name",
    )

    @field_validator("fft_size")
    @classmethod
    def validate_fft_size(cls, v: int) -> int:
        """FFT window must be a power of two."""
        if v & (v - 1):
            raise ValueError(f"fft_size must be a power of two, got {v}")
        return v

    @model_validator(mode="after")
    def validate_decibel_range(self) -> "SessionConfig":
        if self.max_decibels <= self.min_decibels:
            raise ValueError(
                f"max_decibels ({self.max_decibels}) must be greater than min_decibels ({self.min_decibels})"
            )
        return self

    model_config = SettingsConfigDict(
        env_prefix="SESSION_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


class ProductionConfig(SessionConfig):
    """Production configuration."""
    min_session_sec: int = 300


class DevelopmentConfig(SessionConfig):
    """Development configuration with short sessions."""
    min_session_sec: int = 60
    live_feedback_interval_sec: float = 5.0


class TestingConfig(SessionConfig):
    """Testing configuration: no minimum length, no settle delays."""
    preparation_countdown_sec: float = 0.0
    min_session_sec: int = 0
    live_feedback_interval_sec: float = 2.0
    analysis_delay_sec: float = 0.0


def get_config(env: Optional[str] = None) -> SessionConfig:
    """
    Get configuration based on environment.

    Args:
        env: Environment name ('production', 'development', 'testing')
             If None, uses ENVIRONMENT env var or defaults to production

    Returns:
        Configuration instance
    """
    if env is None:
        env = os.getenv("ENVIRONMENT", "production").lower()

    config_map = {
        "production": ProductionConfig,
        "prod": ProductionConfig,
        "development": DevelopmentConfig,
        "dev": DevelopmentConfig,
        "testing": TestingConfig,
        "test": TestingConfig,
    }

    config_class = config_map.get(env, SessionConfig)
    return config_class()
