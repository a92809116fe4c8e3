# config.py
from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

FEEDBACK_TONES = ("standard", "executive")


class AppSettings(BaseSettings):
    # --- Metadata ---
    APP_NAME: str = "Speaking Coach"
    APP_VERSION: str = "1.0.0"
    APP_DESCRIPTION: str = "Real-time speech session analysis and feedback"

    # --- Logging ---
    LOG_LEVEL: str = Field("INFO")
    LOG_FILE: Optional[str] = Field(None)
    JSON_LOGS: bool = Field(False)

    # --- Speech Session ---
    SPEECHCOACH_LANGUAGE: str = Field("en-US")
    SPEECHCOACH_FEEDBACK_TONE: str = Field("standard")
    SPEECHCOACH_INPUT_DEVICE: Optional[str] = Field(None)

    @field_validator("SPEECHCOACH_FEEDBACK_TONE")
    @classmethod
    def validate_tone(cls, v: str) -> str:
        v = v.lower()
        if v not in FEEDBACK_TONES:
            raise ValueError(f"Feedback tone must be one of {FEEDBACK_TONES}, got '{v}'")
        return v

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


settings = AppSettings()
