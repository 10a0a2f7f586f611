from __future__ import annotations

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    gemini_api_key: str = Field(default="", description="Gemini API key; empty selects the demo provider")
    gemini_api_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta/models",
        description="Gemini REST base URL",
    )
    gemini_model: str = Field(default="gemini-2.0-flash", description="Gemini model name")

    analysis_timeout: float = Field(default=8.0, description="Per-call analysis timeout in seconds")
    rate_limit_analysis: float = Field(default=4.0, description="Analysis requests per second")
    max_retries: int = Field(default=3, description="Maximum retry attempts for the remote provider")
    retry_delay: float = Field(default=1.0, description="Base retry delay in seconds")
    demo_latency: float = Field(default=0.0, description="Simulated latency of the demo provider in seconds")

    storage_path: str = Field(default="data/mindcare.db", description="Key-value store database path")
    storage_quota_bytes: int = Field(default=5 * 1024 * 1024, description="Total bytes the store may hold")
    journals_key: str = Field(default="journals", description="Store key holding all journal entries")
    user_key: str = Field(default="user", description="Store key holding the user record")
    user_auth_key: str = Field(default="user_auth", description="Store key holding the password hash")

    dashboard_window: int = Field(default=30, description="Entries considered by the dashboard")
    monthly_window_days: int = Field(default=30, description="Days covered by monthly insights")

    log_level: str = Field(default="INFO", description="Logging level")
    log_file: str = Field(default="logs/mindcare.log", description="Log file path")
    log_json: bool = Field(default=True, description="Render logs as JSON lines; false for console format")
    session_cookie: str = Field(default="mindcare_session", description="Session cookie name")

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
