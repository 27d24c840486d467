"""Pagesmith configuration — loaded from environment / .env file."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="PAGESMITH_", extra="ignore")

    env: str = "development"
    database_url: str = "sqlite+aiosqlite:///./pagesmith.db"
    log_level: str = "INFO"

    allowed_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"]
    )

    # Upper bound for ?limit= on change-history listings
    change_history_max_page_size: int = 500

    # Window used by the "recent changes" listing when no hours are given
    recent_changes_hours: int = 24
    # Upper bound for ?hours= on the same listing
    recent_changes_max_hours: int = 24 * 365


settings = Settings()
