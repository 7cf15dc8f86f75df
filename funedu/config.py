"""
Configuration management for the FunEdu Learning Bot
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Telegram Bot Configuration
    telegram_bot_token: str = Field(...)
    allowed_users: str = Field(default="")

    # Database Configuration
    database_url: str = Field(default="sqlite:///data/funedu.db")

    # Application Configuration
    log_level: str = Field(default="INFO")
    polling_interval: float = Field(default=1.0)

    # Gamification
    level_size: int = Field(default=500, gt=0)
    base_score_ratio: float = Field(default=0.1, gt=0)

    # Leaderboards and listings
    default_leaderboard_limit: int = Field(default=10, ge=1)
    max_leaderboard_limit: int = Field(default=100, ge=1)
    default_page_size: int = Field(default=10, ge=1)
    max_page_size: int = Field(default=100, ge=1)

    # Per-user locks
    lock_idle_timeout_minutes: int = Field(default=5, ge=1)

    @property
    def allowed_users_list(self) -> list[int]:
        """Convert allowed_users string to list of integers"""
        if not self.allowed_users.strip():
            return []
        # Parse comma-separated string of user IDs
        return [
            int(user_id.strip())
            for user_id in self.allowed_users.split(",")
            if user_id.strip()
        ]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_nested_delimiter="__",
        extra="ignore"
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


def get_database_path(database_url: str | None = None) -> str:
    """Get the database file path from URL"""
    if database_url is None:
        database_url = get_settings().database_url
    if database_url.startswith("sqlite:///"):
        return database_url.replace("sqlite:///", "")
    return "data/funedu.db"
