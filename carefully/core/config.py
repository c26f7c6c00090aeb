"""Application configuration from environment."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings loaded from env / .env."""

    app_name: str = "Carefully"
    debug: bool = False
    log_level: str = "INFO"

    # Database (async driver: aiosqlite for dev, asyncpg for postgres)
    database_url: str = "sqlite+aiosqlite:///./carefully.db"
    seed_on_startup: bool = True
    demo_user_email: str = "sarah.adams@care.com"

    # Signed auth cookie, issued by the login provider
    secret_key: str = "change-me-in-production-use-env"
    auth_cookie_name: str = "carefully_auth"
    auth_cookie_max_age: int = 60 * 60 * 24 * 14  # 14 days

    # Text-generation oracle
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    oracle_timeout_seconds: float = 20.0
    reply_temperature: float = 0.6
    reply_max_tokens: int = 120
    feedback_temperature: float = 0.3
    feedback_max_tokens: int = 500
    coaching_temperature: float = 0.4
    coaching_max_tokens: int = 400
    character_role: str = "care recipient"

    # Session lifecycle
    session_turn_target: int = 3
    auto_complete_on_target: bool = True

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


def get_settings() -> Settings:
    return Settings()
