"""
Configuration module - loads all env vars using pydantic-settings.
This is the SINGLE SOURCE OF TRUTH for all config values.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # PostgreSQL
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "portal_user"
    postgres_password: str = "password"
    postgres_db: str = "project_portal"

    # Full SQLAlchemy URL, overrides the postgres_* fields when set
    # (e.g. sqlite:///./portal.db for local runs and tests)
    database_url: str = ""

    # JWT Auth
    jwt_secret_key: str = "change-this-secret"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 1440

    # App
    debug: bool = True
    environment: str = "development"
    log_level: str = "INFO"

    # Review and application rules
    panel_size: int = 5
    max_pending_reviews: int = 7
    max_applications_per_student: int = 3
    max_feedback_chars: int = 2500
    max_abstract_chars: int = 2500

    @property
    def postgres_url(self) -> str:
        """Construct PostgreSQL connection URL"""
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def sqlalchemy_url(self) -> str:
        return self.database_url or self.postgres_url

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
