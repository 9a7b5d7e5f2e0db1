from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    # App
    app_name: str = "PawTriage"
    log_level: str = "INFO"

    # Database (async SQLite by default; set DATABASE_URL for PostgreSQL)
    database_url: str = "sqlite+aiosqlite:///./paw_triage.db"
    sql_echo: bool = False

    # AI - Gemini (Developer API key, not Vertex)
    gemini_api_key: Optional[str] = None
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_model: str = "gemini-2.5-pro"
    gemini_summary_model: str = "gemini-2.5-flash"
    gemini_timeout: float = 60.0
    # transport-level retries on 429/5xx only; bad output is never retried
    gemini_max_retries: int = 2
    gemini_backoff_factor: float = 0.6

    # Medical history context pulled into prompts
    emergency_history_limit: int = 5
    summary_history_limit: int = 10

    # Photo analysis
    max_photo_bytes: int = 5 * 1024 * 1024
    max_photos_per_batch: int = 5
    photo_batch_concurrency: int = 3

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
