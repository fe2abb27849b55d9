from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings - only define what needs validation."""

    DEBUG: bool = False
    API_PORT: int = 8080
    ENVIRONMENT: str = "development"  # "development", "production", "test"

    # Supabase (auth + rows + object storage)
    SUPABASE_URL: str = ""
    SUPABASE_PUBLISHABLE_KEY: str = ""  # Safe for client-side

    # Session reconciliation
    SESSION_PROBE_TIMEOUT_SECONDS: float = 2.0
    EMAIL_CONFIRMATION_WINDOW_SECONDS: int = 120
    PENDING_CONFIRMATION_PATH: str = ".pending_confirmations.json"
    EMAIL_REDIRECT_URL: str = "http://localhost:5173/"

    # Account rules
    TEACHER_INVITE_CODE: str = ""  # Empty disables teacher sign-up
    PASSWORD_MIN_LENGTH: int = 6

    # Storage settings
    STORAGE_PROVIDER: str = "supabase"  # "supabase" or "local"
    COURSE_COVER_BUCKET: str = "course-thumbnails"
    LOCAL_STORAGE_PATH: str = "uploads"
    LOCAL_STORAGE_BASE_URL: str = "http://localhost:8080/uploads"
    DEFAULT_COURSE_THUMBNAIL: str = (
        "https://images.unsplash.com/photo-1497633762265-9d179a990aa6"
        "?ixlib=rb-4.0.3&auto=format&fit=crop&w=800&q=80"
    )

    # Progress write delivery
    PROGRESS_WRITE_MAX_ATTEMPTS: int = 3
    PROGRESS_WRITE_RETRY_DELAY_SECONDS: float = 0.5

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="allow",
        case_sensitive=False,
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    settings = Settings()
    if settings.SESSION_PROBE_TIMEOUT_SECONDS <= 0:
        msg = "SESSION_PROBE_TIMEOUT_SECONDS must be positive"
        raise ValueError(msg)
    return settings
