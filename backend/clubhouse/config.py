"""Application configuration via environment variables."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings loaded from .env or environment."""

    DATABASE_URL: str = "sqlite:///./clubhouse.db"
    CORS_ORIGINS: str = "http://localhost:3000"
    LOG_LEVEL: str = "INFO"

    SESSION_TTL_HOURS: int = 24 * 14
    LAST_LOGIN_TOUCH_HOURS: int = 6
    PASSWORD_RESET_TTL_MINUTES: int = 60

    SUSPENDED_MESSAGE: str = "Your account is suspended. Please contact an administrator."
    DEACTIVATED_MESSAGE: str = "Your account has been deactivated. Contact admin."

    # Conditional single-statement reservation instead of read-then-write
    STRICT_CAPACITY: bool = True

    CLAIM_SYNC_MAX_ATTEMPTS: int = 3
    CLAIM_SYNC_BACKOFF_SECONDS: float = 0.2

    class Config:
        env_file = ".env"


settings = Settings()
