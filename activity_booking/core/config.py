# activity_booking/core/config.py

from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Values are read from the process environment (Docker Compose passes the
    # root .env through); everything has a local-development default.
    model_config = SettingsConfigDict(extra="ignore")

    # The environment mode: 'local' or 'prod'
    ENV: str = "local"

    # --- Database URLs ---
    DATABASE_URL_LOCAL: str = "sqlite:///./activity_booking.db"
    DATABASE_URL_PROD: str = ""

    # Create tables on startup (local development only; prod uses migrations)
    AUTO_CREATE_TABLES: bool = True

    # --- Identity collaborator ---
    JWT_SECRET: str = "dev-secret-change-me"
    JWT_ALGORITHM: str = "HS256"
    INTERNAL_API_KEY: str = "dev-internal-key"

    # --- HTTP ---
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]
    RATE_LIMIT_ENABLED: bool = True
    BOOKING_RATE_LIMIT: str = "30/minute"

    # --- Background jobs ---
    SCHEDULER_ENABLED: bool = True
    INTEGRITY_SWEEP_INTERVAL_MINUTES: int = 15

    LOG_LEVEL: str = "INFO"

    # --- Dynamic Properties ---
    @property
    def DATABASE_URL(self) -> str:
        return (
            self.DATABASE_URL_LOCAL if self.ENV == "local" else self.DATABASE_URL_PROD
        )


# Create a single instance of the settings
settings = Settings()
