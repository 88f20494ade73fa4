from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
from pydantic import field_validator

class Settings(BaseSettings):
    # Database settings
    POSTGRES_USER: str = 'smartpoint_user'
    POSTGRES_PASSWORD: str = 'smartpoint_pass'
    POSTGRES_DB: str = 'smartpoint'
    POSTGRES_HOST: str = 'postgres'
    POSTGRES_PORT: int = 5432
    DATABASE_URL: Optional[str] = None  # Full async URL, overrides the POSTGRES_* parts

    # JWT settings
    APP_SECRET_STRING: str = 'your-super-secret-key-here-change-in-production-2024'
    ALGORITHM: str = 'HS256'
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Inventory
    CRITICAL_STOCK_THRESHOLD: int = 2

    # Reporting: Python weekday numbering (Monday=0 ... Sunday=6)
    DEFAULT_FIRST_DAY_OF_WEEK: int = 6

    # Offline-sync provenance for documents created without X-Device-ID
    DEFAULT_DEVICE_ID: str = 'mobile-app'

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    @property
    def async_database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    model_config = SettingsConfigDict(
        extra="allow",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True
    )

    @field_validator("DEBUG", mode="before")
    @classmethod
    def parse_debug(cls, v):
        if isinstance(v, str):
            return v.lower().strip('"').strip("'") in ("true", "1", "yes", "on")
        return bool(v)

    @field_validator("DEFAULT_FIRST_DAY_OF_WEEK")
    @classmethod
    def validate_first_day(cls, v: int) -> int:
        if not 0 <= v <= 6:
            raise ValueError("DEFAULT_FIRST_DAY_OF_WEEK must be between 0 (Monday) and 6 (Sunday)")
        return v

settings = Settings()
