"""
Settings for the training core, read from the environment and `.env`.

Only deployment knobs and the defaults applied to new catalog entries and
plans live here. The progression constants (deload factors, rounding step,
failure threshold) are fixed in services/progression/constants.py.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, model_validator
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    # Storage. DATABASE_URL wins when set ("sqlite://" in tests); otherwise
    # the PostgreSQL URL is assembled from the POSTGRES_* parts.
    DATABASE_URL: Optional[str] = Field(default=None)
    POSTGRES_USER: str = Field(default="postgres")
    POSTGRES_PASSWORD: str = Field(default="postgres")
    POSTGRES_DB: str = Field(default="liftcycle")
    POSTGRES_HOST: str = Field(default="localhost")
    POSTGRES_PORT: int = Field(default=5432)

    # Connection pool, PostgreSQL only
    DB_POOL_SIZE: int = Field(default=5, ge=1)
    DB_MAX_OVERFLOW: int = Field(default=5, ge=0)
    DB_POOL_TIMEOUT: int = Field(default=30, ge=1)  # seconds
    DB_POOL_RECYCLE: int = Field(default=1800)  # seconds

    LOG_LEVEL: str = Field(default="INFO")
    LOG_FORMAT: str = Field(default="json")  # "json" or "text"
    ENVIRONMENT: str = Field(default="development")
    DEBUG: bool = Field(default=False)  # echoes SQL

    # Defaults for new plans and catalog entries
    MESOCYCLE_WORKING_WEEKS: int = Field(default=6, ge=1, le=52)
    DEFAULT_MIN_REPS: int = Field(default=8, ge=1)
    DEFAULT_MAX_REPS: int = Field(default=12, ge=1)
    DEFAULT_WEIGHT_INCREMENT: float = Field(default=5.0, gt=0)
    DEFAULT_REST_SECONDS: int = Field(default=90, ge=0)

    @model_validator(mode="after")
    def check_rep_range(self) -> "Settings":
        if self.DEFAULT_MIN_REPS > self.DEFAULT_MAX_REPS:
            raise ValueError("DEFAULT_MIN_REPS cannot exceed DEFAULT_MAX_REPS")
        return self

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


settings = Settings()
