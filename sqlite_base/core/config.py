"""Configuration management using Pydantic Settings.

This module provides typed configuration loaded from environment variables.
All settings are validated when first loaded so a misconfigured pool fails
fast, before any database file is touched.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Union

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL


class Settings(BaseSettings):
    """Database initialization settings.

    Loaded from SQLITE_BASE_* environment variables or a .env file.
    The pool defaults bound the engine to 5 open connections, 5 of which may
    sit idle, with a 1 minute idle timeout and a 5 minute lifetime.
    """

    model_config = SettingsConfigDict(
        env_prefix="SQLITE_BASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database file
    database_path: Path = Field(
        default=Path("data.db"), description="Path to the SQLite database file"
    )

    # Connection pool
    pool_size: int = Field(
        default=5, ge=1, le=100, description="Connections kept in the pool (max idle)"
    )
    max_overflow: int = Field(
        default=0, ge=0, le=100, description="Connections allowed beyond pool_size"
    )
    pool_recycle: int = Field(
        default=300, ge=1, description="Max connection lifetime in seconds"
    )
    pool_idle_timeout: int = Field(
        default=60, ge=1, description="Seconds a pooled connection may sit idle"
    )
    pool_timeout: int = Field(
        default=30, ge=1, description="Seconds to wait for a free pooled connection"
    )
    echo_sql: bool = Field(default=False, description="Log emitted SQL")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept lowercase level names from the environment."""
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator("database_path", mode="after")
    @classmethod
    def ensure_path_is_absolute(cls, v: Path) -> Path:
        """Ensure the database path is absolute."""
        if not v.is_absolute():
            return v.absolute()
        return v

    @model_validator(mode="after")
    def validate_pool_limits(self) -> "Settings":
        """Idle connections must be expired before they reach their lifetime."""
        if self.pool_idle_timeout > self.pool_recycle:
            raise ValueError(
                f"pool_idle_timeout ({self.pool_idle_timeout}s) must not exceed "
                f"pool_recycle ({self.pool_recycle}s)"
            )
        return self

    @property
    def max_connections(self) -> int:
        """Upper bound on simultaneously open connections."""
        return self.pool_size + self.max_overflow

    @property
    def database_url(self) -> URL:
        """SQLAlchemy URL for the configured database file."""
        return sqlite_url(self.database_path)


def sqlite_url(db_path: Union[str, Path]) -> URL:
    """
    Build a pysqlite URL for a database file path.

    The path is set as the URL's database component rather than pasted into
    a URL string, so "?" and "#" stay part of the filename.
    """
    return URL.create("sqlite", database=str(Path(db_path)))


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
