from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings pulled from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PY_BOIDS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Grid Configuration
    grid_size: int = Field(default=21, ge=1, description="Grid vertices along each axis")
    mapping_mode: str = Field(default="inverse_distance", description="Sample mapping mode")
    max_time: float = Field(default=float("inf"), description="Ignore snapshots at or after this time")

    # Output Configuration
    output_dir: str = Field(default="o", description="Directory for generated meshes")
    preview_dpi: int = Field(default=150, ge=10, description="Resolution of preview images")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="console", description="Logging format (console or json)")

    @field_validator("log_format")
    @classmethod
    def check_log_format(cls, value: str) -> str:
        value = value.lower()
        if value not in ("console", "json"):
            raise ValueError(f"log_format must be 'console' or 'json', got {value!r}")
        return value

    @field_validator("log_level")
    @classmethod
    def check_log_level(cls, value: str) -> str:
        value = value.upper()
        if value not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log_level {value!r}")
        return value


@lru_cache
def get_settings() -> Settings:
    """Settings singleton, read once from the environment."""
    return Settings()
