"""Configuration management using Pydantic Settings."""

from pathlib import Path
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Dataset
    dataset_path: Path = Field(
        Path("data") / "merged_posterior.parquet",
        description="Precomputed table of per-model meta-analytic estimates",
    )

    # Directories
    output_dir: Path = Field(Path("output"), description="Default directory for CLI chart images")

    # Sessions idle for longer than this many seconds are discarded
    session_ttl: float = Field(1800.0, gt=0)

    # Web server
    host: str = Field("127.0.0.1")
    port: int = Field(8000, ge=1, le=65535)

    # Rendering (pixels); height matches the dashboard's fixed plot area
    plot_width: int = Field(1000, gt=0)
    plot_height: int = Field(500, gt=0)
    plot_dpi: int = Field(100, gt=0)

    # Logging
    log_level: str = Field("INFO")
    log_format: str = Field("json", pattern="^(json|text)$")

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.upper()


# Instantiate global settings
settings = Settings()
