"""Engine configuration using Pydantic Settings."""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Engine settings, read from ESTIMATE_ENGINE_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="ESTIMATE_ENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        frozen=True,
        extra="ignore",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Minimum log level")
    log_json: bool = Field(default=False, description="Render logs as JSON lines")

    # Geometry
    default_height_ft: float = Field(default=8.0, gt=0, description="Ceiling height when not measured")

    # Carrier defaults, used when an estimate has no carrier profile
    overhead_pct: Decimal = Field(default=Decimal("10"), ge=0)
    profit_pct: Decimal = Field(default=Decimal("10"), ge=0)
    op_threshold: Decimal = Field(default=Decimal("0"), ge=0)
    op_trade_minimum: int = Field(default=3, ge=0)
    max_depreciation_pct: float = Field(default=80.0, ge=0, le=100)
    tax_on_materials_only: bool = True

    # Jurisdiction defaults
    default_tax_rate: Decimal = Field(default=Decimal("0.0625"), ge=0, le=1)

    # Validation
    validation_config_path: Path | None = Field(
        default=None,
        description="JSON file overriding the built-in validation tables",
    )


@lru_cache
def get_settings() -> EngineSettings:
    """Get cached engine settings."""
    return EngineSettings()
