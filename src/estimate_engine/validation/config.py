"""
Versioned lookup tables for estimate validation.

Carrier and catalog variation changes these tables, not code: a
ValidationConfig is built once (defaults or a JSON file) and passed into
the validator.
"""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_QUANTITY_MULTIPLIERS: dict[str, float] = {
    "SF": 1.5,
    "LF": 2.0,
    "SY": 1.5,
    "SQ": 1.5,
    "EA": 50,
    "HR": 100,
    "DAY": 30,
    "WK": 8,
}

DEFAULT_COMPANIONS: dict[str, tuple[str, ...]] = {
    "DRY-HTT-12": ("PAINT-INT-WALL", "PAINT-PRIME-STD"),
    "DRY-HTT-58": ("PAINT-INT-WALL", "PAINT-PRIME-STD"),
    "DRY-HTT-CEIL": ("PAINT-INT-CEIL",),
    "DEM-FLOOR-CARP": ("DEM-HAUL",),
    "DEM-FLOOR-VNL": ("DEM-HAUL",),
    "DEM-FLOOR-TILE": ("DEM-HAUL",),
    "DEM-FLOOR-HARD": ("DEM-HAUL",),
    "WTR-EXTRACT-PORT": ("WTR-DRY-DEHU", "WTR-DRY-AIRMOV"),
    "WTR-EXTRACT-TRUCK": ("WTR-DRY-DEHU", "WTR-DRY-AIRMOV"),
    "WTR-ANTIMICROB": ("WTR-EXTRACT-PORT",),
}

DEFAULT_STANDALONE_CODES: frozenset[str] = frozenset(
    {"WTR-DRY-DEHU", "WTR-DRY-AIRMOV", "PAINT-INT-WALL", "DEM-HAUL"}
)


class ValidationConfig(BaseModel):
    """Plausibility, companion and threshold tables used by the validator."""

    model_config = ConfigDict(frozen=True)

    version: str = "2024.1"
    quantity_multipliers: dict[str, float] = Field(
        default_factory=lambda: dict(DEFAULT_QUANTITY_MULTIPLIERS)
    )
    default_quantity_multiplier: float = Field(default=10.0, gt=0)
    common_companions: dict[str, tuple[str, ...]] = Field(
        default_factory=lambda: dict(DEFAULT_COMPANIONS)
    )
    standalone_codes: frozenset[str] = DEFAULT_STANDALONE_CODES
    coverage_example_limit: int = Field(default=5, ge=1)
    high_depreciation_pct: float = Field(default=50.0, ge=0, le=100)

    @classmethod
    def default(cls) -> "ValidationConfig":
        return cls()

    @classmethod
    def from_file(cls, path: str | Path) -> "ValidationConfig":
        """Load a config from JSON; missing keys keep their defaults."""
        return cls.model_validate_json(Path(path).read_text(encoding="utf-8"))

    def multiplier_for(self, unit: str) -> float:
        return self.quantity_multipliers.get(unit.upper(), self.default_quantity_multiplier)

    def predecessors_of(self, code: str) -> list[str]:
        """Codes whose companion list includes ``code``."""
        return [
            parent
            for parent, companions in self.common_companions.items()
            if code in companions
        ]
