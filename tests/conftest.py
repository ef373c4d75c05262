"""
Shared fixtures for the Estimate Integrity Engine tests.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from estimate_engine.config import EngineSettings
from estimate_engine.core.models import (
    CarrierProfile,
    CostComponents,
    CoverageCode,
    Estimate,
    EstimateLineItem,
    JurisdictionProfile,
    LineItemDefinition,
    Zone,
)
from estimate_engine.validation.config import ValidationConfig

FIXED_NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return FIXED_NOW


@pytest.fixture
def clock():
    """Deterministic clock for audit timestamps."""
    return fixed_clock


@pytest.fixture
def settings() -> EngineSettings:
    """Settings independent of the environment."""
    return EngineSettings(
        _env_file=None,
        overhead_pct=Decimal("10"),
        profit_pct=Decimal("10"),
        op_threshold=Decimal("0"),
        op_trade_minimum=3,
        default_tax_rate=Decimal("0.0625"),
    )


@pytest.fixture
def living_room() -> Zone:
    """A 12 x 10 x 8 room."""
    return Zone(
        id="zone-living",
        name="Living Room",
        room_type="living_room",
        length_ft=12,
        width_ft=10,
        height_ft=8,
        damage_type="water",
        water_category=2,
    )


@pytest.fixture
def small_room() -> Zone:
    """A 10 x 10 x 8 room."""
    return Zone(id="zone-bath", name="Bathroom", length_ft=10, width_ft=10, height_ft=8)


@pytest.fixture
def catalog() -> dict[str, LineItemDefinition]:
    """Small catalog spanning several trades."""
    definitions = [
        LineItemDefinition(
            code="WTR-EXTRACT-PORT",
            description="Water extraction - portable unit",
            category_id="WTR.1",
            unit="SF",
            costs=CostComponents(labor=Decimal("0.50"), equipment=Decimal("0.25")),
            quantity_formula="FLOOR_SF(zone)",
            requires_items=["WTR-DRY-DEHU"],
            default_coverage_code=CoverageCode.A,
            trade_code="WTR",
        ),
        LineItemDefinition(
            code="WTR-DRY-DEHU",
            description="Dehumidifier (per day)",
            category_id="WTR.2",
            unit="DAY",
            costs=CostComponents(equipment=Decimal("75.00")),
            default_coverage_code=CoverageCode.A,
            trade_code="WTR",
        ),
        LineItemDefinition(
            code="WTR-DRY-AIRMOV",
            description="Air mover (per day)",
            category_id="WTR.2",
            unit="DAY",
            costs=CostComponents(equipment=Decimal("35.00")),
            default_coverage_code=CoverageCode.A,
            trade_code="WTR",
        ),
        LineItemDefinition(
            code="DRY-HTT-12",
            description='1/2" drywall - hung, taped, textured',
            category_id="06.1",
            unit="SF",
            costs=CostComponents(material=Decimal("0.60"), labor=Decimal("1.40")),
            waste_factor=1.1,
            quantity_formula="WALL_SF(zone)",
            default_coverage_code=CoverageCode.A,
            depreciation_type="drywall",
            trade_code="DRY",
        ),
        LineItemDefinition(
            code="PAINT-INT-WALL",
            description="Paint interior walls - 2 coats",
            category_id="14.1",
            unit="SF",
            costs=CostComponents(material=Decimal("0.35"), labor=Decimal("0.65")),
            quantity_formula="WALL_SF(zone)",
            default_coverage_code=CoverageCode.A,
            depreciation_type="interior_paint",
            trade_code="PNT",
        ),
        LineItemDefinition(
            code="FLR-CARPET",
            description="Carpet",
            category_id="07.1",
            unit="SF",
            costs=CostComponents(material=Decimal("2.50"), labor=Decimal("1.00")),
            quantity_formula="FLOOR_SF(zone)",
            excludes_items=["FLR-LVP"],
            default_coverage_code=CoverageCode.A,
            depreciation_type="carpet",
            trade_code="FLR",
        ),
        LineItemDefinition(
            code="FLR-LVP",
            description="Luxury vinyl plank",
            category_id="07.2",
            unit="SF",
            costs=CostComponents(material=Decimal("3.00"), labor=Decimal("1.50")),
            quantity_formula="FLOOR_SF(zone)",
            excludes_items=["FLR-CARPET"],
            replaces_items=["FLR-VINYL"],
            default_coverage_code=CoverageCode.A,
            depreciation_type="lvp_flooring",
            trade_code="FLR",
        ),
        LineItemDefinition(
            code="FLR-VINYL",
            description="Sheet vinyl",
            category_id="07.3",
            unit="SF",
            costs=CostComponents(material=Decimal("1.50"), labor=Decimal("1.00")),
            default_coverage_code=CoverageCode.A,
            depreciation_type="vinyl_sheet",
            trade_code="FLR",
        ),
        LineItemDefinition(
            code="DEM-HAUL",
            description="Haul debris",
            category_id="DEM.1",
            unit="EA",
            costs=CostComponents(labor=Decimal("90.00"), equipment=Decimal("60.00")),
            minimum_charge=Decimal("200.00"),
            default_coverage_code=CoverageCode.A,
            trade_code="DEM",
        ),
        LineItemDefinition(
            code="CNT-TV",
            description="Television",
            category_id="99.1",
            unit="EA",
            costs=CostComponents(material=Decimal("600.00")),
            default_coverage_code=CoverageCode.C,
            depreciation_type="appliance_refrigerator",
            trade_code="CNT",
        ),
    ]
    return {definition.code: definition for definition in definitions}


@pytest.fixture
def carrier() -> CarrierProfile:
    return CarrierProfile(
        id="carrier-acme",
        name="Acme Mutual",
        overhead_pct=Decimal("10"),
        profit_pct=Decimal("10"),
        op_threshold=Decimal("0"),
        op_trade_minimum=3,
        tax_on_materials_only=True,
        max_depreciation_pct=80,
    )


@pytest.fixture
def jurisdiction() -> JurisdictionProfile:
    return JurisdictionProfile(id="jur-tx", name="Texas", tax_rate=Decimal("0.0625"))


@pytest.fixture
def water_estimate(living_room: Zone) -> Estimate:
    """Water loss across four trades, all quantities from formulas or entered."""
    return Estimate(
        id="EST-001",
        claim_id="CLM-001",
        carrier_profile_id="carrier-acme",
        jurisdiction_id="jur-tx",
        deductibles={CoverageCode.A: Decimal("1000")},
        zones=[living_room],
        line_items=[
            EstimateLineItem(
                id="li-1", code="WTR-EXTRACT-PORT", zone_id="zone-living",
                coverage_code=CoverageCode.A,
            ),
            EstimateLineItem(
                id="li-2", code="WTR-DRY-DEHU", quantity=3, zone_id="zone-living",
                coverage_code=CoverageCode.A,
            ),
            EstimateLineItem(
                id="li-3", code="DRY-HTT-12", zone_id="zone-living",
                coverage_code=CoverageCode.A, age_years=10,
                depreciation_reason="Age of existing drywall",
            ),
            EstimateLineItem(
                id="li-4", code="PAINT-INT-WALL", zone_id="zone-living",
                coverage_code=CoverageCode.A, age_years=3,
                depreciation_reason="Paint age",
            ),
        ],
    )


@pytest.fixture
def validation_config() -> ValidationConfig:
    return ValidationConfig.default()
