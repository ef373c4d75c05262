#!/usr/bin/env python3
"""
Sample Estimate Audit Script.
Demonstrates usage of the Estimate Integrity Engine.
"""

import asyncio
from decimal import Decimal

from estimate_engine import (
    CarrierProfile,
    CoverageCode,
    Estimate,
    EstimateEngine,
    EstimateLineItem,
    InMemoryEstimateRepository,
    JurisdictionProfile,
    LineItemDefinition,
    SubmissionGate,
    Zone,
    configure_logging,
)
from estimate_engine.core.models import (
    CarrierCap,
    CarrierExclusion,
    CarrierRule,
    CostComponents,
    MissingWall,
    RequireDocEffect,
    RuleConditions,
)


def create_catalog() -> list[LineItemDefinition]:
    """A handful of catalog rows with formulas and relationships."""
    return [
        LineItemDefinition(
            code="WTR-EXTRACT-PORT",
            description="Water extraction - portable unit",
            category_id="WTR.1",
            unit="SF",
            costs=CostComponents(labor=Decimal("0.50"), equipment=Decimal("0.25")),
            quantity_formula="FLOOR_SF(zone)",
            requires_items=["WTR-DRY-DEHU"],
            trade_code="WTR",
        ),
        LineItemDefinition(
            code="WTR-DRY-DEHU",
            description="Dehumidifier (per day)",
            category_id="WTR.2",
            unit="DAY",
            costs=CostComponents(equipment=Decimal("75.00")),
            quantity_formula="MAX(3, CEIL(FLOOR_SF(zone) / 500))",
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
            depreciation_type="interior_paint",
            trade_code="PNT",
        ),
        LineItemDefinition(
            code="FLR-CARPET",
            description="Carpet",
            category_id="07.1",
            unit="SF",
            costs=CostComponents(material=Decimal("2.50"), labor=Decimal("1.00")),
            quantity_formula="FLOOR_SF(zone) * 1.1",
            excludes_items=["FLR-LVP"],
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
            depreciation_type="lvp_flooring",
            trade_code="FLR",
        ),
    ]


def create_carrier() -> CarrierProfile:
    return CarrierProfile(
        id="carrier-acme",
        name="Acme Mutual",
        op_threshold=Decimal("1000"),
        caps=[CarrierCap(line_item_code="WTR-DRY-DEHU", max_quantity_per_zone=4)],
        exclusions=[
            CarrierExclusion(
                line_item_code="FLR-LVP",
                exclusion_reason="LVP upgrade not covered when carpet was the existing floor",
            )
        ],
        rules=[
            CarrierRule(
                rule_code="ACME-WTR-DOC",
                rule_name="Category 2+ drying documentation",
                target_type="category",
                target_value="WTR",
                conditions=RuleConditions(water_category=[2, 3]),
                effect=RequireDocEffect(required=["moisture_log", "drying_photos"]),
            )
        ],
    )


def create_sample_estimate() -> Estimate:
    """Water loss in a living room with a doorway and a window."""
    living_room = Zone(
        id="zone-living",
        name="Living Room",
        room_type="living_room",
        length_ft=16,
        width_ft=14,
        height_ft=8,
        damage_type="water",
        water_category=2,
        missing_walls=[
            MissingWall(name="Doorway", width_ft=3, height_ft=6.8, goes_to_floor=True),
            MissingWall(name="Window", width_ft=5, height_ft=4, goes_to_floor=False),
        ],
    )
    return Estimate(
        id="EST-2024-WTR-001",
        claim_id="CLM-2024-WTR-001",
        carrier_profile_id="carrier-acme",
        jurisdiction_id="jur-tx",
        deductibles={CoverageCode.A: Decimal("1000")},
        zones=[living_room],
        line_items=[
            EstimateLineItem(id="li-1", code="WTR-EXTRACT-PORT", zone_id="zone-living"),
            EstimateLineItem(id="li-2", code="WTR-DRY-DEHU", quantity=6, zone_id="zone-living"),
            EstimateLineItem(
                id="li-3", code="DRY-HTT-12", zone_id="zone-living",
                age_years=12, depreciation_reason="Age of existing drywall",
            ),
            EstimateLineItem(id="li-4", code="PAINT-INT-WALL", zone_id="zone-living", age_years=4),
            EstimateLineItem(id="li-5", code="FLR-CARPET", zone_id="zone-living", age_years=6),
            EstimateLineItem(id="li-6", code="FLR-LVP", zone_id="zone-living"),
        ],
    )


async def submit(estimate: Estimate, catalog: list[LineItemDefinition]) -> None:
    repository = InMemoryEstimateRepository(
        estimates=[estimate],
        catalog=catalog,
        carriers=[create_carrier()],
        jurisdictions=[JurisdictionProfile(id="jur-tx", name="Texas")],
    )
    gate = SubmissionGate(repository)

    first = await gate.submit(estimate.id)
    print(f"First submission:  success={first.success} status={first.status.value}")
    if first.success:
        print(f"  Audit entries saved: {first.audit_entries_saved}")

    second = await gate.submit(estimate.id)
    print(f"Second submission: success={second.success}")
    if second.error:
        print(f"  {second.error.code}: {second.error.message}")


def main() -> None:
    """Run sample estimate audit demonstration."""
    configure_logging(level="WARNING")

    print("=" * 70)
    print("ESTIMATE INTEGRITY ENGINE - SAMPLE AUDIT")
    print("=" * 70)
    print()

    estimate = create_sample_estimate()
    catalog = create_catalog()
    carrier = create_carrier()
    jurisdiction = JurisdictionProfile(id="jur-tx", name="Texas")

    print(f"Auditing Estimate: {estimate.id}")
    print(f"Line Items: {len(estimate.line_items)}")
    print()

    engine = EstimateEngine()

    # Zone metrics
    for zone_id, metrics in engine.compute_zone_metrics(estimate).items():
        print(
            f"{zone_id}: floor {metrics.floor_sf} SF, walls {metrics.wall_sf} SF net "
            f"({metrics.wall_sf_gross} SF gross), perimeter {metrics.perimeter_lf} LF"
        )
    print()

    # Run the full pass
    print("Running audit...")
    formatter = engine.evaluate_with_formatter(
        estimate, {d.code: d for d in catalog}, carrier, jurisdiction
    )

    print()
    formatter.print_full()
    print()
    print(formatter.rules_text())
    print()
    print(formatter.settlement_text())

    # JSON output
    print()
    print("-" * 70)
    print("JSON Output (first 500 chars):")
    print("-" * 70)
    json_output = formatter.to_json()
    print(json_output[:500] + "..." if len(json_output) > 500 else json_output)

    # Submission workflow
    print()
    print("-" * 70)
    print("SUBMISSION DEMO")
    print("-" * 70)
    asyncio.run(submit(estimate, catalog))


if __name__ == "__main__":
    main()
