"""
Tests for pricing, depreciation and settlement.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from estimate_engine.core.models import (
    CarrierProfile,
    Condition,
    CoverageCode,
    EstimateLineItem,
    JurisdictionProfile,
    LineItemDefinition,
    LineItemRuleResult,
    RulesEvaluationResult,
    RuleStatus,
    Zone,
)
from estimate_engine.core.zone_metrics import ZoneMetrics, ZoneMetricsCalculator
from estimate_engine.errors import CatalogItemNotFoundError, ErrorCode
from estimate_engine.pricing import (
    CalculatedLineItem,
    DepreciationCalculator,
    DepreciationResult,
    DepreciationSchedule,
    LineItemPricer,
    SettlementCalculator,
    calculate_depreciation,
)


@pytest.fixture
def room_metrics(living_room: Zone) -> ZoneMetrics:
    return ZoneMetricsCalculator(default_height_ft=8.0).compute(living_room)


@pytest.fixture
def pricer(
    catalog: dict[str, LineItemDefinition],
    carrier: CarrierProfile,
    jurisdiction: JurisdictionProfile,
) -> LineItemPricer:
    return LineItemPricer(catalog, carrier, jurisdiction)


def priced_item(
    line_item_id: str,
    trade: str,
    subtotal: str,
    tax: str,
    coverage: CoverageCode = CoverageCode.A,
    depreciation: str | None = None,
    recoverable: bool = True,
) -> CalculatedLineItem:
    """A priced item with the given totals."""
    rcv = Decimal(subtotal) + Decimal(tax)
    dep = None
    if depreciation is not None:
        amount = Decimal(depreciation)
        dep = DepreciationResult(
            depreciation_pct=float(amount / rcv * 100),
            depreciation_amount=amount,
            acv=rcv - amount,
            useful_life_years=10,
            is_depreciable=True,
            is_recoverable=recoverable,
        )
    return CalculatedLineItem(
        line_item_id=line_item_id,
        code=f"CODE-{line_item_id}",
        trade_code=trade,
        coverage_code=coverage,
        quantity=1,
        material_total=Decimal(subtotal),
        subtotal=Decimal(subtotal),
        tax_amount=Decimal(tax),
        rcv=rcv,
        is_recoverable=recoverable,
        depreciation=dep,
    )


class TestDepreciationCalculator:
    """Straight-line depreciation with condition and cap."""

    def test_average_condition(self) -> None:
        result = DepreciationCalculator().calculate(
            category_code="06",
            depreciation_type="drywall",
            age_years=10,
            condition=Condition.AVERAGE,
            rcv=Decimal("1000"),
        )

        assert result.depreciation_pct == 20
        assert result.depreciation_amount == Decimal("200.00")
        assert result.acv == Decimal("800.00")
        assert result.useful_life_years == 50
        assert result.is_depreciable is True

    @pytest.mark.parametrize(
        ("condition", "expected"),
        [(Condition.GOOD, 17.0), (Condition.AVERAGE, 20.0), (Condition.POOR, 23.0)],
    )
    def test_condition_factor(self, condition: Condition, expected: float) -> None:
        result = calculate_depreciation("06", "drywall", 10, condition, Decimal("1000"))
        assert result.depreciation_pct == pytest.approx(expected)

    def test_schedule_maximum(self) -> None:
        """Carpet older than its useful life stops at the schedule maximum."""
        result = calculate_depreciation("07", "carpet", 20, "Average", Decimal("500"))

        assert result.depreciation_pct == 80
        assert result.acv == Decimal("100.00")

    def test_carrier_maximum(self) -> None:
        result = DepreciationCalculator().calculate(
            category_code="07",
            depreciation_type="carpet",
            age_years=20,
            rcv=Decimal("500"),
            carrier_max_pct=50,
        )
        assert result.depreciation_pct == 50

    def test_calculator_maximum(self) -> None:
        calculator = DepreciationCalculator(max_depreciation_pct=30)
        result = calculator.calculate(
            category_code="07", depreciation_type="carpet", age_years=20, rcv=Decimal("500")
        )
        assert result.depreciation_pct == 30

    def test_percentage_is_clamped(self) -> None:
        schedules = [
            DepreciationSchedule(
                category_code="X", item_type="t", useful_life_years=1, max_depreciation_pct=100
            )
        ]
        result = DepreciationCalculator(schedules).calculate(
            category_code="X", depreciation_type="t", age_years=5,
            condition=Condition.POOR, rcv=Decimal("100"),
        )

        assert result.depreciation_pct == 100
        assert result.acv == Decimal("0.00")

    def test_category_fallback(self) -> None:
        """Unknown item types use the longest-lived schedule in the category."""
        schedule = DepreciationCalculator().find_schedule("07", "mystery")

        assert schedule is not None
        assert schedule.useful_life_years == 50

    def test_not_depreciable(self) -> None:
        result = calculate_depreciation("WTR", None, 5, "Average", Decimal("90"))

        assert result.is_depreciable is False
        assert result.depreciation_pct == 0
        assert result.acv == Decimal("90.00")

    def test_missing_age(self) -> None:
        result = calculate_depreciation("06", "drywall", None, "Average", Decimal("100"))
        assert result.depreciation_pct == 0

    def test_acv_identity(self) -> None:
        result = calculate_depreciation("14", "interior_paint", 3, "Average", Decimal("359.70"))

        assert result.depreciation_pct == pytest.approx(42.86)
        assert result.depreciation_amount == Decimal("154.17")
        assert result.acv + result.depreciation_amount == Decimal("359.70")


class TestLineItemPricer:
    """Per-item pricing."""

    def test_formula_quantity(self, pricer: LineItemPricer, room_metrics: ZoneMetrics) -> None:
        """Drywall resolves 352 SF from the zone and applies the waste factor to materials."""
        item = EstimateLineItem(id="li", code="DRY-HTT-12", zone_id="zone-living")
        calc = pricer.price(item, room_metrics)

        assert calc.quantity == 352
        assert calc.quantity_source == "formula"
        assert calc.material_total == Decimal("232.32")
        assert calc.labor_total == Decimal("492.80")
        assert calc.subtotal == Decimal("725.12")
        assert calc.tax_amount == Decimal("14.52")
        assert calc.rcv == Decimal("739.64")
        assert calc.coverage_code == CoverageCode.A
        assert calc.trade_code == "DRY"

    def test_manual_quantity_wins(self, pricer: LineItemPricer, room_metrics: ZoneMetrics) -> None:
        item = EstimateLineItem(id="li", code="DRY-HTT-12", quantity=100, zone_id="zone-living")
        calc = pricer.price(item, room_metrics)

        assert calc.quantity == 100
        assert calc.quantity_source == "manual"
        assert calc.material_total == Decimal("66.00")
        assert calc.labor_total == Decimal("140.00")

    def test_no_quantity_and_no_zone(self, pricer: LineItemPricer) -> None:
        calc = pricer.price(EstimateLineItem(id="li", code="DRY-HTT-12"))

        assert calc.quantity == 0
        assert calc.quantity_source == "default"
        assert calc.rcv == Decimal("0.00")

    def test_minimum_charge(self, pricer: LineItemPricer) -> None:
        """Components scale up proportionally to the minimum charge."""
        calc = pricer.price(EstimateLineItem(id="li", code="DEM-HAUL", quantity=1))

        assert calc.minimum_charge_applied is True
        assert calc.subtotal == Decimal("200.00")
        assert calc.labor_total == Decimal("120.00")
        assert calc.equipment_total == Decimal("80.00")

    def test_full_subtotal_tax(
        self, catalog: dict[str, LineItemDefinition], jurisdiction: JurisdictionProfile
    ) -> None:
        carrier = CarrierProfile(id="c", tax_on_materials_only=False)
        calc = LineItemPricer(catalog, carrier, jurisdiction).price(
            EstimateLineItem(id="li", code="DRY-HTT-12", quantity=352)
        )
        assert calc.tax_amount == Decimal("45.32")

    def test_labor_taxable_jurisdiction(
        self, catalog: dict[str, LineItemDefinition], carrier: CarrierProfile
    ) -> None:
        jurisdiction = JurisdictionProfile(id="j", tax_rate=Decimal("0.0625"), labor_taxable=True)
        calc = LineItemPricer(catalog, carrier, jurisdiction).price(
            EstimateLineItem(id="li", code="DRY-HTT-12", quantity=352)
        )

        assert calc.taxable_amount == Decimal("725.12")
        assert calc.tax_amount == Decimal("45.32")

    def test_regional_multiplier(
        self, catalog: dict[str, LineItemDefinition], carrier: CarrierProfile
    ) -> None:
        jurisdiction = JurisdictionProfile(id="j", labor_multiplier=1.5)
        calc = LineItemPricer(catalog, carrier, jurisdiction).price(
            EstimateLineItem(id="li", code="DRY-HTT-12", quantity=10)
        )
        assert calc.labor_total == Decimal("21.00")

    def test_unit_price_override(self, pricer: LineItemPricer) -> None:
        calc = pricer.price(
            EstimateLineItem(id="li", code="DRY-HTT-12", quantity=10, unit_price=Decimal("3.00"))
        )

        assert calc.unit_price == Decimal("3.00")
        assert calc.subtotal == Decimal("30.00")

    def test_unknown_code(self, pricer: LineItemPricer) -> None:
        with pytest.raises(CatalogItemNotFoundError) as exc_info:
            pricer.price(EstimateLineItem(id="li", code="NOPE", quantity=1))
        assert exc_info.value.code == ErrorCode.CATALOG_ITEM_NOT_FOUND

    def test_broken_formula_defaults_to_zero(
        self,
        carrier: CarrierProfile,
        jurisdiction: JurisdictionProfile,
        room_metrics: ZoneMetrics,
    ) -> None:
        catalog = {"BAD": LineItemDefinition(code="BAD", quantity_formula="FLOOR_SF(zone")}
        calc = LineItemPricer(catalog, carrier, jurisdiction).price(
            EstimateLineItem(id="li", code="BAD", zone_id="z"), room_metrics
        )

        assert calc.quantity == 0
        assert calc.quantity_source == "default"
        assert calc.quantity_warnings

    def test_apply_rule_results(self, pricer: LineItemPricer) -> None:
        """Denied items drop out; capped items are repriced."""
        kept = pricer.price(EstimateLineItem(id="a", code="DRY-HTT-12", quantity=100))
        capped = pricer.price(EstimateLineItem(id="b", code="PAINT-INT-WALL", quantity=400))
        denied = pricer.price(EstimateLineItem(id="c", code="DEM-HAUL", quantity=1))
        rules = RulesEvaluationResult(
            estimate_id="E",
            evaluated_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
            line_item_results=[
                LineItemRuleResult(
                    line_item_id="b", line_item_code="PAINT-INT-WALL",
                    status=RuleStatus.MODIFIED, original_quantity=400, modified_quantity=300,
                    original_unit_price=Decimal("1.00"), explanation="capped",
                ),
                LineItemRuleResult(
                    line_item_id="c", line_item_code="DEM-HAUL",
                    status=RuleStatus.DENIED, original_quantity=1,
                    original_unit_price=Decimal("150.00"), explanation="denied",
                ),
            ],
        )

        adjusted = pricer.apply_rule_results([kept, capped, denied], rules)

        assert [c.line_item_id for c in adjusted] == ["a", "b"]
        assert adjusted[0] == kept
        assert adjusted[1].quantity == 300
        assert adjusted[1].subtotal == Decimal("300.00")


class TestSettlementCalculator:
    """Coverage-level aggregation."""

    @pytest.fixture
    def items(self) -> list[CalculatedLineItem]:
        return [
            priced_item("c1", "CNT", "600.00", "37.50", coverage=CoverageCode.C),
            priced_item("a1", "DRY", "1000.00", "50.00", depreciation="200.00"),
            priced_item("a2", "PNT", "500.00", "20.00", depreciation="100.00", recoverable=False),
        ]

    def test_coverage_summaries(
        self, carrier: CarrierProfile, items: list[CalculatedLineItem]
    ) -> None:
        result = SettlementCalculator(carrier).calculate(
            items, {CoverageCode.A: Decimal("1000")}
        )

        assert [s.coverage_code for s in result.coverage_summaries] == [
            CoverageCode.A,
            CoverageCode.C,
        ]
        assert result.qualifies_for_op is True

        a = result.summary_for("A")
        assert a is not None
        assert a.line_item_count == 2
        assert a.subtotal == Decimal("1500.00")
        assert a.tax_amount == Decimal("70.00")
        assert a.overhead_amount == Decimal("157.00")
        assert a.profit_amount == Decimal("157.00")
        assert a.total_rcv == Decimal("1884.00")
        assert a.recoverable_depreciation == Decimal("200.00")
        assert a.non_recoverable_depreciation == Decimal("100.00")
        assert a.total_acv == Decimal("1584.00")
        assert a.net_claim == Decimal("784.00")

        c = result.summary_for(CoverageCode.C)
        assert c is not None
        assert c.total_rcv == Decimal("765.00")
        assert c.net_claim == Decimal("765.00")

        assert result.totals.total_rcv == Decimal("2649.00")
        assert result.totals.subtotal_before_op == Decimal("2207.50")
        assert result.totals.net_claim_total == Decimal("1549.00")
        assert result.totals.net_claim_by_coverage == {
            "A": Decimal("784.00"),
            "C": Decimal("765.00"),
        }

    def test_too_few_trades(self, carrier: CarrierProfile) -> None:
        items = [
            priced_item("a", "DRY", "1000.00", "0.00"),
            priced_item("b", "PNT", "1000.00", "0.00"),
        ]
        result = SettlementCalculator(carrier).calculate(items)

        assert result.qualifies_for_op is False
        assert result.totals.overhead_amount == Decimal("0")
        assert result.totals.total_rcv == Decimal("2000.00")

    def test_below_carrier_threshold(self, items: list[CalculatedLineItem]) -> None:
        carrier = CarrierProfile(id="c", op_threshold=Decimal("5000"))
        result = SettlementCalculator(carrier).calculate(items)

        assert result.qualifies_for_op is False
        assert result.op_threshold_source == "carrier"

    def test_jurisdiction_threshold_override(self, items: list[CalculatedLineItem]) -> None:
        carrier = CarrierProfile(id="c", op_threshold=Decimal("5000"))
        jurisdiction = JurisdictionProfile(id="j", op_threshold_override=Decimal("1000"))
        result = SettlementCalculator(carrier, jurisdiction).calculate(items)

        assert result.qualifies_for_op is True
        assert result.op_threshold == Decimal("1000")
        assert result.op_threshold_source == "jurisdiction"

    def test_net_claim_never_negative(self, carrier: CarrierProfile) -> None:
        items = [priced_item("a", "DRY", "100.00", "0.00")]
        result = SettlementCalculator(carrier).calculate(items, {CoverageCode.A: Decimal("5000")})

        assert result.coverage_summaries[0].net_claim == Decimal("0")
        assert result.totals.deductible_total == Decimal("5000.00")

    def test_trades_involved(
        self, carrier: CarrierProfile, items: list[CalculatedLineItem]
    ) -> None:
        result = SettlementCalculator(carrier).calculate(items)
        assert result.trades_involved == ["CNT", "DRY", "PNT"]
