"""
Line item pricing.

Turns estimate line items and catalog definitions into priced records:
waste factor, regional multipliers, minimum charge, tax and RCV. Rule
results are folded back in by reprice().
"""

from collections.abc import Mapping
from decimal import Decimal

import structlog
from pydantic import BaseModel, Field

from ..core.formula import (
    QuantityResult,
    calculate_quantity_from_metrics,
    default_quantity_result,
    manual_quantity_result,
)
from ..core.models import (
    CarrierProfile,
    CoverageCode,
    EstimateLineItem,
    JurisdictionProfile,
    LineItemDefinition,
    RulesEvaluationResult,
    RuleStatus,
)
from ..core.zone_metrics import ZoneMetrics
from ..errors import CatalogItemNotFoundError
from ..utils.money import ZERO, round_money, to_decimal
from .depreciation import DepreciationResult

logger = structlog.get_logger(__name__)


class CalculatedLineItem(BaseModel):
    """Priced (and later depreciated) line item, ready for persistence."""

    line_item_id: str
    code: str
    description: str = ""
    category_id: str | None = None
    trade_code: str | None = None
    zone_id: str | None = None
    unit: str = "EA"
    coverage_code: CoverageCode = CoverageCode.A
    depreciation_type: str | None = None

    quantity: float
    quantity_source: str = "manual"
    quantity_warnings: list[str] = Field(default_factory=list)

    # Adjusted per-unit costs
    unit_material: Decimal = ZERO
    unit_labor: Decimal = ZERO
    unit_equipment: Decimal = ZERO
    waste_factor: float = 1.0

    material_total: Decimal = ZERO
    labor_total: Decimal = ZERO
    equipment_total: Decimal = ZERO
    subtotal: Decimal = ZERO
    minimum_charge_applied: bool = False
    taxable_amount: Decimal = ZERO
    tax_amount: Decimal = ZERO
    rcv: Decimal = ZERO

    is_recoverable: bool = True
    depreciation: DepreciationResult | None = None

    @property
    def unit_price(self) -> Decimal:
        return round_money(self.unit_material + self.unit_labor + self.unit_equipment)

    @property
    def depreciation_amount(self) -> Decimal:
        return self.depreciation.depreciation_amount if self.depreciation else ZERO

    @property
    def acv(self) -> Decimal:
        return self.depreciation.acv if self.depreciation else self.rcv


class LineItemPricer:
    """
    Prices line items for one carrier/jurisdiction combination.

    The catalog is a read-only mapping of code -> LineItemDefinition.
    """

    def __init__(
        self,
        catalog: Mapping[str, LineItemDefinition],
        carrier: CarrierProfile,
        jurisdiction: JurisdictionProfile,
    ) -> None:
        self.catalog = catalog
        self.carrier = carrier
        self.jurisdiction = jurisdiction

    def definition_for(self, code: str) -> LineItemDefinition:
        definition = self.catalog.get(code)
        if definition is None:
            raise CatalogItemNotFoundError(code)
        return definition

    def resolve_quantity(
        self,
        item: EstimateLineItem,
        definition: LineItemDefinition,
        metrics: ZoneMetrics | None,
    ) -> QuantityResult:
        """Entered quantity wins; otherwise the catalog formula against the zone."""
        if item.quantity is not None:
            return manual_quantity_result(item.quantity)

        if definition.quantity_formula and metrics is not None:
            result = calculate_quantity_from_metrics(definition.quantity_formula, metrics)
            if result.success:
                logger.debug(
                    "quantity_resolved_from_formula",
                    line_item_id=item.id,
                    code=item.code,
                    formula=definition.quantity_formula,
                    quantity=result.quantity,
                )
                return result
            return default_quantity_result(
                0.0, f"Quantity formula failed: {result.error}"
            ).model_copy(update={"warnings": [result.error or "formula error"]})

        return default_quantity_result(0.0, "No quantity entered and no formula available")

    def price(
        self, item: EstimateLineItem, metrics: ZoneMetrics | None = None
    ) -> CalculatedLineItem:
        """Price a single line item."""
        definition = self.definition_for(item.code)
        quantity = self.resolve_quantity(item, definition, metrics)

        material = to_decimal(definition.costs.material) * to_decimal(definition.waste_factor)
        material *= to_decimal(self.jurisdiction.material_multiplier)
        labor = to_decimal(definition.costs.labor) * to_decimal(self.jurisdiction.labor_multiplier)
        equipment = to_decimal(definition.costs.equipment) * to_decimal(
            self.jurisdiction.equipment_multiplier
        )

        if item.unit_price is not None:
            material, labor, equipment = self._split_override(
                item.unit_price, material, labor, equipment
            )

        calculated = CalculatedLineItem(
            line_item_id=item.id,
            code=item.code,
            description=item.description or definition.description,
            category_id=item.category_id or definition.category_id,
            trade_code=item.trade_code or definition.trade_code,
            zone_id=item.zone_id,
            unit=item.unit or definition.unit,
            coverage_code=item.coverage_code or definition.default_coverage_code or CoverageCode.A,
            depreciation_type=definition.depreciation_type,
            quantity=quantity.quantity,
            quantity_source=quantity.source,
            quantity_warnings=quantity.warnings,
            unit_material=material,
            unit_labor=labor,
            unit_equipment=equipment,
            waste_factor=definition.waste_factor,
            is_recoverable=item.is_recoverable,
        )
        return self._totals(calculated, definition.minimum_charge)

    def reprice(
        self,
        calculated: CalculatedLineItem,
        quantity: float | None = None,
        unit_price: Decimal | None = None,
    ) -> CalculatedLineItem:
        """Recompute totals after a rule changed quantity or unit price."""
        update: dict = {}
        if quantity is not None:
            update["quantity"] = quantity
        if unit_price is not None:
            material, labor, equipment = self._split_override(
                unit_price,
                calculated.unit_material,
                calculated.unit_labor,
                calculated.unit_equipment,
            )
            update.update(unit_material=material, unit_labor=labor, unit_equipment=equipment)

        definition = self.catalog.get(calculated.code)
        minimum = definition.minimum_charge if definition else ZERO
        return self._totals(calculated.model_copy(update=update), minimum)

    def apply_rule_results(
        self,
        items: list[CalculatedLineItem],
        rules: RulesEvaluationResult,
    ) -> list[CalculatedLineItem]:
        """Drop denied items and reprice modified ones."""
        adjusted: list[CalculatedLineItem] = []
        for item in items:
            result = rules.result_for(item.line_item_id)
            if result is None:
                adjusted.append(item)
                continue
            if result.status == RuleStatus.DENIED:
                continue
            if result.modified_quantity is not None or result.modified_unit_price is not None:
                adjusted.append(
                    self.reprice(item, result.modified_quantity, result.modified_unit_price)
                )
            else:
                adjusted.append(item)
        return adjusted

    @staticmethod
    def _split_override(
        unit_price: Decimal,
        material: Decimal,
        labor: Decimal,
        equipment: Decimal,
    ) -> tuple[Decimal, Decimal, Decimal]:
        """Spread a unit price across components in the catalog's proportions."""
        total = material + labor + equipment
        if total <= 0:
            return to_decimal(unit_price), ZERO, ZERO
        ratio = to_decimal(unit_price) / total
        return material * ratio, labor * ratio, equipment * ratio

    def _totals(self, item: CalculatedLineItem, minimum_charge: Decimal) -> CalculatedLineItem:
        qty = to_decimal(item.quantity)
        material = item.unit_material * qty
        labor = item.unit_labor * qty
        equipment = item.unit_equipment * qty
        subtotal = material + labor + equipment

        minimum_applied = False
        if minimum_charge > 0 and ZERO < subtotal < minimum_charge:
            scale = minimum_charge / subtotal
            material *= scale
            labor *= scale
            equipment *= scale
            subtotal = minimum_charge
            minimum_applied = True

        material = round_money(material)
        labor = round_money(labor)
        equipment = round_money(equipment)
        subtotal = material + labor + equipment

        if self.carrier.tax_on_materials_only:
            taxable = material + labor if self.jurisdiction.labor_taxable else material
        else:
            taxable = subtotal
        tax = round_money(taxable * to_decimal(self.jurisdiction.tax_rate))

        return item.model_copy(
            update={
                "material_total": material,
                "labor_total": labor,
                "equipment_total": equipment,
                "subtotal": subtotal,
                "minimum_charge_applied": minimum_applied,
                "taxable_amount": taxable,
                "tax_amount": tax,
                "rcv": subtotal + tax,
            }
        )
