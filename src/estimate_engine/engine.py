"""
Estimate Integrity Engine - Main Orchestrator.
Runs the estimate pipeline: metrics -> quantities -> pricing and
depreciation -> carrier/jurisdiction rules -> settlement -> validation.
"""

from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Any

import structlog
from pydantic import BaseModel, Field

from .config import EngineSettings, get_settings
from .core.models import (
    CarrierProfile,
    Estimate,
    JurisdictionProfile,
    LineItemDefinition,
    RulesEvaluationResult,
    ValidationResult,
)
from .core.rule_engine import CarrierJurisdictionRulesEngine
from .core.zone_metrics import ZoneMetrics, ZoneMetricsCalculator
from .errors import EstimateLockedError, LineItemNotFoundError, ZoneNotFoundError
from .pricing.depreciation import DepreciationCalculator
from .pricing.pricing import CalculatedLineItem, LineItemPricer
from .pricing.settlement import SettlementCalculator, SettlementResult
from .reporting.formatter import ValidationReportFormatter
from .validation.config import ValidationConfig
from .validation.validator import EstimateValidator

logger = structlog.get_logger(__name__)


class EstimateCalculation(BaseModel):
    """Everything one pipeline pass produced for an estimate."""

    estimate_id: str
    calculated_at: datetime
    zone_metrics: dict[str, ZoneMetrics] = Field(default_factory=dict)
    priced_items: list[CalculatedLineItem] = Field(default_factory=list)
    line_items: list[CalculatedLineItem] = Field(default_factory=list)
    denied_item_ids: list[str] = Field(default_factory=list)
    rules: RulesEvaluationResult
    settlement: SettlementResult

    def item(self, line_item_id: str) -> CalculatedLineItem:
        """
        Final priced record for a line item, or its pre-rule record if it was denied.

        Raises:
            LineItemNotFoundError: If the estimate has no such line item
        """
        for calc in (*self.line_items, *self.priced_items):
            if calc.line_item_id == line_item_id:
                return calc
        raise LineItemNotFoundError(line_item_id, self.estimate_id)


class EstimateEvaluation(BaseModel):
    """Calculation plus the validation verdict for the recalculated estimate."""

    estimate: Estimate
    calculation: EstimateCalculation
    validation: ValidationResult


class EstimateEngine:
    """
    Main orchestrator for the Estimate Integrity Engine.

    Every pass works on data already in memory; fetching and persisting
    belongs to the service layer.
    """

    def __init__(
        self,
        settings: EngineSettings | None = None,
        validation_config: ValidationConfig | None = None,
        include_rules: bool = True,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            settings: Engine settings (defaults to the cached environment settings)
            validation_config: Validation tables (defaults to the settings' file, else built-in)
            include_rules: Fold carrier/jurisdiction rule outcomes into validation
            clock: Time source for audit timestamps
        """
        self.settings = settings or get_settings()
        self.include_rules = include_rules
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._validation_config = validation_config

        self._metrics_calculator: ZoneMetricsCalculator | None = None
        self._rules_engine: CarrierJurisdictionRulesEngine | None = None
        self._validator: EstimateValidator | None = None

    @property
    def metrics_calculator(self) -> ZoneMetricsCalculator:
        """Get or create the zone metrics calculator."""
        if self._metrics_calculator is None:
            self._metrics_calculator = ZoneMetricsCalculator(
                default_height_ft=self.settings.default_height_ft
            )
        return self._metrics_calculator

    @property
    def rules_engine(self) -> CarrierJurisdictionRulesEngine:
        """Get or create the rules engine."""
        if self._rules_engine is None:
            self._rules_engine = CarrierJurisdictionRulesEngine(clock=self._clock)
        return self._rules_engine

    @property
    def validation_config(self) -> ValidationConfig:
        if self._validation_config is None:
            path = self.settings.validation_config_path
            self._validation_config = (
                ValidationConfig.from_file(path) if path else ValidationConfig.default()
            )
        return self._validation_config

    @property
    def validator(self) -> EstimateValidator:
        """Get or create the estimate validator."""
        if self._validator is None:
            self._validator = EstimateValidator(
                config=self.validation_config,
                metrics_calculator=self.metrics_calculator,
                clock=self._clock,
            )
        return self._validator

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def compute_zone_metrics(self, estimate: Estimate) -> dict[str, ZoneMetrics]:
        return {zone.id: self.metrics_calculator.compute(zone) for zone in estimate.zones}

    def calculate(
        self,
        estimate: Estimate,
        catalog: Mapping[str, LineItemDefinition],
        carrier: CarrierProfile | None = None,
        jurisdiction: JurisdictionProfile | None = None,
    ) -> EstimateCalculation:
        """
        Run the calculation pipeline without touching the estimate.

        Raises:
            ZoneNotFoundError: If a line item references an unknown zone
            CatalogItemNotFoundError: If a line item code is not in the catalog
        """
        carrier = carrier or CarrierProfile.default(self.settings)
        jurisdiction = jurisdiction or JurisdictionProfile.default(self.settings)

        zone_metrics = self.compute_zone_metrics(estimate)
        pricer = LineItemPricer(catalog, carrier, jurisdiction)

        priced: list[CalculatedLineItem] = []
        for item in estimate.line_items:
            if item.zone_id is not None and item.zone_id not in zone_metrics:
                raise ZoneNotFoundError(item.zone_id, estimate.id)
            metrics = zone_metrics.get(item.zone_id) if item.zone_id else None
            priced.append(pricer.price(item, metrics))

        rules = self.rules_engine.evaluate_estimate(
            estimate,
            carrier=carrier,
            jurisdiction=jurisdiction,
            priced={calc.line_item_id: calc for calc in priced},
        )
        adjusted = pricer.apply_rule_results(priced, rules)
        depreciated = self._depreciate(estimate, adjusted, carrier)
        settlement = SettlementCalculator(carrier, jurisdiction).calculate(
            depreciated, estimate.deductibles
        )

        kept = {calc.line_item_id for calc in depreciated}
        calculation = EstimateCalculation(
            estimate_id=estimate.id,
            calculated_at=self._clock(),
            zone_metrics=zone_metrics,
            priced_items=priced,
            line_items=depreciated,
            denied_item_ids=[c.line_item_id for c in priced if c.line_item_id not in kept],
            rules=rules,
            settlement=settlement,
        )

        logger.info(
            "estimate_calculated",
            estimate_id=estimate.id,
            line_items=len(depreciated),
            denied=len(calculation.denied_item_ids),
            rules_degraded=rules.degraded,
            total_rcv=str(settlement.totals.total_rcv),
            net_claim=str(settlement.totals.net_claim_total),
        )
        return calculation

    def _depreciate(
        self,
        estimate: Estimate,
        items: list[CalculatedLineItem],
        carrier: CarrierProfile,
    ) -> list[CalculatedLineItem]:
        calculator = DepreciationCalculator(max_depreciation_pct=self.settings.max_depreciation_pct)
        sources = {line.id: line for line in estimate.line_items}

        depreciated: list[CalculatedLineItem] = []
        for calc in items:
            line = sources[calc.line_item_id]
            category_code = calc.category_id.split(".")[0] if calc.category_id else None
            result = calculator.calculate(
                category_code=category_code,
                depreciation_type=calc.depreciation_type,
                age_years=line.age_years,
                condition=line.condition,
                rcv=calc.rcv,
                is_recoverable=calc.is_recoverable,
                carrier_max_pct=carrier.max_depreciation_pct,
            )
            depreciated.append(calc.model_copy(update={"depreciation": result}))
        return depreciated

    def recalculate(
        self,
        estimate: Estimate,
        catalog: Mapping[str, LineItemDefinition],
        carrier: CarrierProfile | None = None,
        jurisdiction: JurisdictionProfile | None = None,
    ) -> tuple[Estimate, EstimateCalculation]:
        """
        Calculate and write results back onto a copy of the estimate.

        Raises:
            EstimateLockedError: If the estimate has been submitted
        """
        if estimate.is_locked:
            raise EstimateLockedError(estimate.id)
        calculation = self.calculate(estimate, catalog, carrier, jurisdiction)
        return self.apply_calculation(estimate, calculation), calculation

    @staticmethod
    def apply_calculation(estimate: Estimate, calculation: EstimateCalculation) -> Estimate:
        """Copy computed cost and depreciation fields onto the estimate's line items."""
        final = {c.line_item_id: c for c in calculation.line_items}
        priced = {c.line_item_id: c for c in calculation.priced_items}

        line_items = []
        for line in estimate.line_items:
            calc = final.get(line.id) or priced.get(line.id)
            if calc is None:
                line_items.append(line)
                continue
            update: dict[str, Any] = {
                "material_total": calc.material_total,
                "labor_total": calc.labor_total,
                "equipment_total": calc.equipment_total,
                "subtotal": calc.subtotal,
                "tax_amount": calc.tax_amount,
                "rcv": calc.rcv,
                "acv": calc.acv,
                "depreciation_amount": calc.depreciation_amount,
            }
            if calc.depreciation is not None and calc.depreciation.is_depreciable:
                update["depreciation_pct"] = calc.depreciation.depreciation_pct
                update["useful_life_years"] = calc.depreciation.useful_life_years
            if line.coverage_code is None and line.id in final:
                update["coverage_code"] = calc.coverage_code
            line_items.append(line.model_copy(update=update))

        return estimate.model_copy(update={"line_items": line_items})

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(
        self,
        estimate: Estimate,
        catalog: Mapping[str, LineItemDefinition] | None = None,
        calculation: EstimateCalculation | None = None,
    ) -> ValidationResult:
        """Validate an estimate; with a calculation, rule outcomes are folded in."""
        zone_metrics = calculation.zone_metrics if calculation else None
        if calculation is not None and self.include_rules:
            return self.validator.validate_with_rules(
                estimate, calculation.rules, catalog, zone_metrics
            )
        return self.validator.validate(estimate, catalog, zone_metrics)

    def evaluate(
        self,
        estimate: Estimate,
        catalog: Mapping[str, LineItemDefinition],
        carrier: CarrierProfile | None = None,
        jurisdiction: JurisdictionProfile | None = None,
    ) -> EstimateEvaluation:
        """
        Calculate and validate. Read-only: works on locked estimates too.

        Args:
            estimate: The estimate to evaluate
            catalog: Line item definitions keyed by code
            carrier: Carrier profile (defaults to settings-derived profile)
            jurisdiction: Jurisdiction profile (defaults to settings-derived profile)

        Returns:
            The recalculated estimate, the calculation and the validation result
        """
        calculation = self.calculate(estimate, catalog, carrier, jurisdiction)
        updated = self.apply_calculation(estimate, calculation)
        validation = self.validate(updated, catalog, calculation)
        return EstimateEvaluation(estimate=updated, calculation=calculation, validation=validation)

    def evaluate_with_formatter(
        self,
        estimate: Estimate,
        catalog: Mapping[str, LineItemDefinition],
        carrier: CarrierProfile | None = None,
        jurisdiction: JurisdictionProfile | None = None,
    ) -> ValidationReportFormatter:
        """Evaluate and return a formatter for output."""
        evaluation = self.evaluate(estimate, catalog, carrier, jurisdiction)
        return ValidationReportFormatter(
            evaluation.validation,
            rules=evaluation.calculation.rules,
            settlement=evaluation.calculation.settlement,
        )

    def configure(
        self,
        include_rules: bool | None = None,
        validation_config: ValidationConfig | None = None,
    ) -> "EstimateEngine":
        """
        Configure the engine.

        Returns:
            Self for method chaining
        """
        if include_rules is not None:
            self.include_rules = include_rules
        if validation_config is not None:
            self._validation_config = validation_config
            self._validator = None
        return self


# Convenience function for one-off checks
def audit_estimate(
    estimate: Estimate | dict[str, Any],
    catalog: Mapping[str, LineItemDefinition],
    carrier: CarrierProfile | None = None,
    jurisdiction: JurisdictionProfile | None = None,
) -> ValidationResult:
    """
    Calculate and validate an estimate with default settings.

    Args:
        estimate: Estimate model or its dict form
        catalog: Line item definitions keyed by code
        carrier: Optional carrier profile
        jurisdiction: Optional jurisdiction profile

    Returns:
        Validation result including carrier/jurisdiction rule issues
    """
    if isinstance(estimate, dict):
        estimate = Estimate.model_validate(estimate)
    return EstimateEngine().evaluate(estimate, catalog, carrier, jurisdiction).validation
