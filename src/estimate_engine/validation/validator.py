"""
Estimate validation (linting).

Structural and plausibility checks over an estimate's line items and
zones, merged with the carrier/jurisdiction rules outcome into one
pass/fail verdict. Only errors block submission.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import structlog

from ..core.formula import calculate_quantity_from_metrics
from ..core.models import (
    AppliedRule,
    Estimate,
    EstimateLineItem,
    LineItemDefinition,
    RuleSource,
    RulesEvaluationResult,
    RuleStatus,
    Severity,
    ValidationCategory,
    ValidationIssue,
    ValidationResult,
)
from ..core.zone_metrics import ZoneMetrics, ZoneMetricsCalculator
from .config import ValidationConfig

logger = structlog.get_logger(__name__)


@dataclass
class ValidationContext:
    """Everything a check needs, resolved once per validation run."""

    estimate: Estimate
    catalog: Mapping[str, LineItemDefinition]
    zone_metrics: dict[str, ZoneMetrics]
    config: ValidationConfig

    @property
    def items(self) -> list[EstimateLineItem]:
        return self.estimate.line_items

    @property
    def present_codes(self) -> set[str]:
        return {item.code for item in self.estimate.line_items}

    def definition(self, item: EstimateLineItem) -> LineItemDefinition | None:
        return self.catalog.get(item.code)

    def unit_of(self, item: EstimateLineItem) -> str:
        if item.unit:
            return item.unit
        definition = self.definition(item)
        return definition.unit if definition else "EA"

    def quantity_of(self, item: EstimateLineItem) -> float:
        """Entered quantity, else the catalog formula against the item's zone."""
        if item.quantity is not None:
            return item.quantity
        definition = self.definition(item)
        metrics = self.zone_metrics.get(item.zone_id) if item.zone_id else None
        if definition and definition.quantity_formula and metrics is not None:
            result = calculate_quantity_from_metrics(definition.quantity_formula, metrics)
            if result.success:
                return result.quantity
        return 0.0

    def zone_name(self, zone_id: str | None) -> str | None:
        zone = self.estimate.get_zone(zone_id)
        return zone.name if zone else None


@dataclass
class ValidationCheck:
    """Definition of a validation check."""

    check_id: str
    name: str
    description: str
    category: ValidationCategory
    run: Callable[[ValidationContext], list[ValidationIssue]]
    enabled: bool = True
    metadata: dict[str, Any] = field(default_factory=dict)


class EstimateValidator:
    """
    Runs registered checks over an estimate.

    Checks can be added, removed, enabled or disabled at runtime. A check
    that raises is logged and reported as a single info issue; the rest of
    the run continues.
    """

    def __init__(
        self,
        config: ValidationConfig | None = None,
        metrics_calculator: ZoneMetricsCalculator | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.config = config or ValidationConfig.default()
        self.metrics_calculator = metrics_calculator or ZoneMetricsCalculator()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._checks: dict[str, ValidationCheck] = {}
        self._register_checks()

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def _register_checks(self) -> None:
        """Register the built-in checks."""
        self.add_check(
            ValidationCheck(
                check_id="VAL-DEPENDENCY",
                name="Required Items",
                description="Every item's required companion codes are present",
                category=ValidationCategory.DEPENDENCY,
                run=self._check_dependencies,
            )
        )
        self.add_check(
            ValidationCheck(
                check_id="VAL-QUANTITY",
                name="Quantity Plausibility",
                description="Quantities are positive and plausible for the zone geometry",
                category=ValidationCategory.QUANTITY,
                run=self._check_quantities,
            )
        )
        self.add_check(
            ValidationCheck(
                check_id="VAL-EXCLUSION",
                name="Mutually Exclusive Items",
                description="No two mutually exclusive items appear together",
                category=ValidationCategory.EXCLUSION,
                run=self._check_exclusions,
            )
        )
        self.add_check(
            ValidationCheck(
                check_id="VAL-REPLACEMENT",
                name="Replaced Items",
                description="A replacing item and the item it replaces are not both present",
                category=ValidationCategory.REPLACEMENT,
                run=self._check_replacements,
            )
        )
        self.add_check(
            ValidationCheck(
                check_id="VAL-COMPLETENESS",
                name="Companion Items",
                description="Common companion and setup items are present",
                category=ValidationCategory.COMPLETENESS,
                run=self._check_completeness,
            )
        )
        self.add_check(
            ValidationCheck(
                check_id="VAL-DEPRECIATION",
                name="Depreciation Support",
                description="Depreciation is explained and supported by item age",
                category=ValidationCategory.DEPRECIATION,
                run=self._check_depreciation,
            )
        )
        self.add_check(
            ValidationCheck(
                check_id="VAL-COVERAGE",
                name="Coverage Assignment",
                description="Every item is assigned to a coverage",
                category=ValidationCategory.COVERAGE,
                run=self._check_coverage,
            )
        )

    def add_check(self, check: ValidationCheck) -> None:
        self._checks[check.check_id] = check

    def remove_check(self, check_id: str) -> bool:
        return self._checks.pop(check_id, None) is not None

    def get_check(self, check_id: str) -> ValidationCheck | None:
        return self._checks.get(check_id)

    def enable_check(self, check_id: str) -> bool:
        if check_id in self._checks:
            self._checks[check_id].enabled = True
            return True
        return False

    def disable_check(self, check_id: str) -> bool:
        if check_id in self._checks:
            self._checks[check_id].enabled = False
            return True
        return False

    def list_checks(self) -> list[dict[str, Any]]:
        return [
            {
                "check_id": check.check_id,
                "name": check.name,
                "category": check.category.value,
                "enabled": check.enabled,
                "description": check.description,
            }
            for check in self._checks.values()
        ]

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def validate(
        self,
        estimate: Estimate,
        catalog: Mapping[str, LineItemDefinition] | None = None,
        zone_metrics: dict[str, ZoneMetrics] | None = None,
    ) -> ValidationResult:
        """Run the structural checks only. Has no side effects."""
        context = self._context(estimate, catalog, zone_metrics)
        issues = self.run_checks(context)
        return self._result(estimate, issues)

    def validate_with_rules(
        self,
        estimate: Estimate,
        rules_result: RulesEvaluationResult,
        catalog: Mapping[str, LineItemDefinition] | None = None,
        zone_metrics: dict[str, ZoneMetrics] | None = None,
    ) -> ValidationResult:
        """Structural checks plus the carrier/jurisdiction rules outcome."""
        context = self._context(estimate, catalog, zone_metrics)
        issues = self.run_checks(context)
        issues.extend(self.rule_issues(estimate, rules_result))
        return self._result(estimate, issues, rules_result)

    def run_checks(self, context: ValidationContext) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        for check in self._checks.values():
            if not check.enabled:
                continue
            try:
                issues.extend(check.run(context))
            except Exception as e:
                logger.exception(
                    "validation_check_failed",
                    check_id=check.check_id,
                    estimate_id=context.estimate.id,
                    error=str(e),
                )
                issues.append(
                    ValidationIssue(
                        code="SYS001",
                        severity=Severity.INFO,
                        category=check.category,
                        message=f"Check '{check.name}' could not be completed",
                        details=f"{type(e).__name__}: {e}",
                    )
                )
        return issues

    def _context(
        self,
        estimate: Estimate,
        catalog: Mapping[str, LineItemDefinition] | None,
        zone_metrics: dict[str, ZoneMetrics] | None,
    ) -> ValidationContext:
        if zone_metrics is None:
            zone_metrics = {
                zone.id: self.metrics_calculator.compute(zone) for zone in estimate.zones
            }
        return ValidationContext(
            estimate=estimate,
            catalog=catalog or {},
            zone_metrics=zone_metrics,
            config=self.config,
        )

    def _result(
        self,
        estimate: Estimate,
        issues: list[ValidationIssue],
        rules_result: RulesEvaluationResult | None = None,
    ) -> ValidationResult:
        meta: dict[str, Any] = {
            "validated_at": self._clock(),
            "estimate_id": estimate.id,
            "line_item_count": len(estimate.line_items),
            "zone_count": len(estimate.zones),
            "config_version": self.config.version,
        }
        if rules_result is not None:
            meta["rules_evaluated"] = True
            meta["rules_degraded"] = rules_result.degraded

        result = ValidationResult.from_issues(issues, meta)
        logger.info(
            "estimate_validated",
            estimate_id=estimate.id,
            is_valid=result.is_valid,
            errors=result.error_count,
            warnings=result.warning_count,
            info=result.info_count,
        )
        return result

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def _check_dependencies(self, ctx: ValidationContext) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        present = ctx.present_codes

        for item in ctx.items:
            definition = ctx.definition(item)
            if definition is None:
                continue
            for required in definition.requires_items:
                if required in present:
                    continue
                issues.append(
                    ValidationIssue(
                        code="DEP001",
                        severity=Severity.WARNING,
                        category=ValidationCategory.DEPENDENCY,
                        message=f"{item.code} requires {required} which is missing",
                        suggestion=f"Consider adding {required} to the estimate",
                        related_items=[item.code, required],
                        zone_id=item.zone_id,
                        zone_name=ctx.zone_name(item.zone_id),
                        carrier_sensitive=True,
                    )
                )
        return issues

    def _check_quantities(self, ctx: ValidationContext) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []

        for item in ctx.items:
            quantity = ctx.quantity_of(item)
            unit = ctx.unit_of(item)

            if quantity <= 0:
                issues.append(
                    ValidationIssue(
                        code="QTY002",
                        severity=Severity.ERROR,
                        category=ValidationCategory.QUANTITY,
                        message=f"{item.code} has zero or negative quantity",
                        suggestion="Remove the item or correct the quantity",
                        related_items=[item.code],
                        zone_id=item.zone_id,
                        zone_name=ctx.zone_name(item.zone_id),
                    )
                )
                continue

            metrics = ctx.zone_metrics.get(item.zone_id) if item.zone_id else None
            if metrics is None:
                continue

            maximum = self.plausible_maximum(unit, metrics)
            if quantity > maximum:
                issues.append(
                    ValidationIssue(
                        code="QTY001",
                        severity=Severity.WARNING,
                        category=ValidationCategory.QUANTITY,
                        message=(
                            f"Quantity {quantity:g} {unit} for {item.code} "
                            "exceeds plausible maximum"
                        ),
                        details=(
                            f"Based on zone geometry, maximum expected is "
                            f"~{maximum:.0f} {unit}"
                        ),
                        suggestion=(
                            "Verify the quantity is correct or that the zone "
                            "dimensions are accurate"
                        ),
                        related_items=[item.code],
                        zone_id=item.zone_id,
                        zone_name=ctx.zone_name(item.zone_id),
                    )
                )
        return issues

    def plausible_maximum(self, unit: str, metrics: ZoneMetrics) -> float:
        """Largest quantity the zone geometry can reasonably support."""
        multiplier = self.config.multiplier_for(unit)
        unit = unit.upper()
        if unit == "SF":
            return (metrics.floor_sf + metrics.ceiling_sf + metrics.wall_sf) * multiplier
        if unit == "LF":
            return metrics.perimeter_lf * multiplier
        if unit == "SY":
            return (metrics.floor_sf / 9) * multiplier
        if unit == "SQ":
            return ((metrics.roof_sf or metrics.floor_sf) / 100) * multiplier
        return multiplier

    def _check_exclusions(self, ctx: ValidationContext) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        present = ctx.present_codes
        reported: set[tuple[str, str]] = set()

        for item in ctx.items:
            definition = ctx.definition(item)
            if definition is None:
                continue
            for excluded in definition.excludes_items:
                if excluded not in present or excluded == item.code:
                    continue
                pair = tuple(sorted((item.code, excluded)))
                if pair in reported:
                    continue
                reported.add(pair)
                first, second = pair
                issues.append(
                    ValidationIssue(
                        code="EXC001",
                        severity=Severity.WARNING,
                        category=ValidationCategory.EXCLUSION,
                        message=f"{first} and {second} are mutually exclusive",
                        suggestion="Review whether both items are necessary",
                        related_items=[first, second],
                        zone_id=item.zone_id,
                        zone_name=ctx.zone_name(item.zone_id),
                    )
                )
        return issues

    def _check_replacements(self, ctx: ValidationContext) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        present = ctx.present_codes
        reported: set[tuple[str, str]] = set()

        for item in ctx.items:
            definition = ctx.definition(item)
            if definition is None:
                continue
            for replaced in definition.replaces_items:
                key = (item.code, replaced)
                if replaced not in present or key in reported:
                    continue
                reported.add(key)
                issues.append(
                    ValidationIssue(
                        code="REP001",
                        severity=Severity.WARNING,
                        category=ValidationCategory.REPLACEMENT,
                        message=f"{item.code} should replace {replaced}, but both are present",
                        suggestion=f"Remove {replaced} from the estimate",
                        related_items=[item.code, replaced],
                        zone_id=item.zone_id,
                        zone_name=ctx.zone_name(item.zone_id),
                    )
                )
        return issues

    def _check_completeness(self, ctx: ValidationContext) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        present = ctx.present_codes
        seen: set[str] = set()

        for item in ctx.items:
            if item.code in seen:
                continue
            seen.add(item.code)

            companions = ctx.config.common_companions.get(item.code)
            if companions and not any(c in present for c in companions):
                issues.append(
                    ValidationIssue(
                        code="CMP001",
                        severity=Severity.INFO,
                        category=ValidationCategory.COMPLETENESS,
                        message=f"{item.code} typically includes companion items",
                        details=f"Common companions: {', '.join(companions)}",
                        suggestion="Consider if these items should be added",
                        related_items=[item.code, *companions],
                        zone_id=item.zone_id,
                        zone_name=ctx.zone_name(item.zone_id),
                    )
                )

            if item.code in ctx.config.standalone_codes:
                predecessors = ctx.config.predecessors_of(item.code)
                if not any(p in present for p in predecessors):
                    issues.append(
                        ValidationIssue(
                            code="CMP002",
                            severity=Severity.INFO,
                            category=ValidationCategory.COMPLETENESS,
                            message=f"{item.code} is present without related setup items",
                            details="This item is typically used in conjunction with other items",
                            suggestion="Verify this item is needed independently",
                            related_items=[item.code],
                            zone_id=item.zone_id,
                            zone_name=ctx.zone_name(item.zone_id),
                        )
                    )
        return issues

    def _check_depreciation(self, ctx: ValidationContext) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        threshold = ctx.config.high_depreciation_pct

        for item in ctx.items:
            pct = item.depreciation_pct or 0.0
            zone_name = ctx.zone_name(item.zone_id)

            if pct > 0 and not item.depreciation_reason:
                issues.append(
                    ValidationIssue(
                        code="DPR001",
                        severity=Severity.INFO,
                        category=ValidationCategory.DEPRECIATION,
                        message=f"{item.code} has depreciation but no explanation",
                        details=f"Depreciation is {pct:g}% but no reason is documented",
                        suggestion="Add a depreciation reason for audit trail",
                        related_items=[item.code],
                        zone_id=item.zone_id,
                        zone_name=zone_name,
                    )
                )

            if (
                item.age_years
                and item.useful_life_years
                and item.age_years > item.useful_life_years
            ):
                issues.append(
                    ValidationIssue(
                        code="DPR002",
                        severity=Severity.WARNING,
                        category=ValidationCategory.DEPRECIATION,
                        message=(
                            f"{item.code} age ({item.age_years:g}y) exceeds useful life "
                            f"({item.useful_life_years:g}y)"
                        ),
                        details="Item may be at maximum depreciation",
                        related_items=[item.code],
                        zone_id=item.zone_id,
                        zone_name=zone_name,
                    )
                )

            if pct > threshold and not item.age_years:
                issues.append(
                    ValidationIssue(
                        code="DPR003",
                        severity=Severity.WARNING,
                        category=ValidationCategory.DEPRECIATION,
                        message=(
                            f"{item.code} has high depreciation ({pct:g}%) "
                            "but no age documented"
                        ),
                        details="Age should be documented for significant depreciation",
                        suggestion="Add age_years to support the depreciation calculation",
                        related_items=[item.code],
                        zone_id=item.zone_id,
                        zone_name=zone_name,
                        carrier_sensitive=True,
                    )
                )
        return issues

    def _check_coverage(self, ctx: ValidationContext) -> list[ValidationIssue]:
        missing = [item for item in ctx.items if item.coverage_code is None]
        if not missing:
            return []

        limit = ctx.config.coverage_example_limit
        examples = ", ".join(item.code for item in missing[:limit])
        if len(missing) > limit:
            examples += "..."

        return [
            ValidationIssue(
                code="COV001",
                severity=Severity.INFO,
                category=ValidationCategory.COVERAGE,
                message=f"{len(missing)} item(s) have no coverage assignment",
                details=f"Items: {examples}",
                suggestion="Assign coverage codes (A, B, C) to all items",
                related_items=[item.code for item in missing],
            )
        ]

    # ------------------------------------------------------------------
    # Rules outcome
    # ------------------------------------------------------------------

    def rule_issues(
        self, estimate: Estimate, rules_result: RulesEvaluationResult
    ) -> list[ValidationIssue]:
        """Translate a rules evaluation into carrier/jurisdiction/documentation issues."""
        if rules_result.degraded:
            return [
                ValidationIssue(
                    code="RUL001",
                    severity=Severity.INFO,
                    category=ValidationCategory.RULES,
                    message="Carrier and jurisdiction rules could not be evaluated",
                    details=rules_result.error,
                    suggestion="Review the carrier and jurisdiction rule configuration",
                )
            ]

        items = {item.id: item for item in estimate.line_items}
        issues: list[ValidationIssue] = []

        for result in rules_result.line_item_results:
            item = items.get(result.line_item_id)
            zone_id = item.zone_id if item else None
            zone_name = self._zone_name(estimate, zone_id)

            for rule in result.applied_rules:
                issue = self._issue_for_rule(result.line_item_code, rule, result.status)
                if issue is None:
                    continue
                issues.append(
                    issue.model_copy(update={"zone_id": zone_id, "zone_name": zone_name})
                )

            if result.documentation_required:
                issues.append(
                    ValidationIssue(
                        code="DOC001",
                        severity=Severity.WARNING,
                        category=ValidationCategory.DOCUMENTATION,
                        message=(
                            f"{result.line_item_code} requires documentation: "
                            f"{', '.join(result.documentation_required)}"
                        ),
                        suggestion="Attach the required documentation before submission",
                        related_items=[result.line_item_code],
                        zone_id=zone_id,
                        zone_name=zone_name,
                        carrier_sensitive=True,
                    )
                )

        for effect in rules_result.estimate_effects:
            warn = effect.effect_type == "warn"
            issues.append(
                ValidationIssue(
                    code="JUR004" if warn else "JUR005",
                    severity=Severity.WARNING if warn else Severity.INFO,
                    category=self._category_for(effect.rule_source),
                    message=effect.explanation,
                    details=f"Rule {effect.rule_code}",
                )
            )

        return issues

    def _issue_for_rule(
        self, code: str, rule: AppliedRule, status: RuleStatus
    ) -> ValidationIssue | None:
        prefix = "CRR" if rule.rule_source == RuleSource.CARRIER else "JUR"
        category = self._category_for(rule.rule_source)
        source = rule.rule_source.value

        if rule.effect_type == "exclude":
            return ValidationIssue(
                code=f"{prefix}001",
                severity=Severity.WARNING,
                category=category,
                message=f"{code} denied by {source} rule {rule.rule_code}",
                details=rule.explanation,
                suggestion="Remove the item or document why it is necessary",
                related_items=[code],
                carrier_sensitive=rule.rule_source == RuleSource.CARRIER,
            )
        if rule.effect_type in ("cap_quantity", "cap_cost", "modify_pct"):
            return ValidationIssue(
                code=f"{prefix}002",
                severity=Severity.INFO,
                category=category,
                message=f"{code} modified by {source} rule {rule.rule_code}",
                details=rule.explanation,
                related_items=[code],
            )
        if rule.effect_type == "warn":
            return ValidationIssue(
                code=f"{prefix}003",
                severity=Severity.WARNING,
                category=category,
                message=f"{code}: {rule.explanation}",
                details=f"Rule {rule.rule_code}",
                related_items=[code],
            )
        # require_doc is reported once per item as DOC001
        return None

    @staticmethod
    def _category_for(source: RuleSource) -> ValidationCategory:
        if source == RuleSource.CARRIER:
            return ValidationCategory.CARRIER
        return ValidationCategory.JURISDICTION

    @staticmethod
    def _zone_name(estimate: Estimate, zone_id: str | None) -> str | None:
        zone = estimate.get_zone(zone_id)
        return zone.name if zone else None
