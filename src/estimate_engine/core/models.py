"""
Core data models for the Estimate Integrity Engine.
Uses Pydantic for validation and serialization.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from ..config import EngineSettings, get_settings


class ZoneType(str, Enum):
    """Kinds of estimated area."""

    ROOM = "room"
    ROOF = "roof"
    EXTERIOR = "exterior"
    SUBROOM = "subroom"


class WaterCategory(int, Enum):
    """Water damage categories per IICRC S500 standard."""

    CATEGORY_1 = 1  # Clean water
    CATEGORY_2 = 2  # Gray water
    CATEGORY_3 = 3  # Black water (sewage/contaminated)


class Condition(str, Enum):
    """Observed condition of the damaged item before loss."""

    GOOD = "Good"
    AVERAGE = "Average"
    POOR = "Poor"


class CoverageCode(str, Enum):
    """Policy coverage buckets."""

    A = "A"  # Dwelling
    B = "B"  # Other structures
    C = "C"  # Contents
    D = "D"  # Loss of use


class Severity(str, Enum):
    """Severity levels for validation issues."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class ValidationCategory(str, Enum):
    """Categories for validation issues."""

    DEPENDENCY = "dependency"
    QUANTITY = "quantity"
    EXCLUSION = "exclusion"
    REPLACEMENT = "replacement"
    COMPLETENESS = "completeness"
    DEPRECIATION = "depreciation"
    COVERAGE = "coverage"
    CARRIER = "carrier"
    JURISDICTION = "jurisdiction"
    DOCUMENTATION = "documentation"
    RULES = "rules"


class RuleSource(str, Enum):
    """Origin of an applied rule."""

    CARRIER = "carrier"
    JURISDICTION = "jurisdiction"


class RuleStatus(str, Enum):
    """Terminal states of a line item after rules evaluation."""

    ALLOWED = "allowed"
    MODIFIED = "modified"
    DENIED = "denied"
    WARNING = "warning"


class RuleTargetType(str, Enum):
    """What a carrier or jurisdiction rule targets."""

    LINE_ITEM = "line_item"
    CATEGORY = "category"
    TRADE = "trade"
    ESTIMATE = "estimate"


class EstimateStatus(str, Enum):
    """Estimate lifecycle states."""

    DRAFT = "draft"
    PENDING_REVIEW = "pending_review"
    APPROVED = "approved"
    REJECTED = "rejected"


# ============================================
# Geometry
# ============================================


class MissingWall(BaseModel):
    """Opening (door, window, pass-through) that removes wall area."""

    id: str | None = None
    name: str | None = None
    width_ft: float = Field(gt=0)
    height_ft: float = Field(gt=0)
    quantity: int = Field(default=1, ge=1)
    goes_to_floor: bool = True
    goes_to_ceiling: bool = False


class Subroom(BaseModel):
    """Closet, bump-out or cut-out attached to a zone."""

    id: str | None = None
    name: str | None = None
    length_ft: float = Field(gt=0)
    width_ft: float = Field(gt=0)
    height_ft: float | None = Field(default=None, gt=0)
    is_addition: bool = False

    @property
    def footprint_sf(self) -> float:
        return self.length_ft * self.width_ft


class Zone(BaseModel):
    """A room or geometric area being estimated."""

    id: str
    name: str = ""
    zone_type: ZoneType = ZoneType.ROOM
    room_type: str | None = None
    length_ft: float | None = Field(default=None, gt=0)
    width_ft: float | None = Field(default=None, gt=0)
    height_ft: float | None = Field(default=None, gt=0)
    pitch: str | None = None
    pitch_multiplier: float | None = Field(default=None, gt=0)
    sketch_polygon: list[tuple[float, float]] | None = None
    damage_type: str | None = None
    damage_severity: str | None = None
    water_category: WaterCategory | None = None
    missing_walls: list[MissingWall] = Field(default_factory=list)
    subrooms: list[Subroom] = Field(default_factory=list)


# ============================================
# Catalog and estimate line items
# ============================================


class CostComponents(BaseModel):
    """Per-unit cost split of a catalog item."""

    material: Decimal = Field(default=Decimal("0"), ge=0)
    labor: Decimal = Field(default=Decimal("0"), ge=0)
    equipment: Decimal = Field(default=Decimal("0"), ge=0)

    @property
    def total(self) -> Decimal:
        return self.material + self.labor + self.equipment


class LineItemDefinition(BaseModel):
    """Catalog line item, owned by the catalog collaborator."""

    code: str
    description: str = ""
    category_id: str | None = None
    unit: str = "EA"
    costs: CostComponents = Field(default_factory=CostComponents)
    waste_factor: float = Field(default=1.0, ge=1.0)
    minimum_charge: Decimal = Field(default=Decimal("0"), ge=0)
    quantity_formula: str | None = None
    requires_items: list[str] = Field(default_factory=list)
    excludes_items: list[str] = Field(default_factory=list)
    replaces_items: list[str] = Field(default_factory=list)
    auto_add_items: list[str] = Field(default_factory=list)
    default_coverage_code: CoverageCode | None = None
    depreciation_type: str | None = None
    trade_code: str | None = None

    @property
    def category_code(self) -> str | None:
        """Top-level category ("06" for "06.2"), used for depreciation schedules."""
        if not self.category_id:
            return None
        return self.category_id.split(".")[0]


class EstimateLineItem(BaseModel):
    """
    A catalog item placed on an estimate.

    Input fields are supplied by the estimator; the cost and depreciation
    fields are written back by recalculation.
    """

    id: str
    code: str
    description: str = ""
    quantity: float | None = None
    unit: str | None = None
    unit_price: Decimal | None = Field(default=None, ge=0)
    category_id: str | None = None
    trade_code: str | None = None
    zone_id: str | None = None
    coverage_code: CoverageCode | None = None
    age_years: float | None = Field(default=None, ge=0)
    condition: Condition = Condition.AVERAGE
    damage_type: str | None = None
    water_category: WaterCategory | None = None
    depreciation_reason: str | None = None
    is_recoverable: bool = True

    # Computed by recalculation
    material_total: Decimal = Decimal("0")
    labor_total: Decimal = Decimal("0")
    equipment_total: Decimal = Decimal("0")
    subtotal: Decimal = Decimal("0")
    tax_amount: Decimal = Decimal("0")
    rcv: Decimal = Decimal("0")
    depreciation_pct: float | None = None
    depreciation_amount: Decimal = Decimal("0")
    acv: Decimal = Decimal("0")
    useful_life_years: float | None = None


# ============================================
# Carrier and jurisdiction rules
# ============================================


class RuleConditions(BaseModel):
    """Predicates ANDed across the keys that are provided."""

    damage_type: list[str] = Field(default_factory=list)
    water_category: list[int] = Field(default_factory=list)
    claim_total_min: Decimal | None = None
    claim_total_max: Decimal | None = None
    zone_type: list[str] = Field(default_factory=list)
    room_type: list[str] = Field(default_factory=list)


class ExcludeEffect(BaseModel):
    kind: Literal["exclude"] = "exclude"
    reason: str | None = None


class CapQuantityEffect(BaseModel):
    kind: Literal["cap_quantity"] = "cap_quantity"
    max_quantity: float = Field(gt=0)
    reason: str | None = None


class CapCostEffect(BaseModel):
    kind: Literal["cap_cost"] = "cap_cost"
    max_per_unit: Decimal = Field(ge=0)
    reason: str | None = None


class RequireDocEffect(BaseModel):
    kind: Literal["require_doc"] = "require_doc"
    required: list[str] = Field(min_length=1)
    reason: str | None = None


class ModifyPctEffect(BaseModel):
    kind: Literal["modify_pct"] = "modify_pct"
    multiplier: float = Field(gt=0)
    reason: str | None = None


class WarnEffect(BaseModel):
    kind: Literal["warn"] = "warn"
    message: str | None = None


RuleEffect = Annotated[
    Union[
        ExcludeEffect,
        CapQuantityEffect,
        CapCostEffect,
        RequireDocEffect,
        ModifyPctEffect,
        WarnEffect,
    ],
    Field(discriminator="kind"),
]


class CarrierRule(BaseModel):
    """Conditional carrier rule with a single typed effect."""

    rule_code: str
    rule_name: str
    target_type: RuleTargetType = RuleTargetType.LINE_ITEM
    target_value: str | None = None
    conditions: RuleConditions = Field(default_factory=RuleConditions)
    effect: RuleEffect
    explanation_template: str | None = None
    priority: int = 100
    is_active: bool = True


class JurisdictionRule(CarrierRule):
    """Jurisdiction rule; same shape as a carrier rule."""


class CarrierExclusion(BaseModel):
    """Quick-lookup carrier exclusion by line item code."""

    line_item_code: str
    exclusion_reason: str = "Excluded per carrier guidelines"


class CarrierCap(BaseModel):
    """Quick-lookup carrier cap by code or category prefix."""

    line_item_code: str | None = None
    category_id: str | None = None
    max_quantity: float | None = Field(default=None, gt=0)
    max_quantity_per_zone: float | None = Field(default=None, gt=0)
    max_unit_price: Decimal | None = Field(default=None, ge=0)
    cap_reason: str | None = None


class CarrierProfile(BaseModel):
    """Insurer-specific thresholds and rule sets."""

    id: str
    name: str = ""
    overhead_pct: Decimal = Field(default=Decimal("10"), ge=0)
    profit_pct: Decimal = Field(default=Decimal("10"), ge=0)
    op_threshold: Decimal = Field(default=Decimal("0"), ge=0)
    op_trade_minimum: int = Field(default=3, ge=0)
    tax_on_materials_only: bool = True
    max_depreciation_pct: float = Field(default=80.0, ge=0, le=100)
    exclusions: list[CarrierExclusion] = Field(default_factory=list)
    caps: list[CarrierCap] = Field(default_factory=list)
    rules: list[CarrierRule] = Field(default_factory=list)

    @classmethod
    def default(cls, settings: EngineSettings | None = None) -> "CarrierProfile":
        """Profile used when an estimate has no carrier assigned."""
        settings = settings or get_settings()
        return cls(
            id="default",
            name="Default",
            overhead_pct=settings.overhead_pct,
            profit_pct=settings.profit_pct,
            op_threshold=settings.op_threshold,
            op_trade_minimum=settings.op_trade_minimum,
            tax_on_materials_only=settings.tax_on_materials_only,
            max_depreciation_pct=settings.max_depreciation_pct,
        )


class JurisdictionProfile(BaseModel):
    """Geographic tax and rule configuration."""

    id: str
    name: str = ""
    tax_rate: Decimal = Field(default=Decimal("0.0625"), ge=0, le=1)
    labor_taxable: bool = False
    op_threshold_override: Decimal | None = Field(default=None, ge=0)
    minimum_charge: Decimal | None = Field(default=None, ge=0)
    material_multiplier: float = Field(default=1.0, gt=0)
    labor_multiplier: float = Field(default=1.0, gt=0)
    equipment_multiplier: float = Field(default=1.0, gt=0)
    rules: list[JurisdictionRule] = Field(default_factory=list)

    @classmethod
    def default(cls, settings: EngineSettings | None = None) -> "JurisdictionProfile":
        settings = settings or get_settings()
        return cls(id="default", name="Default", tax_rate=settings.default_tax_rate)


# ============================================
# Rule outcomes and audit trail
# ============================================


class AppliedRule(BaseModel):
    """One automated change to a line item or estimate."""

    model_config = ConfigDict(frozen=True)

    rule_source: RuleSource
    rule_code: str
    rule_name: str
    effect_type: str
    original_value: dict[str, Any] = Field(default_factory=dict)
    modified_value: dict[str, Any] = Field(default_factory=dict)
    explanation: str


class AuditEntry(BaseModel):
    """Append-only compliance record of an applied rule."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    estimate_id: str
    rule_source: RuleSource
    rule_code: str
    target_type: RuleTargetType
    target_id: str | None = None
    effect_type: str
    original_value: dict[str, Any] = Field(default_factory=dict)
    modified_value: dict[str, Any] = Field(default_factory=dict)
    explanation: str


class LineItemRuleResult(BaseModel):
    """Rules outcome for one line item."""

    line_item_id: str
    line_item_code: str
    status: RuleStatus
    original_quantity: float
    modified_quantity: float | None = None
    original_unit_price: Decimal
    modified_unit_price: Decimal | None = None
    documentation_required: list[str] = Field(default_factory=list)
    applied_rules: list[AppliedRule] = Field(default_factory=list)
    explanation: str


class RulesEvaluationResult(BaseModel):
    """Full result of one rules pass over an estimate."""

    estimate_id: str
    carrier_profile_id: str | None = None
    jurisdiction_id: str | None = None
    evaluated_at: datetime
    total_items: int = 0
    allowed_items: int = 0
    modified_items: int = 0
    denied_items: int = 0
    warning_items: int = 0
    line_item_results: list[LineItemRuleResult] = Field(default_factory=list)
    estimate_effects: list[AppliedRule] = Field(default_factory=list)
    audit_log: list[AuditEntry] = Field(default_factory=list)
    degraded: bool = False
    error: str | None = None

    def result_for(self, line_item_id: str) -> LineItemRuleResult | None:
        for result in self.line_item_results:
            if result.line_item_id == line_item_id:
                return result
        return None


# ============================================
# Settlement and validation outputs
# ============================================


class CoverageSummary(BaseModel):
    """Aggregated settlement for one coverage code."""

    coverage_code: CoverageCode
    line_item_count: int = 0
    subtotal: Decimal = Decimal("0")
    tax_amount: Decimal = Decimal("0")
    overhead_amount: Decimal = Decimal("0")
    profit_amount: Decimal = Decimal("0")
    total_rcv: Decimal = Decimal("0")
    recoverable_depreciation: Decimal = Decimal("0")
    non_recoverable_depreciation: Decimal = Decimal("0")
    total_depreciation: Decimal = Decimal("0")
    total_acv: Decimal = Decimal("0")
    deductible: Decimal = Decimal("0")
    net_claim: Decimal = Decimal("0")


class ValidationIssue(BaseModel):
    """A single lint finding on an estimate."""

    code: str
    severity: Severity
    category: ValidationCategory
    message: str
    details: str | None = None
    suggestion: str | None = None
    related_items: list[str] = Field(default_factory=list)
    zone_id: str | None = None
    zone_name: str | None = None
    carrier_sensitive: bool = False


class ValidationResult(BaseModel):
    """Validation verdict returned to the submission workflow."""

    is_valid: bool
    error_count: int = 0
    warning_count: int = 0
    info_count: int = 0
    issues: list[ValidationIssue] = Field(default_factory=list)
    by_category: dict[str, list[ValidationIssue]] = Field(default_factory=dict)
    by_zone: dict[str, list[ValidationIssue]] = Field(default_factory=dict)
    meta: dict[str, Any] = Field(default_factory=dict)

    @property
    def issue_count(self) -> int:
        return len(self.issues)

    @classmethod
    def from_issues(
        cls, issues: list[ValidationIssue], meta: dict[str, Any] | None = None
    ) -> "ValidationResult":
        """Aggregate issues; validity depends on errors alone."""
        error_count = sum(1 for i in issues if i.severity == Severity.ERROR)
        warning_count = sum(1 for i in issues if i.severity == Severity.WARNING)
        info_count = sum(1 for i in issues if i.severity == Severity.INFO)

        by_category: dict[str, list[ValidationIssue]] = {}
        by_zone: dict[str, list[ValidationIssue]] = {}
        for issue in issues:
            by_category.setdefault(issue.category.value, []).append(issue)
            by_zone.setdefault(issue.zone_id or "global", []).append(issue)

        return cls(
            is_valid=error_count == 0,
            error_count=error_count,
            warning_count=warning_count,
            info_count=info_count,
            issues=list(issues),
            by_category=by_category,
            by_zone=by_zone,
            meta=meta or {},
        )


# ============================================
# Estimate
# ============================================


class Estimate(BaseModel):
    """Estimate aggregate handed to the computation core."""

    id: str
    claim_id: str | None = None
    status: EstimateStatus = EstimateStatus.DRAFT
    is_locked: bool = False
    submitted_at: datetime | None = None
    carrier_profile_id: str | None = None
    jurisdiction_id: str | None = None
    deductibles: dict[CoverageCode, Decimal] = Field(default_factory=dict)
    zones: list[Zone] = Field(default_factory=list)
    line_items: list[EstimateLineItem] = Field(default_factory=list)

    def get_zone(self, zone_id: str | None) -> Zone | None:
        if zone_id is None:
            return None
        for zone in self.zones:
            if zone.id == zone_id:
                return zone
        return None

    @property
    def claim_total(self) -> Decimal:
        return sum((item.rcv for item in self.line_items), Decimal("0"))
