"""
Core components for the Estimate Integrity Engine.
"""

from .formula import (
    ALLOWED_FUNCTIONS,
    ALLOWED_METRICS,
    FormulaValidation,
    QuantityResult,
    available_functions,
    available_metrics,
    calculate_quantity,
    calculate_quantity_from_metrics,
    validate_formula,
)
from .models import (
    AppliedRule,
    AuditEntry,
    CarrierCap,
    CarrierExclusion,
    CarrierProfile,
    CarrierRule,
    Condition,
    CoverageCode,
    CoverageSummary,
    Estimate,
    EstimateLineItem,
    EstimateStatus,
    JurisdictionProfile,
    JurisdictionRule,
    LineItemDefinition,
    MissingWall,
    RulesEvaluationResult,
    RuleStatus,
    Severity,
    Subroom,
    ValidationCategory,
    ValidationIssue,
    ValidationResult,
    Zone,
    ZoneType,
)
from .rule_engine import (
    CarrierJurisdictionRulesEngine,
    format_rules_result,
    generate_explanation,
)
from .zone_metrics import (
    ZoneMetrics,
    ZoneMetricsCalculator,
    compute_zone_metrics,
    format_metrics_explanation,
)

__all__ = [
    # Models
    "AppliedRule",
    "AuditEntry",
    "CarrierCap",
    "CarrierExclusion",
    "CarrierProfile",
    "CarrierRule",
    "Condition",
    "CoverageCode",
    "CoverageSummary",
    "Estimate",
    "EstimateLineItem",
    "EstimateStatus",
    "JurisdictionProfile",
    "JurisdictionRule",
    "LineItemDefinition",
    "MissingWall",
    "RulesEvaluationResult",
    "RuleStatus",
    "Severity",
    "Subroom",
    "ValidationCategory",
    "ValidationIssue",
    "ValidationResult",
    "Zone",
    "ZoneType",
    # Zone metrics
    "ZoneMetrics",
    "ZoneMetricsCalculator",
    "compute_zone_metrics",
    "format_metrics_explanation",
    # Quantity formulas
    "ALLOWED_FUNCTIONS",
    "ALLOWED_METRICS",
    "FormulaValidation",
    "QuantityResult",
    "available_functions",
    "available_metrics",
    "calculate_quantity",
    "calculate_quantity_from_metrics",
    "validate_formula",
    # Rules engine
    "CarrierJurisdictionRulesEngine",
    "format_rules_result",
    "generate_explanation",
]
