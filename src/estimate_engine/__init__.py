"""
Estimate Integrity Engine.

Deterministic pricing, depreciation, carrier/jurisdiction rule checking
and validation of insurance repair estimates before submission.
"""

from .config import EngineSettings, get_settings
from .core.models import (
    CarrierProfile,
    CoverageCode,
    Estimate,
    EstimateLineItem,
    EstimateStatus,
    JurisdictionProfile,
    LineItemDefinition,
    ValidationIssue,
    ValidationResult,
    Zone,
)
from .engine import EstimateCalculation, EstimateEngine, EstimateEvaluation, audit_estimate
from .errors import (
    CatalogItemNotFoundError,
    ErrorCode,
    EstimateEngineError,
    EstimateLockedError,
    EstimateNotFoundError,
    LineItemNotFoundError,
    ZoneNotFoundError,
)
from .reporting.formatter import ValidationReportFormatter
from .repository import EstimateRepository, InMemoryEstimateRepository, LockStatus
from .service import EstimateService
from .submission import SubmissionGate, SubmissionResult
from .utils.log_config import configure_logging

__version__ = "0.1.0"

__all__ = [
    # Main Engine
    "EstimateEngine",
    "EstimateCalculation",
    "EstimateEvaluation",
    "audit_estimate",
    # Service layer
    "EstimateRepository",
    "EstimateService",
    "InMemoryEstimateRepository",
    "LockStatus",
    "SubmissionGate",
    "SubmissionResult",
    # Models
    "CarrierProfile",
    "CoverageCode",
    "Estimate",
    "EstimateLineItem",
    "EstimateStatus",
    "JurisdictionProfile",
    "LineItemDefinition",
    "ValidationIssue",
    "ValidationResult",
    "Zone",
    # Errors
    "CatalogItemNotFoundError",
    "ErrorCode",
    "EstimateEngineError",
    "EstimateLockedError",
    "EstimateNotFoundError",
    "LineItemNotFoundError",
    "ZoneNotFoundError",
    # Reporting
    "ValidationReportFormatter",
    # Config
    "EngineSettings",
    "configure_logging",
    "get_settings",
]
