"""
Workflow errors for the Estimate Integrity Engine.

Structural and compliance problems are reported as ValidationIssues.
The exceptions here cover operational failures that stop a workflow
before the validation pipeline runs.
"""

from typing import Any


class ErrorCode:
    """Error code constants."""

    ESTIMATE_NOT_FOUND = "ESTIMATE_NOT_FOUND"
    ESTIMATE_LOCKED = "ESTIMATE_LOCKED"
    ALREADY_SUBMITTED = "ALREADY_SUBMITTED"
    ZONE_NOT_FOUND = "ZONE_NOT_FOUND"
    LINE_ITEM_NOT_FOUND = "LINE_ITEM_NOT_FOUND"
    CATALOG_ITEM_NOT_FOUND = "CATALOG_ITEM_NOT_FOUND"


class EstimateEngineError(Exception):
    """
    Base exception for workflow errors.

    Attributes:
        code: Error code from ErrorCode constants
        message: Human-readable error message
        details: Additional error context
    """

    def __init__(
        self,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert error to a response payload."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
            }
        }


class EstimateNotFoundError(EstimateEngineError):
    """Raised when an estimate does not exist."""

    def __init__(self, estimate_id: str) -> None:
        super().__init__(
            code=ErrorCode.ESTIMATE_NOT_FOUND,
            message=f"Estimate not found: {estimate_id}",
            details={"estimate_id": estimate_id},
        )


class EstimateLockedError(EstimateEngineError):
    """Raised when a locked estimate would be modified."""

    def __init__(self, estimate_id: str) -> None:
        super().__init__(
            code=ErrorCode.ESTIMATE_LOCKED,
            message="This estimate has been finalized and cannot be edited.",
            details={"estimate_id": estimate_id},
        )


class ZoneNotFoundError(EstimateEngineError):
    """Raised when a line item references a zone the estimate does not have."""

    def __init__(self, zone_id: str, estimate_id: str | None = None) -> None:
        super().__init__(
            code=ErrorCode.ZONE_NOT_FOUND,
            message=f"Zone not found: {zone_id}",
            details={"zone_id": zone_id, "estimate_id": estimate_id},
        )


class LineItemNotFoundError(EstimateEngineError):
    """Raised when a line item id is not part of the estimate."""

    def __init__(self, line_item_id: str, estimate_id: str | None = None) -> None:
        super().__init__(
            code=ErrorCode.LINE_ITEM_NOT_FOUND,
            message=f"Line item not found: {line_item_id}",
            details={"line_item_id": line_item_id, "estimate_id": estimate_id},
        )


class CatalogItemNotFoundError(EstimateEngineError):
    """Raised when a line item code has no catalog definition."""

    def __init__(self, code: str) -> None:
        super().__init__(
            code=ErrorCode.CATALOG_ITEM_NOT_FOUND,
            message=f"Catalog line item not found: {code}",
            details={"line_item_code": code},
        )
