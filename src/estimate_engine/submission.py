"""
Submission gate.

The single entry point that validates an estimate and performs the
draft -> pending_review transition. A locked estimate is refused before
any validation or rules pass runs, so a second submission never re-audits.
"""

from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

import structlog
from pydantic import BaseModel

from .core.models import EstimateStatus, ValidationResult
from .errors import ErrorCode
from .repository import EstimateRepository
from .service import EstimateService

logger = structlog.get_logger(__name__)

ALREADY_SUBMITTED_MESSAGE = "Estimate has already been submitted and is locked."


class SubmissionError(BaseModel):
    code: str
    message: str


class SubmissionResult(BaseModel):
    """Outcome of a submission attempt."""

    success: bool
    estimate_id: str
    status: EstimateStatus
    is_locked: bool
    submitted_at: datetime | None = None
    validation: ValidationResult | None = None
    error: SubmissionError | None = None
    audit_entries_saved: int = 0

    @property
    def error_count(self) -> int:
        return self.validation.error_count if self.validation else 0

    @property
    def warning_count(self) -> int:
        return self.validation.warning_count if self.validation else 0

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class SubmissionGate:
    """Validate-then-lock workflow for one estimate at a time."""

    def __init__(
        self,
        repository: EstimateRepository,
        service: EstimateService | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.repository = repository
        self.service = service or EstimateService(repository)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def submit(self, estimate_id: str) -> SubmissionResult:
        """
        Submit an estimate for review.

        Raises:
            EstimateNotFoundError: If the estimate does not exist.
        """
        lock = await self.repository.get_lock_status(estimate_id)
        if lock.is_locked:
            logger.warning("submission_refused", estimate_id=estimate_id, status=lock.status.value)
            return self._already_submitted(estimate_id, lock.status)

        evaluation = await self.service.validate_estimate(estimate_id)
        validation = evaluation.validation

        if not validation.is_valid:
            logger.info(
                "submission_blocked",
                estimate_id=estimate_id,
                errors=validation.error_count,
                warnings=validation.warning_count,
            )
            return SubmissionResult(
                success=False,
                estimate_id=estimate_id,
                status=lock.status,
                is_locked=False,
                validation=validation,
            )

        submitted_at = self._clock()
        audit_log = evaluation.calculation.rules.audit_log
        if not await self.repository.lock_estimate(estimate_id, submitted_at, audit_log):
            # Another submission locked it between the status read and the write.
            logger.warning("submission_refused", estimate_id=estimate_id, reason="lock_lost")
            return self._already_submitted(estimate_id, EstimateStatus.PENDING_REVIEW)

        logger.info(
            "submission_accepted",
            estimate_id=estimate_id,
            warnings=validation.warning_count,
            info=validation.info_count,
            audit_entries=len(audit_log),
        )
        return SubmissionResult(
            success=True,
            estimate_id=estimate_id,
            status=EstimateStatus.PENDING_REVIEW,
            is_locked=True,
            submitted_at=submitted_at,
            validation=validation,
            audit_entries_saved=len(audit_log),
        )

    @staticmethod
    def _already_submitted(estimate_id: str, status: EstimateStatus) -> SubmissionResult:
        return SubmissionResult(
            success=False,
            estimate_id=estimate_id,
            status=status,
            is_locked=True,
            error=SubmissionError(
                code=ErrorCode.ALREADY_SUBMITTED,
                message=ALREADY_SUBMITTED_MESSAGE,
            ),
        )
