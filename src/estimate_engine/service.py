"""
Async estimate service.

Fetches everything a pipeline pass needs from the repository, runs the
engine in memory and persists results. The engine itself never awaits.
"""

import structlog

from .core.models import CarrierProfile, Estimate, JurisdictionProfile, LineItemDefinition
from .engine import EstimateCalculation, EstimateEngine, EstimateEvaluation
from .errors import EstimateLockedError, EstimateNotFoundError
from .repository import EstimateRepository

logger = structlog.get_logger(__name__)


class EstimateService:
    """Service for calculating and validating stored estimates."""

    def __init__(
        self,
        repository: EstimateRepository,
        engine: EstimateEngine | None = None,
    ) -> None:
        self.repository = repository
        self.engine = engine or EstimateEngine()

    async def load_estimate(self, estimate_id: str) -> Estimate:
        """
        Raises:
            EstimateNotFoundError: If the estimate does not exist.
        """
        estimate = await self.repository.get_estimate(estimate_id)
        if estimate is None:
            raise EstimateNotFoundError(estimate_id)
        return estimate

    async def load_context(
        self, estimate: Estimate
    ) -> tuple[dict[str, LineItemDefinition], CarrierProfile | None, JurisdictionProfile | None]:
        """Catalog rows, carrier profile and jurisdiction for an estimate."""
        catalog = await self.repository.get_catalog(item.code for item in estimate.line_items)

        carrier = None
        if estimate.carrier_profile_id:
            carrier = await self.repository.get_carrier_profile(estimate.carrier_profile_id)
            if carrier is None:
                logger.warning(
                    "carrier_profile_missing",
                    estimate_id=estimate.id,
                    carrier_profile_id=estimate.carrier_profile_id,
                )

        jurisdiction = None
        if estimate.jurisdiction_id:
            jurisdiction = await self.repository.get_jurisdiction(estimate.jurisdiction_id)
            if jurisdiction is None:
                logger.warning(
                    "jurisdiction_missing",
                    estimate_id=estimate.id,
                    jurisdiction_id=estimate.jurisdiction_id,
                )

        return catalog, carrier, jurisdiction

    async def calculate_estimate(self, estimate_id: str) -> EstimateCalculation:
        """
        Recalculate a draft estimate and persist the results.

        Raises:
            EstimateNotFoundError: If the estimate does not exist.
            EstimateLockedError: If the estimate has been submitted.
        """
        estimate = await self.load_estimate(estimate_id)
        if estimate.is_locked:
            raise EstimateLockedError(estimate_id)

        catalog, carrier, jurisdiction = await self.load_context(estimate)
        _, calculation = self.engine.recalculate(estimate, catalog, carrier, jurisdiction)
        await self.repository.save_calculation(estimate_id, calculation)
        return calculation

    async def validate_estimate(
        self,
        estimate_id: str,
        persist_audit: bool = False,
    ) -> EstimateEvaluation:
        """
        Calculate and validate a stored estimate. Has no side effects unless
        ``persist_audit`` is set, in which case the rules audit log is saved.

        Raises:
            EstimateNotFoundError: If the estimate does not exist.
        """
        estimate = await self.load_estimate(estimate_id)
        catalog, carrier, jurisdiction = await self.load_context(estimate)
        evaluation = self.engine.evaluate(estimate, catalog, carrier, jurisdiction)

        if persist_audit and evaluation.calculation.rules.audit_log:
            await self.repository.save_rule_audit(
                estimate_id, evaluation.calculation.rules.audit_log
            )

        return evaluation
