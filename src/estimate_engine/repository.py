"""
Estimate storage collaborator.

The computation core never talks to a database directly. Everything it
needs is fetched and persisted through an EstimateRepository; the
in-memory implementation serves tests and embedding.
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import TYPE_CHECKING, Any, NamedTuple

import structlog

from .core.models import (
    AuditEntry,
    CarrierProfile,
    Estimate,
    EstimateStatus,
    JurisdictionProfile,
    LineItemDefinition,
)
from .errors import EstimateNotFoundError

if TYPE_CHECKING:
    from .engine import EstimateCalculation

logger = structlog.get_logger(__name__)


class LockStatus(NamedTuple):
    is_locked: bool
    status: EstimateStatus


class EstimateRepository(ABC):
    """Abstract async storage for estimates, catalog rows, rules and audit."""

    @abstractmethod
    async def get_estimate(self, estimate_id: str) -> Estimate | None:
        """Fetch an estimate with its zones and line items, or None."""

    @abstractmethod
    async def get_lock_status(self, estimate_id: str) -> LockStatus:
        """
        Read the lock flag and status.

        Raises:
            EstimateNotFoundError: If the estimate does not exist.
        """

    @abstractmethod
    async def get_catalog(self, codes: Iterable[str]) -> dict[str, LineItemDefinition]:
        """Catalog definitions for the given codes; unknown codes are omitted."""

    @abstractmethod
    async def get_carrier_profile(self, profile_id: str) -> CarrierProfile | None:
        """Carrier profile with its exclusions, caps and rules."""

    @abstractmethod
    async def get_jurisdiction(self, jurisdiction_id: str) -> JurisdictionProfile | None:
        """Jurisdiction profile with its rules."""

    @abstractmethod
    async def lock_estimate(
        self,
        estimate_id: str,
        submitted_at: datetime,
        audit_entries: Sequence[AuditEntry] = (),
    ) -> bool:
        """
        Atomically lock an unlocked estimate and move it to pending_review.

        The audit entries are written in the same unit of work: if they
        cannot be stored the estimate must stay unlocked.

        Returns:
            True if this call locked the estimate, False if it was already locked.

        Raises:
            EstimateNotFoundError: If the estimate does not exist.
        """

    @abstractmethod
    async def save_rule_audit(self, estimate_id: str, entries: list[AuditEntry]) -> None:
        """Append rule audit entries to the compliance trail."""

    @abstractmethod
    async def save_calculation(self, estimate_id: str, calculation: "EstimateCalculation") -> None:
        """Persist calculated line items and coverage summaries."""


class InMemoryEstimateRepository(EstimateRepository):
    """
    Dictionary-backed repository.

    Estimates are copied on the way in and out so callers never share
    state with the store. Locking is serialized per estimate with an
    asyncio.Lock.
    """

    def __init__(
        self,
        estimates: Iterable[Estimate] = (),
        catalog: Iterable[LineItemDefinition] = (),
        carriers: Iterable[CarrierProfile] = (),
        jurisdictions: Iterable[JurisdictionProfile] = (),
    ) -> None:
        self._estimates: dict[str, Estimate] = {}
        self._catalog: dict[str, LineItemDefinition] = {d.code: d for d in catalog}
        self._carriers: dict[str, CarrierProfile] = {c.id: c for c in carriers}
        self._jurisdictions: dict[str, JurisdictionProfile] = {j.id: j for j in jurisdictions}
        self._audit: dict[str, list[AuditEntry]] = {}
        self._calculations: dict[str, Any] = {}
        self._locks: dict[str, asyncio.Lock] = {}

        for estimate in estimates:
            self.add_estimate(estimate)

    def add_estimate(self, estimate: Estimate) -> None:
        self._estimates[estimate.id] = estimate.model_copy(deep=True)

    def add_catalog_item(self, definition: LineItemDefinition) -> None:
        self._catalog[definition.code] = definition

    def add_carrier_profile(self, profile: CarrierProfile) -> None:
        self._carriers[profile.id] = profile

    def add_jurisdiction(self, profile: JurisdictionProfile) -> None:
        self._jurisdictions[profile.id] = profile

    def audit_log(self, estimate_id: str) -> list[AuditEntry]:
        return list(self._audit.get(estimate_id, []))

    def calculation(self, estimate_id: str) -> "EstimateCalculation | None":
        return self._calculations.get(estimate_id)

    def _lock_for(self, estimate_id: str) -> asyncio.Lock:
        lock = self._locks.get(estimate_id)
        if lock is None:
            lock = self._locks[estimate_id] = asyncio.Lock()
        return lock

    async def get_estimate(self, estimate_id: str) -> Estimate | None:
        estimate = self._estimates.get(estimate_id)
        return estimate.model_copy(deep=True) if estimate else None

    async def get_lock_status(self, estimate_id: str) -> LockStatus:
        estimate = self._estimates.get(estimate_id)
        if estimate is None:
            raise EstimateNotFoundError(estimate_id)
        return LockStatus(is_locked=estimate.is_locked, status=estimate.status)

    async def get_catalog(self, codes: Iterable[str]) -> dict[str, LineItemDefinition]:
        return {code: self._catalog[code] for code in set(codes) if code in self._catalog}

    async def get_carrier_profile(self, profile_id: str) -> CarrierProfile | None:
        return self._carriers.get(profile_id)

    async def get_jurisdiction(self, jurisdiction_id: str) -> JurisdictionProfile | None:
        return self._jurisdictions.get(jurisdiction_id)

    async def lock_estimate(
        self,
        estimate_id: str,
        submitted_at: datetime,
        audit_entries: Sequence[AuditEntry] = (),
    ) -> bool:
        async with self._lock_for(estimate_id):
            estimate = self._estimates.get(estimate_id)
            if estimate is None:
                raise EstimateNotFoundError(estimate_id)
            if estimate.is_locked:
                return False
            if audit_entries:
                await self.save_rule_audit(estimate_id, list(audit_entries))
            self._estimates[estimate_id] = estimate.model_copy(
                update={
                    "is_locked": True,
                    "status": EstimateStatus.PENDING_REVIEW,
                    "submitted_at": submitted_at,
                }
            )
        logger.info("estimate_locked", estimate_id=estimate_id, audit_entries=len(audit_entries))
        return True

    async def save_rule_audit(self, estimate_id: str, entries: list[AuditEntry]) -> None:
        self._audit.setdefault(estimate_id, []).extend(entries)

    async def save_calculation(self, estimate_id: str, calculation: "EstimateCalculation") -> None:
        self._calculations[estimate_id] = calculation
