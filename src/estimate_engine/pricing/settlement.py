"""
Settlement aggregation.

Groups priced, depreciated items by coverage code, applies overhead and
profit when the estimate qualifies, and derives RCV, ACV and net claim
per coverage and in total.
"""

from collections.abc import Mapping
from decimal import Decimal
from typing import Literal

import structlog
from pydantic import BaseModel, Field

from ..core.models import CarrierProfile, CoverageCode, CoverageSummary, JurisdictionProfile
from ..utils.money import ZERO, round_money
from .pricing import CalculatedLineItem

logger = structlog.get_logger(__name__)

HUNDRED = Decimal("100")


class SettlementTotals(BaseModel):
    """Grand totals across all coverages."""

    line_item_count: int = 0
    subtotal_material: Decimal = ZERO
    subtotal_labor: Decimal = ZERO
    subtotal_equipment: Decimal = ZERO
    subtotal: Decimal = ZERO
    tax_amount: Decimal = ZERO
    subtotal_before_op: Decimal = ZERO
    overhead_amount: Decimal = ZERO
    profit_amount: Decimal = ZERO
    total_rcv: Decimal = ZERO
    total_depreciation: Decimal = ZERO
    recoverable_depreciation: Decimal = ZERO
    non_recoverable_depreciation: Decimal = ZERO
    total_acv: Decimal = ZERO
    deductible_total: Decimal = ZERO
    net_claim_total: Decimal = ZERO
    net_claim_by_coverage: dict[str, Decimal] = Field(default_factory=dict)


class SettlementResult(BaseModel):
    coverage_summaries: list[CoverageSummary] = Field(default_factory=list)
    totals: SettlementTotals = Field(default_factory=SettlementTotals)
    trades_involved: list[str] = Field(default_factory=list)
    qualifies_for_op: bool = False
    op_threshold: Decimal = ZERO
    op_threshold_source: Literal["carrier", "jurisdiction"] = "carrier"
    op_trade_minimum: int = 0
    overhead_pct: Decimal = ZERO
    profit_pct: Decimal = ZERO

    def summary_for(self, code: CoverageCode | str) -> CoverageSummary | None:
        code = CoverageCode(code)
        for summary in self.coverage_summaries:
            if summary.coverage_code == code:
                return summary
        return None


class SettlementCalculator:
    """Coverage-level settlement for one carrier/jurisdiction combination."""

    def __init__(
        self,
        carrier: CarrierProfile,
        jurisdiction: JurisdictionProfile | None = None,
    ) -> None:
        self.carrier = carrier
        self.jurisdiction = jurisdiction

    def effective_op_threshold(self) -> tuple[Decimal, Literal["carrier", "jurisdiction"]]:
        """Jurisdiction override takes precedence over the carrier default."""
        if self.jurisdiction is not None and self.jurisdiction.op_threshold_override is not None:
            return self.jurisdiction.op_threshold_override, "jurisdiction"
        return self.carrier.op_threshold, "carrier"

    def calculate(
        self,
        items: list[CalculatedLineItem],
        deductibles: Mapping[CoverageCode, Decimal] | None = None,
    ) -> SettlementResult:
        deductibles = deductibles or {}

        trades: list[str] = []
        for item in items:
            if item.trade_code and item.trade_code not in trades:
                trades.append(item.trade_code)

        summaries: dict[CoverageCode, CoverageSummary] = {}
        totals = SettlementTotals(line_item_count=len(items))

        for item in items:
            summary = summaries.setdefault(
                item.coverage_code, CoverageSummary(coverage_code=item.coverage_code)
            )
            summary.line_item_count += 1
            summary.subtotal += item.subtotal
            summary.tax_amount += item.tax_amount

            depreciation = item.depreciation_amount
            if item.is_recoverable:
                summary.recoverable_depreciation += depreciation
            else:
                summary.non_recoverable_depreciation += depreciation
            summary.total_depreciation += depreciation

            totals.subtotal_material += item.material_total
            totals.subtotal_labor += item.labor_total
            totals.subtotal_equipment += item.equipment_total

        subtotal_before_op = sum(
            (s.subtotal + s.tax_amount for s in summaries.values()), ZERO
        )
        threshold, threshold_source = self.effective_op_threshold()
        qualifies = (
            len(trades) >= self.carrier.op_trade_minimum
            and subtotal_before_op >= threshold
        )

        ordered = [summaries[code] for code in CoverageCode if code in summaries]
        for summary in ordered:
            base = summary.subtotal + summary.tax_amount
            if qualifies:
                summary.overhead_amount = round_money(base * self.carrier.overhead_pct / HUNDRED)
                summary.profit_amount = round_money(base * self.carrier.profit_pct / HUNDRED)

            summary.total_rcv = base + summary.overhead_amount + summary.profit_amount
            summary.total_acv = summary.total_rcv - summary.total_depreciation
            summary.deductible = round_money(deductibles.get(summary.coverage_code, ZERO))
            summary.net_claim = max(
                ZERO,
                summary.total_rcv - summary.deductible - summary.non_recoverable_depreciation,
            )

            totals.subtotal += summary.subtotal
            totals.tax_amount += summary.tax_amount
            totals.overhead_amount += summary.overhead_amount
            totals.profit_amount += summary.profit_amount
            totals.total_rcv += summary.total_rcv
            totals.total_depreciation += summary.total_depreciation
            totals.recoverable_depreciation += summary.recoverable_depreciation
            totals.non_recoverable_depreciation += summary.non_recoverable_depreciation
            totals.total_acv += summary.total_acv
            totals.deductible_total += summary.deductible
            totals.net_claim_total += summary.net_claim
            totals.net_claim_by_coverage[summary.coverage_code.value] = summary.net_claim

        totals.subtotal_before_op = subtotal_before_op

        logger.debug(
            "settlement_calculated",
            coverages=[s.coverage_code.value for s in ordered],
            qualifies_for_op=qualifies,
            trades=len(trades),
            total_rcv=str(totals.total_rcv),
        )

        return SettlementResult(
            coverage_summaries=ordered,
            totals=totals,
            trades_involved=trades,
            qualifies_for_op=qualifies,
            op_threshold=threshold,
            op_threshold_source=threshold_source,
            op_trade_minimum=self.carrier.op_trade_minimum,
            overhead_pct=self.carrier.overhead_pct,
            profit_pct=self.carrier.profit_pct,
        )
