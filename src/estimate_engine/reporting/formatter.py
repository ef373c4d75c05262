"""
Validation Report Module.
Formats validation results, rules evaluations and settlements for output.
"""

import json
from datetime import datetime
from decimal import Decimal
from typing import Any

from ..core.models import (
    RulesEvaluationResult,
    Severity,
    ValidationCategory,
    ValidationIssue,
    ValidationResult,
)
from ..core.rule_engine import format_rules_result
from ..pricing.settlement import SettlementResult

SEVERITY_ORDER = {Severity.ERROR: 0, Severity.WARNING: 1, Severity.INFO: 2}


class ValidationReportFormatter:
    """
    Formats a validation result (and optionally the rules evaluation and
    settlement behind it) for various output formats.
    """

    SEVERITY_ICONS = {
        Severity.INFO: "ℹ️",
        Severity.WARNING: "⚠️",
        Severity.ERROR: "❌",
    }

    CATEGORY_LABELS = {
        ValidationCategory.DEPENDENCY: "Dependencies",
        ValidationCategory.QUANTITY: "Quantities",
        ValidationCategory.EXCLUSION: "Exclusions",
        ValidationCategory.REPLACEMENT: "Replacements",
        ValidationCategory.COMPLETENESS: "Completeness",
        ValidationCategory.DEPRECIATION: "Depreciation",
        ValidationCategory.COVERAGE: "Coverage",
        ValidationCategory.CARRIER: "Carrier Rules",
        ValidationCategory.JURISDICTION: "Jurisdiction Rules",
        ValidationCategory.DOCUMENTATION: "Documentation",
        ValidationCategory.RULES: "Rules Evaluation",
    }

    def __init__(
        self,
        result: ValidationResult,
        rules: RulesEvaluationResult | None = None,
        settlement: SettlementResult | None = None,
    ) -> None:
        self.result = result
        self.rules = rules
        self.settlement = settlement

    def to_text(self, include_details: bool = True) -> str:
        """
        Format the validation result as a plain text report.

        Args:
            include_details: Whether to list individual issues

        Returns:
            Formatted text report
        """
        lines: list[str] = []
        meta = self.result.meta

        lines.append("=" * 70)
        lines.append("ESTIMATE VALIDATION REPORT")
        lines.append("=" * 70)
        lines.append("")
        if meta.get("estimate_id"):
            lines.append(f"Estimate ID: {meta['estimate_id']}")
        validated_at = meta.get("validated_at")
        if isinstance(validated_at, datetime):
            lines.append(f"Validated: {validated_at.strftime('%Y-%m-%d %H:%M:%S UTC')}")
        lines.append("")

        lines.append("-" * 70)
        lines.append("SUMMARY")
        lines.append("-" * 70)
        lines.append(f"Result: {'PASS' if self.result.is_valid else 'BLOCKED'}")
        lines.append(f"Errors: {self.result.error_count}")
        lines.append(f"Warnings: {self.result.warning_count}")
        lines.append(f"Info: {self.result.info_count}")
        lines.append("")

        if include_details and self.result.issues:
            for category in ValidationCategory:
                issues = self.result.by_category.get(category.value, [])
                if not issues:
                    continue
                lines.append("-" * 70)
                lines.append(self.CATEGORY_LABELS[category].upper())
                lines.append("-" * 70)

                for issue in issues:
                    lines.append("")
                    lines.append(
                        f"{self.SEVERITY_ICONS.get(issue.severity, '•')} "
                        f"[{issue.severity.value.upper()}] {issue.code}: {issue.message}"
                    )
                    if issue.zone_name:
                        lines.append(f"   Zone: {issue.zone_name}")
                    if issue.details:
                        lines.append(f"   {issue.details}")
                    if issue.related_items:
                        lines.append(f"   Items: {', '.join(issue.related_items[:5])}")
                        if len(issue.related_items) > 5:
                            lines.append(f"     ... and {len(issue.related_items) - 5} more")
                    if issue.suggestion:
                        lines.append(f"   Suggestion: {issue.suggestion}")
                    if issue.carrier_sensitive:
                        lines.append("   (carrier-sensitive)")

                lines.append("")

        lines.append("=" * 70)
        lines.append("END OF REPORT")
        lines.append("=" * 70)

        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert the validation result to a JSON-ready dictionary.

        Returns:
            isValid-style payload with counts, issues and groupings
        """

        def serialize_value(v: Any) -> Any:
            if isinstance(v, Decimal):
                return float(v)
            elif isinstance(v, datetime):
                return v.isoformat()
            elif hasattr(v, "value"):  # Enum
                return v.value
            return v

        payload: dict[str, Any] = {
            "is_valid": self.result.is_valid,
            "error_count": self.result.error_count,
            "warning_count": self.result.warning_count,
            "info_count": self.result.info_count,
            "issues": [self._issue_dict(i) for i in self.result.issues],
            "by_category": {
                category: [i.code for i in issues]
                for category, issues in self.result.by_category.items()
            },
            "by_zone": {
                zone: [i.code for i in issues] for zone, issues in self.result.by_zone.items()
            },
            "meta": {k: serialize_value(v) for k, v in self.result.meta.items()},
        }

        if self.rules is not None:
            payload["rules"] = {
                "total_items": self.rules.total_items,
                "allowed_items": self.rules.allowed_items,
                "modified_items": self.rules.modified_items,
                "denied_items": self.rules.denied_items,
                "warning_items": self.rules.warning_items,
                "degraded": self.rules.degraded,
                "audit_entries": len(self.rules.audit_log),
            }

        if self.settlement is not None:
            totals = self.settlement.totals
            payload["settlement"] = {
                "total_rcv": float(totals.total_rcv),
                "total_acv": float(totals.total_acv),
                "total_depreciation": float(totals.total_depreciation),
                "net_claim": float(totals.net_claim_total),
                "qualifies_for_op": self.settlement.qualifies_for_op,
            }

        return payload

    @staticmethod
    def _issue_dict(issue: ValidationIssue) -> dict[str, Any]:
        return issue.model_dump(mode="json", exclude_none=True)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def to_summary(self, limit: int = 5) -> dict[str, Any]:
        """Compact summary: verdict, counts and the most severe issues first."""
        ranked = sorted(self.result.issues, key=lambda i: SEVERITY_ORDER[i.severity])
        return {
            "is_valid": self.result.is_valid,
            "error_count": self.result.error_count,
            "warning_count": self.result.warning_count,
            "info_count": self.result.info_count,
            "top_issues": [
                {"code": i.code, "severity": i.severity.value, "message": i.message}
                for i in ranked[:limit]
            ],
        }

    def rules_text(self) -> str:
        if self.rules is None:
            return "No rules evaluation available."
        return format_rules_result(self.rules)

    def settlement_text(self) -> str:
        """Per-coverage settlement table followed by grand totals."""
        if self.settlement is None:
            return "No settlement available."

        s = self.settlement
        lines = ["=== Settlement Summary ===", ""]
        for summary in s.coverage_summaries:
            lines.append(f"Coverage {summary.coverage_code.value} ({summary.line_item_count} items)")
            lines.append(f"  Subtotal:          ${summary.subtotal:,.2f}")
            lines.append(f"  Tax:               ${summary.tax_amount:,.2f}")
            if s.qualifies_for_op:
                lines.append(f"  Overhead:          ${summary.overhead_amount:,.2f}")
                lines.append(f"  Profit:            ${summary.profit_amount:,.2f}")
            lines.append(f"  RCV:               ${summary.total_rcv:,.2f}")
            lines.append(f"  Depreciation:      ${summary.total_depreciation:,.2f}")
            lines.append(f"  ACV:               ${summary.total_acv:,.2f}")
            lines.append(f"  Deductible:        ${summary.deductible:,.2f}")
            lines.append(f"  Net Claim:         ${summary.net_claim:,.2f}")
            lines.append("")

        totals = s.totals
        op_note = "applied" if s.qualifies_for_op else "not applied"
        lines.append(
            f"O&P {op_note} ({len(s.trades_involved)} trades, "
            f"threshold ${s.op_threshold:,.2f} from {s.op_threshold_source})"
        )
        lines.append(f"Total RCV:   ${totals.total_rcv:,.2f}")
        lines.append(f"Total ACV:   ${totals.total_acv:,.2f}")
        lines.append(f"Net Claim:   ${totals.net_claim_total:,.2f}")
        return "\n".join(lines)

    def print_summary(self) -> None:
        """Print a brief summary to stdout."""
        print(self.to_text(include_details=False))

    def print_full(self) -> None:
        """Print the full report to stdout."""
        print(self.to_text(include_details=True))
