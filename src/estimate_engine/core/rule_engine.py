"""
Carrier and jurisdiction rules engine.

Applies carrier exclusions, caps and conditional rules, then jurisdiction
rules, to every line item of an estimate. Each line item moves through
three stages:

1. Exclusion: carrier exclusion list, then ``exclude`` rules. A denied
   item is terminal and no later stage looks at it.
2. Cap: carrier cap table (exact code first, else category prefix), then
   ``cap_quantity``, ``cap_cost`` and ``modify_pct`` rules.
3. Documentation: ``require_doc`` and ``warn`` rules.

Within a stage carrier records run before jurisdiction records, each in
ascending priority with ties kept in declaration order. Every change is
recorded as an AppliedRule on the item and an AuditEntry in the log.
"""

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

import structlog
from pydantic import BaseModel

from ..utils.money import ZERO, round_money, to_decimal
from .models import (
    AppliedRule,
    AuditEntry,
    CapCostEffect,
    CapQuantityEffect,
    CarrierCap,
    CarrierProfile,
    CarrierRule,
    Estimate,
    ExcludeEffect,
    JurisdictionProfile,
    LineItemRuleResult,
    ModifyPctEffect,
    RequireDocEffect,
    RuleSource,
    RulesEvaluationResult,
    RuleStatus,
    RuleTargetType,
    WarnEffect,
    WaterCategory,
    Zone,
)

logger = structlog.get_logger(__name__)

NO_RULES_EXPLANATION = "No rules applied - item allowed as entered."

_STATUS_SENTENCES = {
    RuleStatus.DENIED: "Item DENIED by carrier/jurisdiction rules.",
    RuleStatus.MODIFIED: "Item MODIFIED by carrier/jurisdiction rules.",
    RuleStatus.WARNING: "Item has WARNINGS from carrier/jurisdiction rules.",
}

_EXCLUSION_EFFECTS = (ExcludeEffect,)
_CAP_EFFECTS = (CapQuantityEffect, CapCostEffect, ModifyPctEffect)
_DOCUMENTATION_EFFECTS = (RequireDocEffect, WarnEffect)


class RuleLineItem(BaseModel):
    """Line item as seen by the rules engine: priced quantity and unit price."""

    id: str
    code: str
    quantity: float
    unit_price: Decimal
    unit: str = "EA"
    category_id: str | None = None
    trade_code: str | None = None
    zone_id: str | None = None
    damage_type: str | None = None
    water_category: WaterCategory | None = None


@dataclass
class _ItemState:
    item: RuleLineItem
    zone: Zone | None
    quantity: float
    unit_price: Decimal
    status: RuleStatus = RuleStatus.ALLOWED
    documentation: list[str] = field(default_factory=list)
    applied: list[AppliedRule] = field(default_factory=list)


def _fmt(value: float | Decimal) -> str:
    return f"{value:g}" if isinstance(value, float) else str(value)


def generate_explanation(
    status: RuleStatus,
    applied_rules: Sequence[AppliedRule],
    documentation_required: Sequence[str] = (),
) -> str:
    """Render a line item's rule outcome as readable text."""
    if not applied_rules:
        return NO_RULES_EXPLANATION

    parts: list[str] = []
    sentence = _STATUS_SENTENCES.get(status)
    if sentence:
        parts.append(sentence)
    for rule in applied_rules:
        parts.append(f"• [{rule.rule_source.value.upper()}] {rule.explanation}")
    if documentation_required:
        parts.append(f"Required documentation: {', '.join(documentation_required)}")
    return "\n".join(parts)


class CarrierJurisdictionRulesEngine:
    """
    Deterministic rules evaluation for one estimate at a time.

    The engine holds no per-estimate state, so one instance can serve
    concurrent evaluations of different estimates.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def evaluate_estimate(
        self,
        estimate: Estimate,
        carrier: CarrierProfile | Mapping[str, Any] | None = None,
        jurisdiction: JurisdictionProfile | Mapping[str, Any] | None = None,
        priced: Mapping[str, Any] | None = None,
    ) -> RulesEvaluationResult:
        """
        Evaluate an estimate's line items.

        ``priced`` maps line item id to a priced record exposing
        ``quantity`` and ``unit_price``; without it the entered values are used.
        """
        priced = priced or {}
        items = []
        for line in estimate.line_items:
            calc = priced.get(line.id)
            if calc is not None:
                quantity = calc.quantity
                unit_price = calc.unit_price
                category_id = calc.category_id
                trade_code = calc.trade_code
                unit = calc.unit
            else:
                quantity = line.quantity or 0.0
                unit_price = line.unit_price or ZERO
                category_id = line.category_id
                trade_code = line.trade_code
                unit = line.unit or "EA"
            items.append(
                RuleLineItem(
                    id=line.id,
                    code=line.code,
                    quantity=quantity,
                    unit_price=unit_price,
                    unit=unit,
                    category_id=category_id,
                    trade_code=trade_code,
                    zone_id=line.zone_id,
                    damage_type=line.damage_type,
                    water_category=line.water_category,
                )
            )

        claim_total = sum((getattr(c, "rcv", ZERO) for c in priced.values()), ZERO)
        return self.evaluate(
            estimate_id=estimate.id,
            items=items,
            zones=estimate.zones,
            carrier=carrier,
            jurisdiction=jurisdiction,
            claim_total=claim_total if priced else None,
        )

    def evaluate(
        self,
        estimate_id: str,
        items: Sequence[RuleLineItem],
        zones: Sequence[Zone] = (),
        carrier: CarrierProfile | Mapping[str, Any] | None = None,
        jurisdiction: JurisdictionProfile | Mapping[str, Any] | None = None,
        claim_total: Decimal | None = None,
    ) -> RulesEvaluationResult:
        """
        Run all stages over the given items.

        Any failure while loading or applying rules degrades to a
        "no rules applied" result instead of raising.
        """
        evaluated_at = self._clock()
        carrier_id = self._profile_id(carrier)
        jurisdiction_id = self._profile_id(jurisdiction)

        logger.info(
            "rules_evaluation_started",
            estimate_id=estimate_id,
            items=len(items),
            carrier_profile_id=carrier_id,
            jurisdiction_id=jurisdiction_id,
        )

        try:
            result = self._run(
                estimate_id,
                list(items),
                list(zones),
                self._coerce(carrier, CarrierProfile),
                self._coerce(jurisdiction, JurisdictionProfile),
                claim_total,
                evaluated_at,
            )
        except Exception as e:
            logger.exception(
                "rules_evaluation_failed",
                estimate_id=estimate_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return self._no_rules_result(
                estimate_id, items, carrier_id, jurisdiction_id, evaluated_at, str(e)
            )

        logger.info(
            "rules_evaluation_completed",
            estimate_id=estimate_id,
            allowed=result.allowed_items,
            modified=result.modified_items,
            denied=result.denied_items,
            warnings=result.warning_items,
            audit_entries=len(result.audit_log),
        )
        return result

    # ------------------------------------------------------------------
    # Pass
    # ------------------------------------------------------------------

    def _run(
        self,
        estimate_id: str,
        items: list[RuleLineItem],
        zones: list[Zone],
        carrier: CarrierProfile | None,
        jurisdiction: JurisdictionProfile | None,
        claim_total: Decimal | None,
        evaluated_at: datetime,
    ) -> RulesEvaluationResult:
        audit_log: list[AuditEntry] = []
        zone_map = {zone.id: zone for zone in zones}
        states = [
            _ItemState(
                item=item,
                zone=zone_map.get(item.zone_id) if item.zone_id else None,
                quantity=item.quantity,
                unit_price=to_decimal(item.unit_price),
            )
            for item in items
        ]

        carrier_rules = self._ordered(carrier.rules if carrier else [])
        jurisdiction_rules = self._ordered(jurisdiction.rules if jurisdiction else [])

        def record(state: _ItemState, rule: AppliedRule, target_type: RuleTargetType) -> None:
            state.applied.append(rule)
            audit_log.append(
                self._audit(estimate_id, rule, target_type, state.item.id, evaluated_at)
            )

        # Stage 1: exclusion
        if carrier is not None:
            exclusions = {}
            for exclusion in carrier.exclusions:
                exclusions.setdefault(exclusion.line_item_code, exclusion)
            for state in states:
                exclusion = exclusions.get(state.item.code)
                if exclusion is None:
                    continue
                state.status = RuleStatus.DENIED
                record(
                    state,
                    AppliedRule(
                        rule_source=RuleSource.CARRIER,
                        rule_code=f"EXCL-{state.item.code}",
                        rule_name=f"Carrier Exclusion: {state.item.code}",
                        effect_type="exclude",
                        original_value={"included": True},
                        modified_value={"included": False},
                        explanation=exclusion.exclusion_reason,
                    ),
                    RuleTargetType.LINE_ITEM,
                )

        self._apply_rules(
            states, carrier_rules, jurisdiction_rules, _EXCLUSION_EFFECTS, claim_total, record
        )

        # Stage 2: caps
        if carrier is not None and carrier.caps:
            zone_usage: dict[tuple[str | None, str], float] = {}
            for state in states:
                if state.status == RuleStatus.DENIED:
                    continue
                cap = self._match_cap(carrier.caps, state.item)
                if cap is not None:
                    self._apply_cap(state, cap, zone_usage, record)

        self._apply_rules(
            states, carrier_rules, jurisdiction_rules, _CAP_EFFECTS, claim_total, record
        )

        # Stage 3: documentation
        self._apply_rules(
            states, carrier_rules, jurisdiction_rules, _DOCUMENTATION_EFFECTS, claim_total, record
        )

        estimate_effects = self._estimate_effects(
            estimate_id, carrier, jurisdiction, claim_total, evaluated_at, audit_log
        )

        result = RulesEvaluationResult(
            estimate_id=estimate_id,
            carrier_profile_id=carrier.id if carrier else None,
            jurisdiction_id=jurisdiction.id if jurisdiction else None,
            evaluated_at=evaluated_at,
            total_items=len(states),
            estimate_effects=estimate_effects,
            audit_log=audit_log,
        )

        for state in states:
            result.line_item_results.append(
                LineItemRuleResult(
                    line_item_id=state.item.id,
                    line_item_code=state.item.code,
                    status=state.status,
                    original_quantity=state.item.quantity,
                    modified_quantity=(
                        state.quantity if state.quantity != state.item.quantity else None
                    ),
                    original_unit_price=to_decimal(state.item.unit_price),
                    modified_unit_price=(
                        state.unit_price
                        if state.unit_price != to_decimal(state.item.unit_price)
                        else None
                    ),
                    documentation_required=list(state.documentation),
                    applied_rules=list(state.applied),
                    explanation=generate_explanation(
                        state.status, state.applied, state.documentation
                    ),
                )
            )
            if state.status == RuleStatus.ALLOWED:
                result.allowed_items += 1
            elif state.status == RuleStatus.MODIFIED:
                result.modified_items += 1
            elif state.status == RuleStatus.DENIED:
                result.denied_items += 1
            else:
                result.warning_items += 1

        return result

    def _apply_rules(
        self,
        states: list[_ItemState],
        carrier_rules: list[CarrierRule],
        jurisdiction_rules: list[CarrierRule],
        effect_types: tuple[type, ...],
        claim_total: Decimal | None,
        record: Callable[[_ItemState, AppliedRule, RuleTargetType], None],
    ) -> None:
        for source, rules in (
            (RuleSource.CARRIER, carrier_rules),
            (RuleSource.JURISDICTION, jurisdiction_rules),
        ):
            for rule in rules:
                if not isinstance(rule.effect, effect_types):
                    continue
                for state in states:
                    if state.status == RuleStatus.DENIED:
                        continue
                    if not self.rule_applies(rule, state.item, state.zone, claim_total):
                        continue
                    applied = self._apply_effect(state, rule, source)
                    if applied is not None:
                        record(state, applied, rule.target_type)

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------

    @staticmethod
    def _ordered(rules: Sequence[CarrierRule]) -> list[CarrierRule]:
        # sorted() is stable: equal priorities keep declaration order
        return sorted((r for r in rules if r.is_active), key=lambda r: r.priority)

    @staticmethod
    def _match_cap(caps: Sequence[CarrierCap], item: RuleLineItem) -> CarrierCap | None:
        for cap in caps:
            if cap.line_item_code and cap.line_item_code == item.code:
                return cap
        for cap in caps:
            if cap.category_id and item.category_id and item.category_id.startswith(cap.category_id):
                return cap
        return None

    @staticmethod
    def rule_applies(
        rule: CarrierRule,
        item: RuleLineItem,
        zone: Zone | None,
        claim_total: Decimal | None = None,
    ) -> bool:
        """Target match plus AND of every provided condition."""
        target = rule.target_value
        if rule.target_type == RuleTargetType.LINE_ITEM:
            if target and target != item.code:
                return False
        elif rule.target_type == RuleTargetType.CATEGORY:
            if target and not (item.category_id or "").startswith(target):
                return False
        elif rule.target_type == RuleTargetType.TRADE:
            if target and item.trade_code != target:
                return False

        conditions = rule.conditions

        if conditions.damage_type:
            damage_type = item.damage_type or (zone.damage_type if zone else None)
            if not damage_type or damage_type not in conditions.damage_type:
                return False

        if conditions.water_category:
            water_category = item.water_category or (zone.water_category if zone else None)
            if water_category is None or int(water_category) not in conditions.water_category:
                return False

        if claim_total is not None:
            if conditions.claim_total_min is not None and claim_total < conditions.claim_total_min:
                return False
            if conditions.claim_total_max is not None and claim_total > conditions.claim_total_max:
                return False

        if conditions.zone_type:
            if zone is None or zone.zone_type.value not in conditions.zone_type:
                return False

        if conditions.room_type:
            if zone is None or not zone.room_type or zone.room_type not in conditions.room_type:
                return False

        return True

    # ------------------------------------------------------------------
    # Effects
    # ------------------------------------------------------------------

    def _apply_cap(
        self,
        state: _ItemState,
        cap: CarrierCap,
        zone_usage: dict[tuple[str | None, str], float],
        record: Callable[[_ItemState, AppliedRule, RuleTargetType], None],
    ) -> None:
        code = state.item.code

        limit = cap.max_quantity
        usage_key = (state.item.zone_id, code)
        if cap.max_quantity_per_zone is not None:
            remaining = max(0.0, cap.max_quantity_per_zone - zone_usage.get(usage_key, 0.0))
            limit = remaining if limit is None else min(limit, remaining)

        if limit is not None and state.quantity > limit:
            original = state.quantity
            state.quantity = limit
            state.status = RuleStatus.MODIFIED
            record(
                state,
                AppliedRule(
                    rule_source=RuleSource.CARRIER,
                    rule_code=f"CAP-QTY-{code}",
                    rule_name=f"Carrier Quantity Cap: {code}",
                    effect_type="cap_quantity",
                    original_value={"quantity": original},
                    modified_value={"quantity": state.quantity},
                    explanation=cap.cap_reason
                    or f"Quantity capped at {_fmt(limit)} per carrier guidelines",
                ),
                RuleTargetType.LINE_ITEM,
            )

        if cap.max_quantity_per_zone is not None:
            zone_usage[usage_key] = zone_usage.get(usage_key, 0.0) + state.quantity

        if cap.max_unit_price is not None and state.unit_price > cap.max_unit_price:
            original_price = state.unit_price
            state.unit_price = to_decimal(cap.max_unit_price)
            state.status = RuleStatus.MODIFIED
            record(
                state,
                AppliedRule(
                    rule_source=RuleSource.CARRIER,
                    rule_code=f"CAP-PRICE-{code}",
                    rule_name=f"Carrier Price Cap: {code}",
                    effect_type="cap_cost",
                    original_value={"unit_price": str(original_price)},
                    modified_value={"unit_price": str(state.unit_price)},
                    explanation=cap.cap_reason
                    or f"Unit price capped at ${cap.max_unit_price} per carrier guidelines",
                ),
                RuleTargetType.LINE_ITEM,
            )

    def _apply_effect(
        self, state: _ItemState, rule: CarrierRule, source: RuleSource
    ) -> AppliedRule | None:
        effect = rule.effect
        template = rule.explanation_template

        def applied(effect_type: str, original: dict, modified: dict, default: str) -> AppliedRule:
            return AppliedRule(
                rule_source=source,
                rule_code=rule.rule_code,
                rule_name=rule.rule_name,
                effect_type=effect_type,
                original_value=original,
                modified_value=modified,
                explanation=template or default,
            )

        if isinstance(effect, ExcludeEffect):
            state.status = RuleStatus.DENIED
            return applied(
                "exclude",
                {"included": True},
                {"included": False},
                effect.reason or f"Excluded by {source.value} rule: {rule.rule_name}",
            )

        if isinstance(effect, CapQuantityEffect):
            if state.quantity <= effect.max_quantity:
                return None
            original = state.quantity
            state.quantity = effect.max_quantity
            state.status = RuleStatus.MODIFIED
            return applied(
                "cap_quantity",
                {"quantity": original},
                {"quantity": state.quantity},
                effect.reason or f"Quantity capped at {_fmt(effect.max_quantity)}",
            )

        if isinstance(effect, CapCostEffect):
            if state.unit_price <= effect.max_per_unit:
                return None
            original_price = state.unit_price
            state.unit_price = to_decimal(effect.max_per_unit)
            state.status = RuleStatus.MODIFIED
            return applied(
                "cap_cost",
                {"unit_price": str(original_price)},
                {"unit_price": str(state.unit_price)},
                effect.reason or f"Unit price capped at ${effect.max_per_unit}",
            )

        if isinstance(effect, ModifyPctEffect):
            original_price = state.unit_price
            state.unit_price = round_money(original_price * to_decimal(effect.multiplier))
            state.status = RuleStatus.MODIFIED
            return applied(
                "modify_pct",
                {"unit_price": str(original_price)},
                {"unit_price": str(state.unit_price)},
                effect.reason or f"Price modified by {effect.multiplier * 100:.0f}%",
            )

        if isinstance(effect, RequireDocEffect):
            for doc in effect.required:
                if doc not in state.documentation:
                    state.documentation.append(doc)
            if state.status == RuleStatus.ALLOWED:
                state.status = RuleStatus.WARNING
            return applied(
                "require_doc",
                {"documentation": []},
                {"documentation": list(effect.required)},
                effect.reason or f"Documentation required: {', '.join(effect.required)}",
            )

        if isinstance(effect, WarnEffect):
            if state.status == RuleStatus.ALLOWED:
                state.status = RuleStatus.WARNING
            return applied("warn", {}, {}, effect.message or f"Warning: {rule.rule_name}")

        raise ValueError(f"Unsupported rule effect: {type(effect).__name__}")

    def _estimate_effects(
        self,
        estimate_id: str,
        carrier: CarrierProfile | None,
        jurisdiction: JurisdictionProfile | None,
        claim_total: Decimal | None,
        evaluated_at: datetime,
        audit_log: list[AuditEntry],
    ) -> list[AppliedRule]:
        if jurisdiction is None:
            return []

        effects: list[AppliedRule] = []
        name = jurisdiction.name or jurisdiction.id

        if jurisdiction.labor_taxable:
            effects.append(
                AppliedRule(
                    rule_source=RuleSource.JURISDICTION,
                    rule_code="JUR-LABOR-TAX",
                    rule_name="Labor Taxable",
                    effect_type="labor_taxable",
                    original_value={"labor_taxable": False},
                    modified_value={"labor_taxable": True},
                    explanation=f"Labor is taxable in {name}",
                )
            )

        if jurisdiction.op_threshold_override is not None:
            carrier_threshold = carrier.op_threshold if carrier else ZERO
            effects.append(
                AppliedRule(
                    rule_source=RuleSource.JURISDICTION,
                    rule_code="JUR-OP-THRESHOLD",
                    rule_name="O&P Threshold Override",
                    effect_type="op_threshold",
                    original_value={"op_threshold": str(carrier_threshold)},
                    modified_value={"op_threshold": str(jurisdiction.op_threshold_override)},
                    explanation=(
                        f"O&P threshold is ${jurisdiction.op_threshold_override} in {name}"
                    ),
                )
            )

        if (
            jurisdiction.minimum_charge is not None
            and claim_total is not None
            and claim_total < jurisdiction.minimum_charge
        ):
            effects.append(
                AppliedRule(
                    rule_source=RuleSource.JURISDICTION,
                    rule_code="JUR-MIN-CHARGE",
                    rule_name="Regional Minimum Charge",
                    effect_type="warn",
                    original_value={"total": str(claim_total)},
                    modified_value={"minimum_charge": str(jurisdiction.minimum_charge)},
                    explanation=(
                        f"Regional minimum charge of ${jurisdiction.minimum_charge} "
                        f"applies in {name}"
                    ),
                )
            )

        for effect in effects:
            audit_log.append(
                self._audit(estimate_id, effect, RuleTargetType.ESTIMATE, None, evaluated_at)
            )
        return effects

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _audit(
        estimate_id: str,
        rule: AppliedRule,
        target_type: RuleTargetType,
        target_id: str | None,
        timestamp: datetime,
    ) -> AuditEntry:
        return AuditEntry(
            timestamp=timestamp,
            estimate_id=estimate_id,
            rule_source=rule.rule_source,
            rule_code=rule.rule_code,
            target_type=target_type,
            target_id=target_id,
            effect_type=rule.effect_type,
            original_value=rule.original_value,
            modified_value=rule.modified_value,
            explanation=rule.explanation,
        )

    @staticmethod
    def _coerce(profile: Any, model: type[BaseModel]) -> Any:
        if profile is None or isinstance(profile, model):
            return profile
        return model.model_validate(profile)

    @staticmethod
    def _profile_id(profile: Any) -> str | None:
        if profile is None:
            return None
        if isinstance(profile, Mapping):
            value = profile.get("id")
            return str(value) if value is not None else None
        return getattr(profile, "id", None)

    @staticmethod
    def _no_rules_result(
        estimate_id: str,
        items: Sequence[RuleLineItem],
        carrier_id: str | None,
        jurisdiction_id: str | None,
        evaluated_at: datetime,
        error: str,
    ) -> RulesEvaluationResult:
        return RulesEvaluationResult(
            estimate_id=estimate_id,
            carrier_profile_id=carrier_id,
            jurisdiction_id=jurisdiction_id,
            evaluated_at=evaluated_at,
            total_items=len(items),
            allowed_items=len(items),
            line_item_results=[
                LineItemRuleResult(
                    line_item_id=item.id,
                    line_item_code=item.code,
                    status=RuleStatus.ALLOWED,
                    original_quantity=item.quantity,
                    original_unit_price=to_decimal(item.unit_price),
                    explanation=NO_RULES_EXPLANATION,
                )
                for item in items
            ],
            degraded=True,
            error=error,
        )


def format_rules_result(result: RulesEvaluationResult) -> str:
    """Plain-text report of a rules evaluation."""
    lines = [
        "=== Rules Evaluation Result ===",
        f"Estimate: {result.estimate_id}",
        f"Evaluated: {result.evaluated_at.isoformat()}",
        "",
        "Summary:",
        f"  Total Items: {result.total_items}",
        f"  Allowed: {result.allowed_items}",
        f"  Modified: {result.modified_items}",
        f"  Denied: {result.denied_items}",
        f"  Warnings: {result.warning_items}",
        "",
    ]

    if result.degraded:
        lines.append(f"Rules could not be evaluated: {result.error}")
        lines.append("")

    sections = (
        (RuleStatus.DENIED, "DENIED ITEMS:"),
        (RuleStatus.MODIFIED, "MODIFIED ITEMS:"),
        (RuleStatus.WARNING, "ITEMS WITH WARNINGS:"),
    )
    for status, heading in sections:
        matching = [r for r in result.line_item_results if r.status == status]
        if not matching:
            continue
        lines.append(heading)
        for item in matching:
            lines.append(f"  {item.line_item_code}:")
            for rule in item.applied_rules:
                lines.append(f"    - [{rule.rule_source.value.upper()}] {rule.explanation}")
            if item.documentation_required:
                lines.append(f"    Documentation: {', '.join(item.documentation_required)}")
        lines.append("")

    if result.estimate_effects:
        lines.append("ESTIMATE-LEVEL EFFECTS:")
        for effect in result.estimate_effects:
            lines.append(f"  - {effect.explanation}")
        lines.append("")

    lines.append(f"Audit entries: {len(result.audit_log)}")
    return "\n".join(lines)
