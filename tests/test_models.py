"""
Tests for core data models, settings, errors and utilities.
"""

from decimal import Decimal

import pytest
import structlog
from pydantic import ValidationError

from estimate_engine.config import EngineSettings
from estimate_engine.core.models import (
    AppliedRule,
    CapQuantityEffect,
    CarrierProfile,
    CarrierRule,
    CoverageCode,
    Estimate,
    EstimateLineItem,
    JurisdictionRule,
    MissingWall,
    RequireDocEffect,
    RuleSource,
    RuleTargetType,
    Severity,
    ValidationCategory,
    ValidationIssue,
    ValidationResult,
    Zone,
)
from estimate_engine.errors import (
    EstimateEngineError,
    EstimateNotFoundError,
    LineItemNotFoundError,
)
from estimate_engine.utils import configure_logging, round_measure, round_money, to_decimal


class TestRuleModels:
    """Rule records parse from stored JSON."""

    def test_effect_discriminator(self) -> None:
        rule = CarrierRule.model_validate(
            {
                "rule_code": "C-1",
                "rule_name": "Cap dehus",
                "target_type": "line_item",
                "target_value": "WTR-DRY-DEHU",
                "effect": {"kind": "cap_quantity", "max_quantity": 4},
            }
        )

        assert isinstance(rule.effect, CapQuantityEffect)
        assert rule.effect.max_quantity == 4
        assert rule.priority == 100
        assert rule.is_active is True

    def test_jurisdiction_rule_shares_shape(self) -> None:
        rule = JurisdictionRule(
            rule_code="J-1",
            rule_name="Moisture logs",
            target_type=RuleTargetType.CATEGORY,
            target_value="WTR",
            effect={"kind": "require_doc", "required": ["moisture_log"]},
        )
        assert isinstance(rule.effect, RequireDocEffect)

    def test_unknown_effect_rejected(self) -> None:
        with pytest.raises(ValidationError):
            CarrierRule(rule_code="X", rule_name="X", effect={"kind": "teleport"})

    def test_require_doc_needs_documents(self) -> None:
        with pytest.raises(ValidationError):
            RequireDocEffect(required=[])

    def test_applied_rule_is_immutable(self) -> None:
        rule = AppliedRule(
            rule_source=RuleSource.CARRIER,
            rule_code="EXCL-X",
            rule_name="Carrier Exclusion: X",
            effect_type="exclude",
            explanation="Excluded",
        )
        with pytest.raises(ValidationError):
            rule.rule_code = "OTHER"


class TestGeometryModels:
    def test_dimensions_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            Zone(id="z", length_ft=0, width_ft=10)

    def test_missing_wall_defaults(self) -> None:
        wall = MissingWall(width_ft=3, height_ft=7)

        assert wall.quantity == 1
        assert wall.goes_to_floor is True
        assert wall.goes_to_ceiling is False


class TestEstimate:
    def test_get_zone_and_claim_total(self, water_estimate: Estimate) -> None:
        assert water_estimate.get_zone("zone-living").name == "Living Room"
        assert water_estimate.get_zone("zone-nope") is None
        assert water_estimate.get_zone(None) is None
        assert water_estimate.claim_total == Decimal("0")

    def test_negative_unit_price_rejected(self) -> None:
        with pytest.raises(ValidationError):
            EstimateLineItem(id="li", code="X", unit_price=Decimal("-1"))

    def test_carrier_defaults_from_settings(self, settings: EngineSettings) -> None:
        profile = CarrierProfile.default(settings)

        assert profile.id == "default"
        assert profile.overhead_pct == Decimal("10")
        assert profile.max_depreciation_pct == 80.0


class TestValidationResult:
    """Aggregation of issues into a verdict."""

    def _issue(self, code: str, severity: Severity, zone_id: str | None = None) -> ValidationIssue:
        return ValidationIssue(
            code=code,
            severity=severity,
            category=ValidationCategory.QUANTITY,
            message=code,
            zone_id=zone_id,
        )

    def test_from_issues(self) -> None:
        issues = [
            self._issue("QTY001", Severity.WARNING, "z1"),
            self._issue("QTY001", Severity.WARNING, "z2"),
            self._issue("CMP001", Severity.INFO),
        ]
        result = ValidationResult.from_issues(issues, {"estimate_id": "E"})

        assert result.is_valid is True
        assert (result.error_count, result.warning_count, result.info_count) == (0, 2, 1)
        assert result.issue_count == 3
        assert set(result.by_zone) == {"z1", "z2", "global"}
        assert len(result.by_category["quantity"]) == 3
        assert result.meta == {"estimate_id": "E"}

    def test_single_error_blocks(self) -> None:
        result = ValidationResult.from_issues([self._issue("QTY002", Severity.ERROR)])

        assert result.is_valid is False
        assert result.error_count == 1

    def test_empty(self) -> None:
        result = ValidationResult.from_issues([])
        assert result.is_valid is True
        assert result.issues == []


class TestErrors:
    def test_to_dict(self) -> None:
        error = EstimateNotFoundError("EST-9")

        assert str(error) == "Estimate not found: EST-9"
        assert error.to_dict() == {
            "error": {
                "code": "ESTIMATE_NOT_FOUND",
                "message": "Estimate not found: EST-9",
                "details": {"estimate_id": "EST-9"},
            }
        }

    def test_line_item_not_found(self) -> None:
        error = LineItemNotFoundError("li-9", "EST-1")

        assert isinstance(error, EstimateEngineError)
        assert error.details == {"line_item_id": "li-9", "estimate_id": "EST-1"}


class TestSettings:
    def test_env_prefix(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ESTIMATE_ENGINE_OVERHEAD_PCT", "12.5")
        monkeypatch.setenv("ESTIMATE_ENGINE_DEFAULT_HEIGHT_FT", "9")
        monkeypatch.setenv("ESTIMATE_ENGINE_LOG_JSON", "true")

        settings = EngineSettings(_env_file=None)

        assert settings.overhead_pct == Decimal("12.5")
        assert settings.default_height_ft == 9.0
        assert settings.log_json is True

    def test_invalid_value_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ESTIMATE_ENGINE_MAX_DEPRECIATION_PCT", "150")

        with pytest.raises(ValidationError):
            EngineSettings(_env_file=None)


class TestUtilities:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (Decimal("2.345"), Decimal("2.35")),
            (Decimal("2.344"), Decimal("2.34")),
            (0.125, Decimal("0.13")),
            ("10", Decimal("10.00")),
            (None, Decimal("0.00")),
        ],
    )
    def test_round_money(self, value, expected: Decimal) -> None:
        assert round_money(value) == expected

    def test_round_measure(self) -> None:
        assert round_measure(1.005) == 1.01
        assert round_measure(223.60679, 1) == 223.6

    def test_to_decimal_avoids_float_artifacts(self) -> None:
        assert to_decimal(1.1) == Decimal("1.1")

    def test_configure_logging(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(level="WARNING", json_output=True)
        logger = structlog.get_logger("estimate_engine.test")

        logger.info("hidden_event")
        logger.warning("shown_event", estimate_id="EST-1")

        out = capsys.readouterr().out
        assert "hidden_event" not in out
        assert '"event": "shown_event"' in out
        assert '"estimate_id": "EST-1"' in out

        structlog.reset_defaults()

    def test_coverage_codes(self) -> None:
        assert [c.value for c in CoverageCode] == ["A", "B", "C", "D"]
