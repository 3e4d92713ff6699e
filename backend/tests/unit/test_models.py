"""Unit tests for Pydantic/SQLModel schema validation."""

import pytest
from pydantic import ValidationError

from visa_dashboard.core.i18n import translate
from visa_dashboard.models import (
    ApplicantStatus,
    RiskAnalysisResult,
    ReviewDecisionAction,
    ReviewDecisionRequest,
    VisaApplicantCreate,
)


def _record(**overrides: object) -> dict[str, object]:
    record: dict[str, object] = {
        "id": "VA-1",
        "passport_number": "P1",
        "full_name": "ليلى حسن",
        "nationality": "الأردن",
        "visa_type": "سياحة",
    }
    record.update(overrides)
    return record


class TestVisaApplicantCreate:
    def test_minimal_record_defaults(self) -> None:
        applicant = VisaApplicantCreate.model_validate(_record())
        assert applicant.status == ApplicantStatus.PENDING
        assert applicant.previous_visits == 0
        assert applicant.has_violations is False
        assert applicant.violations == []
        assert applicant.risk_score is None

    def test_parses_dates(self) -> None:
        applicant = VisaApplicantCreate.model_validate(
            _record(birth_date="1990-02-28", entry_date="2024-01-01")
        )
        assert applicant.birth_date is not None
        assert applicant.birth_date.year == 1990

    def test_violations_parsed(self) -> None:
        applicant = VisaApplicantCreate.model_validate(
            _record(
                has_violations=True,
                violations=[{"type": "تجاوز مدة", "date": "2021-01-01", "severity": "عالية"}],
            )
        )
        assert applicant.violations[0].type == "تجاوز مدة"

    def test_risk_score_out_of_range(self) -> None:
        with pytest.raises(ValidationError):
            VisaApplicantCreate.model_validate(_record(risk_score=101))

    def test_unknown_status_rejected(self) -> None:
        with pytest.raises(ValidationError):
            VisaApplicantCreate.model_validate(_record(status="archived"))

    def test_missing_name_rejected(self) -> None:
        with pytest.raises(ValidationError):
            VisaApplicantCreate.model_validate(_record(full_name=""))

    def test_negative_salary_rejected(self) -> None:
        with pytest.raises(ValidationError):
            VisaApplicantCreate.model_validate(_record(monthly_salary=-1))

    def test_free_text_analysis_allowed(self) -> None:
        applicant = VisaApplicantCreate.model_validate(_record(risk_analysis="نص حر"))
        assert applicant.risk_analysis == "نص حر"


class TestReviewDecisionRequest:
    def test_valid_actions(self) -> None:
        for action in ("grant_entry", "further_review", "reject"):
            request = ReviewDecisionRequest(action=action)
            assert request.action == ReviewDecisionAction(action)

    def test_invalid_action(self) -> None:
        with pytest.raises(ValidationError):
            ReviewDecisionRequest(action="approve_everything")

    def test_reason_too_long(self) -> None:
        with pytest.raises(ValidationError):
            ReviewDecisionRequest(action="reject", reason="x" * 1001)


class TestRiskAnalysisResult:
    def test_score_bounds(self) -> None:
        with pytest.raises(ValidationError):
            RiskAnalysisResult(
                risk_score=120,
                risk_level="high",
                analysis="",
                factors=[],
                recommendation="reject",
            )


class TestTranslate:
    def test_arabic_default(self) -> None:
        assert translate("risk.high") == "عالية"

    def test_english(self) -> None:
        assert translate("risk.high", "en") == "High"

    def test_unknown_key_returns_key(self) -> None:
        assert translate("does.not.exist", "en") == "does.not.exist"
