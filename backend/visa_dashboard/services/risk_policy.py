"""Risk tier thresholds and applicant age groups shared by every view."""

from datetime import date

from visa_dashboard.models import RiskLabel, RiskLevel

HIGH_RISK_THRESHOLD = 70
MEDIUM_RISK_THRESHOLD = 40

AGE_GROUP_ORDER = ["under_25", "25_34", "35_44", "45_54", "55_plus", "unspecified"]


def get_risk_level(*, risk_score: int | None) -> RiskLevel | None:
    if risk_score is None:
        return None
    if risk_score >= HIGH_RISK_THRESHOLD:
        return RiskLevel.HIGH
    if risk_score >= MEDIUM_RISK_THRESHOLD:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def get_risk_label(*, risk_score: int) -> RiskLabel:
    level = get_risk_level(risk_score=risk_score)
    return RiskLabel(level.value) if level else RiskLabel.MEDIUM


def is_high_risk(risk_score: int | None) -> bool:
    return get_risk_level(risk_score=risk_score) == RiskLevel.HIGH


def calculate_age(birth_date: date, *, today: date | None = None) -> int:
    today = today or date.today()
    had_birthday = (today.month, today.day) >= (birth_date.month, birth_date.day)
    return today.year - birth_date.year - (0 if had_birthday else 1)


def get_age_group(birth_date: date | None, *, today: date | None = None) -> str:
    if birth_date is None:
        return "unspecified"
    age = calculate_age(birth_date, today=today)
    if age < 25:
        return "under_25"
    if age < 35:
        return "25_34"
    if age < 45:
        return "35_44"
    if age < 55:
        return "45_54"
    return "55_plus"
