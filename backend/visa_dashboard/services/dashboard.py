"""Client-side style list operations over applicant records.

Filtering, sorting and aggregation run in memory over whatever the repository
returns, so both data sources behave identically.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from enum import Enum

from visa_dashboard.core.i18n import Language, translate
from visa_dashboard.models import (
    ApplicantFilterOptionsPublic,
    ApplicantStatus,
    DashboardStatsPublic,
    HighRiskAlertPublic,
    RiskChartsPublic,
    RiskDistributionRow,
    RiskLevel,
    VisaApplicant,
)
from visa_dashboard.services.risk_policy import (
    AGE_GROUP_ORDER,
    get_age_group,
    get_risk_level,
    is_high_risk,
)

TOP_NATIONALITIES = 8


class ApplicantSortField(str, Enum):
    ID = "id"
    FULL_NAME = "full_name"
    RISK_SCORE = "risk_score"
    CREATED_AT = "created_at"


@dataclass
class ApplicantFilters:
    nationality: str | None = None
    visa_type: str | None = None
    search: str | None = None
    status: ApplicantStatus | None = None
    risk_level: RiskLevel | None = None

    def matches(self, applicant: VisaApplicant) -> bool:
        if self.nationality and applicant.nationality != self.nationality:
            return False
        if self.visa_type and applicant.visa_type != self.visa_type:
            return False
        if self.status and applicant.status != self.status.value:
            return False
        if self.risk_level and (
            get_risk_level(risk_score=applicant.risk_score) != self.risk_level
        ):
            return False
        search = (self.search or "").strip().casefold()
        if search:
            haystacks = (applicant.full_name, applicant.passport_number, applicant.id)
            if not any(search in (value or "").casefold() for value in haystacks):
                return False
        return True


def filter_applicants(
    applicants: Iterable[VisaApplicant], filters: ApplicantFilters
) -> list[VisaApplicant]:
    return [applicant for applicant in applicants if filters.matches(applicant)]


def sort_applicants(
    applicants: Iterable[VisaApplicant],
    *,
    sort_by: ApplicantSortField = ApplicantSortField.ID,
    descending: bool = False,
) -> list[VisaApplicant]:
    rows = list(applicants)
    if sort_by == ApplicantSortField.RISK_SCORE:
        # Unscored applicants go last in either direction.
        scored = [row for row in rows if row.risk_score is not None]
        unscored = [row for row in rows if row.risk_score is None]
        scored.sort(key=lambda row: (row.risk_score, row.id), reverse=descending)
        return scored + unscored

    key_funcs: dict[ApplicantSortField, Callable[[VisaApplicant], tuple]] = {
        ApplicantSortField.ID: lambda row: (row.id,),
        ApplicantSortField.FULL_NAME: lambda row: (row.full_name.casefold(), row.id),
        ApplicantSortField.CREATED_AT: lambda row: (
            row.created_at.isoformat() if row.created_at else "",
            row.id,
        ),
    }
    return sorted(rows, key=key_funcs[sort_by], reverse=descending)


def build_filter_options(
    applicants: Sequence[VisaApplicant],
) -> ApplicantFilterOptionsPublic:
    return ApplicantFilterOptionsPublic(
        nationalities=sorted({row.nationality for row in applicants}),
        visa_types=sorted({row.visa_type for row in applicants}),
        statuses=list(ApplicantStatus),
    )


def build_stats(applicants: Sequence[VisaApplicant]) -> DashboardStatsPublic:
    scores = [row.risk_score for row in applicants if row.risk_score is not None]
    levels = Counter(get_risk_level(risk_score=score) for score in scores)
    status_counts = {status.value: 0 for status in ApplicantStatus}
    status_counts.update(Counter(row.status for row in applicants))
    return DashboardStatsPublic(
        total=len(applicants),
        analyzed=len(scores),
        pending_analysis=len(applicants) - len(scores),
        high_risk=levels[RiskLevel.HIGH],
        medium_risk=levels[RiskLevel.MEDIUM],
        low_risk=levels[RiskLevel.LOW],
        status_counts=status_counts,
        average_risk_score=round(sum(scores) / len(scores), 2) if scores else None,
    )


def build_high_risk_alerts(
    applicants: Iterable[VisaApplicant], *, dismissed: Iterable[str] = ()
) -> list[HighRiskAlertPublic]:
    dismissed_ids = set(dismissed)
    rows = [
        row
        for row in applicants
        if is_high_risk(row.risk_score) and row.id not in dismissed_ids
    ]
    rows.sort(key=lambda row: (-(row.risk_score or 0), row.id))
    return [
        HighRiskAlertPublic(
            id=row.id,
            full_name=row.full_name,
            nationality=row.nationality,
            visa_type=row.visa_type,
            risk_score=row.risk_score or 0,
        )
        for row in rows
    ]


def _distribution(
    applicants: Iterable[VisaApplicant], group_of: Callable[[VisaApplicant], str]
) -> dict[str, RiskDistributionRow]:
    groups: dict[str, RiskDistributionRow] = {}
    for row in applicants:
        level = get_risk_level(risk_score=row.risk_score)
        if level is None:
            continue
        name = group_of(row)
        bucket = groups.setdefault(name, RiskDistributionRow(name=name))
        setattr(bucket, level.value, getattr(bucket, level.value) + 1)
        bucket.total += 1
    return groups


def build_risk_charts(
    applicants: Sequence[VisaApplicant],
    *,
    lang: Language = "ar",
    today: date | None = None,
) -> RiskChartsPublic:
    analyzed = [row for row in applicants if row.risk_score is not None]
    unspecified = translate("unspecified", lang)

    by_gender = _distribution(analyzed, lambda row: row.gender or unspecified)

    age_groups = _distribution(
        analyzed, lambda row: get_age_group(row.birth_date, today=today)
    )
    by_age_group = []
    for group in AGE_GROUP_ORDER:
        if group in age_groups:
            bucket = age_groups[group]
            label = unspecified if group == "unspecified" else translate(f"age.{group}", lang)
            by_age_group.append(bucket.model_copy(update={"name": label}))

    by_nationality = sorted(
        _distribution(analyzed, lambda row: row.nationality).values(),
        key=lambda bucket: (-bucket.total, bucket.name),
    )[:TOP_NATIONALITIES]

    by_visa_type = _distribution(analyzed, lambda row: row.visa_type)

    return RiskChartsPublic(
        analyzed_count=len(analyzed),
        by_gender=list(by_gender.values()),
        by_age_group=by_age_group,
        by_nationality=by_nationality,
        by_visa_type=list(by_visa_type.values()),
        message=None if analyzed else translate("charts.empty", lang),
    )
