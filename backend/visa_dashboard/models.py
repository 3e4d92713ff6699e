import uuid
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

from sqlalchemy import JSON, DateTime
from sqlmodel import Field, Relationship, SQLModel


def get_datetime_utc() -> datetime:
    return datetime.now(timezone.utc)


class ApplicantStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REVIEW = "review"
    REJECTED = "rejected"


class RiskLevel(str, Enum):
    """Dashboard risk tier, always derived from the score."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RiskLabel(str, Enum):
    """Risk label reported by the model alongside its score."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"


class Recommendation(str, Enum):
    GRANT_ENTRY = "grant entry"
    FURTHER_REVIEW = "further review"
    REJECT = "reject"


class ReviewDecisionAction(str, Enum):
    GRANT_ENTRY = "grant_entry"
    FURTHER_REVIEW = "further_review"
    REJECT = "reject"


class Violation(SQLModel):
    type: str = Field(min_length=1, max_length=255)
    # Kept as the source's string; only ever displayed or serialized.
    date: str | None = Field(default=None, max_length=32)
    severity: str | None = Field(default=None, max_length=64)


# Shared properties
class VisaApplicantBase(SQLModel):
    passport_number: str = Field(min_length=1, max_length=64, index=True)
    full_name: str = Field(min_length=1, max_length=255)
    nationality: str = Field(min_length=1, max_length=128, index=True)
    gender: str | None = Field(default=None, max_length=32)
    birth_date: date | None = Field(default=None)
    visa_type: str = Field(min_length=1, max_length=128, index=True)
    entry_date: date | None = Field(default=None)
    exit_date: date | None = Field(default=None)
    sponsor: str | None = Field(default=None, max_length=255)
    profession: str | None = Field(default=None, max_length=255)
    employer: str | None = Field(default=None, max_length=255)
    monthly_salary: float | None = Field(default=None, ge=0)
    work_experience_years: int | None = Field(default=None, ge=0)
    education_level: str | None = Field(default=None, max_length=128)
    previous_visits: int = Field(default=0, ge=0)
    has_violations: bool = False


# Properties accepted when importing a record from the JSON source
class VisaApplicantCreate(VisaApplicantBase):
    id: str = Field(min_length=1, max_length=64)
    status: ApplicantStatus = ApplicantStatus.PENDING
    violations: list[Violation] = Field(default_factory=list)
    risk_score: int | None = Field(default=None, ge=0, le=100)
    risk_analysis: dict[str, Any] | str | None = None


# Database model, database table inferred from class name
class VisaApplicant(VisaApplicantBase, table=True):
    __tablename__ = "visa_applicant"

    id: str = Field(primary_key=True, max_length=64)
    status: str = Field(default=ApplicantStatus.PENDING.value, max_length=32)
    violations: list[dict[str, Any]] = Field(default_factory=list, sa_type=JSON)
    risk_score: int | None = Field(default=None, ge=0, le=100)
    risk_analysis: dict[str, Any] | str | None = Field(default=None, sa_type=JSON)
    analyzed_at: datetime | None = Field(
        default=None,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    decision_reason: str | None = Field(default=None, max_length=1000)
    decided_at: datetime | None = Field(
        default=None,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    updated_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )

    audit_events: list["ApplicantAuditEvent"] = Relationship(
        back_populates="applicant", cascade_delete=True
    )


# Properties to return via API, id is always required
class VisaApplicantPublic(VisaApplicantBase):
    id: str
    status: ApplicantStatus
    violations: list[Violation] = Field(default_factory=list)
    risk_score: int | None = None
    risk_level: RiskLevel | None = None
    risk_analysis: dict[str, Any] | str | None = None
    analyzed_at: datetime | None = None
    decision_reason: str | None = None
    decided_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class VisaApplicantsPublic(SQLModel):
    data: list[VisaApplicantPublic]
    count: int
    warning: str | None = None


class ApplicantFilterOptionsPublic(SQLModel):
    nationalities: list[str]
    visa_types: list[str]
    statuses: list[ApplicantStatus]


class DashboardStatsPublic(SQLModel):
    total: int
    analyzed: int
    pending_analysis: int
    high_risk: int
    medium_risk: int
    low_risk: int
    status_counts: dict[str, int]
    average_risk_score: float | None = None


class RiskDistributionRow(SQLModel):
    name: str
    low: int = 0
    medium: int = 0
    high: int = 0
    total: int = 0


class RiskChartsPublic(SQLModel):
    analyzed_count: int
    by_gender: list[RiskDistributionRow]
    by_age_group: list[RiskDistributionRow]
    by_nationality: list[RiskDistributionRow]
    by_visa_type: list[RiskDistributionRow]
    message: str | None = None


class HighRiskAlertPublic(SQLModel):
    id: str
    full_name: str
    nationality: str
    visa_type: str
    risk_score: int


class HighRiskAlertsPublic(SQLModel):
    data: list[HighRiskAlertPublic]
    count: int


class RiskAnalysisResult(SQLModel):
    risk_score: int = Field(ge=0, le=100)
    risk_level: RiskLabel
    analysis: str
    factors: list[str]
    recommendation: Recommendation


class RiskAnalysisRequest(SQLModel):
    # Both spellings are accepted by the gateway endpoint.
    applicant: dict[str, Any] | None = None
    applicantData: dict[str, Any] | None = None


class ReviewDecisionRequest(SQLModel):
    action: ReviewDecisionAction
    reason: str | None = Field(default=None, max_length=1000)


class ApplicantAuditEvent(SQLModel, table=True):
    __tablename__ = "applicant_audit_event"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    action: str = Field(max_length=64)
    reason: str | None = Field(default=None, max_length=1000)
    event_metadata: dict[str, Any] = Field(default_factory=dict, sa_type=JSON)
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    applicant_id: str = Field(
        foreign_key="visa_applicant.id", nullable=False, ondelete="CASCADE"
    )

    applicant: VisaApplicant | None = Relationship(back_populates="audit_events")


class ApplicantAuditEventPublic(SQLModel):
    id: uuid.UUID
    action: str
    reason: str | None = None
    event_metadata: dict[str, Any]
    created_at: datetime | None = None
    applicant_id: str


class ApplicantAuditTrailPublic(SQLModel):
    applicant_id: str
    events: list[ApplicantAuditEventPublic]


class BatchFailurePublic(SQLModel):
    applicant_id: str
    error: str


class BatchProgressPublic(SQLModel):
    running: bool
    total: int
    completed: int
    succeeded: int
    failed: int
    started_at: datetime | None = None
    finished_at: datetime | None = None
    failures: list[BatchFailurePublic] = Field(default_factory=list)


# Generic message
class Message(SQLModel):
    message: str
