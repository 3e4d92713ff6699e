import logging
from typing import Annotated, Any, Literal

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Response

from visa_dashboard.api.deps import RepositoryDep, open_repository
from visa_dashboard.core.config import settings
from visa_dashboard.core.i18n import Language, translate
from visa_dashboard.models import (
    ApplicantAuditEventPublic,
    ApplicantAuditTrailPublic,
    ApplicantFilterOptionsPublic,
    ApplicantStatus,
    BatchProgressPublic,
    DashboardStatsPublic,
    HighRiskAlertsPublic,
    ReviewDecisionAction,
    ReviewDecisionRequest,
    RiskChartsPublic,
    RiskLevel,
    VisaApplicant,
    VisaApplicantPublic,
    VisaApplicantsPublic,
)
from visa_dashboard.services import batch_analysis, risk_analysis
from visa_dashboard.services.csv_export import build_csv_filename, export_applicants_csv
from visa_dashboard.services.dashboard import (
    ApplicantFilters,
    ApplicantSortField,
    build_filter_options,
    build_high_risk_alerts,
    build_risk_charts,
    build_stats,
    filter_applicants,
    sort_applicants,
)
from visa_dashboard.services.repository import ApplicantRepository, ApplicantSourceError
from visa_dashboard.services.risk_analysis import (
    GatewayNotConfiguredError,
    RiskAnalysisError,
)
from visa_dashboard.services.risk_policy import get_risk_level

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/applicants", tags=["applicants"])

DECISION_STATUS_MAP = {
    ReviewDecisionAction.GRANT_ENTRY: ApplicantStatus.APPROVED,
    ReviewDecisionAction.FURTHER_REVIEW: ApplicantStatus.REVIEW,
    ReviewDecisionAction.REJECT: ApplicantStatus.REJECTED,
}


def get_filters(
    nationality: str | None = None,
    visa_type: str | None = None,
    search: str | None = None,
    status: ApplicantStatus | None = None,
    risk_level: RiskLevel | None = None,
) -> ApplicantFilters:
    return ApplicantFilters(
        nationality=nationality,
        visa_type=visa_type,
        search=search,
        status=status,
        risk_level=risk_level,
    )


FiltersDep = Annotated[ApplicantFilters, Depends(get_filters)]


def resolve_language(lang: Literal["ar", "en"] | None) -> Language:
    return lang or settings.DEFAULT_LANGUAGE


def load_applicants(
    repository: ApplicantRepository,
) -> tuple[list[VisaApplicant], str | None]:
    """Return all applicants, or an empty list plus a warning if the source fails."""
    try:
        return repository.list_applicants(), None
    except ApplicantSourceError as exc:
        logger.error("Failed to load applicants: %s", exc)
        return [], translate("error.source_unavailable", settings.DEFAULT_LANGUAGE)


def get_applicant_or_404(
    repository: ApplicantRepository, applicant_id: str
) -> VisaApplicant:
    try:
        applicant = repository.get_applicant(applicant_id)
    except ApplicantSourceError as exc:
        logger.error("Failed to load applicant %s: %s", applicant_id, exc)
        raise HTTPException(
            status_code=503,
            detail=translate("error.source_unavailable", settings.DEFAULT_LANGUAGE),
        )
    if not applicant:
        raise HTTPException(status_code=404, detail="Applicant not found")
    return applicant


def map_applicant_public(applicant: VisaApplicant) -> VisaApplicantPublic:
    return VisaApplicantPublic.model_validate(
        applicant,
        update={"risk_level": get_risk_level(risk_score=applicant.risk_score)},
    )


@router.get("/", response_model=VisaApplicantsPublic)
def read_applicants(
    repository: RepositoryDep,
    filters: FiltersDep,
    sort_by: ApplicantSortField = ApplicantSortField.ID,
    descending: bool = False,
    skip: int = 0,
    limit: int = 100,
) -> Any:
    applicants, warning = load_applicants(repository)
    rows = sort_applicants(
        filter_applicants(applicants, filters), sort_by=sort_by, descending=descending
    )
    return VisaApplicantsPublic(
        data=[map_applicant_public(row) for row in rows[skip : skip + limit]],
        count=len(rows),
        warning=warning,
    )


@router.get("/filters", response_model=ApplicantFilterOptionsPublic)
def read_filter_options(repository: RepositoryDep) -> Any:
    applicants, _ = load_applicants(repository)
    return build_filter_options(applicants)


@router.get("/stats", response_model=DashboardStatsPublic)
def read_dashboard_stats(repository: RepositoryDep) -> Any:
    applicants, _ = load_applicants(repository)
    return build_stats(applicants)


@router.get("/charts", response_model=RiskChartsPublic)
def read_risk_charts(
    repository: RepositoryDep, lang: Literal["ar", "en"] | None = None
) -> Any:
    applicants, _ = load_applicants(repository)
    return build_risk_charts(applicants, lang=resolve_language(lang))


@router.get("/alerts/high-risk", response_model=HighRiskAlertsPublic)
def read_high_risk_alerts(
    repository: RepositoryDep, dismissed: Annotated[list[str], Query()] = []
) -> Any:
    applicants, _ = load_applicants(repository)
    alerts = build_high_risk_alerts(applicants, dismissed=dismissed)
    return HighRiskAlertsPublic(data=alerts, count=len(alerts))


@router.get("/risk/{level}", response_model=VisaApplicantsPublic)
def read_applicants_by_risk_level(
    repository: RepositoryDep, level: RiskLevel, skip: int = 0, limit: int = 100
) -> Any:
    applicants, warning = load_applicants(repository)
    rows = sort_applicants(
        filter_applicants(applicants, ApplicantFilters(risk_level=level)),
        sort_by=ApplicantSortField.RISK_SCORE,
        descending=True,
    )
    return VisaApplicantsPublic(
        data=[map_applicant_public(row) for row in rows[skip : skip + limit]],
        count=len(rows),
        warning=warning,
    )


@router.get("/export.csv", response_class=Response)
def export_applicants(
    repository: RepositoryDep,
    filters: FiltersDep,
    lang: Literal["ar", "en"] | None = None,
) -> Response:
    applicants, _ = load_applicants(repository)
    rows = sort_applicants(filter_applicants(applicants, filters))
    content = export_applicants_csv(rows, lang=resolve_language(lang))
    return Response(
        content=content.encode("utf-8"),
        media_type="text/csv; charset=utf-8",
        headers={
            "Content-Disposition": f'attachment; filename="{build_csv_filename()}"'
        },
    )


def run_pending_batch(applicant_ids: list[str]) -> None:
    with open_repository() as repository:
        batch_analysis.run_batch_analysis(repository, applicant_ids)


@router.post("/analyze-pending", response_model=BatchProgressPublic)
def analyze_pending_applicants(
    repository: RepositoryDep, background_tasks: BackgroundTasks
) -> Any:
    if not settings.AI_GATEWAY_API_KEY:
        raise GatewayNotConfiguredError()

    applicants, warning = load_applicants(repository)
    if warning:
        raise HTTPException(status_code=503, detail=warning)

    pending_ids = [row.id for row in sort_applicants(applicants) if row.risk_score is None]
    try:
        progress = batch_analysis.start_batch(pending_ids)
    except batch_analysis.BatchAlreadyRunningError as exc:
        raise HTTPException(status_code=409, detail=str(exc))

    if pending_ids:
        background_tasks.add_task(run_pending_batch, pending_ids)
    return progress


@router.get("/analyze-pending/progress", response_model=BatchProgressPublic)
def read_batch_progress() -> Any:
    return batch_analysis.get_progress()


@router.get("/{applicant_id}", response_model=VisaApplicantPublic)
def read_applicant(repository: RepositoryDep, applicant_id: str) -> Any:
    return map_applicant_public(get_applicant_or_404(repository, applicant_id))


@router.post("/{applicant_id}/analyze", response_model=VisaApplicantPublic)
def analyze_applicant_risk(repository: RepositoryDep, applicant_id: str) -> Any:
    applicant = get_applicant_or_404(repository, applicant_id)
    try:
        result = risk_analysis.analyze_applicant(applicant)
    except RiskAnalysisError as exc:
        logger.warning("Risk analysis for %s failed: %s", applicant_id, exc.message)
        repository.record_analysis_failure(applicant, exc.message)
        raise
    applicant = repository.save_analysis(applicant, result)
    return map_applicant_public(applicant)


@router.post("/{applicant_id}/decision", response_model=VisaApplicantPublic)
def submit_review_decision(
    *,
    repository: RepositoryDep,
    applicant_id: str,
    decision_in: ReviewDecisionRequest,
) -> Any:
    applicant = get_applicant_or_404(repository, applicant_id)
    applicant = repository.save_decision(
        applicant,
        status=DECISION_STATUS_MAP[decision_in.action],
        reason=decision_in.reason,
        action=decision_in.action.value,
    )
    logger.info(
        "Decision %s recorded for applicant %s", decision_in.action.value, applicant_id
    )
    return map_applicant_public(applicant)


@router.get("/{applicant_id}/audit-trail", response_model=ApplicantAuditTrailPublic)
def read_applicant_audit_trail(repository: RepositoryDep, applicant_id: str) -> Any:
    applicant = get_applicant_or_404(repository, applicant_id)
    events = repository.list_events(applicant.id)
    return ApplicantAuditTrailPublic(
        applicant_id=applicant.id,
        events=[ApplicantAuditEventPublic.model_validate(event) for event in events],
    )
