"""Data access for applicant records.

Views and background jobs go through an :class:`ApplicantRepository` and never
touch the backing store directly. Two stores are supported: the
``visa_applicant`` SQL table and a static JSON document (a file path or an
http(s) URL) whose updates live in memory for the life of the process.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path

import httpx
from pydantic import ValidationError
from sqlmodel import Session, col, select

from visa_dashboard.models import (
    ApplicantAuditEvent,
    ApplicantStatus,
    RiskAnalysisResult,
    VisaApplicant,
    VisaApplicantCreate,
    get_datetime_utc,
)

logger = logging.getLogger(__name__)


class ApplicantSourceError(Exception):
    """The applicant list could not be fetched or decoded."""


class ApplicantRepository(ABC):
    @abstractmethod
    def list_applicants(self) -> list[VisaApplicant]: ...

    @abstractmethod
    def get_applicant(self, applicant_id: str) -> VisaApplicant | None: ...

    @abstractmethod
    def list_events(self, applicant_id: str) -> list[ApplicantAuditEvent]: ...

    @abstractmethod
    def _persist(
        self, applicant: VisaApplicant, event: ApplicantAuditEvent
    ) -> VisaApplicant: ...

    def save_analysis(
        self, applicant: VisaApplicant, result: RiskAnalysisResult
    ) -> VisaApplicant:
        now = get_datetime_utc()
        applicant.risk_score = result.risk_score
        applicant.risk_analysis = result.model_dump(mode="json")
        applicant.analyzed_at = now
        applicant.updated_at = now
        event = ApplicantAuditEvent(
            applicant_id=applicant.id,
            action="risk_analyzed",
            reason=result.analysis[:1000],
            event_metadata={
                "risk_score": result.risk_score,
                "risk_level": result.risk_level.value,
                "recommendation": result.recommendation.value,
            },
        )
        return self._persist(applicant, event)

    def record_analysis_failure(
        self, applicant: VisaApplicant, message: str
    ) -> VisaApplicant:
        event = ApplicantAuditEvent(
            applicant_id=applicant.id,
            action="risk_analysis_failed",
            reason=message[:1000],
            event_metadata={},
        )
        return self._persist(applicant, event)

    def discard_changes(self) -> None:
        """Drop pending writes after a failed operation."""

    def save_decision(
        self,
        applicant: VisaApplicant,
        *,
        status: ApplicantStatus,
        reason: str | None,
        action: str,
    ) -> VisaApplicant:
        previous_status = applicant.status
        now = get_datetime_utc()
        applicant.status = status.value
        applicant.decision_reason = reason
        applicant.decided_at = now
        applicant.updated_at = now
        event = ApplicantAuditEvent(
            applicant_id=applicant.id,
            action="review_decision_submitted",
            reason=reason,
            event_metadata={
                "decision_action": action,
                "final_status": status.value,
                "previous_status": previous_status,
            },
        )
        return self._persist(applicant, event)


class SqlApplicantRepository(ApplicantRepository):
    def __init__(self, session: Session) -> None:
        self.session = session

    def list_applicants(self) -> list[VisaApplicant]:
        statement = select(VisaApplicant).order_by(col(VisaApplicant.id))
        return list(self.session.exec(statement).all())

    def get_applicant(self, applicant_id: str) -> VisaApplicant | None:
        return self.session.get(VisaApplicant, applicant_id)

    def list_events(self, applicant_id: str) -> list[ApplicantAuditEvent]:
        statement = (
            select(ApplicantAuditEvent)
            .where(ApplicantAuditEvent.applicant_id == applicant_id)
            .order_by(col(ApplicantAuditEvent.created_at).desc())
        )
        return list(self.session.exec(statement).all())

    def _persist(
        self, applicant: VisaApplicant, event: ApplicantAuditEvent
    ) -> VisaApplicant:
        self.session.add(applicant)
        self.session.add(event)
        self.session.commit()
        self.session.refresh(applicant)
        return applicant

    def discard_changes(self) -> None:
        self.session.rollback()


class JsonApplicantRepository(ApplicantRepository):
    """Applicants read once from a JSON array; changes are kept in memory."""

    def __init__(
        self, source: str, *, client: httpx.Client | None = None, timeout: float = 10.0
    ) -> None:
        self.source = source
        self.client = client
        self.timeout = timeout
        self._applicants: dict[str, VisaApplicant] | None = None
        self._events: list[ApplicantAuditEvent] = []

    def _load(self) -> dict[str, VisaApplicant]:
        if self._applicants is None:
            applicants = load_applicants_json(
                self.source, client=self.client, timeout=self.timeout
            )
            self._applicants = {applicant.id: applicant for applicant in applicants}
        return self._applicants

    def list_applicants(self) -> list[VisaApplicant]:
        return list(self._load().values())

    def get_applicant(self, applicant_id: str) -> VisaApplicant | None:
        return self._load().get(applicant_id)

    def list_events(self, applicant_id: str) -> list[ApplicantAuditEvent]:
        events = [event for event in self._events if event.applicant_id == applicant_id]
        return list(reversed(events))

    def _persist(
        self, applicant: VisaApplicant, event: ApplicantAuditEvent
    ) -> VisaApplicant:
        self._load()[applicant.id] = applicant
        self._events.append(event)
        return applicant


def load_applicants_json(
    source: str, *, client: httpx.Client | None = None, timeout: float = 10.0
) -> list[VisaApplicant]:
    """Read applicant records from a JSON array at ``source``.

    ``source`` is a local path or an http(s) URL. Network and decode errors
    raise :class:`ApplicantSourceError`; records that fail validation are
    skipped and logged.
    """
    raw = _read_source(source, client=client, timeout=timeout)
    try:
        records = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ApplicantSourceError(f"Applicant source is not valid JSON: {exc}") from exc
    if not isinstance(records, list):
        raise ApplicantSourceError("Applicant source must be a JSON array")

    applicants: list[VisaApplicant] = []
    seen_ids: set[str] = set()
    for index, record in enumerate(records):
        try:
            applicant_in = VisaApplicantCreate.model_validate(record)
        except ValidationError as exc:
            logger.warning(
                "Skipping invalid applicant record #%s: %s", index, exc.errors()[:3]
            )
            continue
        if applicant_in.id in seen_ids:
            logger.warning("Skipping duplicate applicant id %s", applicant_in.id)
            continue
        seen_ids.add(applicant_in.id)
        applicants.append(VisaApplicant.model_validate(applicant_in.model_dump(mode="json")))

    logger.info("Loaded %s applicants from %s", len(applicants), source)
    return applicants


def _read_source(source: str, *, client: httpx.Client | None, timeout: float) -> str:
    if source.startswith(("http://", "https://")):
        try:
            if client is not None:
                response = client.get(source)
            else:
                response = httpx.get(source, timeout=timeout)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise ApplicantSourceError(f"Could not fetch applicants: {exc}") from exc
        return response.text

    try:
        return Path(source).read_text(encoding="utf-8")
    except OSError as exc:
        raise ApplicantSourceError(f"Could not read applicants: {exc}") from exc

