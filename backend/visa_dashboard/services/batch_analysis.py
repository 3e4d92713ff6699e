"""Sequential "analyze all pending applicants" job.

One gateway call at a time; the shared progress record is updated after each
call so the dashboard can poll it. A failing applicant is logged, recorded on
its audit trail and skipped. Only one batch may run at a time.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime

from visa_dashboard.models import (
    BatchFailurePublic,
    BatchProgressPublic,
    RiskAnalysisResult,
    VisaApplicant,
    get_datetime_utc,
)
from visa_dashboard.services.repository import ApplicantRepository
from visa_dashboard.services.risk_analysis import RiskAnalysisError, analyze_applicant

logger = logging.getLogger(__name__)


class BatchAlreadyRunningError(Exception):
    pass


@dataclass
class BatchProgress:
    running: bool = False
    total: int = 0
    completed: int = 0
    succeeded: int = 0
    failed: int = 0
    started_at: datetime | None = None
    finished_at: datetime | None = None
    failures: list[tuple[str, str]] = field(default_factory=list)

    def to_public(self) -> BatchProgressPublic:
        return BatchProgressPublic(
            running=self.running,
            total=self.total,
            completed=self.completed,
            succeeded=self.succeeded,
            failed=self.failed,
            started_at=self.started_at,
            finished_at=self.finished_at,
            failures=[
                BatchFailurePublic(applicant_id=applicant_id, error=error)
                for applicant_id, error in self.failures
            ],
        )


_progress = BatchProgress()
_progress_lock = threading.Lock()


def get_progress() -> BatchProgressPublic:
    with _progress_lock:
        return _progress.to_public()


def reset_progress() -> None:
    global _progress
    with _progress_lock:
        _progress = BatchProgress()


def start_batch(applicant_ids: Sequence[str]) -> BatchProgressPublic:
    """Claim the batch slot for ``applicant_ids``; raises if one is running."""
    global _progress
    with _progress_lock:
        if _progress.running:
            raise BatchAlreadyRunningError("A batch analysis is already running")
        _progress = BatchProgress(
            running=bool(applicant_ids),
            total=len(applicant_ids),
            started_at=get_datetime_utc(),
            finished_at=None if applicant_ids else get_datetime_utc(),
        )
        return _progress.to_public()


def _record(applicant_id: str, error: str | None) -> None:
    with _progress_lock:
        _progress.completed += 1
        if error is None:
            _progress.succeeded += 1
        else:
            _progress.failed += 1
            _progress.failures.append((applicant_id, error))


def _finish() -> None:
    with _progress_lock:
        _progress.running = False
        _progress.finished_at = get_datetime_utc()


def _fail(
    repository: ApplicantRepository,
    applicant: VisaApplicant,
    message: str,
) -> None:
    applicant_id = applicant.id
    try:
        repository.record_analysis_failure(applicant, message)
    except Exception:
        logger.exception(
            "Batch analysis: could not record failure for applicant %s", applicant_id
        )
        repository.discard_changes()
    _record(applicant_id, message)


def run_batch_analysis(
    repository: ApplicantRepository,
    applicant_ids: Sequence[str],
    *,
    analyze: Callable[[VisaApplicant], RiskAnalysisResult] = analyze_applicant,
) -> BatchProgressPublic:
    """Analyze ``applicant_ids`` one after another, persisting each result.

    Any failure for one applicant is logged, recorded and skipped. Call
    :func:`start_batch` first; this function always releases the slot.
    """
    try:
        for applicant_id in applicant_ids:
            try:
                applicant = repository.get_applicant(applicant_id)
            except Exception as exc:
                logger.exception("Batch analysis: could not load applicant %s", applicant_id)
                repository.discard_changes()
                _record(applicant_id, str(exc) or type(exc).__name__)
                continue
            if applicant is None:
                logger.warning("Batch analysis: applicant %s disappeared", applicant_id)
                _record(applicant_id, "Applicant not found")
                continue
            try:
                result = analyze(applicant)
                repository.save_analysis(applicant, result)
            except RiskAnalysisError as exc:
                logger.warning(
                    "Batch analysis: applicant %s failed: %s", applicant_id, exc.message
                )
                _fail(repository, applicant, exc.message)
                continue
            except Exception as exc:
                logger.exception("Batch analysis: applicant %s failed", applicant_id)
                repository.discard_changes()
                _fail(repository, applicant, str(exc) or type(exc).__name__)
                continue
            _record(applicant_id, None)
            logger.info(
                "Batch analysis: %s scored %s", applicant_id, result.risk_score
            )
    finally:
        _finish()

    progress = get_progress()
    logger.info(
        "Batch analysis finished: %s succeeded, %s failed of %s",
        progress.succeeded,
        progress.failed,
        progress.total,
    )
    return progress
