import json
from pathlib import Path

import httpx
import pytest
from sqlmodel import Session

from visa_dashboard.core.config import settings
from visa_dashboard.models import ApplicantStatus, Recommendation, RiskAnalysisResult, RiskLabel
from visa_dashboard.services.repository import (
    ApplicantSourceError,
    JsonApplicantRepository,
    SqlApplicantRepository,
    load_applicants_json,
)

RECORDS = [
    {
        "id": "J-1",
        "passport_number": "P1",
        "full_name": "نورة سعد",
        "nationality": "الأردن",
        "visa_type": "سياحة",
        "risk_score": 30,
    },
    {
        "id": "J-2",
        "passport_number": "P2",
        "full_name": "حسن علي",
        "nationality": "مصر",
        "visa_type": "عمل",
        "status": "review",
        "has_violations": True,
        "violations": [{"type": "تجاوز مدة الإقامة", "date": "2022-01-01"}],
    },
]

RESULT = RiskAnalysisResult(
    risk_score=75,
    risk_level=RiskLabel.HIGH,
    analysis="تحليل",
    factors=["عامل"],
    recommendation=Recommendation.REJECT,
)


def _write(tmp_path: Path, payload: object) -> str:
    path = tmp_path / "applicants.json"
    path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
    return str(path)


class TestLoadApplicantsJson:
    def test_reads_file(self, tmp_path: Path) -> None:
        applicants = load_applicants_json(_write(tmp_path, RECORDS))
        assert [applicant.id for applicant in applicants] == ["J-1", "J-2"]
        assert applicants[1].status == "review"
        assert applicants[1].violations[0]["type"] == "تجاوز مدة الإقامة"

    def test_bundled_sample_data_loads(self) -> None:
        applicants = load_applicants_json(settings.APPLICANTS_JSON_URL)
        assert len(applicants) == 12
        assert any(applicant.risk_score is None for applicant in applicants)

    def test_invalid_records_skipped(self, tmp_path: Path) -> None:
        payload = [*RECORDS, {"id": "J-3", "full_name": "ناقص"}]
        applicants = load_applicants_json(_write(tmp_path, payload))
        assert [applicant.id for applicant in applicants] == ["J-1", "J-2"]

    def test_duplicate_ids_skipped(self, tmp_path: Path) -> None:
        payload = [RECORDS[0], {**RECORDS[0], "full_name": "نسخة"}]
        applicants = load_applicants_json(_write(tmp_path, payload))
        assert len(applicants) == 1
        assert applicants[0].full_name == "نورة سعد"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ApplicantSourceError):
            load_applicants_json(str(tmp_path / "missing.json"))

    def test_malformed_json(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("[{", encoding="utf-8")
        with pytest.raises(ApplicantSourceError):
            load_applicants_json(str(path))

    def test_not_an_array(self, tmp_path: Path) -> None:
        with pytest.raises(ApplicantSourceError):
            load_applicants_json(_write(tmp_path, {"applicants": RECORDS}))

    def test_reads_url(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/data/visa_applicants.json"
            return httpx.Response(200, json=RECORDS)

        with httpx.Client(transport=httpx.MockTransport(handler)) as client:
            applicants = load_applicants_json(
                "https://example.test/data/visa_applicants.json", client=client
            )
        assert len(applicants) == 2

    def test_url_http_error(self) -> None:
        with httpx.Client(
            transport=httpx.MockTransport(lambda request: httpx.Response(404))
        ) as client:
            with pytest.raises(ApplicantSourceError):
                load_applicants_json("https://example.test/missing.json", client=client)


class TestJsonApplicantRepository:
    def test_updates_are_kept_in_memory(self, tmp_path: Path) -> None:
        repository = JsonApplicantRepository(_write(tmp_path, RECORDS))
        applicant = repository.get_applicant("J-2")
        assert applicant is not None

        repository.save_analysis(applicant, RESULT)
        repository.save_decision(
            applicant, status=ApplicantStatus.REJECTED, reason="مخالفات", action="reject"
        )

        stored = repository.get_applicant("J-2")
        assert stored is not None
        assert stored.risk_score == 75
        assert stored.status == "rejected"
        assert stored.risk_analysis["recommendation"] == "reject"

        events = repository.list_events("J-2")
        assert [event.action for event in events] == [
            "review_decision_submitted",
            "risk_analyzed",
        ]
        assert events[0].event_metadata["previous_status"] == "review"
        assert repository.list_events("J-1") == []

    def test_unknown_applicant(self, tmp_path: Path) -> None:
        repository = JsonApplicantRepository(_write(tmp_path, RECORDS))
        assert repository.get_applicant("nope") is None

    def test_source_error_surfaces_on_read(self, tmp_path: Path) -> None:
        repository = JsonApplicantRepository(str(tmp_path / "missing.json"))
        with pytest.raises(ApplicantSourceError):
            repository.list_applicants()


@pytest.mark.usefixtures("seeded_db")
class TestSqlApplicantRepository:
    def test_lists_seeded_applicants_by_id(self, db: Session) -> None:
        applicants = SqlApplicantRepository(db).list_applicants()
        ids = [applicant.id for applicant in applicants]
        assert ids == sorted(ids)
        assert len(ids) == 12

    def test_save_analysis_records_event(self, db: Session) -> None:
        db.expire_all()
        repository = SqlApplicantRepository(db)
        applicant = repository.get_applicant("VA-1007")
        assert applicant is not None
        assert applicant.risk_score is None

        repository.save_analysis(applicant, RESULT)

        refreshed = repository.get_applicant("VA-1007")
        assert refreshed is not None
        assert refreshed.risk_score == 75
        assert refreshed.analyzed_at is not None
        events = repository.list_events("VA-1007")
        assert events[0].action == "risk_analyzed"
        assert events[0].event_metadata == {
            "risk_score": 75,
            "risk_level": "high",
            "recommendation": "reject",
        }

    def test_record_analysis_failure_leaves_score_untouched(self, db: Session) -> None:
        db.expire_all()
        repository = SqlApplicantRepository(db)
        applicant = repository.get_applicant("VA-1009")
        assert applicant is not None

        repository.record_analysis_failure(applicant, "gateway down")

        assert repository.get_applicant("VA-1009").risk_score is None  # type: ignore[union-attr]
        events = repository.list_events("VA-1009")
        assert events[0].action == "risk_analysis_failed"
        assert events[0].reason == "gateway down"
