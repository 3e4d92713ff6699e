import pytest
from fastapi.testclient import TestClient

from tests.utils.applicants import analysis_json, gateway_client_factory, reply_with
from visa_dashboard.core.config import settings
from visa_dashboard.core.i18n import translate
from visa_dashboard.services import risk_analysis

URL = f"{settings.API_V1_STR}/functions/analyze-risk"

APPLICANT = {
    "full_name": "ليلى محمود",
    "nationality": "لبنان",
    "visa_type": "سياحة",
    "previous_visits": 1,
    "has_violations": False,
}


def _use_gateway(monkeypatch: pytest.MonkeyPatch, handler) -> None:
    monkeypatch.setattr(settings, "AI_GATEWAY_API_KEY", "test-key")
    monkeypatch.setattr(risk_analysis, "_gateway_client", gateway_client_factory(handler))


def test_analyze_risk(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    _use_gateway(monkeypatch, reply_with(analysis_json(risk_score=35, risk_level="منخفض")))
    response = client.post(URL, json={"applicant": APPLICANT})
    assert response.status_code == 200
    assert response.json() == {
        "risk_score": 35,
        "risk_level": "low",
        "analysis": "مخالفات متكررة",
        "factors": ["مخالفة سابقة", "دخل منخفض"],
        "recommendation": "reject",
    }


def test_analyze_risk_accepts_applicant_data_key(
    client: TestClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    _use_gateway(monkeypatch, reply_with(analysis_json()))
    response = client.post(URL, json={"applicantData": APPLICANT})
    assert response.status_code == 200
    assert response.json()["risk_score"] == 82


def test_analyze_risk_unparseable_reply_uses_fallback(
    client: TestClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    _use_gateway(monkeypatch, reply_with("I cannot answer in JSON."))
    content = client.post(URL, json={"applicant": APPLICANT}).json()
    assert content["risk_score"] == 50
    assert content["risk_level"] == "medium"
    assert content["factors"] == ["insufficient data"]
    assert content["recommendation"] == "further review"
    assert content["analysis"] == "I cannot answer in JSON."


def test_analyze_risk_requires_applicant(client: TestClient) -> None:
    response = client.post(URL, json={})
    assert response.status_code == 400
    assert response.json() == {
        "error": translate("error.missing_applicant", settings.DEFAULT_LANGUAGE)
    }


@pytest.mark.parametrize(
    ("upstream_status", "expected_status", "message_key"),
    [
        (429, 429, "error.rate_limited"),
        (402, 402, "error.quota_exceeded"),
    ],
)
def test_analyze_risk_gateway_errors(
    client: TestClient,
    monkeypatch: pytest.MonkeyPatch,
    upstream_status: int,
    expected_status: int,
    message_key: str,
) -> None:
    _use_gateway(monkeypatch, reply_with(None, status_code=upstream_status))
    response = client.post(URL, json={"applicant": APPLICANT})
    assert response.status_code == expected_status
    assert response.json() == {"error": translate(message_key, settings.DEFAULT_LANGUAGE)}


def test_analyze_risk_upstream_failure(
    client: TestClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    _use_gateway(monkeypatch, reply_with(None, status_code=500))
    response = client.post(URL, json={"applicant": APPLICANT})
    assert response.status_code == 500
    assert "500" in response.json()["error"]


def test_analyze_risk_without_key(
    client: TestClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(settings, "AI_GATEWAY_API_KEY", None)
    response = client.post(URL, json={"applicant": APPLICANT})
    assert response.status_code == 500
    assert response.json() == {
        "error": translate("error.gateway_not_configured", settings.DEFAULT_LANGUAGE)
    }


def test_cors_preflight(client: TestClient) -> None:
    response = client.options(
        URL,
        headers={
            "Origin": "https://dashboard.example.com",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "authorization, x-client-info, apikey, content-type",
        },
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
    allowed = response.headers["access-control-allow-headers"].lower()
    for header in ("authorization", "x-client-info", "apikey", "content-type"):
        assert header in allowed


def test_cors_header_on_error_response(client: TestClient) -> None:
    response = client.post(
        URL, json={}, headers={"Origin": "https://dashboard.example.com"}
    )
    assert response.status_code == 400
    assert response.headers["access-control-allow-origin"] == "*"
