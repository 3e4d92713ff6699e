from fastapi.testclient import TestClient

from visa_dashboard.core.config import settings


def test_health_check_reports_database_status(client: TestClient) -> None:
    response = client.get(f"{settings.API_V1_STR}/utils/health-check/")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "database": "ok"}
