import json
from collections.abc import Callable
from datetime import date
from typing import Any

import httpx

from visa_dashboard.models import VisaApplicant


def make_applicant(**overrides: Any) -> VisaApplicant:
    values: dict[str, Any] = {
        "id": "T-1",
        "passport_number": "X0000001",
        "full_name": "سالم أحمد",
        "nationality": "مصر",
        "gender": "ذكر",
        "birth_date": date(1990, 1, 1),
        "visa_type": "عمل",
        "status": "pending",
        "previous_visits": 0,
        "has_violations": False,
        "violations": [],
        "risk_score": None,
    }
    values.update(overrides)
    return VisaApplicant(**values)


def completion_body(content: Any) -> dict[str, Any]:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def analysis_json(**overrides: Any) -> str:
    payload: dict[str, Any] = {
        "risk_score": 82,
        "risk_level": "مرتفع",
        "analysis": "مخالفات متكررة",
        "factors": ["مخالفة سابقة", "دخل منخفض"],
        "recommendation": "رفض",
    }
    payload.update(overrides)
    return json.dumps(payload, ensure_ascii=False)


def gateway_client_factory(
    handler: Callable[[httpx.Request], httpx.Response],
) -> Callable[[], httpx.Client]:
    def factory() -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(handler))

    return factory


def reply_with(content: Any, status_code: int = 200) -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        if status_code != 200:
            return httpx.Response(status_code, json={"error": "upstream"})
        return httpx.Response(200, json=completion_body(content))

    return handler
