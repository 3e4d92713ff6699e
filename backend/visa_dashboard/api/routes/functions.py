from typing import Any

from fastapi import APIRouter

from visa_dashboard.models import RiskAnalysisRequest, RiskAnalysisResult
from visa_dashboard.services import risk_analysis
from visa_dashboard.services.risk_analysis import InvalidAnalysisRequestError

router = APIRouter(prefix="/functions", tags=["functions"])


@router.post("/analyze-risk", response_model=RiskAnalysisResult)
def analyze_risk(request_in: RiskAnalysisRequest) -> Any:
    """Score an arbitrary applicant record through the LLM gateway.

    Gateway failures are rendered by the app-level handler as ``{"error": ...}``
    with 429, 402 or 500.
    """
    applicant = request_in.applicant or request_in.applicantData
    if not applicant:
        raise InvalidAnalysisRequestError()
    return risk_analysis.request_risk_analysis(applicant)
