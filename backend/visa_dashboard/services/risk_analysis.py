"""Risk analysis round trip against the LLM gateway.

Builds the instruction and applicant prompts, posts them to an
OpenAI-compatible ``/chat/completions`` endpoint, and turns the model's free
text into a validated :class:`RiskAnalysisResult`. Model output is untrusted:
every field is checked on its own and replaced by a default when invalid, and
text with no JSON object at all yields the fixed fallback analysis.
"""

from __future__ import annotations

import json
import logging
import math
import re
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import httpx

from visa_dashboard.core.config import settings
from visa_dashboard.core.i18n import Language, translate
from visa_dashboard.models import Recommendation, RiskAnalysisResult, RiskLabel
from visa_dashboard.services.risk_policy import get_risk_label

if TYPE_CHECKING:
    from visa_dashboard.models import VisaApplicant

logger = logging.getLogger(__name__)

FALLBACK_RISK_SCORE = 50
FALLBACK_FACTORS = ["insufficient data"]
MAX_FACTORS = 10

_DECODER = json.JSONDecoder()

_RISK_LABEL_ALIASES: dict[str, RiskLabel] = {
    "low": RiskLabel.LOW,
    "medium": RiskLabel.MEDIUM,
    "moderate": RiskLabel.MEDIUM,
    "high": RiskLabel.HIGH,
    "very high": RiskLabel.VERY_HIGH,
    "critical": RiskLabel.VERY_HIGH,
    "منخفض": RiskLabel.LOW,
    "منخفضة": RiskLabel.LOW,
    "متوسط": RiskLabel.MEDIUM,
    "متوسطة": RiskLabel.MEDIUM,
    "مرتفع": RiskLabel.HIGH,
    "مرتفعة": RiskLabel.HIGH,
    "عالي": RiskLabel.HIGH,
    "عالية": RiskLabel.HIGH,
    "مرتفع جدا": RiskLabel.VERY_HIGH,
    "مرتفعة جدا": RiskLabel.VERY_HIGH,
}

_RECOMMENDATION_ALIASES: dict[str, Recommendation] = {
    "grant entry": Recommendation.GRANT_ENTRY,
    "grant": Recommendation.GRANT_ENTRY,
    "approve": Recommendation.GRANT_ENTRY,
    "further review": Recommendation.FURTHER_REVIEW,
    "review": Recommendation.FURTHER_REVIEW,
    "reject": Recommendation.REJECT,
    "deny": Recommendation.REJECT,
    "منح الاذن": Recommendation.GRANT_ENTRY,
    "مراجعة اضافية": Recommendation.FURTHER_REVIEW,
    "رفض": Recommendation.REJECT,
}

_SYSTEM_PROMPTS: dict[str, str] = {
    "ar": """أنت محلل مخاطر متخصص في تحليل طلبات التأشيرات. مهمتك هي تقييم درجة خطورة المتقدم بناءً على بياناته الشخصية والمهنية وسجل المخالفات.

قم بتحليل البيانات المقدمة وأعط:
1. درجة الخطورة (من 0 إلى 100)
2. تحليل مفصل للعوامل التي أثرت على التقييم
3. توصية بالقرار (منح الإذن / مراجعة إضافية / رفض)

العوامل المؤثرة في التقييم:
- سجل المخالفات السابقة (نوعها وخطورتها)
- نوع المهنة والدخل
- مستوى التعليم
- عدد الزيارات السابقة
- نوع التأشيرة المطلوبة
- وجود كفيل موثوق

أجب بصيغة JSON فقط بالشكل التالي:
{
  "risk_score": رقم,
  "risk_level": "منخفض" | "متوسط" | "مرتفع" | "مرتفع جداً",
  "analysis": "تحليل مفصل",
  "factors": ["عامل 1", "عامل 2", ...],
  "recommendation": "منح الإذن" | "مراجعة إضافية" | "رفض"
}""",
    "en": """You are a risk analyst specialised in visa applications. Assess how risky the applicant is based on their personal and professional data and their violation history.

Analyse the data and provide:
1. A risk score (0 to 100)
2. A detailed analysis of the factors behind the score
3. A decision recommendation (grant entry / further review / reject)

Factors to weigh:
- Previous violations (type and severity)
- Profession and income
- Education level
- Number of previous visits
- Requested visa type
- Whether a trusted sponsor exists

Answer with JSON only, in exactly this shape:
{
  "risk_score": number,
  "risk_level": "low" | "medium" | "high" | "very high",
  "analysis": "detailed analysis",
  "factors": ["factor 1", "factor 2", ...],
  "recommendation": "grant entry" | "further review" | "reject"
}""",
}

_USER_PROMPT_FIELDS: dict[str, list[tuple[str, str]]] = {
    "ar": [
        ("الاسم", "full_name"),
        ("الجنسية", "nationality"),
        ("الجنس", "gender"),
        ("تاريخ الميلاد", "birth_date"),
        ("المهنة", "profession"),
        ("جهة العمل", "employer"),
        ("سنوات الخبرة", "work_experience_years"),
        ("الراتب الشهري", "monthly_salary"),
        ("المستوى التعليمي", "education_level"),
        ("نوع التأشيرة", "visa_type"),
        ("الكفيل", "sponsor"),
        ("عدد الزيارات السابقة", "previous_visits"),
        ("وجود مخالفات", "has_violations"),
    ],
    "en": [
        ("Name", "full_name"),
        ("Nationality", "nationality"),
        ("Gender", "gender"),
        ("Birth date", "birth_date"),
        ("Profession", "profession"),
        ("Employer", "employer"),
        ("Years of experience", "work_experience_years"),
        ("Monthly salary", "monthly_salary"),
        ("Education level", "education_level"),
        ("Visa type", "visa_type"),
        ("Sponsor", "sponsor"),
        ("Previous visits", "previous_visits"),
        ("Has violations", "has_violations"),
    ],
}

_USER_PROMPT_HEADERS = {
    "ar": ("قم بتحليل طلب التأشيرة التالي:", "سجل المخالفات", "ريال"),
    "en": ("Analyse the following visa application:", "Violation history", "SAR"),
}


class RiskAnalysisError(Exception):
    """Base error for the analysis round trip, rendered as ``{"error": ...}``."""

    status_code = 500
    message_key = "error.gateway_failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or translate(self.message_key, settings.DEFAULT_LANGUAGE)
        super().__init__(self.message)


class GatewayNotConfiguredError(RiskAnalysisError):
    message_key = "error.gateway_not_configured"


class RateLimitedError(RiskAnalysisError):
    status_code = 429
    message_key = "error.rate_limited"


class QuotaExceededError(RiskAnalysisError):
    status_code = 402
    message_key = "error.quota_exceeded"


class GatewayRequestError(RiskAnalysisError):
    pass


class InvalidAnalysisRequestError(RiskAnalysisError):
    status_code = 400
    message_key = "error.missing_applicant"


def analyze_applicant(applicant: "VisaApplicant") -> RiskAnalysisResult:
    return request_risk_analysis(applicant.model_dump(mode="json"))


def request_risk_analysis(applicant: Mapping[str, Any]) -> RiskAnalysisResult:
    if not settings.AI_GATEWAY_API_KEY:
        raise GatewayNotConfiguredError()

    language = settings.AI_GATEWAY_PROMPT_LANGUAGE
    payload = {
        "model": settings.AI_GATEWAY_MODEL,
        "messages": [
            {"role": "system", "content": build_system_prompt(language)},
            {"role": "user", "content": build_user_prompt(applicant, language)},
        ],
    }
    headers = {
        "Authorization": f"Bearer {settings.AI_GATEWAY_API_KEY}",
        "Content-Type": "application/json",
    }

    logger.info(
        "Sending risk analysis request to AI gateway (applicant=%s, model=%s)",
        applicant.get("id", "-"),
        settings.AI_GATEWAY_MODEL,
    )
    try:
        with _gateway_client() as client:
            response = client.post(
                f"{settings.AI_GATEWAY_BASE_URL.rstrip('/')}/chat/completions",
                headers=headers,
                json=payload,
            )
    except httpx.HTTPError as exc:
        logger.error("AI gateway request failed: %s", exc)
        raise GatewayRequestError() from exc

    if response.status_code == 429:
        logger.warning("AI gateway rate limited the request")
        raise RateLimitedError()
    if response.status_code == 402:
        logger.warning("AI gateway quota exhausted")
        raise QuotaExceededError()
    if response.is_error:
        logger.error("AI gateway error: %s %s", response.status_code, response.text)
        raise GatewayRequestError(
            f"{translate('error.gateway_failed', settings.DEFAULT_LANGUAGE)}"
            f" ({response.status_code})"
        )

    try:
        body = response.json()
    except (ValueError, RecursionError) as exc:
        logger.error("AI gateway returned a non-JSON body")
        raise GatewayRequestError() from exc

    content = _message_content(body)
    logger.debug("AI gateway response: %s", content)
    return parse_risk_analysis(content)


def build_system_prompt(language: Language = "ar") -> str:
    return _SYSTEM_PROMPTS[language]


def build_user_prompt(applicant: Mapping[str, Any], language: Language = "ar") -> str:
    heading, violations_heading, currency = _USER_PROMPT_HEADERS[language]
    unspecified = translate("unspecified", language)
    has_violations = bool(applicant.get("has_violations"))

    lines = [heading, ""]
    for label, key in _USER_PROMPT_FIELDS[language]:
        value = applicant.get(key)
        if key in {"work_experience_years", "previous_visits"}:
            text = str(value or 0)
        elif key == "monthly_salary":
            text = f"{value or unspecified} {currency}"
        elif key == "has_violations":
            text = translate("yes" if has_violations else "no", language)
        elif value is None or value == "":
            text = unspecified
        else:
            text = str(value)
        lines.append(f"{label}: {text}")

    if has_violations:
        violations = json.dumps(
            applicant.get("violations") or [], ensure_ascii=False, indent=2
        )
        lines.append(f"{violations_heading}: {violations}")
    return "\n".join(lines)


def extract_json_object(text: str | None) -> dict[str, Any] | None:
    """Return the first ``{...}`` span in ``text`` that decodes to a JSON object."""
    if not text:
        return None
    start = text.find("{")
    while start != -1:
        try:
            value, _ = _DECODER.raw_decode(text, start)
        except (json.JSONDecodeError, RecursionError):
            pass
        else:
            if isinstance(value, dict):
                return value
        start = text.find("{", start + 1)
    return None


def parse_risk_analysis(content: str | None) -> RiskAnalysisResult:
    raw_text = (content or "").strip()
    payload = extract_json_object(raw_text)
    if payload is None:
        logger.warning("No JSON object found in model output; using fallback analysis")
        return build_fallback_analysis(raw_text)

    risk_score = _as_risk_score(payload.get("risk_score"))
    if risk_score is None:
        risk_score = FALLBACK_RISK_SCORE
    risk_level = _normalize_label(payload.get("risk_level"), _RISK_LABEL_ALIASES)
    recommendation = _normalize_label(
        payload.get("recommendation"), _RECOMMENDATION_ALIASES
    )
    analysis = payload.get("analysis")

    return RiskAnalysisResult(
        risk_score=risk_score,
        risk_level=risk_level or get_risk_label(risk_score=risk_score),
        analysis=analysis.strip()
        if isinstance(analysis, str) and analysis.strip()
        else translate("not_analyzed", settings.DEFAULT_LANGUAGE),
        factors=_as_string_list(payload.get("factors"), FALLBACK_FACTORS),
        recommendation=recommendation or Recommendation.FURTHER_REVIEW,
    )


def build_fallback_analysis(raw_text: str = "") -> RiskAnalysisResult:
    return RiskAnalysisResult(
        risk_score=FALLBACK_RISK_SCORE,
        risk_level=RiskLabel.MEDIUM,
        analysis=raw_text or translate("not_analyzed", settings.DEFAULT_LANGUAGE),
        factors=list(FALLBACK_FACTORS),
        recommendation=Recommendation.FURTHER_REVIEW,
    )


def _gateway_client() -> httpx.Client:
    return httpx.Client(timeout=settings.AI_GATEWAY_TIMEOUT_SECONDS)


def _message_content(body: Any) -> str | None:
    try:
        content = body["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        logger.warning("AI gateway response has no message content")
        return None
    if isinstance(content, list):
        content = "".join(
            item["text"]
            for item in content
            if isinstance(item, dict) and isinstance(item.get("text"), str)
        )
    return content if isinstance(content, str) else None


def _as_risk_score(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip().rstrip("%"))
        except ValueError:
            return None
    if isinstance(value, int):
        return max(0, min(100, value))
    if not isinstance(value, float) or not math.isfinite(value):
        return None
    return max(0, min(100, round(value)))


def _normalize_key(value: str) -> str:
    key = value.strip().lower().replace("_", " ").replace("-", " ")
    # Alef and tatweel variants the model uses interchangeably.
    key = key.replace("ً", "").replace("ـ", "").replace("إ", "ا").replace("أ", "ا")
    return re.sub(r"\s+", " ", key)


def _normalize_label(value: Any, aliases: Mapping[str, Any]) -> Any:
    if not isinstance(value, str):
        return None
    return aliases.get(_normalize_key(value))


def _as_string_list(value: Any, fallback: list[str]) -> list[str]:
    if not isinstance(value, list):
        return list(fallback)
    normalized = [
        str(item).strip()
        for item in value
        if isinstance(item, str | int | float) and str(item).strip()
    ]
    return normalized[:MAX_FACTORS] if normalized else list(fallback)
