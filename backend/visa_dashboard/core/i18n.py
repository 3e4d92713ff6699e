"""Arabic and English labels for everything the dashboard shows.

Stored values (statuses, tiers, recommendations) are English codes; these
tables turn them into display text. Arabic is the primary language.
"""

from typing import Literal

Language = Literal["ar", "en"]

LABELS: dict[str, dict[str, str]] = {
    "ar": {
        "unspecified": "غير محدد",
        "yes": "نعم",
        "no": "لا",
        "not_analyzed": "لم يتم التحليل بعد",
        "insufficient_data": "بيانات غير كافية",
        # risk tiers / model labels
        "risk.low": "منخفضة",
        "risk.medium": "متوسطة",
        "risk.high": "عالية",
        "risk.very_high": "مرتفعة جداً",
        # recommendations
        "recommendation.grant entry": "منح الإذن",
        "recommendation.further review": "مراجعة إضافية",
        "recommendation.reject": "رفض",
        # statuses
        "status.pending": "قيد الانتظار",
        "status.approved": "مقبول",
        "status.review": "قيد المراجعة",
        "status.rejected": "مرفوض",
        # age groups
        "age.under_25": "أقل من 25",
        "age.25_34": "25-34",
        "age.35_44": "35-44",
        "age.45_54": "45-54",
        "age.55_plus": "55+",
        # messages
        "error.source_unavailable": "فشل في تحميل البيانات",
        "error.gateway_not_configured": "لم يتم إعداد مفتاح خدمة الذكاء الاصطناعي",
        "error.rate_limited": "تم تجاوز حد الطلبات، يرجى المحاولة لاحقاً",
        "error.quota_exceeded": "يرجى إضافة رصيد لاستخدام خدمة الذكاء الاصطناعي",
        "error.gateway_failed": "فشل الاتصال بخدمة الذكاء الاصطناعي",
        "error.missing_applicant": "بيانات المتقدم مطلوبة",
        "charts.empty": (
            "لا توجد بيانات للرسوم البيانية. قم بتحليل الوافدين أولاً "
            "للحصول على إحصائيات المخاطر."
        ),
        # csv headers
        "csv.id": "رقم الطلب",
        "csv.full_name": "الاسم الكامل",
        "csv.passport_number": "رقم الجواز",
        "csv.nationality": "الجنسية",
        "csv.gender": "الجنس",
        "csv.birth_date": "تاريخ الميلاد",
        "csv.visa_type": "نوع التأشيرة",
        "csv.status": "الحالة",
        "csv.entry_date": "تاريخ الدخول",
        "csv.exit_date": "تاريخ الخروج",
        "csv.sponsor": "الكفيل",
        "csv.profession": "المهنة",
        "csv.employer": "جهة العمل",
        "csv.monthly_salary": "الراتب الشهري",
        "csv.work_experience_years": "سنوات الخبرة",
        "csv.education_level": "المستوى التعليمي",
        "csv.previous_visits": "عدد الزيارات السابقة",
        "csv.has_violations": "وجود مخالفات",
        "csv.violations_count": "عدد المخالفات",
        "csv.risk_score": "درجة الخطورة",
        "csv.risk_level": "مستوى الخطورة",
    },
    "en": {
        "unspecified": "Unspecified",
        "yes": "Yes",
        "no": "No",
        "not_analyzed": "Not analyzed yet",
        "insufficient_data": "Insufficient data",
        "risk.low": "Low",
        "risk.medium": "Medium",
        "risk.high": "High",
        "risk.very_high": "Very high",
        "recommendation.grant entry": "Grant entry",
        "recommendation.further review": "Further review",
        "recommendation.reject": "Reject",
        "status.pending": "Pending",
        "status.approved": "Approved",
        "status.review": "Under review",
        "status.rejected": "Rejected",
        "age.under_25": "Under 25",
        "age.25_34": "25-34",
        "age.35_44": "35-44",
        "age.45_54": "45-54",
        "age.55_plus": "55+",
        "error.source_unavailable": "Failed to load applicant data",
        "error.gateway_not_configured": "The AI gateway key is not configured",
        "error.rate_limited": "Request limit exceeded, please try again later",
        "error.quota_exceeded": "Please add credit to use the AI service",
        "error.gateway_failed": "The AI gateway request failed",
        "error.missing_applicant": "Applicant data is required",
        "charts.empty": (
            "No chart data yet. Analyze applicants first to see risk statistics."
        ),
        "csv.id": "Application ID",
        "csv.full_name": "Full name",
        "csv.passport_number": "Passport number",
        "csv.nationality": "Nationality",
        "csv.gender": "Gender",
        "csv.birth_date": "Birth date",
        "csv.visa_type": "Visa type",
        "csv.status": "Status",
        "csv.entry_date": "Entry date",
        "csv.exit_date": "Exit date",
        "csv.sponsor": "Sponsor",
        "csv.profession": "Profession",
        "csv.employer": "Employer",
        "csv.monthly_salary": "Monthly salary",
        "csv.work_experience_years": "Years of experience",
        "csv.education_level": "Education level",
        "csv.previous_visits": "Previous visits",
        "csv.has_violations": "Has violations",
        "csv.violations_count": "Violation count",
        "csv.risk_score": "Risk score",
        "csv.risk_level": "Risk level",
    },
}


def translate(key: str, lang: Language = "ar") -> str:
    """Return the label for ``key``, falling back to Arabic and then the key."""
    table = LABELS.get(lang, LABELS["ar"])
    return table.get(key) or LABELS["ar"].get(key) or key
