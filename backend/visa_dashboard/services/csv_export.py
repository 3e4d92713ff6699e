"""CSV export of applicant lists.

The file starts with a UTF-8 BOM so spreadsheet tools detect the encoding and
render Arabic text correctly. Every field is double-quoted, and line breaks
inside values become spaces so each record stays on one line.
"""

import csv
import io
import re
from collections.abc import Iterable
from datetime import date
from typing import Any

from visa_dashboard.core.i18n import Language, translate
from visa_dashboard.models import VisaApplicant
from visa_dashboard.services.risk_policy import get_risk_level

BOM = "\ufeff"

LINE_BREAKS = re.compile(r"\r\n|\r|\n")

CSV_COLUMNS = [
    "id",
    "full_name",
    "passport_number",
    "nationality",
    "gender",
    "birth_date",
    "visa_type",
    "status",
    "entry_date",
    "exit_date",
    "sponsor",
    "profession",
    "employer",
    "monthly_salary",
    "work_experience_years",
    "education_level",
    "previous_visits",
    "has_violations",
    "violations_count",
    "risk_score",
    "risk_level",
]


def build_csv_filename(*, today: date | None = None) -> str:
    return f"visa_applicants_{(today or date.today()).isoformat()}.csv"


def _format_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return LINE_BREAKS.sub(" ", str(value))


def _row(applicant: VisaApplicant, lang: Language) -> list[str]:
    level = get_risk_level(risk_score=applicant.risk_score)
    values: dict[str, Any] = {
        **{column: getattr(applicant, column, None) for column in CSV_COLUMNS},
        "status": translate(f"status.{applicant.status}", lang),
        "has_violations": translate("yes" if applicant.has_violations else "no", lang),
        "violations_count": len(applicant.violations or []),
        "risk_score": applicant.risk_score,
        "risk_level": translate(f"risk.{level.value}", lang) if level else "",
    }
    return [_format_value(values[column]) for column in CSV_COLUMNS]


def export_applicants_csv(
    applicants: Iterable[VisaApplicant], *, lang: Language = "ar"
) -> str:
    buffer = io.StringIO()
    buffer.write(BOM)
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow([translate(f"csv.{column}", lang) for column in CSV_COLUMNS])
    for applicant in applicants:
        writer.writerow(_row(applicant, lang))
    return buffer.getvalue()
