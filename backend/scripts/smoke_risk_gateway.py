"""Live smoke test for the risk analysis round trip.

Needs a running server (``fastapi dev visa_dashboard/main.py``) configured with
a real ``AI_GATEWAY_API_KEY``. Base URL can be overridden with SMOKE_BASE_URL.
"""

import os
import sys
import time

import httpx

base = os.environ.get("SMOKE_BASE_URL", "http://localhost:8000/api/v1")

# --- Direct gateway function ---

applicant = {
    "full_name": "أحمد محمد حسن",
    "nationality": "مصر",
    "gender": "ذكر",
    "birth_date": "1990-03-15",
    "profession": "محاسب",
    "employer": "شركة الأفق",
    "work_experience_years": 7,
    "monthly_salary": 8000,
    "education_level": "بكالوريوس",
    "visa_type": "عمل",
    "sponsor": "شركة الأفق",
    "previous_visits": 2,
    "has_violations": True,
    "violations": [
        {"type": "تجاوز مدة الإقامة", "date": "2021-06-10", "severity": "متوسطة"}
    ],
}

resp = httpx.post(f"{base}/functions/analyze-risk", json={"applicant": applicant}, timeout=90)
if resp.is_error:
    print(f"Gateway function failed: {resp.status_code} {resp.text}")
    sys.exit(1)

result = resp.json()
print("=== DIRECT ANALYSIS ===")
print(f"Score: {result['risk_score']}  Level: {result['risk_level']}")
print(f"Recommendation: {result['recommendation']}")
print(f"Factors: {result['factors']}")
print(f"Analysis: {result['analysis'][:300]}")
print()

# --- Stored applicant ---

listing = httpx.get(
    f"{base}/applicants/", params={"sort_by": "risk_score"}, timeout=30
).json()
if listing.get("warning"):
    print(f"WARNING: {listing['warning']}")
pending = [row for row in listing["data"] if row["risk_score"] is None]
if not pending:
    print("No pending applicants to analyze; skipping stored analysis")
else:
    applicant_id = pending[0]["id"]
    resp = httpx.post(f"{base}/applicants/{applicant_id}/analyze", timeout=90)
    print(f"=== STORED ANALYSIS ({applicant_id}) ===")
    print(f"  Status: {resp.status_code}")
    print(f"  Body: {resp.json()}")
    trail = httpx.get(f"{base}/applicants/{applicant_id}/audit-trail", timeout=30).json()
    for event in trail["events"]:
        print(f"  [{event['created_at']}] {event['action']}: {event['event_metadata']}")
    print()

# --- Batch ---

resp = httpx.post(f"{base}/applicants/analyze-pending", timeout=30)
print(f"Batch start: {resp.status_code} {resp.json()}")
for attempt in range(60):
    time.sleep(2)
    progress = httpx.get(f"{base}/applicants/analyze-pending/progress", timeout=30).json()
    print(
        f"  Poll {attempt + 1}: {progress['completed']}/{progress['total']} "
        f"(failed={progress['failed']})"
    )
    if not progress["running"]:
        break
else:
    print("WARNING: Timed out waiting for batch analysis to complete")

for failure in progress["failures"]:
    print(f"  FAILED {failure['applicant_id']}: {failure['error']}")

stats = httpx.get(f"{base}/applicants/stats", timeout=30).json()
print("\n=== STATS ===")
for key, value in stats.items():
    print(f"  {key}: {value}")

print("SMOKE TEST COMPLETE")
