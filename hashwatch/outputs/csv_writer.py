from __future__ import annotations

import csv
from pathlib import Path

from hashwatch.models import Lead

HEADERS = [
    "Id",
    "Handle",
    "Profile",
    "Tag",
    "Email",
    "Email Status",
    "Score",
    "Post Age",
    "Posted At",
    "Post URL",
    "Notes",
]


def lead_to_row(lead: Lead) -> list[str | int]:
    return [
        lead.id,
        lead.company_name,
        lead.website,
        lead.business_type,
        lead.raw_email or "",
        lead.email_verification_status,
        lead.score,
        lead.post_age,
        lead.posted_at,
        lead.post_url,
        lead.notes,
    ]


def write_leads_csv(path: str, leads: list[Lead]) -> int:
    csv_path = Path(path)
    csv_path.parent.mkdir(parents=True, exist_ok=True)

    with csv_path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle)
        writer.writerow(HEADERS)
        for lead in leads:
            writer.writerow(lead_to_row(lead))
    return len(leads)

