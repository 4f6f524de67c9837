from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

LEAD_SCORE = 90


@dataclass
class Lead:
    id: str
    company_name: str
    contact_name: str
    website: str
    business_type: str
    raw_email: str | None = None
    email_verification_status: str = "unknown"
    score: int = LEAD_SCORE
    post_age: str = "Unknown"
    notes: str = ""
    posted_at: str = ""
    post_url: str = ""
    country: str = "Global"
    region: str = "Instagram"
    contact_role: str = "Owner"
    domain: str = "instagram.com"
    predicted_email: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "companyName": self.company_name,
            "website": self.website,
            "country": self.country,
            "region": self.region,
            "businessType": self.business_type,
            "contactName": self.contact_name,
            "contactRole": self.contact_role,
            "rawEmail": self.raw_email,
            "predictedEmail": self.predicted_email,
            "domain": self.domain,
            "emailVerificationStatus": self.email_verification_status,
            "score": self.score,
            "postAge": self.post_age,
            "notes": self.notes,
            "postedAt": self.posted_at,
            "postUrl": self.post_url,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Lead:
        return cls(
            id=str(data["id"]),
            company_name=data.get("companyName", "Unknown"),
            contact_name=data.get("contactName", data.get("companyName", "Unknown")),
            website=data.get("website", ""),
            business_type=data.get("businessType", ""),
            raw_email=data.get("rawEmail"),
            email_verification_status=data.get("emailVerificationStatus", "unknown"),
            score=int(data.get("score", LEAD_SCORE)),
            post_age=data.get("postAge", "Unknown"),
            notes=data.get("notes", ""),
            posted_at=data.get("postedAt", ""),
            post_url=data.get("postUrl", ""),
            country=data.get("country", "Global"),
            region=data.get("region", "Instagram"),
            contact_role=data.get("contactRole", "Owner"),
            domain=data.get("domain", "instagram.com"),
            predicted_email=data.get("predictedEmail"),
        )


@dataclass
class StoreDocument:
    leads: dict[str, Lead] = field(default_factory=dict)
    monitored_tags: list[str] = field(default_factory=list)
    is_running: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "leads": {lead_id: lead.to_dict() for lead_id, lead in self.leads.items()},
            "monitoredTags": list(self.monitored_tags),
            "isRunning": self.is_running,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StoreDocument:
        raw_leads = data.get("leads") or {}
        # older documents kept leads as a list
        if isinstance(raw_leads, list):
            raw_leads = {str(item["id"]): item for item in raw_leads if isinstance(item, dict) and "id" in item}

        leads: dict[str, Lead] = {}
        if isinstance(raw_leads, dict):
            for lead_id, item in raw_leads.items():
                if isinstance(item, dict) and "id" in item:
                    leads[str(lead_id)] = Lead.from_dict(item)
        tags: list[str] = []
        for tag in data.get("monitoredTags") or []:
            if isinstance(tag, str) and tag and tag not in tags:
                tags.append(tag)

        return cls(leads=leads, monitored_tags=tags, is_running=bool(data.get("isRunning", False)))
