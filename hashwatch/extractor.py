from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from hashwatch.freshness import DEFAULT_WINDOW_HOURS, age_label, is_fresh
from hashwatch.models import Lead
from hashwatch.utils import extract_email

logger = logging.getLogger("hashwatch.extractor")

UNKNOWN_AUTHOR = "Unknown"
CAPTION_PREVIEW_CHARS = 50


@dataclass
class RawPost:
    """The subset of an actor result item the extractor relies on."""

    id: str
    author: str
    caption: str = ""
    timestamp: Any = None
    url: str = ""

    @classmethod
    def from_item(cls, item: Any) -> RawPost | None:
        if not isinstance(item, dict):
            return None

        post_id = item.get("id")
        if post_id is None or str(post_id).strip() == "":
            return None

        owner = item.get("owner")
        owner_username = owner.get("username") if isinstance(owner, dict) else None
        author = item.get("ownerUsername") or owner_username or item.get("username") or UNKNOWN_AUTHOR

        caption = item.get("caption")
        url = item.get("url")
        return cls(
            id=str(post_id).strip(),
            author=str(author),
            caption=caption if isinstance(caption, str) else "",
            timestamp=item.get("timestamp"),
            url=url if isinstance(url, str) else "",
        )


def build_lead(post: RawPost, tag: str, now: datetime | None = None) -> Lead:
    age = age_label(post.timestamp, now)
    email = extract_email(post.caption)
    return Lead(
        id=f"post-{post.id}",
        company_name=post.author,
        contact_name=post.author,
        website=f"https://instagram.com/{post.author}",
        business_type=f"#{tag}",
        raw_email=email,
        email_verification_status="valid" if email else "unknown",
        post_age=age,
        notes=f'[{age}] "{post.caption[:CAPTION_PREVIEW_CHARS]}..."',
        posted_at=str(post.timestamp) if post.timestamp is not None else "",
        post_url=post.url,
    )


def extract(
    raw_item: Any,
    tag: str,
    window_hours: float = DEFAULT_WINDOW_HOURS,
    now: datetime | None = None,
) -> Lead | None:
    post = RawPost.from_item(raw_item)
    if post is None:
        logger.debug("skipping item without id for #%s", tag)
        return None

    if not is_fresh(post.timestamp, window_hours, now):
        return None

    return build_lead(post, tag, now)
