from __future__ import annotations

import re

EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._-]+@[a-zA-Z0-9._-]+\.[a-zA-Z0-9._-]+", re.IGNORECASE)


def extract_email(text: str) -> str | None:
    if not text:
        return None
    match = EMAIL_PATTERN.search(text)
    if not match:
        return None
    return match.group(0).rstrip(".")


def normalize_tag(tag: str) -> str:
    clean = (tag or "").strip()
    if clean.startswith("#"):
        clean = clean[1:].strip()
    return clean


def parse_tag_list(raw: str | None) -> list[str]:
    tags: list[str] = []
    for part in (raw or "").split(","):
        tag = normalize_tag(part)
        if tag and tag not in tags:
            tags.append(tag)
    return tags

