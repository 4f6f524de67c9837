from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import requests


@dataclass
class RequestManager:
    timeout_seconds: int = 10

    def post_json(self, url: str, payload: dict[str, Any], headers: dict[str, str] | None = None) -> int:
        try:
            resp = requests.post(url, json=payload, headers=headers, timeout=self.timeout_seconds)
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise RuntimeError(f"Request failed: POST {_redact(url)} ({exc})") from exc
        return resp.status_code


def _redact(url: str) -> str:
    # webhook urls embed their token in the path
    if "/webhooks/" in url:
        return url.split("/webhooks/", 1)[0] + "/webhooks/***"
    return url
