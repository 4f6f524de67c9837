from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from hashwatch.http import RequestManager
from hashwatch.models import Lead

logger = logging.getLogger("hashwatch.notifier")

EMBED_COLOR = 3066993
DEFAULT_USERNAME = "Hashwatch Daily Report"
DEFAULT_FOOTER = "Hashwatch Lead Finder"
DEFAULT_PACING_SECONDS = 0.5


class DiscordNotifier:
    """Posts one embed per lead to a Discord webhook, pausing between sends."""

    def __init__(
        self,
        webhook_url: str | None,
        request_manager: RequestManager | None = None,
        pacing_seconds: float = DEFAULT_PACING_SECONDS,
        username: str = DEFAULT_USERNAME,
        footer: str = DEFAULT_FOOTER,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.webhook_url = webhook_url or ""
        self.request_manager = request_manager or RequestManager(timeout_seconds=8)
        self.pacing_seconds = max(0.0, float(pacing_seconds))
        self.username = username
        self.footer = footer
        self._sleep = sleep

    @property
    def enabled(self) -> bool:
        return bool(self.webhook_url)

    def build_payload(self, lead: Lead) -> dict[str, Any]:
        caption = lead.notes[:100] if lead.notes else "-"
        return {
            "username": self.username,
            "embeds": [
                {
                    "title": f"New lead: @{lead.company_name}",
                    "url": lead.website,
                    "color": EMBED_COLOR,
                    "fields": [
                        {"name": "Posted", "value": lead.post_age, "inline": True},
                        {"name": "Source", "value": lead.business_type, "inline": True},
                        {"name": "Caption", "value": caption},
                    ],
                    "footer": {"text": self.footer},
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                }
            ],
        }

    def notify(self, leads: list[Lead]) -> int:
        if not self.enabled or not leads:
            return 0

        delivered = 0
        for index, lead in enumerate(leads):
            if index and self.pacing_seconds:
                self._sleep(self.pacing_seconds)
            try:
                self.request_manager.post_json(self.webhook_url, self.build_payload(lead))
                delivered += 1
            except Exception as exc:  # noqa: BLE001
                logger.warning("discord alert failed for %s: %s", lead.id, exc)

        logger.info("sent %d/%d discord alerts", delivered, len(leads))
        return delivered
