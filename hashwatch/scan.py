from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from hashwatch.extractor import extract
from hashwatch.freshness import DEFAULT_WINDOW_HOURS, SCHEDULED_WINDOW_HOURS, parse_timestamp, utc_now
from hashwatch.models import Lead
from hashwatch.notifier import DiscordNotifier
from hashwatch.sources.base import PostSource
from hashwatch.store import LeadStore
from hashwatch.utils import parse_tag_list

logger = logging.getLogger("hashwatch.scan")


@dataclass
class ScanSettings:
    window_hours: float = DEFAULT_WINDOW_HOURS
    scheduled_window_hours: float = SCHEDULED_WINDOW_HOURS
    limit: int = 20
    forced_limit: int = 50
    max_workers: int = 1

    @classmethod
    def from_config(cls, config: dict) -> ScanSettings:
        scan_cfg = config.get("scan", {})
        return cls(
            window_hours=float(scan_cfg.get("window_hours", DEFAULT_WINDOW_HOURS)),
            scheduled_window_hours=float(scan_cfg.get("scheduled_window_hours", SCHEDULED_WINDOW_HOURS)),
            limit=int(scan_cfg.get("limit", 20)),
            forced_limit=int(scan_cfg.get("forced_limit", 50)),
            max_workers=int(scan_cfg.get("max_workers", 1)),
        )


@dataclass
class ScanOptions:
    force: bool = False
    limit: int | None = None
    window_hours: float | None = None
    tags: list[str] | None = None


@dataclass
class ScanResult:
    success: bool
    new_leads_count: int = 0
    message: str = ""
    per_tag: dict[str, int] = field(default_factory=dict)
    new_leads: list[Lead] = field(default_factory=list)

    def to_response(self) -> dict[str, Any]:
        if self.success:
            return {"success": True, "newLeads": self.new_leads_count}
        return {"success": False, "message": self.message}


def _newest_first(items: list[dict[str, Any]]) -> list[dict[str, Any]]:
    def sort_key(item: dict[str, Any]) -> tuple[int, float]:
        created = parse_timestamp(item.get("timestamp") if isinstance(item, dict) else None)
        if created is None:
            return (1, 0.0)
        return (0, -created.timestamp())

    return sorted(items, key=sort_key)


class ScanOrchestrator:
    def __init__(
        self,
        store: LeadStore,
        source: PostSource,
        notifier: DiscordNotifier | None = None,
        settings: ScanSettings | None = None,
        tag_override: list[str] | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.source = source
        self.notifier = notifier
        self.settings = settings or ScanSettings()
        self.tag_override = list(tag_override or [])
        self.clock = clock

    def resolve_tags(self, options: ScanOptions, stored_tags: list[str]) -> list[str]:
        for candidate in (options.tags, self.tag_override, stored_tags):
            tags = parse_tag_list(",".join(candidate or []))
            if tags:
                return tags
        return []

    def run_scan(self, options: ScanOptions | None = None) -> ScanResult:
        options = options or ScanOptions()
        document = self.store.load()

        if not document.is_running and not options.force:
            logger.info("scan skipped: monitor is paused")
            return ScanResult(success=False, message="Paused")

        if not self.source.configured:
            logger.error("scan aborted: missing APIFY_TOKEN")
            return ScanResult(success=False, message="Missing APIFY_TOKEN")

        tags = self.resolve_tags(options, document.monitored_tags)
        if not tags:
            logger.warning("scan aborted: no tags to scan")
            return ScanResult(success=False, message="No tags to scan")

        if options.force:
            limit, window = self.settings.forced_limit, self.settings.scheduled_window_hours
        else:
            limit, window = self.settings.limit, self.settings.window_hours
        if options.limit is not None:
            limit = options.limit
        if options.window_hours is not None:
            window = options.window_hours

        now = self.clock()
        per_tag: dict[str, int] = {}
        all_new: list[Lead] = []

        if self.settings.max_workers > 1 and len(tags) > 1:
            with ThreadPoolExecutor(max_workers=self.settings.max_workers) as pool:
                outcomes = list(pool.map(lambda tag: self._scan_tag(tag, limit, window, now), tags))
        else:
            outcomes = [self._scan_tag(tag, limit, window, now) for tag in tags]

        for tag, new_leads in zip(tags, outcomes):
            per_tag[tag] = len(new_leads)
            all_new.extend(new_leads)

        if all_new and self.notifier is not None and self.notifier.enabled:
            try:
                self.notifier.notify(all_new)
            except Exception as exc:  # noqa: BLE001
                logger.warning("notification step failed: %s", exc)

        logger.info("scan finished: %d new leads across %d tags", len(all_new), len(tags))
        return ScanResult(success=True, new_leads_count=len(all_new), per_tag=per_tag, new_leads=all_new)

    def _scan_tag(self, tag: str, limit: int, window_hours: float, now: datetime) -> list[Lead]:
        try:
            logger.info("scanning #%s (fetching %s posts)", tag, limit)
            items = self.source.fetch(tag, limit) or []
            candidates: list[Lead] = []
            for item in _newest_first(items):
                lead = extract(item, tag, window_hours=window_hours, now=now)
                if lead is not None:
                    candidates.append(lead)

            new_leads = self.store.add_leads(candidates) if candidates else []
            if new_leads:
                logger.info("found %d fresh posts for #%s", len(new_leads), tag)
            return new_leads
        except Exception as exc:  # noqa: BLE001
            logger.warning("error scanning #%s: %s", tag, exc)
            return []
