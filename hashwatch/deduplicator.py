from __future__ import annotations

from collections.abc import Container

from hashwatch.models import Lead


class Deduplicator:
    def __init__(self, seen_ids: Container[str]) -> None:
        self.seen_ids = seen_ids

    def split_new_and_seen(self, leads: list[Lead]) -> tuple[list[Lead], list[Lead]]:
        new_leads: list[Lead] = []
        skipped: list[Lead] = []
        batch_ids: set[str] = set()

        for lead in leads:
            if lead.id in self.seen_ids or lead.id in batch_ids:
                skipped.append(lead)
                continue
            batch_ids.add(lead.id)
            new_leads.append(lead)

        return new_leads, skipped
