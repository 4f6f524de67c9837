from datetime import datetime, timedelta, timezone

from hashwatch.models import Lead, StoreDocument
from hashwatch.notifier import DiscordNotifier
from hashwatch.scan import ScanOptions, ScanOrchestrator, ScanSettings
from hashwatch.sources.base import PostSource
from hashwatch.store import MemoryStore

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


def _post(post_id: str, hours_old: float, caption: str = "") -> dict:
    return {
        "id": post_id,
        "ownerUsername": f"user{post_id}",
        "caption": caption,
        "timestamp": (NOW - timedelta(hours=hours_old)).isoformat(),
    }


class FakeSource(PostSource):
    def __init__(self, items_by_tag: dict, configured: bool = True) -> None:
        super().__init__("fake")
        self.items_by_tag = items_by_tag
        self._configured = configured
        self.calls: list[tuple[str, int]] = []

    @property
    def configured(self) -> bool:
        return self._configured

    def fetch(self, tag: str, limit: int) -> list[dict]:
        self.calls.append((tag, limit))
        result = self.items_by_tag.get(tag, [])
        if isinstance(result, Exception):
            raise result
        return list(result)


class RecordingNotifier(DiscordNotifier):
    def __init__(self) -> None:
        super().__init__("https://discord.test/api/webhooks/1/abc", sleep=lambda _: None)
        self.batches: list[list[Lead]] = []

    def notify(self, leads: list[Lead]) -> int:
        self.batches.append(list(leads))
        return len(leads)


def _orchestrator(store, source, notifier=None, **kwargs) -> ScanOrchestrator:
    return ScanOrchestrator(store=store, source=source, notifier=notifier, clock=lambda: NOW, **kwargs)


def test_paused_scan_makes_no_external_calls() -> None:
    store = MemoryStore(StoreDocument(monitored_tags=["rings"], is_running=False))
    source = FakeSource({"rings": [_post("1", 1)]})

    result = _orchestrator(store, source).run_scan(ScanOptions())

    assert result.success is False
    assert result.to_response() == {"success": False, "message": "Paused"}
    assert source.calls == []


def test_weddingrings_scenario_notifies_exactly_new_fresh_leads() -> None:
    store = MemoryStore(StoreDocument(monitored_tags=["weddingrings"], is_running=True))
    source = FakeSource({"weddingrings": [_post("1", 2), _post("2", 50), _post("3", 30)]})
    notifier = RecordingNotifier()

    result = _orchestrator(store, source, notifier).run_scan(ScanOptions())

    assert result.success is True
    assert result.new_leads_count == 2
    assert result.to_response() == {"success": True, "newLeads": 2}
    assert len(notifier.batches) == 1
    assert [lead.id for lead in notifier.batches[0]] == ["post-1", "post-3"]
    assert set(store.load().leads) == {"post-1", "post-3"}
    assert source.calls == [("weddingrings", 20)]


def test_second_scan_finds_nothing_new_and_does_not_notify() -> None:
    store = MemoryStore(StoreDocument(monitored_tags=["rings"], is_running=True))
    source = FakeSource({"rings": [_post("1", 2)]})
    notifier = RecordingNotifier()
    orchestrator = _orchestrator(store, source, notifier)

    assert orchestrator.run_scan().new_leads_count == 1
    second = orchestrator.run_scan()

    assert second.success is True
    assert second.new_leads_count == 0
    assert len(notifier.batches) == 1


def test_forced_scan_uses_scheduled_window_and_limit() -> None:
    store = MemoryStore(StoreDocument(monitored_tags=["rings"], is_running=False))
    source = FakeSource({"rings": [_post("1", 25), _post("2", 27)]})

    result = _orchestrator(store, source).run_scan(ScanOptions(force=True))

    assert result.success is True
    assert result.new_leads_count == 1
    assert source.calls == [("rings", 50)]


def test_explicit_limit_and_window_win() -> None:
    store = MemoryStore(StoreDocument(monitored_tags=["rings"], is_running=True))
    source = FakeSource({"rings": [_post("1", 60)]})

    result = _orchestrator(store, source).run_scan(ScanOptions(limit=5, window_hours=72))

    assert result.new_leads_count == 1
    assert source.calls == [("rings", 5)]


def test_missing_credential_fails_before_any_tag() -> None:
    store = MemoryStore(StoreDocument(monitored_tags=["rings"], is_running=True))
    source = FakeSource({"rings": [_post("1", 1)]}, configured=False)

    result = _orchestrator(store, source).run_scan(ScanOptions(force=True))

    assert result.to_response() == {"success": False, "message": "Missing APIFY_TOKEN"}
    assert source.calls == []


def test_no_tags_is_a_failure() -> None:
    store = MemoryStore(StoreDocument(is_running=True))
    result = _orchestrator(store, FakeSource({})).run_scan()

    assert result.success is False
    assert result.message == "No tags to scan"


def test_tag_override_replaces_stored_tags() -> None:
    store = MemoryStore(StoreDocument(monitored_tags=["stored"], is_running=True))
    source = FakeSource({"override": [_post("9", 1)]})

    result = _orchestrator(store, source, tag_override=["override"]).run_scan()

    assert result.new_leads_count == 1
    assert [call[0] for call in source.calls] == ["override"]
    assert store.load().leads["post-9"].business_type == "#override"


def test_failing_tag_does_not_abort_others() -> None:
    store = MemoryStore(StoreDocument(monitored_tags=["broken", "rings", "empty"], is_running=True))
    source = FakeSource({"broken": RuntimeError("actor timed out"), "rings": [_post("1", 1)], "empty": []})

    result = _orchestrator(store, source).run_scan()

    assert result.success is True
    assert result.new_leads_count == 1
    assert result.per_tag == {"broken": 0, "rings": 1, "empty": 0}
    assert [call[0] for call in source.calls] == ["broken", "rings", "empty"]


def test_notifier_failure_does_not_change_count() -> None:
    class ExplodingNotifier(RecordingNotifier):
        def notify(self, leads):
            raise RuntimeError("discord down")

    store = MemoryStore(StoreDocument(monitored_tags=["rings"], is_running=True))
    source = FakeSource({"rings": [_post("1", 1), _post("2", 1)]})

    result = _orchestrator(store, source, ExplodingNotifier()).run_scan()

    assert result.success is True
    assert result.new_leads_count == 2


def test_concurrent_tags_share_the_store_safely() -> None:
    tags = [f"tag{n}" for n in range(6)]
    items = {tag: [_post(f"{tag}-{i}", 1) for i in range(3)] + [_post("shared", 1)] for tag in tags}
    store = MemoryStore(StoreDocument(monitored_tags=tags, is_running=True))

    result = _orchestrator(store, FakeSource(items), settings=ScanSettings(max_workers=4)).run_scan()

    assert result.new_leads_count == 6 * 3 + 1
    assert len(store.load().leads) == 6 * 3 + 1
    assert sum(result.per_tag.values()) == result.new_leads_count


def test_items_are_processed_newest_first() -> None:
    store = MemoryStore(StoreDocument(monitored_tags=["rings"], is_running=True))
    source = FakeSource({"rings": [_post("old", 10), {"id": "undated"}, _post("new", 1), _post("mid", 5)]})

    result = _orchestrator(store, source).run_scan()

    assert [lead.id for lead in result.new_leads] == ["post-new", "post-mid", "post-old"]


def test_explicit_tags_are_normalized() -> None:
    store = MemoryStore(StoreDocument(monitored_tags=["stored"], is_running=True))
    source = FakeSource({"rings": [_post("1", 1)]})

    result = _orchestrator(store, source).run_scan(ScanOptions(tags=["#rings", " rings "]))

    assert result.new_leads_count == 1
    assert source.calls == [("rings", 20)]


def test_zero_window_is_honored_not_defaulted() -> None:
    store = MemoryStore(StoreDocument(monitored_tags=["rings"], is_running=True))
    source = FakeSource({"rings": [_post("1", 1), _post("2", 0)]})

    result = _orchestrator(store, source).run_scan(ScanOptions(window_hours=0))

    assert [lead.id for lead in result.new_leads] == ["post-2"]
