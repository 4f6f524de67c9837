from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path

from hashwatch.deduplicator import Deduplicator
from hashwatch.models import Lead, StoreDocument
from hashwatch.utils import normalize_tag

logger = logging.getLogger("hashwatch.store")


class LeadStore(ABC):
    """Whole-document store. Every mutation is one locked read-modify-write."""

    def __init__(self) -> None:
        self._lock = threading.RLock()

    @abstractmethod
    def load(self) -> StoreDocument:
        raise NotImplementedError

    @abstractmethod
    def commit(self, document: StoreDocument) -> None:
        raise NotImplementedError

    def add_leads(self, candidates: list[Lead]) -> list[Lead]:
        with self._lock:
            document = self.load()
            new_leads, _ = Deduplicator(document.leads).split_new_and_seen(candidates)
            if not new_leads:
                return []
            for lead in new_leads:
                document.leads[lead.id] = lead
            self.commit(document)
            return new_leads

    def add_tag(self, tag: str) -> None:
        clean = _require_tag(tag)
        with self._lock:
            document = self.load()
            if clean in document.monitored_tags:
                return
            document.monitored_tags.append(clean)
            self.commit(document)

    def remove_tag(self, tag: str) -> None:
        clean = _require_tag(tag)
        with self._lock:
            document = self.load()
            if clean not in document.monitored_tags:
                return
            document.monitored_tags.remove(clean)
            self.commit(document)

    def set_running(self, running: bool) -> None:
        with self._lock:
            document = self.load()
            document.is_running = bool(running)
            self.commit(document)

    def reset(self) -> None:
        with self._lock:
            self.commit(StoreDocument())


def _require_tag(tag: str) -> str:
    clean = normalize_tag(tag)
    if not clean:
        raise ValueError("tag must be a non-empty string")
    return clean


class MemoryStore(LeadStore):
    def __init__(self, document: StoreDocument | None = None) -> None:
        super().__init__()
        self._document = document or StoreDocument()
        self.commits = 0

    def load(self) -> StoreDocument:
        with self._lock:
            return copy.deepcopy(self._document)

    def commit(self, document: StoreDocument) -> None:
        with self._lock:
            self._document = copy.deepcopy(document)
            self.commits += 1


class JsonFileStore(LeadStore):
    def __init__(self, path: str) -> None:
        super().__init__()
        self.path = Path(path)

    def load(self) -> StoreDocument:
        with self._lock:
            if not self.path.exists():
                return StoreDocument()
            try:
                data = json.loads(self.path.read_text(encoding="utf-8"))
            except (json.JSONDecodeError, OSError) as exc:
                self._set_aside(f"unreadable ({exc})")
                return StoreDocument()
            if not isinstance(data, dict):
                self._set_aside("not a JSON object")
                return StoreDocument()
            return StoreDocument.from_dict(data)

    def _set_aside(self, reason: str) -> None:
        backup = self.path.with_name(self.path.name + ".corrupt")
        try:
            os.replace(self.path, backup)
        except OSError as exc:
            logger.warning("store at %s is %s and could not be moved aside: %s", self.path, reason, exc)
            return
        logger.warning("store at %s is %s, moved to %s and starting empty", self.path, reason, backup)

    def commit(self, document: StoreDocument) -> None:
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            payload = json.dumps(document.to_dict(), indent=2)
            fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), prefix=f".{self.path.name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(payload)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
