from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any


class PostSource(ABC):
    """Returns raw post items for one hashtag. Items are opaque dicts."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.logger = logging.getLogger(f"hashwatch.sources.{name}")

    @property
    def configured(self) -> bool:
        return True

    @abstractmethod
    def fetch(self, tag: str, limit: int) -> list[dict[str, Any]]:
        raise NotImplementedError
