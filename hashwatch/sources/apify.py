from __future__ import annotations

from typing import Any

from apify_client import ApifyClient

from hashwatch.sources.base import PostSource

HASHTAG_ACTOR_ID = "apify/instagram-hashtag-scraper"


class ApifyHashtagSource(PostSource):
    """Runs the hosted Instagram hashtag actor and reads its default dataset."""

    def __init__(
        self,
        token: str,
        actor_id: str = HASHTAG_ACTOR_ID,
        timeout_seconds: int = 50,
        client: ApifyClient | None = None,
    ) -> None:
        super().__init__("apify")
        self.token = token or ""
        self.actor_id = actor_id
        self.timeout_seconds = int(timeout_seconds)
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self.token)

    @property
    def client(self) -> ApifyClient:
        if self._client is None:
            self._client = ApifyClient(self.token)
        return self._client

    def fetch(self, tag: str, limit: int) -> list[dict[str, Any]]:
        run_input = {
            "hashtags": [tag],
            "resultsLimit": int(limit),
            "resultsType": "posts",
        }
        self.logger.info("running %s for #%s (limit %s)", self.actor_id, tag, limit)
        run = self.client.actor(self.actor_id).call(run_input=run_input, timeout_secs=self.timeout_seconds)
        if not run:
            raise RuntimeError(f"actor run for #{tag} returned nothing")

        dataset_id = run.get("defaultDatasetId")
        if not dataset_id:
            raise RuntimeError(f"actor run for #{tag} has no dataset")

        items = [item for item in self.client.dataset(dataset_id).iterate_items() if isinstance(item, dict)]
        self.logger.info("#%s returned %d items", tag, len(items))
        return items
