"""Client for the remote search index (Algolia-compatible REST API)."""
from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

import httpx

from .config import SearchSettings
from .records import SearchRecord

logger = logging.getLogger(__name__)

INDEX_SETTINGS: dict[str, Any] = {
    "attributesToIndex": ["projectName", "h1", "h2", "h3", "h4", "h5", "h6", "content"],
    "customRanking": ["asc(rank)"],
    "ranking": ["words", "typo", "attribute", "proximity", "custom"],
    "minWordSizefor1Typo": 3,
    "minWordSizefor2Typos": 7,
    "allowTyposOnNumericTokens": False,
    "minProximity": 2,
    "ignorePlurals": True,
    "advancedSyntax": True,
    "removeWordsIfNoResults": "allOptional",
}


class SearchIndexError(RuntimeError):
    """Raised when the search service rejects or fails a request."""


def create_client(settings: SearchSettings, **kwargs: Any) -> httpx.Client:
    headers = {
        "X-Algolia-Application-Id": settings.app_id,
        "X-Algolia-API-Key": settings.api_key,
        "Content-Type": "application/json",
    }
    return httpx.Client(
        base_url=settings.base_url,
        headers=headers,
        timeout=settings.timeout,
        **kwargs,
    )


class SearchIndex:
    """One named index on the search service.

    The HTTP client is owned by the caller; ``SearchIndex`` never closes it.
    """

    def __init__(self, client: httpx.Client, index_name: str) -> None:
        self.client = client
        self.index_name = index_name

    @property
    def path(self) -> str:
        return f"/1/indexes/{self.index_name}"

    def init_index(self) -> None:
        """Apply the fixed index settings and drop every existing record."""
        self.set_settings(INDEX_SETTINGS)
        self.clear()

    def set_settings(self, settings: Mapping[str, Any]) -> None:
        self._request("PUT", f"{self.path}/settings", json=dict(settings))

    def clear(self) -> None:
        self._request("POST", f"{self.path}/clear")

    def add_records(self, records: Iterable[SearchRecord]) -> dict[str, Any]:
        """Upload every record in a single batch request."""
        requests = [{"action": "addObject", "body": record.to_dict()} for record in records]
        if not requests:
            logger.info("No records to upload to %s", self.index_name)
            return {}
        logger.info("Uploading %d records to %s", len(requests), self.index_name)
        return self._request("POST", f"{self.path}/batch", json={"requests": requests})

    def _request(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        logger.info("%s %s", method, url)
        try:
            response = self.client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            body = exc.response.text[:200]
            raise SearchIndexError(
                f"{method} {url} failed with HTTP {exc.response.status_code}: {body}"
            ) from exc
        except httpx.RequestError as exc:
            raise SearchIndexError(f"{method} {url} failed: {exc}") from exc
        if not response.content:
            return {}
        return dict(response.json())
