"""Environment-driven settings for the search index client."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_INDEX_NAME = "pages"
DEFAULT_API_URL = "https://{app_id}.algolia.net"


@dataclass
class SearchSettings:
    app_id: str
    api_key: str
    index_name: str = DEFAULT_INDEX_NAME
    api_url: str = DEFAULT_API_URL
    timeout: float = 30.0

    @property
    def base_url(self) -> str:
        return self.api_url.format(app_id=self.app_id)

    @property
    def has_credentials(self) -> bool:
        return bool(self.app_id and self.api_key)


def load_settings(
    *,
    app_id: str | None = None,
    api_key: str | None = None,
    index_name: str | None = None,
    api_url: str | None = None,
) -> SearchSettings:
    """Build settings from explicit values, falling back to ``SEARCH_*`` variables."""
    return SearchSettings(
        app_id=app_id or os.environ.get("SEARCH_APP_ID", ""),
        api_key=api_key or os.environ.get("SEARCH_API_KEY", ""),
        index_name=index_name or os.environ.get("SEARCH_INDEX_NAME") or DEFAULT_INDEX_NAME,
        api_url=api_url or os.environ.get("SEARCH_API_URL") or DEFAULT_API_URL,
    )


def resolve_workers(value: int | None) -> int:
    if value is not None:
        return max(value, 1)
    env_value = os.environ.get("SEARCH_INDEX_WORKERS")
    if env_value:
        try:
            return max(int(env_value), 1)
        except ValueError:
            logger.debug("Invalid SEARCH_INDEX_WORKERS value: %s", env_value)
    return 1
