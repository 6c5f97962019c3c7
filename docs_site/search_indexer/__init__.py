"""Search index builder for rendered project documentation."""
from __future__ import annotations

from . import api_docs, config, indexer, models, nodes, pages, records, renderer, search_index, walker

__all__ = [
    "api_docs",
    "config",
    "indexer",
    "models",
    "nodes",
    "pages",
    "records",
    "renderer",
    "search_index",
    "walker",
]
