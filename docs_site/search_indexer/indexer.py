"""Batch indexing of a project version's pages."""
from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor

from .models import Project, ProjectVersion
from .nodes import Document
from .records import RecordBuilder, SearchRecord
from .search_index import SearchIndex

logger = logging.getLogger(__name__)


def collect_records(
    project: Project,
    version: ProjectVersion,
    documents: Iterable[Document],
    *,
    workers: int = 1,
) -> list[SearchRecord]:
    """Build the records of every page, keeping page order and in-page order.

    Pages share no state, so with ``workers > 1`` they are built on a thread
    pool. A failure on any page propagates and no records are returned.
    """
    builder = RecordBuilder(project, version)
    pages: Sequence[Document] = list(documents)
    if workers > 1 and len(pages) > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            per_page = list(executor.map(builder.build_records, pages))
    else:
        per_page = [builder.build_records(document) for document in pages]
    records = [record for page_records in per_page for record in page_records]
    logger.info(
        "Built %d records from %d pages for %s %s",
        len(records),
        len(pages),
        project.slug,
        version.slug,
    )
    return records


def build_search_indexes(
    index: SearchIndex,
    project: Project,
    version: ProjectVersion,
    documents: Iterable[Document],
    *,
    workers: int = 1,
) -> list[SearchRecord]:
    records = collect_records(project, version, documents, workers=workers)
    index.add_records(records)
    return records


def reindex(
    index: SearchIndex,
    project: Project,
    version: ProjectVersion,
    documents: Iterable[Document],
    *,
    workers: int = 1,
) -> list[SearchRecord]:
    """Build every record first, then replace the index contents with them."""
    records = collect_records(project, version, documents, workers=workers)
    index.init_index()
    index.add_records(records)
    return records
