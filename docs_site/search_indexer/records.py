"""Turn page node trees into flat search-index records."""
from __future__ import annotations

import html
import logging
import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field, replace
from hashlib import md5
from typing import Any

from bs4 import BeautifulSoup

from .models import Project, ProjectVersion
from .nodes import Document, Node, Paragraph, Title, render_node_value
from .walker import is_indexable, walk

logger = logging.getLogger(__name__)

# Injected by the docs templates; not page content.
SOURCE_PATH_MARKER = "{{ DOCS_SOURCE_PATH"

ANCHOR_RE = re.compile(r'<a id="([^"]*)">.*?</a>', re.IGNORECASE)

CONTEXT_LEVELS = 5

RANKS = {
    "h1": 0,
    "h2": 1,
    "h3": 2,
    "h4": 3,
    "h5": 4,
    "h6": 5,
    "p": 6,
}


@dataclass(frozen=True)
class SearchRecord:
    object_id: str
    rank: int
    h1: str | None
    h2: str | None
    h3: str | None
    h4: str | None
    h5: str | None
    url: str
    content: str
    project_name: str
    tags: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, object]:
        return {
            "objectID": self.object_id,
            "rank": self.rank,
            "h1": self.h1,
            "h2": self.h2,
            "h3": self.h3,
            "h4": self.h4,
            "h5": self.h5,
            "url": self.url,
            "content": self.content,
            "projectName": self.project_name,
            "_tags": list(self.tags),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SearchRecord:
        return cls(
            object_id=str(data["objectID"]),
            rank=int(data["rank"]),
            h1=data.get("h1"),
            h2=data.get("h2"),
            h3=data.get("h3"),
            h4=data.get("h4"),
            h5=data.get("h5"),
            url=str(data["url"]),
            content=str(data.get("content", "")),
            project_name=str(data.get("projectName", "")),
            tags=tuple(str(tag) for tag in data.get("_tags", []) or []),
        )


@dataclass(frozen=True)
class HeadingContext:
    """Most recent heading text for levels 1-5 within one page."""

    headings: tuple[str | None, ...] = (None,) * CONTEXT_LEVELS

    def enter(self, level: int, text: str) -> HeadingContext:
        if not 1 <= level <= CONTEXT_LEVELS:
            return self
        headings = self.headings[: level - 1] + (text,) + (None,) * (CONTEXT_LEVELS - level)
        return HeadingContext(headings)

    def get(self, level: int) -> str | None:
        return self.headings[level - 1]


@dataclass(frozen=True)
class PageState:
    """Accumulator threaded through one page: heading context plus current link."""

    slug: str
    anchor: str
    context: HeadingContext = field(default_factory=HeadingContext)

    @classmethod
    def start(cls, document: Document) -> PageState:
        return cls(slug=document.slug, anchor=document.slug)


def strip_tags(value: str) -> str:
    if not value:
        return ""
    return BeautifulSoup(value, "lxml").get_text()


def content_hash(value: str) -> str:
    return md5(value.encode("utf-8"), usedforsecurity=False).hexdigest()


def get_rank(node: Node) -> int:
    if isinstance(node, Title):
        return RANKS[f"h{node.level}"]
    return RANKS["p"]


def resolve_anchor(slug: str, title_html: str) -> str:
    match = ANCHOR_RE.search(title_html)
    if match is None:
        return slug
    return f"{slug}.html#{html.unescape(match.group(1))}"


class RecordBuilder:
    """Builds the search records of one project version."""

    def __init__(self, project: Project, version: ProjectVersion) -> None:
        self.project = project
        self.version = version

    def step(self, state: PageState, node: Node) -> tuple[PageState, SearchRecord | None]:
        value = render_node_value(node)
        if SOURCE_PATH_MARKER in value:
            logger.debug("Skipping source path node in %s", state.slug)
            return state, None

        node_html = node.render()
        if isinstance(node, Title):
            state = replace(state, anchor=resolve_anchor(state.slug, node_html))

        if isinstance(node, Title) and node.level <= CONTEXT_LEVELS:
            state = replace(state, context=state.context.enter(node.level, value))
            content = ""
        elif isinstance(node, (Title, Paragraph)):
            content = strip_tags(value)
        else:
            raise TypeError(f"not an indexable node: {type(node).__name__}")

        return state, self.make_record(state, node, content)

    def make_record(self, state: PageState, node: Node, content: str) -> SearchRecord:
        version_slug = self.version.slug
        digest = content_hash(render_node_value(node))
        context = state.context
        return SearchRecord(
            object_id=f"{version_slug}-{state.anchor}-{digest}",
            rank=get_rank(node),
            h1=context.get(1),
            h2=context.get(2),
            h3=context.get(3),
            h4=context.get(4),
            h5=context.get(5),
            url=f"/projects/{self.project.docs_slug}/en/{version_slug}/{state.anchor}",
            content=content,
            project_name=self.project.short_name,
            tags=(version_slug, self.project.slug),
        )

    def iter_records(self, document: Document) -> Iterator[SearchRecord]:
        state = PageState.start(document)
        for node in walk(document, is_indexable):
            state, record = self.step(state, node)
            if record is not None:
                yield record

    def build_records(self, document: Document) -> list[SearchRecord]:
        records = list(self.iter_records(document))
        logger.debug("Built %d records for %s", len(records), document.slug)
        return records


def build_records(
    document: Document, project: Project, version: ProjectVersion
) -> list[SearchRecord]:
    return RecordBuilder(project, version).build_records(document)
