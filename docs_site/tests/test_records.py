from __future__ import annotations

import pytest

from docs_site.search_indexer import indexer, records, walker
from docs_site.search_indexer.models import Project, ProjectVersion
from docs_site.search_indexer.nodes import (
    Document,
    NodeRenderError,
    Other,
    Paragraph,
    Span,
    Title,
)
from docs_site.search_indexer.records import RecordBuilder, SearchRecord


@pytest.fixture()
def project() -> Project:
    return Project(slug="orm", docs_slug="doctrine-orm", short_name="ORM", repository_name="orm")


@pytest.fixture()
def version() -> ProjectVersion:
    return ProjectVersion(slug="2.7", branch_name="2.7")


@pytest.fixture()
def builder(project: Project, version: ProjectVersion) -> RecordBuilder:
    return RecordBuilder(project, version)


def test_example_page_records(builder: RecordBuilder) -> None:
    document = Document(
        url="reference/guide",
        nodes=[
            Title(1, Span("Intro")),
            Paragraph(Span("Hello world")),
            Title(2, Span("Details"), anchor="sec2"),
            Paragraph(Span("More text")),
        ],
    )
    built = builder.build_records(document)
    assert len(built) == 4

    intro, hello, details, more = built
    assert intro.rank == 0
    assert intro.content == ""
    assert intro.h1 == "Intro"

    assert hello.h1 == "Intro"
    assert hello.h2 is None
    assert hello.content == "Hello world"
    assert hello.rank == 6
    assert hello.url == "/projects/doctrine-orm/en/2.7/reference/guide"

    assert details.rank == 1
    assert details.h2 == "Details"
    assert details.url.endswith("reference/guide.html#sec2")

    assert more.h1 == "Intro"
    assert more.h2 == "Details"
    assert more.content == "More text"
    assert more.url == "/projects/doctrine-orm/en/2.7/reference/guide.html#sec2"
    assert more.project_name == "ORM"
    assert more.tags == ("2.7", "orm")
    assert more.object_id.startswith("2.7-reference/guide.html#sec2-")


def test_deeper_headings_reset_on_shallower_heading(builder: RecordBuilder) -> None:
    document = Document(
        url="page",
        nodes=[
            Title(1, "Book"),
            Title(2, "Chapter"),
            Title(3, "Section"),
            Title(4, "Sub"),
            Title(2, "Next chapter"),
            Paragraph("Body"),
        ],
    )
    built = builder.build_records(document)
    sub = built[3]
    assert (sub.h1, sub.h2, sub.h3, sub.h4, sub.h5) == ("Book", "Chapter", "Section", "Sub", None)
    body = built[-1]
    assert (body.h1, body.h2, body.h3, body.h4, body.h5) == ("Book", "Next chapter", None, None, None)


def test_h6_is_ranked_but_not_tracked(builder: RecordBuilder) -> None:
    document = Document(
        url="page",
        nodes=[Title(5, "Five"), Title(6, "Six <em>deep</em>"), Paragraph("After")],
    )
    five, six, after = builder.build_records(document)
    assert five.rank == 4
    assert six.rank == 5
    assert six.content == "Six deep"
    assert six.h5 == "Five"
    assert after.h5 == "Five"


@pytest.mark.parametrize(
    ("node", "expected"),
    [
        (Title(1, "a"), 0),
        (Title(2, "a"), 1),
        (Title(3, "a"), 2),
        (Title(4, "a"), 3),
        (Title(5, "a"), 4),
        (Title(6, "a"), 5),
        (Paragraph("a"), 6),
    ],
)
def test_rank_table(node: Title | Paragraph, expected: int) -> None:
    assert records.get_rank(node) == expected


def test_paragraph_content_is_plain_text(builder: RecordBuilder) -> None:
    document = Document(
        url="page",
        nodes=[Paragraph(Span('Use <code>flush()</code> &amp; <a href="x">commit</a>'))],
    )
    (record,) = builder.build_records(document)
    assert record.content == "Use flush() & commit"


def test_source_path_marker_is_skipped_without_state_change(builder: RecordBuilder) -> None:
    document = Document(
        url="page",
        nodes=[
            Title(1, "Intro", anchor="intro"),
            Title(2, "{{ DOCS_SOURCE_PATH }}", anchor="source"),
            Paragraph("{{ DOCS_SOURCE_PATH : 'en/index.rst' }}"),
            Paragraph("Text"),
        ],
    )
    built = builder.build_records(document)
    assert len(built) == 2
    text = built[-1]
    assert text.h1 == "Intro"
    assert text.h2 is None
    assert text.url.endswith("page.html#intro")


def test_title_without_id_resets_anchor(builder: RecordBuilder) -> None:
    document = Document(
        url="page",
        nodes=[Title(1, "One", anchor="one"), Title(2, "Two"), Paragraph("Text")],
    )
    built = builder.build_records(document)
    assert built[0].url.endswith("page.html#one")
    assert built[2].url == "/projects/doctrine-orm/en/2.7/page"


def test_identifier_is_deterministic(builder: RecordBuilder) -> None:
    document = Document(url="page", nodes=[Paragraph("Same"), Paragraph("Same"), Paragraph("Other")])
    first, second, third = builder.build_records(document)
    assert first.object_id == second.object_id
    assert first.object_id != third.object_id
    assert first.object_id == f"2.7-page-{records.content_hash('Same')}"
    assert len(records.content_hash("Same")) == 32
    assert builder.build_records(document) == [first, second, third]


def test_context_does_not_leak_between_pages(
    project: Project, version: ProjectVersion
) -> None:
    pages = [
        Document(url="one", nodes=[Title(1, "First", anchor="first"), Paragraph("a")]),
        Document(url="two", nodes=[Paragraph("b")]),
    ]
    built = indexer.collect_records(project, version, pages)
    assert built[-1].h1 is None
    assert built[-1].url.endswith("/two")


def test_parallel_build_keeps_order(project: Project, version: ProjectVersion) -> None:
    pages = [
        Document(url=f"page{i}", nodes=[Title(1, f"Title {i}"), Paragraph(f"Body {i}")])
        for i in range(8)
    ]
    sequential = indexer.collect_records(project, version, pages)
    parallel = indexer.collect_records(project, version, pages, workers=4)
    assert parallel == sequential


def test_malformed_node_aborts(builder: RecordBuilder) -> None:
    document = Document(url="page", nodes=[Paragraph("ok"), Paragraph(None)])
    with pytest.raises(NodeRenderError):
        builder.build_records(document)


def test_nested_values_render_inner_node(builder: RecordBuilder) -> None:
    document = Document(url="page", nodes=[Paragraph(Span(Span("inner"))), Paragraph(42)])
    inner, number = builder.build_records(document)
    assert inner.content == "inner"
    assert number.content == "42"


def test_walk_is_document_order_and_restartable() -> None:
    intro = Title(1, "Intro")
    nested = Paragraph("Nested")
    after = Paragraph("After")
    document = Document(
        url="page",
        nodes=[
            intro,
            Other("section", children=(Other("ul", children=(nested,)), Other("pre", value="code"))),
            after,
        ],
    )
    first = list(walker.walk(document))
    assert first == [intro, nested, after]
    assert list(walker.walk(document)) == first
    others = list(walker.walk(document, lambda node: isinstance(node, Other)))
    assert [node.tag for node in others] == ["section", "ul", "pre"]


def test_record_round_trips_through_dict(builder: RecordBuilder) -> None:
    document = Document(url="page", nodes=[Title(1, "Intro"), Paragraph("Body")])
    for record in builder.build_records(document):
        data = record.to_dict()
        assert set(data) == {
            "objectID",
            "rank",
            "h1",
            "h2",
            "h3",
            "h4",
            "h5",
            "url",
            "content",
            "projectName",
            "_tags",
        }
        assert SearchRecord.from_dict(data) == record


def test_anchor_with_markup_characters_stays_literal(builder: RecordBuilder) -> None:
    document = Document(
        url="page",
        nodes=[Title(1, "A", anchor="a&b<c>"), Paragraph("x")],
    )
    title, text = builder.build_records(document)
    assert text.url == "/projects/doctrine-orm/en/2.7/page.html#a&b<c>"
    assert text.object_id.startswith("2.7-page.html#a&b<c>-")
    assert title.url == text.url


def test_resolve_anchor_unescapes_quoted_id() -> None:
    html_title = Title(2, "Quote", anchor='say "hi"').render()
    assert records.resolve_anchor("page", html_title) == 'page.html#say "hi"'
