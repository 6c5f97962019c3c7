"""Load rendered documentation pages into node trees."""
from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator
from pathlib import Path

from bs4 import BeautifulSoup, Tag
from docx import Document as DocxDocument

from .nodes import Document, Node, Other, Paragraph, Span, Title

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = {
    ".html",
    ".htm",
    ".md",
    ".markdown",
    ".docx",
}

HEADING_RE = re.compile(r"^(#{1,6})\s+(.+?)\s*#*\s*$")
FENCE_RE = re.compile(r"^(```|~~~)")
DOCX_HEADING_RE = re.compile(r"^Heading\s+(\d+)$", re.IGNORECASE)

HEADING_TAGS = {"h1", "h2", "h3", "h4", "h5", "h6"}
CONTAINER_TAGS = {
    "article",
    "aside",
    "blockquote",
    "body",
    "dd",
    "div",
    "dl",
    "dt",
    "figure",
    "footer",
    "header",
    "li",
    "main",
    "nav",
    "ol",
    "section",
    "table",
    "tbody",
    "td",
    "th",
    "thead",
    "tr",
    "ul",
}


class PageLoadError(RuntimeError):
    """Raised when a page file cannot be read or parsed."""


def slugify(text: str) -> str:
    cleaned = re.sub(r"[^A-Za-z0-9\s-]", "", text.strip().lower())
    cleaned = re.sub(r"\s+", "-", cleaned)
    cleaned = re.sub(r"-+", "-", cleaned)
    return cleaned


def page_url(path: Path, base_path: Path) -> str:
    return path.relative_to(base_path).with_suffix("").as_posix()


def iter_page_files(root: Path, exclude: Iterable[Path] = ()) -> Iterator[Path]:
    excluded = [path.resolve() for path in exclude]
    for path in sorted(root.rglob("*")):
        if not path.is_file():
            continue
        if any(part == "_index" for part in path.parts):
            continue
        if any(path.resolve().is_relative_to(skip) for skip in excluded):
            continue
        if path.suffix.lower() in SUPPORTED_EXTENSIONS:
            yield path


def load_page(path: Path, base_path: Path) -> Document:
    url = page_url(path, base_path)
    suffix = path.suffix.lower()
    try:
        if suffix in {".html", ".htm"}:
            return parse_html(path.read_text(encoding="utf-8", errors="ignore"), url)
        if suffix in {".md", ".markdown"}:
            return parse_markdown(path.read_text(encoding="utf-8", errors="ignore"), url)
        if suffix == ".docx":
            return parse_docx(path, url)
    except (OSError, ValueError) as exc:
        raise PageLoadError(f"{path}: {exc}") from exc
    raise PageLoadError(f"{path}: unsupported page type {suffix}")


def load_documents(root: Path, exclude: Iterable[Path] = ()) -> list[Document]:
    documents = [load_page(path, root) for path in iter_page_files(root, exclude)]
    logger.info("Loaded %d pages from %s", len(documents), root)
    return documents


def parse_html(text: str, url: str) -> Document:
    soup = BeautifulSoup(text, "lxml")
    root = soup.body or soup
    nodes, _ = _convert_children(root, None)
    return Document(url=url, nodes=nodes)


def _convert_children(parent: Tag, section_id: str | None) -> tuple[list[Node], str | None]:
    """Convert ``parent``'s element children.

    A section id names only the first heading below its section, at any depth.
    The id still unclaimed after the children is returned.
    """
    nodes: list[Node] = []
    for child in parent.children:
        if not isinstance(child, Tag):
            continue
        node, section_id = _convert_tag(child, section_id)
        if node is not None:
            nodes.append(node)
    return nodes, section_id


def _convert_tag(tag: Tag, section_id: str | None) -> tuple[Node | None, str | None]:
    name = tag.name
    if name in HEADING_TAGS:
        for permalink in tag.find_all("a", class_="headerlink"):
            permalink.decompose()
        anchor = _heading_anchor(tag) or section_id
        title = Title(level=int(name[1]), value=Span(tag.get_text(" ", strip=True)), anchor=anchor)
        return title, None
    if name == "p":
        return Paragraph(Span(tag.decode_contents().strip())), section_id
    if name in CONTAINER_TAGS:
        own_id = tag.get("id")
        if isinstance(own_id, str) and own_id:
            children, unclaimed = _convert_children(tag, own_id)
            # a heading inside claimed the nested id, which spends the outer one too
            remaining = section_id if unclaimed is not None else None
        else:
            children, remaining = _convert_children(tag, section_id)
        return Other(tag=name, children=tuple(children)), remaining
    if name == "pre":
        return Other(tag=name, value=tag.get_text()), section_id
    return None, section_id


def _heading_anchor(tag: Tag) -> str | None:
    own_id = tag.get("id")
    if isinstance(own_id, str) and own_id:
        return own_id
    inner = tag.find("a", id=True)
    if isinstance(inner, Tag):
        inner_id = inner.get("id")
        if isinstance(inner_id, str) and inner_id:
            return inner_id
    return None


def parse_markdown(text: str, url: str) -> Document:
    nodes: list[Node] = []
    buffer: list[str] = []
    code: list[str] | None = None

    def flush() -> None:
        if buffer:
            nodes.append(Paragraph(Span(" ".join(buffer))))
            buffer.clear()

    for raw_line in text.splitlines():
        if code is not None:
            if FENCE_RE.match(raw_line.strip()):
                nodes.append(Other(tag="pre", value="\n".join(code)))
                code = None
            else:
                code.append(raw_line)
            continue
        stripped = raw_line.strip()
        if FENCE_RE.match(stripped):
            flush()
            code = []
            continue
        match = HEADING_RE.match(stripped)
        if match:
            flush()
            heading = match.group(2).strip()
            nodes.append(
                Title(level=len(match.group(1)), value=Span(heading), anchor=slugify(heading) or None)
            )
            continue
        if not stripped:
            flush()
            continue
        buffer.append(stripped)
    flush()
    if code:
        nodes.append(Other(tag="pre", value="\n".join(code)))
    return Document(url=url, nodes=nodes)


def parse_docx(path: Path, url: str) -> Document:
    try:
        document = DocxDocument(str(path))
    except Exception as exc:
        raise PageLoadError(f"{path}: {exc}") from exc
    nodes: list[Node] = []
    for paragraph in document.paragraphs:
        text = paragraph.text.strip()
        if not text:
            continue
        style_name = paragraph.style.name if paragraph.style is not None else ""
        level = _docx_heading_level(style_name or "")
        if level is None:
            nodes.append(Paragraph(Span(text)))
        else:
            nodes.append(Title(level=level, value=Span(text), anchor=slugify(text) or None))
    return Document(url=url, nodes=nodes)


def _docx_heading_level(style_name: str) -> int | None:
    if style_name == "Title":
        return 1
    match = DOCX_HEADING_RE.match(style_name)
    if match is None:
        return None
    return min(max(int(match.group(1)), 1), 6)
