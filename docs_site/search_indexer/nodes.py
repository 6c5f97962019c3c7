"""Document tree node types produced by the page loaders."""
from __future__ import annotations

import html
from dataclasses import dataclass, field
from typing import Any, Union


class NodeRenderError(RuntimeError):
    """Raised when a node value cannot be rendered to text."""


@dataclass(frozen=True)
class Span:
    """Inline markup; ``value`` is already rendered HTML or plain text."""

    value: Any

    def render(self) -> str:
        return render_value(self.value)


@dataclass(frozen=True)
class Title:
    level: int
    value: Any
    anchor: str | None = None

    def __post_init__(self) -> None:
        if not 1 <= self.level <= 6:
            raise ValueError(f"title level out of range: {self.level}")

    def render(self) -> str:
        text = render_value(self.value)
        heading = f"<h{self.level}>{text}</h{self.level}>"
        if self.anchor:
            return f'<a id="{html.escape(self.anchor, quote=True)}"></a>{heading}'
        return heading


@dataclass(frozen=True)
class Paragraph:
    value: Any

    def render(self) -> str:
        return f"<p>{render_value(self.value)}</p>"


@dataclass(frozen=True)
class Other:
    """Any structural node that is not indexed itself (sections, lists, code)."""

    tag: str = "div"
    children: tuple[Node, ...] = ()
    value: Any = ""

    def render(self) -> str:
        inner = "".join(child.render() for child in self.children)
        if not inner:
            inner = render_value(self.value)
        return f"<{self.tag}>{inner}</{self.tag}>"


Node = Union[Title, Paragraph, Other]


@dataclass
class Document:
    """One rendered page of a project version."""

    url: str
    nodes: list[Node] = field(default_factory=list)

    @property
    def slug(self) -> str:
        return self.url


def render_value(value: Any) -> str:
    if isinstance(value, (Title, Paragraph, Other, Span)):
        return value.render()
    if isinstance(value, str):
        return value
    if value is None:
        raise NodeRenderError("node has no value")
    try:
        return str(value)
    except Exception as exc:
        raise NodeRenderError(f"cannot render {type(value).__name__}: {exc}") from exc


def render_node_value(node: Node) -> str:
    """Render the textual value carried by ``node`` (not its HTML wrapper)."""
    try:
        return render_value(node.value)
    except RecursionError as exc:
        # only reachable through a self-referencing value
        raise NodeRenderError(f"cyclic value in {type(node).__name__}") from exc
