"""Document-order traversal of page node trees."""
from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator

from .nodes import Document, Node, Other, Paragraph, Title

NodePredicate = Callable[[Node], bool]


def is_indexable(node: Node) -> bool:
    return isinstance(node, (Title, Paragraph))


def walk(document: Document, predicate: NodePredicate = is_indexable) -> Iterator[Node]:
    """Yield every node of ``document`` matching ``predicate``, in authored order.

    Containers are visited before their children. The tree is never mutated, so
    calling ``walk`` again on the same document yields the same sequence.
    """
    yield from _walk_nodes(document.nodes, predicate)


def _walk_nodes(nodes: Iterable[Node], predicate: NodePredicate) -> Iterator[Node]:
    for node in nodes:
        if predicate(node):
            yield node
        if isinstance(node, Other) and node.children:
            yield from _walk_nodes(node.children, predicate)
