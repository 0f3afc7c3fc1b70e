"""Small selectolax helpers for sibling walking and table parsing."""

from __future__ import annotations

from typing import Iterator

from selectolax.parser import HTMLParser, Node

from ..errors import ParseFailure
from .records import Table

_CELL_TAGS = ("th", "td")


def parse_html(content: str | bytes) -> HTMLParser:
    """Build a DOM tree, raising :class:`ParseFailure` on unusable input."""

    if isinstance(content, bytes):
        content = content.decode("utf-8", errors="replace")
    if not content.strip():
        raise ParseFailure("empty document")
    try:
        tree = HTMLParser(content)
    except Exception as exc:  # noqa: BLE001
        raise ParseFailure(str(exc)) from exc
    if tree.root is None:
        raise ParseFailure("document has no root element")
    return tree


def is_element(node: Node | None) -> bool:
    if node is None:
        return False
    tag = node.tag or ""
    return bool(tag) and not tag.startswith(("-", "_", "!"))


def next_element(node: Node) -> Node | None:
    sibling = node.next
    while sibling is not None and not is_element(sibling):
        sibling = sibling.next
    return sibling


def following_siblings(node: Node, stop_tag: str) -> Iterator[Node]:
    """Yield element siblings after ``node`` up to the next ``stop_tag``."""

    sibling = next_element(node)
    while sibling is not None and sibling.tag != stop_tag:
        yield sibling
        sibling = next_element(sibling)


def node_text(node: Node | None) -> str:
    if node is None:
        return ""
    return (node.text(deep=True) or "").strip()


def children(node: Node, tags: tuple[str, ...]) -> list[Node]:
    return [child for child in node.iter() if child.tag in tags]


def _owning_table(node: Node) -> Node | None:
    parent = node.parent
    while parent is not None and parent.tag != "table":
        parent = parent.parent
    return parent


def table_rows(table: Node) -> list[Node]:
    """Rows belonging to ``table`` itself, skipping rows of nested tables."""

    rows = []
    for row in table.css("tr"):
        owner = _owning_table(row)
        if owner is not None and owner.mem_id == table.mem_id:
            rows.append(row)
    return rows


def parse_table(table: Node | None) -> Table:
    """Parse a table using its first row as header names.

    Blank header cells (and cells beyond the header row) are keyed
    ``column_<N>``; rows without any non-empty cell are dropped.
    """

    if table is None or table.tag != "table":
        return Table()
    rows = table_rows(table)
    if not rows:
        return Table()
    headers = [node_text(cell) for cell in children(rows[0], _CELL_TAGS)]
    parsed: list[dict[str, str]] = []
    for row in rows[1:]:
        mapping: dict[str, str] = {}
        for index, cell in enumerate(children(row, _CELL_TAGS)):
            key = f"column_{index + 1}"
            if index < len(headers) and headers[index]:
                key = headers[index]
            mapping[key] = node_text(cell)
        if any(value for value in mapping.values()):
            parsed.append(mapping)
    return Table(parsed)


def header_cells(table: Node) -> list[str]:
    return [node_text(cell) for cell in table.css("th")]


__all__ = [
    "children",
    "following_siblings",
    "header_cells",
    "is_element",
    "next_element",
    "node_text",
    "parse_html",
    "parse_table",
    "table_rows",
]
