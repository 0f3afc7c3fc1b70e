"""Structural extraction of one detail page into an ExtractedRecord."""

from __future__ import annotations

import re
from typing import Callable

import structlog
from selectolax.parser import HTMLParser, Node

from ..config import PageRules
from ..errors import FetchFailure, ParseFailure
from .dom import following_siblings, header_cells, next_element, node_text, parse_html, parse_table
from .fetcher import Fetcher
from .records import ExtractedRecord, KeyedBlocks, Link, Scalar, Table

UNKNOWN_MODE = "unknownMode"
_EXCEPTIONS_SUFFIX = re.compile(r"\s*Exceptions\s*$")


def exception_mode_key(text: str, known_modes: dict[str, str]) -> str:
    """Derive a canonical camelCase key from an exceptions heading."""

    text = text.strip()
    for marker, key in known_modes.items():
        if marker in text:
            return key
    words = _EXCEPTIONS_SUFFIX.sub("", text).split()
    if not words:
        return UNKNOWN_MODE
    return words[0].lower() + "".join(word.lower().title() for word in words[1:])


class StructuralExtractor:
    """Fetch and parse detail pages according to a profile's page rules."""

    def __init__(
        self,
        rules: PageRules,
        fetcher: Fetcher | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.rules = rules
        self.fetcher = fetcher
        self.logger = logger or structlog.get_logger("refscrape.extractor")

    def extract(self, link: Link) -> ExtractedRecord:
        """Fetch ``link`` and extract it; failures end up in ``error``."""

        if self.fetcher is None:
            raise RuntimeError("StructuralExtractor.extract requires a fetcher")
        try:
            response = self.fetcher.fetch(link.identifier)
        except FetchFailure as exc:
            return ExtractedRecord.failure(link, exc.reason)
        return self.parse(response.content, link)

    def parse(self, content: str | bytes, link: Link) -> ExtractedRecord:
        try:
            tree = parse_html(content)
        except ParseFailure as exc:
            return ExtractedRecord.failure(link, f"failed to parse HTML: {exc}")

        record = ExtractedRecord(identifier=link.identifier, category=link.category)
        steps: list[tuple[str, Callable[[HTMLParser, ExtractedRecord], None]]] = [
            ("title", self._extract_title),
            ("tables", self._extract_tables),
            ("text_sections", self._extract_text_sections),
            ("exceptions", self._extract_exceptions),
        ]
        for step, handler in steps:
            try:
                handler(tree, record)
            except Exception as exc:  # noqa: BLE001
                self.logger.warning(
                    "extract_step_failed", url=link.identifier, step=step, error=str(exc)
                )
        return record

    # ------------------------------------------------------------------
    def _extract_title(self, tree: HTMLParser, record: ExtractedRecord) -> None:
        record.fields[self.rules.title_field] = Scalar(
            node_text(tree.css_first(self.rules.title_selector))
        )

    def _extract_tables(self, tree: HTMLParser, record: ExtractedRecord) -> None:
        tables = tree.css("table")
        if not tables:
            return
        record.fields[self.rules.primary_table_field] = parse_table(tables[0])
        secondary = self._secondary_table(tree, tables)
        if secondary is not None:
            record.fields[self.rules.secondary_table_field] = secondary

    def _secondary_table(self, tree: HTMLParser, tables: list[Node]) -> Table | None:
        selector = self.rules.secondary_header_selector
        header = tree.css_first(selector) if selector else None
        if header is not None:
            table = next_element(header)
            if table is None or table.tag != "table":
                return None
            return parse_table(table)
        if len(tables) < 2 or not self.rules.secondary_sentinel:
            return None
        # Only accept the second table when it carries the sentinel header.
        candidate = tables[1]
        if self.rules.secondary_sentinel in header_cells(candidate):
            return parse_table(candidate)
        return None

    def _extract_text_sections(self, tree: HTMLParser, record: ExtractedRecord) -> None:
        for field_name, header_id in self.rules.text_sections.items():
            record.fields[field_name] = Scalar(self.section_text(tree, header_id))

    def section_text(self, tree: HTMLParser, header_id: str) -> str:
        tag = self.rules.section_heading_tag
        header = tree.css_first(f'{tag}[id="{header_id}"]')
        if header is None:
            return ""
        content = [
            node_text(node)
            for node in following_siblings(header, tag)
            if node.tag in ("p", "pre")
        ]
        return "\n".join(content)

    def _extract_exceptions(self, tree: HTMLParser, record: ExtractedRecord) -> None:
        if not self.rules.exceptions_selector:
            return
        blocks: dict[str, list[str]] = {}
        for header in tree.css(self.rules.exceptions_selector):
            mode = exception_mode_key(node_text(header), self.rules.exception_modes)
            entries: list[str] = []
            for node in following_siblings(header, header.tag):
                if node.tag == "p":
                    entries.append(node_text(node))
                elif node.tag == "table":
                    entries.append(parse_table(node).flatten())
            if mode in blocks:
                self.logger.warning(
                    "duplicate_exception_mode",
                    url=record.identifier,
                    mode=mode,
                    policy=self.rules.duplicate_modes,
                )
                if self.rules.duplicate_modes == "append":
                    blocks[mode].extend(entries)
                    continue
            blocks[mode] = entries
        record.fields[self.rules.exceptions_field] = KeyedBlocks(blocks)


__all__ = ["StructuralExtractor", "UNKNOWN_MODE", "exception_mode_key"]
