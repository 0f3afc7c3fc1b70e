"""Single-page catalogs where each table row is one instruction."""

from __future__ import annotations

import re
from dataclasses import dataclass
from html import unescape

import structlog

from ..config import CatalogRules
from .dom import children, parse_html

_WHITESPACE = re.compile(r"\s+")
_NO_CHANGE = ("", "[No change]", "[no change]")


def clean_text(text: str) -> str:
    return _WHITESPACE.sub(" ", unescape(text)).strip()


@dataclass(slots=True)
class CatalogEntry:
    mnemonic: str
    opcode_hex: str
    opcode_binary: str
    other_bytes: str
    stack: str
    description: str


def opcode_value(hex_text: str) -> str:
    """Decimal form of a hex opcode, or ``""`` when it does not parse."""

    try:
        return str(int(hex_text.strip(), 16))
    except ValueError:
        return ""


def split_stack(stack: str) -> tuple[str, str]:
    """Split ``before → after`` stack notation."""

    if stack in _NO_CHANGE:
        return "No change", "No change"
    parts = stack.split("→")
    if len(parts) == 2:
        before, after = parts[0].strip(), parts[1].strip()
        if not before:
            before = "..."
        if not after or after == "[empty]":
            after = "[empty]"
        return before, after
    return "...", stack


class CatalogExtractor:
    """Parse catalog rows and flatten them for downstream consumers."""

    def __init__(self, rules: CatalogRules, logger: structlog.BoundLogger | None = None) -> None:
        self.rules = rules
        self.logger = logger or structlog.get_logger("refscrape.catalog")

    def parse(self, content: str | bytes) -> list[CatalogEntry]:
        tree = parse_html(content)
        entries: list[CatalogEntry] = []
        for row in tree.css(self.rules.row_selector):
            cells = [clean_text(cell.text(deep=True) or "") for cell in children(row, ("td",))]
            if len(cells) < self.rules.min_cells:
                continue
            entry = CatalogEntry(*cells[:6])
            if entry.mnemonic:
                entries.append(entry)
        self.logger.info("catalog_parsed", count=len(entries))
        return entries

    def flatten(self, entry: CatalogEntry) -> dict[str, str]:
        record: dict[str, str] = {"mnemonic": entry.mnemonic}
        value = opcode_value(entry.opcode_hex)
        if value:
            record["opcode"] = f"{entry.mnemonic} = {value} (0x{entry.opcode_hex})"
        record["operation"] = entry.description
        fmt = entry.mnemonic
        if entry.other_bytes:
            fmt += " " + entry.other_bytes.replace(":", "")
        record["format"] = fmt
        before, after = split_stack(entry.stack)
        record["operandStackBefore"] = before
        record["operandStackAfter"] = after
        record["description"] = entry.description
        record["anchorId"] = self.rules.anchor_prefix + entry.mnemonic.replace("_", "-")
        return record

    def extract(self, content: str | bytes) -> list[dict[str, str]]:
        return [self.flatten(entry) for entry in self.parse(content)]


__all__ = ["CatalogEntry", "CatalogExtractor", "clean_text", "opcode_value", "split_stack"]
