"""Record model shared by discovery, extraction and persistence."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union


@dataclass(frozen=True, slots=True)
class Link:
    """A detail page found on the index page."""

    identifier: str
    category: str


@dataclass(slots=True)
class Scalar:
    text: str

    def to_json(self) -> str:
        return self.text


@dataclass(slots=True)
class Table:
    """Ordered row mappings keyed by header text."""

    rows: list[dict[str, str]] = field(default_factory=list)

    def to_json(self) -> list[dict[str, str]]:
        return [dict(row) for row in self.rows]

    def flatten(self) -> str:
        """Render rows as ``key: value; `` lines."""

        lines = []
        for row in self.rows:
            lines.append("".join(f"{key}: {value}; " for key, value in row.items()))
        return "\n".join(lines).strip()


@dataclass(slots=True)
class KeyedBlocks:
    """Text blocks grouped under a category key (e.g. exception mode)."""

    blocks: dict[str, list[str]] = field(default_factory=dict)

    def to_json(self) -> dict[str, list[str]]:
        return {key: list(entries) for key, entries in self.blocks.items()}


Value = Union[Scalar, Table, KeyedBlocks]


def value_from_json(payload: Any) -> Value | None:
    if payload is None:
        return None
    if isinstance(payload, str):
        return Scalar(payload)
    if isinstance(payload, list):
        rows = [
            {str(key): "" if cell is None else str(cell) for key, cell in row.items()}
            for row in payload
            if isinstance(row, dict)
        ]
        return Table(rows)
    if isinstance(payload, dict):
        blocks: dict[str, list[str]] = {}
        for key, entries in payload.items():
            if isinstance(entries, list):
                blocks[str(key)] = [str(entry) for entry in entries]
            elif entries is not None:
                blocks[str(key)] = [str(entries)]
        return KeyedBlocks(blocks)
    return Scalar(str(payload))


@dataclass(slots=True)
class ExtractedRecord:
    """One page's extraction result; ``error`` marks a failure record."""

    identifier: str
    category: str = ""
    fields: dict[str, Value] = field(default_factory=dict)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, link: Link, error: str) -> "ExtractedRecord":
        return cls(identifier=link.identifier, category=link.category, error=error)

    def text(self, name: str) -> str:
        value = self.fields.get(name)
        return value.text if isinstance(value, Scalar) else ""

    def to_json(self, identifier_key: str = "url") -> dict[str, Any]:
        payload: dict[str, Any] = {identifier_key: self.identifier, "category": self.category}
        for name, value in self.fields.items():
            payload[name] = value.to_json()
        if self.error:
            payload["error"] = self.error
        return payload

    @classmethod
    def from_json(cls, payload: dict[str, Any], identifier_key: str = "url") -> "ExtractedRecord":
        identifier = payload.get(identifier_key)
        if not isinstance(identifier, str) or not identifier:
            raise ValueError(f"record without '{identifier_key}'")
        fields: dict[str, Value] = {}
        for name, raw in payload.items():
            if name in (identifier_key, "category", "error"):
                continue
            value = value_from_json(raw)
            if value is not None:
                fields[name] = value
        return cls(
            identifier=identifier,
            category=str(payload.get("category") or ""),
            fields=fields,
            error=payload.get("error") or None,
        )


__all__ = [
    "ExtractedRecord",
    "KeyedBlocks",
    "Link",
    "Scalar",
    "Table",
    "Value",
    "value_from_json",
]
